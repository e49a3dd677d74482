"""Working day calendar.

Decides whether a timestamp falls on a working day in a single fixed
timezone. Comparisons are by calendar day, so the time-of-day component
of a timestamp never changes the answer.

Rules, in order:
1. Sunday is never a working day.
2. Saturday is not a working day while the calendar day is strictly before
   the Saturday cutoff (race date minus N calendar months); from the cutoff
   onwards Saturdays count as working days.
3. Any day inside a configured holiday range (inclusive) is not a working day.

This is the single source of truth for weekday handling; publishers and the
stage clock never re-check weekdays themselves.
"""

from __future__ import annotations

import calendar
from dataclasses import dataclass, field
from datetime import date, datetime, timezone, tzinfo

SATURDAY = 5
SUNDAY = 6


@dataclass(frozen=True)
class HolidayRange:
    """An inclusive range of calendar days that are never working days.

    Attributes:
        start: First holiday day (inclusive).
        end: Last holiday day (inclusive).
    """

    start: date
    end: date

    def __post_init__(self) -> None:
        """Validate range ordering."""
        if self.end < self.start:
            raise ValueError(
                f"holiday end {self.end.isoformat()} is before start "
                f"{self.start.isoformat()}"
            )

    def contains(self, day: date) -> bool:
        """Check whether a calendar day falls within the range."""
        return self.start <= day <= self.end

    @classmethod
    def parse(cls, value: str) -> HolidayRange:
        """Parse a `YYYY-MM-DD:YYYY-MM-DD` range.

        Args:
            value: Range text.

        Returns:
            Parsed HolidayRange.

        Raises:
            ValueError: If the text is malformed.
        """
        start_text, sep, end_text = value.strip().partition(":")
        if not sep:
            raise ValueError(f"holiday range must be START:END, got {value!r}")
        return cls(
            start=date.fromisoformat(start_text.strip()),
            end=date.fromisoformat(end_text.strip()),
        )


def subtract_months(day: date, months: int) -> date:
    """Move a calendar day back by whole months, clamping to month end.

    Args:
        day: Starting day.
        months: Number of calendar months to go back.

    Returns:
        The same day-of-month N months earlier, or that month's last day
        when it is shorter.
    """
    month_index = day.year * 12 + (day.month - 1) - months
    year, month = divmod(month_index, 12)
    month += 1
    last_day = calendar.monthrange(year, month)[1]
    return date(year, month, min(day.day, last_day))


@dataclass(frozen=True)
class WorkingDayCalendar:
    """Working day oracle for one timezone, race date and holiday set.

    Pure and total: no I/O, no clock reads.

    Attributes:
        tz: Timezone in which calendar days are evaluated.
        race_date: Race date used to derive the Saturday cutoff.
        saturday_cutoff_months: Months before the race date when Saturdays
            start counting as working days.
        holidays: Inclusive holiday ranges.

    Example:
        >>> from zoneinfo import ZoneInfo
        >>> cal = WorkingDayCalendar(tz=ZoneInfo("Europe/Rome"), race_date=date(2027, 7, 1))
        >>> cal.is_working_day(date(2026, 3, 8))  # a Sunday
        False
    """

    tz: tzinfo
    race_date: date
    saturday_cutoff_months: int = 3
    holidays: tuple[HolidayRange, ...] = field(default=())

    @property
    def saturday_cutoff(self) -> date:
        """First day on which Saturdays count as working days."""
        return subtract_months(self.race_date, self.saturday_cutoff_months)

    def local_day(self, moment: datetime | date) -> date:
        """Return the calendar day of a timestamp in the calendar timezone.

        Naive datetimes are taken to be UTC.
        """
        if isinstance(moment, datetime):
            if moment.tzinfo is None:
                moment = moment.replace(tzinfo=timezone.utc)
            return moment.astimezone(self.tz).date()
        return moment

    def is_working_day(self, moment: datetime | date) -> bool:
        """Check whether a timestamp falls on a working day.

        Args:
            moment: Timestamp (any timezone) or a calendar day already in
                the calendar timezone.

        Returns:
            True if the calendar day is a working day.
        """
        day = self.local_day(moment)
        weekday = day.weekday()
        if weekday == SUNDAY:
            return False
        if weekday == SATURDAY and day < self.saturday_cutoff:
            return False
        return not any(holiday.contains(day) for holiday in self.holidays)
