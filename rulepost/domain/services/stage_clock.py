"""Stage clock: stage-boundary arithmetic over working days.

All functions take "now" explicitly and return timezone-aware UTC instants.
Internal arithmetic happens on calendar days in the calendar's timezone.
Callers pass the target time-of-day explicitly; there is no shared default.
"""

from __future__ import annotations

import math
from collections.abc import Iterable
from datetime import date, datetime, time, timedelta, timezone

from rulepost.domain.errors.stage import StageClockError
from rulepost.domain.services.working_day_calendar import WorkingDayCalendar

# Upper bound on the day walk; a calendar with no working day in this span is broken
MAX_SCAN_DAYS = 3660

ONE_DAY = timedelta(days=1)


def _validate_work_days(work_days_ahead: int | float) -> int:
    if isinstance(work_days_ahead, bool) or not isinstance(work_days_ahead, (int, float)):
        raise StageClockError(
            f"work_days_ahead must be a positive integer, got {work_days_ahead!r}"
        )
    if not math.isfinite(work_days_ahead) or work_days_ahead <= 0:
        raise StageClockError(
            f"work_days_ahead must be a positive integer, got {work_days_ahead!r}"
        )
    if work_days_ahead != int(work_days_ahead):
        raise StageClockError(
            f"work_days_ahead must be a whole number, got {work_days_ahead!r}"
        )
    return int(work_days_ahead)


def _ensure_aware(moment: datetime) -> datetime:
    if moment.tzinfo is None:
        return moment.replace(tzinfo=timezone.utc)
    return moment


def _at(day: date, target_time: time, calendar: WorkingDayCalendar) -> datetime:
    return datetime.combine(day, target_time, tzinfo=calendar.tz)


def next_working_day(day: date, calendar: WorkingDayCalendar) -> date:
    """Return the first working day strictly after `day`."""
    candidate = day
    for _ in range(MAX_SCAN_DAYS):
        candidate += ONE_DAY
        if calendar.is_working_day(candidate):
            return candidate
    raise StageClockError(f"no working day within {MAX_SCAN_DAYS} days of {day}")


def compute_stage_ends(
    now: datetime,
    work_days_ahead: int,
    target_time: time,
    calendar: WorkingDayCalendar,
) -> datetime:
    """Compute the stage deadline N working days ahead of now.

    Working days are counted inclusive of today, so `work_days_ahead=1`
    resolves to today when today is a working day. If the resulting slot
    is not strictly after `now`, the deadline rolls to the next working
    day at the same time of day.

    Args:
        now: Current instant.
        work_days_ahead: Positive number of working days.
        target_time: Local time of day the stage ends at.
        calendar: Working day calendar.

    Returns:
        The deadline as a UTC instant, always after `now`.

    Raises:
        StageClockError: If work_days_ahead is not a positive whole number.
    """
    remaining = _validate_work_days(work_days_ahead)
    now = _ensure_aware(now)
    day = now.astimezone(calendar.tz).date()

    for _ in range(MAX_SCAN_DAYS):
        if calendar.is_working_day(day):
            remaining -= 1
            if remaining == 0:
                ends = _at(day, target_time, calendar)
                if ends <= now:
                    ends = _at(next_working_day(day, calendar), target_time, calendar)
                return ends.astimezone(timezone.utc)
        day += ONE_DAY

    raise StageClockError(f"no working day found within {MAX_SCAN_DAYS} days")


def offset_by_working_days(
    moment: datetime,
    days: int,
    calendar: WorkingDayCalendar,
) -> datetime:
    """Move a timestamp a number of working days forward or backward.

    The local time of day is preserved. Zero leaves the timestamp unchanged.

    Args:
        moment: Starting instant.
        days: Working days to move; negative moves backward.
        calendar: Working day calendar.

    Returns:
        The shifted instant in UTC.
    """
    moment = _ensure_aware(moment)
    if days == 0:
        return moment.astimezone(timezone.utc)

    step = ONE_DAY if days > 0 else -ONE_DAY
    remaining = abs(days)
    local = moment.astimezone(calendar.tz)
    day = local.date()
    while remaining > 0:
        day += step
        if calendar.is_working_day(day):
            remaining -= 1
    shifted = _at(day, local.timetz().replace(tzinfo=None), calendar)
    return shifted.astimezone(timezone.utc)


def next_comment_publication_slot(
    now: datetime,
    calendar: WorkingDayCalendar,
    slots: Iterable[time],
    scan_days: int = 30,
    fallback_time: time = time(12, 0),
) -> datetime:
    """Find the next comment publication slot strictly after now.

    Scans forward day by day for a working day with a slot later than now.
    If none is found within `scan_days`, falls back to the next working day
    at `fallback_time`.

    Args:
        now: Current instant.
        calendar: Working day calendar.
        slots: Local publication times of day.
        scan_days: Days to scan before falling back.
        fallback_time: Time of day used by the fallback.

    Returns:
        The next slot as a UTC instant.
    """
    now = _ensure_aware(now)
    ordered = sorted(slots)
    day = now.astimezone(calendar.tz).date()
    for _ in range(scan_days):
        if calendar.is_working_day(day):
            for slot in ordered:
                candidate = _at(day, slot, calendar)
                if candidate > now:
                    return candidate.astimezone(timezone.utc)
        day += ONE_DAY

    today = now.astimezone(calendar.tz).date()
    fallback = _at(next_working_day(today, calendar), fallback_time, calendar)
    return fallback.astimezone(timezone.utc)
