"""Publication schedule configuration.

This module defines the calendar and stage settings shared by the working
day calendar, the stage clock, the publishers and the orchestrator, with
environment variable overrides for production tuning.

Stage deadline policy:
    Every window closes one minute before the trigger that consumes it.
    - Respond window closes 19:59, consumed by the 20:00 team-response publish
    - Comment window closes 11:59, consumed by the 12:00 comment publish
    - Committee window closes 23:59, consumed by the 00:00 committee publish

Environment Variables:
- RULEPOST_TIMEZONE: IANA timezone for all calendar maths (default: Europe/Rome)
- RULEPOST_RACE_DATE: Race date, ISO format (default: 2027-07-01)
- RULEPOST_SATURDAY_CUTOFF_MONTHS: Months before race when Saturdays start
  counting as working days (default: 3)
- RULEPOST_HOLIDAYS: Comma separated `YYYY-MM-DD:YYYY-MM-DD` ranges
- RULEPOST_DEFAULT_STAGE_LENGTH: Working days per stage (default: 4)
- RULEPOST_ORCHESTRATOR_TIMEOUT_SECONDS: Wall-clock budget per slot (default: 300)
- RULEPOST_DIGEST_BATCH_LIMIT: Publish events folded into one digest (default: 500)
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from datetime import date, time
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from rulepost.domain.services.working_day_calendar import HolidayRange, WorkingDayCalendar

# Stage deadlines, passed explicitly at every stage clock call site
RESPOND_WINDOW_CLOSES = time(19, 59)
COMMENT_WINDOW_CLOSES = time(11, 59)
COMMITTEE_WINDOW_CLOSES = time(23, 59)

# Orchestrator trigger times (wall clock, configured timezone)
MIDNIGHT_TRIGGER = time(0, 0)
NOON_TRIGGER = time(12, 0)
EVENING_TRIGGER = time(20, 0)

# Comment publication slots used by the next-slot precompute
COMMENT_PUBLICATION_SLOTS: tuple[time, ...] = (MIDNIGHT_TRIGGER, NOON_TRIGGER)

# Attachment limits
ALLOWED_ATTACHMENT_TYPES: frozenset[str] = frozenset(
    {
        "application/pdf",
        "application/vnd.openxmlformats-officedocument.wordprocessingml.document",
        "application/msword",
    }
)
MAX_BYTES_PER_FILE = 25 * 1024 * 1024
MAX_TOTAL_BYTES = 100 * 1024 * 1024


# Fixed holiday ranges defined in the Class Rule
DEFAULT_HOLIDAYS: tuple[HolidayRange, ...] = (
    HolidayRange(date(2025, 12, 25), date(2026, 1, 3)),
    HolidayRange(date(2026, 4, 3), date(2026, 4, 7)),
    HolidayRange(date(2026, 12, 25), date(2027, 1, 3)),
    HolidayRange(date(2027, 3, 26), date(2027, 3, 30)),
)


def _get_int_env(key: str, default: int) -> int:
    """Get integer environment variable with default.

    Args:
        key: Environment variable name.
        default: Default value if not set or invalid.

    Returns:
        Parsed integer value or default.
    """
    value = os.environ.get(key)
    if value is None:
        return default
    try:
        return int(value)
    except ValueError:
        return default


def _get_date_env(key: str, default: date) -> date:
    value = os.environ.get(key)
    if value is None:
        return default
    try:
        return date.fromisoformat(value.strip())
    except ValueError:
        return default


def _get_holidays_env(key: str, default: tuple[HolidayRange, ...]) -> tuple[HolidayRange, ...]:
    value = os.environ.get(key)
    if value is None:
        return default
    if not value.strip():
        return ()
    return tuple(HolidayRange.parse(part) for part in value.split(",") if part.strip())


@dataclass(frozen=True)
class ScheduleConfig:
    """Calendar and stage configuration.

    All values can be overridden via environment variables for production tuning.

    Attributes:
        timezone_name: IANA timezone all calendar-day comparisons use.
        race_date: Race date; Saturdays become working days from
                   `saturday_cutoff_months` months before it.
        saturday_cutoff_months: Months subtracted from race_date for the cutoff.
        holidays: Inclusive holiday ranges.
        default_stage_length: Working days per stage for new enquiries.
        orchestrator_timeout_seconds: Wall-clock budget for one orchestrated slot.
        digest_batch_limit: Maximum publish events folded into one digest.
    """

    timezone_name: str = "Europe/Rome"
    race_date: date = date(2027, 7, 1)
    saturday_cutoff_months: int = 3
    holidays: tuple[HolidayRange, ...] = field(default=DEFAULT_HOLIDAYS)
    default_stage_length: int = 4
    orchestrator_timeout_seconds: int = 300
    digest_batch_limit: int = 500

    def __post_init__(self) -> None:
        """Validate configuration values."""
        try:
            ZoneInfo(self.timezone_name)
        except (ZoneInfoNotFoundError, ValueError) as exc:
            raise ValueError(f"unknown timezone {self.timezone_name!r}") from exc
        if self.saturday_cutoff_months < 0:
            raise ValueError(
                "saturday_cutoff_months must be non-negative, "
                f"got {self.saturday_cutoff_months}"
            )
        if self.default_stage_length < 1:
            raise ValueError(
                f"default_stage_length must be positive, got {self.default_stage_length}"
            )
        if self.orchestrator_timeout_seconds < 1:
            raise ValueError(
                "orchestrator_timeout_seconds must be positive, "
                f"got {self.orchestrator_timeout_seconds}"
            )
        if self.digest_batch_limit < 1:
            raise ValueError(
                f"digest_batch_limit must be positive, got {self.digest_batch_limit}"
            )

    @property
    def tz(self) -> ZoneInfo:
        """The configured timezone."""
        return ZoneInfo(self.timezone_name)

    def build_calendar(self) -> WorkingDayCalendar:
        """Build the working day calendar for this configuration."""
        return WorkingDayCalendar(
            tz=self.tz,
            race_date=self.race_date,
            saturday_cutoff_months=self.saturday_cutoff_months,
            holidays=self.holidays,
        )

    @classmethod
    def from_environment(cls) -> ScheduleConfig:
        """Create config from environment variables with defaults.

        Returns:
            ScheduleConfig with values from environment or defaults.
        """
        return cls(
            timezone_name=os.environ.get("RULEPOST_TIMEZONE", "Europe/Rome"),
            race_date=_get_date_env("RULEPOST_RACE_DATE", date(2027, 7, 1)),
            saturday_cutoff_months=_get_int_env("RULEPOST_SATURDAY_CUTOFF_MONTHS", 3),
            holidays=_get_holidays_env("RULEPOST_HOLIDAYS", DEFAULT_HOLIDAYS),
            default_stage_length=_get_int_env("RULEPOST_DEFAULT_STAGE_LENGTH", 4),
            orchestrator_timeout_seconds=_get_int_env(
                "RULEPOST_ORCHESTRATOR_TIMEOUT_SECONDS", 300
            ),
            digest_batch_limit=_get_int_env("RULEPOST_DIGEST_BATCH_LIMIT", 500),
        )


# Default production config
DEFAULT_SCHEDULE_CONFIG = ScheduleConfig()
