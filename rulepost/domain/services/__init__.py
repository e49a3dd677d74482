"""Domain services for Rule Post.

Pure calendar and deadline arithmetic. No I/O, no clock reads.

Available services:
- WorkingDayCalendar: Decides whether a day is a working day
- compute_stage_ends: Stage deadline N working days ahead
- offset_by_working_days: Shift a deadline by working days
- next_comment_publication_slot: Next working-day comment publish slot
"""

from rulepost.domain.services.stage_clock import (
    compute_stage_ends,
    next_comment_publication_slot,
    next_working_day,
    offset_by_working_days,
)
from rulepost.domain.services.working_day_calendar import (
    HolidayRange,
    WorkingDayCalendar,
)

__all__: list[str] = [
    "HolidayRange",
    "WorkingDayCalendar",
    "compute_stage_ends",
    "next_comment_publication_slot",
    "next_working_day",
    "offset_by_working_days",
]
