"""Configuration for Rule Post."""

from rulepost.config.schedule_config import (
    COMMENT_PUBLICATION_SLOTS,
    COMMENT_WINDOW_CLOSES,
    COMMITTEE_WINDOW_CLOSES,
    DEFAULT_SCHEDULE_CONFIG,
    RESPOND_WINDOW_CLOSES,
    HolidayRange,
    ScheduleConfig,
)

__all__: list[str] = [
    "COMMENT_PUBLICATION_SLOTS",
    "COMMENT_WINDOW_CLOSES",
    "COMMITTEE_WINDOW_CLOSES",
    "DEFAULT_SCHEDULE_CONFIG",
    "HolidayRange",
    "RESPOND_WINDOW_CLOSES",
    "ScheduleConfig",
]
