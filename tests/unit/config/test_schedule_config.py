"""Unit tests for ScheduleConfig.

Tests for schedule configuration including:
- Default values and stage deadlines
- Environment variable loading
- Input validation
"""

from __future__ import annotations

import os
from datetime import date, time
from unittest.mock import patch
from zoneinfo import ZoneInfo

import pytest

from rulepost.config.schedule_config import (
    COMMENT_PUBLICATION_SLOTS,
    COMMENT_WINDOW_CLOSES,
    COMMITTEE_WINDOW_CLOSES,
    DEFAULT_HOLIDAYS,
    RESPOND_WINDOW_CLOSES,
    ScheduleConfig,
)
from rulepost.domain.services.working_day_calendar import HolidayRange


class TestDefaults:
    """Tests for default configuration values."""

    def test_defaults(self) -> None:
        config = ScheduleConfig()

        assert config.timezone_name == "Europe/Rome"
        assert config.race_date == date(2027, 7, 1)
        assert config.saturday_cutoff_months == 3
        assert config.holidays == DEFAULT_HOLIDAYS
        assert config.default_stage_length == 4
        assert config.orchestrator_timeout_seconds == 300
        assert config.digest_batch_limit == 500

    def test_deadlines_close_a_minute_before_their_trigger(self) -> None:
        assert RESPOND_WINDOW_CLOSES == time(19, 59)
        assert COMMENT_WINDOW_CLOSES == time(11, 59)
        assert COMMITTEE_WINDOW_CLOSES == time(23, 59)
        assert COMMENT_PUBLICATION_SLOTS == (time(0, 0), time(12, 0))

    def test_build_calendar(self) -> None:
        calendar = ScheduleConfig(holidays=()).build_calendar()

        assert calendar.tz == ZoneInfo("Europe/Rome")
        assert calendar.saturday_cutoff == date(2027, 4, 1)


class TestFromEnvironment:
    """Tests for loading from environment variables."""

    def test_reads_overrides(self) -> None:
        env = {
            "RULEPOST_TIMEZONE": "Europe/London",
            "RULEPOST_RACE_DATE": "2027-08-15",
            "RULEPOST_SATURDAY_CUTOFF_MONTHS": "2",
            "RULEPOST_HOLIDAYS": "2026-04-03:2026-04-07, 2026-08-10:2026-08-14",
            "RULEPOST_DEFAULT_STAGE_LENGTH": "5",
            "RULEPOST_ORCHESTRATOR_TIMEOUT_SECONDS": "120",
            "RULEPOST_DIGEST_BATCH_LIMIT": "50",
        }
        with patch.dict(os.environ, env):
            config = ScheduleConfig.from_environment()

        assert config.timezone_name == "Europe/London"
        assert config.race_date == date(2027, 8, 15)
        assert config.saturday_cutoff_months == 2
        assert config.holidays == (
            HolidayRange(date(2026, 4, 3), date(2026, 4, 7)),
            HolidayRange(date(2026, 8, 10), date(2026, 8, 14)),
        )
        assert config.default_stage_length == 5
        assert config.orchestrator_timeout_seconds == 120
        assert config.digest_batch_limit == 50

    def test_invalid_numbers_fall_back_to_defaults(self) -> None:
        env = {
            "RULEPOST_RACE_DATE": "next summer",
            "RULEPOST_DEFAULT_STAGE_LENGTH": "four",
        }
        with patch.dict(os.environ, env):
            config = ScheduleConfig.from_environment()

        assert config.race_date == date(2027, 7, 1)
        assert config.default_stage_length == 4

    def test_empty_holidays_disable_defaults(self) -> None:
        with patch.dict(os.environ, {"RULEPOST_HOLIDAYS": ""}):
            config = ScheduleConfig.from_environment()

        assert config.holidays == ()

    def test_malformed_holiday_range_raises(self) -> None:
        with patch.dict(os.environ, {"RULEPOST_HOLIDAYS": "2026-04-03"}):
            with pytest.raises(ValueError, match="START:END"):
                ScheduleConfig.from_environment()


class TestValidation:
    """Tests for configuration validation."""

    def test_unknown_timezone(self) -> None:
        with pytest.raises(ValueError, match="unknown timezone"):
            ScheduleConfig(timezone_name="Mars/Olympus")

    @pytest.mark.parametrize(
        "overrides",
        [
            {"saturday_cutoff_months": -1},
            {"default_stage_length": 0},
            {"orchestrator_timeout_seconds": 0},
            {"digest_batch_limit": 0},
        ],
    )
    def test_rejects_out_of_range_values(self, overrides: dict) -> None:
        with pytest.raises(ValueError):
            ScheduleConfig(**overrides)
