"""Unit tests for the stage clock."""

from __future__ import annotations

from datetime import date, datetime, time, timezone
from zoneinfo import ZoneInfo

import pytest

from rulepost.domain.errors import StageClockError
from rulepost.domain.services.stage_clock import (
    compute_stage_ends,
    next_comment_publication_slot,
    next_working_day,
    offset_by_working_days,
)
from rulepost.domain.services.working_day_calendar import HolidayRange, WorkingDayCalendar

ROME = ZoneInfo("Europe/Rome")
RESPOND = time(19, 59)
COMMENT = time(11, 59)
SLOTS = (time(0, 0), time(12, 0))


def utc(*args: int) -> datetime:
    return datetime(*args, tzinfo=timezone.utc)


class TestComputeStageEnds:
    def test_counts_today_as_first_working_day(self, calendar: WorkingDayCalendar) -> None:
        # Monday 10:00 Rome, four working days -> Thursday 19:59 Rome
        ends = compute_stage_ends(utc(2026, 3, 2, 9, 0), 4, RESPOND, calendar)
        assert ends == utc(2026, 3, 5, 18, 59)

    def test_one_day_ends_today_when_slot_is_ahead(self, calendar: WorkingDayCalendar) -> None:
        ends = compute_stage_ends(utc(2026, 3, 2, 9, 0), 1, RESPOND, calendar)
        assert ends == utc(2026, 3, 2, 18, 59)

    def test_rolls_to_next_working_day_when_slot_has_passed(
        self, calendar: WorkingDayCalendar
    ) -> None:
        # 20:30 Rome on Monday, the 19:59 slot is gone
        ends = compute_stage_ends(utc(2026, 3, 2, 19, 30), 1, RESPOND, calendar)
        assert ends == utc(2026, 3, 3, 18, 59)

    def test_slot_equal_to_now_rolls(self, calendar: WorkingDayCalendar) -> None:
        ends = compute_stage_ends(utc(2026, 3, 2, 18, 59), 1, RESPOND, calendar)
        assert ends == utc(2026, 3, 3, 18, 59)

    def test_weekend_start_counts_from_monday(self, calendar: WorkingDayCalendar) -> None:
        ends = compute_stage_ends(utc(2026, 3, 7, 10, 0), 1, COMMENT, calendar)
        assert ends == utc(2026, 3, 9, 10, 59)

    def test_skips_weekend(self, calendar: WorkingDayCalendar) -> None:
        # Thursday, Friday, Monday
        ends = compute_stage_ends(utc(2026, 3, 5, 9, 0), 3, RESPOND, calendar)
        assert ends == utc(2026, 3, 9, 18, 59)

    def test_skips_holidays(self) -> None:
        cal = WorkingDayCalendar(
            tz=ROME,
            race_date=date(2027, 7, 1),
            holidays=(HolidayRange(date(2026, 3, 3), date(2026, 3, 4)),),
        )
        ends = compute_stage_ends(utc(2026, 3, 2, 9, 0), 2, RESPOND, cal)
        assert ends == utc(2026, 3, 5, 18, 59)

    def test_local_time_survives_daylight_saving_change(
        self, calendar: WorkingDayCalendar
    ) -> None:
        # Clocks go forward on Sunday 29 March 2026
        ends = compute_stage_ends(utc(2026, 3, 27, 9, 0), 2, RESPOND, calendar)
        assert ends == utc(2026, 3, 30, 17, 59)
        assert ends.astimezone(ROME).time() == RESPOND

    def test_returns_utc(self, calendar: WorkingDayCalendar) -> None:
        now = datetime(2026, 3, 2, 10, 0, tzinfo=ROME)
        ends = compute_stage_ends(now, 2, RESPOND, calendar)
        assert ends.tzinfo == timezone.utc
        assert ends > now

    def test_whole_float_is_accepted(self, calendar: WorkingDayCalendar) -> None:
        ends = compute_stage_ends(utc(2026, 3, 2, 9, 0), 2.0, RESPOND, calendar)
        assert ends == utc(2026, 3, 3, 18, 59)

    @pytest.mark.parametrize("bad", [0, -1, 1.5, True, float("nan"), float("inf"), "2"])
    def test_rejects_non_positive_or_fractional_days(
        self, calendar: WorkingDayCalendar, bad: object
    ) -> None:
        with pytest.raises(StageClockError):
            compute_stage_ends(utc(2026, 3, 2, 9, 0), bad, RESPOND, calendar)  # type: ignore[arg-type]


class TestOffsetByWorkingDays:
    def test_forward_skips_weekend(self, calendar: WorkingDayCalendar) -> None:
        moved = offset_by_working_days(utc(2026, 3, 5, 18, 59), 2, calendar)
        assert moved == utc(2026, 3, 9, 18, 59)

    def test_backward(self, calendar: WorkingDayCalendar) -> None:
        moved = offset_by_working_days(utc(2026, 3, 5, 18, 59), -2, calendar)
        assert moved == utc(2026, 3, 3, 18, 59)

    def test_zero_is_identity(self, calendar: WorkingDayCalendar) -> None:
        moment = utc(2026, 3, 5, 18, 59)
        assert offset_by_working_days(moment, 0, calendar) == moment


def test_next_working_day_skips_weekend(calendar: WorkingDayCalendar) -> None:
    assert next_working_day(date(2026, 3, 6), calendar) == date(2026, 3, 9)


class TestNextCommentPublicationSlot:
    def test_noon_later_today(self, calendar: WorkingDayCalendar) -> None:
        slot = next_comment_publication_slot(utc(2026, 3, 2, 9, 0), calendar, SLOTS)
        assert slot == utc(2026, 3, 2, 11, 0)

    def test_next_midnight(self, calendar: WorkingDayCalendar) -> None:
        slot = next_comment_publication_slot(utc(2026, 3, 2, 12, 0), calendar, SLOTS)
        assert slot == utc(2026, 3, 2, 23, 0)

    def test_slot_at_now_is_not_next(self, calendar: WorkingDayCalendar) -> None:
        slot = next_comment_publication_slot(utc(2026, 3, 2, 11, 0), calendar, SLOTS)
        assert slot == utc(2026, 3, 2, 23, 0)

    def test_skips_weekend(self, calendar: WorkingDayCalendar) -> None:
        # Friday afternoon -> Monday 00:00 Rome
        slot = next_comment_publication_slot(utc(2026, 3, 6, 12, 0), calendar, SLOTS)
        assert slot == utc(2026, 3, 8, 23, 0)

    def test_falls_back_after_scan_window(self) -> None:
        cal = WorkingDayCalendar(
            tz=ROME,
            race_date=date(2027, 7, 1),
            holidays=(HolidayRange(date(2026, 3, 2), date(2026, 4, 10)),),
        )
        slot = next_comment_publication_slot(utc(2026, 3, 2, 9, 0), cal, SLOTS)
        # Monday 13 April, 12:00 Rome summer time
        assert slot == utc(2026, 4, 13, 10, 0)
