"""Unit tests for the FakeTimeAuthority test helper."""

from datetime import datetime, timedelta, timezone

import pytest

from rulepost.application.ports.time_authority import TimeAuthorityProtocol
from tests.helpers.fake_time_authority import DEFAULT_TEST_TIME, FakeTimeAuthority


class TestFakeTimeAuthority:
    def test_implements_protocol(self) -> None:
        assert isinstance(FakeTimeAuthority(), TimeAuthorityProtocol)

    def test_defaults_to_monday_morning_in_rome(self) -> None:
        fake_time = FakeTimeAuthority()

        assert fake_time.now() == DEFAULT_TEST_TIME
        assert fake_time.now().weekday() == 0

    def test_naive_times_are_utc(self) -> None:
        fake_time = FakeTimeAuthority(frozen_at=datetime(2026, 3, 5, 19, 0))

        assert fake_time.now().tzinfo is timezone.utc

    def test_frozen_until_advanced(self) -> None:
        fake_time = FakeTimeAuthority()

        assert fake_time.now() == fake_time.now()

    def test_advance_moves_wall_and_monotonic_clocks(self) -> None:
        fake_time = FakeTimeAuthority(start_monotonic=10.0)

        fake_time.advance(seconds=30)
        fake_time.advance(delta=timedelta(minutes=1))

        assert fake_time.now() == DEFAULT_TEST_TIME + timedelta(seconds=90)
        assert fake_time.monotonic() == 100.0

    def test_delta_takes_precedence(self) -> None:
        fake_time = FakeTimeAuthority()

        fake_time.advance(seconds=5, delta=timedelta(hours=1))

        assert fake_time.now() == DEFAULT_TEST_TIME + timedelta(hours=1)

    def test_advance_rejects_backwards_or_empty(self) -> None:
        fake_time = FakeTimeAuthority()

        with pytest.raises(ValueError):
            fake_time.advance()
        with pytest.raises(ValueError):
            fake_time.advance(seconds=-1)

    def test_set_time_leaves_monotonic_clock(self) -> None:
        fake_time = FakeTimeAuthority()

        fake_time.set_time(datetime(2026, 3, 9, 23, 0))

        assert fake_time.now() == datetime(2026, 3, 9, 23, 0, tzinfo=timezone.utc)
        assert fake_time.monotonic() == 0.0
