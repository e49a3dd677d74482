"""FakeTimeAuthority - controllable time authority for deterministic tests.

Time-dependent tests use `FakeTimeAuthority` instead of the system clock:
the publishers, the stage clock call sites and the in-memory store's
server timestamps all read it.

Usage:
    >>> fake_time = FakeTimeAuthority(frozen_at=datetime(2026, 3, 2, 9, 0, tzinfo=timezone.utc))
    >>> fake_time.advance(seconds=3600)
    >>> assert fake_time.now().hour == 10

    >>> fake_time.advance(delta=timedelta(days=1))
    >>> fake_time.set_time(datetime(2026, 3, 5, 19, 0, tzinfo=timezone.utc))

The monotonic clock moves with advance() only, never with set_time().
"""

from __future__ import annotations

from datetime import datetime, timedelta, timezone

from rulepost.application.ports.time_authority import TimeAuthorityProtocol

# Monday 2 March 2026, 10:00 in Europe/Rome
DEFAULT_TEST_TIME = datetime(2026, 3, 2, 9, 0, 0, tzinfo=timezone.utc)


class FakeTimeAuthority(TimeAuthorityProtocol):
    """Controllable time authority for deterministic tests.

    Attributes:
        _current_time: The controlled current time.
        _monotonic_base: Starting value of the monotonic clock.
        _monotonic_advances: Accumulated advances for the monotonic clock.
    """

    def __init__(
        self,
        frozen_at: datetime | None = None,
        *,
        start_monotonic: float = 0.0,
    ) -> None:
        """Initialize the fake time authority.

        Args:
            frozen_at: Datetime to freeze time at. Defaults to
                DEFAULT_TEST_TIME. Naive values are taken as UTC.
            start_monotonic: Starting value for the monotonic clock.
        """
        if frozen_at is None:
            frozen_at = DEFAULT_TEST_TIME
        if frozen_at.tzinfo is None:
            frozen_at = frozen_at.replace(tzinfo=timezone.utc)

        self._current_time: datetime = frozen_at
        self._monotonic_base: float = start_monotonic
        self._monotonic_advances: float = 0.0

    # =========================================================================
    # TimeAuthorityProtocol Implementation
    # =========================================================================

    def now(self) -> datetime:
        return self._current_time

    def monotonic(self) -> float:
        return self._monotonic_base + self._monotonic_advances

    # =========================================================================
    # Test Control Methods
    # =========================================================================

    def advance(
        self,
        seconds: float | int | None = None,
        delta: timedelta | None = None,
    ) -> None:
        """Advance time by the specified amount.

        Args:
            seconds: Number of seconds to advance.
            delta: A timedelta to advance by. Takes precedence over seconds.

        Raises:
            ValueError: If neither argument is given, or the amount is negative.
        """
        if delta is not None:
            advance_seconds = delta.total_seconds()
        elif seconds is not None:
            advance_seconds = float(seconds)
        else:
            raise ValueError("Must provide either 'seconds' or 'delta' argument")

        if advance_seconds < 0:
            raise ValueError(
                f"Cannot advance time backwards. Got {advance_seconds} seconds. "
                "Use set_time() for explicit time changes."
            )

        self._current_time += timedelta(seconds=advance_seconds)
        self._monotonic_advances += advance_seconds

    def set_time(self, dt: datetime) -> None:
        """Jump to an explicit time without touching the monotonic clock."""
        if dt.tzinfo is None:
            dt = dt.replace(tzinfo=timezone.utc)
        self._current_time = dt

    @property
    def current_time(self) -> datetime:
        return self._current_time

    def __repr__(self) -> str:
        return (
            f"FakeTimeAuthority("
            f"current_time={self._current_time.isoformat()}, "
            f"monotonic={self.monotonic():.3f})"
        )
