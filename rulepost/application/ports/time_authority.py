"""Time Authority Protocol - interface for consistent timestamp provisioning.

All services that need "now" inject a TimeAuthorityProtocol implementation
instead of calling datetime.now() directly. The publishers, the stage clock
call sites and the in-memory document store's server timestamps all read
the same authority, which lets tests freeze and advance time.
"""

from abc import ABC, abstractmethod
from datetime import datetime


class TimeAuthorityProtocol(ABC):
    """Abstract interface for time authority.

    Example usage:
        class MyService:
            def __init__(self, time_authority: TimeAuthorityProtocol) -> None:
                self._time = time_authority

            def process(self) -> None:
                now = self._time.now()  # NOT datetime.now()

    For production:
        Use SystemTimeAuthority from rulepost/infrastructure/adapters/

    For testing:
        Use FakeTimeAuthority from tests/helpers/fake_time_authority.py
    """

    @abstractmethod
    def now(self) -> datetime:
        """Return current time with timezone awareness (UTC)."""
        ...

    @abstractmethod
    def monotonic(self) -> float:
        """Return monotonic clock value for measuring elapsed time.

        Returns:
            Monotonically increasing float value (in seconds).

        Note:
            Use this for measuring elapsed time, not for timestamps.
        """
        ...
