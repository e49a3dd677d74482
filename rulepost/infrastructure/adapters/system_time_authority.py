"""Wall-clock time authority used in production."""

from __future__ import annotations

import time
from datetime import datetime, timezone

from rulepost.application.ports.time_authority import TimeAuthorityProtocol


class SystemTimeAuthority(TimeAuthorityProtocol):
    """TimeAuthorityProtocol backed by the system clock (always UTC)."""

    def now(self) -> datetime:
        return datetime.now(timezone.utc)

    def monotonic(self) -> float:
        return time.monotonic()
