"""Test helpers for Rule Post tests.

Helpers:
    FakeTimeAuthority: Controllable time authority for deterministic tests
    seed_*: Builders writing enquiry tree documents into the in-memory store

Usage:
    from tests.helpers import FakeTimeAuthority, seed_enquiry
"""

from tests.helpers.documents import (
    SEEDED_AT,
    seed_comment,
    seed_enquiry,
    seed_response,
    seed_user,
)
from tests.helpers.fake_time_authority import DEFAULT_TEST_TIME, FakeTimeAuthority

__all__ = [
    "DEFAULT_TEST_TIME",
    "SEEDED_AT",
    "FakeTimeAuthority",
    "seed_comment",
    "seed_enquiry",
    "seed_response",
    "seed_user",
]
