"""
Pytest configuration and shared fixtures for Rule Post tests.

Testing Standards:
- Async tests run under pytest-asyncio (auto mode enabled in pyproject.toml)
- Time-dependent tests use FakeTimeAuthority, never the system clock
- Unit tests go in tests/unit/
- Integration tests go in tests/integration/

Default test clock: Monday 2 March 2026, 10:00 Europe/Rome. The default
calendar has no holidays and Saturdays are off until 1 April 2027.
"""

from __future__ import annotations

from collections.abc import Iterator
from datetime import date
from zoneinfo import ZoneInfo

import pytest

from rulepost.application.services.attachment_publication_service import (
    AttachmentPublicationService,
)
from rulepost.application.services.publish_follow_up_service import (
    PublishFollowUpService,
)
from rulepost.application.services.response_publisher_service import (
    ResponsePublisherService,
)
from rulepost.application.services.unread_fanout_service import UnreadFanoutService
from rulepost.bootstrap.publication import reset_publication_dependencies
from rulepost.domain.services.working_day_calendar import WorkingDayCalendar
from rulepost.infrastructure.stubs.attachment_store_stub import AttachmentStoreStub
from rulepost.infrastructure.stubs.digest_sender_stub import DigestSenderStub
from rulepost.infrastructure.stubs.in_memory_document_store import InMemoryDocumentStore
from tests.helpers import FakeTimeAuthority

ROME = ZoneInfo("Europe/Rome")


@pytest.fixture
def fake_time() -> FakeTimeAuthority:
    return FakeTimeAuthority()


@pytest.fixture
def calendar() -> WorkingDayCalendar:
    return WorkingDayCalendar(tz=ROME, race_date=date(2027, 7, 1))


@pytest.fixture
def store(fake_time: FakeTimeAuthority) -> InMemoryDocumentStore:
    return InMemoryDocumentStore(fake_time)


@pytest.fixture
def attachment_store() -> AttachmentStoreStub:
    return AttachmentStoreStub()


@pytest.fixture
def digest_sender() -> DigestSenderStub:
    return DigestSenderStub()


@pytest.fixture
def attachments(attachment_store: AttachmentStoreStub) -> AttachmentPublicationService:
    return AttachmentPublicationService(attachment_store)


@pytest.fixture
def unread(store: InMemoryDocumentStore) -> UnreadFanoutService:
    return UnreadFanoutService(store)


@pytest.fixture
def follow_up(
    store: InMemoryDocumentStore,
    attachments: AttachmentPublicationService,
    unread: UnreadFanoutService,
    fake_time: FakeTimeAuthority,
) -> PublishFollowUpService:
    return PublishFollowUpService(store, attachments, unread, fake_time)


@pytest.fixture
def response_publisher(
    store: InMemoryDocumentStore,
    calendar: WorkingDayCalendar,
    fake_time: FakeTimeAuthority,
    follow_up: PublishFollowUpService,
) -> ResponsePublisherService:
    # Identity shuffle keeps numbering predictable; shuffling is tested separately
    return ResponsePublisherService(
        store, calendar, fake_time, follow_up, shuffle=lambda items: None
    )


@pytest.fixture(autouse=True)
def _reset_bootstrap() -> Iterator[None]:
    """Drop cached bootstrap singletons between tests."""
    reset_publication_dependencies()
    yield
    reset_publication_dependencies()
