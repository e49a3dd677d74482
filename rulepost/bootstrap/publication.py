"""Bootstrap wiring for publication dependencies.

Every getter lazily builds one shared instance. Infrastructure defaults
to the in-memory stubs; production wiring replaces them with the
`set_*` functions before the app or worker starts.
"""

from __future__ import annotations

from collections.abc import Callable
from typing import Any

from structlog import get_logger

from rulepost.application.ports.attachment_store import AttachmentStoreProtocol
from rulepost.application.ports.digest_sender import DigestSenderProtocol
from rulepost.application.ports.document_store import DocumentStoreProtocol
from rulepost.application.ports.time_authority import TimeAuthorityProtocol
from rulepost.application.services.attachment_publication_service import (
    AttachmentPublicationService,
)
from rulepost.application.services.comment_publisher_service import (
    CommentPublisherService,
)
from rulepost.application.services.comment_schedule_service import (
    CommentScheduleService,
)
from rulepost.application.services.committee_response_publisher_service import (
    CommitteeResponsePublisherService,
)
from rulepost.application.services.draft_lookup_service import DraftLookupService
from rulepost.application.services.enquiry_lifecycle_service import (
    EnquiryLifecycleService,
)
from rulepost.application.services.enquiry_publisher_service import (
    EnquiryPublisherService,
)
from rulepost.application.services.post_deletion_service import PostDeletionService
from rulepost.application.services.post_submission_service import (
    PostSubmissionService,
)
from rulepost.application.services.publication_orchestrator_service import (
    PublicationOrchestratorService,
)
from rulepost.application.services.publish_digest_service import PublishDigestService
from rulepost.application.services.publish_follow_up_service import (
    PublishFollowUpService,
)
from rulepost.application.services.response_publisher_service import (
    ResponsePublisherService,
)
from rulepost.application.services.team_response_publisher_service import (
    TeamResponsePublisherService,
)
from rulepost.application.services.unread_fanout_service import UnreadFanoutService
from rulepost.config.schedule_config import ScheduleConfig
from rulepost.domain.services.working_day_calendar import WorkingDayCalendar
from rulepost.infrastructure.adapters.system_time_authority import SystemTimeAuthority
from rulepost.infrastructure.stubs.attachment_store_stub import AttachmentStoreStub
from rulepost.infrastructure.stubs.digest_sender_stub import DigestSenderStub
from rulepost.infrastructure.stubs.in_memory_document_store import InMemoryDocumentStore

logger = get_logger()

_schedule_config: ScheduleConfig | None = None
_time_authority: TimeAuthorityProtocol | None = None
_document_store: DocumentStoreProtocol | None = None
_attachment_store: AttachmentStoreProtocol | None = None
_digest_sender: DigestSenderProtocol | None = None
_services: dict[str, Any] = {}


def get_schedule_config() -> ScheduleConfig:
    """Get schedule configuration, read from the environment once."""
    global _schedule_config
    if _schedule_config is None:
        _schedule_config = ScheduleConfig.from_environment()
        logger.info(
            "schedule_config_loaded",
            timezone=_schedule_config.timezone_name,
            race_date=_schedule_config.race_date.isoformat(),
            holidays=len(_schedule_config.holidays),
        )
    return _schedule_config


def get_calendar() -> WorkingDayCalendar:
    return get_schedule_config().build_calendar()


def get_time_authority() -> TimeAuthorityProtocol:
    global _time_authority
    if _time_authority is None:
        _time_authority = SystemTimeAuthority()
    return _time_authority


def get_document_store() -> DocumentStoreProtocol:
    """Get the document store.

    Falls back to the in-memory store when no production store was set.
    """
    global _document_store
    if _document_store is None:
        logger.warning("document_store_in_memory", reason="no production store configured")
        _document_store = InMemoryDocumentStore(get_time_authority())
    return _document_store


def get_attachment_store() -> AttachmentStoreProtocol:
    global _attachment_store
    if _attachment_store is None:
        _attachment_store = AttachmentStoreStub()
    return _attachment_store


def get_digest_sender() -> DigestSenderProtocol:
    global _digest_sender
    if _digest_sender is None:
        _digest_sender = DigestSenderStub()
    return _digest_sender


def set_schedule_config(config: ScheduleConfig) -> None:
    global _schedule_config
    _schedule_config = config
    _services.clear()


def set_time_authority(time_authority: TimeAuthorityProtocol) -> None:
    global _time_authority
    _time_authority = time_authority
    _services.clear()


def set_document_store(store: DocumentStoreProtocol) -> None:
    """Set the document store (for production use or tests)."""
    global _document_store
    _document_store = store
    _services.clear()


def set_attachment_store(store: AttachmentStoreProtocol) -> None:
    global _attachment_store
    _attachment_store = store
    _services.clear()


def set_digest_sender(sender: DigestSenderProtocol) -> None:
    global _digest_sender
    _digest_sender = sender
    _services.clear()


def reset_publication_dependencies() -> None:
    """Drop every cached instance (for tests)."""
    global _schedule_config, _time_authority, _document_store
    global _attachment_store, _digest_sender
    _schedule_config = None
    _time_authority = None
    _document_store = None
    _attachment_store = None
    _digest_sender = None
    _services.clear()


def _cached(name: str, factory: Callable[[], Any]) -> Any:
    if name not in _services:
        _services[name] = factory()
    return _services[name]


def get_attachment_publication_service() -> AttachmentPublicationService:
    return _cached(
        "attachments", lambda: AttachmentPublicationService(get_attachment_store())
    )


def get_unread_fanout_service() -> UnreadFanoutService:
    return _cached("unread", lambda: UnreadFanoutService(get_document_store()))


def get_publish_follow_up_service() -> PublishFollowUpService:
    return _cached(
        "follow_up",
        lambda: PublishFollowUpService(
            get_document_store(),
            get_attachment_publication_service(),
            get_unread_fanout_service(),
            get_time_authority(),
        ),
    )


def get_response_publisher_service() -> ResponsePublisherService:
    return _cached(
        "response_publisher",
        lambda: ResponsePublisherService(
            get_document_store(),
            get_calendar(),
            get_time_authority(),
            get_publish_follow_up_service(),
        ),
    )


def get_comment_publisher_service() -> CommentPublisherService:
    return _cached(
        "comment_publisher",
        lambda: CommentPublisherService(
            get_document_store(),
            get_calendar(),
            get_time_authority(),
            get_publish_follow_up_service(),
        ),
    )


def get_enquiry_publisher_service() -> EnquiryPublisherService:
    return _cached(
        "enquiry_publisher",
        lambda: EnquiryPublisherService(
            get_document_store(),
            get_calendar(),
            get_time_authority(),
            get_publish_follow_up_service(),
        ),
    )


def get_enquiry_lifecycle_service() -> EnquiryLifecycleService:
    return _cached(
        "lifecycle",
        lambda: EnquiryLifecycleService(
            get_document_store(),
            get_calendar(),
            get_time_authority(),
            get_response_publisher_service(),
        ),
    )


def get_team_response_publisher_service() -> TeamResponsePublisherService:
    return _cached(
        "team_publisher",
        lambda: TeamResponsePublisherService(
            get_document_store(),
            get_time_authority(),
            get_response_publisher_service(),
            get_enquiry_lifecycle_service(),
        ),
    )


def get_committee_response_publisher_service() -> CommitteeResponsePublisherService:
    return _cached(
        "committee_publisher",
        lambda: CommitteeResponsePublisherService(
            get_document_store(),
            get_calendar(),
            get_time_authority(),
            get_response_publisher_service(),
        ),
    )


def get_comment_schedule_service() -> CommentScheduleService:
    return _cached(
        "comment_schedule",
        lambda: CommentScheduleService(
            get_document_store(), get_calendar(), get_time_authority()
        ),
    )


def get_publish_digest_service() -> PublishDigestService:
    return _cached(
        "digest",
        lambda: PublishDigestService(
            get_document_store(),
            get_digest_sender(),
            get_time_authority(),
            batch_limit=get_schedule_config().digest_batch_limit,
        ),
    )


def get_publication_orchestrator_service() -> PublicationOrchestratorService:
    return _cached(
        "orchestrator",
        lambda: PublicationOrchestratorService(
            enquiry_publisher=get_enquiry_publisher_service(),
            comment_publisher=get_comment_publisher_service(),
            committee_publisher=get_committee_response_publisher_service(),
            team_publisher=get_team_response_publisher_service(),
            comment_schedule=get_comment_schedule_service(),
            digest=get_publish_digest_service(),
            time_authority=get_time_authority(),
            timeout_seconds=get_schedule_config().orchestrator_timeout_seconds,
        ),
    )


def get_post_submission_service() -> PostSubmissionService:
    return _cached(
        "submission",
        lambda: PostSubmissionService(
            get_document_store(),
            get_attachment_publication_service(),
            default_stage_length=get_schedule_config().default_stage_length,
        ),
    )


def get_post_deletion_service() -> PostDeletionService:
    return _cached(
        "deletion",
        lambda: PostDeletionService(
            get_document_store(),
            get_attachment_publication_service(),
            get_unread_fanout_service(),
        ),
    )


def get_draft_lookup_service() -> DraftLookupService:
    return _cached("drafts", lambda: DraftLookupService(get_document_store()))
