"""Team response batch phase (20:00).

For every enquiry whose respond window has elapsed, publishes the round's
team responses and opens the comment window. A round that drew no team
responses goes straight to AwaitingCommittee.
"""

from __future__ import annotations

from structlog import get_logger

from rulepost.application.ports.document_store import DocumentStoreProtocol, Query
from rulepost.application.ports.time_authority import TimeAuthorityProtocol
from rulepost.application.services.enquiry_lifecycle_service import (
    EnquiryLifecycleService,
)
from rulepost.application.services.response_publisher_service import (
    ResponsePublisherService,
)
from rulepost.domain.models import document_paths
from rulepost.domain.models.publish_result import BatchPublishSummary, PublishFailReason

logger = get_logger(__name__)

PHASE = "team_response_publish"


class TeamResponsePublisherService:
    """Publishes team responses for every elapsed respond window."""

    def __init__(
        self,
        store: DocumentStoreProtocol,
        time_authority: TimeAuthorityProtocol,
        response_publisher: ResponsePublisherService,
        lifecycle: EnquiryLifecycleService,
    ) -> None:
        self._store = store
        self._time = time_authority
        self._publisher = response_publisher
        self._lifecycle = lifecycle

    async def publish_due_team_responses(self) -> BatchPublishSummary:
        now = self._time.now()
        due = await self._store.query(
            Query(document_paths.ENQUIRIES)
            .where("isOpen", "==", True)
            .where("isPublished", "==", True)
            .where("teamsCanRespond", "==", True)
            .where("stageEnds", "<=", now)
        )
        if not due:
            logger.info("team_response_publish_no_enquiries")
            return BatchPublishSummary(phase=PHASE)

        published = 0
        failed = 0
        for snapshot in due:
            try:
                result = await self._publisher.publish_responses(
                    snapshot.id, from_rc=False, enforce_deadline=True
                )
                if result.fail_reason is PublishFailReason.NO_RESPONSE:
                    await self._lifecycle.advance_to_committee(snapshot.id)
            except Exception:
                failed += 1
                logger.exception("team_response_publish_failed", enquiry_id=snapshot.id)
                continue
            published += result.published_count

        logger.info(
            "team_response_publish_completed",
            processed=len(due),
            published=published,
            failed=failed,
        )
        return BatchPublishSummary(
            phase=PHASE, processed=len(due), published=published, failed=failed
        )
