"""Committee response batch phase (00:00).

Publishes the pending RC response of every enquiry whose committee window
has elapsed. Skipped on non-working days. An enquiry with no RC response,
or several, is reported and left for the next run.
"""

from __future__ import annotations

from structlog import get_logger

from rulepost.application.ports.document_store import DocumentStoreProtocol, Query
from rulepost.application.ports.time_authority import TimeAuthorityProtocol
from rulepost.application.services.response_publisher_service import (
    ResponsePublisherService,
)
from rulepost.domain.models import document_paths
from rulepost.domain.models.publish_result import BatchPublishSummary, PublishFailReason
from rulepost.domain.services.working_day_calendar import WorkingDayCalendar

logger = get_logger(__name__)

PHASE = "committee_response_publish"


class CommitteeResponsePublisherService:
    """Publishes committee responses for elapsed committee windows."""

    def __init__(
        self,
        store: DocumentStoreProtocol,
        calendar: WorkingDayCalendar,
        time_authority: TimeAuthorityProtocol,
        response_publisher: ResponsePublisherService,
    ) -> None:
        self._store = store
        self._calendar = calendar
        self._time = time_authority
        self._publisher = response_publisher

    async def publish_due_committee_responses(self) -> BatchPublishSummary:
        now = self._time.now()
        if not self._calendar.is_working_day(now):
            logger.info("committee_publish_skipped_non_working_day", now=now.isoformat())
            return BatchPublishSummary(phase=PHASE, skipped=True)

        # Awaiting committee: open, published, both team windows shut
        due = await self._store.query(
            Query(document_paths.ENQUIRIES)
            .where("isOpen", "==", True)
            .where("isPublished", "==", True)
            .where("teamsCanRespond", "==", False)
            .where("teamsCanComment", "==", False)
            .where("stageEnds", "<=", now)
        )
        if not due:
            logger.info("committee_publish_no_enquiries")
            return BatchPublishSummary(phase=PHASE)

        published = 0
        failed = 0
        for snapshot in due:
            try:
                result = await self._publisher.publish_responses(
                    snapshot.id, from_rc=True, enforce_deadline=True
                )
            except Exception:
                failed += 1
                logger.exception("committee_publish_failed", enquiry_id=snapshot.id)
                continue
            if result.fail_reason is PublishFailReason.MULTIPLE_RC_RESPONSES:
                logger.warning("committee_publish_multiple_responses", enquiry_id=snapshot.id)
            published += result.published_count

        logger.info(
            "committee_publish_completed",
            processed=len(due),
            published=published,
            failed=failed,
        )
        return BatchPublishSummary(
            phase=PHASE, processed=len(due), published=published, failed=failed
        )
