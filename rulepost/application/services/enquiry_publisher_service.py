"""Enquiry publisher batch phase.

Publishes every open, unpublished enquiry and opens its round-1 respond
window, ending `stageLength` working days ahead at the respond deadline.
"""

from __future__ import annotations

from dataclasses import dataclass

from structlog import get_logger

from rulepost.application.ports.document_store import (
    DocumentStoreProtocol,
    Query,
    TransactionProtocol,
)
from rulepost.application.ports.time_authority import TimeAuthorityProtocol
from rulepost.application.services.publish_follow_up_service import (
    PublishedPost,
    PublishFollowUpService,
)
from rulepost.config.schedule_config import RESPOND_WINDOW_CLOSES
from rulepost.domain.models import document_paths
from rulepost.domain.models.enquiry import Enquiry, EnquiryStage
from rulepost.domain.models.post import PostAuthor, PostType
from rulepost.domain.models.publish_result import (
    BatchPublishSummary,
    PublishFailReason,
    PublishResult,
)
from rulepost.domain.services.stage_clock import compute_stage_ends
from rulepost.domain.services.working_day_calendar import WorkingDayCalendar

logger = get_logger(__name__)

PHASE = "enquiry_publish"


@dataclass
class _Outcome:
    result: PublishResult
    post: PublishedPost | None = None


class EnquiryPublisherService:
    """Publishes pending enquiries."""

    def __init__(
        self,
        store: DocumentStoreProtocol,
        calendar: WorkingDayCalendar,
        time_authority: TimeAuthorityProtocol,
        follow_up: PublishFollowUpService,
    ) -> None:
        self._store = store
        self._calendar = calendar
        self._time = time_authority
        self._follow_up = follow_up

    async def publish_enquiry(self, enquiry_id: str) -> PublishResult:
        """Publish one enquiry if it is still awaiting publication."""

        async def _publish(tx: TransactionProtocol) -> _Outcome:
            now = self._time.now()
            path = document_paths.enquiry_path(enquiry_id)
            snapshot = await tx.get(path)
            if not snapshot.exists:
                return _Outcome(PublishResult.failed(PublishFailReason.NO_ENQUIRY_MATCH))
            enquiry = Enquiry.from_snapshot(enquiry_id, snapshot.data or {})
            if enquiry.stage is not EnquiryStage.AWAITING_PUBLISH:
                return _Outcome(PublishResult.failed(PublishFailReason.NO_ENQUIRY_MATCH))

            meta = await tx.get(document_paths.meta_path(path))
            author = PostAuthor.from_document(meta.data or {}) if meta.exists else None

            published = enquiry.publish(
                now,
                compute_stage_ends(
                    now, enquiry.stage_length, RESPOND_WINDOW_CLOSES, self._calendar
                ),
            )
            tx.update(path, published.stage_fields())
            if author is not None and author.team:
                tx.delete(document_paths.draft_path(author.team, enquiry_id))

            return _Outcome(
                PublishResult.published([enquiry_id]),
                post=PublishedPost(
                    post_type=PostType.ENQUIRY,
                    post_id=enquiry_id,
                    path=path,
                    enquiry=published,
                    attachments=list(snapshot.get("attachments") or []),
                ),
            )

        outcome = await self._store.run_transaction(_publish)
        if outcome.post is None:
            logger.info(
                "enquiry_not_published",
                enquiry_id=enquiry_id,
                reason=outcome.result.fail_reason.value,
            )
            return outcome.result

        logger.info(
            "enquiry_published",
            enquiry_id=enquiry_id,
            enquiry_number=outcome.post.enquiry.enquiry_number,
            stage_ends=outcome.post.enquiry.stage_ends.isoformat(),
        )
        await self._follow_up.run([outcome.post])
        return outcome.result

    async def publish_pending_enquiries(self) -> BatchPublishSummary:
        """Batch phase: publish every open, unpublished enquiry."""
        pending = await self._store.query(
            Query(document_paths.ENQUIRIES)
            .where("isPublished", "==", False)
            .where("isOpen", "==", True)
        )
        if not pending:
            logger.info("enquiry_publish_no_enquiries")
            return BatchPublishSummary(phase=PHASE)

        published = 0
        failed = 0
        for snapshot in pending:
            try:
                result = await self.publish_enquiry(snapshot.id)
            except Exception:
                failed += 1
                logger.exception("enquiry_publish_failed", enquiry_id=snapshot.id)
                continue
            published += result.published_count

        logger.info(
            "enquiry_publish_completed",
            processed=len(pending),
            published=published,
            failed=failed,
        )
        return BatchPublishSummary(
            phase=PHASE, processed=len(pending), published=published, failed=failed
        )
