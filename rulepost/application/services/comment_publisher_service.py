"""Comment publisher.

Comments are published per enquiry in the comment window. Each response's
pending comments are numbered by continuing from its count of already
published comments, in submission order, so repeated passes on the same
day never renumber anything. When the comment window deadline has passed
the same transaction moves the enquiry to AwaitingCommittee.

The committee may comment after the window shuts (it is exempt from the
window), so enquiries awaiting the committee are scanned too: their
pending comments publish without any stage change, before the committee
response moves the round on.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace

from structlog import get_logger

from rulepost.application.ports.document_store import (
    SERVER_TIMESTAMP,
    DocumentStoreProtocol,
    Query,
    TransactionProtocol,
)
from rulepost.application.ports.time_authority import TimeAuthorityProtocol
from rulepost.application.services.publish_follow_up_service import (
    PublishedPost,
    PublishFollowUpService,
)
from rulepost.config.schedule_config import COMMITTEE_WINDOW_CLOSES
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

PHASE = "comment_publish"

# Stages in which pending comments of the current round are published
COMMENTABLE_STAGES = frozenset(
    {EnquiryStage.COMMENT_WINDOW, EnquiryStage.AWAITING_COMMITTEE}
)


@dataclass
class _Outcome:
    result: PublishResult
    enquiry: Enquiry | None = None
    posts: list[PublishedPost] = field(default_factory=list)


class CommentPublisherService:
    """Publishes pending comments and closes elapsed comment windows."""

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

    async def publish_comments(self, enquiry_id: str) -> PublishResult:
        """Publish one enquiry's pending comments.

        Returns:
            PublishResult listing the published comment ids. Succeeds with
            zero comments when only the stage advanced; fails with
            NO_RESPONSE when there was nothing to do at all.
        """
        log = logger.bind(enquiry_id=enquiry_id)

        async def _publish(tx: TransactionProtocol) -> _Outcome:
            now = self._time.now()
            snapshot = await tx.get(document_paths.enquiry_path(enquiry_id))
            if not snapshot.exists:
                return _Outcome(PublishResult.failed(PublishFailReason.NO_ENQUIRY_MATCH))
            enquiry = Enquiry.from_snapshot(enquiry_id, snapshot.data or {})
            if enquiry.stage not in COMMENTABLE_STAGES:
                return _Outcome(PublishResult.failed(PublishFailReason.NO_ENQUIRY_MATCH))

            responses = await tx.query(
                Query(document_paths.responses_collection(enquiry_id))
                .where("roundNumber", "==", enquiry.round_number)
                .where("fromRC", "==", False)
                .where("isPublished", "==", True)
            )

            # Reads first: comments per response, then authors of pending ones
            plans = []
            for response in responses:
                comments = await tx.query(
                    Query(document_paths.comments_collection(enquiry_id, response.id))
                )
                published = [c for c in comments if c.get("isPublished") is True]
                pending = sorted(
                    (c for c in comments if c.get("isPublished") is not True),
                    key=lambda c: (c.get("createdAt") is None, c.get("createdAt"), c.id),
                )
                if not pending:
                    continue
                authors: dict[str, PostAuthor] = {}
                for comment in pending:
                    meta = await tx.get(document_paths.meta_path(comment.path))
                    if meta.exists:
                        authors[comment.id] = PostAuthor.from_document(meta.data or {})
                plans.append((response, len(published), pending, authors))

            posts: list[PublishedPost] = []
            for response, already_published, pending, authors in plans:
                next_number = already_published
                for comment in pending:
                    next_number += 1
                    tx.update(
                        comment.path,
                        {
                            "isPublished": True,
                            "publishedAt": SERVER_TIMESTAMP,
                            "commentNumber": next_number,
                        },
                    )
                    author = authors.get(comment.id)
                    if author is not None and author.team:
                        tx.delete(document_paths.draft_path(author.team, comment.id))
                    posts.append(
                        PublishedPost(
                            post_type=PostType.COMMENT,
                            post_id=comment.id,
                            path=comment.path,
                            enquiry=enquiry,
                            response_id=response.id,
                            number=next_number,
                            round_number=response.get("roundNumber"),
                            response_number=response.get("responseNumber"),
                        )
                    )
                tx.update(response.path, {"commentCount": next_number})

            updated = enquiry
            window_elapsed = (
                enquiry.stage is EnquiryStage.COMMENT_WINDOW and enquiry.is_stage_elapsed(now)
            )
            if window_elapsed:
                updated = enquiry.await_committee(
                    now,
                    compute_stage_ends(now, 1, COMMITTEE_WINDOW_CLOSES, self._calendar),
                )
                tx.update(document_paths.enquiry_path(enquiry_id), updated.stage_fields())
            elif not posts:
                return _Outcome(PublishResult.failed(PublishFailReason.NO_RESPONSE))

            posts = [replace(post, enquiry=updated) for post in posts]
            return _Outcome(
                PublishResult.published([post.post_id for post in posts]),
                enquiry=updated,
                posts=posts,
            )

        outcome = await self._store.run_transaction(_publish)
        if not outcome.result.success:
            log.info("comments_not_published", reason=outcome.result.fail_reason.value)
            return outcome.result

        log.info(
            "comments_published",
            published_count=outcome.result.published_count,
            stage=outcome.enquiry.stage.value if outcome.enquiry else None,
        )
        await self._follow_up.run(outcome.posts)
        return outcome.result

    async def publish_due_comments(self) -> BatchPublishSummary:
        """Batch phase: publish comments for every enquiry in its comment
        window or awaiting the committee.

        Does nothing on a non-working day. A failing enquiry is logged and
        the batch moves on.
        """
        now = self._time.now()
        if not self._calendar.is_working_day(now):
            logger.info("comment_publish_skipped_non_working_day", now=now.isoformat())
            return BatchPublishSummary(phase=PHASE, skipped=True)

        published_enquiries = (
            Query(document_paths.ENQUIRIES)
            .where("isOpen", "==", True)
            .where("isPublished", "==", True)
        )
        enquiries = await self._store.query(
            published_enquiries.where("teamsCanComment", "==", True)
        )
        enquiries += await self._store.query(
            published_enquiries.where("teamsCanComment", "==", False).where(
                "teamsCanRespond", "==", False
            )
        )
        if not enquiries:
            logger.info("comment_publish_no_enquiries")
            return BatchPublishSummary(phase=PHASE)

        published = 0
        failed = 0
        for snapshot in enquiries:
            try:
                result = await self.publish_comments(snapshot.id)
            except Exception:
                failed += 1
                logger.exception("comment_publish_enquiry_failed", enquiry_id=snapshot.id)
                continue
            published += result.published_count

        summary = BatchPublishSummary(
            phase=PHASE, processed=len(enquiries), published=published, failed=failed
        )
        logger.info(
            "comment_publish_completed",
            processed=summary.processed,
            published=summary.published,
            failed=summary.failed,
        )
        return summary
