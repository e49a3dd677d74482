"""Response publisher.

Publishes one enquiry's pending responses inside a single transaction:

- Team responses of the current round are shuffled, then numbered 1..N,
  so the published order carries no trace of submission order.
- The committee (RC) response of round `roundNumber + 1` is numbered 0.
  Exactly one must be pending; none or several is a structured failure.

The same transaction deletes the draft markers and advances the enquiry:

- team publish: RespondWindow -> CommentWindow
- RC publish: next round RespondWindow, or Closed for a concluding response

Batch jobs and the instant publish action share this code. The only
difference is `enforce_deadline`: batches require the stage deadline to
have passed, instant publish skips that check.
"""

from __future__ import annotations

import random
from collections.abc import Callable
from dataclasses import dataclass, field, replace
from datetime import datetime
from typing import Any

from structlog import get_logger

from rulepost.application.ports.document_store import (
    SERVER_TIMESTAMP,
    DocumentSnapshot,
    DocumentStoreProtocol,
    Query,
    TransactionProtocol,
)
from rulepost.application.ports.time_authority import TimeAuthorityProtocol
from rulepost.application.services.publish_follow_up_service import (
    PublishedPost,
    PublishFollowUpService,
)
from rulepost.config.schedule_config import COMMENT_WINDOW_CLOSES, RESPOND_WINDOW_CLOSES
from rulepost.domain.errors import FailedPreconditionError
from rulepost.domain.models import document_paths
from rulepost.domain.models.enquiry import (
    COMMITTEE_PUBLISHABLE_STAGES,
    Enquiry,
    EnquiryStage,
)
from rulepost.domain.models.post import PostAuthor, PostType
from rulepost.domain.models.publish_result import PublishFailReason, PublishResult
from rulepost.domain.services.stage_clock import compute_stage_ends
from rulepost.domain.services.working_day_calendar import WorkingDayCalendar

logger = get_logger(__name__)

RC_RESPONSE_NUMBER = 0


@dataclass
class _Outcome:
    result: PublishResult
    enquiry: Enquiry | None = None
    posts: list[PublishedPost] = field(default_factory=list)


class ResponsePublisherService:
    """Publishes team or committee responses for one enquiry.

    Attributes:
        store: Document store.
        calendar: Working day calendar for new deadlines.
        time_authority: Clock.
        follow_up: Attachment, unread and event follow-up.
        shuffle: In-place shuffle used for team response numbering.
    """

    def __init__(
        self,
        store: DocumentStoreProtocol,
        calendar: WorkingDayCalendar,
        time_authority: TimeAuthorityProtocol,
        follow_up: PublishFollowUpService,
        shuffle: Callable[[list[Any]], None] = random.shuffle,
    ) -> None:
        self._store = store
        self._calendar = calendar
        self._time = time_authority
        self._follow_up = follow_up
        self._shuffle = shuffle

    def _stage_allows(self, enquiry: Enquiry, from_rc: bool, enforce_deadline: bool) -> bool:
        if not from_rc:
            return enquiry.stage is EnquiryStage.RESPOND_WINDOW
        if enforce_deadline:
            return enquiry.stage is EnquiryStage.AWAITING_COMMITTEE
        return enquiry.stage in COMMITTEE_PUBLISHABLE_STAGES

    async def publish_responses(
        self,
        enquiry_id: str,
        *,
        from_rc: bool,
        enforce_deadline: bool = True,
    ) -> PublishResult:
        """Publish pending team or committee responses for an enquiry.

        Args:
            enquiry_id: Enquiry to publish.
            from_rc: Publish the committee response instead of team responses.
            enforce_deadline: Require the current stage deadline to have
                passed (batch mode). Instant publish passes False.

        Returns:
            PublishResult with the published response ids, or a fail reason
            when nothing was published. A failed result never changes any
            document.

        Raises:
            FailedPreconditionError: Instant publish against an enquiry
                whose stage does not allow it.
        """
        log = logger.bind(enquiry_id=enquiry_id, from_rc=from_rc)

        async def _publish(tx: TransactionProtocol) -> _Outcome:
            now = self._time.now()
            snapshot = await tx.get(document_paths.enquiry_path(enquiry_id))
            if not snapshot.exists:
                return _Outcome(PublishResult.failed(PublishFailReason.NO_ENQUIRY_MATCH))

            enquiry = Enquiry.from_snapshot(enquiry_id, snapshot.data or {})
            if not self._stage_allows(enquiry, from_rc, enforce_deadline):
                if not enforce_deadline:
                    raise FailedPreconditionError(
                        f"Enquiry is in stage {enquiry.stage.value}; "
                        f"{'committee' if from_rc else 'team'} responses cannot be published."
                    )
                return _Outcome(PublishResult.failed(PublishFailReason.NO_ENQUIRY_MATCH))
            if enforce_deadline and not enquiry.is_stage_elapsed(now):
                return _Outcome(PublishResult.failed(PublishFailReason.STAGE_NOT_ENDED))

            target_round = enquiry.round_number + 1 if from_rc else enquiry.round_number
            candidates = await tx.query(
                Query(document_paths.responses_collection(enquiry_id))
                .where("roundNumber", "==", target_round)
                .where("fromRC", "==", from_rc)
                .where("isPublished", "==", False)
            )
            if not candidates:
                return _Outcome(PublishResult.failed(PublishFailReason.NO_RESPONSE))
            if from_rc and len(candidates) > 1:
                return _Outcome(
                    PublishResult.failed(PublishFailReason.MULTIPLE_RC_RESPONSES)
                )

            authors: dict[str, PostAuthor] = {}
            for candidate in candidates:
                meta = await tx.get(document_paths.meta_path(candidate.path))
                if meta.exists:
                    authors[candidate.id] = PostAuthor.from_document(meta.data or {})

            ordered = list(candidates)
            if not from_rc:
                self._shuffle(ordered)

            posts: list[PublishedPost] = []
            for index, candidate in enumerate(ordered, start=1):
                number = RC_RESPONSE_NUMBER if from_rc else index
                tx.update(
                    candidate.path,
                    {
                        "isPublished": True,
                        "publishedAt": SERVER_TIMESTAMP,
                        "responseNumber": number,
                    },
                )
                author = authors.get(candidate.id)
                if author is not None and author.team:
                    tx.delete(document_paths.draft_path(author.team, candidate.id))
                posts.append(
                    PublishedPost(
                        post_type=PostType.RESPONSE,
                        post_id=candidate.id,
                        path=candidate.path,
                        enquiry=enquiry,
                        number=number,
                        round_number=target_round,
                        attachments=list(candidate.get("attachments") or []),
                    )
                )

            updated = self._advance(enquiry, candidates[0], from_rc, now)
            tx.update(document_paths.enquiry_path(enquiry_id), updated.stage_fields())

            posts = [replace(post, enquiry=updated) for post in posts]
            return _Outcome(
                PublishResult.published([post.post_id for post in posts]),
                enquiry=updated,
                posts=posts,
            )

        outcome = await self._store.run_transaction(_publish)
        if not outcome.result.success:
            log.info("responses_not_published", reason=outcome.result.fail_reason.value)
            return outcome.result

        log.info(
            "responses_published",
            published_count=outcome.result.published_count,
            stage=outcome.enquiry.stage.value if outcome.enquiry else None,
        )
        await self._follow_up.run(outcome.posts)
        return outcome.result

    def _advance(
        self,
        enquiry: Enquiry,
        first_candidate: DocumentSnapshot,
        from_rc: bool,
        now: datetime,
    ) -> Enquiry:
        if from_rc:
            if first_candidate.get("closesEnquiry") is True:
                return enquiry.conclude(first_candidate.get("conclusion"))
            return enquiry.open_next_round(
                now,
                compute_stage_ends(
                    now, enquiry.stage_length, RESPOND_WINDOW_CLOSES, self._calendar
                ),
            )
        return enquiry.open_comment_window(
            now,
            compute_stage_ends(
                now, enquiry.stage_length + 1, COMMENT_WINDOW_CLOSES, self._calendar
            ),
        )

