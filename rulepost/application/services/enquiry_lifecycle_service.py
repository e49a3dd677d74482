"""Enquiry lifecycle controller actions.

Caller-driven actions on a single enquiry (instant publish, close, change
stage length) plus the time-gated move to AwaitingCommittee used by the
team-response batch when a round drew no team responses.

Instant publish bypasses the deadline gate on request but reuses the
response publisher, so it recomputes a fresh deadline exactly like the
batch jobs and they never fire twice for the same stage.
"""

from __future__ import annotations

from structlog import get_logger

from rulepost.application.ports.document_store import (
    DocumentStoreProtocol,
    Query,
    TransactionProtocol,
)
from rulepost.application.ports.time_authority import TimeAuthorityProtocol
from rulepost.application.services.response_publisher_service import (
    ResponsePublisherService,
)
from rulepost.config.schedule_config import COMMITTEE_WINDOW_CLOSES
from rulepost.domain.errors import (
    AlreadyExistsError,
    FailedPreconditionError,
    InvalidArgumentError,
    NotFoundError,
    PermissionDeniedError,
)
from rulepost.domain.models import document_paths
from rulepost.domain.models.enquiry import Enquiry, EnquiryStage
from rulepost.domain.models.post import Caller
from rulepost.domain.models.publish_result import PublishResult
from rulepost.domain.services.stage_clock import (
    compute_stage_ends,
    offset_by_working_days,
)
from rulepost.domain.services.working_day_calendar import WorkingDayCalendar

logger = get_logger(__name__)


def _require_privileged(caller: Caller, action: str) -> None:
    if not caller.is_privileged:
        raise PermissionDeniedError(f"Only admins or the Rules Committee can {action}.")


async def _load_enquiry(tx: TransactionProtocol, enquiry_id: str) -> Enquiry:
    snapshot = await tx.get(document_paths.enquiry_path(enquiry_id))
    if not snapshot.exists:
        raise NotFoundError(f"Enquiry {enquiry_id} not found.")
    return Enquiry.from_snapshot(enquiry_id, snapshot.data or {})


class EnquiryLifecycleService:
    """Lifecycle actions on one enquiry."""

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

    async def instant_publish(
        self, caller: Caller, enquiry_id: str, rc_response: bool
    ) -> PublishResult:
        """Publish responses now, without waiting for the stage deadline.

        Raises:
            PermissionDeniedError: Caller is neither admin nor RC.
            FailedPreconditionError: The enquiry stage does not allow it.
        """
        _require_privileged(caller, "publish instantly")
        result = await self._publisher.publish_responses(
            enquiry_id, from_rc=rc_response, enforce_deadline=False
        )
        logger.info(
            "instant_publish_requested",
            enquiry_id=enquiry_id,
            rc_response=rc_response,
            caller_uid=caller.uid,
            success=result.success,
            published_count=result.published_count,
        )
        return result

    async def close_enquiry(
        self, caller: Caller, enquiry_id: str, conclusion: str | None = None
    ) -> Enquiry:
        """Close an enquiry from any non-terminal stage."""
        _require_privileged(caller, "close enquiries")

        async def _close(tx: TransactionProtocol) -> Enquiry:
            enquiry = await _load_enquiry(tx, enquiry_id)
            if enquiry.stage is EnquiryStage.CLOSED:
                raise FailedPreconditionError("Enquiry is already closed.")
            closed = enquiry.close(conclusion)
            tx.update(document_paths.enquiry_path(enquiry_id), closed.stage_fields())
            return closed

        closed = await self._store.run_transaction(_close)
        logger.info("enquiry_closed", enquiry_id=enquiry_id, caller_uid=caller.uid)
        return closed

    async def change_stage_length(
        self, caller: Caller, enquiry_id: str, new_stage_length: int
    ) -> Enquiry:
        """Change the stage length, shifting the current deadline by the difference.

        Raises:
            InvalidArgumentError: Length is not a positive integer.
            AlreadyExistsError: Length is unchanged.
            FailedPreconditionError: Enquiry is closed.
        """
        _require_privileged(caller, "change the stage length")
        if isinstance(new_stage_length, bool) or not isinstance(new_stage_length, int):
            raise InvalidArgumentError("Stage length must be a whole number.")
        if new_stage_length < 1:
            raise InvalidArgumentError("Stage length must be at least 1.")

        async def _change(tx: TransactionProtocol) -> Enquiry:
            enquiry = await _load_enquiry(tx, enquiry_id)
            if enquiry.stage is EnquiryStage.CLOSED:
                raise FailedPreconditionError("Enquiry is closed.")
            if enquiry.stage_length == new_stage_length:
                raise AlreadyExistsError(
                    f"Stage length is already {new_stage_length} working days."
                )
            stage_ends = enquiry.stage_ends
            if stage_ends is not None:
                stage_ends = offset_by_working_days(
                    stage_ends, new_stage_length - enquiry.stage_length, self._calendar
                )
            changed = enquiry.with_stage_length(new_stage_length, stage_ends)
            tx.update(
                document_paths.enquiry_path(enquiry_id),
                {"stageLength": changed.stage_length, "stageEnds": changed.stage_ends},
            )
            return changed

        changed = await self._store.run_transaction(_change)
        logger.info(
            "stage_length_changed",
            enquiry_id=enquiry_id,
            stage_length=new_stage_length,
            stage_ends=changed.stage_ends.isoformat() if changed.stage_ends else None,
        )
        return changed

    async def advance_to_committee(self, enquiry_id: str) -> bool:
        """Move an elapsed respond window with no team responses to AwaitingCommittee.

        Re-checks stage, deadline and the absence of pending team responses
        in its own transaction.

        Returns:
            True when the enquiry moved.
        """

        async def _advance(tx: TransactionProtocol) -> bool:
            now = self._time.now()
            snapshot = await tx.get(document_paths.enquiry_path(enquiry_id))
            if not snapshot.exists:
                return False
            enquiry = Enquiry.from_snapshot(enquiry_id, snapshot.data or {})
            if enquiry.stage is not EnquiryStage.RESPOND_WINDOW:
                return False
            if not enquiry.is_stage_elapsed(now):
                return False
            pending = await tx.query(
                Query(document_paths.responses_collection(enquiry_id))
                .where("roundNumber", "==", enquiry.round_number)
                .where("fromRC", "==", False)
                .where("isPublished", "==", False)
            )
            if pending:
                return False
            advanced = enquiry.await_committee(
                now, compute_stage_ends(now, 1, COMMITTEE_WINDOW_CLOSES, self._calendar)
            )
            tx.update(document_paths.enquiry_path(enquiry_id), advanced.stage_fields())
            return True

        moved = await self._store.run_transaction(_advance)
        if moved:
            logger.info("enquiry_awaiting_committee", enquiry_id=enquiry_id)
        return moved
