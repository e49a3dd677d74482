"""Post submission.

Submitting a post runs in three steps:

1. Structural checks and attachment checks (no writes)
2. One transaction writing the public post, its private author record and
   the team's draft marker, after the enquiry state checks
3. Validated attachments are moved under the post and recorded on it

Business rules checked inside the transaction:

- the enquiry exists, is open and is published
- team responses need the respond window, team comments the comment
  window; the Rules Committee is exempt from both
- a comment targets a published team response of the current round
- one response per team per round, enforced by a create-only guard
- enquiry numbers come from a counter reconciled against the highest
  stored number, so deletions and manual edits never cause reuse
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any

from structlog import get_logger

from rulepost.application.ports.document_store import (
    SERVER_TIMESTAMP,
    DocumentStoreProtocol,
    Query,
    TransactionProtocol,
)
from rulepost.application.services.attachment_publication_service import (
    AttachmentPublicationService,
)
from rulepost.application.services.post_validation import (
    check_submission_rights,
    coerce_submission,
)
from rulepost.domain.errors import (
    DocumentAlreadyExistsError,
    DuplicateTeamResponseError,
    FailedPreconditionError,
    UnauthenticatedError,
)
from rulepost.domain.models import document_paths
from rulepost.domain.models.enquiry import DEFAULT_STAGE_LENGTH, Enquiry, EnquiryStage
from rulepost.domain.models.post import (
    Caller,
    DraftMarker,
    PostAuthor,
    PostSubmission,
    PostType,
    SubmissionResult,
)

logger = get_logger(__name__)


@dataclass
class _Written:
    enquiry_number: int | None = None
    guard_round: int | None = None


class PostSubmissionService:
    """Creates enquiries, responses and comments as unpublished drafts."""

    def __init__(
        self,
        store: DocumentStoreProtocol,
        attachments: AttachmentPublicationService,
        default_stage_length: int = DEFAULT_STAGE_LENGTH,
    ) -> None:
        self._store = store
        self._attachments = attachments
        self._default_stage_length = default_stage_length

    async def submit(self, caller: Caller, payload: Mapping[str, Any]) -> SubmissionResult:
        """Validate and store a new post.

        Raises:
            UnauthenticatedError: No caller uid.
            InvalidArgumentError: Malformed payload.
            PermissionDeniedError: Attachment not owned by caller, or a
                non-committee caller tried to close the enquiry.
            NotFoundError: A temporary attachment does not exist.
            FailedPreconditionError: Enquiry or window state forbids the post.
            DuplicateTeamResponseError: The team already responded this round.
        """
        if not caller.uid:
            raise UnauthenticatedError("Sign in required.")
        if not caller.team:
            raise FailedPreconditionError("No team assigned to this user.")

        submission = coerce_submission(payload)
        check_submission_rights(caller, submission)
        log = logger.bind(
            post_type=submission.post_type.value,
            author_team=caller.team,
            uid=caller.uid,
        )

        post_id = self._store.new_id()
        post_path = document_paths.post_path(
            submission.post_type, submission.parent_ids, post_id
        )
        planned = await self._attachments.validate(
            submission.post_type,
            caller.uid,
            document_paths.attachment_folder(
                submission.post_type, submission.parent_ids, post_id
            ),
            submission.attachments,
        )

        written = _Written()

        async def _create(tx: TransactionProtocol) -> _Written:
            result = _Written()
            if submission.post_type is PostType.ENQUIRY:
                document = await self._enquiry_document(tx, post_id, caller, submission)
                result.enquiry_number = document["enquiryNumber"]
            elif submission.post_type is PostType.RESPONSE:
                document, result.guard_round = await self._response_document(
                    tx, post_id, caller, submission
                )
            else:
                document = await self._comment_document(tx, caller, submission)

            tx.set(post_path, document)
            tx.set(
                document_paths.meta_path(post_path),
                PostAuthor(caller.uid, caller.team, SERVER_TIMESTAMP).to_document(),
            )
            tx.set(
                document_paths.draft_path(caller.team, post_id),
                DraftMarker(
                    post_id=post_id,
                    post_type=submission.post_type,
                    parent_ids=submission.parent_ids,
                    author_uid=caller.uid,
                    author_team=caller.team,
                    created_at=SERVER_TIMESTAMP,
                ).to_document(),
            )
            written.guard_round = result.guard_round
            return result

        try:
            result = await self._store.run_transaction(_create)
        except DocumentAlreadyExistsError as exc:
            if written.guard_round is not None and exc.path == document_paths.guard_path(
                submission.enquiry_id or "", caller.team, written.guard_round
            ):
                raise DuplicateTeamResponseError(caller.team, written.guard_round) from exc
            raise

        if planned:
            finalised = await self._attachments.move_into_place(planned)
            await self._store.update(
                post_path,
                {"attachments": [attachment.to_document() for attachment in finalised]},
            )

        log.info(
            "post_submitted",
            post_id=post_id,
            enquiry_number=result.enquiry_number,
            attachments=len(planned),
        )
        return SubmissionResult(
            post_id=post_id,
            post_path=post_path,
            post_type=submission.post_type,
            enquiry_number=result.enquiry_number,
        )

    async def _enquiry_document(
        self,
        tx: TransactionProtocol,
        post_id: str,
        caller: Caller,
        submission: PostSubmission,
    ) -> dict[str, Any]:
        counters = await tx.get(document_paths.COUNTERS)
        current = int(counters.get("enquiryNumber") or 0)
        highest = await tx.query(
            Query(document_paths.ENQUIRIES).order("enquiryNumber", descending=True).take(1)
        )
        highest_stored = int(highest[0].get("enquiryNumber") or 0) if highest else 0
        next_number = max(current, highest_stored) + 1
        tx.set(document_paths.COUNTERS, {"enquiryNumber": next_number}, merge=True)

        enquiry = Enquiry(
            enquiry_id=post_id,
            enquiry_number=next_number,
            title=submission.title,
            post_text=submission.post_text,
            stage_length=self._default_stage_length,
            from_rc=caller.is_rc,
        )
        document = enquiry.to_document()
        document["createdAt"] = SERVER_TIMESTAMP
        return document

    async def _open_enquiry(self, tx: TransactionProtocol, enquiry_id: str) -> Enquiry:
        snapshot = await tx.get(document_paths.enquiry_path(enquiry_id))
        if not snapshot.exists:
            raise FailedPreconditionError("No matching enquiry found.")
        enquiry = Enquiry.from_snapshot(enquiry_id, snapshot.data or {})
        if enquiry.stage is EnquiryStage.CLOSED:
            raise FailedPreconditionError("Enquiry is closed.")
        if enquiry.stage is EnquiryStage.AWAITING_PUBLISH:
            raise FailedPreconditionError("Enquiry has not been published yet.")
        return enquiry

    async def _response_document(
        self,
        tx: TransactionProtocol,
        post_id: str,
        caller: Caller,
        submission: PostSubmission,
    ) -> tuple[dict[str, Any], int]:
        enquiry_id = submission.enquiry_id or ""
        enquiry = await self._open_enquiry(tx, enquiry_id)
        if not caller.is_rc and not enquiry.teams_can_respond:
            raise FailedPreconditionError(
                "Competitors not permitted to respond at this time."
            )

        # Committee responses open the next round when published
        round_number = enquiry.round_number + 1 if caller.is_rc else enquiry.round_number
        guard = document_paths.guard_path(enquiry_id, caller.team, round_number)
        if (await tx.get(guard)).exists:
            raise DuplicateTeamResponseError(caller.team, round_number)
        tx.create(
            guard,
            {
                "authorTeam": caller.team,
                "roundNumber": round_number,
                "createdAt": SERVER_TIMESTAMP,
                "latestResponseId": post_id,
            },
        )

        document: dict[str, Any] = {
            "postText": submission.post_text,
            "roundNumber": round_number,
            "fromRC": caller.is_rc,
            "isPublished": False,
            "commentCount": 0,
            "createdAt": SERVER_TIMESTAMP,
        }
        if submission.title:
            document["title"] = submission.title
        if submission.closes_enquiry:
            document["closesEnquiry"] = True
            if submission.conclusion:
                document["conclusion"] = submission.conclusion
        return document, round_number

    async def _comment_document(
        self,
        tx: TransactionProtocol,
        caller: Caller,
        submission: PostSubmission,
    ) -> dict[str, Any]:
        enquiry_id = submission.enquiry_id or ""
        enquiry = await self._open_enquiry(tx, enquiry_id)
        if not caller.is_rc and not enquiry.teams_can_comment:
            raise FailedPreconditionError(
                "Competitors not permitted to comment at this time."
            )

        response = await tx.get(
            document_paths.response_path(enquiry_id, submission.response_id or "")
        )
        if not response.exists:
            raise FailedPreconditionError("Response not found.")
        if response.get("fromRC") is True:
            raise FailedPreconditionError(
                "Comments can only be made on Competitor responses."
            )
        if int(response.get("roundNumber") or 0) != enquiry.round_number:
            raise FailedPreconditionError("Comments must target the latest round.")
        if response.get("isPublished") is not True:
            raise FailedPreconditionError("Comments must target a published response.")

        document: dict[str, Any] = {
            "postText": submission.post_text,
            "roundNumber": enquiry.round_number,
            "fromRC": caller.is_rc,
            "isPublished": False,
            "createdAt": SERVER_TIMESTAMP,
        }
        if submission.title:
            document["title"] = submission.title
        return document
