"""Draft deletion and its cascades.

Deleting a post removes everything hanging off it:

- enquiry: every response and comment beneath it with their author records
  and guards, the attachment folder, draft markers, pending publish events
  and unread markers; the enquiry counter is then reset to the highest
  remaining enquiry number
- response: its guard `{team}_{round}`, attachments, draft marker, pending
  publish events, unread markers and its draft comments
- comment: its draft marker, pending publish events and unread markers

Only unpublished posts can be deleted by their team. Admins may also delete
a whole enquiry and withdraw every draft of a team.
"""

from __future__ import annotations

from dataclasses import dataclass

from structlog import get_logger

from rulepost.application.ports.document_store import DocumentStoreProtocol, Query
from rulepost.application.services.attachment_publication_service import (
    AttachmentPublicationService,
)
from rulepost.application.services.unread_fanout_service import UnreadFanoutService
from rulepost.domain.errors import (
    FailedPreconditionError,
    InvalidArgumentError,
    NotFoundError,
    PermissionDeniedError,
    UnauthenticatedError,
)
from rulepost.domain.models import document_paths
from rulepost.domain.models.post import RC_TEAM, Caller, DraftMarker, PostAuthor, PostType

logger = get_logger(__name__)

_EVENT_KEYS = {
    PostType.ENQUIRY: "enquiryId",
    PostType.RESPONSE: "responseId",
    PostType.COMMENT: "commentId",
}


@dataclass(frozen=True)
class _Doomed:
    post_type: PostType
    post_id: str
    path: str
    author_team: str
    round_number: int | None = None


@dataclass(frozen=True)
class DeletionResult:
    """Outcome of a deletion."""

    post_id: str
    path: str
    deleted_documents: int


class PostDeletionService:
    def __init__(
        self,
        store: DocumentStoreProtocol,
        attachments: AttachmentPublicationService,
        unread: UnreadFanoutService,
    ) -> None:
        self._store = store
        self._attachments = attachments
        self._unread = unread

    async def delete_post(
        self,
        caller: Caller,
        post_type: PostType,
        post_id: str,
        parent_ids: tuple[str, ...] = (),
    ) -> DeletionResult:
        """Delete an unpublished post owned by the caller's team.

        Raises:
            InvalidArgumentError: Wrong number of parent ids.
            NotFoundError: The post does not exist.
            FailedPreconditionError: The post is published.
            PermissionDeniedError: The caller's team did not author the post.
        """
        if not caller.uid:
            raise UnauthenticatedError("Sign in required.")
        if not caller.team:
            raise FailedPreconditionError("No team assigned to this user.")
        if len(parent_ids) != post_type.parent_count:
            raise InvalidArgumentError(
                f"A {post_type.value} needs {post_type.parent_count} parent ids."
            )

        path = document_paths.post_path(post_type, parent_ids, post_id)
        snapshot = await self._store.get(path)
        if not snapshot.exists:
            raise NotFoundError("Document does not exist.")
        if snapshot.get("isPublished") is True:
            raise FailedPreconditionError("Only unpublished drafts may be deleted.")

        meta = await self._store.get(document_paths.meta_path(path))
        author = PostAuthor.from_document(meta.data or {})
        if author.team != caller.team and not caller.is_admin:
            raise PermissionDeniedError("Only the authoring team may delete this draft.")

        deleted = await self._cascade(post_type, post_id, path, parent_ids)
        logger.info(
            "post_deleted",
            post_type=post_type.value,
            post_id=post_id,
            caller_uid=caller.uid,
            deleted_documents=deleted,
        )
        return DeletionResult(post_id=post_id, path=path, deleted_documents=deleted)

    async def delete_enquiry(self, caller: Caller, enquiry_id: str) -> DeletionResult:
        """Admin: delete an enquiry and everything beneath it, published or not."""
        if not caller.is_admin:
            raise PermissionDeniedError("Only admins can delete enquiries.")
        path = document_paths.enquiry_path(enquiry_id)
        if not (await self._store.get(path)).exists:
            raise NotFoundError(f"Enquiry {enquiry_id} not found.")

        deleted = await self._cascade(PostType.ENQUIRY, enquiry_id, path, ())
        logger.info(
            "enquiry_deleted",
            enquiry_id=enquiry_id,
            caller_uid=caller.uid,
            deleted_documents=deleted,
        )
        return DeletionResult(post_id=enquiry_id, path=path, deleted_documents=deleted)

    async def withdraw_team_drafts(self, caller: Caller, team: str) -> int:
        """Admin: delete every unpublished post of a team.

        Returns:
            Number of drafts withdrawn.

        Raises:
            PermissionDeniedError: Caller is not admin, or the team is the
                reserved Rules Committee team.
        """
        if not caller.is_admin:
            raise PermissionDeniedError("Only admins can withdraw team drafts.")
        team = team.strip()
        if not team:
            raise InvalidArgumentError("Team is required.")
        if team == RC_TEAM:
            raise PermissionDeniedError("The Rules Committee team is protected.")

        withdrawn = 0
        for marker_path in await self._store.list_documents(
            document_paths.drafts_collection(team)
        ):
            marker_snapshot = await self._store.get(marker_path)
            if not marker_snapshot.exists:
                continue
            marker = DraftMarker.from_document(marker_snapshot.id, marker_snapshot.data or {})
            path = document_paths.post_path(marker.post_type, marker.parent_ids, marker.post_id)
            post = await self._store.get(path)
            if not post.exists:
                await self._store.delete(marker_path)
                continue
            if post.get("isPublished") is True:
                continue
            await self._cascade(marker.post_type, marker.post_id, path, marker.parent_ids)
            withdrawn += 1

        logger.info("team_drafts_withdrawn", team=team, withdrawn=withdrawn)
        return withdrawn

    async def _collect(
        self, post_type: PostType, post_id: str, path: str, parent_ids: tuple[str, ...]
    ) -> list[_Doomed]:
        """The post and every post beneath it, deepest first."""
        snapshot = await self._store.get(path)
        meta = await self._store.get(document_paths.meta_path(path))
        doomed = _Doomed(
            post_type=post_type,
            post_id=post_id,
            path=path,
            author_team=PostAuthor.from_document(meta.data or {}).team,
            round_number=snapshot.get("roundNumber"),
        )
        if post_type is PostType.COMMENT:
            return [doomed]

        if post_type is PostType.ENQUIRY:
            child_type = PostType.RESPONSE
            children = await self._store.query(
                Query(document_paths.responses_collection(post_id))
            )
            child_parents: tuple[str, ...] = (post_id,)
        else:
            child_type = PostType.COMMENT
            children = await self._store.query(
                Query(document_paths.comments_collection(parent_ids[0], post_id))
            )
            child_parents = (parent_ids[0], post_id)

        collected: list[_Doomed] = []
        for child in children:
            collected.extend(
                await self._collect(child_type, child.id, child.path, child_parents)
            )
        collected.append(doomed)
        return collected

    async def _cascade(
        self,
        post_type: PostType,
        post_id: str,
        path: str,
        parent_ids: tuple[str, ...],
    ) -> int:
        doomed = await self._collect(post_type, post_id, path, parent_ids)
        enquiry_id = parent_ids[0] if parent_ids else post_id

        writer = self._store.bulk_writer()
        for item in doomed:
            if item.author_team:
                writer.delete(document_paths.draft_path(item.author_team, item.post_id))
            if (
                item.post_type is PostType.RESPONSE
                and item.author_team
                and item.round_number is not None
            ):
                writer.delete(
                    document_paths.guard_path(enquiry_id, item.author_team, item.round_number)
                )
            events = await self._store.query(
                Query(document_paths.PUBLISH_EVENTS)
                .where(_EVENT_KEYS[item.post_type], "==", item.post_id)
                .where("processed", "==", False)
            )
            for event in events:
                writer.delete(event.path)
        report = await writer.close()
        if report.failed:
            logger.warning(
                "post_cascade_partial_failure",
                post_id=post_id,
                failed=report.failed,
                paths=[failure.path for failure in report.failures],
            )

        for item in doomed:
            try:
                await self._unread.remove_unread(item.post_id, item.post_type)
            except Exception as exc:
                logger.warning("unread_removal_failed", post_id=item.post_id, error=str(exc))

        if post_type is not PostType.COMMENT:
            try:
                await self._attachments.delete_folder(path)
            except Exception as exc:
                logger.warning("attachment_cleanup_failed", path=path, error=str(exc))

        deleted = await self._store.delete_recursive(path)
        if post_type is PostType.ENQUIRY:
            await self._reset_enquiry_counter()
        return deleted

    async def _reset_enquiry_counter(self) -> None:
        highest = await self._store.query(
            Query(document_paths.ENQUIRIES).order("enquiryNumber", descending=True).take(1)
        )
        highest_number = int(highest[0].get("enquiryNumber") or 0) if highest else 0
        await self._store.set(
            document_paths.COUNTERS, {"enquiryNumber": highest_number}, merge=True
        )
        logger.info("enquiry_counter_reset", enquiry_number=highest_number)
