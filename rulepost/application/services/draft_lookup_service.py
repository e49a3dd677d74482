"""Lookups over the caller team's own draft markers."""

from __future__ import annotations

from rulepost.application.ports.document_store import DocumentStoreProtocol, Query
from rulepost.domain.errors import FailedPreconditionError, InvalidArgumentError
from rulepost.domain.models import document_paths
from rulepost.domain.models.post import Caller, DraftMarker, PostType


def _team_of(caller: Caller) -> str:
    if not caller.team:
        raise FailedPreconditionError("No team assigned to this user.")
    return caller.team


class DraftLookupService:
    def __init__(self, store: DocumentStoreProtocol) -> None:
        self._store = store

    async def find_my_drafts(
        self,
        caller: Caller,
        post_type: PostType,
        parent_ids: tuple[str, ...] = (),
    ) -> list[DraftMarker]:
        """Draft markers of the caller's team for one post type and parent chain.

        Results are ordered by creation time.
        """
        team = _team_of(caller)
        if len(parent_ids) != post_type.parent_count:
            raise InvalidArgumentError(
                f"A {post_type.value} needs {post_type.parent_count} parent ids."
            )
        snapshots = await self._store.query(
            Query(document_paths.drafts_collection(team))
            .where("postType", "==", post_type.value)
            .order("createdAt")
        )
        markers = [DraftMarker.from_document(s.id, s.data or {}) for s in snapshots]
        return [marker for marker in markers if marker.parent_ids == parent_ids]

    async def has_drafts(self, caller: Caller) -> bool:
        """Whether the caller's team has any unpublished post."""
        team = _team_of(caller)
        return await self._store.count(Query(document_paths.drafts_collection(team)).take(1)) > 0
