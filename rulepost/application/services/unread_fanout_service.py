"""Unread marker fan-out.

Writes one `user_data/{uid}/unreadPosts/{postId}` marker per targeted user
through the bulk writer. Markers are merge-written, so repeated fan-out for
the same post is idempotent, and a post that is itself unread keeps
`isUnread` when a child later marks it with `hasUnreadChild`.

Fan-out is best-effort: write failures are reported and logged by the
caller, never raised into the publish path.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from structlog import get_logger

from rulepost.application.ports.document_store import (
    SERVER_TIMESTAMP,
    BulkWriterProtocol,
    DocumentStoreProtocol,
    Query,
)
from rulepost.domain.models import document_paths
from rulepost.domain.models.post import PostType

logger = get_logger(__name__)


@dataclass(frozen=True)
class UnreadAudience:
    """Who receives an unread marker.

    With neither field set every user is targeted. `uid` wins over `team`.
    """

    team: str | None = None
    uid: str | None = None


ALL_USERS = UnreadAudience()


def build_unread_record(
    post_type: PostType,
    post_alias: str,
    is_unread: bool,
    post_fields: dict[str, str] | None = None,
) -> dict[str, Any]:
    """Build the unread marker payload.

    Args:
        post_type: Kind of post the marker points at.
        post_alias: Human readable label.
        is_unread: True when the post itself is new, False when it is
            marked because of a new descendant.
        post_fields: parentId / grandparentId for responses and comments.
    """
    record: dict[str, Any] = {
        "postType": post_type.value,
        "postAlias": post_alias,
        "createdAt": SERVER_TIMESTAMP,
    }
    if is_unread:
        record["isUnread"] = True
    else:
        record["hasUnreadChild"] = True
    record.update(post_fields or {})
    return record


class UnreadFanoutService:
    """Creates and removes per-user unread markers."""

    def __init__(self, store: DocumentStoreProtocol) -> None:
        self._store = store

    async def _target_uids(self, audience: UnreadAudience) -> list[str]:
        uid = (audience.uid or "").strip()
        if uid:
            snapshot = await self._store.get(document_paths.user_path(uid))
            if not snapshot.exists:
                logger.warning("unread_target_user_missing", uid=uid)
                return []
            return [uid]

        query = Query(document_paths.USER_DATA)
        team = (audience.team or "").strip()
        if team:
            query = query.where("team", "==", team)
        return [snapshot.id for snapshot in await self._store.query(query)]

    async def queue_unread(
        self,
        writer: BulkWriterProtocol,
        post_type: PostType,
        post_alias: str,
        post_id: str,
        *,
        is_unread: bool,
        post_fields: dict[str, str] | None = None,
        audience: UnreadAudience = ALL_USERS,
    ) -> int:
        """Queue unread markers for every targeted user.

        Returns:
            Number of markers queued.
        """
        payload = build_unread_record(post_type, post_alias, is_unread, post_fields)
        uids = await self._target_uids(audience)
        for uid in uids:
            writer.set(document_paths.unread_path(uid, post_id), payload, merge=True)
        logger.debug(
            "unread_markers_queued",
            post_id=post_id,
            post_type=post_type.value,
            user_count=len(uids),
        )
        return len(uids)

    async def remove_unread(self, post_id: str, post_type: PostType) -> int:
        """Remove a post's unread markers from every user.

        Ancestor markers that only existed because of this post
        (hasUnreadChild with no other unread children, not unread
        themselves) are removed too.

        Returns:
            Number of markers removed.
        """
        removed = 0
        for uid in await self._target_uids(ALL_USERS):
            marker_path = document_paths.unread_path(uid, post_id)
            marker = await self._store.get(marker_path)
            if not marker.exists:
                continue
            await self._store.delete(marker_path)
            removed += 1

            parent_id = marker.get("parentId")
            if post_type is PostType.ENQUIRY or not parent_id:
                continue
            removed += await self._prune_ancestor(uid, parent_id, child_type=post_type)
        return removed

    async def _prune_ancestor(self, uid: str, ancestor_id: str, child_type: PostType) -> int:
        ancestor_path = document_paths.unread_path(uid, ancestor_id)
        ancestor = await self._store.get(ancestor_path)
        if not ancestor.exists or ancestor.get("isUnread") is True:
            return 0

        siblings = await self._store.count(
            Query(document_paths.unread_collection(uid))
            .where("postType", "==", child_type.value)
            .where("parentId", "==", ancestor_id)
        )
        if siblings > 0:
            return 0

        await self._store.delete(ancestor_path)
        removed = 1
        grandparent_id = ancestor.get("parentId")
        if child_type is PostType.COMMENT and grandparent_id:
            removed += await self._prune_ancestor(uid, grandparent_id, PostType.RESPONSE)
        return removed
