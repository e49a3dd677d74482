"""Attachment validation, placement and publication.

Lifecycle of an attachment:
1. The client uploads to `{postType}s_temp/{uid}/...`.
2. On submission the temp object is checked (ownership, size, type) and,
   once the post transaction commits, moved under the post's folder.
3. When the post publishes, each attachment gets a public tokenised URL.

Step 3 is best-effort: a tokenisation failure keeps the attachment entry
unchanged and is logged, so the publish state change is never blocked.
"""

from __future__ import annotations

import re

from structlog import get_logger

from rulepost.application.ports.attachment_store import AttachmentStoreProtocol
from rulepost.config.schedule_config import (
    ALLOWED_ATTACHMENT_TYPES,
    MAX_BYTES_PER_FILE,
    MAX_TOTAL_BYTES,
)
from rulepost.domain.errors import (
    FailedPreconditionError,
    NotFoundError,
    PermissionDeniedError,
)
from rulepost.domain.models.post import FinalisedAttachment, PostType, TempAttachment

logger = get_logger(__name__)

_UNSAFE_CHARS = re.compile(r"[^\w.\-+]")
MAX_NAME_LENGTH = 200


def sanitise_name(name: str) -> str:
    """Replace unsafe filename characters, keeping the extension."""
    return _UNSAFE_CHARS.sub("_", str(name))[:MAX_NAME_LENGTH]


class AttachmentPublicationService:
    """Validates, moves and publishes post attachments."""

    def __init__(
        self,
        attachment_store: AttachmentStoreProtocol,
        *,
        allowed_types: frozenset[str] = ALLOWED_ATTACHMENT_TYPES,
        max_bytes_per_file: int = MAX_BYTES_PER_FILE,
        max_total_bytes: int = MAX_TOTAL_BYTES,
    ) -> None:
        self._store = attachment_store
        self._allowed_types = frozenset(t.lower() for t in allowed_types)
        self._max_bytes_per_file = max_bytes_per_file
        self._max_total_bytes = max_total_bytes

    async def _reject(self, path: str, message: str) -> None:
        await self._store.delete(path)
        raise FailedPreconditionError(message)

    async def validate(
        self,
        post_type: PostType,
        author_uid: str,
        post_folder: str,
        incoming: tuple[TempAttachment, ...],
    ) -> list[tuple[TempAttachment, FinalisedAttachment]]:
        """Check temporary uploads before the post transaction runs.

        Oversized or unsupported uploads are deleted before failing.

        Args:
            post_type: Kind of post the attachments belong to.
            author_uid: Caller uid; temp paths must be scoped to it.
            post_folder: Final folder under which attachments will live.
            incoming: Temporary attachments from the request.

        Returns:
            Pairs of (temporary upload, intended final attachment).

        Raises:
            PermissionDeniedError: A temp path is not scoped to the caller.
            NotFoundError: A temp object does not exist.
            FailedPreconditionError: Size or type limits are exceeded.
        """
        if post_type is PostType.COMMENT or not incoming:
            return []

        expected_prefix = f"{post_type.temp_root}/{author_uid}/"
        planned: list[tuple[TempAttachment, FinalisedAttachment]] = []
        used_names: set[str] = set()
        total = 0

        for attachment in incoming:
            name = sanitise_name(attachment.name.strip())
            temp_path = attachment.storage_path.strip()
            if not name or not temp_path:
                continue
            if not temp_path.startswith(expected_prefix):
                raise PermissionDeniedError("Invalid attachment path.")

            metadata = await self._store.get_metadata(temp_path)
            if metadata is None:
                raise NotFoundError(f"Temp attachment not found: {temp_path}")

            size = metadata.size
            content_type = metadata.content_type or attachment.content_type or ""
            if size > self._max_bytes_per_file:
                await self._reject(temp_path, "Attachment too large.")
            if content_type.lower() not in self._allowed_types:
                await self._reject(temp_path, "Unsupported attachment type.")

            total += size
            if total > self._max_total_bytes:
                raise FailedPreconditionError("Total attachment size too large.")

            final_name = self._unique_name(name, used_names)
            planned.append(
                (
                    attachment,
                    FinalisedAttachment(
                        name=final_name,
                        path=f"{post_folder}/{final_name}",
                        size=size,
                        content_type=content_type,
                    ),
                )
            )
        return planned

    @staticmethod
    def _unique_name(name: str, used: set[str]) -> str:
        stem, dot, ext = name.rpartition(".")
        if not dot:
            stem, ext = name, ""
        candidate = name
        counter = 0
        while candidate in used:
            counter += 1
            candidate = f"{stem}-{counter}.{ext}" if ext else f"{stem}-{counter}"
        used.add(candidate)
        return candidate

    async def move_into_place(
        self, planned: list[tuple[TempAttachment, FinalisedAttachment]]
    ) -> list[FinalisedAttachment]:
        """Move validated uploads to their final keys.

        On failure, objects already moved are deleted before re-raising.
        """
        moved: list[FinalisedAttachment] = []
        try:
            for temp, final in planned:
                await self._store.move(temp.storage_path, final.path)
                moved.append(final)
        except Exception:
            for final in moved:
                await self._store.delete(final.path)
            raise
        return moved

    async def publish(self, attachments: list[dict]) -> list[dict]:
        """Issue public URLs for stored attachment entries.

        Entries without a path, or whose tokenisation fails, are returned
        unchanged.
        """
        published: list[dict] = []
        for entry in attachments:
            attachment = FinalisedAttachment.from_document(entry)
            if not attachment.path:
                published.append(entry)
                continue
            try:
                link = await self._store.make_public(attachment.path)
            except Exception as exc:
                logger.warning(
                    "attachment_tokenise_failed",
                    path=attachment.path,
                    error=str(exc),
                )
                published.append(entry)
                continue
            published.append({**entry, "url": link.url, "token": link.token})
        return published

    async def delete_folder(self, folder: str) -> int:
        """Delete every attachment stored under a post folder."""
        return await self._store.delete_prefix(folder)
