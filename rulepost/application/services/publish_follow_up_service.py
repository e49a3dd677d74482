"""Best-effort follow-up after a publish transaction commits.

Once the stage change and numbering are durable, three things happen
outside the transaction:

1. Attachments of each published post get public tokenised URLs
2. Unread markers are fanned out (the post is unread, its ancestors
   carry hasUnreadChild)
3. A publish event is queued for the digest

Every failure here is logged as a warning. None of it can roll back or
block the state transition that already succeeded.
"""

from __future__ import annotations

from dataclasses import dataclass, field

from structlog import get_logger

from rulepost.application.ports.document_store import (
    BulkWriteReport,
    BulkWriterProtocol,
    DocumentStoreProtocol,
)
from rulepost.application.ports.time_authority import TimeAuthorityProtocol
from rulepost.application.services.attachment_publication_service import (
    AttachmentPublicationService,
)
from rulepost.application.services.unread_fanout_service import (
    ALL_USERS,
    UnreadFanoutService,
)
from rulepost.domain.models import document_paths
from rulepost.domain.models.enquiry import Enquiry
from rulepost.domain.models.post import PostType
from rulepost.domain.models.publish_event import PublishEvent

logger = get_logger(__name__)


@dataclass(frozen=True)
class PublishedPost:
    """A post that has just become visible.

    Attributes:
        post_type: Kind of post.
        post_id: Post id.
        path: Document path of the post.
        enquiry: Enquiry state after the publish.
        response_id: Parent response of a comment.
        number: Response or comment number assigned at publish.
        round_number: Round the response belongs to.
        response_number: Number of the parent response (comments only).
        attachments: Stored attachment entries of the post.
    """

    post_type: PostType
    post_id: str
    path: str
    enquiry: Enquiry
    response_id: str | None = None
    number: int | None = None
    round_number: int | None = None
    response_number: int | None = None
    attachments: list[dict] = field(default_factory=list)

    @property
    def alias(self) -> str:
        if self.post_type is PostType.ENQUIRY:
            return self.enquiry.alias
        if self.post_type is PostType.RESPONSE:
            return f"{self.enquiry.alias} - Response {self.round_number}.{self.number}"
        return (
            f"{self.enquiry.alias} - Response {self.round_number}.{self.response_number}"
            f" - Comment {self.number}"
        )


class PublishFollowUpService:
    """Runs attachment, unread and publish-event follow-up for published posts."""

    def __init__(
        self,
        store: DocumentStoreProtocol,
        attachments: AttachmentPublicationService,
        unread: UnreadFanoutService,
        time_authority: TimeAuthorityProtocol,
    ) -> None:
        self._store = store
        self._attachments = attachments
        self._unread = unread
        self._time = time_authority

    async def run(self, posts: list[PublishedPost]) -> BulkWriteReport:
        """Apply follow-up for every post, returning the bulk write outcome."""
        if not posts:
            return BulkWriteReport()

        writer = self._store.bulk_writer()
        for post in posts:
            try:
                await self._publish_attachments(post)
            except Exception as exc:
                logger.warning(
                    "attachment_publication_failed",
                    post_id=post.post_id,
                    post_type=post.post_type.value,
                    error=str(exc),
                )
            try:
                await self._queue_unread(writer, post)
            except Exception as exc:
                logger.warning(
                    "unread_fanout_failed",
                    post_id=post.post_id,
                    post_type=post.post_type.value,
                    error=str(exc),
                )
            self._queue_event(writer, post)

        report = await writer.close()
        if report.failed:
            logger.warning(
                "publish_follow_up_partial_failure",
                attempted=report.attempted,
                failed=report.failed,
                paths=[failure.path for failure in report.failures],
            )
        return report

    async def _publish_attachments(self, post: PublishedPost) -> None:
        if not post.attachments:
            return
        published = await self._attachments.publish(post.attachments)
        if published != post.attachments:
            await self._store.update(post.path, {"attachments": published})

    async def _queue_unread(self, writer: BulkWriterProtocol, post: PublishedPost) -> None:
        enquiry_id = post.enquiry.enquiry_id
        if post.post_type is PostType.ENQUIRY:
            await self._unread.queue_unread(
                writer,
                PostType.ENQUIRY,
                post.alias,
                post.post_id,
                is_unread=True,
                audience=ALL_USERS,
            )
            return

        await self._unread.queue_unread(
            writer,
            PostType.ENQUIRY,
            post.enquiry.alias,
            enquiry_id,
            is_unread=False,
        )
        if post.post_type is PostType.RESPONSE:
            await self._unread.queue_unread(
                writer,
                PostType.RESPONSE,
                post.alias,
                post.post_id,
                is_unread=True,
                post_fields={"parentId": enquiry_id},
            )
            return

        response_id = post.response_id or ""
        await self._unread.queue_unread(
            writer,
            PostType.RESPONSE,
            f"{post.enquiry.alias} - Response {post.round_number}.{post.response_number}",
            response_id,
            is_unread=False,
            post_fields={"parentId": enquiry_id},
        )
        await self._unread.queue_unread(
            writer,
            PostType.COMMENT,
            post.alias,
            post.post_id,
            is_unread=True,
            post_fields={"parentId": response_id, "grandparentId": enquiry_id},
        )

    def _queue_event(self, writer: BulkWriterProtocol, post: PublishedPost) -> None:
        enquiry = post.enquiry
        event = PublishEvent(
            kind=post.post_type,
            enquiry_id=enquiry.enquiry_id,
            enquiry_title=enquiry.title,
            enquiry_number=enquiry.enquiry_number,
            published_at=self._time.now(),
            response_id=(
                post.post_id if post.post_type is PostType.RESPONSE else post.response_id
            ),
            comment_id=post.post_id if post.post_type is PostType.COMMENT else None,
            round_number=post.round_number,
            response_number=(
                post.number if post.post_type is PostType.RESPONSE else post.response_number
            ),
            comment_number=post.number if post.post_type is PostType.COMMENT else None,
        )
        writer.set(
            document_paths.publish_event_path(self._store.new_id()),
            event.to_document(),
        )
