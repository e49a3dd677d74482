"""Publish events and the digest built from them."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

from rulepost.domain.models.post import PostType


@dataclass(frozen=True)
class PublishEvent:
    """Record of one post becoming visible, queued for the digest.

    Attributes:
        kind: Kind of post published.
        enquiry_id: Enquiry the post belongs to (or is).
        enquiry_title: Title at publish time.
        enquiry_number: Enquiry number.
        published_at: When the post was published.
        response_id: Response id for responses and comments.
        comment_id: Comment id for comments.
        round_number: Round of the response.
        response_number: Number of the response.
        comment_number: Number of the comment.
        processed: Whether a digest already covered the event.
    """

    kind: PostType
    enquiry_id: str
    enquiry_title: str
    enquiry_number: int
    published_at: datetime
    response_id: str | None = None
    comment_id: str | None = None
    round_number: int | None = None
    response_number: int | None = None
    comment_number: int | None = None
    processed: bool = False

    @property
    def post_id(self) -> str:
        if self.kind is PostType.COMMENT and self.comment_id:
            return self.comment_id
        if self.kind is PostType.RESPONSE and self.response_id:
            return self.response_id
        return self.enquiry_id

    def to_document(self) -> dict[str, Any]:
        document: dict[str, Any] = {
            "kind": self.kind.value,
            "enquiryId": self.enquiry_id,
            "enquiryTitle": self.enquiry_title,
            "enquiryNumber": self.enquiry_number,
            "publishedAt": self.published_at,
            "processed": self.processed,
        }
        optional = {
            "responseId": self.response_id,
            "commentId": self.comment_id,
            "roundNumber": self.round_number,
            "responseNumber": self.response_number,
            "commentNumber": self.comment_number,
        }
        document.update({key: value for key, value in optional.items() if value is not None})
        return document

    @classmethod
    def from_document(cls, data: dict[str, Any]) -> PublishEvent:
        return cls(
            kind=PostType(data["kind"]),
            enquiry_id=str(data["enquiryId"]),
            enquiry_title=str(data.get("enquiryTitle") or "(Untitled enquiry)"),
            enquiry_number=int(data.get("enquiryNumber") or 0),
            published_at=data["publishedAt"],
            response_id=data.get("responseId"),
            comment_id=data.get("commentId"),
            round_number=data.get("roundNumber"),
            response_number=data.get("responseNumber"),
            comment_number=data.get("commentNumber"),
            processed=data.get("processed") is True,
        )


@dataclass(frozen=True)
class CommentGroup:
    """Comments published under one response."""

    enquiry_id: str
    enquiry_number: int
    enquiry_title: str
    response_id: str
    round_number: int | None
    response_number: int | None
    count: int


@dataclass(frozen=True)
class PublishDigest:
    """Grouped summary of newly published posts."""

    enquiries: tuple[PublishEvent, ...] = ()
    responses: tuple[PublishEvent, ...] = ()
    comments: tuple[CommentGroup, ...] = field(default=())

    @property
    def is_empty(self) -> bool:
        return not (self.enquiries or self.responses or self.comments)

    @classmethod
    def from_events(cls, events: list[PublishEvent]) -> PublishDigest:
        """Group events by kind; comments are counted per response."""
        enquiries = [e for e in events if e.kind is PostType.ENQUIRY]
        responses = [e for e in events if e.kind is PostType.RESPONSE]

        grouped: dict[tuple[str, str], list[PublishEvent]] = {}
        for event in events:
            if event.kind is PostType.COMMENT and event.response_id:
                grouped.setdefault((event.enquiry_id, event.response_id), []).append(event)

        comments = tuple(
            CommentGroup(
                enquiry_id=enquiry_id,
                enquiry_number=group[0].enquiry_number,
                enquiry_title=group[0].enquiry_title,
                response_id=response_id,
                round_number=group[0].round_number,
                response_number=group[0].response_number,
                count=len(group),
            )
            for (enquiry_id, response_id), group in grouped.items()
        )
        return cls(enquiries=tuple(enquiries), responses=tuple(responses), comments=comments)
