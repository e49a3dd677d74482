"""Posts, authors and attachments."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Any

# Reserved pseudo-team for the Rules Committee
RC_TEAM = "RC"
ADMIN_ROLE = "admin"


class PostType(str, Enum):
    """Kind of post."""

    ENQUIRY = "enquiry"
    RESPONSE = "response"
    COMMENT = "comment"

    @property
    def parent_count(self) -> int:
        """Number of parent ids the post type requires."""
        return {PostType.ENQUIRY: 0, PostType.RESPONSE: 1, PostType.COMMENT: 2}[self]

    @property
    def temp_root(self) -> str:
        """Storage root for attachments uploaded before submission."""
        plural = "enquiries" if self is PostType.ENQUIRY else f"{self.value}s"
        return f"{plural}_temp"


@dataclass(frozen=True)
class Caller:
    """Identity of the user invoking an action.

    Only the role and team are consumed; issuance is handled elsewhere.
    """

    uid: str
    team: str
    role: str | None = None

    @property
    def is_admin(self) -> bool:
        return self.role == ADMIN_ROLE

    @property
    def is_rc(self) -> bool:
        return self.team == RC_TEAM

    @property
    def is_privileged(self) -> bool:
        """Admins and the Rules Committee may drive lifecycle actions."""
        return self.is_admin or self.is_rc


@dataclass(frozen=True)
class TempAttachment:
    """Attachment uploaded to a caller-scoped temporary location."""

    name: str
    storage_path: str
    size: int | None = None
    content_type: str | None = None


@dataclass(frozen=True)
class FinalisedAttachment:
    """Attachment moved under its owning post.

    `url` and `token` are set once the attachment is made public on publish.
    """

    name: str
    path: str
    size: int = 0
    content_type: str = "application/octet-stream"
    url: str | None = None
    token: str | None = None

    def to_document(self) -> dict[str, Any]:
        document: dict[str, Any] = {
            "name": self.name,
            "path": self.path,
            "size": self.size,
            "contentType": self.content_type,
        }
        if self.url is not None:
            document["url"] = self.url
        if self.token is not None:
            document["token"] = self.token
        return document

    @classmethod
    def from_document(cls, data: dict[str, Any]) -> FinalisedAttachment:
        return cls(
            name=str(data.get("name", "")),
            path=str(data.get("path", "")),
            size=int(data.get("size") or 0),
            content_type=str(data.get("contentType") or "application/octet-stream"),
            url=data.get("url"),
            token=data.get("token"),
        )


@dataclass(frozen=True)
class PostSubmission:
    """A validated post submission.

    Attributes:
        post_type: Kind of post.
        title: Title (enquiries only, may be empty).
        post_text: Body text.
        parent_ids: Enquiry id for responses; enquiry and response ids for comments.
        attachments: Temporary attachments to finalise.
        closes_enquiry: Committee responses only; publishing closes the enquiry.
        conclusion: Closing statement stored when a concluding response publishes.
    """

    post_type: PostType
    title: str = ""
    post_text: str = ""
    parent_ids: tuple[str, ...] = ()
    attachments: tuple[TempAttachment, ...] = ()
    closes_enquiry: bool = False
    conclusion: str | None = None

    @property
    def enquiry_id(self) -> str | None:
        return self.parent_ids[0] if self.parent_ids else None

    @property
    def response_id(self) -> str | None:
        return self.parent_ids[1] if len(self.parent_ids) > 1 else None


@dataclass(frozen=True)
class SubmissionResult:
    """Identifiers returned after a successful submission."""

    post_id: str
    post_path: str
    post_type: PostType
    enquiry_number: int | None = None


@dataclass(frozen=True)
class DraftMarker:
    """Per-team index entry pointing at an unpublished post."""

    post_id: str
    post_type: PostType
    parent_ids: tuple[str, ...] = ()
    author_uid: str = ""
    author_team: str = ""
    created_at: datetime | None = None

    def to_document(self) -> dict[str, Any]:
        return {
            "postType": self.post_type.value,
            "parentIds": list(self.parent_ids),
            "authorUid": self.author_uid,
            "authorTeam": self.author_team,
            "createdAt": self.created_at,
        }

    @classmethod
    def from_document(cls, post_id: str, data: dict[str, Any]) -> DraftMarker:
        return cls(
            post_id=post_id,
            post_type=PostType(data["postType"]),
            parent_ids=tuple(str(p) for p in data.get("parentIds") or ()),
            author_uid=str(data.get("authorUid") or ""),
            author_team=str(data.get("authorTeam") or ""),
            created_at=data.get("createdAt"),
        )


@dataclass(frozen=True)
class PostAuthor:
    """Private author record stored beside each post."""

    uid: str
    team: str
    created_at: datetime | None = None

    def to_document(self) -> dict[str, Any]:
        return {"authorUid": self.uid, "authorTeam": self.team, "createdAt": self.created_at}

    @classmethod
    def from_document(cls, data: dict[str, Any]) -> PostAuthor:
        return cls(
            uid=str(data.get("authorUid") or ""),
            team=str(data.get("authorTeam") or ""),
            created_at=data.get("createdAt"),
        )
