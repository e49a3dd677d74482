"""Post submission and draft models.

Post types and parent counts are checked by the submission service so the
caller gets an invalid-argument problem instead of a schema error.
"""

from datetime import datetime
from typing import Any

from pydantic import BaseModel, Field

from rulepost.domain.models.post import DraftMarker, SubmissionResult


class AttachmentModel(BaseModel):
    """An attachment already uploaded to the caller's temporary folder."""

    name: str = Field(..., min_length=1)
    storage_path: str = Field(..., min_length=1)
    size: int | None = Field(default=None, ge=0)
    content_type: str | None = None


class SubmitPostRequest(BaseModel):
    """Request body for POST /v1/posts.

    Attributes:
        post_type: "enquiry", "response" or "comment".
        title: Enquiry title or optional Rules Committee response title.
        post_text: Body text.
        parent_ids: [] for an enquiry, [enquiry] for a response,
            [enquiry, response] for a comment.
        attachments: Uploaded files to attach (not allowed on comments).
        closes_enquiry: Rules Committee only, the response closes the enquiry.
        conclusion: Closing statement when closes_enquiry is set.
    """

    post_type: str
    title: str = ""
    post_text: str = ""
    parent_ids: list[str] = Field(default_factory=list)
    attachments: list[AttachmentModel] = Field(default_factory=list)
    closes_enquiry: bool = False
    conclusion: str | None = None

    def to_payload(self) -> dict[str, Any]:
        """Raw submission payload in stored-document field names."""
        payload: dict[str, Any] = {
            "postType": self.post_type,
            "title": self.title,
            "postText": self.post_text,
            "parentIds": list(self.parent_ids),
            "attachments": [
                {
                    "name": attachment.name,
                    "storagePath": attachment.storage_path,
                    "size": attachment.size,
                    "contentType": attachment.content_type,
                }
                for attachment in self.attachments
            ],
            "closesEnquiry": self.closes_enquiry,
        }
        if self.conclusion is not None:
            payload["conclusion"] = self.conclusion
        return payload


class SubmitPostResponse(BaseModel):
    post_id: str
    path: str
    post_type: str
    enquiry_number: int | None = None

    @classmethod
    def from_result(cls, result: SubmissionResult) -> "SubmitPostResponse":
        return cls(
            post_id=result.post_id,
            path=result.post_path,
            post_type=result.post_type.value,
            enquiry_number=result.enquiry_number,
        )


class DraftResponse(BaseModel):
    """One unpublished post of the caller's team."""

    post_id: str
    post_type: str
    parent_ids: list[str]
    author_uid: str
    created_at: datetime | None = None

    @classmethod
    def from_marker(cls, marker: DraftMarker) -> "DraftResponse":
        return cls(
            post_id=marker.post_id,
            post_type=marker.post_type.value,
            parent_ids=list(marker.parent_ids),
            author_uid=marker.author_uid,
            created_at=marker.created_at,
        )


class DraftExistsResponse(BaseModel):
    has_drafts: bool
