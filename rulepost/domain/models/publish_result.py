"""Structured outcomes of publish operations.

Expected empty outcomes are values, not exceptions, so a batch can move on
to the next enquiry.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum


class PublishFailReason(str, Enum):
    """Why a publish produced no change."""

    NO_RESPONSE = "no-response"
    MULTIPLE_RC_RESPONSES = "multiple-rc-responses"
    NO_ENQUIRY_MATCH = "no-enquiry-match"
    STAGE_NOT_ENDED = "stage-not-ended"


@dataclass(frozen=True)
class PublishResult:
    """Outcome of publishing one enquiry's pending posts.

    Attributes:
        success: Whether anything was published.
        published_count: Number of posts published.
        fail_reason: Reason when nothing was published.
        published_ids: Ids of the posts published, in numbering order.
    """

    success: bool
    published_count: int = 0
    fail_reason: PublishFailReason | None = None
    published_ids: tuple[str, ...] = field(default=())

    @classmethod
    def published(cls, post_ids: list[str] | tuple[str, ...]) -> PublishResult:
        return cls(success=True, published_count=len(post_ids), published_ids=tuple(post_ids))

    @classmethod
    def failed(cls, reason: PublishFailReason) -> PublishResult:
        return cls(success=False, fail_reason=reason)


@dataclass(frozen=True)
class BatchPublishSummary:
    """Counts reported by one batch phase."""

    phase: str
    processed: int = 0
    published: int = 0
    failed: int = 0
    skipped: bool = False
