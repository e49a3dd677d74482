"""Domain models for Rule Post.

Immutable value objects for enquiries, posts and publish outcomes.
"""

from rulepost.domain.models.enquiry import (
    COMMITTEE_PUBLISHABLE_STAGES,
    Enquiry,
    EnquiryStage,
)
from rulepost.domain.models.post import (
    RC_TEAM,
    Caller,
    DraftMarker,
    FinalisedAttachment,
    PostAuthor,
    PostSubmission,
    PostType,
    SubmissionResult,
    TempAttachment,
)
from rulepost.domain.models.publish_event import (
    CommentGroup,
    PublishDigest,
    PublishEvent,
)
from rulepost.domain.models.publish_result import (
    BatchPublishSummary,
    PublishFailReason,
    PublishResult,
)

__all__: list[str] = [
    "BatchPublishSummary",
    "COMMITTEE_PUBLISHABLE_STAGES",
    "Caller",
    "CommentGroup",
    "DraftMarker",
    "Enquiry",
    "EnquiryStage",
    "FinalisedAttachment",
    "PostAuthor",
    "PostSubmission",
    "PostType",
    "PublishDigest",
    "PublishEvent",
    "PublishFailReason",
    "PublishResult",
    "RC_TEAM",
    "SubmissionResult",
    "TempAttachment",
]
