"""Application services - Use case orchestration.

Available services:
- ResponsePublisherService / CommentPublisherService: per-enquiry publish
- EnquiryPublisherService, TeamResponsePublisherService,
  CommitteeResponsePublisherService: batch publish phases
- CommentScheduleService: next comment publication slot
- PublishDigestService: digest of newly published posts
- PublicationOrchestratorService: ordered phases per trigger slot
- EnquiryLifecycleService: instant publish, close, stage length
- PostSubmissionService / PostDeletionService / DraftLookupService: drafts
- UnreadFanoutService / AttachmentPublicationService / PublishFollowUpService:
  publish side effects
"""

from rulepost.application.services.attachment_publication_service import (
    AttachmentPublicationService,
    sanitise_name,
)
from rulepost.application.services.comment_publisher_service import (
    CommentPublisherService,
)
from rulepost.application.services.comment_schedule_service import (
    CommentScheduleService,
)
from rulepost.application.services.committee_response_publisher_service import (
    CommitteeResponsePublisherService,
)
from rulepost.application.services.draft_lookup_service import DraftLookupService
from rulepost.application.services.enquiry_lifecycle_service import (
    EnquiryLifecycleService,
)
from rulepost.application.services.enquiry_publisher_service import (
    EnquiryPublisherService,
)
from rulepost.application.services.post_deletion_service import (
    DeletionResult,
    PostDeletionService,
)
from rulepost.application.services.post_submission_service import (
    PostSubmissionService,
)
from rulepost.application.services.post_validation import (
    check_submission_rights,
    coerce_submission,
)
from rulepost.application.services.publication_orchestrator_service import (
    PublicationOrchestratorService,
    PublicationSlot,
    SlotRunResult,
)
from rulepost.application.services.publish_digest_service import (
    DigestRunResult,
    PublishDigestService,
)
from rulepost.application.services.publish_follow_up_service import (
    PublishedPost,
    PublishFollowUpService,
)
from rulepost.application.services.response_publisher_service import (
    ResponsePublisherService,
)
from rulepost.application.services.team_response_publisher_service import (
    TeamResponsePublisherService,
)
from rulepost.application.services.unread_fanout_service import (
    ALL_USERS,
    UnreadAudience,
    UnreadFanoutService,
)

__all__: list[str] = [
    "ALL_USERS",
    "AttachmentPublicationService",
    "CommentPublisherService",
    "CommentScheduleService",
    "CommitteeResponsePublisherService",
    "DeletionResult",
    "DigestRunResult",
    "DraftLookupService",
    "EnquiryLifecycleService",
    "EnquiryPublisherService",
    "PostDeletionService",
    "PostSubmissionService",
    "PublicationOrchestratorService",
    "PublicationSlot",
    "PublishDigestService",
    "PublishFollowUpService",
    "PublishedPost",
    "ResponsePublisherService",
    "SlotRunResult",
    "TeamResponsePublisherService",
    "UnreadAudience",
    "UnreadFanoutService",
    "check_submission_rights",
    "coerce_submission",
    "sanitise_name",
]
