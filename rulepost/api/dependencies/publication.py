"""Service dependencies for the publication routes.

Thin wrappers over the bootstrap getters so routes can be overridden with
`app.dependency_overrides` in tests.
"""

from rulepost.application.ports.time_authority import TimeAuthorityProtocol
from rulepost.application.services.draft_lookup_service import DraftLookupService
from rulepost.application.services.enquiry_lifecycle_service import (
    EnquiryLifecycleService,
)
from rulepost.application.services.post_deletion_service import PostDeletionService
from rulepost.application.services.post_submission_service import (
    PostSubmissionService,
)
from rulepost.bootstrap import publication
from rulepost.domain.services.working_day_calendar import WorkingDayCalendar


def get_post_submission_service() -> PostSubmissionService:
    return publication.get_post_submission_service()


def get_post_deletion_service() -> PostDeletionService:
    return publication.get_post_deletion_service()


def get_draft_lookup_service() -> DraftLookupService:
    return publication.get_draft_lookup_service()


def get_enquiry_lifecycle_service() -> EnquiryLifecycleService:
    return publication.get_enquiry_lifecycle_service()


def get_calendar() -> WorkingDayCalendar:
    return publication.get_calendar()


def get_time_authority() -> TimeAuthorityProtocol:
    return publication.get_time_authority()
