"""API dependencies for dependency injection."""

from rulepost.api.dependencies.caller import get_caller
from rulepost.api.dependencies.publication import (
    get_draft_lookup_service,
    get_enquiry_lifecycle_service,
    get_post_deletion_service,
    get_post_submission_service,
)

__all__: list[str] = [
    "get_caller",
    "get_draft_lookup_service",
    "get_enquiry_lifecycle_service",
    "get_post_deletion_service",
    "get_post_submission_service",
]
