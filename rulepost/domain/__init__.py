"""
Domain layer - Pure business logic for Rule Post.

This layer contains:
- The enquiry stage machine
- Posts, attachments, draft markers and document addressing
- The working day calendar and stage clock
- Domain exceptions

CRITICAL: This layer must NOT import from application, infrastructure, or api.
Only stdlib and typing imports are allowed.
"""

from rulepost.domain.exceptions import RulePostError
from rulepost.domain.models import Enquiry, EnquiryStage

__all__: list[str] = [
    "Enquiry",
    "EnquiryStage",
    "RulePostError",
]
