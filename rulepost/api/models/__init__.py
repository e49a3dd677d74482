"""Request/response models for the Rule Post API."""

from rulepost.api.models.admin import (
    ChangeStageLengthRequest,
    CloseEnquiryRequest,
    DeletionResponse,
    EnquiryStateResponse,
    InstantPublishRequest,
    InstantPublishResponse,
    WithdrawDraftsResponse,
)
from rulepost.api.models.errors import ProblemDetailsResponse
from rulepost.api.models.health import HealthResponse
from rulepost.api.models.posts import (
    AttachmentModel,
    DraftExistsResponse,
    DraftResponse,
    SubmitPostRequest,
    SubmitPostResponse,
)

__all__: list[str] = [
    "AttachmentModel",
    "ChangeStageLengthRequest",
    "CloseEnquiryRequest",
    "DeletionResponse",
    "DraftExistsResponse",
    "DraftResponse",
    "EnquiryStateResponse",
    "HealthResponse",
    "InstantPublishRequest",
    "InstantPublishResponse",
    "ProblemDetailsResponse",
    "SubmitPostRequest",
    "SubmitPostResponse",
    "WithdrawDraftsResponse",
]
