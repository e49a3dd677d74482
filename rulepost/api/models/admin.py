"""Lifecycle and administration models."""

from datetime import datetime

from pydantic import BaseModel

from rulepost.application.services.post_deletion_service import DeletionResult
from rulepost.domain.models.enquiry import Enquiry
from rulepost.domain.models.publish_result import PublishResult


class InstantPublishRequest(BaseModel):
    """Publish pending responses now instead of waiting for the deadline.

    Attributes:
        rc_response: Publish the Rules Committee response of the next round
            rather than the team responses of the current one.
    """

    rc_response: bool = False


class InstantPublishResponse(BaseModel):
    success: bool
    num_published: int
    reason: str | None = None

    @classmethod
    def from_result(cls, result: PublishResult) -> "InstantPublishResponse":
        return cls(
            success=result.success,
            num_published=result.published_count,
            reason=result.fail_reason.value if result.fail_reason else None,
        )


class CloseEnquiryRequest(BaseModel):
    conclusion: str | None = None


class ChangeStageLengthRequest(BaseModel):
    """New stage length in working days.

    Range checks are left to the lifecycle service.
    """

    new_stage_length: int


class EnquiryStateResponse(BaseModel):
    """Stage state of an enquiry after a lifecycle action."""

    enquiry_id: str
    enquiry_number: int
    stage: str
    is_open: bool
    round_number: int
    stage_length: int
    stage_ends: datetime | None = None
    conclusion: str | None = None

    @classmethod
    def from_enquiry(cls, enquiry: Enquiry) -> "EnquiryStateResponse":
        return cls(
            enquiry_id=enquiry.enquiry_id,
            enquiry_number=enquiry.enquiry_number,
            stage=enquiry.stage.value,
            is_open=enquiry.is_open,
            round_number=enquiry.round_number,
            stage_length=enquiry.stage_length,
            stage_ends=enquiry.stage_ends,
            conclusion=enquiry.conclusion,
        )


class DeletionResponse(BaseModel):
    post_id: str
    path: str
    deleted_documents: int

    @classmethod
    def from_result(cls, result: DeletionResult) -> "DeletionResponse":
        return cls(
            post_id=result.post_id,
            path=result.path,
            deleted_documents=result.deleted_documents,
        )


class WithdrawDraftsResponse(BaseModel):
    team: str
    withdrawn: int
