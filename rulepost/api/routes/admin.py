"""Enquiry lifecycle routes.

Restricted to admins and the Rules Committee; the services enforce the
role checks so the same rules hold for every entry point.
"""

from fastapi import APIRouter, Depends

from rulepost.api.dependencies.caller import get_caller
from rulepost.api.dependencies.publication import (
    get_enquiry_lifecycle_service,
    get_post_deletion_service,
)
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
from rulepost.application.services.enquiry_lifecycle_service import (
    EnquiryLifecycleService,
)
from rulepost.application.services.post_deletion_service import PostDeletionService
from rulepost.domain.models.post import Caller

router = APIRouter(prefix="/v1/admin", tags=["admin"])

_ERRORS = {
    status: {"model": ProblemDetailsResponse}
    for status in (400, 401, 403, 404, 409, 412)
}


@router.post(
    "/enquiries/{enquiry_id}/instant-publish",
    response_model=InstantPublishResponse,
    responses=_ERRORS,
)
async def instant_publish(
    enquiry_id: str,
    request: InstantPublishRequest,
    caller: Caller = Depends(get_caller),
    service: EnquiryLifecycleService = Depends(get_enquiry_lifecycle_service),
) -> InstantPublishResponse:
    """Publish pending responses without waiting for the stage deadline."""
    result = await service.instant_publish(caller, enquiry_id, request.rc_response)
    return InstantPublishResponse.from_result(result)


@router.post(
    "/enquiries/{enquiry_id}/close",
    response_model=EnquiryStateResponse,
    responses=_ERRORS,
)
async def close_enquiry(
    enquiry_id: str,
    request: CloseEnquiryRequest,
    caller: Caller = Depends(get_caller),
    service: EnquiryLifecycleService = Depends(get_enquiry_lifecycle_service),
) -> EnquiryStateResponse:
    enquiry = await service.close_enquiry(caller, enquiry_id, request.conclusion)
    return EnquiryStateResponse.from_enquiry(enquiry)


@router.post(
    "/enquiries/{enquiry_id}/stage-length",
    response_model=EnquiryStateResponse,
    responses=_ERRORS,
)
async def change_stage_length(
    enquiry_id: str,
    request: ChangeStageLengthRequest,
    caller: Caller = Depends(get_caller),
    service: EnquiryLifecycleService = Depends(get_enquiry_lifecycle_service),
) -> EnquiryStateResponse:
    """Change the stage length and shift the current deadline with it."""
    enquiry = await service.change_stage_length(
        caller, enquiry_id, request.new_stage_length
    )
    return EnquiryStateResponse.from_enquiry(enquiry)


@router.delete(
    "/enquiries/{enquiry_id}",
    response_model=DeletionResponse,
    responses=_ERRORS,
)
async def delete_enquiry(
    enquiry_id: str,
    caller: Caller = Depends(get_caller),
    service: PostDeletionService = Depends(get_post_deletion_service),
) -> DeletionResponse:
    """Delete an enquiry with everything under it, published or not."""
    result = await service.delete_enquiry(caller, enquiry_id)
    return DeletionResponse.from_result(result)


@router.delete(
    "/teams/{team}/drafts",
    response_model=WithdrawDraftsResponse,
    responses=_ERRORS,
)
async def withdraw_team_drafts(
    team: str,
    caller: Caller = Depends(get_caller),
    service: PostDeletionService = Depends(get_post_deletion_service),
) -> WithdrawDraftsResponse:
    withdrawn = await service.withdraw_team_drafts(caller, team)
    return WithdrawDraftsResponse(team=team, withdrawn=withdrawn)
