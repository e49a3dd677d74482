"""Post submission and deletion routes.

Posts are always created unpublished; the publication worker makes them
visible at the next trigger that finds them due. Deleting is only possible
while a post is still unpublished.
"""

from fastapi import APIRouter, Depends, Query

from rulepost.api.dependencies.caller import get_caller
from rulepost.api.dependencies.publication import (
    get_post_deletion_service,
    get_post_submission_service,
)
from rulepost.api.models.admin import DeletionResponse
from rulepost.api.models.errors import ProblemDetailsResponse
from rulepost.api.models.posts import SubmitPostRequest, SubmitPostResponse
from rulepost.api.routes._params import parse_post_type
from rulepost.application.services.post_deletion_service import PostDeletionService
from rulepost.application.services.post_submission_service import (
    PostSubmissionService,
)
from rulepost.domain.models.post import Caller

router = APIRouter(prefix="/v1/posts", tags=["posts"])

_ERRORS = {
    status: {"model": ProblemDetailsResponse}
    for status in (400, 401, 403, 404, 409, 412)
}


@router.post(
    "",
    response_model=SubmitPostResponse,
    status_code=201,
    responses=_ERRORS,
    summary="Submit an enquiry, response or comment",
)
async def submit_post(
    request: SubmitPostRequest,
    caller: Caller = Depends(get_caller),
    service: PostSubmissionService = Depends(get_post_submission_service),
) -> SubmitPostResponse:
    result = await service.submit(caller, request.to_payload())
    return SubmitPostResponse.from_result(result)


@router.delete(
    "/{post_type}/{post_id}",
    response_model=DeletionResponse,
    responses=_ERRORS,
    summary="Delete an unpublished post of the caller's team",
)
async def delete_post(
    post_type: str,
    post_id: str,
    parent_ids: list[str] = Query(default=[]),
    caller: Caller = Depends(get_caller),
    service: PostDeletionService = Depends(get_post_deletion_service),
) -> DeletionResponse:
    result = await service.delete_post(
        caller, parse_post_type(post_type), post_id, tuple(parent_ids)
    )
    return DeletionResponse.from_result(result)
