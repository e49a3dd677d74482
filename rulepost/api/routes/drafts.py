"""Draft lookup routes for the caller's team."""

from fastapi import APIRouter, Depends, Query

from rulepost.api.dependencies.caller import get_caller
from rulepost.api.dependencies.publication import get_draft_lookup_service
from rulepost.api.models.posts import DraftExistsResponse, DraftResponse
from rulepost.api.routes._params import parse_post_type
from rulepost.application.services.draft_lookup_service import DraftLookupService
from rulepost.domain.models.post import Caller

router = APIRouter(prefix="/v1/drafts", tags=["drafts"])


@router.get("", response_model=list[DraftResponse])
async def find_my_drafts(
    post_type: str,
    parent_ids: list[str] = Query(default=[]),
    caller: Caller = Depends(get_caller),
    service: DraftLookupService = Depends(get_draft_lookup_service),
) -> list[DraftResponse]:
    """Unpublished posts of the caller's team under one parent chain."""
    markers = await service.find_my_drafts(
        caller, parse_post_type(post_type), tuple(parent_ids)
    )
    return [DraftResponse.from_marker(marker) for marker in markers]


@router.get("/exists", response_model=DraftExistsResponse)
async def has_drafts(
    caller: Caller = Depends(get_caller),
    service: DraftLookupService = Depends(get_draft_lookup_service),
) -> DraftExistsResponse:
    return DraftExistsResponse(has_drafts=await service.has_drafts(caller))
