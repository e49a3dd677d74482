"""Health check endpoint for the Rule Post API."""

from fastapi import APIRouter, Depends

from rulepost.api.dependencies.publication import get_calendar, get_time_authority
from rulepost.api.models.health import HealthResponse
from rulepost.application.ports.time_authority import TimeAuthorityProtocol
from rulepost.domain.services.working_day_calendar import WorkingDayCalendar

router = APIRouter(prefix="/v1", tags=["health"])


@router.get("/health", response_model=HealthResponse)
async def health_check(
    calendar: WorkingDayCalendar = Depends(get_calendar),
    time_authority: TimeAuthorityProtocol = Depends(get_time_authority),
) -> HealthResponse:
    return HealthResponse(
        status="healthy",
        timezone=str(calendar.tz),
        working_day=calendar.is_working_day(time_authority.now()),
    )
