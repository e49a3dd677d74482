"""Health check response models."""

from pydantic import BaseModel, Field


class HealthResponse(BaseModel):
    """Service health plus the schedule the publication jobs run on."""

    status: str = Field(description="Always 'healthy' when the API answers")
    timezone: str = Field(description="Timezone of the publication schedule")
    working_day: bool = Field(
        description="Whether today counts as a working day for publication"
    )
