"""Scheduling infrastructure for the publication orchestrator."""

from rulepost.infrastructure.scheduling.publication_scheduler import (
    PublicationScheduler,
    job_id,
)

__all__: list[str] = ["PublicationScheduler", "job_id"]
