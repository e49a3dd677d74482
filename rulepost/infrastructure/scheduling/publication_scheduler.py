"""APScheduler wiring for the publication orchestrator.

Registers one cron job per publication slot (00:00, 12:00, 20:00) in the
configured timezone. Each run gets a fresh correlation id, so every log
line of one orchestrated cycle can be grouped. Overlapping runs of the
same slot are prevented with `max_instances=1`, and missed runs are
coalesced into one.
"""

from __future__ import annotations

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.cron import CronTrigger
from structlog import get_logger

from rulepost.application.services.publication_orchestrator_service import (
    PublicationOrchestratorService,
    PublicationSlot,
    SlotRunResult,
)
from rulepost.config.schedule_config import ScheduleConfig
from rulepost.infrastructure.observability.correlation import (
    generate_correlation_id,
    set_correlation_id,
)

logger = get_logger(__name__)

MISFIRE_GRACE_SECONDS = 600


def job_id(slot: PublicationSlot) -> str:
    return f"orchestrate_{slot.hour:02d}{slot.minute:02d}"


class PublicationScheduler:
    """Runs orchestrator slots on their daily cron triggers."""

    def __init__(
        self,
        orchestrator: PublicationOrchestratorService,
        config: ScheduleConfig,
        scheduler: AsyncIOScheduler | None = None,
    ) -> None:
        self._orchestrator = orchestrator
        self._config = config
        self.scheduler = scheduler or AsyncIOScheduler(timezone=config.tz)
        self.running = False

    async def run_slot(self, slot: PublicationSlot) -> SlotRunResult | None:
        """Job body: run one slot under a new correlation id.

        Failures are logged by the orchestrator and end this run only;
        the next trigger runs normally.
        """
        set_correlation_id(generate_correlation_id())
        try:
            return await self._orchestrator.run_slot(slot)
        except Exception:
            logger.error("scheduled_slot_failed", slot=slot.value)
            return None

    def register_jobs(self) -> None:
        for slot in PublicationSlot:
            self.scheduler.add_job(
                self.run_slot,
                CronTrigger(hour=slot.hour, minute=slot.minute, timezone=self._config.tz),
                args=[slot],
                id=job_id(slot),
                name=f"Publication cycle {slot.value}",
                max_instances=1,
                coalesce=True,
                misfire_grace_time=MISFIRE_GRACE_SECONDS,
                replace_existing=True,
            )
        logger.info(
            "publication_jobs_registered",
            slots=[slot.value for slot in PublicationSlot],
            timezone=self._config.timezone_name,
        )

    def start(self) -> None:
        """Register the jobs and start the scheduler. Needs a running event loop."""
        if self.running:
            logger.warning("publication_scheduler_already_running")
            return
        self.register_jobs()
        self.scheduler.start()
        self.running = True
        logger.info("publication_scheduler_started")

    def shutdown(self) -> None:
        if not self.running:
            return
        self.scheduler.shutdown(wait=False)
        self.running = False
        logger.info("publication_scheduler_stopped")
