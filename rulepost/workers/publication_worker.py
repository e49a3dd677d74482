"""Publication worker.

Runs the publication scheduler until SIGINT or SIGTERM. With
RULEPOST_RUN_SLOT set (00:00, 12:00 or 20:00) it runs that one slot
immediately and exits instead, which is useful for manual catch-up runs.

Environment:
- ENVIRONMENT: production (JSON logs) or development (console logs)
- RULEPOST_RUN_SLOT: optional one-off slot to run
"""

from __future__ import annotations

import asyncio
import os
import signal
import sys

from structlog import get_logger

from rulepost.application.services.publication_orchestrator_service import (
    PublicationSlot,
)
from rulepost.bootstrap.publication import (
    get_publication_orchestrator_service,
    get_schedule_config,
)
from rulepost.infrastructure.observability import (
    configure_structlog,
    generate_correlation_id,
    set_correlation_id,
)
from rulepost.infrastructure.scheduling import PublicationScheduler

logger = get_logger(__name__)


async def run_once(slot: PublicationSlot) -> None:
    set_correlation_id(generate_correlation_id())
    await get_publication_orchestrator_service().run_slot(slot)


async def run_scheduler() -> None:
    """Start the scheduler and wait for a shutdown signal."""
    scheduler = PublicationScheduler(
        get_publication_orchestrator_service(), get_schedule_config()
    )
    stop = asyncio.Event()

    loop = asyncio.get_running_loop()
    for sig in (signal.SIGINT, signal.SIGTERM):
        loop.add_signal_handler(sig, stop.set)

    scheduler.start()
    try:
        await stop.wait()
    finally:
        scheduler.shutdown()


async def _run_from_env() -> None:
    configure_structlog(os.environ.get("ENVIRONMENT", "production"))
    requested = os.environ.get("RULEPOST_RUN_SLOT", "").strip()
    if not requested:
        await run_scheduler()
        return
    try:
        slot = PublicationSlot(requested)
    except ValueError:
        logger.error("unknown_run_slot", slot=requested)
        sys.exit(1)
    await run_once(slot)


def main() -> None:
    asyncio.run(_run_from_env())


if __name__ == "__main__":
    main()
