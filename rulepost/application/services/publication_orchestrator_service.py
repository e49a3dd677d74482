"""Publication orchestrator.

One coordinating routine per trigger time calls the batch phases in a
fixed order and aborts the whole run on the first unhandled error:

- 00:00: enquiries, comments, committee responses, next comment slot, digest
- 12:00: enquiries, comments, digest
- 20:00: team responses, digest

The digest always runs last so it covers everything the slot published.
A failed or timed-out run is not retried; the next trigger picks up the
work because every phase only selects what is still due.
"""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from enum import Enum
from typing import Any

from structlog import get_logger
from structlog.contextvars import bound_contextvars

from rulepost.application.ports.time_authority import TimeAuthorityProtocol
from rulepost.application.services.comment_publisher_service import (
    CommentPublisherService,
)
from rulepost.application.services.comment_schedule_service import (
    CommentScheduleService,
)
from rulepost.application.services.committee_response_publisher_service import (
    CommitteeResponsePublisherService,
)
from rulepost.application.services.enquiry_publisher_service import (
    EnquiryPublisherService,
)
from rulepost.application.services.publish_digest_service import PublishDigestService
from rulepost.application.services.team_response_publisher_service import (
    TeamResponsePublisherService,
)

logger = get_logger(__name__)

Phase = tuple[str, Callable[[], Awaitable[Any]]]


class PublicationSlot(str, Enum):
    """Daily trigger times, local to the configured timezone."""

    MIDNIGHT = "00:00"
    NOON = "12:00"
    EVENING = "20:00"

    @property
    def hour(self) -> int:
        return int(self.value.split(":")[0])

    @property
    def minute(self) -> int:
        return int(self.value.split(":")[1])


@dataclass(frozen=True)
class SlotRunResult:
    """Outcome of one completed orchestrated run."""

    slot: PublicationSlot
    phases: tuple[str, ...]
    results: tuple[Any, ...]
    duration_seconds: float


class PublicationOrchestratorService:
    """Runs the batch phases of a trigger slot in order."""

    def __init__(
        self,
        enquiry_publisher: EnquiryPublisherService,
        comment_publisher: CommentPublisherService,
        committee_publisher: CommitteeResponsePublisherService,
        team_publisher: TeamResponsePublisherService,
        comment_schedule: CommentScheduleService,
        digest: PublishDigestService,
        time_authority: TimeAuthorityProtocol,
        timeout_seconds: float = 300,
    ) -> None:
        self._enquiry_publisher = enquiry_publisher
        self._comment_publisher = comment_publisher
        self._committee_publisher = committee_publisher
        self._team_publisher = team_publisher
        self._comment_schedule = comment_schedule
        self._digest = digest
        self._time = time_authority
        self._timeout_seconds = timeout_seconds

    def phases_for(self, slot: PublicationSlot) -> list[Phase]:
        """Ordered phases of a slot."""
        enquiries = ("enquiry_publish", self._enquiry_publisher.publish_pending_enquiries)
        comments = ("comment_publish", self._comment_publisher.publish_due_comments)
        digest = ("publish_digest", self._digest.send_pending_digest)
        if slot is PublicationSlot.MIDNIGHT:
            return [
                enquiries,
                comments,
                (
                    "committee_response_publish",
                    self._committee_publisher.publish_due_committee_responses,
                ),
                (
                    "comment_schedule_refresh",
                    self._comment_schedule.refresh_next_publication_time,
                ),
                digest,
            ]
        if slot is PublicationSlot.NOON:
            return [enquiries, comments, digest]
        return [
            ("team_response_publish", self._team_publisher.publish_due_team_responses),
            digest,
        ]

    async def run_slot(self, slot: PublicationSlot) -> SlotRunResult:
        """Run every phase of a slot within the configured timeout.

        Raises:
            asyncio.TimeoutError: The run exceeded its time budget.
            Exception: The first phase failure, re-raised unchanged.
        """
        started = self._time.monotonic()
        with bound_contextvars(slot=slot.value):
            logger.info("publication_cycle_started")
            completed: list[str] = []
            results: list[Any] = []

            async def _run_phases() -> None:
                for name, phase in self.phases_for(slot):
                    results.append(await phase())
                    completed.append(name)
                    logger.info("publication_phase_completed", phase=name)

            try:
                await asyncio.wait_for(_run_phases(), timeout=self._timeout_seconds)
            except Exception as exc:
                logger.error(
                    "publication_cycle_failed",
                    completed_phases=completed,
                    error=str(exc) or type(exc).__name__,
                    duration_seconds=self._time.monotonic() - started,
                    exc_info=True,
                )
                raise

            duration = self._time.monotonic() - started
            logger.info(
                "publication_cycle_completed",
                phases=completed,
                duration_seconds=duration,
            )
            return SlotRunResult(
                slot=slot,
                phases=tuple(completed),
                results=tuple(results),
                duration_seconds=duration,
            )
