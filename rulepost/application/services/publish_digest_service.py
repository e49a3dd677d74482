"""Publish digest phase.

Reads unprocessed publish events due by now, groups them into one digest,
sends it to every user who opted in to email notifications and marks the
events processed. Events are marked processed even when nobody opted in,
so the queue never grows without bound. A delivery failure propagates and
leaves the events queued for the next run.
"""

from __future__ import annotations

from dataclasses import dataclass

from structlog import get_logger

from rulepost.application.ports.digest_sender import DigestSenderProtocol
from rulepost.application.ports.document_store import (
    SERVER_TIMESTAMP,
    DocumentStoreProtocol,
    Query,
)
from rulepost.application.ports.time_authority import TimeAuthorityProtocol
from rulepost.domain.models import document_paths
from rulepost.domain.models.publish_event import PublishDigest, PublishEvent

logger = get_logger(__name__)


@dataclass(frozen=True)
class DigestRunResult:
    """Outcome of one digest run."""

    events: int = 0
    recipients: int = 0
    sent: bool = False
    marked_processed: int = 0


class PublishDigestService:
    def __init__(
        self,
        store: DocumentStoreProtocol,
        sender: DigestSenderProtocol,
        time_authority: TimeAuthorityProtocol,
        batch_limit: int = 500,
    ) -> None:
        self._store = store
        self._sender = sender
        self._time = time_authority
        self._batch_limit = batch_limit

    async def _recipients(self) -> list[str]:
        users = await self._store.query(
            Query(document_paths.USER_DATA).where("emailNotificationsOn", "==", True)
        )
        emails = {str(user.get("email")).strip() for user in users if user.get("email")}
        return sorted(email for email in emails if email)

    async def send_pending_digest(self) -> DigestRunResult:
        """Send one digest covering queued publish events."""
        now = self._time.now()
        snapshots = await self._store.query(
            Query(document_paths.PUBLISH_EVENTS)
            .where("processed", "==", False)
            .where("publishedAt", "<=", now)
            .order("publishedAt")
            .take(self._batch_limit)
        )
        if not snapshots:
            logger.info("digest_no_events")
            return DigestRunResult()

        events: list[PublishEvent] = []
        for snapshot in snapshots:
            try:
                events.append(PublishEvent.from_document(snapshot.data or {}))
            except (KeyError, ValueError) as exc:
                logger.warning("digest_event_unreadable", event_id=snapshot.id, error=str(exc))

        digest = PublishDigest.from_events(events)
        recipients = await self._recipients()
        sent = False
        if recipients and not digest.is_empty:
            await self._sender.send_digest(recipients, digest)
            sent = True
        else:
            logger.info("digest_not_sent", recipients=len(recipients), events=len(events))

        writer = self._store.bulk_writer()
        for snapshot in snapshots:
            writer.update(snapshot.path, {"processed": True, "processedAt": SERVER_TIMESTAMP})
        report = await writer.close()
        if report.failed:
            logger.warning(
                "digest_mark_processed_partial_failure",
                failed=report.failed,
                paths=[failure.path for failure in report.failures],
            )

        logger.info(
            "digest_completed",
            events=len(snapshots),
            recipients=len(recipients),
            sent=sent,
        )
        return DigestRunResult(
            events=len(snapshots),
            recipients=len(recipients),
            sent=sent,
            marked_processed=report.succeeded,
        )
