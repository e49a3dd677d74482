"""Recording stub for DigestSenderProtocol."""

from __future__ import annotations

from dataclasses import dataclass

from structlog import get_logger

from rulepost.domain.models.publish_event import PublishDigest

logger = get_logger(__name__)


@dataclass(frozen=True)
class SentDigest:
    recipients: tuple[str, ...]
    digest: PublishDigest


class DigestSenderStub:
    """Records digests instead of sending email."""

    def __init__(self) -> None:
        self.sent: list[SentDigest] = []

    async def send_digest(self, recipients: list[str], digest: PublishDigest) -> None:
        self.sent.append(SentDigest(recipients=tuple(recipients), digest=digest))
        logger.info(
            "digest_recorded",
            recipients=len(recipients),
            enquiries=len(digest.enquiries),
            responses=len(digest.responses),
            comment_groups=len(digest.comments),
        )
