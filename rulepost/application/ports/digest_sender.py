"""Digest delivery port.

Rendering and delivery of the publish digest email live behind this
interface; the core only decides what goes in a digest and who gets it.
"""

from __future__ import annotations

from abc import abstractmethod
from typing import Protocol

from rulepost.domain.models.publish_event import PublishDigest


class DigestSenderProtocol(Protocol):
    """Sends a publish digest to a list of recipients."""

    @abstractmethod
    async def send_digest(self, recipients: list[str], digest: PublishDigest) -> None:
        """Deliver one digest to every recipient.

        Raises:
            Exception: Delivery failures propagate to the caller.
        """
        ...
