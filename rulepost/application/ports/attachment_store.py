"""Attachment object store port.

Attachments are uploaded by the client to a caller-scoped temporary key,
moved under the owning post on submission, and made public with an
unguessable access token when the post publishes.
"""

from __future__ import annotations

from abc import abstractmethod
from dataclasses import dataclass
from typing import Protocol


@dataclass(frozen=True)
class ObjectMetadata:
    """Stored object metadata."""

    path: str
    size: int
    content_type: str


@dataclass(frozen=True)
class PublicLink:
    """Durable public access to an object."""

    url: str
    token: str


class AttachmentStoreProtocol(Protocol):
    """Object store holding post attachments."""

    @abstractmethod
    async def get_metadata(self, path: str) -> ObjectMetadata | None:
        """Return metadata, or None if the object does not exist."""
        ...

    @abstractmethod
    async def move(self, source: str, destination: str) -> None:
        """Move an object to a new key."""
        ...

    @abstractmethod
    async def delete(self, path: str) -> None:
        """Delete an object; missing objects are ignored."""
        ...

    @abstractmethod
    async def delete_prefix(self, prefix: str) -> int:
        """Delete every object under a folder prefix.

        Returns:
            Number of objects deleted.
        """
        ...

    @abstractmethod
    async def make_public(self, path: str) -> PublicLink:
        """Issue a public-but-unguessable access token for an object."""
        ...
