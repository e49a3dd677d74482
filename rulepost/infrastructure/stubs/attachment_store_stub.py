"""In-memory stub for AttachmentStoreProtocol.

Objects are held as metadata only; contents are never stored. Tokens are
random hex strings, so public URLs are unguessable but not durable across
process restarts.
"""

from __future__ import annotations

from uuid import uuid4

from rulepost.application.ports.attachment_store import ObjectMetadata, PublicLink

DEFAULT_BASE_URL = "https://files.rulepost.invalid"


class AttachmentStoreStub:
    """In-memory implementation of AttachmentStoreProtocol."""

    def __init__(self, base_url: str = DEFAULT_BASE_URL) -> None:
        self._objects: dict[str, ObjectMetadata] = {}
        self._public: dict[str, PublicLink] = {}
        self._base_url = base_url.rstrip("/")
        self._failing_public: set[str] = set()

    def add_object(self, path: str, size: int, content_type: str) -> None:
        """Simulate a client upload."""
        self._objects[path] = ObjectMetadata(path=path, size=size, content_type=content_type)

    def fail_make_public(self, path: str) -> None:
        """Make `make_public` raise for a path."""
        self._failing_public.add(path)

    def exists(self, path: str) -> bool:
        return path in self._objects

    def public_link(self, path: str) -> PublicLink | None:
        return self._public.get(path)

    async def get_metadata(self, path: str) -> ObjectMetadata | None:
        return self._objects.get(path)

    async def move(self, source: str, destination: str) -> None:
        metadata = self._objects.pop(source, None)
        if metadata is None:
            raise FileNotFoundError(source)
        self._objects[destination] = ObjectMetadata(
            path=destination, size=metadata.size, content_type=metadata.content_type
        )

    async def delete(self, path: str) -> None:
        self._objects.pop(path, None)
        self._public.pop(path, None)

    async def delete_prefix(self, prefix: str) -> int:
        prefix = prefix.rstrip("/") + "/"
        doomed = [path for path in self._objects if path.startswith(prefix)]
        for path in doomed:
            await self.delete(path)
        return len(doomed)

    async def make_public(self, path: str) -> PublicLink:
        if path in self._failing_public:
            raise ConnectionError(f"object store unavailable for {path}")
        if path not in self._objects:
            raise FileNotFoundError(path)
        token = uuid4().hex
        link = PublicLink(url=f"{self._base_url}/{path}?token={token}", token=token)
        self._public[path] = link
        return link
