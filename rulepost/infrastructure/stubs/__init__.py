"""In-memory stubs for development and testing."""

from rulepost.infrastructure.stubs.attachment_store_stub import AttachmentStoreStub
from rulepost.infrastructure.stubs.digest_sender_stub import DigestSenderStub
from rulepost.infrastructure.stubs.in_memory_document_store import (
    InMemoryBulkWriter,
    InMemoryDocumentStore,
)

__all__: list[str] = [
    "AttachmentStoreStub",
    "DigestSenderStub",
    "InMemoryBulkWriter",
    "InMemoryDocumentStore",
]
