"""Application ports - interfaces to infrastructure collaborators."""

from rulepost.application.ports.attachment_store import (
    AttachmentStoreProtocol,
    ObjectMetadata,
    PublicLink,
)
from rulepost.application.ports.digest_sender import DigestSenderProtocol
from rulepost.application.ports.document_store import (
    DELETE_FIELD,
    SERVER_TIMESTAMP,
    BulkWriteReport,
    BulkWriterProtocol,
    DocumentSnapshot,
    DocumentStoreProtocol,
    FieldFilter,
    Increment,
    Query,
    TransactionProtocol,
    WriteFailure,
)
from rulepost.application.ports.time_authority import TimeAuthorityProtocol

__all__: list[str] = [
    "AttachmentStoreProtocol",
    "BulkWriteReport",
    "BulkWriterProtocol",
    "DELETE_FIELD",
    "DigestSenderProtocol",
    "DocumentSnapshot",
    "DocumentStoreProtocol",
    "FieldFilter",
    "Increment",
    "ObjectMetadata",
    "PublicLink",
    "Query",
    "SERVER_TIMESTAMP",
    "TimeAuthorityProtocol",
    "TransactionProtocol",
    "WriteFailure",
]
