"""Document store errors.

Raised by document store adapters; services translate them into
caller-facing errors where a business meaning exists (for example a
create-only guard conflict becomes DuplicateTeamResponseError).
"""

from __future__ import annotations

from rulepost.domain.exceptions import RulePostError


class DocumentStoreError(RulePostError):
    """Base class for document store failures."""


class DocumentAlreadyExistsError(DocumentStoreError):
    """Raised when a create-only write targets an existing document.

    Attributes:
        path: Document path that already exists.
    """

    code = "already-exists"
    http_status = 409

    def __init__(self, path: str) -> None:
        self.path = path
        super().__init__(f"Document already exists: {path}")


class DocumentNotFoundError(DocumentStoreError):
    """Raised when an update targets a missing document.

    Attributes:
        path: Document path that does not exist.
    """

    code = "not-found"
    http_status = 404

    def __init__(self, path: str) -> None:
        self.path = path
        super().__init__(f"Document not found: {path}")


class TransactionContentionError(DocumentStoreError):
    """Raised when a transaction keeps conflicting after all retries."""

    def __init__(self, attempts: int) -> None:
        self.attempts = attempts
        super().__init__(f"Transaction aborted after {attempts} contended attempts")
