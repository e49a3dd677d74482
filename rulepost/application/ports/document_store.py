"""Document store port.

Defines the contract the publication core needs from a transactional
document store:

- Path-addressed documents grouped into collections
- Point reads and filtered queries (equality, range, ordering, limit, count)
- Multi-document transactions with optimistic retry
- A non-transactional bulk writer reporting per-write success or failure
- Server-assigned timestamps and atomic numeric increments

Two write paths exist and are never mixed: transactions for
invariant-bearing state (guards, counters, stage flags) and the bulk
writer for best-effort fan-out.
"""

from __future__ import annotations

from abc import abstractmethod
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field, replace
from typing import Any, Protocol, TypeVar

T = TypeVar("T")


class _Sentinel:
    """Marker value resolved by the store at write time."""

    def __init__(self, name: str) -> None:
        self._name = name

    def __repr__(self) -> str:
        return self._name


# Replaced with the store's clock when the write is applied
SERVER_TIMESTAMP: Any = _Sentinel("SERVER_TIMESTAMP")

# Removes the field on update or merge
DELETE_FIELD: Any = _Sentinel("DELETE_FIELD")


@dataclass(frozen=True)
class Increment:
    """Atomic numeric increment applied at write time."""

    amount: int = 1


FILTER_OPERATORS: frozenset[str] = frozenset({"==", "!=", "<", "<=", ">", ">="})


@dataclass(frozen=True)
class FieldFilter:
    """One query predicate."""

    field: str
    op: str
    value: Any

    def __post_init__(self) -> None:
        if self.op not in FILTER_OPERATORS:
            raise ValueError(f"unsupported filter operator {self.op!r}")


@dataclass(frozen=True)
class Query:
    """Filtered query over the direct children of one collection.

    Builder methods return new queries:

        Query("enquiries").where("isPublished", "==", False).order("createdAt")
    """

    collection: str
    filters: tuple[FieldFilter, ...] = ()
    order_by: str | None = None
    descending: bool = False
    limit: int | None = None

    def where(self, field_name: str, op: str, value: Any) -> Query:
        return replace(self, filters=self.filters + (FieldFilter(field_name, op, value),))

    def order(self, field_name: str, *, descending: bool = False) -> Query:
        return replace(self, order_by=field_name, descending=descending)

    def take(self, limit: int) -> Query:
        return replace(self, limit=limit)


@dataclass(frozen=True)
class DocumentSnapshot:
    """A point-in-time read of one document."""

    path: str
    data: dict[str, Any] | None = None

    @property
    def exists(self) -> bool:
        return self.data is not None

    @property
    def id(self) -> str:
        return self.path.rsplit("/", 1)[-1]

    def get(self, field_name: str, default: Any = None) -> Any:
        if self.data is None:
            return default
        return self.data.get(field_name, default)


@dataclass(frozen=True)
class WriteFailure:
    """A bulk write that did not apply."""

    path: str
    operation: str
    error: str


@dataclass(frozen=True)
class BulkWriteReport:
    """Per-write outcome of a bulk writer flush."""

    attempted: int = 0
    succeeded: int = 0
    failures: tuple[WriteFailure, ...] = field(default=())

    @property
    def failed(self) -> int:
        return len(self.failures)

    def merge(self, other: BulkWriteReport) -> BulkWriteReport:
        return BulkWriteReport(
            attempted=self.attempted + other.attempted,
            succeeded=self.succeeded + other.succeeded,
            failures=self.failures + other.failures,
        )


class TransactionProtocol(Protocol):
    """Reads observe committed state; writes are buffered until commit.

    Reads must happen before writes. A create-only write that finds the
    document present fails the commit with DocumentAlreadyExistsError; an
    update of a missing document fails it with DocumentNotFoundError.
    """

    @abstractmethod
    async def get(self, path: str) -> DocumentSnapshot: ...

    @abstractmethod
    async def query(self, query: Query) -> list[DocumentSnapshot]: ...

    @abstractmethod
    def set(self, path: str, data: dict[str, Any], *, merge: bool = False) -> None: ...

    @abstractmethod
    def create(self, path: str, data: dict[str, Any]) -> None: ...

    @abstractmethod
    def update(self, path: str, data: dict[str, Any]) -> None: ...

    @abstractmethod
    def delete(self, path: str) -> None: ...


class BulkWriterProtocol(Protocol):
    """Accumulates independent writes and applies them without atomicity.

    One failing write never prevents the others from applying; failures
    are reported in the BulkWriteReport.
    """

    @abstractmethod
    def set(self, path: str, data: dict[str, Any], *, merge: bool = False) -> None: ...

    @abstractmethod
    def create(self, path: str, data: dict[str, Any]) -> None: ...

    @abstractmethod
    def update(self, path: str, data: dict[str, Any]) -> None: ...

    @abstractmethod
    def delete(self, path: str) -> None: ...

    @abstractmethod
    async def flush(self) -> BulkWriteReport:
        """Apply pending writes and report their outcome."""
        ...

    @abstractmethod
    async def close(self) -> BulkWriteReport:
        """Flush, reject further writes and report every write of this writer."""
        ...


class DocumentStoreProtocol(Protocol):
    """Transactional document store."""

    @abstractmethod
    async def get(self, path: str) -> DocumentSnapshot: ...

    @abstractmethod
    async def query(self, query: Query) -> list[DocumentSnapshot]: ...

    @abstractmethod
    async def count(self, query: Query) -> int: ...

    @abstractmethod
    async def set(self, path: str, data: dict[str, Any], *, merge: bool = False) -> None: ...

    @abstractmethod
    async def create(self, path: str, data: dict[str, Any]) -> None: ...

    @abstractmethod
    async def update(self, path: str, data: dict[str, Any]) -> None: ...

    @abstractmethod
    async def delete(self, path: str) -> None: ...

    @abstractmethod
    async def delete_recursive(self, path: str) -> int:
        """Delete a document and every document nested beneath it.

        Returns:
            Number of documents deleted.
        """
        ...

    @abstractmethod
    async def list_documents(self, collection: str) -> list[str]:
        """Paths of the direct child documents of a collection."""
        ...

    @abstractmethod
    async def run_transaction(
        self,
        fn: Callable[[TransactionProtocol], Awaitable[T]],
        *,
        max_attempts: int = 5,
    ) -> T:
        """Run `fn` in a transaction, retrying on contention.

        Raises:
            TransactionContentionError: If every attempt was contended.
        """
        ...

    @abstractmethod
    def bulk_writer(self) -> BulkWriterProtocol: ...

    @abstractmethod
    def new_id(self) -> str:
        """Allocate a fresh document id."""
        ...
