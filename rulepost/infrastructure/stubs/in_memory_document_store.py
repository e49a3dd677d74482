"""In-memory stub for DocumentStoreProtocol.

This stub provides an in-memory implementation for development and tests.
It simulates the document store behavior including:
- Path-addressed documents and direct-child collection queries
- Optimistic transactions: reads record versions, writes are buffered and
  committed only if nothing read has changed since, otherwise retried
- Create-only writes that fail on existing documents
- A bulk writer that applies each write independently and reports failures
- SERVER_TIMESTAMP, Increment and DELETE_FIELD resolution

Thread-safety note: this stub is NOT thread-safe. Commits are atomic with
respect to other asyncio tasks because a commit never awaits.
"""

from __future__ import annotations

import copy
from collections.abc import Awaitable, Callable
from datetime import datetime
from typing import Any, TypeVar
from uuid import uuid4

from structlog import get_logger

from rulepost.application.ports.document_store import (
    DELETE_FIELD,
    SERVER_TIMESTAMP,
    BulkWriteReport,
    DocumentSnapshot,
    FieldFilter,
    Increment,
    Query,
    TransactionProtocol,
    WriteFailure,
)
from rulepost.application.ports.time_authority import TimeAuthorityProtocol
from rulepost.domain.errors import (
    DocumentAlreadyExistsError,
    DocumentNotFoundError,
    DocumentStoreError,
    TransactionContentionError,
)
from rulepost.infrastructure.adapters.system_time_authority import SystemTimeAuthority

T = TypeVar("T")

logger = get_logger(__name__)

SET = "set"
CREATE = "create"
UPDATE = "update"
DELETE = "delete"

# (operation, path, data, merge)
PendingWrite = tuple[str, str, dict[str, Any], bool]


def _parent_collection(path: str) -> str:
    return path.rsplit("/", 1)[0] if "/" in path else ""


def _check_document_path(path: str) -> str:
    path = path.strip("/")
    if not path or len(path.split("/")) % 2 != 0:
        raise ValueError(f"not a document path: {path!r}")
    return path


def _matches(data: dict[str, Any], flt: FieldFilter) -> bool:
    if flt.field not in data:
        return False
    value = data[flt.field]
    try:
        if flt.op == "==":
            return bool(value == flt.value)
        if flt.op == "!=":
            return bool(value != flt.value)
        if flt.op == "<":
            return bool(value < flt.value)
        if flt.op == "<=":
            return bool(value <= flt.value)
        if flt.op == ">":
            return bool(value > flt.value)
        return bool(value >= flt.value)
    except TypeError:
        # Mixed types never match a range filter
        return False


class _InMemoryTransaction(TransactionProtocol):
    """One attempt of a transaction."""

    def __init__(self, store: InMemoryDocumentStore) -> None:
        self._store = store
        self.document_reads: dict[str, int] = {}
        self.collection_reads: dict[str, int] = {}
        self.writes: list[PendingWrite] = []

    async def get(self, path: str) -> DocumentSnapshot:
        path = _check_document_path(path)
        self.document_reads[path] = self._store._version_of(path)
        return self._store._snapshot(path)

    async def query(self, query: Query) -> list[DocumentSnapshot]:
        collection = query.collection.strip("/")
        self.collection_reads[collection] = self._store._collection_version_of(collection)
        results = self._store._run_query(query)
        for snapshot in results:
            self.document_reads[snapshot.path] = self._store._version_of(snapshot.path)
        return results

    def set(self, path: str, data: dict[str, Any], *, merge: bool = False) -> None:
        self.writes.append((SET, _check_document_path(path), data, merge))

    def create(self, path: str, data: dict[str, Any]) -> None:
        self.writes.append((CREATE, _check_document_path(path), data, False))

    def update(self, path: str, data: dict[str, Any]) -> None:
        self.writes.append((UPDATE, _check_document_path(path), data, False))

    def delete(self, path: str) -> None:
        self.writes.append((DELETE, _check_document_path(path), {}, False))


class InMemoryBulkWriter:
    """Bulk writer applying each queued write independently."""

    def __init__(self, store: InMemoryDocumentStore) -> None:
        self._store = store
        self._pending: list[PendingWrite] = []
        self._closed = False
        self._totals = BulkWriteReport()

    def _queue(self, write: PendingWrite) -> None:
        if self._closed:
            raise RuntimeError("bulk writer is closed")
        self._pending.append(write)

    def set(self, path: str, data: dict[str, Any], *, merge: bool = False) -> None:
        self._queue((SET, _check_document_path(path), data, merge))

    def create(self, path: str, data: dict[str, Any]) -> None:
        self._queue((CREATE, _check_document_path(path), data, False))

    def update(self, path: str, data: dict[str, Any]) -> None:
        self._queue((UPDATE, _check_document_path(path), data, False))

    def delete(self, path: str) -> None:
        self._queue((DELETE, _check_document_path(path), {}, False))

    @property
    def totals(self) -> BulkWriteReport:
        """Accumulated outcome of every flush so far."""
        return self._totals

    async def flush(self) -> BulkWriteReport:
        pending, self._pending = self._pending, []
        succeeded = 0
        failures: list[WriteFailure] = []
        for operation, path, data, merge in pending:
            try:
                self._store._apply_bulk_write(operation, path, data, merge)
            except DocumentStoreError as exc:
                failures.append(WriteFailure(path=path, operation=operation, error=str(exc)))
            else:
                succeeded += 1
        report = BulkWriteReport(
            attempted=len(pending), succeeded=succeeded, failures=tuple(failures)
        )
        self._totals = self._totals.merge(report)
        return report

    async def close(self) -> BulkWriteReport:
        await self.flush()
        self._closed = True
        return self.totals


class InMemoryDocumentStore:
    """In-memory implementation of DocumentStoreProtocol.

    Test helpers:
        seed(path, data): write a document directly.
        dump(): deep copy of every stored document keyed by path.
        fail_bulk_writes_under(prefix): make bulk writes under a prefix fail.
        before_commit: optional async hook run before each commit check,
            used to simulate concurrent writers.
    """

    def __init__(self, time_authority: TimeAuthorityProtocol | None = None) -> None:
        self._time = time_authority or SystemTimeAuthority()
        self._documents: dict[str, dict[str, Any]] = {}
        self._versions: dict[str, int] = {}
        self._collection_versions: dict[str, int] = {}
        self._clock = 0
        self._failing_prefixes: set[str] = set()
        self.before_commit: Callable[[int], Awaitable[None]] | None = None
        self.transaction_attempts = 0

    # Test helpers

    def seed(self, path: str, data: dict[str, Any]) -> None:
        self._write(_check_document_path(path), self._resolve(None, data))

    def dump(self) -> dict[str, dict[str, Any]]:
        return copy.deepcopy(self._documents)

    def fail_bulk_writes_under(self, prefix: str) -> None:
        self._failing_prefixes.add(prefix.strip("/"))

    # Internals

    def _now(self) -> datetime:
        return self._time.now()

    def _version_of(self, path: str) -> int:
        return self._versions.get(path, 0)

    def _collection_version_of(self, collection: str) -> int:
        return self._collection_versions.get(collection, 0)

    def _snapshot(self, path: str) -> DocumentSnapshot:
        data = self._documents.get(path)
        return DocumentSnapshot(path=path, data=copy.deepcopy(data) if data is not None else None)

    def _bump(self, path: str) -> None:
        self._clock += 1
        self._versions[path] = self._clock
        self._collection_versions[_parent_collection(path)] = self._clock

    def _write(self, path: str, data: dict[str, Any]) -> None:
        self._documents[path] = data
        self._bump(path)

    def _remove(self, path: str) -> bool:
        existed = self._documents.pop(path, None) is not None
        self._bump(path)
        return existed

    def _resolve(self, existing: dict[str, Any] | None, data: dict[str, Any]) -> dict[str, Any]:
        result = copy.deepcopy(existing) if existing is not None else {}
        now = self._now()
        for key, value in data.items():
            if value is DELETE_FIELD:
                result.pop(key, None)
            elif value is SERVER_TIMESTAMP:
                result[key] = now
            elif isinstance(value, Increment):
                result[key] = (result.get(key) or 0) + value.amount
            else:
                result[key] = copy.deepcopy(value)
        return result

    def _next_state(
        self,
        current: dict[str, Any] | None,
        operation: str,
        path: str,
        data: dict[str, Any],
        merge: bool,
    ) -> dict[str, Any] | None:
        """Compute a document's state after one write, or None when deleted."""
        if operation == DELETE:
            return None
        if operation == CREATE:
            if current is not None:
                raise DocumentAlreadyExistsError(path)
            return self._resolve(None, data)
        if operation == UPDATE:
            if current is None:
                raise DocumentNotFoundError(path)
            return self._resolve(current, data)
        return self._resolve(current if merge else None, data)

    def _apply_bulk_write(
        self, operation: str, path: str, data: dict[str, Any], merge: bool
    ) -> None:
        if any(path == p or path.startswith(p + "/") for p in self._failing_prefixes):
            raise DocumentStoreError(f"Injected bulk write failure: {path}")
        state = self._next_state(self._documents.get(path), operation, path, data, merge)
        if state is None:
            self._remove(path)
        else:
            self._write(path, state)

    def _is_stale(self, tx: _InMemoryTransaction) -> bool:
        for path, version in tx.document_reads.items():
            if self._version_of(path) != version:
                return True
        for collection, version in tx.collection_reads.items():
            if self._collection_version_of(collection) != version:
                return True
        return False

    def _commit(self, writes: list[PendingWrite]) -> None:
        """Validate every write, then apply them all. Never awaits."""
        staged: dict[str, dict[str, Any] | None] = {}
        for operation, path, data, merge in writes:
            current = staged[path] if path in staged else self._documents.get(path)
            staged[path] = self._next_state(current, operation, path, data, merge)
        for path, state in staged.items():
            if state is None:
                self._remove(path)
            else:
                self._write(path, state)

    def _run_query(self, query: Query) -> list[DocumentSnapshot]:
        collection = query.collection.strip("/")
        prefix = collection + "/"
        rows = [
            (path, data)
            for path, data in self._documents.items()
            if path.startswith(prefix) and "/" not in path[len(prefix):]
        ]
        rows = [row for row in rows if all(_matches(row[1], f) for f in query.filters)]
        if query.order_by is not None:
            field_name = query.order_by
            rows = [row for row in rows if field_name in row[1]]
            # Nulls order first, as in the production store
            rows.sort(
                key=lambda row: (row[1][field_name] is not None, row[1][field_name]),
                reverse=query.descending,
            )
        else:
            rows.sort(key=lambda row: row[0])
        if query.limit is not None:
            rows = rows[: query.limit]
        return [DocumentSnapshot(path=path, data=copy.deepcopy(data)) for path, data in rows]

    # DocumentStoreProtocol

    async def get(self, path: str) -> DocumentSnapshot:
        return self._snapshot(_check_document_path(path))

    async def query(self, query: Query) -> list[DocumentSnapshot]:
        return self._run_query(query)

    async def count(self, query: Query) -> int:
        return len(self._run_query(query))

    async def set(self, path: str, data: dict[str, Any], *, merge: bool = False) -> None:
        self._commit([(SET, _check_document_path(path), data, merge)])

    async def create(self, path: str, data: dict[str, Any]) -> None:
        self._commit([(CREATE, _check_document_path(path), data, False)])

    async def update(self, path: str, data: dict[str, Any]) -> None:
        self._commit([(UPDATE, _check_document_path(path), data, False)])

    async def delete(self, path: str) -> None:
        self._commit([(DELETE, _check_document_path(path), {}, False)])

    async def delete_recursive(self, path: str) -> int:
        path = _check_document_path(path)
        doomed = [p for p in self._documents if p == path or p.startswith(path + "/")]
        for doc_path in doomed:
            self._remove(doc_path)
        return len(doomed)

    async def list_documents(self, collection: str) -> list[str]:
        return [snapshot.path for snapshot in self._run_query(Query(collection))]

    async def run_transaction(
        self,
        fn: Callable[[TransactionProtocol], Awaitable[T]],
        *,
        max_attempts: int = 5,
    ) -> T:
        for attempt in range(1, max_attempts + 1):
            self.transaction_attempts += 1
            tx = _InMemoryTransaction(self)
            result = await fn(tx)
            if self.before_commit is not None:
                await self.before_commit(attempt)
            if self._is_stale(tx):
                logger.debug("transaction_contended", attempt=attempt)
                continue
            self._commit(tx.writes)
            return result
        raise TransactionContentionError(max_attempts)

    def bulk_writer(self) -> InMemoryBulkWriter:
        return InMemoryBulkWriter(self)

    def new_id(self) -> str:
        return uuid4().hex[:20]
