"""Unit tests for InMemoryDocumentStore."""

from __future__ import annotations

import pytest

from rulepost.application.ports.document_store import (
    DELETE_FIELD,
    SERVER_TIMESTAMP,
    Increment,
    Query,
    TransactionProtocol,
)
from rulepost.domain.errors import (
    DocumentAlreadyExistsError,
    DocumentNotFoundError,
    TransactionContentionError,
)
from rulepost.infrastructure.stubs.in_memory_document_store import InMemoryDocumentStore
from tests.helpers import FakeTimeAuthority


class TestWrites:
    @pytest.mark.asyncio
    async def test_server_timestamp_uses_time_authority(
        self, store: InMemoryDocumentStore, fake_time: FakeTimeAuthority
    ) -> None:
        await store.set("things/a", {"createdAt": SERVER_TIMESTAMP})
        assert (await store.get("things/a")).get("createdAt") == fake_time.now()

    @pytest.mark.asyncio
    async def test_increment_and_delete_field(self, store: InMemoryDocumentStore) -> None:
        store.seed("things/a", {"count": 2, "stale": True})
        await store.update("things/a", {"count": Increment(3), "stale": DELETE_FIELD})
        assert (await store.get("things/a")).data == {"count": 5}

    @pytest.mark.asyncio
    async def test_merge_keeps_other_fields(self, store: InMemoryDocumentStore) -> None:
        store.seed("things/a", {"x": 1})
        await store.set("things/a", {"y": 2}, merge=True)
        assert (await store.get("things/a")).data == {"x": 1, "y": 2}

    @pytest.mark.asyncio
    async def test_create_conflicts_on_existing(self, store: InMemoryDocumentStore) -> None:
        store.seed("things/a", {})
        with pytest.raises(DocumentAlreadyExistsError) as exc_info:
            await store.create("things/a", {})
        assert exc_info.value.path == "things/a"

    @pytest.mark.asyncio
    async def test_update_requires_existing(self, store: InMemoryDocumentStore) -> None:
        with pytest.raises(DocumentNotFoundError):
            await store.update("things/missing", {"x": 1})

    @pytest.mark.asyncio
    async def test_collection_path_is_rejected(self, store: InMemoryDocumentStore) -> None:
        with pytest.raises(ValueError, match="not a document path"):
            await store.set("things", {})

    @pytest.mark.asyncio
    async def test_delete_recursive_removes_subtree(self, store: InMemoryDocumentStore) -> None:
        store.seed("enquiries/e1", {})
        store.seed("enquiries/e1/responses/r1", {})
        store.seed("enquiries/e1/responses/r1/comments/c1", {})
        store.seed("enquiries/e10", {})
        assert await store.delete_recursive("enquiries/e1") == 3
        assert set(store.dump()) == {"enquiries/e10"}


class TestQueries:
    @pytest.mark.asyncio
    async def test_direct_children_only(self, store: InMemoryDocumentStore) -> None:
        store.seed("enquiries/e1", {"n": 1})
        store.seed("enquiries/e1/responses/r1", {"n": 2})
        results = await store.query(Query("enquiries"))
        assert [snapshot.id for snapshot in results] == ["e1"]

    @pytest.mark.asyncio
    async def test_filters_order_and_limit(self, store: InMemoryDocumentStore) -> None:
        for doc_id, number, is_open in [("a", 3, True), ("b", 1, True), ("c", 2, False), ("d", 4, True)]:
            store.seed(f"enquiries/{doc_id}", {"enquiryNumber": number, "isOpen": is_open})
        results = await store.query(
            Query("enquiries")
            .where("isOpen", "==", True)
            .order("enquiryNumber", descending=True)
            .take(2)
        )
        assert [snapshot.id for snapshot in results] == ["d", "a"]

    @pytest.mark.asyncio
    async def test_range_filter_ignores_missing_and_mixed_types(
        self, store: InMemoryDocumentStore
    ) -> None:
        store.seed("things/a", {"n": 1})
        store.seed("things/b", {"n": None})
        store.seed("things/c", {})
        assert await store.count(Query("things").where("n", "<=", 5)) == 1

    @pytest.mark.asyncio
    async def test_nulls_order_first(self, store: InMemoryDocumentStore) -> None:
        store.seed("things/a", {"at": 2})
        store.seed("things/b", {"at": None})
        store.seed("things/c", {"at": 1})
        results = await store.query(Query("things").order("at"))
        assert [snapshot.id for snapshot in results] == ["b", "c", "a"]


class TestTransactions:
    @pytest.mark.asyncio
    async def test_buffered_writes_commit_together(self, store: InMemoryDocumentStore) -> None:
        async def _fn(tx: TransactionProtocol) -> str:
            await tx.get("things/a")
            tx.set("things/a", {"x": 1})
            tx.set("things/b", {"y": 2})
            return "done"

        assert await store.run_transaction(_fn) == "done"
        assert set(store.dump()) == {"things/a", "things/b"}

    @pytest.mark.asyncio
    async def test_failed_create_rolls_back_every_write(
        self, store: InMemoryDocumentStore
    ) -> None:
        store.seed("guards/g1", {})

        async def _fn(tx: TransactionProtocol) -> None:
            tx.set("things/a", {"x": 1})
            tx.create("guards/g1", {})

        with pytest.raises(DocumentAlreadyExistsError):
            await store.run_transaction(_fn)
        assert "things/a" not in store.dump()

    @pytest.mark.asyncio
    async def test_retries_when_a_read_document_changes(
        self, store: InMemoryDocumentStore
    ) -> None:
        store.seed("counters/c", {"n": 1})

        async def _concurrent_writer(attempt: int) -> None:
            if attempt == 1:
                store.seed("counters/c", {"n": 10})

        store.before_commit = _concurrent_writer

        async def _increment(tx: TransactionProtocol) -> int:
            current = (await tx.get("counters/c")).get("n")
            tx.set("counters/c", {"n": current + 1})
            return current + 1

        assert await store.run_transaction(_increment) == 11
        assert store.transaction_attempts == 2

    @pytest.mark.asyncio
    async def test_retries_when_a_queried_collection_changes(
        self, store: InMemoryDocumentStore
    ) -> None:
        async def _concurrent_writer(attempt: int) -> None:
            if attempt == 1:
                store.seed("things/new", {"n": 1})

        store.before_commit = _concurrent_writer

        async def _count(tx: TransactionProtocol) -> int:
            return len(await tx.query(Query("things")))

        assert await store.run_transaction(_count) == 1

    @pytest.mark.asyncio
    async def test_gives_up_after_max_attempts(self, store: InMemoryDocumentStore) -> None:
        async def _always_contended(attempt: int) -> None:
            store.seed("things/a", {"attempt": attempt})

        store.before_commit = _always_contended

        async def _fn(tx: TransactionProtocol) -> None:
            await tx.get("things/a")

        with pytest.raises(TransactionContentionError):
            await store.run_transaction(_fn, max_attempts=3)
        assert store.transaction_attempts == 3


class TestBulkWriter:
    @pytest.mark.asyncio
    async def test_reports_failures_without_stopping(self, store: InMemoryDocumentStore) -> None:
        store.seed("things/a", {})
        store.fail_bulk_writes_under("broken")
        writer = store.bulk_writer()
        writer.update("things/a", {"x": 1})
        writer.update("things/missing", {"x": 1})
        writer.set("broken/b", {"x": 1})
        writer.set("things/c", {"x": 1})
        report = await writer.close()

        assert report.attempted == 4
        assert report.succeeded == 2
        assert report.failed == 2
        assert {failure.path for failure in report.failures} == {
            "things/missing",
            "broken/b",
        }
        assert store.dump()["things/c"] == {"x": 1}

    @pytest.mark.asyncio
    async def test_close_reports_every_flush(self, store: InMemoryDocumentStore) -> None:
        writer = store.bulk_writer()
        writer.set("things/a", {"x": 1})
        first = await writer.flush()
        writer.update("things/missing", {"x": 1})
        report = await writer.close()

        assert first.attempted == 1
        assert report.attempted == 2
        assert report.succeeded == 1
        assert [failure.path for failure in report.failures] == ["things/missing"]

    @pytest.mark.asyncio
    async def test_closed_writer_rejects_writes(self, store: InMemoryDocumentStore) -> None:
        writer = store.bulk_writer()
        await writer.close()
        with pytest.raises(RuntimeError):
            writer.set("things/a", {})
