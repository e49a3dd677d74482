"""Unit tests for correlation ID management."""

import asyncio
import re

import pytest

from rulepost.infrastructure.observability.correlation import (
    correlation_id_processor,
    generate_correlation_id,
    get_correlation_id,
    set_correlation_id,
)

UUID4 = re.compile(
    r"^[0-9a-f]{8}-[0-9a-f]{4}-4[0-9a-f]{3}-[89ab][0-9a-f]{3}-[0-9a-f]{12}$"
)


@pytest.fixture(autouse=True)
def clear_correlation_id():
    set_correlation_id("")
    yield
    set_correlation_id("")


class TestGenerateCorrelationId:
    def test_uuid4_format(self) -> None:
        assert UUID4.match(generate_correlation_id())

    def test_unique(self) -> None:
        assert len({generate_correlation_id() for _ in range(50)}) == 50


class TestCorrelationIdContext:
    def test_empty_when_unset(self) -> None:
        assert get_correlation_id() == ""

    @pytest.mark.asyncio
    async def test_isolated_between_publication_runs(self) -> None:
        """Concurrent runs keep their own id across awaits."""
        seen: dict[str, str] = {}

        async def run(slot: str) -> None:
            set_correlation_id(f"run-{slot}")
            await asyncio.sleep(0.01)
            seen[slot] = get_correlation_id()

        await asyncio.gather(run("midnight"), run("noon"), run("evening"))

        assert seen == {
            "midnight": "run-midnight",
            "noon": "run-noon",
            "evening": "run-evening",
        }


class TestCorrelationIdProcessor:
    def test_adds_id_and_keeps_fields(self) -> None:
        set_correlation_id("run-1")
        event_dict: dict[str, object] = {"event": "enquiries_published", "count": 2}

        result = correlation_id_processor(None, "info", event_dict)

        assert result == {
            "event": "enquiries_published",
            "count": 2,
            "correlation_id": "run-1",
        }

    def test_skips_when_unset(self) -> None:
        result = correlation_id_processor(None, "info", {"event": "x"})

        assert "correlation_id" not in result
