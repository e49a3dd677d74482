"""Unit tests for the publication worker entry points."""

from __future__ import annotations

import os
from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from rulepost.application.services.publication_orchestrator_service import (
    PublicationSlot,
)
from rulepost.infrastructure.observability import get_correlation_id
from rulepost.workers import publication_worker


@pytest.mark.asyncio
async def test_run_once_runs_requested_slot() -> None:
    orchestrator = MagicMock(run_slot=AsyncMock())
    with patch.object(
        publication_worker,
        "get_publication_orchestrator_service",
        return_value=orchestrator,
    ):
        await publication_worker.run_once(PublicationSlot.NOON)

    orchestrator.run_slot.assert_awaited_once_with(PublicationSlot.NOON)
    assert get_correlation_id()


@pytest.mark.asyncio
async def test_env_slot_runs_once() -> None:
    run_once = AsyncMock()
    with (
        patch.dict(os.environ, {"RULEPOST_RUN_SLOT": "20:00", "ENVIRONMENT": "development"}),
        patch.object(publication_worker, "run_once", run_once),
        patch.object(publication_worker, "run_scheduler", AsyncMock()) as run_scheduler,
    ):
        await publication_worker._run_from_env()

    run_once.assert_awaited_once_with(PublicationSlot.EVENING)
    run_scheduler.assert_not_awaited()


@pytest.mark.asyncio
async def test_no_slot_starts_scheduler() -> None:
    env = {key: value for key, value in os.environ.items() if key != "RULEPOST_RUN_SLOT"}
    env["ENVIRONMENT"] = "development"
    with (
        patch.dict(os.environ, env, clear=True),
        patch.object(publication_worker, "run_scheduler", AsyncMock()) as run_scheduler,
    ):
        await publication_worker._run_from_env()

    run_scheduler.assert_awaited_once()


@pytest.mark.asyncio
async def test_unknown_slot_exits() -> None:
    with (
        patch.dict(os.environ, {"RULEPOST_RUN_SLOT": "06:00", "ENVIRONMENT": "development"}),
        patch.object(publication_worker, "run_once", AsyncMock()) as run_once,
    ):
        with pytest.raises(SystemExit) as excinfo:
            await publication_worker._run_from_env()

    assert excinfo.value.code == 1
    run_once.assert_not_awaited()
