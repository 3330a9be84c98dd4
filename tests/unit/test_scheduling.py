"""Unit tests for the debounced reprocessing helper."""

from __future__ import annotations

import asyncio
import logging
from unittest.mock import AsyncMock, MagicMock

import pytest

from smartscript.engine.scheduling import DebouncedProcessor


class TestDebouncedProcessor:
    """Tests for DebouncedProcessor."""

    @pytest.mark.asyncio
    async def test_burst_runs_once(self) -> None:
        """Several schedule() calls inside the window coalesce into one run."""
        callback = MagicMock(return_value=None)
        processor = DebouncedProcessor(callback, delay_ms=10)

        processor.schedule()
        processor.schedule()
        processor.schedule()
        assert processor.pending

        await asyncio.sleep(0.1)

        callback.assert_called_once()
        assert processor.runs == 1
        assert not processor.pending

    @pytest.mark.asyncio
    async def test_async_callback_awaited(self) -> None:
        """Coroutine callbacks are awaited."""
        callback = AsyncMock()
        processor = DebouncedProcessor(callback, delay_ms=0)

        processor.schedule()
        await asyncio.sleep(0.05)

        callback.assert_awaited_once()
        assert processor.runs == 1

    @pytest.mark.asyncio
    async def test_cancel_drops_pending_run(self) -> None:
        """cancel() prevents the scheduled run."""
        callback = MagicMock(return_value=None)
        processor = DebouncedProcessor(callback, delay_ms=10)

        processor.schedule()
        processor.cancel()
        await asyncio.sleep(0.05)

        callback.assert_not_called()
        assert not processor.pending

    @pytest.mark.asyncio
    async def test_flush_runs_immediately(self) -> None:
        """flush() runs a pending call without waiting for the delay."""
        callback = MagicMock(return_value=None)
        processor = DebouncedProcessor(callback, delay_ms=10_000)

        processor.schedule()
        await processor.flush()

        callback.assert_called_once()
        assert not processor.pending

    @pytest.mark.asyncio
    async def test_flush_without_pending_is_noop(self) -> None:
        """flush() does nothing when nothing is scheduled."""
        callback = MagicMock(return_value=None)
        processor = DebouncedProcessor(callback)

        await processor.flush()

        callback.assert_not_called()
        assert processor.runs == 0

    @pytest.mark.asyncio
    async def test_failure_is_logged(self, caplog: pytest.LogCaptureFixture) -> None:
        """A failing callback is logged and does not count as a run."""
        callback = MagicMock(side_effect=RuntimeError("tree gone"))
        processor = DebouncedProcessor(callback, delay_ms=0)

        with caplog.at_level(logging.ERROR, logger="smartscript.engine.scheduling"):
            processor.schedule()
            await asyncio.sleep(0.05)

        assert processor.runs == 0
        assert any("Debounced processing failed" in r.message for r in caplog.records)

    def test_negative_delay_clamped(self) -> None:
        """Negative delays are treated as zero."""
        processor = DebouncedProcessor(MagicMock(return_value=None), delay_ms=-5)
        assert processor.delay_ms == 0
