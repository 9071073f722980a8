"""
Unit tests for the refresh scheduler.
"""

import asyncio
from unittest.mock import AsyncMock, MagicMock

import pytest

from newsdesk.processing.pipeline import RefreshResult
from newsdesk.scheduler.refresh_scheduler import RefreshScheduler
from newsdesk.utils.exceptions import StorageError


def make_pipeline(side_effect=None):
    pipeline = MagicMock()
    pipeline.refresh_all = AsyncMock(return_value=RefreshResult(), side_effect=side_effect)
    return pipeline


class TestRefreshScheduler:
    """Test startup runs, interval ticks and failure handling."""

    def test_default_interval_is_thirty_minutes(self):
        scheduler = RefreshScheduler(make_pipeline())

        assert scheduler.interval_seconds == 30 * 60
        assert scheduler.run_on_startup is True

    @pytest.mark.asyncio
    async def test_runs_once_at_startup(self):
        pipeline = make_pipeline()
        scheduler = RefreshScheduler(pipeline)

        await scheduler.start(max_runs=1)

        pipeline.refresh_all.assert_awaited_once()
        assert scheduler.runs_completed == 1
        assert scheduler.running is False

    @pytest.mark.asyncio
    async def test_runs_on_interval(self):
        pipeline = make_pipeline()
        scheduler = RefreshScheduler(pipeline, run_on_startup=False)
        scheduler.interval_seconds = 0.01

        await asyncio.wait_for(scheduler.start(max_runs=3), timeout=5)

        assert pipeline.refresh_all.await_count == 3
        assert scheduler.runs_completed == 3

    @pytest.mark.asyncio
    async def test_failed_run_does_not_stop_schedule(self):
        pipeline = make_pipeline(side_effect=[StorageError("disk gone"), RefreshResult(), RefreshResult()])
        scheduler = RefreshScheduler(pipeline)
        scheduler.interval_seconds = 0.01

        await asyncio.wait_for(scheduler.start(max_runs=3), timeout=5)

        assert pipeline.refresh_all.await_count == 3
        assert scheduler.runs_failed == 1
        assert scheduler.runs_completed == 2
        assert scheduler.last_error is None

    @pytest.mark.asyncio
    async def test_run_once_reports_failure(self):
        scheduler = RefreshScheduler(make_pipeline(side_effect=StorageError("disk gone")))

        assert await scheduler.run_once() is None
        assert "disk gone" in scheduler.get_status()["last_error"]

    @pytest.mark.asyncio
    async def test_stop_interrupts_wait(self):
        pipeline = make_pipeline()
        scheduler = RefreshScheduler(pipeline, run_on_startup=False)

        task = asyncio.ensure_future(scheduler.start())
        await asyncio.sleep(0.01)
        assert scheduler.running is True

        scheduler.stop()
        await asyncio.wait_for(task, timeout=5)

        assert scheduler.running is False
        pipeline.refresh_all.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_trigger_now_returns_result(self):
        scheduler = RefreshScheduler(make_pipeline())

        result = await scheduler.trigger_now()

        assert isinstance(result, RefreshResult)
        status = scheduler.get_status()
        assert status["last_run_at"] is not None
        assert status["last_archive_size"] == 0
        assert status["interval_minutes"] == 30
        assert status["runs_completed"] == 1

    @pytest.mark.asyncio
    async def test_trigger_now_propagates_errors(self):
        scheduler = RefreshScheduler(make_pipeline(side_effect=StorageError("disk gone")))

        with pytest.raises(StorageError):
            await scheduler.trigger_now()

        status = scheduler.get_status()
        assert status["runs_failed"] == 1
        assert status["runs_completed"] == 0
        assert "disk gone" in status["last_error"]

    @pytest.mark.asyncio
    async def test_manual_success_clears_last_error(self):
        scheduler = RefreshScheduler(make_pipeline(side_effect=[StorageError("disk gone"), RefreshResult()]))

        with pytest.raises(StorageError):
            await scheduler.trigger_now()
        await scheduler.trigger_now()

        status = scheduler.get_status()
        assert status["runs_failed"] == 1
        assert status["runs_completed"] == 1
        assert status["last_error"] is None
