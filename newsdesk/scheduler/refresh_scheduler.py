"""
NewsDesk Refresh Scheduler
==========================

Runs the ingestion pipeline once at startup and then on a fixed interval,
and on explicit request. A failed run is logged and never stops later ticks.
"""

import asyncio
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from ..config.settings import NewsDeskSettings, get_settings
from ..processing.pipeline import IngestionPipeline, RefreshResult
from ..utils.logging import get_logger_for_component


class RefreshScheduler:
    """
    Interval scheduler for feed refreshes.

    Concurrent triggers are safe: the pipeline joins a call made during an
    in-flight refresh onto that run.
    """

    def __init__(
        self,
        pipeline: IngestionPipeline,
        settings: Optional[NewsDeskSettings] = None,
        interval_minutes: Optional[int] = None,
        run_on_startup: Optional[bool] = None,
    ):
        self.pipeline = pipeline
        self.settings = settings or get_settings()
        self.logger = get_logger_for_component("scheduler")

        interval = interval_minutes or self.settings.scheduler.refresh_interval_minutes
        self.interval_seconds: float = interval * 60
        self.run_on_startup = (
            self.settings.scheduler.run_on_startup if run_on_startup is None else run_on_startup
        )

        # Execution tracking
        self.running = False
        self.runs_completed = 0
        self.runs_failed = 0
        self.last_run_at: Optional[datetime] = None
        self.last_result: Optional[RefreshResult] = None
        self.last_error: Optional[str] = None
        self._stop_event = asyncio.Event()

    async def start(self, max_runs: Optional[int] = None) -> None:
        """Run scheduled refreshes until stopped.

        Args:
            max_runs: Stop after this many runs (unbounded by default)
        """
        self.running = True
        self._stop_event.clear()
        runs = 0

        self.logger.info(
            f"Starting refresh scheduler every {self.interval_seconds / 60:g} minutes",
            extra={"run_on_startup": self.run_on_startup},
        )

        try:
            if self.run_on_startup:
                await self.run_once()
                runs += 1

            while self.running and (max_runs is None or runs < max_runs):
                if await self._wait_for_next_tick():
                    break
                await self.run_once()
                runs += 1
        finally:
            self.running = False
            self.logger.info("Refresh scheduler stopped")

    def stop(self) -> None:
        """Stop the scheduler loop after the current run."""
        self.running = False
        self._stop_event.set()

    async def run_once(self) -> Optional[RefreshResult]:
        """Run one scheduled refresh, logging instead of raising on failure.

        Returns:
            RefreshResult, or None if the run failed
        """
        self.last_run_at = datetime.now(timezone.utc)

        try:
            result = await self.pipeline.refresh_all()
        except Exception as e:
            self.runs_failed += 1
            self.last_error = str(e)
            self.logger.error(f"Scheduled refresh failed: {e}", exc_info=True)
            return None

        self.runs_completed += 1
        self.last_result = result
        self.last_error = None
        return result

    async def trigger_now(self) -> RefreshResult:
        """Refresh immediately and return the result.

        Raises:
            StorageError: If the feed list or archive cannot be read or written
        """
        self.logger.info("Manual refresh requested")
        self.last_run_at = datetime.now(timezone.utc)

        try:
            result = await self.pipeline.refresh_all()
        except Exception as e:
            self.runs_failed += 1
            self.last_error = str(e)
            raise

        self.runs_completed += 1
        self.last_result = result
        self.last_error = None
        return result

    def get_status(self) -> Dict[str, Any]:
        """Scheduler status for monitoring output."""
        return {
            "running": self.running,
            "interval_minutes": self.interval_seconds / 60,
            "runs_completed": self.runs_completed,
            "runs_failed": self.runs_failed,
            "last_run_at": self.last_run_at.isoformat() if self.last_run_at else None,
            "last_error": self.last_error,
            "last_archive_size": (
                self.last_result.merge_stats.total if self.last_result else None
            ),
        }

    async def _wait_for_next_tick(self) -> bool:
        """Sleep one interval; returns True if stopped while waiting."""
        try:
            await asyncio.wait_for(self._stop_event.wait(), timeout=self.interval_seconds)
            return True
        except asyncio.TimeoutError:
            return False
