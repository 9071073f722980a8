"""
Ingestion Pipeline Orchestrator
===============================

Orchestrates the refresh workflow: load registered feeds, fetch them all
concurrently with per-feed failure isolation, merge the fetched articles
into the archive, and apply retention.
"""

import asyncio
from datetime import datetime, timezone
from typing import List, Optional, Tuple
from dataclasses import dataclass, field

from ..database.models import Article, Feed, MergeStats
from ..config.settings import get_settings
from ..storage.article_repository import ArticleRepository
from ..storage.feed_repository import FeedRepository
from ..utils.logging import get_logger_for_component, PerformanceLogger

from .feed_fetcher import FeedFetcher, FetchResult


@dataclass
class RefreshResult:
    """Result of one refresh run."""
    feeds_total: int = 0
    feeds_succeeded: int = 0
    articles_fetched: int = 0
    merge_stats: MergeStats = field(default_factory=MergeStats)
    errors: List[Tuple[str, str]] = field(default_factory=list)
    started_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    processing_time_seconds: float = 0.0

    @property
    def feeds_failed(self) -> int:
        return self.feeds_total - self.feeds_succeeded

    @property
    def success_rate(self) -> float:
        """Percentage of feeds fetched successfully."""
        if self.feeds_total == 0:
            return 100.0
        return (self.feeds_succeeded / self.feeds_total) * 100


class IngestionPipeline:
    """Refresh orchestrator over the feed registry and article archive."""

    def __init__(
        self,
        feed_repository: FeedRepository,
        article_repository: ArticleRepository,
        feed_fetcher: Optional[FeedFetcher] = None,
    ):
        """Initialize ingestion pipeline.

        Args:
            feed_repository: Registered feeds
            article_repository: Article archive
            feed_fetcher: Feed fetcher (default built from config)
        """
        self.settings = get_settings()
        self.feed_repository = feed_repository
        self.article_repository = article_repository
        self.feed_fetcher = feed_fetcher or FeedFetcher(
            max_concurrent=self.settings.processing.parallel_feeds,
            timeout=self.settings.limits.request_timeout
        )
        self.logger = get_logger_for_component("pipeline")

        self._inflight: Optional[asyncio.Task] = None

    @property
    def is_running(self) -> bool:
        return self._inflight is not None and not self._inflight.done()

    async def refresh_all(self) -> RefreshResult:
        """Refresh every registered feed.

        A call made while a refresh is in flight awaits that run and returns
        its result instead of starting another one.

        Returns:
            RefreshResult of the run

        Raises:
            StorageError: If the feed list or archive cannot be read or written
        """
        if self.is_running:
            self.logger.info("Refresh already in progress, joining in-flight run")
        else:
            self._inflight = asyncio.create_task(self._refresh_all())

        # Shielded so a cancelled caller does not cancel the shared run
        return await asyncio.shield(self._inflight)

    async def _refresh_all(self) -> RefreshResult:
        result = RefreshResult()

        with PerformanceLogger(self.logger, "refresh_all", run_started_at=result.started_at.isoformat()) as perf:
            feeds = self.feed_repository.load_all()
            result.feeds_total = len(feeds)

            if not feeds:
                self.logger.info("No feeds registered, nothing to fetch")

            fetch_results = await self.feed_fetcher.fetch_feeds(feeds)
            self._apply_results(result, fetch_results)

        result.processing_time_seconds = perf.duration_seconds
        self._log_summary(result)
        return result

    async def ingest_feed(self, feed: Feed) -> RefreshResult:
        """Fetch one feed and merge its articles without a full refresh.

        Args:
            feed: Feed to ingest

        Returns:
            RefreshResult for the single feed
        """
        fetch_result = await self.feed_fetcher.fetch_single(feed)
        return self.ingest_result(fetch_result)

    def ingest_result(self, fetch_result: FetchResult) -> RefreshResult:
        """Merge an already fetched result into the archive."""
        result = RefreshResult(feeds_total=1)
        self._apply_results(result, [fetch_result])
        self._log_summary(result)
        return result

    def _apply_results(self, result: RefreshResult, fetch_results: List[FetchResult]) -> None:
        articles: List[Article] = []

        for fetch_result in fetch_results:
            if fetch_result.success:
                result.feeds_succeeded += 1
                articles.extend(fetch_result.articles)
            else:
                result.errors.append((fetch_result.feed_url, fetch_result.error or "Unknown error"))

        result.articles_fetched = len(articles)
        # Feeds deleted while the fetch was in flight must not be resurrected
        registered = {feed.id for feed in self.feed_repository.load_all()}
        result.merge_stats = self.article_repository.merge(articles, allowed_feed_ids=registered)
        result.processing_time_seconds = (
            datetime.now(timezone.utc) - result.started_at
        ).total_seconds()

    def _log_summary(self, result: RefreshResult) -> None:
        self.logger.info(
            f"Refresh complete: {result.feeds_succeeded}/{result.feeds_total} feeds, "
            f"{result.articles_fetched} articles fetched, "
            f"{result.merge_stats.added} new, {result.merge_stats.total} archived",
            extra={
                "feeds_total": result.feeds_total,
                "feeds_failed": result.feeds_failed,
                "articles_fetched": result.articles_fetched,
                "archive_size": result.merge_stats.total,
            },
        )

        for feed_url, error in result.errors:
            self.logger.warning(f"Feed {feed_url} contributed no articles: {error}")
