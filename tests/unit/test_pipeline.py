"""
Unit tests for the ingestion pipeline orchestrator.

Covers:
- Per-feed failure isolation during refresh
- Coalescing of overlapping refresh requests
- Single-feed ingestion
- Storage failures surfacing to the caller
"""

import asyncio
from unittest.mock import AsyncMock, MagicMock

import pytest

from newsdesk.processing.feed_fetcher import FetchResult
from newsdesk.processing.pipeline import IngestionPipeline, RefreshResult
from newsdesk.utils.exceptions import StorageError


def success_result(feed, articles, feed_title=None):
    return FetchResult(
        feed_id=feed.id, feed_url=feed.url, success=True, articles=articles, feed_title=feed_title
    )


def failure_result(feed, error):
    return FetchResult(feed_id=feed.id, feed_url=feed.url, success=False, error=error)


class TestIngestionPipeline:
    """Test refresh orchestration with a mocked fetcher."""

    @pytest.fixture
    def fetcher(self):
        fetcher = MagicMock()
        fetcher.fetch_feeds = AsyncMock(return_value=[])
        fetcher.fetch_single = AsyncMock()
        return fetcher

    @pytest.fixture
    def pipeline(self, feed_repository, article_repository, sample_feeds, fetcher):
        for feed in sample_feeds:
            feed_repository.add(feed)
        return IngestionPipeline(feed_repository, article_repository, feed_fetcher=fetcher)

    @pytest.mark.asyncio
    async def test_refresh_isolates_failed_feeds(self, pipeline, fetcher, sample_feeds, make_article,
                                                 article_repository):
        fetcher.fetch_feeds.return_value = [
            success_result(sample_feeds[0], [make_article(token="a", timestamp=2),
                                             make_article(token="b", timestamp=1)]),
            failure_result(sample_feeds[1], "HTTP 500: Server Error"),
        ]

        result = await pipeline.refresh_all()

        assert isinstance(result, RefreshResult)
        assert result.feeds_total == 2
        assert result.feeds_succeeded == 1
        assert result.feeds_failed == 1
        assert result.articles_fetched == 2
        assert result.merge_stats.added == 2
        assert result.errors == [(sample_feeds[1].url, "HTTP 500: Server Error")]
        assert result.success_rate == 50.0
        assert [a.id for a in article_repository.load_all()] == ["feed1-a", "feed1-b"]

    @pytest.mark.asyncio
    async def test_refresh_passes_registered_feeds(self, pipeline, fetcher):
        await pipeline.refresh_all()

        feeds = fetcher.fetch_feeds.await_args.args[0]
        assert [f.id for f in feeds] == ["feed1", "feed2"]

    @pytest.mark.asyncio
    async def test_all_feeds_failing_keeps_archive(self, pipeline, fetcher, sample_feeds, make_article,
                                                   article_repository):
        article_repository.merge([make_article(token="kept")])
        fetcher.fetch_feeds.return_value = [failure_result(f, "Network error") for f in sample_feeds]

        result = await pipeline.refresh_all()

        assert result.feeds_succeeded == 0
        assert article_repository.count() == 1

    @pytest.mark.asyncio
    async def test_no_registered_feeds(self, feed_repository, article_repository, fetcher):
        pipeline = IngestionPipeline(feed_repository, article_repository, feed_fetcher=fetcher)

        result = await pipeline.refresh_all()

        assert result.feeds_total == 0
        assert result.success_rate == 100.0
        assert result.merge_stats.total == 0

    @pytest.mark.asyncio
    async def test_overlapping_refreshes_share_one_run(self, pipeline, fetcher):
        release = asyncio.Event()

        async def slow_fetch(feeds):
            await release.wait()
            return []

        fetcher.fetch_feeds.side_effect = slow_fetch

        first = asyncio.ensure_future(pipeline.refresh_all())
        second = asyncio.ensure_future(pipeline.refresh_all())
        await asyncio.sleep(0)
        assert pipeline.is_running is True

        release.set()
        first_result, second_result = await asyncio.gather(first, second)

        assert first_result is second_result
        assert fetcher.fetch_feeds.await_count == 1
        assert pipeline.is_running is False

        await pipeline.refresh_all()
        assert fetcher.fetch_feeds.await_count == 2

    @pytest.mark.asyncio
    async def test_feed_removed_mid_refresh_not_merged(self, pipeline, fetcher, sample_feeds, make_article,
                                                       feed_repository, article_repository):
        started = asyncio.Event()
        release = asyncio.Event()

        async def blocked_fetch(feeds):
            started.set()
            await release.wait()
            return [
                success_result(sample_feeds[0], [make_article(token="a"), make_article(token="b")]),
                success_result(sample_feeds[1], [make_article(feed_id="feed2", token="c")]),
            ]

        fetcher.fetch_feeds.side_effect = blocked_fetch

        refresh = asyncio.ensure_future(pipeline.refresh_all())
        await asyncio.wait_for(started.wait(), timeout=5)
        article_repository.remove_by_feed("feed1")
        feed_repository.remove("feed1")
        release.set()
        result = await refresh

        assert result.articles_fetched == 3
        assert result.merge_stats.discarded == 2
        assert result.merge_stats.added == 1
        assert [a.id for a in article_repository.load_all()] == ["feed2-c"]

    @pytest.mark.asyncio
    async def test_ingest_feed(self, pipeline, fetcher, sample_feeds, make_article, article_repository):
        fetcher.fetch_single.return_value = success_result(sample_feeds[1], [make_article(feed_id="feed2")])

        result = await pipeline.ingest_feed(sample_feeds[1])

        fetcher.fetch_single.assert_awaited_once_with(sample_feeds[1])
        assert result.feeds_total == 1
        assert result.merge_stats.added == 1
        assert article_repository.find_by_id("feed2-item") is not None

    def test_ingest_failed_result(self, pipeline, sample_feeds, article_repository):
        result = pipeline.ingest_result(failure_result(sample_feeds[0], "Request timeout after 5s"))

        assert result.feeds_succeeded == 0
        assert result.errors == [(sample_feeds[0].url, "Request timeout after 5s")]
        assert article_repository.count() == 0

    @pytest.mark.asyncio
    async def test_corrupt_feed_list_raises(self, feeds_store, article_repository, fetcher):
        from newsdesk.storage.feed_repository import FeedRepository

        feeds_store.path.write_text("[{broken", encoding="utf-8")
        pipeline = IngestionPipeline(FeedRepository(feeds_store), article_repository, feed_fetcher=fetcher)

        with pytest.raises(StorageError):
            await pipeline.refresh_all()

        fetcher.fetch_feeds.assert_not_awaited()
        assert pipeline.is_running is False
