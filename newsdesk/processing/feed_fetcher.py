"""
RSS Feed Fetcher
================

Concurrent RSS/Atom feed fetching with per-feed timeouts and failure
isolation. Every fetch returns a FetchResult; network, HTTP, parse and
timeout failures become failed results instead of exceptions.
"""

import asyncio
import calendar
import aiohttp
import feedparser
from datetime import datetime, timezone
from typing import List, Optional, AsyncGenerator, Any, Tuple
from dataclasses import dataclass
import ssl
import certifi
from contextlib import asynccontextmanager

from ..database.models import Article, Feed, make_article_id, now_epoch_ms
from ..config.settings import get_settings
from ..ingestion.signal_extractor import RawItem, SignalExtractor
from ..utils.logging import get_logger_for_component
from ..utils.exceptions import FeedFetchError, ValidationError, ErrorCode
from ..utils.validators import URLValidator
from .classifier import CategoryClassifier, get_classifier


@dataclass
class FetchResult:
    """Result of feed fetch operation."""

    feed_id: str
    feed_url: str
    success: bool
    articles: List[Article] = None
    feed_title: Optional[str] = None
    error: Optional[str] = None
    fetch_time: Optional[datetime] = None
    article_count: int = 0

    def __post_init__(self):
        if self.articles is None:
            self.articles = []
        self.article_count = len(self.articles)
        if not self.fetch_time:
            self.fetch_time = datetime.now(timezone.utc)


class FeedFetcher:
    """Concurrent RSS feed fetcher with error isolation."""

    def __init__(
        self,
        max_concurrent: int = None,
        timeout: float = None,
        classifier: Optional[CategoryClassifier] = None,
    ):
        """Initialize feed fetcher.

        Args:
            max_concurrent: Maximum concurrent feed fetches (default from config)
            timeout: Per-feed timeout in seconds (default from config)
            classifier: Category classifier (default shared instance)
        """
        settings = get_settings()
        self.max_concurrent = max_concurrent or settings.processing.parallel_feeds
        self.timeout = timeout or settings.limits.request_timeout
        self.max_response_bytes = settings.limits.max_response_bytes
        self.extractor = SignalExtractor(settings.processing.plain_text_limit)
        self.classifier = classifier or get_classifier()
        self.logger = get_logger_for_component("feed_fetcher")

        # SSL context for secure requests
        self.ssl_context = ssl.create_default_context(cafile=certifi.where())

    @asynccontextmanager
    async def get_session(self):
        """Get configured aiohttp session."""
        connector = aiohttp.TCPConnector(
            ssl=self.ssl_context,
            limit=self.max_concurrent * 2,
            limit_per_host=5,
            enable_cleanup_closed=True,
        )

        timeout = aiohttp.ClientTimeout(total=self.timeout)

        headers = {
            "User-Agent": "NewsDesk/1.0 (feed reader)",
            "Accept": "application/rss+xml, application/atom+xml, application/xml, text/xml, */*",
            "Accept-Encoding": "gzip, deflate",
        }

        async with aiohttp.ClientSession(
            connector=connector, timeout=timeout, headers=headers
        ) as session:
            yield session

    async def fetch_feed(self, feed: Feed, session: aiohttp.ClientSession) -> FetchResult:
        """Fetch and parse a single feed.

        The whole fetch is bounded by the configured timeout. Never raises
        for network, HTTP, parse or timeout failures.

        Args:
            feed: Feed to fetch
            session: aiohttp session for requests

        Returns:
            FetchResult with articles or error information
        """
        start_time = datetime.now(timezone.utc)

        try:
            feed_title, articles = await asyncio.wait_for(
                self._fetch_and_parse(feed, session), timeout=self.timeout
            )

            self.logger.info(
                f"Fetched {len(articles)} articles from {feed.url} "
                f"in {(datetime.now(timezone.utc) - start_time).total_seconds():.2f}s",
                extra={"feed_id": feed.id},
            )

            return FetchResult(
                feed_id=feed.id,
                feed_url=feed.url,
                success=True,
                articles=articles,
                feed_title=feed_title,
                fetch_time=start_time,
            )

        except asyncio.TimeoutError:
            error_msg = f"Request timeout after {self.timeout}s"
            self.logger.warning(
                f"Feed fetch timeout for {feed.url}: {error_msg}",
                extra={"feed_id": feed.id, "error_code": ErrorCode.FEED_FETCH_TIMEOUT.value},
            )

        except FeedFetchError as e:
            error_msg = e.user_message
            self.logger.warning(
                f"Feed fetch failed for {feed.url}: {e}",
                extra={"feed_id": feed.id, "error_code": e.error_code.value},
            )

        except ValidationError as e:
            error_msg = e.user_message
            self.logger.warning(
                f"Invalid feed URL {feed.url}: {e}",
                extra={"feed_id": feed.id, "error_code": ErrorCode.FEED_INVALID_URL.value},
            )

        except aiohttp.ClientError as e:
            error_msg = f"Network error: {str(e)}"
            self.logger.warning(
                f"Feed fetch failed for {feed.url}: {error_msg}",
                extra={"feed_id": feed.id, "error_code": ErrorCode.FEED_NETWORK_ERROR.value},
            )

        except Exception as e:
            error_msg = f"Fetch error: {str(e)}"
            self.logger.error(
                f"Feed fetch failed for {feed.url}: {error_msg}",
                exc_info=True,
                extra={"feed_id": feed.id},
            )

        return FetchResult(
            feed_id=feed.id,
            feed_url=feed.url,
            success=False,
            error=error_msg,
            fetch_time=start_time,
        )

    async def fetch_single(self, feed: Feed) -> FetchResult:
        """Fetch one feed with a dedicated session."""
        async with self.get_session() as session:
            return await self.fetch_feed(feed, session)

    async def _fetch_and_parse(
        self, feed: Feed, session: aiohttp.ClientSession
    ) -> Tuple[Optional[str], List[Article]]:
        validated_url = URLValidator.validate_feed_url(feed.url)

        self.logger.debug(f"Fetching feed: {validated_url}", extra={"feed_id": feed.id})

        async with session.get(validated_url) as response:
            if response.status != 200:
                raise FeedFetchError(
                    f"HTTP {response.status}: {response.reason}",
                    feed_url=feed.url,
                    error_code=ErrorCode.FEED_HTTP_ERROR,
                    user_message=f"HTTP {response.status}: {response.reason}",
                )

            content = await response.read()

        if len(content) > self.max_response_bytes:
            raise FeedFetchError(
                f"Feed document exceeds {self.max_response_bytes} bytes",
                feed_url=feed.url,
                error_code=ErrorCode.FEED_PARSE_ERROR,
                user_message="Feed document too large",
            )

        return self.parse_document(content, feed)

    def parse_document(self, content: Any, feed: Feed) -> Tuple[Optional[str], List[Article]]:
        """Parse a feed document into articles.

        Args:
            content: Raw feed document (bytes or str)
            feed: Feed the document belongs to

        Returns:
            Tuple of (parsed feed title, articles)

        Raises:
            FeedFetchError: If the document is not a parseable feed
        """
        feed_data = feedparser.parse(content)

        entries = feed_data.get("entries") or []
        channel = feed_data.get("feed") or {}

        if feed_data.get("bozo"):
            error_msg = f"Feed parse error: {feed_data.get('bozo_exception', 'Invalid XML structure')}"

            # Still process if we have entries
            if not entries:
                raise FeedFetchError(
                    error_msg,
                    feed_url=feed.url,
                    error_code=ErrorCode.FEED_PARSE_ERROR,
                    user_message="Not a valid RSS or Atom feed",
                )
            self.logger.info(
                f"Feed has parse warnings but contains entries: {feed.url}",
                extra={"feed_id": feed.id},
            )

        if not entries and not channel:
            raise FeedFetchError(
                "Document contains no feed channel",
                feed_url=feed.url,
                error_code=ErrorCode.FEED_PARSE_ERROR,
                user_message="Not a valid RSS or Atom feed",
            )

        parsed_title = (channel.get("title") or "").strip() or None
        feed_title = parsed_title or feed.title

        return parsed_title, self._parse_entries(entries, feed, feed_title)

    def _parse_entries(self, entries: List[Any], feed: Feed, feed_title: str) -> List[Article]:
        """Convert feed entries into Article models.

        Args:
            entries: feedparser entries
            feed: Owning feed
            feed_title: Denormalized feed title for every article

        Returns:
            List of Article models
        """
        articles = []
        ingested_at = now_epoch_ms()

        for entry in entries:
            try:
                article = self.build_article(RawItem.from_entry(entry), feed, feed_title, ingested_at)
                if article is not None:
                    articles.append(article)
            except Exception as e:
                self.logger.warning(
                    f"Failed to parse entry in feed {feed.url}: {e}",
                    extra={"feed_id": feed.id},
                )
                continue

        return articles

    def build_article(
        self, item: RawItem, feed: Feed, feed_title: str, ingested_at: Optional[int] = None
    ) -> Optional[Article]:
        """Build the canonical article for one raw item.

        Returns:
            Article, or None when the item has neither guid nor link
        """
        if not item.guid and not item.link:
            self.logger.warning(
                f"Entry without guid or link in feed {feed.url}, skipping",
                extra={"feed_id": feed.id},
            )
            return None

        signals = self.extractor.extract(item)
        categories = self.classifier.classify(
            item.title, signals.plain_text, signals.raw_categories
        )

        parsed_timestamp = self._parse_timestamp(item)
        if parsed_timestamp is None:
            timestamp = ingested_at if ingested_at is not None else now_epoch_ms()
        else:
            timestamp = parsed_timestamp

        return Article(
            id=make_article_id(feed.id, item.guid, item.link),
            feed_id=feed.id,
            feed_title=feed_title,
            title=item.title or "",
            link=item.link or "",
            description=signals.plain_text,
            html_content=signals.html_content,
            image=signals.image,
            pub_date=item.pub_date,
            timestamp=timestamp,
            timestamp_from_source=parsed_timestamp is not None,
            rss_categories=signals.raw_categories,
            categories=categories,
            manual_categories=[],
        )

    def _parse_timestamp(self, item: RawItem) -> Optional[int]:
        """Normalize the item's publication date to epoch milliseconds.

        Returns None when the item has no parseable date.
        """
        for date_tuple in (item.published_parsed, item.updated_parsed):
            if date_tuple:
                try:
                    # feedparser normalizes parsed dates to UTC
                    return calendar.timegm(date_tuple) * 1000
                except (ValueError, OverflowError, TypeError):
                    continue

        return None

    async def stream_feeds(self, feeds: List[Feed]) -> AsyncGenerator[FetchResult, None]:
        """Fetch multiple feeds concurrently.

        Args:
            feeds: Feeds to fetch

        Yields:
            FetchResult objects as feeds are processed
        """
        if not feeds:
            return

        self.logger.info(f"Starting concurrent fetch of {len(feeds)} feeds")

        async with self.get_session() as session:
            # Create semaphore to limit concurrent requests
            semaphore = asyncio.Semaphore(self.max_concurrent)

            async def fetch_with_semaphore(feed: Feed) -> FetchResult:
                async with semaphore:
                    return await self.fetch_feed(feed, session)

            tasks = [fetch_with_semaphore(feed) for feed in feeds]

            # Process results as they complete
            for completed_task in asyncio.as_completed(tasks):
                result = await completed_task
                yield result

    async def fetch_feeds(self, feeds: List[Feed]) -> List[FetchResult]:
        """Fetch multiple feeds and return all results, failures included.

        Args:
            feeds: Feeds to fetch

        Returns:
            List of FetchResult objects
        """
        results = []
        async for result in self.stream_feeds(feeds):
            results.append(result)

        # Log summary
        successful = sum(1 for r in results if r.success)
        total_articles = sum(r.article_count for r in results if r.success)

        self.logger.info(
            f"Feed fetch complete: {successful}/{len(results)} feeds successful, "
            f"{total_articles} total articles"
        )

        return results
