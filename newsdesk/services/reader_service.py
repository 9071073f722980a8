"""
Reader Service
==============

Boundary operations of the feed reader, shared by the CLI and the scheduler
entry point.

Features:
- Feed registration with validation fetch and immediate ingestion
- Feed removal cascading to its archived articles
- Category-filtered article listing and manual category edits
- On-demand refresh and dry-run feed previews
"""

from typing import Any, Dict, List, Optional
from dataclasses import dataclass

from ..config.settings import NewsDeskSettings, get_settings
from ..database.document_store import get_document_store, init_data_dir
from ..database.models import Article, Feed, DEFAULT_CATEGORY
from ..processing.feed_fetcher import FeedFetcher
from ..processing.pipeline import IngestionPipeline, RefreshResult
from ..storage.article_repository import ArticleRepository
from ..storage.feed_repository import FeedRepository
from ..utils.logging import get_logger_for_component
from ..utils.exceptions import InvalidSourceError, NotFoundError, ValidationError, ErrorCode
from ..utils.validators import URLValidator

UNTITLED_FEED = "Untitled Feed"


@dataclass
class FeedFetchSummary:
    """Summary of a dry-run feed fetch."""
    url: str
    success: bool
    title: Optional[str] = None
    article_count: int = 0
    error_message: Optional[str] = None
    sample_articles: List[Dict[str, Any]] = None

    def __post_init__(self):
        if self.sample_articles is None:
            self.sample_articles = []


class ReaderService:
    """
    Feed reader operations over the feed registry and article archive.

    Used by the CLI and the scheduler service to provide consistent behavior.
    """

    def __init__(
        self,
        settings: Optional[NewsDeskSettings] = None,
        feed_repository: Optional[FeedRepository] = None,
        article_repository: Optional[ArticleRepository] = None,
        feed_fetcher: Optional[FeedFetcher] = None,
        pipeline: Optional[IngestionPipeline] = None,
    ):
        """Initialize the reader service.

        Args:
            settings: Application settings (default global settings)
            feed_repository: Feed registry (default from storage settings)
            article_repository: Article archive (default from storage settings)
            feed_fetcher: Feed fetcher (default from config)
            pipeline: Ingestion pipeline (default built from the above)
        """
        self.settings = settings or get_settings()
        self.feed_repository = feed_repository or FeedRepository(
            get_document_store(str(self.settings.storage.feeds_path))
        )
        self.article_repository = article_repository or ArticleRepository(
            get_document_store(str(self.settings.storage.articles_path)),
            max_archive_size=self.settings.processing.max_archive_size,
        )
        self.feed_fetcher = feed_fetcher or FeedFetcher()
        self.pipeline = pipeline or IngestionPipeline(
            self.feed_repository, self.article_repository, self.feed_fetcher
        )
        self.logger = get_logger_for_component("reader_service")

    def init_storage(self) -> Dict[str, bool]:
        """Create the data directory and empty documents if missing."""
        return init_data_dir(
            str(self.settings.storage.feeds_path),
            str(self.settings.storage.articles_path),
        )

    def list_feeds(self) -> List[Feed]:
        return self.feed_repository.load_all()

    async def add_feed(
        self, url: str, title: Optional[str] = None, category: Optional[str] = None
    ) -> Feed:
        """Register a feed after a successful validation fetch.

        The fetched articles are merged into the archive right away. Nothing
        is persisted when validation fails.

        Args:
            url: Feed URL
            title: Display title (default parsed feed title)
            category: Feed category (default "General")

        Returns:
            The registered feed

        Raises:
            InvalidSourceError: If the URL is invalid or the feed cannot be fetched and parsed
            ValidationError: If the feed is already registered
        """
        try:
            normalized_url = URLValidator.validate_feed_url(url)
        except ValidationError as e:
            raise InvalidSourceError(
                f"Invalid feed URL {url}: {e}", feed_url=url
            ) from e

        if self.feed_repository.find_by_url(normalized_url):
            raise ValidationError(
                f"Feed already registered: {normalized_url}",
                field_name="url",
                error_code=ErrorCode.DUPLICATE_RESOURCE,
                user_message="This feed is already registered",
            )

        title = (title or "").strip() or None
        candidate = Feed(
            url=normalized_url,
            title=title or UNTITLED_FEED,
            category=category or DEFAULT_CATEGORY,
        )

        fetch_result = await self.feed_fetcher.fetch_single(candidate)
        if not fetch_result.success:
            self.logger.warning(
                f"Rejected feed {normalized_url}: {fetch_result.error}",
                extra={"feed_id": candidate.id},
            )
            raise InvalidSourceError(
                f"Validation fetch failed for {normalized_url}: {fetch_result.error}",
                feed_url=normalized_url,
            )

        feed = candidate.model_copy(
            update={"title": title or fetch_result.feed_title or UNTITLED_FEED}
        )
        self.feed_repository.add(feed)
        self.pipeline.ingest_result(fetch_result)

        self.logger.info(
            f"Registered feed {feed.title} ({feed.url}) with {fetch_result.article_count} articles",
            extra={"feed_id": feed.id},
        )
        return feed

    def delete_feed(self, feed_id: str) -> int:
        """Delete a feed and every article it owns.

        Args:
            feed_id: Feed ID

        Returns:
            Number of articles deleted with the feed

        Raises:
            NotFoundError: If the feed does not exist
        """
        feed = self.feed_repository.get(feed_id)
        if feed is None:
            raise NotFoundError(
                f"Feed {feed_id} not found", resource_type="feed", resource_id=feed_id
            )

        removed_articles = self.article_repository.remove_by_feed(feed_id)
        self.feed_repository.remove(feed_id)

        self.logger.info(
            f"Deleted feed {feed.url} and {removed_articles} articles",
            extra={"feed_id": feed_id},
        )
        return removed_articles

    def list_articles(self, category: Optional[str] = None) -> List[Article]:
        """List archived articles; None or "all" returns everything."""
        return self.article_repository.list_by_category(category)

    def list_categories(self) -> List[str]:
        return self.article_repository.list_categories()

    def category_counts(self) -> Dict[str, int]:
        return self.article_repository.category_counts()

    def set_manual_categories(self, article_id: str, labels: List[str]) -> Article:
        """Replace an article's manual categories.

        Raises:
            NotFoundError: If the article does not exist
        """
        return self.article_repository.update_manual_categories(article_id, labels)

    async def refresh_now(self) -> RefreshResult:
        """Refresh every registered feed and wait for the result."""
        return await self.pipeline.refresh_all()

    async def preview_feed(self, url: str, sample_size: int = 5) -> FeedFetchSummary:
        """Fetch and parse a feed without persisting anything.

        Args:
            url: Feed URL
            sample_size: Number of sample articles to include

        Returns:
            FeedFetchSummary with sample articles or error information
        """
        try:
            normalized_url = URLValidator.validate_feed_url(url)
        except ValidationError as e:
            return FeedFetchSummary(url=url, success=False, error_message=e.user_message)

        fetch_result = await self.feed_fetcher.fetch_single(Feed(url=normalized_url))
        if not fetch_result.success:
            return FeedFetchSummary(
                url=normalized_url, success=False, error_message=fetch_result.error
            )

        return FeedFetchSummary(
            url=normalized_url,
            success=True,
            title=fetch_result.feed_title,
            article_count=fetch_result.article_count,
            sample_articles=[
                {
                    "title": article.title,
                    "link": article.link,
                    "categories": article.categories,
                    "image": article.image,
                }
                for article in fetch_result.articles[:sample_size]
            ],
        )
