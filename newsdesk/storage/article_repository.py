"""
Article Repository
==================

Repository for the bounded article archive. The archive is one JSON list
ordered by publication timestamp, newest first, and capped at the configured
retention size. Every mutation is a whole-collection load-modify-save
transaction on the underlying document store.
"""

from typing import Dict, Iterable, List, Optional, Set

from pydantic import ValidationError as PydanticValidationError

from ..database.models import Article, MergeStats, DEFAULT_CATEGORY
from ..database.document_store import JsonDocumentStore
from ..config.settings import get_settings
from ..processing.classifier import TAXONOMY
from ..utils.logging import get_logger_for_component
from ..utils.exceptions import StorageError, NotFoundError, ErrorCode
from ..utils.validators import CategoryValidator

# Filter value selecting every article
ALL_CATEGORIES = "all"


def sort_key(article: Article):
    """Newest first; ties broken by id so order never depends on insertion."""
    return (article.timestamp, article.id)


class ArticleRepository:
    """Repository for the article archive."""

    def __init__(
        self,
        store: JsonDocumentStore,
        max_archive_size: Optional[int] = None,
        taxonomy_categories: Optional[Iterable[str]] = None,
    ):
        """Initialize article repository.

        Args:
            store: Document store holding the article list
            max_archive_size: Retention cap (default from config)
            taxonomy_categories: Canonical category names always listed
        """
        self.store = store
        self.settings = get_settings()
        self.max_archive_size = max_archive_size or self.settings.processing.max_archive_size
        self.taxonomy_categories = list(
            taxonomy_categories if taxonomy_categories is not None else TAXONOMY.keys()
        )
        self.logger = get_logger_for_component("article_repository")

    def load_all(self) -> List[Article]:
        """Load every archived article in archive order.

        Raises:
            StorageError: If the archive is unreadable or corrupt
        """
        return self._decode(self.store.load())

    def save_all(self, articles: List[Article]) -> None:
        """Replace the archive with the given articles, re-sorted and capped."""
        ordered = sorted(articles, key=sort_key, reverse=True)[: self.max_archive_size]
        self.store.save(self._encode(ordered))
        self.logger.debug(f"Saved {len(ordered)} articles")

    def find_by_id(self, article_id: str) -> Optional[Article]:
        """Get article by ID.

        Args:
            article_id: Article ID to retrieve

        Returns:
            Article if found, None otherwise
        """
        for article in self.load_all():
            if article.id == article_id:
                return article
        return None

    def remove_by_feed(self, feed_id: str) -> int:
        """Delete every article owned by a feed.

        Args:
            feed_id: Owning feed ID

        Returns:
            Number of articles deleted
        """
        with self.store.transaction() as records:
            articles = self._decode(records)
            kept = [article for article in articles if article.feed_id != feed_id]
            removed = len(articles) - len(kept)
            records[:] = self._encode(kept)

        self.logger.info(f"Removed {removed} articles for feed {feed_id}", extra={"feed_id": feed_id})
        return removed

    def update_manual_categories(self, article_id: str, labels: Optional[List[str]]) -> Article:
        """Replace the user-assigned categories of one article.

        Args:
            article_id: Article ID
            labels: New manual category labels (empty clears them)

        Returns:
            Updated article

        Raises:
            NotFoundError: If the article does not exist
            ValidationError: If the labels are invalid
        """
        validated = CategoryValidator.validate_labels(labels)

        with self.store.transaction() as records:
            articles = self._decode(records)
            for index, article in enumerate(articles):
                if article.id == article_id:
                    updated = article.model_copy(update={"manual_categories": validated})
                    articles[index] = updated
                    records[:] = self._encode(articles)
                    break
            else:
                raise NotFoundError(
                    f"Article {article_id} not found",
                    resource_type="article",
                    resource_id=article_id,
                )

        self.logger.info(
            f"Set manual categories {validated} on article {article_id}",
            extra={"article_id": article_id},
        )
        return updated

    def merge(
        self, articles: List[Article], allowed_feed_ids: Optional[Set[str]] = None
    ) -> MergeStats:
        """Upsert fetched articles into the archive and apply retention.

        Articles are keyed by ID. A re-fetched article replaces the stored
        copy but keeps its manual categories; when the fresh copy has no
        parseable source date the stored timestamp is kept.

        Args:
            articles: Freshly fetched articles
            allowed_feed_ids: Feeds still registered; articles of any other
                feed are discarded (default: keep all)

        Returns:
            Merge statistics
        """
        stats = MergeStats()

        with self.store.transaction() as records:
            archive: Dict[str, Article] = {
                article.id: article for article in self._decode(records)
            }

            for fresh in articles:
                if allowed_feed_ids is not None and fresh.feed_id not in allowed_feed_ids:
                    stats.discarded += 1
                    continue

                stored = archive.get(fresh.id)
                if stored is None:
                    stats.added += 1
                else:
                    update = {"manual_categories": list(stored.manual_categories)}
                    if not fresh.timestamp_from_source:
                        update["timestamp"] = stored.timestamp
                        update["timestamp_from_source"] = stored.timestamp_from_source
                    fresh = fresh.model_copy(update=update)
                    stats.updated += 1
                archive[fresh.id] = fresh

            ordered = sorted(archive.values(), key=sort_key, reverse=True)
            kept = ordered[: self.max_archive_size]
            stats.evicted = len(ordered) - len(kept)
            stats.total = len(kept)

            records[:] = self._encode(kept)

        if stats.discarded:
            self.logger.warning(
                f"Discarded {stats.discarded} articles of feeds removed during refresh"
            )
        self.logger.info(
            f"Merged articles: {stats.added} added, {stats.updated} updated, "
            f"{stats.evicted} evicted, {stats.total} archived"
        )
        return stats

    def list_by_category(self, category: Optional[str] = None) -> List[Article]:
        """List articles matching a category.

        Args:
            category: Category label; None or "all" selects everything

        Returns:
            Matching articles in archive order
        """
        articles = self.load_all()
        if not category or category == ALL_CATEGORIES:
            return articles
        return [article for article in articles if article.has_category(category)]

    def list_categories(self) -> List[str]:
        """Sorted union of the sentinel, taxonomy, auto and manual categories."""
        categories = {DEFAULT_CATEGORY, *self.taxonomy_categories}
        for article in self.load_all():
            categories.update(article.categories)
            categories.update(article.manual_categories)
        return sorted(categories)

    def category_counts(self) -> Dict[str, int]:
        """Number of articles per listed category."""
        counts = {category: 0 for category in [DEFAULT_CATEGORY, *self.taxonomy_categories]}
        for article in self.load_all():
            for category in set(article.categories) | set(article.manual_categories):
                counts[category] = counts.get(category, 0) + 1
        return dict(sorted(counts.items()))

    def count(self) -> int:
        return len(self.store.load())

    def _decode(self, records: List[dict]) -> List[Article]:
        try:
            return [Article.model_validate(record) for record in records]
        except PydanticValidationError as e:
            raise StorageError(
                f"Corrupt article record in {self.store.path}: {e}",
                path=str(self.store.path),
                error_code=ErrorCode.STORAGE_CORRUPTION,
            ) from e

    def _encode(self, articles: List[Article]) -> List[dict]:
        return [article.model_dump(mode="json") for article in articles]
