"""
Feed Repository
===============

Repository for the registered feed list stored as a JSON document.
"""

from typing import List, Optional

from pydantic import ValidationError as PydanticValidationError

from ..database.models import Feed
from ..database.document_store import JsonDocumentStore
from ..utils.logging import get_logger_for_component
from ..utils.exceptions import StorageError, ValidationError, ErrorCode


class FeedRepository:
    """Repository for managing registered feeds."""

    def __init__(self, store: JsonDocumentStore):
        """Initialize feed repository.

        Args:
            store: Document store holding the feed list
        """
        self.store = store
        self.logger = get_logger_for_component("feed_repository")

    def load_all(self) -> List[Feed]:
        """Load every registered feed in registration order.

        Raises:
            StorageError: If the feed document is unreadable or corrupt
        """
        return self._decode(self.store.load())

    def save_all(self, feeds: List[Feed]) -> None:
        """Replace the feed list."""
        self.store.save([feed.model_dump(mode="json") for feed in feeds])

    def add(self, feed: Feed) -> Feed:
        """Register a new feed.

        Args:
            feed: Feed to add

        Returns:
            The stored feed

        Raises:
            ValidationError: If a feed with the same ID or URL exists
        """
        with self.store.transaction() as records:
            for existing in self._decode(records):
                if existing.id == feed.id or existing.url == feed.url:
                    raise ValidationError(
                        f"Feed already registered: {feed.url}",
                        field_name="url",
                        error_code=ErrorCode.DUPLICATE_RESOURCE,
                        user_message="This feed is already registered",
                    )
            records.append(feed.model_dump(mode="json"))

        self.logger.info(f"Added feed {feed.id}: {feed.url}", extra={"feed_id": feed.id})
        return feed

    def get(self, feed_id: str) -> Optional[Feed]:
        """Get feed by ID."""
        for feed in self.load_all():
            if feed.id == feed_id:
                return feed
        return None

    def find_by_url(self, url: str) -> Optional[Feed]:
        """Get feed by source URL."""
        for feed in self.load_all():
            if feed.url == url:
                return feed
        return None

    def remove(self, feed_id: str) -> bool:
        """Delete a feed.

        Args:
            feed_id: Feed ID

        Returns:
            True if the feed existed and was removed
        """
        with self.store.transaction() as records:
            feeds = self._decode(records)
            kept = [feed for feed in feeds if feed.id != feed_id]
            removed = len(kept) != len(feeds)
            records[:] = [feed.model_dump(mode="json") for feed in kept]

        if removed:
            self.logger.info(f"Removed feed {feed_id}", extra={"feed_id": feed_id})
        return removed

    def _decode(self, records: List[dict]) -> List[Feed]:
        try:
            return [Feed.model_validate(record) for record in records]
        except PydanticValidationError as e:
            raise StorageError(
                f"Corrupt feed record in {self.store.path}: {e}",
                path=str(self.store.path),
                error_code=ErrorCode.STORAGE_CORRUPTION,
            ) from e
