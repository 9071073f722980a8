"""
Unit tests for the feed registry repository.
"""

import pytest

from newsdesk.database.models import Feed
from newsdesk.storage.feed_repository import FeedRepository
from newsdesk.utils.exceptions import ValidationError, StorageError, ErrorCode


class TestFeedRepository:
    """Test feed registry CRUD operations."""

    def test_missing_document_has_no_feeds(self, feed_repository):
        assert feed_repository.load_all() == []

    def test_add_and_get(self, feed_repository, sample_feeds):
        for feed in sample_feeds:
            feed_repository.add(feed)

        assert [f.id for f in feed_repository.load_all()] == ["feed1", "feed2"]
        stored = feed_repository.get("feed1")
        assert stored.title == "Tech Daily"
        assert stored.category == "Technology"
        assert feed_repository.get("missing") is None

    def test_find_by_url(self, feed_repository, sample_feeds):
        feed_repository.add(sample_feeds[1])

        assert feed_repository.find_by_url("https://science.example.org/atom.xml").id == "feed2"
        assert feed_repository.find_by_url("https://other.example.org/") is None

    def test_duplicate_url_rejected(self, feed_repository, sample_feeds):
        feed_repository.add(sample_feeds[0])

        with pytest.raises(ValidationError) as exc_info:
            feed_repository.add(Feed(id="other", url=sample_feeds[0].url))

        assert exc_info.value.error_code == ErrorCode.DUPLICATE_RESOURCE
        assert len(feed_repository.load_all()) == 1

    def test_duplicate_id_rejected(self, feed_repository, sample_feeds):
        feed_repository.add(sample_feeds[0])

        with pytest.raises(ValidationError):
            feed_repository.add(Feed(id="feed1", url="https://elsewhere.example.com/rss"))

    def test_remove(self, feed_repository, sample_feeds):
        for feed in sample_feeds:
            feed_repository.add(feed)

        assert feed_repository.remove("feed1") is True
        assert feed_repository.remove("feed1") is False
        assert [f.id for f in feed_repository.load_all()] == ["feed2"]

    def test_generated_ids_are_unique(self, feed_repository):
        first = feed_repository.add(Feed(url="https://a.example.com/rss"))
        second = feed_repository.add(Feed(url="https://b.example.com/rss"))

        assert first.id != second.id
        assert feed_repository.get(first.id).url == "https://a.example.com/rss"

    def test_blank_category_defaults_to_general(self, feed_repository):
        feed = feed_repository.add(Feed(url="https://a.example.com/rss", category="  "))
        assert feed_repository.get(feed.id).category == "General"

    def test_save_all_round_trips_added_at(self, feed_repository, sample_feeds):
        feed_repository.save_all(sample_feeds)
        assert [f.added_at for f in feed_repository.load_all()] == [f.added_at for f in sample_feeds]

    def test_corrupt_record_raises(self, feeds_store):
        feeds_store.save([{"title": "no url"}])

        with pytest.raises(StorageError) as exc_info:
            FeedRepository(feeds_store).load_all()

        assert exc_info.value.error_code == ErrorCode.STORAGE_CORRUPTION
