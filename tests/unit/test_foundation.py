"""
Foundation Tests for NewsDesk
=============================

Test suite for core foundation components including configuration,
logging, exceptions, models and validation.
"""

import json
import logging

import pytest
from unittest.mock import patch

from newsdesk.config.settings import NewsDeskSettings, load_settings
from newsdesk.database.models import Article, Feed, make_article_id
from newsdesk.utils.logging import (
    setup_logger, get_logger_for_component, PerformanceLogger, ColoredConsoleFormatter,
)
from newsdesk.utils.exceptions import (
    NewsDeskError, ConfigurationError, StorageError, FeedError, InvalidSourceError,
    NotFoundError, ValidationError, ErrorCode, get_user_friendly_message,
)
from newsdesk.utils.validators import URLValidator, CategoryValidator, validate_url


class TestConfiguration:
    """Test configuration management."""

    def test_default_settings(self):
        settings = NewsDeskSettings()

        assert settings.scheduler.refresh_interval_minutes == 30
        assert settings.scheduler.run_on_startup is True
        assert settings.processing.max_archive_size == 1000
        assert settings.processing.plain_text_limit == 500
        assert settings.storage.feeds_path.name == "feeds.json"
        assert settings.storage.articles_path.name == "articles.json"

    def test_environment_overrides(self):
        with patch.dict("os.environ", {
            "NEWSDESK_SCHEDULER__REFRESH_INTERVAL_MINUTES": "15",
            "NEWSDESK_PROCESSING__MAX_ARCHIVE_SIZE": "50",
        }):
            settings = NewsDeskSettings()

        assert settings.scheduler.refresh_interval_minutes == 15
        assert settings.processing.max_archive_size == 50

    def test_invalid_override_raises_configuration_error(self):
        with patch.dict("os.environ", {"NEWSDESK_SCHEDULER__REFRESH_INTERVAL_MINUTES": "0"}):
            with pytest.raises(ConfigurationError):
                load_settings()

    def test_same_document_names_rejected(self, tmp_path):
        settings = NewsDeskSettings()
        settings.storage.data_dir = str(tmp_path)
        settings.storage.articles_file = settings.storage.feeds_file

        with pytest.raises(ConfigurationError):
            settings.validate_configuration()

    def test_debug_forces_debug_level(self):
        settings = NewsDeskSettings(debug=True)
        assert settings.get_effective_log_level() == "DEBUG"


class TestLogging:
    """Test logging setup and helpers."""

    def test_file_logging_is_structured(self, tmp_path):
        log_file = tmp_path / "logs" / "test.log"
        logger = setup_logger("newsdesk.test_file", level="INFO", log_file=str(log_file), console=False)

        logger.info("hello", extra={"feed_id": "feed1"})
        for handler in logger.handlers:
            handler.flush()

        record = json.loads(log_file.read_text(encoding="utf-8").splitlines()[-1])
        assert record["message"] == "hello"
        assert record["extra"]["feed_id"] == "feed1"

    def test_component_logger_context(self):
        adapter = get_logger_for_component("fetcher", feed_id="feed1")

        assert adapter.logger.name == "newsdesk.fetcher"
        assert adapter.extra == {"component": "fetcher", "feed_id": "feed1"}

    def test_performance_logger_reports_failure(self, caplog):
        logger = logging.getLogger("newsdesk.perf_test")

        with caplog.at_level(logging.INFO, logger="newsdesk.perf_test"):
            with pytest.raises(RuntimeError):
                with PerformanceLogger(logger, "refresh"):
                    raise RuntimeError("boom")

        assert "Failed refresh" in caplog.text

    def test_performance_logger_keeps_duration(self):
        with PerformanceLogger(logging.getLogger("newsdesk.perf_test"), "merge") as perf:
            pass

        assert perf.duration_seconds >= 0.0

    def test_console_format_shows_component(self):
        record = logging.LogRecord("newsdesk.fetcher", logging.INFO, __file__, 1, "fetched", None, None)
        record.component = "feed_fetcher"
        record.feed_id = "feed1"

        formatted = ColoredConsoleFormatter().format(record)

        assert "feed_fetcher feed=feed1 - fetched" in formatted


class TestExceptions:
    """Test exception hierarchy."""

    def test_error_code_in_str(self):
        error = StorageError("cannot read", path="/tmp/x.json", error_code=ErrorCode.STORAGE_READ)

        assert str(error) == "[D001] cannot read"
        assert error.context == {"path": "/tmp/x.json"}
        assert error.to_dict()["error_type"] == "StorageError"

    def test_invalid_source_defaults(self):
        error = InvalidSourceError("fetch failed", feed_url="https://example.com/rss")

        assert isinstance(error, FeedError)
        assert error.error_code == ErrorCode.FEED_VALIDATION_FAILED
        assert error.user_message == "Invalid RSS feed URL"
        assert error.recoverable is False

    def test_not_found_user_message(self):
        assert NotFoundError("x", resource_type="article").user_message == "Article not found"
        assert NotFoundError("x").user_message == "Resource not found"

    def test_user_friendly_message(self):
        assert get_user_friendly_message(ValidationError("bad", field_name="url")) == "Invalid url: bad"
        assert get_user_friendly_message(KeyError("x")).startswith("An unexpected error")
        assert isinstance(ConfigurationError("x"), NewsDeskError)


class TestModels:
    """Test feed and article models."""

    def test_article_identity(self):
        assert make_article_id("feed1", "guid-1", "https://x/1") == "feed1-guid-1"
        assert make_article_id("feed1", None, "https://x/1") == "feed1-https://x/1"
        assert make_article_id("feed1", "", "") == "feed1-"

    def test_article_categories_never_empty(self):
        article = Article(id="feed1-a", feed_id="feed1", categories=[])
        assert article.categories == ["General"]
        assert article.has_category("General")

    def test_feed_defaults(self):
        feed = Feed(url="https://example.com/rss", category="")

        assert len(feed.id) == 32
        assert feed.title == "Untitled Feed"
        assert feed.category == "General"


class TestValidators:
    """Test input validators."""

    @pytest.mark.parametrize("url,expected", [
        ("https://Example.COM/feed.xml", "https://example.com/feed.xml"),
        ("  http://example.com  ", "http://example.com/"),
        ("https://example.com/rss?format=Atom#top", "https://example.com/rss?format=Atom"),
    ])
    def test_url_normalization(self, url, expected):
        assert URLValidator.validate_feed_url(url) == expected

    @pytest.mark.parametrize("url", [None, "", "example.com/feed", "ftp://example.com/feed", "https://"])
    def test_invalid_urls(self, url):
        with pytest.raises(ValidationError):
            URLValidator.validate_feed_url(url)
        assert validate_url(url) is False

    def test_feed_url_heuristic(self):
        assert URLValidator.is_likely_feed_url("https://example.com/feed/")
        assert not URLValidator.is_likely_feed_url("https://example.com/about")

    def test_label_validation(self):
        assert CategoryValidator.validate_labels(None) == []
        assert CategoryValidator.validate_labels(["a\x00b", "  spaced   out ", "", "ab"]) == ["ab", "spaced out"]

    @pytest.mark.parametrize("labels", ["Work", ["ok", 3], ["x" * 101], [f"l{i}" for i in range(51)]])
    def test_invalid_labels(self, labels):
        with pytest.raises(ValidationError):
            CategoryValidator.validate_labels(labels)
