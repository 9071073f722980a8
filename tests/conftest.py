"""
PyTest Configuration and Fixtures
=================================

Shared fixtures and configuration for NewsDesk tests.

- Environment variables point storage and logs at a temporary directory
- Repositories are built over per-test document stores
- Sample feeds, articles and feed documents for parser and pipeline tests
"""

import pytest
import tempfile
import os
import sys
from pathlib import Path
from unittest.mock import AsyncMock, MagicMock

# Add project root to Python path
sys.path.insert(0, str(Path(__file__).parent.parent))

# Set test environment variables before any imports
_test_root = Path(tempfile.mkdtemp(prefix="newsdesk_tests_"))
os.environ["NEWSDESK_STORAGE__DATA_DIR"] = str(_test_root / "data")
os.environ["NEWSDESK_LOGGING__FILE_PATH"] = str(_test_root / "logs" / "newsdesk.log")
os.environ["NEWSDESK_LOGGING__CONSOLE_LOGGING"] = "false"
os.environ["NEWSDESK_LIMITS__REQUEST_TIMEOUT"] = "5"
os.environ["NEWSDESK_DEBUG"] = "true"


SAMPLE_RSS = """<?xml version="1.0" encoding="UTF-8"?>
<rss version="2.0"
     xmlns:content="http://purl.org/rss/1.0/modules/content/"
     xmlns:media="http://search.yahoo.com/mrss/">
  <channel>
    <title>Tech Daily</title>
    <link>https://example.com</link>
    <description>Technology news</description>
    <item>
      <title>New iPhone released</title>
      <link>https://example.com/iphone</link>
      <guid>https://example.com/iphone</guid>
      <description>Apple's latest gadget</description>
      <pubDate>Mon, 06 Jan 2025 10:00:00 GMT</pubDate>
    </item>
    <item>
      <title>Championship recap</title>
      <link>https://example.com/finals</link>
      <guid>finals-2025</guid>
      <category>Football Finals</category>
      <description>What a night.</description>
      <pubDate>Sun, 05 Jan 2025 10:00:00 GMT</pubDate>
    </item>
    <item>
      <title>Photo of the day</title>
      <link>https://example.com/photo</link>
      <guid>photo-1</guid>
      <content:encoded><![CDATA[<p><img src="http://x/a.jpg">photo</p>]]></content:encoded>
      <pubDate>Sat, 04 Jan 2025 10:00:00 GMT</pubDate>
    </item>
  </channel>
</rss>
"""

SAMPLE_ATOM = """<?xml version="1.0" encoding="utf-8"?>
<feed xmlns="http://www.w3.org/2005/Atom">
  <title>Science Weekly</title>
  <link href="https://science.example.org/"/>
  <id>urn:uuid:science-weekly</id>
  <updated>2025-01-07T12:00:00Z</updated>
  <entry>
    <title>Climate research update</title>
    <link href="https://science.example.org/climate"/>
    <id>urn:uuid:climate-1</id>
    <updated>2025-01-07T12:00:00Z</updated>
    <summary>New study on the environment and climate.</summary>
  </entry>
</feed>
"""

NOT_A_FEED = "<html><head><title>Hello</title></head><body><p>Just a page</body></html>"


def make_response(body="", status=200, reason="OK"):
    """Build an aiohttp-style response context manager mock."""
    response = MagicMock()
    response.status = status
    response.reason = reason
    response.read = AsyncMock(
        return_value=body.encode("utf-8") if isinstance(body, str) else body
    )

    context = MagicMock()
    context.__aenter__ = AsyncMock(return_value=response)
    context.__aexit__ = AsyncMock(return_value=False)
    return context


def make_session(responses):
    """Build a session mock answering GET requests from a URL -> response map.

    Values may be response context managers or exceptions to raise.
    """
    session = MagicMock()

    def get(url, *args, **kwargs):
        response = responses[url]
        if isinstance(response, BaseException):
            raise response
        return response

    session.get.side_effect = get
    return session


@pytest.fixture
def data_dir(tmp_path):
    """Per-test data directory."""
    path = tmp_path / "data"
    path.mkdir()
    return path


@pytest.fixture
def feeds_store(data_dir):
    from newsdesk.database.document_store import JsonDocumentStore

    return JsonDocumentStore(str(data_dir / "feeds.json"))


@pytest.fixture
def articles_store(data_dir):
    from newsdesk.database.document_store import JsonDocumentStore

    return JsonDocumentStore(str(data_dir / "articles.json"))


@pytest.fixture
def feed_repository(feeds_store):
    from newsdesk.storage.feed_repository import FeedRepository

    return FeedRepository(feeds_store)


@pytest.fixture
def article_repository(articles_store):
    from newsdesk.storage.article_repository import ArticleRepository

    return ArticleRepository(articles_store, max_archive_size=1000)


@pytest.fixture
def sample_feeds():
    """Generate sample feeds for testing."""
    from newsdesk.database.models import Feed

    return [
        Feed(id="feed1", url="https://example.com/rss.xml", title="Tech Daily", category="Technology"),
        Feed(id="feed2", url="https://science.example.org/atom.xml", title="Science Weekly"),
    ]


@pytest.fixture
def make_article():
    """Factory for archived articles."""
    from newsdesk.database.models import Article

    def _make(feed_id="feed1", token="item", timestamp=1_700_000_000_000, **kwargs):
        defaults = dict(
            id=f"{feed_id}-{token}",
            feed_id=feed_id,
            feed_title="Tech Daily",
            title=f"Article {token}",
            link=f"https://example.com/{token}",
            pub_date="Mon, 06 Jan 2025 10:00:00 GMT",
            timestamp=timestamp,
        )
        defaults.update(kwargs)
        return Article(**defaults)

    return _make
