"""
NewsDesk Processing Module
==========================

Feed ingestion components: keyword classification and concurrent feed
fetching. The ingestion pipeline lives in ``newsdesk.processing.pipeline``.
"""

from .classifier import CategoryClassifier, TAXONOMY
from .feed_fetcher import FeedFetcher, FetchResult

__all__ = [
    'CategoryClassifier',
    'TAXONOMY',
    'FeedFetcher',
    'FetchResult',
]
