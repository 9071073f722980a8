"""
NewsDesk Storage Layer
======================

Repository pattern implementations for data access abstraction.

This module provides:
- Article repository for the bounded, time-ordered archive
- Feed repository for registered feed sources
"""

from .article_repository import ArticleRepository
from .feed_repository import FeedRepository

__all__ = [
    "ArticleRepository",
    "FeedRepository",
]
