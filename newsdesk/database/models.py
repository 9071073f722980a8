"""
NewsDesk Data Models
====================

Pydantic data models for feeds and archived articles. These models define
the persisted JSON documents and provide validation and serialization.
"""

import time
import uuid
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import List, Optional

from pydantic import BaseModel, Field, field_validator


# Sentinel label for feeds without a user category and unclassified articles
DEFAULT_CATEGORY = "General"

# Joins feed id and item token into an article identity
ARTICLE_ID_SEPARATOR = "-"


def now_epoch_ms() -> int:
    """Current time as integer epoch milliseconds."""
    return int(time.time() * 1000)


def make_article_id(feed_id: str, guid: Optional[str], link: Optional[str]) -> str:
    """Build the deterministic article identity for one feed item.

    The guid is preferred; the link is used when the item has no guid.
    """
    token = guid or link or ""
    return f"{feed_id}{ARTICLE_ID_SEPARATOR}{token}"


class Feed(BaseModel):
    """Registered feed source."""
    id: str = Field(default_factory=lambda: uuid.uuid4().hex, description="Opaque stable feed ID")
    url: str = Field(..., min_length=1, description="Feed source URL")
    title: str = Field(default="Untitled Feed", description="Display title")
    category: str = Field(default=DEFAULT_CATEGORY, description="User-assigned feed category")
    added_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    @field_validator('category')
    @classmethod
    def default_blank_category(cls, v):
        """Blank categories fall back to the sentinel."""
        v = (v or "").strip()
        return v or DEFAULT_CATEGORY

    def __str__(self) -> str:
        return f"Feed({self.title}:{self.url})"


class Article(BaseModel):
    """Canonical article record derived from one feed item."""
    id: str = Field(..., min_length=1, description="Deterministic article identity")
    feed_id: str = Field(..., description="Owning feed ID")
    feed_title: str = Field(default="", description="Denormalized feed title")
    title: str = Field(default="", description="Article title")
    link: str = Field(default="", description="Article URL")
    description: str = Field(default="", description="Plain-text description")
    html_content: str = Field(default="", description="Rich content body")
    image: Optional[str] = Field(default=None, description="Lead image URL")
    pub_date: Optional[str] = Field(default=None, description="Publication date as given by the source")
    timestamp: int = Field(default_factory=now_epoch_ms, description="Publication time in epoch milliseconds")
    timestamp_from_source: bool = Field(default=True, description="Whether timestamp was parsed from the source date")
    rss_categories: List[str] = Field(default_factory=list, description="Source-provided category labels")
    categories: List[str] = Field(default_factory=lambda: [DEFAULT_CATEGORY], description="Auto-assigned categories")
    manual_categories: List[str] = Field(default_factory=list, description="User-assigned categories")

    @field_validator('categories')
    @classmethod
    def ensure_categories(cls, v):
        """Auto categories are never empty."""
        return list(v) if v else [DEFAULT_CATEGORY]

    def has_category(self, category: str) -> bool:
        """Whether the label is among auto or manual categories."""
        return category in self.categories or category in self.manual_categories

    def __str__(self) -> str:
        return f"Article({self.title[:50]}...)"


@dataclass
class MergeStats:
    """Outcome of merging fetched articles into the archive."""
    added: int = 0
    updated: int = 0
    evicted: int = 0
    discarded: int = 0
    total: int = 0
