"""
Signal Extractor
================

Pulls image, content and category signals out of one feed item.

Feed items arrive in many shapes (RSS 2.0, RSS 1.0, Atom, Media RSS,
podcast extensions). ``RawItem.from_entry`` maps a feedparser entry onto a
typed structure with one explicit field per known source field; the
extraction itself is a pure function over that structure and never raises
on absent or malformed fields.
"""

import time
from dataclasses import dataclass
from typing import Any, List, Optional, Sequence, Union

from .content_cleaner import ContentCleaner

# Plain text derived from rich content is capped at this many characters
DEFAULT_PLAIN_TEXT_LIMIT = 500

CategoryField = Union[str, Sequence[Any], None]


@dataclass
class MediaRef:
    """A media reference (media:content entry or enclosure)."""

    url: str
    type: str = ""

    @property
    def is_image(self) -> bool:
        return self.type.lower().startswith("image/")


@dataclass
class RawItem:
    """Typed view of one raw feed item; absent fields are None or empty."""

    guid: Optional[str] = None
    link: Optional[str] = None
    title: Optional[str] = None
    pub_date: Optional[str] = None
    published_parsed: Optional[time.struct_time] = None
    updated_parsed: Optional[time.struct_time] = None
    media_content: List[MediaRef] = None
    media_thumbnail: Optional[str] = None
    enclosures: List[MediaRef] = None
    content_encoded: Optional[str] = None
    content_snippet: Optional[str] = None
    summary: Optional[str] = None
    description: Optional[str] = None
    itunes_image: Optional[str] = None
    categories: CategoryField = None
    category: CategoryField = None

    def __post_init__(self):
        """Initialize default values after dataclass creation."""
        if self.media_content is None:
            self.media_content = []
        if self.enclosures is None:
            self.enclosures = []

    @classmethod
    def from_entry(cls, entry: Any) -> "RawItem":
        """Build a RawItem from a feedparser entry (or any mapping).

        Args:
            entry: feedparser entry dictionary

        Returns:
            Typed raw item
        """
        if not hasattr(entry, "get"):
            return cls()

        content_encoded = None
        content = entry.get("content")
        if isinstance(content, list):
            for part in content:
                if hasattr(part, "get") and _text(part.get("value")):
                    content_encoded = part.get("value")
                    break

        thumbnail = None
        for thumb in _as_list(entry.get("media_thumbnail")):
            if hasattr(thumb, "get") and _text(thumb.get("url")):
                thumbnail = thumb.get("url").strip()
                break

        itunes_image = None
        image = entry.get("image")
        if hasattr(image, "get"):
            itunes_image = _text(image.get("href")) or None
        elif isinstance(image, str):
            itunes_image = _text(image) or None

        # feedparser mirrors the first tag into "category"; use it only without tags
        tags = [tag.get("term") for tag in _as_list(entry.get("tags")) if hasattr(tag, "get")]
        category = None if tags else entry.get("category")

        # feedparser copies rich content into "summary" when the item has no
        # description; a distinct summary is the item's own teaser
        summary = _text(entry.get("summary")) or None
        snippet = None
        if content_encoded and summary and summary != content_encoded.strip():
            snippet = summary

        return cls(
            guid=_text(entry.get("id")) or _text(entry.get("guid")) or None,
            link=_text(entry.get("link")) or None,
            title=_text(entry.get("title")) or None,
            pub_date=_text(entry.get("published")) or _text(entry.get("updated")) or None,
            published_parsed=_struct_time(entry.get("published_parsed")),
            updated_parsed=_struct_time(entry.get("updated_parsed")),
            media_content=_media_refs(entry.get("media_content"), "url"),
            media_thumbnail=thumbnail,
            enclosures=_media_refs(entry.get("enclosures"), "href"),
            content_encoded=content_encoded,
            content_snippet=snippet,
            summary=summary,
            description=_text(entry.get("description")) or None,
            itunes_image=itunes_image,
            categories=tags or None,
            category=category,
        )


@dataclass
class ItemSignals:
    """Signals extracted from one feed item."""

    image: Optional[str]
    html_content: str
    plain_text: str
    raw_categories: List[str]


class SignalExtractor:
    """Pure transform from RawItem to ItemSignals."""

    def __init__(self, plain_text_limit: int = DEFAULT_PLAIN_TEXT_LIMIT):
        self.plain_text_limit = plain_text_limit
        self.cleaner = ContentCleaner()

    def extract(self, item: RawItem) -> ItemSignals:
        html_content, plain_text = self.extract_content(item)
        return ItemSignals(
            image=self.extract_image(item),
            html_content=html_content,
            plain_text=plain_text,
            raw_categories=self.extract_categories(item),
        )

    def extract_image(self, item: RawItem) -> Optional[str]:
        """Resolve the lead image URL, first match wins.

        Order: media content with an image type, media thumbnail, image
        enclosure, first <img> in rich content, first <img> in the
        snippet/summary/description, podcast item image.
        """
        for media in item.media_content:
            if media.is_image and media.url:
                return media.url

        if item.media_thumbnail:
            return item.media_thumbnail

        for enclosure in item.enclosures:
            if enclosure.is_image and enclosure.url:
                return enclosure.url

        image = self.cleaner.find_first_image(item.content_encoded)
        if image:
            return image

        image = self.cleaner.find_first_image(_first_text(
            item.content_snippet, item.summary, item.description
        ))
        if image:
            return image

        return item.itunes_image or None

    def extract_content(self, item: RawItem):
        """Resolve (rich content, plain text) for the item.

        Rich content is preferred; its plain form is the provided snippet or
        the rich content, markup-stripped and capped at the plain text limit.
        """
        rich = _text(item.content_encoded)
        if rich:
            snippet = _text(item.content_snippet)
            plain = self.cleaner.extract_text_only(
                snippet or rich, limit=self.plain_text_limit
            )
            return rich, plain

        description = _first_text(item.content_snippet, item.summary, item.description)
        return description, self.cleaner.extract_text_only(description)

    def extract_categories(self, item: RawItem) -> List[str]:
        """Collect source category labels in order of appearance.

        Duplicates are kept; non-string and blank values are dropped.
        """
        labels = []
        for value in (item.categories, item.category):
            for label in _as_list(value):
                if isinstance(label, str) and label.strip():
                    labels.append(label.strip())
        return labels


def extract_signals(item: RawItem, plain_text_limit: int = DEFAULT_PLAIN_TEXT_LIMIT) -> ItemSignals:
    """Extract image, content and category signals from one raw item."""
    return SignalExtractor(plain_text_limit).extract(item)


def _text(value: Any) -> str:
    return value.strip() if isinstance(value, str) else ""


def _first_text(*values: Any) -> str:
    for value in values:
        text = _text(value)
        if text:
            return text
    return ""


def _as_list(value: Any) -> List[Any]:
    if value is None:
        return []
    if isinstance(value, (list, tuple)):
        return list(value)
    return [value]


def _struct_time(value: Any) -> Optional[time.struct_time]:
    return value if isinstance(value, time.struct_time) else None


def _media_refs(value: Any, url_key: str) -> List[MediaRef]:
    refs = []
    for media in _as_list(value):
        if not hasattr(media, "get"):
            continue
        url = _text(media.get(url_key)) or _text(media.get("url"))
        if url:
            refs.append(MediaRef(url=url, type=_text(media.get("type"))))
    return refs
