"""
Content Cleaner
===============

HTML text extraction utilities for feed item content.

This module provides:
- Markup removal and plain text extraction
- Whitespace normalization and length capping
- First inline image lookup
"""

import re
import html
from typing import Optional

from bs4 import BeautifulSoup

from ..utils.logging import get_logger_for_component


class ContentCleaner:
    """
    Markup stripper for rich feed content.

    Never raises on malformed markup; falls back to regex extraction when
    BeautifulSoup cannot handle the input.
    """

    # Elements whose content is never readable text
    NON_CONTENT_ELEMENTS = {"script", "style", "noscript", "iframe", "object", "embed"}

    WHITESPACE_PATTERN = re.compile(r"\s+", re.MULTILINE)
    IMG_SRC_PATTERN = re.compile(r"<img[^>]+src=[\"']([^\"'>]+)[\"']", re.IGNORECASE)

    def __init__(self):
        self.logger = get_logger_for_component("content_cleaner")
        self.parser = "html.parser"  # Built-in parser, no external deps

    def extract_text_only(self, html_content: Optional[str], limit: Optional[int] = None) -> str:
        """
        Extract only text content from HTML, removing all markup.

        Args:
            html_content: HTML content to process
            limit: Maximum number of characters to return

        Returns:
            Plain text content with all HTML removed
        """
        if not html_content or not html_content.strip():
            return ""

        try:
            soup = BeautifulSoup(html_content, self.parser)

            for element in soup(self.NON_CONTENT_ELEMENTS):
                element.decompose()

            text = soup.get_text(separator=" ", strip=True)
            text = self.WHITESPACE_PATTERN.sub(" ", text).strip()

        except Exception as e:
            self.logger.warning(f"Failed to extract text, using fallback: {e}")
            text = self._extract_text_fallback(html_content)

        if limit is not None:
            text = text[:limit]

        return text

    def find_first_image(self, html_content: Optional[str]) -> Optional[str]:
        """
        Find the source URL of the first <img> element in HTML content.

        Args:
            html_content: HTML content to search

        Returns:
            Image URL or None if the content has no image
        """
        if not html_content or "<img" not in html_content.lower():
            return None

        try:
            soup = BeautifulSoup(html_content, self.parser)
            img_tag = soup.find("img", src=True)
            if img_tag is not None:
                src = img_tag.get("src", "").strip()
                return src or None
            return None

        except Exception as e:
            self.logger.warning(f"Failed to parse images, using fallback: {e}")
            match = self.IMG_SRC_PATTERN.search(html_content)
            return match.group(1).strip() if match else None

    def _extract_text_fallback(self, html_content: str) -> str:
        """Fallback text extraction using regex when BeautifulSoup fails."""
        content = re.sub(
            r"<(script|style)[^>]*>.*?</\1>",
            "",
            html_content,
            flags=re.IGNORECASE | re.DOTALL,
        )
        content = re.sub(r"<[^>]+>", " ", content)
        content = html.unescape(content)
        return self.WHITESPACE_PATTERN.sub(" ", content).strip()
