"""
NewsDesk Input Validators
=========================

Input validation utilities for feed URLs and user-supplied category labels.
"""

import re
from urllib.parse import urlparse, urlunparse
from typing import Iterable, List, Optional

from .exceptions import ValidationError, ErrorCode


class URLValidator:
    """URL validation and normalization utilities."""

    # Allowed schemes for RSS feeds
    ALLOWED_SCHEMES = {'http', 'https'}

    # Common RSS/Atom feed patterns
    RSS_PATTERNS = [
        r'\.rss$', r'\.xml$', r'\.atom$',
        r'/rss/?$', r'/feed/?$', r'/feeds/?$',
        r'/atom/?$', r'/rss\.xml$', r'/feed\.xml$'
    ]

    @classmethod
    def validate_feed_url(cls, url: str) -> str:
        """Validate and normalize RSS feed URL.

        Args:
            url: URL to validate

        Returns:
            Normalized URL

        Raises:
            ValidationError: If URL is invalid
        """
        if not url or not isinstance(url, str):
            raise ValidationError(
                "URL is required and must be a string",
                error_code=ErrorCode.VALIDATION_REQUIRED_FIELD,
                field_name="url"
            )

        url = url.strip()

        try:
            parsed = urlparse(url)
        except ValueError as e:
            raise ValidationError(
                f"Invalid URL format: {str(e)}",
                error_code=ErrorCode.VALIDATION_INVALID_FORMAT,
                field_name="url"
            ) from e

        if parsed.scheme.lower() not in cls.ALLOWED_SCHEMES:
            raise ValidationError(
                f"URL scheme must be {' or '.join(sorted(cls.ALLOWED_SCHEMES))}",
                error_code=ErrorCode.VALIDATION_INVALID_FORMAT,
                field_name="url"
            )

        if not parsed.netloc:
            raise ValidationError(
                "URL must include a hostname",
                error_code=ErrorCode.VALIDATION_INVALID_FORMAT,
                field_name="url"
            )

        # Scheme and host are case-insensitive; path and query are not
        return urlunparse(parsed._replace(
            scheme=parsed.scheme.lower(),
            netloc=parsed.netloc.lower(),
            path=parsed.path or '/',
            fragment=''
        ))

    @classmethod
    def is_likely_feed_url(cls, url: str) -> bool:
        """Check if URL is likely an RSS/Atom feed."""
        url_lower = url.lower()
        return any(re.search(pattern, url_lower) for pattern in cls.RSS_PATTERNS)


class CategoryValidator:
    """Validation for user-assigned category labels."""

    MAX_LABEL_LENGTH = 100
    MAX_LABELS = 50

    @classmethod
    def validate_labels(cls, labels: Optional[Iterable[str]]) -> List[str]:
        """Validate and sanitize a list of manual category labels.

        An empty or missing list is valid and clears manual categories.

        Args:
            labels: Labels supplied by the user

        Returns:
            Trimmed, de-duplicated labels in their original order

        Raises:
            ValidationError: If labels are not a list of strings or too many
        """
        if labels is None:
            return []

        if isinstance(labels, str) or not isinstance(labels, (list, tuple)):
            raise ValidationError(
                "Categories must be a list of strings",
                error_code=ErrorCode.VALIDATION_INVALID_FORMAT,
                field_name="categories"
            )

        validated: List[str] = []
        for label in labels:
            if not isinstance(label, str):
                raise ValidationError(
                    "Categories must be a list of strings",
                    error_code=ErrorCode.VALIDATION_INVALID_FORMAT,
                    field_name="categories"
                )

            label = cls._sanitize_label(label)
            if not label:
                continue

            if len(label) > cls.MAX_LABEL_LENGTH:
                raise ValidationError(
                    f"Category cannot exceed {cls.MAX_LABEL_LENGTH} characters",
                    error_code=ErrorCode.VALIDATION_OUT_OF_RANGE,
                    field_name="categories"
                )

            if label not in validated:
                validated.append(label)

        if len(validated) > cls.MAX_LABELS:
            raise ValidationError(
                f"At most {cls.MAX_LABELS} categories can be assigned",
                error_code=ErrorCode.VALIDATION_OUT_OF_RANGE,
                field_name="categories"
            )

        return validated

    @classmethod
    def _sanitize_label(cls, label: str) -> str:
        """Strip control characters and collapse whitespace."""
        label = re.sub(r'[\x00-\x08\x0b\x0c\x0e-\x1f\x7f]', '', label)
        label = re.sub(r'\s+', ' ', label)
        return label.strip()


def validate_url(url: str) -> bool:
    """
    Quick validation function for URLs.

    Args:
        url: URL to validate

    Returns:
        True if URL is valid, False otherwise
    """
    try:
        URLValidator.validate_feed_url(url)
        return True
    except ValidationError:
        return False
