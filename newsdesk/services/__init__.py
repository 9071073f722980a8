"""
NewsDesk Services
=================

Shared service layer for feed reader operations used by the CLI and the
scheduler service.
"""

from .reader_service import ReaderService, FeedFetchSummary

__all__ = [
    'ReaderService',
    'FeedFetchSummary',
]
