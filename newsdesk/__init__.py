"""
NewsDesk - RSS/Atom Feed Reader
===============================

Feed ingestion with automatic topic categorization and a bounded archive.

Main Components:
- Storage: JSON documents with whole-collection transactions
- Configuration: environment variables with Pydantic validation
- Ingestion: concurrent feed fetching, signal extraction, classification
- Scheduler: interval and on-demand refreshes
"""

__version__ = "1.0.0"
__author__ = "NewsDesk Development Team"
__description__ = "RSS/Atom feed reader with automatic categorization"

# Core imports for easy access
from .config.settings import get_settings
from .utils.logging import configure_application_logging, configure_logging_from_settings, get_logger_for_component
from .utils.exceptions import NewsDeskError

__all__ = [
    "get_settings",
    "configure_application_logging",
    "configure_logging_from_settings",
    "get_logger_for_component",
    "NewsDeskError",
]
