"""
Core module for the agent scraper.

Contains the record types, the browsing protocol and the exceptions used
throughout the application.
"""

from agent_scraper.core.exceptions import (
    ScraperError,
    ConfigurationError,
    BrowserError,
    NavigationError,
    PageLoadError,
    ExtractionError,
    StructuredDataError,
    RetryableError,
    is_retryable,
    get_retry_delay,
)
from agent_scraper.core.models import (
    AgentRecord,
    BadgeType,
    DetailRecord,
    ListItem,
)
from agent_scraper.core.protocols import PageSession, SessionFactory

__all__ = [
    # Base
    "ScraperError",
    "ConfigurationError",
    # Browser
    "BrowserError",
    "NavigationError",
    "PageLoadError",
    # Extraction
    "ExtractionError",
    "StructuredDataError",
    # Retry
    "RetryableError",
    "is_retryable",
    "get_retry_delay",
    # Records
    "AgentRecord",
    "BadgeType",
    "DetailRecord",
    "ListItem",
    # Browsing
    "PageSession",
    "SessionFactory",
]
