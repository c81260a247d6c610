"""
Utilities module for the agent scraper.

Provides logging setup and in-memory run metrics.
"""

from agent_scraper.utils.logging import (
    setup_logging,
    get_logger,
    get_logger_with_context,
    reset_logging,
)
from agent_scraper.utils.metrics import Metrics, TimingStats

__all__ = [
    # Logging
    "setup_logging",
    "get_logger",
    "get_logger_with_context",
    "reset_logging",
    # Metrics
    "Metrics",
    "TimingStats",
]
