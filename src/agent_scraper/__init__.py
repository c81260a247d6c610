"""
Agent Scraper - Collects real-estate agent profiles from a paginated directory.

This package crawls the agent directory, reads each agent's profile page
with tiered extraction (embedded data first, DOM text second) and pauses
for a human when the site interposes a bot challenge.
"""

__version__ = "0.1.0"
__author__ = "Agent Scraper Team"

from agent_scraper.config import Settings, load_config
from agent_scraper.utils.logging import setup_logging, get_logger
from agent_scraper.core.exceptions import ScraperError
from agent_scraper.core.models import AgentRecord, BadgeType, DetailRecord, ListItem
from agent_scraper.extraction import StructuredExtractor
from agent_scraper.crawler import AgentScraper, ScrapeResult

__all__ = [
    "Settings",
    "load_config",
    "setup_logging",
    "get_logger",
    "ScraperError",
    "AgentRecord",
    "BadgeType",
    "DetailRecord",
    "ListItem",
    "StructuredExtractor",
    "AgentScraper",
    "ScrapeResult",
]
