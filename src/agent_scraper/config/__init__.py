"""
Configuration module for the agent scraper.

Provides Pydantic-based settings management with YAML file support
and environment variable overrides.
"""

from agent_scraper.config.settings import (
    Settings,
    BrowserSettings,
    CrawlerSettings,
    OutputSettings,
    LoggingSettings,
)
from agent_scraper.config.loader import (
    load_config,
    get_settings,
    reset_settings,
    dump_config,
)

__all__ = [
    "Settings",
    "BrowserSettings",
    "CrawlerSettings",
    "OutputSettings",
    "LoggingSettings",
    "load_config",
    "get_settings",
    "reset_settings",
    "dump_config",
]
