"""
Browser module for the agent scraper.

Provides Playwright-based browser automation with:
- Browser lifecycle management and isolated per-unit contexts
- Page context wrapper and page snapshots
- Scrolling and stealth helpers
"""

from agent_scraper.browser.manager import BrowserManager, create_browser
from agent_scraper.browser.page_context import PageContext, PageSnapshot
from agent_scraper.browser.actions import (
    apply_stealth,
    scroll_to_bottom,
)

__all__ = [
    "BrowserManager",
    "create_browser",
    "PageContext",
    "PageSnapshot",
    "apply_stealth",
    "scroll_to_bottom",
]
