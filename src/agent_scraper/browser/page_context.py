"""
Page context wrapper with utilities for reading a loaded page.

Provides the navigation, waiting and snapshot primitives the crawl core
uses, with consistent error handling around Playwright calls.
"""

import time
from dataclasses import dataclass, field
from datetime import datetime, timezone
from functools import cached_property
from typing import Any

from bs4 import BeautifulSoup
from playwright.async_api import Page, Response

from agent_scraper.browser.actions import scroll_to_bottom
from agent_scraper.core.exceptions import NavigationError, PageLoadError
from agent_scraper.utils.logging import get_logger

logger = get_logger(__name__)

# Bot interstitials are served with these statuses; the challenge gate
# inspects them instead of failing the navigation.
CHALLENGE_STATUS_CODES = frozenset({403, 429})


@dataclass
class PageSnapshot:
    """
    Read-only capture of a loaded page.

    Extraction runs against snapshots, never against the live page, so
    every extractor is a pure function of this value.
    """

    url: str
    title: str
    html: str
    text: str = ""
    taken_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    @cached_property
    def soup(self) -> BeautifulSoup:
        """Parsed DOM, built on first access."""
        return BeautifulSoup(self.html or "", "html.parser")

    @classmethod
    def from_html(cls, html: str, url: str = "", title: str | None = None) -> "PageSnapshot":
        """Build a snapshot from raw HTML, deriving title and text."""
        snapshot = cls(url=url, title=title or "", html=html)
        if title is None and snapshot.soup.title is not None:
            snapshot.title = snapshot.soup.title.get_text(strip=True)
        body = snapshot.soup.body or snapshot.soup
        snapshot.text = " ".join(
            s for s in body.stripped_strings
            if s.parent is None or s.parent.name not in ("script", "style", "noscript")
        )
        return snapshot


class PageContext:
    """
    Wrapper around a Playwright Page with utility methods.

    Example:
        >>> page = await context.new_page()
        >>> ctx = PageContext(page)
        >>> await ctx.navigate("https://example.com")
        >>> snapshot = await ctx.snapshot()
    """

    def __init__(self, page: Page, navigation_timeout_ms: int | None = None) -> None:
        """
        Initialize page context.

        Args:
            page: Playwright Page instance
            navigation_timeout_ms: Timeout passed to every goto (None = context default)
        """
        self.page = page
        self.navigation_timeout_ms = navigation_timeout_ms
        self._last_response: Response | None = None

    @property
    def current_url(self) -> str:
        return self.page.url

    @property
    def last_status(self) -> int | None:
        return self._last_response.status if self._last_response else None

    async def navigate(
        self,
        url: str,
        wait_until: str = "domcontentloaded",
    ) -> Response | None:
        """
        Navigate to URL and wait for the given load state.

        Args:
            url: Target URL to navigate to
            wait_until: "domcontentloaded", "load" or "networkidle"

        Returns:
            Response object if available

        Raises:
            NavigationError: If navigation fails, times out or returns an error status
        """
        start_time = time.perf_counter()

        try:
            logger.debug(f"Navigating to: {url}")

            response = await self.page.goto(
                url,
                wait_until=wait_until,
                timeout=self.navigation_timeout_ms,
            )
            self._last_response = response

            elapsed = (time.perf_counter() - start_time) * 1000
            logger.debug(f"Navigation complete in {elapsed:.0f}ms")

            if (
                response
                and response.status >= 400
                and response.status not in CHALLENGE_STATUS_CODES
            ):
                raise NavigationError(
                    f"HTTP {response.status} error",
                    url=url,
                    status_code=response.status,
                )

            return response

        except NavigationError:
            raise
        except Exception as e:
            error_msg = str(e)

            if "timeout" in error_msg.lower():
                raise NavigationError(
                    f"Navigation timeout: {error_msg}",
                    url=url,
                    retry_after=10.0,
                ) from e

            if any(x in error_msg.lower() for x in ["net::", "dns", "connection"]):
                raise NavigationError(
                    f"Network error: {error_msg}",
                    url=url,
                    retry_after=5.0,
                ) from e

            raise NavigationError(
                f"Navigation failed: {error_msg}",
                url=url,
            ) from e

    async def wait_for_selector(
        self,
        selector: str,
        timeout_ms: int | None = None,
        state: str = "visible",
    ) -> bool:
        """
        Wait for an element to reach a state.

        Returns:
            True if the element reached the state, False on timeout or error
        """
        try:
            await self.page.wait_for_selector(
                selector,
                timeout=timeout_ms,
                state=state,
            )
            return True
        except Exception:
            return False

    async def evaluate(self, script: str, arg: Any = None) -> Any:
        """Evaluate a script in the page and return its JSON-able result."""
        try:
            if arg is None:
                return await self.page.evaluate(script)
            return await self.page.evaluate(script, arg)
        except Exception as e:
            raise PageLoadError(
                f"Script evaluation failed: {e}",
                url=self.page.url,
            ) from e

    async def title(self) -> str:
        try:
            return await self.page.title()
        except Exception as e:
            logger.debug(f"Could not read title: {e}")
            return ""

    async def visible_text(self) -> str:
        """Rendered body text, empty when the body is not available."""
        try:
            text = await self.page.evaluate(
                "() => document.body ? document.body.innerText : ''"
            )
        except Exception as e:
            logger.debug(f"Could not read body text: {e}")
            return ""
        return text or ""

    async def snapshot(self) -> PageSnapshot:
        """
        Capture HTML, title and visible text of the current page.

        Raises:
            PageLoadError: If the page content cannot be read
        """
        try:
            html = await self.page.content()
        except Exception as e:
            raise PageLoadError(
                f"Failed to read page content: {e}",
                url=self.page.url,
            ) from e

        return PageSnapshot(
            url=self.page.url,
            title=await self.title(),
            html=html,
            text=await self.visible_text(),
        )

    async def scroll_to_bottom(self) -> int:
        """Scroll incrementally to trigger lazy-loaded content."""
        try:
            return await scroll_to_bottom(self.page)
        except Exception as e:
            logger.debug(f"Scroll failed: {e}")
            return 0

    async def close(self) -> None:
        """Close the page."""
        try:
            await self.page.close()
        except Exception as e:
            logger.warning(f"Error closing page: {e}")
