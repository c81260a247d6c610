"""
Capabilities the crawl core needs from the browsing layer.

PageContext satisfies PageSession; tests substitute in-memory fakes.
"""

from typing import TYPE_CHECKING, Any, AsyncContextManager, Callable, Protocol

if TYPE_CHECKING:
    from agent_scraper.browser.page_context import PageSnapshot


class PageSession(Protocol):
    """A single isolated page in its own browser context."""

    @property
    def current_url(self) -> str: ...

    async def navigate(self, url: str, wait_until: str = "domcontentloaded") -> Any: ...

    async def wait_for_selector(
        self,
        selector: str,
        timeout_ms: int | None = None,
        state: str = "visible",
    ) -> bool: ...

    async def title(self) -> str: ...

    async def visible_text(self) -> str: ...

    async def snapshot(self) -> "PageSnapshot": ...

    async def scroll_to_bottom(self) -> int: ...


# Opens an isolated page and closes it (and its context) on exit.
SessionFactory = Callable[[], AsyncContextManager[PageSession]]
