"""
Anti-automation challenge detection.

A loaded page is either CLEAR or CHALLENGED. A challenged page moves to
CLEAR only when the extraction anchor attaches, which happens after a
human solves the interstitial in the browser window. The wait is bounded;
on timeout the caller extracts whatever the page holds.
"""

import asyncio
import time
from enum import Enum
from typing import Awaitable, Callable, Sequence

from agent_scraper.config.settings import CrawlerSettings
from agent_scraper.core.protocols import PageSession
from agent_scraper.utils.logging import get_logger
from agent_scraper.utils.metrics import (
    CHALLENGES_CLEARED,
    CHALLENGES_DETECTED,
    Metrics,
)

logger = get_logger(__name__)


class ChallengeState(str, Enum):
    """Classification of the currently loaded page."""

    CLEAR = "clear"
    CHALLENGED = "challenged"


DEFAULT_MARKERS = ("Press and Hold", "Press & Hold", "challenge")
DEFAULT_TITLE_MARKERS = ("Robot", "Captcha", "Access to this page has been denied")


class ChallengeDetector:
    """
    Detects bot interstitials and waits for a human to resolve them.

    Detection only runs when the anchor is missing: a page that delivered
    its data blob is clear even if its copy happens to contain a marker.

    Example:
        >>> detector = ChallengeDetector(max_wait_seconds=300)
        >>> state = await detector.gate(page)
        >>> if state is ChallengeState.CHALLENGED:
        ...     # timed out, extract best-effort
    """

    def __init__(
        self,
        anchor_selector: str = "#__NEXT_DATA__",
        anchor_timeout_ms: int = 15000,
        max_wait_seconds: float = 300.0,
        poll_interval_ms: int = 2000,
        settle_seconds: float = 2.0,
        markers: Sequence[str] = DEFAULT_MARKERS,
        title_markers: Sequence[str] = DEFAULT_TITLE_MARKERS,
        missing_anchor_is_challenge: bool = False,
        sleep: Callable[[float], Awaitable[None]] | None = None,
        clock: Callable[[], float] | None = None,
    ) -> None:
        """
        Initialize detector.

        Args:
            anchor_selector: Element whose presence means real content loaded
            anchor_timeout_ms: Initial wait for the anchor after navigation
            max_wait_seconds: Upper bound on the wait for a human
            poll_interval_ms: Anchor poll period while challenged
            settle_seconds: Pause after clearance before extracting
            markers: Substrings of the visible text that signal a challenge
            title_markers: Substrings of the title that signal a challenge
            missing_anchor_is_challenge: Treat a missing anchor as challenged
                even without a marker
            sleep: Awaitable sleep (default asyncio.sleep)
            clock: Monotonic clock (default time.monotonic)
        """
        self.anchor_selector = anchor_selector
        self.anchor_timeout_ms = anchor_timeout_ms
        self.max_wait_seconds = max_wait_seconds
        self.poll_interval_ms = poll_interval_ms
        self.settle_seconds = settle_seconds
        self.markers = tuple(markers)
        self.title_markers = tuple(title_markers)
        self.missing_anchor_is_challenge = missing_anchor_is_challenge
        self._sleep = sleep or asyncio.sleep
        self._clock = clock or time.monotonic

    @classmethod
    def from_settings(
        cls,
        settings: CrawlerSettings,
        sleep: Callable[[float], Awaitable[None]] | None = None,
        clock: Callable[[], float] | None = None,
    ) -> "ChallengeDetector":
        return cls(
            anchor_selector=settings.anchor_selector,
            anchor_timeout_ms=settings.anchor_timeout_ms,
            max_wait_seconds=settings.challenge_timeout_seconds,
            poll_interval_ms=settings.challenge_poll_interval_ms,
            settle_seconds=settings.challenge_settle_seconds,
            markers=settings.challenge_markers,
            title_markers=settings.challenge_title_markers,
            missing_anchor_is_challenge=settings.missing_anchor_is_challenge,
            sleep=sleep,
            clock=clock,
        )

    async def anchor_attached(self, page: PageSession, timeout_ms: int | None = None) -> bool:
        return await page.wait_for_selector(
            self.anchor_selector,
            timeout_ms=self.anchor_timeout_ms if timeout_ms is None else timeout_ms,
            state="attached",
        )

    async def has_markers(self, page: PageSession) -> bool:
        """True if the visible text or title carries a challenge marker."""
        text = await page.visible_text()
        if any(marker in text for marker in self.markers):
            return True

        title = await page.title()
        return any(marker.lower() in title.lower() for marker in self.title_markers)

    async def is_challenged(self, page: PageSession) -> bool:
        """
        Classify the loaded page.

        Waits up to anchor_timeout_ms for the anchor first. Without it the
        page is challenged when it shows a marker, or always in strict mode.
        """
        if await self.anchor_attached(page):
            return False
        if await self.has_markers(page):
            return True
        return self.missing_anchor_is_challenge

    async def await_clearance(
        self,
        page: PageSession,
        max_wait: float | None = None,
    ) -> bool:
        """
        Poll for the anchor until it attaches or max_wait elapses.

        No page actions are issued while waiting, so the operator can
        interact with the challenge undisturbed.

        Returns:
            True if the anchor attached before the deadline
        """
        max_wait = self.max_wait_seconds if max_wait is None else max_wait
        interval = self.poll_interval_ms / 1000
        deadline = self._clock() + max_wait
        polls = 0

        while True:
            remaining = deadline - self._clock()
            if remaining <= 0:
                logger.debug(f"Challenge not cleared after {polls} polls")
                return False

            started = self._clock()
            timeout_ms = max(1, int(min(interval, remaining) * 1000))
            if await self.anchor_attached(page, timeout_ms=timeout_ms):
                logger.debug(f"Challenge cleared after {polls} failed polls")
                return True
            polls += 1

            # The selector wait can return early; keep the poll period
            elapsed = self._clock() - started
            pause = min(interval - elapsed, deadline - self._clock())
            if pause > 0:
                await self._sleep(pause)

    async def gate(self, page: PageSession) -> ChallengeState:
        """
        Run the two-state machine for a freshly loaded page.

        Returns:
            CLEAR if the page was never challenged or was cleared in time,
            CHALLENGED if the wait timed out
        """
        if not await self.is_challenged(page):
            return ChallengeState.CLEAR

        metrics = Metrics.get()
        metrics.increment(CHALLENGES_DETECTED)
        logger.warning("=" * 60)
        logger.warning(f"Challenge detected on {page.current_url}")
        logger.warning(
            f"Solve it in the browser window. Waiting up to "
            f"{self.max_wait_seconds:.0f}s for the page to load."
        )
        logger.warning("=" * 60)

        if not await self.await_clearance(page):
            logger.warning(
                f"Challenge not resolved on {page.current_url}, continuing with best-effort extraction"
            )
            return ChallengeState.CHALLENGED

        metrics.increment(CHALLENGES_CLEARED)
        logger.info("Challenge cleared, resuming")
        if self.settle_seconds > 0:
            await self._sleep(self.settle_seconds)
        return ChallengeState.CLEAR
