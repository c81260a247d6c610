"""
Politeness delays for crawling.

Spaces out requests with randomized pauses so the crawl does not hammer
the site: one range between directory pages, another between batches of
profile fetches.
"""

import asyncio
import random
from dataclasses import dataclass
from typing import Awaitable, Callable

from agent_scraper.config.settings import CrawlerSettings
from agent_scraper.utils.logging import get_logger

logger = get_logger(__name__)


Sleep = Callable[[float], Awaitable[None]]


@dataclass(frozen=True)
class DelayRange:
    """Closed range of seconds a pause is sampled from."""

    min_seconds: float
    max_seconds: float

    def __post_init__(self) -> None:
        if self.min_seconds < 0:
            raise ValueError(f"min_seconds must be >= 0, got {self.min_seconds}")
        if self.min_seconds > self.max_seconds:
            raise ValueError(
                f"min_seconds ({self.min_seconds}) exceeds max_seconds ({self.max_seconds})"
            )

    def sample(self, rng: random.Random) -> float:
        if self.min_seconds == self.max_seconds:
            return self.min_seconds
        return rng.uniform(self.min_seconds, self.max_seconds)


class PolitenessPolicy:
    """
    Randomized pauses between pages and between batches.

    Delays are sampled uniformly from their range on every pause.

    Example:
        >>> policy = PolitenessPolicy(DelayRange(2, 5), DelayRange(1, 1))
        >>> await policy.pause_between_pages()   # sleeps 2-5s
        >>> await policy.pause_between_batches() # sleeps 1s
    """

    def __init__(
        self,
        page_delay: DelayRange,
        batch_delay: DelayRange,
        sleep: Sleep | None = None,
        rng: random.Random | None = None,
    ) -> None:
        """
        Initialize policy.

        Args:
            page_delay: Pause range between directory pages
            batch_delay: Pause range between detail batches
            sleep: Awaitable sleep function (default asyncio.sleep)
            rng: Random source (default a fresh random.Random)
        """
        self.page_delay_range = page_delay
        self.batch_delay_range = batch_delay
        self._sleep: Sleep = sleep or asyncio.sleep
        self._rng = rng or random.Random()
        self._pause_count = 0
        self._total_paused = 0.0

    @classmethod
    def from_settings(
        cls,
        settings: CrawlerSettings,
        sleep: Sleep | None = None,
        rng: random.Random | None = None,
    ) -> "PolitenessPolicy":
        return cls(
            page_delay=DelayRange(
                settings.page_delay_min_seconds, settings.page_delay_max_seconds
            ),
            batch_delay=DelayRange(
                settings.batch_delay_min_seconds, settings.batch_delay_max_seconds
            ),
            sleep=sleep,
            rng=rng,
        )

    @classmethod
    def disabled(cls, sleep: Sleep | None = None) -> "PolitenessPolicy":
        """Policy that never waits. For tests and local fixtures."""
        return cls(DelayRange(0, 0), DelayRange(0, 0), sleep=sleep)

    def page_delay(self) -> float:
        """Sample the next between-pages delay."""
        return self.page_delay_range.sample(self._rng)

    def batch_delay(self) -> float:
        """Sample the next between-batches delay."""
        return self.batch_delay_range.sample(self._rng)

    async def _pause(self, seconds: float, reason: str) -> float:
        if seconds <= 0:
            return 0.0
        logger.debug(f"Waiting {seconds:.2f}s {reason}")
        await self._sleep(seconds)
        self._pause_count += 1
        self._total_paused += seconds
        return seconds

    async def pause_between_pages(self) -> float:
        """Sleep for a sampled page delay. Returns seconds slept."""
        return await self._pause(self.page_delay(), "before next page")

    async def pause_between_batches(self) -> float:
        """Sleep for a sampled batch delay. Returns seconds slept."""
        return await self._pause(self.batch_delay(), "before next batch")

    def get_stats(self) -> dict:
        return {
            "pauses": self._pause_count,
            "total_paused_seconds": round(self._total_paused, 2),
        }
