"""
Run orchestration for the agent scraper.

Coordinates all crawl components: the directory crawl, challenge gating,
profile extraction and the bounded worker pool. Provides the main entry
point for a scrape run.
"""

import asyncio
import time
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Awaitable, Callable

from agent_scraper.browser.manager import BrowserManager
from agent_scraper.config.settings import Settings
from agent_scraper.core.exceptions import NavigationError, get_retry_delay, is_retryable
from agent_scraper.core.models import AgentRecord, DetailRecord, ListItem
from agent_scraper.core.protocols import PageSession, SessionFactory
from agent_scraper.crawler.challenge import ChallengeDetector, ChallengeState
from agent_scraper.crawler.pagination import PaginationController
from agent_scraper.crawler.rate_limiter import PolitenessPolicy
from agent_scraper.crawler.worker_pool import BoundedWorkerPool
from agent_scraper.extraction.extractor import StructuredExtractor
from agent_scraper.utils.logging import LoggerAdapter, get_logger, get_logger_with_context

logger = get_logger(__name__)


@dataclass
class ScrapeMetadata:
    """
    Summary statistics of a completed run.

    Written next to the records when output metadata is enabled.
    """

    total_agents: int
    total_time_seconds: float
    average_time_per_agent: float
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    list_url: str = ""
    stop_reason: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "total_agents": self.total_agents,
            "total_time_seconds": round(self.total_time_seconds, 2),
            "average_time_per_agent": round(self.average_time_per_agent, 2),
            "timestamp": self.timestamp.isoformat(),
            "list_url": self.list_url,
            "stop_reason": self.stop_reason,
        }


@dataclass
class ScrapeResult:
    """Ordered agent records plus run metadata."""

    records: list[AgentRecord]
    metadata: ScrapeMetadata

    def summary(self) -> dict[str, int]:
        """Counts shown at the end of a run."""
        return {
            "total_agents": len(self.records),
            "with_badges": sum(1 for r in self.records if r.detail.has_badge),
            "with_sales_data": sum(
                1 for r in self.records if r.detail.sales_last_12_months is not None
            ),
            "teams": sum(
                1 for r in self.records
                if r.detail.team_members_count is not None and r.detail.team_members_count > 0
            ),
        }


class AgentScraper:
    """
    Runs a full scrape: directory crawl, then profile pages in batches.

    Example:
        >>> scraper = AgentScraper(settings)
        >>> result = await scraper.run(limit=50)
        >>> print(result.summary())
    """

    def __init__(
        self,
        settings: Settings | None = None,
        extractor: StructuredExtractor | None = None,
        detector: ChallengeDetector | None = None,
        policy: PolitenessPolicy | None = None,
        sleep: Callable[[float], Awaitable[None]] | None = None,
    ) -> None:
        """
        Initialize scraper.

        Args:
            settings: Application settings (default: built-in defaults)
            extractor: Extractor for list and profile pages
            detector: Challenge gate (default from crawler settings)
            policy: Delay policy (default from crawler settings)
            sleep: Awaitable sleep used for retries and default components
        """
        self.settings = settings or Settings()
        crawler = self.settings.crawler

        self._sleep = sleep or asyncio.sleep
        self.extractor = extractor or StructuredExtractor()
        self.detector = detector or ChallengeDetector.from_settings(crawler, sleep=self._sleep)
        self.policy = policy or PolitenessPolicy.from_settings(crawler, sleep=self._sleep)

    async def run(
        self,
        limit: int | None = None,
        on_record: Callable[[AgentRecord], None] | None = None,
    ) -> ScrapeResult:
        """
        Launch the browser and scrape.

        Raises:
            BrowserError: If the browser cannot be launched
        """
        async with BrowserManager(self.settings.browser) as browser:
            return await self.scrape(browser.open_page, limit=limit, on_record=on_record)

    async def scrape(
        self,
        session_factory: SessionFactory,
        limit: int | None = None,
        on_record: Callable[[AgentRecord], None] | None = None,
    ) -> ScrapeResult:
        """
        Scrape using pages from session_factory.

        Args:
            session_factory: Opens isolated page sessions
            limit: Maximum agents (default crawler.agent_limit)
            on_record: Called with each record as it completes

        Returns:
            Records in directory order plus run metadata
        """
        crawler = self.settings.crawler
        limit = limit or crawler.agent_limit
        timestamp = datetime.now(timezone.utc)
        started = time.perf_counter()

        logger.info(f"Scraping up to {limit} agents from {crawler.list_url}")

        controller = PaginationController.from_settings(
            crawler,
            session_factory,
            extractor=self.extractor,
            detector=self.detector,
            policy=self.policy,
        )
        items = await controller.crawl_list(limit)
        logger.info(f"Found {len(items)} agents, fetching profiles")

        pool = BoundedWorkerPool(crawler.concurrency, policy=self.policy, on_result=on_record)

        async def fetch(item: ListItem) -> DetailRecord:
            return await self.fetch_detail(session_factory, item)

        records = await pool.map(items, fetch)

        elapsed = time.perf_counter() - started
        metadata = ScrapeMetadata(
            total_agents=len(records),
            total_time_seconds=elapsed,
            average_time_per_agent=elapsed / len(records) if records else 0.0,
            timestamp=timestamp,
            list_url=crawler.list_url,
            stop_reason=controller.last_state.stop_reason if controller.last_state else None,
        )

        logger.info(
            f"Scrape finished: {metadata.total_agents} agents in "
            f"{metadata.total_time_seconds:.1f}s"
        )
        return ScrapeResult(records=records, metadata=metadata)

    async def fetch_detail(
        self,
        session_factory: SessionFactory,
        item: ListItem,
    ) -> DetailRecord:
        """
        Load one agent's profile in its own session and extract its stats.

        A challenge that is not resolved in time still yields a (possibly
        all-null) record.

        Raises:
            NavigationError: If the profile cannot be loaded after retries
        """
        log = get_logger_with_context(__name__, agent=item.name)
        crawler = self.settings.crawler

        async with session_factory() as page:
            await self._navigate_with_retry(page, item.url, log)

            challenge = await self.detector.gate(page)
            if challenge is ChallengeState.CHALLENGED:
                log.warning("Extracting from a page that may still be challenged")

            if crawler.scroll_for_lazy_content and (
                challenge is ChallengeState.CHALLENGED
                or not await self.detector.anchor_attached(page, timeout_ms=1)
            ):
                await page.scroll_to_bottom()

            snapshot = await page.snapshot()

        extraction = self.extractor.extract_detail_with_sources(snapshot)
        if extraction.record.is_empty:
            log.info("No profile data found")
        else:
            log.debug(f"Profile fields by source: {extraction.sources}")
        return extraction.record

    async def _navigate_with_retry(
        self,
        page: PageSession,
        url: str,
        log: LoggerAdapter,
    ) -> None:
        max_retries = self.settings.crawler.max_retries
        attempt = 0

        while True:
            try:
                await page.navigate(url)
                return
            except NavigationError as e:
                if not is_retryable(e) or attempt >= max_retries:
                    raise
                attempt += 1
                delay = get_retry_delay(e, default=self.settings.crawler.retry_delay_seconds)
                log.warning(f"Will retry ({attempt}/{max_retries}) in {delay:.0f}s: {e}")
                await self._sleep(delay)


async def scrape_agents(
    settings: Settings | None = None,
    limit: int | None = None,
) -> ScrapeResult:
    """
    Convenience function to run a scrape with default components.

    Raises:
        BrowserError: If the browser cannot be launched
    """
    return await AgentScraper(settings).run(limit=limit)
