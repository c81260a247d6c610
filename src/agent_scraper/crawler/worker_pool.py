"""
Bounded-concurrency detail fetching.

Items are processed in fixed-size batches: every fetch in a batch runs
concurrently, the pool waits for the whole batch, pauses, then starts the
next one. Results come back in input order whatever the completion order.
"""

import asyncio
import time
from typing import Awaitable, Callable, Sequence

from agent_scraper.core.models import AgentRecord, DetailRecord, ListItem
from agent_scraper.crawler.rate_limiter import PolitenessPolicy
from agent_scraper.utils.logging import get_logger
from agent_scraper.utils.metrics import (
    DETAIL_FETCH_MS,
    DETAIL_PAGES_FAILED,
    DETAIL_PAGES_SCRAPED,
    Metrics,
)

logger = get_logger(__name__)


DetailFetcher = Callable[[ListItem], Awaitable[DetailRecord]]


class BoundedWorkerPool:
    """
    Maps list items to agent records with at most `concurrency` in flight.

    A fetch that raises degrades its own item to an all-null detail record;
    siblings in the same batch are not cancelled.

    Example:
        >>> pool = BoundedWorkerPool(concurrency=5, policy=policy)
        >>> records = await pool.map(items, scraper.fetch_detail)
    """

    def __init__(
        self,
        concurrency: int = 5,
        policy: PolitenessPolicy | None = None,
        on_result: Callable[[AgentRecord], None] | None = None,
    ) -> None:
        """
        Initialize pool.

        Args:
            concurrency: Batch size and maximum concurrent fetches
            policy: Pause between batches (default: no pause)
            on_result: Called with each record as soon as it completes
        """
        if concurrency <= 0:
            raise ValueError(f"concurrency must be positive, got {concurrency}")

        self.concurrency = concurrency
        self.policy = policy or PolitenessPolicy.disabled()
        self.on_result = on_result

    async def map(
        self,
        items: Sequence[ListItem],
        fetch: DetailFetcher,
    ) -> list[AgentRecord]:
        """
        Fetch details for every item.

        Returns:
            One record per item, in the same order as items
        """
        results: list[AgentRecord | None] = [None] * len(items)
        total_batches = (len(items) + self.concurrency - 1) // self.concurrency

        for batch_number, start in enumerate(range(0, len(items), self.concurrency), 1):
            batch = items[start:start + self.concurrency]
            logger.info(
                f"Batch {batch_number}/{total_batches}: "
                f"agents {start + 1}-{start + len(batch)} of {len(items)}"
            )

            await asyncio.gather(*(
                self._run_one(start + offset, item, fetch, results)
                for offset, item in enumerate(batch)
            ))

            if start + self.concurrency < len(items):
                await self.policy.pause_between_batches()

        return [record for record in results if record is not None]

    async def _run_one(
        self,
        index: int,
        item: ListItem,
        fetch: DetailFetcher,
        results: list[AgentRecord | None],
    ) -> None:
        metrics = Metrics.get()
        started = time.perf_counter()

        try:
            detail = await fetch(item)
        except Exception as e:
            metrics.increment(DETAIL_PAGES_FAILED)
            logger.warning(f"Detail fetch failed for {item.url}: {e}")
            detail = DetailRecord.empty()
        else:
            metrics.increment(DETAIL_PAGES_SCRAPED)

        elapsed = time.perf_counter() - started
        metrics.observe(DETAIL_FETCH_MS, elapsed * 1000)

        record = AgentRecord(item=item, detail=detail, scrape_time_seconds=elapsed)
        results[index] = record

        if self.on_result is not None:
            try:
                self.on_result(record)
            except Exception as e:
                logger.warning(f"Result callback failed for {item.url}: {e}")


async def map_bounded(
    items: Sequence[ListItem],
    concurrency: int,
    fetch: DetailFetcher,
    policy: PolitenessPolicy | None = None,
) -> list[AgentRecord]:
    """Function form of BoundedWorkerPool.map."""
    return await BoundedWorkerPool(concurrency, policy=policy).map(items, fetch)
