"""
Tests for the bounded worker pool.
"""

import asyncio

import pytest

from agent_scraper.core.models import DetailRecord, ListItem
from agent_scraper.crawler.rate_limiter import DelayRange, PolitenessPolicy
from agent_scraper.crawler.worker_pool import BoundedWorkerPool, map_bounded
from agent_scraper.utils.metrics import (
    DETAIL_FETCH_MS,
    DETAIL_PAGES_FAILED,
    DETAIL_PAGES_SCRAPED,
    Metrics,
)

from tests.fakes import Recorder, SleepRecorder


def make_items(count: int) -> list[ListItem]:
    return [
        ListItem(name=f"Agent {n}", url=f"https://www.zillow.com/profile/agent-{n}")
        for n in range(1, count + 1)
    ]


def number_of(item: ListItem) -> int:
    return int(item.name.split()[-1])


class TestBoundedWorkerPool:
    """Tests for BoundedWorkerPool.map."""

    @pytest.mark.asyncio
    async def test_output_in_input_order(self):
        """Later items finishing first does not change the output order."""
        completion: list[int] = []
        in_flight = 0
        peak = 0

        async def fetch(item: ListItem) -> DetailRecord:
            nonlocal in_flight, peak
            in_flight += 1
            peak = max(peak, in_flight)
            # Within each batch the last item finishes first
            await asyncio.sleep(0.01 * (3 - (number_of(item) - 1) % 3))
            in_flight -= 1
            completion.append(number_of(item))
            return DetailRecord(total_sales=number_of(item))

        records = await BoundedWorkerPool(concurrency=3).map(make_items(7), fetch)

        assert [number_of(r.item) for r in records] == [1, 2, 3, 4, 5, 6, 7]
        assert [r.detail.total_sales for r in records] == [1, 2, 3, 4, 5, 6, 7]
        assert completion[:3] == [3, 2, 1]
        assert peak == 3

    @pytest.mark.asyncio
    async def test_batches_run_sequentially(self):
        """No item of a batch starts before the previous batch finished."""
        events: list[tuple[str, int]] = []

        async def fetch(item: ListItem) -> DetailRecord:
            events.append(("start", number_of(item)))
            await asyncio.sleep(0)
            events.append(("end", number_of(item)))
            return DetailRecord()

        await BoundedWorkerPool(concurrency=2).map(make_items(5), fetch)

        assert events.index(("start", 3)) > events.index(("end", 1))
        assert events.index(("start", 3)) > events.index(("end", 2))
        assert events.index(("start", 5)) > events.index(("end", 4))
        assert events.index(("start", 2)) < events.index(("end", 1))

    @pytest.mark.asyncio
    async def test_failure_degrades_single_item(self):
        """A failing fetch yields an all-null record and siblings complete."""

        async def fetch(item: ListItem) -> DetailRecord:
            if number_of(item) == 2:
                raise RuntimeError("page crashed")
            return DetailRecord(total_sales=number_of(item))

        records = await BoundedWorkerPool(concurrency=3).map(make_items(4), fetch)

        assert len(records) == 4
        assert records[1].detail.is_empty
        assert records[1].item.name == "Agent 2"
        assert [records[i].detail.total_sales for i in (0, 2, 3)] == [1, 3, 4]

        metrics = Metrics.get()
        assert metrics.get_counter(DETAIL_PAGES_FAILED) == 1
        assert metrics.get_counter(DETAIL_PAGES_SCRAPED) == 3
        assert metrics.get_timing(DETAIL_FETCH_MS).count == 4

    @pytest.mark.asyncio
    async def test_records_timing(self):
        async def fetch(item: ListItem) -> DetailRecord:
            await asyncio.sleep(0.01)
            return DetailRecord()

        records = await BoundedWorkerPool(concurrency=2).map(make_items(2), fetch)

        assert all(r.scrape_time_seconds is not None for r in records)
        assert all(r.scrape_time_seconds >= 0.005 for r in records)

    @pytest.mark.asyncio
    async def test_pauses_between_batches_only(self):
        sleep = SleepRecorder()
        policy = PolitenessPolicy(DelayRange(2, 2), DelayRange(1, 1), sleep=sleep)

        async def fetch(item: ListItem) -> DetailRecord:
            return DetailRecord()

        await BoundedWorkerPool(concurrency=3, policy=policy).map(make_items(7), fetch)

        assert sleep.calls == [1, 1]

    @pytest.mark.asyncio
    async def test_on_result_called_per_record(self):
        recorder = Recorder()

        async def fetch(item: ListItem) -> DetailRecord:
            return DetailRecord()

        await BoundedWorkerPool(concurrency=2, on_result=recorder).map(make_items(3), fetch)

        assert sorted(number_of(r.item) for r in recorder.items) == [1, 2, 3]

    @pytest.mark.asyncio
    async def test_failing_callback_keeps_records(self):
        """A raising on_result callback does not abort the batch."""
        seen: list[int] = []

        def on_result(record) -> None:
            seen.append(number_of(record.item))
            if number_of(record.item) == 2:
                raise OSError("disk full")

        async def fetch(item: ListItem) -> DetailRecord:
            return DetailRecord(total_sales=number_of(item))

        records = await BoundedWorkerPool(concurrency=3, on_result=on_result).map(
            make_items(5), fetch
        )

        assert [r.detail.total_sales for r in records] == [1, 2, 3, 4, 5]
        assert sorted(seen) == [1, 2, 3, 4, 5]
        assert Metrics.get().get_counter(DETAIL_PAGES_SCRAPED) == 5

    @pytest.mark.asyncio
    async def test_empty_input(self):
        async def fetch(item: ListItem) -> DetailRecord:
            raise AssertionError("not called")

        assert await BoundedWorkerPool().map([], fetch) == []

    def test_invalid_concurrency(self):
        with pytest.raises(ValueError):
            BoundedWorkerPool(concurrency=0)


class TestMapBounded:
    """Tests for the function form."""

    @pytest.mark.asyncio
    async def test_map_bounded(self):
        async def fetch(item: ListItem) -> DetailRecord:
            return DetailRecord(sales_last_12_months=number_of(item) * 10)

        records = await map_bounded(make_items(5), 2, fetch)

        assert [r.detail.sales_last_12_months for r in records] == [10, 20, 30, 40, 50]
