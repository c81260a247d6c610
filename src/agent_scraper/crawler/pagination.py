"""
Directory pagination.

Walks the agent directory one page at a time, collecting unique agents
until the results run out, the site starts repeating itself, or the
limit is reached. The dedup and termination rules live in the pure
``advance`` step; the controller only does the I/O around it.
"""

from dataclasses import dataclass, field

from agent_scraper.config.settings import CrawlerSettings
from agent_scraper.core.models import ListItem
from agent_scraper.core.protocols import PageSession, SessionFactory
from agent_scraper.crawler.challenge import ChallengeDetector, ChallengeState
from agent_scraper.crawler.rate_limiter import PolitenessPolicy
from agent_scraper.extraction.extractor import StructuredExtractor
from agent_scraper.utils.logging import get_logger
from agent_scraper.utils.metrics import LIST_PAGES_CRAWLED, LIST_PAGES_FAILED, Metrics
from agent_scraper.utils.urls import build_page_url

logger = get_logger(__name__)


STOP_NO_ENTRIES = "no_entries"
STOP_NO_NEW_ENTRIES = "no_new_entries"
STOP_LIMIT_REACHED = "limit_reached"
STOP_MAX_PAGES = "max_pages"
STOP_SESSION_FAILED = "session_failed"


@dataclass
class CrawlState:
    """
    Progress of a directory crawl.

    Attributes:
        page: Page number to load next (the last loaded page once done)
        items: Unique entries in discovery order
        seen_urls: URLs of every accumulated entry
        done: Whether the crawl has terminated
        stop_reason: Which rule ended the crawl
        pages_loaded: Number of pages processed so far
        stale_pages: Consecutive pages that added no new entries
    """

    page: int = 1
    items: list[ListItem] = field(default_factory=list)
    seen_urls: set[str] = field(default_factory=set)
    done: bool = False
    stop_reason: str | None = None
    pages_loaded: int = 0
    stale_pages: int = 0

    def stopped(self, reason: str) -> "CrawlState":
        return CrawlState(
            page=self.page,
            items=self.items,
            seen_urls=self.seen_urls,
            done=True,
            stop_reason=reason,
            pages_loaded=self.pages_loaded,
            stale_pages=self.stale_pages,
        )


def advance(
    state: CrawlState,
    entries: list[ListItem],
    limit: int,
    stop_on_repeat: bool = True,
    max_stale_pages: int = 3,
) -> CrawlState:
    """
    Fold one page of entries into the crawl state.

    Entries whose URL was already seen are dropped and accumulation stops
    at the limit. Termination rules, in order: the page had no entries;
    the page had no new entries (when stop_on_repeat, otherwise only after
    max_stale_pages such pages in a row); the limit is reached.

    Returns:
        New state; the input state is left untouched
    """
    items = list(state.items)
    seen_urls = set(state.seen_urls)
    new_count = 0

    for entry in entries:
        if len(items) >= limit:
            break
        if entry.url in seen_urls:
            continue
        seen_urls.add(entry.url)
        items.append(entry)
        new_count += 1

    stale_pages = state.stale_pages + 1 if new_count == 0 else 0

    reason = None
    if not entries:
        reason = STOP_NO_ENTRIES
    elif new_count == 0 and (stop_on_repeat or stale_pages >= max_stale_pages):
        reason = STOP_NO_NEW_ENTRIES
    elif len(items) >= limit:
        reason = STOP_LIMIT_REACHED

    return CrawlState(
        page=state.page if reason else state.page + 1,
        items=items,
        seen_urls=seen_urls,
        done=reason is not None,
        stop_reason=reason,
        pages_loaded=state.pages_loaded + 1,
        stale_pages=stale_pages,
    )


class PaginationController:
    """
    Sequential crawl of the agent directory.

    All list pages share one session so cookies set while clearing a
    challenge carry over to the following pages.

    Example:
        >>> controller = PaginationController(browser.open_page, list_url=url)
        >>> items = await controller.crawl_list(limit=100)
    """

    def __init__(
        self,
        session_factory: SessionFactory,
        list_url: str,
        extractor: StructuredExtractor | None = None,
        detector: ChallengeDetector | None = None,
        policy: PolitenessPolicy | None = None,
        stop_on_repeat: bool = True,
        scroll_for_lazy_content: bool = True,
        max_pages: int | None = None,
        max_stale_pages: int = 3,
    ) -> None:
        """
        Initialize controller.

        Args:
            session_factory: Opens the page session used for the crawl
            list_url: Directory URL of page 1
            extractor: List extractor (default StructuredExtractor())
            detector: Challenge gate (default ChallengeDetector())
            policy: Delay between pages (default PolitenessPolicy.disabled())
            stop_on_repeat: Stop when a page yields only known agents
            scroll_for_lazy_content: Scroll pages that lack the data anchor
            max_pages: Hard cap on pages loaded (None = unbounded)
            max_stale_pages: Pages in a row without new agents tolerated when
                stop_on_repeat is off
        """
        self.session_factory = session_factory
        self.list_url = list_url
        self.extractor = extractor or StructuredExtractor()
        self.detector = detector or ChallengeDetector()
        self.policy = policy or PolitenessPolicy.disabled()
        self.stop_on_repeat = stop_on_repeat
        self.scroll_for_lazy_content = scroll_for_lazy_content
        self.max_pages = max_pages
        self.max_stale_pages = max_stale_pages
        self.last_state: CrawlState | None = None

    @classmethod
    def from_settings(
        cls,
        settings: CrawlerSettings,
        session_factory: SessionFactory,
        extractor: StructuredExtractor | None = None,
        detector: ChallengeDetector | None = None,
        policy: PolitenessPolicy | None = None,
    ) -> "PaginationController":
        return cls(
            session_factory=session_factory,
            list_url=settings.list_url,
            extractor=extractor,
            detector=detector or ChallengeDetector.from_settings(settings),
            policy=policy or PolitenessPolicy.from_settings(settings),
            stop_on_repeat=settings.stop_on_repeated_page,
            scroll_for_lazy_content=settings.scroll_for_lazy_content,
            max_pages=settings.max_pages,
            max_stale_pages=settings.max_stale_pages,
        )

    async def crawl_list(self, limit: int) -> list[ListItem]:
        """
        Collect up to limit unique agents from the directory.

        Never raises once started: failures end the crawl and whatever
        was accumulated is returned.

        Raises:
            ValueError: If limit is not positive
        """
        if limit <= 0:
            raise ValueError(f"limit must be positive, got {limit}")

        state = CrawlState()
        try:
            async with self.session_factory() as page:
                while not state.done:
                    entries = await self.fetch_page(page, state.page)
                    before = len(state.items)
                    state = advance(
                        state, entries, limit, self.stop_on_repeat, self.max_stale_pages)

                    logger.info(
                        f"Page {state.pages_loaded}: {len(entries)} entries, "
                        f"{len(state.items) - before} new, {len(state.items)} total"
                    )

                    if not state.done and self.max_pages and state.pages_loaded >= self.max_pages:
                        state = state.stopped(STOP_MAX_PAGES)

                    if not state.done:
                        await self.policy.pause_between_pages()
        except Exception as e:
            logger.error(f"List crawl aborted on page {state.page}: {e}")
            state = state.stopped(STOP_SESSION_FAILED)

        self.last_state = state
        logger.info(
            f"List crawl finished after {state.pages_loaded} pages "
            f"({state.stop_reason}): {len(state.items)} agents"
        )
        return state.items[:limit]

    async def fetch_page(self, page: PageSession, page_number: int) -> list[ListItem]:
        """
        Load one directory page and extract its entries.

        A failure while loading or reading the page yields no entries.
        """
        url = build_page_url(self.list_url, page_number)
        metrics = Metrics.get()

        try:
            await page.navigate(url)
            challenge = await self.detector.gate(page)

            if self.scroll_for_lazy_content and (
                challenge is ChallengeState.CHALLENGED
                or not await self.detector.anchor_attached(page, timeout_ms=1)
            ):
                await page.scroll_to_bottom()

            snapshot = await page.snapshot()
        except Exception as e:
            metrics.increment(LIST_PAGES_FAILED)
            logger.warning(f"Failed to load list page {page_number} ({url}): {e}")
            return []

        metrics.increment(LIST_PAGES_CRAWLED)
        return self.extractor.extract_list(snapshot)
