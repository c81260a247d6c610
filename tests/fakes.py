"""
In-memory stand-ins for the browsing layer, plus page builders.

FakePage satisfies the PageSession protocol over a dict of URL -> FakeResponse,
so crawl logic runs without Playwright or a network.
"""

import json
from contextlib import asynccontextmanager
from dataclasses import dataclass, field
from typing import Any, AsyncIterator

from agent_scraper.browser.page_context import PageSnapshot
from agent_scraper.core.exceptions import NavigationError
from agent_scraper.utils.urls import build_page_url

BASE_URL = "https://www.zillow.com"
LIST_URL = f"{BASE_URL}/professionals/real-estate-agent-reviews/seattle-wa/?isTopAgent=true"


@dataclass
class FakeResponse:
    """
    Scripted behaviour of one URL.

    Attributes:
        html: Page HTML
        title: Page title (None = from <title>)
        anchor: Results of successive anchor waits; the last one repeats.
            None derives the answer from the HTML.
        fail_times: Number of navigations that raise before one succeeds
    """

    html: str
    title: str | None = None
    anchor: list[bool] | None = None
    fail_times: int = 0


class FakePage:
    """Page session over scripted responses."""

    def __init__(self, responses: dict[str, FakeResponse]) -> None:
        self.responses = responses
        self.navigations: list[str] = []
        self.anchor_waits = 0
        self.scrolls = 0
        self.closed = False
        self._url = "about:blank"
        self._anchor_results: list[bool] | None = None

    @property
    def current_url(self) -> str:
        return self._url

    @property
    def response(self) -> FakeResponse | None:
        return self.responses.get(self._url)

    async def navigate(self, url: str, wait_until: str = "domcontentloaded") -> None:
        self.navigations.append(url)
        response = self.responses.get(url)

        if response is None:
            raise NavigationError("HTTP 404 error", url=url, status_code=404)
        if response.fail_times > 0:
            response.fail_times -= 1
            raise NavigationError("Navigation timeout", url=url, retry_after=0.0)

        self._url = url
        self._anchor_results = list(response.anchor) if response.anchor is not None else None

    async def wait_for_selector(
        self,
        selector: str,
        timeout_ms: int | None = None,
        state: str = "visible",
    ) -> bool:
        self.anchor_waits += 1
        if self._anchor_results:
            if len(self._anchor_results) > 1:
                return self._anchor_results.pop(0)
            return self._anchor_results[0]

        response = self.response
        return response is not None and "__NEXT_DATA__" in response.html

    async def title(self) -> str:
        return (await self.snapshot()).title

    async def visible_text(self) -> str:
        return (await self.snapshot()).text

    async def snapshot(self) -> PageSnapshot:
        response = self.response
        html = response.html if response else ""
        return PageSnapshot.from_html(
            html,
            url=self._url,
            title=response.title if response else None,
        )

    async def scroll_to_bottom(self) -> int:
        self.scrolls += 1
        return 1


class FakeBrowser:
    """Hands out one FakePage per session and tracks how many are open."""

    def __init__(self, responses: dict[str, FakeResponse]) -> None:
        self.responses = responses
        self.sessions: list[FakePage] = []
        self.open_sessions = 0
        self.max_open_sessions = 0

    @asynccontextmanager
    async def open_page(self) -> AsyncIterator[FakePage]:
        page = FakePage(self.responses)
        self.sessions.append(page)
        self.open_sessions += 1
        self.max_open_sessions = max(self.max_open_sessions, self.open_sessions)
        try:
            yield page
        finally:
            self.open_sessions -= 1
            page.closed = True

    @property
    def visited(self) -> list[str]:
        return [url for page in self.sessions for url in page.navigations]


class FakeClock:
    """Monotonic clock advanced only by its own sleep."""

    def __init__(self) -> None:
        self.now = 0.0
        self.sleeps: list[float] = []

    def monotonic(self) -> float:
        return self.now

    async def sleep(self, seconds: float) -> None:
        self.sleeps.append(seconds)
        self.now += seconds


class SleepRecorder:
    """Awaitable sleep that records instead of waiting."""

    def __init__(self) -> None:
        self.calls: list[float] = []

    async def __call__(self, seconds: float) -> None:
        self.calls.append(seconds)


# =============================================================================
# Page builders
# =============================================================================


def next_data_html(data: dict[str, Any], body: str = "", title: str = "Zillow") -> str:
    """HTML page carrying a __NEXT_DATA__ blob."""
    return (
        f"<html><head><title>{title}</title></head><body>{body}"
        f'<script id="__NEXT_DATA__" type="application/json">{json.dumps(data)}</script>'
        "</body></html>"
    )


def plain_html(body: str, title: str = "Zillow") -> str:
    return f"<html><head><title>{title}</title></head><body>{body}</body></html>"


def profile_card(
    name: str,
    slug: str | None = None,
    rating: float = 4.9,
    reviews: int = 120,
    typename: str = "AgentDirectoryFinderProfileResultsCard",
) -> dict[str, Any]:
    slug = slug or name.lower().replace(" ", "-")
    return {
        "__typename": typename,
        "cardTitle": name,
        "cardActionLink": f"/profile/{slug}/",
        "reviewInformation": {
            "reviewAverage": rating,
            "reviewCountText": f"({reviews:,})",
        },
    }


def list_page_data(cards: list[dict[str, Any]]) -> dict[str, Any]:
    return {
        "props": {
            "pageProps": {
                "displayData": {
                    "agentDirectoryFinderDisplay": {
                        "searchResults": {"results": {"resultsCards": cards}},
                    },
                },
            },
        },
    }


def list_page_html(names: list[str]) -> str:
    return next_data_html(list_page_data([profile_card(name) for name in names]))


def detail_page_data(
    stats: dict[str, Any] | None = None,
    graphql: dict[str, Any] | None = None,
    team_children: list[Any] | None = None,
) -> dict[str, Any]:
    page_props: dict[str, Any] = {}
    if stats is not None:
        page_props["agentSalesStats"] = stats
    if graphql is not None:
        page_props["graphQLData"] = graphql
    if team_children is not None:
        page_props["teamDisplayInformation"] = {"teamLeadInfo": {"children": team_children}}
    return {"props": {"pageProps": page_props}}


FULL_STATS = {
    "countLastYear": 42,
    "countAllTime": 310,
    "averageValueThreeYear": 650000,
    "priceRangeThreeYearMin": 300000,
    "priceRangeThreeYearMax": 1200000,
}


def member_cards_html(count: int) -> str:
    """Team section with `count` member cards."""
    cards = "".join(
        '<div class="member">'
        f'<img src="/photos/{i}.jpg" alt="">'
        f"<div>Member Number{i}</div>"
        "<div>4.8 ★ (35)</div>"
        "<div>12 sales last 12 months</div>"
        "<div>$300K - $900K</div>"
        "</div>"
        for i in range(count)
    )
    return f'<section class="team"><h2>Our team</h2><div class="members">{cards}</div></section>'


def profile_url(name: str) -> str:
    return f"{BASE_URL}/profile/{name.lower().replace(' ', '-')}"


def list_responses(pages: list[list[str]], list_url: str = LIST_URL) -> dict[str, FakeResponse]:
    """Directory pages 1..n holding the given agent names."""
    return {
        build_page_url(list_url, number): FakeResponse(list_page_html(names))
        for number, names in enumerate(pages, 1)
    }


@dataclass
class Recorder:
    """Collects callback arguments."""

    items: list[Any] = field(default_factory=list)

    def __call__(self, item: Any) -> None:
        self.items.append(item)


class RepeatingResponses(dict):
    """Serves the same directory page for every URL, like a site echoing its last page."""

    def __init__(self, names: list[str]) -> None:
        super().__init__()
        self.response = FakeResponse(list_page_html(names))

    def get(self, url: str, default: Any = None) -> FakeResponse:
        return self.response
