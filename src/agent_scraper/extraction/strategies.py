"""
Extraction strategies for directory and profile pages.

Two tiers implement the same interface and are tried in priority order:

1. NextDataStrategy reads the framework's embedded JSON blob
   (``<script id="__NEXT_DATA__">``). Schema-typed and stable when present.
2. DomHeuristicStrategy pattern-matches rendered DOM text. Used for
   whatever the blob did not provide.

Strategies raise ExtractionError when their source is unusable and
return only the values they actually found.
"""

import json
import math
import re
from abc import ABC, abstractmethod
from collections import Counter
from typing import Any, Callable, Iterable, Iterator

from bs4 import BeautifulSoup, Tag

from agent_scraper.browser.page_context import PageSnapshot
from agent_scraper.core.exceptions import ExtractionError, StructuredDataError
from agent_scraper.core.models import BadgeType, DetailRecord, ListItem
from agent_scraper.extraction.formatting import (
    format_price,
    format_price_range,
    normalize_price,
    parse_number,
    parse_price_range,
)
from agent_scraper.utils.logging import get_logger
from agent_scraper.utils.urls import canonical_url

logger = get_logger(__name__)


DETAIL_FIELDS: tuple[str, ...] = DetailRecord.field_names()


class ExtractionStrategy(ABC):
    """
    One way of reading agent data out of a page snapshot.

    Subclasses set ``name`` and implement both extraction shapes.
    """

    name: str = "strategy"

    @abstractmethod
    def list_entries(self, snapshot: PageSnapshot) -> list[ListItem]:
        """Agent cards on a directory page, de-duplicated within the page."""

    @abstractmethod
    def detail_fields(
        self,
        snapshot: PageSnapshot,
        wanted: Iterable[str] | None = None,
    ) -> dict[str, Any]:
        """
        Profile values found on a detail page.

        Args:
            snapshot: Captured profile page
            wanted: DetailRecord field names still missing (None = all)

        Returns:
            Mapping of field name to value, containing only found values
        """

    def _collect(
        self,
        found: dict[str, Any],
        field_name: str,
        reader: Callable[[], Any],
        url: str = "",
    ) -> None:
        """Run one field reader, turning any parse failure into a miss."""
        try:
            value = reader()
        except (TypeError, ValueError, KeyError, AttributeError, ArithmeticError) as e:
            logger.debug(f"{self.name}: could not read {field_name} from {url}: {e}")
            return
        if value is not None:
            found[field_name] = value


def _dig(data: Any, *path: str) -> Any:
    """Follow a key path through nested dicts, None when any step is missing."""
    current = data
    for key in path:
        if not isinstance(current, dict):
            return None
        current = current.get(key)
    return current


def _to_int(value: Any) -> int | None:
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        return int(value) if math.isfinite(value) else None
    return parse_number(str(value))


def _to_float(value: Any) -> float | None:
    if value is None or isinstance(value, bool):
        return None
    try:
        return float(value)
    except (TypeError, ValueError):
        return None


# =============================================================================
# Tier 1: embedded JSON
# =============================================================================


class NextDataStrategy(ExtractionStrategy):
    """
    Reads the Next.js data blob embedded in every server-rendered page.

    Example:
        >>> strategy = NextDataStrategy()
        >>> items = strategy.list_entries(PageSnapshot.from_html(html))
    """

    name = "next_data"

    SCRIPT_ID = "__NEXT_DATA__"
    PROFILE_CARD_TYPENAME = "AgentDirectoryFinderProfileResultsCard"
    RESULTS_CARDS_PATH = (
        "props",
        "pageProps",
        "displayData",
        "agentDirectoryFinderDisplay",
        "searchResults",
        "results",
        "resultsCards",
    )
    REVIEW_COUNT_PATTERN = re.compile(r"\((\d[\d,]*)\)")

    def load_blob(self, snapshot: PageSnapshot) -> dict[str, Any]:
        """
        Locate and parse the data blob.

        Raises:
            StructuredDataError: If the script is missing or not a JSON object
        """
        script = snapshot.soup.find("script", id=self.SCRIPT_ID)
        if script is None:
            raise StructuredDataError(
                "Embedded data blob not found",
                url=snapshot.url,
                strategy=self.name,
            )

        raw = script.string if script.string is not None else script.get_text()
        try:
            data = json.loads(raw or "")
        except json.JSONDecodeError as e:
            raise StructuredDataError(
                f"Embedded data blob is not valid JSON: {e}",
                url=snapshot.url,
                strategy=self.name,
            ) from e

        if not isinstance(data, dict):
            raise StructuredDataError(
                "Embedded data blob is not an object",
                url=snapshot.url,
                strategy=self.name,
            )
        return data

    def list_entries(self, snapshot: PageSnapshot) -> list[ListItem]:
        cards = _dig(self.load_blob(snapshot), *self.RESULTS_CARDS_PATH)
        if not isinstance(cards, list):
            logger.debug(f"No results cards in data blob of {snapshot.url}")
            return []

        entries: list[ListItem] = []
        seen: set[str] = set()

        for card in cards:
            # Skip non-profile cards such as sponsored placements
            if not isinstance(card, dict) or card.get("__typename") != self.PROFILE_CARD_TYPENAME:
                continue

            name = str(card.get("cardTitle") or "").strip()
            href = card.get("cardActionLink")
            review_info = card.get("reviewInformation") or {}
            rating = _to_float(review_info.get("reviewAverage")) or 0.0
            reviews = self._review_count(review_info.get("reviewCountText"))

            if not name or not href or rating <= 0:
                continue

            url = canonical_url(str(href), snapshot.url)
            if url in seen:
                continue

            try:
                entries.append(ListItem(name=name, url=url, rating_stars=rating, review_count=reviews))
            except ValueError as e:
                logger.debug(f"Rejected card {name!r}: {e}")
                continue
            seen.add(url)

        return entries

    def _review_count(self, text: Any) -> int:
        match = self.REVIEW_COUNT_PATTERN.search(str(text or "(0)"))
        return int(match.group(1).replace(",", "")) if match else 0

    def detail_fields(
        self,
        snapshot: PageSnapshot,
        wanted: Iterable[str] | None = None,
    ) -> dict[str, Any]:
        page_props = _dig(self.load_blob(snapshot), "props", "pageProps")
        if not isinstance(page_props, dict):
            raise StructuredDataError(
                "Data blob has no pageProps",
                url=snapshot.url,
                strategy=self.name,
            )

        wanted_fields = set(wanted) if wanted is not None else set(DETAIL_FIELDS)
        stats = page_props.get("agentSalesStats")
        stats = stats if isinstance(stats, dict) else {}

        readers: dict[str, Callable[[], Any]] = {
            "badge_type": lambda: self._badge(page_props.get("graphQLData")),
            "sales_last_12_months": lambda: _to_int(stats.get("countLastYear")),
            "total_sales": lambda: _to_int(stats.get("countAllTime")),
            "average_price": lambda: self._average_price(stats),
            "price_range": lambda: self._price_range(stats),
            "team_members_count": lambda: self._team_size(page_props),
        }

        found: dict[str, Any] = {}
        for field_name, reader in readers.items():
            if field_name in wanted_fields:
                self._collect(found, field_name, reader, snapshot.url)
        return found

    @staticmethod
    def _badge(graphql_data: Any) -> BadgeType | None:
        if not isinstance(graphql_data, dict):
            return None
        # Only trust the flags when the blob actually carries them
        if "isPremium" not in graphql_data and "premierAgentSection" not in graphql_data:
            return None
        if graphql_data.get("isPremium") is True:
            return BadgeType.ZILLOW_PRO
        if graphql_data.get("premierAgentSection"):
            return BadgeType.PREMIER_AGENT
        return BadgeType.NONE

    @staticmethod
    def _average_price(stats: dict[str, Any]) -> str | None:
        value = stats.get("averageValueThreeYear")
        return format_price(value) if value else None

    @staticmethod
    def _price_range(stats: dict[str, Any]) -> str | None:
        low = stats.get("priceRangeThreeYearMin")
        high = stats.get("priceRangeThreeYearMax")
        if not low or not high:
            return None
        return format_price_range(low, high)

    @staticmethod
    def _team_size(page_props: dict[str, Any]) -> int | None:
        children = _dig(page_props, "teamDisplayInformation", "teamLeadInfo", "children")
        return len(children) if isinstance(children, list) else None


# =============================================================================
# Tier 2: DOM heuristics
# =============================================================================


class DomHeuristicStrategy(ExtractionStrategy):
    """
    Pattern-matches rendered DOM text when the data blob is absent or partial.

    List pages: profile anchors whose text carries a rating and a review count.
    Profile pages: label/value proximity, badge class names and headings,
    and counting team member cards.
    """

    name = "dom_heuristic"

    PROFILE_LINK_PATTERN = re.compile(r"/profile/[^/?#]+", re.IGNORECASE)
    RATING_PATTERN = re.compile(r"\d+\.\d+")
    REVIEW_COUNT_PATTERN = re.compile(r"\((\d[\d,]*)\)")
    TEAM_MARKER_PATTERN = re.compile(r"^\s*team\b[\s:•·|-]*", re.IGNORECASE)
    NAME_SEPARATOR_PATTERN = re.compile(r"[\n\r\t•·|,]+|\s{2,}|\s-\s")
    STAR_GLYPHS = re.compile(r"[★☆]")
    MIN_NAME_LENGTH = 3
    MAX_NAME_FALLBACK = 100

    FIELD_LABELS: dict[str, tuple[str, ...]] = {
        "sales_last_12_months": ("sales last 12 months",),
        "total_sales": ("total sales",),
        "average_price": ("average price", "avg. price", "avg price"),
        "price_range": ("price range",),
        "team_members_count": ("team members",),
    }
    ALL_LABELS: tuple[str, ...] = tuple(
        label for labels in FIELD_LABELS.values() for label in labels
    )
    MAX_LABEL_TEXT = 60
    MAX_VALUE_LENGTH = 30
    # Script or markup leaking into a text node
    ARTIFACT_PATTERN = re.compile(
        r"[{}<>;=]|=>|\bfunction\b|\bundefined\b|\bnull\b|\bvar\b|\bconst\b"
    )
    VALUE_CLASS_SELECTOR = '[class*="value"], [class*="count"], [class*="number"]'

    BADGE_PHRASES: tuple[tuple[str, BadgeType], ...] = (
        ("zillow pro", BadgeType.ZILLOW_PRO),
        ("premier agent", BadgeType.PREMIER_AGENT),
        ("top agent", BadgeType.TOP_AGENT),
    )
    BADGE_CLASS_PATTERN = re.compile(r"badge|premier|top-?agent|zillow-?pro", re.IGNORECASE)
    MAX_BADGE_TEXT = 40
    MAX_HEADING_CONTEXT = 200

    CARD_RATING_PATTERN = re.compile(r"\b[1-5]\.\d\b|★")
    CARD_SALES_PATTERN = re.compile(r"sales last 12 months", re.IGNORECASE)
    CARD_PRICE_RANGE_PATTERN = re.compile(
        r"\$\s*\d[\d,.]*\s*[KMB]?\s*[-–]\s*\$\s*\d", re.IGNORECASE
    )
    MIN_CARD_TEXT = 20
    MAX_CARD_TEXT = 400
    MAX_CARD_DEPTH = 6
    MIN_TEAM_SIZE = 2
    MAX_TEAM_SIZE = 20

    # ------------------------------------------------------------------
    # List pages
    # ------------------------------------------------------------------

    def list_entries(self, snapshot: PageSnapshot) -> list[ListItem]:
        entries: list[ListItem] = []
        seen: set[str] = set()

        for anchor in snapshot.soup.find_all("a", href=True):
            href = anchor["href"]
            if not self.PROFILE_LINK_PATTERN.search(href):
                continue

            url = canonical_url(href, snapshot.url)
            if url in seen:
                continue

            text = anchor.get_text("\n", strip=True)
            rating_match = self._rating_match(text)
            review_match = self.REVIEW_COUNT_PATTERN.search(text)
            if rating_match is None or review_match is None:
                continue

            name = self.derive_name(text, rating_match.group(0), review_match.group(0))
            if not name:
                continue

            try:
                item = ListItem(
                    name=name,
                    url=url,
                    rating_stars=float(rating_match.group(0)),
                    review_count=int(review_match.group(1).replace(",", "")),
                )
            except ValueError as e:
                logger.debug(f"Rejected anchor {href!r}: {e}")
                continue

            seen.add(url)
            entries.append(item)

        return entries

    def _rating_match(self, text: str) -> re.Match | None:
        for match in self.RATING_PATTERN.finditer(text):
            if 1.0 <= float(match.group(0)) <= 5.0:
                return match
        return None

    def derive_name(self, text: str, rating_text: str, review_text: str) -> str:
        """
        Agent name from a profile anchor's text.

        Strips the rating, review count, star glyphs and a leading team
        marker, then takes the first separator-delimited segment of at
        least three characters.
        """
        cleaned = text.replace(rating_text, "", 1).replace(review_text, "", 1)
        cleaned = self.STAR_GLYPHS.sub("", cleaned)
        cleaned = self.TEAM_MARKER_PATTERN.sub("", cleaned.strip())

        for segment in self.NAME_SEPARATOR_PATTERN.split(cleaned):
            segment = segment.strip()
            if len(segment) >= self.MIN_NAME_LENGTH:
                return segment

        lines = cleaned.strip().splitlines()
        return lines[0][: self.MAX_NAME_FALLBACK].strip() if lines else ""

    # ------------------------------------------------------------------
    # Profile pages
    # ------------------------------------------------------------------

    def detail_fields(
        self,
        snapshot: PageSnapshot,
        wanted: Iterable[str] | None = None,
    ) -> dict[str, Any]:
        soup = snapshot.soup
        if soup.body is None and not soup.find(True):
            raise ExtractionError("Page has no DOM", url=snapshot.url, strategy=self.name)

        wanted_fields = set(wanted) if wanted is not None else set(DETAIL_FIELDS)
        readers: dict[str, Callable[[], Any]] = {
            "badge_type": lambda: self.find_badge(soup),
            "sales_last_12_months": lambda: self.find_labelled(
                soup, "sales_last_12_months", parse_number),
            "total_sales": lambda: self.find_labelled(soup, "total_sales", parse_number),
            "average_price": lambda: self.find_labelled(soup, "average_price", normalize_price),
            "price_range": lambda: self.find_labelled(soup, "price_range", parse_price_range),
            "team_members_count": lambda: self.find_team_size(soup),
        }

        found: dict[str, Any] = {}
        for field_name, reader in readers.items():
            if field_name in wanted_fields:
                self._collect(found, field_name, reader, snapshot.url)
        return found

    def find_labelled(
        self,
        soup: BeautifulSoup,
        field_name: str,
        parse: Callable[[str], Any],
    ) -> Any:
        """
        Value displayed next to one of a field's labels.

        Candidates are tried in proximity order; the first that passes the
        value checks and parses wins.
        """
        labels = self.FIELD_LABELS[field_name]
        for element, label in self._label_elements(soup, labels):
            for candidate in self._value_candidates(element, label):
                if not self.is_plausible_value(candidate):
                    continue
                value = parse(candidate)
                if value is not None:
                    return value
        return None

    def _label_elements(
        self,
        soup: BeautifulSoup,
        labels: tuple[str, ...],
    ) -> Iterator[tuple[Tag, str]]:
        for string in soup.find_all(string=True):
            parent = string.parent
            if parent is None or parent.name in ("script", "style", "noscript"):
                continue
            text = string.strip().lower()
            if not text or len(text) > self.MAX_LABEL_TEXT:
                continue
            for label in labels:
                if label in text:
                    yield parent, label
                    break

    def _value_candidates(self, element: Tag, label: str) -> Iterator[str]:
        sibling = element.find_next_sibling()
        if sibling is not None:
            yield sibling.get_text(" ", strip=True)

        parent = element.parent
        if parent is not None:
            parent_sibling = parent.find_next_sibling()
            if parent_sibling is not None:
                yield parent_sibling.get_text(" ", strip=True)

            value_el = parent.select_one(self.VALUE_CLASS_SELECTOR)
            if value_el is not None and value_el is not element:
                yield value_el.get_text(" ", strip=True)

        previous = element.find_previous_sibling()
        if previous is not None:
            yield previous.get_text(" ", strip=True)

        # Value and label in the same node, e.g. "42 sales last 12 months"
        own_text = element.get_text(" ", strip=True)
        yield re.sub(re.escape(label), "", own_text, flags=re.IGNORECASE).strip(" :")

    def is_plausible_value(self, text: str) -> bool:
        """
        Short, label-free and free of script artifacts.

        Guards against grabbing a whole stats block instead of one value.
        """
        if not text or len(text) >= self.MAX_VALUE_LENGTH:
            return False
        lowered = text.lower()
        if any(label in lowered for label in self.ALL_LABELS):
            return False
        return self.ARTIFACT_PATTERN.search(text) is None

    def _badge_from_text(self, text: str) -> BadgeType | None:
        lowered = text.lower().replace("-", " ").replace("_", " ")
        for phrase, badge in self.BADGE_PHRASES:
            if phrase in lowered:
                return badge
        return None

    def find_badge(self, soup: BeautifulSoup) -> BadgeType | None:
        """Badge from badge-like class names, then from text near the headings."""
        for element in soup.find_all(class_=self.BADGE_CLASS_PATTERN):
            text = element.get_text(" ", strip=True)
            if text and len(text) <= self.MAX_BADGE_TEXT:
                badge = self._badge_from_text(text)
                if badge is not None:
                    return badge
            badge = self._badge_from_text(" ".join(element.get("class", [])))
            if badge is not None:
                return badge

        for heading in soup.find_all(["h1", "h2"]):
            nearby = [heading, *heading.find_next_siblings(limit=3),
                      *heading.find_previous_siblings(limit=2)]
            if heading.parent is not None:
                nearby.append(heading.parent)
            for element in nearby:
                text = element.get_text(" ", strip=True)
                if not text or len(text) > self.MAX_HEADING_CONTEXT:
                    continue
                badge = self._badge_from_text(text)
                if badge is not None:
                    return badge

        return None

    def find_team_size(self, soup: BeautifulSoup) -> int | None:
        """Team size from an explicit label, else by counting member cards."""
        labelled = self.find_labelled(soup, "team_members_count", parse_number)
        if labelled is not None:
            return labelled
        return self.count_member_cards(soup)

    def _is_member_card(self, element: Tag) -> bool:
        text = element.get_text(" ", strip=True)
        if not self.MIN_CARD_TEXT <= len(text) <= self.MAX_CARD_TEXT:
            return False
        return (
            self.CARD_RATING_PATTERN.search(text) is not None
            and self.CARD_SALES_PATTERN.search(text) is not None
            and self.CARD_PRICE_RANGE_PATTERN.search(text) is not None
            and (element.name == "img" or element.find("img") is not None)
        )

    def count_member_cards(self, soup: BeautifulSoup) -> int | None:
        """
        Count the largest group of sibling team member cards.

        Only the innermost qualifying elements count, so a container that
        wraps several cards is not mistaken for a card itself. Counts
        outside [MIN_TEAM_SIZE, MAX_TEAM_SIZE] are rejected.
        """
        candidates: dict[int, Tag] = {}
        for image in soup.find_all("img"):
            for depth, ancestor in enumerate(image.parents):
                if depth >= self.MAX_CARD_DEPTH or ancestor.name in ("body", "html", "[document]"):
                    break
                candidates.setdefault(id(ancestor), ancestor)

        cards = [el for el in candidates.values() if self._is_member_card(el)]
        card_ids = {id(el) for el in cards}
        innermost = [
            el for el in cards
            if not any(id(descendant) in card_ids for descendant in el.find_all(True))
        ]
        if not innermost:
            return None

        groups = Counter(id(el.parent) for el in innermost)
        count = max(groups.values())
        if self.MIN_TEAM_SIZE <= count <= self.MAX_TEAM_SIZE:
            return count

        logger.debug(f"Rejected member card count {count}")
        return None
