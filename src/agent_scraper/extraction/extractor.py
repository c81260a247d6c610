"""
Tiered structured extraction.

Runs the extraction strategies in priority order. For list pages the
first tier that yields entries wins. For profile pages fields are merged
per field: a later tier only fills what earlier tiers left unknown.
"""

from dataclasses import dataclass, field
from typing import Any, Sequence

from agent_scraper.browser.page_context import PageSnapshot
from agent_scraper.core.exceptions import ExtractionError
from agent_scraper.core.models import DetailRecord, ListItem
from agent_scraper.extraction.strategies import (
    DomHeuristicStrategy,
    ExtractionStrategy,
    NextDataStrategy,
)
from agent_scraper.utils.logging import get_logger

logger = get_logger(__name__)


@dataclass
class DetailExtraction:
    """A merged profile record plus which tier supplied each field."""

    record: DetailRecord
    sources: dict[str, str] = field(default_factory=dict)


class StructuredExtractor:
    """
    Extracts list entries and profile stats from page snapshots.

    Extraction never raises: a tier that fails is logged and skipped, and
    a page no tier can read yields an empty result.

    Example:
        >>> extractor = StructuredExtractor()
        >>> items = extractor.extract_list(snapshot)
        >>> detail = extractor.extract_detail(profile_snapshot)
    """

    def __init__(self, strategies: Sequence[ExtractionStrategy] | None = None) -> None:
        """
        Initialize extractor.

        Args:
            strategies: Tiers in priority order (default: data blob, then DOM)
        """
        self.strategies: list[ExtractionStrategy] = list(
            strategies if strategies is not None
            else (NextDataStrategy(), DomHeuristicStrategy())
        )

    def extract_list(self, snapshot: PageSnapshot) -> list[ListItem]:
        """
        Agent entries on a directory page.

        Returns:
            Entries from the highest-priority tier that found any, else []
        """
        for strategy in self.strategies:
            try:
                entries = strategy.list_entries(snapshot)
            except ExtractionError as e:
                logger.debug(f"{strategy.name} skipped for {snapshot.url}: {e.message}")
                continue
            except Exception as e:
                logger.warning(f"{strategy.name} failed on {snapshot.url}: {e}")
                continue

            if entries:
                logger.debug(f"{strategy.name} found {len(entries)} entries on {snapshot.url}")
                return entries

        logger.debug(f"No entries found on {snapshot.url}")
        return []

    def extract_detail(self, snapshot: PageSnapshot) -> DetailRecord:
        """Merged profile stats; all-null when nothing could be read."""
        return self.extract_detail_with_sources(snapshot).record

    def extract_detail_with_sources(self, snapshot: PageSnapshot) -> DetailExtraction:
        merged: dict[str, Any] = {}
        sources: dict[str, str] = {}
        all_fields = DetailRecord.field_names()

        for strategy in self.strategies:
            missing = [name for name in all_fields if name not in merged]
            if not missing:
                break

            try:
                found = strategy.detail_fields(snapshot, wanted=missing)
            except ExtractionError as e:
                logger.debug(f"{strategy.name} skipped for {snapshot.url}: {e.message}")
                continue
            except Exception as e:
                logger.warning(f"{strategy.name} failed on {snapshot.url}: {e}")
                continue

            for name in missing:
                value = found.get(name)
                if value is not None:
                    merged[name] = value
                    sources[name] = strategy.name

        return DetailExtraction(record=DetailRecord(**merged), sources=sources)
