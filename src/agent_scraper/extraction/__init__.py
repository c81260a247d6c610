"""
Extraction module for the agent scraper.

Provides tiered extraction of agent data from page snapshots:
- Embedded data blob (primary tier)
- DOM text heuristics (fallback tier)
- Money and number formatting
"""

from agent_scraper.extraction.extractor import (
    DetailExtraction,
    StructuredExtractor,
)
from agent_scraper.extraction.strategies import (
    DomHeuristicStrategy,
    ExtractionStrategy,
    NextDataStrategy,
)
from agent_scraper.extraction.formatting import (
    format_price,
    format_price_range,
    normalize_price,
    parse_number,
    parse_price,
    parse_price_range,
)

__all__ = [
    # Extractor
    "StructuredExtractor",
    "DetailExtraction",
    # Strategies
    "ExtractionStrategy",
    "NextDataStrategy",
    "DomHeuristicStrategy",
    # Formatting
    "format_price",
    "format_price_range",
    "normalize_price",
    "parse_number",
    "parse_price",
    "parse_price_range",
]
