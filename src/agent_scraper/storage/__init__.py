"""
Storage module for the agent scraper.

Writes scrape results as JSON files.
"""

from agent_scraper.storage.json_store import (
    load_results,
    results_to_json,
    save_results,
)

__all__ = [
    "load_results",
    "results_to_json",
    "save_results",
]
