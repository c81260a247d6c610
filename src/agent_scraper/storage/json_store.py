"""
JSON output for scrape results.

Records are written as a JSON array in directory order. With metadata
enabled the array is wrapped: {"metadata": {...}, "agents": [...]}.
"""

import json
from pathlib import Path
from typing import Any, Sequence

from agent_scraper.core.models import AgentRecord
from agent_scraper.crawler.orchestrator import ScrapeResult
from agent_scraper.utils.logging import get_logger

logger = get_logger(__name__)


def results_to_json(
    result: ScrapeResult | Sequence[AgentRecord],
    include_metadata: bool = False,
) -> list[dict[str, Any]] | dict[str, Any]:
    """
    Build the JSON-ready payload for a run.

    Args:
        result: Full run result, or bare records
        include_metadata: Wrap records together with run metadata

    Raises:
        ValueError: If metadata is requested for bare records
    """
    if isinstance(result, ScrapeResult):
        agents = [record.to_dict() for record in result.records]
        if include_metadata:
            return {"metadata": result.metadata.to_dict(), "agents": agents}
        return agents

    if include_metadata:
        raise ValueError("Metadata requires a ScrapeResult")
    return [record.to_dict() for record in result]


def save_results(
    path: str | Path,
    result: ScrapeResult | Sequence[AgentRecord],
    include_metadata: bool = False,
    indent: int = 2,
) -> Path:
    """
    Write results to a UTF-8 JSON file, creating parent directories.

    Returns:
        Path of the written file
    """
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)

    payload = results_to_json(result, include_metadata=include_metadata)
    with open(path, "w", encoding="utf-8") as f:
        json.dump(payload, f, indent=indent, ensure_ascii=False)
        f.write("\n")

    count = len(payload["agents"]) if isinstance(payload, dict) else len(payload)
    logger.info(f"Saved {count} agents to {path}")
    return path


def load_results(path: str | Path) -> list[dict[str, Any]]:
    """
    Read agent dicts back from a results file, with or without metadata.

    Raises:
        ValueError: If the file does not hold a results payload
    """
    with open(path, encoding="utf-8") as f:
        data = json.load(f)

    if isinstance(data, dict):
        data = data.get("agents")
    if not isinstance(data, list):
        raise ValueError(f"Not a results file: {path}")
    return data
