"""
Tests for JSON result output.
"""

import json
from datetime import datetime, timezone
from pathlib import Path

import pytest

from agent_scraper.core.models import AgentRecord, BadgeType, DetailRecord, ListItem
from agent_scraper.crawler.orchestrator import ScrapeMetadata, ScrapeResult
from agent_scraper.storage import load_results, results_to_json, save_results


@pytest.fixture
def records() -> list[AgentRecord]:
    return [
        AgentRecord(
            item=ListItem(
                name="José Núñez",
                url="https://www.zillow.com/profile/jose-nunez",
                rating_stars=4.9,
                review_count=210,
            ),
            detail=DetailRecord(
                badge_type=BadgeType.PREMIER_AGENT,
                sales_last_12_months=0,
                total_sales=88,
                average_price="$1.2M",
                price_range="$450K - $3.5M",
                team_members_count=4,
            ),
            scrape_time_seconds=3.14159,
        ),
        AgentRecord(
            item=ListItem(name="Ann Lee", url="https://www.zillow.com/profile/ann-lee"),
            detail=DetailRecord.empty(),
        ),
    ]


@pytest.fixture
def result(records) -> ScrapeResult:
    metadata = ScrapeMetadata(
        total_agents=2,
        total_time_seconds=12.5,
        average_time_per_agent=6.25,
        timestamp=datetime(2024, 5, 1, 12, 0, tzinfo=timezone.utc),
        list_url="https://www.zillow.com/professionals/real-estate-agent-reviews/seattle-wa/",
        stop_reason="no_entries",
    )
    return ScrapeResult(records=records, metadata=metadata)


class TestResultsToJson:
    """Tests for payload shapes."""

    def test_array_shape(self, result):
        payload = results_to_json(result)

        assert isinstance(payload, list)
        assert payload[0]["agent_name"] == "José Núñez"
        assert payload[0]["badge_type"] == "Premier Agent"
        assert payload[0]["sales_last_12_months"] == 0
        assert payload[0]["scrape_time_seconds"] == 3.14

    def test_unknown_fields_are_null(self, result):
        ann = results_to_json(result)[1]

        for key in ("badge_type", "sales_last_12_months", "total_sales",
                    "average_price", "price_range", "team_members_count",
                    "rating_stars", "review_count", "scrape_time_seconds"):
            assert ann[key] is None

    def test_metadata_shape(self, result):
        payload = results_to_json(result, include_metadata=True)

        assert set(payload) == {"metadata", "agents"}
        assert payload["metadata"]["total_agents"] == 2
        assert payload["metadata"]["timestamp"] == "2024-05-01T12:00:00+00:00"
        assert len(payload["agents"]) == 2

    def test_bare_records(self, records):
        assert len(results_to_json(records)) == 2

    def test_bare_records_reject_metadata(self, records):
        with pytest.raises(ValueError):
            results_to_json(records, include_metadata=True)


class TestSaveResults:
    """Tests for writing and reading result files."""

    def test_creates_parent_dirs(self, temp_dir: Path, result):
        path = save_results(temp_dir / "out" / "nested" / "agents.json", result)

        assert path.exists()
        assert path.read_text(encoding="utf-8").endswith("\n")

    def test_keeps_non_ascii(self, temp_dir: Path, result):
        path = save_results(temp_dir / "agents.json", result)
        assert "José Núñez" in path.read_text(encoding="utf-8")

    def test_round_trip(self, temp_dir: Path, result):
        path = save_results(temp_dir / "agents.json", result)
        assert load_results(path) == results_to_json(result)

    def test_round_trip_with_metadata(self, temp_dir: Path, result):
        path = save_results(temp_dir / "agents.json", result, include_metadata=True)

        data = json.loads(path.read_text(encoding="utf-8"))
        assert data["metadata"]["stop_reason"] == "no_entries"
        assert [a["agent_name"] for a in load_results(path)] == ["José Núñez", "Ann Lee"]

    def test_load_rejects_other_json(self, temp_dir: Path):
        path = temp_dir / "other.json"
        path.write_text('{"hello": "world"}', encoding="utf-8")

        with pytest.raises(ValueError):
            load_results(path)
