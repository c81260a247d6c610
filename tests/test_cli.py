"""
Tests for the command-line interface.

The scraper is replaced with a fake so no browser is launched.
"""

import json
from pathlib import Path

import pytest
from typer.testing import CliRunner

from agent_scraper import __version__
from agent_scraper.cli import main as cli_main
from agent_scraper.cli.main import app
from agent_scraper.core.exceptions import BrowserError
from agent_scraper.core.models import AgentRecord, BadgeType, DetailRecord, ListItem
from agent_scraper.crawler.orchestrator import ScrapeMetadata, ScrapeResult

runner = CliRunner()


class FakeScraper:
    """Stands in for AgentScraper and remembers the settings it was given."""

    instances: list["FakeScraper"] = []
    error: Exception | None = None

    def __init__(self, settings):
        self.settings = settings
        FakeScraper.instances.append(self)

    async def run(self, limit=None, on_record=None) -> ScrapeResult:
        if FakeScraper.error is not None:
            raise FakeScraper.error

        record = AgentRecord(
            item=ListItem(
                name="Jane Doe",
                url="https://www.zillow.com/profile/jane-doe",
                rating_stars=5.0,
                review_count=12,
            ),
            detail=DetailRecord(badge_type=BadgeType.TOP_AGENT, total_sales=31),
            scrape_time_seconds=1.5,
        )
        if on_record is not None:
            on_record(record)
        return ScrapeResult(
            records=[record],
            metadata=ScrapeMetadata(total_agents=1, total_time_seconds=1.5, average_time_per_agent=1.5),
        )


@pytest.fixture
def fake_scraper(monkeypatch):
    FakeScraper.instances = []
    FakeScraper.error = None
    monkeypatch.setattr(cli_main, "AgentScraper", FakeScraper)
    return FakeScraper


class TestVersion:
    def test_version(self):
        result = runner.invoke(app, ["--version"])

        assert result.exit_code == 0
        assert __version__ in result.output


class TestScrapeCommand:
    """Tests for `agent-scraper scrape`."""

    def test_writes_json(self, temp_dir: Path, fake_scraper):
        output = temp_dir / "agents.json"

        result = runner.invoke(app, ["scrape", "--limit", "5", "--output", str(output)])

        assert result.exit_code == 0, result.output
        data = json.loads(output.read_text(encoding="utf-8"))
        assert data[0]["agent_name"] == "Jane Doe"
        assert data[0]["badge_type"] == "Top Agent"

    def test_applies_overrides(self, temp_dir: Path, fake_scraper):
        output = temp_dir / "agents.json"
        url = "https://www.zillow.com/professionals/real-estate-agent-reviews/austin-tx/"

        runner.invoke(app, [
            "scrape", "-l", "25", "-n", "3", "--url", url,
            "--no-headless", "--output", str(output),
        ])

        settings = fake_scraper.instances[0].settings
        assert settings.crawler.agent_limit == 25
        assert settings.crawler.concurrency == 3
        assert settings.crawler.list_url == url
        assert settings.browser.headless is False
        assert settings.output.path == output

    def test_metadata_wrapper(self, temp_dir: Path, fake_scraper):
        output = temp_dir / "agents.json"

        runner.invoke(app, ["scrape", "--metadata", "--output", str(output)])

        data = json.loads(output.read_text(encoding="utf-8"))
        assert data["metadata"]["total_agents"] == 1
        assert len(data["agents"]) == 1

    def test_browser_error_exits(self, temp_dir: Path, fake_scraper):
        fake_scraper.error = BrowserError("Failed to launch browser")
        output = temp_dir / "agents.json"

        result = runner.invoke(app, ["scrape", "--output", str(output)])

        assert result.exit_code == 1
        assert not output.exists()

    def test_rejects_zero_limit(self, fake_scraper):
        result = runner.invoke(app, ["scrape", "--limit", "0"])

        assert result.exit_code != 0
        assert fake_scraper.instances == []

    def test_bad_config_file(self, temp_dir: Path, fake_scraper):
        config_file = temp_dir / "bad.yaml"
        config_file.write_text("crawler:\n  concurrency: 500\n", encoding="utf-8")

        result = runner.invoke(app, ["scrape", "--config", str(config_file)])

        assert result.exit_code == 1
        assert fake_scraper.instances == []


class TestConfigCommand:
    """Tests for `agent-scraper config`."""

    def test_prints_yaml(self):
        result = runner.invoke(app, ["config"])

        assert result.exit_code == 0
        assert "agent_limit: 1000" in result.output
        assert "concurrency: 5" in result.output

    def test_reads_config_file(self, temp_dir: Path):
        config_file = temp_dir / "config.yaml"
        config_file.write_text("crawler:\n  agent_limit: 42\n", encoding="utf-8")

        result = runner.invoke(app, ["config", "--config", str(config_file)])

        assert "agent_limit: 42" in result.output

    def test_writes_file(self, temp_dir: Path):
        output = temp_dir / "config.yaml"

        result = runner.invoke(app, ["config", "--output", str(output)])

        assert result.exit_code == 0
        assert "agent_limit: 1000" in output.read_text(encoding="utf-8")

    def test_keeps_existing_file_when_declined(self, temp_dir: Path):
        output = temp_dir / "config.yaml"
        output.write_text("original\n", encoding="utf-8")

        runner.invoke(app, ["config", "--output", str(output)], input="n\n")

        assert output.read_text(encoding="utf-8") == "original\n"
