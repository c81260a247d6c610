"""
CLI module for the agent scraper.

Provides command-line interface using Typer:
- scrape: Collect agents into a JSON file
- config: Show the resolved configuration
"""

from agent_scraper.cli.main import app

__all__ = ["app"]
