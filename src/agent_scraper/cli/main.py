"""
Main CLI application for the agent scraper.

Provides the command-line interface for:
- Scraping agents from the directory into a JSON file
- Showing the resolved configuration
"""

import asyncio
from pathlib import Path
from typing import Any, Optional

import typer
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from agent_scraper import __version__
from agent_scraper.config import Settings, dump_config, load_config
from agent_scraper.core.exceptions import BrowserError, ConfigurationError
from agent_scraper.core.models import AgentRecord
from agent_scraper.crawler.orchestrator import AgentScraper, ScrapeResult
from agent_scraper.storage.json_store import save_results
from agent_scraper.utils.logging import get_logger, setup_logging
from agent_scraper.utils.metrics import Metrics

# Initialize Typer app
app = typer.Typer(
    name="agent-scraper",
    help="Real-estate agent directory scraper",
    add_completion=False,
    no_args_is_help=True,
)

console = Console()
logger = get_logger(__name__)


def version_callback(value: bool) -> None:
    """Show version and exit."""
    if value:
        console.print(f"[bold blue]Agent Scraper[/bold blue] v{__version__}")
        raise typer.Exit()


@app.callback()
def main(
    ctx: typer.Context,
    version: bool = typer.Option(
        False,
        "--version",
        "-v",
        callback=version_callback,
        is_eager=True,
        help="Show version and exit",
    ),
    verbose: bool = typer.Option(
        False,
        "--verbose",
        help="Enable verbose logging",
    ),
) -> None:
    """
    Agent Scraper - Collect agent profiles from a real-estate directory.

    Use 'agent-scraper --help' for command list.
    """
    ctx.obj = {"verbose": verbose}


def _load_settings(config_file: Optional[Path], overrides: dict[str, Any]) -> Settings:
    try:
        return load_config(config_file, overrides=overrides)
    except (ConfigurationError, FileNotFoundError) as e:
        console.print(f"[red]Configuration error:[/red] {e}")
        raise typer.Exit(1)


def _build_overrides(
    limit: Optional[int],
    concurrency: Optional[int],
    url: Optional[str],
    output: Optional[Path],
    headless: Optional[bool],
    metadata: Optional[bool],
) -> dict[str, Any]:
    """Nested settings overrides for the options that were given."""
    overrides: dict[str, dict[str, Any]] = {"browser": {}, "crawler": {}, "output": {}}

    if limit is not None:
        overrides["crawler"]["agent_limit"] = limit
    if concurrency is not None:
        overrides["crawler"]["concurrency"] = concurrency
    if url is not None:
        overrides["crawler"]["list_url"] = url
    if headless is not None:
        overrides["browser"]["headless"] = headless
    if output is not None:
        overrides["output"]["path"] = output
    if metadata is not None:
        overrides["output"]["include_metadata"] = metadata

    return {section: values for section, values in overrides.items() if values}


@app.command()
def scrape(
    ctx: typer.Context,
    limit: Optional[int] = typer.Option(
        None,
        "--limit",
        "-l",
        help="Maximum agents to collect",
        min=1,
    ),
    concurrency: Optional[int] = typer.Option(
        None,
        "--concurrency",
        "-n",
        help="Profiles fetched concurrently",
        min=1,
        max=20,
    ),
    url: Optional[str] = typer.Option(
        None,
        "--url",
        "-u",
        help="Directory URL of the first page",
    ),
    output: Optional[Path] = typer.Option(
        None,
        "--output",
        "-o",
        help="Output JSON path",
    ),
    headless: Optional[bool] = typer.Option(
        None,
        "--headless/--no-headless",
        help="Run browser in headless mode (challenges need a visible window)",
    ),
    config_file: Optional[Path] = typer.Option(
        None,
        "--config",
        "-c",
        help="Path to configuration file",
        exists=True,
        dir_okay=False,
    ),
    metadata: Optional[bool] = typer.Option(
        None,
        "--metadata/--no-metadata",
        help="Wrap records with run metadata",
    ),
) -> None:
    """
    Scrape agents and write them to a JSON file.

    Example:
        agent-scraper scrape --limit 50 --output agents.json
    """
    verbose = bool(ctx.obj and ctx.obj.get("verbose"))
    overrides = _build_overrides(limit, concurrency, url, output, headless, metadata)
    settings = _load_settings(config_file, overrides)
    setup_logging(settings.logging, level="DEBUG" if verbose else None)

    try:
        result = asyncio.run(_scrape_async(settings))
    except KeyboardInterrupt:
        console.print("\n[yellow]Scrape cancelled by user[/yellow]")
        raise typer.Exit(1)
    except BrowserError as e:
        console.print(f"[red]Browser error:[/red] {e}")
        logger.exception("Browser unavailable")
        raise typer.Exit(1)

    path = save_results(
        settings.output.path,
        result,
        include_metadata=settings.output.include_metadata,
        indent=settings.output.indent,
    )
    _print_summary(result, path)

    if verbose:
        console.print(Metrics.get().summary())


async def _scrape_async(settings: Settings) -> ScrapeResult:
    """Async scrape implementation."""
    crawler = settings.crawler

    console.print(Panel(
        f"[bold]Directory:[/bold] {crawler.list_url}\n"
        f"[dim]Limit: {crawler.agent_limit} | Concurrency: {crawler.concurrency} | "
        f"Headless: {settings.browser.headless}[/dim]",
        title="Agent Scraper",
        border_style="blue",
    ))

    completed = 0

    def on_record(record: AgentRecord) -> None:
        nonlocal completed
        completed += 1
        logger.info(f"[{completed}] {record.name}")

    scraper = AgentScraper(settings)
    return await scraper.run(on_record=on_record)


def _print_summary(result: ScrapeResult, path: Path) -> None:
    counts = result.summary()
    meta = result.metadata

    table = Table(show_header=False, box=None)
    table.add_column("Metric", style="dim")
    table.add_column("Value", style="bold")

    table.add_row("Agents", str(counts["total_agents"]))
    table.add_row("With badges", str(counts["with_badges"]))
    table.add_row("With sales data", str(counts["with_sales_data"]))
    table.add_row("Teams", str(counts["teams"]))
    table.add_row("Total time", f"{meta.total_time_seconds:.1f}s")
    table.add_row("Per agent", f"{meta.average_time_per_agent:.2f}s")
    table.add_row("Output", str(path))

    console.print()
    console.print(Panel(table, title="Summary", border_style="green"))


@app.command()
def config(
    config_file: Optional[Path] = typer.Option(
        None,
        "--config",
        "-c",
        help="Path to configuration file",
        exists=True,
        dir_okay=False,
    ),
    output: Optional[Path] = typer.Option(
        None,
        "--output",
        "-o",
        help="Write the configuration to this file instead of printing it",
    ),
) -> None:
    """
    Show the resolved configuration as YAML.

    Defaults, the config file and AGENT_SCRAPER__* environment variables
    are merged in that order.

    Examples:
        agent-scraper config
        agent-scraper config --output ./config.yaml
    """
    settings = _load_settings(config_file, {})
    text = dump_config(settings)

    if output is None:
        typer.echo(text, nl=False)
        return

    if output.exists() and not typer.confirm(f"File {output} exists. Overwrite?"):
        raise typer.Exit(0)

    output.write_text(text, encoding="utf-8")
    console.print(f"[green]✓[/green] Configuration saved to: {output}")


if __name__ == "__main__":
    app()
