"""
Pydantic settings models for the agent scraper.

All configuration is defined here with defaults tuned for a polite,
headful crawl of the Seattle top-agent directory.
"""

from pathlib import Path
from typing import Literal

from pydantic import BaseModel, Field, field_validator, model_validator


DEFAULT_USER_AGENT = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36"
)

DEFAULT_LIST_URL = (
    "https://www.zillow.com/professionals/real-estate-agent-reviews/"
    "seattle-wa/?isTopAgent=true"
)


class BrowserSettings(BaseModel):
    """Playwright browser configuration."""

    headless: bool = Field(
        default=False,
        description="Run browser in headless mode. The target blocks most headless sessions.",
    )
    slow_mo_ms: int = Field(
        default=500,
        ge=0,
        le=5000,
        description="Delay Playwright inserts between browser operations",
    )
    timeout_ms: int = Field(
        default=30000,
        ge=1000,
        le=120000,
        description="Default timeout for page operations in milliseconds",
    )
    navigation_timeout_ms: int = Field(
        default=60000,
        ge=5000,
        le=180000,
        description="Timeout for page navigation in milliseconds",
    )
    user_agent: str | None = Field(
        default=DEFAULT_USER_AGENT,
        description="User agent for every browser context. None uses browser default.",
    )
    accept_language: str | None = Field(
        default="en-US,en;q=0.9",
        description="Accept-Language header sent with every request",
    )
    viewport_width: int = Field(
        default=1920,
        ge=320,
        le=3840,
        description="Browser viewport width in pixels",
    )
    viewport_height: int = Field(
        default=1080,
        ge=240,
        le=2160,
        description="Browser viewport height in pixels",
    )
    browser_type: Literal["chromium", "firefox", "webkit"] = Field(
        default="chromium",
        description="Browser engine to use",
    )
    launch_args: list[str] = Field(
        default_factory=lambda: [
            "--disable-blink-features=AutomationControlled",
            "--disable-dev-shm-usage",
            "--no-sandbox",
        ],
        description="Extra command-line arguments for the browser process",
    )
    mask_webdriver: bool = Field(
        default=True,
        description="Hide navigator.webdriver through an init script",
    )


class CrawlerSettings(BaseModel):
    """List crawl, detail fetch and challenge handling configuration."""

    list_url: str = Field(
        default=DEFAULT_LIST_URL,
        description="First page of the agent directory",
    )
    agent_limit: int = Field(
        default=1000,
        ge=1,
        le=100000,
        description="Maximum number of agents to collect",
    )
    concurrency: int = Field(
        default=5,
        ge=1,
        le=20,
        description="Detail pages fetched concurrently per batch",
    )
    page_delay_min_seconds: float = Field(
        default=2.0,
        ge=0.0,
        le=120.0,
        description="Lower bound of the random pause between list pages",
    )
    page_delay_max_seconds: float = Field(
        default=5.0,
        ge=0.0,
        le=120.0,
        description="Upper bound of the random pause between list pages",
    )
    batch_delay_min_seconds: float = Field(
        default=1.0,
        ge=0.0,
        le=60.0,
        description="Lower bound of the pause between detail batches",
    )
    batch_delay_max_seconds: float = Field(
        default=1.0,
        ge=0.0,
        le=60.0,
        description="Upper bound of the pause between detail batches",
    )
    anchor_selector: str = Field(
        default="#__NEXT_DATA__",
        description="Selector of the embedded data blob that marks a usable page",
    )
    anchor_timeout_ms: int = Field(
        default=15000,
        ge=100,
        le=120000,
        description="How long to wait for the anchor before checking for a challenge",
    )
    challenge_timeout_seconds: float = Field(
        default=300.0,
        ge=1.0,
        le=3600.0,
        description="How long to wait for a human to solve a challenge",
    )
    challenge_poll_interval_ms: int = Field(
        default=2000,
        ge=10,
        le=60000,
        description="Anchor poll interval while waiting for a challenge to clear",
    )
    challenge_settle_seconds: float = Field(
        default=2.0,
        ge=0.0,
        le=30.0,
        description="Pause after a challenge clears before extracting",
    )
    challenge_markers: list[str] = Field(
        default_factory=lambda: ["Press and Hold", "Press & Hold", "challenge"],
        description="Visible-text markers of a bot interstitial",
    )
    challenge_title_markers: list[str] = Field(
        default_factory=lambda: ["Robot", "Captcha", "Access to this page has been denied"],
        description="Title markers of a bot interstitial",
    )
    missing_anchor_is_challenge: bool = Field(
        default=False,
        description="Treat a page whose anchor never attaches as challenged",
    )
    stop_on_repeated_page: bool = Field(
        default=True,
        description="Stop paginating when a page yields only already-seen agents",
    )
    max_stale_pages: int = Field(
        default=3,
        ge=1,
        le=50,
        description="With repeat detection off, stop after this many pages in a row without new agents",
    )
    max_pages: int | None = Field(
        default=None,
        ge=1,
        description="Hard cap on directory pages loaded (None = no cap)",
    )
    scroll_for_lazy_content: bool = Field(
        default=True,
        description="Scroll pages lacking the data blob to trigger lazy rendering",
    )
    max_retries: int = Field(
        default=1,
        ge=0,
        le=10,
        description="Retries for a detail page after a transient navigation error",
    )
    retry_delay_seconds: float = Field(
        default=5.0,
        ge=0.0,
        le=60.0,
        description="Delay before retrying a failed navigation",
    )

    @model_validator(mode="after")
    def check_delay_ranges(self) -> "CrawlerSettings":
        """Delay ranges must be ordered and batch pacing must stay below page pacing."""
        if self.page_delay_min_seconds > self.page_delay_max_seconds:
            raise ValueError("page_delay_min_seconds exceeds page_delay_max_seconds")
        if self.batch_delay_min_seconds > self.batch_delay_max_seconds:
            raise ValueError("batch_delay_min_seconds exceeds batch_delay_max_seconds")
        if self.batch_delay_max_seconds > self.page_delay_max_seconds:
            raise ValueError("batch delay must not exceed the page delay")
        return self


class OutputSettings(BaseModel):
    """JSON output configuration."""

    path: Path = Field(
        default=Path("output.json"),
        description="File the collected records are written to",
    )
    include_metadata: bool = Field(
        default=False,
        description="Wrap records in an object together with run metadata",
    )
    indent: int = Field(
        default=2,
        ge=0,
        le=8,
        description="JSON indentation",
    )

    @field_validator("path", mode="before")
    @classmethod
    def convert_to_path(cls, v: str | Path) -> Path:
        """Convert string paths to Path objects."""
        return Path(v) if isinstance(v, str) else v


class LoggingSettings(BaseModel):
    """Logging configuration."""

    level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = Field(
        default="INFO",
        description="Minimum logging level",
    )
    format: str = Field(
        default="%(asctime)s | %(levelname)-8s | %(name)s | %(message)s",
        description="Log message format string",
    )
    date_format: str = Field(
        default="%Y-%m-%d %H:%M:%S",
        description="Date format for log timestamps",
    )
    file_path: Path | None = Field(
        default=None,
        description="Path to log file. None means console only.",
    )
    max_file_size_mb: int = Field(
        default=10,
        ge=1,
        le=100,
        description="Maximum log file size before rotation",
    )
    backup_count: int = Field(
        default=3,
        ge=0,
        le=10,
        description="Number of backup log files to keep",
    )
    log_to_console: bool = Field(
        default=True,
        description="Whether to output logs to console",
    )

    @field_validator("file_path", mode="before")
    @classmethod
    def convert_file_path(cls, v: str | Path | None) -> Path | None:
        """Convert string paths to Path objects."""
        if v is None:
            return None
        return Path(v) if isinstance(v, str) else v


class Settings(BaseModel):
    """
    Root configuration model containing all subsystem settings.

    Settings are loaded from YAML with environment variable overrides.
    """

    browser: BrowserSettings = Field(
        default_factory=BrowserSettings,
        description="Browser/Playwright settings",
    )
    crawler: CrawlerSettings = Field(
        default_factory=CrawlerSettings,
        description="Crawl settings",
    )
    output: OutputSettings = Field(
        default_factory=OutputSettings,
        description="Output file settings",
    )
    logging: LoggingSettings = Field(
        default_factory=LoggingSettings,
        description="Logging configuration",
    )

    model_config = {
        "extra": "forbid",
        "validate_default": True,
    }
