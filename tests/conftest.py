"""
Shared pytest fixtures for agent scraper tests.

Provides reusable fixtures for:
- Configuration and settings
- Global state resets (metrics, logging, settings cache)
- Fake browsing sessions
- Temporary resources
"""

import tempfile
from pathlib import Path
from typing import Generator

import pytest

from agent_scraper.config import Settings, reset_settings
from agent_scraper.utils.logging import reset_logging
from agent_scraper.utils.metrics import Metrics

from tests.fakes import LIST_URL, FakeClock, SleepRecorder


@pytest.fixture(autouse=True)
def reset_global_state():
    """
    Reset process-wide state before and after each test.

    Metrics, the settings cache and logging handlers are singletons.
    """
    Metrics.reset()
    reset_settings()
    reset_logging()
    yield
    Metrics.reset()
    reset_settings()
    reset_logging()


@pytest.fixture
def temp_dir() -> Generator[Path, None, None]:
    """Provide a temporary directory that's cleaned up after the test."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
def fast_settings() -> Settings:
    """
    Settings with every delay and wait shrunk for tests.
    """
    return Settings(
        crawler={
            "list_url": LIST_URL,
            "page_delay_min_seconds": 0,
            "page_delay_max_seconds": 0,
            "batch_delay_min_seconds": 0,
            "batch_delay_max_seconds": 0,
            "anchor_timeout_ms": 100,
            "challenge_timeout_seconds": 1.0,
            "challenge_poll_interval_ms": 10,
            "challenge_settle_seconds": 0,
            "retry_delay_seconds": 0,
        },
    )


@pytest.fixture
def fake_clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def sleep_recorder() -> SleepRecorder:
    return SleepRecorder()
