"""
Tests for the exception hierarchy.
"""

import pytest

from agent_scraper.core.exceptions import (
    BrowserError,
    ConfigurationError,
    ExtractionError,
    NavigationError,
    PageLoadError,
    RetryableError,
    ScraperError,
    StructuredDataError,
    get_retry_delay,
    is_retryable,
)


class TestHierarchy:
    """Tests for inheritance relationships."""

    @pytest.mark.parametrize(
        "error_class",
        [ConfigurationError, BrowserError, ExtractionError, StructuredDataError],
    )
    def test_all_derive_from_base(self, error_class):
        assert issubclass(error_class, ScraperError)

    def test_navigation_error_is_browser_and_retryable(self):
        error = NavigationError("timeout", url="https://x.test", status_code=504)
        assert isinstance(error, BrowserError)
        assert isinstance(error, RetryableError)
        assert error.url == "https://x.test"
        assert error.details == {"url": "https://x.test", "status_code": 504}

    def test_structured_data_error_is_extraction_error(self):
        error = StructuredDataError("missing", url="https://x.test", strategy="next_data")
        assert isinstance(error, ExtractionError)
        assert error.strategy == "next_data"


class TestFormatting:
    """Tests for error messages."""

    def test_str_includes_details(self):
        error = ScraperError("failed", details={"page": 2})
        assert str(error) == "failed (page=2)"

    def test_str_without_details(self):
        assert str(ScraperError("failed")) == "failed"

    def test_repr(self):
        assert repr(BrowserError("stop")) == "BrowserError('stop', details={})"


class TestRetryHelpers:
    """Tests for is_retryable and get_retry_delay."""

    def test_is_retryable(self):
        assert is_retryable(NavigationError("x"))
        assert is_retryable(PageLoadError("x"))
        assert not is_retryable(ExtractionError("x"))
        assert not is_retryable(ValueError("x"))

    def test_status_decides_navigation_retry(self):
        assert is_retryable(NavigationError("timeout"))
        assert is_retryable(NavigationError("HTTP 503 error", status_code=503))
        assert not is_retryable(NavigationError("HTTP 404 error", status_code=404))

    def test_retry_delay(self):
        assert get_retry_delay(NavigationError("x", retry_after=10.0)) == 10.0
        assert get_retry_delay(NavigationError("x")) == 5.0
        assert get_retry_delay(NavigationError("x"), default=1.5) == 1.5
        assert get_retry_delay(ValueError("x")) == 5.0
