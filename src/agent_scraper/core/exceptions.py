"""
Custom exceptions for the agent scraper.

Provides a hierarchy of exceptions for precise error handling across
the browser, crawl and extraction layers. All exceptions inherit from
ScraperError.

Exception Hierarchy:
    ScraperError (base)
    ├── ConfigurationError
    ├── BrowserError
    │   ├── NavigationError
    │   └── PageLoadError
    └── ExtractionError
        └── StructuredDataError
"""

from typing import Any


class ScraperError(Exception):
    """
    Base exception for all agent scraper errors.

    Attributes:
        message: Human-readable error description
        details: Optional dictionary with additional context
    """

    def __init__(self, message: str, details: dict[str, Any] | None = None) -> None:
        self.message = message
        self.details = details or {}
        super().__init__(message)

    def __str__(self) -> str:
        if self.details:
            details_str = ", ".join(
                f"{k}={v!r}" for k, v in self.details.items())
            return f"{self.message} ({details_str})"
        return self.message

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}({self.message!r}, details={self.details!r})"


class RetryableError(ScraperError):
    """
    Marker class for errors that may succeed if attempted again.

    Attributes:
        retry_after: Suggested delay in seconds before retry (optional)
    """

    def __init__(
        self,
        message: str,
        details: dict[str, Any] | None = None,
        retry_after: float | None = None,
    ) -> None:
        super().__init__(message, details)
        self.retry_after = retry_after

    @property
    def retryable(self) -> bool:
        return True


# =============================================================================
# Configuration Errors
# =============================================================================


class ConfigurationError(ScraperError):
    """
    Error in configuration loading or validation.

    Raised when the YAML file is malformed or values fail validation.
    """

    pass


# =============================================================================
# Browser Errors
# =============================================================================


class BrowserError(ScraperError):
    """
    Base error for browser/Playwright operations.

    A BrowserError raised while launching is fatal for the whole run.
    """

    pass


class NavigationError(BrowserError, RetryableError):
    """
    Error during page navigation.

    Raised when the URL is unreachable, navigation times out, or the
    server answers with an error status. Failures without a status and
    5xx answers are retryable. A 4xx answer is not: a missing profile
    stays missing.
    """

    def __init__(
        self,
        message: str,
        url: str | None = None,
        status_code: int | None = None,
        details: dict[str, Any] | None = None,
        retry_after: float | None = None,
    ) -> None:
        details = details or {}
        if url:
            details["url"] = url
        if status_code:
            details["status_code"] = status_code
        super().__init__(message, details, retry_after)
        self.url = url
        self.status_code = status_code

    @property
    def retryable(self) -> bool:
        return self.status_code is None or self.status_code >= 500


class PageLoadError(BrowserError, RetryableError):
    """
    Error reading page state after navigation.

    Raised when the HTML, title or text of a loaded page cannot be read.
    """

    def __init__(
        self,
        message: str,
        url: str | None = None,
        details: dict[str, Any] | None = None,
        retry_after: float | None = None,
    ) -> None:
        details = details or {}
        if url:
            details["url"] = url
        super().__init__(message, details, retry_after)
        self.url = url


# =============================================================================
# Extraction Errors
# =============================================================================


class ExtractionError(ScraperError):
    """
    Base error for extraction strategies.

    Never escapes the extractor: a failing strategy yields null fields.
    """

    def __init__(
        self,
        message: str,
        url: str | None = None,
        strategy: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        details = details or {}
        if url:
            details["url"] = url
        if strategy:
            details["strategy"] = strategy
        super().__init__(message, details)
        self.url = url
        self.strategy = strategy


class StructuredDataError(ExtractionError):
    """
    The embedded data blob is missing or is not valid JSON.
    """

    pass


# =============================================================================
# Utility Functions
# =============================================================================


def is_retryable(error: Exception) -> bool:
    """Check if an error is worth another attempt."""
    return isinstance(error, RetryableError) and error.retryable


def get_retry_delay(error: Exception, default: float = 5.0) -> float:
    """
    Get the recommended retry delay for an error.

    Args:
        error: The exception to check
        default: Default delay if not specified by error

    Returns:
        Recommended delay in seconds before retry
    """
    if isinstance(error, RetryableError) and error.retry_after is not None:
        return error.retry_after
    return default
