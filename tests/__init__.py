"""
Test suite for the agent scraper.

Provides tests for all modules:
- Unit tests for extraction, pagination, challenges and the worker pool
- Run-level tests against in-memory fake pages
- Fixtures and page builders for common test data
"""
