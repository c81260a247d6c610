"""
Tests for money and number formatting.
"""

import pytest

from agent_scraper.extraction.formatting import (
    format_price,
    format_price_range,
    normalize_price,
    parse_number,
    parse_price,
    parse_price_range,
)


class TestFormatPrice:
    """Tests for compact dollar formatting."""

    @pytest.mark.parametrize(
        "value, expected",
        [
            (650000, "$650K"),
            (1_200_000, "$1.2M"),
            (1_000_000, "$1.0M"),
            (1_250_000, "$1.3M"),
            (650_500, "$651K"),
            (999_499, "$999K"),
            (1_000, "$1K"),
            (900, "$900"),
            (0, "$0"),
        ],
    )
    def test_formats(self, value, expected):
        assert format_price(value) == expected

    def test_invalid_values(self):
        """Missing, negative and non-numeric values are not formatted."""
        assert format_price(None) is None
        assert format_price(-5) is None
        assert format_price(True) is None
        assert format_price("abc") is None
        assert format_price(float("nan")) is None
        assert format_price(float("inf")) is None

    def test_amount_too_large(self):
        assert format_price(1e40) is None
        assert format_price_range(300_000, 1e40) is None

    def test_idempotent(self):
        """Formatting the same raw value twice gives the same string."""
        assert format_price(1_234_567) == format_price(1_234_567)

    def test_range(self):
        assert format_price_range(300_000, 1_200_000) == "$300K - $1.2M"
        assert format_price_range(300_000, None) is None


class TestParsing:
    """Tests for reading money and numbers back from text."""

    def test_parse_price_round_trip(self):
        """"$650K" parses back to 650 thousand."""
        assert parse_price(format_price(650_000)) == 650_000.0
        assert parse_price("$650K") / 1000 == 650

    def test_parse_price_variants(self):
        assert parse_price("$1,250,000") == 1_250_000.0
        assert parse_price("$1.2M") == 1_200_000.0
        assert parse_price("no money here") is None
        assert parse_price(None) is None

    def test_normalize_requires_dollar_sign(self):
        """Plain counts are never read as prices."""
        assert normalize_price("$650,000") == "$650K"
        assert normalize_price("42") is None

    def test_parse_price_range(self):
        assert parse_price_range("Price range: $300K – $1.2M") == "$300K - $1.2M"
        assert parse_price_range("$200,000 to $450,000") == "$200K - $450K"
        assert parse_price_range("$300K") is None

    def test_parse_number(self):
        assert parse_number("1,204 sales") == 1204
        assert parse_number("Team of 6") == 6
        assert parse_number("none") is None
        assert parse_number("") is None
