"""
Record types produced by the crawl.

ListItem comes from the agent directory, DetailRecord from an agent's
profile page, and AgentRecord joins the two. All three are immutable.
"""

from dataclasses import dataclass, fields
from enum import Enum
from typing import Any


class BadgeType(str, Enum):
    """Profile badge shown next to an agent's name."""

    NONE = "None"
    PREMIER_AGENT = "Premier Agent"
    TOP_AGENT = "Top Agent"
    ZILLOW_PRO = "Zillow Pro"


@dataclass(frozen=True)
class ListItem:
    """
    An agent card from the directory listing.

    The profile URL is the identity of the agent across the whole crawl.
    """

    name: str
    url: str
    rating_stars: float | None = None
    review_count: int | None = None

    def __post_init__(self) -> None:
        if not self.name or not self.name.strip():
            raise ValueError("ListItem.name must be non-empty")
        if not self.url:
            raise ValueError("ListItem.url must be non-empty")
        if self.rating_stars is not None and not 0 <= self.rating_stars <= 5:
            raise ValueError(f"rating_stars out of range: {self.rating_stars}")
        if self.review_count is not None and self.review_count < 0:
            raise ValueError(f"review_count is negative: {self.review_count}")

    def to_dict(self) -> dict[str, Any]:
        return {
            "agent_name": self.name,
            "profile_url": self.url,
            "rating_stars": self.rating_stars,
            "review_count": self.review_count,
        }


@dataclass(frozen=True)
class DetailRecord:
    """
    Stats read from an agent's profile page.

    Every field is independently nullable. None means the value could
    not be located this run; it is not an error.
    """

    badge_type: BadgeType | None = None
    sales_last_12_months: int | None = None
    total_sales: int | None = None
    average_price: str | None = None
    price_range: str | None = None
    team_members_count: int | None = None

    @classmethod
    def empty(cls) -> "DetailRecord":
        """Record with every field unknown."""
        return cls()

    @classmethod
    def field_names(cls) -> tuple[str, ...]:
        return tuple(f.name for f in fields(cls))

    @property
    def is_empty(self) -> bool:
        return all(getattr(self, name) is None for name in self.field_names())

    @property
    def has_badge(self) -> bool:
        return self.badge_type is not None and self.badge_type is not BadgeType.NONE

    def to_dict(self) -> dict[str, Any]:
        return {
            "badge_type": self.badge_type.value if self.badge_type else None,
            "sales_last_12_months": self.sales_last_12_months,
            "total_sales": self.total_sales,
            "average_price": self.average_price,
            "price_range": self.price_range,
            "team_members_count": self.team_members_count,
        }


@dataclass(frozen=True)
class AgentRecord:
    """
    One agent in the final output: listing data plus profile stats.

    Attributes:
        item: The listing entry that produced this record
        detail: Profile stats (possibly all null)
        scrape_time_seconds: Wall time of this agent's detail fetch
    """

    item: ListItem
    detail: DetailRecord
    scrape_time_seconds: float | None = None

    @property
    def url(self) -> str:
        return self.item.url

    @property
    def name(self) -> str:
        return self.item.name

    def to_dict(self) -> dict[str, Any]:
        """Flatten into the output JSON shape."""
        data = self.item.to_dict()
        data.update(self.detail.to_dict())
        data["scrape_time_seconds"] = (
            round(self.scrape_time_seconds, 2)
            if self.scrape_time_seconds is not None
            else None
        )
        return data
