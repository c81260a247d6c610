"""
Crawler module for the agent scraper.

Provides the crawl pipeline:
- Politeness delays between pages and batches
- Challenge detection and human-clearance waits
- Directory pagination
- Bounded-concurrency profile fetching
- Run orchestration
"""

from agent_scraper.crawler.rate_limiter import (
    DelayRange,
    PolitenessPolicy,
)
from agent_scraper.crawler.challenge import (
    ChallengeDetector,
    ChallengeState,
)
from agent_scraper.crawler.pagination import (
    CrawlState,
    PaginationController,
    advance,
)
from agent_scraper.crawler.worker_pool import (
    BoundedWorkerPool,
    map_bounded,
)
from agent_scraper.crawler.orchestrator import (
    AgentScraper,
    ScrapeMetadata,
    ScrapeResult,
    scrape_agents,
)

__all__ = [
    # Politeness
    "DelayRange",
    "PolitenessPolicy",
    # Challenges
    "ChallengeDetector",
    "ChallengeState",
    # Pagination
    "CrawlState",
    "PaginationController",
    "advance",
    # Worker pool
    "BoundedWorkerPool",
    "map_bounded",
    # Orchestrator
    "AgentScraper",
    "ScrapeMetadata",
    "ScrapeResult",
    "scrape_agents",
]
