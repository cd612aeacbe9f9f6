"""Netlink placement scraper: verifies that bought backlinks are online."""

__version__ = "0.1.0"

from netlink_scraper.models import (
    MatchType,
    LinkType,
    OnlineStatus,
    ScrapeTarget,
    MatchResult,
    ScrapeResult,
    ScrapingStats,
    ScrapeOptions,
    UpsertItem,
)
from netlink_scraper.matching import normalize_url, classify_match, match_link
from netlink_scraper.classifier import classify, build_upsert_item, build_upsert_batch
from netlink_scraper.config import Config
from netlink_scraper.browser_config import BrowserConfig
from netlink_scraper.scraper import PageScraper
from netlink_scraper.orchestrator import ScrapeOrchestrator
from netlink_scraper.dashboard import (
    DashboardClient,
    DashboardTargetSource,
    DashboardResultSink,
)
from netlink_scraper.exceptions import (
    NetlinkScraperError,
    ConfigError,
    LaunchError,
    TransientDriverError,
    ScrapeError,
    NavigationError,
    ExtractionError,
    BatchAbortedError,
    DashboardError,
)

# Infrastructure
from netlink_scraper.infrastructure import (
    BrowserSession,
    SessionStatus,
)

__all__ = [
    "MatchType",
    "LinkType",
    "OnlineStatus",
    "ScrapeTarget",
    "MatchResult",
    "ScrapeResult",
    "ScrapingStats",
    "ScrapeOptions",
    "UpsertItem",
    "normalize_url",
    "classify_match",
    "match_link",
    "classify",
    "build_upsert_item",
    "build_upsert_batch",
    "Config",
    "BrowserConfig",
    "PageScraper",
    "ScrapeOrchestrator",
    "DashboardClient",
    "DashboardTargetSource",
    "DashboardResultSink",
    "NetlinkScraperError",
    "ConfigError",
    "LaunchError",
    "TransientDriverError",
    "ScrapeError",
    "NavigationError",
    "ExtractionError",
    "BatchAbortedError",
    "DashboardError",
    "BrowserSession",
    "SessionStatus",
]
