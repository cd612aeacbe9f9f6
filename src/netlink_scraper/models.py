"""Data models for netlink placement scraping."""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum, IntEnum
from typing import Any, Awaitable, Callable, Dict, List, Optional, Union

from netlink_scraper.constants import (
    DEFAULT_CONCURRENCY,
    DEFAULT_DELAY_MS,
    DEFAULT_MAX_RETRIES,
    DEFAULT_TIMEOUT_MS,
)


class MatchType(str, Enum):
    """How a page anchor relates to the expected landing page."""
    EXACT = "exact"
    DOMAIN = "domain"
    SUBDOMAIN = "subdomain"
    PARTIAL = "partial"
    NONE = "none"


class LinkType(str, Enum):
    """Whether a link passes search-engine authority."""
    DOFOLLOW = "dofollow"
    NOFOLLOW = "nofollow"
    UNKNOWN = "unknown"


class OnlineStatus(IntEnum):
    """Placement status reported to the dashboard."""
    EXACT_MATCH = 1
    NO_MATCH = 2
    UNREACHABLE = 3
    DOMAIN_MATCH_ONLY = 4


@dataclass(frozen=True)
class ScrapeTarget:
    """A placement page to verify."""
    url: str
    landing_page: Optional[str] = None
    id: Optional[Union[str, int]] = None


@dataclass(frozen=True)
class MatchResult:
    """Outcome of matching one anchor against a landing page."""
    matched: bool
    match_type: MatchType = MatchType.NONE
    href: Optional[str] = None
    text: Optional[str] = None
    rel: Optional[str] = None
    outer_html: Optional[str] = None
    link_type: LinkType = LinkType.UNKNOWN

    def to_dict(self) -> Dict[str, Any]:
        return {
            "matched": self.matched,
            "match_type": self.match_type.value,
            "href": self.href,
            "text": self.text,
            "rel": self.rel,
            "outer_html": self.outer_html,
            "link_type": self.link_type.value,
        }


@dataclass
class ScrapeResult:
    """Final result for one target after all retries.

    A failed result never carries ``found_link``; a successful one always
    carries ``all_links_count``.
    """
    url: str
    success: bool
    landing_page: Optional[str] = None
    scraped_at: datetime = field(default_factory=datetime.now)
    error: Optional[str] = None
    status_code: Optional[int] = None
    all_links_count: Optional[int] = None
    found_link: Optional[MatchResult] = None
    domain_found: bool = False
    domain_found_link: Optional[MatchResult] = None
    source_id: Optional[Union[str, int]] = None
    attempts: int = 0

    @property
    def link_matched(self) -> bool:
        return bool(self.found_link and self.found_link.matched)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to a JSON-friendly dictionary."""
        return {
            "url": self.url,
            "landing_page": self.landing_page,
            "scraped_at": self.scraped_at.isoformat(),
            "success": self.success,
            "error": self.error,
            "status_code": self.status_code,
            "all_links_count": self.all_links_count,
            "found_link": self.found_link.to_dict() if self.found_link else None,
            "domain_found": self.domain_found,
            "domain_found_link": (
                self.domain_found_link.to_dict() if self.domain_found_link else None
            ),
            "source_id": self.source_id,
            "attempts": self.attempts,
        }


@dataclass
class ScrapingStats:
    """Aggregate counters for one scrape run."""
    total: int = 0
    successful: int = 0
    failed: int = 0
    skipped: int = 0
    start_time: datetime = field(default_factory=datetime.now)
    end_time: Optional[datetime] = None
    errors: List[Dict[str, str]] = field(default_factory=list)

    @property
    def duration(self) -> Optional[float]:
        """Run duration in seconds, None until finish() is called."""
        if self.end_time is None:
            return None
        return (self.end_time - self.start_time).total_seconds()

    def record_success(self) -> None:
        self.successful += 1

    def record_failure(self, url: str, error: str) -> None:
        self.failed += 1
        self.errors.append({"url": url, "error": error})

    def finish(self) -> None:
        self.end_time = datetime.now()

    def to_dict(self) -> Dict[str, Any]:
        return {
            "total": self.total,
            "successful": self.successful,
            "failed": self.failed,
            "skipped": self.skipped,
            "start_time": self.start_time.isoformat(),
            "end_time": self.end_time.isoformat() if self.end_time else None,
            "duration": self.duration,
            "errors": list(self.errors),
        }


ProgressCallback = Callable[[int, int, str], Any]
SuccessCallback = Callable[[ScrapeResult], Union[None, Awaitable[None]]]
ErrorCallback = Callable[[str, Exception], Union[None, Awaitable[None]]]


@dataclass
class ScrapeOptions:
    """Knobs and callbacks for a batch scrape."""
    concurrency: int = DEFAULT_CONCURRENCY
    timeout_ms: int = DEFAULT_TIMEOUT_MS
    retries: int = DEFAULT_MAX_RETRIES
    delay_ms: int = DEFAULT_DELAY_MS
    skip_errors: bool = True
    on_progress: Optional[ProgressCallback] = None
    on_success: Optional[SuccessCallback] = None
    on_error: Optional[ErrorCallback] = None


@dataclass(frozen=True)
class UpsertItem:
    """One record for the dashboard batch upsert."""
    target_id: Union[str, int]
    link_type: LinkType
    online_status: OnlineStatus
    status_code: Optional[int] = None

    def to_payload(self) -> Dict[str, Any]:
        """Wire format expected by the dashboard upsert endpoint."""
        payload: Dict[str, Any] = {
            "netlink_id": self.target_id,
            "link_type": self.link_type.value,
            "online_status": int(self.online_status),
        }
        if self.status_code is not None:
            payload["status_code"] = self.status_code
        return payload
