"""Custom exceptions for netlink_scraper."""


class NetlinkScraperError(Exception):
    """Base exception for netlink_scraper."""


class ConfigError(NetlinkScraperError):
    """Raised when configuration is missing or invalid."""


class LaunchError(NetlinkScraperError):
    """Raised when the browser process cannot be started."""


class TransientDriverError(NetlinkScraperError):
    """Raised when the automation driver lost its session or target."""


class ScrapeError(NetlinkScraperError):
    """Raised when a single target could not be scraped."""

    def __init__(self, message: str, url: str | None = None):
        self.message = message
        self.url = url
        super().__init__(message)


class NavigationError(ScrapeError):
    """Raised on navigation timeout, DNS or connection failure."""


class ExtractionError(ScrapeError):
    """Raised when link extraction fails on a loaded page."""


class BatchAbortedError(NetlinkScraperError):
    """Raised when a batch stops on the first failure (skip_errors=False)."""

    def __init__(self, message: str, result=None, results=None):
        self.message = message
        self.result = result
        self.results = list(results or [])
        super().__init__(message)


class DashboardError(NetlinkScraperError):
    """Raised when a dashboard API call fails."""

    def __init__(self, message: str, status_code: int | None = None, payload=None):
        self.message = message
        self.status_code = status_code
        self.payload = payload
        super().__init__(message)
