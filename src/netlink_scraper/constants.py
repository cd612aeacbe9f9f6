# src/netlink_scraper/constants.py
"""Centralized constants for the netlink scraper.

This module contains magic numbers and fixed values that are used across
multiple modules. For user-configurable knobs, see config.py and Config.
"""

# =============================================================================
# Scrape Defaults
# =============================================================================

# Default navigation timeout in milliseconds
DEFAULT_TIMEOUT_MS = 30000

# Default number of attempts per target
DEFAULT_MAX_RETRIES = 3

# Default number of concurrent workers
DEFAULT_CONCURRENCY = 3

# Default delay between requests on one worker (milliseconds)
DEFAULT_DELAY_MS = 1000

# Default number of dashboard pages fetched per scrape batch
DEFAULT_PAGES_PER_BATCH = 10

# Default page size for the paginated netlink listing
DEFAULT_PAGE_LIMIT = 100

# Timeout for the minimal DOM readiness wait (milliseconds)
BODY_WAIT_TIMEOUT_MS = 5000

# Navigation is considered complete at this load state
NAVIGATION_WAIT_UNTIL = "domcontentloaded"


# =============================================================================
# Retry and Backoff Constants
# =============================================================================

# Base for exponential backoff between page scrape attempts
EXPONENTIAL_BACKOFF_BASE = 2

# Initial backoff delay in seconds for page scrape attempts
INITIAL_BACKOFF_DELAY_SECONDS = 1.0

# Attempts made by BrowserSession.with_page on transient driver errors
MAX_DRIVER_RETRIES = 3

# Linear backoff step for transient driver errors (seconds * attempt)
DRIVER_RETRY_STEP_SECONDS = 1.0

# Message fragments identifying a transient driver/session error
TRANSIENT_DRIVER_ERROR_MARKERS = (
    "cdpSession",
    "Target page, context or browser has been closed",
    "Session closed",
    "Target closed",
    "Browser has been closed",
)


# =============================================================================
# Viewport and Fingerprint Constants
# =============================================================================

DESKTOP_VIEWPORT_WIDTH = 1920
DESKTOP_VIEWPORT_HEIGHT = 1080

DEFAULT_USER_AGENT = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36"
)

DEFAULT_LOCALE = "fr-FR"

DEFAULT_TIMEZONE = "Europe/Paris"


# =============================================================================
# Dashboard API Constants
# =============================================================================

# Paginated netlink listing
NETLINK_LIST_ENDPOINT = "/netlink/all/paginated"

# Batch upsert of scrape outcomes
NETLINK_UPSERT_ENDPOINT = "/netlink/additionalInfo/upsert"

# HTTP timeout for dashboard requests (seconds)
DASHBOARD_TIMEOUT_SECONDS = 30.0

# Fields tried, in order, when reading the placement URL from a listing record
NETLINK_URL_FIELDS = ("url_bought", "url", "link", "href")
