"""
Infrastructure Package.

Provides the shared browser session used by the page scraper.
"""

from .browser_session import (
    BrowserSession,
    SessionStatus,
    is_transient_driver_error,
)

__all__ = [
    "BrowserSession",
    "SessionStatus",
    "is_transient_driver_error",
]
