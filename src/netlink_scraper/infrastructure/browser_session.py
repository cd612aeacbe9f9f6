"""
Browser Session Management.

This module owns the single browser process shared by all scrape workers.
Each unit of work runs in its own isolated context (cookies, cache and
storage are not shared) which is always closed when the work finishes.

Context creation is serialized: concurrent ``new_context`` calls against the
automation driver race and corrupt driver-session state. Everything else
(navigation, extraction, page close) runs on a worker-exclusive context and
needs no locking.
"""

import asyncio
import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Awaitable, Callable, Optional, TypeVar

from playwright.async_api import async_playwright

from netlink_scraper.browser_config import BrowserConfig
from netlink_scraper.constants import (
    DRIVER_RETRY_STEP_SECONDS,
    MAX_DRIVER_RETRIES,
    TRANSIENT_DRIVER_ERROR_MARKERS,
)
from netlink_scraper.exceptions import LaunchError, TransientDriverError

logger = logging.getLogger(__name__)

T = TypeVar("T")

Launcher = Callable[[BrowserConfig], Awaitable[Any]]


def is_transient_driver_error(error: BaseException) -> bool:
    """Whether an error belongs to the session/target-closed class."""
    if isinstance(error, TransientDriverError):
        return True
    message = str(error)
    return any(marker in message for marker in TRANSIENT_DRIVER_ERROR_MARKERS)


@dataclass
class SessionStatus:
    """Current status of the browser session."""
    running: bool
    contexts_opened: int
    contexts_closed: int
    pages_opened: int
    pages_closed: int
    transient_retries: int
    uptime_seconds: float

    @property
    def open_contexts(self) -> int:
        return self.contexts_opened - self.contexts_closed

    @property
    def open_pages(self) -> int:
        return self.pages_opened - self.pages_closed


class BrowserSession:
    """
    Owns one browser process and hands out throwaway pages.

    Usage:
        async with BrowserSession(config) as session:
            links = await session.with_page(lambda page: extract(page))

    Features:
    - Lazy launch on first use, reuse while connected
    - Serialized context creation
    - Guaranteed page-then-context cleanup on every exit path
    - Bounded retry on transient driver errors
    """

    def __init__(
        self,
        config: Optional[BrowserConfig] = None,
        launcher: Optional[Launcher] = None,
        max_retries: int = MAX_DRIVER_RETRIES,
        retry_step_seconds: float = DRIVER_RETRY_STEP_SECONDS,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
    ):
        """
        Initialize browser session.

        Args:
            config: Browser launch and context settings
            launcher: Coroutine returning a connected browser; defaults to Playwright
            max_retries: Attempts made by with_page on transient driver errors
            retry_step_seconds: Linear backoff step between those attempts
            sleep: Sleep coroutine used for backoff
        """
        self.config = config or BrowserConfig()
        self.max_retries = max_retries
        self.retry_step_seconds = retry_step_seconds

        self._launcher = launcher
        self._sleep = sleep
        self._playwright = None
        self._browser = None
        self._context_lock = asyncio.Lock()
        self._start_time: datetime | None = None

        self._contexts_opened = 0
        self._contexts_closed = 0
        self._pages_opened = 0
        self._pages_closed = 0
        self._transient_retries = 0

    async def __aenter__(self) -> "BrowserSession":
        await self.ensure_browser()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.stop()

    @property
    def is_running(self) -> bool:
        """Whether a connected browser is available."""
        return self._browser is not None and self._browser.is_connected()

    async def ensure_browser(self) -> Any:
        """
        Return the live browser, launching it if needed.

        Raises:
            LaunchError: If the browser process cannot be started
        """
        if self.is_running:
            return self._browser

        if self._browser is not None:
            logger.warning("Browser disconnected, launching a new one")
            self._browser = None

        logger.info(
            f"Launching {self.config.browser_type} browser "
            f"(headless={self.config.headless})"
        )

        try:
            if self._launcher is not None:
                self._browser = await self._launcher(self.config)
            else:
                self._browser = await self._launch_playwright()
        except LaunchError:
            raise
        except Exception as e:
            logger.error(f"Failed to start browser: {e}")
            raise LaunchError(f"Failed to start browser: {e}") from e

        self._start_time = datetime.now()
        logger.info("Browser launched successfully")
        return self._browser

    async def _launch_playwright(self) -> Any:
        """Start Playwright and launch the configured engine."""
        if self._playwright is None:
            self._playwright = await async_playwright().start()

        browser_launcher = getattr(self._playwright, self.config.browser_type)
        return await browser_launcher.launch(**self.config.launch_options())

    async def create_context(
        self,
        user_agent: Optional[str] = None,
        viewport: Optional[dict] = None,
        locale: Optional[str] = None,
        timezone_id: Optional[str] = None,
    ) -> Any:
        """
        Create a new isolated browser context.

        Only one context is created at a time; later callers wait for the
        lock held by earlier ones.

        Args:
            user_agent: Override the configured user agent
            viewport: Override the configured viewport ({"width", "height"})
            locale: Override the configured locale
            timezone_id: Override the configured timezone

        Returns:
            BrowserContext
        """
        async with self._context_lock:
            browser = await self.ensure_browser()

            options = self.config.context_options(
                user_agent=user_agent,
                viewport=viewport,
                locale=locale,
                timezone_id=timezone_id,
            )
            context = await browser.new_context(**options)
            self._contexts_opened += 1

            if self.config.mask_automation:
                try:
                    await context.add_init_script(
                        self.config.mask_automation_script(options["locale"])
                    )
                except Exception:
                    await self._close_quietly(context, "context")
                    raise

            logger.debug(f"Created browser context #{self._contexts_opened}")
            return context

    async def with_page(
        self,
        fn: Callable[[Any], Awaitable[T]],
        **context_options: Any,
    ) -> T:
        """
        Run ``fn`` against a throwaway page and always clean up.

        A fresh context is created for every attempt. Transient driver errors
        (session/target closed) are retried with linear backoff; any other
        error propagates immediately.

        Args:
            fn: Coroutine function receiving the page
            **context_options: Per-call overrides for create_context

        Returns:
            Whatever ``fn`` returns

        Raises:
            TransientDriverError: If transient errors persist on every attempt
            LaunchError: If the browser cannot be started
        """
        last_error: Optional[BaseException] = None

        for attempt in range(1, self.max_retries + 1):
            context = None
            page = None

            try:
                context = await self.create_context(**context_options)
                page = await context.new_page()
                self._pages_opened += 1

                return await fn(page)

            except LaunchError:
                raise

            except Exception as e:
                if not is_transient_driver_error(e):
                    raise

                last_error = e
                if attempt >= self.max_retries:
                    raise TransientDriverError(str(e)) from e

                self._transient_retries += 1
                logger.warning(
                    f"Driver error (attempt {attempt}/{self.max_retries}), "
                    f"retrying: {e}"
                )

            finally:
                if page is not None:
                    await self._close_quietly(page, "page")
                if context is not None:
                    await self._close_quietly(context, "context")

            await self._sleep(self.retry_step_seconds * attempt)

        raise TransientDriverError(
            f"No page attempt succeeded ({self.max_retries} attempts)"
        ) from last_error

    async def _close_quietly(self, resource: Any, kind: str) -> None:
        """Close a page or context without masking the caller's outcome."""
        try:
            await resource.close()
        except Exception as e:
            if is_transient_driver_error(e):
                logger.debug(f"Ignoring driver error closing {kind}: {e}")
            else:
                logger.warning(f"Error closing {kind}: {e}")
        finally:
            if kind == "page":
                self._pages_closed += 1
            else:
                self._contexts_closed += 1

    async def stop(self) -> None:
        """Close the browser and stop Playwright."""
        if self._browser is not None:
            try:
                logger.info("Closing browser")
                await self._browser.close()
            except Exception as e:
                logger.warning(f"Error closing browser: {e}")
            self._browser = None

        if self._playwright is not None:
            try:
                await self._playwright.stop()
            except Exception as e:
                logger.warning(f"Error stopping playwright: {e}")
            self._playwright = None

        self._start_time = None

    def get_status(self) -> SessionStatus:
        """Get current session status."""
        uptime = 0.0
        if self._start_time:
            uptime = (datetime.now() - self._start_time).total_seconds()

        return SessionStatus(
            running=self.is_running,
            contexts_opened=self._contexts_opened,
            contexts_closed=self._contexts_closed,
            pages_opened=self._pages_opened,
            pages_closed=self._pages_closed,
            transient_retries=self._transient_retries,
            uptime_seconds=uptime,
        )
