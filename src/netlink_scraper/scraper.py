"""
Placement page scraper.

Loads one placement page in a throwaway browser context, collects every
anchor on it and decides whether the expected landing page is linked.
"""
import asyncio
import logging
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, Dict, List, Optional, Union

from netlink_scraper.constants import (
    BODY_WAIT_TIMEOUT_MS,
    DEFAULT_MAX_RETRIES,
    DEFAULT_TIMEOUT_MS,
    EXPONENTIAL_BACKOFF_BASE,
    INITIAL_BACKOFF_DELAY_SECONDS,
    NAVIGATION_WAIT_UNTIL,
)
from netlink_scraper.exceptions import ExtractionError, LaunchError, NavigationError
from netlink_scraper.infrastructure.browser_session import (
    BrowserSession,
    is_transient_driver_error,
)
from netlink_scraper.matching import link_type_from_rel, match_link, shares_domain
from netlink_scraper.models import MatchResult, MatchType, ScrapeResult

logger = logging.getLogger(__name__)


# Collects href/text/outerHTML/rel for every anchor in document order
EXTRACT_LINKS_SCRIPT = """
    () => Array.from(document.querySelectorAll('a')).map(link => ({
        href: link.href,
        text: (link.textContent || '').trim(),
        outerHTML: link.outerHTML,
        rel: link.getAttribute('rel') || '',
    }))
"""


@dataclass
class PageLinks:
    """Raw anchors collected from one loaded page."""
    status_code: Optional[int] = None
    links: List[Dict[str, str]] = field(default_factory=list)


class PageScraper:
    """
    Scrapes placement pages through a shared BrowserSession.

    Each attempt uses one ``with_page`` call. Failed attempts are retried
    with exponential backoff; ``scrape_one`` reports failures as
    ``ScrapeResult(success=False)`` instead of raising.
    """

    def __init__(
        self,
        session: BrowserSession,
        timeout_ms: int = DEFAULT_TIMEOUT_MS,
        retries: int = DEFAULT_MAX_RETRIES,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
    ):
        """
        Initialize the page scraper.

        Args:
            session: Browser session providing throwaway pages
            timeout_ms: Default navigation timeout in milliseconds
            retries: Default number of attempts per target
            sleep: Sleep coroutine used for backoff
        """
        self.session = session
        self.timeout_ms = timeout_ms
        self.retries = retries
        self._sleep = sleep

    async def scrape_one(
        self,
        url: str,
        landing_page: Optional[str] = None,
        timeout_ms: Optional[int] = None,
        retries: Optional[int] = None,
        source_id: Optional[Union[str, int]] = None,
    ) -> ScrapeResult:
        """
        Scrape a single placement page.

        Args:
            url: Placement page to load
            landing_page: URL the page is expected to link to
            timeout_ms: Navigation timeout, defaults to the scraper's
            retries: Number of attempts, defaults to the scraper's
            source_id: Identifier of the originating listing record

        Returns:
            ScrapeResult for the final attempt

        Raises:
            LaunchError: If the browser cannot be started
        """
        timeout_ms = timeout_ms or self.timeout_ms
        retries = max(1, retries if retries is not None else self.retries)
        last_error: Optional[BaseException] = None

        for attempt in range(1, retries + 1):
            try:
                logger.debug(f"Scraping {url} (attempt {attempt}/{retries})")

                async def load(page):
                    return await self._load_links(page, url, timeout_ms)

                page_links = await self.session.with_page(load)

                result = self._build_result(url, landing_page, page_links)
                result.source_id = source_id
                result.attempts = attempt
                return result

            except LaunchError:
                raise

            except Exception as e:
                last_error = e
                logger.warning(f"Attempt {attempt}/{retries} failed for {url}: {e}")

                if attempt < retries:
                    await self._sleep(self._calculate_backoff_delay(attempt))

        logger.error(f"Failed to scrape {url} after {retries} attempts")
        return ScrapeResult(
            url=url,
            landing_page=landing_page,
            success=False,
            error=_error_message(last_error),
            source_id=source_id,
            attempts=retries,
        )

    def _calculate_backoff_delay(self, attempt: int) -> float:
        """Delay in seconds after a failed attempt (1-indexed)."""
        return INITIAL_BACKOFF_DELAY_SECONDS * (EXPONENTIAL_BACKOFF_BASE ** (attempt - 1))

    async def _load_links(self, page: Any, url: str, timeout_ms: int) -> PageLinks:
        """Navigate to ``url`` and collect its anchors."""
        page.set_default_timeout(timeout_ms)

        try:
            response = await page.goto(
                url,
                wait_until=NAVIGATION_WAIT_UNTIL,
                timeout=timeout_ms,
            )
        except Exception as e:
            if is_transient_driver_error(e):
                raise
            raise NavigationError(f"Navigation to {url} failed: {e}", url=url) from e

        try:
            await page.wait_for_selector("body", timeout=BODY_WAIT_TIMEOUT_MS)
            links = await page.evaluate(EXTRACT_LINKS_SCRIPT)
        except Exception as e:
            if is_transient_driver_error(e):
                raise
            raise ExtractionError(f"Link extraction failed on {url}: {e}", url=url) from e

        status_code = response.status if response is not None else None
        links = links or []
        logger.debug(f"Found {len(links)} links on page {url}")

        return PageLinks(status_code=status_code, links=links)

    def _build_result(
        self,
        url: str,
        landing_page: Optional[str],
        page_links: PageLinks,
    ) -> ScrapeResult:
        """Apply the link matcher to collected anchors."""
        links = page_links.links
        result = ScrapeResult(
            url=url,
            landing_page=landing_page,
            success=True,
            status_code=page_links.status_code,
            all_links_count=len(links),
        )

        if not landing_page:
            return result

        domain_link: Optional[MatchResult] = None

        for link in links:
            href = link.get("href") or ""
            rel = link.get("rel") or ""
            match = match_link(
                href,
                landing_page,
                rel=rel,
                text=link.get("text"),
                outer_html=link.get("outerHTML"),
            )

            # First match in document order wins
            if match.matched:
                logger.info(f"Found matching link: {href} ({match.match_type.value} match)")
                result.found_link = match
                return result

            if domain_link is None and shares_domain(href, landing_page):
                domain_link = MatchResult(
                    matched=False,
                    match_type=MatchType.DOMAIN,
                    href=href,
                    text=link.get("text"),
                    rel=rel or None,
                    outer_html=link.get("outerHTML"),
                    link_type=link_type_from_rel(rel),
                )

        logger.warning(f"No matching link found for landing page: {landing_page}")
        result.found_link = MatchResult(matched=False)

        if domain_link is not None:
            result.domain_found = True
            result.domain_found_link = domain_link

        return result


def _error_message(error: Optional[BaseException]) -> str:
    if error is None:
        return "Unknown error"
    return str(error) or type(error).__name__
