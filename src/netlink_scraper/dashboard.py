"""
Dashboard API collaborators.

Provides the HTTP client for the dashboard backend, the paginated netlink
listing used as the scrape target source, and the batch upsert sink for
scrape outcomes.
"""

import logging
from typing import Any, AsyncIterator, Dict, Iterable, List, Mapping, Optional

import httpx

from netlink_scraper.classifier import build_upsert_batch
from netlink_scraper.constants import (
    DASHBOARD_TIMEOUT_SECONDS,
    DEFAULT_PAGE_LIMIT,
    NETLINK_LIST_ENDPOINT,
    NETLINK_UPSERT_ENDPOINT,
    NETLINK_URL_FIELDS,
)
from netlink_scraper.exceptions import ConfigError, DashboardError
from netlink_scraper.models import ScrapeResult, ScrapeTarget

logger = logging.getLogger(__name__)


def target_from_record(record: Mapping[str, Any]) -> Optional[ScrapeTarget]:
    """
    Adapt a dashboard netlink record into a ScrapeTarget.

    The placement URL is read from the first non-empty field among
    ``url_bought``, ``url``, ``link`` and ``href``.

    Returns:
        ScrapeTarget, or None when the record has no URL
    """
    url = next(
        (record[name] for name in NETLINK_URL_FIELDS if record.get(name)),
        None,
    )
    if not url:
        return None

    return ScrapeTarget(
        url=str(url).strip(),
        landing_page=record.get("landing_page") or None,
        id=record.get("id"),
    )


class DashboardClient:
    """Async HTTP client for the dashboard backend."""

    def __init__(
        self,
        base_url: Optional[str],
        token: Optional[str] = None,
        timeout: float = DASHBOARD_TIMEOUT_SECONDS,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        """
        Initialize the dashboard client.

        Args:
            base_url: Dashboard API base URL
            token: Optional bearer token
            timeout: Request timeout in seconds
            transport: Optional httpx transport (used by tests)
        """
        if not base_url:
            raise ConfigError("DASHBOARD_BASE_URL environment variable is required")

        headers = {"Content-Type": "application/json"}
        if token:
            headers["Authorization"] = f"Bearer {token}"

        self.base_url = base_url
        self._client = httpx.AsyncClient(
            base_url=base_url,
            timeout=timeout,
            headers=headers,
            transport=transport,
        )
        logger.info(f"Dashboard client initialized with base URL: {base_url}")

    async def __aenter__(self) -> "DashboardClient":
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close()

    async def close(self) -> None:
        await self._client.aclose()

    async def _request(self, method: str, path: str, **kwargs: Any) -> Any:
        logger.debug(f"{method} {path}")

        try:
            response = await self._client.request(method, path, **kwargs)
            response.raise_for_status()
        except httpx.HTTPStatusError as e:
            status = e.response.status_code
            logger.error(f"API Error: {method} {path} - {status}")
            logger.error(f"Response data: {e.response.text}")
            raise DashboardError(
                f"{method} {path} failed with status {status}",
                status_code=status,
                payload=e.response.text,
            ) from e
        except httpx.HTTPError as e:
            logger.error(f"Request failed: {method} {path}: {e}")
            raise DashboardError(f"{method} {path} failed: {e}") from e

        logger.debug(f"Response: {method} {path} - {response.status_code}")

        if not response.content:
            return None
        return response.json()

    async def get(self, path: str, params: Optional[Dict[str, Any]] = None) -> Any:
        """GET request returning decoded JSON."""
        return await self._request("GET", path, params=params)

    async def post(self, path: str, data: Any = None) -> Any:
        """POST a JSON body, returning decoded JSON."""
        return await self._request("POST", path, json=data)


class DashboardTargetSource:
    """
    Paginated netlink listing adapted into ScrapeTarget batches.

    Records without a usable URL are skipped and counted in ``skipped``.
    """

    def __init__(
        self,
        client: DashboardClient,
        limit: int = DEFAULT_PAGE_LIMIT,
        start_page: int = 1,
        max_pages: Optional[int] = None,
        endpoint: str = NETLINK_LIST_ENDPOINT,
    ):
        self.client = client
        self.limit = limit
        self.start_page = start_page
        self.max_pages = max_pages
        self.endpoint = endpoint
        self.skipped = 0

    async def fetch_page(self, page: int) -> Dict[str, Any]:
        """Fetch one raw page: ``{"data": [...], "pagination": {...}}``."""
        logger.debug(f"Fetching page {page} with limit {self.limit}")
        return await self.client.get(
            self.endpoint,
            params={"page": page, "limit": self.limit},
        )

    def _adapt(self, records: Iterable[Mapping[str, Any]]) -> List[ScrapeTarget]:
        targets = []
        for record in records:
            target = target_from_record(record)
            if target is None:
                self.skipped += 1
                logger.warning(f"Netlink has no URL property: {record.get('id')}")
                continue
            targets.append(target)
        return targets

    async def iter_pages(self) -> AsyncIterator[List[ScrapeTarget]]:
        """Yield adapted targets page by page until the last page."""
        page = self.start_page
        pages_fetched = 0

        while self.max_pages is None or pages_fetched < self.max_pages:
            response = await self.fetch_page(page) or {}
            pagination = response.get("pagination") or {}
            pages_fetched += 1

            logger.info(
                f"Page {page}/{pagination.get('totalPages', '?')}: "
                f"fetched {len(response.get('data') or [])} items"
            )
            yield self._adapt(response.get("data") or [])

            if not pagination.get("hasNextPage"):
                break
            page += 1

    async def fetch_all(self) -> List[ScrapeTarget]:
        """Fetch every page and return all targets."""
        targets: List[ScrapeTarget] = []
        async for page_targets in self.iter_pages():
            targets.extend(page_targets)
        logger.info(f"Fetched {len(targets)} targets ({self.skipped} skipped)")
        return targets

    async def iter_batches(self, pages_per_batch: int) -> AsyncIterator[List[ScrapeTarget]]:
        """Yield targets grouped by ``pages_per_batch`` listing pages."""
        batch: List[ScrapeTarget] = []
        pages_in_batch = 0

        async for page_targets in self.iter_pages():
            batch.extend(page_targets)
            pages_in_batch += 1

            if pages_in_batch >= pages_per_batch:
                yield batch
                batch = []
                pages_in_batch = 0

        if pages_in_batch:
            yield batch


class DashboardResultSink:
    """Posts classified scrape results to the batch upsert endpoint."""

    def __init__(
        self,
        client: DashboardClient,
        endpoint: str = NETLINK_UPSERT_ENDPOINT,
    ):
        self.client = client
        self.endpoint = endpoint

    async def post_batch(self, results: Iterable[ScrapeResult]) -> Any:
        """
        Classify and upsert a batch of results.

        Returns:
            Decoded API response, or None when there was nothing to post
        """
        items = build_upsert_batch(results)

        if not items:
            logger.warning("No valid items to upsert")
            return None

        body = {"items": [item.to_payload() for item in items]}
        logger.info(f"Posting {len(items)} items to {self.endpoint}")

        response = await self.client.post(self.endpoint, body)
        logger.info("Batch upsert successful")
        return response
