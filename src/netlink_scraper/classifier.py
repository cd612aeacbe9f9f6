"""Maps scrape results to the placement status reported downstream."""

import logging
from typing import Iterable, List, Optional

from netlink_scraper.models import LinkType, OnlineStatus, ScrapeResult, UpsertItem

logger = logging.getLogger(__name__)


def classify(result: ScrapeResult) -> OnlineStatus:
    """Return the online status for a scrape result."""
    if not result.success:
        return OnlineStatus.UNREACHABLE
    if result.found_link is not None and result.found_link.matched:
        return OnlineStatus.EXACT_MATCH
    if result.domain_found:
        return OnlineStatus.DOMAIN_MATCH_ONLY
    return OnlineStatus.NO_MATCH


def resolve_link_type(result: ScrapeResult) -> LinkType:
    """Link type for reporting: the matched link first, then the domain-only link."""
    if result.found_link is not None and result.found_link.matched:
        return result.found_link.link_type
    if result.domain_found_link is not None:
        return result.domain_found_link.link_type
    return LinkType.UNKNOWN


def _normalize_id(value):
    if isinstance(value, str) and value.strip().isdigit():
        return int(value.strip())
    return value


def build_upsert_item(result: ScrapeResult) -> Optional[UpsertItem]:
    """Build the dashboard record for a result, or None if it has no source id."""
    if result.source_id is None or result.source_id == "":
        logger.warning(f"Skipping result without source id: {result.url}")
        return None

    return UpsertItem(
        target_id=_normalize_id(result.source_id),
        link_type=resolve_link_type(result),
        online_status=classify(result),
        status_code=result.status_code,
    )


def build_upsert_batch(results: Iterable[ScrapeResult]) -> List[UpsertItem]:
    """Build dashboard records for every result that has a source id."""
    items = []
    for result in results:
        item = build_upsert_item(result)
        if item is not None:
            items.append(item)
    return items
