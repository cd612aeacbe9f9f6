"""URL normalization and placement link matching.

The matcher is substring based. Campaign parameters, ``www`` variance and
subdomains still match, and the containment rules also fire when one URL
merely contains the other as text.
"""

import logging
import re
from typing import Any, Optional, Tuple

from netlink_scraper.models import LinkType, MatchResult, MatchType

logger = logging.getLogger(__name__)

_SCHEME_RE = re.compile(r"^https?://")
_WWW_RE = re.compile(r"^www\.")


def _coerce(value: Any) -> str:
    if value is None:
        return ""
    return value if isinstance(value, str) else str(value)


def _normalize_once(url: str) -> str:
    normalized = url.lower().strip()
    normalized = _SCHEME_RE.sub("", normalized)
    normalized = _WWW_RE.sub("", normalized)
    # Query and fragment go before the trailing slash so "a.com/?x" -> "a.com"
    normalized = normalized.split("?", 1)[0].split("#", 1)[0]
    if normalized.endswith("/"):
        normalized = normalized[:-1]
    return normalized


def normalize_url(url: Any) -> str:
    """Canonicalize a URL or href into a comparable form.

    Lowercases, trims, strips the scheme, a leading ``www.``, one trailing
    slash, and everything from the first ``?`` or ``#``. Never raises.

    Args:
        url: URL or href, any value is coerced to a string

    Returns:
        Normalized URL (idempotent)
    """
    try:
        current = _coerce(url)
        # Repeat until stable so that "www.www.x" or "a.com//" stay idempotent
        while True:
            normalized = _normalize_once(current)
            if normalized == current:
                return normalized
            current = normalized
    except Exception:
        return str(url).lower().strip()


def split_domain_path(normalized: str) -> Tuple[str, str]:
    """Split a normalized URL on its first slash into (domain, path)."""
    domain, _, path = normalized.partition("/")
    return domain, path


def _is_subdomain_of(host: str, parent: str) -> bool:
    return bool(parent) and host != parent and host.endswith("." + parent)


def link_type_from_rel(rel: Optional[str]) -> LinkType:
    """Classify a link from its ``rel`` attribute."""
    if rel and "nofollow" in rel.lower():
        return LinkType.NOFOLLOW
    return LinkType.DOFOLLOW


def classify_match(candidate_href: Any, target_url: Any) -> MatchType:
    """Return how ``candidate_href`` relates to ``target_url``.

    Rules are evaluated in order and the first one that fires wins.
    """
    link = normalize_url(candidate_href)
    target = normalize_url(target_url)

    if not link or not target:
        return MatchType.NONE

    if link == target:
        return MatchType.EXACT

    link_domain, link_path = split_domain_path(link)
    target_domain, target_path = split_domain_path(target)

    if target in link:
        # "sub.example.com/x" contains "example.com" but is a different host
        if _is_subdomain_of(link_domain, target_domain):
            return MatchType.SUBDOMAIN
        return MatchType.DOMAIN

    if link in target:
        return MatchType.SUBDOMAIN

    if link_domain == target_domain:
        if link_path == target_path:
            return MatchType.EXACT
        if link_path and target_path:
            if link_path in target_path or target_path in link_path:
                return MatchType.PARTIAL
            return MatchType.DOMAIN

    if link_domain and target_domain and (
        link_domain in target_domain or target_domain in link_domain
    ):
        return MatchType.SUBDOMAIN

    return MatchType.NONE


def match_link(
    candidate_href: Any,
    target_url: Any,
    rel: Optional[str] = None,
    text: Optional[str] = None,
    outer_html: Optional[str] = None,
) -> MatchResult:
    """Match one anchor against the expected landing page.

    Args:
        candidate_href: Anchor href found on the page
        target_url: Landing page the placement must link to
        rel: Anchor rel attribute
        text: Anchor text
        outer_html: Anchor outer HTML

    Returns:
        MatchResult, with ``matched=False`` and ``match_type=none`` on no match
    """
    match_type = classify_match(candidate_href, target_url)

    if match_type is MatchType.NONE:
        return MatchResult(matched=False)

    return MatchResult(
        matched=True,
        match_type=match_type,
        href=_coerce(candidate_href),
        text=text,
        rel=rel or None,
        outer_html=outer_html,
        link_type=link_type_from_rel(rel),
    )


def shares_domain(candidate_href: Any, target_url: Any) -> bool:
    """True when both URLs have the same normalized domain."""
    link_domain, _ = split_domain_path(normalize_url(candidate_href))
    target_domain, _ = split_domain_path(normalize_url(target_url))
    return bool(link_domain) and link_domain == target_domain
