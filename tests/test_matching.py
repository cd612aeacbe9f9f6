"""Tests for URL normalization and link matching."""

import pytest

from netlink_scraper.matching import (
    classify_match,
    link_type_from_rel,
    match_link,
    normalize_url,
    shares_domain,
    split_domain_path,
)
from netlink_scraper.models import LinkType, MatchType


class TestNormalizeUrl:
    """Test cases for normalize_url."""

    @pytest.mark.parametrize("raw, expected", [
        ("https://www.Example.com/Blog/", "example.com/blog"),
        ("http://example.com", "example.com"),
        ("  HTTPS://example.com/page?utm_source=x#top  ", "example.com/page"),
        ("example.com/?ref=1", "example.com"),
        ("//cdn.example.com/a", "//cdn.example.com/a"),
        ("www.example.com", "example.com"),
        ("", ""),
    ])
    def test_normalization(self, raw, expected):
        """Test scheme, www, slash, query and fragment handling."""
        assert normalize_url(raw) == expected

    @pytest.mark.parametrize("raw", [
        "https://www.www.example.com/",
        "example.com//",
        "https://a.com/?x=1",
        "HTTP://WWW.A.COM/path/#frag",
        "https://http://example.com",
        "   ",
    ])
    def test_idempotent(self, raw):
        """Test normalizing twice gives the same result."""
        once = normalize_url(raw)
        assert normalize_url(once) == once

    def test_never_raises_on_odd_input(self):
        """Test None and non-string values are coerced."""
        assert normalize_url(None) == ""
        assert normalize_url(12345) == "12345"


class TestSplitDomainPath:
    """Test cases for split_domain_path."""

    def test_split(self):
        """Test split on the first slash."""
        assert split_domain_path("example.com/blog/post") == ("example.com", "blog/post")
        assert split_domain_path("example.com") == ("example.com", "")


class TestClassifyMatch:
    """Test cases for the ordered match rules."""

    def test_exact_scenario(self):
        """Test scheme-insensitive exact match."""
        result = match_link("https://example.com/blog/post", "example.com/blog/post")
        assert result.matched is True
        assert result.match_type == MatchType.EXACT

    def test_subdomain_scenario(self):
        """Test a subdomain link of the landing domain."""
        result = match_link("https://sub.example.com/x", "example.com")
        assert result.matched is True
        assert result.match_type == MatchType.SUBDOMAIN

    def test_exact_ignores_tracking_params(self):
        """Test campaign parameters do not break an exact match."""
        assert classify_match(
            "https://www.example.com/offer?utm_campaign=spring",
            "http://example.com/offer/",
        ) == MatchType.EXACT

    def test_candidate_contains_target(self):
        """Test a deeper link on the landing page is a domain match."""
        assert classify_match(
            "https://example.com/blog/post/comments", "example.com/blog/post"
        ) == MatchType.DOMAIN

    def test_target_contains_candidate(self):
        """Test a link to the landing site root is a subdomain match."""
        assert classify_match("https://example.com", "example.com/blog/post") == MatchType.SUBDOMAIN

    def test_same_domain_overlapping_paths(self):
        """Test same-domain links with overlapping paths are partial."""
        assert classify_match(
            "https://example.com/shop/shoes", "example.com/en/shop/shoes/red"
        ) == MatchType.PARTIAL

    def test_same_domain_different_paths(self):
        """Test same-domain links with unrelated paths are domain matches."""
        assert classify_match(
            "https://example.com/contact", "example.com/pricing"
        ) == MatchType.DOMAIN

    def test_cross_containing_domains(self):
        """Test domains that contain each other textually."""
        assert classify_match(
            "https://blog.example.com/a", "example.com/b"
        ) == MatchType.SUBDOMAIN

    def test_unrelated(self):
        """Test unrelated URLs do not match."""
        assert classify_match("https://other.org/page", "example.com/page") == MatchType.NONE

    def test_empty_inputs(self):
        """Test empty candidate or target never match."""
        assert classify_match("", "example.com") == MatchType.NONE
        assert classify_match("https://example.com", "") == MatchType.NONE
        assert classify_match(None, None) == MatchType.NONE

    @pytest.mark.parametrize("a, b", [
        ("https://example.com/x", "http://www.example.com/x/"),
        ("example.com", "https://example.com?a=1"),
        ("HTTPS://A.COM/P", "a.com/p#x"),
    ])
    def test_exact_is_symmetric(self, a, b):
        """Test exact matches hold in both directions."""
        assert classify_match(a, b) == MatchType.EXACT
        assert classify_match(b, a) == MatchType.EXACT

    @pytest.mark.parametrize("candidate", [
        "javascript:void(0)",
        "mailto:contact@example.com",
        "#",
        "/relative/path",
        "tel:+33123456789",
    ])
    def test_total_over_odd_hrefs(self, candidate):
        """Test odd hrefs always yield a match type."""
        assert isinstance(classify_match(candidate, "example.com"), MatchType)


class TestMatchLink:
    """Test cases for match_link results."""

    def test_no_match_result(self):
        """Test a miss carries no anchor details."""
        result = match_link("https://other.org", "example.com")
        assert result.matched is False
        assert result.match_type == MatchType.NONE
        assert result.href is None
        assert result.link_type == LinkType.UNKNOWN

    def test_match_carries_anchor_details(self):
        """Test a hit carries href, text, rel and outer HTML."""
        result = match_link(
            "https://example.com/",
            "example.com",
            rel="noopener",
            text="Example",
            outer_html='<a href="https://example.com/">Example</a>',
        )
        assert result.matched is True
        assert result.href == "https://example.com/"
        assert result.text == "Example"
        assert result.rel == "noopener"
        assert result.link_type == LinkType.DOFOLLOW

    def test_nofollow_link(self):
        """Test rel=nofollow is reported."""
        result = match_link("https://example.com", "example.com", rel="NoFollow sponsored")
        assert result.link_type == LinkType.NOFOLLOW

    def test_to_dict(self):
        """Test serialization uses enum values."""
        data = match_link("https://example.com", "example.com").to_dict()
        assert data["match_type"] == "exact"
        assert data["link_type"] == "dofollow"


class TestLinkTypeAndDomain:
    """Test cases for rel classification and domain sharing."""

    @pytest.mark.parametrize("rel, expected", [
        (None, LinkType.DOFOLLOW),
        ("", LinkType.DOFOLLOW),
        ("noopener noreferrer", LinkType.DOFOLLOW),
        ("nofollow", LinkType.NOFOLLOW),
        ("ugc NOFOLLOW", LinkType.NOFOLLOW),
    ])
    def test_link_type_from_rel(self, rel, expected):
        """Test nofollow detection is case-insensitive."""
        assert link_type_from_rel(rel) == expected

    def test_shares_domain(self):
        """Test domain equality after normalization."""
        assert shares_domain("https://www.example.com/a", "http://example.com/b")
        assert not shares_domain("https://sub.example.com/a", "example.com/b")
        assert not shares_domain("", "")
