"""Tests for URL canonicalization and store keys."""

from __future__ import annotations

import pytest

from plainweb.audit.urls import audit_target, normalize_url, url_key
from plainweb.errors import InvalidURL


def test_scheme_case_and_trailing_slash_variants_match():
    assert normalize_url("HTTP://Example.com/Path/") == normalize_url("http://example.com/path")
    assert normalize_url("http://example.com/path") == "https://example.com/path"


def test_root_path_keeps_slash():
    assert normalize_url("https://example.com") == "https://example.com/"
    assert normalize_url("https://example.com/") == "https://example.com/"


def test_missing_scheme_is_assumed():
    assert normalize_url("example.com/about") == "https://example.com/about"


def test_fragment_and_tracking_params_removed():
    a = normalize_url("https://example.com/shop?utm_source=x&b=2&a=1&gclid=abc#reviews")
    assert a == "https://example.com/shop?a=1&b=2"
    assert normalize_url("https://example.com/?_ga=1&msclkid=2&q=x") == "https://example.com/?q=x"


def test_default_port_dropped_custom_port_kept():
    assert normalize_url("https://example.com:443/x") == "https://example.com/x"
    assert normalize_url("http://localhost:8080/") == "https://localhost:8080/"


@pytest.mark.parametrize("bad", ["", "   ", "ftp://example.com", "http://", "not a url", "http://exa mple.com"])
def test_invalid_urls_raise(bad):
    with pytest.raises(InvalidURL):
        normalize_url(bad)


def test_url_key_is_stable_sha256():
    key = url_key(normalize_url("Example.com/"))
    assert key == url_key("https://example.com/")
    assert len(key) == 64
    assert key != url_key("https://example.org/")


def test_audit_target_preserves_path_case():
    assert audit_target("example.com/CaseSensitive#top") == "https://example.com/CaseSensitive"


def test_bare_host_with_url_in_query_gets_scheme():
    raw = "example.com/login?next=https://example.com/home"
    assert normalize_url(raw) == "https://example.com/login?next=https%3A%2F%2Fexample.com%2Fhome"
    assert audit_target(raw) == "https://" + raw


def test_ipv6_and_single_label_hosts_accepted():
    assert normalize_url("http://[::1]:8080/") == "https://[::1]:8080/"
    assert normalize_url("https://[2001:DB8::1]/") == "https://[2001:db8::1]/"
    assert normalize_url("http://intranet/wiki") == "https://intranet/wiki"
