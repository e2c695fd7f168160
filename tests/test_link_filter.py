# File: tests/test_link_filter.py
import pytest

from scoopi.config import DEFAULT_EXCLUDE_PATTERNS
from scoopi.crawler.link_filter import (
    accept_link,
    compile_pattern,
    dedupe_links,
    filter_links,
    is_same_domain,
    normalize_url,
    should_include_url,
)
from scoopi.crawler.models import Link


@pytest.mark.parametrize(
    "raw,base,expected",
    [
        ("https://example.com", None, "https://example.com/"),
        ("HTTPS://Example.COM:443/a/b/", None, "https://example.com/a/b"),
        ("http://example.com:80/", None, "http://example.com/"),
        ("http://example.com:8080/x", None, "http://example.com:8080/x"),
        ("https://example.com/a#section", None, "https://example.com/a"),
        ("https://example.com/a?utm_source=x&q=1&fbclid=y", None, "https://example.com/a?q=1"),
        ("https://example.com/a?ref=home&refresh=1", None, "https://example.com/a?refresh=1"),
        ("/docs/../api/", "https://example.com/x/", "https://example.com/api"),
        ("page", "https://example.com/docs/intro", "https://example.com/docs/page"),
        ("http://[::1]:8000/x/", None, "http://[::1]:8000/x"),
    ],
)
def test_normalize_url(raw, base, expected):
    assert normalize_url(raw, base) == expected


@pytest.mark.parametrize("raw", ["not a url", "", "/relative/only", "http://"])
def test_normalize_url_malformed(raw):
    assert normalize_url(raw) is None


@pytest.mark.parametrize(
    "raw",
    [
        "https://Example.com/Docs/Guide/?b=2&a=1#top",
        "http://example.com:8080/a/./b/../c/",
        "https://example.com/?gclid=1",
    ],
)
def test_normalize_url_idempotent(raw):
    once = normalize_url(raw)
    assert once is not None
    assert normalize_url(once) == once


def test_is_same_domain():
    assert is_same_domain("https://example.com/a", "http://EXAMPLE.com:8080/b")
    assert not is_same_domain("https://docs.example.com/", "https://example.com/")
    assert not is_same_domain("garbage", "https://example.com/")


def test_exclude_login_pattern():
    exclude = ("*/login*",)
    assert not should_include_url("https://example.com/login/reset", (), exclude)
    assert should_include_url("https://example.com/docs/x", (), exclude)
    assert not accept_link("https://example.com/login/reset", "https://example.com/", (), exclude)
    assert accept_link("https://example.com/docs/x", "https://example.com/", (), exclude)


def test_pattern_metacharacters_are_literal():
    assert compile_pattern("v1.2").search("https://example.com/v1.2/")
    assert not compile_pattern("v1.2").search("https://example.com/v1x2/")
    assert compile_pattern("*/c++/*").search("https://example.com/lang/c++/intro")
    assert not compile_pattern("*/c++/*").search("https://example.com/lang/ccc/intro")
    assert compile_pattern("*?page=*").search("https://example.com/list?page=2")


def test_exclude_wins_over_include():
    include = ("*/docs/*",)
    exclude = ("*/docs/private*",)
    assert should_include_url("https://example.com/docs/public", include, exclude)
    assert not should_include_url("https://example.com/docs/private/x", include, exclude)
    assert not should_include_url("https://example.com/blog/post", include, exclude)


def test_default_excludes_reject_assets():
    assert not should_include_url("https://example.com/img/logo.png", (), DEFAULT_EXCLUDE_PATTERNS)
    assert not should_include_url("https://example.com/files/guide.pdf", (), DEFAULT_EXCLUDE_PATTERNS)
    assert should_include_url("https://example.com/guide", (), DEFAULT_EXCLUDE_PATTERNS)


def test_accept_link_requires_web_scheme_and_same_host():
    base = "https://example.com/docs/"
    assert accept_link("/docs/a", base)
    assert not accept_link("https://other.com/docs/a", base)
    assert not accept_link("ftp://example.com/file", base)
    assert not accept_link("mailto:someone@example.com", base)


def test_dedupe_links_keeps_first_occurrence():
    links = [Link("https://e.com/a", "A"), Link("https://e.com/b"), Link("https://e.com/a", "again")]
    assert dedupe_links(links) == [Link("https://e.com/a", "A"), Link("https://e.com/b")]


def test_filter_links_canonicalises_and_scopes():
    links = [
        Link("/a", "first"),
        Link("/a/#frag", "dup"),
        Link("https://other.com/", "external"),
        Link("mailto:someone@example.com"),
        Link("/b?utm_source=newsletter", "second"),
        Link("/logo.png"),
    ]
    result = filter_links(
        links,
        "https://example.com/docs/",
        "https://example.com/",
        (),
        DEFAULT_EXCLUDE_PATTERNS,
    )
    assert result == [Link("https://example.com/a", "first"), Link("https://example.com/b", "second")]


def test_filter_links_scope_defaults_to_page():
    result = filter_links([Link("https://example.com/x"), Link("https://example.org/y")], "https://example.com/")
    assert [link.href for link in result] == ["https://example.com/x"]


@pytest.mark.parametrize("asset", ["/static/site.css", "/static/app.js", "/downloads/tool.zip"])
def test_default_excludes_reject_static_assets(asset):
    assert not accept_link(asset, "https://example.com/docs/", (), DEFAULT_EXCLUDE_PATTERNS)
    assert accept_link("/docs/javascript-guide", "https://example.com/docs/", (), DEFAULT_EXCLUDE_PATTERNS)
