"""
URL normalisation, domain scoping and include/exclude filtering for scoopi.

Patterns are globs: ``*`` matches any run of characters and every other
character, regex metacharacters included, matches itself. A pattern matches
when it is found anywhere in the canonical URL.
"""
from __future__ import annotations

import posixpath
import re
from functools import lru_cache
from typing import Iterable, List, Optional, Sequence
from urllib.parse import unquote, urljoin, urlsplit, urlunsplit

from scoopi.crawler.models import Link
from scoopi.logger import get_logger

__all__ = (
    "TRACKING_PARAMS",
    "normalize_url",
    "is_same_domain",
    "compile_pattern",
    "matches_patterns",
    "should_include_url",
    "accept_link",
    "dedupe_links",
    "filter_links",
)

logger = get_logger(__name__)

TRACKING_PARAMS = frozenset(
    {
        "utm_source",
        "utm_medium",
        "utm_campaign",
        "utm_term",
        "utm_content",
        "fbclid",
        "gclid",
        "ref",
        "_ga",
    }
)
_DEFAULT_PORTS = {"http": 80, "https": 443}
_WEB_SCHEMES = ("http", "https")


def _strip_tracking(query: str) -> str:
    kept = []
    for pair in query.split("&"):
        if not pair:
            continue
        name = unquote(pair.split("=", 1)[0].replace("+", " "))
        if name not in TRACKING_PARAMS:
            kept.append(pair)
    return "&".join(kept)


def _normalize_path(path: str) -> str:
    if not path:
        return "/"
    segments = path.split("/")
    if "." in segments or ".." in segments:
        path = posixpath.normpath(path)
        if not path.startswith("/"):
            path = "/" + path
    return path.rstrip("/") or "/"


def normalize_url(url: str, base_url: Optional[str] = None) -> Optional[str]:
    """Resolve *url* against *base_url* and return its canonical form, or None if malformed."""
    try:
        absolute = urljoin(base_url, url.strip()) if base_url else url.strip()
        parts = urlsplit(absolute)
        scheme = parts.scheme.lower()
        host = parts.hostname
        port = parts.port
    except (AttributeError, TypeError, ValueError) as exc:
        logger.debug("Dropping malformed URL %r: %s", url, exc)
        return None
    if not scheme or not host:
        logger.debug("Dropping URL without scheme or host: %r", url)
        return None

    netloc = f"[{host}]" if ":" in host else host
    if port is not None and port != _DEFAULT_PORTS.get(scheme):
        netloc = f"{netloc}:{port}"
    if parts.username is not None:
        userinfo = parts.username
        if parts.password is not None:
            userinfo = f"{userinfo}:{parts.password}"
        netloc = f"{userinfo}@{netloc}"

    return urlunsplit((scheme, netloc, _normalize_path(parts.path), _strip_tracking(parts.query), ""))


def is_same_domain(url_a: str, url_b: str) -> bool:
    """Hostname equality after normalisation; malformed input is never same-domain."""
    canonical_a, canonical_b = normalize_url(url_a), normalize_url(url_b)
    if canonical_a is None or canonical_b is None:
        return False
    return urlsplit(canonical_a).hostname == urlsplit(canonical_b).hostname


@lru_cache(maxsize=256)
def compile_pattern(pattern: str) -> re.Pattern[str]:
    """Translate a glob into a regex: ``*`` -> ``.*``, everything else literal."""
    return re.compile(".*".join(re.escape(part) for part in pattern.split("*")))


def matches_patterns(url: str, patterns: Iterable[str]) -> bool:
    return any(compile_pattern(p).search(url) for p in patterns)


def should_include_url(
    url: str, include_patterns: Sequence[str] = (), exclude_patterns: Sequence[str] = ()
) -> bool:
    """Exclude wins over include; an empty include list admits everything else."""
    if matches_patterns(url, exclude_patterns):
        return False
    if include_patterns:
        return matches_patterns(url, include_patterns)
    return True


def accept_link(
    url: str,
    base_url: str,
    include_patterns: Sequence[str] = (),
    exclude_patterns: Sequence[str] = (),
) -> bool:
    """Decide whether *url* (resolved against *base_url*) is in scope for the crawl."""
    canonical = normalize_url(url, base_url)
    if canonical is None or urlsplit(canonical).scheme not in _WEB_SCHEMES:
        return False
    if not is_same_domain(canonical, base_url):
        return False
    return should_include_url(canonical, include_patterns, exclude_patterns)


def dedupe_links(links: Iterable[Link]) -> List[Link]:
    """Drop repeated hrefs, keeping the first occurrence and the original order."""
    seen: set[str] = set()
    unique: List[Link] = []
    for link in links:
        if link.href in seen:
            continue
        seen.add(link.href)
        unique.append(link)
    return unique


def filter_links(
    links: Iterable[Link],
    base_url: str,
    scope_url: Optional[str] = None,
    include_patterns: Sequence[str] = (),
    exclude_patterns: Sequence[str] = (),
) -> List[Link]:
    """
    Canonicalise *links* found on *base_url* and keep those in scope.

    *scope_url* (the crawl seed) fixes the allowed hostname; it defaults to
    *base_url*. The result carries canonical hrefs, deduplicated in order.
    """
    scope = scope_url or base_url
    candidates = list(links)
    accepted: List[Link] = []
    for link in candidates:
        canonical = normalize_url(link.href, base_url)
        if canonical is None:
            continue
        if accept_link(canonical, scope, include_patterns, exclude_patterns):
            accepted.append(Link(canonical, link.text))
    result = dedupe_links(accepted)
    logger.debug("Filtered %d links from %s down to %d", len(candidates), base_url, len(result))
    return result
