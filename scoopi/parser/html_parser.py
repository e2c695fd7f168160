"""HTML extraction shared by the page renderers.

:func:`extract_page` turns a full HTML document into a
:class:`~scoopi.crawler.models.PageResult`:

* links — every ``<a href>`` in the document, resolved to absolute URLs,
  in document order (``#fragment``, ``mailto:``, ``javascript:`` and
  ``tel:`` targets are skipped). Links are collected *before* boilerplate
  removal so sidebar navigation still feeds the crawl frontier.
* content — inner HTML of the main content element after navigation,
  ads, cookie banners and scripts are removed.
* title — document ``<title>`` text, falling back to the first ``<h1>``.
"""
from __future__ import annotations

from collections.abc import Sequence
from typing import List
from urllib.parse import urljoin

from bs4 import BeautifulSoup
from bs4.element import Tag

from scoopi.crawler.models import Link, PageResult

__all__: Sequence[str] = ("BOILERPLATE_SELECTORS", "CONTENT_SELECTORS", "extract_page")

BOILERPLATE_SELECTORS: Sequence[str] = (
    "nav",
    "header",
    "footer",
    ".nav",
    ".navigation",
    ".navbar",
    ".sidebar",
    ".breadcrumb",
    ".advertisement",
    ".ads",
    "script",
    "style",
    "noscript",
    '[class*="cookie"]',
    '[class*="consent"]',
    ".social-share",
    ".share-buttons",
)

CONTENT_SELECTORS: Sequence[str] = (
    "main",
    '[role="main"]',
    ".content",
    ".main-content",
    "#content",
    "#main",
    "article",
    "body",
)

_SKIPPED_SCHEMES = ("#", "mailto:", "javascript:", "tel:")


def _base_href(soup: BeautifulSoup, page_url: str) -> str:
    base = soup.find("base", href=True)
    if isinstance(base, Tag):
        return urljoin(page_url, str(base["href"]).strip())
    return page_url


def _extract_links(soup: BeautifulSoup, page_url: str) -> List[Link]:
    base = _base_href(soup, page_url)
    links: List[Link] = []
    for tag in soup.find_all("a", href=True):
        if not isinstance(tag, Tag):
            continue
        href = tag.get("href")
        if not isinstance(href, str):
            continue
        raw = href.strip()
        if not raw or raw.lower().startswith(_SKIPPED_SCHEMES):
            continue
        text = " ".join(tag.get_text().split())
        links.append(Link(urljoin(base, raw), text))
    return links


def _extract_title(soup: BeautifulSoup) -> str:
    if soup.title and soup.title.get_text(strip=True):
        return soup.title.get_text(strip=True)
    h1 = soup.find("h1")
    return h1.get_text(strip=True) if h1 else ""


def extract_page(html: str, page_url: str) -> PageResult:
    """Split a rendered document into main content, outgoing links and title."""
    soup = BeautifulSoup(html, "html.parser")

    title = _extract_title(soup)
    links = _extract_links(soup, page_url)

    for selector in BOILERPLATE_SELECTORS:
        for element in soup.select(selector):
            if not element.decomposed:
                element.decompose()

    content_el = None
    for selector in CONTENT_SELECTORS:
        content_el = soup.select_one(selector)
        if content_el is not None:
            break
    content = content_el.decode_contents() if content_el is not None else str(soup)

    return PageResult(content=content, links=tuple(links), title=title)
