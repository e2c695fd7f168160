"""
HTML to Markdown conversion for crawled pages.

The pipeline is pure (no I/O):

1. parse the fragment and structurally drop comments, ``script``/``style``/
   ``noscript`` blocks and elements carrying analytics/tracking markers;
2. convert with markdownify, overriding navigation tags (rendered empty),
   ``<pre>`` (fenced code with a detected language) and ``<table>``
   (rebuilt row by row);
3. collapse runs of blank lines;
4. prepend a ``source``/``crawled_at`` frontmatter block.
"""
from __future__ import annotations

import re
from datetime import datetime, timezone
from typing import Any, Callable, Iterable, List, Optional

from bs4 import BeautifulSoup, Comment
from bs4.element import Tag
from markdownify import ATX, MarkdownConverter

__all__ = ["ConversionError", "PageConverter", "detect_language", "table_to_markdown"]

NAVIGATION_SELECTORS = (".navigation", ".nav", ".navbar", ".sidebar", ".breadcrumb")
_REMOVED_TAGS = ("script", "style", "noscript")
_TRACKING_ATTR = re.compile(r"^data-(?:ga(?:-|$)|gtm|track|analytics)", re.IGNORECASE)
_TRACKER_EMBEDS = ("iframe", "img")
_TRACKER_HOSTS = ("googletagmanager.com", "google-analytics.com", "doubleclick.net", "facebook.com/tr")
_LANGUAGE_CLASS = re.compile(r"^(?:language|lang)-([\w+#.-]+)$")
_EXTRA_NEWLINES = re.compile(r"\n{3,}")


class ConversionError(Exception):
    """Raised when a page cannot be turned into Markdown."""

    def __init__(self, message: str) -> None:
        super().__init__(f"Failed to convert HTML to Markdown: {message}")
        self.message = message


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


def _iso_timestamp(moment: datetime) -> str:
    return moment.astimezone(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def _classes(el: Tag) -> List[str]:
    value = el.get("class") or []
    return value.split() if isinstance(value, str) else list(value)


def _has_tracking_marker(el: Tag) -> bool:
    """Analytics hooks (``data-ga*``, ``data-track*``, ...) and tracker pixels/iframes.

    Class and id values are not considered: docs generate ids such as
    ``analytics`` from heading text.
    """
    for name in el.attrs or {}:
        if _TRACKING_ATTR.match(name):
            return True
    if el.name in _TRACKER_EMBEDS:
        src = str(el.get("src") or "").lower()
        return any(host in src for host in _TRACKER_HOSTS)
    return False


def detect_language(pre: Tag) -> str:
    """Language from a ``language-x``/``lang-x`` class on the inner ``<code>``, then on ``<pre>``."""
    candidates: List[Tag] = []
    code = pre.find("code")
    if isinstance(code, Tag):
        candidates.append(code)
    candidates.append(pre)
    for el in candidates:
        for cls in _classes(el):
            match = _LANGUAGE_CLASS.match(cls)
            if match:
                return match.group(1)
    return ""


def _cell_text(cell: Tag) -> str:
    return " ".join(cell.get_text().split()).replace("|", "\\|")


def table_to_markdown(table: Tag) -> str:
    """Rebuild *table* as a pipe table; the separator row follows the first row's width."""
    rows = [tr for tr in table.find_all("tr") if tr.find_parent("table") is table]
    lines: List[str] = []
    for tr in rows:
        cells = tr.find_all(["td", "th"], recursive=False)
        if not cells:
            continue
        lines.append("| " + " | ".join(_cell_text(c) for c in cells) + " |")
        if len(lines) == 1:
            lines.append("| " + " | ".join("---" for _ in cells) + " |")
    return "\n".join(lines)


class _DocsMarkdownConverter(MarkdownConverter):
    """markdownify with navigation stripped and code/tables handled explicitly."""

    def convert_nav(self, el: Tag, text: str, parent_tags: Any) -> str:
        return ""

    convert_header = convert_nav
    convert_footer = convert_nav

    def convert_pre(self, el: Tag, text: str, parent_tags: Any) -> str:
        code = el.get_text().strip("\n")
        return f"\n\n```{detect_language(el)}\n{code}\n```\n\n"

    def convert_table(self, el: Tag, text: str, parent_tags: Any) -> str:
        table = table_to_markdown(el)
        return f"\n\n{table}\n\n" if table else ""


class PageConverter:
    """Turns a page's content HTML into a Markdown document with frontmatter."""

    def __init__(
        self,
        *,
        clock: Optional[Callable[[], datetime]] = None,
        navigation_selectors: Iterable[str] = NAVIGATION_SELECTORS,
        **markdown_options: Any,
    ) -> None:
        options = {
            "heading_style": ATX,
            "bullets": "-",
            "escape_asterisks": False,
            "escape_underscores": False,
        }
        options.update(markdown_options)
        self._markdown = _DocsMarkdownConverter(**options)
        self._clock = clock or _utc_now
        self._navigation_selectors = tuple(navigation_selectors)

    def clean_html(self, html: str) -> BeautifulSoup:
        soup = BeautifulSoup(html, "html.parser")
        for comment in soup.find_all(string=lambda s: isinstance(s, Comment)):
            comment.extract()
        for el in [*soup.find_all(list(_REMOVED_TAGS)), *soup.find_all(_has_tracking_marker)]:
            if not el.decomposed:
                el.decompose()
        for selector in self._navigation_selectors:
            for el in soup.select(selector):
                if not el.decomposed:
                    el.decompose()
        return soup

    def frontmatter(self, source_url: str) -> str:
        return f"---\nsource: {source_url}\ncrawled_at: {_iso_timestamp(self._clock())}\n---\n\n"

    def convert(self, html: str, source_url: str) -> str:
        try:
            body = self._markdown.convert_soup(self.clean_html(html))
            body = _EXTRA_NEWLINES.sub("\n\n", body)
            return self.frontmatter(source_url) + body.strip()
        except Exception as exc:
            raise ConversionError(str(exc)) from exc
