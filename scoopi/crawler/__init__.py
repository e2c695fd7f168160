"""scoopi.crawler: frontier, URL governance and page renderers."""

from scoopi.crawler.crawler import CancellationToken, Crawler
from scoopi.crawler.models import CrawlReport, CrawlState, Link, PageResult
from scoopi.crawler.renderer import (
    HttpRenderer,
    PageTimeoutError,
    PlaywrightRenderer,
    RendererError,
    RendererInitError,
    create_renderer,
)

__all__ = [
    "CancellationToken",
    "Crawler",
    "CrawlReport",
    "CrawlState",
    "Link",
    "PageResult",
    "HttpRenderer",
    "PageTimeoutError",
    "PlaywrightRenderer",
    "RendererError",
    "RendererInitError",
    "create_renderer",
]
