"""scoopi.engine: wiring between configuration, renderer and crawler for one run."""

from __future__ import annotations

import asyncio
import signal
from typing import Optional

from scoopi.config import CrawlConfig
from scoopi.crawler.crawler import CancellationToken, Crawler
from scoopi.crawler.models import CrawlReport
from scoopi.crawler.renderer import BaseRenderer, create_renderer
from scoopi.logger import get_logger

logger = get_logger(__name__)

__all__ = ["start_crawl"]


def _install_interrupt(loop: asyncio.AbstractEventLoop, token: CancellationToken) -> bool:
    try:
        loop.add_signal_handler(signal.SIGINT, token.cancel)
    except (NotImplementedError, RuntimeError, ValueError) as exc:
        # no loop signal support on this platform or outside the main thread
        logger.debug("SIGINT handler not installed: %s", exc)
        return False
    return True


async def start_crawl(
    config: CrawlConfig,
    start_url: str,
    token: Optional[CancellationToken] = None,
    renderer: Optional[BaseRenderer] = None,
) -> CrawlReport:
    """Run one crawl; Ctrl+C stops it after the page in flight."""
    token = token or CancellationToken()
    renderer = renderer or create_renderer(config)
    loop = asyncio.get_running_loop()
    installed = _install_interrupt(loop, token)
    try:
        return await Crawler(config, renderer).crawl(start_url, token)
    finally:
        if installed:
            loop.remove_signal_handler(signal.SIGINT)
