from __future__ import annotations

import asyncio
import threading
import time
from pathlib import Path
from typing import Awaitable, Callable, Optional, Union
from urllib.parse import urlsplit

from scoopi.config import CrawlConfig
from scoopi.converter import PageConverter
from scoopi.crawler.link_filter import filter_links, normalize_url
from scoopi.crawler.models import (
    CrawlReport,
    CrawlRunState,
    CrawlState,
    FrontierEntry,
    PageResult,
)
from scoopi.crawler.renderer import BaseRenderer, PageTimeoutError
from scoopi.logger import get_logger
from scoopi.utils import get_output_path, write_file

__all__ = ("CancellationToken", "Crawler")

Writer = Callable[[Union[str, Path], str], object]
Sleeper = Callable[[float], Awaitable[object]]


class CancellationToken:
    """Cooperative interrupt flag; the crawler polls it between pages."""

    def __init__(self) -> None:
        self._event = threading.Event()

    def cancel(self) -> None:
        self._event.set()

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()


class Crawler:
    """Breadth-first, single-worker crawl of one site into Markdown files."""

    def __init__(
        self,
        config: CrawlConfig,
        renderer: BaseRenderer,
        *,
        converter: Optional[PageConverter] = None,
        writer: Writer = write_file,
        sleep: Sleeper = asyncio.sleep,
    ) -> None:
        self.config = config
        self.renderer = renderer
        self.converter = converter or PageConverter()
        self._write = writer
        self._sleep = sleep
        self.state = CrawlState.IDLE
        self.logger = get_logger(__name__)

    async def crawl(self, start_url: str, token: Optional[CancellationToken] = None) -> CrawlReport:
        if self.state is not CrawlState.IDLE:
            raise RuntimeError("A Crawler runs a single crawl; create a new one")
        seed = normalize_url(start_url)
        if seed is None or urlsplit(seed).scheme not in ("http", "https"):
            raise ValueError(f"Invalid start URL: {start_url!r}")
        token = token or CancellationToken()

        self.logger.info("Starting crawl of %s", seed)
        self.logger.debug("Options: %s", self.config.model_dump_json())
        start = time.monotonic()
        run = CrawlRunState()
        run.enqueue(FrontierEntry(seed, 0))

        async with self.renderer:
            self.state = CrawlState.RUNNING
            while run.queue:
                if token.cancelled:
                    run.interrupted = True
                    break
                entry = run.dequeue()
                fetched = await self._process(entry, seed, run)
                if fetched and run.queue and self.config.delay_ms > 0:
                    await self._sleep(self.config.delay_ms / 1000)
            # an interrupt during the last page still ends the run as interrupted
            run.interrupted = run.interrupted or token.cancelled

        self.state = CrawlState.INTERRUPTED if run.interrupted else CrawlState.COMPLETED
        duration = time.monotonic() - start
        if run.interrupted:
            self.logger.info("Crawl interrupted. Visited %d pages.", len(run.visited))
        else:
            self.logger.info("Crawl completed. Visited %d pages in %.2f s.", len(run.visited), duration)
        if run.failed:
            self.logger.warning("%d pages failed", len(run.failed))

        return CrawlReport(
            state=self.state,
            start_url=seed,
            visited=len(run.visited),
            written=tuple(run.written),
            failed=dict(run.failed),
            duration=duration,
        )

    async def _process(self, entry: FrontierEntry, seed: str, run: CrawlRunState) -> bool:
        """Handle one queue entry; return True when the renderer produced a page."""
        if entry.url in run.visited:
            self.logger.debug("Skipping %s - already visited", entry.url)
            return False
        if entry.depth > self.config.max_depth:
            self.logger.debug("Skipping %s - max depth reached", entry.url)
            return False

        self.logger.info("Crawling %s (depth: %d)", entry.url, entry.depth)
        try:
            page = await self.renderer.fetch(entry.url)
        except Exception as exc:
            self._record_failure(run, entry.url, exc)
            return False

        try:
            self._save(entry, page, run)
            if entry.depth < self.config.max_depth:
                self._enqueue_links(entry, page, seed, run)
        except Exception as exc:
            self._record_failure(run, entry.url, exc)
        return True

    def _save(self, entry: FrontierEntry, page: PageResult, run: CrawlRunState) -> None:
        markdown = self.converter.convert(page.content, entry.url)
        path = get_output_path(self.config.output_dir, entry.url)
        self._write(path, markdown)
        run.visited.add(entry.url)
        run.written.append(path)
        self.logger.info("Saved: %s", path)

    def _enqueue_links(self, entry: FrontierEntry, page: PageResult, seed: str, run: CrawlRunState) -> None:
        accepted = filter_links(
            page.links,
            entry.url,
            seed,
            self.config.include_patterns,
            self.config.exclude_patterns,
        )
        added = 0
        for link in accepted:
            if run.is_known(link.href):
                continue
            run.enqueue(FrontierEntry(link.href, entry.depth + 1))
            added += 1
            self.logger.debug("Queued: %s", link.href)
        self.logger.debug("Added %d new URLs to queue", added)

    def _record_failure(self, run: CrawlRunState, url: str, exc: Exception) -> None:
        run.failed[url] = str(exc)
        if isinstance(exc, PageTimeoutError):
            self.logger.warning("%s", exc)
        else:
            self.logger.error("Failed to crawl %s: %s", url, exc, exc_info=self.config.verbose)
