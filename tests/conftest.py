# File: tests/conftest.py
from __future__ import annotations

from datetime import datetime, timezone
from typing import Callable, Dict, List, Optional

import pytest

from scoopi.config import CrawlConfig
from scoopi.crawler.crawler import CancellationToken
from scoopi.crawler.models import PageResult
from scoopi.crawler.renderer import BaseRenderer
from scoopi.parser.html_parser import extract_page

FIXED_NOW = datetime(2024, 5, 1, 12, 30, 0, 250000, tzinfo=timezone.utc)


class FakeRenderer(BaseRenderer):
    """
    In-memory renderer: serves HTML from a ``{url: html}`` site map.

    A value may also be an exception instance, which ``fetch`` raises.
    Unknown URLs raise ``LookupError``.
    """

    def __init__(
        self,
        site: Dict[str, object],
        *,
        fail_open: Optional[Exception] = None,
        cancel_after: Optional[int] = None,
        token: Optional[CancellationToken] = None,
    ) -> None:
        super().__init__("TestAgent/1.0", timeout_ms=1000)
        self.site = site
        self.fail_open = fail_open
        self.cancel_after = cancel_after
        self.token = token
        self.fetched: List[str] = []
        self.opened = 0
        self.closed = 0

    async def open(self) -> None:
        self.opened += 1
        if self.fail_open is not None:
            raise self.fail_open

    async def close(self) -> None:
        self.closed += 1

    async def fetch(self, url: str) -> PageResult:
        self.fetched.append(url)
        if self.cancel_after is not None and len(self.fetched) >= self.cancel_after:
            self.token.cancel()
        page = self.site.get(url)
        if page is None:
            raise LookupError(f"no such page: {url}")
        if isinstance(page, Exception):
            raise page
        return extract_page(str(page), url)


@pytest.fixture()
def crawl_config(tmp_path) -> CrawlConfig:
    """
    Return a fast CrawlConfig writing into a temporary directory.
    """
    return CrawlConfig(
        max_depth=3,
        delay_ms=0,
        timeout_ms=2000,
        output_dir=tmp_path / "out",
        renderer="http",
        user_agent="TestAgent/1.0",
    )


@pytest.fixture()
def fake_renderer() -> Callable[..., FakeRenderer]:
    """Factory for :class:`FakeRenderer` instances."""
    return FakeRenderer


@pytest.fixture()
def fixed_clock() -> Callable[[], datetime]:
    return lambda: FIXED_NOW
