"""
Page renderers: turn a URL into a :class:`PageResult`.

Renderers are async context managers. Entering starts the underlying engine
(a headless Chromium via Playwright, or an aiohttp session); a failure there
is fatal for the crawl and surfaces as :class:`RendererInitError`. Leaving
releases everything; ``close()`` is idempotent.
"""
from __future__ import annotations

import asyncio
from typing import Any, Dict, Optional

from aiohttp import ClientSession, ClientTimeout
from playwright.async_api import Error as PlaywrightError
from playwright.async_api import TimeoutError as PlaywrightTimeoutError
from playwright.async_api import async_playwright

from scoopi.config import DEFAULT_USER_AGENT, CrawlConfig
from scoopi.crawler.models import PageResult
from scoopi.logger import get_logger
from scoopi.parser.html_parser import extract_page

__all__ = (
    "RendererError",
    "RendererInitError",
    "PageTimeoutError",
    "BaseRenderer",
    "PlaywrightRenderer",
    "HttpRenderer",
    "create_renderer",
)

DEFAULT_VIEWPORT: Dict[str, int] = {"width": 1200, "height": 800}
DEFAULT_TIMEOUT_MS = 30_000
_CHROMIUM_ARGS = ("--no-sandbox", "--disable-setuid-sandbox", "--disable-dev-shm-usage")
_HTML_TYPES = ("text/html", "application/xhtml+xml")


class RendererError(Exception):
    """A page could not be rendered."""


class RendererInitError(RendererError):
    """The rendering engine could not be started."""


class PageTimeoutError(RendererError):
    """A page did not finish loading within the timeout."""

    def __init__(self, url: str, timeout_ms: int) -> None:
        super().__init__(f"Page load timeout: {url} (after {timeout_ms} ms)")
        self.url = url
        self.timeout_ms = timeout_ms


class BaseRenderer:
    """Common lifecycle for renderers: ``open`` on enter, ``close`` on exit."""

    def __init__(self, user_agent: str = DEFAULT_USER_AGENT, *, timeout_ms: int = DEFAULT_TIMEOUT_MS) -> None:
        self.user_agent = user_agent
        self.timeout_ms = timeout_ms
        self.logger = get_logger(__name__)

    async def __aenter__(self) -> BaseRenderer:
        try:
            await self.open()
        except Exception as exc:
            await self.close()
            if isinstance(exc, RendererInitError):
                raise
            raise RendererInitError(f"{type(self).__name__} failed to start: {exc}") from exc
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.close()

    async def open(self) -> None:
        raise NotImplementedError

    async def close(self) -> None:
        raise NotImplementedError

    async def fetch(self, url: str) -> PageResult:
        raise NotImplementedError


class PlaywrightRenderer(BaseRenderer):
    """Renders pages in headless Chromium and waits for network quiescence."""

    def __init__(
        self,
        user_agent: str = DEFAULT_USER_AGENT,
        *,
        timeout_ms: int = DEFAULT_TIMEOUT_MS,
        headless: bool = True,
        viewport: Optional[Dict[str, int]] = None,
    ) -> None:
        super().__init__(user_agent, timeout_ms=timeout_ms)
        self.headless = headless
        self.viewport = dict(viewport or DEFAULT_VIEWPORT)
        self._playwright: Any = None
        self._browser: Any = None
        self._page: Any = None

    async def open(self) -> None:
        self.logger.debug("Launching browser...")
        self._playwright = await async_playwright().start()
        try:
            self._browser = await self._playwright.chromium.launch(
                headless=self.headless, args=list(_CHROMIUM_ARGS)
            )
        except PlaywrightError as exc:
            raise RendererInitError(
                f"Chromium could not be launched ({exc}). "
                "Install it with: playwright install chromium"
            ) from exc
        context = await self._browser.new_context(user_agent=self.user_agent, viewport=self.viewport)
        self._page = await context.new_page()
        self.logger.debug("Browser initialized")

    async def close(self) -> None:
        self._page = None
        if self._browser is not None:
            browser, self._browser = self._browser, None
            self.logger.debug("Closing browser...")
            await browser.close()
        if self._playwright is not None:
            playwright, self._playwright = self._playwright, None
            await playwright.stop()

    async def fetch(self, url: str) -> PageResult:
        if self._page is None:
            raise RendererError("Renderer is not open")
        try:
            await self._page.goto(url, wait_until="networkidle", timeout=self.timeout_ms)
        except PlaywrightTimeoutError as exc:
            raise PageTimeoutError(url, self.timeout_ms) from exc
        html = await self._page.content()
        return extract_page(html, self._page.url or url)


class HttpRenderer(BaseRenderer):
    """Plain HTTP fetch + BeautifulSoup; no JavaScript is executed."""

    def __init__(self, user_agent: str = DEFAULT_USER_AGENT, *, timeout_ms: int = DEFAULT_TIMEOUT_MS) -> None:
        super().__init__(user_agent, timeout_ms=timeout_ms)
        self.session: Optional[ClientSession] = None

    async def open(self) -> None:
        self.session = ClientSession(
            timeout=ClientTimeout(total=self.timeout_ms / 1000),
            headers={"User-Agent": self.user_agent},
            raise_for_status=False,
        )

    async def close(self) -> None:
        if self.session is not None:
            session, self.session = self.session, None
            if not session.closed:
                await session.close()

    async def fetch(self, url: str) -> PageResult:
        if self.session is None:
            raise RendererError("Renderer is not open")
        try:
            async with self.session.get(url) as resp:
                if resp.status != 200:
                    raise RendererError(f"HTTP {resp.status} for {url}")
                mime = resp.headers.get("Content-Type", "").split(";", 1)[0].strip().lower()
                if mime not in _HTML_TYPES:
                    raise RendererError(f"Unsupported content type {mime or 'unknown'!r} for {url}")
                html = await resp.text()
                final_url = str(resp.url)
        except asyncio.TimeoutError as exc:
            raise PageTimeoutError(url, self.timeout_ms) from exc
        return extract_page(html, final_url)


def create_renderer(config: CrawlConfig) -> BaseRenderer:
    """Build the renderer selected by ``config.renderer``."""
    if config.renderer == "http":
        return HttpRenderer(config.user_agent, timeout_ms=config.timeout_ms)
    return PlaywrightRenderer(config.user_agent, timeout_ms=config.timeout_ms, headless=config.headless)
