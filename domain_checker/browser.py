"""Render stage: confirm a page actually loads in a headless browser."""
import asyncio
import logging
from typing import List, Optional, Protocol, Set

from playwright.async_api import Browser, BrowserContext, Error as PlaywrightError, Playwright, async_playwright

from .commons import USER_AGENT

logger = logging.getLogger(__name__)


class RenderVerifier(Protocol):
    """Capability: given a URL, report whether a page rendered within ``timeout_s``."""

    async def verify(self, url: str, timeout_s: float) -> bool:
        ...


class PlaywrightRenderVerifier:
    """Headless Chromium verifier.

    The Playwright driver is started once, but every call launches its own
    browser process and tears it down afterwards, so no cookies, cache or
    session leak from one domain into the next.
    """

    def __init__(self, user_agent: str = USER_AGENT, ignore_https_errors: bool = True) -> None:
        self.user_agent: str = user_agent
        self.ignore_https_errors: bool = ignore_https_errors
        self._playwright: Optional[Playwright] = None
        self._lock: asyncio.Lock = asyncio.Lock()
        # Closers for browsers whose launch outlived a cancelled render.
        self._orphans: Set[asyncio.Task[None]] = set()

    def launch_args(self) -> List[str]:
        if self.ignore_https_errors:
            return ["--ignore-certificate-errors"]
        return []

    async def _driver(self) -> Playwright:
        async with self._lock:
            if self._playwright is None:
                self._playwright = await async_playwright().start()
            return self._playwright

    async def close(self) -> None:
        """Close browsers still launching, then stop the Playwright driver."""
        if self._orphans:
            await asyncio.gather(*self._orphans, return_exceptions=True)
        if self._playwright is not None:
            await self._playwright.stop()
            self._playwright = None

    async def __aenter__(self) -> "PlaywrightRenderVerifier":
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.close()

    async def verify(self, url: str, timeout_s: float) -> bool:
        """Navigate to ``url`` and wait until the page title can be read.

        Navigation errors, crashes and an expired time budget all yield False.
        """
        try:
            async with asyncio.timeout(timeout_s):
                return await self._render(url, timeout_s)
        except (PlaywrightError, TimeoutError) as e:
            logger.debug("Render check failed for %s: %s", url, e.__class__.__name__)
            return False

    @staticmethod
    async def _close_when_launched(launch: "asyncio.Future[Browser]") -> None:
        try:
            browser: Browser = await launch
        except PlaywrightError:
            return
        await browser.close()

    async def _launch(self, pw: Playwright) -> Browser:
        """Launch a browser; if cancelled midway, close it once the launch lands."""
        launch: asyncio.Future[Browser] = asyncio.ensure_future(
            pw.chromium.launch(headless=True, args=self.launch_args())
        )
        try:
            return await asyncio.shield(launch)
        except asyncio.CancelledError:
            closer: asyncio.Task[None] = asyncio.create_task(self._close_when_launched(launch))
            self._orphans.add(closer)
            closer.add_done_callback(self._orphans.discard)
            raise

    async def _render(self, url: str, timeout_s: float) -> bool:
        pw: Playwright = await self._driver()
        try:
            browser: Browser = await self._launch(pw)
        except PlaywrightError as e:
            logger.warning("Could not launch browser for %s: %s", url, e)
            raise
        try:
            context: BrowserContext = await browser.new_context(
                user_agent=self.user_agent,
                ignore_https_errors=self.ignore_https_errors,
            )
            page = await context.new_page()
            await page.goto(url, timeout=int(timeout_s * 1000))
            title: str = await page.title()
            logger.debug("Rendered %s (title=%r)", url, title)
            return True
        finally:
            # Runs on cancellation too, so an expired budget never leaks a browser.
            await asyncio.shield(browser.close())
