"""
Playwright-backed targets.

One browser is launched per run; every target is a new browser context
with a single page, so cookies, storage and cart state never leak between
cases.
"""

import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator, List, Optional

from playwright.async_api import Browser, Page, Playwright, async_playwright
from playwright.async_api import Error as PlaywrightError
from playwright.async_api import TimeoutError as PlaywrightTimeoutError

from storefront_e2e.config import TargetConfig
from storefront_e2e.target import InfrastructureError

logger = logging.getLogger(__name__)

# Messages Playwright uses when the browser side is gone
_CRASH_MARKERS = ("has been closed", "Target closed", "crashed", "Browser closed")


def _is_crash(error: PlaywrightError) -> bool:
    message = str(error)
    return any(marker in message for marker in _CRASH_MARKERS)


class PlaywrightTarget:
    """Target control surface over one Playwright page."""

    def __init__(self, page: Page):
        self.page = page

    async def _call(self, awaitable):
        try:
            return await awaitable
        except PlaywrightTimeoutError as e:
            raise TimeoutError(str(e)) from e
        except PlaywrightError as e:
            if _is_crash(e):
                raise InfrastructureError(f"Browser target lost: {e}", e) from e
            raise

    async def navigate(self, url: str) -> None:
        await self._call(self.page.goto(url, wait_until="domcontentloaded"))

    async def fill(self, locator: str, value: str) -> None:
        await self._call(self.page.fill(locator, value))

    async def click(self, locator: str) -> None:
        await self._call(self.page.click(locator))

    async def select_option(self, locator: str, value: str) -> None:
        await self._call(self.page.select_option(locator, value))

    async def read_text(self, locator: str) -> Optional[str]:
        # Snapshot read; no auto-wait for an element that just went away
        texts = await self._call(self.page.locator(locator).all_text_contents())
        return texts[0] if texts else None

    async def read_texts(self, locator: str) -> List[str]:
        return await self._call(self.page.locator(locator).all_text_contents())

    async def read_visibility(self, locator: str) -> bool:
        return await self._call(self.page.locator(locator).first.is_visible())

    async def read_count(self, locator: str) -> int:
        return await self._call(self.page.locator(locator).count())

    async def read_url(self) -> str:
        if self.page.is_closed():
            raise InfrastructureError("Page is closed")
        return self.page.url

    async def wait_for_quiescence(self, timeout_s: float) -> None:
        await self._call(self.page.wait_for_load_state("networkidle", timeout=timeout_s * 1000))


class PlaywrightTargets:
    """
    Target factory owning one Playwright browser.

    Use as an async context manager around a run:

        async with PlaywrightTargets(config.target) as targets:
            await registry.run(targets)
    """

    def __init__(self, config: TargetConfig, action_timeout_ms: Optional[int] = None):
        """
        Initialize factory.

        Args:
            config: Browser target configuration.
            action_timeout_ms: Playwright auto-wait bound for clicks, fills and
                reads. Defaults to the navigation timeout.
        """
        self.config = config
        self.action_timeout_ms = action_timeout_ms or config.navigation_timeout_ms
        self._playwright: Optional[Playwright] = None
        self._browser: Optional[Browser] = None

    async def start(self) -> None:
        """
        Launch the browser.

        Raises:
            InfrastructureError: If the browser cannot be launched.
        """
        try:
            self._playwright = await async_playwright().start()
            browser_type = getattr(self._playwright, self.config.browser)
            self._browser = await browser_type.launch(headless=self.config.headless)
        except (PlaywrightError, AttributeError) as e:
            await self.close()
            raise InfrastructureError(f"Failed to launch {self.config.browser}: {e}", e) from e

        logger.info(f"Browser launched: {self.config.browser} (headless={self.config.headless})")

    async def close(self) -> None:
        """Close the browser and stop Playwright."""
        if self._browser is not None:
            try:
                await self._browser.close()
            except PlaywrightError as e:
                logger.warning(f"Browser close failed: {e}")
            self._browser = None

        if self._playwright is not None:
            await self._playwright.stop()
            self._playwright = None
            logger.info("Browser closed")

    @asynccontextmanager
    async def open(self) -> AsyncIterator[PlaywrightTarget]:
        """
        Open a fresh, isolated target.

        Raises:
            InfrastructureError: If the browser is not running or refuses a context or page.
        """
        if self._browser is None or not self._browser.is_connected():
            raise InfrastructureError("Browser is not running")

        try:
            context = await self._browser.new_context(base_url=self.config.base_url)
        except PlaywrightError as e:
            raise InfrastructureError(f"Failed to open browser context: {e}", e) from e

        context.set_default_navigation_timeout(self.config.navigation_timeout_ms)
        context.set_default_timeout(self.action_timeout_ms)

        try:
            try:
                page = await context.new_page()
            except PlaywrightError as e:
                raise InfrastructureError(f"Failed to open page: {e}", e) from e
            yield PlaywrightTarget(page)
        finally:
            try:
                await context.close()
            except PlaywrightError as e:
                logger.warning(f"Browser context close failed: {e}")

    async def __aenter__(self) -> "PlaywrightTargets":
        await self.start()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.close()
