"""
Playwright adapter for the browser collaborator protocol.

One driver owns a launched browser; every session is a fresh
``BrowserContext`` + ``Page`` that is closed when the session exits.
"""

from __future__ import annotations

import re
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from typing import TYPE_CHECKING, Any

from playwright.async_api import TimeoutError as PlaywrightTimeoutError
import structlog

from swiftcheck.locators import LocatorCandidate, LocatorStrategy

if TYPE_CHECKING:
    from playwright.async_api import Browser, Locator, Page

logger = structlog.get_logger(__name__)

# Matches beyond this are never inspected by the resolver
MAX_MATCHES = 20
# Upper bound for one text read while the output is being re-rendered
READ_TIMEOUT_MS = 2000


def _pattern(value: str, regex: bool) -> str | re.Pattern[str]:
    return re.compile(value, re.IGNORECASE) if regex else value


class PlaywrightSession:
    """BrowserSession backed by a single Playwright page."""

    def __init__(self, page: Page, read_timeout_ms: int = READ_TIMEOUT_MS) -> None:
        self._page = page
        self._read_timeout_ms = read_timeout_ms

    @property
    def page(self) -> Page:
        return self._page

    def _locator(self, candidate: LocatorCandidate) -> Locator:
        page = self._page
        match candidate.strategy:
            case LocatorStrategy.CSS:
                locator = page.locator(candidate.value)
            case LocatorStrategy.PLACEHOLDER:
                locator = page.get_by_placeholder(_pattern(candidate.value, candidate.regex))
            case LocatorStrategy.ROLE:
                if candidate.name is not None:
                    locator = page.get_by_role(candidate.value, name=_pattern(candidate.name, candidate.regex))
                else:
                    locator = page.get_by_role(candidate.value)
            case LocatorStrategy.TEXT:
                locator = page.get_by_text(_pattern(candidate.value, candidate.regex))
            case LocatorStrategy.TEST_ID:
                locator = page.get_by_test_id(candidate.value)
            case _:
                raise ValueError(f"Unsupported locator strategy: {candidate.strategy}")

        if candidate.has_text is not None:
            locator = locator.filter(has_text=_pattern(candidate.has_text, candidate.regex))
        return locator

    async def navigate(self, url: str, *, wait_until: str = "domcontentloaded", timeout_ms: int = 30000) -> None:
        await self._page.goto(url, wait_until=wait_until, timeout=timeout_ms)

    async def locate(self, candidate: LocatorCandidate) -> list[Any]:
        locator = self._locator(candidate)
        count = await locator.count()
        return [locator.nth(i) for i in range(min(count, MAX_MATCHES))]

    async def is_visible(self, element: Locator) -> bool:
        return await element.is_visible()

    async def fill(self, element: Locator, text: str) -> None:
        await element.fill(text)

    async def type_keys(self, element: Locator, text: str, *, delay_ms: int = 0) -> None:
        await element.press_sequentially(text, delay=delay_ms)

    async def press(self, element: Locator, key: str) -> None:
        await element.press(key)

    async def click(self, element: Locator) -> None:
        await element.click()

    async def read_text(self, element: Locator) -> str:
        timeout = self._read_timeout_ms
        try:
            # Form fields expose their content as a value, not as rendered text
            tag = await element.evaluate("el => el.tagName.toLowerCase()", timeout=timeout)
            if tag in ("input", "textarea", "select"):
                return await element.input_value(timeout=timeout)
            return await element.inner_text(timeout=timeout)
        except PlaywrightTimeoutError as e:
            raise TimeoutError(f"Text read exceeded {timeout} ms") from e

    async def screenshot(self, *, full_page: bool = True) -> bytes:
        return await self._page.screenshot(full_page=full_page, type="png")


class PlaywrightDriver:
    """BrowserDriver over an already launched Playwright browser."""

    name = "playwright"

    def __init__(self, browser: Browser) -> None:
        self._browser = browser
        self._log = logger.bind(component="playwright_driver")

    @asynccontextmanager
    async def session(self) -> AsyncIterator[PlaywrightSession]:
        context = await self._browser.new_context()
        self._log.debug("context_opened")
        try:
            page = await context.new_page()
            yield PlaywrightSession(page)
        finally:
            try:
                await context.close()
                self._log.debug("context_closed")
            except Exception as e:
                self._log.warning("context_close_failed", error=str(e))


@asynccontextmanager
async def launch_playwright(headless: bool = True) -> AsyncIterator[PlaywrightDriver]:
    """Start Playwright, launch Chromium and yield a driver; everything is shut down on exit."""
    from playwright.async_api import async_playwright

    async with async_playwright() as playwright:
        browser = await playwright.chromium.launch(headless=headless)
        try:
            yield PlaywrightDriver(browser)
        finally:
            await browser.close()
