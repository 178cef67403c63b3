"""
Browser driver adapters.

- PlaywrightDriver: local Chromium through the Playwright async API
- OwlDriver: remote Owl Browser through SDK v2 (``owl`` extra)
"""

from __future__ import annotations

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from typing import TYPE_CHECKING

from swiftcheck.drivers.owl_driver import OwlDriver, OwlSession, connect_owl
from swiftcheck.drivers.playwright_driver import PlaywrightDriver, PlaywrightSession, launch_playwright
from swiftcheck.errors import DriverConfigError

if TYPE_CHECKING:
    from swiftcheck.config import Settings
    from swiftcheck.driver import BrowserDriver


@asynccontextmanager
async def open_driver(settings: Settings) -> AsyncIterator[BrowserDriver]:
    """Open the driver selected by ``settings.driver`` for the duration of the block."""
    match settings.driver:
        case "playwright":
            async with launch_playwright(headless=settings.headless) as driver:
                yield driver
        case "owl":
            async with connect_owl(settings.owl_endpoint, settings.owl_token) as driver:
                yield driver
        case _:
            raise DriverConfigError(f"Unknown driver: {settings.driver}")


__all__ = [
    "OwlDriver",
    "OwlSession",
    "PlaywrightDriver",
    "PlaywrightSession",
    "connect_owl",
    "launch_playwright",
    "open_driver",
]
