"""Pytest fixtures for swiftcheck tests."""

from __future__ import annotations

import tempfile
from collections.abc import AsyncIterator, Generator
from contextlib import asynccontextmanager
from pathlib import Path
from typing import Any
from unittest.mock import AsyncMock, MagicMock

import pytest

from swiftcheck.config import reset_settings
from swiftcheck.locators import LocatorCandidate

pytest_plugins = ["pytester", "swiftcheck.pytest_plugin"]

PNG_BYTES = b"\x89PNG\r\n\x1a\nfake"


class FakeSession:
    """
    Scripted BrowserSession.

    ``matches`` maps a candidate value (or a ``(strategy, value)`` pair,
    which wins) to element names. ``texts`` maps an element to the
    successive texts it returns; the last one repeats.
    """

    def __init__(
        self,
        matches: dict[Any, list[str]] | None = None,
        texts: dict[str, list[str]] | None = None,
        hidden: set[str] | None = None,
        errors: dict[str, Exception] | None = None,
        navigate_error: Exception | None = None,
        screenshot_error: Exception | None = None,
    ) -> None:
        self.matches = matches or {}
        self.texts = {element: list(values) for element, values in (texts or {}).items()}
        self.hidden = hidden or set()
        self.errors = errors or {}
        self.navigate_error = navigate_error
        self.screenshot_error = screenshot_error
        self.values: dict[str, str] = {}
        self.calls: list[tuple[Any, ...]] = []
        self.reads: dict[str, int] = {}

    async def navigate(self, url: str, *, wait_until: str = "domcontentloaded", timeout_ms: int = 30000) -> None:
        self.calls.append(("navigate", url, wait_until))
        if self.navigate_error is not None:
            raise self.navigate_error

    async def locate(self, candidate: LocatorCandidate) -> list[str]:
        if candidate.value in self.errors:
            raise self.errors[candidate.value]
        key = (str(candidate.strategy), candidate.value)
        if key in self.matches:
            return list(self.matches[key])
        return list(self.matches.get(candidate.value, []))

    async def is_visible(self, element: str) -> bool:
        return element not in self.hidden

    async def fill(self, element: str, text: str) -> None:
        self.calls.append(("fill", element, text))
        self.values[element] = text

    async def type_keys(self, element: str, text: str, *, delay_ms: int = 0) -> None:
        self.calls.append(("type_keys", element, text, delay_ms))
        self.values[element] = self.values.get(element, "") + text

    async def press(self, element: str, key: str) -> None:
        self.calls.append(("press", element, key))

    async def click(self, element: str) -> None:
        self.calls.append(("click", element))

    async def read_text(self, element: str) -> str:
        self.reads[element] = self.reads.get(element, 0) + 1
        if element in self.texts:
            values = self.texts[element]
            return values.pop(0) if len(values) > 1 else (values[0] if values else "")
        return self.values.get(element, "")

    async def screenshot(self, *, full_page: bool = True) -> bytes:
        self.calls.append(("screenshot", full_page))
        if self.screenshot_error is not None:
            raise self.screenshot_error
        return PNG_BYTES


class FakeDriver:
    """BrowserDriver handing out scripted sessions and counting their lifecycle."""

    name = "fake"

    def __init__(self, session_factory=None, open_error: Exception | None = None) -> None:
        self._session_factory = session_factory or FakeSession
        self._open_error = open_error
        self.opened = 0
        self.closed = 0
        self.sessions: list[FakeSession] = []

    @asynccontextmanager
    async def session(self) -> AsyncIterator[FakeSession]:
        if self._open_error is not None:
            raise self._open_error
        session = self._session_factory()
        self.sessions.append(session)
        self.opened += 1
        try:
            yield session
        finally:
            self.closed += 1


def translator_session(output: list[str], **kwargs: Any) -> FakeSession:
    """Session laid out like the translator page: a textarea and a Sinhala output box."""
    return FakeSession(
        matches={
            "textarea": ["input-box"],
            "text=Sinhala >> xpath=.. >> div": ["header", "output-box"],
        },
        texts={"output-box": output},
        **kwargs,
    )


@pytest.fixture
def temp_dir() -> Generator[Path, None, None]:
    """Create a temporary directory for test artifacts."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
def make_session() -> type[FakeSession]:
    return FakeSession


@pytest.fixture
def make_driver() -> type[FakeDriver]:
    return FakeDriver


@pytest.fixture
def make_translator_session():
    return translator_session


@pytest.fixture
def clean_settings() -> Generator[None, None, None]:
    """Reset the process-wide settings around a test."""
    reset_settings()
    yield
    reset_settings()


@pytest.fixture
def mock_browser() -> MagicMock:
    """Create a mock OwlBrowser instance (SDK v2)."""
    browser = MagicMock()

    # SDK v2: create_context returns a dict with context_id
    browser.create_context = AsyncMock(return_value={"context_id": "test-ctx-001"})
    browser.close_context = AsyncMock(return_value=None)

    # SDK v2: all methods are async and take context_id
    browser.navigate = AsyncMock(return_value=None)
    browser.click = AsyncMock(return_value=None)
    browser.type_ = AsyncMock(return_value=None)
    browser.press_key = AsyncMock(return_value=None)
    browser.is_visible = AsyncMock(return_value={"visible": True})
    browser.evaluate = AsyncMock(return_value={"result": None})
    browser.screenshot = AsyncMock(return_value={"data": ""})

    return browser
