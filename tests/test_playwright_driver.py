"""Tests for the Playwright adapter (with a mocked page)."""

from __future__ import annotations

import re
from unittest.mock import AsyncMock, MagicMock

import pytest
from playwright.async_api import TimeoutError as PlaywrightTimeoutError

from swiftcheck.drivers.playwright_driver import MAX_MATCHES, READ_TIMEOUT_MS, PlaywrightDriver, PlaywrightSession
from swiftcheck.locators import LocatorCandidate


def mock_locator(count: int = 1, tag: str = "div") -> MagicMock:
    locator = MagicMock()
    locator.count = AsyncMock(return_value=count)
    locator.nth = MagicMock(side_effect=lambda i: f"nth-{i}")
    locator.filter = MagicMock(return_value=locator)
    locator.evaluate = AsyncMock(return_value=tag)
    locator.input_value = AsyncMock(return_value="typed value")
    locator.inner_text = AsyncMock(return_value="rendered text")
    return locator


@pytest.fixture
def page() -> MagicMock:
    page = MagicMock()
    page.locator = MagicMock(return_value=mock_locator())
    page.get_by_placeholder = MagicMock(return_value=mock_locator())
    page.get_by_role = MagicMock(return_value=mock_locator())
    page.get_by_text = MagicMock(return_value=mock_locator())
    page.get_by_test_id = MagicMock(return_value=mock_locator())
    page.goto = AsyncMock()
    page.screenshot = AsyncMock(return_value=b"\x89PNG")
    return page


class TestPlaywrightSession:
    """Test PlaywrightSession."""

    @pytest.mark.asyncio
    async def test_css_candidate(self, page: MagicMock) -> None:
        """CSS candidates go through page.locator and expose each match."""
        page.locator.return_value = mock_locator(count=2)

        handles = await PlaywrightSession(page).locate(LocatorCandidate.css("text=Sinhala >> xpath=.. >> div", nth=1))

        page.locator.assert_called_once_with("text=Sinhala >> xpath=.. >> div")
        assert handles == ["nth-0", "nth-1"]

    @pytest.mark.asyncio
    async def test_matches_are_capped(self, page: MagicMock) -> None:
        """Only the first MAX_MATCHES matches are exposed."""
        page.locator.return_value = mock_locator(count=MAX_MATCHES + 5)
        assert len(await PlaywrightSession(page).locate(LocatorCandidate.css("div"))) == MAX_MATCHES

    @pytest.mark.asyncio
    async def test_regex_role_candidate(self, page: MagicMock) -> None:
        """Regex names are compiled case-insensitively."""
        await PlaywrightSession(page).locate(LocatorCandidate.role("button", name="translate|convert", regex=True))

        role, kwargs = page.get_by_role.call_args.args[0], page.get_by_role.call_args.kwargs
        assert role == "button"
        assert isinstance(kwargs["name"], re.Pattern)
        assert kwargs["name"].flags & re.IGNORECASE

    @pytest.mark.asyncio
    async def test_placeholder_and_test_id(self, page: MagicMock) -> None:
        """Placeholder and test id strategies use the matching page helpers."""
        session = PlaywrightSession(page)

        await session.locate(LocatorCandidate.placeholder("singlish", regex=True))
        await session.locate(LocatorCandidate.test_id("singlish-input"))

        assert page.get_by_placeholder.call_args.args[0].pattern == "singlish"
        page.get_by_test_id.assert_called_once_with("singlish-input")

    @pytest.mark.asyncio
    async def test_has_text_filter(self, page: MagicMock) -> None:
        """has_text narrows the locator."""
        locator = mock_locator()
        page.locator.return_value = locator

        await PlaywrightSession(page).locate(LocatorCandidate.css("button", has_text="translate"))

        locator.filter.assert_called_once_with(has_text="translate")

    @pytest.mark.asyncio
    async def test_read_text(self, page: MagicMock) -> None:
        """Form fields read their value, other elements their rendered text."""
        session = PlaywrightSession(page)

        assert await session.read_text(mock_locator(tag="textarea")) == "typed value"
        assert await session.read_text(mock_locator(tag="div")) == "rendered text"

    @pytest.mark.asyncio
    async def test_read_text_is_bounded(self) -> None:
        """Every read call carries the session's read timeout."""
        element = mock_locator(tag="div")

        await PlaywrightSession(MagicMock(), read_timeout_ms=750).read_text(element)

        assert element.evaluate.await_args.kwargs["timeout"] == 750
        element.inner_text.assert_awaited_once_with(timeout=750)
        assert PlaywrightSession(MagicMock())._read_timeout_ms == READ_TIMEOUT_MS

    @pytest.mark.asyncio
    async def test_read_timeout_becomes_builtin_timeout(self) -> None:
        """A Playwright read timeout surfaces as TimeoutError for the poller."""
        element = mock_locator(tag="div")
        element.inner_text = AsyncMock(side_effect=PlaywrightTimeoutError("Timeout 2000ms exceeded."))

        with pytest.raises(TimeoutError, match="Text read exceeded 2000 ms"):
            await PlaywrightSession(MagicMock()).read_text(element)

    @pytest.mark.asyncio
    async def test_navigate_and_screenshot(self, page: MagicMock) -> None:
        """Navigation and full-page capture map onto the page API."""
        session = PlaywrightSession(page)

        await session.navigate("https://translator.test/", wait_until="networkidle", timeout_ms=5000)
        data = await session.screenshot()

        page.goto.assert_awaited_once_with("https://translator.test/", wait_until="networkidle", timeout=5000)
        page.screenshot.assert_awaited_once_with(full_page=True, type="png")
        assert data == b"\x89PNG"

    @pytest.mark.asyncio
    async def test_type_keys(self) -> None:
        """Keystrokes are sent one by one with the per-key delay."""
        element = MagicMock()
        element.press_sequentially = AsyncMock()

        await PlaywrightSession(MagicMock()).type_keys(element, "mama", delay_ms=30)

        element.press_sequentially.assert_awaited_once_with("mama", delay=30)


class TestPlaywrightDriver:
    """Test PlaywrightDriver sessions."""

    @pytest.mark.asyncio
    async def test_context_closed_on_error(self, page: MagicMock) -> None:
        """Every session is a fresh context, closed even when the case fails."""
        context = MagicMock()
        context.new_page = AsyncMock(return_value=page)
        context.close = AsyncMock()
        browser = MagicMock()
        browser.new_context = AsyncMock(return_value=context)

        with pytest.raises(RuntimeError):
            async with PlaywrightDriver(browser).session() as session:
                assert session.page is page
                raise RuntimeError("case crashed")

        browser.new_context.assert_awaited_once()
        context.close.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_close_failure_is_logged_not_raised(self, page: MagicMock) -> None:
        """A context that fails to close does not discard the finished session's work."""
        context = MagicMock()
        context.new_page = AsyncMock(return_value=page)
        context.close = AsyncMock(side_effect=RuntimeError("Target closed"))
        browser = MagicMock()
        browser.new_context = AsyncMock(return_value=context)
        finished = False

        async with PlaywrightDriver(browser).session():
            finished = True

        assert finished
        context.close.assert_awaited_once()
