"""
Translator page object.

Holds the locator candidate tables for the Singlish input box, the
translate button and the Sinhala output region, and the
fill -> submit -> read-when-ready flow built on top of them.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

import structlog

from swiftcheck.errors import SelectorNotFoundError
from swiftcheck.locators import LocatorCandidate, ResolvedElement, SelectorResolver
from swiftcheck.polling import DEFAULT_DEADLINE, BackoffSchedule, PollResult, poll_until
from swiftcheck.text import SINHALA, ScriptBlock, build_predicate, normalize

if TYPE_CHECKING:
    from swiftcheck.driver import BrowserSession

logger = structlog.get_logger(__name__)

SUBMIT_LABEL = r"translate|convert|සිංහල"


class TranslatorPage:
    """Interactions with a Singlish-to-Sinhala translator page."""

    INPUT_CANDIDATES: tuple[LocatorCandidate, ...] = (
        LocatorCandidate.css('[placeholder="Input Your Singlish Text Here."]'),
        LocatorCandidate.placeholder("singlish", regex=True),
        LocatorCandidate.css("#singlish-input"),
        LocatorCandidate.test_id("singlish-input"),
        LocatorCandidate.css("textarea"),
        LocatorCandidate.css('input[type="text"]'),
    )

    SUBMIT_CANDIDATES: tuple[LocatorCandidate, ...] = (
        LocatorCandidate.role("button", name=SUBMIT_LABEL, regex=True),
        LocatorCandidate.css('button[type="submit"]'),
        LocatorCandidate.css("button", has_text=SUBMIT_LABEL, regex=True),
    )

    OUTPUT_CANDIDATES: tuple[LocatorCandidate, ...] = (
        LocatorCandidate.test_id("sinhala-output"),
        LocatorCandidate.css("#sinhala-output"),
        # "Sinhala" header -> parent -> second div (the scrolling result box)
        LocatorCandidate.css("text=Sinhala >> xpath=.. >> div", nth=1),
    )

    def __init__(
        self,
        session: BrowserSession,
        url: str,
        *,
        script: ScriptBlock = SINHALA,
        typing_delay_ms: int = 30,
        navigation_timeout_ms: int = 30000,
        wait_until: str = "domcontentloaded",
    ) -> None:
        self._session = session
        self._resolver = SelectorResolver(session)
        self._url = url
        self._script = script
        self._typing_delay_ms = typing_delay_ms
        self._navigation_timeout_ms = navigation_timeout_ms
        self._wait_until = wait_until
        self._log = logger.bind(component="translator_page")

    @property
    def session(self) -> BrowserSession:
        return self._session

    async def open(self, wait_until: str | None = None) -> None:
        await self._session.navigate(
            self._url,
            wait_until=wait_until or self._wait_until,
            timeout_ms=self._navigation_timeout_ms,
        )
        self._log.debug("page_opened", url=self._url)

    async def input_field(self) -> ResolvedElement:
        return await self._resolver.resolve(self.INPUT_CANDIDATES, target="singlish input")

    async def output_region(self) -> ResolvedElement:
        return await self._resolver.resolve(self.OUTPUT_CANDIDATES, target="sinhala output")

    async def enter_text(self, text: str) -> ResolvedElement:
        """Clear the input and type ``text`` key by key."""
        field = await self.input_field()
        await self._session.fill(field.element, "")
        if text:
            await self._session.type_keys(field.element, text, delay_ms=self._typing_delay_ms)
        return field

    async def submit(self, field: ResolvedElement) -> None:
        """Click the translate button, or press Enter when the page translates as you type."""
        try:
            button = await self._resolver.resolve(self.SUBMIT_CANDIDATES, target="translate button")
        except SelectorNotFoundError:
            self._log.debug("no_submit_button", fallback="Enter")
            await self._session.press(field.element, "Enter")
            return
        await self._session.click(button.element)

    async def translate(self, text: str) -> None:
        field = await self.enter_text(text)
        await self.submit(field)

    async def read_when_ready(
        self,
        wait_for: str,
        deadline: float = DEFAULT_DEADLINE,
        backoff: BackoffSchedule | None = None,
    ) -> PollResult:
        """
        Poll the output region until the readiness predicate holds.

        Raises:
            SelectorNotFoundError: If the output region cannot be resolved
            PollTimeoutError: If the output never becomes ready
        """
        output = await self.output_region()
        predicate = build_predicate(wait_for, self._script)

        async def sample() -> str:
            return await self._session.read_text(output.element)

        return await poll_until(sample, predicate, deadline, backoff)

    async def verify_input_editable(self, probe: str = "Test UI") -> bool:
        """Check that the input box accepts text and reads it back unchanged."""
        field = await self.input_field()
        await self._session.fill(field.element, probe)
        value = await self._session.read_text(field.element)
        editable = normalize(value) == normalize(probe)
        self._log.info("input_editable_checked", editable=editable, value=value)
        return editable
