"""
Case runner.

Executes cases against a browser driver:
- One isolated session per case, closed on every exit path
- navigate -> type input -> submit -> poll output -> evaluate
- Input/actual/expected record and full-page screenshot attached to every
  outcome, pass or fail
- Bounded parallel execution across cases
"""

from __future__ import annotations

import asyncio
import time
from collections import Counter
from collections.abc import Callable, Sequence
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

import structlog

from swiftcheck.errors import CaseSetupError, PollTimeoutError, SelectorNotFoundError
from swiftcheck.evaluator import CaseEvaluator
from swiftcheck.models import Attachment, CaseOutcome, CaseStatus, TestCase
from swiftcheck.polling import DEFAULT_DEADLINE, BackoffSchedule
from swiftcheck.site import TranslatorPage
from swiftcheck.text import SINHALA, ScriptBlock

if TYPE_CHECKING:
    from swiftcheck.config import Settings
    from swiftcheck.driver import BrowserDriver, BrowserSession

logger = structlog.get_logger(__name__)


def text_record(case: TestCase, actual: str, error: BaseException | None = None) -> str:
    """Plain-text diagnostic record of one case execution."""
    lines = [
        f"Case: {case.label}",
        f"Input: {case.input}",
        f"Actual: {actual}",
        f"Assertion: {case.assertion}",
        "Expected:",
        *(f"  - {value}" for value in case.expected),
    ]
    if error is not None:
        lines.append(f"Error: {type(error).__name__}: {error}")
    return "\n".join(lines) + "\n"


@dataclass
class RunSummary:
    """Aggregate view over the outcomes of a run."""

    outcomes: list[CaseOutcome] = field(default_factory=list)

    @property
    def total(self) -> int:
        return len(self.outcomes)

    @property
    def counts(self) -> dict[CaseStatus, int]:
        counter = Counter(outcome.status for outcome in self.outcomes)
        return {status: counter.get(status, 0) for status in CaseStatus}

    @property
    def passed(self) -> int:
        return self.counts[CaseStatus.PASSED]

    @property
    def failed(self) -> int:
        return self.total - self.passed

    @property
    def broken(self) -> int:
        """Cases that never reached evaluation because of structure or setup."""
        counts = self.counts
        return counts[CaseStatus.SELECTOR_NOT_FOUND] + counts[CaseStatus.SETUP_ERROR]

    def to_dict(self) -> dict[str, Any]:
        return {
            "total": self.total,
            "passed": self.passed,
            "failed": self.failed,
            "broken": self.broken,
            "by_status": {str(status): count for status, count in self.counts.items()},
            "cases": [outcome.to_dict() for outcome in self.outcomes],
        }


class CaseRunner:
    """
    Runs translation cases, each in its own browser session.

    Every error a case can end in is turned into a terminal CaseOutcome
    carrying the exception; ``CaseOutcome.raise_for_status`` re-raises it
    for the test harness.
    """

    def __init__(
        self,
        driver: BrowserDriver,
        site_url: str,
        *,
        script: ScriptBlock = SINHALA,
        deadline: float = DEFAULT_DEADLINE,
        backoff: BackoffSchedule | None = None,
        typing_delay_ms: int = 30,
        navigation_timeout_ms: int = 30000,
        wait_until: str = "domcontentloaded",
        max_parallel: int = 1,
        evaluator: CaseEvaluator | None = None,
        on_attachment: Callable[[str, Attachment], None] | None = None,
    ) -> None:
        self._driver = driver
        self._site_url = site_url
        self._script = script
        self._deadline = deadline
        self._backoff = backoff or BackoffSchedule()
        self._typing_delay_ms = typing_delay_ms
        self._navigation_timeout_ms = navigation_timeout_ms
        self._wait_until = wait_until
        self._max_parallel = max_parallel
        self._evaluator = evaluator or CaseEvaluator()
        self._on_attachment = on_attachment
        self._log = logger.bind(component="case_runner")

    @classmethod
    def from_settings(
        cls,
        driver: BrowserDriver,
        settings: Settings,
        on_attachment: Callable[[str, Attachment], None] | None = None,
    ) -> CaseRunner:
        return cls(
            driver,
            settings.site_url,
            script=settings.script,
            deadline=settings.poll_deadline_s,
            backoff=settings.backoff,
            typing_delay_ms=settings.typing_delay_ms,
            navigation_timeout_ms=settings.navigation_timeout_ms,
            wait_until=settings.wait_until,
            max_parallel=settings.max_parallel,
            on_attachment=on_attachment,
        )

    def page(self, session: BrowserSession) -> TranslatorPage:
        return TranslatorPage(
            session,
            self._site_url,
            script=self._script,
            typing_delay_ms=self._typing_delay_ms,
            navigation_timeout_ms=self._navigation_timeout_ms,
            wait_until=self._wait_until,
        )

    async def run_case(self, case: TestCase) -> CaseOutcome:
        """
        Execute one case in a fresh session.

        Returns:
            CaseOutcome with both diagnostic attachments, whatever the result

        Raises:
            Exception: Errors outside the known failure kinds propagate
                after the session has been closed
        """
        start_time = time.monotonic()
        log = self._log.bind(case=case.id)
        log.info("case_started", input=case.input, assertion=case.assertion)

        session_opened = False
        try:
            async with self._driver.session() as session:
                session_opened = True
                outcome = await self._run_in_session(case, session, start_time)
        except Exception as e:
            if session_opened:
                raise
            error = CaseSetupError(case.id, "session", e)
            log.error("case_setup_failed", stage="session", error=str(e))
            attachments = (
                Attachment.text(f"{case.id}-actual.txt", text_record(case, "", error)),
                Attachment.text(f"{case.id}-screenshot-error.txt", "No session: screenshot unavailable\n"),
            )
            self._emit(case.id, attachments)
            return self._outcome_for_error(case, error, "", attachments, start_time)

        log.info(
            "case_finished",
            status=outcome.status,
            actual=outcome.actual_text,
            duration_ms=outcome.duration_ms,
        )
        return outcome

    async def _run_in_session(self, case: TestCase, session: BrowserSession, start_time: float) -> CaseOutcome:
        page = self.page(session)
        actual = ""

        try:
            try:
                await page.open()
            except Exception as e:
                raise CaseSetupError(case.id, "navigation", e) from e

            await page.translate(case.input)
            result = await page.read_when_ready(case.wait_for, self._deadline, self._backoff)
            actual = result.normalized_text
            self._log.debug("output_ready", case=case.id, attempts=result.attempts, elapsed=round(result.elapsed, 3))

        except (CaseSetupError, SelectorNotFoundError, PollTimeoutError) as e:
            if isinstance(e, PollTimeoutError):
                actual = e.last_text
            self._log.warning("case_failed", case=case.id, error_kind=type(e).__name__, error=str(e))
            attachments = await self._capture(case, session, actual, e)
            return self._outcome_for_error(case, e, actual, attachments, start_time)

        except Exception as e:
            self._log.error("case_crashed", case=case.id, error=str(e))
            await self._capture(case, session, actual, e)
            raise

        attachments = await self._capture(case, session, actual)
        return self._evaluator.evaluate(case, actual, attachments, self._elapsed_ms(start_time))

    async def _capture(
        self,
        case: TestCase,
        session: BrowserSession,
        actual: str,
        error: BaseException | None = None,
    ) -> tuple[Attachment, Attachment]:
        """Build the text record and full-page screenshot for a case."""
        record = Attachment.text(f"{case.id}-actual.txt", text_record(case, actual, error))
        try:
            screenshot = Attachment.png(f"{case.id}-screenshot.png", await session.screenshot(full_page=True))
        except Exception as e:
            self._log.warning("screenshot_failed", case=case.id, error=str(e))
            screenshot = Attachment.text(f"{case.id}-screenshot-error.txt", f"Screenshot failed: {e}\n")
        self._emit(case.id, (record, screenshot))
        return record, screenshot

    def _emit(self, case_id: str, attachments: Sequence[Attachment]) -> None:
        if self._on_attachment is None:
            return
        for attachment in attachments:
            self._on_attachment(case_id, attachment)

    def _outcome_for_error(
        self,
        case: TestCase,
        error: BaseException,
        actual: str,
        attachments: Sequence[Attachment],
        start_time: float,
    ) -> CaseOutcome:
        return CaseOutcome(
            case_id=case.id,
            status=CaseStatus.for_error(error),
            actual_text=actual,
            message=f"{case.id}\n{error}",
            attachments=tuple(attachments),
            duration_ms=self._elapsed_ms(start_time),
            error=error,
        )

    @staticmethod
    def _elapsed_ms(start_time: float) -> int:
        return int((time.monotonic() - start_time) * 1000)

    async def check_input_editable(self, probe: str = "Test UI") -> bool:
        """Open the page in a fresh session and check the input box round-trips text."""
        async with self._driver.session() as session:
            page = self.page(session)
            try:
                await page.open(wait_until="networkidle")
            except Exception as e:
                raise CaseSetupError("input_editable", "navigation", e) from e
            return await page.verify_input_editable(probe)

    async def run_all(self, cases: Sequence[TestCase], max_parallel: int | None = None) -> RunSummary:
        """
        Run cases with at most ``max_parallel`` sessions open at once.

        ``max_parallel`` defaults to the runner's configured limit.
        Outcomes are returned in case order.
        """
        if max_parallel is None:
            max_parallel = self._max_parallel
        semaphore = asyncio.Semaphore(max(1, min(max_parallel, len(cases) or 1)))

        async def run_single(case: TestCase) -> CaseOutcome:
            async with semaphore:
                return await self.run_case(case)

        self._log.info("run_started", cases=len(cases), max_parallel=max_parallel)
        outcomes = await asyncio.gather(*(run_single(case) for case in cases))
        summary = RunSummary(outcomes=list(outcomes))
        self._log.info(
            "run_completed",
            total=summary.total,
            passed=summary.passed,
            failed=summary.failed,
            broken=summary.broken,
        )
        return summary
