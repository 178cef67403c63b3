"""
Case evaluation.

Decides whether normalized output satisfies a case's assertion and, on
failure, builds a diagnostic that lists every acceptable value next to
what was actually observed.
"""

from __future__ import annotations

from collections.abc import Iterable

import structlog

from swiftcheck.errors import AssertionMismatchError
from swiftcheck.models import AssertionKind, Attachment, CaseOutcome, CaseStatus, TestCase
from swiftcheck.text import normalize

logger = structlog.get_logger(__name__)


def _bullets(values: Iterable[str]) -> str:
    return "\n".join(f"  - {value}" for value in values)


class CaseEvaluator:
    """Applies equals / contains / regex assertions to observed text."""

    def __init__(self) -> None:
        self._log = logger.bind(component="case_evaluator")

    def matches(self, case: TestCase, actual: str) -> bool:
        """Pure pass/fail decision for ``actual`` (normalized before comparison)."""
        observed = normalize(actual)
        match case.assertion:
            case AssertionKind.EQUALS:
                return any(normalize(value) == observed for value in case.expected_one_of or ())
            case AssertionKind.CONTAINS:
                return any(normalize(needle) in observed for needle in case.contains_any or ())
            case AssertionKind.REGEX:
                return case.compiled_pattern.search(observed) is not None

    def describe_mismatch(self, case: TestCase, actual: str) -> str:
        observed = normalize(actual)
        match case.assertion:
            case AssertionKind.EQUALS:
                header = "Expected one of:"
                expected = [normalize(value) for value in case.expected_one_of or ()]
            case AssertionKind.CONTAINS:
                header = "Expected to contain any of:"
                expected = [normalize(needle) for needle in case.contains_any or ()]
            case AssertionKind.REGEX:
                flags = ", ".join(case.regex_flags) or "none"
                header = f"Expected to match (flags: {flags}):"
                expected = [case.pattern or ""]
        return f"{case.id}\n{header}\n{_bullets(expected)}\nBut got:\n  - {observed}"

    def evaluate(
        self,
        case: TestCase,
        actual: str,
        attachments: Iterable[Attachment] = (),
        duration_ms: int = 0,
    ) -> CaseOutcome:
        """
        Evaluate ``case`` against the observed output.

        Args:
            case: Case under evaluation
            actual: Observed output (normalized again here)
            attachments: Diagnostics already captured for the case
            duration_ms: Time spent executing the case

        Returns:
            CaseOutcome with status PASSED or MISMATCH; a mismatch carries
            an AssertionMismatchError with the expected/actual diff
        """
        observed = normalize(actual)
        attached = tuple(attachments)

        if self.matches(case, observed):
            self._log.debug("case_passed", case=case.id)
            return CaseOutcome(
                case_id=case.id,
                status=CaseStatus.PASSED,
                actual_text=observed,
                attachments=attached,
                duration_ms=duration_ms,
            )

        message = self.describe_mismatch(case, observed)
        self._log.info("case_mismatch", case=case.id, actual=observed, expected=case.expected)
        return CaseOutcome(
            case_id=case.id,
            status=CaseStatus.MISMATCH,
            actual_text=observed,
            message=message,
            attachments=attached,
            duration_ms=duration_ms,
            error=AssertionMismatchError(case.id, case.expected, observed, message),
        )
