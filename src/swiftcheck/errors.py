"""
Exception types for swiftcheck.

Every failure a case can end in has its own type so that aggregate
reporting can tell breakage (selectors, setup) apart from flakiness
(timeouts) and from genuine output mismatches.
"""

from __future__ import annotations

from collections.abc import Sequence


class SwiftCheckError(Exception):
    """Base exception for swiftcheck errors."""


class SelectorNotFoundError(SwiftCheckError):
    """Raised when no locator candidate resolves to a visible element."""

    def __init__(self, attempted: Sequence[str], target: str | None = None) -> None:
        self.attempted = list(attempted)
        self.target = target
        label = f" for {target}" if target else ""
        tried = "\n".join(f"  - {description}" for description in self.attempted) or "  (no candidates)"
        super().__init__(f"No visible element found{label}. Tried:\n{tried}")


class PollTimeoutError(SwiftCheckError):
    """Raised when a readiness predicate is never satisfied before the deadline."""

    def __init__(self, last_text: str, attempts: int, elapsed: float) -> None:
        self.last_text = last_text
        self.attempts = attempts
        self.elapsed = elapsed
        super().__init__(
            f"Predicate not satisfied after {attempts} attempts in {elapsed:.2f}s; "
            f"last observed text: {last_text!r}"
        )


class AssertionMismatchError(SwiftCheckError, AssertionError):
    """Raised when the observed text does not satisfy a case's assertion."""

    def __init__(self, case_id: str, expected: Sequence[str], actual: str, message: str) -> None:
        self.case_id = case_id
        self.expected = list(expected)
        self.actual = actual
        super().__init__(message)


class CaseSetupError(SwiftCheckError):
    """Raised when a case cannot be prepared (session, navigation, input)."""

    def __init__(self, case_id: str, stage: str, cause: BaseException | None = None) -> None:
        self.case_id = case_id
        self.stage = stage
        self.cause = cause
        detail = f": {cause}" if cause else ""
        super().__init__(f"{case_id}: setup failed during {stage}{detail}")


class CaseDefinitionError(SwiftCheckError):
    """Raised when a case table is malformed or contains duplicate ids."""

    pass


class DriverConfigError(SwiftCheckError):
    """Raised when the configured browser driver cannot be built."""

    pass
