"""
Case and outcome models.

Test cases are loaded from tables and validated with pydantic; outcomes
are plain frozen dataclasses produced once per case execution.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from enum import StrEnum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from swiftcheck.errors import (
    AssertionMismatchError,
    CaseSetupError,
    PollTimeoutError,
    SelectorNotFoundError,
)
from swiftcheck.text import WaitPredicate, available_predicates


class AssertionKind(StrEnum):
    """How the observed text is compared with the expectation."""

    EQUALS = "equals"
    CONTAINS = "contains"
    REGEX = "regex"


class RegexFlag(StrEnum):
    """Regex flags a case may opt into; nothing is implied."""

    DOTALL = "DOTALL"
    MULTILINE = "MULTILINE"
    IGNORECASE = "IGNORECASE"

    @property
    def flag(self) -> re.RegexFlag:
        return re.RegexFlag[self.value]


class TestCase(BaseModel):
    """A single data-driven translation case."""

    __test__ = False  # Not a pytest test class

    model_config = ConfigDict(frozen=True, extra="forbid")

    id: str = Field(min_length=1, description="Unique case identifier")
    input: str = Field(description="Text typed into the input field")
    assertion: AssertionKind = Field(description="Assertion applied to the output")
    title: str | None = Field(default=None, description="Short human-readable summary")
    expected_one_of: tuple[str, ...] | None = Field(
        default=None, description="Allowed outputs for equals assertions"
    )
    contains_any: tuple[str, ...] | None = Field(
        default=None, description="Needles for contains assertions"
    )
    pattern: str | None = Field(default=None, description="Pattern for regex assertions")
    regex_flags: tuple[RegexFlag, ...] = Field(default=(), description="Explicit regex flags")
    wait_for: str = Field(
        default=WaitPredicate.TARGET_SCRIPT,
        description="Readiness predicate to wait for before evaluating",
    )
    known_failure: bool = Field(
        default=False,
        description="Encodes ideal behaviour the service does not implement yet",
    )
    tags: tuple[str, ...] = Field(default=(), description="Free-form tags")

    @field_validator("wait_for")
    @classmethod
    def validate_wait_for(cls, v: str) -> str:
        """Ensure the predicate is registered."""
        if v not in available_predicates():
            raise ValueError(f"Unknown wait predicate {v!r}; available: {', '.join(available_predicates())}")
        return v

    @field_validator("pattern")
    @classmethod
    def validate_pattern(cls, v: str | None) -> str | None:
        """Ensure the pattern compiles."""
        if v is not None:
            try:
                re.compile(v)
            except re.error as e:
                raise ValueError(f"Invalid regex pattern: {e}") from e
        return v

    @model_validator(mode="after")
    def check_single_assertion(self) -> TestCase:
        """Exactly the expectation field of the active assertion kind is set."""
        fields = {
            AssertionKind.EQUALS: self.expected_one_of,
            AssertionKind.CONTAINS: self.contains_any,
            AssertionKind.REGEX: self.pattern,
        }
        active = fields[self.assertion]
        if not active:
            raise ValueError(f"{self.id}: {self.assertion} assertion requires a non-empty expectation")
        stray = [kind.value for kind, value in fields.items() if kind != self.assertion and value is not None]
        if stray:
            raise ValueError(f"{self.id}: expectation fields for {', '.join(stray)} set on a {self.assertion} case")
        if self.regex_flags and self.assertion != AssertionKind.REGEX:
            raise ValueError(f"{self.id}: regex_flags only apply to regex assertions")
        return self

    @property
    def expected(self) -> list[str]:
        """Expectation values of the active assertion, for diagnostics."""
        match self.assertion:
            case AssertionKind.EQUALS:
                return list(self.expected_one_of or ())
            case AssertionKind.CONTAINS:
                return list(self.contains_any or ())
            case AssertionKind.REGEX:
                return [self.pattern or ""]

    @property
    def compiled_pattern(self) -> re.Pattern[str]:
        flags = re.RegexFlag(0)
        for regex_flag in self.regex_flags:
            flags |= regex_flag.flag
        return re.compile(self.pattern or "", flags)

    @property
    def label(self) -> str:
        return f"{self.id}: {self.title}" if self.title else self.id


class CaseStatus(StrEnum):
    """Terminal status of a case execution."""

    PASSED = "passed"
    MISMATCH = "mismatch"
    TIMEOUT = "timeout"
    SELECTOR_NOT_FOUND = "selector_not_found"
    SETUP_ERROR = "setup_error"

    @classmethod
    def for_error(cls, error: BaseException) -> CaseStatus:
        match error:
            case AssertionMismatchError():
                return cls.MISMATCH
            case PollTimeoutError():
                return cls.TIMEOUT
            case SelectorNotFoundError():
                return cls.SELECTOR_NOT_FOUND
            case CaseSetupError():
                return cls.SETUP_ERROR
            case _:
                raise TypeError(f"No case status for {type(error).__name__}")


@dataclass(frozen=True)
class Attachment:
    """A named diagnostic blob attached to a case report."""

    name: str
    content: bytes
    content_type: str = "text/plain"

    @classmethod
    def text(cls, name: str, body: str) -> Attachment:
        return cls(name=name, content=body.encode("utf-8"), content_type="text/plain")

    @classmethod
    def png(cls, name: str, data: bytes) -> Attachment:
        return cls(name=name, content=data, content_type="image/png")


@dataclass(frozen=True)
class CaseOutcome:
    """Result of executing one case."""

    case_id: str
    status: CaseStatus
    actual_text: str
    message: str = ""
    attachments: tuple[Attachment, ...] = ()
    duration_ms: int = 0
    error: BaseException | None = field(default=None, compare=False)

    @property
    def passed(self) -> bool:
        return self.status == CaseStatus.PASSED

    def raise_for_status(self) -> None:
        """Re-raise the error that ended the case, if any."""
        if self.error is not None:
            raise self.error
        if not self.passed:
            raise AssertionError(self.message or f"{self.case_id}: {self.status}")

    def to_dict(self) -> dict[str, Any]:
        return {
            "case_id": self.case_id,
            "status": str(self.status),
            "passed": self.passed,
            "actual_text": self.actual_text,
            "message": self.message,
            "duration_ms": self.duration_ms,
            "attachments": [attachment.name for attachment in self.attachments],
        }
