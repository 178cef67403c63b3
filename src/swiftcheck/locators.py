"""
Heuristic element resolution.

A target element is described by an ordered list of locator candidates,
most stable first (test ids, semantic roles, placeholders) and
structural, position-based selectors last. The resolver returns the
first candidate that currently yields a visible element, so call sites
survive UI redesigns as long as one candidate still matches.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
from enum import StrEnum
from typing import TYPE_CHECKING, Any

import structlog

from swiftcheck.errors import SelectorNotFoundError

if TYPE_CHECKING:
    from swiftcheck.driver import BrowserSession

logger = structlog.get_logger(__name__)


class LocatorStrategy(StrEnum):
    """How a candidate's value is interpreted by the driver."""

    CSS = "css"  # Raw selector string, including engine chains ("text=... >> xpath=..")
    PLACEHOLDER = "placeholder"
    ROLE = "role"  # value is the ARIA role, name filters on the accessible name
    TEXT = "text"
    TEST_ID = "test_id"


@dataclass(frozen=True)
class LocatorCandidate:
    """Declarative description of one way to find an element."""

    strategy: LocatorStrategy
    value: str
    name: str | None = None
    has_text: str | None = None
    regex: bool = False
    nth: int = 0

    def __post_init__(self) -> None:
        if self.nth < 0:
            raise ValueError("nth must be >= 0")

    @property
    def description(self) -> str:
        parts = [f"{self.strategy}={self.value!r}"]
        if self.name is not None:
            parts.append(f"name={self.name!r}")
        if self.has_text is not None:
            parts.append(f"has_text={self.has_text!r}")
        if self.regex:
            parts.append("regex")
        if self.nth:
            parts.append(f"nth={self.nth}")
        return " ".join(parts)

    # Shorthand constructors keep candidate tables readable

    @classmethod
    def css(cls, selector: str, nth: int = 0, has_text: str | None = None, regex: bool = False) -> LocatorCandidate:
        return cls(LocatorStrategy.CSS, selector, has_text=has_text, regex=regex, nth=nth)

    @classmethod
    def placeholder(cls, text: str, regex: bool = False) -> LocatorCandidate:
        return cls(LocatorStrategy.PLACEHOLDER, text, regex=regex)

    @classmethod
    def role(cls, role: str, name: str | None = None, regex: bool = False) -> LocatorCandidate:
        return cls(LocatorStrategy.ROLE, role, name=name, regex=regex)

    @classmethod
    def text(cls, text: str, regex: bool = False) -> LocatorCandidate:
        return cls(LocatorStrategy.TEXT, text, regex=regex)

    @classmethod
    def test_id(cls, test_id: str) -> LocatorCandidate:
        return cls(LocatorStrategy.TEST_ID, test_id)


@dataclass(frozen=True)
class ResolvedElement:
    """A visible element together with the candidate that produced it."""

    element: Any
    candidate: LocatorCandidate
    position: int


class SelectorResolver:
    """Resolves ordered locator candidates against a live session."""

    def __init__(self, session: BrowserSession) -> None:
        self._session = session
        self._log = logger.bind(component="selector_resolver")

    async def resolve(
        self,
        candidates: Sequence[LocatorCandidate],
        target: str | None = None,
    ) -> ResolvedElement:
        """
        Return the first candidate's match that is currently visible.

        Candidates with too few matches, or whose chosen match is hidden,
        are skipped. A driver error while probing a candidate counts as no
        match for that candidate.

        Args:
            candidates: Locator candidates in priority order
            target: Name of the element being resolved (for diagnostics)

        Raises:
            SelectorNotFoundError: If no candidate resolves; lists every
                candidate that was attempted
        """
        attempted: list[str] = []

        for position, candidate in enumerate(candidates):
            attempted.append(candidate.description)
            try:
                matches = await self._session.locate(candidate)
                if len(matches) <= candidate.nth:
                    continue
                element = matches[candidate.nth]
                if not await self._session.is_visible(element):
                    self._log.debug("candidate_hidden", target=target, candidate=candidate.description)
                    continue
            except Exception as e:
                self._log.debug(
                    "candidate_probe_failed",
                    target=target,
                    candidate=candidate.description,
                    error=str(e),
                )
                continue

            if position > 0:
                self._log.info(
                    "resolved_with_fallback",
                    target=target,
                    candidate=candidate.description,
                    position=position,
                )
            return ResolvedElement(element=element, candidate=candidate, position=position)

        self._log.warning("selector_not_found", target=target, attempted=len(attempted))
        raise SelectorNotFoundError(attempted, target=target)
