"""
Text normalization and readiness predicates.

Rendered output can carry zero-width joiners, bidi marks, stray control
characters, decomposed code points and layout whitespace. Every
comparison in swiftcheck goes through ``normalize`` first, and readiness
is decided by small pure predicates over normalized text.
"""

from __future__ import annotations

import re
import unicodedata
from collections.abc import Callable
from dataclasses import dataclass
from enum import StrEnum

# Format (zero-width, bidi marks, soft hyphen, BOM) and control characters.
# Whitespace controls are kept for the whitespace pass.
_INVISIBLE_CATEGORIES = frozenset({"Cf", "Cc"})
_WHITESPACE_RE = re.compile(r"\s+")
_DIGIT_RE = re.compile(r"\d")


def normalize(text: str | None) -> str:
    """
    Canonicalize text for comparison.

    Invisible characters are removed before NFC composition so that the
    result is stable under repeated application.

    Args:
        text: Raw text as read from the page (None is treated as empty)

    Returns:
        NFC text without invisible characters, whitespace runs collapsed
        to a single space, trimmed
    """
    if not text:
        return ""
    stripped = "".join(
        char for char in text if char.isspace() or unicodedata.category(char) not in _INVISIBLE_CATEGORIES
    )
    composed = unicodedata.normalize("NFC", stripped)
    return _WHITESPACE_RE.sub(" ", composed).strip()


def texts_equal(left: str | None, right: str | None) -> bool:
    """Compare two texts after normalization."""
    return normalize(left) == normalize(right)


@dataclass(frozen=True)
class ScriptBlock:
    """A contiguous Unicode block used to detect rendered target-script output."""

    name: str
    first: int
    last: int

    def contains(self, char: str) -> bool:
        return self.first <= ord(char) <= self.last

    def found_in(self, text: str) -> bool:
        return any(self.contains(char) for char in text)


SINHALA = ScriptBlock(name="sinhala", first=0x0D80, last=0x0DFF)

SCRIPT_BLOCKS: dict[str, ScriptBlock] = {
    SINHALA.name: SINHALA,
}


class WaitPredicate(StrEnum):
    """Built-in readiness predicates."""

    TARGET_SCRIPT = "target_script"
    TARGET_SCRIPT_OR_DIGITS = "target_script_or_digits"
    NON_EMPTY = "non_empty"


Predicate = Callable[[str], bool]
PredicateFactory = Callable[[ScriptBlock], Predicate]


def _target_script(script: ScriptBlock) -> Predicate:
    return script.found_in


def _target_script_or_digits(script: ScriptBlock) -> Predicate:
    def check(text: str) -> bool:
        return script.found_in(text) or bool(_DIGIT_RE.search(text))

    return check


def _non_empty(script: ScriptBlock) -> Predicate:
    return lambda text: len(text) > 0


_PREDICATES: dict[str, PredicateFactory] = {
    WaitPredicate.TARGET_SCRIPT: _target_script,
    WaitPredicate.TARGET_SCRIPT_OR_DIGITS: _target_script_or_digits,
    WaitPredicate.NON_EMPTY: _non_empty,
}


def register_predicate(name: str, factory: PredicateFactory) -> None:
    """
    Register an additional readiness predicate.

    Args:
        name: Name used in case tables (``wait_for``)
        factory: Callable taking the target ScriptBlock and returning a
            predicate over normalized text

    Raises:
        ValueError: If the name is already registered
    """
    if name in _PREDICATES:
        raise ValueError(f"Predicate already registered: {name}")
    _PREDICATES[name] = factory


def available_predicates() -> list[str]:
    return sorted(_PREDICATES)


def build_predicate(kind: str, script: ScriptBlock = SINHALA) -> Predicate:
    """
    Build the readiness predicate registered under ``kind``.

    Raises:
        KeyError: If no predicate is registered under that name
    """
    try:
        factory = _PREDICATES[kind]
    except KeyError:
        raise KeyError(
            f"Unknown wait predicate {kind!r}; available: {', '.join(available_predicates())}"
        ) from None
    return factory(script)
