"""
Case tables.

Built-in suites ship as YAML next to this module (``positive.yaml``,
``negative.yaml``). Any list of case mappings, or a document with a
``cases`` list, can be loaded the same way.
"""

from __future__ import annotations

from collections import Counter
from importlib import resources
from pathlib import Path
from typing import Any

import structlog
import yaml
from pydantic import ValidationError

from swiftcheck.errors import CaseDefinitionError
from swiftcheck.models import TestCase
from swiftcheck.text import WaitPredicate

logger = structlog.get_logger(__name__)

BUILTIN_SUITES = ("positive", "negative")


def parse_cases(data: Any) -> list[TestCase]:
    """
    Parse case mappings into validated TestCase models.

    Args:
        data: A list of case mappings, or a mapping with a ``cases`` list;
            suite-level ``defaults`` are merged under every case

    Raises:
        CaseDefinitionError: On malformed tables, invalid cases or
            duplicate ids
    """
    defaults: dict[str, Any] = {}
    if isinstance(data, dict):
        defaults = data.get("defaults") or {}
        data = data.get("cases")
    if not isinstance(data, list):
        raise CaseDefinitionError("Case table must be a list of cases or contain a 'cases' list")

    cases: list[TestCase] = []
    for i, entry in enumerate(data):
        if not isinstance(entry, dict):
            raise CaseDefinitionError(f"Case {i} is not a mapping")
        try:
            cases.append(TestCase.model_validate({**defaults, **entry}))
        except ValidationError as e:
            raise CaseDefinitionError(f"Case {entry.get('id', i)!s} is invalid: {e}") from e

    duplicates = [case_id for case_id, count in Counter(case.id for case in cases).items() if count > 1]
    if duplicates:
        raise CaseDefinitionError(f"Duplicate case ids: {', '.join(sorted(duplicates))}")

    return cases


def _read_yaml(text: str, source: str) -> Any:
    try:
        return yaml.safe_load(text)
    except yaml.YAMLError as e:
        raise CaseDefinitionError(f"Case table {source} is not valid YAML: {e}") from e


def load_cases(path: str | Path) -> list[TestCase]:
    """Load cases from a YAML file."""
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Case table not found: {path}")

    cases = parse_cases(_read_yaml(path.read_text(encoding="utf-8"), str(path)))
    logger.debug("cases_loaded", path=str(path), count=len(cases))
    return cases


def load_suite(name: str) -> list[TestCase]:
    """Load one of the built-in suites by name."""
    if name not in BUILTIN_SUITES:
        raise CaseDefinitionError(f"Unknown suite {name!r}; available: {', '.join(BUILTIN_SUITES)}")
    text = resources.files(__name__).joinpath(f"{name}.yaml").read_text(encoding="utf-8")
    return parse_cases(_read_yaml(text, f"{name}.yaml"))


def validate_cases(cases: list[TestCase]) -> list[str]:
    """Return warnings for cases that will probably not behave as intended (empty = all good)."""
    warnings = []

    if not cases:
        warnings.append("Case table is empty")
        return warnings

    for case in cases:
        if not case.input.strip() and case.wait_for != WaitPredicate.NON_EMPTY:
            warnings.append(f"{case.id}: empty input waits for {case.wait_for}; expect a timeout")
        if case.assertion == "equals" and len(set(case.expected_one_of or ())) != len(case.expected_one_of or ()):
            warnings.append(f"{case.id}: duplicate allowed values")
        if case.known_failure and "positive" in case.tags:
            warnings.append(f"{case.id}: known failure in a positive suite")

    return warnings
