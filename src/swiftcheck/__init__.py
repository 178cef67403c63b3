"""
swiftcheck.

UI assertion polling for asynchronous front ends: heuristic element
resolution, readiness polling with backoff and data-driven case
evaluation, shipped with the Swift Translator Singlish-to-Sinhala suites.
"""

__version__ = "1.0.0"
__author__ = "Olib AI"

from swiftcheck.artifacts import ArtifactStore
from swiftcheck.cases import load_cases, load_suite, parse_cases, validate_cases
from swiftcheck.config import Settings, configure, get_settings
from swiftcheck.errors import (
    AssertionMismatchError,
    CaseDefinitionError,
    CaseSetupError,
    DriverConfigError,
    PollTimeoutError,
    SelectorNotFoundError,
    SwiftCheckError,
)
from swiftcheck.evaluator import CaseEvaluator
from swiftcheck.locators import LocatorCandidate, LocatorStrategy, SelectorResolver
from swiftcheck.models import AssertionKind, Attachment, CaseOutcome, CaseStatus, TestCase
from swiftcheck.polling import BackoffSchedule, PollResult, poll_until
from swiftcheck.runner import CaseRunner, RunSummary
from swiftcheck.site import TranslatorPage
from swiftcheck.text import WaitPredicate, build_predicate, normalize

__all__ = [
    "ArtifactStore",
    "AssertionKind",
    "AssertionMismatchError",
    "Attachment",
    "BackoffSchedule",
    "CaseDefinitionError",
    "CaseEvaluator",
    "CaseOutcome",
    "CaseRunner",
    "CaseSetupError",
    "CaseStatus",
    "DriverConfigError",
    "LocatorCandidate",
    "LocatorStrategy",
    "PollResult",
    "PollTimeoutError",
    "RunSummary",
    "SelectorNotFoundError",
    "SelectorResolver",
    "Settings",
    "SwiftCheckError",
    "TestCase",
    "TranslatorPage",
    "WaitPredicate",
    "__version__",
    "build_predicate",
    "configure",
    "get_settings",
    "load_cases",
    "load_suite",
    "normalize",
    "parse_cases",
    "poll_until",
    "validate_cases",
]
