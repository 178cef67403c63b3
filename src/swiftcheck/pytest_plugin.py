"""
Pytest integration.

Enable it from a conftest with ``pytest_plugins = ["swiftcheck.pytest_plugin"]``.

Live tests are marked ``e2e`` and only run with ``--run-e2e``. Cases with
``known_failure`` are collected as non-strict xfails, and every
attachment a case produces is written to the artifact directory and
recorded in the test report's ``user_properties``.
"""

from __future__ import annotations

import asyncio
from collections.abc import Callable, Iterable

import pytest

from swiftcheck.artifacts import ArtifactStore
from swiftcheck.config import Settings, configure, get_settings
from swiftcheck.drivers import open_driver
from swiftcheck.logs import configure_logging
from swiftcheck.models import Attachment, CaseOutcome, TestCase
from swiftcheck.runner import CaseRunner, RunSummary

_outcomes_key = pytest.StashKey[list[CaseOutcome]]()


def pytest_addoption(parser: pytest.Parser) -> None:
    group = parser.getgroup("swiftcheck", "translator UI checks")
    group.addoption(
        "--run-e2e",
        action="store_true",
        default=False,
        help="Run live end-to-end tests against the configured site",
    )
    group.addoption("--site-url", default=None, help="Translator page under test")
    group.addoption(
        "--driver",
        default=None,
        choices=["playwright", "owl"],
        help="Browser driver adapter",
    )
    group.addoption("--swiftcheck-log-level", default="WARNING", help="structlog level for swiftcheck")


def pytest_configure(config: pytest.Config) -> None:
    config.addinivalue_line("markers", "e2e: live end-to-end test against the translator site")
    configure_logging(config.getoption("--swiftcheck-log-level"))
    config.stash[_outcomes_key] = []
    if config.getoption("--run-e2e"):
        configure(
            site_url=config.getoption("--site-url"),
            driver=config.getoption("--driver"),
        )


def pytest_collection_modifyitems(config: pytest.Config, items: list[pytest.Item]) -> None:
    if config.getoption("--run-e2e"):
        return
    skip_e2e = pytest.mark.skip(reason="live test; use --run-e2e to run")
    for item in items:
        if "e2e" in item.keywords:
            item.add_marker(skip_e2e)


def pytest_sessionfinish(session: pytest.Session, exitstatus: int) -> None:
    outcomes = session.config.stash.get(_outcomes_key, [])
    if outcomes:
        ArtifactStore(get_settings().artifact_dir).write_summary(RunSummary(outcomes=list(outcomes)))


def case_params(cases: Iterable[TestCase]) -> list:
    """Turn cases into ``pytest.param`` entries, known failures as non-strict xfail."""
    params = []
    for case in cases:
        marks = []
        if case.known_failure:
            marks.append(pytest.mark.xfail(reason=f"{case.id}: ideal behaviour not implemented", strict=False))
        params.append(pytest.param(case, id=case.id, marks=marks))
    return params


@pytest.fixture(scope="session")
def swiftcheck_settings() -> Settings:
    return get_settings()


@pytest.fixture(scope="session")
def artifact_store(swiftcheck_settings: Settings) -> ArtifactStore:
    return ArtifactStore(swiftcheck_settings.artifact_dir)


@pytest.fixture
def run_translation_case(
    request: pytest.FixtureRequest,
    swiftcheck_settings: Settings,
    artifact_store: ArtifactStore,
) -> Callable[[TestCase], CaseOutcome]:
    """
    Run one case against the live site.

    Attachments are saved as they are produced, so they exist even when
    the case crashes; their paths end up in the report.
    """

    def record(case_id: str, attachment: Attachment) -> None:
        path = artifact_store.save(case_id, attachment)
        request.node.user_properties.append((attachment.name, str(path)))

    async def run(case: TestCase) -> CaseOutcome:
        async with open_driver(swiftcheck_settings) as driver:
            runner = CaseRunner.from_settings(driver, swiftcheck_settings, on_attachment=record)
            return await runner.run_case(case)

    def execute(case: TestCase) -> CaseOutcome:
        outcome = asyncio.run(run(case))
        request.config.stash[_outcomes_key].append(outcome)
        return outcome

    return execute


@pytest.fixture
def check_input_editable(swiftcheck_settings: Settings) -> Callable[[str], bool]:
    """Open the live site and check the input box round-trips ``probe``."""

    async def run(probe: str) -> bool:
        async with open_driver(swiftcheck_settings) as driver:
            return await CaseRunner.from_settings(driver, swiftcheck_settings).check_input_editable(probe)

    def execute(probe: str = "Test UI") -> bool:
        return asyncio.run(run(probe))

    return execute
