"""
Bounded polling with a backoff schedule.

``poll_until`` knows nothing about browsers: it repeatedly awaits a
sampling coroutine, normalizes what it returns and stops as soon as the
readiness predicate holds. Exhausting the deadline is reported as
``PollTimeoutError``, never as a result.
"""

from __future__ import annotations

import asyncio
import time
from collections.abc import Awaitable, Callable, Sequence
from dataclasses import dataclass

import structlog

from swiftcheck.errors import PollTimeoutError
from swiftcheck.text import Predicate, normalize

logger = structlog.get_logger(__name__)

DEFAULT_INTERVALS: tuple[float, ...] = (0.2, 0.3, 0.5, 0.8, 1.0)
DEFAULT_DEADLINE = 10.0
# Shortest time a single sample is allowed, even at the deadline
MIN_SAMPLE_TIMEOUT = 0.1


@dataclass(frozen=True)
class BackoffSchedule:
    """Ordered sleep intervals in seconds; the last one repeats once exhausted."""

    intervals: tuple[float, ...] = DEFAULT_INTERVALS

    def __post_init__(self) -> None:
        if not self.intervals:
            raise ValueError("Backoff schedule needs at least one interval")
        if any(interval < 0 for interval in self.intervals):
            raise ValueError("Backoff intervals must be non-negative")

    @classmethod
    def of(cls, intervals: Sequence[float]) -> BackoffSchedule:
        return cls(tuple(float(interval) for interval in intervals))

    def delay_for(self, attempt: int) -> float:
        """Delay to wait after the given zero-based attempt."""
        return self.intervals[min(attempt, len(self.intervals) - 1)]


@dataclass(frozen=True)
class PollResult:
    """A sample that satisfied the readiness predicate."""

    raw_text: str
    normalized_text: str
    satisfied: bool
    elapsed: float
    attempts: int


async def poll_until(
    sample: Callable[[], Awaitable[str | None]],
    predicate: Predicate,
    deadline: float = DEFAULT_DEADLINE,
    backoff: BackoffSchedule | None = None,
    *,
    clock: Callable[[], float] = time.monotonic,
    sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
) -> PollResult:
    """
    Sample text until ``predicate`` accepts its normalized form.

    At least one sample is always taken. Sleeps never extend past the
    deadline, so the final sample happens at (or just after) it. Each
    sample is bounded by the remaining time (never less than
    ``MIN_SAMPLE_TIMEOUT``); a sample that overruns is abandoned and the
    previous text stands.

    Args:
        sample: Coroutine function returning the current raw text
        predicate: Readiness check over normalized text
        deadline: Maximum time to keep polling, in seconds
        backoff: Sleep schedule between attempts
        clock: Monotonic clock, injectable for tests
        sleep: Sleep coroutine, injectable for tests

    Returns:
        PollResult for the first satisfying sample

    Raises:
        PollTimeoutError: If the deadline elapses first; carries the last
            normalized text observed
    """
    schedule = backoff or BackoffSchedule()
    start = clock()
    attempts = 0
    raw = ""

    while True:
        budget = max(deadline - (clock() - start), MIN_SAMPLE_TIMEOUT)
        try:
            raw = await asyncio.wait_for(sample(), timeout=budget) or ""
        except TimeoutError:
            logger.debug("poll_sample_timed_out", attempt=attempts + 1, timeout=round(budget, 3))
        attempts += 1
        text = normalize(raw)
        elapsed = clock() - start

        if predicate(text):
            logger.debug("poll_satisfied", attempts=attempts, elapsed=round(elapsed, 3))
            return PollResult(
                raw_text=raw,
                normalized_text=text,
                satisfied=True,
                elapsed=elapsed,
                attempts=attempts,
            )

        if elapsed >= deadline:
            logger.debug("poll_timed_out", attempts=attempts, elapsed=round(elapsed, 3), last_text=text)
            raise PollTimeoutError(last_text=text, attempts=attempts, elapsed=elapsed)

        delay = min(schedule.delay_for(attempts - 1), deadline - elapsed)
        await sleep(delay)
