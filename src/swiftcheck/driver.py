"""
Browser collaborator protocol.

swiftcheck never talks to an automation library directly. Adapters in
``swiftcheck.drivers`` implement these protocols on top of Playwright or
the Owl Browser SDK; tests implement them with scripted fakes.

Element handles are opaque to the core: whatever ``locate`` returns is
passed back unchanged to the other primitives.
"""

from __future__ import annotations

from contextlib import AbstractAsyncContextManager
from typing import TYPE_CHECKING, Any, Protocol, runtime_checkable

if TYPE_CHECKING:
    from swiftcheck.locators import LocatorCandidate


@runtime_checkable
class BrowserSession(Protocol):
    """One isolated page/context, scoped to a single case."""

    async def navigate(self, url: str, *, wait_until: str = "domcontentloaded", timeout_ms: int = 30000) -> None: ...

    async def locate(self, candidate: LocatorCandidate) -> list[Any]: ...

    async def is_visible(self, element: Any) -> bool: ...

    async def fill(self, element: Any, text: str) -> None: ...

    async def type_keys(self, element: Any, text: str, *, delay_ms: int = 0) -> None: ...

    async def press(self, element: Any, key: str) -> None: ...

    async def click(self, element: Any) -> None: ...

    async def read_text(self, element: Any) -> str: ...

    async def screenshot(self, *, full_page: bool = True) -> bytes: ...


class BrowserDriver(Protocol):
    """Factory for isolated sessions; closing the session releases everything it opened."""

    name: str

    def session(self) -> AbstractAsyncContextManager[BrowserSession]: ...
