"""
Owl Browser SDK v2 adapter for the browser collaborator protocol.

SDK v2 Notes:
- Every operation is async and takes a context_id
- A session is one context: create_context -> use -> close_context
- The SDK addresses elements by selector only, so ``locate`` runs the
  candidate query in the page and tags each match with a unique
  ``data-swiftcheck-ref`` attribute; element handles are the CSS
  selectors for those tags
"""

from __future__ import annotations

import base64
import json
import re
import uuid
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from typing import TYPE_CHECKING, Any

import structlog

from swiftcheck.errors import DriverConfigError
from swiftcheck.locators import LocatorCandidate, LocatorStrategy

if TYPE_CHECKING:
    from owl_browser import OwlBrowser

logger = structlog.get_logger(__name__)

REF_ATTRIBUTE = "data-swiftcheck-ref"
MAX_MATCHES = 20

_ENGINE_CHAIN_RE = re.compile(r">>|^\s*(text|xpath|css|id|nth|internal:[\w-]+)=")

# Implicit ARIA roles for the elements the translator pages use
IMPLICIT_ROLES: dict[str, str] = {
    "button": "button, input[type='submit'], input[type='button']",
    "textbox": "textarea, input:not([type]), input[type='text']",
    "link": "a[href]",
    "heading": "h1, h2, h3, h4, h5, h6",
    "region": "section[aria-label], section[aria-labelledby]",
}

_LOCATE_SCRIPT = """
(() => {
    const spec = %s;
    const matcher = (value) => {
        if (value === null) return () => true;
        if (spec.regex) {
            const re = new RegExp(value, 'i');
            return (s) => re.test(s || '');
        }
        const needle = value.toLowerCase();
        return (s) => (s || '').toLowerCase().includes(needle);
    };
    let nodes = [];
    switch (spec.strategy) {
        case 'css':
            nodes = Array.from(document.querySelectorAll(spec.value));
            break;
        case 'placeholder': {
            const m = matcher(spec.value);
            nodes = Array.from(document.querySelectorAll('[placeholder]'))
                .filter(el => m(el.getAttribute('placeholder')));
            break;
        }
        case 'test_id':
            nodes = Array.from(document.querySelectorAll('[data-testid]'))
                .filter(el => el.getAttribute('data-testid') === spec.value);
            break;
        case 'role': {
            const selector = `[role="${spec.value}"]` + (spec.implicit ? `, ${spec.implicit}` : '');
            const m = matcher(spec.name);
            nodes = Array.from(document.querySelectorAll(selector))
                .filter(el => m(el.getAttribute('aria-label') || el.innerText || el.value));
            break;
        }
        case 'text': {
            const m = matcher(spec.value);
            nodes = Array.from(document.querySelectorAll('body *'))
                .filter(el => m(el.innerText) && !Array.from(el.children).some(c => m(c.innerText)));
            break;
        }
    }
    if (spec.has_text !== null) {
        const m = matcher(spec.has_text);
        nodes = nodes.filter(el => m(el.innerText));
    }
    nodes = nodes.slice(0, spec.limit);
    nodes.forEach((el, i) => el.setAttribute(spec.attribute, `${spec.ref}-${i}`));
    return nodes.length;
})()
"""

_READ_SCRIPT = """
(() => {
    const el = document.querySelector(%s);
    if (!el) return '';
    if (['INPUT', 'TEXTAREA', 'SELECT'].includes(el.tagName)) return el.value;
    return el.innerText;
})()
"""

_CLEAR_SCRIPT = """
(() => {
    const el = document.querySelector(%s);
    if (!el) return false;
    el.focus();
    el.value = '';
    el.dispatchEvent(new Event('input', { bubbles: true }));
    return true;
})()
"""


def _result(response: Any, key: str = "result", default: Any = None) -> Any:
    return response.get(key, default) if isinstance(response, dict) else response


class OwlSession:
    """BrowserSession bound to one Owl Browser context."""

    def __init__(self, browser: OwlBrowser, context_id: str) -> None:
        self._browser = browser
        self._context_id = context_id
        self._log = logger.bind(component="owl_session", context_id=context_id)

    @property
    def context_id(self) -> str:
        return self._context_id

    async def _evaluate(self, expression: str) -> Any:
        response = await self._browser.evaluate(context_id=self._context_id, expression=expression)
        return _result(response)

    async def navigate(self, url: str, *, wait_until: str = "domcontentloaded", timeout_ms: int = 30000) -> None:
        await self._browser.navigate(
            context_id=self._context_id,
            url=url,
            wait_until=wait_until,
            timeout=timeout_ms,
        )

    async def locate(self, candidate: LocatorCandidate) -> list[str]:
        if candidate.strategy == LocatorStrategy.CSS and _ENGINE_CHAIN_RE.search(candidate.value):
            # Engine-chained selectors ("text=... >> xpath=..") only exist in Playwright
            raise ValueError(f"Selector engine chain not supported by Owl Browser: {candidate.value}")

        ref = uuid.uuid4().hex[:12]
        spec = {
            "strategy": str(candidate.strategy),
            "value": candidate.value,
            "name": candidate.name,
            "has_text": candidate.has_text,
            "regex": candidate.regex,
            "implicit": IMPLICIT_ROLES.get(candidate.value, "") if candidate.strategy == LocatorStrategy.ROLE else "",
            "limit": MAX_MATCHES,
            "attribute": REF_ATTRIBUTE,
            "ref": ref,
        }
        count = await self._evaluate(_LOCATE_SCRIPT % json.dumps(spec))
        return [f'[{REF_ATTRIBUTE}="{ref}-{i}"]' for i in range(int(count or 0))]

    async def is_visible(self, element: str) -> bool:
        response = await self._browser.is_visible(context_id=self._context_id, selector=element)
        return bool(_result(response, "visible", False))

    async def fill(self, element: str, text: str) -> None:
        await self._evaluate(_CLEAR_SCRIPT % json.dumps(element))
        if text:
            await self._browser.type_(context_id=self._context_id, selector=element, text=text)

    async def type_keys(self, element: str, text: str, *, delay_ms: int = 0) -> None:
        # The SDK types the whole string in one call; per-key delay is not configurable
        await self._browser.type_(context_id=self._context_id, selector=element, text=text)

    async def press(self, element: str, key: str) -> None:
        await self._browser.press_key(context_id=self._context_id, key=key)

    async def click(self, element: str) -> None:
        await self._browser.click(context_id=self._context_id, selector=element)

    async def read_text(self, element: str) -> str:
        return str(await self._evaluate(_READ_SCRIPT % json.dumps(element)) or "")

    async def screenshot(self, *, full_page: bool = True) -> bytes:
        response = await self._browser.screenshot(context_id=self._context_id, full_page=full_page)
        data = _result(response, "data", b"")
        if isinstance(data, bytes):
            return data
        return base64.b64decode(data or "")


class OwlDriver:
    """BrowserDriver creating one Owl Browser context per session."""

    name = "owl"

    def __init__(self, browser: OwlBrowser) -> None:
        self._browser = browser
        self._log = logger.bind(component="owl_driver")

    @asynccontextmanager
    async def session(self) -> AsyncIterator[OwlSession]:
        ctx = await self._browser.create_context()
        context_id = ctx["context_id"]
        self._log.debug("context_created", context_id=context_id)
        try:
            yield OwlSession(self._browser, context_id)
        finally:
            try:
                await self._browser.close_context(context_id=context_id)
            except Exception as e:
                self._log.warning("context_close_failed", context_id=context_id, error=str(e))


@asynccontextmanager
async def connect_owl(endpoint: str, token: str) -> AsyncIterator[OwlDriver]:
    """Connect to a remote Owl Browser and yield a driver."""
    if not endpoint or not token:
        raise DriverConfigError(
            "OWL_ENDPOINT and OWL_TOKEN must be set (or SWIFTCHECK_OWL_ENDPOINT / SWIFTCHECK_OWL_TOKEN)"
        )

    from owl_browser import OwlBrowser, RemoteConfig

    logger.info("using_remote_browser", endpoint=endpoint)
    async with OwlBrowser(RemoteConfig(url=endpoint, token=token)) as browser:
        yield OwlDriver(browser)
