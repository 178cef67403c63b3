"""Tests for locator candidates and the selector resolver."""

from __future__ import annotations

import pytest

from swiftcheck.errors import SelectorNotFoundError
from swiftcheck.locators import LocatorCandidate, LocatorStrategy, SelectorResolver


class TestLocatorCandidate:
    """Test LocatorCandidate."""

    def test_shorthand_constructors(self) -> None:
        """Shorthands set the strategy and filters."""
        role = LocatorCandidate.role("button", name="translate|convert", regex=True)
        assert role.strategy == LocatorStrategy.ROLE
        assert role.value == "button"
        assert role.name == "translate|convert"
        assert role.regex is True

        css = LocatorCandidate.css("div", nth=1, has_text="Sinhala")
        assert css.strategy == LocatorStrategy.CSS
        assert css.nth == 1
        assert css.has_text == "Sinhala"

        assert LocatorCandidate.test_id("singlish-input").strategy == LocatorStrategy.TEST_ID
        assert LocatorCandidate.placeholder("singlish").strategy == LocatorStrategy.PLACEHOLDER
        assert LocatorCandidate.text("Sinhala").strategy == LocatorStrategy.TEXT

    def test_description(self) -> None:
        """Descriptions name the strategy, value and every filter."""
        candidate = LocatorCandidate.css("button", has_text="translate", regex=True, nth=2)
        assert candidate.description == "css='button' has_text='translate' regex nth=2"

    def test_negative_nth_rejected(self) -> None:
        """nth must be non-negative."""
        with pytest.raises(ValueError):
            LocatorCandidate.css("div", nth=-1)


class TestSelectorResolver:
    """Test SelectorResolver.resolve()."""

    @pytest.mark.asyncio
    async def test_first_visible_candidate_wins(self, make_session) -> None:
        """The earliest candidate with a visible match is returned."""
        session = make_session(matches={"#a": ["a1"], "#b": ["b1"]})
        resolved = await SelectorResolver(session).resolve(
            [LocatorCandidate.css("#a"), LocatorCandidate.css("#b")]
        )

        assert resolved.element == "a1"
        assert resolved.position == 0

    @pytest.mark.asyncio
    async def test_falls_back_when_first_matches_nothing(self, make_session) -> None:
        """candidate[0] matches nothing, candidate[1] is visible: candidate[1]'s match."""
        session = make_session(matches={"#b": ["b1"]})
        candidates = [LocatorCandidate.css("#a"), LocatorCandidate.css("#b")]

        resolved = await SelectorResolver(session).resolve(candidates)

        assert resolved.element == "b1"
        assert resolved.candidate == candidates[1]
        assert resolved.position == 1

    @pytest.mark.asyncio
    async def test_hidden_match_skipped(self, make_session) -> None:
        """A candidate whose match is hidden does not resolve."""
        session = make_session(matches={"#a": ["a1"], "#b": ["b1"]}, hidden={"a1"})
        resolved = await SelectorResolver(session).resolve(
            [LocatorCandidate.css("#a"), LocatorCandidate.css("#b")]
        )

        assert resolved.element == "b1"

    @pytest.mark.asyncio
    async def test_nth_match(self, make_session) -> None:
        """The candidate's nth match is used; too few matches means no match."""
        session = make_session(matches={"div": ["header", "output"], "#one": ["only"]})
        resolver = SelectorResolver(session)

        resolved = await resolver.resolve([LocatorCandidate.css("#one", nth=1), LocatorCandidate.css("div", nth=1)])

        assert resolved.element == "output"
        assert resolved.position == 1

    @pytest.mark.asyncio
    async def test_probe_error_counts_as_no_match(self, make_session) -> None:
        """A driver error on one candidate moves on to the next."""
        session = make_session(
            matches={"#b": ["b1"]},
            errors={"text=Sinhala >> xpath=..": ValueError("unsupported")},
        )
        resolved = await SelectorResolver(session).resolve(
            [LocatorCandidate.css("text=Sinhala >> xpath=.."), LocatorCandidate.css("#b")]
        )

        assert resolved.element == "b1"

    @pytest.mark.asyncio
    async def test_not_found_lists_attempts(self, make_session) -> None:
        """When nothing resolves, the error lists every candidate in order."""
        session = make_session(matches={"#b": ["b1"]}, hidden={"b1"})
        candidates = [LocatorCandidate.test_id("out"), LocatorCandidate.css("#b")]

        with pytest.raises(SelectorNotFoundError) as exc_info:
            await SelectorResolver(session).resolve(candidates, target="sinhala output")

        assert exc_info.value.attempted == [c.description for c in candidates]
        assert exc_info.value.target == "sinhala output"
        assert "sinhala output" in str(exc_info.value)
        assert "css='#b'" in str(exc_info.value)

    @pytest.mark.asyncio
    async def test_empty_candidates(self, make_session) -> None:
        """No candidates at all is a resolution failure."""
        with pytest.raises(SelectorNotFoundError) as exc_info:
            await SelectorResolver(make_session()).resolve([])

        assert exc_info.value.attempted == []
