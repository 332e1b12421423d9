# tests/test_locators.py
"""
Tests for locator parsing and fallback resolution.
"""

import pytest

from webauto.exceptions import InvalidLocatorError
from webauto.locators import (CLASS_NAME, CSS, ID, NAME, XPATH, Locator,
                              LocatorSet, as_locator_set, normalize_strategy)

from conftest import FakeElement


class TestLocatorParse:
    """Selector strings map onto strategies."""

    @pytest.mark.parametrize(
        "selector, strategy, query",
        [
            ("#login", ID, "login"),
            (".btn-primary", CLASS_NAME, "btn-primary"),
            ("input[name='q']", NAME, "q"),
            ("//a[text()='Log in']", XPATH, "//a[text()='Log in']"),
            ("./span", XPATH, "./span"),
            ("(//li)[2]", XPATH, "(//li)[2]"),
            ("div.card > a", CSS, "div.card > a"),
            ("#main .item", CSS, "#main .item"),
            ("xpath=//div", XPATH, "//div"),
            ("link=Sign out", "link text", "Sign out"),
            ("css=#a.b", CSS, "#a.b"),
        ],
    )
    def test_parse(self, selector, strategy, query):
        locator = Locator.parse(selector)
        assert locator.strategy == strategy
        assert locator.query == query

    def test_parse_strips_whitespace(self):
        assert Locator.parse("  #x  ") == Locator(ID, "x")

    @pytest.mark.parametrize("selector", ["", "   ", None])
    def test_parse_rejects_empty(self, selector):
        with pytest.raises(ValueError):
            Locator.parse(selector)

    def test_strategy_aliases(self):
        assert Locator("css", "a").strategy == CSS
        assert normalize_strategy("Class_Name") == CLASS_NAME

    def test_unknown_strategy(self):
        with pytest.raises(ValueError):
            Locator("shadow", "a")

    def test_str(self):
        assert str(Locator.css("a.b")) == "css selector=a.b"


class TestLocatorSet:
    """Ordered fallback resolution."""

    def test_requires_a_locator(self):
        with pytest.raises(ValueError):
            LocatorSet(())

    def test_first_matching_locator_wins(self, session):
        """[A (no match), B (match)] resolves to B's node."""
        node = FakeElement(label="b")
        session.add("#b", node)
        locators = LocatorSet.of("#a", "#b")

        resolution = locators.resolve(session)

        assert resolution.element is node
        assert resolution.locator == Locator(ID, "b")
        assert resolution.index == 1

    def test_earlier_locator_preferred(self, session):
        first, second = FakeElement(label="first"), FakeElement(label="second")
        session.add("#a", first)
        session.add("#b", second)
        assert LocatorSet.of("#a", "#b").resolve(session).element is first

    def test_first_node_of_many(self, session):
        one, two = FakeElement(label="1"), FakeElement(label="2")
        session.add(".row", one, two)
        resolution = LocatorSet.of(".row").resolve(session)
        assert resolution.element is one
        assert resolution.match_count == 2

    def test_no_match_is_none(self, session):
        assert LocatorSet.of("#a", "#b").resolve(session) is None
        assert session.find_calls == 2

    def test_resolve_all(self, session):
        nodes = [FakeElement(label=str(i)) for i in range(3)]
        session.add(".row", *nodes)
        assert list(LocatorSet.of("#none", ".row").resolve_all(session)) == nodes
        assert LocatorSet.of("#none").resolve_all(session) == []

    def test_invalid_locator_raises(self, session):
        session.invalid.add(Locator(CSS, "a[["))
        with pytest.raises(InvalidLocatorError):
            LocatorSet.of(Locator(CSS, "a[[")).resolve(session)

    def test_probe_records_every_locator(self, session):
        session.add("#b", FakeElement())
        session.invalid.add(Locator(CSS, "a[["))
        attempts = LocatorSet.of("#a", "#b", Locator(CSS, "a[[")).probe(session)

        assert [a.query for a in attempts] == ["a", "b", "a[["]
        assert attempts[0].error == "no match"
        assert attempts[1].error is None
        assert "InvalidLocatorError" in attempts[2].error

    def test_label(self):
        assert LocatorSet.of("#a", name="login").label == "login"
        assert LocatorSet.of("#a").label == "id=a"

    def test_as_locator_set(self):
        locators = LocatorSet.of("#a")
        assert as_locator_set(locators) is locators
        assert as_locator_set("#a").primary == Locator(ID, "a")
        assert len(as_locator_set(["#a", "//b"])) == 2
