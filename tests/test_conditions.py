# tests/test_conditions.py
"""
Tests for condition outcomes and the document condition library.
"""

import pytest

from webauto import conditions as cond
from webauto.conditions import Condition, Failed, Pending, Ready, coerce_outcome
from webauto.exceptions import InvalidLocatorError
from webauto.locators import CSS, Locator

from conftest import FakeElement


class TestOutcomes:
    """Plain values coerce into outcomes."""

    @pytest.mark.parametrize("value", [True, "x", 1, [0]])
    def test_truthy_is_ready(self, value):
        assert coerce_outcome(value) == Ready(value)

    @pytest.mark.parametrize("value", [False, None, "", 0, []])
    def test_falsy_is_pending(self, value):
        assert isinstance(coerce_outcome(value), Pending)

    def test_outcomes_pass_through(self):
        failed = Failed("nope")
        assert coerce_outcome(failed) is failed

    def test_condition_is_callable(self, session):
        condition = Condition(lambda s: s is session, "is the session")
        assert condition(session) == Ready(True)
        assert "is the session" in repr(condition)


class TestElementConditions:
    """Presence, visibility and clickability."""

    def test_presence(self, session):
        check = cond.presence_of("#a")
        assert isinstance(check(session), Pending)
        node = FakeElement()
        session.add("#a", node)
        assert check(session) == Ready(node)

    def test_visibility(self, session):
        node = FakeElement(displayed=False)
        session.add("#a", node)
        check = cond.visibility_of("#a")
        assert check(session) == Pending("not displayed")
        node.displayed = True
        assert check(session) == Ready(node)

    def test_clickable_needs_enabled(self, session):
        node = FakeElement(enabled=False)
        session.add("#a", node)
        assert cond.clickable("#a")(session) == Pending("disabled")
        node.enabled = True
        assert cond.clickable("#a")(session) == Ready(node)

    def test_all_visible(self, session):
        shown, hidden = FakeElement(), FakeElement(displayed=False)
        session.add(".row", shown, hidden)
        assert isinstance(cond.all_visible(".row")(session), Pending)
        hidden.displayed = True
        assert cond.all_visible(".row")(session) == Ready([shown, hidden])

    def test_invisibility(self, session):
        node = FakeElement()
        session.add(".spinner", node)
        check = cond.invisibility_of(".spinner")
        assert isinstance(check(session), Pending)
        node.stale = True
        assert check(session) == Ready(True)
        session.remove(".spinner")
        assert check(session) == Ready(True)

    def test_existence_state(self, session):
        assert cond.existence_state("#a", should_exist=False)(session) == Ready(True)
        session.add("#a", FakeElement())
        assert cond.existence_state("#a")(session) == Ready(True)
        assert cond.existence_state("#a", should_exist=False)(session) == Pending("present")

    def test_count_equals(self, session):
        session.add(".row", FakeElement(), FakeElement())
        assert cond.count_equals(".row", 2)(session) == Ready(2)
        assert cond.count_equals(".row", 3)(session) == Pending(2)

    def test_any_visible_returns_index(self, session):
        session.add("#second", FakeElement())
        session.add("#first", FakeElement(displayed=False))
        assert cond.any_visible("#first", "#second")(session) == Ready(1)

    def test_any_visible_requires_targets(self):
        with pytest.raises(ValueError):
            cond.any_visible()

    def test_invalid_locator_fails(self, session):
        bad = Locator(CSS, "a[[")
        session.invalid.add(bad)
        outcome = cond.presence_of(bad)(session)
        assert isinstance(outcome, Failed)
        assert isinstance(outcome.error, InvalidLocatorError)


class TestContentConditions:
    """Text, value and attribute conditions."""

    def test_text_present(self, session):
        node = FakeElement(text="Loading")
        session.add("#status", node)
        check = cond.text_present("#status", "Done")
        assert check(session) == Pending("Loading")
        node.text = "All Done"
        assert check(session) == Ready("All Done")

    def test_text_present_checks_value(self, session):
        session.add("#q", FakeElement(value="search term"))
        assert cond.text_present("#q", "term")(session) == Ready("search term")

    def test_value_equals(self, session):
        session.add("#q", FakeElement(value="3"))
        assert cond.value_equals("#q", 3)(session) == Ready("3")
        assert cond.value_equals("#q", 4)(session) == Pending("3")

    def test_attribute_equals(self, session):
        session.add("#q", FakeElement(attrs={"aria-busy": "true"}))
        assert cond.attribute_equals("#q", "aria-busy", "true")(session) == Ready("true")

    def test_value_changed_from(self, session):
        node = FakeElement(text="1 item")
        session.add("#cart", node)
        check = cond.value_changed_from("#cart", "1 item")
        assert check(session) == Pending("1 item")
        node.text = "2 items"
        assert check(session) == Ready("2 items")

    def test_observed_value_prefers_value(self, session):
        node = FakeElement(text="label", value="typed")
        assert cond.observed_value(session, node) == "typed"
        node.value = ""
        assert cond.observed_value(session, node) == "label"


class TestDocumentConditions:
    """URL, title and readyState."""

    def test_url_contains(self, session):
        session.url = "https://shop.test/cart"
        assert cond.url_contains("/cart")(session) == Ready("https://shop.test/cart")
        assert isinstance(cond.url_contains("/login")(session), Pending)

    def test_url_changed_from(self, session):
        session.url = "https://shop.test/"
        check = cond.url_changed_from("https://shop.test/")
        assert isinstance(check(session), Pending)
        session.url = "https://shop.test/next"
        assert check(session) == Ready("https://shop.test/next")

    def test_title_contains(self, session):
        session.page_title = "Checkout - Shop"
        assert cond.title_contains("Checkout")(session) == Ready("Checkout - Shop")

    def test_document_ready(self, session):
        session.ready_state = "interactive"
        assert cond.document_ready()(session) == Pending("interactive")
        session.ready_state = "complete"
        assert cond.document_ready()(session) == Ready("complete")
