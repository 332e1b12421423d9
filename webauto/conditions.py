# webauto/conditions.py
"""
@file conditions.py
@brief Condition outcomes and the library of document conditions.

A condition is evaluated against a session and reports one of:
  Pending(detail)        not yet; detail is the last observed state
  Ready(value)           done; value is handed back to the waiter
  Failed(reason, error)  will never become Ready; stop waiting now
"""

from __future__ import annotations

import functools
from dataclasses import dataclass
from typing import Any, Callable, Generic, List, Optional, TypeVar, Union

from .exceptions import InvalidLocatorError, StaleElementError
from .locators import LocatorSet, as_locator_set

T = TypeVar("T")


@dataclass(frozen=True)
class Pending:
    detail: Any = None


@dataclass(frozen=True)
class Ready(Generic[T]):
    value: T


@dataclass(frozen=True)
class Failed:
    reason: str
    error: Optional[BaseException] = None


Outcome = Union[Pending, Ready, Failed]


def coerce_outcome(result: Any) -> Outcome:
    """Turn a plain return value into an outcome: truthy -> Ready, falsy -> Pending."""
    if isinstance(result, (Pending, Ready, Failed)):
        return result
    if result:
        return Ready(result)
    return Pending(result)


class Condition:
    """A named, re-evaluable check against a session."""

    def __init__(self, evaluate: Callable[[Any], Any], description: str = "condition"):
        self._evaluate = evaluate
        self.description = description

    def __call__(self, session: Any) -> Outcome:
        return coerce_outcome(self._evaluate(session))

    def __repr__(self) -> str:
        return f"Condition({self.description!r})"


def from_predicate(predicate: Callable[[Any], Any], description: str = "predicate") -> Condition:
    """Wrap a session predicate; its return value is coerced."""
    return Condition(predicate, description)


def _locator_errors_fail(func: Callable[..., Outcome]) -> Callable[..., Outcome]:
    """A malformed locator can never match, so report Failed instead of raising."""
    @functools.wraps(func)
    def wrapper(session: Any) -> Outcome:
        try:
            return func(session)
        except InvalidLocatorError as e:
            return Failed(f"invalid locator: {e}", e)
    return wrapper


def observed_value(session: Any, element: Any) -> str:
    """The value attribute when non-empty, otherwise the visible text."""
    value = session.get_attribute(element, "value")
    if value:
        return value
    return session.get_text(element) or ""


def _is_visible(session: Any, element: Any) -> bool:
    try:
        return session.is_displayed(element)
    except StaleElementError:
        return False


# --- Element conditions ---


def presence_of(target: Any) -> Condition:
    locators = as_locator_set(target)

    @_locator_errors_fail
    def check(session: Any) -> Outcome:
        resolution = locators.resolve(session)
        if resolution is None:
            return Pending("no match")
        return Ready(resolution.element)

    return Condition(check, f"presence of {locators.label}")


def visibility_of(target: Any) -> Condition:
    locators = as_locator_set(target)

    @_locator_errors_fail
    def check(session: Any) -> Outcome:
        resolution = locators.resolve(session)
        if resolution is None:
            return Pending("no match")
        if not session.is_displayed(resolution.element):
            return Pending("not displayed")
        return Ready(resolution.element)

    return Condition(check, f"visibility of {locators.label}")


def all_visible(target: Any) -> Condition:
    locators = as_locator_set(target)

    @_locator_errors_fail
    def check(session: Any) -> Outcome:
        elements = locators.resolve_all(session)
        if not elements:
            return Pending("no match")
        hidden = sum(1 for el in elements if not session.is_displayed(el))
        if hidden:
            return Pending(f"{hidden} of {len(elements)} not displayed")
        return Ready(list(elements))

    return Condition(check, f"all of {locators.label} visible")


def clickable(target: Any) -> Condition:
    locators = as_locator_set(target)

    @_locator_errors_fail
    def check(session: Any) -> Outcome:
        resolution = locators.resolve(session)
        if resolution is None:
            return Pending("no match")
        element = resolution.element
        if not session.is_displayed(element):
            return Pending("not displayed")
        if not session.is_enabled(element):
            return Pending("disabled")
        return Ready(element)

    return Condition(check, f"{locators.label} clickable")


def invisibility_of(target: Any) -> Condition:
    """Ready when nothing matches or no match is displayed; stale nodes count as gone."""
    locators = as_locator_set(target)

    @_locator_errors_fail
    def check(session: Any) -> Outcome:
        elements = locators.resolve_all(session)
        if any(_is_visible(session, el) for el in elements):
            return Pending("still displayed")
        return Ready(True)

    return Condition(check, f"invisibility of {locators.label}")


def existence_state(target: Any, should_exist: bool = True) -> Condition:
    locators = as_locator_set(target)

    @_locator_errors_fail
    def check(session: Any) -> Outcome:
        exists = locators.resolve(session) is not None
        if exists == should_exist:
            return Ready(True)
        return Pending("present" if exists else "absent")

    state = "exist" if should_exist else "not exist"
    return Condition(check, f"{locators.label} to {state}")


def count_equals(target: Any, count: int) -> Condition:
    locators = as_locator_set(target)

    @_locator_errors_fail
    def check(session: Any) -> Outcome:
        found = len(locators.resolve_all(session))
        if found == count:
            return Ready(found)
        return Pending(found)

    return Condition(check, f"{count} matches of {locators.label}")


def any_visible(*targets: Any) -> Condition:
    """Ready(index) of the first target set with a displayed match."""
    sets: List[LocatorSet] = [as_locator_set(t) for t in targets]
    if not sets:
        raise ValueError("any_visible requires at least one target")

    @_locator_errors_fail
    def check(session: Any) -> Outcome:
        for index, locators in enumerate(sets):
            resolution = locators.resolve(session)
            if resolution is not None and _is_visible(session, resolution.element):
                return Ready(index)
        return Pending("none visible")

    labels = ", ".join(s.label for s in sets)
    return Condition(check, f"any of [{labels}] visible")


# --- Content conditions ---


def text_present(target: Any, text: str) -> Condition:
    """Ready when the element's text or value contains text."""
    locators = as_locator_set(target)

    @_locator_errors_fail
    def check(session: Any) -> Outcome:
        resolution = locators.resolve(session)
        if resolution is None:
            return Pending("no match")
        element = resolution.element
        actual = session.get_text(element)
        if text in actual:
            return Ready(actual)
        value = session.get_attribute(element, "value") or ""
        if text in value:
            return Ready(value)
        return Pending(actual)

    return Condition(check, f"text '{text}' in {locators.label}")


def value_equals(target: Any, expected: Any) -> Condition:
    locators = as_locator_set(target)

    @_locator_errors_fail
    def check(session: Any) -> Outcome:
        resolution = locators.resolve(session)
        if resolution is None:
            return Pending("no match")
        value = session.get_attribute(resolution.element, "value")
        if value == str(expected):
            return Ready(value)
        return Pending(value)

    return Condition(check, f"value of {locators.label} == '{expected}'")


def attribute_equals(target: Any, name: str, expected: Any) -> Condition:
    locators = as_locator_set(target)

    @_locator_errors_fail
    def check(session: Any) -> Outcome:
        resolution = locators.resolve(session)
        if resolution is None:
            return Pending("no match")
        value = session.get_attribute(resolution.element, name)
        if value == str(expected):
            return Ready(value)
        return Pending(value)

    return Condition(check, f"{locators.label}[{name}] == '{expected}'")


def value_changed_from(target: Any, original: str) -> Condition:
    """Ready(new_value) once the observed value differs from original."""
    locators = as_locator_set(target)

    @_locator_errors_fail
    def check(session: Any) -> Outcome:
        resolution = locators.resolve(session)
        if resolution is None:
            return Pending("no match")
        current = observed_value(session, resolution.element)
        if current != original:
            return Ready(current)
        return Pending(current)

    return Condition(check, f"value of {locators.label} to change from '{original}'")


# --- Document conditions ---


def url_contains(fragment: str) -> Condition:
    def check(session: Any) -> Outcome:
        url = session.current_url()
        if fragment in url:
            return Ready(url)
        return Pending(url)

    return Condition(check, f"url to contain '{fragment}'")


def url_changed_from(original: str) -> Condition:
    def check(session: Any) -> Outcome:
        url = session.current_url()
        if url != original:
            return Ready(url)
        return Pending(url)

    return Condition(check, f"url to change from '{original}'")


def title_contains(fragment: str) -> Condition:
    def check(session: Any) -> Outcome:
        title = session.title()
        if fragment in title:
            return Ready(title)
        return Pending(title)

    return Condition(check, f"title to contain '{fragment}'")


READY_STATE_SCRIPT = "return document.readyState"


def document_ready() -> Condition:
    def check(session: Any) -> Outcome:
        state = session.execute_script(READY_STATE_SCRIPT)
        if state == "complete":
            return Ready(state)
        return Pending(state)

    return Condition(check, "document ready")
