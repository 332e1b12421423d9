# tests/conftest.py
"""
Shared fixtures: an in-memory session that behaves like a small document.
"""

from typing import Any, Dict, List, Optional

import pytest

from webauto.actionlogger import ACTION_LOGGER
from webauto.config import TimeConfig
from webauto.context import ActionContextManager
from webauto.exceptions import InvalidLocatorError, StaleElementError
from webauto.executor import CLICK_SCRIPT, SELECT_SCRIPT, SET_VALUE_SCRIPT
from webauto.locators import Locator, as_locator
from webauto.session import SCROLL_INTO_VIEW_SCRIPT, Session
from webauto.settle import JQUERY_ACTIVE_SCRIPT, READY_STATE_SCRIPT
from webauto.timinglogger import TIMING_LOGGER


class FakeElement:
    """A node with text, value, visibility and an optional stale flag."""

    def __init__(self, text: str = "", value: Optional[str] = None, displayed: bool = True,
                 enabled: bool = True, attrs: Optional[Dict[str, str]] = None, label: str = "el"):
        self.text = text
        self.value = value
        self.displayed = displayed
        self.enabled = enabled
        self.attrs = dict(attrs or {})
        self.label = label
        self.stale = False
        self.clicks = 0
        self.script_clicks = 0
        self.scrolled = 0
        self.selected: Any = None

    def __repr__(self) -> str:
        return f"FakeElement({self.label!r})"


class FakeSession(Session):
    """
    Session over a dict of locator -> nodes.

    Queues (`click_errors`, `keys_errors`, `script_errors`) hold exceptions
    raised by successive calls; a None entry lets that call succeed.
    """

    def __init__(self) -> None:
        self.nodes: Dict[Locator, Any] = {}
        self.invalid: set = set()
        self.url = "about:blank"
        self.page_title = ""
        self.source = "<html></html>"
        self.png: Optional[bytes] = None
        self.ready_state: Any = "complete"
        self.jquery_active: Any = None
        self.click_errors: List[Optional[BaseException]] = []
        self.keys_errors: List[Optional[BaseException]] = []
        self.script_errors: List[Optional[BaseException]] = []
        self.scripts: List[str] = []
        self.find_calls = 0
        self.visited: List[str] = []

    # --- test helpers ---

    def add(self, selector: Any, *elements: FakeElement) -> None:
        self.nodes[as_locator(selector)] = list(elements)

    def add_dynamic(self, selector: Any, producer) -> None:
        """producer() is called on every lookup and returns the matches."""
        self.nodes[as_locator(selector)] = producer

    def remove(self, selector: Any) -> None:
        self.nodes.pop(as_locator(selector), None)

    @staticmethod
    def _pop(queue: List[Optional[BaseException]]) -> None:
        if queue:
            error = queue.pop(0)
            if error is not None:
                raise error

    @staticmethod
    def _live(element: FakeElement) -> None:
        if element.stale:
            raise StaleElementError(f"{element.label} is detached")

    # --- Session ---

    def find_all(self, locator: Locator) -> List[Any]:
        self.find_calls += 1
        if locator in self.invalid:
            raise InvalidLocatorError(f"invalid selector: {locator}")
        entry = self.nodes.get(locator, [])
        if callable(entry):
            entry = entry()
        return list(entry)

    def is_displayed(self, element: FakeElement) -> bool:
        self._live(element)
        return element.displayed

    def is_enabled(self, element: FakeElement) -> bool:
        self._live(element)
        return element.enabled

    def get_text(self, element: FakeElement) -> str:
        self._live(element)
        return element.text

    def get_attribute(self, element: FakeElement, name: str) -> Optional[str]:
        self._live(element)
        if name == "value":
            return element.value
        return element.attrs.get(name)

    def click(self, element: FakeElement) -> None:
        self._live(element)
        self._pop(self.click_errors)
        element.clicks += 1

    def clear(self, element: FakeElement) -> None:
        self._live(element)
        element.value = ""

    def send_keys(self, element: FakeElement, text: str) -> None:
        self._live(element)
        self._pop(self.keys_errors)
        element.value = (element.value or "") + text

    def select_option(self, element: FakeElement, option: Any, by: str = "text") -> None:
        self._live(element)
        self._pop(self.click_errors)
        element.selected = (by, option)

    def execute_script(self, script: str, *args: Any) -> Any:
        self.scripts.append(script)
        if script == READY_STATE_SCRIPT:
            if isinstance(self.ready_state, BaseException):
                raise self.ready_state
            return self.ready_state
        if script == JQUERY_ACTIVE_SCRIPT:
            if isinstance(self.jquery_active, BaseException):
                raise self.jquery_active
            return self.jquery_active
        self._pop(self.script_errors)
        if script == CLICK_SCRIPT:
            args[0].script_clicks += 1
        elif script == SET_VALUE_SCRIPT:
            element, text, clear = args
            element.value = text if clear else (element.value or "") + text
        elif script == SELECT_SCRIPT:
            args[0].selected = (args[2], args[1])
        elif script == SCROLL_INTO_VIEW_SCRIPT:
            args[0].scrolled += 1
        return None

    def current_url(self) -> str:
        return self.url

    def navigate(self, url: str) -> None:
        self.visited.append(url)
        self.url = url

    def title(self) -> str:
        return self.page_title

    def page_source(self) -> str:
        return self.source

    def screenshot_png(self) -> Optional[bytes]:
        return self.png


FAST_OVERRIDES = {
    "explicit_wait": {"timeout": 1.0, "interval": 0.02},
    "presence_wait": {"timeout": 1.0, "interval": 0.02},
    "visibility_wait": {"timeout": 1.0, "interval": 0.02},
    "clickable_wait": {"timeout": 1.0, "interval": 0.02},
    "invisibility_wait": {"timeout": 1.0, "interval": 0.02},
    "text_wait": {"timeout": 1.0, "interval": 0.02},
    "url_wait": {"timeout": 1.0, "interval": 0.02},
    "soft_wait": {"timeout": 0.1, "interval": 0.02},
    "page_load": {"timeout": 1.0, "interval": 0.02},
    "settle_wait": {"timeout": 0.3, "interval": 0.02},
    "stability_wait": {"timeout": 2.0, "interval": 0.02},
    "click_action": {"interval": 0.01, "retry_count": 3},
    "set_value_action": {"interval": 0.01, "retry_count": 3},
    "select_action": {"interval": 0.01, "retry_count": 3},
    "not_found_backoff": 0.01,
    "stability_quiet_period": 0.1,
}


@pytest.fixture(autouse=True)
def clean_state():
    """Reset global config, context stack and loggers between tests."""
    TimeConfig.reset_to_defaults()
    ActionContextManager.clear()
    ACTION_LOGGER.disable()
    TIMING_LOGGER.disable()
    yield
    TimeConfig.reset_to_defaults()
    ActionContextManager.clear()
    ACTION_LOGGER.disable()
    TIMING_LOGGER.disable()


@pytest.fixture
def session():
    return FakeSession()


@pytest.fixture
def fast_config():
    return TimeConfig.build_from(overrides=FAST_OVERRIDES)
