# webauto/session.py
"""
@file session.py
@brief Automation session capability and its Selenium WebDriver adapter.

Every synchronization component takes a Session explicitly. A session is
owned by one worker at a time and performs no internal locking.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from contextlib import contextmanager
from typing import TYPE_CHECKING, Any, Iterator, List, Optional

from selenium.common.exceptions import (ElementClickInterceptedException,
                                        ElementNotInteractableException,
                                        ElementNotVisibleException,
                                        InvalidElementStateException,
                                        InvalidSelectorException,
                                        JavascriptException,
                                        NoSuchElementException,
                                        StaleElementReferenceException,
                                        WebDriverException)
from selenium.webdriver.support.select import Select as SeleniumSelect

from .exceptions import (ElementInterceptedError, ElementNotInteractableError,
                         InvalidLocatorError, NoSuchElementError, ScriptError,
                         SessionError, StaleElementError)
from .locators import Locator

if TYPE_CHECKING:
    from .config import TimeConfig

logger = logging.getLogger("webauto.session")

SCROLL_INTO_VIEW_SCRIPT = "arguments[0].scrollIntoView({block: 'center', inline: 'center'});"


class Session(ABC):
    """
    Capability the synchronization layer needs from a browser driver.

    Implementations raise the webauto session errors (StaleElementError,
    ElementInterceptedError, ...) so callers never depend on driver types.
    """

    @abstractmethod
    def find_all(self, locator: Locator) -> List[Any]:
        """Return every node matching locator; [] for no match."""

    @abstractmethod
    def is_displayed(self, element: Any) -> bool: ...

    @abstractmethod
    def is_enabled(self, element: Any) -> bool: ...

    @abstractmethod
    def get_text(self, element: Any) -> str: ...

    @abstractmethod
    def get_attribute(self, element: Any, name: str) -> Optional[str]: ...

    @abstractmethod
    def click(self, element: Any) -> None: ...

    @abstractmethod
    def clear(self, element: Any) -> None: ...

    @abstractmethod
    def send_keys(self, element: Any, text: str) -> None: ...

    @abstractmethod
    def select_option(self, element: Any, option: Any, by: str = "text") -> None: ...

    @abstractmethod
    def execute_script(self, script: str, *args: Any) -> Any: ...

    @abstractmethod
    def current_url(self) -> str: ...

    @abstractmethod
    def navigate(self, url: str) -> None: ...

    def title(self) -> str:
        return ""

    def page_source(self) -> str:
        return ""

    def screenshot_png(self) -> Optional[bytes]:
        return None

    def invoke(self, element: Any, action: Any) -> None:
        """Perform the native interaction described by action."""
        action.native(self, element)

    def scroll_into_view(self, element: Any) -> None:
        self.execute_script(SCROLL_INTO_VIEW_SCRIPT, element)


@contextmanager
def _translated(operation: str) -> Iterator[None]:
    """Map Selenium exceptions onto the webauto session errors."""
    try:
        yield
    except StaleElementReferenceException as e:
        raise StaleElementError(f"{operation}: {e.msg}") from e
    except ElementClickInterceptedException as e:
        raise ElementInterceptedError(f"{operation}: {e.msg}") from e
    except (ElementNotInteractableException, ElementNotVisibleException, InvalidElementStateException) as e:
        raise ElementNotInteractableError(f"{operation}: {e.msg}") from e
    except InvalidSelectorException as e:
        raise InvalidLocatorError(f"{operation}: {e.msg}") from e
    except NoSuchElementException as e:
        raise NoSuchElementError(f"{operation}: {e.msg}") from e
    except JavascriptException as e:
        raise ScriptError(f"{operation}: {e.msg}") from e
    except WebDriverException as e:
        raise SessionError(f"{operation}: {e.msg}") from e


class SeleniumSession(Session):
    """Session backed by a Selenium WebDriver instance."""

    def __init__(self, driver: Any):
        self.driver = driver

    def apply_timeouts(self, config: TimeConfig) -> None:
        """Push page-load and script timeouts from config to the driver."""
        with _translated("apply_timeouts"):
            self.driver.set_page_load_timeout(config.page_load.timeout)
            self.driver.set_script_timeout(config.script.timeout)
        logger.debug(
            "Applied driver timeouts page_load=%ss script=%ss",
            config.page_load.timeout,
            config.script.timeout,
        )

    def find_all(self, locator: Locator) -> List[Any]:
        with _translated(f"find {locator}"):
            return list(self.driver.find_elements(locator.strategy, locator.query))

    def is_displayed(self, element: Any) -> bool:
        with _translated("is_displayed"):
            return bool(element.is_displayed())

    def is_enabled(self, element: Any) -> bool:
        with _translated("is_enabled"):
            return bool(element.is_enabled())

    def get_text(self, element: Any) -> str:
        with _translated("get_text"):
            return element.text or ""

    def get_attribute(self, element: Any, name: str) -> Optional[str]:
        with _translated(f"get_attribute {name}"):
            return element.get_attribute(name)

    def click(self, element: Any) -> None:
        with _translated("click"):
            element.click()

    def clear(self, element: Any) -> None:
        with _translated("clear"):
            element.clear()

    def send_keys(self, element: Any, text: str) -> None:
        with _translated("send_keys"):
            element.send_keys(text)

    def select_option(self, element: Any, option: Any, by: str = "text") -> None:
        with _translated(f"select by {by}"):
            select = SeleniumSelect(element)
            if by == "value":
                select.select_by_value(str(option))
            elif by == "index":
                select.select_by_index(int(option))
            else:
                select.select_by_visible_text(str(option))

    def execute_script(self, script: str, *args: Any) -> Any:
        with _translated("execute_script"):
            return self.driver.execute_script(script, *args)

    def current_url(self) -> str:
        with _translated("current_url"):
            return self.driver.current_url

    def navigate(self, url: str) -> None:
        with _translated(f"navigate {url}"):
            self.driver.get(url)

    def title(self) -> str:
        with _translated("title"):
            return self.driver.title

    def page_source(self) -> str:
        with _translated("page_source"):
            return self.driver.page_source

    def screenshot_png(self) -> Optional[bytes]:
        with _translated("screenshot"):
            return self.driver.get_screenshot_as_png()
