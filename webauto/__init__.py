# webauto/__init__.py
"""
webauto: synchronization and resilient interaction for browser automation.

    from webauto import Actions, Repository, SeleniumSession

    session = SeleniumSession(driver)
    actions = Actions(session, repository=Repository("locators.yaml"))
    actions.navigate("https://example.test/")
    actions.click("header.login_link")
"""

from .actions import Actions
from .conditions import Condition, Failed, Pending, Ready
from .config import TimeConfig, TimeoutSettings
from .exceptions import (ActionError, ConditionFailedError, ConfigError,
                         ElementNotFoundError, MalformedConditionError,
                         TimeoutError, WebAutoError)
from .executor import (Click, ExhaustedRetries, FailureClass, FallbackStrategy,
                       InteractionResult, ResilientActionExecutor, RetryPolicy,
                       Select, SetValue, Success, classify_failure)
from .locators import Locator, LocatorSet, Resolution
from .repository import Repository
from .session import SeleniumSession, Session
from .settle import AsyncSettledDetector, SettledState
from .stability import StabilityWaiter
from .waits import ConditionPoller, WaitSpec, poll, wait_for_any, wait_until, wait_until_not

__all__ = [
    "Actions",
    "ActionError",
    "AsyncSettledDetector",
    "Click",
    "Condition",
    "ConditionFailedError",
    "ConditionPoller",
    "ConfigError",
    "ElementNotFoundError",
    "ExhaustedRetries",
    "Failed",
    "FailureClass",
    "FallbackStrategy",
    "InteractionResult",
    "Locator",
    "LocatorSet",
    "MalformedConditionError",
    "Pending",
    "Ready",
    "Repository",
    "Resolution",
    "ResilientActionExecutor",
    "RetryPolicy",
    "SeleniumSession",
    "Select",
    "Session",
    "SetValue",
    "SettledState",
    "StabilityWaiter",
    "Success",
    "TimeConfig",
    "TimeoutError",
    "TimeoutSettings",
    "WaitSpec",
    "WebAutoError",
    "classify_failure",
    "poll",
    "wait_for_any",
    "wait_until",
    "wait_until_not",
]
