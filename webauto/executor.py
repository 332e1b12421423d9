# webauto/executor.py
"""
@file executor.py
@brief Resilient action executor: retry with re-resolution and fallbacks.

One perform() call makes at most max_attempts primary attempts. Each attempt
resolves the LocatorSet (unless a live reference is held), tries the native
interaction, and on failure classifies the error:

  STALE_REFERENCE   drop the reference, re-resolve on the next attempt
  INTERCEPTED       run the configured fallback within this attempt
  NOT_INTERACTABLE  run the configured fallback within this attempt
  NOT_FOUND         drop the reference, back off, resolve again
  OTHER             run the fallback once per perform() call

Fallbacks never consume extra attempts. A failed attempt sleeps `delay`
before the next one; nothing sleeps after the final attempt.
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Mapping, Optional, Tuple, Union

from .actionlogger import ACTION_LOGGER
from .config import TimeConfig, TimeoutSettings
from .exceptions import (ActionError, ElementInterceptedError,
                         ElementNotInteractableError, InvalidLocatorError,
                         NoSuchElementError, SessionError, StaleElementError,
                         TimeoutError)
from .locators import Locator, LocatorSet, as_locator_set

logger = logging.getLogger("webauto.executor")


class FailureClass(Enum):
    STALE_REFERENCE = "stale_reference"
    INTERCEPTED = "intercepted"
    NOT_INTERACTABLE = "not_interactable"
    NOT_FOUND = "not_found"
    OTHER = "other"


class FallbackStrategy(Enum):
    NONE = "none"
    SCRIPT = "script"
    SCROLL_INTO_VIEW = "scroll_into_view"


_CLASS_BY_TYPE = (
    (StaleElementError, FailureClass.STALE_REFERENCE),
    (ElementInterceptedError, FailureClass.INTERCEPTED),
    (ElementNotInteractableError, FailureClass.NOT_INTERACTABLE),
    (NoSuchElementError, FailureClass.NOT_FOUND),
)

# driver exception names, matched anywhere in the exception's MRO
_CLASS_BY_NAME: Dict[str, FailureClass] = {
    "StaleElementReferenceException": FailureClass.STALE_REFERENCE,
    "ElementClickInterceptedException": FailureClass.INTERCEPTED,
    "ElementNotInteractableException": FailureClass.NOT_INTERACTABLE,
    "ElementNotVisibleException": FailureClass.NOT_INTERACTABLE,
    "InvalidElementStateException": FailureClass.NOT_INTERACTABLE,
    "NoSuchElementException": FailureClass.NOT_FOUND,
}


def classify_failure(error: BaseException) -> FailureClass:
    for error_type, failure_class in _CLASS_BY_TYPE:
        if isinstance(error, error_type):
            return failure_class
    for klass in type(error).__mro__:
        failure_class = _CLASS_BY_NAME.get(klass.__name__)
        if failure_class is not None:
            return failure_class
    return FailureClass.OTHER


# --- Actions ---

CLICK_SCRIPT = "arguments[0].click();"

SET_VALUE_SCRIPT = """
var el = arguments[0];
el.value = arguments[2] ? arguments[1] : (el.value || '') + arguments[1];
el.dispatchEvent(new Event('input', {bubbles: true}));
el.dispatchEvent(new Event('change', {bubbles: true}));
"""

SELECT_SCRIPT = """
var el = arguments[0], option = arguments[1], by = arguments[2];
for (var i = 0; i < el.options.length; i++) {
    var opt = el.options[i];
    var hit = by === 'value' ? opt.value === option
            : by === 'index' ? i === Number(option)
            : opt.text.trim() === option;
    if (hit) {
        el.selectedIndex = i;
        el.dispatchEvent(new Event('change', {bubbles: true}));
        return true;
    }
}
throw new Error('No option matching ' + by + '=' + option);
"""


@dataclass(frozen=True)
class Click:
    name = "click"

    def native(self, session: Any, element: Any) -> None:
        session.click(element)

    def script(self, session: Any, element: Any) -> None:
        session.execute_script(CLICK_SCRIPT, element)

    def log_metadata(self) -> Dict[str, Any]:
        return {}


@dataclass(frozen=True)
class SetValue:
    text: str
    clear: bool = True
    name = "set_value"

    def native(self, session: Any, element: Any) -> None:
        if self.clear:
            session.clear(element)
        session.send_keys(element, self.text)

    def script(self, session: Any, element: Any) -> None:
        session.execute_script(SET_VALUE_SCRIPT, element, self.text, self.clear)

    def log_metadata(self) -> Dict[str, Any]:
        return {"text": self.text, "clear": self.clear}


@dataclass(frozen=True)
class Select:
    option: Union[str, int]
    by: str = "text"
    name = "select"

    def __post_init__(self) -> None:
        if self.by not in ("text", "value", "index"):
            raise ValueError(f"Select.by must be 'text', 'value' or 'index', got {self.by!r}")

    def native(self, session: Any, element: Any) -> None:
        session.select_option(element, self.option, self.by)

    def script(self, session: Any, element: Any) -> None:
        session.execute_script(SELECT_SCRIPT, element, str(self.option), self.by)

    def log_metadata(self) -> Dict[str, Any]:
        return {"option": self.option, "by": self.by}


Action = Union[Click, SetValue, Select]


# --- Policy and results ---


_DEFAULT_FALLBACKS: Tuple[Tuple[FailureClass, FallbackStrategy], ...] = (
    (FailureClass.INTERCEPTED, FallbackStrategy.SCRIPT),
    (FailureClass.NOT_INTERACTABLE, FallbackStrategy.SCRIPT),
    (FailureClass.OTHER, FallbackStrategy.SCRIPT),
)


@dataclass(frozen=True)
class RetryPolicy:
    """
    How hard perform() tries: attempt budget, pauses and fallback routes.

    fallback_by_class accepts a mapping or pairs and is stored as a tuple of
    (FailureClass, FallbackStrategy) pairs sorted by class.
    """
    max_attempts: int = 3
    delay: float = 0.3
    not_found_backoff: float = 0.25
    fallback_by_class: Tuple[Tuple[FailureClass, FallbackStrategy], ...] = _DEFAULT_FALLBACKS
    settle_before: bool = False

    def __post_init__(self) -> None:
        if self.max_attempts < 1:
            raise ValueError(f"max_attempts must be >= 1, got {self.max_attempts}")
        if self.delay < 0 or self.not_found_backoff < 0:
            raise ValueError("delay and not_found_backoff must not be negative")
        pairs = self.fallback_by_class
        if isinstance(pairs, Mapping):
            pairs = pairs.items()
        object.__setattr__(
            self, "fallback_by_class", tuple(sorted(pairs, key=lambda pair: pair[0].value))
        )

    @classmethod
    def from_settings(
        cls,
        settings: TimeoutSettings,
        not_found_backoff: float = 0.25,
        **kwargs: Any,
    ) -> RetryPolicy:
        return cls(
            max_attempts=3 if settings.retry_count is None else settings.retry_count,
            delay=settings.interval,
            not_found_backoff=not_found_backoff,
            **kwargs,
        )

    def fallback_for(self, failure_class: FailureClass) -> FallbackStrategy:
        for klass, strategy in self.fallback_by_class:
            if klass is failure_class:
                return strategy
        return FallbackStrategy.NONE


@dataclass(frozen=True)
class Success:
    pass


@dataclass(frozen=True)
class ExhaustedRetries:
    last_error: Optional[BaseException]


@dataclass(frozen=True)
class InteractionResult:
    """Produced once per perform(); never mutated afterwards."""
    outcome: Union[Success, ExhaustedRetries]
    attempts_used: int
    used_fallback: bool = False
    failure_class: Optional[FailureClass] = None
    locator: Optional[Locator] = None

    @property
    def ok(self) -> bool:
        return isinstance(self.outcome, Success)

    @property
    def last_error(self) -> Optional[BaseException]:
        if isinstance(self.outcome, ExhaustedRetries):
            return self.outcome.last_error
        return None

    def raise_for_outcome(
        self,
        action: str = "action",
        element_name: Optional[str] = None,
        artifacts: Optional[Dict[str, str]] = None,
    ) -> InteractionResult:
        """Return self on success, raise ActionError on exhaustion."""
        if self.ok:
            return self
        error = self.last_error
        raise ActionError(
            action=action,
            element_name=element_name,
            details=f"{type(error).__name__}: {error}" if error is not None else None,
            artifacts=artifacts,
            cause=error,
            attempts=self.attempts_used,
            failure_class=self.failure_class,
        ) from error


# --- Executor ---


class ResilientActionExecutor:
    """Performs actions against LocatorSets with retry and fallback."""

    def __init__(self, session: Any, settle: Any = None, config: Optional[TimeConfig] = None):
        self.session = session
        self.settle = settle
        self._config = config

    @property
    def config(self) -> TimeConfig:
        return self._config or TimeConfig.current()

    def default_policy(self, action: Action) -> RetryPolicy:
        cfg = self.config
        return RetryPolicy.from_settings(
            cfg.get_action_settings(action.name),
            not_found_backoff=cfg.not_found_backoff,
        )

    def perform(
        self,
        target: Any,
        action: Action,
        policy: Optional[RetryPolicy] = None,
    ) -> InteractionResult:
        """
        Run action against the first matching locator of target.

        @return InteractionResult with Success or ExhaustedRetries(last_error)
        @throws InvalidLocatorError if a locator is malformed
        """
        locators: LocatorSet = as_locator_set(target)
        policy = policy or self.default_policy(action)
        label = locators.label

        element: Any = None
        locator: Optional[Locator] = None
        last_error: Optional[BaseException] = None
        failure_class: Optional[FailureClass] = None
        other_fallback_used = False
        start = time.monotonic()

        for attempt in range(1, policy.max_attempts + 1):
            final = attempt == policy.max_attempts
            self._log_attempt(action, label, attempt)

            if policy.settle_before:
                self._settle(label)

            if element is None:
                try:
                    resolution = locators.resolve(self.session)
                except InvalidLocatorError:
                    raise
                except SessionError as e:
                    resolution = None
                    last_error = e
                else:
                    last_error = None if resolution is not None else NoSuchElementError(
                        f"No locator matched for '{label}'"
                    )
                if resolution is None:
                    failure_class = FailureClass.NOT_FOUND
                    logger.debug("Attempt %d: '%s' not found", attempt, label)
                    if not final:
                        time.sleep(policy.not_found_backoff)
                    continue
                element, locator = resolution.element, resolution.locator

            try:
                self.session.invoke(element, action)
                return self._finish(action, label, attempt, locator)
            except InvalidLocatorError:
                raise
            except Exception as e:
                last_error = e
                failure_class = classify_failure(e)
            logger.debug("Attempt %d of %s on '%s' failed: %s", attempt, action.name, label, failure_class.value)

            if failure_class in (FailureClass.STALE_REFERENCE, FailureClass.NOT_FOUND):
                element = None
                if not final:
                    pause = policy.not_found_backoff if failure_class is FailureClass.NOT_FOUND else policy.delay
                    time.sleep(pause)
                continue

            strategy = policy.fallback_for(failure_class)
            if failure_class is FailureClass.OTHER:
                if other_fallback_used:
                    strategy = FallbackStrategy.NONE
                else:
                    other_fallback_used = strategy is not FallbackStrategy.NONE

            if strategy is not FallbackStrategy.NONE:
                try:
                    self._run_fallback(strategy, element, action)
                    self._log_fallback(action, label, attempt, strategy, failure_class, "ok")
                    return self._finish(action, label, attempt, locator, failure_class, used_fallback=True)
                except InvalidLocatorError:
                    raise
                except Exception as fe:
                    self._log_fallback(action, label, attempt, strategy, failure_class, "error", fe)
                    last_error = fe
                    failure_class = classify_failure(fe)
                    if failure_class in (FailureClass.STALE_REFERENCE, FailureClass.NOT_FOUND):
                        element = None

            if not final:
                time.sleep(policy.delay)

        return self._exhausted(action, label, policy.max_attempts, start, locator, failure_class, last_error)

    def _run_fallback(self, strategy: FallbackStrategy, element: Any, action: Action) -> None:
        if strategy is FallbackStrategy.SCRIPT:
            action.script(self.session, element)
        elif strategy is FallbackStrategy.SCROLL_INTO_VIEW:
            self.session.scroll_into_view(element)
            self.session.invoke(element, action)

    def _settle(self, label: str) -> None:
        if self.settle is None:
            return
        try:
            self.settle.wait_for_settled()
        except TimeoutError as e:
            logger.warning("Document not settled before acting on '%s', proceeding: %s", label, e)

    def _finish(
        self,
        action: Action,
        label: str,
        attempt: int,
        locator: Optional[Locator],
        failure_class: Optional[FailureClass] = None,
        used_fallback: bool = False,
    ) -> InteractionResult:
        if used_fallback:
            logger.info("%s on '%s' succeeded via fallback after %s", action.name, label, failure_class.value)
        return InteractionResult(
            outcome=Success(),
            attempts_used=attempt,
            used_fallback=used_fallback,
            failure_class=failure_class,
            locator=locator,
        )

    def _exhausted(
        self,
        action: Action,
        label: str,
        attempts: int,
        start: float,
        locator: Optional[Locator],
        failure_class: Optional[FailureClass],
        last_error: Optional[BaseException],
    ) -> InteractionResult:
        duration_ms = int((time.monotonic() - start) * 1000)
        logger.warning(
            "%s on '%s' exhausted %d attempts (%s): %s",
            action.name, label, attempts, failure_class.value if failure_class else "unknown", last_error,
        )
        ACTION_LOGGER.log(
            action=action.name,
            element=label,
            locator=str(locator) if locator else None,
            status="error",
            duration_ms=duration_ms,
            metadata={"failure_class": failure_class.value if failure_class else None},
            exception=last_error,
            attempt=attempts,
            phase="execute",
            event="exhausted",
        )
        return InteractionResult(
            outcome=ExhaustedRetries(last_error),
            attempts_used=attempts,
            used_fallback=False,
            failure_class=failure_class,
            locator=locator,
        )

    def _log_attempt(self, action: Action, label: str, attempt: int) -> None:
        if not ACTION_LOGGER.is_enabled() or not ACTION_LOGGER.should_log_retry_attempt(attempt):
            return
        ACTION_LOGGER.log(
            action=action.name,
            element=label,
            status="info",
            metadata=action.log_metadata(),
            attempt=attempt,
            phase="execute",
            event="retry_attempt",
        )

    def _log_fallback(
        self,
        action: Action,
        label: str,
        attempt: int,
        strategy: FallbackStrategy,
        failure_class: FailureClass,
        status: str,
        error: Optional[BaseException] = None,
    ) -> None:
        ACTION_LOGGER.log(
            action=action.name,
            element=label,
            status=status,
            metadata={"strategy": strategy.value, "failure_class": failure_class.value},
            exception=error,
            attempt=attempt,
            phase="fallback",
            event="fallback",
        )
