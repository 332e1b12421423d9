# webauto/waits.py
"""
@file waits.py
@brief Condition poller and predicate wait helpers.

Every wait in the package runs on the same loop: evaluate, return on Ready,
abort on Failed, otherwise sleep min(interval, time_left) and re-evaluate
until the monotonic deadline passes. The first evaluation always happens.
"""

from __future__ import annotations

import time
from dataclasses import dataclass
from typing import Any, Callable, List, Optional, Tuple, TypeVar

from .conditions import Failed, Outcome, Pending, Ready, coerce_outcome
from .config import TimeConfig, TimeoutSettings
from .exceptions import (ConditionFailedError, InvalidLocatorError,
                         MalformedConditionError, TimeoutError)
from .timinglogger import TIMING_LOGGER

T = TypeVar("T")

# errors that retrying cannot fix
NON_RETRYABLE: Tuple[type, ...] = (InvalidLocatorError, TypeError, NameError, AttributeError)


def _now() -> float:
    """Monotonic time source for deterministic timeout calculations."""
    return time.monotonic()


def _set_timeout_metadata(
    error: TimeoutError,
    *,
    description: str,
    timeout: float,
    attempt_count: int,
    elapsed: float,
    stage: Optional[str],
) -> None:
    error.description = description
    error.timeout = timeout
    error.attempt_count = attempt_count
    error.elapsed_time = elapsed
    error.stage = stage


@dataclass(frozen=True)
class WaitSpec:
    """What to wait for and how long: interval > 0, and interval <= timeout unless timeout is 0."""
    condition: Callable[[Any], Any]
    timeout: float
    interval: float
    description: str = "condition"

    def __post_init__(self) -> None:
        if self.interval <= 0:
            raise ValueError(f"interval must be positive, got {self.interval}")
        if self.timeout < 0:
            raise ValueError(f"timeout must not be negative, got {self.timeout}")
        if 0 < self.timeout < self.interval:
            raise ValueError(
                f"interval ({self.interval}s) must not exceed timeout ({self.timeout}s)"
            )

    @classmethod
    def from_settings(
        cls,
        condition: Callable[[Any], Any],
        settings: TimeoutSettings,
        description: Optional[str] = None,
    ) -> WaitSpec:
        return cls(
            condition=condition,
            timeout=settings.timeout,
            interval=min(settings.interval, settings.timeout) if settings.timeout > 0 else settings.interval,
            description=description or getattr(condition, "description", "condition"),
        )


def _run(
    evaluate: Callable[[], Any],
    *,
    timeout: float,
    interval: float,
    description: str,
    stage: Optional[str] = None,
    fatal: Tuple[type, ...] = (),
) -> Any:
    """Shared polling loop. Returns the Ready value or raises."""
    non_retryable = NON_RETRYABLE + tuple(fatal)
    start_time = _now()
    attempt_count = 0
    last_state: Optional[Outcome] = None
    last_exception: Optional[BaseException] = None

    if TIMING_LOGGER.is_enabled():
        TIMING_LOGGER.log(
            event="wait_start",
            description=description,
            metadata={"timeout_s": timeout, "interval_s": interval, "stage": stage},
        )

    while True:
        attempt_count += 1
        try:
            outcome = coerce_outcome(evaluate())
        except non_retryable as e:
            if TIMING_LOGGER.is_enabled():
                TIMING_LOGGER.log(
                    event="wait_failed",
                    description=description,
                    status="error",
                    metadata={"attempts": attempt_count, "error": type(e).__name__, "stage": stage},
                )
            raise MalformedConditionError(description, f"{type(e).__name__}: {e}", e) from e
        except Exception as e:
            last_exception = e
            outcome = Pending(f"{type(e).__name__}: {e}")

        if isinstance(outcome, Ready):
            if TIMING_LOGGER.is_enabled():
                TIMING_LOGGER.log(
                    event="wait_success",
                    description=description,
                    status="success",
                    metadata={
                        "attempts": attempt_count,
                        "elapsed_s": round(_now() - start_time, 3),
                        "stage": stage,
                    },
                )
            return outcome.value

        if isinstance(outcome, Failed):
            if TIMING_LOGGER.is_enabled():
                TIMING_LOGGER.log(
                    event="wait_failed",
                    description=description,
                    status="error",
                    metadata={"attempts": attempt_count, "reason": outcome.reason, "stage": stage},
                )
            raise ConditionFailedError(description, outcome.reason, outcome.error) from outcome.error

        last_state = outcome
        time_left = timeout - (_now() - start_time)
        if time_left <= 0:
            break
        time.sleep(min(interval, time_left))
        if _now() - start_time >= timeout:
            break

    elapsed = _now() - start_time
    if TIMING_LOGGER.is_enabled():
        TIMING_LOGGER.log(
            event="wait_timeout",
            description=description,
            status="error",
            metadata={
                "timeout_s": timeout,
                "attempts": attempt_count,
                "elapsed_s": round(elapsed, 3),
                "stage": stage,
            },
        )

    detail = getattr(last_state, "detail", None)
    if last_exception is not None:
        error = TimeoutError(
            f"Timed out waiting for {description} after {timeout}s: "
            f"{type(last_exception).__name__}: {last_exception}"
        )
    else:
        error = TimeoutError(
            f"Timed out waiting for {description} after {timeout}s (last state: {detail!r})"
        )
    error.original_exception = last_exception
    error.last_state = last_state
    _set_timeout_metadata(
        error,
        description=description,
        timeout=timeout,
        attempt_count=attempt_count,
        elapsed=elapsed,
        stage=stage,
    )
    if last_exception is not None:
        raise error from last_exception
    raise error


def poll(session: Any, spec: WaitSpec, fatal: Tuple[type, ...] = (), stage: Optional[str] = None) -> Any:
    """
    Evaluate spec.condition against session until it is Ready.

    @return The Ready value
    @throws TimeoutError when the deadline passes without Ready
    @throws ConditionFailedError when the condition reports Failed
    @throws MalformedConditionError when the condition raises a non-retryable error
    """
    return _run(
        lambda: spec.condition(session),
        timeout=spec.timeout,
        interval=spec.interval,
        description=spec.description,
        stage=stage,
        fatal=fatal,
    )


class ConditionPoller:
    """Runs conditions for one session with timings from a TimeConfig."""

    def __init__(self, session: Any, config: Optional[TimeConfig] = None):
        self.session = session
        self._config = config

    @property
    def config(self) -> TimeConfig:
        return self._config or TimeConfig.current()

    def until(
        self,
        condition: Callable[[Any], Any],
        timeout: Optional[float] = None,
        interval: Optional[float] = None,
        description: Optional[str] = None,
        settings: str = "explicit_wait",
        fatal: Tuple[type, ...] = (),
        stage: Optional[str] = None,
    ) -> Any:
        """Wait for condition using the named TimeConfig field for missing timings."""
        base: TimeoutSettings = getattr(self.config, settings)
        effective = base.with_overrides(timeout=timeout, interval=interval)
        spec = WaitSpec.from_settings(condition, effective, description)
        return poll(self.session, spec, fatal=fatal, stage=stage)


def wait_until(
    predicate: Callable[[], T],
    timeout: float,
    interval: float = 0.2,
    description: str = "condition",
    stage: Optional[str] = None,
) -> T:
    """
    Repeatedly runs predicate until it returns a truthy value,
    or until timeout.
    """
    return _run(predicate, timeout=timeout, interval=interval, description=description, stage=stage)


def wait_until_not(
    predicate: Callable[[], Any],
    timeout: float,
    interval: float = 0.2,
    description: str = "condition to become false",
    stage: Optional[str] = None,
) -> None:
    """Wait until predicate returns a falsy value."""
    def inverted() -> Outcome:
        result = predicate()
        if result:
            return Pending(result)
        return Ready(None)

    _run(inverted, timeout=timeout, interval=interval, description=description, stage=stage)


def wait_for_any(
    predicates: List[Callable[[], Any]],
    timeout: float,
    interval: float = 0.2,
    descriptions: Optional[List[str]] = None,
    stage: Optional[str] = None,
) -> int:
    """
    Wait until any of the predicates returns a truthy value.
    Returns the index of the first predicate that succeeded.
    """
    if not predicates:
        raise ValueError("wait_for_any requires at least one predicate")
    if descriptions is None:
        descriptions = [f"predicate[{i}]" for i in range(len(predicates))]
    last_exceptions: List[Optional[BaseException]] = [None] * len(predicates)

    def first_truthy() -> Outcome:
        for i, predicate in enumerate(predicates):
            try:
                if predicate():
                    return Ready(i)
            except NON_RETRYABLE:
                raise
            except Exception as e:
                last_exceptions[i] = e
        return Pending("none matched")

    desc_str = ", ".join(descriptions)
    try:
        return _run(
            first_truthy,
            timeout=timeout,
            interval=interval,
            description=f"any of [{desc_str}]",
            stage=stage,
        )
    except TimeoutError as error:
        error.original_exception = next((e for e in last_exceptions if e is not None), None)
        error.original_exceptions = last_exceptions
        raise
