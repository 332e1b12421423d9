# webauto/stability.py
"""
@file stability.py
@brief Wait until an element's observed value stops changing.
"""

from __future__ import annotations

import time
from typing import Any, Optional

from .conditions import Condition, Outcome, Pending, Ready, observed_value
from .config import TimeConfig
from .exceptions import StaleElementError
from .locators import as_locator_set
from .waits import ConditionPoller


class _QuietPeriod:
    """
    Stateful sampler: a new or changed value restarts the clock, and the
    value is Ready once it has been unchanged for quiet_period seconds.
    """

    def __init__(self, target: Any, quiet_period: float):
        self.locators = as_locator_set(target)
        self.quiet_period = quiet_period
        self._value: Optional[str] = None
        self._since: Optional[float] = None

    def _reset(self) -> None:
        self._value = None
        self._since = None

    def __call__(self, session: Any) -> Outcome:
        resolution = self.locators.resolve(session)
        if resolution is None:
            self._reset()
            return Pending("no match")
        try:
            value = observed_value(session, resolution.element)
        except StaleElementError:
            self._reset()
            return Pending("stale")

        now = time.monotonic()
        if self._since is None or value != self._value:
            self._value = value
            self._since = now
        if now - self._since >= self.quiet_period:
            return Ready(value)
        return Pending(value)


class StabilityWaiter:
    """Waits for a target's value to stay the same for a quiet period."""

    def __init__(self, session: Any, config: Optional[TimeConfig] = None):
        self.session = session
        self._config = config

    @property
    def config(self) -> TimeConfig:
        return self._config or TimeConfig.current()

    def wait_stable(
        self,
        target: Any,
        quiet_period: Optional[float] = None,
        timeout: Optional[float] = None,
        sample_interval: Optional[float] = None,
    ) -> str:
        """
        Return the first value that stayed unchanged for quiet_period.

        Samples every sample_interval (default quiet_period / 2). Raises
        TimeoutError when no value holds still before the timeout.
        """
        quiet = self.config.stability_quiet_period if quiet_period is None else quiet_period
        if quiet < 0:
            raise ValueError(f"quiet_period must not be negative, got {quiet}")
        interval = sample_interval if sample_interval is not None else (quiet / 2 or self.config.stability_wait.interval)

        sampler = _QuietPeriod(target, quiet)
        condition = Condition(sampler, f"{sampler.locators.label} stable for {quiet}s")
        poller = ConditionPoller(self.session, self._config)
        return poller.until(
            condition,
            timeout=timeout,
            interval=interval,
            settings="stability_wait",
            stage="stability",
        )
