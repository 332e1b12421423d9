# webauto/settle.py
"""
@file settle.py
@brief Composite "asynchronous work has settled" detector.

The document counts as settled when all three signals agree:
  - no in-flight requests reported by a counter script (fail-open: a page
    without the counter mechanism is treated as having none in flight)
  - no loading indicator is displayed
  - document.readyState == "complete"
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, List, Optional, Sequence, Tuple

from .conditions import READY_STATE_SCRIPT, Condition, Outcome, Pending, Ready
from .config import TimeConfig
from .exceptions import ScriptError, SessionError, StaleElementError
from .locators import Locator, LocatorLike, as_locator
from .waits import ConditionPoller

logger = logging.getLogger("webauto.settle")

JQUERY_ACTIVE_SCRIPT = "return (typeof jQuery !== 'undefined') ? jQuery.active : null;"

DEFAULT_COUNTER_SCRIPTS: Tuple[str, ...] = (JQUERY_ACTIVE_SCRIPT,)

DEFAULT_INDICATORS: Tuple[str, ...] = (
    ".loading",
    ".spinner",
    ".ajax-loader",
    "[class*='loading']",
    "[class*='spinner']",
    "[id*='loading']",
    ".overlay",
    ".progress",
)


@dataclass(frozen=True)
class SettledState:
    """One observation of the three settledness signals."""
    pending_requests: Optional[int]
    visible_indicators: Tuple[Locator, ...] = field(default_factory=tuple)
    ready_state: Optional[str] = None

    @property
    def requests_idle(self) -> bool:
        return self.pending_requests is None or self.pending_requests <= 0

    @property
    def settled(self) -> bool:
        return self.requests_idle and not self.visible_indicators and self.ready_state == "complete"

    def reasons(self) -> List[str]:
        """What keeps the document from being settled."""
        reasons = []
        if not self.requests_idle:
            reasons.append(f"{self.pending_requests} requests in flight")
        if self.visible_indicators:
            reasons.append("indicators visible: " + ", ".join(str(loc) for loc in self.visible_indicators))
        if self.ready_state != "complete":
            reasons.append(f"readyState={self.ready_state}")
        return reasons

    def __str__(self) -> str:
        if self.settled:
            return "settled"
        return "; ".join(self.reasons())


class AsyncSettledDetector:
    """Answers whether the document has finished its asynchronous work."""

    def __init__(
        self,
        session: Any,
        indicators: Optional[Sequence[LocatorLike]] = None,
        counter_scripts: Optional[Sequence[str]] = None,
        config: Optional[TimeConfig] = None,
    ):
        self.session = session
        source = DEFAULT_INDICATORS if indicators is None else indicators
        self.indicators: Tuple[Locator, ...] = tuple(as_locator(i) for i in source)
        self.counter_scripts: Tuple[str, ...] = tuple(
            DEFAULT_COUNTER_SCRIPTS if counter_scripts is None else counter_scripts
        )
        self._config = config

    def pending_requests(self) -> Optional[int]:
        """
        Sum of the in-flight counters that are present on the page.

        @return The total, or None when no counter mechanism is present
        """
        total: Optional[int] = None
        for script in self.counter_scripts:
            try:
                value = self.session.execute_script(script)
            except ScriptError as e:
                logger.debug("Counter script unavailable: %s", e)
                continue
            if value is None:
                continue
            try:
                count = int(value)
            except (TypeError, ValueError):
                logger.debug("Ignoring non-numeric counter value %r", value)
                continue
            total = count if total is None else total + count
        return total

    def visible_indicators(self) -> List[Locator]:
        """Indicator locators with at least one displayed match."""
        visible = []
        for locator in self.indicators:
            for element in self.session.find_all(locator):
                try:
                    shown = self.session.is_displayed(element)
                except StaleElementError:
                    shown = False
                if shown:
                    visible.append(locator)
                    break
        return visible

    def ready_state(self) -> Optional[str]:
        """document.readyState, or None when it cannot be read."""
        try:
            state = self.session.execute_script(READY_STATE_SCRIPT)
        except SessionError as e:
            logger.debug("Could not read readyState: %s", e)
            return None
        return state if isinstance(state, str) else None

    def snapshot(self) -> SettledState:
        return SettledState(
            pending_requests=self.pending_requests(),
            visible_indicators=tuple(self.visible_indicators()),
            ready_state=self.ready_state(),
        )

    def is_settled(self) -> bool:
        """Single non-blocking observation."""
        return self.snapshot().settled

    def condition(self) -> Condition:
        def check(session: Any) -> Outcome:
            state = self.snapshot()
            if state.settled:
                return Ready(state)
            return Pending(state)

        return Condition(check, "asynchronous work to settle")

    def wait_for_settled(self, timeout: Optional[float] = None, interval: Optional[float] = None) -> SettledState:
        """
        Block until the document is settled.

        @throws TimeoutError whose last_state.detail is the last SettledState
        """
        poller = ConditionPoller(self.session, self._config)
        return poller.until(
            self.condition(),
            timeout=timeout,
            interval=interval,
            settings="settle_wait",
            stage="settle",
        )
