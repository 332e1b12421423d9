# webauto/actions.py
"""
@file actions.py
@brief Keyword action library consumed by Page Objects.
"""

from __future__ import annotations

import logging
import re
import time
from typing import Any, Optional

from . import conditions as cond
from .artifacts import make_artifacts
from .config import TimeConfig
from .context import tracked_action
from .exceptions import ConfigError, ElementNotFoundError, TimeoutError
from .executor import (Click, InteractionResult, ResilientActionExecutor,
                       RetryPolicy, Select, SetValue)
from .locators import LocatorSet, as_locator_set
from .repository import Repository
from .settle import AsyncSettledDetector, SettledState
from .stability import StabilityWaiter
from .waits import ConditionPoller

logger = logging.getLogger("webauto.actions")

# group.element, as the locator maps name things
_ELEMENT_NAME = re.compile(r"^[A-Za-z_]\w*(\.\w+)+$")


class Actions:
    """
    Keyword action library providing high-level browser operations.

    Targets may be a LocatorSet, a Locator, an element name from the
    repository or a raw selector string. Interactions go through the
    resilient executor and raise ActionError only once retries are
    exhausted; waits raise TimeoutError.
    """

    def __init__(
        self,
        session: Any,
        repository: Optional[Repository] = None,
        config: Optional[TimeConfig] = None,
        policy: Optional[RetryPolicy] = None,
        artifacts_dir: Optional[str] = None,
        settle: Optional[AsyncSettledDetector] = None,
    ):
        """
        @param session Automation session (e.g. SeleniumSession)
        @param repository Optional locator map for element names
        @param config Timing snapshot; defaults to the repository's, then TimeConfig.current()
        @param policy Retry policy for every interaction; defaults per action from config
        @param artifacts_dir Where failure artifacts go; defaults to the repository's
        @param settle Settled detector; defaults to one built from the repository app section
        """
        self.session = session
        self.repository = repository
        if config is None and repository is not None:
            config = repository.time_config()
        self._config = config
        self.policy = policy

        if artifacts_dir is None and repository is not None:
            artifacts_dir = repository.app.artifacts_dir
        self.artifacts_dir = artifacts_dir

        if settle is None:
            app = repository.app if repository is not None else None
            settle = AsyncSettledDetector(
                session,
                indicators=app.loading_indicators if app else None,
                counter_scripts=app.counter_scripts if app else None,
                config=config,
            )
        self.settle = settle
        self.poller = ConditionPoller(session, config)
        self.executor = ResilientActionExecutor(session, settle=settle, config=config)
        self.stability = StabilityWaiter(session, config)

    @property
    def config(self) -> TimeConfig:
        return self._config or TimeConfig.current()

    def locators(self, target: Any) -> LocatorSet:
        """
        Turn any accepted target form into a LocatorSet.

        @throws ConfigError for a dotted name in a known element group that the
                repository does not define
        """
        if isinstance(target, str) and self.repository is not None:
            if self.repository.has(target):
                return self.repository.get(target)
            if _ELEMENT_NAME.match(target):
                group = target.split(".", 1)[0] + "."
                if any(name.startswith(group) for name in self.repository.list_elements()):
                    raise ConfigError(f"Unknown element: {target}")
        return as_locator_set(target)

    # --- Interactions ---

    def _interact(self, name: str, target: Any, action: Any, policy: Optional[RetryPolicy], wait_settled: bool) -> InteractionResult:
        locators = self.locators(target)

        try:
            self.poller.until(cond.presence_of(locators), settings="soft_wait", stage="prepare")
        except TimeoutError:
            logger.debug("'%s' not present after soft wait, handing over to executor", locators.label)

        result = self.executor.perform(locators, action, policy or self.policy)
        if not result.ok:
            artifacts = {}
            if self.artifacts_dir:
                artifacts = make_artifacts(self.session, self.artifacts_dir, f"{name}_{locators.label}")
            result.raise_for_outcome(name, locators.label, artifacts)

        if result.used_fallback:
            logger.warning(
                "%s on '%s' needed a %s fallback; locator %s may be brittle",
                name, locators.label, result.failure_class.value, result.locator,
            )
        if wait_settled:
            try:
                self.settle.wait_for_settled()
            except TimeoutError as e:
                logger.warning("Document did not settle after %s on '%s': %s", name, locators.label, e)
        if self.config.after_action_pause > 0:
            time.sleep(self.config.after_action_pause)
        return result

    @tracked_action("click")
    def click(self, target: Any, policy: Optional[RetryPolicy] = None, wait_settled: bool = False) -> InteractionResult:
        """Click target."""
        return self._interact("click", target, Click(), policy, wait_settled)

    @tracked_action("type")
    def type(
        self,
        target: Any,
        text: str,
        clear: bool = True,
        policy: Optional[RetryPolicy] = None,
        wait_settled: bool = False,
    ) -> InteractionResult:
        """Type text into target, clearing it first unless clear=False."""
        return self._interact("type", target, SetValue(text, clear=clear), policy, wait_settled)

    @tracked_action("select")
    def select(
        self,
        target: Any,
        option: Any,
        by: str = "text",
        policy: Optional[RetryPolicy] = None,
        wait_settled: bool = False,
    ) -> InteractionResult:
        """Choose an <option> by visible text, value or index."""
        return self._interact("select", target, Select(option, by=by), policy, wait_settled)

    # --- Waits ---

    @tracked_action("wait_for_visible")
    def wait_for_visible(self, target: Any, timeout: Optional[float] = None) -> Any:
        return self.poller.until(cond.visibility_of(self.locators(target)), timeout=timeout, settings="visibility_wait")

    @tracked_action("wait_for_present")
    def wait_for_present(self, target: Any, timeout: Optional[float] = None) -> Any:
        return self.poller.until(cond.presence_of(self.locators(target)), timeout=timeout, settings="presence_wait")

    @tracked_action("wait_for_clickable")
    def wait_for_clickable(self, target: Any, timeout: Optional[float] = None) -> Any:
        return self.poller.until(cond.clickable(self.locators(target)), timeout=timeout, settings="clickable_wait")

    @tracked_action("wait_for_gone")
    def wait_for_gone(self, target: Any, timeout: Optional[float] = None) -> None:
        """Wait until nothing matching target is displayed."""
        self.poller.until(cond.invisibility_of(self.locators(target)), timeout=timeout, settings="invisibility_wait")

    @tracked_action("wait_for_text")
    def wait_for_text(self, target: Any, text: str, timeout: Optional[float] = None) -> str:
        return self.poller.until(cond.text_present(self.locators(target), text), timeout=timeout, settings="text_wait")

    @tracked_action("wait_for_value_change")
    def wait_for_value_change(self, target: Any, original: str, timeout: Optional[float] = None) -> str:
        return self.poller.until(
            cond.value_changed_from(self.locators(target), original), timeout=timeout, settings="text_wait"
        )

    @tracked_action("wait_for_url_contains")
    def wait_for_url_contains(self, fragment: str, timeout: Optional[float] = None) -> str:
        return self.poller.until(cond.url_contains(fragment), timeout=timeout, settings="url_wait")

    @tracked_action("wait_for_url_change")
    def wait_for_url_change(self, original: Optional[str] = None, timeout: Optional[float] = None) -> str:
        """Wait for the URL to differ from original (default: the URL right now)."""
        if original is None:
            original = self.session.current_url()
        return self.poller.until(cond.url_changed_from(original), timeout=timeout, settings="url_wait")

    @tracked_action("wait_for_title_contains")
    def wait_for_title_contains(self, fragment: str, timeout: Optional[float] = None) -> str:
        return self.poller.until(cond.title_contains(fragment), timeout=timeout, settings="explicit_wait")

    @tracked_action("wait_for_any_visible")
    def wait_for_any_visible(self, *targets: Any, timeout: Optional[float] = None) -> int:
        """Index of the first target that becomes visible."""
        sets = [self.locators(t) for t in targets]
        return self.poller.until(cond.any_visible(*sets), timeout=timeout, settings="visibility_wait")

    @tracked_action("soft_wait_for_visible")
    def soft_wait_for_visible(self, target: Any, timeout: Optional[float] = None) -> Optional[Any]:
        """Like wait_for_visible but returns None instead of raising on timeout."""
        try:
            return self.poller.until(cond.visibility_of(self.locators(target)), timeout=timeout, settings="soft_wait")
        except TimeoutError:
            return None

    @tracked_action("wait_for_settled")
    def wait_for_settled(self, timeout: Optional[float] = None) -> SettledState:
        return self.settle.wait_for_settled(timeout=timeout)

    @tracked_action("wait_for_page_load")
    def wait_for_page_load(self, timeout: Optional[float] = None) -> str:
        return self.poller.until(cond.document_ready(), timeout=timeout, settings="page_load")

    @tracked_action("wait_stable")
    def wait_stable(
        self,
        target: Any,
        quiet_period: Optional[float] = None,
        timeout: Optional[float] = None,
    ) -> str:
        return self.stability.wait_stable(self.locators(target), quiet_period=quiet_period, timeout=timeout)

    @tracked_action("scroll_to")
    def scroll_to(self, target: Any, timeout: Optional[float] = None) -> Any:
        """Scroll target into the viewport once it is present."""
        element = self.wait_for_present(target, timeout=timeout)
        self.session.scroll_into_view(element)
        return element

    # --- Queries ---

    @tracked_action("find")
    def find(self, target: Any) -> Any:
        """
        Resolve target right now, without waiting.

        @throws ElementNotFoundError listing what every locator produced
        """
        locators = self.locators(target)
        resolution = locators.resolve(self.session)
        if resolution is not None:
            return resolution.element
        artifacts = {}
        if self.artifacts_dir:
            artifacts = make_artifacts(self.session, self.artifacts_dir, f"find_{locators.label}")
        raise ElementNotFoundError(locators.label, locators.probe(self.session), artifacts=artifacts)

    @tracked_action("exists")
    def exists(self, target: Any) -> bool:
        """Non-blocking: does any locator of target match right now."""
        return self.locators(target).resolve(self.session) is not None

    @tracked_action("get_text")
    def get_text(self, target: Any, timeout: Optional[float] = None) -> str:
        element = self.wait_for_visible(target, timeout=timeout)
        return self.session.get_text(element)

    @tracked_action("navigate")
    def navigate(self, url: str, wait_settled: bool = True) -> None:
        """Open url, wait for the document to load and optionally settle."""
        self.session.navigate(url)
        self.wait_for_page_load()
        if wait_settled:
            self.wait_for_settled()
