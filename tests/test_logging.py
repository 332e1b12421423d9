# tests/test_logging.py
"""
Tests for the action context stack and the action/timing loggers.
"""

import json

from webauto.actionlogger import ACTION_LOGGER
from webauto.context import ActionContextManager, tracked_action
from webauto.exceptions import ActionError
from webauto.executor import FailureClass
from webauto.timinglogger import TIMING_LOGGER
from webauto.waits import wait_until


class TestActionContext:
    def test_nested_contexts(self):
        with ActionContextManager.action("click", element_name="login") as outer:
            with ActionContextManager.action("wait_for_visible", element_name="login", locator="id=login") as inner:
                assert ActionContextManager.current() is inner
                assert inner.parent_context is outer
                assert inner.depth == 1
                assert "via id=login" in inner.description
                assert "X wait_for_visible" in inner.format_trace()
        assert ActionContextManager.current() is None
        assert ActionContextManager.get_current_description() == "operation"


class _Page:
    @tracked_action("open")
    def open(self, target):
        return ActionContextManager.current().element_name

    @tracked_action()
    def explode(self, target):
        raise RuntimeError("boom")


class TestTrackedAction:
    def test_target_becomes_element_name(self):
        assert _Page().open("checkout.button") == "checkout.button"

    def test_emits_finish_events(self, capsys):
        ACTION_LOGGER.configure(console=True, format="jsonl")
        ACTION_LOGGER.enable()
        page = _Page()
        page.open("a")
        try:
            page.explode(target="b")
        except RuntimeError:
            pass
        ACTION_LOGGER.configure(console=True, format="line")

        events = [json.loads(line) for line in capsys.readouterr().out.splitlines()]
        assert [(e["action"], e["status"]) for e in events] == [("open", "ok"), ("explode", "error")]
        assert events[1]["exception"]["type"] == "RuntimeError"
        assert all(e["event"] == "action_finish" for e in events)


class TestActionLogger:
    def test_disabled_prints_nothing(self, capsys):
        ACTION_LOGGER.log(action="click", element="x")
        assert capsys.readouterr().out == ""

    def test_typed_text_is_masked(self, capsys):
        ACTION_LOGGER.configure(console=True, format="line")
        ACTION_LOGGER.enable()
        ACTION_LOGGER.log(action="type", element="q", metadata={"text": "a very long search phrase", "password": "x"})
        out = capsys.readouterr().out
        assert "text=a very lon..." in out
        assert "password=***" in out

    def test_action_error_details(self, capsys):
        ACTION_LOGGER.configure(console=True, format="jsonl")
        ACTION_LOGGER.enable()
        error = ActionError("click", "pay", attempts=3, failure_class=FailureClass.INTERCEPTED)
        ACTION_LOGGER.log(action="click", element="pay", status="error", exception=error)
        ACTION_LOGGER.configure(console=True, format="line")

        event = json.loads(capsys.readouterr().out)
        assert event["exception"]["failure_class"] == "intercepted"
        assert event["exception"]["attempts"] == 3

    def test_retry_sampling(self):
        ACTION_LOGGER.configure(sample_retry_events=2)
        assert ACTION_LOGGER.should_log_retry_attempt(1)
        assert not ACTION_LOGGER.should_log_retry_attempt(3)
        assert ACTION_LOGGER.should_log_retry_attempt(4)
        ACTION_LOGGER.configure(sample_retry_events=1)


class TestTimingLogger:
    def test_wait_events(self, capsys):
        TIMING_LOGGER.configure(console=True, level="INFO")
        TIMING_LOGGER.enable()
        wait_until(lambda: True, timeout=1, description="ready flag")
        out = capsys.readouterr().out
        assert "event=wait_start" in out
        assert "event=wait_success" in out
        assert "description=ready flag" in out

    def test_level_filter(self, capsys, tmp_path):
        log_file = tmp_path / "timing.log"
        TIMING_LOGGER.configure(console=False, file_path=str(log_file), level="ERROR")
        TIMING_LOGGER.enable()
        wait_until(lambda: True, timeout=1)
        TIMING_LOGGER.log(event="wait_timeout", status="error")
        TIMING_LOGGER.configure(console=True, file_path=None, level="INFO")

        lines = log_file.read_text(encoding="utf-8").splitlines()
        assert len(lines) == 1
        assert "event=wait_timeout" in lines[0]
