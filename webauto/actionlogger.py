# webauto/actionlogger.py
"""
@file actionlogger.py
@brief Central action logging facility for browser interactions.
"""

from __future__ import annotations

import json
import os
import threading
import time
import traceback
from datetime import datetime, timezone
from typing import Any, Dict, Optional

_TEXT_ACTIONS = {"type", "set_value"}
_SENSITIVE_KEYS = {"password", "passwd", "secret", "token"}


class ActionLogger:
    """Thread-safe action logger with line/jsonl output."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._enabled = False
        self._console = True
        self._file_path: Optional[str] = None
        self._level = "INFO"
        self._run_id = "default"
        self._format = "line"
        self._max_traceback_chars = 4000
        self._sample_retry_events = 1

    def configure(
        self,
        *,
        console: bool = True,
        file_path: Optional[str] = None,
        level: str = "INFO",
        run_id: Optional[str] = None,
        format: str = "line",
        max_traceback_chars: int = 4000,
        sample_retry_events: int = 1,
    ) -> None:
        """Configure logger settings."""
        fmt = (format or "line").lower()
        if fmt not in {"line", "jsonl"}:
            raise ValueError("ActionLogger format must be 'line' or 'jsonl'")

        with self._lock:
            self._console = bool(console)
            self._file_path = file_path
            self._level = level.upper()
            self._format = fmt
            self._max_traceback_chars = max(256, int(max_traceback_chars))
            self._sample_retry_events = max(1, int(sample_retry_events))
            if run_id:
                self._run_id = run_id

    def enable(self) -> None:
        """Enable logging."""
        with self._lock:
            self._enabled = True

    def disable(self) -> None:
        """Disable logging."""
        with self._lock:
            self._enabled = False

    def is_enabled(self) -> bool:
        """Return True if logging is enabled."""
        return self._enabled

    def should_log_retry_attempt(self, attempt: int) -> bool:
        """Log the first attempt and every Nth one after it."""
        if attempt <= 1:
            return True
        return attempt % self._sample_retry_events == 0

    def log(
        self,
        *,
        action: str,
        element: Optional[str] = None,
        locator: Optional[str] = None,
        status: str = "ok",
        duration_ms: Optional[int] = None,
        metadata: Optional[Dict[str, Any]] = None,
        exception: Optional[BaseException] = None,
        action_id: Optional[str] = None,
        phase: Optional[str] = None,
        attempt: Optional[int] = None,
        event: Optional[str] = None,
    ) -> None:
        """Emit a log event."""
        if not self._enabled:
            return

        meta = self._redact_metadata(action, dict(metadata or {}))

        event_obj: Dict[str, Any] = {
            "timestamp": time.strftime("%H:%M:%S"),
            "ts": datetime.now(timezone.utc).isoformat(timespec="milliseconds"),
            "level": self._level,
            "event": event or "action",
            "action": action,
            "action_id": action_id,
            "element": element,
            "locator": locator,
            "phase": phase,
            "status": status,
            "attempt": attempt,
            "duration_ms": duration_ms,
            "metadata": meta,
            "run_id": self._run_id,
        }

        if exception is not None:
            event_obj["exception"] = self._format_exception(exception)

        line = self._format_output(event_obj)

        with self._lock:
            if self._console:
                print(line, flush=True)
            if self._file_path:
                self._write_file(line)

    def _write_file(self, line: str) -> None:
        try:
            os.makedirs(os.path.dirname(os.path.abspath(self._file_path)) or ".", exist_ok=True)
            with open(self._file_path, "a", encoding="utf-8") as f:
                f.write(line + "\n")
        except OSError:
            pass

    def _format_output(self, event: Dict[str, Any]) -> str:
        if self._format == "jsonl":
            return json.dumps(event, ensure_ascii=False, separators=(",", ":"), default=str)
        return self._format_line(event)

    def _format_line(self, event: Dict[str, Any]) -> str:
        parts = [
            event.get("timestamp", ""),
            event.get("level", "INFO"),
            event.get("action", ""),
        ]

        for key in ("event", "action_id", "phase", "attempt", "status", "duration_ms", "run_id"):
            value = event.get(key)
            if value is not None and value != "":
                parts.append(f"{key}={value}")

        for key in ("element", "locator"):
            value = event.get(key)
            if value:
                parts.append(f"{key}='{value}'")

        for key, value in (event.get("metadata") or {}).items():
            parts.append(f"{key}={value}")

        exc = event.get("exception")
        if exc:
            parts.append(f"exc_type={exc.get('type')}")
            parts.append(f"exc_message={exc.get('message')}")
            for key in ("cause_type", "failure_class", "stage"):
                if exc.get(key):
                    parts.append(f"{key}={exc.get(key)}")

        return " | ".join(parts)

    def _redact_metadata(self, action: str, metadata: Dict[str, Any]) -> Dict[str, Any]:
        redacted = {}
        for key, value in metadata.items():
            if key.lower() in _SENSITIVE_KEYS:
                redacted[key] = "***"
            elif action in _TEXT_ACTIONS and key == "text":
                redacted[key] = self._mask_text(str(value))
            else:
                redacted[key] = value
        return redacted

    @staticmethod
    def _mask_text(text: str, max_visible: int = 10) -> str:
        if len(text) <= max_visible:
            return text
        return f"{text[:max_visible]}..."

    def _format_exception(self, exception: BaseException) -> Dict[str, Any]:
        tb = "".join(traceback.format_exception(type(exception), exception, exception.__traceback__))
        if len(tb) > self._max_traceback_chars:
            tb = tb[: self._max_traceback_chars] + "...<truncated>"

        cause = exception.__cause__
        info: Dict[str, Any] = {
            "type": type(exception).__name__,
            "message": str(exception),
            "traceback": tb.strip(),
            "cause_type": type(cause).__name__ if cause is not None else None,
            "cause_message": str(cause) if cause is not None else None,
        }
        # ActionError / TimeoutError carry retry and wait details
        failure_class = getattr(exception, "failure_class", None)
        if failure_class is not None:
            info["failure_class"] = getattr(failure_class, "value", failure_class)
        for attr in ("attempts", "attempt_count", "stage"):
            value = getattr(exception, attr, None)
            if value is not None:
                info[attr] = value
        return info


ACTION_LOGGER = ActionLogger()
