# webauto/context.py
"""
@file context.py
@brief Action context stack used to describe nested browser interactions.

Each thread keeps its own stack, so one session per worker never sees the
contexts of another worker.
"""

from __future__ import annotations

import functools
import threading
import time
from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Generator, List, Optional
from uuid import uuid4


@dataclass
class ActionContext:
    """Context information for a single action."""
    action_id: str = field(default_factory=lambda: str(uuid4())[:8])
    action_name: str = ""
    element_name: Optional[str] = None
    locator: Optional[str] = None
    start_time: float = field(default_factory=time.monotonic)
    metadata: Dict[str, Any] = field(default_factory=dict)
    parent_context: Optional[ActionContext] = None

    @property
    def description(self) -> str:
        parts = [self.action_name]
        if self.element_name:
            parts.append(f"on '{self.element_name}'")
        if self.locator and self.locator != self.element_name:
            parts.append(f"via {self.locator}")
        return " ".join(parts)

    @property
    def elapsed_time(self) -> float:
        return time.monotonic() - self.start_time

    @property
    def depth(self) -> int:
        return len(self.get_full_trace()) - 1

    def to_dict(self) -> Dict[str, Any]:
        return {
            "action_id": self.action_id,
            "action_name": self.action_name,
            "element_name": self.element_name,
            "locator": self.locator,
            "elapsed_time": self.elapsed_time,
            "metadata": self.metadata,
        }

    def get_full_trace(self) -> List[ActionContext]:
        """Innermost context first, then its parents."""
        trace = [self]
        current = self.parent_context
        while current is not None:
            trace.append(current)
            current = current.parent_context
        return trace

    def format_trace(self) -> str:
        lines = ["Action trace (most recent first):"]
        for i, ctx in enumerate(self.get_full_trace()):
            prefix = "  -> " if i > 0 else "  X "
            lines.append(f"{prefix}{ctx.description} [{ctx.elapsed_time:.2f}s]")
        return "\n".join(lines)


class ActionContextManager:
    """Per-thread stack of action contexts."""

    _local = threading.local()

    @classmethod
    def _get_stack(cls) -> List[ActionContext]:
        if not hasattr(cls._local, "stack"):
            cls._local.stack = []
        return cls._local.stack

    @classmethod
    def current(cls) -> Optional[ActionContext]:
        stack = cls._get_stack()
        return stack[-1] if stack else None

    @classmethod
    def push(cls, context: ActionContext) -> None:
        stack = cls._get_stack()
        if stack:
            context.parent_context = stack[-1]
        stack.append(context)

    @classmethod
    def pop(cls) -> Optional[ActionContext]:
        stack = cls._get_stack()
        return stack.pop() if stack else None

    @classmethod
    @contextmanager
    def action(
        cls,
        action_name: str,
        element_name: Optional[str] = None,
        locator: Optional[str] = None,
        **metadata: Any,
    ) -> Generator[ActionContext, None, None]:
        """Push a context for the duration of the block."""
        context = ActionContext(
            action_name=action_name,
            element_name=element_name,
            locator=locator,
            metadata=metadata,
        )
        cls.push(context)
        try:
            yield context
        finally:
            cls.pop()

    @classmethod
    def get_current_description(cls) -> str:
        current = cls.current()
        if current:
            return current.description
        return "operation"

    @classmethod
    def clear(cls) -> None:
        cls._local.stack = []


def _target_label(target: Any) -> Optional[str]:
    """Best human-readable name for a target argument."""
    if target is None:
        return None
    if isinstance(target, str):
        return target
    label = getattr(target, "label", None)
    if isinstance(label, str):
        return label
    return str(target)


def tracked_action(action_name: Optional[str] = None) -> Callable:
    """
    Decorator for Actions methods: push an ActionContext and emit an
    action_finish event with status and duration through ACTION_LOGGER.

    The target is taken from the `target` keyword or the first positional
    argument after `self`.
    """
    def decorator(func: Callable) -> Callable:
        name = action_name or func.__name__

        @functools.wraps(func)
        def wrapper(*args: Any, **kwargs: Any) -> Any:
            from .actionlogger import ACTION_LOGGER

            target = kwargs.get("target")
            if target is None and len(args) > 1:
                target = args[1]
            element_name = _target_label(target)

            start = time.monotonic()
            with ActionContextManager.action(name, element_name=element_name) as context:
                try:
                    result = func(*args, **kwargs)
                except Exception as exc:
                    ACTION_LOGGER.log(
                        action=name,
                        element=element_name,
                        status="error",
                        duration_ms=int((time.monotonic() - start) * 1000),
                        metadata=kwargs,
                        exception=exc,
                        action_id=context.action_id,
                        phase="execute",
                        event="action_finish",
                    )
                    raise
                ACTION_LOGGER.log(
                    action=name,
                    element=element_name,
                    status="ok",
                    duration_ms=int((time.monotonic() - start) * 1000),
                    metadata=kwargs,
                    action_id=context.action_id,
                    phase="execute",
                    event="action_finish",
                )
                return result

        return wrapper

    return decorator
