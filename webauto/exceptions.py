# webauto/exceptions.py
"""
@file exceptions.py
@brief Custom exception classes for the web synchronization layer.
"""

from __future__ import annotations
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Dict, List, Optional

if TYPE_CHECKING:
    from .executor import FailureClass


class WebAutoError(Exception):
    """Base exception for the framework."""
    pass


class ConfigError(WebAutoError):
    """Raised when YAML/JSON configuration is invalid."""
    pass


class TimeoutError(WebAutoError):
    """
    Raised when a condition never became Ready within its time budget.

    This exception preserves the last state the condition reported and the
    last exception raised while evaluating it.

    Attributes:
        original_exception: The last exception raised before timeout
        last_state: The last non-Ready outcome observed (Pending/Failed)
        description: Human-readable description of what was being waited for
        timeout: The timeout value in seconds
        attempt_count: Number of evaluations made
        elapsed_time: Actual elapsed time in seconds
    """

    def __init__(self, message: str):
        super().__init__(message)
        self.original_exception: Optional[BaseException] = None
        self.last_state: Any = None
        self.description: Optional[str] = None
        self.timeout: Optional[float] = None
        self.attempt_count: Optional[int] = None
        self.elapsed_time: Optional[float] = None
        self.stage: Optional[str] = None

    def __str__(self) -> str:
        base_msg = super().__str__()

        details = []
        if self.original_exception is not None:
            details.append(f"Original exception: {type(self.original_exception).__name__}")
        if self.attempt_count is not None:
            details.append(f"Attempts: {self.attempt_count}")
        if self.elapsed_time is not None:
            details.append(f"Elapsed: {self.elapsed_time:.2f}s")
        if self.stage is not None:
            details.append(f"Stage: {self.stage}")

        if details:
            return f"{base_msg} [{', '.join(details)}]"
        return base_msg

    def get_root_cause(self) -> Optional[BaseException]:
        """
        Get the root cause exception by traversing the chain.

        @return The deepest original_exception in the chain, or None
        """
        current = self.original_exception
        while current is not None:
            if getattr(current, "original_exception", None) is not None:
                current = current.original_exception
            else:
                return current
        return None

    def get_traceback_str(self) -> str:
        """
        Get a formatted traceback string from the original exception.

        @return Formatted traceback string or empty string if no original exception
        """
        if self.original_exception is None:
            return ""

        import traceback
        return "".join(traceback.format_exception(
            type(self.original_exception),
            self.original_exception,
            self.original_exception.__traceback__
        ))


class ConditionFailedError(WebAutoError):
    """
    Raised when a condition reports Failed: it will never become Ready,
    so the wait is abandoned without consuming the rest of the timeout.
    """

    def __init__(
        self,
        description: str,
        reason: str,
        original_exception: Optional[BaseException] = None,
    ):
        self.description = description
        self.reason = reason
        self.original_exception = original_exception
        super().__init__(f"Condition '{description}' failed: {reason}")


class MalformedConditionError(ConditionFailedError):
    """Raised when a condition throws an error type that retrying cannot fix."""
    pass


# --- Session-level interaction errors ---


class SessionError(WebAutoError):
    """Base for errors reported by the automation session."""
    pass


class StaleElementError(SessionError):
    """Raised when an element reference no longer points to a live node."""
    pass


class ElementInterceptedError(SessionError):
    """Raised when another element would receive the interaction."""
    pass


class ElementNotInteractableError(SessionError):
    """Raised when the target exists but cannot be interacted with yet."""
    pass


class NoSuchElementError(SessionError):
    """Raised when a lookup or interaction finds no matching node."""
    pass


class InvalidLocatorError(SessionError):
    """Raised for a syntactically invalid locator. Never retried."""
    pass


class ScriptError(SessionError):
    """Raised when executing a script in the document fails."""
    pass


@dataclass
class LocatorAttempt:
    """Records a single locator attempt for debugging."""
    strategy: str
    query: str
    error: Optional[str] = None


class ElementNotFoundError(WebAutoError):
    """
    Raised when no locator of a LocatorSet matched any node.

    Contains detailed information about all locator attempts made.
    """

    def __init__(
        self,
        element_name: str,
        attempts: List[LocatorAttempt],
        timeout: Optional[float] = None,
        last_error: Optional[str] = None,
        artifacts: Optional[Dict[str, str]] = None,
    ):
        self.element_name = element_name
        self.attempts = attempts
        self.timeout = timeout
        self.last_error = last_error
        self.artifacts = artifacts or {}
        super().__init__(self.__str__())

    def __str__(self) -> str:
        header = f"ElementNotFoundError: element='{self.element_name}'"
        if self.timeout is not None:
            header += f" timeout={self.timeout}s"
        lines = [header]
        if self.last_error:
            lines.append(f"Last error: {self.last_error}")
        lines.append("Attempts:")
        for i, a in enumerate(self.attempts, start=1):
            lines.append(f"  {i}. {a.strategy}: {a.query} err={a.error}")
        if self.artifacts:
            lines.append(f"Artifacts: {self.artifacts}")
        return "\n".join(lines)


class ActionError(WebAutoError):
    """
    Raised when a UI action fails after its retry policy is exhausted.

    Contains information about the action, target element, number of
    attempts, the failure class of the last attempt and the underlying cause.
    """

    def __init__(
        self,
        action: str,
        element_name: Optional[str] = None,
        details: Optional[str] = None,
        artifacts: Optional[Dict[str, str]] = None,
        cause: Optional[BaseException] = None,
        attempts: Optional[int] = None,
        failure_class: Optional[FailureClass] = None,
    ):
        self.action = action
        self.element_name = element_name
        self.details = details
        self.artifacts = artifacts or {}
        self.cause = cause
        self.attempts = attempts
        self.failure_class = failure_class
        super().__init__(self.__str__())

    def __str__(self) -> str:
        base = f"ActionError: action='{self.action}'"
        if self.element_name:
            base += f" element='{self.element_name}'"
        if self.attempts is not None:
            base += f" attempts={self.attempts}"
        if self.failure_class is not None:
            base += f" failure_class={self.failure_class.value}"
        if self.details:
            base += f" details='{self.details}'"
        if self.cause:
            base += f" cause='{type(self.cause).__name__}: {self.cause}'"
        if self.artifacts:
            base += f" artifacts={self.artifacts}"
        return base

    def get_cause_traceback(self) -> str:
        """
        Get a formatted traceback string from the cause exception.

        @return Formatted traceback string or empty string if no cause
        """
        if self.cause is None:
            return ""

        import traceback
        return "".join(traceback.format_exception(
            type(self.cause),
            self.cause,
            self.cause.__traceback__
        ))
