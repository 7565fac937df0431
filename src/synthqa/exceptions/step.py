"""
Step failure exceptions.

Every failure raised while executing a single step derives from
``StepFailure`` and carries a ``failure_kind`` so the session manager can
report why a step failed, not just that it failed.
"""

from synthqa.exceptions.base import SynthQAError


class StepFailure(SynthQAError):
    """Base exception for a failed step."""

    failure_kind = "error"


class ElementNotFoundError(StepFailure):
    """
    Element not found on the page.

    Raised when no strategy of a selector matches an element.
    """

    failure_kind = "element_not_found"

    def __init__(self, message: str, selector: str | None = None):
        super().__init__(message, {"selector": selector})
        self.selector = selector


class ActionTimeoutError(StepFailure):
    """
    A driver operation exceeded its timeout.

    Kept distinct from assertion mismatches so a slow page and a wrong
    page are reported differently.
    """

    failure_kind = "timeout"

    def __init__(self, message: str, action_type: str, timeout_ms: int):
        super().__init__(message, {"action_type": action_type, "timeout_ms": timeout_ms})
        self.action_type = action_type
        self.timeout_ms = timeout_ms


class AssertionMismatchError(StepFailure):
    """An ``expect`` predicate evaluated to false."""

    failure_kind = "assertion"

    def __init__(self, message: str, expected: str | None = None, actual: str | None = None):
        super().__init__(message, {"expected": expected, "actual": actual})
        self.expected = expected
        self.actual = actual


class UnsupportedCommandError(StepFailure):
    """
    The step carries a script command outside the known vocabulary.

    Custom steps always fail with this error so that an unparsable line is
    visible in the results instead of being skipped.
    """

    failure_kind = "unsupported_command"

    def __init__(self, command: str):
        super().__init__(f"Unsupported command: {command}")
        self.command = command


class ActionExecutionError(StepFailure):
    """
    Error during action execution.

    Raised when the driver rejects an action for a reason other than a
    timeout (detached element, invalid URL, etc).
    """

    def __init__(self, message: str, action_type: str, selector: str | None = None):
        super().__init__(message, {"action_type": action_type, "selector": selector})
        self.action_type = action_type
        self.selector = selector
