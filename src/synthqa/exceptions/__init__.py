"""
Exceptions module - Custom exception hierarchy.

This module defines all custom exceptions used throughout SynthQA,
split into fatal setup errors, per-step failures and artifact/storage errors.
"""

from synthqa.exceptions.base import (
    SynthQAError,
    ConfigurationError,
    NotFoundError,
    ScriptNotFoundError,
    ExecutionNotFoundError,
    StorageError,
)
from synthqa.exceptions.browser import (
    BrowserError,
    BrowserAcquisitionError,
    BrowserLaunchError,
    BrowserConnectionError,
    BrowserNotStartedError,
)
from synthqa.exceptions.step import (
    StepFailure,
    ElementNotFoundError,
    ActionTimeoutError,
    AssertionMismatchError,
    UnsupportedCommandError,
    ActionExecutionError,
)
from synthqa.exceptions.execution import (
    ExecutionSetupError,
    NoExecutableStepsError,
    ExecutionCancelledError,
    RecordingStateError,
)

__all__ = [
    # Base exceptions
    "SynthQAError",
    "ConfigurationError",
    "NotFoundError",
    "ScriptNotFoundError",
    "ExecutionNotFoundError",
    "StorageError",
    # Browser exceptions
    "BrowserError",
    "BrowserAcquisitionError",
    "BrowserLaunchError",
    "BrowserConnectionError",
    "BrowserNotStartedError",
    # Step failures
    "StepFailure",
    "ElementNotFoundError",
    "ActionTimeoutError",
    "AssertionMismatchError",
    "UnsupportedCommandError",
    "ActionExecutionError",
    # Lifecycle
    "ExecutionSetupError",
    "NoExecutableStepsError",
    "ExecutionCancelledError",
    "RecordingStateError",
]
