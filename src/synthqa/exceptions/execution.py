"""
Execution lifecycle and recorder exceptions.
"""

from synthqa.exceptions.base import SynthQAError


class ExecutionSetupError(SynthQAError):
    """Base exception for fatal errors that abort a run before any step."""
    pass


class NoExecutableStepsError(ExecutionSetupError):
    """Raised when a script parses to zero steps."""

    def __init__(self, message: str = "No executable steps found in script"):
        super().__init__(message)


class ExecutionCancelledError(SynthQAError):
    """Raised inside the step loop when a cancellation was requested."""

    def __init__(self, execution_id: str):
        super().__init__("Execution cancelled")
        self.execution_id = execution_id


class RecordingStateError(SynthQAError):
    """
    A recording operation is not valid in the current lifecycle state.

    Raised when appending to a stopped recording, stopping twice, or
    starting while another recording is active on the same document.
    """
    pass
