"""
Base exceptions for SynthQA.
"""


class SynthQAError(Exception):
    """
    Base exception for all SynthQA errors.

    All custom exceptions inherit from this class, making it easy
    to catch any error from the library.

    Attributes:
        message: Human-readable error message
        details: Optional additional error details
    """

    def __init__(self, message: str, details: dict | None = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def __str__(self) -> str:
        if self.details:
            return f"{self.message} - Details: {self.details}"
        return self.message


class ConfigurationError(SynthQAError):
    """
    Error in configuration.

    Raised when there's an issue with settings, environment variables,
    or configuration files.
    """
    pass


class NotFoundError(SynthQAError):
    """Base exception for lookups of stored records that do not exist."""
    pass


class ScriptNotFoundError(NotFoundError):
    """Raised when an automation script id is unknown to the script store."""

    def __init__(self, script_id: str):
        super().__init__(f"Script not found: {script_id}")
        self.script_id = script_id


class ExecutionNotFoundError(NotFoundError):
    """Raised when an execution id is unknown to the execution store."""

    def __init__(self, execution_id: str):
        super().__init__(f"Execution not found: {execution_id}")
        self.execution_id = execution_id


class StorageError(SynthQAError):
    """
    Error reading or writing persisted records or artifacts.

    Raised by store implementations when the backing medium fails.
    """
    pass
