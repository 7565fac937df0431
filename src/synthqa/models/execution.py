"""
Execution records - ExecutionSession and its append-only StepResults.
"""

from datetime import datetime, timezone
from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, Field


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class ExecutionStatus(str, Enum):
    """Persisted status of a run."""
    RUNNING = "running"
    PASSED = "passed"
    FAILED = "failed"

    @property
    def is_terminal(self) -> bool:
        return self is not ExecutionStatus.RUNNING


class StepStatus(str, Enum):
    """Outcome of one step."""
    PASSED = "passed"
    FAILED = "failed"


class FailureKind(str, Enum):
    """Why a step failed."""
    ELEMENT_NOT_FOUND = "element_not_found"
    TIMEOUT = "timeout"
    ASSERTION = "assertion"
    UNSUPPORTED_COMMAND = "unsupported_command"
    CANCELLED = "cancelled"
    ERROR = "error"


class StepResult(BaseModel):
    """
    Result of a single executed step.

    Written once per step, in step order, and never revised.
    """
    step_number: int = Field(ge=1)
    description: str
    status: StepStatus
    duration_ms: int = 0
    screenshot_url: Optional[str] = None
    error_message: Optional[str] = None
    failure_kind: Optional[FailureKind] = None


class ExecutionSession(BaseModel):
    """
    One run of a script or recording against a live browser.

    Attributes:
        id: Execution identifier handed back to the caller
        script_id: Script that was run, if any
        browser: Engine used (chromium, firefox, webkit)
        status: running until the run finalizes, then passed or failed
        total_steps: Number of parsed steps (0 until parsed)
        step_results: Results persisted so far, in step order
        video_url: Uploaded run video, None if none or upload failed
        error_message: Failure reason of a failed run
    """
    id: str
    script_id: Optional[str] = None
    browser: str = "chromium"
    status: ExecutionStatus = ExecutionStatus.RUNNING
    started_at: datetime = Field(default_factory=utcnow)
    completed_at: Optional[datetime] = None
    duration_ms: Optional[int] = None
    total_steps: int = 0
    step_results: List[StepResult] = Field(default_factory=list)
    video_url: Optional[str] = None
    error_message: Optional[str] = None

    @property
    def passed_steps(self) -> int:
        return sum(1 for r in self.step_results if r.status == StepStatus.PASSED)

    @property
    def failed_steps(self) -> int:
        return sum(1 for r in self.step_results if r.status == StepStatus.FAILED)

    @property
    def progress(self) -> int:
        """Percentage of parsed steps that have a result."""
        if self.total_steps <= 0:
            return 0
        return round(len(self.step_results) * 100 / self.total_steps)
