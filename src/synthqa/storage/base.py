"""
Storage interfaces - Execution records, scripts and artifacts.

Executions are written incrementally: the record is created when a run is
triggered, one step result is appended per executed step, and the record
is completed once. Step results are keyed by ``(execution_id, step_number)``
and must arrive in step order.
"""

from abc import ABC, abstractmethod
from datetime import datetime
from pathlib import Path
from typing import List, Optional
import uuid

from pydantic import BaseModel, Field

from synthqa.exceptions import StorageError
from synthqa.models.execution import (
    ExecutionSession,
    ExecutionStatus,
    StepResult,
    utcnow,
)


def new_id() -> str:
    return str(uuid.uuid4())


class Script(BaseModel):
    """A stored test script."""
    id: str = Field(default_factory=new_id)
    name: str = "Untitled script"
    content: str
    created_at: datetime = Field(default_factory=utcnow)


def check_next_result(session: ExecutionSession, result: StepResult) -> None:
    """Step results are append-only and strictly in step order."""
    expected = len(session.step_results) + 1
    if result.step_number != expected:
        raise StorageError(
            f"Out-of-order step result for execution {session.id}",
            {"expected_step": expected, "got_step": result.step_number},
        )


class ExecutionStore(ABC):
    """Persistence for execution sessions and their step results."""

    @abstractmethod
    async def create(self, session: ExecutionSession) -> ExecutionSession:
        """Persist a new ``running`` execution record."""
        ...

    @abstractmethod
    async def get(self, execution_id: str) -> ExecutionSession:
        """
        Load an execution with its step results.

        Raises:
            ExecutionNotFoundError: If no such execution exists
        """
        ...

    @abstractmethod
    async def set_total_steps(self, execution_id: str, total_steps: int) -> None:
        """Record the number of parsed steps."""
        ...

    @abstractmethod
    async def append_step_result(self, execution_id: str, result: StepResult) -> None:
        """Persist one step result; results are never revised."""
        ...

    @abstractmethod
    async def complete(
        self,
        execution_id: str,
        status: ExecutionStatus,
        duration_ms: int,
        error_message: Optional[str] = None,
        video_url: Optional[str] = None,
    ) -> ExecutionSession:
        """Finalize the execution record."""
        ...

    @abstractmethod
    async def delete(self, execution_id: str) -> None:
        """Delete an execution and its step results."""
        ...

    @abstractmethod
    async def list(self) -> List[ExecutionSession]:
        """All executions, newest first."""
        ...


class ScriptStore(ABC):
    """Persistence for test scripts."""

    @abstractmethod
    async def save(self, script: Script) -> Script:
        ...

    @abstractmethod
    async def get(self, script_id: str) -> Script:
        """
        Load a script.

        Raises:
            ScriptNotFoundError: If no such script exists
        """
        ...


class ArtifactStore(ABC):
    """
    Storage for run artifacts (screenshots and videos).

    Saving returns a URL the artifact can be retrieved from.
    """

    @property
    @abstractmethod
    def video_dir(self) -> Path:
        """Directory the browser writes raw video recordings into."""
        ...

    @abstractmethod
    async def save_screenshot(self, execution_id: str, name: str, data: bytes) -> str:
        """Store a PNG screenshot as ``execution-{id}/{name}``."""
        ...

    @abstractmethod
    async def upload_video(self, execution_id: str, source: Path) -> str:
        """Store a finished video as ``execution-{id}/recording.webm``."""
        ...
