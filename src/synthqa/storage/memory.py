"""
In-memory stores, used by tests and ad-hoc CLI runs.
"""

from typing import Dict, List, Optional

from synthqa.exceptions import ExecutionNotFoundError, ScriptNotFoundError, StorageError
from synthqa.models.execution import ExecutionSession, ExecutionStatus, StepResult, utcnow
from synthqa.storage.base import ExecutionStore, Script, ScriptStore, check_next_result


class InMemoryExecutionStore(ExecutionStore):
    """Execution records held in a dict; copies are returned to callers."""

    def __init__(self):
        self._sessions: Dict[str, ExecutionSession] = {}

    def _load(self, execution_id: str) -> ExecutionSession:
        try:
            return self._sessions[execution_id]
        except KeyError:
            raise ExecutionNotFoundError(execution_id) from None

    async def create(self, session: ExecutionSession) -> ExecutionSession:
        if session.id in self._sessions:
            raise StorageError(f"Execution already exists: {session.id}")
        self._sessions[session.id] = session.model_copy(deep=True)
        return session

    async def get(self, execution_id: str) -> ExecutionSession:
        return self._load(execution_id).model_copy(deep=True)

    async def set_total_steps(self, execution_id: str, total_steps: int) -> None:
        self._load(execution_id).total_steps = total_steps

    async def append_step_result(self, execution_id: str, result: StepResult) -> None:
        session = self._load(execution_id)
        check_next_result(session, result)
        session.step_results.append(result.model_copy())

    async def complete(
        self,
        execution_id: str,
        status: ExecutionStatus,
        duration_ms: int,
        error_message: Optional[str] = None,
        video_url: Optional[str] = None,
    ) -> ExecutionSession:
        session = self._load(execution_id)
        session.status = status
        session.duration_ms = duration_ms
        session.error_message = error_message
        session.video_url = video_url
        session.completed_at = utcnow()
        return session.model_copy(deep=True)

    async def delete(self, execution_id: str) -> None:
        self._load(execution_id)
        del self._sessions[execution_id]

    async def list(self) -> List[ExecutionSession]:
        sessions = sorted(self._sessions.values(), key=lambda s: s.started_at, reverse=True)
        return [s.model_copy(deep=True) for s in sessions]


class InMemoryScriptStore(ScriptStore):
    """Scripts held in a dict."""

    def __init__(self):
        self._scripts: Dict[str, Script] = {}

    async def save(self, script: Script) -> Script:
        self._scripts[script.id] = script
        return script

    async def get(self, script_id: str) -> Script:
        if script_id not in self._scripts:
            raise ScriptNotFoundError(script_id)
        return self._scripts[script_id]
