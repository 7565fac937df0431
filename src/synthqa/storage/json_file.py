"""
JSON file stores - one document per execution or script under a directory.

Every mutation rewrites the affected document through a temporary file and
an atomic rename, so a reader never sees a half-written record. File access
runs in a worker thread; a per-store lock keeps each read-modify-write whole.
"""

from pathlib import Path
from typing import Any, Callable, List, Optional, TypeVar
import asyncio
import logging

from pydantic import BaseModel, ValidationError

from synthqa.exceptions import ExecutionNotFoundError, ScriptNotFoundError, StorageError
from synthqa.models.execution import ExecutionSession, ExecutionStatus, StepResult, utcnow
from synthqa.storage.base import ExecutionStore, Script, ScriptStore, check_next_result

logger = logging.getLogger(__name__)

T = TypeVar("T")


def _write_model(path: Path, model: BaseModel) -> None:
    tmp = path.with_suffix(".tmp")
    try:
        tmp.write_text(model.model_dump_json(indent=2), encoding="utf-8")
        tmp.replace(path)
    except OSError as e:
        raise StorageError(f"Failed to write {path}: {e}") from e


def _safe_id(record_id: str) -> bool:
    return bool(record_id) and "/" not in record_id and "\\" not in record_id and not record_id.startswith(".")


class _ThreadedFileStore:
    def __init__(self, root: str | Path):
        self.root = Path(root)
        self.root.mkdir(parents=True, exist_ok=True)
        self._lock = asyncio.Lock()

    async def _offload(self, func: Callable[..., T], *args: Any) -> T:
        async with self._lock:
            return await asyncio.to_thread(func, *args)


class JsonFileExecutionStore(_ThreadedFileStore, ExecutionStore):
    """
    Executions stored as ``<root>/<execution_id>.json``.

    Example:
        >>> store = JsonFileExecutionStore("./output/executions")
        >>> await store.create(ExecutionSession(id="abc"))
    """

    def _path(self, execution_id: str) -> Path:
        if not _safe_id(execution_id):
            raise ExecutionNotFoundError(execution_id)
        return self.root / f"{execution_id}.json"

    def _load(self, execution_id: str) -> ExecutionSession:
        path = self._path(execution_id)
        if not path.exists():
            raise ExecutionNotFoundError(execution_id)
        try:
            return ExecutionSession.model_validate_json(path.read_text(encoding="utf-8"))
        except (OSError, ValidationError) as e:
            raise StorageError(f"Corrupt execution record {path}: {e}") from e

    def _create(self, session: ExecutionSession) -> ExecutionSession:
        path = self._path(session.id)
        if path.exists():
            raise StorageError(f"Execution already exists: {session.id}")
        _write_model(path, session)
        return session

    def _update(self, execution_id: str, change: Callable[[ExecutionSession], None]) -> ExecutionSession:
        session = self._load(execution_id)
        change(session)
        _write_model(self._path(execution_id), session)
        return session

    def _delete(self, execution_id: str) -> None:
        path = self._path(execution_id)
        if not path.exists():
            raise ExecutionNotFoundError(execution_id)
        path.unlink()

    def _list(self) -> List[ExecutionSession]:
        sessions = []
        for path in self.root.glob("*.json"):
            try:
                sessions.append(ExecutionSession.model_validate_json(path.read_text(encoding="utf-8")))
            except (OSError, ValidationError) as e:
                logger.warning(f"Skipping unreadable execution record {path.name}: {e}")
        return sorted(sessions, key=lambda s: s.started_at, reverse=True)

    async def create(self, session: ExecutionSession) -> ExecutionSession:
        return await self._offload(self._create, session)

    async def get(self, execution_id: str) -> ExecutionSession:
        return await self._offload(self._load, execution_id)

    async def set_total_steps(self, execution_id: str, total_steps: int) -> None:
        def change(session: ExecutionSession) -> None:
            session.total_steps = total_steps

        await self._offload(self._update, execution_id, change)

    async def append_step_result(self, execution_id: str, result: StepResult) -> None:
        def change(session: ExecutionSession) -> None:
            check_next_result(session, result)
            session.step_results.append(result)

        await self._offload(self._update, execution_id, change)

    async def complete(
        self,
        execution_id: str,
        status: ExecutionStatus,
        duration_ms: int,
        error_message: Optional[str] = None,
        video_url: Optional[str] = None,
    ) -> ExecutionSession:
        def change(session: ExecutionSession) -> None:
            session.status = status
            session.duration_ms = duration_ms
            session.error_message = error_message
            session.video_url = video_url
            session.completed_at = utcnow()

        return await self._offload(self._update, execution_id, change)

    async def delete(self, execution_id: str) -> None:
        await self._offload(self._delete, execution_id)

    async def list(self) -> List[ExecutionSession]:
        return await self._offload(self._list)


class JsonFileScriptStore(_ThreadedFileStore, ScriptStore):
    """Scripts stored as ``<root>/<script_id>.json``."""

    def _path(self, script_id: str) -> Path:
        if not _safe_id(script_id):
            raise ScriptNotFoundError(script_id)
        return self.root / f"{script_id}.json"

    def _save(self, script: Script) -> Script:
        _write_model(self._path(script.id), script)
        return script

    def _load(self, script_id: str) -> Script:
        path = self._path(script_id)
        if not path.exists():
            raise ScriptNotFoundError(script_id)
        try:
            return Script.model_validate_json(path.read_text(encoding="utf-8"))
        except (OSError, ValidationError) as e:
            raise StorageError(f"Corrupt script record {path}: {e}") from e

    async def save(self, script: Script) -> Script:
        return await self._offload(self._save, script)

    async def get(self, script_id: str) -> Script:
        return await self._offload(self._load, script_id)
