"""
Storage module - Persistence for executions, scripts and artifacts.
"""

from pathlib import Path
from typing import Tuple

from synthqa.config.settings import Settings
from synthqa.storage.base import ArtifactStore, ExecutionStore, Script, ScriptStore
from synthqa.storage.memory import InMemoryExecutionStore, InMemoryScriptStore
from synthqa.storage.json_file import JsonFileExecutionStore, JsonFileScriptStore
from synthqa.storage.artifacts import LocalArtifactStore


def create_stores(settings: Settings) -> Tuple[ExecutionStore, ScriptStore, ArtifactStore]:
    """Build the configured execution, script and artifact stores."""
    root = Path(settings.execution.output_dir)
    artifacts = LocalArtifactStore(root / "artifacts", settings.execution.public_base_url)
    if settings.execution.store == "memory":
        return InMemoryExecutionStore(), InMemoryScriptStore(), artifacts
    return (
        JsonFileExecutionStore(root / "executions"),
        JsonFileScriptStore(root / "scripts"),
        artifacts,
    )


__all__ = [
    "ArtifactStore",
    "ExecutionStore",
    "Script",
    "ScriptStore",
    "InMemoryExecutionStore",
    "InMemoryScriptStore",
    "JsonFileExecutionStore",
    "JsonFileScriptStore",
    "LocalArtifactStore",
    "create_stores",
]
