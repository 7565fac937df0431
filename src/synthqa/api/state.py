"""
API State - The stores and execution manager shared by all routes.

One ``AppState`` is installed per application by ``create_app``; routes
fetch it with ``get_app_state()``.
"""

import logging
from dataclasses import dataclass
from typing import Optional

from synthqa.config.settings import Settings
from synthqa.execution.session_manager import BrowserFactory, ExecutionSessionManager
from synthqa.storage import create_stores
from synthqa.storage.base import ArtifactStore, ExecutionStore, ScriptStore

logger = logging.getLogger(__name__)


@dataclass
class AppState:
    """Everything a request handler needs."""
    settings: Settings
    executions: ExecutionStore
    scripts: ScriptStore
    artifacts: ArtifactStore
    manager: ExecutionSessionManager


def build_app_state(settings: Settings, browser_factory: Optional[BrowserFactory] = None) -> AppState:
    """
    Build stores and the execution manager from settings.

    Args:
        settings: Application settings
        browser_factory: Override for the per-run browser (tests)
    """
    executions, scripts, artifacts = create_stores(settings)
    manager = ExecutionSessionManager(executions, scripts, artifacts, settings, browser_factory)
    logger.debug(f"API state ready (store={settings.execution.store}, output={settings.execution.output_dir})")
    return AppState(
        settings=settings,
        executions=executions,
        scripts=scripts,
        artifacts=artifacts,
        manager=manager,
    )


_state: Optional[AppState] = None


def set_app_state(state: Optional[AppState]) -> None:
    global _state
    _state = state


def get_app_state() -> AppState:
    """Get the installed application state."""
    if _state is None:
        raise RuntimeError("API state not initialized; create the app with create_app()")
    return _state
