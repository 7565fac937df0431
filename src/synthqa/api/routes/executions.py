"""
Execution API Routes - Trigger script runs and inspect their results.

The trigger returns as soon as the ``running`` record exists; the run
itself continues in the background and callers poll the status endpoint.
"""

import logging
from typing import Any, Dict, Literal, Optional

from fastapi import APIRouter
from pydantic import AliasChoices, BaseModel, ConfigDict, Field

from synthqa.api.state import get_app_state
from synthqa.models.execution import ExecutionSession

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/execute-script", tags=["executions"])


class ExecuteScriptRequest(BaseModel):
    """Request to run a stored script."""
    model_config = ConfigDict(populate_by_name=True)

    script_id: str = Field(..., alias="scriptId")
    browser_engine: Optional[Literal["chromium", "firefox", "webkit"]] = Field(
        None,
        validation_alias=AliasChoices("browserEngine", "browser", "browser_engine"),
    )
    headless: Optional[bool] = None


def execution_view(session: ExecutionSession) -> Dict[str, Any]:
    """Execution record plus step results and progress counters."""
    body = session.model_dump(mode="json", exclude={"step_results"})
    body.update({
        "steps": [result.model_dump(mode="json") for result in session.step_results],
        "progress": session.progress,
        "totalSteps": session.total_steps,
        "completedSteps": len(session.step_results),
        "passedSteps": session.passed_steps,
        "failedSteps": session.failed_steps,
    })
    return body


@router.post("")
async def execute_script(request: ExecuteScriptRequest):
    """Start a background run of a stored script."""
    state = get_app_state()
    session = await state.manager.start(
        request.script_id,
        browser=request.browser_engine,
        headless=request.headless,
    )
    return {
        "success": True,
        "executionId": session.id,
        "status": session.status.value,
    }


@router.get("/{execution_id}")
async def get_execution(execution_id: str):
    """Get execution status and step results."""
    session = await get_app_state().executions.get(execution_id)
    return {"success": True, "execution": execution_view(session)}


@router.post("/{execution_id}/cancel")
async def cancel_execution(execution_id: str):
    """Ask a running execution to stop before its next step."""
    state = get_app_state()
    session = await state.executions.get(execution_id)
    cancelled = await state.manager.cancel(session.id)
    return {
        "success": True,
        "cancelled": cancelled,
        "message": "Cancellation requested" if cancelled else "Execution is not running",
    }


@router.delete("/{execution_id}")
async def delete_execution(execution_id: str):
    """Cancel a running execution, or delete a finished one and its steps."""
    state = get_app_state()
    session = await state.executions.get(execution_id)

    if state.manager.is_running(session.id):
        await state.manager.cancel(session.id)
        return {"success": True, "message": "Execution cancelled"}

    await state.executions.delete(session.id)
    logger.info(f"Deleted execution {session.id}")
    return {"success": True, "message": "Execution deleted"}
