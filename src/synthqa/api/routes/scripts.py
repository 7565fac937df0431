"""
Script API Routes - Store scripts and preview how they parse.
"""

import logging
from typing import Optional

from fastapi import APIRouter
from pydantic import BaseModel, Field

from synthqa.api.state import get_app_state
from synthqa.script.parser import parse_script
from synthqa.storage.base import Script

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/scripts", tags=["scripts"])


class CreateScriptRequest(BaseModel):
    name: Optional[str] = None
    content: str = Field(..., min_length=1)


@router.post("")
async def create_script(request: CreateScriptRequest):
    """Store a script so it can be executed."""
    script = Script(content=request.content)
    if request.name:
        script.name = request.name
    saved = await get_app_state().scripts.save(script)
    logger.info(f"Saved script {saved.id} ({saved.name})")
    return {"success": True, "script": saved.model_dump(mode="json")}


@router.get("/{script_id}")
async def get_script(script_id: str):
    """Get a stored script."""
    script = await get_app_state().scripts.get(script_id)
    return {"success": True, "script": script.model_dump(mode="json")}


@router.get("/{script_id}/steps")
async def get_script_steps(script_id: str):
    """Parse a stored script and return its steps without running them."""
    script = await get_app_state().scripts.get(script_id)
    steps = parse_script(script.content)
    return {
        "success": True,
        "count": len(steps),
        "steps": [step.model_dump(mode="json") for step in steps],
    }
