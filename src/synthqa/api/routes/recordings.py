"""
Recordings API Routes - Turn a finished recording into a runnable script.
"""

import logging
from typing import Optional

from fastapi import APIRouter
from pydantic import BaseModel, ConfigDict, Field

from synthqa.api.state import get_app_state
from synthqa.models.actions import Recording
from synthqa.script.conversion import steps_from_recording
from synthqa.script.generator import ScriptGenerator
from synthqa.storage.base import Script

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/recordings", tags=["recordings"])


class RecordingScriptRequest(BaseModel):
    """Recording to convert, optionally stored as a new script."""
    model_config = ConfigDict(populate_by_name=True)

    recording: Recording
    test_name: Optional[str] = Field(None, alias="testName")
    save: bool = False


@router.post("/script")
async def recording_to_script(request: RecordingScriptRequest):
    """Render a recording as script text."""
    content = ScriptGenerator(test_name=request.test_name).generate(request.recording)
    steps = steps_from_recording(request.recording)

    body = {
        "success": True,
        "script": content,
        "steps": [step.model_dump(mode="json") for step in steps],
    }
    if request.save:
        script = Script(name=request.test_name or f"Recording {request.recording.id}", content=content)
        saved = await get_app_state().scripts.save(script)
        logger.info(f"Saved recording {request.recording.id} as script {saved.id}")
        body["scriptId"] = saved.id
    return body
