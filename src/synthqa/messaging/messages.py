"""
Cross-context messages exchanged between the recorder, the page it runs in
and the storage/UI contexts.

Every message is a pydantic model tagged by a ``type`` field. Raw payloads
are validated into the matching model with ``parse_message``; payloads with
an unknown type or a malformed body are dropped, so consumers only ever see
well-formed messages they understand.
"""

import logging
from typing import Annotated, Any, Dict, List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, ValidationError

from synthqa.models.actions import Action, Recording

logger = logging.getLogger(__name__)


class _Message(BaseModel):
    model_config = ConfigDict(populate_by_name=True, frozen=True)


# Commands to the recorder

class StartRecording(_Message):
    type: Literal["start-recording"] = "start-recording"
    recording_id: str = Field(alias="recordingId")


class StopRecording(_Message):
    type: Literal["stop-recording"] = "stop-recording"


class ReplayOptions(BaseModel):
    """Options for in-page replay of a recording."""
    model_config = ConfigDict(populate_by_name=True)

    delay_between_actions_ms: int = Field(default=0, ge=0, alias="delayBetweenActions")
    stop_on_error: bool = Field(default=False, alias="stopOnError")


class ExecuteTest(_Message):
    type: Literal["execute-test"] = "execute-test"
    recording: Recording
    options: ReplayOptions = Field(default_factory=ReplayOptions)


class CapabilitiesRequest(_Message):
    type: Literal["capabilities-request"] = "capabilities-request"


# Events from the recorder

class ActionRecorded(_Message):
    type: Literal["action-recorded"] = "action-recorded"
    action: Action


class RecordingStarted(_Message):
    type: Literal["recording-started"] = "recording-started"
    recording_id: str = Field(alias="recordingId")


class RecordingStopped(_Message):
    type: Literal["recording-stopped"] = "recording-stopped"
    recording: Recording


class ActionOutcome(BaseModel):
    """Result of replaying one recorded action."""
    model_config = ConfigDict(populate_by_name=True)

    action_index: int = Field(alias="actionIndex")
    type: str
    success: bool
    error: Optional[str] = None


class ReplayResults(BaseModel):
    success: bool = True
    actions: List[ActionOutcome] = Field(default_factory=list)
    errors: List[ActionOutcome] = Field(default_factory=list)


class ExecutionProgress(_Message):
    type: Literal["execution-progress"] = "execution-progress"
    current: int
    total: int
    action: Optional[ActionOutcome] = None


class ExecutionComplete(_Message):
    type: Literal["execution-complete"] = "execution-complete"
    results: ReplayResults


class CapabilitiesResponse(_Message):
    type: Literal["capabilities-response"] = "capabilities-response"
    capabilities: Dict[str, str] = Field(default_factory=dict)


# Key/value storage protocol

class StorageGet(_Message):
    type: Literal["storage-get"] = "storage-get"
    key: str


class StorageSet(_Message):
    type: Literal["storage-set"] = "storage-set"
    key: str
    value: Any = None


class StorageDelete(_Message):
    type: Literal["storage-delete"] = "storage-delete"
    key: str


class StorageResponse(_Message):
    type: Literal["storage-response"] = "storage-response"
    key: str
    value: Any = None


Message = Annotated[
    Union[
        StartRecording,
        StopRecording,
        ExecuteTest,
        CapabilitiesRequest,
        ActionRecorded,
        RecordingStarted,
        RecordingStopped,
        ExecutionProgress,
        ExecutionComplete,
        CapabilitiesResponse,
        StorageGet,
        StorageSet,
        StorageDelete,
        StorageResponse,
    ],
    Field(discriminator="type"),
]

_adapter: TypeAdapter = TypeAdapter(Message)


def parse_message(raw: Any) -> Optional[Message]:
    """
    Validate a raw payload into a typed message.

    Args:
        raw: A dict, a JSON string, or an already-typed message

    Returns:
        The typed message, or None for unknown or malformed payloads
    """
    if isinstance(raw, _Message):
        return raw
    try:
        if isinstance(raw, (str, bytes)):
            return _adapter.validate_json(raw)
        return _adapter.validate_python(raw)
    except ValidationError as e:
        logger.debug(f"Ignoring unrecognized message: {e.error_count()} validation error(s)")
        return None


def dump_message(message: BaseModel) -> Dict[str, Any]:
    """JSON-compatible payload of a message, with wire field names."""
    return message.model_dump(mode="json", by_alias=True)
