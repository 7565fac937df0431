"""
Messaging module - Typed messages, the channel that carries them and the
shared state they read and write.
"""

from synthqa.messaging.messages import (
    Message,
    StartRecording,
    StopRecording,
    ExecuteTest,
    ReplayOptions,
    CapabilitiesRequest,
    CapabilitiesResponse,
    ActionRecorded,
    RecordingStarted,
    RecordingStopped,
    ActionOutcome,
    ReplayResults,
    ExecutionProgress,
    ExecutionComplete,
    StorageGet,
    StorageSet,
    StorageDelete,
    StorageResponse,
    parse_message,
    dump_message,
)
from synthqa.messaging.channel import MessageChannel
from synthqa.messaging.state_store import (
    RecordingStateStore,
    ACTIVE_RECORDING_KEY,
    COMPLETED_RECORDING_KEY,
)
from synthqa.messaging.capabilities import CapabilityRegistry

__all__ = [
    "Message",
    "StartRecording",
    "StopRecording",
    "ExecuteTest",
    "ReplayOptions",
    "CapabilitiesRequest",
    "CapabilitiesResponse",
    "ActionRecorded",
    "RecordingStarted",
    "RecordingStopped",
    "ActionOutcome",
    "ReplayResults",
    "ExecutionProgress",
    "ExecutionComplete",
    "StorageGet",
    "StorageSet",
    "StorageDelete",
    "StorageResponse",
    "parse_message",
    "dump_message",
    "MessageChannel",
    "RecordingStateStore",
    "ACTIVE_RECORDING_KEY",
    "COMPLETED_RECORDING_KEY",
    "CapabilityRegistry",
]
