"""
Recorder module - Capture interactions as recordings and replay them in the
page.
"""

from synthqa.recorder.session import (
    DomEvent,
    RecordingSession,
    ReplayTarget,
    RECORDER_CAPABILITY,
    RECORDER_VERSION,
)
from synthqa.recorder.page_bridge import PlaywrightPageBridge

__all__ = [
    "DomEvent",
    "RecordingSession",
    "ReplayTarget",
    "RECORDER_CAPABILITY",
    "RECORDER_VERSION",
    "PlaywrightPageBridge",
]
