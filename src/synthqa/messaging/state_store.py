"""
Recording State Store - Shared key/value state for the active recording.

The page hosting the recorder may reload or open in a new tab, so the
active recording is kept outside it and read back on load. Writes are
last-writer-wins; there is no locking or versioning.
"""

import logging
from typing import Any, Dict, Optional

from pydantic import BaseModel

from synthqa.messaging.channel import MessageChannel
from synthqa.messaging.messages import StorageDelete, StorageGet, StorageResponse, StorageSet

logger = logging.getLogger(__name__)

ACTIVE_RECORDING_KEY = "activeRecording"
COMPLETED_RECORDING_KEY = "completedRecording"


class RecordingStateStore:
    """
    Key/value store answering ``storage-*`` messages.

    Example:
        >>> store = RecordingStateStore()
        >>> store.attach(channel)
        >>> await channel.send(StorageGet(key="activeRecording"))
    """

    def __init__(self, initial: Optional[Dict[str, Any]] = None):
        self._values: Dict[str, Any] = dict(initial or {})
        self._channel: Optional[MessageChannel] = None
        self._unsubscribe = None

    def get(self, key: str) -> Any:
        return self._values.get(key)

    def set(self, key: str, value: Any) -> None:
        self._values[key] = value

    def delete(self, key: str) -> None:
        self._values.pop(key, None)

    def attach(self, channel: MessageChannel) -> None:
        """Answer storage messages arriving on ``channel``."""
        self.detach()
        self._channel = channel
        self._unsubscribe = channel.subscribe(
            self._handle, "storage-get", "storage-set", "storage-delete"
        )

    def detach(self) -> None:
        if self._unsubscribe is not None:
            self._unsubscribe()
        self._unsubscribe = None
        self._channel = None

    async def _handle(self, message: BaseModel) -> None:
        if isinstance(message, StorageSet):
            self.set(message.key, message.value)
            logger.debug(f"Stored '{message.key}'")
        elif isinstance(message, StorageDelete):
            self.delete(message.key)
            logger.debug(f"Deleted '{message.key}'")
        elif isinstance(message, StorageGet) and self._channel is not None:
            self._channel.post(StorageResponse(key=message.key, value=self.get(message.key)))
