"""
Recording Session - Capture user interactions as a Recording.

The session receives DOM events from whatever hosts the page (the Playwright
page bridge in practice), turns each into an ``Action`` with a generated
selector, and announces every change on a ``MessageChannel``. The active
recording is written to shared state on every append so a page reload can
resume it.

It can also replay a recording inside the page: each element action is
resolved against a fresh snapshot of the document and performed through a
``ReplayTarget``.
"""

import asyncio
import logging
import time
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional

from bs4 import Tag
from pydantic import BaseModel, ValidationError

from synthqa.exceptions import ElementNotFoundError, StepFailure, UnsupportedCommandError
from synthqa.locators.dom import element_path, parse_document
from synthqa.locators.generator import generate_selector
from synthqa.locators.resolver import resolve_selector
from synthqa.messaging.capabilities import CapabilityRegistry
from synthqa.messaging.channel import MessageChannel
from synthqa.messaging.messages import (
    ActionOutcome,
    ActionRecorded,
    CapabilitiesRequest,
    CapabilitiesResponse,
    ExecuteTest,
    ExecutionComplete,
    ExecutionProgress,
    RecordingStarted,
    RecordingStopped,
    ReplayOptions,
    ReplayResults,
    StartRecording,
    StopRecording,
    StorageDelete,
    StorageGet,
    StorageResponse,
    StorageSet,
)
from synthqa.messaging.state_store import ACTIVE_RECORDING_KEY, COMPLETED_RECORDING_KEY
from synthqa.models.actions import Action, ActionType, Recording, Viewport

logger = logging.getLogger(__name__)

RECORDER_CAPABILITY = "recorder"
RECORDER_VERSION = "1.0.0"


@dataclass
class DomEvent:
    """
    One user interaction observed in the page.

    Attributes:
        kind: ``click``, ``change`` or ``navigate``
        target: Event target inside a snapshot of the document
        value: Field value after a change
        checked: Checkbox/radio state after a click
        url: Page URL at the time of the event
        viewport: Viewport size at the time of the event
    """
    kind: str
    target: Optional[Tag] = None
    value: Optional[str] = None
    checked: Optional[bool] = None
    url: Optional[str] = None
    viewport: Optional[Viewport] = None


class ReplayTarget(ABC):
    """
    The page a recording is replayed into.

    Elements are addressed by their child-index path from the document,
    as produced by ``element_path``.
    """

    @abstractmethod
    async def current_url(self) -> str:
        ...

    @abstractmethod
    async def snapshot(self) -> str:
        """Serialized markup of the current document."""
        ...

    @abstractmethod
    async def navigate(self, url: str) -> None:
        ...

    @abstractmethod
    async def click(self, path: List[int]) -> None:
        ...

    @abstractmethod
    async def set_value(self, path: List[int], value: str) -> None:
        """Set a field value and fire ``input`` and ``change``."""
        ...

    @abstractmethod
    async def set_checked(self, path: List[int], checked: bool) -> None:
        ...


class RecordingSession:
    """
    Client-side recorder and replayer.

    Example:
        >>> session = RecordingSession(channel)
        >>> session.attach()
        >>> await session.start("rec-1", url="https://example.com")
        >>> await session.record_event(DomEvent(kind="click", target=button))
        >>> recording = await session.stop()
    """

    def __init__(
        self,
        channel: MessageChannel,
        target: Optional[ReplayTarget] = None,
        capabilities: Optional[CapabilityRegistry] = None,
        clock: Callable[[], float] = time.time,
    ):
        """
        Initialize the session.

        Args:
            channel: Channel for commands, events and storage messages
            target: Page used by ``execute_test``
            capabilities: Registry the recorder announces itself in
            clock: Wall-clock seconds; recordings may resume across page loads
        """
        self.channel = channel
        self.target = target
        self.capabilities = capabilities or CapabilityRegistry()
        self._clock = clock
        self._recording: Optional[Recording] = None
        self._started_at: Optional[float] = None
        self._last_url: Optional[str] = None
        self._unsubscribe = None

        if not self.capabilities.is_available(RECORDER_CAPABILITY):
            self.capabilities.register(RECORDER_CAPABILITY, RECORDER_VERSION)

    @property
    def is_recording(self) -> bool:
        return self._recording is not None and not self._recording.is_stopped

    @property
    def recording(self) -> Optional[Recording]:
        return self._recording

    def attach(self) -> None:
        """Listen for commands and ask shared state for an active recording."""
        self.detach()
        self._unsubscribe = self.channel.subscribe(
            self.handle_message,
            "start-recording",
            "stop-recording",
            "execute-test",
            "storage-response",
            "capabilities-request",
        )
        self.channel.post(StorageGet(key=ACTIVE_RECORDING_KEY))

    def detach(self) -> None:
        if self._unsubscribe is not None:
            self._unsubscribe()
            self._unsubscribe = None

    async def handle_message(self, message: BaseModel) -> None:
        """Dispatch a command or storage reply."""
        if isinstance(message, StartRecording):
            await self.start(message.recording_id, url=self._last_url)
        elif isinstance(message, StopRecording):
            await self.stop()
        elif isinstance(message, ExecuteTest):
            if self.target is None:
                logger.error("Cannot execute test: no replay target attached")
                return
            await self.execute_test(message.recording, self.target, message.options)
        elif isinstance(message, StorageResponse) and message.key == ACTIVE_RECORDING_KEY:
            if message.value and not self.is_recording:
                await self.resume(message.value)
        elif isinstance(message, CapabilitiesRequest):
            self.channel.post(CapabilitiesResponse(capabilities=self.capabilities.as_dict()))

    async def start(
        self,
        recording_id: str,
        url: Optional[str] = None,
        viewport: Optional[Viewport] = None,
    ) -> Optional[Recording]:
        """
        Start a new recording.

        The current page is recorded as the first ``navigate`` action.

        Returns:
            The new recording, or None if one is already in progress
        """
        if self.is_recording:
            logger.warning(f"Already recording {self._recording.id}; ignoring start of {recording_id}")
            return None

        self._recording = Recording(id=recording_id, start_url=url, viewport=viewport)
        self._started_at = self._clock()
        self._last_url = url
        if url:
            self._recording.append(Action(type=ActionType.NAVIGATE, value=url, viewport=viewport))

        logger.info(f"Recording started: {recording_id}")
        self._persist_active()
        self.channel.post(RecordingStarted(recording_id=recording_id))
        return self._recording

    async def resume(self, state: Dict[str, Any]) -> Optional[Recording]:
        """
        Continue a recording from its persisted state after a page load.

        Args:
            state: Value stored under the active recording key
        """
        try:
            recording = Recording.model_validate(state["recording"])
            started_at = float(state["started_at"])
        except (KeyError, TypeError, ValueError, ValidationError) as e:
            logger.warning(f"Discarding unreadable active recording state: {e}")
            self.channel.post(StorageDelete(key=ACTIVE_RECORDING_KEY))
            return None

        if recording.is_stopped:
            return None

        self._recording = recording
        self._started_at = started_at
        navigations = [a.value for a in recording.actions if a.type == ActionType.NAVIGATE]
        self._last_url = navigations[-1] if navigations else recording.start_url
        logger.info(f"Resumed recording {recording.id} with {len(recording.actions)} actions")
        self.channel.post(RecordingStarted(recording_id=recording.id))
        return recording

    async def record_event(self, event: DomEvent) -> Optional[Action]:
        """
        Turn a DOM event into an action and append it.

        Events arriving while not recording, and events that map to no
        action, are ignored.

        Returns:
            The appended action, or None
        """
        if not self.is_recording:
            return None

        action = self._action_for(event)
        if action is None:
            return None

        self._recording.append(action)
        logger.debug(f"Recorded {action.type.value}: {action.selector.describe() if action.selector else action.value}")
        self.channel.post(ActionRecorded(action=action))
        self._persist_active()
        return action

    async def stop(self) -> Optional[Recording]:
        """
        Stop and finalize the current recording.

        Returns:
            The finalized recording, or None if nothing was being recorded
        """
        if not self.is_recording:
            logger.warning("Not recording")
            return None

        recording = self._recording.finalize(self._elapsed_ms())
        logger.info(f"Recording stopped: {recording.id} ({len(recording.actions)} actions, {recording.duration_ms}ms)")

        self.channel.post(StorageSet(key=COMPLETED_RECORDING_KEY, value=recording.to_payload()))
        self.channel.post(RecordingStopped(recording=recording))
        self.channel.post(StorageDelete(key=ACTIVE_RECORDING_KEY))
        return recording

    def _action_for(self, event: DomEvent) -> Optional[Action]:
        offset = self._elapsed_ms()

        if event.kind == "navigate":
            if not event.url or event.url == self._last_url:
                return None
            self._last_url = event.url
            return Action(type=ActionType.NAVIGATE, timestamp_offset_ms=offset, value=event.url, viewport=event.viewport)

        if event.target is None:
            logger.debug(f"Dropping '{event.kind}' event without a target")
            return None

        tag = event.target.name
        input_type = (event.target.get("type") or "").lower()

        if event.kind == "click":
            if tag == "input" and input_type in ("checkbox", "radio") and event.checked is not None:
                action_type = ActionType.CHECK if event.checked else ActionType.UNCHECK
            else:
                action_type = ActionType.CLICK
            return Action(
                type=action_type,
                timestamp_offset_ms=offset,
                selector=generate_selector(event.target),
                viewport=event.viewport,
            )

        if event.kind == "change":
            if tag == "input" and input_type in ("checkbox", "radio"):
                return None
            action_type = ActionType.SELECT if tag == "select" else ActionType.TYPE
            return Action(
                type=action_type,
                timestamp_offset_ms=offset,
                selector=generate_selector(event.target),
                value=event.value or "",
                viewport=event.viewport,
            )

        logger.debug(f"Ignoring unsupported event kind '{event.kind}'")
        return None

    def _elapsed_ms(self) -> int:
        if self._started_at is None:
            return 0
        return max(int((self._clock() - self._started_at) * 1000), 0)

    def _persist_active(self) -> None:
        if self._recording is None:
            return
        self.channel.post(StorageSet(
            key=ACTIVE_RECORDING_KEY,
            value={
                "recording": self._recording.to_payload(),
                "started_at": self._started_at,
                "action_count": len(self._recording.actions),
            },
        ))

    async def execute_test(
        self,
        recording: Recording,
        target: ReplayTarget,
        options: Optional[ReplayOptions] = None,
    ) -> ReplayResults:
        """
        Replay a recording inside the page.

        Progress is posted after every action and the results once at the
        end.

        Args:
            recording: Recording to replay
            target: Page to replay into
            options: Delay and stop-on-error behavior

        Returns:
            Per-action outcomes
        """
        options = options or ReplayOptions()
        results = ReplayResults()
        total = len(recording.actions)
        logger.info(f"Executing test with {total} actions")

        for index, action in enumerate(recording.actions):
            if options.delay_between_actions_ms:
                await asyncio.sleep(options.delay_between_actions_ms / 1000)

            outcome = ActionOutcome(action_index=index, type=action.type.value, success=False)
            try:
                await self._replay_action(action, target)
                outcome.success = True
            except StepFailure as e:
                outcome.error = e.message
                logger.error(f"Error at step {index}: {e.message}")

            results.actions.append(outcome)
            if not outcome.success:
                results.success = False
                results.errors.append(outcome)

            self.channel.post(ExecutionProgress(current=index + 1, total=total, action=outcome))
            if not outcome.success and options.stop_on_error:
                break

        self.channel.post(ExecutionComplete(results=results))
        return results

    async def _replay_action(self, action: Action, target: ReplayTarget) -> None:
        if action.type == ActionType.NAVIGATE:
            if action.value and await target.current_url() != action.value:
                await target.navigate(action.value)
            return
        if action.type == ActionType.SCREENSHOT:
            return
        if action.type == ActionType.CUSTOM or action.selector is None:
            raise UnsupportedCommandError(action.value or action.type.value)

        document = parse_document(await target.snapshot())
        element = resolve_selector(action.selector, document)
        if element is None:
            raise ElementNotFoundError(
                f"Element not found: {action.selector.primary.value}",
                selector=action.selector.primary.value,
            )
        path = element_path(element)

        if action.type == ActionType.CLICK:
            await target.click(path)
        elif action.type in (ActionType.TYPE, ActionType.SELECT):
            await target.set_value(path, action.value or "")
        elif action.type in (ActionType.CHECK, ActionType.UNCHECK):
            await target.set_checked(path, action.type == ActionType.CHECK)
