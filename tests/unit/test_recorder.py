"""
Tests for the client-side RecordingSession.
"""

from typing import List

import pytest

from synthqa.exceptions import RecordingStateError
from synthqa.locators.dom import element_at_path, parse_document
from synthqa.messaging import (
    ACTIVE_RECORDING_KEY,
    COMPLETED_RECORDING_KEY,
    ActionRecorded,
    CapabilitiesRequest,
    CapabilitiesResponse,
    CapabilityRegistry,
    ExecutionComplete,
    ExecutionProgress,
    MessageChannel,
    RecordingStarted,
    RecordingStateStore,
    RecordingStopped,
    ReplayOptions,
    StartRecording,
    StorageDelete,
    StorageSet,
)
from synthqa.models.actions import Action, ActionType, Recording, StrategyKind, Viewport
from synthqa.recorder import RECORDER_CAPABILITY, DomEvent, RecordingSession, ReplayTarget


PAGE = """<html><head></head><body>
<form>
  <input id="email" name="email" type="email">
  <input type="checkbox" name="remember">
  <select name="plan"><option value="free">Free</option><option value="pro">Pro</option></select>
  <button data-testid="submit">Sign in</button>
</form>
</body></html>"""


class FakeClock:
    def __init__(self, start: float = 1000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now


class FakeTarget(ReplayTarget):
    """Replays into a static document and records what was done."""

    def __init__(self, html: str = PAGE, url: str = "https://x.test/login"):
        self.html = html
        self.url = url
        self.done: List[tuple] = []

    def element(self, path):
        return element_at_path(parse_document(self.html), path)

    async def current_url(self) -> str:
        return self.url

    async def snapshot(self) -> str:
        return self.html

    async def navigate(self, url: str) -> None:
        self.done.append(("navigate", url))
        self.url = url

    async def click(self, path) -> None:
        self.done.append(("click", self.element(path).name))

    async def set_value(self, path, value: str) -> None:
        self.done.append(("set_value", self.element(path).get("name"), value))

    async def set_checked(self, path, checked: bool) -> None:
        self.done.append(("set_checked", self.element(path).get("name"), checked))


@pytest.fixture
def document():
    return parse_document(PAGE)


@pytest.fixture
def channel():
    return MessageChannel()


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def session(channel, clock):
    return RecordingSession(channel, clock=clock)


async def drain(channel: MessageChannel, queue) -> list:
    await channel.flush()
    return [queue.get_nowait() for _ in range(queue.qsize())]


class TestRecording:
    """Test capturing interactions."""

    @pytest.mark.asyncio
    async def test_start_records_initial_navigation(self, session, channel):
        queue = channel.listen()
        recording = await session.start("rec-1", url="https://x.test/login", viewport=Viewport(width=1280, height=720))

        assert session.is_recording
        assert recording.actions[0].type == ActionType.NAVIGATE
        assert recording.actions[0].value == "https://x.test/login"

        messages = await drain(channel, queue)
        assert any(isinstance(m, RecordingStarted) and m.recording_id == "rec-1" for m in messages)
        assert any(isinstance(m, StorageSet) and m.key == ACTIVE_RECORDING_KEY for m in messages)

    @pytest.mark.asyncio
    async def test_second_start_is_ignored(self, session):
        await session.start("rec-1")
        assert await session.start("rec-2") is None
        assert session.recording.id == "rec-1"

    @pytest.mark.asyncio
    async def test_click_generates_selector(self, session, channel, document, clock):
        queue = channel.listen()
        await session.start("rec-1", url="https://x.test/login")
        clock.now += 1.5

        action = await session.record_event(DomEvent(kind="click", target=document.find("button")))

        assert action.type == ActionType.CLICK
        assert action.selector.primary.kind == StrategyKind.TESTID
        assert action.timestamp_offset_ms == 1500
        messages = await drain(channel, queue)
        assert any(isinstance(m, ActionRecorded) and m.action == action for m in messages)

    @pytest.mark.asyncio
    async def test_checkbox_click_records_state(self, session, document):
        await session.start("rec-1")
        checkbox = document.find("input", attrs={"type": "checkbox"})

        checked = await session.record_event(DomEvent(kind="click", target=checkbox, checked=True))
        unchecked = await session.record_event(DomEvent(kind="click", target=checkbox, checked=False))
        change = await session.record_event(DomEvent(kind="change", target=checkbox, checked=False))

        assert checked.type == ActionType.CHECK
        assert unchecked.type == ActionType.UNCHECK
        assert change is None

    @pytest.mark.asyncio
    async def test_change_events(self, session, document):
        await session.start("rec-1")

        typed = await session.record_event(DomEvent(kind="change", target=document.find(id="email"), value="a@x.com"))
        selected = await session.record_event(DomEvent(kind="change", target=document.find("select"), value="pro"))

        assert typed.type == ActionType.TYPE
        assert typed.value == "a@x.com"
        assert typed.selector.primary.value == "#email"
        assert selected.type == ActionType.SELECT
        assert selected.value == "pro"

    @pytest.mark.asyncio
    async def test_navigation_events(self, session):
        await session.start("rec-1", url="https://x.test/login")

        same = await session.record_event(DomEvent(kind="navigate", url="https://x.test/login"))
        moved = await session.record_event(DomEvent(kind="navigate", url="https://x.test/home"))

        assert same is None
        assert moved.type == ActionType.NAVIGATE
        assert moved.selector is None

    @pytest.mark.asyncio
    async def test_events_ignored_when_not_recording(self, session, document):
        assert await session.record_event(DomEvent(kind="click", target=document.find("button"))) is None

    @pytest.mark.asyncio
    async def test_event_without_target_is_dropped(self, session):
        await session.start("rec-1")
        assert await session.record_event(DomEvent(kind="click")) is None

    @pytest.mark.asyncio
    async def test_stop_finalizes(self, session, channel, document, clock):
        queue = channel.listen()
        await session.start("rec-1", url="https://x.test/login")
        await session.record_event(DomEvent(kind="click", target=document.find("button")))
        clock.now += 3

        recording = await session.stop()

        assert recording.is_stopped
        assert recording.duration_ms == 3000
        assert len(recording.actions) == 2
        assert not session.is_recording
        with pytest.raises(RecordingStateError):
            recording.append(Action(type=ActionType.NAVIGATE, value="https://x.test"))

        messages = await drain(channel, queue)
        assert any(isinstance(m, StorageSet) and m.key == COMPLETED_RECORDING_KEY for m in messages)
        assert any(isinstance(m, RecordingStopped) for m in messages)
        assert any(isinstance(m, StorageDelete) and m.key == ACTIVE_RECORDING_KEY for m in messages)

    @pytest.mark.asyncio
    async def test_stop_when_idle(self, session):
        assert await session.stop() is None


class TestResume:
    """An active recording survives a page load through shared state."""

    @pytest.mark.asyncio
    async def test_resume_from_state_store(self, channel, clock, document):
        store = RecordingStateStore()
        store.attach(channel)

        first = RecordingSession(channel, clock=clock)
        await first.start("rec-1", url="https://x.test/login")
        await first.record_event(DomEvent(kind="click", target=document.find("button")))
        await channel.flush()
        first.detach()

        reloaded = RecordingSession(channel, clock=clock)
        reloaded.attach()
        await channel.flush()

        assert reloaded.is_recording
        assert reloaded.recording.id == "rec-1"
        assert [a.type for a in reloaded.recording.actions] == [ActionType.NAVIGATE, ActionType.CLICK]

    @pytest.mark.asyncio
    async def test_unreadable_state_is_discarded(self, session, channel):
        queue = channel.listen()
        assert await session.resume({"recording": "garbage"}) is None
        messages = await drain(channel, queue)
        assert any(isinstance(m, StorageDelete) for m in messages)

    @pytest.mark.asyncio
    async def test_stopped_recording_is_not_resumed(self, session):
        recording = Recording(id="old").finalize(10)
        assert await session.resume({"recording": recording.to_payload(), "started_at": 0}) is None


class TestCommands:
    """The session is driven by channel messages."""

    @pytest.mark.asyncio
    async def test_start_message(self, session, channel):
        session.attach()
        await channel.send(StartRecording(recording_id="rec-9"))
        assert session.recording.id == "rec-9"

    @pytest.mark.asyncio
    async def test_capabilities(self, channel):
        registry = CapabilityRegistry()
        RecordingSession(channel, capabilities=registry).attach()
        queue = channel.listen()

        await channel.send(CapabilitiesRequest())
        messages = await drain(channel, queue)

        assert registry.is_available(RECORDER_CAPABILITY)
        responses = [m for m in messages if isinstance(m, CapabilitiesResponse)]
        assert responses and RECORDER_CAPABILITY in responses[0].capabilities


class TestReplay:
    """Test in-page replay of a recording."""

    @pytest.fixture
    def recording(self, document):
        from synthqa.locators.generator import generate_selector

        return Recording(id="rec-1", actions=[
            Action(type=ActionType.NAVIGATE, value="https://x.test/login"),
            Action(type=ActionType.TYPE, selector=generate_selector(document.find(id="email")), value="a@x.com"),
            Action(type=ActionType.CHECK, selector=generate_selector(document.find("input", attrs={"type": "checkbox"}))),
            Action(type=ActionType.SELECT, selector=generate_selector(document.find("select")), value="pro"),
            Action(type=ActionType.CLICK, selector=generate_selector(document.find("button"))),
        ])

    @pytest.mark.asyncio
    async def test_replay_succeeds(self, session, channel, recording):
        queue = channel.listen()
        target = FakeTarget()

        results = await session.execute_test(recording, target)

        assert results.success
        assert len(results.actions) == 5
        assert target.done == [
            ("set_value", "email", "a@x.com"),
            ("set_checked", "remember", True),
            ("set_value", "plan", "pro"),
            ("click", "button"),
        ]
        messages = await drain(channel, queue)
        progress = [m for m in messages if isinstance(m, ExecutionProgress)]
        assert [m.current for m in progress] == [1, 2, 3, 4, 5]
        assert any(isinstance(m, ExecutionComplete) and m.results.success for m in messages)

    @pytest.mark.asyncio
    async def test_replay_navigates_when_url_differs(self, session, recording):
        target = FakeTarget(url="https://x.test/")
        await session.execute_test(recording, target)
        assert target.done[0] == ("navigate", "https://x.test/login")

    @pytest.mark.asyncio
    async def test_missing_element_continues_by_default(self, session, recording):
        html = PAGE.replace('<button data-testid="submit">Sign in</button>', "")
        target = FakeTarget(html=html.split("<select")[0] + html.split("</select>")[1])

        results = await session.execute_test(recording, target)

        assert not results.success
        assert [o.action_index for o in results.errors] == [3, 4]
        assert results.errors[0].error.startswith("Element not found")
        assert len(results.actions) == 5

    @pytest.mark.asyncio
    async def test_stop_on_error(self, session, recording):
        target = FakeTarget(html=PAGE.replace('id="email" name="email" ', ""))

        results = await session.execute_test(recording, target, ReplayOptions(stop_on_error=True))

        assert [o.action_index for o in results.actions] == [0, 1]
        assert results.errors[0].action_index == 1

    @pytest.mark.asyncio
    async def test_custom_action_fails(self, session):
        recording = Recording(id="r", actions=[Action(type=ActionType.CUSTOM, value="window.scrollTo(0, 0)")])
        results = await session.execute_test(recording, FakeTarget())

        assert not results.success
        assert results.errors[0].error == "Unsupported command: window.scrollTo(0, 0)"
