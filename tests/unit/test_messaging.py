"""
Tests for the cross-context message protocol.
"""

import json

import pytest

from synthqa.messaging import (
    ACTIVE_RECORDING_KEY,
    ActionRecorded,
    CapabilityRegistry,
    MessageChannel,
    RecordingStateStore,
    ReplayOptions,
    StartRecording,
    StorageDelete,
    StorageGet,
    StorageResponse,
    StorageSet,
    StopRecording,
    dump_message,
    parse_message,
)
from synthqa.models.actions import Action, ActionType


class TestParseMessage:
    """Raw payloads become typed messages or nothing."""

    def test_parse_dict(self):
        message = parse_message({"type": "start-recording", "recordingId": "rec-1"})
        assert isinstance(message, StartRecording)
        assert message.recording_id == "rec-1"

    def test_parse_json(self):
        message = parse_message(json.dumps({"type": "storage-set", "key": "k", "value": {"a": 1}}))
        assert isinstance(message, StorageSet)
        assert message.value == {"a": 1}

    def test_unknown_type_is_dropped(self):
        assert parse_message({"type": "self-destruct"}) is None

    def test_malformed_body_is_dropped(self):
        assert parse_message({"type": "start-recording"}) is None
        assert parse_message("not json") is None
        assert parse_message(42) is None

    def test_typed_message_passes_through(self):
        message = StopRecording()
        assert parse_message(message) is message

    def test_dump_uses_wire_names(self):
        payload = dump_message(StartRecording(recording_id="rec-1"))
        assert payload == {"type": "start-recording", "recordingId": "rec-1"}

    def test_action_payload_round_trip(self):
        action = Action(type=ActionType.NAVIGATE, value="https://x.test")
        message = parse_message(dump_message(ActionRecorded(action=action)))
        assert message.action == action

    def test_replay_options_wire_names(self):
        options = ReplayOptions.model_validate({"delayBetweenActions": 250, "stopOnError": True})
        assert options.delay_between_actions_ms == 250
        assert options.stop_on_error is True
        assert ReplayOptions().stop_on_error is False


class TestMessageChannel:
    """Test the pub/sub bus."""

    @pytest.mark.asyncio
    async def test_typed_subscription(self):
        channel = MessageChannel()
        received = []

        async def handler(message):
            received.append(message)

        channel.subscribe(handler, "stop-recording")
        await channel.send(StartRecording(recording_id="r"))
        await channel.send(StopRecording())

        assert [m.type for m in received] == ["stop-recording"]

    @pytest.mark.asyncio
    async def test_unsubscribe(self):
        channel = MessageChannel()
        received = []

        async def handler(message):
            received.append(message)

        unsubscribe = channel.subscribe(handler)
        unsubscribe()
        await channel.send(StopRecording())

        assert received == []

    @pytest.mark.asyncio
    async def test_failing_handler_does_not_block_others(self, caplog):
        channel = MessageChannel()
        received = []

        async def broken(message):
            raise RuntimeError("boom")

        async def handler(message):
            received.append(message)

        channel.subscribe(broken)
        channel.subscribe(handler)
        await channel.send(StopRecording())

        assert len(received) == 1
        assert "boom" in caplog.text

    @pytest.mark.asyncio
    async def test_post_and_flush(self):
        channel = MessageChannel()
        queue = channel.listen()

        channel.post(StopRecording())
        await channel.flush()

        assert queue.get_nowait().type == "stop-recording"

    @pytest.mark.asyncio
    async def test_receive_raw(self):
        channel = MessageChannel()
        queue = channel.listen()

        assert await channel.receive({"type": "stop-recording"}) is True
        assert await channel.receive({"type": "bogus"}) is False
        assert queue.qsize() == 1


class TestRecordingStateStore:
    """Test the shared key/value state."""

    @pytest.mark.asyncio
    async def test_set_get_delete_over_channel(self):
        channel = MessageChannel()
        store = RecordingStateStore()
        store.attach(channel)

        await channel.send(StorageSet(key=ACTIVE_RECORDING_KEY, value={"n": 1}))
        assert store.get(ACTIVE_RECORDING_KEY) == {"n": 1}

        await channel.send(StorageDelete(key=ACTIVE_RECORDING_KEY))
        assert store.get(ACTIVE_RECORDING_KEY) is None

    @pytest.mark.asyncio
    async def test_get_posts_response(self):
        channel = MessageChannel()
        store = RecordingStateStore({"k": "v"})
        store.attach(channel)
        queue = channel.listen()

        await channel.send(StorageGet(key="k"))
        await channel.flush()

        messages = [queue.get_nowait() for _ in range(queue.qsize())]
        responses = [m for m in messages if isinstance(m, StorageResponse)]
        assert responses == [StorageResponse(key="k", value="v")]

    @pytest.mark.asyncio
    async def test_last_writer_wins(self):
        channel = MessageChannel()
        store = RecordingStateStore()
        store.attach(channel)

        await channel.send(StorageSet(key="k", value=1))
        await channel.send(StorageSet(key="k", value=2))

        assert store.get("k") == 2

    @pytest.mark.asyncio
    async def test_detach(self):
        channel = MessageChannel()
        store = RecordingStateStore()
        store.attach(channel)
        store.detach()

        await channel.send(StorageSet(key="k", value=1))
        assert store.get("k") is None


class TestCapabilityRegistry:
    """Test the capability registry."""

    def test_register_and_query(self):
        registry = CapabilityRegistry()
        registry.register("recorder", "1.0.0")

        assert registry.is_available("recorder")
        assert registry.version("recorder") == "1.0.0"
        assert registry.list() == ["recorder"]
        assert not registry.is_available("replayer")

    def test_duplicate_registration(self):
        registry = CapabilityRegistry()
        registry.register("recorder", "1.0.0")
        with pytest.raises(ValueError):
            registry.register("recorder", "2.0.0")

    def test_unregister(self):
        registry = CapabilityRegistry()
        registry.register("recorder", "1.0.0")
        registry.unregister("recorder")
        assert registry.as_dict() == {}
