"""
Tests for execution, script and artifact storage.
"""

import asyncio

import pytest

from synthqa.exceptions import ExecutionNotFoundError, ScriptNotFoundError, StorageError
from synthqa.models.execution import ExecutionSession, ExecutionStatus, StepResult, StepStatus
from synthqa.storage import (
    InMemoryExecutionStore,
    InMemoryScriptStore,
    JsonFileExecutionStore,
    JsonFileScriptStore,
    LocalArtifactStore,
    Script,
    create_stores,
)


def passed(step_number: int) -> StepResult:
    return StepResult(step_number=step_number, description=f"Step {step_number}", status=StepStatus.PASSED)


@pytest.fixture(params=["memory", "json"])
def execution_store(request, tmp_path):
    if request.param == "memory":
        return InMemoryExecutionStore()
    return JsonFileExecutionStore(tmp_path / "executions")


@pytest.fixture(params=["memory", "json"])
def script_store(request, tmp_path):
    if request.param == "memory":
        return InMemoryScriptStore()
    return JsonFileScriptStore(tmp_path / "scripts")


class TestExecutionStore:
    """Behavior shared by every execution store."""

    @pytest.mark.asyncio
    async def test_incremental_lifecycle(self, execution_store):
        await execution_store.create(ExecutionSession(id="e1", script_id="s1"))
        await execution_store.set_total_steps("e1", 2)
        await execution_store.append_step_result("e1", passed(1))

        partial = await execution_store.get("e1")
        assert partial.status == ExecutionStatus.RUNNING
        assert partial.progress == 50

        await execution_store.append_step_result("e1", passed(2))
        done = await execution_store.complete("e1", ExecutionStatus.PASSED, duration_ms=120)

        assert done.status == ExecutionStatus.PASSED
        assert done.duration_ms == 120
        assert done.completed_at is not None
        assert [r.step_number for r in (await execution_store.get("e1")).step_results] == [1, 2]

    @pytest.mark.asyncio
    async def test_out_of_order_result_is_rejected(self, execution_store):
        await execution_store.create(ExecutionSession(id="e1"))

        with pytest.raises(StorageError) as exc_info:
            await execution_store.append_step_result("e1", passed(2))
        assert exc_info.value.details["expected_step"] == 1

        await execution_store.append_step_result("e1", passed(1))
        with pytest.raises(StorageError):
            await execution_store.append_step_result("e1", passed(1))

    @pytest.mark.asyncio
    async def test_duplicate_create(self, execution_store):
        await execution_store.create(ExecutionSession(id="e1"))
        with pytest.raises(StorageError):
            await execution_store.create(ExecutionSession(id="e1"))

    @pytest.mark.asyncio
    async def test_missing_execution(self, execution_store):
        with pytest.raises(ExecutionNotFoundError):
            await execution_store.get("nope")
        with pytest.raises(ExecutionNotFoundError):
            await execution_store.delete("nope")

    @pytest.mark.asyncio
    async def test_delete_and_list(self, execution_store):
        await execution_store.create(ExecutionSession(id="e1"))
        await execution_store.create(ExecutionSession(id="e2"))

        await execution_store.delete("e1")

        assert [s.id for s in await execution_store.list()] == ["e2"]

    @pytest.mark.asyncio
    async def test_returned_records_are_copies(self):
        store = InMemoryExecutionStore()
        await store.create(ExecutionSession(id="e1"))

        loaded = await store.get("e1")
        loaded.step_results.append(passed(1))

        assert (await store.get("e1")).step_results == []


class TestJsonFileStores:
    """File-specific behavior of the JSON stores."""

    @pytest.mark.asyncio
    async def test_path_traversal_is_not_found(self, tmp_path):
        store = JsonFileExecutionStore(tmp_path)
        with pytest.raises(ExecutionNotFoundError):
            await store.get("../secrets")

    @pytest.mark.asyncio
    async def test_corrupt_record(self, tmp_path):
        store = JsonFileExecutionStore(tmp_path)
        (tmp_path / "bad.json").write_text("{", encoding="utf-8")

        with pytest.raises(StorageError):
            await store.get("bad")
        assert await store.list() == []

    @pytest.mark.asyncio
    async def test_records_survive_a_new_store(self, tmp_path):
        await JsonFileExecutionStore(tmp_path).create(ExecutionSession(id="e1", browser="firefox"))
        assert (await JsonFileExecutionStore(tmp_path).get("e1")).browser == "firefox"

    @pytest.mark.asyncio
    async def test_concurrent_writers(self, tmp_path):
        store = JsonFileExecutionStore(tmp_path)
        ids = [f"e{n}" for n in range(8)]
        await asyncio.gather(*(store.create(ExecutionSession(id=i)) for i in ids))

        await asyncio.gather(*(store.set_total_steps(i, 3) for i in ids))

        sessions = await store.list()
        assert sorted(s.id for s in sessions) == sorted(ids)
        assert all(s.total_steps == 3 for s in sessions)
        assert list(tmp_path.glob("*.tmp")) == []


class TestScriptStore:
    """Behavior shared by every script store."""

    @pytest.mark.asyncio
    async def test_save_and_get(self, script_store):
        script = await script_store.save(Script(content="await page.goto('https://x.test');"))

        loaded = await script_store.get(script.id)

        assert loaded.content == script.content
        assert loaded.name == "Untitled script"

    @pytest.mark.asyncio
    async def test_missing_script(self, script_store):
        with pytest.raises(ScriptNotFoundError):
            await script_store.get("nope")


class TestLocalArtifactStore:
    """Test screenshot and video storage."""

    @pytest.mark.asyncio
    async def test_screenshot_file_uri(self, tmp_path):
        artifacts = LocalArtifactStore(tmp_path)

        url = await artifacts.save_screenshot("e1", "step-1.png", b"png")

        assert url.startswith("file://")
        assert (tmp_path / "execution-e1" / "step-1.png").read_bytes() == b"png"

    @pytest.mark.asyncio
    async def test_public_url(self, tmp_path):
        artifacts = LocalArtifactStore(tmp_path, public_base_url="https://cdn.test/artifacts/")

        url = await artifacts.save_screenshot("e1", "step-2-error.png", b"png")

        assert url == "https://cdn.test/artifacts/execution-e1/step-2-error.png"

    @pytest.mark.asyncio
    async def test_video_is_moved(self, tmp_path):
        artifacts = LocalArtifactStore(tmp_path / "artifacts", public_base_url="https://cdn.test")
        raw = artifacts.video_dir / "abc.webm"
        raw.write_bytes(b"webm")

        url = await artifacts.upload_video("e1", raw)

        assert url == "https://cdn.test/execution-e1/recording.webm"
        assert not raw.exists()

    @pytest.mark.asyncio
    async def test_missing_video(self, tmp_path):
        with pytest.raises(StorageError):
            await LocalArtifactStore(tmp_path).upload_video("e1", tmp_path / "none.webm")


class TestCreateStores:
    """Test store selection from settings."""

    def test_memory(self, settings):
        executions, scripts, artifacts = create_stores(settings)
        assert isinstance(executions, InMemoryExecutionStore)
        assert isinstance(scripts, InMemoryScriptStore)
        assert isinstance(artifacts, LocalArtifactStore)

    def test_json(self, settings):
        settings.execution.store = "json"
        executions, scripts, _ = create_stores(settings)
        assert isinstance(executions, JsonFileExecutionStore)
        assert isinstance(scripts, JsonFileScriptStore)
