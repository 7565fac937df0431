"""
Integration tests for the HTTP API.
"""

import time

import pytest
from starlette.testclient import TestClient

from conftest import FakeBrowser, FakePage


@pytest.fixture
def browsers():
    return []


@pytest.fixture
def client(settings, browsers):
    """A test client whose runs use fresh login-page fake browsers."""
    from synthqa.api import create_app
    from synthqa.api.state import build_app_state

    def factory():
        page = FakePage(
            elements={"#email", 'button:has-text("Sign in")'},
            navigations={'button:has-text("Sign in")': "https://x.test/dashboard"},
        )
        browsers.append(FakeBrowser(page))
        return browsers[-1]

    app = create_app(state=build_app_state(settings, browser_factory=factory))
    with TestClient(app) as client:
        yield client


def wait_for_completion(client: TestClient, execution_id: str, attempts: int = 200) -> dict:
    for _ in range(attempts):
        execution = client.get(f"/api/execute-script/{execution_id}").json()["execution"]
        if execution["status"] != "running":
            return execution
        time.sleep(0.01)
    raise AssertionError(f"Execution {execution_id} did not finish")


class TestAppCreation:
    """Test the application factory."""

    def test_routes(self, client):
        paths = [r.path for r in client.app.routes if hasattr(r, "path")]
        assert "/health" in paths
        assert "/api/execute-script" in paths
        assert "/api/execute-script/{execution_id}" in paths
        assert "/api/scripts" in paths
        assert "/api/recordings/script" in paths

    def test_health_check(self, client):
        response = client.get("/health")
        assert response.status_code == 200
        assert response.json()["status"] == "ok"


class TestScriptRoutes:
    """Test storing and previewing scripts."""

    def test_create_and_get(self, client, login_script):
        created = client.post("/api/scripts", json={"name": "login", "content": login_script}).json()

        assert created["success"] is True
        script_id = created["script"]["id"]

        fetched = client.get(f"/api/scripts/{script_id}").json()
        assert fetched["script"]["name"] == "login"
        assert fetched["script"]["content"] == login_script

    def test_steps_preview(self, client, login_script):
        script_id = client.post("/api/scripts", json={"content": login_script}).json()["script"]["id"]

        body = client.get(f"/api/scripts/{script_id}/steps").json()

        assert body["count"] == 4
        assert [s["action"] for s in body["steps"]] == ["navigate", "fill", "click", "expect"]

    def test_empty_content_rejected(self, client):
        assert client.post("/api/scripts", json={"content": ""}).status_code == 422

    def test_unknown_script(self, client):
        response = client.get("/api/scripts/nope")
        assert response.status_code == 404
        assert response.json()["success"] is False


class TestExecutionRoutes:
    """Test triggering and polling executions."""

    def test_execute_and_poll(self, client, login_script, browsers):
        script_id = client.post("/api/scripts", json={"content": login_script}).json()["script"]["id"]

        response = client.post("/api/execute-script", json={"scriptId": script_id, "browserEngine": "firefox"})
        body = response.json()

        assert response.status_code == 200
        assert body["success"] is True
        assert body["status"] == "running"

        execution = wait_for_completion(client, body["executionId"])
        assert execution["status"] == "passed"
        assert execution["browser"] == "firefox"
        assert execution["totalSteps"] == 4
        assert execution["passedSteps"] == 4
        assert execution["progress"] == 100
        assert [s["step_number"] for s in execution["steps"]] == [1, 2, 3, 4]
        assert browsers[0].close_count == 1

    def test_browser_alias(self, client, login_script):
        script_id = client.post("/api/scripts", json={"content": login_script}).json()["script"]["id"]

        body = client.post("/api/execute-script", json={"scriptId": script_id, "browser": "webkit"}).json()

        assert wait_for_completion(client, body["executionId"])["browser"] == "webkit"

    def test_failed_execution(self, client):
        content = "await page.goto('https://x.test');\nawait page.click('#missing');\n"
        script_id = client.post("/api/scripts", json={"content": content}).json()["script"]["id"]

        execution_id = client.post("/api/execute-script", json={"scriptId": script_id}).json()["executionId"]
        execution = wait_for_completion(client, execution_id)

        assert execution["status"] == "failed"
        assert execution["error_message"] == "Element not found: #missing"
        assert execution["failedSteps"] == 1

    def test_unknown_script(self, client):
        response = client.post("/api/execute-script", json={"scriptId": "nope"})
        assert response.status_code == 404
        assert response.json() == {"success": False, "error": "Script not found: nope"}

    def test_invalid_engine(self, client):
        response = client.post("/api/execute-script", json={"scriptId": "x", "browserEngine": "netscape"})
        assert response.status_code == 422

    def test_unknown_execution(self, client):
        assert client.get("/api/execute-script/nope").status_code == 404

    def test_delete_finished_execution(self, client, login_script):
        script_id = client.post("/api/scripts", json={"content": login_script}).json()["script"]["id"]
        execution_id = client.post("/api/execute-script", json={"scriptId": script_id}).json()["executionId"]
        wait_for_completion(client, execution_id)

        assert client.post(f"/api/execute-script/{execution_id}/cancel").json()["cancelled"] is False

        response = client.delete(f"/api/execute-script/{execution_id}")
        assert response.json()["message"] == "Execution deleted"
        assert client.get(f"/api/execute-script/{execution_id}").status_code == 404


class TestRecordingRoutes:
    """Test recording to script conversion."""

    @pytest.fixture
    def recording(self):
        return {
            "id": "rec-1",
            "actions": [
                {"type": "navigate", "value": "https://x.test/login"},
                {
                    "type": "type",
                    "value": "a@x.com",
                    "selector": {"primary": {"kind": "id", "value": "#email"}},
                },
            ],
        }

    def test_convert(self, client, recording):
        body = client.post("/api/recordings/script", json={"recording": recording, "testName": "login"}).json()

        assert body["success"] is True
        assert "await page.goto('https://x.test/login');" in body["script"]
        assert "await page.fill('#email', 'a@x.com');" in body["script"]
        assert [s["action"] for s in body["steps"]] == ["navigate", "fill"]
        assert "scriptId" not in body

    def test_convert_and_save(self, client, recording):
        body = client.post("/api/recordings/script", json={"recording": recording, "save": True}).json()

        stored = client.get(f"/api/scripts/{body['scriptId']}").json()["script"]
        assert stored["content"] == body["script"]
        assert stored["name"] == "Recording rec-1"

    def test_invalid_recording(self, client):
        response = client.post("/api/recordings/script", json={"recording": {"id": "r", "actions": [{"type": "click"}]}})
        assert response.status_code == 422
