"""
Tests for the Workflow API

Tests for promptshot/api/main.py and promptshot/api/routers/workflow.py
"""

import json

import pytest
from fastapi.testclient import TestClient

from promptshot.api.main import create_app
from promptshot.core.config import PromptShotConfig
from promptshot.core.exceptions import ServiceError

from conftest import (
    ANIMATION,
    CHARACTERS,
    JSON_RESPONSE,
    SAMPLE_SCRIPT,
    STORYBOARD,
    SUMMARY,
    ScriptedGateway,
)


@pytest.fixture
def api_gateway():
    return ScriptedGateway()


@pytest.fixture
def client(api_gateway, test_config):
    app = create_app(gateway=api_gateway, config=test_config)
    with TestClient(app) as client:
        yield client


def run_full_workflow(client, gateway):
    gateway.responses.extend([SUMMARY, CHARACTERS, STORYBOARD, ANIMATION, JSON_RESPONSE])
    client.patch("/api/workflow/state", json={"script": SAMPLE_SCRIPT})
    for action in ("analyze_script", "set_scene_count", "extract_characters",
                   "generate_storyboard", "generate_animation", "generate_json"):
        response = client.post(f"/api/workflow/actions/{action}")
        assert response.json()["result"]["success"], response.json()


class TestStateEndpoints:
    """Tests for reading and editing state."""

    def test_health(self, client):
        assert client.get("/api/health").json() == {"status": "healthy"}

    def test_initial_state(self, client):
        data = client.get("/api/workflow/state").json()

        assert data["stage"] == 1
        assert data["stage_title"]
        assert data["allowed_actions"] == ["analyze_script", "start_over"]
        assert data["scene_count"] == 3

    def test_patch_script(self, client):
        response = client.patch("/api/workflow/state", json={"script": "Hello"})

        assert response.status_code == 200
        assert response.json()["script"] == "Hello"

    def test_patch_locked_field(self, client):
        response = client.patch("/api/workflow/state", json={"art_style": "Noir"})

        assert response.status_code == 409


class TestActionEndpoints:
    """Tests for triggering actions."""

    def test_full_workflow(self, client, api_gateway):
        run_full_workflow(client, api_gateway)

        state = client.get("/api/workflow/state").json()
        assert state["stage"] == 7
        assert json.loads(state["json_prompts"])[0]["scene_number"] == 1

    def test_unknown_action(self, client):
        assert client.post("/api/workflow/actions/explode").status_code == 404

    def test_empty_script_reports_failure(self, client, api_gateway):
        response = client.post("/api/workflow/actions/analyze_script")

        body = response.json()
        assert response.status_code == 200
        assert body["result"]["success"] is False
        assert body["state"]["error"] == "Script cannot be empty."
        assert api_gateway.calls == []

    def test_service_error_reported(self, client, api_gateway):
        api_gateway.responses.append(ServiceError())
        client.patch("/api/workflow/state", json={"script": SAMPLE_SCRIPT})

        body = client.post("/api/workflow/actions/analyze_script").json()

        assert body["result"]["error_type"] == "ServiceError"
        assert body["state"]["stage"] == 1
        assert body["state"]["is_loading"] is False

    def test_scene_count_payload_clamped(self, client, api_gateway):
        api_gateway.responses.append(SUMMARY)
        client.patch("/api/workflow/state", json={"script": SAMPLE_SCRIPT})
        client.post("/api/workflow/actions/analyze_script")

        body = client.post("/api/workflow/actions/set_scene_count", json={"scene_count": 42}).json()

        assert body["state"]["scene_count"] == 10
        assert body["state"]["stage"] == 3

    def test_start_over(self, client, api_gateway):
        run_full_workflow(client, api_gateway)

        body = client.post("/api/workflow/actions/start_over").json()

        assert body["state"]["stage"] == 1
        assert body["state"]["script"] == ""


class TestFileEndpoints:
    """Tests for upload and export."""

    def test_upload_script(self, client):
        response = client.post(
            "/api/workflow/script/upload",
            files={"file": ("storm.txt", SAMPLE_SCRIPT.encode("utf-8"), "text/plain")},
        )

        assert response.status_code == 200
        assert response.json()["script"] == SAMPLE_SCRIPT

    def test_upload_rejects_non_text(self, client):
        response = client.post(
            "/api/workflow/script/upload",
            files={"file": ("storm.pdf", b"%PDF-1.4", "application/pdf")},
        )

        assert response.status_code == 415
        assert client.get("/api/workflow/state").json()["error"] == "Please upload a valid .txt file."

    def test_export_before_generation(self, client):
        assert client.get("/api/workflow/exports/storyboard").status_code == 404

    def test_export_json(self, client, api_gateway):
        run_full_workflow(client, api_gateway)

        response = client.get("/api/workflow/exports/json")

        assert response.status_code == 200
        assert response.headers["content-type"].startswith("application/json")
        assert 'filename="video_prompts.json"' in response.headers["content-disposition"]
        assert json.loads(response.content) == json.loads(JSON_RESPONSE)

    def test_export_storyboard(self, client, api_gateway):
        run_full_workflow(client, api_gateway)

        response = client.get("/api/workflow/exports/storyboard")

        assert response.text == STORYBOARD


class TestSnapshotFields:
    """Tests for derived values in API responses."""

    def test_scene_counts_exposed(self, client, api_gateway):
        run_full_workflow(client, api_gateway)

        state = client.get("/api/workflow/state").json()

        assert state["storyboard_scene_count"] == 2
        assert state["animation_scene_count"] == 2
        assert state["character_names"] == ["Mara", "Tomas"]

    def test_oversized_scene_count_clamped(self, client, api_gateway):
        api_gateway.responses.append(SUMMARY)
        client.patch("/api/workflow/state", json={"script": SAMPLE_SCRIPT})
        client.post("/api/workflow/actions/analyze_script")

        response = client.patch("/api/workflow/state", json={"scene_count": "9" * 5000})

        assert response.status_code == 200
        assert response.json()["scene_count"] == 10


class TestRateLimiting:
    """Tests for per-application rate limits."""

    def test_each_app_has_its_own_limiter(self):
        limited_config = PromptShotConfig()
        limited_config.server.action_rate_limit = "1/minute"
        open_config = PromptShotConfig()
        open_config.server.rate_limit_enabled = False

        limited_app = create_app(gateway=ScriptedGateway(), config=limited_config)
        open_app = create_app(gateway=ScriptedGateway(), config=open_config)

        assert limited_app.state.limiter is not open_app.state.limiter

        with TestClient(limited_app) as limited, TestClient(open_app) as unlimited:
            assert limited.post("/api/workflow/actions/back").status_code == 200
            assert limited.post("/api/workflow/actions/back").status_code == 429

            for _ in range(3):
                assert unlimited.post("/api/workflow/actions/back").status_code == 200
