"""Integration tests: MCP server factory and a handler-driven project lifecycle."""

import json

import pytest

from projectflow.adapters.files import JsonFileProjectStore
from projectflow.tools import handlers

pytest.importorskip("claude_agent_sdk")

from projectflow.tools.server import create_projectflow_server  # noqa: E402


class TestMCPServerFactory:
    """Verify the server factory creates a valid server."""

    def test_creates_server(self, store, catalog):
        server = create_projectflow_server(store, catalog)
        assert server is not None

    def test_creates_server_with_file_store(self, tmp_path, catalog):
        server = create_projectflow_server(JsonFileProjectStore(tmp_path), catalog)
        assert server is not None


class TestLifecycleOverFiles:
    @pytest.mark.asyncio
    async def test_project_survives_between_calls(self, tmp_path, catalog):
        store = JsonFileProjectStore(tmp_path)
        created = await handlers.create_project_handler(
            {"owner_id": "learner-1", "title": "Volcano", "steps": '["Research"]'}, store, catalog
        )
        pid = json.loads(created["content"][0]["text"])["created"]["id"]

        await handlers.start_building_handler({"project_id": pid}, store, catalog)
        await handlers.move_step_handler({"project_id": pid, "step_id": "step-1", "status": "doing"}, store, catalog)
        await handlers.move_step_handler(
            {"project_id": pid, "step_id": "step-1", "status": "done", "proof": "notes.pdf"}, store, catalog
        )
        await handlers.submit_handler({"project_id": pid}, store, catalog)
        await handlers.approve_handler({"project_id": pid}, store, catalog)

        project = await store.get_project(pid)
        assert project.stage.value == "published"
        assert project.steps[0].proof == "notes.pdf"
