"""Tests for tool handler functions using the in-memory collaborators."""

import json
from typing import Any

import pytest
import pytest_asyncio

from projectflow.tools.handlers import (
    add_step_handler,
    advance_stage_handler,
    approve_handler,
    bind_template_handler,
    commit_feed_handler,
    commit_handler,
    create_project_handler,
    delete_step_handler,
    get_project_handler,
    history_handler,
    list_projects_handler,
    list_templates_handler,
    move_step_handler,
    progress_handler,
    reject_handler,
    restore_handler,
    review_step_handler,
    start_building_handler,
    submit_handler,
)


def _parse_result(result: dict) -> Any:
    """Extract and parse the text content from an MCP result."""
    text = result["content"][0]["text"]
    try:
        return json.loads(text)
    except json.JSONDecodeError:
        return text


@pytest_asyncio.fixture
async def project_id(store, catalog):
    """A stored project in building with two steps."""
    result = await create_project_handler(
        {
            "owner_id": "learner-1",
            "title": "Line follower robot",
            "category": "robotics",
            "steps": '["Sketch design", "Build chassis"]',
        },
        store,
        catalog,
    )
    pid = _parse_result(result)["created"]["id"]
    await start_building_handler({"project_id": pid}, store, catalog)
    return pid


async def _finish(pid, step_id, store, catalog):
    await move_step_handler({"project_id": pid, "step_id": step_id, "status": "doing"}, store, catalog)
    return await move_step_handler(
        {"project_id": pid, "step_id": step_id, "status": "done", "proof": "img.png"}, store, catalog
    )


class TestProjects:
    @pytest.mark.asyncio
    async def test_list_templates(self, store, catalog):
        data = _parse_result(await list_templates_handler({}, store, catalog))
        assert data[0]["id"] == "wf-engineering-design"
        assert data[0]["isDefault"] is True

    @pytest.mark.asyncio
    async def test_create_and_get(self, store, catalog, project_id):
        data = _parse_result(await get_project_handler({"project_id": project_id}, store, catalog))
        assert data["stage"] == "building"
        assert data["workflowTemplateId"] == "wf-engineering-design"
        assert [s["title"] for s in data["steps"]] == ["Sketch design", "Build chassis"]

    @pytest.mark.asyncio
    async def test_create_with_unknown_template(self, store, catalog):
        result = await create_project_handler(
            {"owner_id": "u", "title": "x", "template_id": "wf-nope"}, store, catalog
        )
        assert _parse_result(result).startswith("Error: Workflow template not found")
        assert await store.list_projects() == []

    @pytest.mark.asyncio
    async def test_create_with_single_json_string_step(self, store, catalog):
        result = await create_project_handler(
            {"owner_id": "u", "title": "x", "steps": '"Sketch"'}, store, catalog
        )
        assert [s["title"] for s in _parse_result(result)["created"]["steps"]] == ["Sketch"]

    @pytest.mark.asyncio
    async def test_create_with_scalar_steps_is_an_error(self, store, catalog):
        result = await create_project_handler(
            {"owner_id": "u", "title": "x", "steps": "5"}, store, catalog
        )
        assert _parse_result(result) == "Error: steps must be a JSON list of titles"
        assert await store.list_projects() == []

    @pytest.mark.asyncio
    async def test_list_projects(self, store, catalog, project_id):
        data = _parse_result(await list_projects_handler({"owner_id": "learner-1"}, store, catalog))
        assert data == [{
            "id": project_id,
            "ownerId": "learner-1",
            "title": "Line follower robot",
            "stage": "building",
            "steps": 2,
            "commits": 0,
        }]

    @pytest.mark.asyncio
    async def test_missing_project(self, store, catalog):
        result = await get_project_handler({"project_id": "p-404"}, store, catalog)
        assert _parse_result(result) == "Error: Project not found: p-404"

    @pytest.mark.asyncio
    async def test_bind_template_locked(self, store, catalog, project_id):
        result = await bind_template_handler(
            {"project_id": project_id, "template_id": "wf-engineering-design"}, store, catalog
        )
        assert "locked" in _parse_result(result)


class TestBoard:
    @pytest.mark.asyncio
    async def test_add_and_delete(self, store, catalog, project_id):
        added = _parse_result(
            await add_step_handler({"project_id": project_id, "title": "Test sensors"}, store, catalog)
        )
        assert added["added"]["id"] == "step-3"
        await delete_step_handler({"project_id": project_id, "step_id": "step-1"}, store, catalog)
        project = await store.get_project(project_id)
        assert [s.id for s in project.steps] == ["step-2", "step-3"]

    @pytest.mark.asyncio
    async def test_invalid_move_is_not_saved(self, store, catalog, project_id):
        saves = store.save_count
        result = await move_step_handler(
            {"project_id": project_id, "step_id": "step-1", "status": "done", "proof": "x"},
            store,
            catalog,
        )
        assert _parse_result(result).startswith("Error: Invalid transition")
        assert store.save_count == saves

    @pytest.mark.asyncio
    async def test_progress(self, store, catalog, project_id):
        await _finish(project_id, "step-1", store, catalog)
        data = _parse_result(await progress_handler({"project_id": project_id}, store, catalog))
        assert data["done"] == 1
        assert data["progress_pct"] == 50.0

    @pytest.mark.asyncio
    async def test_advance_stage(self, store, catalog, project_id):
        data = _parse_result(
            await advance_stage_handler({"project_id": project_id, "stage": "testing"}, store, catalog)
        )
        assert data == {"stage": "testing"}


class TestCommits:
    @pytest.mark.asyncio
    async def test_commit_restore_requires_confirm(self, store, catalog, project_id):
        commit = _parse_result(
            await commit_handler({"project_id": project_id, "message": "First checkpoint"}, store, catalog)
        )
        await delete_step_handler({"project_id": project_id, "step_id": "step-2"}, store, catalog)

        result = await restore_handler({"project_id": project_id, "commit_id": commit["id"]}, store, catalog)
        assert _parse_result(result).startswith("Confirmation required")
        assert len((await store.get_project(project_id)).steps) == 1

        result = await restore_handler(
            {"project_id": project_id, "commit_id": commit["id"], "confirm": True}, store, catalog
        )
        assert len(_parse_result(result)["steps"]) == 2
        assert len((await store.get_project(project_id)).steps) == 2

    @pytest.mark.asyncio
    async def test_history_and_feed(self, store, catalog, project_id):
        await commit_handler({"project_id": project_id, "message": "wheels on"}, store, catalog)
        await commit_handler(
            {
                "project_id": project_id,
                "message": "sensor photo",
                "step_id": "step-1",
                "evidence_link": "https://photos.test/s.jpg",
            },
            store,
            catalog,
        )
        history = _parse_result(await history_handler({"project_id": project_id}, store, catalog))
        assert [c["message"] for c in history] == ["sensor photo", "wheels on"]
        assert history[0]["snapshot"] == 2

        feed = _parse_result(await commit_feed_handler({"search": "sensor"}, store, catalog))
        assert [e["message"] for e in feed] == ["sensor photo"]
        assert feed[0]["evidenceLink"] == "https://photos.test/s.jpg"


class TestReview:
    @pytest.mark.asyncio
    async def test_incomplete_submit_needs_override(self, store, catalog, project_id):
        await _finish(project_id, "step-1", store, catalog)
        result = await submit_handler({"project_id": project_id}, store, catalog)
        assert "step-2" in _parse_result(result)
        assert (await store.get_project(project_id)).stage.value == "building"

        data = _parse_result(await submit_handler({"project_id": project_id, "override": True}, store, catalog))
        assert data["stage"] == "submitted"

    @pytest.mark.asyncio
    async def test_reject_then_approve(self, store, catalog, project_id):
        await _finish(project_id, "step-1", store, catalog)
        await _finish(project_id, "step-2", store, catalog)
        await submit_handler({"project_id": project_id}, store, catalog)

        empty = await reject_handler({"project_id": project_id, "feedback": ""}, store, catalog)
        assert _parse_result(empty).startswith("Error: Invalid feedback")

        data = _parse_result(
            await reject_handler({"project_id": project_id, "feedback": "Add more detail"}, store, catalog)
        )
        assert data == {"stage": "changes_requested", "feedback": "Add more detail"}

        await move_step_handler({"project_id": project_id, "step_id": "step-2", "status": "doing"}, store, catalog)
        await move_step_handler({"project_id": project_id, "step_id": "step-2", "status": "done"}, store, catalog)
        await submit_handler({"project_id": project_id}, store, catalog)
        data = _parse_result(
            await approve_handler({"project_id": project_id, "reviewer_id": "teacher-1"}, store, catalog)
        )
        assert data["stage"] == "published"

    @pytest.mark.asyncio
    async def test_review_step(self, store, catalog, project_id):
        await _finish(project_id, "step-1", store, catalog)
        await _finish(project_id, "step-2", store, catalog)
        await submit_handler({"project_id": project_id}, store, catalog)
        data = _parse_result(
            await review_step_handler(
                {"project_id": project_id, "step_id": "step-1", "approved": "false", "note": "Blurry"},
                store,
                catalog,
            )
        )
        assert data["review"] == "rejected"
        assert data["reviewNote"] == "Blurry"
