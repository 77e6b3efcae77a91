"""MCP server factory binding handlers to the project collaborators."""

from typing import Any

from claude_agent_sdk import create_sdk_mcp_server, tool

from ..workflow.interface import ProjectStore, TemplateCatalog
from . import handlers


def create_projectflow_server(store: ProjectStore, catalog: TemplateCatalog):
    """Create an MCP server with the project workflow tools.

    Each handler is bound to its collaborators via closure so the @tool
    wrappers are clean single-argument async functions as the SDK expects.
    """

    # --- Projects and templates ---

    @tool("list_templates", "List workflow templates a project can bind to", {})
    async def list_templates(args: dict[str, Any]) -> dict[str, Any]:
        return await handlers.list_templates_handler(args, store, catalog)

    @tool(
        "list_projects",
        "List projects with stage and step counts. Omit owner_id to list all.",
        {"owner_id": str},
    )
    async def list_projects(args: dict[str, Any]) -> dict[str, Any]:
        return await handlers.list_projects_handler(args, store, catalog)

    @tool("get_project", "Get the full project document", {"project_id": str})
    async def get_project(args: dict[str, Any]) -> dict[str, Any]:
        return await handlers.get_project_handler(args, store, catalog)

    @tool(
        "create_project",
        "Create a project in planning. Steps are a JSON list of titles.",
        {"owner_id": str, "title": str, "description": str, "category": str,
         "template_id": str, "steps": str},
    )
    async def create_project(args: dict[str, Any]) -> dict[str, Any]:
        return await handlers.create_project_handler(args, store, catalog)

    @tool(
        "bind_template",
        "Bind a workflow template; only possible while planning",
        {"project_id": str, "template_id": str},
    )
    async def bind_template(args: dict[str, Any]) -> dict[str, Any]:
        return await handlers.bind_template_handler(args, store, catalog)

    # --- Step board ---

    @tool("add_step", "Add a step in todo", {"project_id": str, "title": str})
    async def add_step(args: dict[str, Any]) -> dict[str, Any]:
        return await handlers.add_step_handler(args, store, catalog)

    @tool("delete_step", "Delete a step", {"project_id": str, "step_id": str})
    async def delete_step(args: dict[str, Any]) -> dict[str, Any]:
        return await handlers.delete_step_handler(args, store, catalog)

    @tool(
        "move_step",
        "Move a step to todo, doing or done. Moving to done requires proof.",
        {"project_id": str, "step_id": str, "status": str, "proof": str},
    )
    async def move_step(args: dict[str, Any]) -> dict[str, Any]:
        return await handlers.move_step_handler(args, store, catalog)

    @tool("get_progress", "Step counts and completion percentage", {"project_id": str})
    async def get_progress(args: dict[str, Any]) -> dict[str, Any]:
        return await handlers.progress_handler(args, store, catalog)

    # --- Lifecycle ---

    @tool(
        "start_building",
        "Leave planning; needs at least one step and a bound template",
        {"project_id": str},
    )
    async def start_building(args: dict[str, Any]) -> dict[str, Any]:
        return await handlers.start_building_handler(args, store, catalog)

    @tool(
        "advance_stage",
        "Move the project to the next working stage (testing, delivered)",
        {"project_id": str, "stage": str, "reason": str},
    )
    async def advance_stage(args: dict[str, Any]) -> dict[str, Any]:
        return await handlers.advance_stage_handler(args, store, catalog)

    # --- Commit ledger ---

    @tool(
        "commit",
        "Snapshot the current steps. Optional step_id + evidence_link attach proof first.",
        {"project_id": str, "message": str, "step_id": str, "evidence_link": str},
    )
    async def commit(args: dict[str, Any]) -> dict[str, Any]:
        return await handlers.commit_handler(args, store, catalog)

    @tool(
        "restore_commit",
        "Overwrite the current steps with a commit snapshot. Set confirm=true.",
        {"project_id": str, "commit_id": str, "confirm": bool},
    )
    async def restore_commit(args: dict[str, Any]) -> dict[str, Any]:
        return await handlers.restore_handler(args, store, catalog)

    @tool("commit_history", "Commits of one project, newest first", {"project_id": str})
    async def commit_history(args: dict[str, Any]) -> dict[str, Any]:
        return await handlers.history_handler(args, store, catalog)

    @tool(
        "commit_feed",
        "Commits across all projects, newest first",
        {"search": str, "owner_id": str},
    )
    async def commit_feed(args: dict[str, Any]) -> dict[str, Any]:
        return await handlers.commit_feed_handler(args, store, catalog)

    # --- Review gate ---

    @tool(
        "submit_for_review",
        "Submit the project. Unfinished steps need override=true.",
        {"project_id": str, "override": bool},
    )
    async def submit_for_review(args: dict[str, Any]) -> dict[str, Any]:
        return await handlers.submit_handler(args, store, catalog)

    @tool(
        "approve_project",
        "Approve and publish a submitted project",
        {"project_id": str, "feedback": str, "reviewer_id": str},
    )
    async def approve_project(args: dict[str, Any]) -> dict[str, Any]:
        return await handlers.approve_handler(args, store, catalog)

    @tool(
        "reject_project",
        "Request changes on a submitted project; feedback is required",
        {"project_id": str, "feedback": str, "reviewer_id": str},
    )
    async def reject_project(args: dict[str, Any]) -> dict[str, Any]:
        return await handlers.reject_handler(args, store, catalog)

    @tool(
        "review_step",
        "Approve or reject one step of a submitted project",
        {"project_id": str, "step_id": str, "approved": bool, "note": str},
    )
    async def review_step(args: dict[str, Any]) -> dict[str, Any]:
        return await handlers.review_step_handler(args, store, catalog)

    all_tools = [
        list_templates, list_projects, get_project, create_project, bind_template,
        add_step, delete_step, move_step, get_progress,
        start_building, advance_stage,
        commit, restore_commit, commit_history, commit_feed,
        submit_for_review, approve_project, reject_project, review_step,
    ]

    return create_sdk_mcp_server(
        name="projectflow",
        version="0.1.0",
        tools=all_tools,
    )
