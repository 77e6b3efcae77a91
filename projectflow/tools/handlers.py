"""Pure handler functions for project workflow MCP tools.

Each handler takes (args, store, catalog) and returns MCP result format.
No SDK dependency, so they run against the in-memory collaborators.
"""

import inspect
import json
from typing import Any, Callable

from ..workflow.exceptions import ConfirmationRequiredError, WorkflowError
from ..workflow.interface import ProjectStore, TemplateCatalog
from ..workflow.ledger import commit_feed
from ..workflow.serialization import (
    commit_to_record,
    project_to_record,
    step_to_record,
    template_to_record,
)
from ..workflow.session import ProjectSession


def _text_result(text: str) -> dict[str, Any]:
    """Build MCP tool result with a text content block."""
    return {"content": [{"type": "text", "text": text}]}


def _json_result(data: Any) -> dict[str, Any]:
    """Build MCP tool result with JSON-serialized content."""
    return _text_result(json.dumps(data, indent=2, default=str))


def _flag(args: dict[str, Any], name: str) -> bool:
    value = args.get(name, False)
    if isinstance(value, str):
        return value.strip().lower() in {"1", "true", "yes", "y"}
    return bool(value)


async def _with_session(
    args: dict[str, Any],
    store: ProjectStore,
    catalog: TemplateCatalog,
    action: Callable[[ProjectSession], Any],
    save: bool = True,
) -> dict[str, Any]:
    """Open the project named in args, run `action`, save, and render the result.

    Engine errors come back as text results; nothing is saved when the
    action fails.
    """
    try:
        session = await ProjectSession.open(store, catalog, args["project_id"])
        result = action(session)
        if inspect.isawaitable(result):
            result = await result
        if save:
            await session.save()
    except ConfirmationRequiredError as exc:
        return _text_result(f"Confirmation required: {exc}")
    except KeyError as exc:
        return _text_result(f"Error: {exc.args[0] if exc.args else exc}")
    except WorkflowError as exc:
        return _text_result(f"Error: {exc}")
    return _json_result(result)


async def list_templates_handler(
    args: dict[str, Any], store: ProjectStore, catalog: TemplateCatalog
) -> dict[str, Any]:
    """List the workflow templates a project can bind to."""
    templates = await catalog.list_templates()
    return _json_result([template_to_record(t) for t in templates])


async def list_projects_handler(
    args: dict[str, Any], store: ProjectStore, catalog: TemplateCatalog
) -> dict[str, Any]:
    """List projects, optionally filtered by owner_id."""
    projects = await store.list_projects(owner_id=args.get("owner_id") or None)
    return _json_result([
        {
            "id": p.id,
            "ownerId": p.owner_id,
            "title": p.title,
            "stage": p.stage.value,
            "steps": len(p.steps),
            "commits": len(p.commits),
        }
        for p in projects
    ])


async def get_project_handler(
    args: dict[str, Any], store: ProjectStore, catalog: TemplateCatalog
) -> dict[str, Any]:
    """Get the full project document."""
    return await _with_session(
        args, store, catalog, lambda s: project_to_record(s.project), save=False
    )


async def create_project_handler(
    args: dict[str, Any], store: ProjectStore, catalog: TemplateCatalog
) -> dict[str, Any]:
    """Create a project in planning. Steps may be passed as a JSON list of titles."""
    steps_raw = args.get("steps", "[]")
    try:
        steps = json.loads(steps_raw) if isinstance(steps_raw, str) else steps_raw
    except json.JSONDecodeError:
        steps = [steps_raw]
    if isinstance(steps, str):
        steps = [steps]
    elif steps is not None and not isinstance(steps, list):
        return _text_result("Error: steps must be a JSON list of titles")

    try:
        session = await ProjectSession.create(
            store,
            catalog,
            owner_id=args["owner_id"],
            title=args.get("title", ""),
            description=args.get("description", ""),
            category=args.get("category") or "general",
            template_id=args.get("template_id") or None,
            step_titles=[str(s) for s in steps or []],
        )
        await session.save()
    except KeyError as exc:
        return _text_result(f"Error: {exc.args[0] if exc.args else exc}")
    except WorkflowError as exc:
        return _text_result(f"Error: {exc}")
    return _json_result({"created": project_to_record(session.project)})


async def bind_template_handler(
    args: dict[str, Any], store: ProjectStore, catalog: TemplateCatalog
) -> dict[str, Any]:
    """Bind a workflow template while the project is still planning."""

    async def _bind(session: ProjectSession) -> dict:
        await session.bind_template(args["template_id"])
        return {"workflowTemplateId": session.project.workflow_template_id}

    return await _with_session(args, store, catalog, _bind)


async def add_step_handler(
    args: dict[str, Any], store: ProjectStore, catalog: TemplateCatalog
) -> dict[str, Any]:
    """Append a step in todo."""
    return await _with_session(
        args, store, catalog, lambda s: {"added": step_to_record(s.add_step(args["title"]))}
    )


async def delete_step_handler(
    args: dict[str, Any], store: ProjectStore, catalog: TemplateCatalog
) -> dict[str, Any]:
    """Remove a step. Existing commits keep it."""
    return await _with_session(
        args, store, catalog, lambda s: {"deleted": step_to_record(s.delete_step(args["step_id"]))}
    )


async def move_step_handler(
    args: dict[str, Any], store: ProjectStore, catalog: TemplateCatalog
) -> dict[str, Any]:
    """Move a step to todo, doing or done. Done needs a proof."""
    return await _with_session(
        args,
        store,
        catalog,
        lambda s: step_to_record(
            s.move_step(args["step_id"], args["status"], proof=args.get("proof") or None)
        ),
    )


async def start_building_handler(
    args: dict[str, Any], store: ProjectStore, catalog: TemplateCatalog
) -> dict[str, Any]:
    """Leave planning. Locks the workflow template."""

    def _start(session: ProjectSession) -> dict:
        session.start_building()
        return {"stage": session.project.stage.value}

    return await _with_session(args, store, catalog, _start)


async def advance_stage_handler(
    args: dict[str, Any], store: ProjectStore, catalog: TemplateCatalog
) -> dict[str, Any]:
    """Move the project to an adjacent working stage."""

    def _advance(session: ProjectSession) -> dict:
        session.advance_to(args["stage"], reason=args.get("reason") or None)
        return {"stage": session.project.stage.value}

    return await _with_session(args, store, catalog, _advance)


async def commit_handler(
    args: dict[str, Any], store: ProjectStore, catalog: TemplateCatalog
) -> dict[str, Any]:
    """Snapshot the current steps with a message."""
    return await _with_session(
        args,
        store,
        catalog,
        lambda s: commit_to_record(
            s.commit(
                args["message"],
                related_step_id=args.get("step_id") or None,
                evidence_link=args.get("evidence_link") or None,
            )
        ),
    )


async def restore_handler(
    args: dict[str, Any], store: ProjectStore, catalog: TemplateCatalog
) -> dict[str, Any]:
    """Replace the live steps with a commit's snapshot. Requires confirm=true."""
    return await _with_session(
        args,
        store,
        catalog,
        lambda s: {
            "restored": args["commit_id"],
            "steps": [
                step_to_record(st)
                for st in s.restore(args["commit_id"], confirmed=_flag(args, "confirm"))
            ],
        },
    )


async def history_handler(
    args: dict[str, Any], store: ProjectStore, catalog: TemplateCatalog
) -> dict[str, Any]:
    """Commit history of one project, newest first."""
    return await _with_session(
        args,
        store,
        catalog,
        lambda s: [
            {**commit_to_record(c), "snapshot": len(c.snapshot)} for c in s.history()
        ],
        save=False,
    )


async def commit_feed_handler(
    args: dict[str, Any], store: ProjectStore, catalog: TemplateCatalog
) -> dict[str, Any]:
    """Commits across all projects, newest first, optionally searched or filtered by owner."""
    projects = await store.list_projects()
    entries = commit_feed(
        projects, search=args.get("search") or None, owner_id=args.get("owner_id") or None
    )
    return _json_result([
        {
            "projectId": e.project_id,
            "projectTitle": e.project_title,
            "ownerId": e.owner_id,
            "commitId": e.commit.id,
            "message": e.commit.message,
            "createdAt": e.commit.created_at,
            "steps": len(e.commit.snapshot),
            "evidenceLink": e.commit.evidence_link,
        }
        for e in entries
    ])


async def submit_handler(
    args: dict[str, Any], store: ProjectStore, catalog: TemplateCatalog
) -> dict[str, Any]:
    """Submit for review. Unfinished work needs override=true."""

    def _submit(session: ProjectSession) -> dict:
        session.submit_for_review(override=_flag(args, "override"))
        return {"stage": session.project.stage.value, "progress": session.progress()}

    return await _with_session(args, store, catalog, _submit)


async def approve_handler(
    args: dict[str, Any], store: ProjectStore, catalog: TemplateCatalog
) -> dict[str, Any]:
    """Approve and publish a submitted project."""

    def _approve(session: ProjectSession) -> dict:
        session.approve(args.get("feedback") or None, reviewer_id=args.get("reviewer_id") or None)
        return {"stage": session.project.stage.value, "feedback": session.project.feedback}

    return await _with_session(args, store, catalog, _approve)


async def reject_handler(
    args: dict[str, Any], store: ProjectStore, catalog: TemplateCatalog
) -> dict[str, Any]:
    """Request changes on a submitted project. Feedback is required."""

    def _reject(session: ProjectSession) -> dict:
        session.reject(args.get("feedback", ""), reviewer_id=args.get("reviewer_id") or None)
        return {"stage": session.project.stage.value, "feedback": session.project.feedback}

    return await _with_session(args, store, catalog, _reject)


async def review_step_handler(
    args: dict[str, Any], store: ProjectStore, catalog: TemplateCatalog
) -> dict[str, Any]:
    """Approve or reject a single step of a submitted project."""
    return await _with_session(
        args,
        store,
        catalog,
        lambda s: step_to_record(
            s.review_step(args["step_id"], _flag(args, "approved"), note=args.get("note") or None)
        ),
    )


async def progress_handler(
    args: dict[str, Any], store: ProjectStore, catalog: TemplateCatalog
) -> dict[str, Any]:
    """Step counts and completion percentage."""
    return await _with_session(
        args,
        store,
        catalog,
        lambda s: {"stage": s.project.stage.value, **s.progress()},
        save=False,
    )
