"""CLI entry point for working on projects from the terminal.

Usage:
  python -m projectflow new --owner ID --title TITLE [--step TITLE ...]
  python -m projectflow move <project_id> <step_id> <todo|doing|done> [--proof REF]
  python -m projectflow commit <project_id> -m MESSAGE [--step STEP --evidence URL]
  python -m projectflow restore <project_id> <commit_id> --yes
  python -m projectflow submit <project_id> [--force]
  python -m projectflow board <project_id>
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from pathlib import Path

from .adapters.covers import PromptUrlCoverGenerator
from .adapters.files import JsonFileProjectStore, YamlTemplateCatalog
from .adapters.memory import InMemoryTemplateCatalog
from .config import ConfigError, StudioConfig, load_config
from .workflow.exceptions import ConfirmationRequiredError, WorkflowError
from .workflow.ledger import commit_feed
from .workflow.models import Project, StepStatus
from .workflow.session import ProjectSession

logger = logging.getLogger(__name__)

STATUS_MARKS = {StepStatus.TODO: "[ ]", StepStatus.DOING: "[~]", StepStatus.DONE: "[x]"}


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="projectflow", description="Project workflow CLI")
    parser.add_argument("--home", default=None, help="Directory holding .projectflow/ (default: PROJECTFLOW_HOME or .)")
    parser.add_argument("--templates", default=None, help="YAML workflow template catalog")
    subparsers = parser.add_subparsers(dest="command")

    new_parser = subparsers.add_parser("new", help="Create a project in planning")
    new_parser.add_argument("--owner", required=True, help="Learner id")
    new_parser.add_argument("--title", default="", help="Project title")
    new_parser.add_argument("--description", default="", help="Project description")
    new_parser.add_argument("--category", default="general", help="Category (robotics, coding, ...)")
    new_parser.add_argument("--template", default=None, help="Workflow template id (default: catalog default)")
    new_parser.add_argument("--step", action="append", default=[], help="Planned step title (repeatable)")

    list_parser = subparsers.add_parser("list", help="List projects")
    list_parser.add_argument("--owner", default=None, help="Only projects of this learner")

    subparsers.add_parser("templates", help="List workflow templates")

    show_parser = subparsers.add_parser("show", help="Show a project and its board")
    show_parser.add_argument("project_id")

    bind_parser = subparsers.add_parser("bind", help="Bind a workflow template (planning only)")
    bind_parser.add_argument("project_id")
    bind_parser.add_argument("template_id")

    add_parser = subparsers.add_parser("add-step", help="Add a step")
    add_parser.add_argument("project_id")
    add_parser.add_argument("title")

    rm_parser = subparsers.add_parser("rm-step", help="Delete a step")
    rm_parser.add_argument("project_id")
    rm_parser.add_argument("step_id")

    move_parser = subparsers.add_parser("move", help="Move a step")
    move_parser.add_argument("project_id")
    move_parser.add_argument("step_id")
    move_parser.add_argument("status", choices=[s.value for s in StepStatus])
    move_parser.add_argument("--proof", default=None, help="Proof of work (required for done)")

    start_parser = subparsers.add_parser("start", help="Start building (locks the workflow template)")
    start_parser.add_argument("project_id")

    advance_parser = subparsers.add_parser("advance", help="Move to the next working stage")
    advance_parser.add_argument("project_id")
    advance_parser.add_argument("stage")

    commit_parser = subparsers.add_parser("commit", help="Snapshot the current steps")
    commit_parser.add_argument("project_id")
    commit_parser.add_argument("-m", "--message", required=True)
    commit_parser.add_argument("--step", default=None, help="Step this commit documents")
    commit_parser.add_argument("--evidence", default=None, help="Evidence link attached to --step")

    log_parser = subparsers.add_parser("log", help="Commit history, newest first")
    log_parser.add_argument("project_id")

    restore_parser = subparsers.add_parser("restore", help="Restore steps from a commit")
    restore_parser.add_argument("project_id")
    restore_parser.add_argument("commit_id")
    restore_parser.add_argument("--yes", action="store_true", help="Confirm overwriting the current steps")

    feed_parser = subparsers.add_parser("feed", help="Commits across all projects")
    feed_parser.add_argument("--search", default=None)
    feed_parser.add_argument("--owner", default=None)

    submit_parser = subparsers.add_parser("submit", help="Submit for review")
    submit_parser.add_argument("project_id")
    submit_parser.add_argument("--force", action="store_true", help="Submit even with unfinished steps")

    approve_parser = subparsers.add_parser("approve", help="Approve and publish")
    approve_parser.add_argument("project_id")
    approve_parser.add_argument("--feedback", default=None)
    approve_parser.add_argument("--reviewer", default=None)

    reject_parser = subparsers.add_parser("reject", help="Request changes")
    reject_parser.add_argument("project_id")
    reject_parser.add_argument("--feedback", required=True)
    reject_parser.add_argument("--reviewer", default=None)

    review_parser = subparsers.add_parser("review-step", help="Approve or reject one submitted step")
    review_parser.add_argument("project_id")
    review_parser.add_argument("step_id")
    verdict = review_parser.add_mutually_exclusive_group(required=True)
    verdict.add_argument("--approve", action="store_true")
    verdict.add_argument("--reject", action="store_true")
    review_parser.add_argument("--note", default=None)

    cover_parser = subparsers.add_parser("cover", help="Generate a cover image")
    cover_parser.add_argument("project_id")

    board_parser = subparsers.add_parser("board", help="Open the terminal board")
    board_parser.add_argument("project_id")

    return parser


def main(argv: list[str] | None = None) -> None:
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        sys.exit(1)

    try:
        config = load_config()
    except ConfigError as exc:
        print(str(exc), file=sys.stderr)
        sys.exit(1)
    logging.basicConfig(level=config.log_level, format="%(asctime)s %(levelname)s %(name)s: %(message)s")

    if args.command == "board":
        from board_tui.app import run_board

        store, catalog = _collaborators(args, config)
        run_board(args.project_id, store=store, catalog=catalog)
        return

    try:
        asyncio.run(_dispatch(args, config))
    except ConfirmationRequiredError as exc:
        hint = "--yes" if exc.action == "restore" else "--force"
        print(f"{exc}. Re-run with {hint} to proceed.", file=sys.stderr)
        sys.exit(1)
    except KeyError as exc:
        print(f"Error: {exc.args[0] if exc.args else exc}", file=sys.stderr)
        sys.exit(1)
    except WorkflowError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        sys.exit(1)


def _collaborators(args, config: StudioConfig):
    home = Path(args.home) if args.home else config.state_dir
    store = JsonFileProjectStore(home)
    templates = args.templates or config.templates_file
    catalog = YamlTemplateCatalog(templates) if templates else InMemoryTemplateCatalog()
    return store, catalog


async def _dispatch(args, config: StudioConfig) -> None:
    store, catalog = _collaborators(args, config)
    command = args.command
    logger.debug("running %s against %s", command, store.state_dir)

    if command == "new":
        session = await ProjectSession.create(
            store,
            catalog,
            owner_id=args.owner,
            title=args.title,
            description=args.description,
            category=args.category,
            template_id=args.template,
            step_titles=args.step,
        )
        await session.save()
        print(f"Created {session.project.id}")
        _print_project(session.project)
        return

    if command == "list":
        for project in await store.list_projects(owner_id=args.owner):
            print(f"{project.id}  {project.stage.value:<18} {project.title}")
        return

    if command == "templates":
        for template in await catalog.list_templates():
            marker = " (default)" if template.is_default else ""
            phases = " > ".join(p.name for p in template.phases)
            print(f"{template.id}  {template.name}{marker}")
            if phases:
                print(f"    {phases}")
        return

    if command == "feed":
        for entry in commit_feed(await store.list_projects(), search=args.search, owner_id=args.owner):
            stamp = entry.commit.created_at.strftime("%Y-%m-%d %H:%M")
            print(f"{stamp}  {entry.project_title or entry.project_id}: {entry.commit.message}")
        return

    session = await ProjectSession.open(
        store,
        catalog,
        args.project_id,
        covers=PromptUrlCoverGenerator(config.cover_base_url, config.cover_size),
    )

    if command == "show":
        _print_project(session.project)
        return

    if command == "log":
        for commit in session.history():
            stamp = commit.created_at.strftime("%Y-%m-%d %H:%M")
            extra = f"  evidence: {commit.evidence_link}" if commit.evidence_link else ""
            print(f"{commit.id}  {stamp}  {commit.message}  ({len(commit.snapshot)} steps){extra}")
        return

    if command == "bind":
        await session.bind_template(args.template_id)
    elif command == "add-step":
        step = session.add_step(args.title)
        print(f"Added {step.id}: {step.title}")
    elif command == "rm-step":
        step = session.delete_step(args.step_id)
        print(f"Deleted {step.id}: {step.title}")
    elif command == "move":
        step = session.move_step(args.step_id, args.status, proof=args.proof)
        print(f"{step.id} -> {step.status.value}")
    elif command == "start":
        session.start_building()
    elif command == "advance":
        session.advance_to(args.stage)
    elif command == "commit":
        commit = session.commit(args.message, related_step_id=args.step, evidence_link=args.evidence)
        print(f"Committed {commit.id} ({len(commit.snapshot)} steps)")
    elif command == "restore":
        session.restore(args.commit_id, confirmed=args.yes)
        print(f"Restored {args.commit_id}")
    elif command == "submit":
        session.submit_for_review(override=args.force)
    elif command == "approve":
        session.approve(args.feedback, reviewer_id=args.reviewer)
    elif command == "reject":
        session.reject(args.feedback, reviewer_id=args.reviewer)
    elif command == "review-step":
        step = session.review_step(args.step_id, approved=args.approve, note=args.note)
        print(f"{step.id}: {step.review.value}")
    elif command == "cover":
        attempt = await session.generate_cover()
        if attempt.image_url:
            print(attempt.image_url)
        else:
            print(f"Cover generation failed: {attempt.error}", file=sys.stderr)

    await session.save()
    print(f"{session.project.id}: {session.project.stage.value}")


def _print_project(project: Project) -> None:
    print(f"{project.title or '(untitled)'} [{project.id}]")
    print(f"  owner: {project.owner_id}  stage: {project.stage.value}  template: {project.workflow_template_id or '-'}")
    if project.feedback:
        print(f"  feedback: {project.feedback}")
    for step in project.steps:
        review = f" ({step.review.value})" if step.review else ""
        proof = f"  proof: {step.proof}" if step.proof else ""
        print(f"  {STATUS_MARKS[step.status]} {step.id} {step.title}{review}{proof}")
    print(f"  commits: {len(project.commits)}")
