"""Editing session: one project, its engine components and its collaborators."""

from __future__ import annotations

import logging
import uuid
from datetime import datetime

from .board import StepBoard
from .exceptions import CollaboratorFailure, IncompleteWorkError, WorkflowLockedError
from .interface import CoverGenerator, CoverResult, ProjectStore, TemplateCatalog
from .ledger import CommitLedger
from .lifecycle import ProjectStateMachine
from .models import Commit, CoverAttempt, CoverStatus, Project, Step
from .prompts import PromptQueue
from .review import ReviewGate

logger = logging.getLogger(__name__)


class ProjectSession:
    """Single-writer session over a project.

    Engine operations are synchronous and only touch the in-memory project.
    Only save(), bind_template() and generate_cover() call out to
    collaborators.
    """

    def __init__(
        self,
        project: Project,
        store: ProjectStore,
        catalog: TemplateCatalog,
        covers: CoverGenerator | None = None,
        prompts: PromptQueue | None = None,
    ):
        self.project = project
        self.store = store
        self.catalog = catalog
        self.covers = covers
        self.prompts = prompts or PromptQueue()
        self.machine = ProjectStateMachine(project)
        self.board = StepBoard(project, self.machine)
        self.ledger = CommitLedger(project, self.board)
        self.review = ReviewGate(project, self.machine, self.board)
        self.cover_attempts: list[CoverAttempt] = []

    @classmethod
    async def open(
        cls,
        store: ProjectStore,
        catalog: TemplateCatalog,
        project_id: str,
        covers: CoverGenerator | None = None,
    ) -> ProjectSession:
        try:
            project = await store.get_project(project_id)
        except (KeyError, CollaboratorFailure):
            raise
        except Exception as exc:
            raise CollaboratorFailure("project store", str(exc)) from exc
        return cls(project, store, catalog, covers=covers)

    @classmethod
    async def create(
        cls,
        store: ProjectStore,
        catalog: TemplateCatalog,
        owner_id: str,
        title: str = "",
        description: str = "",
        category: str = "general",
        template_id: str | None = None,
        step_titles: list[str] | None = None,
        covers: CoverGenerator | None = None,
    ) -> ProjectSession:
        """Start a new project in planning. Nothing is stored until save()."""
        project = Project(
            id=f"p-{uuid.uuid4().hex[:12]}",
            owner_id=owner_id,
            title=title.strip(),
            description=description.strip(),
            category=category or "general",
        )
        session = cls(project, store, catalog, covers=covers)
        if template_id is not None:
            await session.bind_template(template_id)
        else:
            default = await session._call_catalog(catalog.get_default_template())
            if default is not None:
                session.machine.bind_template(default.id)
        for step_title in step_titles or []:
            session.board.add_step(step_title)
        logger.info("created project %s for owner %s", project.id, owner_id)
        return session

    # --- step board ---

    def add_step(self, title: str) -> Step:
        return self.board.add_step(title)

    def delete_step(self, step_id: str) -> Step:
        return self.board.delete_step(step_id)

    def attach_proof(self, step_id: str, proof: str) -> Step:
        return self.board.attach_proof(step_id, proof)

    def move_step(self, step_id: str, target, proof: str | None = None) -> Step:
        return self.board.move_step(step_id, target, proof=proof)

    def progress(self) -> dict:
        return self.board.progress()

    # --- commit ledger ---

    def commit(
        self,
        message: str,
        related_step_id: str | None = None,
        evidence_link: str | None = None,
    ) -> Commit:
        return self.ledger.commit(message, related_step_id, evidence_link)

    def restore(self, commit_id: str, confirmed: bool = False) -> list[Step]:
        return self.ledger.restore(commit_id, confirmed=confirmed)

    def request_restore(self, commit_id: str):
        commit = self.ledger.get_commit(commit_id)
        return self.prompts.confirm(
            "Restore commit?",
            f'Restoring "{commit.message}" replaces the current steps. '
            "This cannot be undone.",
            lambda: self.restore(commit_id, confirmed=True),
        )

    def history(self) -> list[Commit]:
        return self.ledger.history()

    # --- lifecycle ---

    async def bind_template(self, template_id: str) -> None:
        if self.machine.is_template_locked:
            raise WorkflowLockedError(self.project.id, self.project.stage)
        template = await self._call_catalog(self.catalog.get_template(template_id))
        self.machine.bind_template(template.id)

    def start_building(self):
        return self.machine.start_building()

    def advance_to(self, target, reason: str | None = None):
        return self.machine.advance_to(target, reason=reason)

    # --- review gate ---

    def submit_for_review(self, override: bool = False) -> Project:
        return self.review.submit_for_review(override=override)

    def request_submit(self) -> Project | None:
        """Submit, routing unfinished work through a confirm prompt."""
        try:
            return self.review.submit_for_review()
        except IncompleteWorkError as exc:
            self.prompts.confirm(
                "Mission Incomplete",
                f"{exc} Submit anyway?",
                lambda: self.review.submit_for_review(override=True),
            )
            return None

    def approve(self, feedback: str | None = None, reviewer_id: str | None = None) -> Project:
        return self.review.approve(feedback, reviewer_id=reviewer_id)

    def reject(self, feedback: str, reviewer_id: str | None = None) -> Project:
        return self.review.reject(feedback, reviewer_id=reviewer_id)

    def review_step(self, step_id: str, approved: bool, note: str | None = None) -> Step:
        return self.review.review_step(step_id, approved, note)

    # --- collaborators ---

    async def save(self) -> None:
        """Write the whole project document. In-memory edits survive a failure."""
        try:
            await self.store.save_project(self.project)
        except CollaboratorFailure as exc:
            self._report_failure("Save failed", exc)
            raise
        except Exception as exc:
            failure = CollaboratorFailure("project store", str(exc))
            self._report_failure("Save failed", failure)
            raise failure from exc
        logger.info("saved project %s (stage %s)", self.project.id, self.project.stage.value)

    async def generate_cover(self) -> CoverAttempt:
        """Ask the cover collaborator for an image. Failures are recorded, not raised."""
        attempt = CoverAttempt(
            id=uuid.uuid4().hex[:8],
            status=CoverStatus.PENDING,
            started_at=datetime.now(),
        )
        self.cover_attempts.append(attempt)

        if self.covers is None:
            result = CoverResult(success=False, error="no cover generator configured")
        else:
            try:
                result = await self.covers.generate(
                    self.project.title, self.project.category, self.project.description
                )
            except Exception as exc:
                logger.warning("cover generation raised for %s", self.project.id, exc_info=True)
                result = CoverResult(success=False, error=str(exc) or type(exc).__name__)

        attempt.finished_at = datetime.now()
        if result.success and result.url:
            attempt.status = CoverStatus.SUCCEEDED
            attempt.image_url = result.url
            self.project.media_urls.insert(0, result.url)
            self.project.updated_at = attempt.finished_at
        else:
            attempt.status = CoverStatus.FAILED
            attempt.error = result.error or "cover generation returned no image"
            self._report_failure(
                "Generation Failed", CollaboratorFailure("cover generator", attempt.error)
            )
        return attempt

    async def _call_catalog(self, awaitable):
        try:
            return await awaitable
        except KeyError:
            raise
        except Exception as exc:
            raise CollaboratorFailure("template catalog", str(exc)) from exc

    def _report_failure(self, title: str, failure: CollaboratorFailure) -> None:
        logger.warning("project %s: %s", self.project.id, failure)
        self.prompts.alert(title, failure.reason)
