"""Review gate: hand-off from learner work to instructor judgment."""

from __future__ import annotations

import logging
from datetime import datetime

from .board import StepBoard
from .exceptions import IncompleteWorkError, InvalidTransitionError, ValidationError
from .lifecycle import ProjectStateMachine
from .models import Project, ProjectStage, ReviewState, Step, StepStatus
from .transitions import WORKING_STAGES

logger = logging.getLogger(__name__)


class ReviewGate:
    """Submission, approval and rejection of a project."""

    def __init__(self, project: Project, machine: ProjectStateMachine, board: StepBoard):
        self.project = project
        self.machine = machine
        self.board = board

    def pending_steps(self) -> list[Step]:
        return [s for s in self.project.steps if s.review is ReviewState.PENDING]

    def submit_for_review(self, override: bool = False) -> Project:
        """Hand the project to the instructor.

        Unfinished work raises IncompleteWorkError unless `override` is set.
        The project walks forward through the remaining working stages, so
        submission from building or testing records the delivery as well.
        """
        project = self.project
        if project.stage not in WORKING_STAGES:
            raise InvalidTransitionError(project.id, project.stage, ProjectStage.SUBMITTED)

        unfinished = self.board.unfinished_steps()
        if (unfinished or not project.steps) and not override:
            raise IncompleteWorkError(project.id, [s.id for s in unfinished])

        position = WORKING_STAGES.index(project.stage)
        for stage in WORKING_STAGES[position + 1:]:
            self.machine.transition(stage, reason="delivered for review")
        self.machine.transition(ProjectStage.SUBMITTED, reason="submitted for review")

        for step in project.steps:
            if step.status is StepStatus.DONE:
                step.review = ReviewState.PENDING
                step.review_note = None
                step.reviewed_at = None
        if unfinished:
            logger.warning(
                "project %s submitted with %d unfinished steps", project.id, len(unfinished)
            )
        return project

    def approve(self, feedback: str | None = None, reviewer_id: str | None = None) -> Project:
        project = self.project
        now = datetime.now()
        self.machine.transition(ProjectStage.PUBLISHED, reason="approved")

        for step in project.steps:
            step.review = ReviewState.APPROVED
            step.reviewed_at = now
        note = (feedback or "").strip()
        project.feedback = note or None
        project.reviewed_by = reviewer_id
        project.reviewed_at = now
        return project

    def reject(self, feedback: str, reviewer_id: str | None = None) -> Project:
        project = self.project
        note = (feedback or "").strip()
        if not note:
            raise ValidationError("feedback", "explain what needs to change")
        now = datetime.now()
        self.machine.transition(ProjectStage.CHANGES_REQUESTED, reason="changes requested")

        for step in project.steps:
            if step.review is ReviewState.PENDING:
                step.review = ReviewState.REJECTED
                step.review_note = note
                step.reviewed_at = now
        project.feedback = note
        project.reviewed_by = reviewer_id
        project.reviewed_at = now
        return project

    def review_step(self, step_id: str, approved: bool, note: str | None = None) -> Step:
        """Record a verdict on a single step of a submitted project."""
        project = self.project
        step = self.board.get_step(step_id)
        verdict = ReviewState.APPROVED if approved else ReviewState.REJECTED
        if project.stage is not ProjectStage.SUBMITTED:
            raise InvalidTransitionError(step.id, step.review or "unreviewed", verdict)
        cleaned = (note or "").strip() or None
        if not approved and cleaned is None:
            raise ValidationError("review_note", "explain why the step is rejected")

        step.review = verdict
        step.review_note = cleaned
        step.reviewed_at = datetime.now()
        project.updated_at = step.reviewed_at
        return step
