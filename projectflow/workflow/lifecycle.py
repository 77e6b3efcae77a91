"""Project state machine: lifecycle stages and the workflow-template lock."""

from __future__ import annotations

import logging
from datetime import datetime

from .exceptions import InvalidTransitionError, ValidationError, WorkflowLockedError
from .models import Project, ProjectStage, StageTransition
from .transitions import TERMINAL_STAGES, parse_stage, validate_stage_transition

logger = logging.getLogger(__name__)

# Outcomes owned by the review gate; never taken through advance_to().
GATED_STAGES = frozenset(
    {
        ProjectStage.SUBMITTED,
        ProjectStage.CHANGES_REQUESTED,
        ProjectStage.PUBLISHED,
    }
)


class ProjectStateMachine:
    """Owns the top-level stage of a single project."""

    def __init__(self, project: Project):
        self.project = project

    @property
    def stage(self) -> ProjectStage:
        return self.project.stage

    @property
    def is_template_locked(self) -> bool:
        return self.project.stage is not ProjectStage.PLANNING

    @property
    def is_terminal(self) -> bool:
        return self.project.stage in TERMINAL_STAGES

    def transition(self, to_stage: ProjectStage, reason: str | None = None) -> StageTransition:
        """Validate adjacency, then move the project and record the change."""
        project = self.project
        previous = project.stage
        validate_stage_transition(project.id, previous, to_stage)

        now = datetime.now()
        record = StageTransition(
            from_stage=previous,
            to_stage=to_stage,
            timestamp=now,
            reason=reason,
        )
        project.stage = to_stage
        project.transitions.append(record)
        project.updated_at = now
        logger.info(
            "project %s: %s -> %s%s",
            project.id,
            previous.value,
            to_stage.value,
            f" ({reason})" if reason else "",
        )
        return record

    def bind_template(self, template_id: str) -> None:
        """Bind a workflow template. Only legal while planning."""
        if self.is_template_locked:
            raise WorkflowLockedError(self.project.id, self.project.stage)
        if not template_id or not template_id.strip():
            raise ValidationError("workflow_template_id", "template id must not be empty")
        self.project.workflow_template_id = template_id.strip()
        self.project.updated_at = datetime.now()

    def start_building(self) -> StageTransition:
        """planning -> building. Requires a plan and a bound template; locks the template."""
        project = self.project
        if project.stage is not ProjectStage.PLANNING or not project.steps:
            raise InvalidTransitionError(project.id, project.stage, ProjectStage.BUILDING)
        if not project.workflow_template_id:
            raise InvalidTransitionError(project.id, project.stage, ProjectStage.BUILDING)
        return self.transition(ProjectStage.BUILDING, reason="start building")

    def resume_building(self, reason: str = "rework") -> StageTransition:
        """changes_requested -> building."""
        return self.transition(ProjectStage.BUILDING, reason=reason)

    def advance_to(self, target, reason: str | None = None) -> StageTransition:
        """Move to an adjacent stage chosen by the caller.

        Accepts a ProjectStage or its raw value. Review outcomes are rejected
        here; they belong to the review gate.
        """
        project = self.project
        to_stage = parse_stage(project.id, project.stage, target)
        if to_stage in GATED_STAGES:
            raise InvalidTransitionError(project.id, project.stage, to_stage)
        if project.stage is ProjectStage.PLANNING and to_stage is ProjectStage.BUILDING:
            return self.start_building()
        return self.transition(to_stage, reason=reason)
