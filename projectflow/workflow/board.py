"""Step board: the set of work items of one project and their moves."""

from __future__ import annotations

import re
from datetime import datetime

from .exceptions import BoardLockedError, InvalidTransitionError, ValidationError
from .lifecycle import ProjectStateMachine
from .models import Project, ProjectStage, Step, StepStatus
from .transitions import BOARD_EDITABLE_STAGES, validate_step_transition

_STEP_ID = re.compile(r"^step-(\d+)$")


class StepBoard:
    """Add, delete and move steps. Changes stay in memory until saved."""

    def __init__(self, project: Project, machine: ProjectStateMachine):
        self.project = project
        self.machine = machine

    # --- queries ---

    def get_step(self, step_id: str) -> Step:
        for step in self.project.steps:
            if step.id == step_id:
                return step
        raise KeyError(f"Step not found: {step_id}")

    def steps_with_status(self, status: StepStatus) -> list[Step]:
        return [s for s in self.project.steps if s.status is status]

    def unfinished_steps(self) -> list[Step]:
        return [s for s in self.project.steps if s.status is not StepStatus.DONE]

    def progress(self) -> dict:
        steps = self.project.steps
        total = len(steps)
        done = sum(1 for s in steps if s.status is StepStatus.DONE)
        return {
            "total_steps": total,
            "todo": sum(1 for s in steps if s.status is StepStatus.TODO),
            "doing": sum(1 for s in steps if s.status is StepStatus.DOING),
            "done": done,
            "all_done": total > 0 and done == total,
            "progress_pct": round(done / total * 100, 1) if total > 0 else 0.0,
        }

    # --- mutations ---

    def add_step(self, title: str) -> Step:
        cleaned = (title or "").strip()
        if not cleaned:
            raise ValidationError("title", "step title must not be empty")
        self._check_editable()

        self._reenter_if_rework()
        step = Step(id=self._next_step_id(), title=cleaned)
        self.project.steps.append(step)
        self._touch()
        return step

    def delete_step(self, step_id: str) -> Step:
        step = self.get_step(step_id)
        self._check_editable()

        self._reenter_if_rework()
        self.project.steps.remove(step)
        self._touch()
        return step

    def attach_proof(self, step_id: str, proof: str) -> Step:
        step = self.get_step(step_id)
        cleaned = (proof or "").strip()
        if not cleaned:
            raise ValidationError("proof", "proof reference must not be empty")
        self._check_editable()

        self._reenter_if_rework()
        step.proof = cleaned
        self._touch()
        return step

    def move_step(self, step_id: str, target, proof: str | None = None) -> Step:
        """Move a step along the board.

        Completing a step and capturing its evidence are one operation: a move
        to done needs `proof` here or a proof already on the step.
        """
        step = self.get_step(step_id)
        to_status = _parse_status(step, target)
        validate_step_transition(step.id, step.status, to_status)

        new_proof = (proof or "").strip() or None
        if to_status is StepStatus.DONE and not (new_proof or step.proof):
            raise ValidationError("proof", f"step {step.id} needs proof of work to be done")
        self._check_editable()

        self._reenter_if_rework()
        if new_proof:
            step.proof = new_proof
        step.status = to_status
        self._touch()
        return step

    def replace_steps(self, steps: list[Step]) -> None:
        """Swap in a whole step set (used by restore)."""
        self._check_editable()
        self._reenter_if_rework()
        self.project.steps = steps
        self._touch()

    # --- internals ---

    def _check_editable(self) -> None:
        if self.project.stage not in BOARD_EDITABLE_STAGES:
            raise BoardLockedError(self.project.id, self.project.stage)

    def _reenter_if_rework(self) -> None:
        if self.project.stage is ProjectStage.CHANGES_REQUESTED:
            self.machine.resume_building()

    def _touch(self) -> None:
        self.project.updated_at = datetime.now()

    def _next_step_id(self) -> str:
        # Ids stay unique against snapshots too, so a restore never collides.
        seen = {s.id for s in self.project.steps}
        for commit in self.project.commits:
            seen.update(s.id for s in commit.snapshot)

        highest = 0
        for step_id in seen:
            m = _STEP_ID.match(step_id)
            if m:
                highest = max(highest, int(m.group(1)))

        return f"step-{highest + 1}"


def _parse_status(step: Step, target) -> StepStatus:
    if isinstance(target, StepStatus):
        return target
    try:
        return StepStatus(target)
    except ValueError:
        raise InvalidTransitionError(step.id, step.status, target) from None
