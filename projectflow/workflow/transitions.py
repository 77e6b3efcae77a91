"""Step and project state-machine transitions defined as data."""

from .exceptions import InvalidTransitionError
from .models import ProjectStage, StepStatus

STEP_TRANSITIONS: frozenset[tuple[StepStatus, StepStatus]] = frozenset(
    {
        (StepStatus.TODO, StepStatus.DOING),     # start
        (StepStatus.DOING, StepStatus.TODO),     # put back
        (StepStatus.DOING, StepStatus.DONE),     # complete (with proof)
        (StepStatus.DONE, StepStatus.DOING),     # undo
    }
)

STAGE_TRANSITIONS: frozenset[tuple[ProjectStage, ProjectStage]] = frozenset(
    {
        (ProjectStage.PLANNING, ProjectStage.BUILDING),             # start building
        (ProjectStage.BUILDING, ProjectStage.TESTING),
        (ProjectStage.TESTING, ProjectStage.DELIVERED),
        (ProjectStage.DELIVERED, ProjectStage.SUBMITTED),           # review gate
        (ProjectStage.SUBMITTED, ProjectStage.CHANGES_REQUESTED),   # reject
        (ProjectStage.SUBMITTED, ProjectStage.PUBLISHED),           # approve
        (ProjectStage.CHANGES_REQUESTED, ProjectStage.BUILDING),    # rework
    }
)

WORKING_STAGES: tuple[ProjectStage, ...] = (
    ProjectStage.BUILDING,
    ProjectStage.TESTING,
    ProjectStage.DELIVERED,
)

REVIEW_STAGES: frozenset[ProjectStage] = frozenset(
    {ProjectStage.SUBMITTED, ProjectStage.CHANGES_REQUESTED}
)

BOARD_EDITABLE_STAGES: frozenset[ProjectStage] = frozenset(
    {
        ProjectStage.PLANNING,
        *WORKING_STAGES,
        ProjectStage.CHANGES_REQUESTED,
    }
)

TERMINAL_STAGES: frozenset[ProjectStage] = frozenset({ProjectStage.PUBLISHED})


def validate_step_transition(
    step_id: str,
    from_status: StepStatus,
    to_status: StepStatus,
) -> None:
    """Raise InvalidTransitionError if the step move is not allowed."""
    if (from_status, to_status) not in STEP_TRANSITIONS:
        raise InvalidTransitionError(step_id, from_status, to_status)


def validate_stage_transition(
    project_id: str,
    from_stage: ProjectStage,
    to_stage: ProjectStage,
) -> None:
    """Raise InvalidTransitionError if the stage change is not allowed."""
    if (from_stage, to_stage) not in STAGE_TRANSITIONS:
        raise InvalidTransitionError(project_id, from_stage, to_stage)


def parse_stage(project_id: str, current: ProjectStage, value) -> ProjectStage:
    """Coerce a raw stage value, rejecting anything outside the declared set."""
    if isinstance(value, ProjectStage):
        return value
    try:
        return ProjectStage(value)
    except ValueError:
        raise InvalidTransitionError(project_id, current, value) from None
