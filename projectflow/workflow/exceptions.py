"""Workflow exception types."""


class WorkflowError(Exception):
    """Base class for errors raised by the workflow engine."""


class ValidationError(WorkflowError):
    """Raised when user-supplied input is rejected before any state changes."""

    def __init__(self, field: str, message: str):
        self.field = field
        self.message = message
        super().__init__(f"Invalid {field}: {message}")


class InvalidTransitionError(WorkflowError):
    """Raised when an invalid step or project state transition is attempted."""

    def __init__(self, subject_id: str, from_state, to_state):
        self.subject_id = subject_id
        self.from_state = from_state
        self.to_state = to_state
        super().__init__(
            f"Invalid transition for {subject_id}: "
            f"{_label(from_state)} → {_label(to_state)}"
        )


class WorkflowLockedError(WorkflowError):
    """Raised when the workflow template binding is changed after planning."""

    def __init__(self, project_id: str, stage):
        self.project_id = project_id
        self.stage = stage
        super().__init__(
            f"Workflow template of project {project_id} is locked "
            f"(stage: {_label(stage)})"
        )


class BoardLockedError(WorkflowError):
    """Raised when the step board is edited while the project is under review or published."""

    def __init__(self, project_id: str, stage):
        self.project_id = project_id
        self.stage = stage
        super().__init__(
            f"Steps of project {project_id} cannot be edited while {_label(stage)}"
        )


class ConfirmationRequiredError(WorkflowError):
    """Raised when an action is only legal after explicit caller confirmation."""

    def __init__(self, action: str, message: str):
        self.action = action
        self.message = message
        super().__init__(message)


class IncompleteWorkError(ConfirmationRequiredError):
    """Raised when a project is submitted with unfinished steps."""

    def __init__(self, project_id: str, unfinished_step_ids: list[str]):
        self.project_id = project_id
        self.unfinished_step_ids = unfinished_step_ids
        if unfinished_step_ids:
            detail = f"unfinished steps: {', '.join(unfinished_step_ids)}"
        else:
            detail = "no steps planned"
        super().__init__(
            "submit",
            f"Project {project_id} is not complete ({detail})",
        )


class CollaboratorFailure(WorkflowError):
    """Raised when an external collaborator (store, catalog, cover service) fails."""

    def __init__(self, collaborator: str, reason: str):
        self.collaborator = collaborator
        self.reason = reason
        super().__init__(f"{collaborator} failed: {reason}")


def _label(state) -> str:
    return getattr(state, "value", str(state))
