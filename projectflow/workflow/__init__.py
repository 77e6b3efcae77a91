from .models import (
    Commit,
    Project,
    ProjectStage,
    ReviewState,
    Step,
    StepStatus,
    WorkflowTemplate,
)
from .interface import CoverGenerator, ProjectStore, TemplateCatalog
from .session import ProjectSession

__all__ = [
    "Project",
    "Step",
    "Commit",
    "WorkflowTemplate",
    "ProjectStage",
    "StepStatus",
    "ReviewState",
    "ProjectStore",
    "TemplateCatalog",
    "CoverGenerator",
    "ProjectSession",
]
