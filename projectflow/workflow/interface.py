"""Collaborator protocols the engine talks to."""

from dataclasses import dataclass
from typing import Protocol

from .models import Project, WorkflowTemplate


class ProjectStore(Protocol):
    """Persistence for whole project documents, keyed by project id.

    Writes replace the full document so steps and commits never drift apart.
    """

    async def get_project(self, project_id: str) -> Project: ...

    async def save_project(self, project: Project) -> None: ...

    async def list_projects(self, owner_id: str | None = None) -> list[Project]: ...

    async def delete_project(self, project_id: str) -> None: ...


class TemplateCatalog(Protocol):
    """Read-only listing of workflow templates."""

    async def list_templates(self) -> list[WorkflowTemplate]: ...

    async def get_template(self, template_id: str) -> WorkflowTemplate: ...

    async def get_default_template(self) -> WorkflowTemplate | None: ...


@dataclass
class CoverResult:
    success: bool
    url: str | None = None
    error: str | None = None


class CoverGenerator(Protocol):
    """Produces a cover illustration for a project. Advisory only."""

    async def generate(self, title: str, category: str, description: str) -> CoverResult: ...
