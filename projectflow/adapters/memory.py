"""In-memory collaborators for tests and demos."""

from __future__ import annotations

from ..workflow.interface import CoverResult
from ..workflow.models import Project, WorkflowPhase, WorkflowTemplate
from ..workflow.serialization import project_from_record, project_to_record

DEFAULT_TEMPLATE = WorkflowTemplate(
    id="wf-engineering-design",
    name="Engineering Design Process",
    description="Ask, imagine, plan, create and improve.",
    phases=[
        WorkflowPhase(id="ask", name="Ask", order=1),
        WorkflowPhase(id="imagine", name="Imagine", order=2),
        WorkflowPhase(id="plan", name="Plan", order=3),
        WorkflowPhase(id="create", name="Create", order=4),
        WorkflowPhase(id="improve", name="Improve", order=5),
    ],
    is_default=True,
)


class InMemoryProjectStore:
    """ProjectStore backed by a dict of records.

    Projects go through the document shape on every read and write, so a
    stored copy never shares objects with a live session.
    """

    def __init__(self) -> None:
        self._records: dict[str, dict] = {}
        self.save_count = 0

    async def get_project(self, project_id: str) -> Project:
        if project_id not in self._records:
            raise KeyError(f"Project not found: {project_id}")
        return project_from_record(self._records[project_id])

    async def save_project(self, project: Project) -> None:
        self._records[project.id] = project_to_record(project)
        self.save_count += 1

    async def list_projects(self, owner_id: str | None = None) -> list[Project]:
        projects = [project_from_record(r) for r in self._records.values()]
        if owner_id is not None:
            projects = [p for p in projects if p.owner_id == owner_id]
        return projects

    async def delete_project(self, project_id: str) -> None:
        if project_id not in self._records:
            raise KeyError(f"Project not found: {project_id}")
        del self._records[project_id]


class InMemoryTemplateCatalog:
    """TemplateCatalog over a fixed list of templates."""

    def __init__(self, templates: list[WorkflowTemplate] | None = None):
        templates = [DEFAULT_TEMPLATE] if templates is None else templates
        self._templates: dict[str, WorkflowTemplate] = {t.id: t for t in templates}

    async def list_templates(self) -> list[WorkflowTemplate]:
        return list(self._templates.values())

    async def get_template(self, template_id: str) -> WorkflowTemplate:
        if template_id not in self._templates:
            raise KeyError(f"Workflow template not found: {template_id}")
        return self._templates[template_id]

    async def get_default_template(self) -> WorkflowTemplate | None:
        for template in self._templates.values():
            if template.is_default:
                return template
        return None


class StaticCoverGenerator:
    """CoverGenerator returning a canned result. Records each call."""

    def __init__(self, result: CoverResult | None = None):
        self.result = result or CoverResult(success=True, url="https://covers.test/cover.png")
        self.calls: list[tuple[str, str, str]] = []

    async def generate(self, title: str, category: str, description: str) -> CoverResult:
        self.calls.append((title, category, description))
        return self.result
