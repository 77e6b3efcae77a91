"""File-based collaborators using a .projectflow/ directory and YAML templates."""

from __future__ import annotations

import asyncio
import json
import logging
from pathlib import Path

import yaml

from ..workflow.exceptions import CollaboratorFailure
from ..workflow.models import Project, WorkflowTemplate
from ..workflow.serialization import project_from_record, project_to_record, template_from_record

logger = logging.getLogger(__name__)


class JsonFileProjectStore:
    """Implements ProjectStore with one JSON document per project.

    Directory layout:
        {root}/.projectflow/
            projects/{project_id}.json
    """

    def __init__(self, root: Path | str):
        self.root = Path(root)
        self.state_dir = self.root / ".projectflow"
        self.projects_dir = self.state_dir / "projects"

    def _path(self, project_id: str) -> Path:
        if not project_id or "/" in project_id or "\\" in project_id or project_id.startswith("."):
            raise KeyError(f"Project not found: {project_id}")
        return self.projects_dir / f"{project_id}.json"

    async def get_project(self, project_id: str) -> Project:
        path = self._path(project_id)

        def _read() -> dict:
            if not path.exists():
                raise KeyError(f"Project not found: {project_id}")
            return json.loads(path.read_text(encoding="utf-8"))

        try:
            data = await asyncio.to_thread(_read)
            return project_from_record(data)
        except KeyError:
            raise
        except (OSError, ValueError) as exc:
            raise CollaboratorFailure("project store", f"cannot read {path.name}: {exc}") from exc

    async def save_project(self, project: Project) -> None:
        path = self._path(project.id)
        payload = json.dumps(project_to_record(project), indent=2, ensure_ascii=False)

        def _write() -> None:
            self.projects_dir.mkdir(parents=True, exist_ok=True)
            # Whole-document replace: write aside, then swap in.
            tmp = path.with_suffix(".json.tmp")
            tmp.write_text(payload + "\n", encoding="utf-8")
            tmp.replace(path)

        try:
            await asyncio.to_thread(_write)
        except OSError as exc:
            raise CollaboratorFailure("project store", f"cannot write {path.name}: {exc}") from exc
        logger.debug("wrote %s", path)

    async def list_projects(self, owner_id: str | None = None) -> list[Project]:
        def _read_all() -> list[dict]:
            if not self.projects_dir.is_dir():
                return []
            return [
                json.loads(p.read_text(encoding="utf-8"))
                for p in sorted(self.projects_dir.glob("*.json"))
            ]

        try:
            records = await asyncio.to_thread(_read_all)
        except (OSError, ValueError) as exc:
            raise CollaboratorFailure("project store", str(exc)) from exc
        projects = [project_from_record(r) for r in records]
        if owner_id is not None:
            projects = [p for p in projects if p.owner_id == owner_id]
        return projects

    async def delete_project(self, project_id: str) -> None:
        path = self._path(project_id)
        if not path.exists():
            raise KeyError(f"Project not found: {project_id}")
        await asyncio.to_thread(path.unlink)


class YamlTemplateCatalog:
    """TemplateCatalog read from a YAML file.

    Expected shape:
        templates:
          - id: wf-1
            name: Design Process
            description: ...
            isDefault: true
            phases:
              - {id: ask, name: Ask, order: 1}
    """

    def __init__(self, path: Path | str):
        self.path = Path(path)
        self._templates: dict[str, WorkflowTemplate] | None = None

    async def _load(self) -> dict[str, WorkflowTemplate]:
        if self._templates is not None:
            return self._templates

        def _read() -> dict:
            return yaml.safe_load(self.path.read_text(encoding="utf-8")) or {}

        try:
            data = await asyncio.to_thread(_read)
        except (OSError, yaml.YAMLError) as exc:
            raise CollaboratorFailure("template catalog", f"cannot load {self.path}: {exc}") from exc

        entries = data.get("templates", []) if isinstance(data, dict) else []
        try:
            templates = [template_from_record(t) for t in entries]
        except (KeyError, TypeError, ValueError) as exc:
            raise CollaboratorFailure("template catalog", f"malformed template in {self.path}: {exc}") from exc
        self._templates = {t.id: t for t in templates}
        return self._templates

    async def list_templates(self) -> list[WorkflowTemplate]:
        return list((await self._load()).values())

    async def get_template(self, template_id: str) -> WorkflowTemplate:
        templates = await self._load()
        if template_id not in templates:
            raise KeyError(f"Workflow template not found: {template_id}")
        return templates[template_id]

    async def get_default_template(self) -> WorkflowTemplate | None:
        for template in (await self._load()).values():
            if template.is_default:
                return template
        return None
