"""Conversion between domain objects and persisted document records."""

from __future__ import annotations

from datetime import datetime
from typing import Any

from .models import (
    Commit,
    Project,
    ProjectStage,
    ReviewState,
    StageTransition,
    Step,
    StepStatus,
    WorkflowPhase,
    WorkflowTemplate,
)


def _dt(value: datetime | None) -> str | None:
    return value.isoformat() if value is not None else None


def _parse_dt(value: Any) -> datetime | None:
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return value
    return datetime.fromisoformat(str(value))


def _compact(data: dict[str, Any]) -> dict[str, Any]:
    """Drop unset optional fields, as the document store never stores undefined."""
    return {k: v for k, v in data.items() if v is not None}


def step_to_record(step: Step) -> dict[str, Any]:
    return _compact({
        "id": step.id,
        "title": step.title,
        "status": step.status.value,
        "proof": step.proof,
        "review": step.review.value if step.review else None,
        "reviewNote": step.review_note,
        "reviewedAt": _dt(step.reviewed_at),
    })


def step_from_record(data: dict[str, Any]) -> Step:
    review = data.get("review")
    return Step(
        id=str(data["id"]),
        title=str(data["title"]),
        status=StepStatus(data.get("status", StepStatus.TODO.value)),
        proof=data.get("proof"),
        review=ReviewState(review) if review else None,
        review_note=data.get("reviewNote"),
        reviewed_at=_parse_dt(data.get("reviewedAt")),
    )


def commit_to_record(commit: Commit) -> dict[str, Any]:
    return _compact({
        "id": commit.id,
        "message": commit.message,
        "createdAt": _dt(commit.created_at),
        "snapshot": [step_to_record(s) for s in commit.snapshot],
        "relatedStepId": commit.related_step_id,
        "evidenceLink": commit.evidence_link,
    })


def commit_from_record(data: dict[str, Any]) -> Commit:
    return Commit(
        id=str(data["id"]),
        message=str(data["message"]),
        created_at=_parse_dt(data.get("createdAt")) or datetime.now(),
        snapshot=tuple(step_from_record(s) for s in data.get("snapshot", [])),
        related_step_id=data.get("relatedStepId"),
        evidence_link=data.get("evidenceLink"),
    )


def project_to_record(project: Project) -> dict[str, Any]:
    return _compact({
        "id": project.id,
        "ownerId": project.owner_id,
        "title": project.title,
        "description": project.description,
        "category": project.category,
        "stage": project.stage.value,
        "workflowTemplateId": project.workflow_template_id,
        "steps": [step_to_record(s) for s in project.steps],
        "commits": [commit_to_record(c) for c in project.commits],
        "feedback": project.feedback,
        "reviewedBy": project.reviewed_by,
        "reviewedAt": _dt(project.reviewed_at),
        "transitions": [
            _compact({
                "from": t.from_stage.value,
                "to": t.to_stage.value,
                "timestamp": _dt(t.timestamp),
                "reason": t.reason,
            })
            for t in project.transitions
        ],
        "mediaUrls": list(project.media_urls),
        "createdAt": _dt(project.created_at),
        "updatedAt": _dt(project.updated_at),
        "metadata": dict(project.metadata),
    })


def project_from_record(data: dict[str, Any]) -> Project:
    now = datetime.now()
    return Project(
        id=str(data["id"]),
        owner_id=str(data["ownerId"]),
        title=data.get("title", ""),
        description=data.get("description", ""),
        category=data.get("category", "general"),
        stage=ProjectStage(data.get("stage", ProjectStage.PLANNING.value)),
        workflow_template_id=data.get("workflowTemplateId"),
        steps=[step_from_record(s) for s in data.get("steps", [])],
        commits=[commit_from_record(c) for c in data.get("commits", [])],
        feedback=data.get("feedback"),
        reviewed_by=data.get("reviewedBy"),
        reviewed_at=_parse_dt(data.get("reviewedAt")),
        transitions=[
            StageTransition(
                from_stage=ProjectStage(t["from"]),
                to_stage=ProjectStage(t["to"]),
                timestamp=_parse_dt(t.get("timestamp")) or now,
                reason=t.get("reason"),
            )
            for t in data.get("transitions", [])
        ],
        media_urls=list(data.get("mediaUrls", [])),
        created_at=_parse_dt(data.get("createdAt")) or now,
        updated_at=_parse_dt(data.get("updatedAt")) or now,
        metadata=dict(data.get("metadata", {})),
    )


def template_from_record(data: dict[str, Any]) -> WorkflowTemplate:
    phases = [
        WorkflowPhase(
            id=str(p.get("id", f"phase-{i}")),
            name=str(p["name"]),
            order=int(p.get("order", i)),
            description=p.get("description", "") or "",
            color=p.get("color"),
            icon=p.get("icon"),
        )
        for i, p in enumerate(data.get("phases", []), start=1)
    ]
    phases.sort(key=lambda p: p.order)
    return WorkflowTemplate(
        id=str(data["id"]),
        name=str(data["name"]),
        description=data.get("description", "") or "",
        phases=phases,
        is_default=bool(data.get("isDefault", data.get("is_default", False))),
    )


def template_to_record(template: WorkflowTemplate) -> dict[str, Any]:
    return {
        "id": template.id,
        "name": template.name,
        "description": template.description,
        "isDefault": template.is_default,
        "phases": [
            _compact({
                "id": p.id,
                "name": p.name,
                "order": p.order,
                "description": p.description,
                "color": p.color,
                "icon": p.icon,
            })
            for p in template.phases
        ],
    }
