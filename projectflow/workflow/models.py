"""Domain models for the project workflow engine."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum


class ProjectStage(Enum):
    PLANNING = "planning"
    BUILDING = "building"
    TESTING = "testing"
    DELIVERED = "delivered"
    SUBMITTED = "submitted"
    CHANGES_REQUESTED = "changes_requested"
    PUBLISHED = "published"


class StepStatus(Enum):
    TODO = "todo"
    DOING = "doing"
    DONE = "done"


class ReviewState(Enum):
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


class CoverStatus(Enum):
    PENDING = "pending"
    SUCCEEDED = "succeeded"
    FAILED = "failed"


@dataclass
class Step:
    id: str
    title: str
    status: StepStatus = StepStatus.TODO
    proof: str | None = None
    review: ReviewState | None = None
    review_note: str | None = None
    reviewed_at: datetime | None = None


@dataclass(frozen=True)
class Commit:
    id: str
    message: str
    created_at: datetime
    snapshot: tuple[Step, ...] = ()
    related_step_id: str | None = None
    evidence_link: str | None = None


@dataclass
class StageTransition:
    from_stage: ProjectStage
    to_stage: ProjectStage
    timestamp: datetime
    reason: str | None = None


@dataclass
class WorkflowPhase:
    id: str
    name: str
    order: int = 0
    description: str = ""
    color: str | None = None
    icon: str | None = None


@dataclass
class WorkflowTemplate:
    id: str
    name: str
    description: str = ""
    phases: list[WorkflowPhase] = field(default_factory=list)
    is_default: bool = False


@dataclass
class CoverAttempt:
    id: str
    status: CoverStatus
    started_at: datetime
    image_url: str | None = None
    error: str | None = None
    finished_at: datetime | None = None


@dataclass
class Project:
    id: str
    owner_id: str
    title: str = ""
    description: str = ""
    category: str = "general"
    stage: ProjectStage = ProjectStage.PLANNING
    workflow_template_id: str | None = None
    steps: list[Step] = field(default_factory=list)
    commits: list[Commit] = field(default_factory=list)
    feedback: str | None = None
    reviewed_by: str | None = None
    reviewed_at: datetime | None = None
    transitions: list[StageTransition] = field(default_factory=list)
    media_urls: list[str] = field(default_factory=list)
    created_at: datetime = field(default_factory=datetime.now)
    updated_at: datetime = field(default_factory=datetime.now)
    metadata: dict = field(default_factory=dict)
