"""Tests for project workflow domain models."""

import dataclasses
from datetime import datetime

import pytest

from projectflow.workflow.models import (
    Commit,
    Project,
    ProjectStage,
    ReviewState,
    Step,
    StepStatus,
)


class TestStep:
    def test_defaults(self):
        step = Step(id="step-1", title="Sketch design")
        assert step.status is StepStatus.TODO
        assert step.proof is None
        assert step.review is None

    def test_status_and_review_are_separate_fields(self):
        step = Step(id="step-1", title="x", status=StepStatus.DONE, review=ReviewState.PENDING)
        assert step.status.value == "done"
        assert step.review.value == "pending"


class TestCommit:
    def test_commit_is_frozen(self):
        commit = Commit(id="1", message="checkpoint", created_at=datetime.now())
        with pytest.raises(dataclasses.FrozenInstanceError):
            commit.message = "rewritten"

    def test_snapshot_defaults_to_empty_tuple(self):
        commit = Commit(id="1", message="checkpoint", created_at=datetime.now())
        assert commit.snapshot == ()


class TestProject:
    def test_defaults(self):
        project = Project(id="p-1", owner_id="learner-1")
        assert project.stage is ProjectStage.PLANNING
        assert project.category == "general"
        assert project.steps == []
        assert project.commits == []
        assert project.workflow_template_id is None

    def test_mutable_defaults_not_shared(self):
        a = Project(id="p-1", owner_id="u")
        b = Project(id="p-2", owner_id="u")
        a.steps.append(Step(id="step-1", title="x"))
        assert b.steps == []

    def test_stage_values(self):
        assert [s.value for s in ProjectStage] == [
            "planning",
            "building",
            "testing",
            "delivered",
            "submitted",
            "changes_requested",
            "published",
        ]
