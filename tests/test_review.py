"""Tests for submission, approval and rejection."""

import pytest

from projectflow.workflow.exceptions import (
    IncompleteWorkError,
    InvalidTransitionError,
    ValidationError,
)
from projectflow.workflow.models import ProjectStage, ReviewState, StepStatus


def _finish(session, step_id):
    session.move_step(step_id, "doing")
    session.move_step(step_id, "done", proof="img.png")


def _finish_all(session):
    for step in session.project.steps:
        if step.status is StepStatus.TODO:
            session.move_step(step.id, "doing")
        if step.status is StepStatus.DOING:
            session.move_step(step.id, "done", proof="img.png")


class TestSubmit:
    def test_incomplete_needs_override(self, building):
        _finish(building, "step-1")

        with pytest.raises(IncompleteWorkError) as exc_info:
            building.submit_for_review()
        assert exc_info.value.unfinished_step_ids == ["step-2"]
        assert building.project.stage is ProjectStage.BUILDING

        building.submit_for_review(override=True)
        assert building.project.stage is ProjectStage.SUBMITTED
        done, unfinished = building.project.steps
        assert done.review is ReviewState.PENDING
        assert unfinished.review is None
        assert building.review.pending_steps() == [done]

    def test_empty_board_counts_as_incomplete(self, building):
        building.delete_step("step-1")
        building.delete_step("step-2")
        with pytest.raises(IncompleteWorkError, match="no steps planned"):
            building.submit_for_review()
        building.submit_for_review(override=True)
        assert building.project.stage is ProjectStage.SUBMITTED

    def test_walks_through_remaining_working_stages(self, building):
        _finish_all(building)
        building.submit_for_review()
        stages = [t.to_stage for t in building.project.transitions]
        assert stages == [
            ProjectStage.BUILDING,
            ProjectStage.TESTING,
            ProjectStage.DELIVERED,
            ProjectStage.SUBMITTED,
        ]

    def test_from_delivered(self, building):
        _finish_all(building)
        building.advance_to("testing")
        building.advance_to("delivered")
        building.submit_for_review()
        assert building.project.stage is ProjectStage.SUBMITTED

    def test_not_from_planning(self, session):
        session.add_step("One")
        with pytest.raises(InvalidTransitionError):
            session.submit_for_review(override=True)
        assert session.project.stage is ProjectStage.PLANNING

    def test_resubmit_clears_previous_verdicts(self, building):
        _finish_all(building)
        building.submit_for_review()
        building.reject("Add more detail")
        building.move_step("step-2", "doing")
        _finish_all(building)
        building.submit_for_review()
        for step in building.project.steps:
            assert step.review is ReviewState.PENDING
            assert step.review_note is None


class TestReject:
    def test_reject_then_rework(self, building):
        _finish_all(building)
        building.submit_for_review()
        building.reject("Add more detail", reviewer_id="teacher-1")

        project = building.project
        assert project.stage is ProjectStage.CHANGES_REQUESTED
        assert project.feedback == "Add more detail"
        assert project.reviewed_by == "teacher-1"
        step = project.steps[0]
        assert step.review is ReviewState.REJECTED
        assert step.review_note == "Add more detail"

        building.move_step(step.id, "doing")
        assert step.status is StepStatus.DOING
        assert project.stage is ProjectStage.BUILDING

    def test_feedback_required(self, building):
        _finish_all(building)
        building.submit_for_review()
        with pytest.raises(ValidationError):
            building.reject("  ")
        assert building.project.stage is ProjectStage.SUBMITTED

    def test_not_before_submission(self, building):
        with pytest.raises(InvalidTransitionError):
            building.reject("Too early")


class TestApprove:
    def test_round_trip_to_published(self, building):
        _finish_all(building)
        building.submit_for_review()
        building.reject("Add more detail")

        building.move_step("step-1", "doing")
        _finish_all(building)
        building.submit_for_review()
        building.approve("Great work", reviewer_id="teacher-1")

        project = building.project
        assert project.stage is ProjectStage.PUBLISHED
        assert project.feedback == "Great work"
        assert project.reviewed_at is not None
        assert all(s.review is ReviewState.APPROVED for s in project.steps)

    def test_approve_without_feedback_clears_rejection_note(self, building):
        _finish_all(building)
        building.submit_for_review()
        building.reject("Add more detail")
        building.move_step("step-1", "doing")
        _finish_all(building)
        building.submit_for_review()
        building.approve()
        assert building.project.stage is ProjectStage.PUBLISHED
        assert building.project.feedback is None

    def test_not_from_building(self, building):
        with pytest.raises(InvalidTransitionError):
            building.approve()


class TestReviewStep:
    def test_approve_single_step(self, building):
        _finish_all(building)
        building.submit_for_review()
        step = building.review_step("step-1", approved=True)
        assert step.review is ReviewState.APPROVED
        assert step.reviewed_at is not None

    def test_rejection_needs_note(self, building):
        _finish_all(building)
        building.submit_for_review()
        with pytest.raises(ValidationError):
            building.review_step("step-1", approved=False)
        step = building.review_step("step-1", approved=False, note="Blurry photo")
        assert step.review is ReviewState.REJECTED
        assert step.review_note == "Blurry photo"

    def test_only_while_submitted(self, building):
        with pytest.raises(InvalidTransitionError):
            building.review_step("step-1", approved=True)
