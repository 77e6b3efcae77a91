"""Commit ledger: append-only snapshots of the step set with restore."""

from __future__ import annotations

import copy
import logging
import time
from dataclasses import dataclass
from datetime import datetime
from typing import Iterable

from .board import StepBoard
from .exceptions import BoardLockedError, ConfirmationRequiredError, ValidationError
from .models import Commit, Project, ProjectStage, Step

logger = logging.getLogger(__name__)


@dataclass
class FeedEntry:
    project_id: str
    project_title: str
    owner_id: str
    commit: Commit


class CommitLedger:
    """Records and restores snapshots of a project's steps.

    Commits are stored in creation order and never mutated or removed.
    """

    def __init__(self, project: Project, board: StepBoard):
        self.project = project
        self.board = board

    def get_commit(self, commit_id: str) -> Commit:
        for commit in self.project.commits:
            if commit.id == commit_id:
                return commit
        raise KeyError(f"Commit not found: {commit_id}")

    def history(self) -> list[Commit]:
        """Newest first."""
        return list(reversed(self.project.commits))

    def commit(
        self,
        message: str,
        related_step_id: str | None = None,
        evidence_link: str | None = None,
    ) -> Commit:
        project = self.project
        cleaned = (message or "").strip()
        if not cleaned:
            raise ValidationError("message", "commit message must not be empty")
        if project.stage is ProjectStage.PUBLISHED:
            raise BoardLockedError(project.id, project.stage)

        evidence = (evidence_link or "").strip() or None
        if related_step_id is not None:
            self.board.get_step(related_step_id)

        # Evidence lands on the live step before the snapshot is taken.
        if related_step_id is not None and evidence is not None:
            self.board.attach_proof(related_step_id, evidence)

        commit = Commit(
            id=self._next_commit_id(),
            message=cleaned,
            created_at=datetime.now(),
            snapshot=tuple(copy.deepcopy(project.steps)),
            related_step_id=related_step_id,
            evidence_link=evidence,
        )
        project.commits.append(commit)
        project.updated_at = commit.created_at
        logger.info(
            "project %s: commit %s (%d steps)", project.id, commit.id, len(commit.snapshot)
        )
        return commit

    def restore(self, commit_id: str, confirmed: bool = False) -> list[Step]:
        """Overwrite the live steps with a copy of a commit's snapshot.

        Irreversible for the live board, so the caller must confirm. The
        ledger itself is untouched, including commits newer than the one
        restored.
        """
        commit = self.get_commit(commit_id)
        if not confirmed:
            raise ConfirmationRequiredError(
                "restore",
                f"Restoring commit {commit.id} overwrites the current steps of "
                f"project {self.project.id}",
            )
        self.board.replace_steps(copy.deepcopy(list(commit.snapshot)))
        logger.info("project %s: restored commit %s", self.project.id, commit.id)
        return self.project.steps

    def _next_commit_id(self) -> str:
        stamp = time.time_ns() // 1_000_000
        if self.project.commits:
            last = self.project.commits[-1].id
            if last.isdigit():
                stamp = max(stamp, int(last) + 1)
        return str(stamp)


def commit_feed(
    projects: Iterable[Project],
    search: str | None = None,
    owner_id: str | None = None,
) -> list[FeedEntry]:
    """Flatten commits across projects into one timeline, newest first."""
    needle = (search or "").strip().lower()
    entries: list[FeedEntry] = []
    for project in projects:
        if owner_id is not None and project.owner_id != owner_id:
            continue
        for commit in project.commits:
            if needle and needle not in commit.message.lower() and needle not in project.title.lower():
                continue
            entries.append(
                FeedEntry(
                    project_id=project.id,
                    project_title=project.title,
                    owner_id=project.owner_id,
                    commit=commit,
                )
            )
    entries.sort(key=lambda e: (e.commit.created_at, e.commit.id), reverse=True)
    return entries
