"""Shared test fixtures."""

from __future__ import annotations

import pytest

from projectflow.adapters.memory import InMemoryProjectStore, InMemoryTemplateCatalog
from projectflow.workflow.models import Project
from projectflow.workflow.session import ProjectSession

TEMPLATE_ID = "wf-engineering-design"

CONFIG_KEYS = (
    "PROJECTFLOW_HOME",
    "PROJECTFLOW_TEMPLATES",
    "PROJECTFLOW_COVER_URL",
    "PROJECTFLOW_COVER_SIZE",
    "PROJECTFLOW_LOG_LEVEL",
)


@pytest.fixture
def store():
    return InMemoryProjectStore()


@pytest.fixture
def catalog():
    return InMemoryTemplateCatalog()


@pytest.fixture
def project():
    return Project(
        id="p-1",
        owner_id="learner-1",
        title="Line follower robot",
        category="robotics",
        workflow_template_id=TEMPLATE_ID,
    )


@pytest.fixture
def session(project, store, catalog):
    return ProjectSession(project, store, catalog)


@pytest.fixture
def building(session):
    """Session with two planned steps, started into building."""
    session.add_step("Sketch design")
    session.add_step("Build chassis")
    session.start_building()
    return session


@pytest.fixture
def clean_env(monkeypatch):
    """Unset PROJECTFLOW_* so the host environment cannot leak into a test."""
    for key in CONFIG_KEYS:
        monkeypatch.delenv(key, raising=False)
