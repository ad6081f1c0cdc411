"""Shared pytest fixtures for jot-journal tests."""

import tempfile
from datetime import date
from pathlib import Path

import pytest

from jot_journal.config import HISTORY_FILE_ENV, ProjectConfig
from jot_journal.history import JotHistory
from jot_journal.models import Complete, InProgress, Jot, JotSet, JotState


@pytest.fixture(autouse=True)
def clear_history_env(monkeypatch):
    """Keep a developer's JOT_HISTORY_FILE from leaking into tests."""
    monkeypatch.delenv(HISTORY_FILE_ENV, raising=False)


@pytest.fixture
def temp_project():
    """Create a temporary project directory."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
def config(temp_project):
    """Create a test configuration."""
    return ProjectConfig(project_root=temp_project)


@pytest.fixture
def history_path(config):
    return config.get_history_path()


@pytest.fixture
def week_one_set():
    """The current set from the roll-over scenario, started 2024-01-01."""
    return JotSet(
        interval=InProgress(start=date(2024, 1, 1)),
        jots=[
            Jot("buy milk", JotState.NOT_STARTED),
            Jot("ship report", JotState.COMPLETED),
        ],
    )


@pytest.fixture
def history(week_one_set):
    """A single-set history holding ``week_one_set``."""
    return JotHistory(current=week_one_set)


@pytest.fixture
def three_set_history():
    """Two closed weeks followed by an open one."""
    return JotHistory(
        archived=[
            JotSet(
                interval=Complete(start=date(2024, 1, 1), end=date(2024, 1, 7)),
                jots=[Jot("plan sprint", JotState.COMPLETED)],
            ),
            JotSet(
                interval=Complete(start=date(2024, 1, 8), end=date(2024, 1, 14)),
                jots=[Jot("fix login", JotState.FAILED), Jot("review docs", JotState.IN_PROGRESS)],
            ),
        ],
        current=JotSet(
            interval=InProgress(start=date(2024, 1, 15)),
            jots=[Jot("review docs", JotState.IN_PROGRESS)],
        ),
    )
