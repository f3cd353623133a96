# tests/conftest.py

from __future__ import annotations

from datetime import UTC, datetime
from pathlib import Path
from types import SimpleNamespace

import pytest

from reminder_agent.core.agent import ReminderAgent
from reminder_agent.core.state import AppState
from reminder_agent.tasks.task_store import TaskStore
from reminder_agent.tasks.tools import TOOLS

from .fakes import FakeCompletionClient, FakeToolClient, FrozenClock, write_document

FIXED_NOW = datetime(2024, 6, 15, 12, 0, 0, tzinfo=UTC)


@pytest.fixture()
def clock() -> FrozenClock:
    return FrozenClock(FIXED_NOW)


@pytest.fixture()
def tasks_file(tmp_path: Path) -> Path:
    return tmp_path / "tasks.json"


@pytest.fixture()
def store(tasks_file: Path, clock: FrozenClock) -> TaskStore:
    """Store over an existing, empty document (no starter tasks)."""
    write_document(tasks_file, [])
    return TaskStore(tasks_file, clock=clock)


@pytest.fixture()
def settings(tmp_path: Path) -> SimpleNamespace:
    """
    Minimal settings object compatible with AppState and the CLI.

    We intentionally use a SimpleNamespace rather than importing real config,
    to keep unit tests isolated and deterministic.
    """
    return SimpleNamespace(
        app_name="reminder-agent",
        log_level="INFO",
        data_dir=tmp_path,
        tasks_file=tmp_path / "tasks.json",
        reminder_cron="*/30 * * * *",
        llm_base_url=None,
        llm_model="gpt-4o-mini",
        llm_api_key=None,
    )


@pytest.fixture()
def tool_client() -> FakeToolClient:
    return FakeToolClient(catalog=[dict(t) for t in TOOLS])


@pytest.fixture()
def llm() -> FakeCompletionClient:
    return FakeCompletionClient()


@pytest.fixture()
def state(settings: SimpleNamespace, tool_client: FakeToolClient, llm: FakeCompletionClient) -> AppState:
    """AppState wired with deterministic fakes."""
    return AppState(settings=settings, agent=ReminderAgent(tool_client, llm), mode="interactive")
