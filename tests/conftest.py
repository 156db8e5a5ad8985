# tests/conftest.py

from __future__ import annotations

from pathlib import Path
from types import SimpleNamespace

import pytest

from taskflow.core.state import AppState
from taskflow.tasks.backends import LocalBackend, RemoteBackend
from taskflow.tasks.local_store import LocalTaskStore
from taskflow.tasks.task_manager import TaskManager

from .fakes import FakeRecordStore, SequentialIds, SteppingClock


@pytest.fixture()
def settings(tmp_path: Path) -> SimpleNamespace:
    """
    Minimal settings object compatible with bootstrap and the console commands.

    We intentionally use a SimpleNamespace rather than importing real config,
    to keep unit tests isolated from the developer's environment/.env.
    """
    return SimpleNamespace(
        app_name="taskflow-test",
        log_level="DEBUG",
        data_dir=tmp_path,
        local_db_path=tmp_path / "tasks.sqlite3",
        storage_key="taskflow_data_v2",
        remote_url="",
        remote_api_key="",
        remote_table="tasks",
        remote_timeout_seconds=5.0,
        user_id=None,
    )


@pytest.fixture()
def local_store(settings: SimpleNamespace) -> LocalTaskStore:
    # Real SQLite: the blob round-trip is part of what we want to test.
    return LocalTaskStore(settings.local_db_path)


@pytest.fixture()
def local_manager(local_store: LocalTaskStore) -> TaskManager:
    return TaskManager(LocalBackend(local_store), clock=SteppingClock(), id_factory=SequentialIds())


@pytest.fixture()
def remote_store() -> FakeRecordStore:
    return FakeRecordStore()


@pytest.fixture()
def remote_manager(remote_store: FakeRecordStore) -> TaskManager:
    return TaskManager(RemoteBackend(remote_store), clock=SteppingClock(), id_factory=SequentialIds())


@pytest.fixture()
def state(settings: SimpleNamespace, local_manager: TaskManager) -> AppState:
    return AppState(settings=settings, manager=local_manager)
