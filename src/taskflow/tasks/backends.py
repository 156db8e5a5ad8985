# src/taskflow/tasks/backends.py

"""
Storage strategies for TaskManager.

- LocalBackend: no remote service configured. Every write mirrors the full
  in-memory collection into the local blob store.
- RemoteBackend: remote service configured. Every call is scoped by the
  current user id; local storage is not touched.

build_backend() picks one of them once, from settings.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping, Sequence
from typing import Any

import httpx

from ..core.ports import BlobTaskStore, RecordTaskStore, TaskBackend
from .errors import NotAuthenticatedError
from .local_store import STORAGE_KEY, LocalTaskStore
from .remote_store import RemoteTaskStore
from .task_models import Task

logger = logging.getLogger(__name__)


class LocalBackend:
    name = "local"
    requires_identity = False

    def __init__(self, store: BlobTaskStore) -> None:
        self._store = store

    async def load(self, user_id: str | None) -> list[Task]:
        return self._store.load()

    async def insert(self, task: Task, *, user_id: str | None, snapshot: Sequence[Task]) -> None:
        self._store.save(snapshot)

    async def update(
        self,
        task_id: str,
        fields: Mapping[str, Any],
        *,
        user_id: str | None,
        snapshot: Sequence[Task],
    ) -> None:
        self._store.save(snapshot)

    async def delete(self, task_id: str, *, user_id: str | None, snapshot: Sequence[Task]) -> None:
        self._store.save(snapshot)

    async def aclose(self) -> None:
        return


class RemoteBackend:
    name = "remote"
    requires_identity = True

    def __init__(self, store: RecordTaskStore) -> None:
        self._store = store

    @staticmethod
    def _scope(user_id: str | None) -> str:
        if not user_id:
            raise NotAuthenticatedError("Sign in to sync tasks with the cloud.")
        return user_id

    async def load(self, user_id: str | None) -> list[Task]:
        return await self._store.select(self._scope(user_id))

    async def insert(self, task: Task, *, user_id: str | None, snapshot: Sequence[Task]) -> None:
        await self._store.insert(task, self._scope(user_id))

    async def update(
        self,
        task_id: str,
        fields: Mapping[str, Any],
        *,
        user_id: str | None,
        snapshot: Sequence[Task],
    ) -> None:
        await self._store.update(task_id, fields, self._scope(user_id))

    async def delete(self, task_id: str, *, user_id: str | None, snapshot: Sequence[Task]) -> None:
        await self._store.delete(task_id, self._scope(user_id))

    async def aclose(self) -> None:
        await self._store.aclose()


def build_backend(settings, *, client: httpx.AsyncClient | None = None) -> TaskBackend:
    """
    Choose the authoritative store from settings.

    Remote when both remote_url and remote_api_key are set, else local.
    """
    remote_url = (getattr(settings, "remote_url", "") or "").strip()
    remote_api_key = (getattr(settings, "remote_api_key", "") or "").strip()

    if remote_url and remote_api_key:
        logger.info("Using remote task store at %s", remote_url)
        store = RemoteTaskStore(
            remote_url,
            remote_api_key,
            table=str(getattr(settings, "remote_table", "tasks")),
            timeout_seconds=float(getattr(settings, "remote_timeout_seconds", 15.0)),
            client=client,
        )
        return RemoteBackend(store)

    logger.info("Remote store not configured; using local storage at %s", settings.local_db_path)
    return LocalBackend(
        LocalTaskStore(
            settings.local_db_path,
            key=str(getattr(settings, "storage_key", "") or STORAGE_KEY),
        )
    )
