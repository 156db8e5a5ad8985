# src/taskflow/core/ports.py

from __future__ import annotations

"""
Ports (interfaces) used by the core.

TaskManager depends on the TaskBackend Protocol instead of a concrete store.
This keeps the local/remote choice in one place (bootstrap) and makes
testing with in-memory fakes easy.
"""

from collections.abc import Mapping, Sequence
from typing import Any, Protocol

from ..tasks.task_models import Task


class TaskBackend(Protocol):
    """
    Authoritative persistence strategy for the task collection.

    Write methods receive both the precise change and `snapshot`, the
    in-memory collection after the optimistic change. A blob store persists
    the snapshot; a record store applies the change. Failures must be raised
    as TaskStoreError.
    """

    name: str
    requires_identity: bool

    async def load(self, user_id: str | None) -> list[Task]: ...

    async def insert(self, task: Task, *, user_id: str | None, snapshot: Sequence[Task]) -> None: ...

    async def update(
        self,
        task_id: str,
        fields: Mapping[str, Any],
        *,
        user_id: str | None,
        snapshot: Sequence[Task],
    ) -> None: ...

    async def delete(self, task_id: str, *, user_id: str | None, snapshot: Sequence[Task]) -> None: ...

    async def aclose(self) -> None: ...


class BlobTaskStore(Protocol):
    """Whole-collection local storage (read everything, overwrite everything)."""

    def load(self) -> list[Task]: ...
    def save(self, tasks: Sequence[Task]) -> None: ...


class RecordTaskStore(Protocol):
    """Remote scoped CRUD store."""

    async def select(self, user_id: str) -> list[Task]: ...
    async def insert(self, task: Task, user_id: str) -> None: ...
    async def update(self, task_id: str, fields: Mapping[str, Any], user_id: str) -> None: ...
    async def delete(self, task_id: str, user_id: str) -> None: ...
    async def aclose(self) -> None: ...
