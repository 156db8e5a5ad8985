# src/taskflow/tasks/task_manager.py

"""
TaskManager: the in-memory task collection for a session.

Every mutation follows the same optimistic pattern:
- snapshot the current collection,
- apply the change in memory right away,
- await the authoritative backend,
- on failure put the snapshot back and record a TaskSyncError.

Tasks are frozen dataclasses and the collection is replaced as a whole on
each change, so a snapshot is just the previous list object.
"""

from __future__ import annotations

import logging
import uuid
from collections.abc import Awaitable, Callable, Mapping
from dataclasses import replace
from datetime import datetime
from typing import Any

from ..core.dates import to_timestamp, utc_now
from ..core.ports import TaskBackend
from .errors import NotAuthenticatedError, SyncErrorKind, TaskStoreError, TaskSyncError
from .task_models import MutationResult, Task, TaskFormData, normalize_form_fields

logger = logging.getLogger(__name__)

MSG_LOAD_FAILED = "Failed to load tasks."
MSG_CREATE_FAILED = "Failed to save task to cloud."
MSG_UPDATE_FAILED = "Failed to sync update to cloud."
MSG_DELETE_FAILED = "Failed to delete task from cloud."

Transform = Callable[[list[Task]], list[Task]]
Persist = Callable[[list[Task]], Awaitable[None]]


def _new_id() -> str:
    return str(uuid.uuid4())


class TaskManager:
    def __init__(
        self,
        backend: TaskBackend,
        *,
        clock: Callable[[], datetime] = utc_now,
        id_factory: Callable[[], str] = _new_id,
    ) -> None:
        self._backend = backend
        self._clock = clock
        self._new_id = id_factory

        self._tasks: list[Task] = []
        self._is_loaded = False
        self._user_id: str | None = None
        self._error: TaskSyncError | None = None

    # ---- state ----

    @property
    def backend(self) -> TaskBackend:
        return self._backend

    @property
    def tasks(self) -> list[Task]:
        """Read-only snapshot of the collection (a fresh list each call)."""
        return list(self._tasks)

    @property
    def is_loaded(self) -> bool:
        return self._is_loaded

    @property
    def user_id(self) -> str | None:
        return self._user_id

    @property
    def error(self) -> TaskSyncError | None:
        return self._error

    @property
    def error_message(self) -> str | None:
        return None if self._error is None else self._error.message

    def clear_error(self) -> None:
        self._error = None

    def _now(self) -> str:
        return to_timestamp(self._clock())

    def _record_error(self, err: TaskSyncError) -> None:
        self._error = err

    # ---- loading ----

    async def load(self, user_id: str | None = None) -> None:
        """
        (Re)initialize the collection for `user_id`.

        - backend needs an identity and has one -> fetch that user's tasks
        - local backend -> read the stored collection
        - backend needs an identity and there is none -> stay empty
        is_loaded ends up True even when loading fails.
        """
        self._user_id = user_id
        self._tasks = []
        self._is_loaded = False

        try:
            if self._backend.requires_identity and not user_id:
                logger.info("No user identity; %s store stays empty until sign-in.", self._backend.name)
                return

            self._tasks = list(await self._backend.load(user_id))
            logger.info(
                "Loaded %d tasks from %s store (user=%s)",
                len(self._tasks),
                self._backend.name,
                user_id,
            )
        except TaskStoreError as e:
            logger.exception("Loading tasks failed (store=%s user=%s)", self._backend.name, user_id)
            self._tasks = []
            self._record_error(TaskSyncError(SyncErrorKind.LOAD, MSG_LOAD_FAILED, cause=e))
        finally:
            self._is_loaded = True

    async def set_identity(self, user_id: str | None) -> None:
        """Reload when the signed-in user changes."""
        if user_id == self._user_id and self._is_loaded:
            return
        await self.load(user_id)

    # ---- optimistic core ----

    async def _optimistic(
        self,
        transform: Transform,
        persist: Persist,
        *,
        kind: SyncErrorKind,
        message: str,
    ) -> MutationResult:
        before = self._tasks
        after = transform(before)
        self._tasks = after

        try:
            await persist(after)
        except (TaskStoreError, NotAuthenticatedError) as e:
            # Callers await each mutation, so nothing newer sits on top of `before`.
            self._tasks = before
            err = TaskSyncError(kind, message, cause=e)
            self._record_error(err)
            logger.warning("%s (%s): %s", message, kind.value, e)
            return MutationResult(ok=False, error=err)

        return MutationResult(ok=True)

    def _index_of(self, task_id: str) -> int | None:
        for i, t in enumerate(self._tasks):
            if t.id == task_id:
                return i
        return None

    def _replace_at(self, index: int, task: Task) -> Transform:
        def transform(tasks: list[Task]) -> list[Task]:
            out = list(tasks)
            out[index] = task
            return out

        return transform

    # ---- mutations ----

    async def add(self, form: TaskFormData) -> MutationResult:
        """
        Create a task from form data.

        Raises NotAuthenticatedError (before touching state) when the backend
        needs a user identity and none is set.
        """
        if self._backend.requires_identity and not self._user_id:
            raise NotAuthenticatedError("Sign in before adding tasks.")

        fields = normalize_form_fields(
            {
                "title": form.title,
                "date": form.date,
                "notes": form.notes,
                "priority": form.priority,
                "tags": form.tags,
            }
        )
        task = Task(
            id=self._new_id(),
            completed=False,
            created_at=self._now(),
            completed_at=None,
            updated_at=None,
            **fields,
        )

        result = await self._optimistic(
            lambda tasks: [*tasks, task],
            lambda snapshot: self._backend.insert(task, user_id=self._user_id, snapshot=snapshot),
            kind=SyncErrorKind.CREATE,
            message=MSG_CREATE_FAILED,
        )
        if result.ok:
            logger.debug("Task added id=%s date=%s", task.id, task.date)
            return MutationResult(ok=True, task=task)
        return result

    async def update(
        self,
        task_id: str,
        changes: Mapping[str, Any] | None = None,
        **fields: Any,
    ) -> MutationResult:
        """
        Rewrite only the supplied form fields (title, date, notes, priority, tags).

        update(task_id) / update(task_id, {}) only refreshes updated_at.
        Unknown ids are ignored.
        """
        normalized = normalize_form_fields({**(changes or {}), **fields})

        index = self._index_of(task_id)
        if index is None:
            logger.debug("update: no task id=%s", task_id)
            return MutationResult(ok=True)

        normalized["updated_at"] = self._now()
        updated = replace(self._tasks[index], **normalized)

        result = await self._optimistic(
            self._replace_at(index, updated),
            lambda snapshot: self._backend.update(
                task_id, normalized, user_id=self._user_id, snapshot=snapshot
            ),
            kind=SyncErrorKind.UPDATE,
            message=MSG_UPDATE_FAILED,
        )
        return MutationResult(ok=True, task=updated) if result.ok else result

    async def toggle(self, task_id: str) -> MutationResult:
        """Flip completion; completed_at follows completed."""
        index = self._index_of(task_id)
        if index is None:
            logger.debug("toggle: no task id=%s", task_id)
            return MutationResult(ok=True)

        now = self._now()
        current = self._tasks[index]
        completed = not current.completed
        changed = {
            "completed": completed,
            "completed_at": now if completed else None,
            "updated_at": now,
        }
        updated = replace(current, **changed)

        result = await self._optimistic(
            self._replace_at(index, updated),
            lambda snapshot: self._backend.update(
                task_id, changed, user_id=self._user_id, snapshot=snapshot
            ),
            kind=SyncErrorKind.UPDATE,
            message=MSG_UPDATE_FAILED,
        )
        return MutationResult(ok=True, task=updated) if result.ok else result

    async def delete(self, task_id: str) -> MutationResult:
        if self._index_of(task_id) is None:
            logger.debug("delete: no task id=%s", task_id)
            return MutationResult(ok=True)

        return await self._optimistic(
            lambda tasks: [t for t in tasks if t.id != task_id],
            lambda snapshot: self._backend.delete(task_id, user_id=self._user_id, snapshot=snapshot),
            kind=SyncErrorKind.DELETE,
            message=MSG_DELETE_FAILED,
        )

    # ---- queries ----

    def get(self, task_id: str) -> Task | None:
        index = self._index_of(task_id)
        return None if index is None else self._tasks[index]

    def by_date(self, date: str) -> list[Task]:
        return [t for t in self._tasks if t.date == date]

    def by_month(self, year_month: str) -> list[Task]:
        return [t for t in self._tasks if t.date.startswith(year_month)]

    def find_by_prefix(self, prefix: str) -> list[Task]:
        """Tasks whose id starts with `prefix` (console shortcut for long uuids)."""
        prefix = prefix.strip().lower()
        if not prefix:
            return []
        return [t for t in self._tasks if t.id.lower().startswith(prefix)]

    async def aclose(self) -> None:
        await self._backend.aclose()
