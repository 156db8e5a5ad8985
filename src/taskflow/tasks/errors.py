# src/taskflow/tasks/errors.py

from __future__ import annotations

from enum import StrEnum


class TaskflowError(Exception):
    """Base class for taskflow errors."""


class TaskStoreError(TaskflowError):
    """A backing store failed to load or persist tasks."""


class RemoteStoreError(TaskStoreError):
    """The remote record store rejected a request or could not be reached."""

    def __init__(self, message: str, *, status_code: int | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.status_code = status_code


class NotAuthenticatedError(TaskflowError):
    """A remote-scoped operation was attempted without a user identity."""


class SyncErrorKind(StrEnum):
    LOAD = "load"
    CREATE = "create"
    UPDATE = "update"
    DELETE = "delete"


class TaskSyncError(TaskflowError):
    """
    Advisory error recorded in TaskManager's error slot.

    `message` is user-facing text; `cause` keeps the underlying store error.
    """

    def __init__(
        self,
        kind: SyncErrorKind,
        message: str,
        *,
        cause: BaseException | None = None,
    ) -> None:
        super().__init__(message)
        self.kind = kind
        self.message = message
        self.cause = cause

    def __repr__(self) -> str:
        return f"TaskSyncError(kind={self.kind.value!r}, message={self.message!r})"
