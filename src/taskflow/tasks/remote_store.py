# src/taskflow/tasks/remote_store.py

"""
Remote task store.

Talks to a PostgREST-style REST endpoint ({base_url}/rest/v1/{table}) and
scopes every request by the owning user's id. The module also owns the
translation between Task and the remote row shape:

    id, title, date, completed, created_at, notes, priority, tags,
    completed_at, updated_at, user_id
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Any

import httpx

from .errors import RemoteStoreError
from .task_models import Priority, Task

logger = logging.getLogger(__name__)

# Task attribute -> remote column. Kept explicit so renames stay local to this module.
_COLUMNS: dict[str, str] = {
    "id": "id",
    "title": "title",
    "date": "date",
    "completed": "completed",
    "created_at": "created_at",
    "notes": "notes",
    "priority": "priority",
    "tags": "tags",
    "completed_at": "completed_at",
    "updated_at": "updated_at",
}


def _column_value(attr: str, value: Any) -> Any:
    if attr == "priority":
        return value.value if isinstance(value, Priority) else (value or None)
    if attr == "tags":
        return list(value or ())
    if attr == "notes":
        return value or None
    return value


def task_to_row(task: Task, user_id: str | None = None) -> dict[str, Any]:
    row = {col: _column_value(attr, getattr(task, attr)) for attr, col in _COLUMNS.items()}
    if user_id is not None:
        row["user_id"] = user_id
    return row


def fields_to_row(fields: Mapping[str, Any]) -> dict[str, Any]:
    """Partial update payload. Unknown attributes raise KeyError."""
    return {_COLUMNS[attr]: _column_value(attr, value) for attr, value in fields.items()}


def row_to_task(row: Mapping[str, Any]) -> Task:
    return Task(
        id=str(row["id"]),
        title=str(row["title"]),
        date=str(row["date"]),
        completed=bool(row["completed"]),
        created_at=str(row["created_at"]),
        notes=row.get("notes"),
        priority=Priority.parse(row.get("priority")),
        tags=tuple(row.get("tags") or ()),
        completed_at=row.get("completed_at"),
        updated_at=row.get("updated_at"),
    )


def _error_message(resp: httpx.Response) -> str:
    """Best human-readable message from an error response."""
    try:
        payload = resp.json()
    except ValueError:
        payload = None

    if isinstance(payload, dict):
        for key in ("message", "error_description", "error", "hint"):
            msg = payload.get(key)
            if isinstance(msg, str) and msg.strip():
                return msg.strip()

    text = (resp.text or "").strip()
    return text[:200] if text else f"HTTP {resp.status_code}"


class RemoteTaskStore:
    """
    Scoped CRUD against the remote tasks table.

    Every failure (transport, timeout, HTTP >= 400, malformed rows) surfaces
    as RemoteStoreError. There are no retries: callers decide what to do.
    """

    def __init__(
        self,
        base_url: str,
        api_key: str,
        *,
        table: str = "tasks",
        timeout_seconds: float = 15.0,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        if not base_url or not base_url.strip():
            raise ValueError("base_url is required")
        if not api_key or not api_key.strip():
            raise ValueError("api_key is required")

        self._table = table
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(
            base_url=base_url.rstrip("/"),
            timeout=httpx.Timeout(timeout_seconds, connect=min(5.0, timeout_seconds)),
        )
        self._headers = {
            "apikey": api_key,
            "Authorization": f"Bearer {api_key}",
            "Content-Type": "application/json",
        }
        self._path = f"/rest/v1/{table}"

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()

    async def _request(
        self,
        method: str,
        *,
        params: Mapping[str, str],
        json: Any = None,
        prefer: str | None = None,
    ) -> httpx.Response:
        headers = dict(self._headers)
        if prefer:
            headers["Prefer"] = prefer

        try:
            resp = await self._client.request(
                method,
                self._path,
                params=dict(params),
                json=json,
                headers=headers,
            )
        except httpx.TimeoutException as e:
            raise RemoteStoreError(f"Request to remote store timed out ({method}).") from e
        except httpx.HTTPError as e:
            raise RemoteStoreError(f"Could not reach remote store: {e}") from e

        if resp.status_code >= 400:
            msg = _error_message(resp)
            logger.debug("Remote %s %s -> %s: %s", method, self._path, resp.status_code, msg)
            raise RemoteStoreError(msg, status_code=resp.status_code)
        return resp

    async def select(self, user_id: str) -> list[Task]:
        """All rows owned by user_id, newest first."""
        resp = await self._request(
            "GET",
            params={
                "select": "*",
                "user_id": f"eq.{user_id}",
                "order": "created_at.desc",
            },
        )
        try:
            rows = resp.json()
        except ValueError as e:
            raise RemoteStoreError("Remote store returned invalid JSON.") from e
        if not isinstance(rows, list):
            raise RemoteStoreError("Remote store returned an unexpected payload.")

        try:
            tasks = [row_to_task(r) for r in rows]
        except (KeyError, TypeError, ValueError) as e:
            raise RemoteStoreError(f"Remote store returned a malformed row: {e}") from e

        logger.debug("Fetched %d tasks for user=%s", len(tasks), user_id)
        return tasks

    async def insert(self, task: Task, user_id: str) -> None:
        await self._request(
            "POST",
            params={},
            json=task_to_row(task, user_id),
            prefer="return=minimal",
        )
        logger.debug("Inserted task id=%s user=%s", task.id, user_id)

    async def update(self, task_id: str, fields: Mapping[str, Any], user_id: str) -> None:
        await self._request(
            "PATCH",
            params={"id": f"eq.{task_id}", "user_id": f"eq.{user_id}"},
            json=fields_to_row(fields),
            prefer="return=minimal",
        )
        logger.debug("Updated task id=%s fields=%s user=%s", task_id, sorted(fields), user_id)

    async def delete(self, task_id: str, user_id: str) -> None:
        await self._request(
            "DELETE",
            params={"id": f"eq.{task_id}", "user_id": f"eq.{user_id}"},
        )
        logger.debug("Deleted task id=%s user=%s", task_id, user_id)
