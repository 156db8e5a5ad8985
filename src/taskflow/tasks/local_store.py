# src/taskflow/tasks/local_store.py

from __future__ import annotations

import contextlib
import json
import logging
import sqlite3
import time
from collections.abc import Iterable
from pathlib import Path

from .task_models import Task

logger = logging.getLogger(__name__)

STORAGE_KEY = "taskflow_data_v2"


class LocalTaskStore:
    """
    Local key-value blob store for the whole task collection.

    The collection is kept as one JSON array under a single key in a tiny
    SQLite table:
    - load() reads the whole collection
    - save() overwrites the whole collection

    Neither method raises: load() degrades to [] and save() logs failures.

    Thread-safety:
    - each method opens its own SQLite connection
    """

    def __init__(self, db_path: str | Path = "tasks.sqlite3", *, key: str = STORAGE_KEY) -> None:
        self._db_path = Path(db_path)
        self._db_path.parent.mkdir(parents=True, exist_ok=True)
        self._key = key
        self._ensure_schema()
        logger.info("LocalTaskStore ready db=%s key=%s", self._db_path, self._key)

    @property
    def key(self) -> str:
        return self._key

    # ---- low-level helpers ----

    def _get_conn(self) -> sqlite3.Connection:
        conn = sqlite3.connect(str(self._db_path), timeout=30.0)
        conn.row_factory = sqlite3.Row
        with contextlib.suppress(sqlite3.Error):
            conn.execute("PRAGMA journal_mode=WAL")
        return conn

    def _ensure_schema(self) -> None:
        conn = self._get_conn()
        try:
            conn.execute(
                """
                CREATE TABLE IF NOT EXISTS blobs (
                    key TEXT PRIMARY KEY,
                    value TEXT NOT NULL,
                    updated_at REAL NOT NULL
                )
                """
            )
            conn.commit()
        finally:
            conn.close()

    def _read_raw(self) -> str | None:
        conn = self._get_conn()
        try:
            row = conn.execute("SELECT value FROM blobs WHERE key = ?", (self._key,)).fetchone()
            return None if row is None else str(row["value"])
        finally:
            conn.close()

    # ---- public API ----

    def load(self) -> list[Task]:
        try:
            raw = self._read_raw()
        except sqlite3.Error:
            logger.exception("Failed to read tasks from %s", self._db_path)
            return []

        if not raw:
            return []

        try:
            data = json.loads(raw)
        except json.JSONDecodeError:
            logger.exception("Stored tasks are not valid JSON; starting empty.")
            return []

        if not isinstance(data, list):
            logger.warning("Stored tasks blob is not a list (got %s); starting empty.", type(data).__name__)
            return []

        tasks: list[Task] = []
        for entry in data:
            if not isinstance(entry, dict):
                continue
            try:
                tasks.append(Task.from_dict(entry))
            except (KeyError, TypeError, ValueError):
                logger.warning("Skipping malformed stored task: %r", entry)

        logger.debug("Loaded %d tasks from local store", len(tasks))
        return tasks

    def save(self, tasks: Iterable[Task]) -> None:
        try:
            payload = json.dumps([t.to_dict() for t in tasks], ensure_ascii=False)
        except (TypeError, ValueError):
            logger.exception("Failed to JSON-encode tasks; local store not updated.")
            return

        try:
            conn = self._get_conn()
            try:
                conn.execute(
                    """
                    INSERT INTO blobs(key, value, updated_at)
                    VALUES (?, ?, ?)
                    ON CONFLICT(key) DO UPDATE SET
                        value = excluded.value,
                        updated_at = excluded.updated_at
                    """,
                    (self._key, payload, time.time()),
                )
                conn.commit()
            finally:
                conn.close()
        except sqlite3.Error:
            logger.exception("Failed to save tasks to %s", self._db_path)

    def clear(self) -> None:
        conn = self._get_conn()
        try:
            conn.execute("DELETE FROM blobs WHERE key = ?", (self._key,))
            conn.commit()
        finally:
            conn.close()
