# tests/test_local_store.py

from __future__ import annotations

import json
import sqlite3
from pathlib import Path

from taskflow.tasks.local_store import STORAGE_KEY, LocalTaskStore
from taskflow.tasks.task_models import Priority

from .fakes import make_task


def _write_raw(db: Path, value: str) -> None:
    conn = sqlite3.connect(str(db))
    try:
        conn.execute(
            "INSERT OR REPLACE INTO blobs(key, value, updated_at) VALUES (?, ?, 0)",
            (STORAGE_KEY, value),
        )
        conn.commit()
    finally:
        conn.close()


def test_load_missing_key_returns_empty(tmp_path: Path) -> None:
    store = LocalTaskStore(tmp_path / "tasks.sqlite3")
    assert store.load() == []


def test_save_overwrites_whole_collection(tmp_path: Path) -> None:
    store = LocalTaskStore(tmp_path / "tasks.sqlite3")

    a = make_task("a", "2024-03-01", priority=Priority.HIGH, tags=("x", "y"))
    b = make_task("b", "2024-03-02", completed=True)
    store.save([a, b])
    assert store.load() == [a, b]

    store.save([b])
    assert store.load() == [b]

    # A second store on the same file sees the same data.
    assert LocalTaskStore(tmp_path / "tasks.sqlite3").load() == [b]


def test_keys_are_isolated(tmp_path: Path) -> None:
    db = tmp_path / "tasks.sqlite3"
    LocalTaskStore(db, key="one").save([make_task("a", "2024-03-01")])
    assert LocalTaskStore(db, key="two").load() == []


def test_unparsable_blob_loads_empty(tmp_path: Path) -> None:
    db = tmp_path / "tasks.sqlite3"
    store = LocalTaskStore(db)

    _write_raw(db, "{not json")
    assert store.load() == []

    _write_raw(db, json.dumps({"tasks": []}))
    assert store.load() == []


def test_malformed_entries_are_skipped(tmp_path: Path) -> None:
    db = tmp_path / "tasks.sqlite3"
    store = LocalTaskStore(db)

    good = make_task("a", "2024-03-01")
    _write_raw(db, json.dumps([good.to_dict(), {"id": "broken"}, "nope"]))
    assert store.load() == [good]


def test_clear_removes_collection(tmp_path: Path) -> None:
    store = LocalTaskStore(tmp_path / "tasks.sqlite3")
    store.save([make_task("a", "2024-03-01")])
    store.clear()
    assert store.load() == []
