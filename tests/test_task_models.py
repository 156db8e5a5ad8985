# tests/test_task_models.py

from __future__ import annotations

import pytest

from taskflow.tasks.errors import SyncErrorKind, TaskSyncError
from taskflow.tasks.task_models import (
    MutationResult,
    Priority,
    Task,
    TaskFormData,
    normalize_form_fields,
    validate_form,
)


def test_priority_parse() -> None:
    assert Priority.parse("HIGH") is Priority.HIGH
    assert Priority.parse(" low ") is Priority.LOW
    assert Priority.parse(Priority.MEDIUM) is Priority.MEDIUM
    assert Priority.parse(None) is None
    assert Priority.parse("") is None
    assert Priority.parse("urgent") is None


def test_normalize_form_fields_trims_and_converts() -> None:
    out = normalize_form_fields(
        {
            "title": "  Buy milk  ",
            "notes": "   ",
            "priority": "high",
            "tags": ["home", "errand", "home"],
        }
    )
    assert out == {
        "title": "Buy milk",
        "notes": None,
        "priority": Priority.HIGH,
        "tags": ("home", "errand", "home"),
    }


def test_normalize_form_fields_only_touches_supplied_keys() -> None:
    assert normalize_form_fields({}) == {}
    assert normalize_form_fields({"date": "2024-03-06"}) == {"date": "2024-03-06"}


def test_normalize_form_fields_rejects_owned_fields() -> None:
    with pytest.raises(ValueError, match="completed"):
        normalize_form_fields({"completed": True})


def test_validate_form() -> None:
    assert validate_form(TaskFormData(title="Buy milk", date="2024-03-05")) == []

    problems = validate_form(TaskFormData(title="   ", date="05/03/2024"))
    assert "Title is required." in problems
    assert "Date must be YYYY-MM-DD." in problems

    for loose in ("2024-3-5", "2024-03-5", " 2024-03-05"):
        assert validate_form(TaskFormData(title="ok", date=loose)) == ["Date must be YYYY-MM-DD."]

    long_title = validate_form(TaskFormData(title="x" * 121, date="2024-03-05"))
    assert len(long_title) == 1 and "120" in long_title[0]

    long_notes = validate_form(TaskFormData(title="ok", date="2024-03-05", notes="n" * 501))
    assert len(long_notes) == 1 and "500" in long_notes[0]

    bad_priority = validate_form(TaskFormData(title="ok", date="2024-03-05", priority="urgent"))
    assert bad_priority == ["Priority must be low, medium or high."]


def test_task_dict_roundtrip_and_legacy_keys() -> None:
    task = Task(
        id="t1",
        title="Write report",
        date="2024-03-05",
        completed=True,
        created_at="2024-03-01T08:00:00.000Z",
        notes="quarterly",
        priority=Priority.MEDIUM,
        tags=("work",),
        completed_at="2024-03-05T10:00:00.000Z",
        updated_at="2024-03-05T10:00:00.000Z",
    )
    assert Task.from_dict(task.to_dict()) == task

    legacy = Task.from_dict(
        {
            "id": "t2",
            "title": "Old entry",
            "date": "2024-02-01",
            "completed": False,
            "createdAt": "2024-02-01T08:00:00.000Z",
        }
    )
    assert legacy.created_at == "2024-02-01T08:00:00.000Z"
    assert legacy.tags == ()
    assert legacy.priority is None
    assert legacy.updated_at is None

    with pytest.raises(KeyError):
        Task.from_dict({"id": "t3", "title": "x", "date": "2024-02-01"})


def test_mutation_result_unwrap() -> None:
    assert MutationResult(ok=True).unwrap() is None

    err = TaskSyncError(SyncErrorKind.CREATE, "Failed to save task to cloud.")
    with pytest.raises(TaskSyncError):
        MutationResult(ok=False, error=err).unwrap()
