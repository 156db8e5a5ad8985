# src/taskflow/tasks/task_models.py

from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from enum import StrEnum
from typing import Any

from ..core.dates import parse_date
from .errors import TaskSyncError

TITLE_MAX_LEN = 120
NOTES_MAX_LEN = 500

# Keys accepted by partial updates (the writable projection of Task).
FORM_FIELDS: frozenset[str] = frozenset({"title", "date", "notes", "priority", "tags"})


class Priority(StrEnum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"

    @classmethod
    def parse(cls, raw: Any) -> Priority | None:
        if raw is None or raw == "":
            return None
        if isinstance(raw, Priority):
            return raw
        try:
            return cls(str(raw).strip().lower())
        except ValueError:
            return None


@dataclass(frozen=True, slots=True)
class Task:
    """
    A dated task.

    Instances are immutable: TaskManager replaces a task with
    dataclasses.replace(...) instead of mutating it, so snapshots of the
    collection stay valid for rollback.
    """

    id: str
    title: str
    date: str
    completed: bool
    created_at: str

    notes: str | None = None
    priority: Priority | None = None
    tags: tuple[str, ...] = ()

    completed_at: str | None = None
    updated_at: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "title": self.title,
            "date": self.date,
            "completed": self.completed,
            "created_at": self.created_at,
            "notes": self.notes,
            "priority": self.priority.value if self.priority else None,
            "tags": list(self.tags),
            "completed_at": self.completed_at,
            "updated_at": self.updated_at,
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> Task:
        """
        Build a Task from a stored mapping.

        Accepts snake_case keys and the older camelCase ones
        (createdAt, completedAt, updatedAt). Raises KeyError/ValueError when
        a required field is missing.
        """

        def pick(snake: str, camel: str) -> Any:
            if snake in data:
                return data[snake]
            return data.get(camel)

        created_at = pick("created_at", "createdAt")
        if created_at is None:
            raise KeyError("created_at")

        return cls(
            id=str(data["id"]),
            title=str(data["title"]),
            date=str(data["date"]),
            completed=bool(data.get("completed", False)),
            created_at=str(created_at),
            notes=data.get("notes") or None,
            priority=Priority.parse(data.get("priority")),
            tags=tuple(str(t) for t in (data.get("tags") or ())),
            completed_at=pick("completed_at", "completedAt"),
            updated_at=pick("updated_at", "updatedAt"),
        )


@dataclass(frozen=True, slots=True)
class TaskFormData:
    """What a create request may carry. Ids, completion and timestamps are owned by TaskManager."""

    title: str
    date: str
    notes: str | None = None
    priority: Priority | str | None = None
    tags: Iterable[str] = field(default_factory=tuple)


def _clean_notes(notes: str | None) -> str | None:
    if notes is None:
        return None
    notes = notes.strip()
    return notes or None


def normalize_form_fields(changes: Mapping[str, Any]) -> dict[str, Any]:
    """
    Apply input normalization to a partial set of form fields.

    - title: trimmed
    - notes: trimmed, empty -> None
    - priority: parsed into Priority (unknown -> None)
    - tags: copied into a tuple, order kept, no dedup

    Unknown keys raise ValueError.
    """
    unknown = set(changes) - FORM_FIELDS
    if unknown:
        raise ValueError(f"Unknown task fields: {', '.join(sorted(unknown))}")

    out: dict[str, Any] = {}
    if "title" in changes:
        out["title"] = str(changes["title"]).strip()
    if "notes" in changes:
        out["notes"] = _clean_notes(changes["notes"])
    if "priority" in changes:
        out["priority"] = Priority.parse(changes["priority"])
    if "tags" in changes:
        out["tags"] = tuple(changes["tags"] or ())
    if "date" in changes:
        out["date"] = str(changes["date"])
    return out


def validate_form(form: TaskFormData) -> list[str]:
    """Input-boundary checks. Returns human-readable problems (empty list when valid)."""
    problems: list[str] = []

    title = (form.title or "").strip()
    if not title:
        problems.append("Title is required.")
    elif len(title) > TITLE_MAX_LEN:
        problems.append(f"Title must be at most {TITLE_MAX_LEN} characters.")

    if form.notes and len(form.notes.strip()) > NOTES_MAX_LEN:
        problems.append(f"Notes must be at most {NOTES_MAX_LEN} characters.")

    try:
        parse_date(form.date)
    except ValueError:
        problems.append("Date must be YYYY-MM-DD.")

    if form.priority not in (None, "") and Priority.parse(form.priority) is None:
        problems.append("Priority must be low, medium or high.")

    return problems


@dataclass(frozen=True, slots=True)
class MutationResult:
    """Outcome of a TaskManager mutation."""

    ok: bool
    task: Task | None = None
    error: TaskSyncError | None = None

    def unwrap(self) -> Task | None:
        if self.error is not None:
            raise self.error
        return self.task
