# src/taskflow/reports/report.py

"""
Completion statistics over an immutable task collection.

Everything here is pure: no state, no I/O. Callers pass TaskManager.tasks
(or any sequence of Task) and get fresh snapshots back.
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from dataclasses import dataclass
from enum import StrEnum

from ..core.dates import days_in_month
from ..tasks.task_models import Priority, Task


@dataclass(frozen=True, slots=True)
class MonthlyStats:
    total: int
    completed: int
    incomplete: int
    completion_percentage: int


@dataclass(frozen=True, slots=True)
class DailyBreakdown:
    date: str
    total: int
    completed: int
    incomplete: int
    completion_percentage: int


@dataclass(frozen=True, slots=True)
class MonthlyReport:
    month: str
    stats: MonthlyStats
    daily_breakdown: list[DailyBreakdown]
    incomplete_tasks: list[Task]


class GradeTier(StrEnum):
    OUTSTANDING = "outstanding"
    GREAT = "great"
    GOOD = "good"
    KEEP_GOING = "keep_going"


@dataclass(frozen=True, slots=True)
class CompletionGrade:
    grade: str
    tier: GradeTier


@dataclass(frozen=True, slots=True)
class DayCount:
    total: int
    completed: int


def _percentage(completed: int, total: int) -> int:
    # Integer round-half-up of 100 * completed / total.
    if total <= 0:
        return 0
    return (200 * completed + total) // (2 * total)


def stats(tasks: Iterable[Task]) -> MonthlyStats:
    items = list(tasks)
    total = len(items)
    completed = sum(1 for t in items if t.completed)
    return MonthlyStats(
        total=total,
        completed=completed,
        incomplete=total - completed,
        completion_percentage=_percentage(completed, total),
    )


def daily_breakdown(tasks: Iterable[Task], year_month: str) -> list[DailyBreakdown]:
    """Per-day stats for each day of the month that has at least one task, ascending."""
    by_day: dict[str, list[Task]] = {}
    for t in tasks:
        by_day.setdefault(t.date, []).append(t)

    out: list[DailyBreakdown] = []
    for day in days_in_month(year_month):
        day_tasks = by_day.get(day)
        if not day_tasks:
            continue
        s = stats(day_tasks)
        out.append(
            DailyBreakdown(
                date=day,
                total=s.total,
                completed=s.completed,
                incomplete=s.incomplete,
                completion_percentage=s.completion_percentage,
            )
        )
    return out


def monthly_report(all_tasks: Iterable[Task], year_month: str) -> MonthlyReport:
    month_tasks = [t for t in all_tasks if t.date.startswith(year_month)]
    return MonthlyReport(
        month=year_month,
        stats=stats(month_tasks),
        daily_breakdown=daily_breakdown(month_tasks, year_month),
        incomplete_tasks=[t for t in month_tasks if not t.completed],
    )


def completion_grade(percentage: float) -> CompletionGrade:
    if percentage >= 90:
        return CompletionGrade("Outstanding", GradeTier.OUTSTANDING)
    if percentage >= 70:
        return CompletionGrade("Great", GradeTier.GREAT)
    if percentage >= 50:
        return CompletionGrade("Good", GradeTier.GOOD)
    return CompletionGrade("Keep Going", GradeTier.KEEP_GOING)


def current_streak(breakdown: Sequence[DailyBreakdown]) -> int:
    """
    Consecutive fully-completed days, counted back from the most recent day.

    Days without tasks are not in a breakdown, so they neither extend nor
    break the streak. The first day below 100% stops the count.
    """
    streak = 0
    for day in sorted(breakdown, key=lambda d: d.date, reverse=True):
        if day.total <= 0:
            continue
        if day.completion_percentage < 100:
            break
        streak += 1
    return streak


def filter_tasks(
    tasks: Iterable[Task],
    *,
    priority: Priority | str | None = None,
    completion: str = "all",
    tag: str | None = None,
) -> list[Task]:
    """
    Report-page filters.

    priority: None/"all" keeps everything, else only that priority.
    completion: "all" | "completed" | "incomplete".
    tag: None/"all" keeps everything, else tasks carrying that tag.
    """
    if completion not in ("all", "completed", "incomplete"):
        raise ValueError(f"Unknown completion filter: {completion!r}")

    want_priority = None if priority in (None, "all") else Priority.parse(priority)
    if priority not in (None, "all") and want_priority is None:
        raise ValueError(f"Unknown priority filter: {priority!r}")

    out: list[Task] = []
    for t in tasks:
        if want_priority is not None and t.priority != want_priority:
            continue
        if completion == "completed" and not t.completed:
            continue
        if completion == "incomplete" and t.completed:
            continue
        if tag not in (None, "all") and tag not in t.tags:
            continue
        out.append(t)
    return out


def available_tags(tasks: Iterable[Task], year_month: str) -> list[str]:
    """Distinct tags used by the month's tasks, sorted."""
    found: set[str] = set()
    for t in tasks:
        if t.date.startswith(year_month):
            found.update(t.tags)
    return sorted(found)


def calendar_counts(tasks: Iterable[Task], year_month: str) -> dict[str, DayCount]:
    """{YYYY-MM-DD: DayCount} for the month's days that have tasks."""
    totals: dict[str, list[int]] = {}
    for t in tasks:
        if not t.date.startswith(year_month):
            continue
        entry = totals.setdefault(t.date, [0, 0])
        entry[0] += 1
        if t.completed:
            entry[1] += 1
    return {day: DayCount(total=n, completed=c) for day, (n, c) in sorted(totals.items())}
