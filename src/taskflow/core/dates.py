# src/taskflow/core/dates.py

"""Calendar helpers: YYYY-MM-DD / YYYY-MM strings, month enumeration, timestamps."""

from __future__ import annotations

import calendar
import re
from datetime import UTC, date, datetime, timedelta

_DATE_RE = re.compile(r"[0-9]{4}-[0-9]{2}-[0-9]{2}")
_MONTH_RE = re.compile(r"[0-9]{4}-[0-9]{2}")


def format_date(d: date) -> str:
    return f"{d.year:04d}-{d.month:02d}-{d.day:02d}"


def format_month_year(d: date) -> str:
    return f"{d.year:04d}-{d.month:02d}"


def parse_date(s: str) -> date:
    """Parse a YYYY-MM-DD string. Raises ValueError on anything else."""
    if not isinstance(s, str) or not _DATE_RE.fullmatch(s):
        raise ValueError(f"Invalid date (expected YYYY-MM-DD): {s!r}")
    year, month, day = (int(p) for p in s.split("-"))
    return date(year, month, day)


def parse_year_month(s: str) -> tuple[int, int]:
    if not isinstance(s, str) or not _MONTH_RE.fullmatch(s):
        raise ValueError(f"Invalid month (expected YYYY-MM): {s!r}")
    year, month = (int(p) for p in s.split("-"))
    if not 1 <= month <= 12:
        raise ValueError(f"Invalid month (expected YYYY-MM): {s!r}")
    return year, month


def today(now: datetime | None = None) -> str:
    """Current local calendar day as YYYY-MM-DD."""
    now = now or datetime.now().astimezone()
    return format_date(now.date())


def days_in_month(year_month: str) -> list[str]:
    """Every day of the month, ascending (leap years included)."""
    year, month = parse_year_month(year_month)
    _, n_days = calendar.monthrange(year, month)
    return [f"{year:04d}-{month:02d}-{day:02d}" for day in range(1, n_days + 1)]


def format_display_date(s: str, *, today: date | None = None) -> str:
    """
    Human-facing label for a day:
    - "Today" / "Yesterday" / "Tomorrow" relative to `today`
    - otherwise "Tue, Mar 5"
    """
    d = parse_date(s)
    ref = today or datetime.now().astimezone().date()

    if d == ref:
        return "Today"
    if d == ref - timedelta(days=1):
        return "Yesterday"
    if d == ref + timedelta(days=1):
        return "Tomorrow"

    return f"{d.strftime('%a')}, {d.strftime('%b')} {d.day}"


def format_month_display(year_month: str) -> str:
    year, month = parse_year_month(year_month)
    return f"{calendar.month_name[month]} {year}"


def months_list(*, today: date | None = None, count: int = 12) -> list[tuple[str, str]]:
    """The last `count` months (current first) as (YYYY-MM, "March 2024") pairs."""
    ref = today or datetime.now().astimezone().date()
    year, month = ref.year, ref.month

    out: list[tuple[str, str]] = []
    for _ in range(max(0, count)):
        value = f"{year:04d}-{month:02d}"
        out.append((value, format_month_display(value)))
        month -= 1
        if month == 0:
            year, month = year - 1, 12
    return out


def utc_now() -> datetime:
    return datetime.now(UTC)


def to_timestamp(dt: datetime) -> str:
    """ISO-8601 in UTC with millisecond precision, e.g. 2024-03-05T09:30:00.000Z."""
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=UTC)
    return dt.astimezone(UTC).isoformat(timespec="milliseconds").replace("+00:00", "Z")
