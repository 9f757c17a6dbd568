"""Hour ledger reads/writes and task taxonomy maintenance.

Writing 0 (or anything that does not parse to a positive finite number)
removes the cell, and empty category/date maps are pruned, so a logged zero
and a never-written cell are indistinguishable to every statistic.
"""

from __future__ import annotations

import logging
import math
from collections.abc import Iterator
from datetime import date
from typing import Any

from worktracker.dates import date_key
from worktracker.errors import DuplicateTaskError, ValidationError
from worktracker.models import DEFAULT_TASKS, Category, Entries, Taxonomy, TrackerSession

logger = logging.getLogger(__name__)


# ── Validation ────────────────────────────────────────────────


def validate_hours(raw: Any) -> float:
    """Parse *raw* as an hour quantity. Raises ValidationError if unusable."""
    if isinstance(raw, bool):
        raise ValidationError(f"Not an hour value: {raw!r}")
    if isinstance(raw, (int, float)):
        value = float(raw)
    else:
        text = str(raw if raw is not None else "").strip()
        if not text:
            return 0.0
        try:
            value = float(text)
        except ValueError as exc:
            raise ValidationError(f"Not a number: {raw!r}") from exc
    if not math.isfinite(value):
        raise ValidationError(f"Hours must be finite: {raw!r}")
    if value < 0:
        raise ValidationError(f"Hours cannot be negative: {raw!r}")
    return value


def parse_hours(raw: Any) -> float:
    """Like validate_hours, but clamps anything invalid to 0."""
    try:
        return validate_hours(raw)
    except ValidationError as exc:
        logger.debug("Clamping hour input to 0: %s", exc)
        return 0.0


def _day(day: date | str) -> str:
    return day.isoformat() if isinstance(day, date) else str(day)


def _cat(category: Category | str) -> str:
    try:
        return Category.parse(category).value
    except ValueError:
        return str(category)


# ── Ledger ────────────────────────────────────────────────────


def set_hours(session: TrackerSession, day: date | str, category: Category | str, task: str, raw: Any) -> float:
    """Store the parsed hours for one cell and return what was stored."""
    key = date_key(day)
    cat = Category.parse(category).value
    hours = parse_hours(raw)
    if hours > 0:
        session.entries.setdefault(key, {}).setdefault(cat, {})[task] = hours
        return hours

    tasks = session.entries.get(key, {}).get(cat)
    if tasks is not None:
        tasks.pop(task, None)
        if not tasks:
            del session.entries[key][cat]
        if not session.entries[key]:
            del session.entries[key]
    return 0.0


def get_hours(entries: Entries, day: date | str, category: Category | str, task: str) -> float:
    return entries.get(_day(day), {}).get(_cat(category), {}).get(task, 0.0)


def category_total(entries: Entries, day: date | str, category: Category | str) -> float:
    return sum(entries.get(_day(day), {}).get(_cat(category), {}).values())


def day_total(entries: Entries, day: date | str) -> float:
    return sum(sum(tasks.values()) for tasks in entries.get(_day(day), {}).values())


def logged_tasks(entries: Entries, day: date | str, category: Category | str) -> list[str]:
    """Task names with hours on *day*, in insertion order."""
    return [t for t, h in entries.get(_day(day), {}).get(_cat(category), {}).items() if h > 0]


def iter_cells(entries: Entries) -> Iterator[tuple[str, str, str, float]]:
    """Yield (date, category, task, hours) for every positive cell, dates ascending."""
    for day in sorted(entries):
        for cat, tasks in entries[day].items():
            for task, hours in tasks.items():
                if hours > 0:
                    yield day, cat, task, hours


# ── Taxonomy ──────────────────────────────────────────────────


def add_task(session: TrackerSession, category: Category | str, name: str) -> bool:
    """Append a task to a category. Returns False for a blank name."""
    cat = Category.parse(category)
    name = (name or "").strip()
    if not name:
        return False
    tasks = session.categories.tasks_for(cat)
    if name in tasks:
        raise DuplicateTaskError(cat.value, name)
    tasks.append(name)
    logger.info("Added task %r to %s", name, cat.value)
    return True


def remove_task(session: TrackerSession, category: Category | str, name: str) -> bool:
    """Drop a task from the taxonomy. Recorded hours for it are kept."""
    cat = Category.parse(category)
    tasks = session.categories.tasks_for(cat)
    if name not in tasks:
        return False
    tasks.remove(name)
    logger.info("Removed task %r from %s (logged hours kept)", name, cat.value)
    return True


def reset_taxonomy(session: TrackerSession) -> None:
    session.categories = Taxonomy({c: list(t) for c, t in DEFAULT_TASKS.items()})
    logger.info("Task lists reset to defaults")
