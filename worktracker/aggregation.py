"""Aggregation engine: totals, weekly rollups and weekday averages.

Every function here is a pure derivation of the ledger. Only active dates
(days whose total is strictly positive) contribute to any statistic, and
every division by a zero count yields 0.
"""

from __future__ import annotations

from collections import defaultdict
from datetime import date

from worktracker.dates import WEEKDAY_ABBR, date_key, parse_date, week_dates, week_start
from worktracker.ledger import category_total, day_total, get_hours, logged_tasks
from worktracker.models import (
    WORKING_CATEGORIES,
    Category,
    Entries,
    LedgerStats,
    TrackerSession,
    WeekGrid,
    WeekGridRow,
    WeekSummary,
)


def _ratio(numerator: float, denominator: float) -> float:
    return numerator / denominator if denominator else 0.0


def active_dates(entries: Entries) -> list[str]:
    return sorted(d for d in entries if day_total(entries, d) > 0)


def category_totals(entries: Entries) -> dict[Category, float]:
    totals = {c: 0.0 for c in Category}
    for day in active_dates(entries):
        for c in Category:
            totals[c] += category_total(entries, day, c)
    return totals


def working_hours_total(totals: dict[Category, float]) -> float:
    return sum(totals.get(c, 0.0) for c in WORKING_CATEGORIES)


def weekly_rollup(entries: Entries) -> list[WeekSummary]:
    """One summary per Monday-start week containing an active date, oldest first."""
    weeks: dict[str, WeekSummary] = {}
    for day in active_dates(entries):
        key = week_start(day).isoformat()
        summary = weeks.setdefault(key, WeekSummary(week=key))
        for c in Category:
            summary.hours[c] += category_total(entries, day, c)
        summary.total += day_total(entries, day)
    return [weeks[k] for k in sorted(weeks)]


def day_of_week_averages(entries: Entries) -> dict[str, float]:
    """Average day total per weekday (Mon..Sun), over active dates only."""
    sums: dict[str, float] = defaultdict(float)
    counts: dict[str, int] = defaultdict(int)
    for day in active_dates(entries):
        name = WEEKDAY_ABBR[parse_date(day).weekday()]
        sums[name] += day_total(entries, day)
        counts[name] += 1
    return {name: _ratio(sums[name], counts[name]) for name in WEEKDAY_ABBR}


def compute_stats(entries: Entries) -> LedgerStats:
    """Compute every derived statistic from a ledger snapshot."""
    dates = active_dates(entries)
    totals = category_totals(entries)
    weekly = weekly_rollup(entries)
    total_hours = sum(day_total(entries, d) for d in dates)

    return LedgerStats(
        active_dates=dates,
        total_hours=total_hours,
        category_totals=totals,
        working_hours_total=working_hours_total(totals),
        weekly=weekly,
        weeks_worked=len(weekly),
        days_worked=len(dates),
        avg_week=_ratio(total_hours, len(weekly)),
        avg_day=_ratio(total_hours, len(dates)),
        day_of_week_avg=day_of_week_averages(entries),
    )


# ── Week view ─────────────────────────────────────────────────


def week_grid(session: TrackerSession, day: date | str) -> WeekGrid:
    """Hours per task for each day of the week containing *day*.

    Rows follow the taxonomy order; tasks no longer in the taxonomy but with
    hours that week are appended and flagged as orphaned.
    """
    days = [date_key(d) for d in week_dates(day)]
    grid = WeekGrid(dates=days)
    entries = session.entries

    for c in Category:
        names = list(session.categories.tasks_for(c))
        for d in days:
            for task in logged_tasks(entries, d, c):
                if task not in names:
                    names.append(task)
        known = set(session.categories.tasks_for(c))
        for task in names:
            grid.rows.append(WeekGridRow(
                category=c,
                task=task,
                hours=[get_hours(entries, d, c, task) for d in days],
                orphaned=task not in known,
            ))

    grid.day_totals = [day_total(entries, d) for d in days]
    return grid
