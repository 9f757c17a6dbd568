"""Allocation analysis: actual vs target shares of working time, and hours owed.

Two thresholds apply to allocation deltas: DISPLAY_THRESHOLD bands a delta
for colouring, INSIGHT_THRESHOLD decides whether a narrative message is
produced.
"""

from __future__ import annotations

from typing import Any

from worktracker.models import (
    WORKING_CATEGORIES,
    AllocationConfig,
    AllocationReport,
    Category,
    Insight,
    LedgerStats,
    Settings,
)

DISPLAY_THRESHOLD = 3.0
INSIGHT_THRESHOLD = 5.0

_OVER_MESSAGES = {
    Category.RESEARCH: "You're spending more time on Research than allocated (+{delta:.1f}%)",
    Category.TEACHING: "Teaching is taking more time than allocated (+{delta:.1f}%)",
    Category.SERVICE: "Service work is exceeding your allocation (+{delta:.1f}%)",
}
_UNDER_MESSAGE = "You have room for more {category} time ({delta:.1f}%)"
_BALANCED_MESSAGE = "Your time distribution closely matches your allocation!"


def actual_percentages(totals: dict[Category, float], working_total: float) -> dict[Category, float]:
    """Share of working hours per working category, 0 across the board when nothing is logged."""
    if working_total <= 0:
        return {c: 0.0 for c in WORKING_CATEGORIES}
    return {c: totals.get(c, 0.0) * 100.0 / working_total for c in WORKING_CATEGORIES}


def allocation_deltas(
    actual: dict[Category, float],
    allocation: AllocationConfig,
    working_total: float,
) -> dict[Category, float]:
    """Positive means more time than targeted.

    With no working hours logged (``working_total`` <= 0) every delta is 0.
    """
    if working_total <= 0:
        return {c: 0.0 for c in WORKING_CATEGORIES}
    return {c: actual.get(c, 0.0) - allocation.target(c) for c in WORKING_CATEGORIES}


def over_under(total_hours: float, weeks: int, hours_per_week: float, carryover: float) -> float:
    """Hours worked beyond (positive) or short of (negative) the contract plus carryover."""
    return total_hours - weeks * hours_per_week + carryover


def over_under_label(value: float) -> str:
    return "Overworked" if value >= 0 else "Underworked"


def delta_band(delta: float) -> str:
    if abs(delta) < DISPLAY_THRESHOLD:
        return "neutral"
    return "over" if delta > 0 else "under"


def allocation_insights(deltas: dict[Category, float]) -> list[Insight]:
    insights = []
    for c in WORKING_CATEGORIES:
        delta = deltas.get(c, 0.0)
        if delta >= INSIGHT_THRESHOLD:
            insights.append(Insight(c, "over", _OVER_MESSAGES[c].format(delta=delta)))
        elif delta <= -INSIGHT_THRESHOLD:
            insights.append(Insight(c, "under", _UNDER_MESSAGE.format(category=c.value, delta=delta)))
    if not insights:
        insights.append(Insight(None, "balanced", _BALANCED_MESSAGE))
    return insights


def allocation_warning(allocation: AllocationConfig) -> str | None:
    """Advisory text when targets do not add up to 100; never enforced."""
    total = allocation.total()
    if abs(total - 100.0) < 1e-9:
        return None
    return f"Allocations should total 100% (currently {total:g}%)"


def analyze(stats: LedgerStats, settings: Settings) -> AllocationReport:
    actual = actual_percentages(stats.category_totals, stats.working_hours_total)
    deltas = allocation_deltas(actual, settings.allocation, stats.working_hours_total)
    schedule = settings.schedule
    balance = over_under(stats.total_hours, stats.weeks_worked, schedule.hours_per_week, schedule.carryover_hours)
    return AllocationReport(
        actual_percentages=actual,
        deltas=deltas,
        bands={c: delta_band(d) for c, d in deltas.items()},
        insights=allocation_insights(deltas),
        expected_hours=stats.weeks_worked * schedule.hours_per_week,
        over_under=balance,
        over_under_label=over_under_label(balance),
        allocation_total=settings.allocation.total(),
        allocation_warning=allocation_warning(settings.allocation),
    )


# ── Chart data ────────────────────────────────────────────────


def category_breakdown(stats: LedgerStats) -> list[dict[str, Any]]:
    """Working categories with hours and share of working time (1 decimal)."""
    actual = actual_percentages(stats.category_totals, stats.working_hours_total)
    return [
        {
            "name": c.value,
            "value": stats.category_totals.get(c, 0.0),
            "percentage": round(actual[c], 1),
        }
        for c in WORKING_CATEGORIES
    ]


def weekly_distribution(stats: LedgerStats, allocation: AllocationConfig) -> list[dict[str, Any]]:
    """Per-week working-category shares next to the configured targets."""
    rows = []
    for week in stats.weekly:
        working = week.working_total()
        shares = actual_percentages(week.hours, working)
        row: dict[str, Any] = {"week": week.week}
        for c in WORKING_CATEGORIES:
            row[f"{c.value}Pct"] = shares[c]
            row[f"Alloc{c.value}"] = allocation.target(c)
        rows.append(row)
    return rows
