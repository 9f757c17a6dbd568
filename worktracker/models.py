"""Typed dataclasses for the work tracker data model.

All persisted models use from_dict/to_dict for JSON/YAML serialization.
camelCase in JSON is mapped to snake_case in Python.
Unknown keys are ignored; missing keys use defaults.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from worktracker.dates import date_key

logger = logging.getLogger(__name__)

# date key -> category name -> task name -> hours
Entries = dict[str, dict[str, dict[str, float]]]


# ── Categories ────────────────────────────────────────────────


class Category(str, Enum):
    RESEARCH = "Research"
    TEACHING = "Teaching"
    SERVICE = "Service"
    OTHER = "Other"  # leave / non-working time

    @classmethod
    def parse(cls, value: Category | str) -> Category:
        """Look up a category by value or name, case-insensitively."""
        if isinstance(value, cls):
            return value
        text = str(value).strip()
        for c in cls:
            if text.lower() in (c.value.lower(), c.name.lower()):
                return c
        raise ValueError(f"Unknown category: {value!r}")

    def __str__(self) -> str:
        return self.value


WORKING_CATEGORIES = (Category.RESEARCH, Category.TEACHING, Category.SERVICE)

DEFAULT_TASKS: dict[Category, list[str]] = {
    Category.RESEARCH: ["Writing", "Reading", "Grant writing", "Fieldwork", "Supervision", "Meetings", "Admin", "Misc"],
    Category.TEACHING: ["Delivery", "Preparation", "Unit design", "Marking", "Admin", "Meetings", "Misc"],
    Category.SERVICE: ["Meetings", "Peer review", "Admin", "Training", "Public engagement", "Mentoring", "Misc"],
    Category.OTHER: ["Annual Leave", "Personal Leave", "Public Holiday"],
}

DEFAULT_ALLOCATION: dict[Category, float] = {
    Category.RESEARCH: 40.0,
    Category.TEACHING: 40.0,
    Category.SERVICE: 20.0,
}


def _float(value: Any, default: float) -> float:
    try:
        result = float(value)
    except (TypeError, ValueError):
        return default
    return result if math.isfinite(result) else default


def _unique(names: list[Any]) -> list[str]:
    seen: list[str] = []
    for n in names:
        name = str(n).strip()
        if name and name not in seen:
            seen.append(name)
    return seen


# ── Taxonomy ──────────────────────────────────────────────────


@dataclass
class Taxonomy:
    """Ordered task names for each of the four fixed categories."""

    tasks: dict[Category, list[str]] = field(
        default_factory=lambda: {c: list(t) for c, t in DEFAULT_TASKS.items()}
    )

    @classmethod
    def from_dict(cls, d: dict[str, Any]) -> Taxonomy:
        tax = cls()
        if not d or not isinstance(d, dict):
            return tax
        for name, task_list in d.items():
            try:
                category = Category.parse(name)
            except ValueError:
                continue
            if isinstance(task_list, list):
                tax.tasks[category] = _unique(task_list)
        return tax

    def to_dict(self) -> dict[str, list[str]]:
        return {c.value: list(self.tasks.get(c, [])) for c in Category}

    def tasks_for(self, category: Category | str) -> list[str]:
        return self.tasks.setdefault(Category.parse(category), [])


# ── Settings ──────────────────────────────────────────────────


@dataclass
class AllocationConfig:
    """Target share (percent) of working hours per working category."""

    targets: dict[Category, float] = field(default_factory=lambda: dict(DEFAULT_ALLOCATION))

    @classmethod
    def from_dict(cls, d: dict[str, Any]) -> AllocationConfig:
        cfg = cls()
        if not d or not isinstance(d, dict):
            return cfg
        for c in WORKING_CATEGORIES:
            if c.value in d:
                cfg.targets[c] = _float(d[c.value], DEFAULT_ALLOCATION[c])
        return cfg

    def to_dict(self) -> dict[str, float]:
        return {c.value: self.targets.get(c, 0.0) for c in WORKING_CATEGORIES}

    def target(self, category: Category) -> float:
        return self.targets.get(category, 0.0)

    def total(self) -> float:
        return sum(self.target(c) for c in WORKING_CATEGORIES)


@dataclass
class WorkSchedule:
    hours_per_week: float = 37.5
    carryover_hours: float = 0.0
    start_of_year: str = "2025-01-06"  # reserved for period-bounded analysis


@dataclass
class MissingDataPolicy:
    enabled: bool = True
    days: int = 5
    include_weekends: bool = False

    MIN_DAYS = 1
    MAX_DAYS = 30

    @classmethod
    def from_dict(cls, d: dict[str, Any]) -> MissingDataPolicy:
        if not d or not isinstance(d, dict):
            return cls()
        try:
            days = int(d.get("days", 5))
        except (TypeError, ValueError):
            days = 5
        return cls(
            enabled=bool(d.get("enabled", True)),
            days=min(cls.MAX_DAYS, max(cls.MIN_DAYS, days)),
            include_weekends=bool(d.get("includeWeekends", False)),
        )

    def to_dict(self) -> dict[str, Any]:
        return {"enabled": self.enabled, "days": self.days, "includeWeekends": self.include_weekends}


@dataclass
class Settings:
    schedule: WorkSchedule = field(default_factory=WorkSchedule)
    allocation: AllocationConfig = field(default_factory=AllocationConfig)
    missing_data: MissingDataPolicy = field(default_factory=MissingDataPolicy)

    @classmethod
    def from_dict(cls, d: dict[str, Any]) -> Settings:
        if not d or not isinstance(d, dict):
            return cls()
        return cls(
            schedule=WorkSchedule(
                hours_per_week=max(0.0, _float(d.get("hoursPerWeek"), 37.5)),
                carryover_hours=_float(d.get("carryoverHours"), 0.0),
                start_of_year=str(d.get("startOfYear", "2025-01-06")),
            ),
            allocation=AllocationConfig.from_dict(d.get("allocation") or {}),
            missing_data=MissingDataPolicy.from_dict(d.get("missingDataWarning") or {}),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "hoursPerWeek": self.schedule.hours_per_week,
            "carryoverHours": self.schedule.carryover_hours,
            "startOfYear": self.schedule.start_of_year,
            "allocation": self.allocation.to_dict(),
            "missingDataWarning": self.missing_data.to_dict(),
        }

    def merged(self, updates: dict[str, Any]) -> Settings:
        """Shallow merge: top-level keys in *updates* replace the current ones."""
        return Settings.from_dict({**self.to_dict(), **updates})


# ── Session ───────────────────────────────────────────────────


@dataclass
class TrackerSession:
    """Everything the tracker persists: the context passed into every engine call."""

    entries: Entries = field(default_factory=dict)
    categories: Taxonomy = field(default_factory=Taxonomy)
    settings: Settings = field(default_factory=Settings)
    sync_url: str = ""

    @classmethod
    def from_dict(cls, d: dict[str, Any]) -> TrackerSession:
        if not d or not isinstance(d, dict):
            return cls()
        entries: Entries = {}
        for day, cats in (d.get("entries") or {}).items():
            if not isinstance(cats, dict):
                continue
            try:
                key = date_key(day)
            except ValueError:
                logger.warning("Skipping entries under invalid date key %r", day)
                continue
            for cat, tasks in cats.items():
                if not isinstance(tasks, dict):
                    continue
                try:
                    category = Category.parse(cat).value
                except ValueError:
                    logger.warning("Skipping entries for %s under unknown category %r", key, cat)
                    continue
                for task, hours in tasks.items():
                    value = _float(hours, 0.0)
                    if value > 0:
                        cell = entries.setdefault(key, {}).setdefault(category, {})
                        # "research" and "Research" on one day collapse into one cell
                        cell[str(task)] = cell.get(str(task), 0.0) + value
        return cls(
            entries=entries,
            categories=Taxonomy.from_dict(d.get("categories") or {}),
            settings=Settings.from_dict(d.get("settings") or {}),
            sync_url=str(d.get("googleSheetsUrl") or ""),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "entries": {
                day: {cat: dict(tasks) for cat, tasks in cats.items()}
                for day, cats in sorted(self.entries.items())
            },
            "categories": self.categories.to_dict(),
            "settings": self.settings.to_dict(),
            "googleSheetsUrl": self.sync_url,
        }


# ── Derived results ───────────────────────────────────────────


@dataclass
class WeekSummary:
    week: str = ""  # Monday, YYYY-MM-DD
    hours: dict[Category, float] = field(default_factory=lambda: {c: 0.0 for c in Category})
    total: float = 0.0

    def get(self, category: Category) -> float:
        return self.hours.get(category, 0.0)

    def working_total(self) -> float:
        return sum(self.get(c) for c in WORKING_CATEGORIES)

    def to_dict(self) -> dict[str, Any]:
        d: dict[str, Any] = {"week": self.week}
        for c in Category:
            d[c.value] = self.get(c)
        d["total"] = self.total
        return d


@dataclass
class LedgerStats:
    active_dates: list[str] = field(default_factory=list)
    total_hours: float = 0.0
    category_totals: dict[Category, float] = field(default_factory=lambda: {c: 0.0 for c in Category})
    working_hours_total: float = 0.0
    weekly: list[WeekSummary] = field(default_factory=list)
    weeks_worked: int = 0
    days_worked: int = 0
    avg_week: float = 0.0
    avg_day: float = 0.0
    day_of_week_avg: dict[str, float] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        return {
            "activeDates": self.active_dates,
            "totalHours": self.total_hours,
            "categoryTotals": {c.value: v for c, v in self.category_totals.items()},
            "workingHoursTotal": self.working_hours_total,
            "weeklyData": [w.to_dict() for w in self.weekly],
            "weeksWorked": self.weeks_worked,
            "daysWorked": self.days_worked,
            "avgWeek": self.avg_week,
            "avgDay": self.avg_day,
            "dayOfWeekAvg": [{"day": k, "hours": v} for k, v in self.day_of_week_avg.items()],
        }


@dataclass
class Insight:
    category: Category | None
    kind: str  # over, under, balanced
    message: str

    def to_dict(self) -> dict[str, Any]:
        return {
            "category": self.category.value if self.category else None,
            "kind": self.kind,
            "message": self.message,
        }


@dataclass
class AllocationReport:
    actual_percentages: dict[Category, float] = field(default_factory=dict)
    deltas: dict[Category, float] = field(default_factory=dict)
    bands: dict[Category, str] = field(default_factory=dict)
    insights: list[Insight] = field(default_factory=list)
    expected_hours: float = 0.0
    over_under: float = 0.0
    over_under_label: str = "Overworked"
    allocation_total: float = 0.0
    allocation_warning: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "actualPercentages": {c.value: v for c, v in self.actual_percentages.items()},
            "allocationDiff": {c.value: v for c, v in self.deltas.items()},
            "bands": {c.value: v for c, v in self.bands.items()},
            "insights": [i.to_dict() for i in self.insights],
            "expectedHours": self.expected_hours,
            "overUnder": self.over_under,
            "overUnderLabel": self.over_under_label,
            "allocationTotal": self.allocation_total,
            "allocationWarning": self.allocation_warning,
        }


@dataclass
class MissingDay:
    date: str
    label: str
    is_weekend: bool

    def to_dict(self) -> dict[str, Any]:
        return {"date": self.date, "formatted": self.label, "isWeekend": self.is_weekend}


@dataclass
class WeekGridRow:
    category: Category
    task: str
    hours: list[float] = field(default_factory=lambda: [0.0] * 7)
    orphaned: bool = False  # has hours but is no longer in the taxonomy

    @property
    def total(self) -> float:
        return sum(self.hours)

    def to_dict(self) -> dict[str, Any]:
        return {
            "category": self.category.value,
            "task": self.task,
            "hours": self.hours,
            "total": self.total,
            "orphaned": self.orphaned,
        }


@dataclass
class WeekGrid:
    dates: list[str] = field(default_factory=list)
    rows: list[WeekGridRow] = field(default_factory=list)
    day_totals: list[float] = field(default_factory=lambda: [0.0] * 7)

    @property
    def total(self) -> float:
        return sum(self.day_totals)

    def to_dict(self) -> dict[str, Any]:
        return {
            "dates": self.dates,
            "rows": [r.to_dict() for r in self.rows],
            "dayTotals": self.day_totals,
            "total": self.total,
        }
