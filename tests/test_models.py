"""Tests for worktracker/models.py — dataclass serialization and defaults."""

import pytest

from worktracker.models import (
    DEFAULT_TASKS,
    AllocationConfig,
    Category,
    MissingDataPolicy,
    Settings,
    Taxonomy,
    TrackerSession,
)


def test_category_parse_by_value_or_name():
    assert Category.parse("Research") is Category.RESEARCH
    assert Category.parse("teaching") is Category.TEACHING
    assert Category.parse(" SERVICE ") is Category.SERVICE
    assert Category.parse(Category.OTHER) is Category.OTHER
    with pytest.raises(ValueError):
        Category.parse("Leisure")


def test_default_session():
    s = TrackerSession()
    assert s.entries == {}
    assert s.categories.tasks == DEFAULT_TASKS
    assert s.settings.schedule.hours_per_week == 37.5
    assert s.settings.allocation.to_dict() == {"Research": 40.0, "Teaching": 40.0, "Service": 20.0}
    assert s.settings.missing_data == MissingDataPolicy(enabled=True, days=5, include_weekends=False)
    assert s.sync_url == ""


def test_taxonomy_defaults_are_not_shared():
    a = Taxonomy()
    b = Taxonomy()
    a.tasks[Category.RESEARCH].append("Lab work")
    assert "Lab work" not in b.tasks[Category.RESEARCH]
    assert "Lab work" not in DEFAULT_TASKS[Category.RESEARCH]


def test_taxonomy_from_dict_dedupes_and_ignores_unknown():
    tax = Taxonomy.from_dict({
        "Research": ["Writing", " Writing ", "Reading", ""],
        "Hobbies": ["Chess"],
    })
    assert tax.tasks[Category.RESEARCH] == ["Writing", "Reading"]
    assert tax.tasks[Category.TEACHING] == DEFAULT_TASKS[Category.TEACHING]
    assert "Hobbies" not in tax.to_dict()


def test_session_from_dict_drops_non_positive_and_non_numeric():
    s = TrackerSession.from_dict({
        "entries": {
            "2025-03-10": {
                "Research": {"Writing": 2, "Reading": 0, "Misc": "lots"},
                "Teaching": {"Marking": -1},
            },
            "2025-03-11": {"Service": {"Admin": "1.5"}},
        },
    })
    assert s.entries == {
        "2025-03-10": {"Research": {"Writing": 2.0}},
        "2025-03-11": {"Service": {"Admin": 1.5}},
    }


def test_session_round_trip_uses_wire_names(session):
    d = session.to_dict()
    assert set(d) == {"entries", "categories", "settings", "googleSheetsUrl"}
    assert d["settings"]["missingDataWarning"]["includeWeekends"] is False
    assert TrackerSession.from_dict(d) == session


def test_session_from_garbage_is_default():
    assert TrackerSession.from_dict(None) == TrackerSession()
    assert TrackerSession.from_dict([]) == TrackerSession()


def test_missing_policy_days_clamped():
    assert MissingDataPolicy.from_dict({"days": 0}).days == 1
    assert MissingDataPolicy.from_dict({"days": 99}).days == 30
    assert MissingDataPolicy.from_dict({"days": "x"}).days == 5


def test_allocation_ignores_other_category():
    cfg = AllocationConfig.from_dict({"Research": 50, "Other": 10})
    assert cfg.target(Category.RESEARCH) == 50
    assert cfg.target(Category.OTHER) == 0
    assert cfg.total() == 110


def test_settings_merge_is_shallow():
    base = Settings()
    merged = base.merged({"hoursPerWeek": 30, "allocation": {"Research": 60}})
    assert merged.schedule.hours_per_week == 30
    assert merged.schedule.carryover_hours == 0
    # allocation is replaced as a whole; missing keys fall back to defaults
    assert merged.allocation.to_dict() == {"Research": 60.0, "Teaching": 40.0, "Service": 20.0}
    assert base.schedule.hours_per_week == 37.5
