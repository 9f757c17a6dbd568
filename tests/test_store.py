"""Tests for worktracker/store.py — persistence, import validation, settings."""

import json
from datetime import date

import pytest
import yaml

from worktracker.aggregation import compute_stats
from worktracker.errors import FormatError
from worktracker.ledger import category_total, day_total, get_hours
from worktracker.missing import find_missing_days
from worktracker.models import Category, MissingDataPolicy, TrackerSession
from worktracker.store import (
    import_file,
    import_payload,
    load_session,
    save_session,
    update_settings,
    validate_payload,
)


def test_load_session_from_workspace(workspace):
    s = load_session(workspace)
    assert s.entries["2025-03-10"]["Research"]["Writing"] == 4
    assert s.categories.tasks[Category.SERVICE] == ["Admin"]
    assert s.settings.schedule.carryover_hours == 2


def test_load_session_uses_env_root(workspace):
    assert load_session() == load_session(workspace)


def test_missing_file_gives_fresh_session(tmp_path):
    assert load_session(tmp_path) == TrackerSession()


def test_corrupt_file_raises_format_error(tmp_path):
    (tmp_path / "tracker.json").write_text("{not json", encoding="utf-8")
    with pytest.raises(FormatError):
        load_session(tmp_path)


def test_non_object_file_raises_format_error(tmp_path):
    (tmp_path / "tracker.json").write_text("[1, 2]", encoding="utf-8")
    with pytest.raises(FormatError):
        load_session(tmp_path)


def test_save_then_load(tmp_path, session):
    save_session(session, tmp_path)
    assert load_session(tmp_path) == session
    assert not list(tmp_path.glob(".tmp_*"))


# ── Import ────────────────────────────────────────────────────


def test_import_backup_restores_session(session):
    target = TrackerSession()
    applied = import_payload(target, session.to_dict())
    assert applied == ["entries", "categories", "settings", "googleSheetsUrl"]
    assert target == session


def test_partial_import_keeps_other_fields(session):
    before_entries = dict(session.entries)
    applied = import_payload(session, {"settings": {"hoursPerWeek": 30}})
    assert applied == ["settings"]
    assert session.settings.schedule.hours_per_week == 30
    assert session.settings.schedule.carryover_hours == 2
    assert session.entries == before_entries


def test_import_entries_replaces_ledger(session):
    import_payload(session, {"entries": {"2025-04-01": {"teaching": {"Marking": 2, "Delivery": 0}}}})
    assert session.entries == {"2025-04-01": {"Teaching": {"Marking": 2.0}}}


def test_import_without_known_fields_is_noop(session):
    before = session.to_dict()
    assert import_payload(session, {"version": 3}) == []
    assert session.to_dict() == before


@pytest.mark.parametrize(
    "payload",
    [
        [],
        {"entries": []},
        {"entries": {"2025-13-45": {}}},
        {"entries": {"2025-03-10": {"Leisure": {"Golf": 2}}}},
        {"entries": {"2025-03-10": {"Research": {"Writing": "two"}}}},
        {"categories": {"Research": "Writing"}},
        {"settings": {"hoursPerWeek": "forty"}},
        {"settings": {"allocation": {"Research": "half"}}},
        {"settings": {"missingDataWarning": {"days": 2.5}}},
        {"googleSheetsUrl": 42},
    ],
)
def test_malformed_import_rejected_without_changes(session, payload):
    before = session.to_dict()
    assert validate_payload(payload)
    with pytest.raises(FormatError):
        import_payload(session, payload)
    assert session.to_dict() == before


def test_valid_entries_with_bad_settings_apply_nothing(session):
    before = session.to_dict()
    payload = {"entries": {}, "settings": {"startOfYear": "soon"}}
    with pytest.raises(FormatError):
        import_payload(session, payload)
    assert session.to_dict() == before


def test_import_file_json(tmp_path, session):
    path = tmp_path / "backup.json"
    path.write_text(json.dumps(session.to_dict()), encoding="utf-8")
    target = TrackerSession()
    import_file(target, path)
    assert target.entries == session.entries


def test_import_file_yaml(tmp_path):
    path = tmp_path / "backup.yaml"
    path.write_text(yaml.dump({"settings": {"hoursPerWeek": 20}}), encoding="utf-8")
    target = TrackerSession()
    assert import_file(target, path) == ["settings"]
    assert target.settings.schedule.hours_per_week == 20


def test_import_file_unparseable(tmp_path):
    path = tmp_path / "backup.json"
    path.write_text("not json at all", encoding="utf-8")
    with pytest.raises(FormatError, match="Invalid file format"):
        import_file(TrackerSession(), path)


# ── Settings ──────────────────────────────────────────────────


def test_update_settings_merges(session):
    update_settings(session, {"missingDataWarning": {"enabled": False, "days": 7}})
    assert session.settings.missing_data.enabled is False
    assert session.settings.missing_data.days == 7
    assert session.settings.schedule.hours_per_week == 37.5


def test_update_settings_rejects_bad_values(session):
    with pytest.raises(FormatError):
        update_settings(session, {"hoursPerWeek": None})
    assert session.settings.schedule.hours_per_week == 37.5


# ── Key normalisation ─────────────────────────────────────────


@pytest.mark.parametrize("day", ["20250314", "2025-W11-5", "2025-3-14", "2025-03-14T09:00"])
def test_import_rejects_non_canonical_date_keys(session, day):
    before = session.to_dict()
    with pytest.raises(FormatError, match="invalid date key"):
        import_payload(session, {"entries": {day: {"Research": {"Writing": 4}}}})
    assert session.to_dict() == before


def test_import_rejects_unknown_category(session):
    before = session.to_dict()
    with pytest.raises(FormatError, match="unknown category"):
        import_payload(session, {"entries": {"2025-03-14": {"Gardening": {"Weeding": 4}}}})
    assert session.to_dict() == before


def test_imported_day_is_visible_to_every_reader():
    s = TrackerSession()
    import_payload(s, {"entries": {"2025-03-14": {"research": {"Writing": 4}}}})
    assert list(s.entries) == ["2025-03-14"]
    assert get_hours(s.entries, date(2025, 3, 14), Category.RESEARCH, "Writing") == 4
    assert compute_stats(s.entries).category_totals[Category.RESEARCH] == 4
    policy = MissingDataPolicy(enabled=True, days=1)
    assert find_missing_days(s.entries, policy, date(2025, 3, 17)) == []


@pytest.mark.parametrize(
    "stored, expected",
    [
        ({"2025-03-10": {"research": {"Writing": 4}}}, {"2025-03-10": {"Research": {"Writing": 4.0}}}),
        ({"2025-03-10": {"Gardening": {"Weeding": 4}}}, {}),
        ({"20250310": {"Research": {"Writing": 4}}}, {}),
        ({"2025-W11-1": {"Research": {"Writing": 4}}}, {}),
        (
            {"2025-03-10": {"Research": {"Writing": 1}, "RESEARCH": {"Writing": 2}}},
            {"2025-03-10": {"Research": {"Writing": 3.0}}},
        ),
    ],
)
def test_load_session_normalises_keys(tmp_path, stored, expected):
    (tmp_path / "tracker.json").write_text(json.dumps({"entries": stored}), encoding="utf-8")
    s = load_session(tmp_path)
    assert s.entries == expected
    for day in s.entries:
        assert day_total(s.entries, day) == sum(category_total(s.entries, day, c) for c in Category)
