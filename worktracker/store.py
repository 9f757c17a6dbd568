"""Loading, saving and importing the persisted tracker record.

The record has four top-level fields: ``entries``, ``categories``,
``settings`` and ``googleSheetsUrl``. Imports are validated in full before
anything is applied, so a rejected import leaves the session untouched.
"""

from __future__ import annotations

import json
import logging
import math
from pathlib import Path
from typing import Any

import yaml

from worktracker.dates import parse_date
from worktracker.errors import FormatError
from worktracker.fileio import read_json, read_text, write_json_atomic
from worktracker.models import Category, Taxonomy, TrackerSession
from worktracker.workspace import state_path

logger = logging.getLogger(__name__)

RECORD_FIELDS = ("entries", "categories", "settings", "googleSheetsUrl")

_NUMBER_SETTINGS = ("hoursPerWeek", "carryoverHours")
_POLICY_FLAGS = ("enabled", "includeWeekends")


# ── Persistence ───────────────────────────────────────────────


def load_session(root: Path | None = None) -> TrackerSession:
    """Load tracker.json into a session; a missing file gives a fresh session."""
    path = state_path(root)
    try:
        data = read_json(path)
    except json.JSONDecodeError as exc:
        raise FormatError(f"{path} is not valid JSON: {exc}") from exc
    if not isinstance(data, dict):
        raise FormatError(f"{path} must contain a JSON object")
    return TrackerSession.from_dict(data)


def save_session(session: TrackerSession, root: Path | None = None) -> None:
    write_json_atomic(state_path(root), session.to_dict())


def export_payload(session: TrackerSession) -> dict[str, Any]:
    """The full record, suitable for a JSON backup that import_payload accepts."""
    return session.to_dict()


# ── Validation ────────────────────────────────────────────────


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool) and math.isfinite(value)


def _check_category(name: Any, where: str, errors: list[str]) -> None:
    try:
        Category.parse(name)
    except ValueError:
        errors.append(f"{where}: unknown category {name!r}")


def _validate_entries(entries: Any, errors: list[str]) -> None:
    if not isinstance(entries, dict):
        errors.append("entries must be an object keyed by date")
        return
    for day, cats in entries.items():
        try:
            parse_date(str(day))
        except ValueError:
            errors.append(f"entries: invalid date key {day!r}")
            continue
        if not isinstance(cats, dict):
            errors.append(f"entries.{day} must be an object")
            continue
        for cat, tasks in cats.items():
            _check_category(cat, f"entries.{day}", errors)
            if not isinstance(tasks, dict):
                errors.append(f"entries.{day}.{cat} must be an object")
                continue
            for task, hours in tasks.items():
                if not _is_number(hours):
                    errors.append(f"entries.{day}.{cat}.{task}: hours must be a number")


def _validate_categories(categories: Any, errors: list[str]) -> None:
    if not isinstance(categories, dict):
        errors.append("categories must be an object")
        return
    for cat, tasks in categories.items():
        _check_category(cat, "categories", errors)
        if not isinstance(tasks, list) or not all(isinstance(t, str) for t in tasks):
            errors.append(f"categories.{cat} must be a list of task names")


def _validate_settings(settings: Any, errors: list[str]) -> None:
    if not isinstance(settings, dict):
        errors.append("settings must be an object")
        return
    for key in _NUMBER_SETTINGS:
        if key in settings and not _is_number(settings[key]):
            errors.append(f"settings.{key} must be a number")
    if "startOfYear" in settings:
        try:
            parse_date(str(settings["startOfYear"]))
        except ValueError:
            errors.append("settings.startOfYear must be a YYYY-MM-DD date")
    if "allocation" in settings:
        allocation = settings["allocation"]
        if not isinstance(allocation, dict):
            errors.append("settings.allocation must be an object")
        else:
            for cat, pct in allocation.items():
                _check_category(cat, "settings.allocation", errors)
                if not _is_number(pct):
                    errors.append(f"settings.allocation.{cat} must be a number")
    if "missingDataWarning" in settings:
        policy = settings["missingDataWarning"]
        if not isinstance(policy, dict):
            errors.append("settings.missingDataWarning must be an object")
        else:
            for key in _POLICY_FLAGS:
                if key in policy and not isinstance(policy[key], bool):
                    errors.append(f"settings.missingDataWarning.{key} must be true or false")
            if "days" in policy and (not _is_number(policy["days"]) or policy["days"] != int(policy["days"])):
                errors.append("settings.missingDataWarning.days must be a whole number")


def validate_payload(data: Any) -> list[str]:
    """Return a list of structural problems (empty if the payload is importable)."""
    if not isinstance(data, dict):
        return ["import payload must be an object"]
    errors: list[str] = []
    if "entries" in data:
        _validate_entries(data["entries"], errors)
    if "categories" in data:
        _validate_categories(data["categories"], errors)
    if "settings" in data:
        _validate_settings(data["settings"], errors)
    if "googleSheetsUrl" in data and not isinstance(data["googleSheetsUrl"], str):
        errors.append("googleSheetsUrl must be a string")
    return errors


# ── Import ────────────────────────────────────────────────────


def import_payload(session: TrackerSession, data: Any) -> list[str]:
    """Apply the fields present in *data* to *session*. Returns the fields applied.

    ``entries`` and ``categories`` replace the current ones, ``settings`` is
    merged key by key over the current settings. Raises FormatError (and
    changes nothing) if any part of the payload is malformed.
    """
    errors = validate_payload(data)
    if errors:
        logger.warning("Rejected import: %s", "; ".join(errors))
        raise FormatError("; ".join(errors))

    applied = [f for f in RECORD_FIELDS if f in data]
    if not applied:
        logger.warning("Import payload has none of %s; nothing applied", ", ".join(RECORD_FIELDS))
        return []

    entries = session.entries
    if "entries" in data:
        entries = TrackerSession.from_dict({"entries": data["entries"]}).entries
    categories = Taxonomy.from_dict(data["categories"]) if "categories" in data else session.categories
    settings = session.settings.merged(data["settings"]) if "settings" in data else session.settings
    sync_url = data["googleSheetsUrl"] if "googleSheetsUrl" in data else session.sync_url

    session.entries = entries
    session.categories = categories
    session.settings = settings
    session.sync_url = sync_url
    logger.info("Imported %s", ", ".join(applied))
    return applied


def update_settings(session: TrackerSession, updates: dict[str, Any]) -> None:
    """Merge validated settings changes into *session* (the settings panel)."""
    errors: list[str] = []
    _validate_settings(updates, errors)
    if errors:
        raise FormatError("; ".join(errors))
    session.settings = session.settings.merged(updates)
    logger.info("Updated settings: %s", ", ".join(sorted(updates)))


def import_file(session: TrackerSession, path: Path) -> list[str]:
    """Import a JSON (or .yaml/.yml) file into *session*."""
    text = read_text(path)
    try:
        if path.suffix.lower() in (".yaml", ".yml"):
            data = yaml.safe_load(text)
        else:
            data = json.loads(text)
    except (json.JSONDecodeError, yaml.YAMLError) as exc:
        raise FormatError(f"Invalid file format: {exc}") from exc
    return import_payload(session, data)
