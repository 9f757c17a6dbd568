"""Shared test fixtures for work tracker tests."""

from __future__ import annotations

import json
import os
from pathlib import Path

import pytest
import yaml

from worktracker.models import TrackerSession


SAMPLE_RECORD = {
    "entries": {
        "2025-03-10": {
            "Research": {"Writing": 4},
            "Teaching": {"Delivery": 3},
        },
        "2025-03-11": {
            "Service": {"Admin": 2},
        },
        "2025-03-17": {
            "Research": {"Reading": 1.5},
            "Other": {"Annual Leave": 7.5},
        },
    },
    "categories": {
        "Research": ["Writing", "Reading"],
        "Teaching": ["Delivery", "Marking"],
        "Service": ["Admin"],
        "Other": ["Annual Leave"],
    },
    "settings": {
        "hoursPerWeek": 37.5,
        "carryoverHours": 2,
        "startOfYear": "2025-01-06",
        "allocation": {"Research": 40, "Teaching": 40, "Service": 20},
        "missingDataWarning": {"enabled": True, "days": 5, "includeWeekends": False},
    },
    "googleSheetsUrl": "",
}


@pytest.fixture
def session() -> TrackerSession:
    """A session with two weeks of sample entries."""
    return TrackerSession.from_dict(json.loads(json.dumps(SAMPLE_RECORD)))


@pytest.fixture
def workspace(tmp_path: Path) -> Path:
    """Create a temporary workspace with config.yaml and tracker.json."""
    root = tmp_path / "workspace"
    root.mkdir(parents=True)

    (root / "config.yaml").write_text(
        yaml.dump({"timezone": "UTC", "log_level": "DEBUG", "sync_timeout": 5}, default_flow_style=False),
        encoding="utf-8",
    )
    (root / "tracker.json").write_text(json.dumps(SAMPLE_RECORD, indent=2), encoding="utf-8")

    os.environ["WORKTRACKER_ROOT"] = str(root)
    yield root
    if "WORKTRACKER_ROOT" in os.environ:
        del os.environ["WORKTRACKER_ROOT"]
