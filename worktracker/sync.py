"""Push logged hours to a remote spreadsheet web app.

The transport is a single JSON POST. Callers only ever see the outcome as a
SyncStatus; failures are logged and reported, never retried.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from enum import Enum
from typing import Any

import requests

from worktracker.ledger import iter_cells
from worktracker.models import TrackerSession

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 30.0


class SyncStatus(str, Enum):
    PENDING = "pending"
    SUCCESS = "success"
    FAILURE = "failure"


def build_sync_payload(session: TrackerSession) -> dict[str, Any]:
    """Flattened non-zero entries plus the weekly target and allocation."""
    return {
        "action": "sync",
        "data": [
            {"date": day, "category": cat, "task": task, "hours": hours}
            for day, cat, task, hours in iter_cells(session.entries)
        ],
        "settings": {
            "hoursPerWeek": session.settings.schedule.hours_per_week,
            "allocation": session.settings.allocation.to_dict(),
        },
    }


def push_payload(url: str, payload: dict[str, Any], timeout: float = DEFAULT_TIMEOUT) -> SyncStatus:
    try:
        response = requests.post(url, json=payload, timeout=timeout)
        response.raise_for_status()
    except requests.RequestException as e:
        logger.error("Sync to %s failed: %s", url, e)
        return SyncStatus.FAILURE
    logger.info("Synced %d entries to %s", len(payload.get("data", [])), url)
    return SyncStatus.SUCCESS


def sync_session(
    session: TrackerSession,
    timeout: float = DEFAULT_TIMEOUT,
    on_status: Callable[[SyncStatus], None] | None = None,
) -> SyncStatus:
    """Snapshot *session* and push it. *on_status* sees PENDING, then the outcome.

    Raises ValueError if no sync URL is configured.
    """
    if not session.sync_url:
        raise ValueError("No sync URL configured. Set googleSheetsUrl in settings first.")
    payload = build_sync_payload(session)
    if on_status:
        on_status(SyncStatus.PENDING)
    status = push_payload(session.sync_url, payload, timeout=timeout)
    if on_status:
        on_status(status)
    return status
