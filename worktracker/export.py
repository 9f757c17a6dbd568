"""CSV and JSON exports of the ledger."""

from __future__ import annotations

import csv
import io
import json
import logging
from pathlib import Path

from worktracker.aggregation import weekly_rollup
from worktracker.dates import format_weekday
from worktracker.fileio import write_text_atomic
from worktracker.ledger import iter_cells
from worktracker.models import Category, Entries, TrackerSession
from worktracker.store import export_payload
from worktracker.workspace import exports_dir, today_str

logger = logging.getLogger(__name__)

DETAILED_HEADER = ["Date", "Weekday", "Category", "Task", "Hours"]
SUMMARY_HEADER = ["WeekStart", "ResearchHours", "TeachingHours", "ServiceHours", "OtherHours", "TotalHours"]


def detailed_rows(entries: Entries) -> list[list[str]]:
    """One row per cell with hours > 0, dates ascending."""
    return [[day, format_weekday(day), cat, task, f"{hours:g}"] for day, cat, task, hours in iter_cells(entries)]


def summary_rows(entries: Entries) -> list[list[str]]:
    """One row per week, category and total hours fixed to 2 decimals."""
    rows = []
    for week in weekly_rollup(entries):
        figures = [week.get(c) for c in Category]
        rows.append([week.week] + [f"{v:.2f}" for v in figures] + [f"{sum(figures):.2f}"])
    return rows


def to_csv(header: list[str], rows: list[list]) -> str:
    buf = io.StringIO()
    writer = csv.writer(buf, lineterminator="\n")
    writer.writerow(header)
    writer.writerows(rows)
    return buf.getvalue()


def detailed_csv(entries: Entries) -> str:
    return to_csv(DETAILED_HEADER, detailed_rows(entries))


def summary_csv(entries: Entries) -> str:
    return to_csv(SUMMARY_HEADER, summary_rows(entries))


def backup_json(session: TrackerSession) -> str:
    return json.dumps(export_payload(session), indent=2, ensure_ascii=False) + "\n"


def write_exports(session: TrackerSession, root: Path | None = None, stamp: str | None = None) -> list[Path]:
    """Write the detailed and weekly CSVs into the exports folder.

    Returns the written paths; nothing is written when the ledger is empty.
    """
    if not session.entries:
        logger.info("No data to export")
        return []
    stamp = stamp or today_str(root)
    folder = exports_dir(root)
    paths = [
        folder / f"work-tracker-{stamp}.csv",
        folder / f"work-tracker-summary-{stamp}.csv",
    ]
    write_text_atomic(paths[0], detailed_csv(session.entries))
    write_text_atomic(paths[1], summary_csv(session.entries))
    logger.info("Exported %s", ", ".join(p.name for p in paths))
    return paths
