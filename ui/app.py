from __future__ import annotations

import threading
from contextlib import contextmanager
from typing import Any, Iterator

from fastapi import Body, FastAPI, HTTPException
from fastapi.responses import HTMLResponse, Response

from worktracker import (
    Category,
    DuplicateTaskError,
    FormatError,
    TrackerSession,
    analyze,
    backup_json,
    category_breakdown,
    category_total,
    compute_stats,
    configure_logging,
    date_key,
    day_total,
    detailed_csv,
    find_missing_days,
    format_short,
    import_payload,
    load_config,
    load_session,
    reset_taxonomy,
    save_session,
    set_hours,
    summary_csv,
    sync_session,
    today,
    update_settings,
    week_grid,
    weekly_distribution,
    workspace_root,
)
from worktracker import add_task as core_add_task
from worktracker import remove_task as core_remove_task
from worktracker.ledger import get_hours, logged_tasks

app = FastAPI(title="Work Tracker", version="0.1.0")
configure_logging()

# One writer at a time: every mutation is load -> change -> save under this lock.
_session_lock = threading.Lock()


@contextmanager
def _editing() -> Iterator[TrackerSession]:
    with _session_lock:
        root = workspace_root()
        session = _load(root)
        yield session
        save_session(session, root)


def _load(root=None) -> TrackerSession:
    try:
        return load_session(root)
    except FormatError as e:
        raise HTTPException(status_code=500, detail=f"Stored data is unreadable: {e}")


def _day(value: str) -> str:
    try:
        return date_key(value)
    except ValueError:
        raise HTTPException(status_code=400, detail=f"Invalid date: {value}")


def _category(value: str) -> Category:
    try:
        return Category.parse(value)
    except ValueError:
        raise HTTPException(status_code=404, detail=f"Unknown category: {value}")


# ── HTML helpers ──────────────────────────────────────────────

def _escape(s: str) -> str:
    return (
        s.replace("&", "&amp;")
        .replace("<", "&lt;")
        .replace(">", "&gt;")
        .replace('"', "&quot;")
    )


def _table(header: list[str], rows: list[list[Any]]) -> str:
    head = "".join(f"<th>{_escape(str(h))}</th>" for h in header)
    body = "".join(
        "<tr>" + "".join(f"<td>{_escape(str(c))}</td>" for c in row) + "</tr>" for row in rows
    )
    return f"<table><thead><tr>{head}</tr></thead><tbody>{body}</tbody></table>"


def _signed(value: float, unit: str) -> str:
    return f"{'+' if value >= 0 else ''}{value:.1f}{unit}"


# ── Endpoints ─────────────────────────────────────────────────

@app.get("/healthz")
def healthz() -> dict[str, str]:
    return {"ok": "true"}


@app.get("/", response_class=HTMLResponse)
def index() -> HTMLResponse:
    session = _load()
    stats = compute_stats(session.entries)
    report = analyze(stats, session.settings)
    missing = find_missing_days(session.entries, session.settings.missing_data, today())

    parts = ["<h1>Work Tracker</h1>"]
    if missing:
        labels = ", ".join(m.label + (" (weekend)" if m.is_weekend else "") for m in missing)
        parts.append(f'<p class="warning">No hours logged for: {_escape(labels)}</p>')
    if report.allocation_warning:
        parts.append(f'<p class="warning">{_escape(report.allocation_warning)}</p>')

    parts.append("<h2>Summary</h2>")
    parts.append(_table(["Measure", "Value"], [
        ["Total hours", f"{stats.total_hours:.1f}h"],
        ["Average week", f"{stats.avg_week:.1f}h"],
        ["Average day", f"{stats.avg_day:.1f}h"],
        ["Days tracked", stats.days_worked],
        ["Weeks tracked", stats.weeks_worked],
        ["Hours over/under", f"{_signed(report.over_under, 'h')} ({report.over_under_label})"],
    ]))

    parts.append("<h2>Allocation</h2>")
    parts.append(_table(
        ["Category", "Hours", "Actual", "Target", "Difference"],
        [
            [
                c.value,
                f"{stats.category_totals[c]:.1f}",
                f"{pct:.1f}%",
                f"{session.settings.allocation.target(c):g}%",
                _signed(report.deltas[c], "%"),
            ]
            for c, pct in report.actual_percentages.items()
        ],
    ))
    parts.append("<ul>" + "".join(f"<li>{_escape(i.message)}</li>" for i in report.insights) + "</ul>")

    parts.append("<h2>Weekly</h2>")
    parts.append(_table(
        ["Week", "Research", "Teaching", "Service", "Other", "Total"],
        [[w.week] + [f"{w.get(c):.1f}" for c in Category] + [f"{w.total:.1f}"] for w in stats.weekly],
    ))
    html = "<!doctype html><html><head><meta charset='utf-8'><title>Work Tracker</title></head><body>"
    return HTMLResponse(html + "".join(parts) + "</body></html>")


@app.get("/api/session")
def api_session() -> dict[str, Any]:
    return _load().to_dict()


@app.get("/api/day/{day}")
def api_day(day: str) -> dict[str, Any]:
    """Hours for every task on one day, grouped by category."""
    key = _day(day)
    session = _load()
    categories = []
    for c in Category:
        names = list(session.categories.tasks_for(c))
        names += [t for t in logged_tasks(session.entries, key, c) if t not in names]
        categories.append({
            "category": c.value,
            "tasks": [{"task": t, "hours": get_hours(session.entries, key, c, t)} for t in names],
            "total": category_total(session.entries, key, c),
        })
    return {
        "date": key,
        "formatted": format_short(key),
        "categories": categories,
        "total": day_total(session.entries, key),
    }


@app.put("/api/entries")
def api_set_entry(payload: dict[str, Any] = Body(...)) -> dict[str, Any]:
    """Set the hours for one (date, category, task) cell. 0 clears it."""
    key = _day(str(payload.get("date", "")))
    category = _category(str(payload.get("category", "")))
    task = str(payload.get("task", "")).strip()
    if not task:
        raise HTTPException(status_code=400, detail="Missing task")
    with _editing() as session:
        stored = set_hours(session, key, category, task, payload.get("hours"))
        total = day_total(session.entries, key)
    return {"ok": True, "date": key, "hours": stored, "dayTotal": total}


@app.get("/api/week/{day}")
def api_week(day: str) -> dict[str, Any]:
    key = _day(day)
    return week_grid(_load(), key).to_dict()


@app.get("/api/stats")
def api_stats() -> dict[str, Any]:
    session = _load()
    stats = compute_stats(session.entries)
    return {
        "stats": stats.to_dict(),
        "allocation": analyze(stats, session.settings).to_dict(),
        "categoryPercentages": category_breakdown(stats),
        "weeklyDistribution": weekly_distribution(stats, session.settings.allocation),
    }


@app.get("/api/missing")
def api_missing() -> dict[str, Any]:
    session = _load()
    missing = find_missing_days(session.entries, session.settings.missing_data, today())
    return {"missingDays": [m.to_dict() for m in missing]}


@app.get("/api/categories")
def api_categories() -> dict[str, Any]:
    return _load().categories.to_dict()


@app.post("/api/categories/{category}/tasks")
def api_add_task(category: str, payload: dict[str, Any] = Body(...)) -> dict[str, Any]:
    cat = _category(category)
    name = str(payload.get("name", ""))
    try:
        with _editing() as session:
            added = core_add_task(session, cat, name)
            tasks = list(session.categories.tasks_for(cat))
    except DuplicateTaskError as e:
        raise HTTPException(status_code=409, detail=str(e))
    return {"ok": added, "category": cat.value, "tasks": tasks}


@app.delete("/api/categories/{category}/tasks/{name}")
def api_remove_task(category: str, name: str) -> dict[str, Any]:
    cat = _category(category)
    with _editing() as session:
        removed = core_remove_task(session, cat, name)
        tasks = list(session.categories.tasks_for(cat))
    if not removed:
        raise HTTPException(status_code=404, detail=f"Task not found in {cat.value}: {name}")
    return {"ok": True, "category": cat.value, "tasks": tasks}


@app.post("/api/categories/reset")
def api_reset_categories() -> dict[str, Any]:
    with _editing() as session:
        reset_taxonomy(session)
        categories = session.categories.to_dict()
    return {"ok": True, "categories": categories}


@app.put("/api/settings")
def api_update_settings(payload: dict[str, Any] = Body(...)) -> dict[str, Any]:
    """Update settings; googleSheetsUrl may be passed alongside them."""
    updates = dict(payload)
    url = updates.pop("googleSheetsUrl", None)
    if url is not None and not isinstance(url, str):
        raise HTTPException(status_code=400, detail="googleSheetsUrl must be a string")
    try:
        with _editing() as session:
            update_settings(session, updates)
            if url is not None:
                session.sync_url = url.strip()
            result = session.settings.to_dict()
    except FormatError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return {"ok": True, "settings": result}


@app.post("/api/import")
def api_import(payload: Any = Body(...)) -> dict[str, Any]:
    try:
        with _editing() as session:
            applied = import_payload(session, payload)
    except FormatError as e:
        raise HTTPException(status_code=400, detail=f"Invalid file format: {e}")
    return {"ok": True, "imported": applied}


def _download(content: str, filename: str, media_type: str) -> Response:
    return Response(
        content=content,
        media_type=media_type,
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )


@app.get("/api/export/detailed.csv")
def api_export_detailed() -> Response:
    session = _load()
    if not session.entries:
        raise HTTPException(status_code=404, detail="No data to export")
    return _download(detailed_csv(session.entries), f"work-tracker-{today().isoformat()}.csv", "text/csv")


@app.get("/api/export/summary.csv")
def api_export_summary() -> Response:
    session = _load()
    if not session.entries:
        raise HTTPException(status_code=404, detail="No data to export")
    return _download(summary_csv(session.entries), f"work-tracker-summary-{today().isoformat()}.csv", "text/csv")


@app.get("/api/export/backup.json")
def api_export_backup() -> Response:
    return _download(backup_json(_load()), "work-tracker-backup.json", "application/json")


@app.post("/api/sync")
def api_sync() -> dict[str, Any]:
    session = _load()
    try:
        status = sync_session(session, timeout=load_config().sync_timeout)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return {"status": status.value}

