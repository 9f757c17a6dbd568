#!/usr/bin/env python3
"""Work Tracker TUI — log daily hours and review allocation, powered by Textual."""

from __future__ import annotations

import logging
import sys
from datetime import date, timedelta

from textual import on, work
from textual.app import App, ComposeResult
from textual.binding import Binding
from textual.containers import Horizontal, Vertical
from textual.reactive import reactive
from textual.widgets import DataTable, Footer, Header, Input, Label, Static

from worktracker import (
    Category,
    DuplicateTaskError,
    FormatError,
    SyncStatus,
    add_task,
    analyze,
    build_sync_payload,
    category_total,
    compute_stats,
    configure_logging,
    day_total,
    find_missing_days,
    format_short,
    init_workspace,
    load_config,
    load_session,
    save_session,
    set_hours,
    today,
    week_grid,
    workspace_root,
    write_exports,
)
from worktracker.ledger import get_hours, logged_tasks
from worktracker.sync import push_payload

logger = logging.getLogger(__name__)


# ── Stylesheet ─────────────────────────────────────────────────

CSS = """
Screen {
    background: $surface;
}

#main-layout {
    height: 1fr;
}

#day-pane {
    width: 1fr;
    padding: 0 1;
}

#missing-banner {
    height: auto;
    padding: 0 1;
    color: $warning;
}

.section-title {
    text-style: bold;
    color: $text;
    margin: 1 0 0 0;
    padding: 0 1;
}

#day-table {
    height: 1fr;
}

#hours-input, #task-input {
    height: 3;
}

#day-total {
    height: auto;
    padding: 0 1;
    color: $text-muted;
}

.overlay-screen {
    padding: 1 2;
}

#week-table, #weekly-table {
    height: 1fr;
}

#stats-info {
    height: auto;
    padding: 1 2;
    margin: 0 0 1 0;
    border: tall $primary-background-darken-2;
}

#allocation-table {
    height: auto;
    max-height: 8;
}
"""


def _hours(value: float) -> str:
    return f"{value:g}" if value else ""


# ── Screens ────────────────────────────────────────────────────


class WeekScreen(Vertical):
    """Week grid: one row per task, one column per day."""

    def __init__(self, app_ref: WorkTrackerApp, **kwargs) -> None:
        super().__init__(**kwargs)
        self._app_ref = app_ref

    def compose(self) -> ComposeResult:
        yield Label("Week", classes="section-title")
        yield DataTable(id="week-table")

    def on_mount(self) -> None:
        grid = week_grid(self._app_ref.session, self._app_ref.selected)
        table: DataTable = self.query_one("#week-table", DataTable)
        table.add_columns("Category", "Task", *[format_short(d) for d in grid.dates], "Total")
        for row in grid.rows:
            task = f"{row.task} (removed)" if row.orphaned else row.task
            table.add_row(row.category.value, task, *[_hours(h) for h in row.hours], _hours(row.total))
        table.add_row("", "Daily total", *[f"{h:.1f}" for h in grid.day_totals], f"{grid.total:.1f}")


class StatsScreen(Vertical):
    """Totals, allocation vs target, and the weekly rollup."""

    def __init__(self, app_ref: WorkTrackerApp, **kwargs) -> None:
        super().__init__(**kwargs)
        self._app_ref = app_ref

    def compose(self) -> ComposeResult:
        yield Label("Statistics", classes="section-title")
        yield Static(id="stats-info")
        yield DataTable(id="allocation-table")
        yield DataTable(id="weekly-table")

    def on_mount(self) -> None:
        session = self._app_ref.session
        stats = compute_stats(session.entries)
        report = analyze(stats, session.settings)

        sign = "+" if report.over_under >= 0 else ""
        lines = [
            f"Total {stats.total_hours:.1f}h over {stats.days_worked} days / {stats.weeks_worked} weeks",
            f"Average week {stats.avg_week:.1f}h, average day {stats.avg_day:.1f}h",
            f"Hours over/under: {sign}{report.over_under:.1f}h ({report.over_under_label})",
        ]
        if report.allocation_warning:
            lines.append(report.allocation_warning)
        lines += [f"• {i.message}" for i in report.insights]
        self.query_one("#stats-info", Static).update("\n".join(lines))

        alloc: DataTable = self.query_one("#allocation-table", DataTable)
        alloc.add_columns("Category", "Hours", "Actual", "Target", "Diff", "")
        for c, pct in report.actual_percentages.items():
            delta = report.deltas[c]
            alloc.add_row(
                c.value,
                f"{stats.category_totals[c]:.1f}",
                f"{pct:.1f}%",
                f"{session.settings.allocation.target(c):g}%",
                f"{'+' if delta >= 0 else ''}{delta:.1f}%",
                report.bands[c],
            )

        weekly: DataTable = self.query_one("#weekly-table", DataTable)
        weekly.add_columns("Week", *[c.value for c in Category], "Total")
        for w in reversed(stats.weekly):
            weekly.add_row(w.week, *[f"{w.get(c):.1f}" for c in Category], f"{w.total:.1f}")


# ── Main app ───────────────────────────────────────────────────


class WorkTrackerApp(App):
    """Work Tracker — daily hours against a research/teaching/service split."""

    TITLE = "Work Tracker"
    CSS = CSS
    AUTO_FOCUS = "#day-table"

    BINDINGS = [
        Binding("left_square_bracket", "prev_day", "Prev day"),
        Binding("right_square_bracket", "next_day", "Next day"),
        Binding("ctrl+t", "goto_today", "Today"),
        Binding("ctrl+w", "show_week", "Week"),
        Binding("ctrl+s", "show_stats", "Stats"),
        Binding("ctrl+e", "export_csv", "Export"),
        Binding("ctrl+y", "sync", "Sync"),
        Binding("escape", "show_day", "Back"),
        Binding("ctrl+q", "quit_app", "Quit"),
    ]

    current_view: reactive[str] = reactive("day")

    def __init__(self) -> None:
        super().__init__()
        self.session = load_session()
        self.selected: date = today()
        self._rows: list[tuple[Category, str]] = []

    def compose(self) -> ComposeResult:
        yield Header()
        yield Horizontal(
            Vertical(
                Static(id="missing-banner"),
                Label("", id="day-title", classes="section-title"),
                DataTable(id="day-table"),
                Input(placeholder="hours for the selected task, Enter to save", id="hours-input"),
                Input(placeholder="new task as Category/Name, Enter to add", id="task-input"),
                Static(id="day-total"),
                id="day-pane",
            ),
            id="main-layout",
        )
        yield Footer()

    def on_mount(self) -> None:
        table = self.query_one("#day-table", DataTable)
        table.cursor_type = "row"
        table.add_columns("Category", "Task", "Hours")
        self._load_day()

    def _load_day(self) -> None:
        """Rebuild the day table, totals and the missing-days banner."""
        entries = self.session.entries
        key = self.selected.isoformat()
        table = self.query_one("#day-table", DataTable)
        cursor = table.cursor_row
        table.clear()
        self._rows = []
        for c in Category:
            names = list(self.session.categories.tasks_for(c))
            names += [t for t in logged_tasks(entries, key, c) if t not in names]
            for task in names:
                self._rows.append((c, task))
                table.add_row(c.value, task, _hours(get_hours(entries, key, c, task)))
        if self._rows:
            table.move_cursor(row=min(cursor, len(self._rows) - 1))

        marker = " (today)" if self.selected == today() else ""
        self.query_one("#day-title", Label).update(f"{format_short(self.selected)} {self.selected.year}{marker}")
        per_cat = ", ".join(f"{c.value} {category_total(entries, key, c):g}" for c in Category)
        self.query_one("#day-total", Static).update(f"Day total {day_total(entries, key):g}h  ({per_cat})")

        missing = find_missing_days(entries, self.session.settings.missing_data, today())
        banner = self.query_one("#missing-banner", Static)
        if missing:
            banner.update("No hours logged: " + ", ".join(m.label for m in missing))
        else:
            banner.update("")
        self.sub_title = f"{self.session.settings.schedule.hours_per_week:g}h/week target"

    def _save(self) -> None:
        try:
            save_session(self.session)
        except OSError as e:
            self.notify(f"Could not save: {e}", title="Save failed", severity="error")

    # ── Editing ────────────────────────────────────────────────

    @on(Input.Submitted, "#hours-input")
    def _on_hours_submitted(self, event: Input.Submitted) -> None:
        table = self.query_one("#day-table", DataTable)
        if not 0 <= table.cursor_row < len(self._rows):
            return
        category, task = self._rows[table.cursor_row]
        stored = set_hours(self.session, self.selected, category, task, event.value)
        self._save()
        event.input.value = ""
        self._load_day()
        self.notify(f"{category.value} / {task}: {stored:g}h", title=format_short(self.selected))

    @on(Input.Submitted, "#task-input")
    def _on_task_submitted(self, event: Input.Submitted) -> None:
        text = event.value.strip()
        if "/" not in text:
            self.notify("Use Category/Task name, e.g. Research/Lab work", severity="warning")
            return
        cat_name, name = text.split("/", 1)
        try:
            category = Category.parse(cat_name)
            added = add_task(self.session, category, name)
        except ValueError as e:
            self.notify(str(e), severity="warning")
            return
        except DuplicateTaskError as e:
            self.notify(str(e), title="Not added", severity="warning")
            return
        if added:
            self._save()
            event.input.value = ""
            self._load_day()

    # ── Navigation ─────────────────────────────────────────────

    def action_prev_day(self) -> None:
        self.selected -= timedelta(days=1)
        self._refresh_view()

    def action_next_day(self) -> None:
        self.selected += timedelta(days=1)
        self._refresh_view()

    def action_goto_today(self) -> None:
        self.selected = today()
        self._refresh_view()

    def action_show_week(self) -> None:
        if self.current_view == "week":
            self.action_show_day()
            return
        self._switch_to("week")

    def action_show_stats(self) -> None:
        if self.current_view == "stats":
            self.action_show_day()
            return
        self._switch_to("stats")

    def action_show_day(self) -> None:
        self._switch_to("day")

    def _refresh_view(self) -> None:
        if self.current_view == "day":
            self._load_day()
        else:
            self._switch_to(self.current_view)

    def _switch_to(self, view: str) -> None:
        main = self.query_one("#main-layout", Horizontal)
        for old in self.query(".overlay-screen"):
            old.remove()

        pane = self.query_one("#day-pane")
        if view == "day":
            pane.display = True
            self._load_day()
        else:
            pane.display = False
            if view == "week":
                main.mount(WeekScreen(self, classes="overlay-screen"))
            elif view == "stats":
                main.mount(StatsScreen(self, classes="overlay-screen"))
        self.current_view = view

    # ── Export & sync ──────────────────────────────────────────

    def action_export_csv(self) -> None:
        paths = write_exports(self.session)
        if not paths:
            self.notify("No data to export", severity="warning")
            return
        self.notify("\n".join(str(p) for p in paths), title="Exported")

    def action_sync(self) -> None:
        url = self.session.sync_url
        if not url:
            self.notify("Set googleSheetsUrl in settings first.", title="Sync", severity="warning")
            return
        # Snapshot on the UI thread; the worker only sees this copy.
        self._do_sync(url, build_sync_payload(self.session))

    @work(thread=True)
    def _do_sync(self, url: str, payload: dict) -> None:
        self.call_from_thread(self.notify, "Syncing…", title="Sync")
        status = push_payload(url, payload, timeout=load_config().sync_timeout)
        if status is SyncStatus.SUCCESS:
            self.call_from_thread(self.notify, "Synced", title="Sync", severity="information")
        else:
            self.call_from_thread(self.notify, "Sync failed; see log", title="Sync", severity="error")

    def action_quit_app(self) -> None:
        self._save()
        self.exit()


# ── Entry point ────────────────────────────────────────────────


def main() -> None:
    root = init_workspace(workspace_root())
    configure_logging(root, log_file=root / "worktracker.log")
    try:
        app = WorkTrackerApp()
    except FormatError as e:
        print(f"Cannot read {root / 'tracker.json'}: {e}")
        sys.exit(1)
    logger.info("Starting TUI on %s", root)
    app.run()


if __name__ == "__main__":
    main()
