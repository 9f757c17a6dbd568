"""Work tracker core library — ledger, aggregation and allocation engines.

Public API re-exports for convenient imports:
    from worktracker import load_session, set_hours, compute_stats, analyze, ...
"""

# Workspace & paths
from worktracker.workspace import (
    AppConfig,
    workspace_root,
    load_config,
    init_workspace,
    configure_logging,
    get_user_timezone,
    today,
    today_str,
    state_path,
    config_path,
    exports_dir,
)

# Errors
from worktracker.errors import (
    TrackerError,
    ValidationError,
    DuplicateTaskError,
    FormatError,
)

# Calendar
from worktracker.dates import (
    week_start,
    week_dates,
    format_short,
    format_weekday,
    date_key,
    parse_date,
)

# Ledger
from worktracker.ledger import (
    validate_hours,
    parse_hours,
    set_hours,
    get_hours,
    day_total,
    category_total,
    iter_cells,
    add_task,
    remove_task,
    reset_taxonomy,
)

# Aggregation & allocation
from worktracker.aggregation import (
    active_dates,
    category_totals,
    working_hours_total,
    weekly_rollup,
    day_of_week_averages,
    compute_stats,
    week_grid,
)
from worktracker.allocation import (
    actual_percentages,
    allocation_deltas,
    over_under,
    delta_band,
    allocation_insights,
    allocation_warning,
    analyze,
    category_breakdown,
    weekly_distribution,
)
from worktracker.missing import find_missing_days

# Persistence, export, sync
from worktracker.store import (
    load_session,
    save_session,
    import_payload,
    import_file,
    update_settings,
    export_payload,
)
from worktracker.export import (
    detailed_csv,
    summary_csv,
    backup_json,
    write_exports,
)
from worktracker.sync import SyncStatus, build_sync_payload, sync_session

# Models
from worktracker.models import (
    Category,
    WORKING_CATEGORIES,
    Taxonomy,
    AllocationConfig,
    WorkSchedule,
    MissingDataPolicy,
    Settings,
    TrackerSession,
    WeekSummary,
    LedgerStats,
    AllocationReport,
    Insight,
    MissingDay,
    WeekGrid,
    WeekGridRow,
)
