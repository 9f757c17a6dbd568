"""Workspace root, configuration, timezone and path helpers."""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from datetime import date, datetime
from pathlib import Path
from typing import Any
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from worktracker.fileio import read_yaml, write_yaml_atomic

logger = logging.getLogger(__name__)

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


@dataclass
class AppConfig:
    """Per-workspace settings read from config.yaml."""

    timezone: str = "UTC"
    log_level: str = "INFO"
    sync_timeout: float = 30.0

    @classmethod
    def from_dict(cls, d: dict[str, Any]) -> AppConfig:
        if not d or not isinstance(d, dict):
            return cls()
        try:
            timeout = float(d.get("sync_timeout", 30.0))
        except (TypeError, ValueError):
            timeout = 30.0
        return cls(
            timezone=str(d.get("timezone", "UTC")),
            log_level=str(d.get("log_level", "INFO")).upper(),
            sync_timeout=timeout if timeout > 0 else 30.0,
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "timezone": self.timezone,
            "log_level": self.log_level,
            "sync_timeout": self.sync_timeout,
        }


def workspace_root() -> Path:
    """Get the workspace root directory (holds tracker.json and config.yaml)."""
    return Path(
        os.environ.get("WORKTRACKER_ROOT", str(Path.home() / "worktracker"))
    ).expanduser().resolve()


def load_config(root: Path | None = None) -> AppConfig:
    if root is None:
        root = workspace_root()
    return AppConfig.from_dict(read_yaml(config_path(root)))


def init_workspace(root: Path | None = None) -> Path:
    """Create the workspace directory and a default config.yaml if missing."""
    if root is None:
        root = workspace_root()
    root.mkdir(parents=True, exist_ok=True)
    cfg = config_path(root)
    if not cfg.exists():
        write_yaml_atomic(cfg, AppConfig().to_dict())
        logger.info("Initialised workspace at %s", root)
    return root


def configure_logging(root: Path | None = None, log_file: Path | None = None) -> None:
    """Apply the configured log level. WORKTRACKER_LOG_LEVEL wins over config.yaml.

    Logs go to stderr unless *log_file* is given (the TUI owns the terminal).
    """
    level = os.environ.get("WORKTRACKER_LOG_LEVEL") or load_config(root).log_level
    logging.basicConfig(
        level=level.upper(),
        format=LOG_FORMAT,
        filename=str(log_file) if log_file else None,
    )


def get_user_timezone(root: Path | None = None) -> ZoneInfo:
    """Get the user's timezone from config.yaml, defaulting to UTC."""
    name = load_config(root).timezone
    try:
        return ZoneInfo(name)
    except (ZoneInfoNotFoundError, ValueError):
        logger.warning("Unknown timezone %r in config, falling back to UTC", name)
        return ZoneInfo("UTC")


def today(root: Path | None = None) -> date:
    """Today's local calendar day in the user's timezone."""
    return datetime.now(get_user_timezone(root)).date()


def today_str(root: Path | None = None) -> str:
    """Get today's date string (YYYY-MM-DD) in user's timezone."""
    return today(root).isoformat()


# ── Path helpers ──────────────────────────────────────────────

def state_path(root: Path | None = None) -> Path:
    if root is None:
        root = workspace_root()
    return root / "tracker.json"


def config_path(root: Path | None = None) -> Path:
    if root is None:
        root = workspace_root()
    return root / "config.yaml"


def exports_dir(root: Path | None = None) -> Path:
    if root is None:
        root = workspace_root()
    return root / "exports"
