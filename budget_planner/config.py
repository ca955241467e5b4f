"""Configuration management for the budget planner.

This module centralizes all configuration values including paths,
tunables, and environment variable overrides.
"""

from __future__ import annotations

import logging
import os
from pathlib import Path

# Base project root - assumes this file is in budget_planner/
_PROJECT_ROOT = Path(__file__).parent.parent.resolve()

# Data directory
DATA_DIR = Path(os.getenv("BUDGET_PLANNER_DATA_DIR", _PROJECT_ROOT / "data"))

# Database
DB_PATH = Path(
    os.getenv("BUDGET_PLANNER_DB_PATH", DATA_DIR / "budget.db")
).resolve()

LOG_LEVEL = os.getenv("BUDGET_PLANNER_LOG_LEVEL", "INFO").upper()
LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"

# Number of threads used to push buffered edits to the database
FLUSH_WORKERS = int(os.getenv("BUDGET_PLANNER_FLUSH_WORKERS", "2"))

# Seed an empty database with the default income/expense tree
SEED_DATABASE = os.getenv("BUDGET_PLANNER_SEED", "1").strip().lower() not in {"0", "false", "no", ""}


def ensure_data_directories() -> None:
    """Create all required data directories if they don't exist."""
    DATA_DIR.mkdir(parents=True, exist_ok=True)
    DB_PATH.parent.mkdir(parents=True, exist_ok=True)


def configure_logging(level: str | None = None) -> None:
    """Install a root handler at the configured level.

    Safe to call on every Streamlit rerun; ``basicConfig`` is a no-op once
    the root logger has handlers.
    """
    logging.basicConfig(level=(level or LOG_LEVEL), format=LOG_FORMAT)
