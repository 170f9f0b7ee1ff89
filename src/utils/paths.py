# Rev 1.0.0

"""Paths and XDG helpers (Rev 1.0.0)
- Uses XDG Base Directory spec for config (logs: see logging_setup)
- DB lives in the repo at ./data/raptorTracker.db unless $RAPTOR_DB is set
"""
from __future__ import annotations
import os
from pathlib import Path


APP_NAME = "raptorTracker"


# Project-relative locations
RUNTIME_ROOT = Path(__file__).resolve().parents[2]
PROJECT_DATA_DIR = (RUNTIME_ROOT / "data").resolve()
MIGRATIONS_DIR = (PROJECT_DATA_DIR / "migrations").resolve()


DB_PATH = Path(os.environ.get("RAPTOR_DB", PROJECT_DATA_DIR / "raptorTracker.db"))


def config_dir() -> Path:
    # read at call time so XDG_CONFIG_HOME can be redirected (tests, sandboxes)
    base = Path(os.environ.get("XDG_CONFIG_HOME", Path.home() / ".config"))
    d = base / APP_NAME
    d.mkdir(parents=True, exist_ok=True)
    return d
