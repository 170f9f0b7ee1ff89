# Rev 1.0.0
"""
Developer seed: one installation project with the standard phase layout and a
mix of task kinds, so the CLI and view models have something to work on.

Usage:
    python -m src.dev_seed [--db path]
"""
from __future__ import annotations

import argparse
import sqlite3
from pathlib import Path
from typing import Dict, List, Tuple

from src.models.task_kinds import TaskKind, make_label
from src.repositories.db import Database
from src.repositories.sqlite_phase_repository import SQLitePhaseRepository
from src.repositories.sqlite_project_repository import SQLiteProjectRepository
from src.repositories.sqlite_task_repository import SQLiteTaskRepository
from src.utils.paths import DB_PATH

# phase_number -> (title, [labels in sort order])
DEMO_PHASES: Dict[int, Tuple[str, List[str]]] = {
    1: ("Kickoff", [
        "Contract signed",
        make_label(TaskKind.PM_CHECKBOX, "Confirm point of contact"),
    ]),
    2: ("Site Survey", [
        make_label(TaskKind.ADMIN_DATE, "Site survey scheduled"),
        make_label(TaskKind.ADMIN_SPEED, "Network speed test"),
        make_label(TaskKind.PM_TEXT, "Loading dock and parking instructions"),
    ]),
    3: ("Employee Survey", [
        make_label(TaskKind.PM_CHECKBOX, "Distribute employee survey"),
        make_label(TaskKind.PM_DATE, "Survey closes"),
        make_label(TaskKind.ADMIN_DOC, "Survey results"),
    ]),
    6: ("Equipment", [
        make_label(TaskKind.ADMIN_ENCLOSURE, "Enclosure selection"),
        make_label(TaskKind.ADMIN_EQUIPMENT, "Equipment quantities"),
        make_label(TaskKind.ADMIN_DELIVERY, "Deliveries"),
    ]),
}


def seed_demo_project(conn: sqlite3.Connection, name: str = "Example Install") -> int:
    """Create the demo project; returns its id. Nothing is completed yet."""
    projects = SQLiteProjectRepository(conn)
    phases = SQLitePhaseRepository(conn)
    tasks = SQLiteTaskRepository(conn)

    project_id = projects.create_project(name=name, status="in_progress")
    for number, (title, labels) in DEMO_PHASES.items():
        phase_id = phases.create_phase(project_id=project_id, phase_number=number, title=title)
        for order, label in enumerate(labels, start=1):
            tasks.insert_task(phase_id=phase_id, label=label, sort_order=order)
    return project_id


def run_seed(db_path: Path) -> int:
    db = Database(db_path)
    try:
        db.run_migrations()
        project_id = seed_demo_project(db.conn)
        print(f"=== Seeded project {project_id} into {db_path} ===")
        return project_id
    finally:
        db.close()


if __name__ == "__main__":
    p = argparse.ArgumentParser(description="Seed a demo project")
    p.add_argument("--db", type=Path, default=DB_PATH)
    run_seed(p.parse_args().db)
