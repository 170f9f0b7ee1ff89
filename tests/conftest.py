# Rev 1.0.0

"""Pytest fixtures for raptorTracker (Rev 1.0.0)"""
from __future__ import annotations
import pytest
from dataclasses import replace
from pathlib import Path
from typing import Any, Dict, List, Optional, Set, Tuple

from src.models.entities import ActivityLogEntry, Phase, Project, Task
from src.models.errors import ConflictError, NotFoundError, StoreUnavailable
from src.models.task_kinds import parse_label
from src.repositories.db import Database
from src.repositories.leaf_store import SQLiteLeafStore
from src.repositories.sqlite_phase_repository import SQLitePhaseRepository
from src.repositories.sqlite_project_repository import SQLiteProjectRepository
from src.repositories.sqlite_task_repository import SQLiteTaskRepository


@pytest.fixture(autouse=True)
def _xdg_dirs(tmp_path: Path, monkeypatch):
    # keep logs/config out of the real home directory
    monkeypatch.setenv("XDG_STATE_HOME", str(tmp_path / "state"))
    monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path / "config"))


@pytest.fixture()
def db_path(tmp_path: Path) -> Path:
    return tmp_path / "test.db"


@pytest.fixture()
def db_conn(db_path: Path):
    db = Database(path=str(db_path))
    try:
        db.run_migrations()
        yield db.conn
    finally:
        db.close()


@pytest.fixture()
def store(db_conn) -> SQLiteLeafStore:
    return SQLiteLeafStore(db_conn)


class TreeBuilder:
    """Seed helper: projects/phases/tasks straight through the repositories."""

    def __init__(self, conn):
        self.projects = SQLiteProjectRepository(conn)
        self.phases = SQLitePhaseRepository(conn)
        self.tasks = SQLiteTaskRepository(conn)

    def project(self, name: str = "Demo") -> int:
        return self.projects.create_project(name=name)

    def phase(self, project_id: int, phase_number: int = 1, title: str = "P") -> int:
        return self.phases.create_phase(project_id=project_id, phase_number=phase_number, title=title)

    def task(self, phase_id: int, label: str = "T", *, completed: bool = False, sort_order: int = 0) -> int:
        return self.tasks.insert_task(phase_id=phase_id, label=label, completed=completed, sort_order=sort_order)


@pytest.fixture()
def tree(db_conn) -> TreeBuilder:
    return TreeBuilder(db_conn)


# --- in-memory stub store for unit tests ---


class StubStore:
    """
    LeafStore in memory. `fail(method, key)` makes that call raise
    StoreUnavailable; key is the id argument, or None for every call.
    """

    def __init__(self):
        self.projects: Dict[int, Project] = {}
        self.phases: Dict[int, Phase] = {}
        self.tasks: Dict[int, Task] = {}
        self.activity: List[ActivityLogEntry] = []
        self.runs: List[Dict[str, Any]] = []
        self.writes: List[Tuple[str, int, Dict[str, Any]]] = []
        self._failures: Set[Tuple[str, Optional[int]]] = set()
        self._next = 1

    # seeding
    def _id(self) -> int:
        self._next += 1
        return self._next

    def add_project(self, progress: int = 0) -> int:
        pid = self._id()
        self.projects[pid] = Project(id=pid, name=f"P{pid}", overall_progress=progress)
        return pid

    def add_phase(self, project_id: int, phase_number: int = 1, status: str = "not_started") -> int:
        ph = self._id()
        self.phases[ph] = Phase(id=ph, project_id=project_id, phase_number=phase_number, status=status)
        return ph

    def add_task(self, phase_id: int, label: str = "T", completed: bool = False, sort_order: int = 0) -> int:
        tid = self._id()
        kind, title = parse_label(label)
        self.tasks[tid] = Task(id=tid, phase_id=phase_id, label=label, completed=completed,
                               sort_order=sort_order, kind=kind, title=title)
        return tid

    def fail(self, method: str, key: Optional[int] = None) -> None:
        self._failures.add((method, key))

    def _check(self, method: str, key: Optional[int] = None) -> None:
        if (method, None) in self._failures or (method, key) in self._failures:
            raise StoreUnavailable(f"{method}({key}) unavailable")

    # reads
    def get_task(self, task_id):
        self._check("get_task", task_id)
        if task_id not in self.tasks:
            raise NotFoundError("task", task_id)
        return replace(self.tasks[task_id])

    def list_tasks_by_phase(self, phase_id, *, min_sort_order=None, order_desc=False):
        self._check("list_tasks_by_phase", phase_id)
        out = [replace(t) for t in self.tasks.values() if t.phase_id == phase_id
               and (min_sort_order is None or t.sort_order >= min_sort_order)]
        return sorted(out, key=lambda t: (t.sort_order, t.id), reverse=order_desc)

    def get_phase(self, phase_id):
        self._check("get_phase", phase_id)
        if phase_id not in self.phases:
            raise NotFoundError("phase", phase_id)
        return replace(self.phases[phase_id])

    def list_phases_by_project(self, project_id):
        self._check("list_phases_by_project", project_id)
        return [replace(p) for p in self.phases.values() if p.project_id == project_id]

    def list_phases_by_number(self, phase_number):
        self._check("list_phases_by_number", phase_number)
        return [replace(p) for p in self.phases.values() if p.phase_number == phase_number]

    def get_project(self, project_id):
        self._check("get_project", project_id)
        if project_id not in self.projects:
            raise NotFoundError("project", project_id)
        return replace(self.projects[project_id])

    def list_activity_log(self, project_id):
        return [e for e in self.activity if e.project_id == project_id]

    # writes
    def update_task(self, task_id, fields):
        self._check("update_task", task_id)
        t = self.tasks.get(task_id)
        if t is None:
            raise NotFoundError("task", task_id)
        for k, v in fields.items():
            if hasattr(t, k):
                setattr(t, k, v)
        self.writes.append(("task", task_id, dict(fields)))
        return replace(t)

    def update_phase(self, phase_id, fields, *, expected_revision=None):
        self._check("update_phase", phase_id)
        p = self.phases[phase_id]
        if expected_revision is not None and p.revision != expected_revision:
            raise ConflictError(f"phase {phase_id}")
        p.status = fields["status"]
        p.revision += 1
        self.writes.append(("phase", phase_id, dict(fields)))

    def update_project(self, project_id, fields, *, expected_revision=None):
        self._check("update_project", project_id)
        p = self.projects[project_id]
        if expected_revision is not None and p.revision != expected_revision:
            raise ConflictError(f"project {project_id}")
        p.overall_progress = fields["overall_progress"]
        p.revision += 1
        self.writes.append(("project", project_id, dict(fields)))

    def insert_task(self, *, phase_id, label, sort_order, completed=False):
        self._check("insert_task", phase_id)
        tid = self.add_task(phase_id, label, completed, sort_order)
        return replace(self.tasks[tid])

    def delete_task(self, task_id):
        self._check("delete_task", task_id)
        if self.tasks.pop(task_id, None) is None:
            raise NotFoundError("task", task_id)

    def append_activity_log(self, entry):
        self._check("append_activity_log", entry.project_id)
        entry.id = len(self.activity) + 1
        self.activity.append(entry)
        return entry

    def record_migration_run(self, **run):
        self.runs.insert(0, dict(run, id=len(self.runs) + 1))
        return len(self.runs)

    def list_migration_runs(self, name=None):
        return [r for r in self.runs if name is None or r["name"] == name]


@pytest.fixture()
def stub() -> StubStore:
    return StubStore()
