# Rev 1.0.0
"""Leaf store: the row-level boundary the aggregation core talks to.

`LeafStore` is what the services depend on; `SQLiteLeafStore` composes the
per-table SQLite repositories behind it. Every call is atomic for one row only;
nothing here spans rows in a transaction.
"""
from __future__ import annotations

import sqlite3
from contextlib import contextmanager
from typing import Any, Callable, Dict, Iterator, List, Optional, Protocol, TypeVar

from src.models.entities import ActivityLogEntry, Phase, Project, Task
from src.models.errors import ConflictError, NotFoundError, StoreUnavailable, ValidationError
from src.models.types import PHASE_STATUSES
from src.utils.logging_setup import get_logger

from .sqlite_activity_log_repository import SQLiteActivityLogRepository
from .sqlite_migration_runs_repository import SQLiteMigrationRunsRepository
from .sqlite_phase_repository import SQLitePhaseRepository
from .sqlite_project_repository import SQLiteProjectRepository
from .sqlite_task_repository import SQLiteTaskRepository

E = TypeVar("E")


class LeafStore(Protocol):
    # reads
    def get_task(self, task_id: int) -> Task: ...
    def list_tasks_by_phase(self, phase_id: int, *, min_sort_order: Optional[int] = None,
                            order_desc: bool = False) -> List[Task]: ...
    def get_phase(self, phase_id: int) -> Phase: ...
    def list_phases_by_project(self, project_id: int) -> List[Phase]: ...
    def list_phases_by_number(self, phase_number: int) -> List[Phase]: ...
    def get_project(self, project_id: int) -> Project: ...
    def list_activity_log(self, project_id: int) -> List[ActivityLogEntry]: ...

    # writes
    def update_task(self, task_id: int, fields: Dict[str, Any]) -> Task: ...
    def update_phase(self, phase_id: int, fields: Dict[str, Any], *,
                     expected_revision: Optional[int] = None) -> None: ...
    def update_project(self, project_id: int, fields: Dict[str, Any], *,
                       expected_revision: Optional[int] = None) -> None: ...
    def insert_task(self, *, phase_id: int, label: str, sort_order: int,
                    completed: bool = False) -> Task: ...
    def delete_task(self, task_id: int) -> None: ...
    def append_activity_log(self, entry: ActivityLogEntry) -> ActivityLogEntry: ...

    # data-migration history
    def record_migration_run(self, **run: Any) -> int: ...
    def list_migration_runs(self, name: Optional[str] = None) -> List[Dict[str, Any]]: ...


class SQLiteLeafStore:
    """LeafStore over SQLite. Translates sqlite3 errors into the tracker taxonomy."""

    def __init__(self, db_or_conn):
        self.tasks = SQLiteTaskRepository(db_or_conn)
        self.phases = SQLitePhaseRepository(db_or_conn)
        self.projects = SQLiteProjectRepository(db_or_conn)
        self.activity = SQLiteActivityLogRepository(db_or_conn)
        self.migration_runs = SQLiteMigrationRunsRepository(db_or_conn)
        self._log = get_logger("store")

    @contextmanager
    def _guard(self, op: str) -> Iterator[None]:
        try:
            yield
        except sqlite3.IntegrityError as exc:
            raise ValidationError(f"{op}: {exc}") from exc
        except sqlite3.Error as exc:
            self._log.error("%s failed: %s", op, exc)
            raise StoreUnavailable(f"{op}: {exc}") from exc
        except ValueError as exc:
            raise ValidationError(f"{op}: {exc}") from exc

    # ---------- reads ----------

    def get_task(self, task_id: int) -> Task:
        with self._guard("get_task"):
            row = self.tasks.get_task(task_id)
        if row is None:
            raise NotFoundError("task", task_id)
        return self._decode("get_task", Task.from_row, [row])[0]

    def list_tasks_by_phase(self, phase_id: int, *, min_sort_order: Optional[int] = None,
                            order_desc: bool = False) -> List[Task]:
        with self._guard("list_tasks_by_phase"):
            rows = self.tasks.list_tasks_by_phase(
                phase_id, min_sort_order=min_sort_order, order_desc=order_desc
            )
        return self._decode("list_tasks_by_phase", Task.from_row, rows)

    def get_phase(self, phase_id: int) -> Phase:
        with self._guard("get_phase"):
            row = self.phases.get_phase(phase_id)
        if row is None:
            raise NotFoundError("phase", phase_id)
        return self._decode("get_phase", Phase.from_row, [row])[0]

    def list_phases_by_project(self, project_id: int) -> List[Phase]:
        with self._guard("list_phases_by_project"):
            rows = self.phases.list_phases_by_project(project_id)
        return self._decode("list_phases_by_project", Phase.from_row, rows)

    def list_phases_by_number(self, phase_number: int) -> List[Phase]:
        with self._guard("list_phases_by_number"):
            rows = self.phases.list_phases_by_number(phase_number)
        return self._decode("list_phases_by_number", Phase.from_row, rows)

    def list_projects(self) -> List[Project]:
        with self._guard("list_projects"):
            rows = self.projects.list_projects()
        return self._decode("list_projects", Project.from_row, rows)

    def get_project(self, project_id: int) -> Project:
        with self._guard("get_project"):
            row = self.projects.get_project(project_id)
        if row is None:
            raise NotFoundError("project", project_id)
        return self._decode("get_project", Project.from_row, [row])[0]

    def list_activity_log(self, project_id: int) -> List[ActivityLogEntry]:
        with self._guard("list_activity_log"):
            rows = self.activity.list_for_project(project_id, order_desc=False)
        return self._decode("list_activity_log", ActivityLogEntry.from_row, rows)

    # ---------- writes ----------

    def update_task(self, task_id: int, fields: Dict[str, Any]) -> Task:
        with self._guard("update_task"):
            ok = self.tasks.update_task_fields(task_id, fields)
        if not ok:
            raise NotFoundError("task", task_id)
        return self.get_task(task_id)

    def update_phase(self, phase_id: int, fields: Dict[str, Any], *,
                     expected_revision: Optional[int] = None) -> None:
        extra = set(fields) - {"status"}
        if extra:
            raise ValidationError(f"phase fields not writable: {', '.join(sorted(extra))}")
        if fields.get("status") not in PHASE_STATUSES:
            raise ValidationError(f"unknown phase status {fields.get('status')!r}", field="status")
        with self._guard("update_phase"):
            ok = self.phases.set_phase_status(phase_id, fields["status"],
                                              expected_revision=expected_revision)
        if not ok:
            self._raise_missing_or_conflict("phase", phase_id, self.phases.get_phase)

    def update_project(self, project_id: int, fields: Dict[str, Any], *,
                       expected_revision: Optional[int] = None) -> None:
        extra = set(fields) - {"overall_progress"}
        if extra:
            raise ValidationError(f"project fields not writable: {', '.join(sorted(extra))}")
        with self._guard("update_project"):
            ok = self.projects.set_overall_progress(project_id, int(fields["overall_progress"]),
                                                    expected_revision=expected_revision)
        if not ok:
            self._raise_missing_or_conflict("project", project_id, self.projects.get_project)

    def insert_task(self, *, phase_id: int, label: str, sort_order: int,
                    completed: bool = False) -> Task:
        with self._guard("insert_task"):
            task_id = self.tasks.insert_task(
                phase_id=phase_id, label=label, sort_order=sort_order, completed=completed
            )
        return self.get_task(task_id)

    def delete_task(self, task_id: int) -> None:
        with self._guard("delete_task"):
            ok = self.tasks.delete_task(task_id)
        if not ok:
            raise NotFoundError("task", task_id)

    def append_activity_log(self, entry: ActivityLogEntry) -> ActivityLogEntry:
        with self._guard("append_activity_log"):
            entry.id = self.activity.append(
                project_id=entry.project_id,
                phase_id=entry.phase_id,
                task_id=entry.task_id,
                action=entry.action,
                description=entry.description,
                actor_type=entry.actor_type,
            )
        return entry

    def record_migration_run(self, **run: Any) -> int:
        with self._guard("record_migration_run"):
            return self.migration_runs.record_run(**run)

    def list_migration_runs(self, name: Optional[str] = None) -> List[Dict[str, Any]]:
        with self._guard("list_migration_runs"):
            return self.migration_runs.list_runs(name)

    # ---------- internals ----------

    def _decode(self, op: str, from_row: Callable[[Any], E], rows: List[Any]) -> List[E]:
        """Rows to entities. A row that will not decode is damaged storage, not bad input."""
        try:
            return [from_row(r) for r in rows]
        except (ValueError, TypeError) as exc:
            self._log.error("%s: unreadable row: %s", op, exc)
            raise StoreUnavailable(f"{op}: unreadable row: {exc}") from exc

    def _raise_missing_or_conflict(self, entity: str, entity_id: int, getter) -> None:
        with self._guard(f"get_{entity}"):
            row = getter(entity_id)
        if row is None:
            raise NotFoundError(entity, entity_id)
        raise ConflictError(f"{entity} {entity_id} changed concurrently (revision {row['revision']})")
