# Rev 1.0.0
# raptorTracker – SQLiteProjectRepository (Rev 1.0.0)
from __future__ import annotations
import sqlite3
from typing import List, Dict, Any, Optional

from src.models.types import PROJECT_STATUSES

from .connection import resolve_connection, rows_to_dicts


class SQLiteProjectRepository:
    """
    Project repository.
    `overall_progress` is written compare-and-swap on `revision`.
    """

    def __init__(self, db_or_conn):
        self._db = db_or_conn

    # ---------- public API ----------

    def list_projects(self) -> List[Dict[str, Any]]:
        sql = """
            SELECT id, name, status, overall_progress, revision
            FROM projects
            ORDER BY id;
        """
        return self._fetch_all(sql)

    def get_project(self, project_id: int) -> Optional[Dict[str, Any]]:
        sql = """
            SELECT id, name, status, overall_progress, revision
            FROM projects
            WHERE id = ?;
        """
        rows = self._fetch_all(sql, (project_id,))
        return rows[0] if rows else None

    def create_project(self, *, name: str, status: str = "planning") -> int:
        if status not in PROJECT_STATUSES:
            raise ValueError(f"unknown project status {status!r}")
        con = self._conn()
        cur = con.execute("INSERT INTO projects(name, status) VALUES (?, ?)", (name, status))
        con.commit()
        return int(cur.lastrowid)

    # ---------- mutations: derived progress ----------

    def set_overall_progress(
        self, project_id: int, progress: int, *, expected_revision: Optional[int] = None
    ) -> bool:
        sql = (
            "UPDATE projects SET overall_progress = ?, revision = revision + 1, "
            "updated_at_utc = datetime('now') WHERE id = ?"
        )
        params: list = [progress, project_id]
        if expected_revision is not None:
            sql += " AND revision = ?"
            params.append(expected_revision)
        con = self._conn()
        cur = con.execute(sql, params)
        con.commit()
        return cur.rowcount > 0

    # ---------- internals ----------

    def _conn(self) -> sqlite3.Connection:
        return resolve_connection(self._db, "SQLiteProjectRepository")

    def _fetch_all(self, sql: str, params: tuple = ()) -> List[Dict[str, Any]]:
        return rows_to_dicts(self._conn().execute(sql, params))
