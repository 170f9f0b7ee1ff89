# Rev 1.0.0

# raptorTracker – SQLitePhaseRepository (Rev 1.0.0)

from __future__ import annotations
import sqlite3
from typing import List, Optional, Dict, Any

from .connection import resolve_connection, rows_to_dicts

PHASE_COLUMNS = "id, project_id, phase_number, title, status, revision"


class SQLitePhaseRepository:
    """
    Thin wrapper around the 'phases' table.
    Status writes are compare-and-swap on `revision`.
    """

    def __init__(self, db):
        self._db = db

    # --- public API ---------------------------------------------------------

    def get_phase(self, phase_id: int) -> Optional[Dict[str, Any]]:
        rows = self._fetch_all(f"SELECT {PHASE_COLUMNS} FROM phases WHERE id = ?;", (phase_id,))
        return rows[0] if rows else None

    def list_phases_by_project(self, project_id: int) -> List[Dict[str, Any]]:
        sql = f"SELECT {PHASE_COLUMNS} FROM phases WHERE project_id = ? ORDER BY phase_number, id;"
        return self._fetch_all(sql, (project_id,))

    def list_phases_by_number(self, phase_number: int) -> List[Dict[str, Any]]:
        """Every phase, across projects, with the given phase_number."""
        sql = f"SELECT {PHASE_COLUMNS} FROM phases WHERE phase_number = ? ORDER BY project_id, id;"
        return self._fetch_all(sql, (phase_number,))

    def create_phase(self, *, project_id: int, phase_number: int, title: str = "") -> int:
        con = self._conn()
        cur = con.execute(
            "INSERT INTO phases(project_id, phase_number, title) VALUES (?, ?, ?)",
            (project_id, phase_number, title),
        )
        con.commit()
        return int(cur.lastrowid)

    def set_phase_status(self, phase_id: int, status: str, *, expected_revision: Optional[int] = None) -> bool:
        """
        Write status and bump revision. With `expected_revision`, only succeeds
        if nobody else wrote the row since it was read.
        """
        sql = (
            "UPDATE phases SET status = ?, revision = revision + 1, "
            "updated_at_utc = datetime('now') WHERE id = ?"
        )
        params: list = [status, phase_id]
        if expected_revision is not None:
            sql += " AND revision = ?"
            params.append(expected_revision)
        con = self._conn()
        cur = con.execute(sql, params)
        con.commit()
        return cur.rowcount > 0

    # --- internals ----------------------------------------------------------

    def _conn(self) -> sqlite3.Connection:
        return resolve_connection(self._db, "SQLitePhaseRepository")

    def _fetch_all(self, sql: str, params: tuple = ()) -> List[Dict[str, Any]]:
        return rows_to_dicts(self._conn().execute(sql, params))
