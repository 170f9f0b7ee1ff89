# Rev 1.0.0
from __future__ import annotations

import sqlite3
from typing import Any, Dict, List, Optional, Union

from .connection import resolve_connection, rows_to_dicts


class SQLiteActivityLogRepository:
    """
    Append/read audit entries in activity_log.

    Schema expectation (Rev 1.0.0):

      activity_log(
        id INTEGER PRIMARY KEY,
        project_id INTEGER NOT NULL,
        phase_id INTEGER NULL,
        task_id INTEGER NULL,
        action TEXT NOT NULL,
        description TEXT NOT NULL,
        actor_type TEXT NOT NULL,
        created_at_utc TEXT NOT NULL
      )

    Rows are never updated (a trigger enforces it) or deleted from here.
    """

    def __init__(self, db_or_conn: Union[sqlite3.Connection, Any]):
        self._db_or_conn = db_or_conn

    def _conn(self) -> sqlite3.Connection:
        return resolve_connection(self._db_or_conn, "SQLiteActivityLogRepository")

    # -------------------------
    # Queries
    # -------------------------
    def list_for_project(
        self,
        project_id: int,
        *,
        limit: int = 200,
        offset: int = 0,
        order_desc: bool = True,
    ) -> List[Dict[str, Any]]:
        order = "DESC" if order_desc else "ASC"
        cur = self._conn().execute(
            f"""
            SELECT id, project_id, phase_id, task_id, action, description,
                   actor_type, created_at_utc
            FROM activity_log
            WHERE project_id = ?
            ORDER BY id {order}
            LIMIT ? OFFSET ?
            """,
            (project_id, limit, offset),
        )
        return rows_to_dicts(cur)

    # -------------------------
    # Commands
    # -------------------------
    def append(
        self,
        *,
        project_id: int,
        action: str,
        description: str,
        actor_type: str,
        task_id: Optional[int] = None,
        phase_id: Optional[int] = None,
    ) -> int:
        con = self._conn()
        cur = con.execute(
            """
            INSERT INTO activity_log(project_id, phase_id, task_id, action,
                                     description, actor_type, created_at_utc)
            VALUES (?, ?, ?, ?, ?, ?, datetime('now'))
            """,
            (project_id, phase_id, task_id, action, description, actor_type),
        )
        con.commit()
        return int(cur.lastrowid)
