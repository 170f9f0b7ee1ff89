# Rev 1.0.0
from __future__ import annotations

import json
import sqlite3
from typing import Any, Dict, List, Optional, Union

from .connection import build_set_clause, resolve_connection, rows_to_dicts


TASK_COLUMNS = (
    "id", "phase_id", "label", "completed", "sort_order",
    "scheduled_date", "upload_speed", "download_speed",
    "enclosure_type", "enclosure_color", "custom_color_name",
    "smartfridge_qty", "smartcooker_qty", "deliveries", "document_url",
    "pm_text_value", "pm_text_response", "notes", "updated_at_utc",
)

# Columns an update may touch (id/phase_id/updated_at_utc are managed here).
WRITABLE_COLUMNS = tuple(c for c in TASK_COLUMNS if c not in ("id", "phase_id", "updated_at_utc"))


class SQLiteTaskRepository:
    """
    Task rows, scoped by id or by owning phase.

    Schema expectation (Rev 1.0.0): see data/migrations/0001_core_schema.sql.
    `deliveries` is stored as a JSON array; `completed` as 0/1.
    """

    def __init__(self, db_or_conn: Union[sqlite3.Connection, Any]):
        self._db_or_conn = db_or_conn

    def _conn(self) -> sqlite3.Connection:
        return resolve_connection(self._db_or_conn, "SQLiteTaskRepository")

    @staticmethod
    def _to_db(fields: Dict[str, Any]) -> Dict[str, Any]:
        out = dict(fields)
        if "completed" in out:
            out["completed"] = 1 if out["completed"] else 0
        if "deliveries" in out and out["deliveries"] is not None:
            out["deliveries"] = json.dumps(out["deliveries"])
        return out

    # -------------------------
    # Queries
    # -------------------------
    def get_task(self, task_id: int) -> Optional[Dict[str, Any]]:
        cur = self._conn().execute(
            f"SELECT {', '.join(TASK_COLUMNS)} FROM tasks WHERE id = ?",
            (task_id,),
        )
        rows = rows_to_dicts(cur)
        return rows[0] if rows else None

    def list_tasks_by_phase(
        self,
        phase_id: int,
        *,
        min_sort_order: Optional[int] = None,
        order_desc: bool = False,
    ) -> List[Dict[str, Any]]:
        where, params = ["phase_id = ?"], [phase_id]
        if min_sort_order is not None:
            where.append("sort_order >= ?")
            params.append(min_sort_order)
        order = "DESC" if order_desc else "ASC"
        cur = self._conn().execute(
            f"""
            SELECT {', '.join(TASK_COLUMNS)}
            FROM tasks
            WHERE {' AND '.join(where)}
            ORDER BY sort_order {order}, id {order}
            """,
            params,
        )
        return rows_to_dicts(cur)

    # -------------------------
    # Commands
    # -------------------------
    def update_task_fields(self, task_id: int, fields: Dict[str, Any]) -> bool:
        set_sql, params = build_set_clause(self._to_db(fields), WRITABLE_COLUMNS)
        if not set_sql:
            return self.get_task(task_id) is not None
        con = self._conn()
        cur = con.execute(
            f"UPDATE tasks SET {set_sql}, updated_at_utc = datetime('now') WHERE id = ?",
            (*params, task_id),
        )
        con.commit()
        return cur.rowcount > 0

    def insert_task(
        self,
        *,
        phase_id: int,
        label: str,
        completed: bool = False,
        sort_order: int = 0,
        **aux: Any,
    ) -> int:
        values = self._to_db({"label": label, "completed": completed, "sort_order": sort_order, **aux})
        unknown = set(values) - set(WRITABLE_COLUMNS)
        if unknown:
            raise ValueError(f"columns not writable here: {', '.join(sorted(unknown))}")
        cols = [c for c in WRITABLE_COLUMNS if c in values]
        con = self._conn()
        cur = con.execute(
            f"INSERT INTO tasks(phase_id, {', '.join(cols)}) VALUES (?, {', '.join('?' * len(cols))})",
            (phase_id, *[values[c] for c in cols]),
        )
        con.commit()
        return int(cur.lastrowid)

    def delete_task(self, task_id: int) -> bool:
        con = self._conn()
        cur = con.execute("DELETE FROM tasks WHERE id = ?", (task_id,))
        con.commit()
        return cur.rowcount > 0
