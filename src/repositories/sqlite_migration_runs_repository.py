# Rev 1.0.0
from __future__ import annotations

import sqlite3
from typing import Any, Dict, List, Optional

from .connection import resolve_connection, rows_to_dicts


class SQLiteMigrationRunsRepository:
    """History of structural (data) migration invocations."""

    def __init__(self, db_or_conn):
        self._db = db_or_conn

    def _conn(self) -> sqlite3.Connection:
        return resolve_connection(self._db, "SQLiteMigrationRunsRepository")

    def record_run(
        self,
        *,
        name: str,
        applied_count: int,
        skipped_count: int,
        failed_count: int,
        total_eligible_phases: int,
        status: str,
        executed_at_utc: str,
    ) -> int:
        con = self._conn()
        cur = con.execute(
            """
            INSERT INTO data_migration_runs(name, applied_count, skipped_count, failed_count,
                                            total_eligible_phases, status, executed_at_utc)
            VALUES (?, ?, ?, ?, ?, ?, ?)
            """,
            (name, applied_count, skipped_count, failed_count,
             total_eligible_phases, status, executed_at_utc),
        )
        con.commit()
        return int(cur.lastrowid)

    def list_runs(self, name: Optional[str] = None, *, limit: int = 50) -> List[Dict[str, Any]]:
        sql = """
            SELECT id, name, applied_count, skipped_count, failed_count,
                   total_eligible_phases, status, executed_at_utc
            FROM data_migration_runs
        """
        params: list = []
        if name is not None:
            sql += " WHERE name = ?"
            params.append(name)
        sql += " ORDER BY id DESC LIMIT ?"
        params.append(limit)
        return rows_to_dicts(self._conn().execute(sql, params))
