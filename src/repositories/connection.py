# Rev 1.0.0
from __future__ import annotations

import sqlite3
from typing import Any, Dict, Iterable, List, Tuple, Union


def resolve_connection(db_or_conn: Union[sqlite3.Connection, Any], owner: str) -> sqlite3.Connection:
    """Accept a raw Connection or a wrapper exposing `.conn` / `.connect()`."""
    if isinstance(db_or_conn, sqlite3.Connection):
        return db_or_conn
    if hasattr(db_or_conn, "conn") and isinstance(db_or_conn.conn, sqlite3.Connection):
        return db_or_conn.conn
    if hasattr(db_or_conn, "connect"):
        maybe = db_or_conn.connect()
        if isinstance(maybe, sqlite3.Connection):
            return maybe
    raise RuntimeError(
        f"{owner}: could not obtain sqlite3.Connection "
        "(expected .conn or .connect() on wrapper, or a raw Connection)."
    )


def rows_to_dicts(cur: sqlite3.Cursor) -> List[Dict[str, Any]]:
    cols = [d[0] for d in cur.description]
    return [{cols[i]: row[i] for i in range(len(cols))} for row in cur.fetchall()]


def build_set_clause(fields: Dict[str, Any], allowed: Iterable[str]) -> Tuple[str, List[Any]]:
    """`a = ?, b = ?` for the allowed keys of `fields`, in allow-list order."""
    allowed = tuple(allowed)
    unknown = set(fields) - set(allowed)
    if unknown:
        raise ValueError(f"columns not writable here: {', '.join(sorted(unknown))}")
    sets, params = [], []
    for col in allowed:
        if col in fields:
            sets.append(f"{col} = ?")
            params.append(fields[col])
    return ", ".join(sets), params
