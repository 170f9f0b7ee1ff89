# Rev 1.0.0

"""SQLite connection & schema migration runner (Rev 1.0.0)
- WAL mode, foreign_keys=ON, busy_timeout from settings
- Applies data/migrations/*.sql in lexical order, one transaction per file
- Tracks applied files in schema_migrations(filename TEXT PRIMARY KEY, applied_at UTC)

Schema migrations only. Named data migrations live in services/migration_runner.py.
"""
from __future__ import annotations
import sqlite3
from pathlib import Path
from datetime import datetime, timezone

from src.utils.paths import DB_PATH, MIGRATIONS_DIR
from src.utils.logging_setup import get_logger


log = get_logger("db")

_SCHEMA_TABLE = (
    "CREATE TABLE IF NOT EXISTS schema_migrations ("
    "filename TEXT PRIMARY KEY, applied_at TEXT NOT NULL)"
)


def _sql_files(migrations_dir: Path) -> list[Path]:
    return sorted(p for p in Path(migrations_dir).glob("*.sql") if p.is_file())


class Database:
    def __init__(self, path: Path | str = DB_PATH, *, busy_timeout_ms: int = 5000) -> None:
        self.path = Path(path)
        if str(path) != ":memory:":
            self.path.parent.mkdir(parents=True, exist_ok=True)
        self.conn = sqlite3.connect(str(path), isolation_level=None, check_same_thread=False)
        self.conn.row_factory = sqlite3.Row
        for pragma in ("journal_mode=WAL", "foreign_keys=ON", f"busy_timeout={int(busy_timeout_ms)}"):
            self.conn.execute(f"PRAGMA {pragma};")
        self.conn.execute(_SCHEMA_TABLE)
        log.info("SQLite open %s (busy_timeout=%sms)", self.path, busy_timeout_ms)

    def close(self) -> None:
        self.conn.close()

    def applied(self) -> set[str]:
        rows = self.conn.execute("SELECT filename FROM schema_migrations").fetchall()
        return {r["filename"] for r in rows}

    def pending(self, migrations_dir: Path = MIGRATIONS_DIR) -> list[str]:
        done = self.applied()
        return [p.name for p in _sql_files(migrations_dir) if p.name not in done]

    def apply_file(self, sql_path: Path) -> None:
        """Run one migration file and record it, all-or-nothing."""
        stamp = datetime.now(timezone.utc).isoformat()
        name = sql_path.name.replace("'", "''")
        script = (
            "BEGIN;\n"
            f"{sql_path.read_text(encoding='utf-8')}\n;\n"
            f"INSERT INTO schema_migrations(filename, applied_at) VALUES('{name}', '{stamp}');\n"
            "COMMIT;"
        )
        try:
            self.conn.executescript(script)
        except sqlite3.Error:
            if self.conn.in_transaction:
                self.conn.execute("ROLLBACK")
            log.exception("Schema migration %s failed; rolled back", sql_path.name)
            raise

    def run_migrations(self, migrations_dir: Path = MIGRATIONS_DIR) -> list[str]:
        done = self.applied()
        applied_now = []
        for p in _sql_files(migrations_dir):
            if p.name in done:
                continue
            log.info("Applying schema migration %s", p.name)
            self.apply_file(p)
            applied_now.append(p.name)
        return applied_now
