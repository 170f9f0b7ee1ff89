# raptorTracker application context
# Rev 1.0.0

from __future__ import annotations
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Optional

from .utils.config import load_settings
from .utils.logging_setup import get_logger
from .repositories.db import Database
from .repositories.leaf_store import SQLiteLeafStore
from .services.activity_logger import ActivityLogger
from .services.migration_runner import MigrationRunner
from .services.phase_service import PhaseService
from .services.progress_service import ProgressAggregator
from .services.task_completion_service import TaskCompletionService


@dataclass
class AppContext:
    """Central container for shared app resources."""
    db_path: Path
    db: Database
    store: SQLiteLeafStore
    phases: PhaseService
    progress: ProgressAggregator
    tasks: TaskCompletionService
    migrations: MigrationRunner

    @classmethod
    def create(cls, db_path: Path, settings: Optional[Dict[str, Any]] = None) -> "AppContext":
        """Open the DB, bring the schema up to date, wire the services."""
        log = get_logger("AppContext")
        settings = settings or load_settings()
        retries = int(settings["aggregation"]["conflict_retries"])

        db = Database(db_path, busy_timeout_ms=int(settings["store"]["busy_timeout_ms"]))
        db.run_migrations()
        store = SQLiteLeafStore(db)
        phases = PhaseService(store, conflict_retries=retries)
        progress = ProgressAggregator(store, phases, conflict_retries=retries)
        tasks = TaskCompletionService(
            store,
            phases=phases,
            aggregator=progress,
            activity=ActivityLogger(store),
            default_actor=settings["activity"]["default_actor"],
        )
        migrations = MigrationRunner(store, phases=phases, aggregator=progress, conflict_retries=retries)
        log.info("AppContext initialized with DB=%s", db_path)
        return cls(db_path=Path(db_path), db=db, store=store, phases=phases,
                   progress=progress, tasks=tasks, migrations=migrations)

    def close(self) -> None:
        self.db.close()
