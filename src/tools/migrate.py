# File: src/tools/migrate.py
# Python 3.10+
# Usage examples:
#   python -m src.tools.migrate up
#   python -m src.tools.migrate status
#   python -m src.tools.migrate list
#   python -m src.tools.migrate run add-banner-task
#   python -m src.tools.migrate refresh 42
#   python -m src.tools.migrate verify --db /path/to/raptorTracker.db
#
# Notes:
# - DB path defaults to env RAPTOR_DB or data/raptorTracker.db
# - `up` applies data/migrations/*.sql (schema) in lexicographic order
# - `run` executes a named structural data migration; safe to repeat
# - Exit codes: 0 ok, 2 bad input, 3 verify mismatch, 4 store error, 5 partial migration failure,
#   6 write conflict that outlived its retries

from __future__ import annotations

import argparse
import sys
from pathlib import Path
from typing import Optional

from src.app_context import AppContext
from src.models.errors import (
    ConflictError,
    NotFoundError,
    PartialMigrationFailure,
    StoreUnavailable,
    TrackerError,
    ValidationError,
)
from src.repositories.db import Database
from src.services.phase_service import derive_phase_status
from src.services.progress_service import compute_progress
from src.utils.logging_setup import get_logger, setup_logging
from src.utils.paths import DB_PATH, MIGRATIONS_DIR

EXIT_OK = 0
EXIT_BAD_INPUT = 2
EXIT_MISMATCH = 3
EXIT_STORE = 4
EXIT_PARTIAL = 5
EXIT_CONFLICT = 6

log = get_logger("cli")


def cmd_up(db_path: Path, migrations_dir: Path) -> int:
    db = Database(db_path)
    try:
        applied = db.run_migrations(migrations_dir)
        for name in applied:
            print(f"→ Applied schema migration: {name}")
        if applied:
            print("✓ Database is up to date.")
        else:
            print("✓ No changes. Database already up to date.")
        return EXIT_OK
    finally:
        db.close()


def cmd_status(ctx: AppContext, migrations_dir: Path) -> int:
    print(f"DB: {ctx.db_path}")
    applied = sorted(ctx.db.applied())
    print(f"Schema migrations applied: {len(applied)}")
    for name in applied:
        print(f"  ✔ {name}")
    pending = ctx.db.pending(migrations_dir)
    print(f"Schema migrations pending: {len(pending)}")
    for name in pending:
        print(f"  ⧗ {name}")

    runs = ctx.store.list_migration_runs()
    print(f"Data migration runs: {len(runs)}")
    for r in runs:
        mark = "✔" if r["status"] == "completed" else "✗"
        print(f"  {mark} {r['name']}  applied={r['applied_count']} skipped={r['skipped_count']} "
              f"failed={r['failed_count']} of {r['total_eligible_phases']}  ({r['executed_at_utc']})")
    return EXIT_OK


def cmd_list(ctx: AppContext) -> int:
    for m in ctx.migrations.list_migrations():
        last = m["last_run"]
        when = last["executed_at_utc"] if last else "never run"
        print(f"  {m['name']:<30} phase {m['phase_number']} @ {m['position']}  [{when}]")
        print(f"      {m['description']}")
    return EXIT_OK


def cmd_run(ctx: AppContext, name: str) -> int:
    summary = ctx.migrations.run_migration(name)
    for r in summary.per_phase_results:
        line = f"  {r.outcome:<8} phase {r.phase_id} (project {r.project_id})"
        if r.error:
            line += f"  error: {r.error}"
        print(line)
    print(("✓ " if not summary.failed_count else "⚠️  ") + summary.message)
    summary.raise_for_failures()
    return EXIT_OK


def cmd_refresh(ctx: AppContext, project_ids: list[int]) -> int:
    for project_id in project_ids:
        snap = ctx.progress.refresh_project(project_id)
        for phase_id, status in snap.phase_statuses.items():
            print(f"  phase {phase_id}: {status}")
        print(f"✓ Project {project_id} progress: {snap.overall_progress}%")
    return EXIT_OK


def cmd_verify(ctx: AppContext) -> int:
    """Check every derived field against its leaves; report, do not fix."""
    mismatches = 0
    for project in ctx.store.list_projects():
        total = done = 0
        for phase in ctx.store.list_phases_by_project(project.id):
            tasks = ctx.store.list_tasks_by_phase(phase.id)
            total += len(tasks)
            done += sum(1 for t in tasks if t.completed)
            expected = derive_phase_status(tasks)
            if phase.status != expected:
                mismatches += 1
                print(f"❌ phase {phase.id} (project {project.id}): status {phase.status}, expected {expected}")
            orders = [t.sort_order for t in tasks]
            if len(set(orders)) != len(orders):
                print(f"⚠️  phase {phase.id}: duplicate sort_order values {orders}")
        expected_progress = compute_progress(done, total)
        if project.overall_progress != expected_progress:
            mismatches += 1
            print(f"❌ project {project.id}: progress {project.overall_progress}%, expected {expected_progress}%")
    if mismatches:
        print(f"{mismatches} mismatch(es). Run `refresh <project_id>` to repair.")
        return EXIT_MISMATCH
    print("✓ Verification passed.")
    return EXIT_OK


def parse_args(argv: list[str]) -> argparse.Namespace:
    p = argparse.ArgumentParser(prog="raptor-migrate", description="Schema and data migrations for raptorTracker")
    sub = p.add_subparsers(dest="cmd", required=True)

    def add_common(sp: argparse.ArgumentParser):
        sp.add_argument("--db", type=Path, default=DB_PATH, help=f"Path to SQLite DB (default: {DB_PATH})")
        sp.add_argument("--migrations-dir", type=Path, default=MIGRATIONS_DIR,
                        help=f"Schema migrations directory (default: {MIGRATIONS_DIR})")

    add_common(sub.add_parser("up", help="Apply pending schema migrations"))
    add_common(sub.add_parser("status", help="Show schema migrations and data migration history"))
    add_common(sub.add_parser("list", help="List named data migrations"))

    s_run = sub.add_parser("run", help="Run a named data migration (idempotent)")
    add_common(s_run)
    s_run.add_argument("name")

    s_refresh = sub.add_parser("refresh", help="Recompute phase statuses and progress of a project")
    add_common(s_refresh)
    s_refresh.add_argument("project_id", type=int, nargs="?")
    s_refresh.add_argument("--all", action="store_true", help="Refresh every project")

    add_common(sub.add_parser("verify", help="Check derived statuses/progress against tasks"))

    p.add_argument("--quiet", action="store_true", help="Log to file only")
    return p.parse_args(argv)


def main(argv: Optional[list[str]] = None) -> int:
    ns = parse_args(sys.argv[1:] if argv is None else argv)
    setup_logging(console=not ns.quiet)

    if ns.cmd == "up":
        return cmd_up(ns.db, ns.migrations_dir)

    ctx = AppContext.create(ns.db)
    try:
        if ns.cmd == "status":
            return cmd_status(ctx, ns.migrations_dir)
        if ns.cmd == "list":
            return cmd_list(ctx)
        if ns.cmd == "run":
            return cmd_run(ctx, ns.name)
        if ns.cmd == "refresh":
            if ns.all:
                ids = [p.id for p in ctx.store.list_projects()]
            elif ns.project_id is not None:
                ids = [ns.project_id]
            else:
                print("error: give a project id or --all", file=sys.stderr)
                return EXIT_BAD_INPUT
            return cmd_refresh(ctx, ids)
        if ns.cmd == "verify":
            return cmd_verify(ctx)
    except (ValidationError, NotFoundError) as exc:
        print(f"error: {exc}", file=sys.stderr)
        return EXIT_BAD_INPUT
    except PartialMigrationFailure as exc:
        log.warning("%s", exc)
        return EXIT_PARTIAL
    except StoreUnavailable as exc:
        print(f"error: store unavailable: {exc}", file=sys.stderr)
        return EXIT_STORE
    except ConflictError as exc:
        print(f"error: concurrent update, try again: {exc}", file=sys.stderr)
        return EXIT_CONFLICT
    except TrackerError as exc:
        log.error("%s failed: %s", ns.cmd, exc)
        print(f"error: {exc}", file=sys.stderr)
        return EXIT_STORE
    finally:
        ctx.close()
    raise SystemExit(1)


if __name__ == "__main__":
    raise SystemExit(main())
