# Rev 1.0.0
"""Structural data migrations.

One-time, operator-invoked batch edits that insert a task into every phase
matching a predicate. They are not schema migrations: there is no version
table gating them, and each one must be safe to run again. A phase that
already holds a task whose label contains the migration's marker is skipped.

Phases are processed one after the other; a storage error in one phase is
recorded against that phase, any tasks already shifted for it are moved back,
and the loop moves on.
"""
from __future__ import annotations

from dataclasses import asdict, dataclass, field
from datetime import datetime, timezone
from typing import Any, Callable, Dict, List, Optional

from src.models.entities import Phase, Task
from src.models.errors import PartialMigrationFailure, TrackerError, ValidationError
from src.models.task_kinds import TaskKind, make_label
from src.models.types import PhaseOutcome
from src.repositories.leaf_store import LeafStore
from src.utils.logging_setup import get_logger

from .phase_service import PhaseService
from .progress_service import ProgressAggregator


@dataclass(frozen=True)
class StructuralMigration:
    name: str
    description: str
    phase_number: int
    label: str
    position: int
    marker: str

    def selects(self, phase: Phase) -> bool:
        return phase.phase_number == self.phase_number

    def already_applied(self, labels: List[str]) -> bool:
        needle = self.marker.lower()
        return any(needle in (lbl or "").lower() for lbl in labels)


MIGRATIONS: Dict[str, StructuralMigration] = {
    m.name: m
    for m in (
        StructuralMigration(
            name="add-banner-task",
            description="Ask property managers to allow retractable banners (phase 3, position 2)",
            phase_number=3,
            label=make_label(
                TaskKind.PM_TEXT,
                "Allow Raptor Vending to place retractable banners on site "
                "announcing the food program until machines arrive",
            ),
            position=2,
            marker="retractable banners",
        ),
        StructuralMigration(
            name="add-enclosure-confirm-task",
            description="Property manager confirms enclosure configuration (phase 6, position 3)",
            phase_number=6,
            label=make_label(TaskKind.PM_CHECKBOX, "I confirm the enclosure configuration and optional colors"),
            position=3,
            marker="confirm the enclosure",
        ),
    )
}


@dataclass
class PhaseResult:
    phase_id: int
    project_id: int
    outcome: PhaseOutcome
    task_id: Optional[int] = None
    error: Optional[str] = None


@dataclass
class MigrationSummary:
    name: str
    total_eligible_phases: int = 0
    per_phase_results: List[PhaseResult] = field(default_factory=list)

    def _count(self, outcome: PhaseOutcome) -> int:
        return sum(1 for r in self.per_phase_results if r.outcome == outcome)

    @property
    def applied_count(self) -> int:
        return self._count("applied")

    @property
    def skipped_count(self) -> int:
        return self._count("skipped")

    @property
    def failed_count(self) -> int:
        return self._count("failed")

    @property
    def message(self) -> str:
        msg = (f"{self.name}: applied to {self.applied_count} phase(s), "
               f"skipped {self.skipped_count} (already had it)")
        if self.failed_count:
            msg += f", FAILED {self.failed_count}"
        return msg

    def raise_for_failures(self) -> None:
        if self.failed_count:
            raise PartialMigrationFailure(self.name, self.failed_count, self.applied_count)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "applied_count": self.applied_count,
            "skipped_count": self.skipped_count,
            "failed_count": self.failed_count,
            "total_eligible_phases": self.total_eligible_phases,
            "per_phase_results": [asdict(r) for r in self.per_phase_results],
            "message": self.message,
        }


class MigrationRunner:
    def __init__(
        self,
        store: LeafStore,
        *,
        registry: Optional[Dict[str, StructuralMigration]] = None,
        phases: Optional[PhaseService] = None,
        aggregator: Optional[ProgressAggregator] = None,
        conflict_retries: int = 1,
        clock: Callable[[], datetime] = lambda: datetime.now(timezone.utc),
    ):
        self._store = store
        self._registry = MIGRATIONS if registry is None else registry
        self._phases = phases or PhaseService(store, conflict_retries=conflict_retries)
        self._aggregator = aggregator or ProgressAggregator(
            store, self._phases, conflict_retries=conflict_retries
        )
        self._clock = clock
        self._log = get_logger("migrations")

    def list_migrations(self) -> List[Dict[str, Any]]:
        out = []
        for m in self._registry.values():
            runs = self._store.list_migration_runs(m.name)
            out.append({
                "name": m.name,
                "description": m.description,
                "phase_number": m.phase_number,
                "position": m.position,
                "last_run": runs[0] if runs else None,
            })
        return out

    def run_migration(self, name: str) -> MigrationSummary:
        migration = self._registry.get(name)
        if migration is None:
            raise ValidationError(f"unknown migration: {name}", field="name")

        phases = [p for p in self._store.list_phases_by_number(migration.phase_number)
                  if migration.selects(p)]
        summary = MigrationSummary(name=name, total_eligible_phases=len(phases))
        self._log.info("%s: %d eligible phase(s)", name, len(phases))

        for phase in phases:
            result = self._migrate_phase(migration, phase)
            summary.per_phase_results.append(result)

        self._store.record_migration_run(
            name=name,
            applied_count=summary.applied_count,
            skipped_count=summary.skipped_count,
            failed_count=summary.failed_count,
            total_eligible_phases=summary.total_eligible_phases,
            status="failed" if summary.failed_count else "completed",
            executed_at_utc=self._clock().isoformat(timespec="seconds"),
        )
        log = self._log.warning if summary.failed_count else self._log.info
        log("%s", summary.message)
        return summary

    # ---------- internals ----------

    def _migrate_phase(self, migration: StructuralMigration, phase: Phase) -> PhaseResult:
        result = PhaseResult(phase_id=phase.id, project_id=phase.project_id, outcome="failed")
        shifted: List[Task] = []
        try:
            labels = [t.label for t in self._store.list_tasks_by_phase(phase.id)]
            if migration.already_applied(labels):
                result.outcome = "skipped"
                return result

            # Highest first so no two rows share a sort_order mid-shift.
            for task in self._store.list_tasks_by_phase(
                phase.id, min_sort_order=migration.position, order_desc=True
            ):
                self._store.update_task(task.id, {"sort_order": task.sort_order + 1})
                shifted.append(task)

            task = self._store.insert_task(
                phase_id=phase.id,
                label=migration.label,
                sort_order=migration.position,
                completed=False,
            )
        except TrackerError as exc:
            self._log.error("%s: phase %s failed: %s", migration.name, phase.id, exc)
            result.error = str(exc)
            self._unshift(migration, phase, shifted, result)
            return result

        result.outcome = "applied"
        result.task_id = task.id
        self._log.info("%s: phase %s got task %s at %d", migration.name, phase.id, task.id, migration.position)

        # The new open task changes what the phase and project derive to.
        try:
            self._phases.recompute_status(phase.id)
            self._aggregator.recompute_project_progress(phase.project_id)
        except TrackerError as exc:
            self._log.warning("%s: phase %s aggregates left stale: %s", migration.name, phase.id, exc)
            result.error = f"aggregate: {exc}"
        return result

    def _unshift(
        self, migration: StructuralMigration, phase: Phase, shifted: List[Task], result: PhaseResult
    ) -> None:
        """Put shifted tasks back, lowest first, so a rerun starts from the original order."""
        for task in reversed(shifted):
            try:
                self._store.update_task(task.id, {"sort_order": task.sort_order})
            except TrackerError as exc:
                self._log.error(
                    "%s: phase %s left with a gap; task %s not moved back: %s",
                    migration.name, phase.id, task.id, exc,
                )
                result.error = f"{result.error}; unshift: {exc}"
                return
