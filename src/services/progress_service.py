# Rev 1.0.0
"""Project progress aggregation.

Progress is recomputed from the full task set of every phase on each write.
There is no running counter to keep in step with the task rows.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict

from src.models.types import PhaseStatus
from src.repositories.leaf_store import LeafStore
from src.utils.logging_setup import get_logger

from .phase_service import PhaseService
from .retry import retry_on_conflict


def compute_progress(completed: int, total: int) -> int:
    """round(100 * completed / total), halves rounded up; 0 for no tasks."""
    if total <= 0:
        return 0
    return (200 * completed + total) // (2 * total)


@dataclass
class ProjectSnapshot:
    project_id: int
    overall_progress: int
    phase_statuses: Dict[int, PhaseStatus] = field(default_factory=dict)


class ProgressAggregator:
    def __init__(self, store: LeafStore, phases: PhaseService | None = None, *, conflict_retries: int = 1):
        self._store = store
        self._phases = phases or PhaseService(store, conflict_retries=conflict_retries)
        self._retries = conflict_retries
        self._log = get_logger("progress")

    def recompute_project_progress(self, project_id: int) -> int:
        """
        Rescan every task of every phase and write overall_progress.

        The write is unconditional but compare-and-swap on the project's
        revision as read before the rescan. Any read failure aborts before the
        write, so a partial aggregate is never stored.
        """

        def _once() -> int:
            project = self._store.get_project(project_id)
            total = done = 0
            for phase in self._store.list_phases_by_project(project_id):
                for task in self._store.list_tasks_by_phase(phase.id):
                    total += 1
                    done += 1 if task.completed else 0
            progress = compute_progress(done, total)
            self._store.update_project(project_id, {"overall_progress": progress},
                                       expected_revision=project.revision)
            if progress != project.overall_progress:
                self._log.info("project %s: progress %s%% -> %s%% (%s/%s tasks)",
                               project_id, project.overall_progress, progress, done, total)
            return progress

        return retry_on_conflict(_once, retries=self._retries, log=self._log,
                                 what=f"project {project_id} progress")

    def refresh_project(self, project_id: int) -> ProjectSnapshot:
        """Re-derive every phase status and the project's progress.

        Safe to run at any time; used to finish an update whose aggregate step
        failed and after task deletions.
        """
        statuses: Dict[int, PhaseStatus] = {}
        for phase in self._store.list_phases_by_project(project_id):
            statuses[phase.id] = self._phases.recompute_status(phase.id)
        progress = self.recompute_project_progress(project_id)
        return ProjectSnapshot(project_id, progress, statuses)
