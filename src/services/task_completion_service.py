# Rev 1.0.0
"""Task completion processing.

An update runs as a small saga over a store without cross-row transactions:

  0. commit the task row
  1. rescan the phase and write its status if it changed
  2. rescan the project and write overall_progress
  3. on a not-true -> true transition of `completed`, append one activity entry

Once step 0 has committed nothing is rolled back. A failure in steps 1-3 is
returned as a degraded result; ``ProgressAggregator.refresh_project`` finishes
the aggregate part later.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional

from src.models.entities import Task
from src.models.errors import TrackerError, ValidationError
from src.models.types import ACTOR_TYPES, ActorType, PhaseStatus
from src.repositories.leaf_store import LeafStore
from src.utils.logging_setup import get_logger

from .activity_logger import ActivityLogger
from .phase_service import PhaseService
from .progress_service import ProgressAggregator
from .task_fields import validate_task_fields


@dataclass
class TaskUpdateResult:
    task: Task
    phase_status: Optional[PhaseStatus] = None
    project_progress: Optional[int] = None
    logged: bool = False
    errors: List[str] = field(default_factory=list)

    @property
    def degraded(self) -> bool:
        return bool(self.errors)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "task": self.task.to_dict(),
            "phase_status": self.phase_status,
            "project_progress": self.project_progress,
            "logged": self.logged,
            "degraded": self.degraded,
            "errors": list(self.errors),
        }


@dataclass
class TaskDeleteResult:
    task_id: int
    phase_status: Optional[PhaseStatus] = None
    project_progress: Optional[int] = None
    errors: List[str] = field(default_factory=list)


class TaskCompletionService:
    def __init__(
        self,
        store: LeafStore,
        *,
        phases: Optional[PhaseService] = None,
        aggregator: Optional[ProgressAggregator] = None,
        activity: Optional[ActivityLogger] = None,
        default_actor: ActorType = "property_manager",
        conflict_retries: int = 1,
    ):
        if default_actor not in ACTOR_TYPES:
            raise ValidationError(f"unknown actor type {default_actor!r}", field="actor_type")
        self._store = store
        self._phases = phases or PhaseService(store, conflict_retries=conflict_retries)
        self._aggregator = aggregator or ProgressAggregator(
            store, self._phases, conflict_retries=conflict_retries
        )
        self._activity = activity or ActivityLogger(store)
        self._default_actor = default_actor
        self._log = get_logger("tasks")

    def apply_task_update(
        self,
        task_id: int,
        fields: Mapping[str, Any],
        *,
        actor_type: Optional[ActorType] = None,
    ) -> TaskUpdateResult:
        actor = actor_type or self._default_actor
        if actor not in ACTOR_TYPES:
            raise ValidationError(f"unknown actor type {actor!r}", field="actor_type")

        # Resolve the owning chain before writing anything.
        before = self._store.get_task(task_id)
        phase = self._store.get_phase(before.phase_id)
        project = self._store.get_project(phase.project_id)
        clean = validate_task_fields(before.kind, fields)

        task = self._store.update_task(task_id, clean)
        result = TaskUpdateResult(task=task)
        transitioned = clean.get("completed") is True and not before.completed

        try:
            result.phase_status = self._phases.recompute_status(phase.id)
            result.project_progress = self._aggregator.recompute_project_progress(project.id)
        except TrackerError as exc:
            self._log.warning("task %s saved; aggregates for project %s left stale: %s",
                              task_id, project.id, exc)
            result.errors.append(f"aggregate: {exc}")

        # Attempted even when the aggregates failed: a retry of the same update
        # would no longer see a transition, so the entry would be lost.
        if transitioned:
            try:
                self._activity.log_task_completed(project_id=project.id, task=task, actor_type=actor)
                result.logged = True
            except TrackerError as exc:
                self._log.error("task %s completed but activity entry not written: %s", task_id, exc)
                result.errors.append(f"activity: {exc}")

        return result

    def delete_task(self, task_id: int) -> TaskDeleteResult:
        """Administrative delete of one task, then re-derive what it fed."""
        task = self._store.get_task(task_id)
        phase = self._store.get_phase(task.phase_id)
        self._store.delete_task(task_id)
        self._log.info("task %s deleted from phase %s", task_id, phase.id)

        result = TaskDeleteResult(task_id=task_id)
        try:
            result.phase_status = self._phases.recompute_status(phase.id)
            result.project_progress = self._aggregator.recompute_project_progress(phase.project_id)
        except TrackerError as exc:
            self._log.warning("task %s deleted; aggregates for project %s left stale: %s",
                              task_id, phase.project_id, exc)
            result.errors.append(f"aggregate: {exc}")
        return result
