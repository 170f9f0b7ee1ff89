# Rev 1.0.0

"""Phase status service (Rev 1.0.0)
Derive a phase's status from its tasks and write it back.
"""
from __future__ import annotations
from typing import Iterable

from src.models.types import PhaseStatus
from src.repositories.leaf_store import LeafStore
from src.utils.logging_setup import get_logger

from .retry import retry_on_conflict


def derive_phase_status(tasks: Iterable) -> PhaseStatus:
    """
    not_started when nothing is done (an empty phase included),
    completed when everything is, in_progress otherwise.
    """
    total = done = 0
    for t in tasks:
        total += 1
        if t.completed:
            done += 1
    if total == 0 or done == 0:
        return "not_started"
    if done == total:
        return "completed"
    return "in_progress"


class PhaseService:
    def __init__(self, store: LeafStore, *, conflict_retries: int = 1):
        self._store = store
        self._retries = conflict_retries
        self._log = get_logger("phase")

    def recompute_status(self, phase_id: int) -> PhaseStatus:
        """Rescan the phase's tasks; persist the derived status if it differs."""

        def _once() -> PhaseStatus:
            phase = self._store.get_phase(phase_id)
            status = derive_phase_status(self._store.list_tasks_by_phase(phase_id))
            if status != phase.status:
                self._store.update_phase(phase_id, {"status": status},
                                         expected_revision=phase.revision)
                self._log.info("phase %s: %s -> %s", phase_id, phase.status, status)
            return status

        return retry_on_conflict(_once, retries=self._retries, log=self._log,
                                 what=f"phase {phase_id} status")
