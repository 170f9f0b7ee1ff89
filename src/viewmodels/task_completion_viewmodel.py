# Rev 1.0.0
from __future__ import annotations
from typing import Any, Dict, Mapping, Optional
from PySide6.QtCore import QObject, Signal

from src.models.errors import TrackerError


class TaskCompletionViewModel(QObject):
    """
    Bridges task edits from the portal/admin views to TaskCompletionService.

    Emits:
      taskUpdated(dict)              # TaskUpdateResult.to_dict()
      phaseStatusChanged(int, str)   # phase_id, status
      progressChanged(int, int)      # project_id, overall_progress
      degraded(str)                  # saved, but aggregates/log not refreshed
      errorOccurred(str)             # nothing saved; prior state still valid
    """
    taskUpdated = Signal(dict)
    phaseStatusChanged = Signal(int, str)
    progressChanged = Signal(int, int)
    degraded = Signal(str)
    errorOccurred = Signal(str)

    def __init__(self, service, store, *, actor_type: str = "property_manager"):
        super().__init__()
        self._service = service
        self._store = store
        self._actor = actor_type
        self._last: Optional[Dict[str, Any]] = None

    def apply(self, task_id: int, fields: Mapping[str, Any]) -> bool:
        try:
            result = self._service.apply_task_update(task_id, fields, actor_type=self._actor)
        except TrackerError as exc:
            self.errorOccurred.emit(str(exc))
            return False

        info = result.to_dict()
        self._last = info
        self.taskUpdated.emit(info)
        if result.phase_status is not None:
            self.phaseStatusChanged.emit(result.task.phase_id, result.phase_status)
        if result.project_progress is not None:
            project_id = self._store.get_phase(result.task.phase_id).project_id
            self.progressChanged.emit(project_id, result.project_progress)
        if result.degraded:
            self.degraded.emit("; ".join(result.errors))
        return True

    def toggle(self, task_id: int, completed: bool) -> bool:
        return self.apply(task_id, {"completed": bool(completed)})

    def last(self) -> Optional[Dict[str, Any]]:
        return self._last
