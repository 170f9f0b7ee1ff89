# Rev 1.0.0
from __future__ import annotations

from src.models.entities import ActivityLogEntry, Task
from src.models.errors import ValidationError
from src.models.task_kinds import strip_kind_tag
from src.models.types import ACTOR_TYPES, ActivityAction, ActorType
from src.repositories.leaf_store import LeafStore
from src.utils.logging_setup import get_logger

TASK_COMPLETED: ActivityAction = "task_completed"


class ActivityLogger:
    """Appends the audit entry for a task's completion transition."""

    def __init__(self, store: LeafStore):
        self._store = store
        self._log = get_logger("activity")

    def log_task_completed(self, *, project_id: int, task: Task, actor_type: ActorType) -> ActivityLogEntry:
        if actor_type not in ACTOR_TYPES:
            raise ValidationError(f"unknown actor type {actor_type!r}", field="actor_type")
        entry = self._store.append_activity_log(
            ActivityLogEntry(
                project_id=project_id,
                phase_id=task.phase_id,
                task_id=task.id,
                action=TASK_COMPLETED,
                description=strip_kind_tag(task.label),
                actor_type=actor_type,
            )
        )
        self._log.info("project %s: task %s completed by %s", project_id, task.id, actor_type)
        return entry
