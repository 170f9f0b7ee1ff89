# raptorTracker type definitions
# Rev 1.0.0

from __future__ import annotations
from typing import Literal, get_args

# Hierarchy: project → phase → task
EntityType = Literal["project", "phase", "task"]

ProjectStatus = Literal["planning", "in_progress", "completed", "on_hold", "cancelled"]
PhaseStatus = Literal["not_started", "in_progress", "completed"]
ActorType = Literal["admin", "property_manager", "system"]
ActivityAction = Literal["task_completed"]
PhaseOutcome = Literal["applied", "skipped", "failed"]

PROJECT_STATUSES = frozenset(get_args(ProjectStatus))
PHASE_STATUSES = frozenset(get_args(PhaseStatus))
ACTOR_TYPES = frozenset(get_args(ActorType))
