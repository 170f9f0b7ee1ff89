# Rev 1.0.0
"""Error taxonomy shared by the store, the services and the CLI."""
from __future__ import annotations
from typing import Optional

from .types import EntityType


class TrackerError(Exception):
    """Base for every error raised on purpose by raptorTracker."""


class ValidationError(TrackerError):
    """Malformed or disallowed input fields, or an unknown migration name."""

    def __init__(self, message: str, *, field: Optional[str] = None):
        super().__init__(message)
        self.field = field


class NotFoundError(TrackerError):
    def __init__(self, entity: EntityType, entity_id: int):
        super().__init__(f"{entity} {entity_id} not found")
        self.entity = entity
        self.entity_id = entity_id


class ConflictError(TrackerError):
    """A compare-and-swap aggregate write lost to a concurrent writer."""


class StoreUnavailable(TrackerError):
    """Transport or storage failure underneath the leaf store."""


class PartialMigrationFailure(TrackerError):
    """Some phases failed during a structural migration while others succeeded."""

    def __init__(self, name: str, failed_count: int, applied_count: int):
        super().__init__(
            f"migration {name!r}: {failed_count} phase(s) failed, {applied_count} applied"
        )
        self.name = name
        self.failed_count = failed_count
        self.applied_count = applied_count
