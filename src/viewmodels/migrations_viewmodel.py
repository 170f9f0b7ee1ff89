# Rev 1.0.0
from __future__ import annotations
from typing import Any, Dict, List
from PySide6.QtCore import QObject, Signal

from src.models.errors import TrackerError


class MigrationsViewModel(QObject):
    """
    Admin migrations screen.

    Emits:
      loaded(list)        # [{name, description, phase_number, position, last_run}]
      finished(dict)      # MigrationSummary.to_dict(), always with counts
      errorOccurred(str)
    """
    loaded = Signal(list)
    finished = Signal(dict)
    errorOccurred = Signal(str)

    def __init__(self, runner):
        super().__init__()
        self._runner = runner
        self._items: List[Dict[str, Any]] = []

    def load(self) -> None:
        try:
            self._items = self._runner.list_migrations()
        except TrackerError as exc:
            self.errorOccurred.emit(str(exc))
            return
        self.loaded.emit(self._items)

    def run(self, name: str) -> None:
        try:
            summary = self._runner.run_migration(name)
        except TrackerError as exc:
            self.errorOccurred.emit(str(exc))
            return
        self.finished.emit(summary.to_dict())
        self.load()

    def items(self) -> List[Dict[str, Any]]:
        return list(self._items)
