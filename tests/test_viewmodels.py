# tests/test_viewmodels.py
from __future__ import annotations

import pytest

QtCore = pytest.importorskip("PySide6.QtCore")

from src.services.migration_runner import MigrationRunner  # noqa: E402
from src.services.task_completion_service import TaskCompletionService  # noqa: E402
from src.viewmodels.migrations_viewmodel import MigrationsViewModel  # noqa: E402
from src.viewmodels.task_completion_viewmodel import TaskCompletionViewModel  # noqa: E402


@pytest.fixture(scope="module", autouse=True)
def qapp():
    app = QtCore.QCoreApplication.instance() or QtCore.QCoreApplication([])
    yield app


def _record(signal):
    seen = []
    signal.connect(lambda *args: seen.append(args))
    return seen


def test_toggle_emits_refresh_signals(store, tree):
    pid = tree.project()
    ph = tree.phase(pid)
    tid = tree.task(ph, "[PM] Confirm contact", sort_order=1)
    tree.task(ph, "Other", sort_order=2)

    vm = TaskCompletionViewModel(TaskCompletionService(store), store)
    updated = _record(vm.taskUpdated)
    phase = _record(vm.phaseStatusChanged)
    progress = _record(vm.progressChanged)
    errors = _record(vm.errorOccurred)

    assert vm.toggle(tid, True) is True
    assert updated[0][0]["logged"] is True
    assert phase == [(ph, "in_progress")]
    assert progress == [(pid, 50)]
    assert errors == []
    assert vm.last()["task"]["kind"] == "pm_checkbox"


def test_invalid_edit_emits_error_and_keeps_state(store, tree):
    ph = tree.phase(tree.project())
    tid = tree.task(ph, "[PM] Confirm contact")
    vm = TaskCompletionViewModel(TaskCompletionService(store), store)
    errors = _record(vm.errorOccurred)

    assert vm.apply(tid, {"upload_speed": "12"}) is False
    assert len(errors) == 1
    assert vm.last() is None
    assert store.get_task(tid).completed is False


def test_degraded_update_is_flagged(stub):
    pid = stub.add_project()
    ph = stub.add_phase(pid)
    tid = stub.add_task(ph, "[PM] Only task")
    stub.fail("update_project", pid)

    vm = TaskCompletionViewModel(TaskCompletionService(stub), stub)
    degraded = _record(vm.degraded)
    progress = _record(vm.progressChanged)

    assert vm.toggle(tid, True) is True
    assert degraded and degraded[0][0].startswith("aggregate:")
    assert progress == []


def test_migrations_viewmodel_run_and_reload(store, tree):
    ph = tree.phase(tree.project(), phase_number=6)
    tree.task(ph, "Enclosure selection", sort_order=1)

    vm = MigrationsViewModel(MigrationRunner(store))
    loaded = _record(vm.loaded)
    finished = _record(vm.finished)
    errors = _record(vm.errorOccurred)

    vm.load()
    assert {m["name"] for m in vm.items()} == {"add-banner-task", "add-enclosure-confirm-task"}

    vm.run("add-enclosure-confirm-task")
    assert finished[0][0]["applied_count"] == 1
    assert len(loaded) == 2  # reloaded after the run
    by_name = {m["name"]: m for m in vm.items()}
    assert by_name["add-enclosure-confirm-task"]["last_run"]["status"] == "completed"

    vm.run("bogus")
    assert len(errors) == 1
