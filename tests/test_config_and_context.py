# tests/test_config_and_context.py
from __future__ import annotations

import json
import logging

from src.app_context import AppContext
from src.dev_seed import seed_demo_project
from src.utils.config import load_settings, save_settings, settings_file
from src.utils.logging_setup import get_logger, setup_logging


def test_defaults_when_no_file():
    s = load_settings()
    assert s["aggregation"]["conflict_retries"] == 1
    assert s["store"]["busy_timeout_ms"] == 5000
    assert s["activity"]["default_actor"] == "property_manager"


def test_file_overrides_are_merged(tmp_path):
    path = tmp_path / "settings.json"
    path.write_text(json.dumps({"aggregation": {"conflict_retries": 3}}))
    s = load_settings(path)
    assert s["aggregation"]["conflict_retries"] == 3
    assert s["store"]["busy_timeout_ms"] == 5000


def test_corrupt_file_falls_back_to_defaults(tmp_path):
    path = tmp_path / "settings.json"
    path.write_text("{not json")
    assert load_settings(path)["aggregation"]["conflict_retries"] == 1


def test_save_then_load_uses_xdg_config(tmp_path):
    save_settings({"activity": {"default_actor": "admin"}})
    assert settings_file().is_relative_to(tmp_path / "config")
    assert load_settings()["activity"]["default_actor"] == "admin"


def test_setup_logging_writes_under_xdg_state(tmp_path, monkeypatch):
    monkeypatch.setenv("RAPTOR_LOG_LEVEL", "debug")
    logfile = setup_logging(console=False)
    assert logfile.is_relative_to(tmp_path / "state")
    get_logger("test").debug("hello from the test")
    for h in logging.getLogger().handlers:
        h.flush()
    assert "raptor.test | hello from the test" in logfile.read_text()
    # a second call replaces rather than stacks its handlers
    setup_logging(console=False)
    ours = [h for h in logging.getLogger().handlers if getattr(h, "_raptor", False)]
    assert len(ours) == 1


def test_app_context_wires_settings(db_path):
    settings = load_settings()
    settings["activity"]["default_actor"] = "admin"
    ctx = AppContext.create(db_path, settings)
    try:
        project_id = seed_demo_project(ctx.db.conn)
        task = ctx.store.list_tasks_by_phase(ctx.store.list_phases_by_project(project_id)[0].id)[0]
        res = ctx.tasks.apply_task_update(task.id, {"completed": True})
        assert res.logged
        [entry] = ctx.store.list_activity_log(project_id)
        assert entry.actor_type == "admin"
    finally:
        ctx.close()


def test_app_context_shares_services_with_migrations(db_path):
    settings = load_settings()
    settings["aggregation"]["conflict_retries"] = 3
    ctx = AppContext.create(db_path, settings)
    try:
        assert ctx.phases._retries == 3
        assert ctx.migrations._phases is ctx.phases
        assert ctx.migrations._aggregator is ctx.progress
    finally:
        ctx.close()
