# src/utils/config.py
import json
from pathlib import Path
from typing import Any, Dict, Optional
from .paths import config_dir

SETTINGS_NAME = "settings.json"

_DEFAULTS: Dict[str, Any] = {
    "store": {
        "busy_timeout_ms": 5000,
    },
    "aggregation": {
        # extra rescans after a compare-and-swap miss on phase/project rows
        "conflict_retries": 1,
    },
    "activity": {
        "default_actor": "property_manager",
    },
}


def settings_file() -> Path:
    return config_dir() / SETTINGS_NAME


def _merge(base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
    out = {k: (dict(v) if isinstance(v, dict) else v) for k, v in base.items()}
    for k, v in override.items():
        if isinstance(v, dict) and isinstance(out.get(k), dict):
            out[k] = _merge(out[k], v)
        else:
            out[k] = v
    return out


def load_settings(path: Optional[Path] = None) -> Dict[str, Any]:
    path = path or settings_file()
    if path.exists():
        try:
            return _merge(_DEFAULTS, json.loads(path.read_text()))
        except (OSError, ValueError):
            return _merge(_DEFAULTS, {})
    return _merge(_DEFAULTS, {})


def save_settings(data: Dict[str, Any], path: Optional[Path] = None) -> None:
    (path or settings_file()).write_text(json.dumps(data, indent=2))
