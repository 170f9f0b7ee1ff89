# Rev 1.0.0
"""Validation of the sparse field sets a task update may carry."""
from __future__ import annotations

from dataclasses import asdict
from datetime import date
from typing import Any, Dict, Mapping

from src.models.entities import DeliveryRecord
from src.models.errors import ValidationError
from src.models.task_kinds import AUXILIARY_FIELDS, COMMON_FIELDS, TaskKind, writable_fields

ENCLOSURE_TYPES = ("custom", "wrap")
ENCLOSURE_COLORS = ("dove_grey", "macchiato", "black", "other")
DELIVERY_KEYS = frozenset({"equipment", "date", "carrier", "tracking"})

TEXT_FIELDS = ("notes", "pm_text_value", "pm_text_response", "custom_color_name", "document_url")


def _text(name: str, value: Any) -> Any:
    if value is None or isinstance(value, str):
        return value
    raise ValidationError(f"{name} must be a string", field=name)


def _iso_date(name: str, value: Any) -> Any:
    if value in (None, ""):
        return None
    if not isinstance(value, str):
        raise ValidationError(f"{name} must be an ISO date string", field=name)
    try:
        date.fromisoformat(value)
    except ValueError:
        raise ValidationError(f"{name}: {value!r} is not a YYYY-MM-DD date", field=name) from None
    return value


def _speed(name: str, value: Any) -> Any:
    # Stored as text (Mbps) to keep what the operator typed, e.g. "12.5".
    if value in (None, ""):
        return None
    if isinstance(value, bool):
        raise ValidationError(f"{name} must be numeric", field=name)
    try:
        mbps = float(value)
    except (TypeError, ValueError):
        raise ValidationError(f"{name}: {value!r} is not numeric", field=name) from None
    if mbps < 0 or mbps != mbps:
        raise ValidationError(f"{name} must be a non-negative number", field=name)
    return str(value)


def _quantity(name: str, value: Any) -> Any:
    if value is None:
        return None
    if isinstance(value, bool) or not isinstance(value, int) or value < 0:
        raise ValidationError(f"{name} must be a non-negative integer", field=name)
    return value


def _choice(name: str, value: Any, choices) -> Any:
    if value in (None, ""):
        return None
    if value not in choices:
        raise ValidationError(f"{name} must be one of {', '.join(choices)}", field=name)
    return value


def _deliveries(name: str, value: Any) -> Any:
    if value is None:
        return None
    if not isinstance(value, list):
        raise ValidationError(f"{name} must be a list", field=name)
    out = []
    for i, item in enumerate(value):
        if not isinstance(item, Mapping):
            raise ValidationError(f"{name}[{i}] must be an object", field=name)
        extra = set(item) - DELIVERY_KEYS
        if extra:
            raise ValidationError(f"{name}[{i}] has unknown keys: {', '.join(sorted(extra))}", field=name)
        out.append(asdict(DeliveryRecord.from_mapping(item)))
    return out


def validate_task_fields(kind: TaskKind, fields: Mapping[str, Any]) -> Dict[str, Any]:
    """Return a cleaned copy of `fields`, or raise ValidationError.

    Unknown fields are rejected, as are auxiliary fields belonging to a
    different task kind (e.g. upload_speed on a [PM] checkbox task).
    """
    if not isinstance(fields, Mapping) or not fields:
        raise ValidationError("update must carry at least one field")

    known = COMMON_FIELDS | AUXILIARY_FIELDS
    unknown = sorted(set(fields) - known)
    if unknown:
        raise ValidationError(f"unknown task field(s): {', '.join(unknown)}", field=unknown[0])
    foreign = sorted(set(fields) - writable_fields(kind))
    if foreign:
        raise ValidationError(
            f"field(s) {', '.join(foreign)} do not apply to {kind.value} tasks", field=foreign[0]
        )

    clean: Dict[str, Any] = {}
    for name, value in fields.items():
        if name == "completed":
            if not isinstance(value, bool):
                raise ValidationError("completed must be true or false", field=name)
            clean[name] = value
        elif name in TEXT_FIELDS:
            clean[name] = _text(name, value)
        elif name == "scheduled_date":
            clean[name] = _iso_date(name, value)
        elif name in ("upload_speed", "download_speed"):
            clean[name] = _speed(name, value)
        elif name in ("smartfridge_qty", "smartcooker_qty"):
            clean[name] = _quantity(name, value)
        elif name == "enclosure_type":
            clean[name] = _choice(name, value, ENCLOSURE_TYPES)
        elif name == "enclosure_color":
            clean[name] = _choice(name, value, ENCLOSURE_COLORS)
        elif name == "deliveries":
            clean[name] = _deliveries(name, value)
    return clean
