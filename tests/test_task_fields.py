# tests/test_task_fields.py
from __future__ import annotations

import pytest

from src.models.errors import ValidationError
from src.models.task_kinds import TaskKind
from src.services.task_fields import validate_task_fields


def test_completed_must_be_bool():
    assert validate_task_fields(TaskKind.STANDARD, {"completed": True}) == {"completed": True}
    with pytest.raises(ValidationError) as ei:
        validate_task_fields(TaskKind.STANDARD, {"completed": "yes"})
    assert ei.value.field == "completed"
    with pytest.raises(ValidationError):
        validate_task_fields(TaskKind.STANDARD, {"completed": 1})


def test_empty_update_rejected():
    with pytest.raises(ValidationError):
        validate_task_fields(TaskKind.STANDARD, {})


def test_unknown_field_rejected():
    with pytest.raises(ValidationError) as ei:
        validate_task_fields(TaskKind.STANDARD, {"label": "renamed"})
    assert ei.value.field == "label"


def test_field_of_another_kind_rejected():
    with pytest.raises(ValidationError) as ei:
        validate_task_fields(TaskKind.PM_CHECKBOX, {"upload_speed": "20"})
    assert "do not apply" in str(ei.value)


@pytest.mark.parametrize(
    "kind,fields,clean",
    [
        (TaskKind.PM_DATE, {"scheduled_date": "2024-06-01"}, {"scheduled_date": "2024-06-01"}),
        (TaskKind.ADMIN_DATE, {"scheduled_date": ""}, {"scheduled_date": None}),
        (TaskKind.ADMIN_SPEED, {"upload_speed": 12.5}, {"upload_speed": "12.5"}),
        (TaskKind.ADMIN_EQUIPMENT, {"smartfridge_qty": 2, "smartcooker_qty": 0},
         {"smartfridge_qty": 2, "smartcooker_qty": 0}),
        (TaskKind.ADMIN_ENCLOSURE, {"enclosure_type": "wrap", "enclosure_color": "other",
                                    "custom_color_name": "Teal"},
         {"enclosure_type": "wrap", "enclosure_color": "other", "custom_color_name": "Teal"}),
        (TaskKind.PM_TEXT, {"pm_text_value": "Use dock B", "completed": True},
         {"pm_text_value": "Use dock B", "completed": True}),
        (TaskKind.ADMIN_DOC, {"document_url": "https://example.com/r.pdf"},
         {"document_url": "https://example.com/r.pdf"}),
    ],
)
def test_valid_kind_fields(kind, fields, clean):
    assert validate_task_fields(kind, fields) == clean


@pytest.mark.parametrize(
    "kind,fields",
    [
        (TaskKind.PM_DATE, {"scheduled_date": "06/01/2024"}),
        (TaskKind.ADMIN_SPEED, {"download_speed": "fast"}),
        (TaskKind.ADMIN_SPEED, {"download_speed": -1}),
        (TaskKind.ADMIN_SPEED, {"download_speed": True}),
        (TaskKind.ADMIN_EQUIPMENT, {"smartfridge_qty": -1}),
        (TaskKind.ADMIN_EQUIPMENT, {"smartfridge_qty": 1.5}),
        (TaskKind.ADMIN_EQUIPMENT, {"smartcooker_qty": True}),
        (TaskKind.ADMIN_ENCLOSURE, {"enclosure_type": "steel"}),
        (TaskKind.ADMIN_ENCLOSURE, {"enclosure_color": "pink"}),
        (TaskKind.STANDARD, {"notes": 5}),
        (TaskKind.ADMIN_DELIVERY, {"deliveries": {"equipment": "x"}}),
        (TaskKind.ADMIN_DELIVERY, {"deliveries": ["x"]}),
        (TaskKind.ADMIN_DELIVERY, {"deliveries": [{"equipment": "x", "weight": 3}]}),
    ],
)
def test_invalid_kind_fields(kind, fields):
    with pytest.raises(ValidationError):
        validate_task_fields(kind, fields)


def test_deliveries_normalized():
    out = validate_task_fields(
        TaskKind.ADMIN_DELIVERY,
        {"deliveries": [{"equipment": "SmartFridge", "carrier": "UPS"}]},
    )
    assert out["deliveries"] == [
        {"equipment": "SmartFridge", "date": "", "carrier": "UPS", "tracking": ""}
    ]
