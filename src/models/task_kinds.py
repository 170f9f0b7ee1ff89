# Rev 1.0.0
"""Task kinds and the label tag protocol.

Labels carry their kind as a leading tag followed by one space, e.g.
``"[PM-TEXT] Parking instructions"``. The tag is parsed once when a row is
loaded (see ``parse_label``); everything downstream reads ``Task.kind``.
"""
from __future__ import annotations

import re
from enum import Enum
from typing import Dict, FrozenSet, Optional, Tuple


class TaskKind(str, Enum):
    STANDARD = "standard"
    PM_CHECKBOX = "pm_checkbox"
    PM_TEXT = "pm_text"
    PM_DATE = "pm_date"
    ADMIN_DATE = "admin_date"
    ADMIN_SPEED = "admin_speed"
    ADMIN_ENCLOSURE = "admin_enclosure"
    ADMIN_EQUIPMENT = "admin_equipment"
    ADMIN_DELIVERY = "admin_delivery"
    ADMIN_DOC = "admin_doc"
    # [ADMIN-*] tag we do not have a payload for
    ADMIN_OTHER = "admin_other"


TAGS: Dict[str, TaskKind] = {
    "[PM]": TaskKind.PM_CHECKBOX,
    "[PM-TEXT]": TaskKind.PM_TEXT,
    "[PM-DATE]": TaskKind.PM_DATE,
    "[ADMIN-DATE]": TaskKind.ADMIN_DATE,
    "[ADMIN-SPEED]": TaskKind.ADMIN_SPEED,
    "[ADMIN-ENCLOSURE]": TaskKind.ADMIN_ENCLOSURE,
    "[ADMIN-EQUIPMENT]": TaskKind.ADMIN_EQUIPMENT,
    "[ADMIN-DELIVERY]": TaskKind.ADMIN_DELIVERY,
    "[ADMIN-DOC]": TaskKind.ADMIN_DOC,
}

_TAG_FOR_KIND = {kind: tag for tag, kind in TAGS.items()}

# One leading tag and the single space after it.
_LEADING_TAG = re.compile(r"^(\[(?:PM|PM-TEXT|PM-DATE|ADMIN-[A-Z0-9_-]+)\]) ")

# Auxiliary columns owned by each kind. completed/notes are common to all.
COMMON_FIELDS: FrozenSet[str] = frozenset({"completed", "notes"})

KIND_FIELDS: Dict[TaskKind, FrozenSet[str]] = {
    TaskKind.STANDARD: frozenset(),
    TaskKind.PM_CHECKBOX: frozenset(),
    TaskKind.PM_TEXT: frozenset({"pm_text_value", "pm_text_response"}),
    TaskKind.PM_DATE: frozenset({"scheduled_date"}),
    TaskKind.ADMIN_DATE: frozenset({"scheduled_date"}),
    TaskKind.ADMIN_SPEED: frozenset({"upload_speed", "download_speed"}),
    TaskKind.ADMIN_ENCLOSURE: frozenset({"enclosure_type", "enclosure_color", "custom_color_name"}),
    TaskKind.ADMIN_EQUIPMENT: frozenset({"smartfridge_qty", "smartcooker_qty"}),
    TaskKind.ADMIN_DELIVERY: frozenset({"deliveries"}),
    TaskKind.ADMIN_DOC: frozenset({"document_url"}),
    TaskKind.ADMIN_OTHER: frozenset(),
}

AUXILIARY_FIELDS: FrozenSet[str] = frozenset().union(*KIND_FIELDS.values())


def parse_label(label: str) -> Tuple[TaskKind, str]:
    """Split a stored label into (kind, title without tag)."""
    m = _LEADING_TAG.match(label or "")
    if not m:
        return TaskKind.STANDARD, label or ""
    tag = m.group(1)
    kind = TAGS.get(tag, TaskKind.ADMIN_OTHER)
    return kind, label[m.end():]


def strip_kind_tag(label: str) -> str:
    """Drop exactly one leading recognized tag and its trailing space."""
    return parse_label(label)[1]


def tag_for(kind: TaskKind) -> Optional[str]:
    return _TAG_FOR_KIND.get(kind)


def make_label(kind: TaskKind, title: str) -> str:
    tag = tag_for(kind)
    return f"{tag} {title}" if tag else title


def writable_fields(kind: TaskKind) -> FrozenSet[str]:
    return COMMON_FIELDS | KIND_FIELDS[kind]
