# Rev 1.0.0
"""Entities for the project → phase → task hierarchy.

Rows come out of the repositories as dicts; ``from_row`` turns them into these
dataclasses. Task labels are parsed into ``kind``/``title`` and a kind payload
here, once, so nothing downstream re-reads the tag.
"""
from __future__ import annotations

import json
from dataclasses import asdict, dataclass, field
from typing import Any, Dict, List, Mapping, Optional, Union

from .task_kinds import TaskKind, parse_label
from .types import ActivityAction, ActorType, PhaseStatus, ProjectStatus


@dataclass
class Project:
    id: int
    name: str = ""
    status: ProjectStatus = "planning"
    overall_progress: int = 0
    revision: int = 0

    @classmethod
    def from_row(cls, row: Mapping[str, Any]) -> "Project":
        return cls(
            id=int(row["id"]),
            name=row.get("name") or "",
            status=row.get("status") or "planning",
            overall_progress=int(row.get("overall_progress") or 0),
            revision=int(row.get("revision") or 0),
        )


@dataclass
class Phase:
    id: int
    project_id: int
    phase_number: int = 1
    title: str = ""
    status: PhaseStatus = "not_started"
    revision: int = 0

    @classmethod
    def from_row(cls, row: Mapping[str, Any]) -> "Phase":
        return cls(
            id=int(row["id"]),
            project_id=int(row["project_id"]),
            phase_number=int(row.get("phase_number") or 0),
            title=row.get("title") or "",
            status=row.get("status") or "not_started",
            revision=int(row.get("revision") or 0),
        )


# --- kind payloads -----------------------------------------------------------

@dataclass
class DeliveryRecord:
    equipment: str = ""
    date: str = ""
    carrier: str = ""
    tracking: str = ""

    @classmethod
    def from_mapping(cls, m: Mapping[str, Any]) -> "DeliveryRecord":
        return cls(
            equipment=str(m.get("equipment") or ""),
            date=str(m.get("date") or ""),
            carrier=str(m.get("carrier") or ""),
            tracking=str(m.get("tracking") or ""),
        )


@dataclass
class DatePayload:
    scheduled_date: Optional[str] = None


@dataclass
class TextPayload:
    pm_text_value: Optional[str] = None
    pm_text_response: Optional[str] = None


@dataclass
class SpeedTestPayload:
    upload_speed: Optional[str] = None
    download_speed: Optional[str] = None

    BELOW_MIN_MBPS = 10.0

    def below_minimum(self) -> bool:
        for v in (self.upload_speed, self.download_speed):
            if v not in (None, "") and float(v) < self.BELOW_MIN_MBPS:
                return True
        return False


@dataclass
class EnclosurePayload:
    enclosure_type: Optional[str] = None
    enclosure_color: Optional[str] = None
    custom_color_name: Optional[str] = None


@dataclass
class EquipmentQtyPayload:
    smartfridge_qty: Optional[int] = None
    smartcooker_qty: Optional[int] = None


@dataclass
class DeliveryPayload:
    deliveries: List[DeliveryRecord] = field(default_factory=list)


@dataclass
class DocumentPayload:
    document_url: Optional[str] = None


TaskPayload = Union[
    DatePayload, TextPayload, SpeedTestPayload, EnclosurePayload,
    EquipmentQtyPayload, DeliveryPayload, DocumentPayload,
]


def decode_deliveries(raw: Any) -> List[DeliveryRecord]:
    if raw in (None, ""):
        return []
    items = json.loads(raw) if isinstance(raw, str) else raw
    if not isinstance(items, list) or not all(isinstance(d, Mapping) for d in items):
        raise ValueError(f"deliveries is not a list of objects: {raw!r}")
    return [DeliveryRecord.from_mapping(d) for d in items]


def _payload_for(kind: TaskKind, row: Mapping[str, Any]) -> Optional[TaskPayload]:
    g = row.get
    if kind in (TaskKind.PM_DATE, TaskKind.ADMIN_DATE):
        return DatePayload(g("scheduled_date"))
    if kind is TaskKind.PM_TEXT:
        return TextPayload(g("pm_text_value"), g("pm_text_response"))
    if kind is TaskKind.ADMIN_SPEED:
        return SpeedTestPayload(g("upload_speed"), g("download_speed"))
    if kind is TaskKind.ADMIN_ENCLOSURE:
        return EnclosurePayload(g("enclosure_type"), g("enclosure_color"), g("custom_color_name"))
    if kind is TaskKind.ADMIN_EQUIPMENT:
        return EquipmentQtyPayload(g("smartfridge_qty"), g("smartcooker_qty"))
    if kind is TaskKind.ADMIN_DELIVERY:
        return DeliveryPayload(decode_deliveries(g("deliveries")))
    if kind is TaskKind.ADMIN_DOC:
        return DocumentPayload(g("document_url"))
    return None


@dataclass
class Task:
    id: int
    phase_id: int
    label: str
    completed: bool = False
    sort_order: int = 0
    kind: TaskKind = TaskKind.STANDARD
    title: str = ""
    payload: Optional[TaskPayload] = None
    notes: Optional[str] = None

    @classmethod
    def from_row(cls, row: Mapping[str, Any]) -> "Task":
        label = row.get("label") or ""
        kind, title = parse_label(label)
        return cls(
            id=int(row["id"]),
            phase_id=int(row["phase_id"]),
            label=label,
            completed=bool(row.get("completed")),
            sort_order=int(row.get("sort_order") or 0),
            kind=kind,
            title=title,
            payload=_payload_for(kind, row),
            notes=row.get("notes"),
        )

    def to_dict(self) -> Dict[str, Any]:
        d = asdict(self)
        d["kind"] = self.kind.value
        return d


@dataclass
class ActivityLogEntry:
    project_id: int
    action: ActivityAction
    description: str
    actor_type: ActorType
    task_id: Optional[int] = None
    phase_id: Optional[int] = None
    id: Optional[int] = None
    created_at_utc: Optional[str] = None

    @classmethod
    def from_row(cls, row: Mapping[str, Any]) -> "ActivityLogEntry":
        return cls(
            id=row.get("id"),
            project_id=int(row["project_id"]),
            phase_id=row.get("phase_id"),
            task_id=row.get("task_id"),
            action=row["action"],
            description=row["description"],
            actor_type=row["actor_type"],
            created_at_utc=row.get("created_at_utc"),
        )
