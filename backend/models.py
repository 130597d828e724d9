# Snapshot records consumed by the triage engine, plus the records it derives
from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Dict, Mapping, Optional

logger = logging.getLogger("patientflow.records")

# Queue statuses owned by the data provider (read-only here)
QUEUE_STATUSES = ("waiting", "called", "in_progress", "done", "no_show", "cancelled")
ACTIVE_QUEUE_STATUSES = ("waiting", "called")

DEFAULT_PRIORITY = 3
NO_WAIT_MINUTES = 0
ATTENTION_WAIT_MINUTES = 15
URGENT_WAIT_MINUTES = 30
WAITING_PREVIEW_LIMIT = 5

# Urgency tiers
TIER_OK = "ok"
TIER_ATTENTION = "attention"
TIER_URGENT = "urgent"

# Alert severities / categories
SEVERITY_URGENT = "urgent"
SEVERITY_WARNING = "warning"
CATEGORY_WAIT_TIME = "wait_time"
CATEGORY_CANCELLATION = "cancellation"
CATEGORY_NO_SHOW = "no_show"

WAIT_ALERT_PREFIX = "wait-"
CANCEL_ALERT_PREFIX = "cancel-"
NO_SHOW_ALERT_PREFIX = "noshow-"

QUEUE_ROUTE = "/file-attente"
AGENDA_ROUTE = "/agenda"


# Fractional seconds of any length (PostgREST drops trailing zeros)
_FRACTION = re.compile(r"\.(\d+)")


def ensure_aware(value: datetime) -> datetime:
    """Naive datetimes are read as UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def parse_timestamp(value: Any) -> Optional[datetime]:
    """
    Parse an ISO-8601 string (trailing 'Z' allowed) or datetime into an aware datetime.
    Naive values are read as UTC. Anything unparseable yields None.
    """
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return ensure_aware(value)
    text = str(value).strip()
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    # fromisoformat before 3.11 only takes 3 or 6 fraction digits
    text = _FRACTION.sub(lambda m: "." + (m.group(1) + "000000")[:6], text, count=1)
    try:
        return ensure_aware(datetime.fromisoformat(text))
    except ValueError:
        logger.debug("Ignoring unparseable timestamp %r", value)
        return None


def parse_priority(value: Any) -> Optional[int]:
    """Priority as int, or None when absent or not a whole number."""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, float) and not value.is_integer():
        logger.debug("Ignoring non-integer priority %r", value)
        return None
    try:
        return int(value)
    except (TypeError, ValueError):
        logger.debug("Ignoring non-integer priority %r", value)
        return None


@dataclass
class PatientRef:
    """Embedded patient name fields (both optional)"""
    first_name: Optional[str] = None
    last_name: Optional[str] = None

    @classmethod
    def from_record(cls, record: Optional[Mapping[str, Any]]) -> Optional[PatientRef]:
        if not record:
            return None
        return cls(first_name=record.get("first_name"), last_name=record.get("last_name"))

    def display_name(self) -> str:
        return f"{self.first_name or ''} {self.last_name or ''}".strip()


@dataclass
class QueueEntry:
    """A patient's presence in the waiting room"""
    id: str
    status: str
    patient_id: Optional[str] = None
    patient: Optional[PatientRef] = None
    arrival_time: Optional[datetime] = None
    priority: Optional[int] = None  # None -> DEFAULT_PRIORITY
    reason: Optional[str] = None
    consultation_reason_label: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @classmethod
    def from_record(cls, record: Mapping[str, Any]) -> QueueEntry:
        """Build from a provider row; tolerant of missing/malformed optional fields."""
        reason_obj = record.get("consultation_reason") or {}
        return cls(
            id=str(record["id"]),
            status=str(record.get("status") or ""),
            patient_id=record.get("patient_id"),
            patient=PatientRef.from_record(record.get("patient")),
            arrival_time=parse_timestamp(record.get("arrival_time")),
            priority=parse_priority(record.get("priority")),
            reason=record.get("reason"),
            consultation_reason_label=reason_obj.get("label"),
            created_at=parse_timestamp(record.get("created_at")),
            updated_at=parse_timestamp(record.get("updated_at")),
        )

    def effective_priority(self, default: int = DEFAULT_PRIORITY) -> int:
        return default if self.priority is None else self.priority

    def patient_name(self) -> str:
        return self.patient.display_name() if self.patient else ""

    def display_reason(self) -> Optional[str]:
        return self.reason or self.consultation_reason_label


@dataclass
class Appointment:
    """A scheduled encounter"""
    id: str
    title: str = ""
    start_time: Optional[datetime] = None
    status: str = ""
    patient_id: Optional[str] = None
    patient: Optional[PatientRef] = None
    updated_at: Optional[datetime] = None

    @classmethod
    def from_record(cls, record: Mapping[str, Any]) -> Appointment:
        return cls(
            id=str(record["id"]),
            title=record.get("title") or "",
            start_time=parse_timestamp(record.get("start_time")),
            status=str(record.get("status") or ""),
            patient_id=record.get("patient_id"),
            patient=PatientRef.from_record(record.get("patient")),
            updated_at=parse_timestamp(record.get("updated_at")),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "title": self.title,
            "startTime": self.start_time.isoformat() if self.start_time else None,
            "status": self.status,
            "patientId": self.patient_id,
            "patientName": self.patient.display_name() if self.patient else None,
        }


@dataclass
class WaitingPatient:
    """Queue entry enriched with elapsed wait and urgency tier (derived, never stored)"""
    entry: QueueEntry
    waiting_minutes: int
    urgency: str  # "ok" | "attention" | "urgent"
    priority: int

    def to_dict(self) -> Dict[str, Any]:
        entry = self.entry
        return {
            "id": entry.id,
            "patientId": entry.patient_id,
            "patientName": entry.patient_name(),
            "status": entry.status,
            "arrivalTime": entry.arrival_time.isoformat() if entry.arrival_time else None,
            "reason": entry.display_reason(),
            "priority": self.priority,
            "waitingMinutes": self.waiting_minutes,
            "urgency": self.urgency,
        }


@dataclass
class Alert:
    """Transient engine-synthesized notice; rebuilt on every recompute"""
    id: str  # e.g. "wait-<queueEntryId>", stable while source + category are unchanged
    severity: str
    category: str
    title: str
    description: str
    timestamp: datetime
    patient_id: Optional[str] = None
    patient_name: Optional[str] = None
    action_label: Optional[str] = None
    action_href: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "type": self.severity,
            "category": self.category,
            "title": self.title,
            "description": self.description,
            "timestamp": self.timestamp.isoformat(),
            "patientId": self.patient_id,
            "patientName": self.patient_name,
            "actionLabel": self.action_label,
            "actionHref": self.action_href,
        }
