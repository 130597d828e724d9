# Business logic - patient-flow triage and alert synthesis (pure functions of snapshots)
from __future__ import annotations

import math
from datetime import datetime
from typing import Iterable, List, Optional

from models import (
    ACTIVE_QUEUE_STATUSES,
    AGENDA_ROUTE,
    ATTENTION_WAIT_MINUTES,
    CANCEL_ALERT_PREFIX,
    CATEGORY_CANCELLATION,
    CATEGORY_NO_SHOW,
    CATEGORY_WAIT_TIME,
    DEFAULT_PRIORITY,
    NO_SHOW_ALERT_PREFIX,
    NO_WAIT_MINUTES,
    QUEUE_ROUTE,
    SEVERITY_URGENT,
    SEVERITY_WARNING,
    TIER_ATTENTION,
    TIER_OK,
    TIER_URGENT,
    URGENT_WAIT_MINUTES,
    WAIT_ALERT_PREFIX,
    Alert,
    Appointment,
    PatientRef,
    QueueEntry,
    WaitingPatient,
    ensure_aware,
)


def _patient_name(patient: Optional[PatientRef]) -> Optional[str]:
    return patient.display_name() if patient else None


def is_same_day(timestamp: Optional[datetime], now: datetime) -> bool:
    """Calendar-date equality, evaluated in now's time zone"""
    if timestamp is None:
        return False
    now = ensure_aware(now)
    return ensure_aware(timestamp).astimezone(now.tzinfo).date() == now.date()


# =============================================================================
# Queue normalizer
# =============================================================================

def compute_waiting_minutes(arrival_time: Optional[datetime], now: datetime) -> int:
    """Whole elapsed minutes since arrival, floored; NO_WAIT_MINUTES without arrival."""
    if arrival_time is None:
        return NO_WAIT_MINUTES
    elapsed = ensure_aware(now) - ensure_aware(arrival_time)
    return math.floor(elapsed.total_seconds() / 60)


def classify_urgency(
    waiting_minutes: int,
    urgent_after: int = URGENT_WAIT_MINUTES,
    attention_after: int = ATTENTION_WAIT_MINUTES,
) -> str:
    """Strictly-greater thresholds: 30 -> attention, 31 -> urgent; 15 -> ok, 16 -> attention"""
    if waiting_minutes > urgent_after:
        return TIER_URGENT
    elif waiting_minutes > attention_after:
        return TIER_ATTENTION
    return TIER_OK


def normalize_queue(
    entries: Iterable[QueueEntry],
    now: datetime,
    default_priority: int = DEFAULT_PRIORITY,
    urgent_after: int = URGENT_WAIT_MINUTES,
    attention_after: int = ATTENTION_WAIT_MINUTES,
) -> List[WaitingPatient]:
    """
    Active (waiting/called) entries, enriched and ordered:
    priority descending, then waiting minutes ascending.
    """
    now = ensure_aware(now)
    waiting: List[WaitingPatient] = []
    for entry in entries:
        if entry.status not in ACTIVE_QUEUE_STATUSES:
            continue
        minutes = compute_waiting_minutes(entry.arrival_time, now)
        waiting.append(WaitingPatient(
            entry=entry,
            waiting_minutes=minutes,
            urgency=classify_urgency(minutes, urgent_after, attention_after),
            priority=entry.effective_priority(default_priority),
        ))

    # Shorter waits first among equal priority (kept as the dashboard has always shown it)
    waiting.sort(key=lambda p: (-p.priority, p.waiting_minutes))
    return waiting


def today_appointments(appointments: Iterable[Appointment], now: datetime) -> List[Appointment]:
    """Today's non-cancelled appointments, earliest first"""
    now = ensure_aware(now)
    todays = [
        apt for apt in appointments
        if apt.status != "cancelled" and is_same_day(apt.start_time, now)
    ]
    return sorted(todays, key=lambda apt: ensure_aware(apt.start_time))


# =============================================================================
# Alert synthesizer
# =============================================================================

def wait_time_alerts(
    waiting: Iterable[WaitingPatient],
    now: datetime,
    urgent_after: int = URGENT_WAIT_MINUTES,
) -> List[Alert]:
    now = ensure_aware(now)
    alerts = []
    for patient in waiting:
        if patient.waiting_minutes <= urgent_after:
            continue
        entry = patient.entry
        alerts.append(Alert(
            id=f"{WAIT_ALERT_PREFIX}{entry.id}",
            severity=SEVERITY_URGENT,
            category=CATEGORY_WAIT_TIME,
            title="Attente prolongée",
            description=f"{patient.waiting_minutes} min d'attente",
            timestamp=entry.arrival_time or now,
            patient_id=entry.patient_id,
            patient_name=_patient_name(entry.patient),
            action_label="Voir file",
            action_href=QUEUE_ROUTE,
        ))
    return alerts


def cancellation_alerts(appointments: Iterable[Appointment], now: datetime) -> List[Alert]:
    now = ensure_aware(now)
    alerts = []
    for apt in appointments:
        if apt.status != "cancelled" or not is_same_day(apt.start_time, now):
            continue
        start_local = ensure_aware(apt.start_time).astimezone(now.tzinfo)
        alerts.append(Alert(
            id=f"{CANCEL_ALERT_PREFIX}{apt.id}",
            severity=SEVERITY_WARNING,
            category=CATEGORY_CANCELLATION,
            title="RDV annulé",
            description=f"{start_local:%H:%M} - {apt.title}",
            timestamp=apt.updated_at or apt.start_time,
            patient_id=apt.patient_id,
            patient_name=_patient_name(apt.patient),
            action_label="Voir agenda",
            action_href=AGENDA_ROUTE,
        ))
    return alerts


def no_show_alerts(queue_entries: Iterable[QueueEntry], now: datetime) -> List[Alert]:
    """Scans the unfiltered queue snapshot, not the waiting list"""
    alerts = []
    for entry in queue_entries:
        if entry.status != "no_show" or not is_same_day(entry.created_at, now):
            continue
        alerts.append(Alert(
            id=f"{NO_SHOW_ALERT_PREFIX}{entry.id}",
            severity=SEVERITY_WARNING,
            category=CATEGORY_NO_SHOW,
            title="Patient absent",
            description="Non présenté au rendez-vous",
            timestamp=entry.updated_at or entry.created_at,
            patient_id=entry.patient_id,
            patient_name=_patient_name(entry.patient),
        ))
    return alerts


def synthesize_alerts(
    waiting: List[WaitingPatient],
    appointments: List[Appointment],
    queue_entries: List[QueueEntry],
    now: datetime,
    urgent_after: int = URGENT_WAIT_MINUTES,
) -> List[Alert]:
    """
    Full alert feed for one recompute pass: wait-time, then cancellations, then no-shows.
    Order is not part of the contract.
    """
    now = ensure_aware(now)
    return (
        wait_time_alerts(waiting, now, urgent_after)
        + cancellation_alerts(appointments, now)
        + no_show_alerts(queue_entries, now)
    )
