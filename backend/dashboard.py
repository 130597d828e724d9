# Dashboard view - recompute-on-notify board and per-session rendering
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Callable, Dict, List, Optional

from config import SETTINGS, Settings
from dismissals import DismissalSet, filter_visible
from logic import normalize_queue, synthesize_alerts, today_appointments
from models import SEVERITY_URGENT, Alert, Appointment, QueueEntry, WaitingPatient

logger = logging.getLogger("patientflow.board")

Listener = Callable[["DashboardSnapshot"], None]
Navigate = Callable[[str], None]


@dataclass
class DashboardSnapshot:
    """Derived, disposable view for one recompute pass"""
    computed_at: datetime
    waiting: List[WaitingPatient] = field(default_factory=list)
    alerts: List[Alert] = field(default_factory=list)
    appointments_today: List[Appointment] = field(default_factory=list)


def build_snapshot(
    queue_entries: List[QueueEntry],
    appointments: List[Appointment],
    now: datetime,
    settings: Settings = SETTINGS,
) -> DashboardSnapshot:
    """Queue normalizer -> alert synthesizer, plus today's agenda."""
    waiting = normalize_queue(
        queue_entries,
        now,
        default_priority=settings.default_priority,
        urgent_after=settings.urgent_wait_minutes,
        attention_after=settings.attention_wait_minutes,
    )
    alerts = synthesize_alerts(
        waiting, appointments, queue_entries, now, urgent_after=settings.urgent_wait_minutes
    )
    return DashboardSnapshot(
        computed_at=now,
        waiting=waiting,
        alerts=alerts,
        appointments_today=today_appointments(appointments, now),
    )


class TriageBoard:
    """
    Holds the latest provider snapshots and re-derives the view whenever a new
    snapshot reference is published. Subscribers are notified after each recompute.
    """

    def __init__(self, settings: Settings = SETTINGS, clock: Optional[Callable[[], datetime]] = None):
        self.settings = settings
        self.clock = clock or self._default_clock
        self._queue: List[QueueEntry] = []
        self._appointments: List[Appointment] = []
        self._listeners: List[Listener] = []
        self._view: Optional[DashboardSnapshot] = None

    def _default_clock(self) -> datetime:
        return datetime.now(self.settings.tz())

    @property
    def queue_entries(self) -> List[QueueEntry]:
        return self._queue

    @property
    def appointments(self) -> List[Appointment]:
        return self._appointments

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Register a listener; returns a callable that unregisters it."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def publish_queue(self, entries: List[QueueEntry]) -> bool:
        """Replace the queue snapshot. Re-publishing the same list object is a no-op."""
        if entries is self._queue:
            return False
        self._queue = entries
        logger.info("Queue snapshot received: %d entries", len(entries))
        self.refresh()
        return True

    def publish_appointments(self, appointments: List[Appointment]) -> bool:
        """Replace the appointment snapshot. Same list object -> no-op."""
        if appointments is self._appointments:
            return False
        self._appointments = appointments
        logger.info("Appointment snapshot received: %d appointments", len(appointments))
        self.refresh()
        return True

    def refresh(self) -> DashboardSnapshot:
        """Full recompute with the current clock, then notify subscribers."""
        view = build_snapshot(self._queue, self._appointments, self.clock(), self.settings)
        self._view = view
        logger.debug(
            "Recomputed view: %d waiting, %d alerts", len(view.waiting), len(view.alerts)
        )
        for listener in list(self._listeners):
            listener(view)
        return view

    @property
    def view(self) -> DashboardSnapshot:
        """Last derived view (computed once if nothing was published yet)."""
        if self._view is None:
            return self.refresh()
        return self._view

    def reset(self) -> None:
        """Drop snapshots and cached view; subscribers are kept."""
        self._queue = []
        self._appointments = []
        self._view = None


def visible_alerts(
    view: DashboardSnapshot,
    dismissed: DismissalSet,
    prune_cleared: bool = False,
) -> List[Alert]:
    """Post-dismissal alert feed for one session."""
    if prune_cleared:
        dropped = dismissed.retain(alert.id for alert in view.alerts)
        if dropped:
            logger.debug("Forgot %d dismissal(s) for cleared alerts", dropped)
    return filter_visible(view.alerts, dismissed)


def render_waiting(view: DashboardSnapshot, limit: Optional[int] = None) -> Dict:
    """Ordered waiting list; with a limit, a preview plus the "+N more" count."""
    waiting = view.waiting if limit is None else view.waiting[:limit]
    return {
        "total": len(view.waiting),
        "patients": [p.to_dict() for p in waiting],
        "remainingCount": len(view.waiting) - len(waiting),
    }


def render_dashboard(
    view: DashboardSnapshot,
    dismissed: DismissalSet,
    settings: Settings = SETTINGS,
) -> Dict:
    """Everything the main dashboard screen shows for one session."""
    alerts = visible_alerts(view, dismissed, settings.prune_cleared_dismissals)
    return {
        "computedAt": view.computed_at.isoformat(),
        "waiting": render_waiting(view, settings.waiting_preview_limit),
        "alerts": [alert.to_dict() for alert in alerts],
        "urgentCount": sum(1 for alert in alerts if alert.severity == SEVERITY_URGENT),
        "todayAppointments": [apt.to_dict() for apt in view.appointments_today],
    }


def follow_alert_action(alert: Alert, navigate: Navigate) -> bool:
    """Send the user to the alert's target route, if it has one."""
    if not alert.action_href:
        return False
    navigate(alert.action_href)
    return True
