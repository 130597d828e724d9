# Seed data - demo waiting room and agenda, relative to "now"
from datetime import datetime, timedelta
from typing import List, Optional, Tuple

from dashboard import TriageBoard
from dismissals import reset_dismissals
from models import Appointment, PatientRef, QueueEntry, ensure_aware


def demo_queue(now: datetime) -> List[QueueEntry]:
    """
    Demo waiting room:
    - q1 Marie Curie: waiting 40 min, priority 3 -> urgent + wait alert
    - q2 Louis Pasteur: waiting 20 min, priority 5 -> attention, listed first
    - q3 Claude Bernard: called 5 min ago, no priority -> ok
    - q4 Simone Veil: waiting, no arrival time -> 0 min, ok
    - q5 Paul Broca: no-show created today -> no-show alert
    - q6 Rene Laennec: no-show created yesterday -> ignored
    - q7 Jean Martin: done -> not listed
    """
    return [
        QueueEntry(
            id="q1", status="waiting", patient_id="p1",
            patient=PatientRef("Marie", "Curie"),
            arrival_time=now - timedelta(minutes=40), priority=3,
            reason="Douleur thoracique",
            created_at=now - timedelta(minutes=40),
        ),
        QueueEntry(
            id="q2", status="waiting", patient_id="p2",
            patient=PatientRef("Louis", "Pasteur"),
            arrival_time=now - timedelta(minutes=20), priority=5,
            consultation_reason_label="Renouvellement",
            created_at=now - timedelta(minutes=20),
        ),
        QueueEntry(
            id="q3", status="called", patient_id="p3",
            patient=PatientRef("Claude", "Bernard"),
            arrival_time=now - timedelta(minutes=5),
            created_at=now - timedelta(minutes=5),
        ),
        QueueEntry(
            id="q4", status="waiting", patient_id="p4",
            patient=PatientRef("Simone", "Veil"),
            created_at=now,
        ),
        QueueEntry(
            id="q5", status="no_show", patient_id="p5",
            patient=PatientRef("Paul", "Broca"),
            created_at=now - timedelta(minutes=90),
            updated_at=now - timedelta(minutes=10),
        ),
        QueueEntry(
            id="q6", status="no_show", patient_id="p6",
            patient=PatientRef("Rene", "Laennec"),
            created_at=now - timedelta(days=1),
        ),
        QueueEntry(
            id="q7", status="done", patient_id="p7",
            patient=PatientRef("Jean", "Martin"),
            arrival_time=now - timedelta(minutes=60),
            created_at=now - timedelta(minutes=60),
        ),
    ]


def demo_appointments(now: datetime) -> List[Appointment]:
    """One cancellation today at 09:00, one tomorrow (ignored), two live ones today."""
    def today_at(hour: int) -> datetime:
        return now.replace(hour=hour, minute=0, second=0, microsecond=0)

    return [
        Appointment(
            id="a1", title="Consultation de suivi", start_time=today_at(9),
            status="cancelled", patient_id="p8",
            patient=PatientRef("Ada", "Lovelace"),
            updated_at=today_at(8),
        ),
        Appointment(
            id="a2", title="Bilan annuel", start_time=today_at(9) + timedelta(days=1),
            status="cancelled", patient_id="p9",
        ),
        Appointment(
            id="a3", title="Vaccination", start_time=today_at(16),
            status="scheduled", patient_id="p2",
            patient=PatientRef("Louis", "Pasteur"),
        ),
        Appointment(
            id="a4", title="Première consultation", start_time=today_at(11),
            status="confirmed", patient_id="p1",
            patient=PatientRef("Marie", "Curie"),
        ),
    ]


def seed_data(board: TriageBoard, now: Optional[datetime] = None) -> Tuple[int, int]:
    """Publish demo snapshots to the board and clear every session's dismissals."""
    now = ensure_aware(now or board.clock())
    queue = demo_queue(now)
    appointments = demo_appointments(now)
    reset_dismissals()
    board.publish_queue(queue)
    board.publish_appointments(appointments)
    return len(queue), len(appointments)
