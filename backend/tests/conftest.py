"""
Shared pytest fixtures for the patient-flow dashboard tests.
"""
from datetime import datetime, timedelta, timezone

import pytest
from fastapi.testclient import TestClient

from main import app, board
from dismissals import reset_dismissals
from models import Appointment, PatientRef, QueueEntry
from seed import seed_data

# Frozen clock: Tuesday 2026-03-10 14:00 UTC
FROZEN_NOW = datetime(2026, 3, 10, 14, 0, tzinfo=timezone.utc)


def make_entry(
    entry_id: str,
    status: str = "waiting",
    waited_minutes=None,
    priority=None,
    created_minutes_ago: int = 0,
    updated_minutes_ago=None,
    first_name: str = "Test",
    last_name: str = "Patient",
    now: datetime = FROZEN_NOW,
) -> QueueEntry:
    """Queue entry relative to the frozen clock; waited_minutes=None means no arrival time."""
    return QueueEntry(
        id=entry_id,
        status=status,
        patient_id=f"patient-{entry_id}",
        patient=PatientRef(first_name, last_name),
        arrival_time=None if waited_minutes is None else now - timedelta(minutes=waited_minutes),
        priority=priority,
        created_at=now - timedelta(minutes=created_minutes_ago),
        updated_at=None if updated_minutes_ago is None else now - timedelta(minutes=updated_minutes_ago),
    )


def make_appointment(
    appointment_id: str,
    start_time: datetime,
    status: str = "scheduled",
    title: str = "Consultation",
    updated_at=None,
) -> Appointment:
    return Appointment(
        id=appointment_id,
        title=title,
        start_time=start_time,
        status=status,
        patient_id=f"patient-{appointment_id}",
        updated_at=updated_at,
    )


@pytest.fixture(autouse=True)
def reset_board():
    """Empty board on the frozen clock, no dismissals, before and after each test."""
    original_clock = board.clock
    board.clock = lambda: FROZEN_NOW
    board.reset()
    reset_dismissals()
    yield board
    board.reset()
    reset_dismissals()
    board.clock = original_clock


@pytest.fixture
def client():
    """FastAPI TestClient."""
    return TestClient(app)


@pytest.fixture
def seeded_board():
    """
    Demo snapshots at the frozen clock:
    q1 waiting 40 min (urgent), q2 priority 5 waiting 20 min, q3 called 5 min,
    q4 no arrival, q5 no-show today, q6 no-show yesterday, q7 done;
    a1 cancelled today 09:00, a2 cancelled tomorrow, a3/a4 live today.
    """
    seed_data(board, FROZEN_NOW)
    return board
