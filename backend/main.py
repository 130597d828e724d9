# Backend main entry point - patient-flow dashboard API
import logging

from dotenv import load_dotenv
load_dotenv()  # Load .env so DEMO_MODE=true works for local reviewers
from fastapi import FastAPI, Header, HTTPException
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel
from typing import Any, List, Optional

from config import SETTINGS, is_demo_mode
from dashboard import TriageBoard, render_dashboard, render_waiting, visible_alerts
from dismissals import dismiss_alert, end_session, get_session_dismissals
from models import Appointment, QueueEntry
from seed import seed_data

logging.basicConfig(
    level=SETTINGS.log_level,
    format="%(asctime)s | %(levelname)s | %(name)s | %(message)s",
)
logger = logging.getLogger("patientflow.api")

board = TriageBoard(SETTINGS)

# Demo snapshots only when explicitly enabled
if is_demo_mode():
    seed_data(board)

app = FastAPI(title="Patient Flow Dashboard API")

# Configure CORS - allow local dev and deployed frontend
_allowed_origins = [
    "http://localhost:5173",
    "http://localhost:3000",
]
if SETTINGS.frontend_url:
    _allowed_origins.append(SETTINGS.frontend_url)

app.add_middleware(
    CORSMiddleware,
    allow_origins=_allowed_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# Request models (provider row shapes; timestamps stay strings so bad values are tolerated)
class PatientPayload(BaseModel):
    first_name: Optional[str] = None
    last_name: Optional[str] = None


class ConsultationReasonPayload(BaseModel):
    label: Optional[str] = None


class QueueEntryPayload(BaseModel):
    id: str
    status: str
    patient_id: Optional[str] = None
    patient: Optional[PatientPayload] = None
    arrival_time: Optional[str] = None
    priority: Optional[Any] = None  # non-integers fall back to the default priority
    reason: Optional[str] = None
    consultation_reason: Optional[ConsultationReasonPayload] = None
    created_at: Optional[str] = None
    updated_at: Optional[str] = None


class AppointmentPayload(BaseModel):
    id: str
    title: Optional[str] = None
    start_time: Optional[str] = None
    status: str
    patient_id: Optional[str] = None
    patient: Optional[PatientPayload] = None
    updated_at: Optional[str] = None


@app.get("/")
def read_root():
    return {"message": "Patient Flow Dashboard API"}


@app.get("/health")
def health_check():
    return {"status": "healthy"}


@app.put("/snapshots/queue")
def put_queue_snapshot(entries: List[QueueEntryPayload]):
    """Replace the queue snapshot pushed by the data provider; triggers a recompute."""
    board.publish_queue([QueueEntry.from_record(e.model_dump()) for e in entries])
    return {"received": len(entries)}


@app.put("/snapshots/appointments")
def put_appointment_snapshot(appointments: List[AppointmentPayload]):
    """Replace the appointment snapshot; triggers a recompute."""
    board.publish_appointments([Appointment.from_record(a.model_dump()) for a in appointments])
    return {"received": len(appointments)}


@app.post("/dashboard/refresh")
def refresh_dashboard():
    """Recompute with the current clock (wait times advance without new snapshots otherwise)."""
    view = board.refresh()
    return {"computedAt": view.computed_at.isoformat()}


@app.get("/dashboard")
def get_dashboard(x_session_id: str = Header(default="default")):
    """Main dashboard: waiting preview, visible alerts, urgent count, today's agenda."""
    return render_dashboard(board.view, get_session_dismissals(x_session_id), SETTINGS)


@app.get("/dashboard/waiting")
def get_waiting_list(limit: Optional[int] = None):
    """Full ordered waiting list, or a preview when limit is given."""
    if limit is not None and limit < 0:
        raise HTTPException(status_code=400, detail="limit must be >= 0")
    return render_waiting(board.view, limit)


@app.get("/dashboard/alerts")
def get_alerts(x_session_id: str = Header(default="default")):
    """Alert feed with this session's dismissals applied."""
    alerts = visible_alerts(
        board.view,
        get_session_dismissals(x_session_id),
        SETTINGS.prune_cleared_dismissals,
    )
    return [alert.to_dict() for alert in alerts]


@app.post("/dashboard/alerts/{alert_id}/dismiss")
def dismiss_alert_endpoint(alert_id: str, x_session_id: str = Header(default="default")):
    """Idempotent; unknown ids are accepted as a no-op."""
    newly_dismissed = dismiss_alert(x_session_id, alert_id)
    return {
        "alertId": alert_id,
        "dismissed": True,
        "alreadyDismissed": not newly_dismissed,
    }


@app.delete("/dashboard/dismissals")
def clear_dismissals(x_session_id: str = Header(default="default")):
    """Forget this session's dismissals (what a full reload does)."""
    end_session(x_session_id)
    return {"status": "ok"}


@app.get("/demo/status")
def demo_status():
    """Returns whether demo mode is enabled. Only for frontend visibility gate."""
    return {"demoMode": is_demo_mode()}


@app.post("/demo/reset")
def demo_reset():
    """
    Reset prototype to baseline. Only available when DEMO_MODE=true.
    Restores: demo snapshots (relative to now), clears every session's dismissals.
    """
    if not is_demo_mode():
        raise HTTPException(status_code=404, detail="Demo reset not available")
    queue_count, appointment_count = seed_data(board)
    logger.info("Demo reset: %d queue entries, %d appointments", queue_count, appointment_count)
    return {"status": "ok"}


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8000)
