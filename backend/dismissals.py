# Alert dismissals - session-scoped, identifier-keyed suppression of alerts
from __future__ import annotations

import logging
import threading
from typing import Dict, FrozenSet, Iterable, List, Set

from models import Alert

logger = logging.getLogger("patientflow.dismissals")


class DismissalSet:
    """
    Dismissed alert ids for one session.

    Dismissal is keyed by alert id only: it never touches the alert itself or any
    sibling alert, and it holds for as long as the id keeps being produced.
    """

    def __init__(self, alert_ids: Iterable[str] = ()):
        self._ids: Set[str] = set(alert_ids)
        self._lock = threading.Lock()

    def dismiss(self, alert_id: str) -> bool:
        """Idempotent. Returns True only when the id was not already dismissed."""
        with self._lock:
            if alert_id in self._ids:
                return False
            self._ids.add(alert_id)
            return True

    def retain(self, active_ids: Iterable[str]) -> int:
        """Forget dismissals whose alert is no longer produced. Returns how many were dropped."""
        active = set(active_ids)
        with self._lock:
            stale = self._ids - active
            self._ids &= active
        return len(stale)

    def clear(self) -> None:
        self._ids.clear()

    @property
    def ids(self) -> FrozenSet[str]:
        return frozenset(self._ids)

    def __contains__(self, alert_id: object) -> bool:
        return alert_id in self._ids

    def __len__(self) -> int:
        return len(self._ids)


def filter_visible(alerts: Iterable[Alert], dismissed: DismissalSet) -> List[Alert]:
    """Alerts whose id has not been dismissed; the input is left untouched."""
    return [alert for alert in alerts if alert.id not in dismissed]


# In-memory store, one set per session (lost on restart)
_session_dismissals: Dict[str, DismissalSet] = {}


def get_session_dismissals(session_id: str) -> DismissalSet:
    """Dismissal set for a session, created empty on first use."""
    # setdefault is atomic, so concurrent first requests share one set
    return _session_dismissals.setdefault(session_id, DismissalSet())


def dismiss_alert(session_id: str, alert_id: str) -> bool:
    """Dismiss for one session. Unknown ids are accepted silently."""
    newly_dismissed = get_session_dismissals(session_id).dismiss(alert_id)
    if newly_dismissed:
        logger.info("Session %s dismissed alert %s", session_id, alert_id)
    return newly_dismissed


def end_session(session_id: str) -> None:
    """Drop a session's dismissals, as a full page reload would."""
    _session_dismissals.pop(session_id, None)


def reset_dismissals():
    """Reset all sessions (for demo reset and testing)."""
    global _session_dismissals
    _session_dismissals = {}
