"""
Tests for dismissals.py - session-scoped, identifier-keyed alert suppression
"""
from concurrent.futures import ThreadPoolExecutor

from conftest import FROZEN_NOW, make_entry
from dashboard import build_snapshot, visible_alerts
from dismissals import (
    DismissalSet,
    dismiss_alert,
    end_session,
    filter_visible,
    get_session_dismissals,
    reset_dismissals,
)


def _alerts_for(queue):
    return build_snapshot(queue, [], FROZEN_NOW).alerts


class TestDismissalSet:
    """DismissalSet behaves as an idempotent id set"""

    def test_dismiss_returns_true_once(self):
        dismissed = DismissalSet()
        assert dismissed.dismiss("wait-X") is True
        assert dismissed.dismiss("wait-X") is False
        assert len(dismissed) == 1
        assert "wait-X" in dismissed

    def test_dismissing_unknown_id_is_harmless(self):
        alerts = _alerts_for([make_entry("X", waited_minutes=40)])
        dismissed = DismissalSet()
        dismissed.dismiss("no-such-alert")
        assert [a.id for a in filter_visible(alerts, dismissed)] == ["wait-X"]

    def test_retain_drops_only_inactive_ids(self):
        dismissed = DismissalSet(["wait-X", "wait-Y"])
        assert dismissed.retain(["wait-X", "cancel-Z"]) == 1
        assert dismissed.ids == frozenset({"wait-X"})

    def test_clear(self):
        dismissed = DismissalSet(["a", "b"])
        dismissed.clear()
        assert len(dismissed) == 0


class TestFilterVisible:

    def test_double_dismiss_same_as_single(self):
        alerts = _alerts_for([make_entry("X", waited_minutes=40), make_entry("Y", waited_minutes=50)])
        once, twice = DismissalSet(), DismissalSet()
        once.dismiss("wait-X")
        twice.dismiss("wait-X")
        twice.dismiss("wait-X")
        assert [a.id for a in filter_visible(alerts, once)] == [a.id for a in filter_visible(alerts, twice)]

    def test_dismissing_one_keeps_siblings(self):
        queue = [
            make_entry("X", waited_minutes=40),
            make_entry("Y", waited_minutes=50),
            make_entry("N", status="no_show", created_minutes_ago=10),
        ]
        alerts = _alerts_for(queue)
        dismissed = DismissalSet()
        dismissed.dismiss("wait-X")
        visible = {a.id for a in filter_visible(alerts, dismissed)}
        assert visible == {"wait-Y", "noshow-N"}

    def test_source_alerts_untouched(self):
        alerts = _alerts_for([make_entry("X", waited_minutes=40)])
        dismissed = DismissalSet(["wait-X"])
        assert filter_visible(alerts, dismissed) == []
        assert [a.id for a in alerts] == ["wait-X"]

    def test_dismissal_survives_recompute_with_same_snapshot(self):
        queue = [make_entry("X", waited_minutes=40), make_entry("Y", waited_minutes=41)]
        dismissed = DismissalSet()
        dismissed.dismiss("wait-X")
        recomputed = _alerts_for(queue)
        assert [a.id for a in filter_visible(recomputed, dismissed)] == ["wait-Y"]

    def test_dismissal_holds_while_wait_keeps_growing(self):
        dismissed = DismissalSet(["wait-X"])
        later = _alerts_for([make_entry("X", waited_minutes=95)])
        assert filter_visible(later, dismissed) == []


class TestPruneCleared:
    """Opt-in mode: dismissals are forgotten once their alert stops firing"""

    def test_default_keeps_dismissal_after_condition_clears(self):
        dismissed = DismissalSet(["wait-X"])
        cleared = build_snapshot([make_entry("X", waited_minutes=10)], [], FROZEN_NOW)
        visible_alerts(cleared, dismissed)
        refired = build_snapshot([make_entry("X", waited_minutes=40)], [], FROZEN_NOW)
        assert visible_alerts(refired, dismissed) == []

    def test_prune_rearms_after_condition_clears(self):
        dismissed = DismissalSet(["wait-X"])
        cleared = build_snapshot([make_entry("X", waited_minutes=10)], [], FROZEN_NOW)
        visible_alerts(cleared, dismissed, prune_cleared=True)
        assert "wait-X" not in dismissed
        refired = build_snapshot([make_entry("X", waited_minutes=40)], [], FROZEN_NOW)
        assert [a.id for a in visible_alerts(refired, dismissed, prune_cleared=True)] == ["wait-X"]


class TestSessionRegistry:

    def test_sessions_are_isolated(self):
        dismiss_alert("alice", "wait-X")
        assert "wait-X" in get_session_dismissals("alice")
        assert "wait-X" not in get_session_dismissals("bob")

    def test_dismiss_alert_reports_first_time_only(self):
        assert dismiss_alert("alice", "wait-X") is True
        assert dismiss_alert("alice", "wait-X") is False

    def test_end_session_forgets(self):
        dismiss_alert("alice", "wait-X")
        end_session("alice")
        assert len(get_session_dismissals("alice")) == 0

    def test_end_unknown_session(self):
        end_session("never-seen")

    def test_reset_dismissals(self):
        dismiss_alert("alice", "wait-X")
        dismiss_alert("bob", "cancel-A")
        reset_dismissals()
        assert len(get_session_dismissals("alice")) == 0
        assert len(get_session_dismissals("bob")) == 0


class TestConcurrentDismissals:
    """Endpoints run in a threadpool; first requests for one session must share a set"""

    def test_parallel_first_dismissals_all_kept(self):
        ids = [f"wait-{i}" for i in range(200)]
        with ThreadPoolExecutor(max_workers=16) as pool:
            results = list(pool.map(lambda alert_id: dismiss_alert("front-desk", alert_id), ids))
        assert all(results)
        assert get_session_dismissals("front-desk").ids == frozenset(ids)

    def test_parallel_same_id_reported_new_once(self):
        with ThreadPoolExecutor(max_workers=16) as pool:
            results = list(pool.map(lambda _: dismiss_alert("front-desk", "wait-X"), range(100)))
        assert results.count(True) == 1
