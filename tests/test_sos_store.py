"""
Tests for the in-memory SOS store and news feed.
"""
import re
import threading
from datetime import datetime, timedelta, timezone

import pandas as pd

from triage.dispatch import submit_sos
from triage.sos_store import ETA_MAX_SECONDS, ETA_MIN_SECONDS, SOSStore


def _submit(store, make_form, description, name="Asha Rao"):
    return submit_sos(store, make_form(description=description, name=name))


class TestRequests:
    def test_add_request_is_pending_with_dated_id(self, store, make_form):
        req = _submit(store, make_form, "need some assistance")
        assert req.status == "pending"
        assert re.fullmatch(r"sos_\d{8}_0001", req.sos_id)
        assert req.created_at.endswith("Z")

    def test_generate_sos_id_shares_counter(self, store, make_form):
        today = datetime.now(timezone.utc).strftime("%Y%m%d")
        assert store.generate_sos_id() == f"sos_{today}_0001"
        assert _submit(store, make_form, "hungry").sos_id.endswith("_0002")

    def test_round_trip_keeps_scores(self, store, make_form):
        req = _submit(store, make_form, "child trapped under debris, bleeding heavily, please help now")
        stored = store.get_request(req.sos_id)
        assert stored.severity == req.severity
        assert stored.priority == req.priority
        assert stored.reason_explanation == req.reason_explanation

    def test_get_request_missing(self, store):
        assert store.get_request("sos_19700101_9999") is None

    def test_sorted_by_priority_then_newest(self, store, make_form):
        low = _submit(store, make_form, "need some assistance", name="first")
        high = _submit(store, make_form, "unconscious after fire and gas leak", name="high")
        low_again = _submit(store, make_form, "need some assistance", name="second")
        assert [r.sos_id for r in store.get_requests()] == [high.sos_id, low_again.sos_id, low.sos_id]

    def test_filter_by_category(self, store, make_form):
        _submit(store, make_form, "trapped under rubble")
        food = _submit(store, make_form, "hungry, no food or water")
        assert [r.sos_id for r in store.get_requests("Food")] == [food.sos_id]
        assert store.get_requests("Shelter") == []

    def test_accept_first_wins(self, store, make_form):
        req = _submit(store, make_form, "trapped under rubble")
        first = store.accept_request(req.sos_id, "rescuer_a")
        second = store.accept_request(req.sos_id, "rescuer_b")
        assert first.ok and not second.ok
        assert first.rescue_session_id.startswith("rs_")
        assert ETA_MIN_SECONDS <= first.eta_seconds <= ETA_MAX_SECONDS
        stored = store.get_request(req.sos_id)
        assert stored.status == "accepted"
        assert stored.rescuer_id == "rescuer_a"
        assert store.get_pending_requests() == []

    def test_accept_race_has_one_winner(self, store, make_form):
        req = _submit(store, make_form, "trapped under rubble")
        results = []

        def accept(rescuer):
            results.append(store.accept_request(req.sos_id, rescuer))

        threads = [threading.Thread(target=accept, args=(f"r{i}",)) for i in range(8)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()
        assert sum(r.ok for r in results) == 1

    def test_count_by_status_includes_in_progress(self, store, make_form):
        a = _submit(store, make_form, "trapped under rubble")
        b = _submit(store, make_form, "stuck under debris")
        _submit(store, make_form, "hungry")
        store.accept_request(a.sos_id, "rescuer_a")
        store.resolve_request(b.sos_id)
        assert store.count_by_status() == {"pending": 1, "accepted": 1, "resolved": 1, "total": 3}
        trapped = store.count_by_status("Trapped")
        assert trapped["total"] == 2
        assert trapped["pending"] == 0

    def test_accept_missing(self, store):
        assert store.accept_request("nope", "rescuer_a").ok is False

    def test_resolve(self, store, make_form):
        a = _submit(store, make_form, "trapped under rubble")
        b = _submit(store, make_form, "hungry")
        assert store.resolve_request(a.sos_id)
        assert store.resolve_request(b.sos_id)
        assert not store.resolve_request("nope")
        assert [r.sos_id for r in store.get_resolved_requests()] == [b.sos_id, a.sos_id]
        assert store.accept_request(a.sos_id, "rescuer_a").ok is False

    def test_reset_restarts_numbering(self, store, make_form):
        _submit(store, make_form, "hungry")
        store.reset()
        assert store.get_requests() == []
        assert _submit(store, make_form, "hungry").sos_id.endswith("_0001")

    def test_clear_all_keeps_numbering(self, store, make_form):
        _submit(store, make_form, "hungry")
        store.clear_all()
        assert store.get_requests() == []
        assert _submit(store, make_form, "hungry").sos_id.endswith("_0002")

    def test_search(self, store, make_form):
        a = _submit(store, make_form, "hungry", name="Ravi Kumar")
        b = _submit(store, make_form, "roof gone", name="Meena")
        reqs = store.get_requests()
        assert [r.sos_id for r in store.search(reqs, "ravi")] == [a.sos_id]
        assert [r.sos_id for r in store.search(reqs, "ROOF")] == [b.sos_id]
        assert len(store.search(reqs, "9876543210")) == 2
        assert len(store.search(reqs, "")) == 2

    def test_to_frame(self, store, make_form):
        _submit(store, make_form, "hungry")
        df = store.to_frame(store.get_requests())
        assert isinstance(df, pd.DataFrame)
        assert list(df.columns) == ["sos_id", "name", "age", "category", "score", "tag", "status", "created_at"]
        assert len(df) == 1
        assert store.to_frame([]).empty


class TestNewsFeed:
    def test_sample_news_seeded_once(self, store):
        store.initialize_sample_news()
        store.initialize_sample_news()
        items = store.get_news_items()
        assert len(items) == 4
        assert all(i.id.startswith("news_") for i in items)

    def test_newest_first_and_capped(self):
        s = SOSStore(news_max_items=3)
        for n in range(5):
            s.add_news_item(f"t{n}", "s", "2026-01-01T00:00:00Z", "src")
        assert [i.title for i in s.get_news_items()] == ["t4", "t3", "t2"]
        s.close()

    def test_since_filter(self, store):
        now = datetime.now(timezone.utc)
        old = (now - timedelta(hours=2)).isoformat()
        new = (now - timedelta(minutes=1)).isoformat()
        store.add_news_item("old", "s", old, "src")
        store.add_news_item("new", "s", new, "src")
        since = (now - timedelta(hours=1)).isoformat()
        assert [i.title for i in store.get_news_items(since)] == ["new"]
