"""HTTP-level tests: status codes and response shapes of the /api/v1 routes."""

import sys
import os
sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

import pytest
from fastapi.testclient import TestClient
from app.database import get_db
from app.main import app
from app.services.recall_tracker import recall_tracker

API = "/api/v1"


@pytest.fixture
def client(session_factory):
    def override_get_db():
        db = session_factory()
        try:
            yield db
        finally:
            db.close()

    app.dependency_overrides[get_db] = override_get_db
    recall_tracker.clear()
    # No context manager: startup (migration, reset timer) stays off the real database
    yield TestClient(app)
    app.dependency_overrides.clear()
    recall_tracker.clear()


def draw(client, service):
    return client.post(f"{API}/tickets", json={"service": service})


class TestTicketsAndCalls:
    def test_draw_returns_display_number(self, client):
        resp = draw(client, "Văn thư")
        assert resp.status_code == 200
        assert resp.json() == {"service": "Văn thư", "counter_prefix": "2",
                               "raw_sequence": 1, "display_number": 2001}

    def test_unknown_service_is_400(self, client):
        resp = draw(client, "Phòng cũ")
        assert resp.status_code == 400
        assert "Phòng cũ" in resp.json()["detail"]

    def test_call_next_then_empty_queue(self, client):
        draw(client, "Đất đai")
        resp = client.post(f"{API}/calls/next", json={"service": "Đất đai"})
        assert resp.status_code == 200
        body = resp.json()
        assert body["display_number"] == 3001
        assert body["waiting_count"] == 0
        assert body["is_recall"] is False
        assert body["message"] == "Now calling number 3001 at counter 3"

        resp = client.post(f"{API}/calls/next", json={"service": "Đất đai"})
        assert resp.status_code == 404

    def test_recall(self, client):
        assert client.post(f"{API}/calls/recall", json={"service": "Văn thư"}).status_code == 404

        draw(client, "Văn thư")
        draw(client, "Văn thư")
        client.post(f"{API}/calls/next", json={"service": "Văn thư"})
        resp = client.post(f"{API}/calls/recall", json={"service": "Văn thư"})
        assert resp.status_code == 200
        assert resp.json()["display_number"] == 2001
        assert resp.json()["is_recall"] is True

        latest = client.get(f"{API}/calls/latest").json()
        assert latest["Văn thư"]["number"] == 2001
        assert latest["Văn thư"]["is_recall"] is True
        assert latest["Đất đai"] is None

    def test_missing_service_field_is_422(self, client):
        assert client.post(f"{API}/tickets", json={}).status_code == 422


class TestQueueStatus:
    def test_status_for_all_and_one_service(self, client):
        draw(client, "Chứng thực - Hộ tịch")
        draw(client, "Chứng thực - Hộ tịch")
        client.post(f"{API}/calls/next", json={"service": "Chứng thực - Hộ tịch"})

        everything = client.get(f"{API}/queue/status").json()
        assert len(everything) == 4
        assert everything["Chứng thực - Hộ tịch"] == {"counter_prefix": "1", "waiting": 1,
                                                     "last_called": 1001, "issued": 2, "called": 1}

        one = client.get(f"{API}/queue/status", params={"service": "Văn thư"}).json()
        assert list(one) == ["Văn thư"]
        assert one["Văn thư"]["last_called"] is None

    def test_services_listing(self, client):
        resp = client.get(f"{API}/services")
        assert resp.status_code == 200
        assert [s["counter_prefix"] for s in resp.json()] == ["1", "2", "3", "4"]


class TestAdmin:
    def test_reset_zeroes_counters_but_keeps_history(self, client):
        draw(client, "Văn thư")
        client.post(f"{API}/calls/next", json={"service": "Văn thư"})

        resp = client.post(f"{API}/admin/reset")
        assert resp.status_code == 200
        assert resp.json()["status"] == "reset"
        assert draw(client, "Văn thư").json()["raw_sequence"] == 1
        assert len(client.get(f"{API}/history").json()) == 1

    def test_wipe_requires_confirmation(self, client):
        draw(client, "Văn thư")
        assert client.post(f"{API}/admin/wipe", json={}).status_code == 400
        assert client.post(f"{API}/admin/wipe", json={"confirm": "yes"}).status_code == 400

        resp = client.post(f"{API}/admin/wipe", json={"confirm": "YES"})
        assert resp.status_code == 200
        assert resp.json() == {"status": "wiped", "deleted": 1, "created": 4}
        assert client.get(f"{API}/queue/status").json()["Văn thư"]["issued"] == 0


class TestHistoryAndRatings:
    def test_history_filter_and_limit(self, client):
        for service in ("Văn thư", "Đất đai"):
            draw(client, service)
            client.post(f"{API}/calls/next", json={"service": service})
        client.post(f"{API}/calls/recall", json={"service": "Văn thư"})

        rows = client.get(f"{API}/history", params={"service": "Văn thư"}).json()
        assert [r["is_recall"] for r in rows] == [True, False]
        assert len(client.get(f"{API}/history", params={"limit": 1}).json()) == 1

    def test_rating_roundtrip_into_report(self, client):
        resp = client.post(f"{API}/ratings", json={"service": "Văn thư", "overall": 5})
        assert resp.status_code == 200
        body = resp.json()
        assert (body["service"], body["overall"], body["service_rating"]) == ("Văn thư", 5, None)
        assert body["id"] >= 1

        bad = client.post(f"{API}/ratings", json={"service": "Văn thư", "overall": 4,
                                                  "time_rating": 2})
        assert bad.status_code == 422

        report = client.get(f"{API}/ratings/report").json()
        assert report["total"] == 1
        assert report["services"]["Văn thư"]["distribution"]["star5"] == 1


class TestHealth:
    def test_health_ok(self, client):
        body = client.get(f"{API}/health").json()
        assert body["status"] == "ok"
        assert body["database"] == "ok"
        assert body["timezone"] == "Asia/Ho_Chi_Minh"
