import pytest
from fastapi.testclient import TestClient

from cardwise.application.session_manager import SessionManager
from cardwise.application.stats import StudyStatsService
from cardwise.consts import VERSION
from cardwise.server import app, get_manager, get_stats


@pytest.fixture
def client(mock_home, repo, study_log):
    manager = SessionManager(repo, study_log)
    app.dependency_overrides[get_manager] = lambda: manager
    app.dependency_overrides[get_stats] = lambda: StudyStatsService(repo)
    yield TestClient(app)
    app.dependency_overrides.clear()


def _start(client, **body):
    response = client.post("/sessions", json=body)
    assert response.status_code == 200, response.text
    return response.json()


def test_health_check(client):
    response = client.get("/health")
    assert response.status_code == 200
    data = response.json()
    assert data["status"] == "ok"
    assert data["version"] == VERSION


def test_get_version(client):
    response = client.get("/version")
    assert response.status_code == 200
    assert response.json() == {"version": VERSION}


def test_queue_preview(client):
    response = client.post("/queue", json={"mode": "quick", "max_new": 2})
    assert response.status_code == 200
    assert response.json() == {"queue": ["a", "b"]}


def test_full_session_flow(client):
    session = _start(client)
    assert session["queue"] == ["a", "b", "c"]
    assert session["current_card_id"] == "a"
    session_id = session["id"]

    for card_id, rating in (("a", 3), ("b", 4), ("c", 1)):
        response = client.post(
            f"/sessions/{session_id}/reviews", json={"card_id": card_id, "rating": rating}
        )
        assert response.status_code == 200, response.text
    data = response.json()
    assert data["interval_days"] == 1
    assert data["repetitions"] == 0
    assert data["session"]["cards_remaining"] == 0
    assert data["session"]["ratings"]["again"] == 1

    response = client.post(f"/sessions/{session_id}/end")
    assert response.status_code == 200
    entry = response.json()
    assert entry["cards_reviewed"] == 3
    assert entry["average_rating"] == pytest.approx(2.67)

    progress = client.get("/progress/default").json()
    assert progress["sessions_completed"] == 1
    assert progress["current_streak"] == 1

    history = client.get("/history/default", params={"limit": 5}).json()
    assert [h["session_id"] for h in history] == [session_id]

    assert client.get(f"/sessions/{session_id}").json()["status"] == "completed"


def test_second_session_conflicts(client):
    first = _start(client)

    response = client.post("/sessions", json={"mode": "quick"})

    assert response.status_code == 409
    assert response.json()["detail"]["active_session_id"] == first["id"]


def test_explicit_empty_queue(client):
    response = client.post("/sessions", json={"queue": []})
    assert response.status_code == 404


def test_unknown_session(client):
    assert client.get("/sessions/session_nope").status_code == 404
    response = client.post("/sessions/session_nope/reviews", json={"card_id": "a", "rating": 3})
    assert response.status_code == 404


def test_out_of_order_review(client):
    session = _start(client)
    response = client.post(
        f"/sessions/{session['id']}/reviews", json={"card_id": "b", "rating": 3}
    )
    assert response.status_code == 409


@pytest.mark.parametrize("rating", [0, 6])
def test_rating_out_of_range(client, rating):
    session = _start(client)
    response = client.post(
        f"/sessions/{session['id']}/reviews", json={"card_id": "a", "rating": rating}
    )
    assert response.status_code == 422


def test_end_before_exhausted(client):
    session = _start(client, queue=["a", "b"])
    assert client.post(f"/sessions/{session['id']}/end").status_code == 409


def test_abandon(client):
    session = _start(client, queue=["a", "b"])
    client.post(f"/sessions/{session['id']}/reviews", json={"card_id": "a", "rating": 5})

    response = client.post(f"/sessions/{session['id']}/abandon")

    assert response.status_code == 200
    assert response.json()["status"] == "abandoned"
    assert client.get("/history/default").json() == []
    # The profile is free again
    assert client.post("/sessions", json={}).status_code == 200


def test_stats(client):
    response = client.post("/stats", json={})
    assert response.status_code == 200
    data = response.json()
    assert data["total"] == 3
    assert data["new"] == 3
    assert data["readiness"] == 10
