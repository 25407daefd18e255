import pytest
from fastapi.testclient import TestClient

from studymate.application.config import AppConfig
from studymate.consts import VERSION
from studymate.domain.session.errors import ApiError, AuthenticationError
from studymate.server import app, get_api, get_config

client = TestClient(app)


@pytest.fixture(autouse=True)
def overrides(fake_api, tmp_path):
    app.dependency_overrides[get_api] = lambda: fake_api
    app.dependency_overrides[get_config] = lambda: AppConfig(
        quiz_question_count=3, log_dir=tmp_path / "logs"
    )
    yield
    app.dependency_overrides.clear()


def _create(kind, generate=False, **extra):
    response = client.post(
        "/sessions", json={"kind": kind, "note_id": "note-1", "generate": generate, **extra}
    )
    assert response.status_code == 201, response.text
    return response.json()


def test_health_check():
    response = client.get("/health")
    assert response.status_code == 200
    data = response.json()
    assert data["status"] == "ok"
    assert data["version"] == VERSION
    assert data["active_sessions"] >= 0


def test_get_version():
    response = client.get("/version")
    assert response.status_code == 200
    assert response.json() == {"version": VERSION}


def test_list_notes(fake_api):
    response = client.get("/notes")
    assert response.status_code == 200
    assert response.json() == {"notes": [{"id": "note-1", "title": "Cell Biology"}]}
    assert fake_api.closed


def test_list_notes_auth_failure(fake_api):
    fake_api.failures["notes"] = AuthenticationError("Token expired", status_code=401)
    response = client.get("/notes")
    assert response.status_code == 401


def test_flashcard_session_flow(fake_api, flashcard_factory):
    fake_api.flashcards["note-1"] = flashcard_factory(2)
    created = _create("flashcard")
    session_id = created["session_id"]
    assert created["session"]["status"] == "in_progress"
    assert created["session"]["current_item"]["reveal"] is None

    flipped = client.post(f"/sessions/{session_id}/flip").json()
    assert flipped["session"]["current_item"]["reveal"] == "Answer 0"

    reviewed = client.post(f"/sessions/{session_id}/review", json={"outcome": "correct"}).json()
    assert reviewed["review"]["acknowledged"] is True
    assert reviewed["review"]["attempt_count"] == 1
    assert reviewed["session"]["cursor"] == 1
    assert fake_api.reviews == [("card-0", True)]

    back = client.post(f"/sessions/{session_id}/retreat").json()
    assert back["session"]["cursor"] == 0

    closed = client.delete(f"/sessions/{session_id}")
    assert closed.json() == {"session_id": session_id, "closed": True}
    assert client.get(f"/sessions/{session_id}").status_code == 404


def test_review_failure_is_reported_not_raised(fake_api, flashcard_factory):
    fake_api.flashcards["note-1"] = flashcard_factory(2)
    session_id = _create("flashcard")["session_id"]
    fake_api.failures["review"] = ApiError("Service unavailable", status_code=503)

    response = client.post(f"/sessions/{session_id}/review", json={"outcome": "incorrect"})

    assert response.status_code == 200
    data = response.json()
    assert data["review"]["acknowledged"] is False
    assert "Service unavailable" in data["review"]["error"]
    assert data["session"]["current_response"] is not None
    assert any(n["level"] == "error" for n in data["notifications"])


def test_empty_flashcard_session(fake_api):
    data = _create("flashcard")
    assert data["session"]["status"] == "empty"
    assert data["session"]["cursor"] is None

    advanced = client.post(f"/sessions/{data['session_id']}/advance")
    assert advanced.status_code == 200


def test_jump_out_of_range(fake_api, flashcard_factory):
    fake_api.flashcards["note-1"] = flashcard_factory(2)
    session_id = _create("flashcard")["session_id"]

    response = client.post(f"/sessions/{session_id}/jump", json={"index": 5})

    assert response.status_code == 422
    assert client.get(f"/sessions/{session_id}").json()["session"]["cursor"] == 0


def test_quiz_session_flow(fake_api):
    created = _create("quiz", generate=True)
    session_id = created["session_id"]
    assert created["session"]["total"] == 3
    assert created["notifications"][0]["message"] == "Quiz generated successfully!"

    incomplete = client.post(f"/sessions/{session_id}/submit")
    assert incomplete.status_code == 409
    assert incomplete.json()["detail"]["unanswered"] == [0, 1, 2]

    for index, choice in enumerate([1, 0, 0]):
        client.post(f"/sessions/{session_id}/jump", json={"index": index})
        assert client.post(f"/sessions/{session_id}/select", json={"choice_index": choice}).status_code == 200

    submitted = client.post(f"/sessions/{session_id}/submit").json()
    result = submitted["session"]["result"]
    assert submitted["session"]["status"] == "completed"
    assert result["correct_count"] == 2
    assert result["score"] == pytest.approx(66.67, abs=0.01)

    again = client.post(f"/sessions/{session_id}/submit")
    assert again.status_code == 409

    restarted = client.post(f"/sessions/{session_id}/restart").json()
    assert restarted["session"]["status"] == "empty"
    assert restarted["session"]["result"] is None


def test_select_out_of_range(fake_api):
    session_id = _create("quiz", generate=True)["session_id"]

    response = client.post(f"/sessions/{session_id}/select", json={"choice_index": 9})

    assert response.status_code == 422


def test_missing_quiz_is_404(fake_api):
    response = client.post("/sessions", json={"kind": "quiz", "note_id": "note-1"})
    assert response.status_code == 404


def test_generation_failure_is_502(fake_api):
    fake_api.failures["generate"] = ApiError("AI down", status_code=503)

    response = client.post(
        "/sessions", json={"kind": "flashcard", "note_id": "note-1", "generate": True}
    )

    assert response.status_code == 502
    assert "AI down" in response.json()["detail"]["message"]


def test_regenerate_replaces_items(fake_api, flashcard_factory):
    fake_api.flashcards["note-1"] = flashcard_factory(2)
    session_id = _create("flashcard")["session_id"]

    response = client.post(f"/sessions/{session_id}/generate", json={"count": 4})

    assert response.status_code == 200
    assert response.json()["session"]["total"] == 4


def test_wrong_kind_operation_is_409(fake_api, flashcard_factory):
    fake_api.flashcards["note-1"] = flashcard_factory(2)
    session_id = _create("flashcard")["session_id"]

    response = client.post(f"/sessions/{session_id}/select", json={"choice_index": 0})

    assert response.status_code == 409


def test_invalid_count_rejected():
    response = client.post(
        "/sessions", json={"kind": "quiz", "note_id": "note-1", "generate": True, "count": 0}
    )
    assert response.status_code == 422
