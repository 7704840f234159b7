"""Tests for the meetup HTTP endpoints."""

from uuid import uuid4

import pytest
from fastapi.testclient import TestClient

from meetup_tracker.api.app import create_app
from meetup_tracker.domain.errors import InvalidRequest, StoreError


def _headers(user_id: int) -> dict[str, str]:
    return {"X-User-Id": str(user_id)}


@pytest.fixture
def client(container) -> TestClient:
    return TestClient(create_app(container))


def _request(client: TestClient, requester: int = 1, addressee: int = 2) -> str:
    response = client.post(
        "/meetups/request",
        json={"addressee_id": addressee},
        headers=_headers(requester),
    )
    assert response.status_code == 201
    return response.json()["session_id"]


def test_health_endpoint(client) -> None:
    response = client.get("/health")
    assert response.status_code == 200
    assert response.json() == {"status": "ok"}


def test_missing_identity_is_unauthorized(client) -> None:
    response = client.post("/meetups/request", json={"addressee_id": 2})
    assert response.status_code == 401

    response = client.get("/meetups/pending", headers={"X-User-Id": "alice"})
    assert response.status_code == 401


def test_request_meetup_with_self_is_bad_request(client) -> None:
    response = client.post(
        "/meetups/request", json={"addressee_id": 1}, headers=_headers(1)
    )
    assert response.status_code == 400
    assert "yourself" in response.json()["detail"]


def test_successful_meetup_flow(client) -> None:
    session_id = _request(client)

    pending = client.get("/meetups/pending", headers=_headers(2)).json()
    assert [item["session_id"] for item in pending["pending_requests"]] == [session_id]
    assert pending["pending_requests"][0]["requester_name"] == "alice"

    first = client.post(
        f"/meetups/{session_id}/confirm",
        json={"latitude": 40.7128, "longitude": -74.0060},
        headers=_headers(1),
    )
    assert first.status_code == 200
    assert first.json() == {"final_status": "pending", "distance_feet": None}

    waiting = client.get(f"/meetups/{session_id}/status", headers=_headers(1)).json()
    assert waiting["status"] == "pending"
    assert waiting["requester_confirmed"] is True
    assert waiting["addressee_confirmed"] is False

    second = client.post(
        f"/meetups/{session_id}/confirm",
        json={"latitude": 40.71281, "longitude": -74.0060},
        headers=_headers(2),
    )
    assert second.status_code == 200
    body = second.json()
    assert body["final_status"] == "completed"
    assert 3.0 < body["distance_feet"] < 4.0

    status = client.get(f"/meetups/{session_id}/status", headers=_headers(2)).json()
    assert status["status"] == "completed"
    assert status["proximity_successful"] is True
    assert status["completed_at"] is not None

    ended = client.post(f"/meetups/{session_id}/end", headers=_headers(1))
    assert ended.status_code == 200
    assert ended.json() == {"status": "ok"}

    status = client.get(f"/meetups/{session_id}/status", headers=_headers(1)).json()
    assert status["status"] == "ended"
    assert status["proximity_successful"] is None


def test_failed_proximity_flow(client) -> None:
    session_id = _request(client)
    client.post(
        f"/meetups/{session_id}/confirm",
        json={"latitude": 40.7128, "longitude": -74.0060},
        headers=_headers(1),
    )

    response = client.post(
        f"/meetups/{session_id}/confirm",
        json={"latitude": 40.7138, "longitude": -74.0060},
        headers=_headers(2),
    )

    assert response.json()["final_status"] == "failed_proximity"
    assert response.json()["distance_feet"] > 10.0
    response = client.post(f"/meetups/{session_id}/end", headers=_headers(1))
    assert response.status_code == 409


def test_deny_then_confirm_conflicts(client) -> None:
    session_id = _request(client)

    response = client.put(f"/meetups/{session_id}/deny", headers=_headers(2))
    assert response.status_code == 200

    response = client.post(
        f"/meetups/{session_id}/confirm",
        json={"latitude": 0.0, "longitude": 0.0},
        headers=_headers(1),
    )
    assert response.status_code == 409
    assert client.get("/meetups/pending", headers=_headers(2)).json() == {
        "pending_requests": []
    }


def test_outsider_is_forbidden(client) -> None:
    session_id = _request(client)

    response = client.get(f"/meetups/{session_id}/status", headers=_headers(3))
    assert response.status_code == 403
    response = client.put(f"/meetups/{session_id}/deny", headers=_headers(3))
    assert response.status_code == 403


def test_unknown_session_is_not_found(client) -> None:
    response = client.get(f"/meetups/{uuid4()}/status", headers=_headers(1))
    assert response.status_code == 404


def test_malformed_session_id_is_rejected(client) -> None:
    response = client.get("/meetups/not-a-uuid/status", headers=_headers(1))
    assert response.status_code == 422


def test_out_of_range_coordinates_are_rejected(client) -> None:
    session_id = _request(client)

    response = client.post(
        f"/meetups/{session_id}/confirm",
        json={"latitude": 120.0, "longitude": 0.0},
        headers=_headers(1),
    )

    assert response.status_code == 422


def test_store_failure_maps_to_service_unavailable(
    client, meetup_repository, monkeypatch
) -> None:
    session_id = _request(client)

    def _fail(*_args, **_kwargs):  # type: ignore[no-untyped-def]
        raise StoreError("database unreachable")

    monkeypatch.setattr(meetup_repository, "get_session", _fail)
    response = client.get(f"/meetups/{session_id}/status", headers=_headers(1))

    assert response.status_code == 503
    assert "unavailable" in response.json()["detail"]


def test_unknown_addressee_is_bad_request(
    client, meetup_repository, monkeypatch
) -> None:
    def _unknown(*_args, **_kwargs):  # type: ignore[no-untyped-def]
        raise InvalidRequest("Unknown user id 999.")

    monkeypatch.setattr(meetup_repository, "create_session", _unknown)
    response = client.post(
        "/meetups/request", json={"addressee_id": 999}, headers=_headers(1)
    )

    assert response.status_code == 400
    assert response.json() == {"detail": "Unknown user id 999."}


def test_outsider_cannot_end_session(client) -> None:
    session_id = _request(client)

    response = client.post(f"/meetups/{session_id}/end", headers=_headers(3))

    assert response.status_code == 403
    status = client.get(f"/meetups/{session_id}/status", headers=_headers(1))
    assert status.json()["status"] == "pending"
