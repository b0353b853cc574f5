"""Tests du service d'événements (`GET/POST /events`)."""

from __future__ import annotations

from fastapi.testclient import TestClient

from dashboard.app.main import app
from dashboard.core.container import container
from dashboard.core.http_constants import HTTP_BAD_REQUEST, HTTP_METHOD_NOT_ALLOWED, HTTP_OK
from dashboard.domain.entities import DEFAULT_EVENT_COLOR

client = TestClient(app)

BOB_EVENTS = {
    "2025-08-18": [{"title": "Gym", "start": "07:00", "end": "08:00", "allDay": False}],
}


def test_save_creates_user_and_defaults_color() -> None:
    r = client.post("/events", json={"user": "bob", "events": BOB_EVENTS})
    assert r.status_code == HTTP_OK
    assert r.json() == {"status": "saved"}
    assert container.user_repo.get("bob") == {"username": "bob", "password_hash": ""}

    events = client.get("/events", params={"user": "bob"}).json()["events"]
    assert events == {
        "2025-08-18": [
            {
                "title": "Gym",
                "start": "07:00",
                "end": "08:00",
                "allDay": False,
                "color": DEFAULT_EVENT_COLOR,
            }
        ]
    }


def test_save_replaces_whole_collection() -> None:
    client.post("/events", json={"user": "bob", "events": BOB_EVENTS})
    replacement = {
        "2025-09-01": [
            {"id": "e1", "title": "Trip", "start": "00:00", "end": "23:59", "allDay": True, "color": "#FF0000"}
        ]
    }
    client.post("/events", json={"user": "bob", "events": replacement})
    events = client.get("/events", params={"user": "bob"}).json()["events"]
    assert list(events) == ["2025-09-01"]
    assert events["2025-09-01"][0]["id"] == "e1"
    assert events["2025-09-01"][0]["color"] == "#FF0000"


def test_empty_collection_clears_user_events() -> None:
    client.post("/events", json={"user": "bob", "events": BOB_EVENTS})
    client.post("/events", json={"user": "bob", "events": {}})
    assert client.get("/events", params={"user": "bob"}).json() == {"events": {}}


def test_blank_credential_user_cannot_log_in() -> None:
    client.post("/events", json={"user": "bob", "events": BOB_EVENTS})
    r = client.post("/auth", json={"action": "login", "username": "bob", "password": "anything"})
    assert r.status_code != HTTP_OK


def test_unknown_user_gets_empty_events() -> None:
    r = client.get("/events", params={"user": "nobody"})
    assert r.status_code == HTTP_OK
    assert r.json() == {"events": {}}


def test_missing_user_parameter() -> None:
    r = client.get("/events")
    assert r.status_code == HTTP_BAD_REQUEST
    assert r.json() == {"error": "Missing user parameter"}


def test_invalid_payloads() -> None:
    bad_bodies = [
        {"events": BOB_EVENTS},
        {"user": "", "events": BOB_EVENTS},
        {"user": "bob"},
        {"user": "bob", "events": {"2025-08-18": [{"title": "", "start": "1", "end": "2", "allDay": False}]}},
        {"user": "bob", "events": {"2025-08-18": [{"title": "No times"}]}},
    ]
    for body in bad_bodies:
        r = client.post("/events", json=body)
        assert r.status_code == HTTP_BAD_REQUEST
        assert r.json() == {"error": "Invalid payload"}
    r = client.post("/events", content=b"nope", headers={"Content-Type": "application/json"})
    assert r.status_code == HTTP_BAD_REQUEST
    assert container.user_repo.get("bob") is None


def test_other_methods_not_allowed() -> None:
    for method in ("put", "patch", "delete"):
        r = getattr(client, method)("/events")
        assert r.status_code == HTTP_METHOD_NOT_ALLOWED
