"""Tests du contrôleur d'authentification (modes local et distant)."""

from __future__ import annotations

import asyncio
import json
from datetime import date

import httpx
import pytest

from dashboard.app.main import app
from dashboard.client.auth import (
    INVALID_CREDENTIALS,
    MISSING_CREDENTIALS,
    MISSING_FIELDS,
    PASSWORD_MISMATCH,
    PASSWORD_UPDATED,
    RESET_OK,
    UNKNOWN_USER,
    USER_EXISTS,
    USER_NOT_FOUND,
    AuthController,
    AuthForm,
    SessionState,
)
from dashboard.client.bootstrap import build_client
from dashboard.client.dashboard import DashboardController
from dashboard.client.persistence import LocalPersistence, RemotePersistence
from dashboard.domain.event_store import EventStore
from dashboard.infra.local_storage import SESSION_SLOT, USERS_SLOT, events_slot
from tests.fakes import FakeGeoClient, FakeWeatherClient, GatedPersistence

TODAY = date(2025, 8, 18)


def _auth(settings, storage, persistence=None) -> AuthController:
    persistence = persistence or LocalPersistence(storage)
    dashboard = DashboardController(
        store=EventStore.with_demo_events(),
        persistence=persistence,
        weather_client=FakeWeatherClient(TODAY),
        geo_client=FakeGeoClient(),
        storage=storage,
        settings=settings,
        today=lambda: TODAY,
    )
    return AuthController(persistence, storage, dashboard)


def _offline_remote() -> RemotePersistence:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("offline", request=request)

    return RemotePersistence("http://remote.test", client=httpx.AsyncClient(transport=httpx.MockTransport(handler)))


def _live_remote() -> RemotePersistence:
    client = httpx.AsyncClient(transport=httpx.ASGITransport(app=app), base_url="http://testserver")
    return RemotePersistence("http://testserver", client=client)


# ---- Mode local ---------------------------------------------------------------


@pytest.mark.asyncio
async def test_signup_then_login_local(settings, storage) -> None:
    auth = _auth(settings, storage)
    result = await auth.signup("alice", "secret123", "secret123")
    assert result.ok is True
    assert auth.state is SessionState.AUTHENTICATED
    assert storage.get_item(SESSION_SLOT) == "alice"
    assert "secret123" not in storage.get_item(USERS_SLOT)

    auth.logout()
    assert auth.state is SessionState.ANONYMOUS
    assert storage.get_item(SESSION_SLOT) is None
    assert len(auth.dashboard.store) == 0

    assert (await auth.login("alice", "wrong")).message == INVALID_CREDENTIALS
    assert auth.state is SessionState.ANONYMOUS
    assert (await auth.login(" alice ", "secret123")).ok is True
    assert auth.current_user == "alice"


@pytest.mark.asyncio
async def test_validation_messages(settings, storage) -> None:
    auth = _auth(settings, storage)
    assert (await auth.login("", "x")).message == MISSING_CREDENTIALS
    assert (await auth.login("alice", "")).message == MISSING_CREDENTIALS
    assert (await auth.signup("alice", "a", "")).message == MISSING_FIELDS
    assert (await auth.signup("alice", "a", "b")).message == PASSWORD_MISMATCH
    assert (await auth.forgot_password("alice", "a", "b")).message == PASSWORD_MISMATCH
    assert (await auth.change_password("a", "a")).message == USER_NOT_FOUND
    assert auth.state is SessionState.ANONYMOUS


@pytest.mark.asyncio
async def test_duplicate_signup_local(settings, storage) -> None:
    auth = _auth(settings, storage)
    await auth.signup("alice", "secret123", "secret123")
    auth.logout()
    result = await auth.signup("alice", "other", "other")
    assert result.ok is False
    assert result.message == USER_EXISTS
    assert auth.state is SessionState.ANONYMOUS


@pytest.mark.asyncio
async def test_forgot_password_local(settings, storage) -> None:
    auth = _auth(settings, storage)
    await auth.signup("alice", "secret123", "secret123")
    auth.logout()
    auth.show_form(AuthForm.FORGOT)

    assert (await auth.forgot_password("ghost", "n", "n")).message == UNKNOWN_USER
    result = await auth.forgot_password("alice", "fresh", "fresh")
    assert result.ok is True
    assert result.message == RESET_OK
    assert auth.form is AuthForm.LOGIN
    assert auth.state is SessionState.ANONYMOUS
    assert (await auth.login("alice", "fresh")).ok is True


@pytest.mark.asyncio
async def test_change_password_local(settings, storage) -> None:
    auth = _auth(settings, storage)
    await auth.signup("alice", "secret123", "secret123")
    result = await auth.change_password("n3w", "n3w")
    assert (result.ok, result.message) == (True, PASSWORD_UPDATED)
    auth.logout()
    assert (await auth.login("alice", "n3w")).ok is True


@pytest.mark.asyncio
async def test_restore_session_local(settings, storage) -> None:
    first = _auth(settings, storage)
    await first.signup("alice", "secret123", "secret123")

    restored = _auth(settings, storage)
    assert (await restored.restore_session()).ok is True
    assert restored.current_user == "alice"

    storage.set_item(SESSION_SLOT, "ghost")
    anonymous = _auth(settings, storage)
    assert (await anonymous.restore_session()).ok is False
    assert anonymous.state is SessionState.ANONYMOUS
    assert anonymous.form is AuthForm.LOGIN


@pytest.mark.asyncio
async def test_user_switch_reloads_store(settings, storage) -> None:
    auth = _auth(settings, storage)
    await auth.signup("alice", "pw", "pw")
    auth.dashboard.add_event("Alice only", "")
    await auth.dashboard.runner.drain()
    auth.logout()

    await auth.signup("bob", "pw", "pw")
    assert len(auth.dashboard.store) == 0
    auth.logout()
    await auth.login("alice", "pw")
    assert [e.title for e in auth.dashboard.store.events_on("2025-08-18")] == ["Alice only"]


# ---- Mode distant -------------------------------------------------------------


@pytest.mark.asyncio
async def test_remote_login_against_service(settings, storage) -> None:
    auth = _auth(settings, storage, _live_remote())
    assert (await auth.signup("carol", "pw", "pw")).ok is True
    # les comptes restent côté service
    assert auth.users == {}
    auth.logout()

    wrong = await auth.login("carol", "bad")
    assert (wrong.ok, wrong.message) == (False, INVALID_CREDENTIALS)
    assert (await auth.login("carol", "pw")).ok is True


@pytest.mark.asyncio
async def test_remote_duplicate_signup_is_definitive(settings, storage) -> None:
    auth = _auth(settings, storage, _live_remote())
    await auth.signup("carol", "pw", "pw")
    auth.logout()
    result = await auth.signup("carol", "pw", "pw")
    assert (result.ok, result.message) == (False, "User already exists")
    # pas de compte local créé en douce
    assert "carol" not in auth.users


@pytest.mark.asyncio
async def test_remote_forgot_and_change_password(settings, storage) -> None:
    auth = _auth(settings, storage, _live_remote())
    await auth.signup("carol", "pw", "pw")
    assert (await auth.change_password("pw2", "pw2", current_password="pw")).ok is True
    wrong_current = await auth.change_password("pw3", "pw3", current_password="nope")
    assert (wrong_current.ok, wrong_current.message) == (False, "Invalid credentials")
    auth.logout()

    assert (await auth.forgot_password("ghost", "x", "x")).message == "User does not exist"
    assert (await auth.forgot_password("carol", "pw9", "pw9")).ok is True
    assert (await auth.login("carol", "pw9")).ok is True


@pytest.mark.asyncio
async def test_remote_offline_falls_back_to_local_users(settings, storage) -> None:
    auth = _auth(settings, storage, _offline_remote())
    result = await auth.signup("dave", "pw", "pw")
    assert result.ok is True
    assert "dave" in auth.users
    auth.logout()

    assert (await auth.login("dave", "pw")).ok is True
    auth.logout()
    assert (await auth.login("dave", "bad")).message == INVALID_CREDENTIALS
    assert (await auth.login("erin", "pw")).message == INVALID_CREDENTIALS

    assert (await auth.forgot_password("dave", "pw2", "pw2")).ok is True
    assert (await auth.login("dave", "pw2")).ok is True


@pytest.mark.asyncio
async def test_remote_restore_session_trusts_marker(settings, storage) -> None:
    storage.set_item(SESSION_SLOT, "carol")
    auth = _auth(settings, storage, _offline_remote())
    assert (await auth.restore_session()).ok is True
    assert auth.state is SessionState.AUTHENTICATED


@pytest.mark.asyncio
async def test_concurrent_login_rejected(settings, storage) -> None:
    auth = _auth(settings, storage)
    await auth.signup("alice", "pw", "pw")
    auth.logout()
    auth.state = SessionState.AUTHENTICATING
    result = await auth.login("alice", "pw")
    assert result.ok is False
    assert auth.state is SessionState.AUTHENTICATING


@pytest.mark.asyncio
async def test_build_client_wires_everything(settings, storage) -> None:
    client = build_client(settings, storage=storage)
    assert isinstance(client.persistence, LocalPersistence)
    assert client.dashboard.store is client.store
    assert len(client.store) > 0
    assert await client.start() is False
    assert client.auth.form is AuthForm.LOGIN
    await client.aclose()


@pytest.mark.asyncio
async def test_logout_right_after_edit_keeps_saved_events(settings, storage) -> None:
    auth = _auth(settings, storage)
    await auth.signup("alice", "pw", "pw")
    auth.dashboard.add_event("Last minute", "")
    auth.logout()
    await auth.dashboard.runner.drain()

    auth_again = _auth(settings, storage)
    await auth_again.login("alice", "pw")
    assert [e.title for e in auth_again.dashboard.store.events_on("2025-08-18")] == ["Last minute"]


@pytest.mark.asyncio
async def test_remote_signup_rejection_shows_service_message(settings, storage) -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(400, json={"error": "Missing parameters"})

    remote = RemotePersistence("http://remote.test", client=httpx.AsyncClient(transport=httpx.MockTransport(handler)))
    auth = _auth(settings, storage, remote)
    result = await auth.signup("carol", "pw", "pw")
    assert (result.ok, result.message) == (False, "Missing parameters")
    assert auth.state is SessionState.ANONYMOUS
    assert "carol" not in auth.users


@pytest.mark.asyncio
async def test_login_waits_for_pending_save(settings, storage) -> None:
    persistence = GatedPersistence(storage)
    auth = _auth(settings, storage, persistence)
    await auth.signup("alice", "pw", "pw")

    persistence.save_gate = asyncio.Event()
    auth.dashboard.add_event("Dentist", "09:00-10:00")
    auth.logout()
    login = asyncio.ensure_future(auth.login("alice", "pw"))
    await asyncio.sleep(0)
    # la sauvegarde de l'édition est toujours en vol: la connexion l'attend
    assert not login.done()

    persistence.save_gate.set()
    assert (await login).ok is True
    await auth.dashboard.runner.drain()
    assert [e.title for e in auth.dashboard.store.events_on("2025-08-18")] == ["Dentist"]
    saved = json.loads(storage.get_item(events_slot("alice")))
    assert [e["title"] for e in saved["2025-08-18"]] == ["Dentist"]
