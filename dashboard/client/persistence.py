"""Adaptateur de persistance du client: un contrat, deux implémentations.

Le reste du client ne connaît que `PersistenceAdapter`:

- `LocalPersistence`: comptes et événements dans le stockage durable local;
- `RemotePersistence`: événements via le service d'événements, comptes via le service de comptes.

La sauvegarde est best-effort dans les deux modes: un échec est journalisé et compté, jamais
propagé. Le store en mémoire reste la référence quel que soit le résultat.
"""

from __future__ import annotations

import json
from abc import ABC, abstractmethod
from dataclasses import dataclass

import httpx
import structlog

from dashboard.app.metrics import PERSISTENCE_ERRORS
from dashboard.core.http_constants import HTTP_STATUS_CLIENT_ERROR_MIN, HTTP_STATUS_SERVER_ERROR_MIN
from dashboard.core.settings import Settings
from dashboard.domain.entities import UserRecord
from dashboard.domain.event_store import EventStore
from dashboard.infra.local_storage import USERS_SLOT, KeyValueStorage, events_slot

log = structlog.get_logger(__name__)


@dataclass
class RemoteAuthResult:
    """Réponse du service de comptes.

    `transport_error` couvre tout ce qui ne permet pas de conclure (réseau, 5xx, corps
    illisible); un refus explicite (4xx avec message) n'en est pas un.
    """

    ok: bool
    error: str | None = None
    status_code: int | None = None
    transport_error: bool = False


class PersistenceAdapter(ABC):
    """Contrat de persistance commun aux modes local et distant."""

    mode = "abstract"
    is_remote = False

    @abstractmethod
    def load_users(self) -> dict[str, UserRecord]:
        """Retourne les comptes connus localement."""

    @abstractmethod
    def save_users(self, users: dict[str, UserRecord]) -> None:
        """Persiste les comptes locaux."""

    @abstractmethod
    async def load_events(self, username: str, store: EventStore) -> bool:
        """Superpose les événements persistés de `username` dans `store`.

        Returns:
            bool: True si des données ont été appliquées.
        """

    @abstractmethod
    async def save_events(self, username: str, store: EventStore) -> bool:
        """Persiste l'intégralité de `store` pour `username`.

        Returns:
            bool: True si la sauvegarde a réussi.
        """

    def _failed(self, operation: str, **details) -> None:
        PERSISTENCE_ERRORS.labels(self.mode, operation).inc()
        log.error("persistence_failed", mode=self.mode, operation=operation, **details)


class LocalPersistence(PersistenceAdapter):
    """Persistance dans le stockage durable local."""

    mode = "local"

    def __init__(self, storage: KeyValueStorage) -> None:
        self.storage = storage

    def load_users(self) -> dict[str, UserRecord]:
        try:
            raw = self.storage.get_item(USERS_SLOT)
            data = json.loads(raw) if raw else {}
            return {
                name: UserRecord.model_validate({"username": name, **record})
                for name, record in data.items()
            }
        except (OSError, ValueError, TypeError, AttributeError) as exc:
            self._failed("load_users", error=str(exc))
            return {}

    def save_users(self, users: dict[str, UserRecord]) -> None:
        data = {name: {"password_hash": user.password_hash} for name, user in users.items()}
        try:
            self.storage.set_item(USERS_SLOT, json.dumps(data))
        except OSError as exc:
            self._failed("save_users", error=str(exc))

    async def load_events(self, username: str, store: EventStore) -> bool:
        if not username:
            return False
        try:
            raw = self.storage.get_item(events_slot(username))
            if not raw:
                return False
            store.merge(json.loads(raw))
        except (OSError, ValueError) as exc:
            self._failed("load_events", username=username, error=str(exc))
            return False
        return True

    async def save_events(self, username: str, store: EventStore) -> bool:
        if not username:
            return False
        try:
            self.storage.set_item(events_slot(username), json.dumps(store.to_payload()))
        except OSError as exc:
            self._failed("save_events", username=username, error=str(exc))
            return False
        return True


class RemotePersistence(PersistenceAdapter):
    """Persistance via le service comptes/événements."""

    mode = "remote"
    is_remote = True

    def __init__(self, base_url: str, client: httpx.AsyncClient | None = None, timeout: float = 10.0) -> None:
        self.base_url = base_url.rstrip("/")
        # appliqué à chaque requête: un client injecté ne porte pas forcément de délai
        self.timeout = httpx.Timeout(timeout)
        self._client = client or httpx.AsyncClient(timeout=self.timeout)

    def load_users(self) -> dict[str, UserRecord]:
        # les comptes vivent dans le service; chaque vérification passe par remote_auth
        return {}

    def save_users(self, users: dict[str, UserRecord]) -> None:
        return None

    async def load_events(self, username: str, store: EventStore) -> bool:
        if not username:
            return False
        try:
            resp = await self._client.get(f"{self.base_url}/events", params={"user": username}, timeout=self.timeout)
            if resp.status_code >= HTTP_STATUS_CLIENT_ERROR_MIN:
                self._failed("load_events", username=username, status_code=resp.status_code)
                return False
            data = resp.json()
        except (httpx.HTTPError, ValueError) as exc:
            self._failed("load_events", username=username, error=str(exc))
            return False
        events = data.get("events") if isinstance(data, dict) else None
        if not events:
            return False
        store.merge(events)
        return True

    async def save_events(self, username: str, store: EventStore) -> bool:
        if not username:
            return False
        payload = {"user": username, "events": store.to_payload()}
        try:
            resp = await self._client.post(f"{self.base_url}/events", json=payload, timeout=self.timeout)
        except httpx.HTTPError as exc:
            self._failed("save_events", username=username, error=str(exc))
            return False
        if resp.status_code >= HTTP_STATUS_CLIENT_ERROR_MIN:
            self._failed("save_events", username=username, status_code=resp.status_code)
            return False
        return True

    async def remote_auth(
        self,
        action: str,
        username: str,
        password: str | None = None,
        new_password: str | None = None,
    ) -> RemoteAuthResult:
        """Appelle le service de comptes; ne lève jamais."""
        payload = {"action": action, "username": username}
        if password:
            payload["password"] = password
        if new_password:
            payload["newPassword"] = new_password
        try:
            resp = await self._client.post(f"{self.base_url}/auth", json=payload, timeout=self.timeout)
            data = resp.json()
        except (httpx.HTTPError, ValueError) as exc:
            log.warning("remote_auth_unavailable", action=action, error=str(exc))
            return RemoteAuthResult(ok=False, error=str(exc), transport_error=True)
        if not isinstance(data, dict):
            return RemoteAuthResult(ok=False, status_code=resp.status_code, transport_error=True)
        if resp.status_code < HTTP_STATUS_CLIENT_ERROR_MIN and data.get("status") == "ok":
            return RemoteAuthResult(ok=True, status_code=resp.status_code)
        definitive = (
            HTTP_STATUS_CLIENT_ERROR_MIN <= resp.status_code < HTTP_STATUS_SERVER_ERROR_MIN
            and isinstance(data.get("error"), str)
        )
        log.info("remote_auth_rejected", action=action, status_code=resp.status_code)
        return RemoteAuthResult(
            ok=False,
            error=data.get("error"),
            status_code=resp.status_code,
            transport_error=not definitive,
        )

    async def aclose(self) -> None:
        await self._client.aclose()


def build_persistence(
    settings: Settings,
    storage: KeyValueStorage,
    client: httpx.AsyncClient | None = None,
) -> PersistenceAdapter:
    """Sélectionne l'implémentation selon `STORAGE_MODE`."""
    if settings.STORAGE_MODE == "remote":
        return RemotePersistence(settings.REMOTE_API_URL, client=client, timeout=settings.HTTP_TIMEOUT_SECONDS)
    return LocalPersistence(storage)
