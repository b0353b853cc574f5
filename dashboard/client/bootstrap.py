"""Assemblage du client: stockage, persistance, clients HTTP, store et contrôleurs."""

from __future__ import annotations

from dataclasses import dataclass

import httpx
import structlog

from dashboard.client.auth import AuthController
from dashboard.client.dashboard import DashboardController
from dashboard.client.persistence import PersistenceAdapter, build_persistence
from dashboard.client.tasks import KeyedTaskRunner
from dashboard.core.settings import Settings, get_settings
from dashboard.domain.event_store import EventStore
from dashboard.infra.http_clients import GeoClient, WeatherClient
from dashboard.infra.local_storage import JsonFileStorage, KeyValueStorage

log = structlog.get_logger(__name__)


@dataclass
class DashboardClient:
    settings: Settings
    storage: KeyValueStorage
    persistence: PersistenceAdapter
    store: EventStore
    runner: KeyedTaskRunner
    dashboard: DashboardController
    auth: AuthController

    async def start(self) -> bool:
        """Reprend la session mémorisée; False si l'écran de connexion doit être affiché."""
        result = await self.auth.restore_session()
        return result.ok

    async def aclose(self) -> None:
        await self.runner.drain()
        await self.dashboard.weather_client.aclose()
        await self.dashboard.geo_client.aclose()
        if hasattr(self.persistence, "aclose"):
            await self.persistence.aclose()


def build_client(
    settings: Settings | None = None,
    storage: KeyValueStorage | None = None,
    http_client: httpx.AsyncClient | None = None,
) -> DashboardClient:
    """Construit un client complet.

    Args:
        settings: Paramètres (par défaut `get_settings()`).
        storage: Stockage local (par défaut un `JsonFileStorage` sur `LOCAL_STORAGE_PATH`).
        http_client: Client HTTP partagé par la météo, le géocodage et la persistance distante.
    """
    settings = settings or get_settings()
    storage = storage if storage is not None else JsonFileStorage(settings.LOCAL_STORAGE_PATH)
    persistence = build_persistence(settings, storage, client=http_client)
    store = EventStore.with_demo_events()
    runner = KeyedTaskRunner()
    dashboard = DashboardController(
        store=store,
        persistence=persistence,
        weather_client=WeatherClient(settings, client=http_client),
        geo_client=GeoClient(settings, client=http_client),
        storage=storage,
        settings=settings,
        runner=runner,
    )
    auth = AuthController(persistence, storage, dashboard)
    log.info("client_built", storage_mode=settings.STORAGE_MODE, users=len(auth.users))
    return DashboardClient(
        settings=settings,
        storage=storage,
        persistence=persistence,
        store=store,
        runner=runner,
        dashboard=dashboard,
        auth=auth,
    )
