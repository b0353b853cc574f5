"""Configuration de test pour pytest avec gestion des chemins.

Ce module ajoute la racine du projet au sys.path, isole le conteneur du service (dépôts en
mémoire neufs pour chaque test) et fournit les briques communes du client (stockage, réglages).
"""

from __future__ import annotations

import os
import sys
from datetime import date

import pytest

# Ensure project root is on sys.path so that
# imports like `from dashboard...` resolve.
CURRENT_DIR = os.path.dirname(__file__)
PROJECT_ROOT = os.path.abspath(os.path.join(CURRENT_DIR, ".."))
if PROJECT_ROOT not in sys.path:
    sys.path.insert(0, PROJECT_ROOT)

from dashboard.core.container import container  # noqa: E402
from dashboard.core.settings import Settings  # noqa: E402
from dashboard.infra.local_storage import MemoryStorage  # noqa: E402
from dashboard.infra.repositories import InMemoryEventRepo, InMemoryUserRepo  # noqa: E402

TODAY = date(2025, 8, 18)


@pytest.fixture(autouse=True)
def fresh_repositories(monkeypatch):
    """Remplace les dépôts du conteneur par des dépôts mémoire vides."""
    monkeypatch.setattr(container, "user_repo", InMemoryUserRepo())
    monkeypatch.setattr(container, "event_repo", InMemoryEventRepo())
    monkeypatch.setattr(container, "storage_backend", "memory")
    yield container


@pytest.fixture
def storage() -> MemoryStorage:
    return MemoryStorage()


@pytest.fixture
def settings() -> Settings:
    """Réglages déterministes, indépendants d'un éventuel fichier .env local."""
    return Settings(
        _env_file=None,
        STORAGE_MODE="local",
        REMOTE_API_URL="http://testserver",
        WEATHER_API_URL="http://weather.test/v1/forecast",
        GEOCODING_API_URL="http://geo.test/v1/search",
    )


@pytest.fixture
def remote_settings(settings: Settings) -> Settings:
    return settings.model_copy(update={"STORAGE_MODE": "remote"})
