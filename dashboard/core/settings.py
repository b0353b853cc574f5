"""Définition et chargement des paramètres de configuration applicative.

Objectif du module
------------------
- Centraliser les paramètres (env/.env) via Pydantic Settings
- Résoudre le fichier `.env` à utiliser selon la stratégie: ENV_FILE > .env.{APP_ENV} > .env
- Couvrir les deux moitiés du projet: le service comptes/événements et le client
"""

import os
from pathlib import Path
from typing import Literal

from pydantic_settings import BaseSettings, SettingsConfigDict

# Détermination du fichier .env à utiliser avec priorité:
# 1) ENV_FILE (chemin explicite)
# 2) .env.{APP_ENV} si présent
# 3) .env (défaut)
_cwd = Path.cwd()
_env_file_from_env = os.getenv("ENV_FILE")
if _env_file_from_env:
    _ENV_FILE_PATH = _env_file_from_env
else:
    _app_env = os.getenv("APP_ENV", "dev")
    _candidate_specific = _cwd / f".env.{_app_env}"
    _candidate_default = _cwd / ".env"
    if _candidate_specific.exists():
        _ENV_FILE_PATH = _candidate_specific
    else:
        _ENV_FILE_PATH = _candidate_default


class Settings(BaseSettings):
    """Modèle de configuration chargé depuis l'environnement et .env."""

    model_config = SettingsConfigDict(
        env_file=_ENV_FILE_PATH,
        env_file_encoding="utf-8",
        env_ignore_empty=True,
        case_sensitive=False,
        extra="ignore",
    )
    APP_NAME: str = "calendar-dashboard"
    APP_ENV: str = "dev"
    APP_DEBUG: bool = True
    APP_HOST: str = "0.0.0.0"
    APP_PORT: int = 8000
    LOG_LEVEL: str = "DEBUG"

    # Stockage côté service (comptes + événements)
    REDIS_URL: str | None = None
    REQUIRE_REDIS: bool = False

    # Client: stratégie de persistance ("local" = stockage durable local,
    # "remote" = service comptes/événements via HTTP)
    STORAGE_MODE: Literal["local", "remote"] = "local"
    REMOTE_API_URL: str = "http://localhost:8000"
    LOCAL_STORAGE_PATH: str = ".dashboard/storage.json"
    HTTP_TIMEOUT_SECONDS: float = 10.0

    # Fournisseurs météo / géocodage (Open-Meteo)
    WEATHER_API_URL: str = "https://api.open-meteo.com/v1/forecast"
    GEOCODING_API_URL: str = "https://geocoding-api.open-meteo.com/v1/search"
    GEOCODING_COUNTRY_CODE: str = "CA"

    # Préférences par défaut du tableau de bord
    DEFAULT_LAT: float = 44.2312
    DEFAULT_LON: float = -76.4860
    DEFAULT_LOCATION_NAME: str = "Kingston, ON"
    DEFAULT_UNITS: Literal["metric", "imperial"] = "metric"
    DEFAULT_THEME: Literal["dark", "light"] = "dark"


def get_settings() -> Settings:
    """Construit et retourne la configuration de l'application."""
    return Settings()
