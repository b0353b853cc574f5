"""Clients HTTP externes (météo, géocodage).

Objectif du module
------------------
- Encapsuler les appels réseau vers Open-Meteo (prévisions et géocodage).
- Garantir qu'une récupération météo produit toujours un résultat: tout échec (réseau, statut
  non-2xx, corps malformé) est remplacé par la prévision de repli.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from datetime import date, datetime

import httpx
import structlog
from pydantic import ValidationError

from dashboard.app.metrics import WEATHER_FALLBACKS
from dashboard.core.http_constants import HTTP_STATUS_CLIENT_ERROR_MIN
from dashboard.core.settings import Settings, get_settings
from dashboard.domain.weather import (
    CurrentWeather,
    DailyForecast,
    WeatherReport,
    fallback_weather,
)

DAILY_FIELDS = "temperature_2m_max,temperature_2m_min,weathercode"


def _timeout(settings: Settings) -> httpx.Timeout:
    return httpx.Timeout(settings.HTTP_TIMEOUT_SECONDS)


def _make_client(settings: Settings) -> httpx.AsyncClient:
    return httpx.AsyncClient(timeout=_timeout(settings), headers={"Accept": "application/json"})


@dataclass
class GeoLocation:
    """Coordonnées résolues pour un nom de lieu."""

    lat: float
    lon: float
    display_name: str


class WeatherClient:
    """Client de prévisions météo (conditions courantes + série quotidienne)."""

    def __init__(
        self,
        settings: Settings | None = None,
        client: httpx.AsyncClient | None = None,
        today: Callable[[], date] = date.today,
    ) -> None:
        self.settings = settings or get_settings()
        self._client = client or _make_client(self.settings)
        self._today = today
        self._log = structlog.get_logger(__name__).bind(component="weather_client")

    async def fetch_weather(self, lat: float, lon: float, units: str = "metric") -> WeatherReport:
        """Récupère la météo pour des coordonnées, ou la prévision de repli en cas d'échec."""
        params: dict[str, str | float] = {
            "latitude": lat,
            "longitude": lon,
            "current_weather": "true",
            "daily": DAILY_FIELDS,
            "timezone": "auto",
        }
        if units == "imperial":
            params["temperature_unit"] = "fahrenheit"
        try:
            resp = await self._client.get(self.settings.WEATHER_API_URL, params=params, timeout=_timeout(self.settings))
            if resp.status_code >= HTTP_STATUS_CLIENT_ERROR_MIN:
                return self._fallback("status", status_code=resp.status_code)
            data = resp.json()
            return WeatherReport(
                current=CurrentWeather.model_validate(data["current_weather"]),
                daily=DailyForecast.model_validate(data["daily"]),
                updated_at=datetime.now(),
            )
        except httpx.HTTPError as exc:
            return self._fallback("network", error=str(exc))
        except (ValueError, KeyError, TypeError, ValidationError) as exc:
            return self._fallback("malformed", error=str(exc))

    def _fallback(self, reason: str, **details) -> WeatherReport:
        self._log.warning("weather_fetch_failed", reason=reason, **details)
        WEATHER_FALLBACKS.labels(reason).inc()
        return fallback_weather(self._today())

    async def aclose(self) -> None:
        await self._client.aclose()


class GeoClient:
    """Client de géocodage: nom de lieu -> coordonnées (premier résultat uniquement)."""

    def __init__(self, settings: Settings | None = None, client: httpx.AsyncClient | None = None) -> None:
        self.settings = settings or get_settings()
        self._client = client or _make_client(self.settings)

    async def geocode(self, name: str) -> GeoLocation | None:
        """Résout un nom de lieu, restreint au pays configuré.

        Returns:
            GeoLocation | None: None si aucun résultat n'est trouvé.

        Raises:
            httpx.HTTPError: en cas d'échec réseau ou de statut non-2xx.
        """
        params = {"name": name, "count": 1, "country_code": self.settings.GEOCODING_COUNTRY_CODE}
        resp = await self._client.get(self.settings.GEOCODING_API_URL, params=params, timeout=_timeout(self.settings))
        resp.raise_for_status()
        data = resp.json()
        results = data.get("results") if isinstance(data, dict) else None
        if not results:
            return None
        first = results[0]
        return GeoLocation(
            lat=float(first["latitude"]),
            lon=float(first["longitude"]),
            display_name=f"{first['name']}, {first.get('country_code', '')}".rstrip(", "),
        )

    async def aclose(self) -> None:
        await self._client.aclose()
