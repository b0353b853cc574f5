"""
Modèles météo et prévision de repli.

Ce module définit la forme des données renvoyées par le fournisseur météo (conditions courantes
et série quotidienne), la description textuelle des codes météo et une prévision synthétique
déterministe utilisée lorsque le fournisseur est injoignable.
"""

from __future__ import annotations

from datetime import date, datetime, timedelta

from pydantic import BaseModel, Field, model_validator

from dashboard.domain.dates import to_date_key

FALLBACK_DAYS = 7
FALLBACK_HIGH_BASE = 70
FALLBACK_LOW_BASE = 50
FALLBACK_CODES = (1, 2, 3, 80, 0, 61, 95)

# Codes météo Open-Meteo -> icône
WEATHER_ICONS: dict[int, str] = {
    0: "☀️",
    1: "☀️",
    2: "⛅",
    3: "☁️",
    45: "🌫️",
    48: "🌫️",
    51: "🌦️",
    53: "🌦️",
    55: "🌦️",
    56: "🌦️",
    57: "🌦️",
    61: "🌧️",
    63: "🌧️",
    65: "🌧️",
    66: "🌧️",
    67: "🌧️",
    80: "🌧️",
    81: "🌧️",
    82: "🌧️",
    71: "❄️",
    73: "❄️",
    75: "❄️",
    77: "❄️",
    85: "❄️",
    86: "❄️",
    95: "⛈️",
    96: "⛈️",
    99: "⛈️",
}
UNKNOWN_ICON = "🌡️"


class CurrentWeather(BaseModel):
    """Conditions courantes (température et code météo)."""

    temperature: float
    weathercode: int


class DailyForecast(BaseModel):
    """Série quotidienne alignée par index (une entrée par jour)."""

    time: list[str]
    temperature_2m_max: list[float]
    temperature_2m_min: list[float]
    weathercode: list[int]

    @model_validator(mode="after")
    def _aligned(self) -> DailyForecast:
        sizes = {
            len(self.time),
            len(self.temperature_2m_max),
            len(self.temperature_2m_min),
            len(self.weathercode),
        }
        if len(sizes) != 1:
            raise ValueError("daily series are not aligned")
        return self

    def __len__(self) -> int:
        return len(self.time)


class WeatherReport(BaseModel):
    """Résultat d'une récupération météo (réelle ou de repli)."""

    current: CurrentWeather
    daily: DailyForecast
    updated_at: datetime = Field(default_factory=datetime.now)
    is_fallback: bool = False


def describe_weather(code: int) -> str:
    """Description textuelle simplifiée d'un code météo."""
    if code in (0, 1):
        return "Clear"
    if code == 2:
        return "Partly cloudy"
    if code == 3:
        return "Overcast"
    if 45 <= code <= 48:
        return "Foggy"
    if 51 <= code <= 67 or 80 <= code <= 82:
        return "Rain"
    if 71 <= code <= 77 or 85 <= code <= 86:
        return "Snow"
    if code >= 95:
        return "Thunderstorm"
    return "Mixed"


def weather_icon(code: int) -> str:
    return WEATHER_ICONS.get(code, UNKNOWN_ICON)


def fallback_weather(today: date | None = None) -> WeatherReport:
    """Prévision synthétique sur 7 jours à partir de la date locale du jour.

    Les maximales et minimales croissent d'un degré par jour depuis des bases fixes et les codes
    météo parcourent une table fixe de 7 éléments.
    """
    today = today or date.today()
    days = [today + timedelta(days=i) for i in range(FALLBACK_DAYS)]
    highs = [float(FALLBACK_HIGH_BASE + i) for i in range(FALLBACK_DAYS)]
    lows = [float(FALLBACK_LOW_BASE + i) for i in range(FALLBACK_DAYS)]
    codes = [FALLBACK_CODES[i % len(FALLBACK_CODES)] for i in range(FALLBACK_DAYS)]
    return WeatherReport(
        current=CurrentWeather(temperature=highs[0], weathercode=codes[0]),
        daily=DailyForecast(
            time=[to_date_key(d) for d in days],
            temperature_2m_max=highs,
            temperature_2m_min=lows,
            weathercode=codes,
        ),
        is_fallback=True,
    )
