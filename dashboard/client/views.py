"""
Dérivation des vues du tableau de bord.

Fonctions pures qui transforment le store d'événements, la date sélectionnée et la dernière
prévision météo en modèles de vue prêts à être affichés:

- calendrier mensuel (grille de 42 cellules, au plus 3 pastilles par jour);
- planificateur du jour (événements « toute la journée » puis événements horaires triés);
- bandeau météo (bloc du jour + tuiles des jours suivants).
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime

from dashboard.domain.dates import (
    WEEKDAYS,
    build_calendar_dates,
    month_name,
    parse_date_key,
    to_date_key,
    weekday_short,
)
from dashboard.domain.entities import Event
from dashboard.domain.event_store import EventStore
from dashboard.domain.weather import WeatherReport, describe_weather, weather_icon

MAX_DOTS = 3


@dataclass
class CalendarCell:
    """Une case de la grille mensuelle."""

    date: date
    key: str
    day: int
    in_month: bool
    is_today: bool
    is_selected: bool
    dots: list[str] = field(default_factory=list)


@dataclass
class CalendarView:
    year: int
    month: int
    month_name: str
    cells: list[CalendarCell]
    weekdays: tuple[str, ...] = WEEKDAYS


@dataclass
class PlannerView:
    """Événements du jour sélectionné, séparés en « toute la journée » et horaires."""

    date_key: str
    heading: str
    all_day: list[Event]
    timed: list[Event]

    @property
    def is_empty(self) -> bool:
        return not self.all_day and not self.timed


@dataclass
class ForecastTile:
    date_key: str
    weekday: str
    icon: str
    high: int
    low: int

    @property
    def label(self) -> str:
        return f"{self.high}°/{self.low}°"


@dataclass
class WeatherView:
    """Bloc « aujourd'hui » et tuiles des jours suivants."""

    temperature: str
    weekday: str
    description: str
    range_text: str
    updated_text: str
    location_name: str
    tiles: list[ForecastTile]
    is_fallback: bool = False


def build_calendar_view(
    year: int,
    month: int,
    store: EventStore,
    selected: date,
    today: date,
) -> CalendarView:
    """Construit la grille mensuelle annotée.

    Les pastilles reprennent la couleur des trois premiers événements du jour; les suivants
    restent dans le store mais ne sont pas représentés.
    """
    today_key = to_date_key(today)
    selected_key = to_date_key(selected)
    cells = []
    for d in build_calendar_dates(year, month):
        key = to_date_key(d)
        cells.append(
            CalendarCell(
                date=d,
                key=key,
                day=d.day,
                in_month=d.month == month,
                is_today=key == today_key,
                is_selected=key == selected_key,
                dots=[e.color for e in store.events_on(key)[:MAX_DOTS]],
            )
        )
    return CalendarView(year=year, month=month, month_name=month_name(month), cells=cells)


def build_planner_view(selected: date, store: EventStore) -> PlannerView:
    """Sépare les événements du jour et trie les événements horaires par heure de début.

    Le tri compare les chaînes `HH:MM`; il suppose des heures complétées par des zéros.
    """
    key = to_date_key(selected)
    events = store.events_on(key)
    return PlannerView(
        date_key=key,
        heading=f"{selected:%A}, {selected:%B} {selected.day}",
        all_day=[e for e in events if e.all_day],
        timed=sorted((e for e in events if not e.all_day), key=lambda e: e.start),
    )


def build_weather_view(report: WeatherReport, location_name: str, today: date | None = None) -> WeatherView:
    """Construit le bandeau météo; la première entrée quotidienne alimente le bloc du jour."""
    today = today or date.today()
    daily = report.daily
    range_text = ""
    if len(daily):
        range_text = f"H {round(daily.temperature_2m_max[0])}° / L {round(daily.temperature_2m_min[0])}°"
    tiles = []
    for i in range(1, len(daily)):
        day = _tile_date(daily.time[i])
        tiles.append(
            ForecastTile(
                date_key=daily.time[i],
                weekday=weekday_short(day).upper() if day else "",
                icon=weather_icon(daily.weathercode[i]),
                high=round(daily.temperature_2m_max[i]),
                low=round(daily.temperature_2m_min[i]),
            )
        )
    return WeatherView(
        temperature=f"{round(report.current.temperature)}°",
        weekday=weekday_short(today),
        description=describe_weather(report.current.weathercode),
        range_text=range_text,
        updated_text=_updated_text(report.updated_at),
        location_name=location_name,
        tiles=tiles,
        is_fallback=report.is_fallback,
    )


def _tile_date(value: str) -> date | None:
    try:
        return parse_date_key(value[:10])
    except ValueError:
        return None


def _updated_text(updated_at: datetime | None) -> str:
    if updated_at is None:
        return ""
    return f"Last updated {updated_at:%H:%M}"
