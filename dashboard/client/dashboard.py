"""
Contrôleur du tableau de bord.

Ce module porte l'état de vue de l'application (date sélectionnée, thème, unités, lieu, dernière
prévision) et les actions utilisateur qui le modifient. Chaque action suit le même chemin:

    action -> mutation du store -> sauvegarde (fire-and-forget) -> rendu des vues

Les requêtes réseau passent par un `KeyedTaskRunner`: une nouvelle récupération météo remplace
celle en cours, et une sauvegarde remplace la sauvegarde encore en vol du même utilisateur.
Chargements et sauvegardes ont des clés distinctes: aucun ne peut annuler l'autre.
"""

from __future__ import annotations

import re
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import date

import httpx
import structlog

from dashboard.client.persistence import PersistenceAdapter
from dashboard.client.planner import build_new_event, parse_time_range
from dashboard.client.tasks import KeyedTaskRunner, SupersededError
from dashboard.client.views import (
    CalendarView,
    PlannerView,
    WeatherView,
    build_calendar_view,
    build_planner_view,
    build_weather_view,
)
from dashboard.core.settings import Settings, get_settings
from dashboard.domain.dates import parse_date_key, shift_month, to_date_key
from dashboard.domain.entities import Event
from dashboard.domain.event_store import EventStore
from dashboard.domain.weather import WeatherReport
from dashboard.infra.http_clients import GeoClient, WeatherClient
from dashboard.infra.local_storage import THEME_SLOT, KeyValueStorage

log = structlog.get_logger(__name__)

LAT_LON_RE = re.compile(r"(-?\d+(?:\.\d+)?)\s*,\s*(-?\d+(?:\.\d+)?)")
WEATHER_KEY = ("weather",)


def load_key(username: str) -> tuple[str, str]:
    return ("load", username)


def save_key(username: str) -> tuple[str, str]:
    return ("save", username)


@dataclass
class Location:
    lat: float
    lon: float
    name: str


@dataclass
class ViewState:
    """État de vue; seul le thème est persisté."""

    selected_date: date
    theme: str
    units: str
    location: Location
    forecast: WeatherReport | None = None


@dataclass
class RenderedViews:
    calendar: CalendarView
    planner: PlannerView
    weather: WeatherView | None = None


@dataclass
class DashboardController:
    """Actions du tableau de bord et orchestration des rendus."""

    store: EventStore
    persistence: PersistenceAdapter
    weather_client: WeatherClient
    geo_client: GeoClient
    storage: KeyValueStorage
    settings: Settings = field(default_factory=get_settings)
    runner: KeyedTaskRunner = field(default_factory=KeyedTaskRunner)
    today: Callable[[], date] = date.today
    on_render: Callable[[RenderedViews], None] | None = None

    def __post_init__(self) -> None:
        self.username: str | None = None
        self.initialized = False
        self.loading = False
        self.render_count = 0
        self.views: RenderedViews | None = None
        self.state = ViewState(
            selected_date=self.today(),
            theme=self._stored_theme(),
            units=self.settings.DEFAULT_UNITS,
            location=Location(
                lat=self.settings.DEFAULT_LAT,
                lon=self.settings.DEFAULT_LON,
                name=self.settings.DEFAULT_LOCATION_NAME,
            ),
        )

    def _stored_theme(self) -> str:
        try:
            theme = self.storage.get_item(THEME_SLOT)
        except OSError as exc:
            log.error("theme_load_failed", error=str(exc))
            theme = None
        return theme if theme in ("dark", "light") else self.settings.DEFAULT_THEME

    # ---- Session -------------------------------------------------------------

    async def activate(self, username: str) -> None:
        """Bascule le tableau de bord sur `username`.

        La dernière sauvegarde de cet utilisateur est attendue avant de relire sa collection, puis
        le résultat est réécrit pour établir une base persistée. Le planificateur est verrouillé
        pendant le chargement. L'initialisation complète ne s'exécute qu'une fois; les activations
        suivantes se contentent d'un nouveau rendu.
        """
        self.username = username
        self.store.clear()
        self.loading = True
        loaded = EventStore()
        try:
            await self.runner.wait(save_key(username))
            await self.runner.run(load_key(username), self.persistence.load_events(username, loaded))
        except SupersededError:
            log.info("events_load_superseded", username=username)
            return
        if self.username != username:
            # une autre session a pris la main pendant le chargement
            log.info("events_load_discarded", username=username)
            return
        self.store.replace_all(loaded.to_payload())
        self.loading = False
        try:
            await self.runner.run(save_key(username), self.persistence.save_events(username, self._snapshot()))
        except SupersededError:
            log.info("events_baseline_superseded", username=username)
        log.info("dashboard_activated", username=username, events=len(self.store))
        if not self.initialized:
            await self.initialize()
        else:
            self.render()

    async def initialize(self) -> None:
        """Première récupération météo puis rendu; sans effet si déjà fait."""
        if self.initialized:
            self.render()
            return
        self.initialized = True
        await self.refresh_weather()

    def deactivate(self) -> None:
        """Oublie l'utilisateur courant et vide le store en mémoire."""
        log.info("dashboard_deactivated", username=self.username)
        self.username = None
        self.loading = False
        self.store.clear()

    # ---- Rendu ---------------------------------------------------------------

    def render(self) -> RenderedViews:
        selected = self.state.selected_date
        weather = None
        if self.state.forecast is not None:
            weather = build_weather_view(self.state.forecast, self.state.location.name, self.today())
        self.views = RenderedViews(
            calendar=build_calendar_view(selected.year, selected.month, self.store, selected, self.today()),
            planner=build_planner_view(selected, self.store),
            weather=weather,
        )
        self.render_count += 1
        if self.on_render is not None:
            self.on_render(self.views)
        return self.views

    # ---- Navigation ----------------------------------------------------------

    def select_date(self, date_key: str) -> None:
        self.state.selected_date = parse_date_key(date_key)
        self.render()

    def previous_month(self) -> None:
        self.state.selected_date = shift_month(self.state.selected_date, -1)
        self.render()

    def next_month(self) -> None:
        self.state.selected_date = shift_month(self.state.selected_date, 1)
        self.render()

    def go_today(self) -> None:
        self.state.selected_date = self.today()
        self.render()

    def set_year(self, text: str | None) -> bool:
        """Saute au 1er du mois courant de l'année saisie; une saisie invalide est ignorée."""
        if not text or not text.strip():
            return False
        try:
            year = int(text.strip())
            self.state.selected_date = date(year, self.state.selected_date.month, 1)
        except ValueError:
            return False
        self.render()
        return True

    def toggle_theme(self) -> str:
        self.state.theme = "light" if self.state.theme == "dark" else "dark"
        try:
            self.storage.set_item(THEME_SLOT, self.state.theme)
        except OSError as exc:
            log.error("theme_save_failed", error=str(exc))
        self.render()
        return self.state.theme

    # ---- Météo ---------------------------------------------------------------

    async def refresh_weather(self) -> WeatherReport | None:
        """Récupère la météo du lieu courant; une requête plus récente rend celle-ci caduque."""
        loc = self.state.location
        try:
            report = await self.runner.run(
                WEATHER_KEY,
                self.weather_client.fetch_weather(loc.lat, loc.lon, self.state.units),
            )
        except SupersededError:
            log.debug("weather_refresh_superseded", location=loc.name)
            return None
        self.state.forecast = report
        self.render()
        return report

    async def change_location(self, text: str | None) -> Location | None:
        """Change de lieu depuis `lat,lon` ou un nom de lieu.

        Un lieu introuvable (ou un géocodage en échec) garde les coordonnées précédentes mais
        affiche le libellé saisi.
        """
        if not text or not text.strip():
            return None
        text = text.strip()
        match = LAT_LON_RE.search(text)
        if match:
            lat, lon = float(match.group(1)), float(match.group(2))
            self.state.location = Location(lat=lat, lon=lon, name=f"{lat:.4f}, {lon:.4f}")
            await self.refresh_weather()
            return self.state.location
        try:
            geo = await self.geo_client.geocode(text)
        except (httpx.HTTPError, ValueError, KeyError) as exc:
            log.error("geocoding_failed", query=text, error=str(exc))
            geo = None
        if geo is not None:
            self.state.location = Location(lat=geo.lat, lon=geo.lon, name=geo.display_name)
            await self.refresh_weather()
            return self.state.location
        self.state.location = Location(
            lat=self.state.location.lat,
            lon=self.state.location.lon,
            name=text,
        )
        self.render()
        return None

    # ---- Planificateur -------------------------------------------------------

    def schedule_save(self) -> None:
        """Planifie la sauvegarde complète du store (sans attendre le résultat).

        La sauvegarde porte sur une copie prise maintenant: un logout qui vide le store avant
        l'exécution de la tâche ne doit pas écraser la collection persistée.
        """
        if not self.username or self.loading:
            return
        self.runner.submit(
            save_key(self.username),
            self.persistence.save_events(self.username, self._snapshot()),
        )

    def _snapshot(self) -> EventStore:
        return EventStore(self.store.to_payload())

    def _locked(self, action: str) -> bool:
        """Vrai tant que la collection de l'utilisateur est en cours de chargement."""
        if self.loading:
            log.info("planner_locked", action=action, username=self.username)
        return self.loading

    def _commit(self, changed: bool) -> None:
        if changed:
            self.schedule_save()
        self.render()

    def add_event(self, title: str | None, time_range: str | None = None) -> Event | None:
        """Ajoute un événement au jour sélectionné (plage vide = toute la journée)."""
        if self._locked("add"):
            return None
        event = build_new_event(title or "", time_range)
        if event is None:
            return None
        self.store.add_event(to_date_key(self.state.selected_date), event)
        self._commit(True)
        return event

    def delete_event(self, date_key: str, event_id: str) -> bool:
        if self._locked("delete"):
            return False
        deleted = self.store.delete_event(date_key, event_id)
        self._commit(deleted)
        return deleted

    def edit_event(
        self,
        date_key: str,
        event_id: str,
        title_input: str | None = None,
        time_input: str | None = None,
    ) -> bool:
        """Modifie le titre et, pour un événement horaire, la plage horaire.

        Une saisie vide ou annulée (None) conserve la valeur existante.
        """
        if self._locked("edit"):
            return False
        event = self.store.get(date_key, event_id)
        start = end = None
        if event is not None and not event.all_day:
            parsed = parse_time_range(time_input)
            if parsed is not None:
                start, end = parsed
        changed = self.store.edit_event(date_key, event_id, title=title_input, start=start, end=end)
        self._commit(changed)
        return changed

    def event_action(
        self,
        date_key: str,
        event_id: str,
        confirm_delete: bool,
        title_input: str | None = None,
        time_input: str | None = None,
    ) -> bool:
        """Interaction combinée: suppression si confirmée, sinon édition."""
        if confirm_delete:
            return self.delete_event(date_key, event_id)
        return self.edit_event(date_key, event_id, title_input, time_input)
