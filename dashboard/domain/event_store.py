"""
Store d'événements en mémoire.

Associe une clé de jour (`YYYY-MM-DD`) à la liste ordonnée (ordre d'insertion) des événements du
jour. Le store est un objet explicite injecté dans les renderers et les adaptateurs de
persistance; il ne persiste rien lui-même.
"""

from __future__ import annotations

from collections.abc import Iterator, Mapping
from typing import Any

import structlog
from pydantic import ValidationError

from dashboard.domain.entities import DEMO_EVENTS, Event

log = structlog.get_logger(__name__)


def parse_event_payload(raw: Any) -> dict[str, list[Event]]:
    """Convertit un mapping brut `{clé: [événement, ...]}` en événements typés.

    Les entrées malformées sont ignorées (journalisées) plutôt que de faire échouer tout le
    chargement: une absence de données reste un état vide valide.
    """
    if not isinstance(raw, Mapping):
        if raw is not None:
            log.warning("event_payload_ignored", reason="not_a_mapping", kind=type(raw).__name__)
        return {}
    parsed: dict[str, list[Event]] = {}
    for key, items in raw.items():
        if not isinstance(items, list):
            log.warning("event_bucket_ignored", date_key=key, reason="not_a_list")
            continue
        bucket: list[Event] = []
        for item in items:
            try:
                bucket.append(item if isinstance(item, Event) else Event.model_validate(item))
            except ValidationError as exc:
                log.warning("event_ignored", date_key=key, errors=exc.error_count())
        parsed[str(key)] = bucket
    return parsed


class EventStore:
    """Mapping clé de jour -> liste ordonnée d'événements."""

    def __init__(self, events: Mapping[str, Any] | None = None) -> None:
        self._events: dict[str, list[Event]] = parse_event_payload(events or {})

    @classmethod
    def with_demo_events(cls) -> EventStore:
        """Store initialisé avec les entrées de démonstration."""
        return cls(DEMO_EVENTS)

    def events_on(self, date_key: str) -> list[Event]:
        """Événements du jour (liste vide si aucun)."""
        return list(self._events.get(date_key, []))

    def get(self, date_key: str, event_id: str) -> Event | None:
        return next((e for e in self._events.get(date_key, []) if e.id == event_id), None)

    def add_event(self, date_key: str, event: Event) -> Event:
        """Ajoute l'événement en fin de liste, en créant le jour si besoin."""
        self._events.setdefault(date_key, []).append(event)
        return event

    def edit_event(
        self,
        date_key: str,
        event_id: str,
        *,
        title: str | None = None,
        start: str | None = None,
        end: str | None = None,
    ) -> bool:
        """Modifie un événement en place.

        Le titre n'est appliqué que s'il est non vide après nettoyage; `start` et `end` ne sont
        appliqués qu'ensemble.

        Returns:
            bool: True si l'événement a effectivement changé.
        """
        event = self.get(date_key, event_id)
        if event is None:
            return False
        changed = False
        if title is not None:
            title = title.strip()
            if title and title != event.title:
                event.title = title
                changed = True
        if start is not None and end is not None and (start, end) != (event.start, event.end):
            event.start = start
            event.end = end
            changed = True
        return changed

    def delete_event(self, date_key: str, event_id: str) -> bool:
        """Supprime un événement par identifiant; un jour vidé disparaît du store."""
        bucket = self._events.get(date_key)
        if not bucket:
            return False
        remaining = [e for e in bucket if e.id != event_id]
        if len(remaining) == len(bucket):
            return False
        if remaining:
            self._events[date_key] = remaining
        else:
            del self._events[date_key]
        return True

    def replace_all(self, events: Mapping[str, Any]) -> None:
        """Remplace intégralement le contenu du store."""
        self._events = parse_event_payload(events)

    def merge(self, events: Mapping[str, Any]) -> None:
        """Superpose les jours présents dans `events`; les autres jours sont conservés."""
        self._events.update(parse_event_payload(events))

    def clear(self) -> None:
        self._events.clear()

    def to_payload(self) -> dict[str, list[dict[str, Any]]]:
        """Sérialise tout le store au format d'échange."""
        return {key: [e.to_payload() for e in bucket] for key, bucket in self._events.items()}

    def keys(self) -> list[str]:
        return list(self._events)

    def __contains__(self, date_key: object) -> bool:
        return bool(self._events.get(date_key))  # type: ignore[arg-type]

    def __iter__(self) -> Iterator[str]:
        return iter(list(self._events))

    def __len__(self) -> int:
        """Nombre total d'événements, tous jours confondus."""
        return sum(len(bucket) for bucket in self._events.values())
