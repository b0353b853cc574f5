"""
Entités du domaine métier.

Ce module définit les modèles de données principaux du tableau de bord: les événements planifiés
et les comptes utilisateurs.
"""

from __future__ import annotations

from typing import Any
from uuid import uuid4

from pydantic import BaseModel, ConfigDict, Field, field_validator

DEFAULT_EVENT_COLOR = "#3EA6FF"
ALL_DAY_START = "00:00"
ALL_DAY_END = "23:59"


def new_event_id() -> str:
    """Génère un identifiant d'événement stable."""
    return uuid4().hex


class Event(BaseModel):
    """Événement planifié sur un jour.

    Les heures sont des chaînes `HH:MM` sans fuseau. Un événement "toute la journée" couvre par
    convention `00:00`-`23:59`, sans que ce soit imposé. L'identifiant permet d'éditer ou de
    supprimer l'événement même après un rechargement depuis la persistance.
    """

    model_config = ConfigDict(populate_by_name=True, validate_assignment=True)

    id: str = Field(default_factory=new_event_id)
    title: str = Field(min_length=1)
    start: str = ALL_DAY_START
    end: str = ALL_DAY_END
    all_day: bool = Field(default=False, alias="allDay")
    color: str = DEFAULT_EVENT_COLOR

    @field_validator("id", "color", mode="before")
    @classmethod
    def _fill_defaults(cls, value: Any, info) -> Any:
        if value is None or value == "":
            return new_event_id() if info.field_name == "id" else DEFAULT_EVENT_COLOR
        return value

    def to_payload(self) -> dict[str, Any]:
        """Sérialise l'événement au format d'échange (`allDay`)."""
        return self.model_dump(by_alias=True)


class UserRecord(BaseModel):
    """Compte utilisateur: identifiant unique et secret haché."""

    username: str
    password_hash: str = ""


# Contenu de démonstration affiché avant toute authentification
DEMO_EVENTS: dict[str, list[dict[str, Any]]] = {
    "2025-08-18": [
        {"title": "Garbage, grey bin", "start": "00:00", "end": "23:59", "allDay": True},
        {"title": "Discovery Day", "start": "00:00", "end": "23:59", "allDay": True},
        {"title": "Team sync", "start": "09:00", "end": "10:00", "allDay": False},
        {"title": "Pick up groceries", "start": "15:00", "end": "16:00", "allDay": False},
    ],
    "2025-08-19": [
        {"title": "Project review", "start": "14:00", "end": "15:00", "allDay": False},
    ],
    "2025-08-20": [
        {"title": "Dentist Appointment", "start": "11:30", "end": "12:30", "allDay": False},
        {"title": "Yoga class", "start": "18:00", "end": "19:00", "allDay": False},
    ],
}
