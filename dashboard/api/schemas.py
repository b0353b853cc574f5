# Schémas Pydantic exposés par l'API (requêtes et réponses).

from pydantic import BaseModel, ConfigDict, Field

from dashboard.domain.entities import DEFAULT_EVENT_COLOR


class AuthRequest(BaseModel):
    """Requête adressée au service de comptes (`POST /auth`).

    Champs:
    - action: str (signup | login | changePassword | resetPassword)
    - username: str
    - password: str | None (mot de passe courant)
    - newPassword: str | None (changePassword / resetPassword)
    """

    model_config = ConfigDict(populate_by_name=True)

    action: str | None = None
    username: str | None = None
    password: str | None = None
    new_password: str | None = Field(default=None, alias="newPassword")


class EventRecord(BaseModel):
    """Événement tel qu'échangé avec le service d'événements.

    Champs:
    - id: str | None (identifiant client, conservé tel quel)
    - title: str
    - start / end: str (HH:MM)
    - allDay: bool
    - color: str (couleur d'affichage, défaut fixe si absente)
    """

    model_config = ConfigDict(populate_by_name=True)

    id: str | None = None
    title: str = Field(min_length=1)
    start: str
    end: str
    all_day: bool = Field(alias="allDay")
    color: str | None = None

    def to_wire(self) -> dict:
        data = self.model_dump(by_alias=True, exclude_none=True)
        data["color"] = self.color or DEFAULT_EVENT_COLOR
        return data


class EventsSaveRequest(BaseModel):
    """Corps de `POST /events`: collection complète d'un utilisateur."""

    user: str = Field(min_length=1)
    events: dict[str, list[EventRecord]]


class EventsResponse(BaseModel):
    """Réponse de `GET /events`."""

    events: dict[str, list[dict]]


class StatusResponse(BaseModel):
    """Réponse de succès (`ok` / `saved`)."""

    status: str
