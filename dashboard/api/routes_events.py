"""
Routes du service d'événements.

- `GET /events?user=<username>`: collection complète de l'utilisateur (`{}` s'il est inconnu)
- `POST /events`: remplace intégralement la collection de l'utilisateur (pas de fusion)
"""

import json

import structlog
from fastapi import APIRouter, Request
from pydantic import ValidationError

from dashboard.api.errors import error_response
from dashboard.api.schemas import EventsResponse, EventsSaveRequest, StatusResponse
from dashboard.app.metrics import EVENT_SAVES
from dashboard.core.container import container
from dashboard.core.http_constants import (
    HTTP_BAD_REQUEST,
    HTTP_INTERNAL_SERVER_ERROR,
    HTTP_METHOD_NOT_ALLOWED,
    UNSUPPORTED_EVENTS_METHODS,
)

router = APIRouter(tags=["events"])
log = structlog.get_logger(__name__)


@router.get("/events")
def get_events(user: str | None = None):
    """Retourne les événements d'un utilisateur, indexés par clé de jour."""
    if not user:
        return error_response(HTTP_BAD_REQUEST, "Missing user parameter")
    try:
        events = container.event_repo.get_all(user) if container.user_repo.get(user) else {}
    except Exception as exc:
        log.exception("events_load_failed", username=user, error=str(exc))
        return error_response(HTTP_INTERNAL_SERVER_ERROR, "Internal server error")
    return EventsResponse(events=events).model_dump()


@router.post("/events")
async def save_events(request: Request):
    """Persiste la collection complète d'un utilisateur.

    L'utilisateur est créé avec un secret vide s'il n'existe pas encore.
    """
    try:
        body = json.loads(await request.body() or b"{}")
        payload = EventsSaveRequest.model_validate(body)
    except (ValueError, ValidationError):
        return error_response(HTTP_BAD_REQUEST, "Invalid payload")
    events = {
        key: [record.to_wire() for record in records]
        for key, records in payload.events.items()
    }
    try:
        if not container.user_repo.get(payload.user):
            container.user_repo.save({"username": payload.user, "password_hash": ""})
            log.info("events_user_created", username=payload.user)
        count = container.event_repo.replace_all(payload.user, events)
    except Exception as exc:
        log.exception("events_save_failed", username=payload.user, error=str(exc))
        return error_response(HTTP_INTERNAL_SERVER_ERROR, "Internal server error")
    EVENT_SAVES.labels(container.storage_backend).inc()
    log.info("events_saved", username=payload.user, days=len(events), events=count)
    return StatusResponse(status="saved").model_dump()


@router.api_route("/events", methods=UNSUPPORTED_EVENTS_METHODS, include_in_schema=False)
async def events_method_not_allowed():
    """Seuls GET et POST sont acceptés."""
    return error_response(HTTP_METHOD_NOT_ALLOWED, "Method Not Allowed")
