"""Enveloppe d'erreur du service comptes/événements.

Toutes les erreurs sont renvoyées sous la forme `{"error": "<message>"}`; les détails techniques
des erreurs inattendues sont journalisés mais jamais exposés.
"""

from __future__ import annotations

import structlog
from fastapi import Request
from fastapi.responses import JSONResponse

from dashboard.core.http_constants import HTTP_INTERNAL_SERVER_ERROR

log = structlog.get_logger(__name__)


class ServiceError(Exception):
    """Erreur métier portant un statut HTTP et un message utilisateur."""

    def __init__(self, status_code: int, message: str) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.message = message


def error_response(status_code: int, message: str) -> JSONResponse:
    """Construit la réponse d'erreur standard."""
    return JSONResponse(status_code=status_code, content={"error": message})


def handle_service_error(request: Request, exc: ServiceError) -> JSONResponse:
    """Convertit une `ServiceError` en réponse standard."""
    log.info(
        "service_error",
        path=request.url.path,
        status_code=exc.status_code,
        error_message=exc.message,
    )
    return error_response(exc.status_code, exc.message)


def handle_generic_exception(request: Request, exc: Exception) -> JSONResponse:
    """Gère les exceptions inattendues avec l'enveloppe standard."""
    log.error(
        "unexpected_error",
        path=request.url.path,
        exception_type=type(exc).__name__,
        exc_info=exc,
    )
    return error_response(HTTP_INTERNAL_SERVER_ERROR, "Internal server error")
