"""
Routes du service de comptes.

Un unique endpoint `POST /auth` reçoit une action (`signup`, `login`, `changePassword`,
`resetPassword`) et répond `{"status": "ok"}` ou `{"error": "..."}`.
"""

import json

import structlog
from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse
from pydantic import ValidationError

from dashboard.api.errors import ServiceError, error_response
from dashboard.api.schemas import AuthRequest, StatusResponse
from dashboard.app.metrics import AUTH_REQUESTS
from dashboard.core.container import container
from dashboard.core.http_constants import (
    HTTP_BAD_REQUEST,
    HTTP_INTERNAL_SERVER_ERROR,
    HTTP_METHOD_NOT_ALLOWED,
    HTTP_NOT_FOUND,
    HTTP_UNAUTHORIZED,
    UNSUPPORTED_AUTH_METHODS,
)
from dashboard.domain.auth import hash_password, verify_password

router = APIRouter(tags=["auth"])
log = structlog.get_logger(__name__)


def _ok() -> dict:
    return StatusResponse(status="ok").model_dump()


def signup(p: AuthRequest) -> dict:
    """Crée un compte si le nom d'utilisateur est libre."""
    if container.user_repo.get(p.username):
        raise ServiceError(HTTP_BAD_REQUEST, "User already exists")
    container.user_repo.save(
        {"username": p.username, "password_hash": hash_password(p.password or "")}
    )
    return _ok()


def login(p: AuthRequest) -> dict:
    """Vérifie les identifiants d'un compte existant."""
    user = container.user_repo.get(p.username)
    if not user or not verify_password(p.password, user.get("password_hash", "")):
        raise ServiceError(HTTP_UNAUTHORIZED, "Invalid credentials")
    return _ok()


def change_password(p: AuthRequest) -> dict:
    """Change le mot de passe après vérification du mot de passe courant."""
    if not p.password or not p.new_password:
        raise ServiceError(HTTP_BAD_REQUEST, "Missing password parameters")
    user = container.user_repo.get(p.username)
    if not user or not verify_password(p.password, user.get("password_hash", "")):
        raise ServiceError(HTTP_UNAUTHORIZED, "Invalid credentials")
    container.user_repo.save({**user, "password_hash": hash_password(p.new_password)})
    return _ok()


def reset_password(p: AuthRequest) -> dict:
    """Réinitialise le mot de passe d'un compte existant (parcours « mot de passe oublié »)."""
    if not p.new_password:
        raise ServiceError(HTTP_BAD_REQUEST, "Missing password parameters")
    user = container.user_repo.get(p.username)
    if not user:
        raise ServiceError(HTTP_NOT_FOUND, "User does not exist")
    container.user_repo.save({**user, "password_hash": hash_password(p.new_password)})
    return _ok()


ACTIONS = {
    "signup": signup,
    "login": login,
    "changePassword": change_password,
    "resetPassword": reset_password,
}


@router.post("/auth")
async def auth(request: Request):
    """Point d'entrée unique du service de comptes."""
    try:
        body = json.loads(await request.body() or b"{}")
    except ValueError:
        return error_response(HTTP_BAD_REQUEST, "Invalid JSON")
    try:
        payload = AuthRequest.model_validate(body)
    except ValidationError:
        return error_response(HTTP_BAD_REQUEST, "Invalid payload")
    if not payload.action or not payload.username:
        return error_response(HTTP_BAD_REQUEST, "Missing parameters")
    handler = ACTIONS.get(payload.action)
    if handler is None:
        AUTH_REQUESTS.labels("unknown", "rejected").inc()
        return error_response(HTTP_BAD_REQUEST, "Unknown action")
    try:
        result = handler(payload)
    except ServiceError as exc:
        AUTH_REQUESTS.labels(payload.action, "rejected").inc()
        log.info("auth_rejected", action=payload.action, username=payload.username, error=exc.message)
        return error_response(exc.status_code, exc.message)
    except Exception as exc:
        AUTH_REQUESTS.labels(payload.action, "error").inc()
        log.exception("auth_failed", action=payload.action, username=payload.username, error=str(exc))
        return error_response(HTTP_INTERNAL_SERVER_ERROR, "Internal server error")
    AUTH_REQUESTS.labels(payload.action, "ok").inc()
    log.info("auth_ok", action=payload.action, username=payload.username)
    return JSONResponse(result)


@router.api_route("/auth", methods=UNSUPPORTED_AUTH_METHODS, include_in_schema=False)
async def auth_method_not_allowed():
    """Seul POST est accepté."""
    return error_response(HTTP_METHOD_NOT_ALLOWED, "Method Not Allowed")
