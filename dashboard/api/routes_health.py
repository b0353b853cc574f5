"""
Endpoint de santé du service comptes/événements.

`/health` sonde le dépôt de comptes (lecture d'une clé inexistante): 200 si le stockage répond,
503 sinon.
"""

import structlog
from fastapi import APIRouter
from fastapi.responses import JSONResponse

from dashboard.core.container import container

router = APIRouter(tags=["health"])
log = structlog.get_logger(__name__)

PROBE_USERNAME = "__health_probe__"


@router.get("/health")
def health():
    """Vérifie la disponibilité de l'API et du backend de stockage."""
    body = {
        "service": container.settings.APP_NAME,
        "storage": getattr(container, "storage_backend", "unknown"),
    }
    try:
        container.user_repo.get(PROBE_USERNAME)
    except Exception as exc:
        log.error("health_storage_unreachable", error=str(exc))
        return JSONResponse(status_code=503, content={**body, "status": "degraded"})
    return {**body, "status": "ok"}
