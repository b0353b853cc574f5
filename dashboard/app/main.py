"""
Application principale FastAPI.

Ce module assemble le service de comptes et le service d'événements consommés par le client du
tableau de bord en mode distant.

Responsabilités du module:
- Initialiser le logging structuré
- Construire l'application FastAPI avec son titre/debug
- Ajouter les middlewares (request id, timing, métriques)
- Monter les routers (santé, comptes, événements, métriques)
- Normaliser les erreurs au format `{"error": ...}`
"""

from __future__ import annotations

from fastapi import FastAPI

from dashboard.api.errors import ServiceError, handle_generic_exception, handle_service_error
from dashboard.api.routes_auth import router as auth_router
from dashboard.api.routes_events import router as events_router
from dashboard.api.routes_health import router as health_router
from dashboard.app.metrics import PrometheusMiddleware, metrics_router
from dashboard.core.container import container
from dashboard.core.logging import setup_logging
from dashboard.middlewares.request_id import RequestIDMiddleware
from dashboard.middlewares.timing import TimingMiddleware


def create_app() -> FastAPI:
    """
    Construit et retourne l'application FastAPI prête à l'usage.

    Étapes:
    - Configure le logging structuré (structlog)
    - Lit les paramètres d'exécution
    - Ajoute les middlewares utiles au debug/traçabilité
    - Publie les routes de santé, de comptes et d'événements
    """
    settings = container.settings
    setup_logging(settings.LOG_LEVEL)
    app = FastAPI(title=settings.APP_NAME, debug=settings.APP_DEBUG)
    app.add_middleware(PrometheusMiddleware)
    app.add_middleware(TimingMiddleware)
    app.add_middleware(RequestIDMiddleware)
    app.add_exception_handler(ServiceError, handle_service_error)
    app.add_exception_handler(Exception, handle_generic_exception)
    app.include_router(health_router)
    app.include_router(auth_router)
    app.include_router(events_router)
    app.include_router(metrics_router)
    return app


app = create_app()


def run() -> None:
    """Lance le service avec uvicorn (point d'entrée `dashboard-server`)."""
    import uvicorn

    settings = container.settings
    uvicorn.run("dashboard.app.main:app", host=settings.APP_HOST, port=settings.APP_PORT)


if __name__ == "__main__":
    run()
