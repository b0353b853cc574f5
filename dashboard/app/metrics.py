"""
Métriques Prometheus pour l'application.

Ce module définit les métriques Prometheus du service comptes/événements et celles du client
(persistance best-effort, repli météo).
"""

import time

from fastapi import APIRouter, Request
from prometheus_client import (
    CONTENT_TYPE_LATEST,
    Counter,
    Histogram,
    generate_latest,
)
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.responses import Response

metrics_router = APIRouter()

REQUEST_COUNT = Counter(
    "http_requests_total", "Total HTTP requests", ["method", "route", "status"]
)
REQUEST_LATENCY = Histogram(
    "http_request_duration_seconds", "Latency of HTTP requests", ["route"]
)

# Service comptes/événements
AUTH_REQUESTS = Counter(
    "auth_requests_total",
    "Total account service requests",
    ["action", "outcome"],
)
EVENT_SAVES = Counter(
    "event_saves_total",
    "Total full event collection replacements",
    ["storage"],
)

# Client
PERSISTENCE_ERRORS = Counter(
    "client_persistence_errors_total",
    "Persistence operations that failed and were swallowed",
    ["mode", "operation"],
)
WEATHER_FALLBACKS = Counter(
    "client_weather_fallbacks_total",
    "Weather fetches answered by the synthetic fallback",
    ["reason"],
)


@metrics_router.get("/metrics")
def metrics():
    """
    Expose les métriques Prometheus au format texte.

    Returns:
        Response: Réponse HTTP contenant les métriques au format Prometheus.
    """
    return Response(generate_latest(), media_type=CONTENT_TYPE_LATEST)


class PrometheusMiddleware(BaseHTTPMiddleware):
    """
    Middleware Prometheus pour mesurer les métriques HTTP.

    Collecte les métriques de comptage des requêtes et de latence par route pour l'exposition
    Prometheus.
    """

    async def dispatch(self, request: Request, call_next):
        """
        Traite une requête HTTP et collecte les métriques.

        Args:
            request: Requête HTTP entrante.
            call_next: Fonction pour appeler le middleware suivant.

        Returns:
            Response: Réponse HTTP avec métriques collectées.
        """
        start = time.perf_counter()
        response: Response = await call_next(request)
        route = request.scope.get("path", "unknown")
        REQUEST_COUNT.labels(request.method, route, str(response.status_code)).inc()
        REQUEST_LATENCY.labels(route).observe(time.perf_counter() - start)
        return response
