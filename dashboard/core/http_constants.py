"""Constantes HTTP pour éviter les valeurs magiques dans le code.

Ce module définit les codes de statut HTTP utilisés par le service comptes/événements et par les
clients HTTP du tableau de bord.
"""

# Codes de statut HTTP courants
HTTP_OK = 200
HTTP_BAD_REQUEST = 400
HTTP_UNAUTHORIZED = 401
HTTP_NOT_FOUND = 404
HTTP_METHOD_NOT_ALLOWED = 405
HTTP_INTERNAL_SERVER_ERROR = 500

# Bornes des familles de statuts
HTTP_STATUS_CLIENT_ERROR_MIN = 400
HTTP_STATUS_SERVER_ERROR_MIN = 500

# Méthodes refusées par les endpoints /auth et /events
UNSUPPORTED_AUTH_METHODS = ["GET", "PUT", "PATCH", "DELETE"]
UNSUPPORTED_EVENTS_METHODS = ["PUT", "PATCH", "DELETE"]
