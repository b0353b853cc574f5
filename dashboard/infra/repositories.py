"""
Repositories pour la gestion des données du service.

Ce module fournit les dépôts de comptes et d'événements, avec des versions en mémoire (dev/tests)
et Redis. Les événements d'un utilisateur sont toujours remplacés en bloc.
"""

import json
from typing import Any

import redis


class InMemoryUserRepo:
    """Dépôt utilisateurs en mémoire, indexé par nom d'utilisateur."""

    def __init__(self):
        """Initialise une base mémoire vide."""
        self._db: dict[str, dict[str, Any]] = {}

    def get(self, username: str) -> dict[str, Any] | None:
        """Retourne un utilisateur, ou None s'il est absent."""
        return self._db.get(username)

    def save(self, user: dict[str, Any]) -> dict[str, Any]:
        """Enregistre/écrase un utilisateur et le renvoie."""
        self._db[user["username"]] = user
        return user


class RedisUserRepo:
    """Dépôt utilisateurs adossé à Redis (clé: `user:{username}`)."""

    def __init__(self, url: str):
        """Crée un client Redis à partir de l'URL fournie."""
        self.client = redis.Redis.from_url(url, decode_responses=True)

    def get(self, username: str) -> dict[str, Any] | None:
        """Charge et désérialise l'utilisateur, si présent."""
        raw = self.client.get(f"user:{username}")
        return json.loads(raw) if raw else None

    def save(self, user: dict[str, Any]) -> dict[str, Any]:
        """Sérialise en JSON et stocke l'utilisateur."""
        self.client.set(f"user:{user['username']}", json.dumps(user))
        return user


class InMemoryEventRepo:
    """Dépôt d'événements en mémoire: un mapping jour -> événements par utilisateur."""

    def __init__(self):
        """Initialise une base mémoire vide."""
        self._db: dict[str, dict[str, list[dict[str, Any]]]] = {}

    def get_all(self, username: str) -> dict[str, list[dict[str, Any]]]:
        """Retourne une copie des événements de l'utilisateur ({} si aucun)."""
        return {key: [dict(e) for e in items] for key, items in self._db.get(username, {}).items()}

    def replace_all(self, username: str, events: dict[str, list[dict[str, Any]]]) -> int:
        """Supprime puis réinsère tous les événements de l'utilisateur.

        Returns:
            int: Nombre d'événements enregistrés.
        """
        self._db[username] = {key: [dict(e) for e in items] for key, items in events.items() if items}
        return sum(len(items) for items in self._db[username].values())


class RedisEventRepo:
    """Dépôt d'événements via Redis (clé: `events:{username}`, document JSON)."""

    def __init__(self, url: str):
        """Crée un client Redis à partir de l'URL fournie."""
        self.client = redis.Redis.from_url(url, decode_responses=True)

    def get_all(self, username: str) -> dict[str, list[dict[str, Any]]]:
        """Charge les événements de l'utilisateur ({} si aucun)."""
        raw = self.client.get(f"events:{username}")
        return json.loads(raw) if raw else {}

    def replace_all(self, username: str, events: dict[str, list[dict[str, Any]]]) -> int:
        """Remplace atomiquement le document d'événements de l'utilisateur."""
        key = f"events:{username}"
        kept = {k: items for k, items in events.items() if items}
        pipe = self.client.pipeline()
        pipe.delete(key)
        pipe.set(key, json.dumps(kept))
        pipe.execute()
        return sum(len(items) for items in kept.values())
