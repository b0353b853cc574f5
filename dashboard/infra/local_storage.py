"""Stockage durable local du client (équivalent d'un localStorage).

Chaque donnée persistée côté client occupe un emplacement nommé:

- `dashboard-users`: comptes locaux
- `dashboard-events-<username>`: store d'événements sérialisé d'un utilisateur
- `currentUser`: marqueur de session
- `dashboard-theme`: thème préféré

`JsonFileStorage` conserve tous les emplacements dans un seul document JSON, réécrit de façon
atomique (fichier temporaire puis remplacement).
"""

from __future__ import annotations

import json
import os
from pathlib import Path
from typing import Protocol

import structlog

USERS_SLOT = "dashboard-users"
SESSION_SLOT = "currentUser"
THEME_SLOT = "dashboard-theme"

log = structlog.get_logger(__name__)


def events_slot(username: str) -> str:
    """Nom de l'emplacement des événements d'un utilisateur."""
    return f"dashboard-events-{username}"


class KeyValueStorage(Protocol):
    """Interface minimale d'un stockage clé/valeur textuel."""

    def get_item(self, key: str) -> str | None: ...

    def set_item(self, key: str, value: str) -> None: ...

    def remove_item(self, key: str) -> None: ...


class MemoryStorage:
    """Stockage volatile (tests, sessions éphémères)."""

    def __init__(self, initial: dict[str, str] | None = None) -> None:
        self._items: dict[str, str] = dict(initial or {})

    def get_item(self, key: str) -> str | None:
        return self._items.get(key)

    def set_item(self, key: str, value: str) -> None:
        self._items[key] = value

    def remove_item(self, key: str) -> None:
        self._items.pop(key, None)


class JsonFileStorage:
    """Stockage persistant dans un fichier JSON unique."""

    def __init__(self, path: str | Path) -> None:
        self.path = Path(path)

    def _read(self) -> dict[str, str]:
        if not self.path.exists():
            return {}
        try:
            with self.path.open("r", encoding="utf-8") as f:
                data = json.load(f)
        except (OSError, ValueError) as exc:
            log.error("local_storage_read_failed", path=str(self.path), error=str(exc))
            return {}
        return data if isinstance(data, dict) else {}

    def _write(self, data: dict[str, str]) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        tmp = self.path.with_suffix(self.path.suffix + ".tmp")
        with tmp.open("w", encoding="utf-8") as f:
            json.dump(data, f, indent=2, ensure_ascii=False)
        os.replace(tmp, self.path)

    def get_item(self, key: str) -> str | None:
        value = self._read().get(key)
        return value if isinstance(value, str) else None

    def set_item(self, key: str, value: str) -> None:
        data = self._read()
        data[key] = value
        self._write(data)

    def remove_item(self, key: str) -> None:
        data = self._read()
        if key in data:
            del data[key]
            self._write(data)
