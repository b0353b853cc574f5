"""Supervision des requêtes asynchrones du client.

Chaque chargement, sauvegarde ou récupération météo tourne dans une `asyncio.Task` associée à une
clé (opération, utilisateur). Soumettre une nouvelle tâche pour une clé annule celle en cours:
une réponse périmée ne peut plus écraser un état plus récent. `wait` permet d'attendre une clé
sans la remplacer.
"""

from __future__ import annotations

import asyncio
from collections.abc import Coroutine, Hashable
from typing import Any, TypeVar

import structlog

T = TypeVar("T")

log = structlog.get_logger(__name__)


class SupersededError(Exception):
    """La tâche attendue a été remplacée par une requête plus récente."""


class KeyedTaskRunner:
    """Registre de tâches où la plus récente remplace la précédente pour une même clé."""

    def __init__(self) -> None:
        self._tasks: dict[Hashable, asyncio.Task] = {}

    def submit(self, key: Hashable, coro: Coroutine[Any, Any, T]) -> asyncio.Task[T]:
        """Planifie `coro` sous `key` sans l'attendre (les erreurs sont journalisées)."""
        previous = self._tasks.get(key)
        if previous is not None and not previous.done():
            previous.cancel()
            log.debug("task_superseded", key=key)
        task = asyncio.get_running_loop().create_task(coro)
        self._tasks[key] = task
        task.add_done_callback(lambda t: self._finished(key, t))
        return task

    async def run(self, key: Hashable, coro: Coroutine[Any, Any, T]) -> T:
        """Planifie puis attend `coro`.

        Raises:
            SupersededError: si la tâche est remplacée avant de se terminer.
        """
        task = self.submit(key, coro)
        await asyncio.wait({task})
        if task.cancelled():
            raise SupersededError(key)
        return task.result()

    async def wait(self, key: Hashable) -> None:
        """Attend la tâche en cours sous `key` (et celles qui la remplacent), sans l'annuler."""
        while True:
            task = self._tasks.get(key)
            if task is None or task.done():
                return
            await asyncio.wait({task})

    def is_pending(self, key: Hashable) -> bool:
        task = self._tasks.get(key)
        return task is not None and not task.done()

    def _finished(self, key: Hashable, task: asyncio.Task) -> None:
        if self._tasks.get(key) is task:
            del self._tasks[key]
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None:
            log.error("task_failed", key=key, error=str(exc), exception_type=type(exc).__name__)

    async def drain(self) -> None:
        """Attend la fin de toutes les tâches en cours (y compris celles qu'elles planifient)."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks.values()), return_exceptions=True)

    def cancel_all(self) -> None:
        for task in list(self._tasks.values()):
            task.cancel()
        self._tasks.clear()
