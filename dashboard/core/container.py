from dashboard.core.settings import get_settings
from dashboard.infra.repositories import (
    InMemoryEventRepo,
    InMemoryUserRepo,
    RedisEventRepo,
    RedisUserRepo,
)


class Container:
    def __init__(self):
        self.settings = get_settings()
        if self.settings.REDIS_URL:
            try:
                self.user_repo = RedisUserRepo(self.settings.REDIS_URL)
                self.event_repo = RedisEventRepo(self.settings.REDIS_URL)
                self.storage_backend = "redis"
            except Exception as err:
                if self.settings.REQUIRE_REDIS:
                    raise RuntimeError("Redis required but unavailable") from err
                self._use_memory("memory-fallback")
        else:
            if self.settings.REQUIRE_REDIS:
                raise RuntimeError("Redis required but REDIS_URL not set")
            self._use_memory("memory")

    def _use_memory(self, label: str) -> None:
        self.user_repo = InMemoryUserRepo()
        self.event_repo = InMemoryEventRepo()
        self.storage_backend = label


container = Container()
"""
Conteneur d'injection de dépendances du service.

Instancie les composants centraux (settings, dépôts comptes/événements) et expose un singleton
`container` utilisé par les routes.
"""
