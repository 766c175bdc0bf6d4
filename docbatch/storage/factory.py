from docbatch.config.settings import Settings
from docbatch.database.repositories.kv_repository import PostgresKeyValueStore
from docbatch.storage.base import BaseKeyValueStore
from docbatch.storage.memory_store import InMemoryKeyValueStore


class KeyValueStoreFactory:
    """Creates the key-value backend selected in settings."""

    BACKENDS: dict[str, type[BaseKeyValueStore]] = {
        "memory": InMemoryKeyValueStore,
        "postgres": PostgresKeyValueStore,
    }

    @classmethod
    def create(cls, settings: Settings) -> BaseKeyValueStore:
        backend = settings.storage_backend.lower()
        store_cls = cls.BACKENDS.get(backend)
        if store_cls is None:
            raise ValueError(
                f"Unknown storage backend '{backend}'. Choose from: {list(cls.BACKENDS)}"
            )
        return store_cls()
