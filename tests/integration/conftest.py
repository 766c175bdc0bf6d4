import os
import uuid
from collections.abc import Generator

import pytest

from docbatch.config.settings import Settings
from docbatch.database.connection import close_pool, get_connection, init_pool
from docbatch.database.repositories.kv_repository import PostgresKeyValueStore
from docbatch.queue.queue_store import QUEUE_STORAGE_KEY


def _test_settings() -> Settings:
    os.environ.setdefault("DB_DATABASE", "docbatch_test")
    return Settings(db_pool_timeout_seconds=5.0)


def _delete_key(key: str) -> None:
    with get_connection() as conn:
        conn.execute("DELETE FROM kv_store WHERE key = %s", (key,))
        conn.commit()


@pytest.fixture(scope="session")
def test_settings() -> Settings:
    return _test_settings()


@pytest.fixture(scope="session")
def integration_pool(test_settings: Settings) -> Generator[None, None, None]:
    try:
        init_pool(test_settings)
        PostgresKeyValueStore().ensure_schema()
    except Exception as e:
        close_pool()
        pytest.skip(f"PostgreSQL test DB not available: {e}. Set DB_* env to point at one.")
    try:
        yield
    finally:
        close_pool()


@pytest.fixture
def kv_store(integration_pool: None) -> PostgresKeyValueStore:
    return PostgresKeyValueStore()


@pytest.fixture
def unique_key(kv_store: PostgresKeyValueStore) -> Generator[str, None, None]:
    key = f"test-{uuid.uuid4().hex}"
    yield key
    _delete_key(key)


@pytest.fixture
def clean_queue(kv_store: PostgresKeyValueStore) -> Generator[PostgresKeyValueStore, None, None]:
    """Run with no persisted queue and remove whatever the test wrote."""
    _delete_key(QUEUE_STORAGE_KEY)
    yield kv_store
    _delete_key(QUEUE_STORAGE_KEY)
