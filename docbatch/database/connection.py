from collections.abc import Generator
from contextlib import contextmanager
from typing import Any

import psycopg
from psycopg.conninfo import make_conninfo
from psycopg_pool import ConnectionPool, PoolTimeout

from docbatch.config.settings import Settings
from docbatch.logging.logger import Log
from docbatch.storage.exceptions import StorageError

_pool: ConnectionPool | None = None


def init_pool(settings: Settings) -> None:
    """Open the pool backing the Postgres key-value store and wait for it.

    Raises:
        StorageError: if no connection is ready within the pool timeout.
    """
    global _pool  # noqa: PLW0603
    conninfo = make_conninfo(
        host=settings.db_host,
        port=settings.db_port,
        dbname=settings.db_database,
        user=settings.db_username,
        password=settings.db_password,
    )
    pool = ConnectionPool(
        conninfo,
        min_size=settings.db_pool_min_size,
        max_size=settings.db_pool_max_size,
        timeout=settings.db_pool_timeout_seconds,
        open=True,
    )
    try:
        pool.wait(timeout=settings.db_pool_timeout_seconds)
    except PoolTimeout as exc:
        pool.close()
        raise StorageError(
            f"Database {settings.db_host}:{settings.db_port}/{settings.db_database} "
            f"unreachable after {settings.db_pool_timeout_seconds}s"
        ) from exc
    _pool = pool
    Log.info(f"Connection pool ready ({settings.db_pool_min_size}-{settings.db_pool_max_size})")


def close_pool() -> None:
    global _pool  # noqa: PLW0603
    if _pool is not None:
        _pool.close()
        _pool = None


@contextmanager
def get_connection() -> Generator[psycopg.Connection[Any], None, None]:
    """Yield a pooled connection. Caller manages commit/rollback."""
    if _pool is None:
        raise RuntimeError("Connection pool not initialized. Call init_pool() first.")
    with _pool.connection() as conn:
        yield conn
