from typing import Any

import psycopg
from psycopg.types.json import Jsonb

from docbatch.database.connection import get_connection
from docbatch.storage.base import BaseKeyValueStore
from docbatch.storage.exceptions import StorageError


class PostgresKeyValueStore(BaseKeyValueStore):
    """Key-value persistence backed by the kv_store table (JSONB values)."""

    def ensure_schema(self) -> None:
        """Create the kv_store table if it does not exist."""
        try:
            with get_connection() as conn:
                conn.execute(
                    """
                    CREATE TABLE IF NOT EXISTS kv_store (
                        key TEXT PRIMARY KEY,
                        value JSONB NOT NULL,
                        updated_at TIMESTAMPTZ NOT NULL DEFAULT NOW()
                    )
                    """
                )
                conn.commit()
        except psycopg.Error as exc:
            raise StorageError(f"Failed to create kv_store table: {exc}") from exc

    def get(self, key: str) -> dict[str, Any] | None:
        try:
            with get_connection() as conn:
                with conn.cursor() as cur:
                    cur.execute("SELECT value FROM kv_store WHERE key = %s", (key,))
                    row = cur.fetchone()
        except psycopg.Error as exc:
            raise StorageError(f"Failed to read key '{key}': {exc}") from exc

        if row is None:
            return None
        return row[0]

    def replace(self, key: str, value: dict[str, Any]) -> None:
        try:
            with get_connection() as conn:
                conn.execute(
                    """
                    INSERT INTO kv_store (key, value, updated_at)
                    VALUES (%s, %s, NOW())
                    ON CONFLICT (key)
                    DO UPDATE SET value = EXCLUDED.value, updated_at = NOW()
                    """,
                    (key, Jsonb(value)),
                )
                conn.commit()
        except psycopg.Error as exc:
            raise StorageError(f"Failed to write key '{key}': {exc}") from exc
