import threading
from collections.abc import Callable
from datetime import datetime, timezone

from docbatch.storage.base import BaseKeyValueStore
from docbatch.upload.models import UploadRecord

UPLOAD_HISTORY_KEY = "upload_history"
DEFAULT_HISTORY_LIMIT = 100


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class UploadHistory:
    """Bounded log of upload attempts, newest last, kept in the key-value store."""

    def __init__(
        self,
        store: BaseKeyValueStore,
        *,
        limit: int = DEFAULT_HISTORY_LIMIT,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        self._store = store
        self._limit = limit
        self.clock = clock
        self._lock = threading.Lock()

    def append(self, record: UploadRecord) -> None:
        """Add *record*, dropping the oldest entries beyond the limit.

        Raises:
            StorageError: if the history cannot be written.
        """
        with self._lock:
            records = self._load_raw()
            records.append(record.to_dict())
            self._store.replace(UPLOAD_HISTORY_KEY, {"records": records[-self._limit :]})

    def entries(self) -> list[UploadRecord]:
        with self._lock:
            return [UploadRecord.from_dict(raw) for raw in self._load_raw()]

    def _load_raw(self) -> list[dict]:
        data = self._store.get(UPLOAD_HISTORY_KEY)
        return list(data.get("records", [])) if data else []
