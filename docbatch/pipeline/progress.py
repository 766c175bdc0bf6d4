import dataclasses
from typing import Any

from docbatch.errors import DocBatchError
from docbatch.logging.logger import Log
from docbatch.pipeline.models import BatchProgress, ProgressCallback
from docbatch.storage.base import BaseKeyValueStore

PROGRESS_STORAGE_KEY = "batch_progress"


def progress_to_dict(progress: BatchProgress) -> dict[str, Any]:
    data = dataclasses.asdict(progress)
    data["phase"] = progress.phase.value
    return data


class ProgressReporter:
    """Publishes progress snapshots to the callback and the key-value store."""

    def __init__(
        self,
        callback: ProgressCallback | None = None,
        store: BaseKeyValueStore | None = None,
    ) -> None:
        self._callback = callback
        self._store = store

    def report(self, progress: BatchProgress) -> BatchProgress:
        """Emit a copy of *progress* and return it.

        A failed store write is logged; the callback still receives the snapshot.
        """
        snapshot = dataclasses.replace(progress)
        if self._store is not None:
            try:
                self._store.replace(PROGRESS_STORAGE_KEY, progress_to_dict(snapshot))
            except DocBatchError as exc:
                Log.warning(f"Could not persist progress: {exc}")
        if self._callback is not None:
            try:
                self._callback(snapshot)
            except Exception as exc:
                Log.warning(f"Progress callback raised: {exc}")
        return snapshot
