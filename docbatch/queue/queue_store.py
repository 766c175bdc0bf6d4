import dataclasses
import threading
import uuid
from collections.abc import Callable, Mapping
from datetime import datetime, timezone

from docbatch.errors import ErrorCode
from docbatch.logging.logger import Log
from docbatch.queue.models import (
    CapturedDocument,
    Queue,
    QueueItem,
    QueueItemResult,
    QueueItemStatus,
    QueueSnapshot,
    calculate_queue_progress,
    create_empty_queue,
    queue_status,
    recalculate_totals,
)
from docbatch.queue.serialization import queue_from_dict, queue_to_dict, validate_document
from docbatch.storage.base import BaseKeyValueStore

QUEUE_STORAGE_KEY = "document_queue"


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class QueueStore:
    """Durable work queue over a key-value store.

    Every mutation loads the whole aggregate, changes it, recomputes the
    derived counts and writes it back while holding one lock, so readers
    never see a half-updated queue.
    """

    def __init__(
        self,
        store: BaseKeyValueStore,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        self._store = store
        self._clock = clock
        self._lock = threading.RLock()

    def enqueue(self, document: CapturedDocument) -> QueueItem:
        """Add a document, or return the item already holding it.

        Raises:
            InvalidDocumentError: if the document is malformed.
        """
        validate_document(document)
        with self._lock:
            queue = self._load()
            existing = self._find_by_document(queue, document.id)
            if existing is not None:
                Log.debug(f"Document {document.id} already queued as item {existing.id}")
                return existing

            item = QueueItem(
                id=uuid.uuid4().hex,
                document_id=document.id,
                document=document,
                status=QueueItemStatus.PENDING,
                added_at=self._clock(),
            )
            queue.items.append(item)
            self._commit(queue)
        Log.info(f"Queued document {document.id} as item {item.id}")
        return item

    def remove(self, item_id: str) -> None:
        with self._lock:
            queue = self._load()
            queue.items = [item for item in queue.items if item.id != item_id]
            self._commit(queue)

    def set_status(
        self,
        item_id: str,
        status: QueueItemStatus,
        result: Mapping[str, object] | None = None,
        error: str | None = None,
        error_code: ErrorCode | None = None,
    ) -> None:
        """Move an item to *status*, merging any partial result fields.

        Does nothing when the item has been removed in the meantime.
        """
        with self._lock:
            queue = self._load()
            item = self._find(queue, item_id)
            if item is None:
                Log.debug(f"Item {item_id} no longer queued, status {status.value} dropped")
                return

            now = self._clock()
            item.status = status
            if status is QueueItemStatus.PROCESSING and item.started_at is None:
                item.started_at = now
            if result is not None:
                merged = {**result, "completed_at": now}
                item.result = dataclasses.replace(item.result or QueueItemResult(), **merged)
            if error is not None:
                item.error = error
            if error_code is not None:
                item.error_code = error_code
            self._commit(queue)

    def clear_all(self) -> None:
        with self._lock:
            self._commit(create_empty_queue(self._clock()))

    def clear_completed(self) -> None:
        with self._lock:
            queue = self._load()
            queue.items = [
                item for item in queue.items if item.status is not QueueItemStatus.COMPLETED
            ]
            self._commit(queue)

    def retry_failed(self) -> int:
        """Return failed items to pending. Returns the number reset."""
        with self._lock:
            queue = self._load()
            reset = 0
            for item in queue.items:
                if item.status is QueueItemStatus.FAILED:
                    item.status = QueueItemStatus.PENDING
                    item.error = None
                    item.error_code = None
                    item.retry_count += 1
                    reset += 1
            if reset:
                self._commit(queue)
        if reset:
            Log.info(f"Reset {reset} failed items to pending")
        return reset

    def recover_interrupted(self) -> int:
        """Return items left in processing by an aborted run to pending.

        Only safe while no run is active. Returns the number reset.
        """
        with self._lock:
            queue = self._load()
            reset = 0
            for item in queue.items:
                if item.status is QueueItemStatus.PROCESSING:
                    item.status = QueueItemStatus.PENDING
                    item.started_at = None
                    reset += 1
            if reset:
                self._commit(queue)
        if reset:
            Log.warning(f"Recovered {reset} interrupted items back to pending")
        return reset

    def pending(self) -> list[QueueItem]:
        """Pending items, oldest first."""
        queue = self.get_queue()
        items = [item for item in queue.items if item.status is QueueItemStatus.PENDING]
        return sorted(items, key=lambda item: item.added_at)

    def contains(self, document_id: str) -> bool:
        return self._find_by_document(self.get_queue(), document_id) is not None

    def get_item(self, item_id: str) -> QueueItem | None:
        return self._find(self.get_queue(), item_id)

    def item_count(self) -> int:
        return self.get_queue().total

    def get_queue(self) -> Queue:
        with self._lock:
            return self._load()

    def snapshot(self) -> QueueSnapshot:
        """Current queue with its overall status and progress."""
        queue = self.get_queue()
        return QueueSnapshot(
            queue=queue,
            status=queue_status(queue),
            progress=calculate_queue_progress(queue),
        )

    def _load(self) -> Queue:
        data = self._store.get(QUEUE_STORAGE_KEY)
        if data is None:
            return create_empty_queue(self._clock())
        return queue_from_dict(data)

    def _commit(self, queue: Queue) -> None:
        recalculate_totals(queue, self._clock())
        self._store.replace(QUEUE_STORAGE_KEY, queue_to_dict(queue))

    @staticmethod
    def _find(queue: Queue, item_id: str) -> QueueItem | None:
        return next((item for item in queue.items if item.id == item_id), None)

    @staticmethod
    def _find_by_document(queue: Queue, document_id: str) -> QueueItem | None:
        return next((item for item in queue.items if item.document_id == document_id), None)
