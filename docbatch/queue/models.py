from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum

from docbatch.errors import ErrorCode


class QueueItemStatus(str, Enum):
    PENDING = "pending"
    PROCESSING = "processing"
    COMPLETED = "completed"
    FAILED = "failed"


class QueueStatus(str, Enum):
    """Overall queue state shown to callers."""

    EMPTY = "empty"
    PENDING = "pending"
    PROCESSING = "processing"
    COMPLETED = "completed"
    PARTIAL_FAILURE = "partial_failure"


@dataclass(frozen=True)
class DocumentImage:
    """One image locator of a captured document, in display order."""

    url: str
    index: int = 0
    width: int | None = None
    height: int | None = None
    alt_text: str | None = None


@dataclass(frozen=True)
class CapturedDocument:
    """Immutable source record produced by the extraction component."""

    id: str
    source_url: str
    title: str
    body: str
    author_name: str
    captured_at: datetime
    images: tuple[DocumentImage, ...] = ()
    author_id: str | None = None


@dataclass
class QueueItemResult:
    filename: str | None = None
    size_bytes: int | None = None
    page_count: int | None = None
    failed_image_count: int | None = None
    remote_id: str | None = None
    remote_link: str | None = None
    completed_at: datetime | None = None


@dataclass
class QueueItem:
    """A unit of pipeline work wrapping a captured document."""

    id: str
    document_id: str
    document: CapturedDocument
    status: QueueItemStatus
    added_at: datetime
    started_at: datetime | None = None
    result: QueueItemResult | None = None
    error: str | None = None
    error_code: ErrorCode | None = None
    retry_count: int = 0


@dataclass
class Queue:
    """The persisted aggregate. Counts are derived; see recalculate_totals."""

    created_at: datetime
    updated_at: datetime
    items: list[QueueItem] = field(default_factory=list)
    total: int = 0
    pending: int = 0
    processing: int = 0
    completed: int = 0
    failed: int = 0


@dataclass(frozen=True)
class QueueProgress:
    percentage: int
    completed: int
    total: int
    success_count: int
    failed_count: int


@dataclass(frozen=True)
class QueueSnapshot:
    """Read-only view returned to external callers."""

    queue: Queue
    status: QueueStatus
    progress: QueueProgress


def create_empty_queue(now: datetime) -> Queue:
    return Queue(created_at=now, updated_at=now)


def recalculate_totals(queue: Queue, now: datetime) -> None:
    """Recompute every derived count from the item list."""
    statuses = [item.status for item in queue.items]
    queue.total = len(statuses)
    queue.pending = statuses.count(QueueItemStatus.PENDING)
    queue.processing = statuses.count(QueueItemStatus.PROCESSING)
    queue.completed = statuses.count(QueueItemStatus.COMPLETED)
    queue.failed = statuses.count(QueueItemStatus.FAILED)
    queue.updated_at = now


def percent_of(done: int, total: int) -> int:
    """Whole-number percentage rounded half up; 0 when total is 0."""
    if total <= 0:
        return 0
    return (done * 200 + total) // (total * 2)


def queue_status(queue: Queue) -> QueueStatus:
    if queue.total == 0:
        return QueueStatus.EMPTY
    if queue.processing > 0:
        return QueueStatus.PROCESSING
    if queue.pending > 0:
        return QueueStatus.PENDING
    if queue.failed > 0:
        return QueueStatus.PARTIAL_FAILURE
    return QueueStatus.COMPLETED


def calculate_queue_progress(queue: Queue) -> QueueProgress:
    done = queue.completed + queue.failed
    return QueueProgress(
        percentage=percent_of(done, queue.total),
        completed=done,
        total=queue.total,
        success_count=queue.completed,
        failed_count=queue.failed,
    )
