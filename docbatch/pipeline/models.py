from collections.abc import Callable
from dataclasses import dataclass, field
from enum import Enum

from docbatch.queue.models import QueueItem, percent_of
from docbatch.rendering.models import RenderedDocument
from docbatch.upload.models import UploadResult


class BatchPhase(str, Enum):
    IDLE = "idle"
    RENDERING = "rendering"
    UPLOADING = "uploading"
    COMPLETE = "complete"


@dataclass
class BatchProgress:
    """Progress of one process() run. Recomputed per item, never stored alone."""

    total: int = 0
    completed: int = 0
    success_count: int = 0
    failed_count: int = 0
    current_item: str | None = None
    phase: BatchPhase = BatchPhase.IDLE
    cancelled: bool = False
    percentage: int = 0

    def record(self, success: bool) -> None:
        if success:
            self.success_count += 1
        else:
            self.failed_count += 1
        self.completed += 1
        self.percentage = percent_of(self.completed, self.total)


ProgressCallback = Callable[[BatchProgress], None]


@dataclass
class ProcessOptions:
    """Options for a single process() run.

    ``max_retries`` is the total number of attempts per item.
    """

    upload_enabled: bool = False
    container_id: str | None = None
    continue_on_error: bool = True
    max_retries: int = 2
    interactive_auth: bool = True
    on_progress: ProgressCallback | None = None


@dataclass(slots=True)
class ItemContext:
    """State carried through the steps of one item attempt."""

    item: QueueItem
    options: ProcessOptions
    rendered: RenderedDocument | None = None
    upload: UploadResult | None = None
    result: dict[str, object] = field(default_factory=dict)
