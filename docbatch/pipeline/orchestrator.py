import threading
import time
from collections.abc import Callable

from docbatch.auth.base import BaseAuthProvider
from docbatch.auth.exceptions import AuthError
from docbatch.errors import DocBatchError, error_code_for
from docbatch.logging.logger import Log
from docbatch.pipeline.exceptions import PipelineConfigurationError, ProcessingInProgressError
from docbatch.pipeline.models import BatchPhase, BatchProgress, ItemContext, ProcessOptions
from docbatch.pipeline.progress import ProgressReporter
from docbatch.pipeline.retry import linear_backoff, retry_call
from docbatch.pipeline.steps import PipelineStep, RenderStep, UploadStep
from docbatch.queue.exceptions import InvalidDocumentError
from docbatch.queue.models import QueueItem, QueueItemStatus
from docbatch.queue.queue_store import QueueStore
from docbatch.rendering.base import BaseDocumentRenderer
from docbatch.storage.base import BaseKeyValueStore
from docbatch.upload.base import BaseUploadSink
from docbatch.upload.exceptions import UploadAuthorizationError
from docbatch.upload.history import UploadHistory

_NON_RETRYABLE = (
    InvalidDocumentError,
    AuthError,
    UploadAuthorizationError,
    PipelineConfigurationError,
)


def _is_retryable(exc: Exception) -> bool:
    return not isinstance(exc, _NON_RETRYABLE)


class PipelineOrchestrator:
    """Drives pending queue items through render and optional upload, one at a time."""

    def __init__(
        self,
        queue_store: QueueStore,
        renderer: BaseDocumentRenderer,
        upload_sink: BaseUploadSink | None = None,
        auth_provider: BaseAuthProvider | None = None,
        *,
        progress_store: BaseKeyValueStore | None = None,
        upload_history: UploadHistory | None = None,
        retry_delay_seconds: float = 1.0,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self._queue_store = queue_store
        self._render_step = RenderStep(renderer)
        self._upload_step = (
            UploadStep(upload_sink, auth_provider, upload_history)
            if upload_sink is not None and auth_provider is not None
            else None
        )
        self._progress_store = progress_store
        self._backoff = linear_backoff(retry_delay_seconds)
        self._sleep = sleep
        self._guard = threading.Lock()
        self._state_lock = threading.Lock()
        self._active_cancel: threading.Event | None = None

    def process(self, options: ProcessOptions | None = None) -> BatchProgress:
        """Run every currently pending item once and return the final progress.

        Item failures, including failures to persist an item's status, are
        recorded and logged, never raised. Items a previous aborted run left
        in processing are returned to pending first.

        Raises:
            ProcessingInProgressError: if a run is already active.
        """
        with self._state_lock:
            if not self._guard.acquire(blocking=False):
                raise ProcessingInProgressError("Processing already in progress")
            cancel_requested = threading.Event()
            self._active_cancel = cancel_requested
        try:
            return self._run(options or ProcessOptions(), cancel_requested)
        finally:
            with self._state_lock:
                self._active_cancel = None
                self._guard.release()

    def cancel(self) -> None:
        """Stop the active run before its next item. In-flight work completes.

        Each run owns its cancel flag, created together with the guard, so a
        request made any time during a run is honoured by that run and never
        carries over to the next one. A no-op when idle.
        """
        with self._state_lock:
            if self._active_cancel is None:
                return
            self._active_cancel.set()
        Log.info("Cancellation requested")

    def is_processing(self) -> bool:
        return self._guard.locked()

    def _run(self, options: ProcessOptions, cancel_requested: threading.Event) -> BatchProgress:
        reporter = ProgressReporter(options.on_progress, self._progress_store)
        try:
            self._queue_store.recover_interrupted()
            items = self._queue_store.pending()
        except DocBatchError as exc:
            Log.error(f"Could not load pending items: {exc}")
            items = []
        progress = BatchProgress(total=len(items))

        if not items:
            progress.phase = BatchPhase.COMPLETE
            progress.percentage = 100
            Log.info("No pending items to process")
            return reporter.report(progress)

        steps = self._steps_for(options)
        Log.info(f"Processing {len(items)} items (upload={'on' if options.upload_enabled else 'off'})")

        for item in items:
            if cancel_requested.is_set():
                progress.cancelled = True
                Log.info(f"Run cancelled with {progress.total - progress.completed} items left")
                break

            succeeded = self._process_item(item, steps, options, progress, reporter)
            reporter.report(progress)

            if not succeeded and not options.continue_on_error:
                Log.warning("Stopping run after failed item (continue_on_error disabled)")
                break

        progress.phase = BatchPhase.COMPLETE
        progress.current_item = None
        Log.info(
            f"Run finished: {progress.success_count} succeeded, "
            f"{progress.failed_count} failed, {progress.total - progress.completed} not processed"
        )
        return reporter.report(progress)

    def _steps_for(self, options: ProcessOptions) -> list[PipelineStep]:
        steps: list[PipelineStep] = [self._render_step]
        if options.upload_enabled and self._upload_step is not None:
            steps.append(self._upload_step)
        return steps

    def _process_item(
        self,
        item: QueueItem,
        steps: list[PipelineStep],
        options: ProcessOptions,
        progress: BatchProgress,
        reporter: ProgressReporter,
    ) -> bool:
        Log.info(f"Processing item {item.id} (document {item.document_id})")
        progress.current_item = item.document.title
        try:
            self._queue_store.set_status(item.id, QueueItemStatus.PROCESSING)
        except DocBatchError as exc:
            Log.error(f"Item {item.id} could not be marked processing: {exc}")
            progress.record(success=False)
            return False

        outcome = retry_call(
            lambda: self._run_steps(item, steps, options, progress, reporter),
            max_attempts=options.max_retries,
            backoff=self._backoff,
            should_retry=_is_retryable,
            sleep=self._sleep,
            label=f"Item {item.id}",
        )

        error = outcome.error
        if outcome.ok and outcome.value is not None:
            try:
                self._queue_store.set_status(
                    item.id, QueueItemStatus.COMPLETED, result=outcome.value.result
                )
            except DocBatchError as exc:
                Log.error(f"Item {item.id} finished but its result could not be saved: {exc}")
                error = exc
            else:
                progress.record(success=True)
                Log.info(f"Item {item.id} completed after {outcome.attempts} attempt(s)")
                return True

        progress.record(success=False)
        Log.error(f"Item {item.id} failed after {outcome.attempts} attempt(s): {error}")
        try:
            self._queue_store.set_status(
                item.id,
                QueueItemStatus.FAILED,
                error=str(error) or type(error).__name__,
                error_code=error_code_for(error) if error is not None else None,
            )
        except DocBatchError as exc:
            # Left in processing; the next run's recovery pass resets it.
            Log.error(f"Item {item.id} failure could not be saved: {exc}")
        return False

    def _run_steps(
        self,
        item: QueueItem,
        steps: list[PipelineStep],
        options: ProcessOptions,
        progress: BatchProgress,
        reporter: ProgressReporter,
    ) -> ItemContext:
        if options.upload_enabled and self._upload_step is None:
            raise PipelineConfigurationError(
                "Upload requested but no upload sink or auth provider is configured"
            )
        context = ItemContext(item=item, options=options)
        for step in steps:
            progress.phase = step.phase
            reporter.report(progress)
            context = step.run(context)
        return context
