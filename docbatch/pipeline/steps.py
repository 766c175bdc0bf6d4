from abc import ABC, abstractmethod

from docbatch.auth.base import BaseAuthProvider
from docbatch.auth.exceptions import AuthError, NotAuthenticatedError
from docbatch.errors import DocBatchError
from docbatch.logging.logger import Log
from docbatch.pipeline.models import BatchPhase, ItemContext
from docbatch.rendering.base import BaseDocumentRenderer
from docbatch.upload.base import BaseUploadSink
from docbatch.upload.exceptions import UploadAuthorizationError, UploadError
from docbatch.upload.history import UploadHistory
from docbatch.upload.models import UploadFailureReason, UploadRecord


class PipelineStep(ABC):
    """One stage of the per-item pipeline. ``phase`` is reported before it runs."""

    phase: BatchPhase

    @abstractmethod
    def run(self, context: ItemContext) -> ItemContext:
        raise NotImplementedError


class RenderStep(PipelineStep):
    phase = BatchPhase.RENDERING

    def __init__(self, renderer: BaseDocumentRenderer) -> None:
        self._renderer = renderer

    def run(self, context: ItemContext) -> ItemContext:
        rendered = self._renderer.render(context.item.document)
        context.rendered = rendered
        context.result.update(
            filename=rendered.filename,
            size_bytes=rendered.size_bytes,
            page_count=rendered.page_count,
            failed_image_count=rendered.failed_image_count,
        )
        Log.info(
            f"Item {context.item.id}: rendered {rendered.filename} "
            f"({rendered.page_count} pages)"
        )
        return context


class UploadStep(PipelineStep):
    phase = BatchPhase.UPLOADING

    def __init__(
        self,
        sink: BaseUploadSink,
        auth_provider: BaseAuthProvider,
        history: UploadHistory | None = None,
    ) -> None:
        self._sink = sink
        self._auth_provider = auth_provider
        self._history = history

    def run(self, context: ItemContext) -> ItemContext:
        if context.rendered is None:
            raise ValueError("ItemContext.rendered must be set before upload")
        try:
            token = self._auth_provider.get_token(context.options.interactive_auth)
        except NotAuthenticatedError:
            raise
        except AuthError as exc:
            raise NotAuthenticatedError(f"Not authenticated: {exc}") from exc

        started_at = self._history.clock() if self._history is not None else None
        upload = self._sink.upload(
            context.rendered.data,
            context.rendered.filename,
            token=token,
            container_id=context.options.container_id,
        )
        context.upload = upload
        if started_at is not None:
            record = UploadRecord.start(
                context.item.document_id, context.rendered.filename, started_at
            )
            self._save_record(record.with_result(upload, self._history.clock()))
        if not upload.success:
            message = upload.error or "Upload failed"
            if upload.reason is UploadFailureReason.UNAUTHORIZED:
                raise UploadAuthorizationError(message)
            raise UploadError(message)

        context.result.update(remote_id=upload.remote_id, remote_link=upload.remote_link)
        Log.info(f"Item {context.item.id}: uploaded as {upload.remote_id}")
        return context

    def _save_record(self, record: UploadRecord) -> None:
        try:
            self._history.append(record)
        except DocBatchError as exc:
            Log.warning(f"Upload {record.id} not added to history: {exc}")
