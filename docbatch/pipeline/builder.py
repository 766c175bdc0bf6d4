import httpx

from docbatch.auth.static_provider import StaticTokenProvider
from docbatch.config.settings import Settings
from docbatch.pipeline.models import ProcessOptions
from docbatch.pipeline.orchestrator import PipelineOrchestrator
from docbatch.queue.queue_store import QueueStore
from docbatch.rendering.factory import RendererFactory
from docbatch.storage.base import BaseKeyValueStore
from docbatch.upload.factory import UploadSinkFactory
from docbatch.upload.history import UploadHistory


def build_orchestrator(
    settings: Settings,
    http_client: httpx.Client,
    store: BaseKeyValueStore,
    *,
    upload_client: httpx.Client | None = None,
) -> tuple[QueueStore, PipelineOrchestrator]:
    """Wire the queue store, renderer and optional upload sink together.

    ``http_client`` fetches images; uploads go through ``upload_client``
    when given, so the two can carry different timeouts.
    """
    queue_store = QueueStore(store)
    renderer = RendererFactory.create(settings, http_client)
    upload_sink = UploadSinkFactory.create(settings, upload_client or http_client)
    auth_provider = None
    upload_history = None
    if upload_sink is not None:
        auth_provider = StaticTokenProvider(settings.upload_access_token)
        upload_history = UploadHistory(store, limit=settings.upload_history_limit)
    orchestrator = PipelineOrchestrator(
        queue_store,
        renderer,
        upload_sink,
        auth_provider,
        progress_store=store,
        upload_history=upload_history,
        retry_delay_seconds=settings.pipeline_retry_delay_seconds,
    )
    return queue_store, orchestrator


def default_options(settings: Settings, **overrides: object) -> ProcessOptions:
    """Process options taken from settings, with per-run overrides."""
    options = ProcessOptions(
        upload_enabled=settings.upload_enabled,
        container_id=settings.drive_folder_id,
        continue_on_error=settings.pipeline_continue_on_error,
        max_retries=settings.pipeline_max_retries,
        interactive_auth=False,
    )
    for name, value in overrides.items():
        setattr(options, name, value)
    return options
