import httpx

from docbatch.config.settings import Settings
from docbatch.upload.base import BaseUploadSink
from docbatch.upload.drive_uploader import DriveUploadSink


class UploadSinkFactory:
    """Creates the upload sink, or none when uploads are disabled."""

    @classmethod
    def create(cls, settings: Settings, http_client: httpx.Client) -> BaseUploadSink | None:
        if not settings.upload_enabled:
            return None
        return DriveUploadSink(
            http_client,
            upload_url=settings.upload_url,
            max_attempts=settings.upload_max_attempts,
            backoff_base_seconds=settings.upload_backoff_base_seconds,
        )
