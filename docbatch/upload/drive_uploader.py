import json
import time
from collections.abc import Callable

import httpx

from docbatch.config.settings import DRIVE_UPLOAD_URL
from docbatch.logging.logger import Log
from docbatch.pipeline.retry import exponential_backoff, retry_call
from docbatch.upload.base import BaseUploadSink
from docbatch.upload.exceptions import (
    UploadAuthorizationError,
    UploadError,
    UploadNetworkError,
)
from docbatch.upload.models import UploadFailureReason, UploadResult

MULTIPART_BOUNDARY = "-------314159265358979323846"
PDF_MIME_TYPE = "application/pdf"

_AUTH_STATUS_CODES = frozenset({401, 403})


def build_multipart_body(
    metadata: dict[str, object],
    data: bytes,
    content_type: str = PDF_MIME_TYPE,
    boundary: str = MULTIPART_BOUNDARY,
) -> bytes:
    """Assemble a multipart/related body: JSON metadata part, then the file."""
    delimiter = f"\r\n--{boundary}\r\n".encode()
    close_delimiter = f"\r\n--{boundary}--".encode()
    return b"".join(
        [
            delimiter,
            b"Content-Type: application/json; charset=UTF-8\r\n\r\n",
            json.dumps(metadata).encode("utf-8"),
            delimiter,
            f"Content-Type: {content_type}\r\n\r\n".encode(),
            data,
            close_delimiter,
        ]
    )


def _is_retryable(exc: Exception) -> bool:
    return not isinstance(exc, UploadAuthorizationError)


class DriveUploadSink(BaseUploadSink):
    """Google Drive multipart upload with exponential backoff."""

    def __init__(
        self,
        client: httpx.Client,
        *,
        upload_url: str = DRIVE_UPLOAD_URL,
        max_attempts: int = 3,
        backoff_base_seconds: float = 1.0,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self._client = client
        self._upload_url = upload_url
        self._max_attempts = max_attempts
        self._backoff = exponential_backoff(backoff_base_seconds)
        self._sleep = sleep

    def upload(
        self,
        data: bytes,
        filename: str,
        *,
        token: str,
        container_id: str | None = None,
    ) -> UploadResult:
        metadata: dict[str, object] = {"name": filename, "mimeType": PDF_MIME_TYPE}
        if container_id:
            metadata["parents"] = [container_id]
        body = build_multipart_body(metadata, data)

        outcome = retry_call(
            lambda: self._send(body, token),
            max_attempts=self._max_attempts,
            backoff=self._backoff,
            should_retry=_is_retryable,
            sleep=self._sleep,
            label=f"Upload of {filename}",
        )
        if outcome.ok and outcome.value is not None:
            Log.info(f"Uploaded {filename} as {outcome.value.remote_id}")
            return outcome.value

        if isinstance(outcome.error, UploadAuthorizationError):
            return UploadResult.failed(str(outcome.error), UploadFailureReason.UNAUTHORIZED)
        return UploadResult.failed(
            f"Upload failed after {outcome.attempts} attempts: {outcome.error}",
            UploadFailureReason.EXHAUSTED,
        )

    def _send(self, body: bytes, token: str) -> UploadResult:
        try:
            response = self._client.post(
                self._upload_url,
                content=body,
                headers={
                    "Authorization": f"Bearer {token}",
                    "Content-Type": f"multipart/related; boundary={MULTIPART_BOUNDARY}",
                },
            )
        except httpx.TransportError as exc:
            raise UploadNetworkError(f"Network error: {exc}") from exc

        if response.status_code in _AUTH_STATUS_CODES:
            raise UploadAuthorizationError(
                f"{response.status_code}: {self._error_message(response)}"
            )
        if not response.is_success:
            raise UploadError(f"{response.status_code}: {self._error_message(response)}")

        try:
            payload = response.json()
        except ValueError as exc:
            raise UploadError(f"Malformed upload response: {exc}") from exc
        remote_id = payload.get("id") if isinstance(payload, dict) else None
        if not remote_id:
            raise UploadError("Upload response did not include a file id")
        return UploadResult.succeeded(remote_id, payload.get("webViewLink"))

    @staticmethod
    def _error_message(response: httpx.Response) -> str:
        try:
            payload = response.json()
        except ValueError:
            return f"HTTP {response.status_code}"
        if isinstance(payload, dict):
            error = payload.get("error")
            if isinstance(error, dict) and error.get("message"):
                return str(error["message"])
        return f"HTTP {response.status_code}"
