import json
from unittest.mock import MagicMock

import httpx

from docbatch.upload.drive_uploader import (
    MULTIPART_BOUNDARY,
    DriveUploadSink,
    build_multipart_body,
)
from docbatch.upload.models import UploadFailureReason


def _make_sink(handler, max_attempts: int = 3) -> tuple[DriveUploadSink, MagicMock]:
    """Create a sink whose HTTP calls go to *handler*."""
    client = httpx.Client(transport=httpx.MockTransport(handler))
    sleep = MagicMock()
    sink = DriveUploadSink(
        client,
        upload_url="https://upload.example.com/files",
        max_attempts=max_attempts,
        backoff_base_seconds=1.0,
        sleep=sleep,
    )
    return sink, sleep


class _Recorder:
    """Mock transport handler that replays canned responses and counts calls."""

    def __init__(self, *responses) -> None:
        self._responses = list(responses)
        self.requests: list[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        response = self._responses.pop(0) if len(self._responses) > 1 else self._responses[0]
        if isinstance(response, Exception):
            raise response
        return response


class TestBuildMultipartBody:
    def test_contains_metadata_and_file_parts(self) -> None:
        body = build_multipart_body({"name": "a.pdf", "parents": ["folder-1"]}, b"%PDF-data")

        assert body.startswith(f"\r\n--{MULTIPART_BOUNDARY}\r\n".encode())
        assert body.endswith(f"\r\n--{MULTIPART_BOUNDARY}--".encode())
        assert b'"parents": ["folder-1"]' in body
        assert b"Content-Type: application/pdf\r\n\r\n%PDF-data" in body


class TestUploadSuccess:
    def test_returns_remote_id_and_link(self) -> None:
        recorder = _Recorder(
            httpx.Response(200, json={"id": "file-1", "webViewLink": "https://drive/view/1"})
        )
        sink, sleep = _make_sink(recorder)

        result = sink.upload(b"%PDF", "report.pdf", token="tok", container_id="folder-9")

        assert result.success
        assert result.remote_id == "file-1"
        assert result.remote_link == "https://drive/view/1"
        sleep.assert_not_called()

    def test_sends_bearer_token_and_multipart_body(self) -> None:
        recorder = _Recorder(httpx.Response(200, json={"id": "file-1"}))
        sink, _sleep = _make_sink(recorder)

        sink.upload(b"%PDF", "report.pdf", token="tok", container_id="folder-9")

        request = recorder.requests[0]
        assert request.headers["Authorization"] == "Bearer tok"
        assert request.headers["Content-Type"] == (
            f"multipart/related; boundary={MULTIPART_BOUNDARY}"
        )
        metadata_part = request.content.split(b"\r\n\r\n")[1].split(b"\r\n")[0]
        assert json.loads(metadata_part) == {
            "name": "report.pdf",
            "mimeType": "application/pdf",
            "parents": ["folder-9"],
        }

    def test_omits_parents_without_container(self) -> None:
        recorder = _Recorder(httpx.Response(200, json={"id": "file-1"}))
        sink, _sleep = _make_sink(recorder)

        sink.upload(b"%PDF", "report.pdf", token="tok")

        assert b"parents" not in recorder.requests[0].content


class TestUploadFailures:
    def test_forbidden_is_attempted_once(self) -> None:
        recorder = _Recorder(
            httpx.Response(403, json={"error": {"message": "Insufficient permissions"}})
        )
        sink, sleep = _make_sink(recorder)

        result = sink.upload(b"%PDF", "report.pdf", token="tok")

        assert not result.success
        assert result.reason is UploadFailureReason.UNAUTHORIZED
        assert result.error == "403: Insufficient permissions"
        assert len(recorder.requests) == 1
        sleep.assert_not_called()

    def test_unauthorized_is_attempted_once(self) -> None:
        recorder = _Recorder(httpx.Response(401, text="nope"))
        sink, _sleep = _make_sink(recorder)

        result = sink.upload(b"%PDF", "report.pdf", token="expired")

        assert result.reason is UploadFailureReason.UNAUTHORIZED
        assert result.error == "401: HTTP 401"
        assert len(recorder.requests) == 1

    def test_network_failure_is_attempted_max_times(self) -> None:
        recorder = _Recorder(httpx.ConnectError("connection refused"))
        sink, sleep = _make_sink(recorder, max_attempts=3)

        result = sink.upload(b"%PDF", "report.pdf", token="tok")

        assert not result.success
        assert result.reason is UploadFailureReason.EXHAUSTED
        assert result.error.startswith("Upload failed after 3 attempts:")
        assert "connection refused" in result.error
        assert len(recorder.requests) == 3
        assert [c.args[0] for c in sleep.call_args_list] == [2.0, 4.0]

    def test_recovers_after_transient_server_error(self) -> None:
        recorder = _Recorder(
            httpx.Response(503, json={"error": {"message": "Backend Error"}}),
            httpx.Response(200, json={"id": "file-2"}),
        )
        sink, sleep = _make_sink(recorder)

        result = sink.upload(b"%PDF", "report.pdf", token="tok")

        assert result.success
        assert result.remote_id == "file-2"
        assert len(recorder.requests) == 2
        sleep.assert_called_once_with(2.0)

    def test_success_without_id_is_a_failure(self) -> None:
        recorder = _Recorder(
            httpx.Response(200, json={"name": "report.pdf"}),
            httpx.Response(200, json={"name": "report.pdf"}),
        )
        sink, _sleep = _make_sink(recorder, max_attempts=2)

        result = sink.upload(b"%PDF", "report.pdf", token="tok")

        assert not result.success
        assert result.reason is UploadFailureReason.EXHAUSTED
        assert "did not include a file id" in result.error
