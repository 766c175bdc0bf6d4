from datetime import datetime, timedelta, timezone
from unittest.mock import MagicMock

import pytest

from docbatch.storage.exceptions import StorageError
from docbatch.storage.memory_store import InMemoryKeyValueStore
from docbatch.upload.history import UPLOAD_HISTORY_KEY, UploadHistory
from docbatch.upload.models import (
    UploadFailureReason,
    UploadRecord,
    UploadResult,
    UploadStatus,
)

STARTED = datetime(2024, 5, 1, 12, 0, tzinfo=timezone.utc)
FINISHED = STARTED + timedelta(seconds=3)


def _make_record(document_id: str = "doc-1") -> UploadRecord:
    return UploadRecord.start(document_id, f"{document_id}.pdf", STARTED)


class TestUploadRecord:
    def test_starts_pending(self) -> None:
        record = _make_record()

        assert record.status is UploadStatus.PENDING
        assert record.retry_count == 0
        assert record.remote_id is None
        assert record.completed_at is None

    def test_success_sets_remote_file_and_clears_error(self) -> None:
        record = _make_record().with_result(
            UploadResult.succeeded("file-1", "https://view/file-1"), FINISHED
        )

        assert record.status is UploadStatus.SUCCESS
        assert record.remote_id == "file-1"
        assert record.remote_link == "https://view/file-1"
        assert record.completed_at == FINISHED
        assert record.error is None
        assert record.retry_count == 0

    def test_failure_keeps_error_and_counts_retry(self) -> None:
        record = _make_record().with_result(
            UploadResult.failed("500: boom", UploadFailureReason.EXHAUSTED), FINISHED
        )

        assert record.status is UploadStatus.FAILED
        assert record.error == "500: boom"
        assert record.retry_count == 1
        assert record.remote_id is None

    def test_dict_form_restores_record(self) -> None:
        record = _make_record().with_result(UploadResult.succeeded("file-1", None), FINISHED)

        data = record.to_dict()

        assert data["status"] == "success"
        assert data["started_at"] == STARTED.isoformat()
        assert UploadRecord.from_dict(data) == record


class TestUploadHistory:
    def test_empty_history(self) -> None:
        assert UploadHistory(InMemoryKeyValueStore()).entries() == []

    def test_appends_in_order_under_history_key(self) -> None:
        kv = InMemoryKeyValueStore()
        history = UploadHistory(kv)

        history.append(_make_record("doc-1"))
        history.append(_make_record("doc-2"))

        assert [r.document_id for r in history.entries()] == ["doc-1", "doc-2"]
        assert len(kv.get(UPLOAD_HISTORY_KEY)["records"]) == 2

    def test_keeps_only_newest_entries(self) -> None:
        history = UploadHistory(InMemoryKeyValueStore(), limit=3)

        for n in range(5):
            history.append(_make_record(f"doc-{n}"))

        assert [r.document_id for r in history.entries()] == ["doc-2", "doc-3", "doc-4"]

    def test_default_limit_is_one_hundred(self) -> None:
        history = UploadHistory(InMemoryKeyValueStore())

        for n in range(105):
            history.append(_make_record(f"doc-{n}"))

        entries = history.entries()
        assert len(entries) == 100
        assert entries[0].document_id == "doc-5"

    def test_write_failure_raises_storage_error(self) -> None:
        kv = MagicMock()
        kv.get.return_value = None
        kv.replace.side_effect = StorageError("db down")

        with pytest.raises(StorageError):
            UploadHistory(kv).append(_make_record())
