"""Converts queue aggregates to and from JSON-compatible dicts.

Stored queues and documents read from JSON input go through the same
builders, so malformed input fails the same way in both places.
"""

from datetime import datetime, timezone
from typing import Any

from docbatch.errors import ErrorCode
from docbatch.queue.exceptions import InvalidDocumentError
from docbatch.queue.models import (
    CapturedDocument,
    DocumentImage,
    Queue,
    QueueItem,
    QueueItemResult,
    QueueItemStatus,
)


def validate_document(document: CapturedDocument) -> None:
    """Check a document before it enters the queue.

    Raises:
        InvalidDocumentError: on missing id or wrongly typed fields.
    """
    if not isinstance(document, CapturedDocument):
        raise InvalidDocumentError(
            f"Expected CapturedDocument, got {type(document).__name__}"
        )
    if not isinstance(document.id, str) or not document.id.strip():
        raise InvalidDocumentError("'id' must be a non-empty string")
    for name in ("source_url", "title", "body", "author_name"):
        if not isinstance(getattr(document, name), str):
            raise InvalidDocumentError(f"'{name}' must be a string")
    if not isinstance(document.captured_at, datetime):
        raise InvalidDocumentError("'captured_at' must be a datetime")
    for image in document.images:
        if not isinstance(image, DocumentImage) or not image.url:
            raise InvalidDocumentError(f"Document {document.id}: image without a url")


def captured_document_from_dict(data: dict[str, Any]) -> CapturedDocument:
    """Build a CapturedDocument from extraction output or stored JSON.

    ``captured_at`` may be an ISO-8601 string or epoch milliseconds.

    Raises:
        InvalidDocumentError: on any validation failure.
    """
    if not isinstance(data, dict):
        raise InvalidDocumentError("Captured document must be an object")
    doc_id = data.get("id")
    if not doc_id or not isinstance(doc_id, str):
        raise InvalidDocumentError("'id' must be a non-empty string")
    images_raw = data.get("images") or []
    if not isinstance(images_raw, list):
        raise InvalidDocumentError(f"Document {doc_id}: 'images' must be a list")
    document = CapturedDocument(
        id=doc_id,
        source_url=_optional_str(data, "source_url", doc_id) or "",
        title=_optional_str(data, "title", doc_id) or "",
        body=_optional_str(data, "body", doc_id) or "",
        author_name=_optional_str(data, "author_name", doc_id) or "",
        author_id=_optional_str(data, "author_id", doc_id),
        captured_at=_parse_timestamp(data.get("captured_at"), doc_id),
        images=tuple(_build_image(raw, i, doc_id) for i, raw in enumerate(images_raw)),
    )
    validate_document(document)
    return document


def captured_document_to_dict(document: CapturedDocument) -> dict[str, Any]:
    return {
        "id": document.id,
        "source_url": document.source_url,
        "title": document.title,
        "body": document.body,
        "author_name": document.author_name,
        "author_id": document.author_id,
        "captured_at": document.captured_at.isoformat(),
        "images": [
            {
                "url": image.url,
                "index": image.index,
                "width": image.width,
                "height": image.height,
                "alt_text": image.alt_text,
            }
            for image in document.images
        ],
    }


def queue_to_dict(queue: Queue) -> dict[str, Any]:
    return {
        "created_at": queue.created_at.isoformat(),
        "updated_at": queue.updated_at.isoformat(),
        "total": queue.total,
        "pending": queue.pending,
        "processing": queue.processing,
        "completed": queue.completed,
        "failed": queue.failed,
        "items": [_item_to_dict(item) for item in queue.items],
    }


def queue_from_dict(data: dict[str, Any]) -> Queue:
    """Rebuild a stored queue. Counts are taken as stored; callers recompute."""
    return Queue(
        created_at=_parse_timestamp(data["created_at"], "queue"),
        updated_at=_parse_timestamp(data["updated_at"], "queue"),
        items=[_item_from_dict(raw) for raw in data.get("items", [])],
        total=int(data.get("total", 0)),
        pending=int(data.get("pending", 0)),
        processing=int(data.get("processing", 0)),
        completed=int(data.get("completed", 0)),
        failed=int(data.get("failed", 0)),
    )


def _item_to_dict(item: QueueItem) -> dict[str, Any]:
    return {
        "id": item.id,
        "document_id": item.document_id,
        "document": captured_document_to_dict(item.document),
        "status": item.status.value,
        "added_at": item.added_at.isoformat(),
        "started_at": _iso_or_none(item.started_at),
        "result": _result_to_dict(item.result) if item.result is not None else None,
        "error": item.error,
        "error_code": item.error_code.value if item.error_code is not None else None,
        "retry_count": item.retry_count,
    }


def _item_from_dict(raw: dict[str, Any]) -> QueueItem:
    result_raw = raw.get("result")
    error_code = raw.get("error_code")
    started_at = raw.get("started_at")
    return QueueItem(
        id=raw["id"],
        document_id=raw["document_id"],
        document=captured_document_from_dict(raw["document"]),
        status=QueueItemStatus(raw["status"]),
        added_at=_parse_timestamp(raw["added_at"], raw["id"]),
        started_at=_parse_timestamp(started_at, raw["id"]) if started_at else None,
        result=_result_from_dict(result_raw) if result_raw is not None else None,
        error=raw.get("error"),
        error_code=ErrorCode(error_code) if error_code else None,
        retry_count=int(raw.get("retry_count", 0)),
    )


def _result_to_dict(result: QueueItemResult) -> dict[str, Any]:
    return {
        "filename": result.filename,
        "size_bytes": result.size_bytes,
        "page_count": result.page_count,
        "failed_image_count": result.failed_image_count,
        "remote_id": result.remote_id,
        "remote_link": result.remote_link,
        "completed_at": _iso_or_none(result.completed_at),
    }


def _result_from_dict(raw: dict[str, Any]) -> QueueItemResult:
    completed_at = raw.get("completed_at")
    return QueueItemResult(
        filename=raw.get("filename"),
        size_bytes=raw.get("size_bytes"),
        page_count=raw.get("page_count"),
        failed_image_count=raw.get("failed_image_count"),
        remote_id=raw.get("remote_id"),
        remote_link=raw.get("remote_link"),
        completed_at=_parse_timestamp(completed_at, "result") if completed_at else None,
    )


def _build_image(raw: Any, position: int, doc_id: str) -> DocumentImage:
    if isinstance(raw, str):
        return DocumentImage(url=raw, index=position)
    if not isinstance(raw, dict):
        raise InvalidDocumentError(
            f"Document {doc_id}: image at index {position} must be an object or url"
        )
    url = raw.get("url")
    if not url or not isinstance(url, str):
        raise InvalidDocumentError(
            f"Document {doc_id}: image at index {position}: 'url' must be a non-empty string"
        )
    return DocumentImage(
        url=url,
        index=int(raw.get("index", position)),
        width=raw.get("width"),
        height=raw.get("height"),
        alt_text=raw.get("alt_text"),
    )


def _optional_str(data: dict[str, Any], name: str, doc_id: str) -> str | None:
    value = data.get(name)
    if value is not None and not isinstance(value, str):
        raise InvalidDocumentError(f"Document {doc_id}: '{name}' must be a string")
    return value


def _parse_timestamp(raw: Any, owner: str) -> datetime:
    if isinstance(raw, datetime):
        return raw
    if isinstance(raw, bool):
        raise InvalidDocumentError(f"{owner}: invalid timestamp {raw!r}")
    if isinstance(raw, (int, float)):
        return datetime.fromtimestamp(raw / 1000, tz=timezone.utc)
    if isinstance(raw, str):
        try:
            # fromisoformat() only accepts a trailing "Z" from 3.11 on.
            return datetime.fromisoformat(raw[:-1] + "+00:00" if raw.endswith("Z") else raw)
        except ValueError as exc:
            raise InvalidDocumentError(f"{owner}: invalid timestamp {raw!r}") from exc
    raise InvalidDocumentError(f"{owner}: missing or invalid timestamp")


def _iso_or_none(value: datetime | None) -> str | None:
    return value.isoformat() if value is not None else None
