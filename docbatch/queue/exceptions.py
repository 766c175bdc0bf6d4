from docbatch.errors import DocBatchError, ErrorCode


class QueueError(DocBatchError):
    """Base exception for queue-related errors."""


class InvalidDocumentError(QueueError):
    """Raised when a captured document is malformed or missing fields."""

    code = ErrorCode.VALIDATION_ERROR


class SourceUnavailableError(QueueError):
    """Raised when upstream extraction produced no document to enqueue."""

    code = ErrorCode.SOURCE_UNAVAILABLE
