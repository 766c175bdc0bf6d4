from enum import Enum
from typing import ClassVar


class ErrorCode(str, Enum):
    """Failure classes reported on failed queue items."""

    VALIDATION_ERROR = "VALIDATION_ERROR"
    SOURCE_UNAVAILABLE = "SOURCE_UNAVAILABLE"
    RENDER_FAILED = "RENDER_FAILED"
    FONT_LOAD_FAILED = "FONT_LOAD_FAILED"
    IMAGE_DOWNLOAD_FAILED = "IMAGE_DOWNLOAD_FAILED"
    AUTH_FAILED = "AUTH_FAILED"
    AUTH_CANCELLED = "AUTH_CANCELLED"
    NOT_AUTHENTICATED = "NOT_AUTHENTICATED"
    UPLOAD_FAILED = "UPLOAD_FAILED"
    UPLOAD_UNAUTHORIZED = "UPLOAD_UNAUTHORIZED"
    NETWORK_ERROR = "NETWORK_ERROR"
    PROCESSING_IN_PROGRESS = "PROCESSING_IN_PROGRESS"
    CONFIGURATION_ERROR = "CONFIGURATION_ERROR"
    INTERNAL_ERROR = "INTERNAL_ERROR"


class DocBatchError(Exception):
    """Base exception for all docbatch errors."""

    code: ClassVar[ErrorCode] = ErrorCode.INTERNAL_ERROR


def error_code_for(exc: BaseException) -> ErrorCode:
    """Map any exception to its failure class; foreign exceptions are internal."""
    if isinstance(exc, DocBatchError):
        return exc.code
    return ErrorCode.INTERNAL_ERROR
