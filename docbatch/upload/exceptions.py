from docbatch.errors import DocBatchError, ErrorCode


class UploadError(DocBatchError):
    """Raised when a rendered document cannot be uploaded."""

    code = ErrorCode.UPLOAD_FAILED


class UploadNetworkError(UploadError):
    """Raised when the upload request fails at the transport level."""

    code = ErrorCode.NETWORK_ERROR


class UploadAuthorizationError(UploadError):
    """Raised when the remote store rejects the credentials (401/403)."""

    code = ErrorCode.UPLOAD_UNAUTHORIZED
