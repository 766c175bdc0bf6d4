from docbatch.errors import DocBatchError, ErrorCode


class AuthError(DocBatchError):
    """Raised when an access token cannot be obtained."""

    code = ErrorCode.AUTH_FAILED


class AuthCancelledError(AuthError):
    """Raised when the user dismisses an interactive sign-in."""

    code = ErrorCode.AUTH_CANCELLED


class NotAuthenticatedError(AuthError):
    """Raised when an upload is requested without usable credentials."""

    code = ErrorCode.NOT_AUTHENTICATED
