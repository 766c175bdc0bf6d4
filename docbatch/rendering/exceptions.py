from docbatch.errors import DocBatchError, ErrorCode


class RenderError(DocBatchError):
    """Raised when a document cannot be laid out or written."""

    code = ErrorCode.RENDER_FAILED


class FontLoadError(RenderError):
    """Raised when a configured font file cannot be registered."""

    code = ErrorCode.FONT_LOAD_FAILED


class ImageAcquisitionError(RenderError):
    """Raised when an image cannot be fetched or decoded.

    The renderer counts and skips these; they never fail a document.
    """

    code = ErrorCode.IMAGE_DOWNLOAD_FAILED
