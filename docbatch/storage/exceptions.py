from docbatch.errors import DocBatchError


class StorageError(DocBatchError):
    """Raised when the key-value backend cannot read or write a value."""
