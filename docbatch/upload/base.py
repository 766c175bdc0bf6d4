from abc import ABC, abstractmethod

from docbatch.upload.models import UploadResult


class BaseUploadSink(ABC):
    """Contract for remote stores that accept rendered documents."""

    @abstractmethod
    def upload(
        self,
        data: bytes,
        filename: str,
        *,
        token: str,
        container_id: str | None = None,
    ) -> UploadResult:
        """Upload one document.

        Args:
            data: Rendered document bytes.
            filename: Name the file gets in the remote store.
            token: Bearer access token.
            container_id: Optional parent folder in the remote store.

        Returns:
            UploadResult with the remote id and link on success, or the
            failure reason and last error otherwise. Never raises for
            remote or transport failures.
        """
