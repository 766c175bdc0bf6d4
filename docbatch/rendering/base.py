from abc import ABC, abstractmethod

from docbatch.queue.models import CapturedDocument
from docbatch.rendering.models import RenderedDocument


class BaseDocumentRenderer(ABC):
    """Contract for all document renderers."""

    @abstractmethod
    def render(self, document: CapturedDocument) -> RenderedDocument:
        """Lay out a captured document into a paginated file.

        Args:
            document: The captured source document.

        Returns:
            RenderedDocument with bytes, filename and page statistics.
            Images that cannot be acquired are skipped and counted.

        Raises:
            RenderError: if the document itself cannot be produced.
        """
