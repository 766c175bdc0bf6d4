import httpx

from docbatch.config.settings import Settings
from docbatch.rendering.base import BaseDocumentRenderer
from docbatch.rendering.images import ImageFetcher
from docbatch.rendering.models import RenderOptions
from docbatch.rendering.pdf_renderer import PdfRenderer


class RendererFactory:
    """Creates the configured document renderer."""

    @classmethod
    def create(cls, settings: Settings, http_client: httpx.Client) -> BaseDocumentRenderer:
        """Create a reportlab PDF renderer with an HTTP image fetcher."""
        fetcher = ImageFetcher(
            http_client,
            max_attempts=settings.image_fetch_max_attempts,
            allow_local_files=settings.image_allow_local_files,
        )
        options = RenderOptions(
            include_source_footer=settings.include_source_footer,
            quality=settings.pdf_quality,
        )
        return PdfRenderer(
            fetcher,
            options,
            text_font_path=settings.text_font_path,
            pictograph_font_path=settings.pictograph_font_path,
        )
