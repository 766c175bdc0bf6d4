"""Paginated PDF layout for captured documents.

Layout, top to bottom: title, author line, body text, images, and an
optional source footer on the last page. A single vertical cursor walks down
the page; any line or image that does not fit starts a new page.
"""

import io

from reportlab.lib.utils import ImageReader
from reportlab.pdfgen import canvas

from docbatch.logging.logger import Log
from docbatch.queue.models import CapturedDocument
from docbatch.rendering.base import BaseDocumentRenderer
from docbatch.rendering.exceptions import ImageAcquisitionError, RenderError
from docbatch.rendering.fonts import FontSet, load_font_set
from docbatch.rendering.glyphs import split_runs
from docbatch.rendering.images import ImageFetcher, prepare_image
from docbatch.rendering.layout import build_filename, wrap_text
from docbatch.rendering.models import PageGeometry, PreparedImage, RenderedDocument, RenderOptions

TITLE_FONT_SIZE = 18
AUTHOR_FONT_SIZE = 12
BODY_FONT_SIZE = 11
FOOTER_FONT_SIZE = 9

TITLE_LINE_HEIGHT = 24
BODY_LINE_HEIGHT = 16

TITLE_SPACING = 10
AUTHOR_SPACING = 20
IMAGE_SECTION_SPACING = 30
IMAGE_SPACING = 15

TITLE_COLOR = (0.0, 0.0, 0.0)
AUTHOR_COLOR = (0.4, 0.4, 0.4)
BODY_COLOR = (0.1, 0.1, 0.1)
FOOTER_COLOR = (0.5, 0.5, 0.5)

Color = tuple[float, float, float]


class _PageCursor:
    """Canvas plus the vertical cursor and page count."""

    def __init__(self, pdf: canvas.Canvas, geometry: PageGeometry) -> None:
        self.pdf = pdf
        self.geometry = geometry
        self.y = geometry.top
        self.page_count = 1

    @property
    def at_page_top(self) -> bool:
        return self.y >= self.geometry.top

    def remaining(self) -> float:
        return self.y - self.geometry.margin

    def new_page(self) -> None:
        self.pdf.showPage()
        self.page_count += 1
        self.y = self.geometry.top

    def ensure_space(self, height: float) -> None:
        if self.remaining() < height and not self.at_page_top:
            self.new_page()

    def advance(self, amount: float) -> None:
        self.y -= amount


class PdfRenderer(BaseDocumentRenderer):
    """Renders captured documents to PDF with reportlab."""

    def __init__(
        self,
        image_fetcher: ImageFetcher,
        options: RenderOptions | None = None,
        *,
        text_font_path: str | None = None,
        pictograph_font_path: str | None = None,
    ) -> None:
        self._image_fetcher = image_fetcher
        self._options = options or RenderOptions()
        self._text_font_path = text_font_path
        self._pictograph_font_path = pictograph_font_path
        self._fonts: FontSet | None = None

    def render(self, document: CapturedDocument) -> RenderedDocument:
        try:
            return self._render(document)
        except RenderError:
            raise
        except Exception as exc:
            raise RenderError(f"Failed to render document {document.id}: {exc}") from exc

    def _render(self, document: CapturedDocument) -> RenderedDocument:
        fonts = self._load_fonts()
        geometry = self._options.geometry
        Log.info(f"Rendering document {document.id} ({len(document.images)} images)")

        images, failed_images = self._acquire_images(document)

        buffer = io.BytesIO()
        pdf = canvas.Canvas(buffer, pagesize=(geometry.width, geometry.height))
        pdf.setTitle(document.title)
        pdf.setAuthor(document.author_name)
        pdf.setSubject("Captured document")
        pdf.setCreator("docbatch")
        pdf.setKeywords(document.source_url)
        cursor = _PageCursor(pdf, geometry)

        self._draw_text(
            cursor, fonts, document.title, fonts.title,
            TITLE_FONT_SIZE, TITLE_LINE_HEIGHT, TITLE_COLOR,
        )
        cursor.advance(TITLE_SPACING)
        if document.author_name:
            self._draw_text(
                cursor, fonts, f"by {document.author_name}", fonts.text,
                AUTHOR_FONT_SIZE, BODY_LINE_HEIGHT, AUTHOR_COLOR,
            )
        cursor.advance(AUTHOR_SPACING)

        if document.body.strip():
            self._draw_text(
                cursor, fonts, document.body, fonts.text,
                BODY_FONT_SIZE, BODY_LINE_HEIGHT, BODY_COLOR,
            )

        drawn_images = 0
        if images:
            cursor.advance(IMAGE_SECTION_SPACING)
        for position, image in enumerate(images):
            try:
                self._draw_image(cursor, image)
                drawn_images += 1
            except Exception as exc:
                failed_images += 1
                Log.warning(f"Document {document.id}: skipped image {position}: {exc}")

        if self._options.include_source_footer:
            self._draw_footer(cursor, fonts, document)

        pdf.showPage()
        pdf.save()
        data = buffer.getvalue()

        rendered = RenderedDocument(
            document_id=document.id,
            data=data,
            filename=build_filename(document.title),
            size_bytes=len(data),
            page_count=cursor.page_count,
            images_included=drawn_images > 0,
            failed_image_count=failed_images,
        )
        Log.info(
            f"Rendered {rendered.filename}: {rendered.page_count} pages, "
            f"{rendered.size_bytes} bytes, {drawn_images} images, {failed_images} failed"
        )
        return rendered

    def _load_fonts(self) -> FontSet:
        if self._fonts is None:
            self._fonts = load_font_set(self._text_font_path, self._pictograph_font_path)
        return self._fonts

    def _acquire_images(self, document: CapturedDocument) -> tuple[list[PreparedImage], int]:
        prepared: list[PreparedImage] = []
        failed = 0
        for image in sorted(document.images, key=lambda img: img.index):
            try:
                raw = self._image_fetcher.fetch(image.url)
                prepared.append(prepare_image(raw, self._options.quality))
            except ImageAcquisitionError as exc:
                failed += 1
                Log.warning(f"Document {document.id}: image {image.index} skipped: {exc}")
        Log.debug(
            f"Document {document.id}: acquired {len(prepared)}/{len(document.images)} images"
        )
        return prepared, failed

    @staticmethod
    def _draw_text(
        cursor: _PageCursor,
        fonts: FontSet,
        text: str,
        base_font: str,
        size: float,
        line_height: float,
        color: Color,
    ) -> None:
        geometry = cursor.geometry
        lines = wrap_text(
            text,
            lambda cluster: fonts.cluster_width(cluster, size, base_font),
            geometry.content_width,
        )
        for line in lines:
            cursor.ensure_space(line_height)
            if line:
                pdf = cursor.pdf
                pdf.setFillColorRGB(*color)
                x = geometry.margin
                baseline = cursor.y - size
                for run in split_runs(line):
                    face = fonts.face_for(run.pictographic, base_font)
                    pdf.setFont(face, size)
                    pdf.drawString(x, baseline, run.text)
                    x += pdf.stringWidth(run.text, face, size)
            cursor.advance(line_height)

    @staticmethod
    def _draw_image(cursor: _PageCursor, image: PreparedImage) -> None:
        geometry = cursor.geometry
        scale = min(
            1.0,
            geometry.content_width / image.width,
            geometry.content_height / image.height,
        )
        width = image.width * scale
        height = image.height * scale
        reader = ImageReader(io.BytesIO(image.data))
        cursor.ensure_space(height)
        cursor.pdf.drawImage(
            reader,
            geometry.margin,
            cursor.y - height,
            width=width,
            height=height,
            mask="auto",
        )
        cursor.advance(height + IMAGE_SPACING)

    @staticmethod
    def _draw_footer(cursor: _PageCursor, fonts: FontSet, document: CapturedDocument) -> None:
        pdf = cursor.pdf
        margin = cursor.geometry.margin
        pdf.setFont(fonts.footer, FOOTER_FONT_SIZE)
        pdf.setFillColorRGB(*FOOTER_COLOR)
        pdf.drawString(margin, margin - 20, f"Source: {document.source_url}")
        captured = document.captured_at.strftime("%Y-%m-%d %H:%M:%S %Z").strip()
        pdf.drawString(margin, margin - 32, f"Captured: {captured}")
