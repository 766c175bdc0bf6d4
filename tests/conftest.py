import io
from collections.abc import Callable
from datetime import datetime, timezone

import pytest
from PIL import Image

from docbatch.queue.models import CapturedDocument, DocumentImage


def make_document(
    doc_id: str = "doc-1",
    *,
    title: str = "A captured post",
    body: str = "First paragraph.\n\nSecond paragraph.",
    author_name: str = "Jane Doe",
    images: tuple[DocumentImage, ...] = (),
) -> CapturedDocument:
    return CapturedDocument(
        id=doc_id,
        source_url=f"https://example.com/posts/{doc_id}",
        title=title,
        body=body,
        author_name=author_name,
        captured_at=datetime(2024, 5, 1, 12, 30, tzinfo=timezone.utc),
        images=images,
    )


def _encode(image: Image.Image, fmt: str) -> bytes:
    buf = io.BytesIO()
    image.save(buf, format=fmt)
    return buf.getvalue()


@pytest.fixture()
def document() -> CapturedDocument:
    return make_document()


@pytest.fixture()
def document_factory() -> Callable[..., CapturedDocument]:
    """Build documents with overridden fields: ``document_factory("doc-2", title=...)``."""
    return make_document


@pytest.fixture()
def png_bytes() -> bytes:
    """A small opaque PNG."""
    return _encode(Image.new("RGB", (40, 20), (200, 30, 30)), "PNG")


@pytest.fixture()
def jpeg_bytes() -> bytes:
    return _encode(Image.new("RGB", (64, 48), (30, 120, 200)), "JPEG")


@pytest.fixture()
def webp_bytes() -> bytes:
    """A WebP with an alpha channel, which must be flattened to JPEG."""
    return _encode(Image.new("RGBA", (32, 32), (0, 200, 0, 128)), "WEBP")


@pytest.fixture()
def wide_png_bytes() -> bytes:
    """Wider than the standard-quality pixel cap."""
    return _encode(Image.new("RGB", (2000, 500), (10, 10, 10)), "PNG")
