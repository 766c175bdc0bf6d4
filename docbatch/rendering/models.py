from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Literal

Quality = Literal["standard", "high"]


class ImageFormat(str, Enum):
    JPEG = "jpeg"
    PNG = "png"
    WEBP = "webp"
    GIF = "gif"
    UNKNOWN = "unknown"


@dataclass(frozen=True)
class PageGeometry:
    """A4 portrait in points with a uniform margin."""

    width: float = 595.28
    height: float = 841.89
    margin: float = 50.0

    @property
    def content_width(self) -> float:
        return self.width - 2 * self.margin

    @property
    def content_height(self) -> float:
        return self.height - 2 * self.margin

    @property
    def top(self) -> float:
        return self.height - self.margin


@dataclass(frozen=True)
class RenderOptions:
    geometry: PageGeometry = field(default_factory=PageGeometry)
    include_source_footer: bool = True
    quality: Quality = "standard"


@dataclass(frozen=True)
class PreparedImage:
    """Image bytes in a format reportlab embeds directly (JPEG or PNG)."""

    data: bytes
    format: ImageFormat
    width: int
    height: int


@dataclass(frozen=True)
class RenderedDocument:
    document_id: str
    data: bytes
    filename: str
    size_bytes: int
    page_count: int
    images_included: bool
    failed_image_count: int
    generated_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
