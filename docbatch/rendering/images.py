"""Image acquisition: fetch, sniff, normalize to an embeddable format."""

import io
import time
from collections.abc import Callable
from pathlib import Path
from urllib.parse import unquote, urlparse

import httpx
from PIL import Image

from docbatch.pipeline.retry import exponential_backoff, retry_call
from docbatch.rendering.exceptions import ImageAcquisitionError
from docbatch.rendering.models import ImageFormat, PreparedImage, Quality

# Pixel width cap and JPEG quality per output quality level.
_MAX_PIXEL_WIDTH: dict[str, int | None] = {"standard": 1600, "high": None}
_JPEG_QUALITY: dict[str, int] = {"standard": 80, "high": 95}


def sniff_format(data: bytes) -> ImageFormat:
    """Detect the image format from its magic bytes."""
    if data[:3] == b"\xff\xd8\xff":
        return ImageFormat.JPEG
    if data[:8] == b"\x89PNG\r\n\x1a\n":
        return ImageFormat.PNG
    if len(data) >= 12 and data[:4] == b"RIFF" and data[8:12] == b"WEBP":
        return ImageFormat.WEBP
    if data[:6] in (b"GIF87a", b"GIF89a"):
        return ImageFormat.GIF
    return ImageFormat.UNKNOWN


def prepare_image(data: bytes, quality: Quality = "standard") -> PreparedImage:
    """Decode *data* and return bytes reportlab can embed.

    JPEG and PNG pass through unless they exceed the pixel cap; anything
    else Pillow can decode is flattened onto white and re-encoded as JPEG.
    The reported width and height are always the source dimensions.

    Raises:
        ImageAcquisitionError: if the bytes are not a decodable image.
    """
    source_format = sniff_format(data)
    max_width = _MAX_PIXEL_WIDTH[quality]
    try:
        with Image.open(io.BytesIO(data)) as image:
            image.load()
            width, height = image.size
            needs_resize = max_width is not None and width > max_width
            if source_format in (ImageFormat.JPEG, ImageFormat.PNG) and not needs_resize:
                return PreparedImage(data=data, format=source_format, width=width, height=height)

            if max_width is not None and needs_resize:
                target = (max_width, max(1, round(height * max_width / width)))
                image = image.resize(target, Image.Resampling.LANCZOS)

            buffer = io.BytesIO()
            if source_format is ImageFormat.PNG:
                image.save(buffer, format="PNG", optimize=True)
                return PreparedImage(
                    data=buffer.getvalue(), format=ImageFormat.PNG, width=width, height=height
                )
            _flatten(image).save(buffer, format="JPEG", quality=_JPEG_QUALITY[quality])
            return PreparedImage(
                data=buffer.getvalue(), format=ImageFormat.JPEG, width=width, height=height
            )
    except ImageAcquisitionError:
        raise
    except Exception as exc:
        raise ImageAcquisitionError(
            f"Unsupported or undecodable image ({source_format.value}): {exc}"
        ) from exc


def _flatten(image: Image.Image) -> Image.Image:
    if image.mode in ("RGBA", "LA", "PA") or (
        image.mode == "P" and "transparency" in image.info
    ):
        rgba = image.convert("RGBA")
        background = Image.new("RGB", rgba.size, (255, 255, 255))
        background.paste(rgba, mask=rgba.getchannel("A"))
        return background
    return image.convert("RGB")


class ImageFetcher:
    """Fetches image bytes over HTTP(S) with retries.

    Local paths and file:// locators are read only when *allow_local_files*
    is set; any other scheme is rejected.
    """

    USER_AGENT = "Mozilla/5.0 (compatible; docbatch)"

    def __init__(
        self,
        client: httpx.Client,
        *,
        max_attempts: int = 3,
        allow_local_files: bool = False,
        backoff_base_seconds: float = 0.5,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self._client = client
        self._max_attempts = max_attempts
        self._allow_local_files = allow_local_files
        self._backoff = exponential_backoff(backoff_base_seconds)
        self._sleep = sleep

    def fetch(self, locator: str) -> bytes:
        """Return the raw bytes behind *locator*.

        Raises:
            ImageAcquisitionError: if the image cannot be read.
        """
        parsed = urlparse(locator)
        if parsed.scheme in ("", "file"):
            if not self._allow_local_files:
                raise ImageAcquisitionError(f"Local image locators are disabled: {locator}")
            return self._read_local(unquote(parsed.path) if parsed.scheme else locator)
        if parsed.scheme not in ("http", "https"):
            raise ImageAcquisitionError(f"Unsupported image locator scheme: {locator}")

        outcome = retry_call(
            lambda: self._download(locator),
            max_attempts=self._max_attempts,
            backoff=self._backoff,
            sleep=self._sleep,
            label=f"Image download {locator}",
        )
        if not outcome.ok or outcome.value is None:
            raise ImageAcquisitionError(
                f"Failed to download {locator}: {outcome.error}"
            ) from outcome.error
        return outcome.value

    def _download(self, url: str) -> bytes:
        response = self._client.get(url, headers={"User-Agent": self.USER_AGENT})
        response.raise_for_status()
        return response.content

    @staticmethod
    def _read_local(path: str) -> bytes:
        try:
            return Path(path).read_bytes()
        except OSError as exc:
            raise ImageAcquisitionError(f"Failed to read image {path}: {exc}") from exc
