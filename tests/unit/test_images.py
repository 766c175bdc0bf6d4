import io
from unittest.mock import MagicMock

import httpx
import pytest
from PIL import Image

from docbatch.rendering.exceptions import ImageAcquisitionError
from docbatch.rendering.images import ImageFetcher, prepare_image, sniff_format
from docbatch.rendering.models import ImageFormat


class TestSniffFormat:
    def test_known_formats(self, png_bytes: bytes, jpeg_bytes: bytes, webp_bytes: bytes) -> None:
        assert sniff_format(png_bytes) is ImageFormat.PNG
        assert sniff_format(jpeg_bytes) is ImageFormat.JPEG
        assert sniff_format(webp_bytes) is ImageFormat.WEBP
        assert sniff_format(b"GIF89a....") is ImageFormat.GIF

    def test_unknown(self) -> None:
        assert sniff_format(b"<html>") is ImageFormat.UNKNOWN
        assert sniff_format(b"") is ImageFormat.UNKNOWN


class TestPrepareImage:
    def test_png_passes_through(self, png_bytes: bytes) -> None:
        prepared = prepare_image(png_bytes)

        assert prepared.data == png_bytes
        assert prepared.format is ImageFormat.PNG
        assert (prepared.width, prepared.height) == (40, 20)

    def test_webp_is_converted_to_jpeg(self, webp_bytes: bytes) -> None:
        prepared = prepare_image(webp_bytes)

        assert prepared.format is ImageFormat.JPEG
        assert sniff_format(prepared.data) is ImageFormat.JPEG
        assert (prepared.width, prepared.height) == (32, 32)

    def test_standard_quality_caps_pixel_width(self, wide_png_bytes: bytes) -> None:
        prepared = prepare_image(wide_png_bytes, "standard")

        with Image.open(io.BytesIO(prepared.data)) as image:
            assert image.size == (1600, 400)
        assert prepared.format is ImageFormat.PNG
        assert (prepared.width, prepared.height) == (2000, 500)

    def test_high_quality_keeps_full_width(self, wide_png_bytes: bytes) -> None:
        prepared = prepare_image(wide_png_bytes, "high")

        assert prepared.data == wide_png_bytes

    def test_undecodable_bytes_raise(self) -> None:
        with pytest.raises(ImageAcquisitionError, match="undecodable"):
            prepare_image(b"definitely not an image")


class TestImageFetcher:
    def test_reads_local_path_when_enabled(self, tmp_path, png_bytes: bytes) -> None:
        path = tmp_path / "photo.png"
        path.write_bytes(png_bytes)
        fetcher = ImageFetcher(MagicMock(), allow_local_files=True)

        assert fetcher.fetch(str(path)) == png_bytes
        assert fetcher.fetch(path.as_uri()) == png_bytes

    def test_missing_local_file_raises(self, tmp_path) -> None:
        fetcher = ImageFetcher(MagicMock(), allow_local_files=True)

        with pytest.raises(ImageAcquisitionError):
            fetcher.fetch(str(tmp_path / "missing.png"))

    def test_local_locators_are_rejected_by_default(self, tmp_path, png_bytes: bytes) -> None:
        path = tmp_path / "photo.png"
        path.write_bytes(png_bytes)
        client = MagicMock()
        fetcher = ImageFetcher(client)

        with pytest.raises(ImageAcquisitionError, match="disabled"):
            fetcher.fetch(str(path))
        with pytest.raises(ImageAcquisitionError, match="disabled"):
            fetcher.fetch(path.as_uri())
        client.get.assert_not_called()

    @pytest.mark.parametrize(
        "locator", ["ftp://example.com/a.png", "data:image/png;base64,AAAA", "gopher://x/1"]
    )
    def test_other_schemes_are_rejected(self, locator: str) -> None:
        client = MagicMock()

        with pytest.raises(ImageAcquisitionError, match="Unsupported"):
            ImageFetcher(client, allow_local_files=True).fetch(locator)
        client.get.assert_not_called()

    def test_downloads_with_user_agent(self, png_bytes: bytes) -> None:
        seen: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(200, content=png_bytes)

        fetcher = ImageFetcher(httpx.Client(transport=httpx.MockTransport(handler)))

        assert fetcher.fetch("https://cdn.example.com/a.png") == png_bytes
        assert seen[0].headers["User-Agent"] == ImageFetcher.USER_AGENT

    def test_retries_then_gives_up(self) -> None:
        calls: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            calls.append(request)
            return httpx.Response(404)

        sleep = MagicMock()
        fetcher = ImageFetcher(
            httpx.Client(transport=httpx.MockTransport(handler)), max_attempts=3, sleep=sleep
        )

        with pytest.raises(ImageAcquisitionError, match="Failed to download"):
            fetcher.fetch("https://cdn.example.com/gone.png")

        assert len(calls) == 3
        assert [c.args[0] for c in sleep.call_args_list] == [1.0, 2.0]
