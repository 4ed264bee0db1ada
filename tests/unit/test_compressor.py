import asyncio
import io
from collections.abc import Callable
from unittest.mock import MagicMock

import pytest
from PIL import Image

from photoupload.imaging.base import BaseImageCodec
from photoupload.imaging.exceptions import ImageDecodeError
from photoupload.imaging.pillow_adapter import PillowAdapter
from photoupload.upload.compressor import ImageCompressor
from photoupload.upload.exceptions import CompressionDecodeError
from photoupload.upload.models import CandidateFile, ImageDimensions

ImageFactory = Callable[..., bytes]
MB = 1024 * 1024


def _file(data: bytes, name: str = "photo.jpg", mime_type: str = "image/jpeg") -> CandidateFile:
    return CandidateFile(name=name, mime_type=mime_type, data=data)


def _size(data: bytes) -> tuple[int, int]:
    with Image.open(io.BytesIO(data)) as image:
        return image.size


class TestNeedsCompression:
    def test_small_file_skipped(self) -> None:
        compressor = ImageCompressor(MagicMock(spec=BaseImageCodec))
        f = _file(b"\0" * (2 * MB - 1))
        assert not compressor.needs_compression(f, ImageDimensions(1999, 1999))

    def test_large_bytes_trigger(self) -> None:
        compressor = ImageCompressor(MagicMock(spec=BaseImageCodec))
        f = _file(b"\0" * (2 * MB))
        assert compressor.needs_compression(f, ImageDimensions(800, 600))

    @pytest.mark.parametrize(("width", "height"), [(2000, 10), (10, 2000)])
    def test_large_dimension_triggers(self, width: int, height: int) -> None:
        compressor = ImageCompressor(MagicMock(spec=BaseImageCodec))
        assert compressor.needs_compression(_file(b"\0"), ImageDimensions(width, height))


class TestTargetDimensions:
    @pytest.mark.parametrize(
        ("source", "expected"),
        [
            ((3000, 1000), (2000, 667)),
            ((1000, 3000), (667, 2000)),
            ((4000, 4000), (2000, 2000)),
            ((2000, 1000), (2000, 1000)),
            ((1200, 800), (1200, 800)),
            ((4000, 1), (2000, 1)),
        ],
    )
    def test_clamps_longer_side(
        self, source: tuple[int, int], expected: tuple[int, int]
    ) -> None:
        compressor = ImageCompressor(MagicMock(spec=BaseImageCodec))
        target = compressor.target_dimensions(ImageDimensions(*source))
        assert (target.width, target.height) == expected

    @pytest.mark.parametrize(
        ("width", "height"), [(2500, 1700), (3999, 2001), (2222, 3333), (4000, 123)]
    )
    def test_preserves_aspect_ratio(self, width: int, height: int) -> None:
        compressor = ImageCompressor(MagicMock(spec=BaseImageCodec))
        target = compressor.target_dimensions(ImageDimensions(width, height))
        assert max(target.width, target.height) <= 2000
        if width >= height:
            assert abs(target.height - height * target.width / width) <= 1
        else:
            assert abs(target.width - width * target.height / height) <= 1


class TestCompressIfNeeded:
    def test_returns_original_object_when_small(self) -> None:
        codec = MagicMock(spec=BaseImageCodec)
        compressor = ImageCompressor(codec)
        f = _file(b"small")

        result = asyncio.run(compressor.compress_if_needed(f, ImageDimensions(1200, 800)))

        assert result is f
        codec.resize_and_encode.assert_not_called()

    def test_reencodes_with_source_mime_and_quality(self) -> None:
        codec = MagicMock(spec=BaseImageCodec)
        codec.resize_and_encode.return_value = b"smaller"
        compressor = ImageCompressor(codec)
        f = _file(b"big", name="wide.png", mime_type="image/png")

        result = asyncio.run(compressor.compress_if_needed(f, ImageDimensions(3000, 1000)))

        codec.resize_and_encode.assert_called_once_with(b"big", 2000, 667, "image/png", 0.85)
        assert result.read_bytes() == b"smaller"
        assert (result.name, result.mime_type) == ("wide.png", "image/png")

    def test_guesses_mime_from_extension_when_missing(self) -> None:
        codec = MagicMock(spec=BaseImageCodec)
        codec.resize_and_encode.return_value = b"smaller"
        compressor = ImageCompressor(codec)
        f = _file(b"big", name="wide.webp", mime_type="")

        asyncio.run(compressor.compress_if_needed(f, ImageDimensions(3000, 1000)))

        assert codec.resize_and_encode.call_args.args[3] == "image/webp"

    def test_guesses_mime_from_extension_when_generic(self) -> None:
        codec = MagicMock(spec=BaseImageCodec)
        codec.supports_mime_type.return_value = False
        codec.resize_and_encode.return_value = b"smaller"
        compressor = ImageCompressor(codec)
        f = _file(b"big", name="wide.jpg", mime_type="application/octet-stream")

        asyncio.run(compressor.compress_if_needed(f, ImageDimensions(3000, 1000)))

        codec.supports_mime_type.assert_called_once_with("application/octet-stream")
        assert codec.resize_and_encode.call_args.args[3] == "image/jpeg"

    def test_falls_back_to_original_when_encoder_returns_nothing(self) -> None:
        codec = MagicMock(spec=BaseImageCodec)
        codec.resize_and_encode.return_value = None
        compressor = ImageCompressor(codec)
        f = _file(b"big")

        result = asyncio.run(compressor.compress_if_needed(f, ImageDimensions(3000, 1000)))

        assert result is f

    def test_raises_on_decode_failure(self) -> None:
        codec = MagicMock(spec=BaseImageCodec)
        codec.resize_and_encode.side_effect = ImageDecodeError("corrupt")
        compressor = ImageCompressor(codec)

        with pytest.raises(CompressionDecodeError, match="Failed to load image"):
            asyncio.run(compressor.compress_if_needed(_file(b"big"), ImageDimensions(3000, 1000)))


class TestCompressWithPillow:
    def test_large_png_is_resized(self, png_noise_3000x1000: bytes) -> None:
        compressor = ImageCompressor(PillowAdapter())
        f = _file(png_noise_3000x1000, name="scan.png", mime_type="image/png")

        result = asyncio.run(compressor.compress_if_needed(f, ImageDimensions(3000, 1000)))

        width, height = _size(result.read_bytes())
        assert width == 2000
        assert abs(height - 667) <= 1

    def test_heavy_jpeg_within_limits_keeps_dimensions(self, make_image: ImageFactory) -> None:
        compressor = ImageCompressor(PillowAdapter(), threshold_bytes=1024)
        data = make_image(1500, 900, "JPEG")
        f = _file(data)

        result = asyncio.run(compressor.compress_if_needed(f, ImageDimensions(1500, 900)))

        assert result is not f
        assert _size(result.read_bytes()) == (1500, 900)

    def test_generic_mime_png_is_resized(self, png_noise_3000x1000: bytes) -> None:
        compressor = ImageCompressor(PillowAdapter())
        f = _file(png_noise_3000x1000, name="scan.png", mime_type="application/octet-stream")

        result = asyncio.run(compressor.compress_if_needed(f, ImageDimensions(3000, 1000)))

        assert result is not f
        assert _size(result.read_bytes())[0] == 2000
