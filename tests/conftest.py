import io
import os
import struct
import zlib
from collections.abc import Callable

import pytest
from PIL import Image

ImageFactory = Callable[..., bytes]


def _encode(
    width: int,
    height: int,
    fmt: str = "PNG",
    mode: str = "RGB",
    noise: bool = False,
) -> bytes:
    if noise:
        size = width * height * Image.getmodebands(mode)
        image = Image.frombytes(mode, (width, height), os.urandom(size))
    else:
        image = Image.new(mode, (width, height), color="steelblue" if mode == "RGB" else 128)
    buf = io.BytesIO()
    image.save(buf, format=fmt)
    return buf.getvalue()


def _png_chunk(kind: bytes, payload: bytes) -> bytes:
    body = kind + payload
    return struct.pack(">I", len(payload)) + body + struct.pack(">I", zlib.crc32(body))


def _png_header(width: int, height: int) -> bytes:
    """PNG declaring any size but carrying no pixel data."""
    ihdr = struct.pack(">IIBBBBB", width, height, 8, 2, 0, 0, 0)
    return b"\x89PNG\r\n\x1a\n" + b"".join(
        _png_chunk(kind, payload)
        for kind, payload in ((b"IHDR", ihdr), (b"IDAT", b""), (b"IEND", b""))
    )


@pytest.fixture()
def make_image() -> ImageFactory:
    """Return a factory producing encoded images of a given size and format."""
    return _encode


@pytest.fixture()
def png_header() -> Callable[[int, int], bytes]:
    return _png_header


@pytest.fixture()
def jpeg_1200x800() -> bytes:
    return _encode(1200, 800, "JPEG")


@pytest.fixture()
def png_noise_3000x1000() -> bytes:
    """Grayscale noise barely compresses, so this PNG is close to 3 MB."""
    return _encode(3000, 1000, "PNG", mode="L", noise=True)


@pytest.fixture()
def gif_50x50() -> bytes:
    return _encode(50, 50, "GIF")
