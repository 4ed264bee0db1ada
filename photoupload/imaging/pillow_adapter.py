import io

from PIL import Image, UnidentifiedImageError

from photoupload.imaging.base import BaseImageCodec
from photoupload.imaging.exceptions import ImageDecodeError, ImageTooLargeError
from photoupload.logging.logger import Log

_DECODE_ERRORS = (UnidentifiedImageError, Image.DecompressionBombError, OSError, ValueError)


class PillowAdapter(BaseImageCodec):
    """Reads and re-encodes images using Pillow."""

    FORMATS: dict[str, str] = {
        "image/jpeg": "JPEG",
        "image/jpg": "JPEG",
        "image/pjpeg": "JPEG",
        "image/png": "PNG",
        "image/gif": "GIF",
        "image/webp": "WEBP",
    }
    LOSSY_FORMATS = frozenset({"JPEG", "WEBP"})

    def supports_mime_type(self, mime_type: str) -> bool:
        return mime_type.lower() in self.FORMATS

    def read_dimensions(self, data: bytes) -> tuple[int, int]:
        # Image.open only parses the header; pixels are never loaded here.
        try:
            with Image.open(io.BytesIO(data)) as image:
                width, height = image.size
        except Image.DecompressionBombError as exc:
            raise ImageTooLargeError(f"pillow refused oversized image: {exc}") from exc
        except _DECODE_ERRORS as exc:
            raise ImageDecodeError(f"pillow could not read image header: {exc}") from exc
        if width <= 0 or height <= 0:
            raise ImageDecodeError(f"pillow reported empty image: {width}x{height}")
        return width, height

    def resize_and_encode(
        self,
        data: bytes,
        width: int,
        height: int,
        mime_type: str,
        quality: float,
    ) -> bytes | None:
        try:
            with Image.open(io.BytesIO(data)) as source:
                source.load()
                resized = source.resize((width, height), Image.Resampling.LANCZOS)
        except _DECODE_ERRORS as exc:
            raise ImageDecodeError(f"pillow decode failed: {exc}") from exc

        image_format = self.FORMATS.get(mime_type.lower())
        if image_format is None:
            Log.warning(f"No encoder for mime type '{mime_type}'")
            return None

        if image_format == "JPEG" and resized.mode not in ("RGB", "L"):
            resized = resized.convert("RGB")

        options: dict[str, object] = {}
        if image_format in self.LOSSY_FORMATS:
            options["quality"] = round(quality * 100)

        buf = io.BytesIO()
        try:
            resized.save(buf, format=image_format, **options)
        except (OSError, ValueError, KeyError) as exc:
            Log.warning(f"pillow {image_format} encode produced no output: {exc}")
            return None
        encoded = buf.getvalue()
        return encoded or None
