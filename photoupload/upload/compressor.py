import mimetypes

from photoupload.imaging.base import BaseImageCodec
from photoupload.imaging.exceptions import ImageDecodeError
from photoupload.logging.logger import Log
from photoupload.upload.exceptions import CompressionDecodeError, StageTimeoutError
from photoupload.upload.models import CandidateFile, ImageDimensions
from photoupload.upload.pipeline import run_blocking


class ImageCompressor:
    """Shrinks large images before they are previewed and handed to the caller.

    Compression is best effort: when the encoder cannot produce output the
    original file is returned. Only a source that cannot be decoded fails the
    upload.
    """

    def __init__(
        self,
        codec: BaseImageCodec,
        threshold_bytes: int = 2 * 1024 * 1024,
        max_dimension: int = 2000,
        quality: float = 0.85,
        timeout_seconds: float = 30.0,
    ) -> None:
        self._codec = codec
        self._threshold_bytes = threshold_bytes
        self._max_dimension = max_dimension
        self._quality = quality
        self._timeout = timeout_seconds

    def needs_compression(self, file: CandidateFile, dimensions: ImageDimensions) -> bool:
        return not (
            file.size < self._threshold_bytes
            and dimensions.longer_side < self._max_dimension
        )

    def target_dimensions(self, dimensions: ImageDimensions) -> ImageDimensions:
        """Clamp the longer side to the maximum, scaling the shorter side to match."""
        width, height = dimensions.width, dimensions.height
        limit = self._max_dimension
        if width > height:
            if width > limit:
                height = max(1, round(height * limit / width))
                width = limit
        elif height > limit:
            width = max(1, round(width * limit / height))
            height = limit
        return ImageDimensions(width=width, height=height)

    async def compress_if_needed(
        self, file: CandidateFile, dimensions: ImageDimensions
    ) -> CandidateFile:
        """Return `file` unchanged when small, otherwise a re-encoded copy.

        Raises:
            CompressionDecodeError: if the source bytes cannot be decoded.
        """
        if not self.needs_compression(file, dimensions):
            Log.debug(f"'{file.name}' is below compression thresholds, skipping")
            return file

        target = self.target_dimensions(dimensions)
        mime_type = file.mime_type
        if not mime_type or not self._codec.supports_mime_type(mime_type):
            mime_type = mimetypes.guess_type(file.name)[0] or mime_type
        try:
            data = await run_blocking(file.read_bytes, timeout=self._timeout)
            encoded = await run_blocking(
                self._codec.resize_and_encode,
                data,
                target.width,
                target.height,
                mime_type,
                self._quality,
                timeout=self._timeout,
            )
        except (ImageDecodeError, OSError) as exc:
            Log.error(f"Could not decode '{file.name}' for compression", error=str(exc))
            raise CompressionDecodeError("Failed to load image for compression.") from exc
        except StageTimeoutError as exc:
            Log.warning(f"Compression of '{file.name}' timed out, keeping original: {exc}")
            return file

        if encoded is None:
            Log.warning(f"Encoder produced no output for '{file.name}', keeping original")
            return file

        Log.info(
            f"Compressed '{file.name}'",
            source=f"{dimensions.width}x{dimensions.height}",
            target=f"{target.width}x{target.height}",
            bytes_before=file.size,
            bytes_after=len(encoded),
        )
        return file.with_data(encoded)
