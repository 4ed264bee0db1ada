from photoupload.imaging.base import BaseImageCodec
from photoupload.imaging.exceptions import ImageDecodeError, ImageTooLargeError
from photoupload.imaging.resources import ResourceRegistry
from photoupload.logging.logger import Log
from photoupload.upload.exceptions import StageTimeoutError
from photoupload.upload.models import (
    CandidateFile,
    ErrorKind,
    ImageDimensions,
    Invalid,
    UploadConstraints,
    Valid,
    ValidationOutcome,
)
from photoupload.upload.pipeline import run_blocking

UNREADABLE_MESSAGE = "Unable to read image file. Please ensure it is a valid image."
TIMEOUT_MESSAGE = "Image processing timed out. Please try again."


class ImageGeometryProbe:
    """Reads image width and height from the header and checks them against limits."""

    def __init__(
        self,
        codec: BaseImageCodec,
        registry: ResourceRegistry,
        constraints: UploadConstraints,
        timeout_seconds: float = 30.0,
    ) -> None:
        self._codec = codec
        self._registry = registry
        self._constraints = constraints
        self._timeout = timeout_seconds

    async def probe_dimensions(
        self, file: CandidateFile
    ) -> ValidationOutcome[ImageDimensions]:
        """Resolve exactly one outcome for `file`; never raises.

        The temporary handle bound to the file content is released whether the
        header parses, fails to parse or times out.
        """
        try:
            data = await run_blocking(file.read_bytes, timeout=self._timeout)
            with self._registry.scoped(data) as handle:
                width, height = await run_blocking(
                    self._codec.read_dimensions,
                    self._registry.resolve(handle),
                    timeout=self._timeout,
                )
        except StageTimeoutError as exc:
            Log.warning(f"Dimension probe for '{file.name}' timed out: {exc}")
            return Invalid(ErrorKind.TIMEOUT, TIMEOUT_MESSAGE)
        except ImageTooLargeError as exc:
            Log.warning(f"Header of '{file.name}' exceeds the decoder pixel limit: {exc}")
            return self._too_large()
        except (ImageDecodeError, OSError) as exc:
            Log.warning(f"Could not read dimensions of '{file.name}': {exc}")
            return Invalid(ErrorKind.UNREADABLE_IMAGE, UNREADABLE_MESSAGE)

        Log.debug(f"Read header of '{file.name}'", width=width, height=height)
        return self._check_bounds(width, height)

    def _check_bounds(self, width: int, height: int) -> ValidationOutcome[ImageDimensions]:
        c = self._constraints
        if width < c.min_width or height < c.min_height:
            return Invalid(
                ErrorKind.INVALID_DIMENSIONS_TOO_SMALL,
                f"Image dimensions too small. Minimum size: {c.min_width}x{c.min_height}px.",
            )
        if width > c.max_width or height > c.max_height:
            return self._too_large()
        return Valid(ImageDimensions(width=width, height=height))

    def _too_large(self) -> Invalid:
        c = self._constraints
        return Invalid(
            ErrorKind.INVALID_DIMENSIONS_TOO_LARGE,
            f"Image dimensions too large. Maximum size: {c.max_width}x{c.max_height}px.",
        )
