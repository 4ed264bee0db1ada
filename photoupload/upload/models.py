import mimetypes
from dataclasses import dataclass, field, replace
from enum import Enum
from pathlib import Path
from typing import Generic, TypeVar

from photoupload.config.settings import Settings

T = TypeVar("T")


class ErrorKind(str, Enum):
    """Why an upload attempt was rejected."""

    INVALID_TYPE = "invalid_type"
    INVALID_SIZE = "invalid_size"
    INVALID_DIMENSIONS_TOO_SMALL = "invalid_dimensions_too_small"
    INVALID_DIMENSIONS_TOO_LARGE = "invalid_dimensions_too_large"
    UNREADABLE_IMAGE = "unreadable_image"
    READ_FAILURE = "read_failure"
    COMPRESSION_DECODE_FAILURE = "compression_decode_failure"
    TIMEOUT = "timeout"
    PROCESSING_FAILURE = "processing_failure"


@dataclass(frozen=True)
class Valid(Generic[T]):
    """Successful stage outcome carrying the stage's payload."""

    payload: T
    ok: bool = field(default=True, init=False)


@dataclass(frozen=True)
class Invalid:
    """Rejected stage outcome. `reason` is shown to the user verbatim."""

    kind: ErrorKind
    reason: str
    ok: bool = field(default=False, init=False)


ValidationOutcome = Valid[T] | Invalid


@dataclass(frozen=True)
class UploadConstraints:
    """Limits applied to every file offered to one upload area."""

    max_bytes: int = 5 * 1024 * 1024
    allowed_mime_types: frozenset[str] = frozenset(
        {"image/jpeg", "image/jpg", "image/png", "image/gif", "image/webp"}
    )
    allowed_extensions: tuple[str, ...] = (".jpg", ".jpeg", ".png", ".gif", ".webp")
    min_width: int = 100
    min_height: int = 100
    max_width: int = 4000
    max_height: int = 4000

    def __post_init__(self) -> None:
        for name in ("max_bytes", "min_width", "min_height", "max_width", "max_height"):
            if getattr(self, name) <= 0:
                raise ValueError(f"{name} must be positive, got {getattr(self, name)}")
        if self.min_width > self.max_width:
            raise ValueError(f"min_width {self.min_width} exceeds max_width {self.max_width}")
        if self.min_height > self.max_height:
            raise ValueError(
                f"min_height {self.min_height} exceeds max_height {self.max_height}"
            )

    @classmethod
    def from_settings(cls, settings: Settings) -> "UploadConstraints":
        return cls(
            max_bytes=settings.upload_max_size_bytes,
            allowed_mime_types=frozenset(settings.upload_allowed_mime_types),
            allowed_extensions=tuple(ext.lower() for ext in settings.upload_allowed_extensions),
            min_width=settings.upload_min_width,
            min_height=settings.upload_min_height,
            max_width=settings.upload_max_width,
            max_height=settings.upload_max_height,
        )


@dataclass(frozen=True)
class CandidateFile:
    """A file offered for upload, held in memory or on disk.

    `size` is the declared byte length; for disk-backed files it is taken from
    the filesystem and the content is only read on demand.
    """

    name: str
    mime_type: str = ""
    data: bytes | None = field(default=None, repr=False)
    path: Path | None = None

    def __post_init__(self) -> None:
        if (self.data is None) == (self.path is None):
            raise ValueError("CandidateFile needs exactly one of data or path")

    @classmethod
    def from_path(cls, path: Path, mime_type: str | None = None) -> "CandidateFile":
        if mime_type is None:
            mime_type = mimetypes.guess_type(path.name)[0] or ""
        return cls(name=path.name, mime_type=mime_type, path=path)

    @property
    def size(self) -> int:
        if self.data is not None:
            return len(self.data)
        assert self.path is not None
        return self.path.stat().st_size

    def read_bytes(self) -> bytes:
        """Return the file content.

        Raises:
            OSError: if a disk-backed file can no longer be read.
        """
        if self.data is not None:
            return self.data
        assert self.path is not None
        return self.path.read_bytes()

    def with_data(self, data: bytes) -> "CandidateFile":
        """Build the re-encoded sibling of this file (same name and type)."""
        return replace(self, data=data, path=None)


@dataclass(frozen=True)
class ImageDimensions:
    width: int
    height: int

    def __post_init__(self) -> None:
        if self.width <= 0 or self.height <= 0:
            raise ValueError(f"Invalid dimensions {self.width}x{self.height}")

    @property
    def longer_side(self) -> int:
        return max(self.width, self.height)


@dataclass(frozen=True)
class UploadResult:
    """What the pipeline hands back for an accepted file."""

    file: CandidateFile
    preview: str
    dimensions: ImageDimensions
    compressed: bool = False
