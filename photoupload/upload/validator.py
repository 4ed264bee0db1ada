import math

from photoupload.upload.models import (
    CandidateFile,
    ErrorKind,
    Invalid,
    UploadConstraints,
    Valid,
    ValidationOutcome,
)

SIZE_UNITS = ("Bytes", "KB", "MB", "GB")


def format_file_size(size_bytes: int) -> str:
    """Format a byte count with binary prefixes, e.g. 5242880 -> "5 MB"."""
    if size_bytes <= 0:
        return "0 Bytes"
    k = 1024
    i = min(int(math.floor(math.log(size_bytes) / math.log(k))), len(SIZE_UNITS) - 1)
    # float log can land just under an exact power of 1024
    if i < len(SIZE_UNITS) - 1 and size_bytes >= k ** (i + 1):
        i += 1
    # half-up to two decimals
    value = math.floor(size_bytes / k**i * 100 + 0.5) / 100
    text = f"{value:.2f}".rstrip("0").rstrip(".")
    return f"{text} {SIZE_UNITS[i]}"


class FileValidator:
    """Synchronous type and size checks run before any image decoding."""

    def __init__(self, constraints: UploadConstraints) -> None:
        self._constraints = constraints

    def validate_type(self, file: CandidateFile) -> ValidationOutcome[CandidateFile]:
        """Accept on an exact MIME match or, failing that, a known extension.

        Some platforms report empty or generic MIME types for images, so the
        extension check is a fallback rather than a second requirement.
        """
        valid_type = file.mime_type in self._constraints.allowed_mime_types
        lowered = file.name.lower()
        valid_extension = any(
            lowered.endswith(ext) for ext in self._constraints.allowed_extensions
        )
        if not valid_type and not valid_extension:
            allowed = ", ".join(self._constraints.allowed_extensions).upper()
            return Invalid(ErrorKind.INVALID_TYPE, f"Invalid file type. Please upload: {allowed}")
        return Valid(file)

    def validate_size(self, file: CandidateFile) -> ValidationOutcome[CandidateFile]:
        if file.size > self._constraints.max_bytes:
            limit = format_file_size(self._constraints.max_bytes)
            return Invalid(
                ErrorKind.INVALID_SIZE,
                f"File size exceeds maximum limit of {limit}. Please choose a smaller file.",
            )
        return Valid(file)
