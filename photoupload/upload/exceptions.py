from photoupload.upload.models import ErrorKind


class UploadError(Exception):
    """Base exception for failures inside an upload pipeline stage."""

    kind: ErrorKind = ErrorKind.PROCESSING_FAILURE


class CompressionDecodeError(UploadError):
    """Raised when the compressor cannot decode the source image."""

    kind = ErrorKind.COMPRESSION_DECODE_FAILURE


class StageTimeoutError(UploadError):
    """Raised when a pipeline stage exceeds its time budget."""

    kind = ErrorKind.TIMEOUT
