class ImageDecodeError(Exception):
    """Raised when image bytes cannot be decoded."""


class ImageTooLargeError(ImageDecodeError):
    """Raised when the header declares more pixels than the decoder will accept."""


class ResourceError(Exception):
    """Base exception for revocable resource bookkeeping."""


class ResourceReleasedError(ResourceError):
    """Raised when a handle is released twice or was never issued."""
