from abc import ABC, abstractmethod


class BaseImageCodec(ABC):
    """Contract for all raster image adapters."""

    @abstractmethod
    def supports_mime_type(self, mime_type: str) -> bool:
        """Whether `resize_and_encode` can write this output type."""

    @abstractmethod
    def read_dimensions(self, data: bytes) -> tuple[int, int]:
        """Read natural width and height without decoding pixel data.

        Args:
            data: Raw image file content.

        Returns:
            (width, height) in pixels.

        Raises:
            ImageTooLargeError: if the declared pixel count exceeds the decoder limit.
            ImageDecodeError: if the header cannot be parsed.
        """

    @abstractmethod
    def resize_and_encode(
        self,
        data: bytes,
        width: int,
        height: int,
        mime_type: str,
        quality: float,
    ) -> bytes | None:
        """Decode, draw onto a width x height raster and re-encode.

        Args:
            data: Raw image file content.
            width: Target width in pixels.
            height: Target height in pixels.
            mime_type: Output format, same as the source.
            quality: Lossy quality factor in (0, 1].

        Returns:
            Encoded bytes, or None when the encoder produced no output.

        Raises:
            ImageDecodeError: if the source bytes cannot be decoded.
        """
