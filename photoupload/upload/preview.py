import base64

from photoupload.logging.logger import Log
from photoupload.upload.exceptions import StageTimeoutError
from photoupload.upload.models import (
    CandidateFile,
    ErrorKind,
    Invalid,
    Valid,
    ValidationOutcome,
)
from photoupload.upload.pipeline import run_blocking

READ_FAILURE_MESSAGE = "Error reading file. Please try again."


def to_data_url(data: bytes, mime_type: str) -> str:
    encoded = base64.b64encode(data).decode("ascii")
    return f"data:{mime_type or 'application/octet-stream'};base64,{encoded}"


class PreviewEncoder:
    """Encodes the final file as a self-contained data URL."""

    def __init__(self, timeout_seconds: float = 30.0) -> None:
        self._timeout = timeout_seconds

    async def load(self, file: CandidateFile) -> ValidationOutcome[CandidateFile]:
        """Return `file` with its content held in memory, reading it from disk once."""
        if file.data is not None:
            return Valid(file)
        try:
            data = await run_blocking(file.read_bytes, timeout=self._timeout)
        except (OSError, StageTimeoutError) as exc:
            Log.warning(f"Could not read '{file.name}' for preview: {exc}")
            return Invalid(ErrorKind.READ_FAILURE, READ_FAILURE_MESSAGE)
        return Valid(file.with_data(data))

    async def to_preview(self, file: CandidateFile) -> ValidationOutcome[str]:
        outcome = await self.load(file)
        if isinstance(outcome, Invalid):
            return outcome
        loaded = outcome.payload
        return Valid(to_data_url(loaded.read_bytes(), loaded.mime_type))
