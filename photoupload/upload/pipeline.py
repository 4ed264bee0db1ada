import asyncio
from abc import ABC, abstractmethod
from collections.abc import Callable
from dataclasses import dataclass
from typing import TypeVar

from photoupload.upload.exceptions import StageTimeoutError
from photoupload.upload.models import CandidateFile, ImageDimensions, Invalid

R = TypeVar("R")


@dataclass(slots=True)
class UploadContext:
    file: CandidateFile
    dimensions: ImageDimensions | None = None
    final_file: CandidateFile | None = None
    compressed: bool = False
    preview: str = ""
    failure: Invalid | None = None


class PipelineStep(ABC):
    @abstractmethod
    async def run(self, context: UploadContext) -> UploadContext:
        raise NotImplementedError


async def run_blocking(func: Callable[..., R], *args: object, timeout: float) -> R:
    """Run a blocking call in a worker thread, bounded by `timeout` seconds.

    Raises:
        StageTimeoutError: if the call does not finish in time. The thread
            itself cannot be interrupted and is left to finish on its own.
    """
    try:
        return await asyncio.wait_for(asyncio.to_thread(func, *args), timeout)
    except asyncio.TimeoutError as exc:
        name = getattr(func, "__qualname__", repr(func))
        raise StageTimeoutError(f"{name} timed out after {timeout}s") from exc
