from photoupload.config.settings import Settings
from photoupload.imaging.base import BaseImageCodec
from photoupload.imaging.factory import ImageCodecFactory
from photoupload.imaging.resources import ResourceRegistry
from photoupload.logging.logger import Log
from photoupload.upload.compressor import ImageCompressor
from photoupload.upload.exceptions import UploadError
from photoupload.upload.models import (
    CandidateFile,
    ErrorKind,
    Invalid,
    UploadConstraints,
    UploadResult,
    Valid,
    ValidationOutcome,
)
from photoupload.upload.pipeline import PipelineStep, UploadContext
from photoupload.upload.preview import PreviewEncoder
from photoupload.upload.probe import ImageGeometryProbe
from photoupload.upload.steps import (
    CompressStep,
    EncodePreviewStep,
    ProbeDimensionsStep,
    ValidateSizeStep,
    ValidateTypeStep,
)
from photoupload.upload.validator import FileValidator

GENERIC_FAILURE_MESSAGE = "An error occurred while processing the image."


class UploadProcessor:
    """Runs one candidate file through the upload pipeline.

    Pipeline: type -> size -> dimensions -> compress -> preview.
    Stages run strictly in order and the first rejection ends the run.
    """

    def __init__(self, steps: list[PipelineStep]) -> None:
        self._steps = steps

    async def process(self, file: CandidateFile) -> ValidationOutcome[UploadResult]:
        """Resolve an outcome for `file`. Never raises."""
        Log.info("Processing upload", name=file.name, mime_type=file.mime_type)
        context = UploadContext(file=file)
        try:
            for step in self._steps:
                context = await step.run(context)
                if context.failure is not None:
                    Log.info(
                        f"Rejected '{file.name}' at {type(step).__name__}",
                        kind=context.failure.kind.value,
                        reason=context.failure.reason,
                    )
                    return context.failure
        except UploadError as exc:
            Log.error(f"Upload of '{file.name}' failed: {exc}")
            return Invalid(exc.kind, str(exc))
        except Exception as exc:
            Log.exception(f"Unexpected error processing '{file.name}': {exc}")
            return Invalid(ErrorKind.PROCESSING_FAILURE, GENERIC_FAILURE_MESSAGE)

        if context.dimensions is None or context.final_file is None:
            raise RuntimeError("Upload pipeline finished without dimensions or final file")
        Log.info(f"Accepted '{file.name}'", compressed=context.compressed)
        return Valid(
            UploadResult(
                file=context.final_file,
                preview=context.preview,
                dimensions=context.dimensions,
                compressed=context.compressed,
            )
        )


def build_steps(
    settings: Settings,
    registry: ResourceRegistry,
    codec: BaseImageCodec | None = None,
) -> list[PipelineStep]:
    """Build the default stage chain from settings."""
    codec = codec if codec is not None else ImageCodecFactory.create(settings)
    constraints = UploadConstraints.from_settings(settings)
    validator = FileValidator(constraints)
    timeout = settings.stage_timeout_seconds
    return [
        ValidateTypeStep(validator),
        ValidateSizeStep(validator),
        ProbeDimensionsStep(
            ImageGeometryProbe(codec, registry, constraints, timeout_seconds=timeout)
        ),
        CompressStep(
            ImageCompressor(
                codec,
                threshold_bytes=settings.compression_threshold_bytes,
                max_dimension=settings.compression_max_dimension,
                quality=settings.compression_quality,
                timeout_seconds=timeout,
            )
        ),
        EncodePreviewStep(PreviewEncoder(timeout_seconds=timeout)),
    ]


def build_processor(
    settings: Settings,
    registry: ResourceRegistry,
    codec: BaseImageCodec | None = None,
) -> UploadProcessor:
    """Build an UploadProcessor with all required stages."""
    return UploadProcessor(steps=build_steps(settings, registry, codec))
