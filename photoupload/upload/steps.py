from photoupload.logging.logger import Log
from photoupload.upload.compressor import ImageCompressor
from photoupload.upload.models import Invalid
from photoupload.upload.pipeline import PipelineStep, UploadContext
from photoupload.upload.preview import PreviewEncoder, to_data_url
from photoupload.upload.probe import ImageGeometryProbe
from photoupload.upload.validator import FileValidator


class ValidateTypeStep(PipelineStep):
    def __init__(self, validator: FileValidator) -> None:
        self._validator = validator

    async def run(self, context: UploadContext) -> UploadContext:
        outcome = self._validator.validate_type(context.file)
        if isinstance(outcome, Invalid):
            context.failure = outcome
        return context


class ValidateSizeStep(PipelineStep):
    def __init__(self, validator: FileValidator) -> None:
        self._validator = validator

    async def run(self, context: UploadContext) -> UploadContext:
        outcome = self._validator.validate_size(context.file)
        if isinstance(outcome, Invalid):
            context.failure = outcome
        return context


class ProbeDimensionsStep(PipelineStep):
    def __init__(self, probe: ImageGeometryProbe) -> None:
        self._probe = probe

    async def run(self, context: UploadContext) -> UploadContext:
        outcome = await self._probe.probe_dimensions(context.file)
        if isinstance(outcome, Invalid):
            context.failure = outcome
            return context
        context.dimensions = outcome.payload
        Log.info(
            f"Probed '{context.file.name}'",
            width=context.dimensions.width,
            height=context.dimensions.height,
        )
        return context


class CompressStep(PipelineStep):
    def __init__(self, compressor: ImageCompressor) -> None:
        self._compressor = compressor

    async def run(self, context: UploadContext) -> UploadContext:
        if context.dimensions is None:
            raise ValueError("UploadContext.dimensions must be set before compression")
        context.final_file = await self._compressor.compress_if_needed(
            context.file, context.dimensions
        )
        context.compressed = context.final_file is not context.file
        return context


class EncodePreviewStep(PipelineStep):
    def __init__(self, encoder: PreviewEncoder) -> None:
        self._encoder = encoder

    async def run(self, context: UploadContext) -> UploadContext:
        if context.final_file is None:
            raise ValueError("UploadContext.final_file must be set before preview encoding")
        outcome = await self._encoder.load(context.final_file)
        if isinstance(outcome, Invalid):
            context.failure = outcome
            return context
        context.final_file = outcome.payload
        context.preview = to_data_url(outcome.payload.read_bytes(), outcome.payload.mime_type)
        return context
