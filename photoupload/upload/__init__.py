from photoupload.upload.controller import InteractionState, UploadInteractionController
from photoupload.upload.models import CandidateFile, UploadConstraints, UploadResult
from photoupload.upload.processor import UploadProcessor, build_processor

__all__ = [
    "CandidateFile",
    "InteractionState",
    "UploadConstraints",
    "UploadInteractionController",
    "UploadProcessor",
    "UploadResult",
    "build_processor",
]
