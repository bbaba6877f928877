"""Domain layer exports."""

from .models import (
    ErrorDescriptor,
    FailureKind,
    OutcomeEvent,
    RemoteFile,
    StageFailure,
    TaggedSegment,
    TranscodeResult,
    TranscodeSuccess,
    TranscriptionResult,
    TranscriptionSuccess,
    TriggerObject,
    UploadResult,
    UploadSuccess,
)
from .transcript_merger import TranscriptMerger

__all__ = [
    "ErrorDescriptor",
    "FailureKind",
    "OutcomeEvent",
    "RemoteFile",
    "StageFailure",
    "TaggedSegment",
    "TranscodeResult",
    "TranscodeSuccess",
    "TranscriptMerger",
    "TranscriptionResult",
    "TranscriptionSuccess",
    "TriggerObject",
    "UploadResult",
    "UploadSuccess",
]
