"""Domain models for the audio transcription pipeline."""

from enum import Enum
from typing import Any, Literal
from urllib.parse import unquote_plus

from pydantic import BaseModel, Field

TRANSCODE_OUTPUT_METADATA_KEY = "isTranscodeOutput"
USER_METADATA_PREFIX = "x-amz-meta-"


class TriggerObject(BaseModel, frozen=True, populate_by_name=True):
    """Descriptor of a finalized audio object in the watched bucket."""

    bucket_id: str = Field(alias="bucket")
    object_path: str | None = Field(default=None, alias="name")
    content_type: str | None = Field(default=None, alias="contentType")
    custom_metadata: dict[str, str] | None = Field(default=None, alias="metadata")

    def is_transcode_output(self) -> bool:
        """Whether the object was written back by this pipeline."""
        if not self.custom_metadata:
            return False
        metadata = {key.lower(): value for key, value in self.custom_metadata.items()}
        return metadata.get(TRANSCODE_OUTPUT_METADATA_KEY.lower()) == "true"

    @classmethod
    def from_notification_record(cls, record: dict[str, Any]) -> "TriggerObject":
        """
        Builds a trigger object from an S3-style bucket notification record.

        MinIO publishes object keys URL-encoded and user metadata as
        canonicalised ``X-Amz-Meta-*`` header names.

        Args:
            record: One entry of the notification's ``Records`` list.

        Returns:
            The trigger object described by the record.
        """
        s3 = record["s3"]
        obj = s3["object"]

        metadata = {}
        for key, value in (obj.get("userMetadata") or {}).items():
            if key.lower().startswith(USER_METADATA_PREFIX):
                metadata[key[len(USER_METADATA_PREFIX) :]] = value

        key = obj.get("key")
        return cls(
            bucket_id=s3["bucket"]["name"],
            object_path=unquote_plus(key) if key else None,
            content_type=obj.get("contentType"),
            custom_metadata=metadata,
        )


class FailureKind(str, Enum):
    """Kinds of terminal stage failures."""

    TRANSCODE_INPUT_UNREADABLE = "transcode-input-unreadable"
    TRANSCODE_UNSUPPORTED_CODEC = "transcode-unsupported-codec"
    TRANSCODE_OUTPUT_IO = "transcode-output-io"
    TRANSCODE_UPLOAD = "transcode-upload"
    TRANSCRIPTION_BACKEND_UNAVAILABLE = "transcription-backend-unavailable"
    TRANSCRIPTION_UNSUPPORTED_AUDIO = "transcription-unsupported-audio"
    TRANSCRIPTION_AUTH = "transcription-auth"
    TRANSCRIPTION_FAILED = "transcription-failed"
    TRANSCRIPT_UPLOAD = "transcript-upload"
    UNHANDLED_ERROR = "unhandled-error"


class StageFailure(BaseModel, frozen=True):
    """Failure variant shared by every pipeline stage."""

    kind: FailureKind
    message: str
    cause: str | None = None

    def to_payload(self) -> dict[str, str]:
        payload = {"kind": self.kind.value, "message": self.message}
        if self.cause is not None:
            payload["cause"] = self.cause
        return payload


class TranscodeSuccess(BaseModel, frozen=True):
    """A local linear PCM file and the parameters the recognizer needs."""

    local_output_path: str
    sample_rate_hertz: int
    audio_channel_count: int


class RemoteFile(BaseModel, frozen=True):
    """Handle to an object in the store, fetchable by the speech backend."""

    bucket_id: str
    object_path: str
    url: str


class UploadSuccess(BaseModel, frozen=True):
    file: RemoteFile


class TaggedSegment(BaseModel, frozen=True):
    """
    One recognition result as reported by the backend.

    Either field may be missing: backends emit informational segments that
    carry no channel or no transcript alternative.
    """

    channel_tag: int | None = None
    text: str | None = None


class TranscriptionSuccess(BaseModel, frozen=True):
    """Per-channel transcripts, each in recognition arrival order."""

    transcripts_by_channel: dict[int, list[str]]

    def to_payload(self) -> dict[str, list[str]]:
        return {
            str(tag): list(texts) for tag, texts in self.transcripts_by_channel.items()
        }


TranscodeResult = TranscodeSuccess | StageFailure
UploadResult = UploadSuccess | StageFailure
TranscriptionResult = TranscriptionSuccess | StageFailure


class OutcomeEvent(BaseModel, frozen=True):
    """The single terminal notification emitted for a processed object."""

    type: Literal["complete", "fail"]
    payload: dict[str, Any]


class ErrorDescriptor(BaseModel, frozen=True):
    """Normalized description of an unexpected error raised during a run."""

    name: str
    message: str
