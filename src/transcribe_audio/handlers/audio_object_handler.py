"""Handler that drives one uploaded audio object through the pipeline."""

import io
import json
import logging
import os
import posixpath
import tempfile
from collections.abc import Callable
from datetime import datetime, timezone
from typing import Any

from transcribe_audio.config import PipelineConfig
from transcribe_audio.domain import (
    FailureKind,
    OutcomeEvent,
    RemoteFile,
    StageFailure,
    TranscodeSuccess,
    TranscriptionResult,
    TranscriptionSuccess,
    TranscriptMerger,
    TriggerObject,
    UploadResult,
    UploadSuccess,
)
from transcribe_audio.domain.models import TRANSCODE_OUTPUT_METADATA_KEY
from transcribe_audio.exceptions import StorageUploadError
from transcribe_audio.infrastructure.interfaces import (
    StorageClient,
    Transcoder,
    TranscriptionService,
)
from transcribe_audio.infrastructure.outcome_publisher import OutcomePublisher
from transcribe_audio.utils import error_from_any, generate_temp_transcoded_filename

logger = logging.getLogger(__name__)

TRANSCODED_CONTENT_TYPE = "audio/wav"
TRANSCRIPT_CONTENT_TYPE = "application/json"
OUTPUT_METADATA = {TRANSCODE_OUTPUT_METADATA_KEY: "true"}


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class AudioObjectHandler:
    """
    Orchestrates download, transcode, re-upload, transcribe and publish.

    Every stage short-circuits on failure: a StageFailure is published as a
    ``fail`` event and the run ends. Exceptions that escape a stage are caught
    once, at the run boundary, and reported the same way.
    """

    def __init__(
        self,
        storage: StorageClient,
        transcoder: Transcoder,
        transcription_service: TranscriptionService,
        transcript_merger: TranscriptMerger,
        config: PipelineConfig,
        publisher: OutcomePublisher | None = None,
        clock: Callable[[], datetime] = _utcnow,
    ):
        self._storage = storage
        self._transcoder = transcoder
        self._transcription_service = transcription_service
        self._transcript_merger = transcript_merger
        self._config = config
        self._publisher = publisher
        self._clock = clock

    def process(self, trigger: TriggerObject) -> OutcomeEvent | None:
        """
        Validates a trigger object and runs the pipeline for it.

        Returns:
            The outcome event of the run, or None if the object was skipped.
        """
        if not self.validate(trigger):
            logger.info(
                "Object skipped",
                extra={
                    "bucket_name": trigger.bucket_id,
                    "object_name": trigger.object_path,
                },
            )
            return None
        return self.run(trigger)

    def validate(self, trigger: TriggerObject) -> bool:
        """Whether the object is an audio upload this pipeline should process."""
        if trigger.is_transcode_output():
            logger.info(
                "Object is already a transcode output",
                extra={"object_name": trigger.object_path},
            )
            return False

        if not trigger.content_type:
            logger.info(
                "Object has no content type", extra={"object_name": trigger.object_path}
            )
            return False

        if not trigger.content_type.startswith("audio/"):
            logger.info(
                "Object content type is not audio",
                extra={
                    "object_name": trigger.object_path,
                    "content_type": trigger.content_type,
                },
            )
            return False

        if not trigger.object_path:
            logger.info("Object has no name", extra={"bucket_name": trigger.bucket_id})
            return False

        return True

    def run(self, trigger: TriggerObject) -> OutcomeEvent:
        """
        Runs every stage for a validated object and publishes the outcome.

        Never raises: anything unexpected becomes an ``unhandled-error`` failure.

        Returns:
            The ``complete`` or ``fail`` event emitted for the object.
        """
        logger.info(
            "Processing audio",
            extra={
                "bucket_name": trigger.bucket_id,
                "object_name": trigger.object_path,
            },
        )
        try:
            with tempfile.TemporaryDirectory(prefix="transcribe-audio-") as scratch_dir:
                return self._run_stages(trigger, scratch_dir)
        except Exception as e:
            error = error_from_any(e)
            logger.exception(
                "Unhandled error while processing audio",
                extra={
                    "object_name": trigger.object_path,
                    "error_name": error.name,
                    "error_message": error.message,
                },
            )
            return self._fail(
                StageFailure(
                    kind=FailureKind.UNHANDLED_ERROR,
                    message=error.message,
                    cause=error.name,
                ),
                stage="run",
            )

    def _run_stages(self, trigger: TriggerObject, scratch_dir: str) -> OutcomeEvent:
        object_path = trigger.object_path
        base_name = posixpath.basename(object_path)

        local_copy_path = os.path.join(scratch_dir, base_name)
        audio_data = self._storage.download(trigger.bucket_id, object_path)
        with open(local_copy_path, "wb") as f:
            f.write(audio_data)
        logger.info(
            "Audio downloaded",
            extra={"object_name": object_path, "local_path": local_copy_path},
        )

        transcode_result = self._transcoder.transcode(local_copy_path)
        if isinstance(transcode_result, StageFailure):
            return self._fail(transcode_result, stage="transcode")
        logger.info(
            "Audio transcoded",
            extra={
                "object_name": object_path,
                "sample_rate_hertz": transcode_result.sample_rate_hertz,
                "audio_channel_count": transcode_result.audio_channel_count,
            },
        )

        upload_result = self._upload_transcoded(trigger, base_name, transcode_result)
        if isinstance(upload_result, StageFailure):
            return self._fail(upload_result, stage="transcode-upload")
        transcoded_file = upload_result.file

        transcription_result = self._transcribe(transcoded_file, transcode_result)
        if isinstance(transcription_result, StageFailure):
            return self._fail(transcription_result, stage="transcribe")

        payload: dict[str, Any] = {
            "transcriptsByChannel": transcription_result.to_payload(),
            "bucket": transcoded_file.bucket_id,
            "transcodedPath": transcoded_file.object_path,
            "sampleRateHertz": transcode_result.sample_rate_hertz,
            "audioChannelCount": transcode_result.audio_channel_count,
        }

        if self._config.write_transcript:
            transcript_upload = self._upload_transcript(
                transcoded_file, transcription_result
            )
            if isinstance(transcript_upload, StageFailure):
                return self._fail(transcript_upload, stage="transcript-upload")
            payload["transcriptPath"] = transcript_upload.file.object_path

        logger.info(
            "Audio processed",
            extra={
                "object_name": object_path,
                "transcoded_path": transcoded_file.object_path,
                "channel_count": len(transcription_result.transcripts_by_channel),
            },
        )
        return self._emit(OutcomeEvent(type="complete", payload=payload))

    def _upload_transcoded(
        self, trigger: TriggerObject, base_name: str, transcoded: TranscodeSuccess
    ) -> UploadResult:
        file_name = generate_temp_transcoded_filename(self._clock(), base_name)
        prefix = self._config.output_prefix
        if prefix is None:
            prefix = posixpath.dirname(trigger.object_path)
        object_name = posixpath.join(prefix, file_name)

        size = os.path.getsize(transcoded.local_output_path)
        with open(transcoded.local_output_path, "rb") as f:
            try:
                remote_file = self._storage.upload(
                    bucket_name=trigger.bucket_id,
                    object_name=object_name,
                    data=f,
                    size=size,
                    content_type=TRANSCODED_CONTENT_TYPE,
                    metadata=OUTPUT_METADATA,
                )
            except StorageUploadError as e:
                return StageFailure(
                    kind=FailureKind.TRANSCODE_UPLOAD,
                    message=str(e),
                    cause=str(e.cause) if e.cause else None,
                )

        logger.info("Transcoded file uploaded", extra={"object_name": object_name})
        return UploadSuccess(file=remote_file)

    def _transcribe(
        self, file: RemoteFile, transcoded: TranscodeSuccess
    ) -> TranscriptionResult:
        segments = self._transcription_service.recognize(
            file, transcoded.sample_rate_hertz, transcoded.audio_channel_count
        )
        if isinstance(segments, StageFailure):
            return segments
        return self._transcript_merger.merge(segments)

    def _upload_transcript(
        self, transcoded_file: RemoteFile, transcription: TranscriptionSuccess
    ) -> UploadResult:
        object_name = posixpath.splitext(transcoded_file.object_path)[0] + ".json"
        body = json.dumps(
            {"transcriptsByChannel": transcription.to_payload()}, ensure_ascii=False
        ).encode("utf-8")

        try:
            remote_file = self._storage.upload(
                bucket_name=transcoded_file.bucket_id,
                object_name=object_name,
                data=io.BytesIO(body),
                size=len(body),
                content_type=TRANSCRIPT_CONTENT_TYPE,
                metadata=OUTPUT_METADATA,
            )
        except StorageUploadError as e:
            return StageFailure(
                kind=FailureKind.TRANSCRIPT_UPLOAD,
                message=str(e),
                cause=str(e.cause) if e.cause else None,
            )

        logger.info("Transcript uploaded", extra={"object_name": object_name})
        return UploadSuccess(file=remote_file)

    def _fail(self, failure: StageFailure, stage: str) -> OutcomeEvent:
        logger.error(
            "Pipeline stage failed",
            extra={
                "stage": stage,
                "failure_kind": failure.kind.value,
                "failure_message": failure.message,
            },
        )
        return self._emit(OutcomeEvent(type="fail", payload=failure.to_payload()))

    def _emit(self, event: OutcomeEvent) -> OutcomeEvent:
        if self._publisher is not None:
            self._publisher.publish(event)
        return event
