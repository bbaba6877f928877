"""AssemblyAI implementation of the TranscriptionService interface."""

import logging
from collections.abc import Iterator

import assemblyai as aai

from transcribe_audio.domain import FailureKind, RemoteFile, StageFailure, TaggedSegment

from .interfaces import TranscriptionService

logger = logging.getLogger(__name__)

MONO_CHANNEL_TAG = 1
_ACCOUNT_ERROR_MARKERS = (
    "api key",
    "api token",
    "authentication",
    "unauthorized",
    "balance",
    "quota",
)


class AssemblyAITranscriber(TranscriptionService):
    """Recognizes speech with AssemblyAI, one segment per channel utterance."""

    def __init__(self, transcriber: aai.Transcriber, language_code: str | None = None):
        self._transcriber = transcriber
        self._language_code = language_code

    def recognize(
        self, file: RemoteFile, sample_rate_hertz: int, audio_channel_count: int
    ) -> Iterator[TaggedSegment] | StageFailure:
        if sample_rate_hertz <= 0 or audio_channel_count < 1:
            return StageFailure(
                kind=FailureKind.TRANSCRIPTION_UNSUPPORTED_AUDIO,
                message=(
                    f"Unsupported audio parameters: {sample_rate_hertz} Hz, "
                    f"{audio_channel_count} channel(s)"
                ),
            )

        config = aai.TranscriptionConfig(
            language_code=self._language_code,
            multichannel=audio_channel_count > 1,
        )

        try:
            transcript = self._transcriber.transcribe(file.url, config=config)
        except aai.types.TranscriptError as e:
            logger.exception(
                "AssemblyAI request failed", extra={"object_name": file.object_path}
            )
            return StageFailure(
                kind=FailureKind.TRANSCRIPTION_BACKEND_UNAVAILABLE,
                message="Speech backend request failed",
                cause=str(e),
            )

        if transcript.status == aai.TranscriptStatus.error:
            error = transcript.error or "unknown error"
            logger.error(
                "AssemblyAI transcription failed",
                extra={"object_name": file.object_path, "error": error},
            )
            return StageFailure(
                kind=self._classify_error(error),
                message=f"Speech backend rejected the transcription: {error}",
            )

        logger.info(
            "Audio transcription successful",
            extra={
                "object_name": file.object_path,
                "transcript_id": transcript.id,
                "audio_channel_count": audio_channel_count,
            },
        )
        return self._segments(transcript, audio_channel_count)

    @staticmethod
    def _classify_error(error: str) -> FailureKind:
        lowered = error.lower()
        if any(marker in lowered for marker in _ACCOUNT_ERROR_MARKERS):
            return FailureKind.TRANSCRIPTION_AUTH
        return FailureKind.TRANSCRIPTION_FAILED

    @staticmethod
    def _segments(
        transcript: aai.Transcript, audio_channel_count: int
    ) -> Iterator[TaggedSegment]:
        # Without multichannel the backend reports no channel at all.
        if audio_channel_count == 1:
            yield TaggedSegment(channel_tag=MONO_CHANNEL_TAG, text=transcript.text)
            return

        for utterance in transcript.utterances or []:
            channel = str(getattr(utterance, "channel", None) or "")
            yield TaggedSegment(
                channel_tag=int(channel) if channel.isdigit() else None,
                text=utterance.text,
            )
