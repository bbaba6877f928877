"""ffmpeg implementation of the Transcoder interface."""

import logging
import os
import wave

import ffmpeg

from transcribe_audio.domain import (
    FailureKind,
    StageFailure,
    TranscodeResult,
    TranscodeSuccess,
)

from .interfaces import Transcoder

logger = logging.getLogger(__name__)

LINEAR16_CODEC = "pcm_s16le"
LINEAR16_SAMPLE_WIDTH = 2
OUTPUT_SUFFIX = "-linear16.wav"


def _ffmpeg_message(error: ffmpeg.Error) -> str:
    return error.stderr.decode(errors="replace").strip() if error.stderr else str(error)


class FfmpegTranscoder(Transcoder):
    """
    Re-encodes audio as 16-bit linear PCM WAV, keeping rate and channels.

    The source is probed first so the decoder runs with the source's own
    sample rate and channel count; ffmpeg never resamples or remixes.
    """

    def transcode(self, input_path: str) -> TranscodeResult:
        name = os.path.basename(input_path)
        output_path = os.path.splitext(input_path)[0] + OUTPUT_SUFFIX

        if not os.path.isfile(input_path):
            return StageFailure(
                kind=FailureKind.TRANSCODE_INPUT_UNREADABLE,
                message=f"Audio file '{name}' does not exist",
            )

        try:
            probe = ffmpeg.probe(input_path)
        except ffmpeg.Error as e:
            logger.warning("Unable to probe audio", extra={"input_path": input_path})
            return StageFailure(
                kind=FailureKind.TRANSCODE_INPUT_UNREADABLE,
                message=f"Could not read audio file '{name}'",
                cause=_ffmpeg_message(e),
            )

        stream = next(
            (s for s in probe.get("streams", []) if s.get("codec_type") == "audio"),
            None,
        )
        if stream is None:
            return StageFailure(
                kind=FailureKind.TRANSCODE_UNSUPPORTED_CODEC,
                message=f"No audio stream in '{name}'",
            )

        try:
            sample_rate = int(stream.get("sample_rate") or 0)
            channel_count = int(stream.get("channels") or 0)
        except (TypeError, ValueError):
            sample_rate = channel_count = 0
        if sample_rate <= 0 or channel_count < 1:
            return StageFailure(
                kind=FailureKind.TRANSCODE_UNSUPPORTED_CODEC,
                message="Audio stream has no known sample rate or channel layout",
            )

        try:
            pcm, _ = (
                ffmpeg.input(input_path)
                .audio.output(
                    "pipe:",
                    format="s16le",
                    acodec=LINEAR16_CODEC,
                    ac=channel_count,
                    ar=sample_rate,
                )
                .run(capture_stdout=True, capture_stderr=True, quiet=True)
            )
        except ffmpeg.Error as e:
            codec = stream.get("codec_name")
            logger.warning(
                "Unable to decode audio",
                extra={"input_path": input_path, "codec": codec},
            )
            return StageFailure(
                kind=FailureKind.TRANSCODE_UNSUPPORTED_CODEC,
                message=f"Audio stream '{codec}' could not be decoded",
                cause=_ffmpeg_message(e),
            )

        try:
            with wave.open(output_path, "wb") as wav:
                wav.setnchannels(channel_count)
                wav.setsampwidth(LINEAR16_SAMPLE_WIDTH)
                wav.setframerate(sample_rate)
                wav.writeframes(pcm)
        except OSError as e:
            logger.exception(
                "Unable to write transcoded audio", extra={"output_path": output_path}
            )
            return StageFailure(
                kind=FailureKind.TRANSCODE_OUTPUT_IO,
                message="Failed writing transcoded audio",
                cause=str(e),
            )

        logger.info(
            "Audio transcoded to linear PCM",
            extra={
                "output_path": output_path,
                "sample_rate_hertz": sample_rate,
                "audio_channel_count": channel_count,
            },
        )
        return TranscodeSuccess(
            local_output_path=output_path,
            sample_rate_hertz=sample_rate,
            audio_channel_count=channel_count,
        )
