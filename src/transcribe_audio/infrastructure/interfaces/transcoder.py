"""Abstract interface for the audio transcoding engine."""

from abc import ABC, abstractmethod

from transcribe_audio.domain import TranscodeResult


class Transcoder(ABC):
    """Converts arbitrary audio into 16-bit linear PCM."""

    @abstractmethod
    def transcode(self, input_path: str) -> TranscodeResult:
        """
        Transcodes a local audio file to 16-bit linear PCM.

        The output is written beside the input, so it shares the caller's
        scratch directory and its lifetime.

        Args:
            input_path: Local path of an audio file in any supported container.

        Returns:
            TranscodeSuccess with the output path, sample rate and channel
            count, or a StageFailure describing why the input was not converted.
        """
