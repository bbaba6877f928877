"""Abstract interface for speech recognition backends."""

from abc import ABC, abstractmethod
from collections.abc import Iterator

from transcribe_audio.domain import RemoteFile, StageFailure, TaggedSegment


class TranscriptionService(ABC):
    """Abstract base class for speech recognition backends."""

    @abstractmethod
    def recognize(
        self, file: RemoteFile, sample_rate_hertz: int, audio_channel_count: int
    ) -> Iterator[TaggedSegment] | StageFailure:
        """
        Recognizes speech in an uploaded linear PCM file.

        Args:
            file: Handle of the uploaded PCM file.
            sample_rate_hertz: Sample rate of the file.
            audio_channel_count: Number of channels in the file.

        Returns:
            Tagged segments in backend arrival order, yielded lazily, or a
            StageFailure when the backend refuses or fails the request.
        """
