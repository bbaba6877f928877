"""Shared fixtures and in-memory fakes for the pipeline's collaborators."""

import os
from collections.abc import Callable, Iterable
from datetime import datetime, timezone
from typing import Any, BinaryIO

import pytest

from transcribe_audio.config import PipelineConfig
from transcribe_audio.domain import (
    RemoteFile,
    StageFailure,
    TaggedSegment,
    TranscodeResult,
    TranscodeSuccess,
    TranscriptMerger,
    TriggerObject,
)
from transcribe_audio.exceptions import (
    EventPublishError,
    StorageDownloadError,
    StorageUploadError,
)
from transcribe_audio.handlers import AudioObjectHandler
from transcribe_audio.infrastructure.interfaces import (
    MessageBroker,
    StorageClient,
    Transcoder,
    TranscriptionService,
)
from transcribe_audio.infrastructure.outcome_publisher import OutcomePublisher

BUCKET = "uploads"
SOURCE_PATH = "calls/2024/meeting.mp3"
SOURCE_BYTES = b"ID3-fake-mp3-bytes"
FIXED_NOW = datetime(2024, 5, 1, 12, 0, tzinfo=timezone.utc)


class InMemoryStorage(StorageClient):
    def __init__(self, objects: dict[tuple[str, str], bytes] | None = None):
        self.objects = dict(objects or {})
        self.uploads: list[dict[str, Any]] = []
        self.failing_upload_suffix: str | None = None

    def download(self, bucket_name: str, object_name: str) -> bytes:
        try:
            return self.objects[(bucket_name, object_name)]
        except KeyError as e:
            raise StorageDownloadError(bucket_name, object_name, e) from e

    def upload(
        self,
        bucket_name: str,
        object_name: str,
        data: BinaryIO,
        size: int,
        content_type: str,
        metadata: dict[str, str] | None = None,
    ) -> RemoteFile:
        if self.failing_upload_suffix and object_name.endswith(
            self.failing_upload_suffix
        ):
            raise StorageUploadError(bucket_name, object_name, OSError("disk full"))

        body = data.read()
        assert len(body) == size
        self.objects[(bucket_name, object_name)] = body
        self.uploads.append(
            {
                "bucket_name": bucket_name,
                "object_name": object_name,
                "content_type": content_type,
                "metadata": metadata,
                "body": body,
            }
        )
        return RemoteFile(
            bucket_id=bucket_name,
            object_path=object_name,
            url=f"https://storage.test/{bucket_name}/{object_name}",
        )


class FakeTranscoder(Transcoder):
    def __init__(
        self,
        sample_rate_hertz: int = 16000,
        audio_channel_count: int = 2,
        failure: StageFailure | None = None,
        error: BaseException | None = None,
    ):
        self.sample_rate_hertz = sample_rate_hertz
        self.audio_channel_count = audio_channel_count
        self.failure = failure
        self.error = error
        self.input_paths: list[str] = []
        self.input_bytes: list[bytes] = []

    def transcode(self, input_path: str) -> TranscodeResult:
        self.input_paths.append(input_path)
        with open(input_path, "rb") as f:
            self.input_bytes.append(f.read())

        if self.error is not None:
            raise self.error
        if self.failure is not None:
            return self.failure

        output_path = os.path.splitext(input_path)[0] + "-linear16.wav"
        with open(output_path, "wb") as f:
            f.write(b"RIFF-fake-pcm")
        return TranscodeSuccess(
            local_output_path=output_path,
            sample_rate_hertz=self.sample_rate_hertz,
            audio_channel_count=self.audio_channel_count,
        )


class FakeTranscriptionService(TranscriptionService):
    def __init__(
        self,
        segments: Iterable[TaggedSegment] = (),
        failure: StageFailure | None = None,
    ):
        self.segments = list(segments)
        self.failure = failure
        self.calls: list[tuple[RemoteFile, int, int]] = []

    def recognize(self, file, sample_rate_hertz, audio_channel_count):
        self.calls.append((file, sample_rate_hertz, audio_channel_count))
        if self.failure is not None:
            return self.failure
        return iter(self.segments)


class RecordingBroker(MessageBroker):
    def __init__(self, publish_error: Exception | None = None):
        self.published: list[tuple[str, dict]] = []
        self.acknowledged: list[int] = []
        self.rejected: list[int] = []
        self.publish_error = publish_error

    def publish(self, routing_key: str, payload: dict) -> None:
        if self.publish_error is not None:
            raise self.publish_error
        self.published.append((routing_key, payload))

    def acknowledge(self, delivery_tag: int) -> None:
        self.acknowledged.append(delivery_tag)

    def reject(self, delivery_tag: int) -> None:
        self.rejected.append(delivery_tag)

    def consume(self, callback) -> None:
        raise NotImplementedError

    def setup(self) -> None:
        pass


@pytest.fixture
def storage() -> InMemoryStorage:
    return InMemoryStorage({(BUCKET, SOURCE_PATH): SOURCE_BYTES})


@pytest.fixture
def transcoder() -> FakeTranscoder:
    return FakeTranscoder()


@pytest.fixture
def transcription_service() -> FakeTranscriptionService:
    return FakeTranscriptionService(
        [
            TaggedSegment(channel_tag=1, text="hello"),
            TaggedSegment(channel_tag=2, text="hi there"),
            TaggedSegment(channel_tag=1, text="how are you"),
            TaggedSegment(channel_tag=None, text="noise"),
            TaggedSegment(channel_tag=2, text="fine"),
        ]
    )


@pytest.fixture
def broker() -> RecordingBroker:
    return RecordingBroker()


@pytest.fixture
def trigger() -> TriggerObject:
    return TriggerObject(
        bucket_id=BUCKET, object_path=SOURCE_PATH, content_type="audio/mpeg"
    )


@pytest.fixture
def make_handler(
    storage, transcoder, transcription_service, broker
) -> Callable[..., AudioObjectHandler]:
    def factory(
        config: PipelineConfig | None = None,
        with_publisher: bool = True,
        transcoder_override: Transcoder | None = None,
    ) -> AudioObjectHandler:
        config = config or PipelineConfig()
        publisher = (
            OutcomePublisher(broker, config.event_namespace) if with_publisher else None
        )
        return AudioObjectHandler(
            storage=storage,
            transcoder=transcoder_override or transcoder,
            transcription_service=transcription_service,
            transcript_merger=TranscriptMerger(),
            config=config,
            publisher=publisher,
            clock=lambda: FIXED_NOW,
        )

    return factory


@pytest.fixture
def failing_broker() -> RecordingBroker:
    return RecordingBroker(
        publish_error=EventPublishError("x.v1.fail", ConnectionError("closed"))
    )
