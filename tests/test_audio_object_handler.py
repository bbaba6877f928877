import json
import os

import pytest
from conftest import BUCKET, SOURCE_BYTES, SOURCE_PATH, FakeTranscoder

from transcribe_audio.config import PipelineConfig
from transcribe_audio.domain import (
    FailureKind,
    StageFailure,
    TranscriptMerger,
    TriggerObject,
)
from transcribe_audio.handlers import AudioObjectHandler
from transcribe_audio.infrastructure.outcome_publisher import OutcomePublisher


class TestValidate:
    @pytest.mark.parametrize(
        "trigger",
        [
            TriggerObject(
                bucket_id=BUCKET,
                object_path=SOURCE_PATH,
                content_type="audio/wav",
                custom_metadata={"isTranscodeOutput": "true"},
            ),
            TriggerObject(bucket_id=BUCKET, object_path=SOURCE_PATH),
            TriggerObject(bucket_id=BUCKET, object_path=SOURCE_PATH, content_type=""),
            TriggerObject(
                bucket_id=BUCKET, object_path=SOURCE_PATH, content_type="video/mp4"
            ),
            TriggerObject(bucket_id=BUCKET, content_type="audio/mpeg"),
            TriggerObject(bucket_id=BUCKET, object_path="", content_type="audio/mpeg"),
        ],
        ids=[
            "transcode-output",
            "no-content-type",
            "empty-content-type",
            "non-audio",
            "no-name",
            "empty-name",
        ],
    )
    def test_rejects(self, make_handler, trigger):
        assert make_handler().validate(trigger) is False

    def test_accepts_audio_upload(self, make_handler, trigger):
        assert make_handler().validate(trigger) is True

    def test_skipped_object_emits_nothing(
        self, make_handler, broker, transcoder, storage
    ):
        trigger = TriggerObject(
            bucket_id=BUCKET,
            object_path="calls/x-linear16.wav",
            content_type="audio/wav",
            custom_metadata={"isTranscodeOutput": "true"},
        )

        assert make_handler().process(trigger) is None
        assert broker.published == []
        assert transcoder.input_paths == []
        assert storage.uploads == []


class TestRun:
    def test_complete_run(
        self, make_handler, trigger, storage, transcoder, transcription_service, broker
    ):
        event = make_handler().process(trigger)

        assert event.type == "complete"
        assert transcoder.input_bytes == [SOURCE_BYTES]
        assert os.path.basename(transcoder.input_paths[0]) == "meeting.mp3"

        transcoded_upload, transcript_upload = storage.uploads
        assert transcoded_upload["bucket_name"] == BUCKET
        assert transcoded_upload["object_name"].startswith("calls/2024/")
        assert transcoded_upload["object_name"].endswith("-meeting.wav")
        assert transcoded_upload["content_type"] == "audio/wav"
        assert transcoded_upload["metadata"] == {"isTranscodeOutput": "true"}

        [(file, sample_rate, channels)] = transcription_service.calls
        assert file.object_path == transcoded_upload["object_name"]
        assert (sample_rate, channels) == (16000, 2)

        transcripts = {"1": ["hello", "how are you"], "2": ["hi there", "fine"]}
        assert len(transcripts) == transcoder.audio_channel_count
        assert broker.published == [
            (
                "storage-transcribe-audio.v1.complete",
                {
                    "transcriptsByChannel": transcripts,
                    "bucket": BUCKET,
                    "transcodedPath": transcoded_upload["object_name"],
                    "sampleRateHertz": 16000,
                    "audioChannelCount": 2,
                    "transcriptPath": transcript_upload["object_name"],
                },
            )
        ]

        assert transcript_upload["object_name"] == (
            os.path.splitext(transcoded_upload["object_name"])[0] + ".json"
        )
        assert transcript_upload["content_type"] == "application/json"
        assert json.loads(transcript_upload["body"]) == {
            "transcriptsByChannel": transcripts
        }

    def test_output_prefix_overrides_source_directory(
        self, make_handler, trigger, storage
    ):
        make_handler(PipelineConfig(output_prefix="transcoded")).process(trigger)

        assert storage.uploads[0]["object_name"].startswith("transcoded/")

    def test_object_at_bucket_root(self, make_handler, storage):
        storage.objects[(BUCKET, "memo.ogg")] = b"ogg"
        trigger = TriggerObject(
            bucket_id=BUCKET, object_path="memo.ogg", content_type="audio/ogg"
        )

        make_handler().process(trigger)

        assert "/" not in storage.uploads[0]["object_name"]

    def test_transcript_upload_can_be_disabled(
        self, make_handler, trigger, storage, broker
    ):
        event = make_handler(PipelineConfig(write_transcript=False)).process(trigger)

        assert len(storage.uploads) == 1
        assert "transcriptPath" not in event.payload
        assert broker.published[0][0].endswith(".v1.complete")

    def test_custom_event_namespace(self, make_handler, trigger, broker):
        make_handler(PipelineConfig(event_namespace="acme.audio")).process(trigger)

        assert broker.published[0][0] == "acme.audio.v1.complete"

    def test_runs_without_event_channel(self, make_handler, trigger, broker):
        event = make_handler(with_publisher=False).process(trigger)

        assert event.type == "complete"
        assert broker.published == []

    def test_scratch_directory_is_removed(self, make_handler, trigger, transcoder):
        make_handler().process(trigger)

        assert not os.path.exists(os.path.dirname(transcoder.input_paths[0]))


class TestStageFailures:
    def test_transcode_failure_stops_the_run(
        self, make_handler, trigger, storage, transcription_service, broker
    ):
        failure = StageFailure(
            kind=FailureKind.TRANSCODE_UNSUPPORTED_CODEC, message="no audio stream"
        )
        handler = make_handler(transcoder_override=FakeTranscoder(failure=failure))

        event = handler.process(trigger)

        assert event.type == "fail"
        assert broker.published == [
            (
                "storage-transcribe-audio.v1.fail",
                {"kind": "transcode-unsupported-codec", "message": "no audio stream"},
            )
        ]
        assert storage.uploads == []
        assert transcription_service.calls == []

    def test_transcoded_upload_failure(
        self, make_handler, trigger, storage, transcription_service, broker
    ):
        storage.failing_upload_suffix = ".wav"

        event = make_handler().process(trigger)

        assert event.payload["kind"] == "transcode-upload"
        assert event.payload["cause"] == "disk full"
        assert transcription_service.calls == []
        assert len(broker.published) == 1

    def test_transcription_failure(
        self, make_handler, trigger, transcription_service, broker
    ):
        transcription_service.failure = StageFailure(
            kind=FailureKind.TRANSCRIPTION_AUTH, message="invalid api key"
        )

        event = make_handler().process(trigger)

        assert event.type == "fail"
        assert event.payload["kind"] == "transcription-auth"
        assert [key for key, _ in broker.published] == [
            "storage-transcribe-audio.v1.fail"
        ]

    def test_transcript_upload_failure(self, make_handler, trigger, storage, broker):
        storage.failing_upload_suffix = ".json"

        event = make_handler().process(trigger)

        assert event.payload["kind"] == "transcript-upload"
        assert len(broker.published) == 1


class TestRunBoundary:
    def test_download_error_becomes_fail_event(self, make_handler, storage, broker):
        trigger = TriggerObject(
            bucket_id=BUCKET, object_path="calls/missing.mp3", content_type="audio/mpeg"
        )

        event = make_handler().process(trigger)

        assert event.type == "fail"
        assert event.payload["kind"] == "unhandled-error"
        assert event.payload["cause"] == "StorageDownloadError"
        assert "calls/missing.mp3" in event.payload["message"]
        assert len(broker.published) == 1

    def test_adapter_exception_is_normalized(self, make_handler, trigger, broker):
        transcoder = FakeTranscoder(error=RuntimeError("ffmpeg crashed"))
        handler = make_handler(transcoder_override=transcoder)

        event = handler.process(trigger)

        assert event.payload == {
            "kind": "unhandled-error",
            "message": "ffmpeg crashed",
            "cause": "RuntimeError",
        }
        assert broker.published == [("storage-transcribe-audio.v1.fail", event.payload)]

    def test_scratch_directory_is_removed_on_failure(self, make_handler, trigger):
        transcoder = FakeTranscoder(error=RuntimeError("boom"))
        handler = make_handler(transcoder_override=transcoder)

        handler.process(trigger)

        assert not os.path.exists(os.path.dirname(transcoder.input_paths[0]))

    def test_publish_failure_does_not_mask_outcome(
        self, storage, transcoder, transcription_service, failing_broker, trigger
    ):
        handler = AudioObjectHandler(
            storage=storage,
            transcoder=transcoder,
            transcription_service=transcription_service,
            transcript_merger=TranscriptMerger(),
            config=PipelineConfig(),
            publisher=OutcomePublisher(failing_broker, "ns"),
        )

        event = handler.process(trigger)

        assert event.type == "complete"
