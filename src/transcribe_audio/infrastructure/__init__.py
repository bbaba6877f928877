"""Infrastructure layer exports."""

from .assemblyai_transcriber import AssemblyAITranscriber
from .ffmpeg_transcoder import FfmpegTranscoder
from .minio_storage import MinioStorageClient
from .outcome_publisher import OutcomePublisher
from .rabbitmq_broker import RabbitMQBroker

__all__ = [
    "AssemblyAITranscriber",
    "FfmpegTranscoder",
    "MinioStorageClient",
    "OutcomePublisher",
    "RabbitMQBroker",
]
