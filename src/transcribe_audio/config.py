"""Application configuration loaded from environment variables."""

import os

from pydantic import BaseModel


class MinioConfig(BaseModel, frozen=True):
    """MinIO connection configuration."""

    endpoint: str
    user: str
    password: str
    secure: bool = False
    presigned_url_expiry_seconds: int = 3600


class QueueConfig(BaseModel, frozen=True):
    """Trigger queue configuration."""

    name: str = "audio_transcode_queue"
    queue_type: str = "quorum"
    max_delivery_count: int = 3
    expected_routing_key: str = "storage.object.finalized"
    dlq_name: str = "dlq_audio_transcode"
    dlq_exchange_name: str = "dead_letter_exchange"
    dlq_routing_key: str = "storage.object.rejected"


class RabbitMQConfig(BaseModel, frozen=True):
    """RabbitMQ connection configuration."""

    host: str
    user: str
    password: str
    exchange_name: str = "events"
    queue_config: QueueConfig = QueueConfig()


class AssemblyAIConfig(BaseModel, frozen=True):
    """AssemblyAI API configuration."""

    api_key: str
    language_code: str | None = None


class PipelineConfig(BaseModel, frozen=True):
    """Behaviour of the transcode and transcribe pipeline."""

    # None writes transcoded output next to the source object.
    output_prefix: str | None = None
    events_enabled: bool = True
    event_namespace: str = "storage-transcribe-audio"
    write_transcript: bool = True


class AppConfig(BaseModel, frozen=True):
    """Root application configuration."""

    minio: MinioConfig
    rabbitmq: RabbitMQConfig
    assemblyai: AssemblyAIConfig
    pipeline: PipelineConfig = PipelineConfig()


def _getenv_bool(name: str, default: bool) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")


def load_config() -> AppConfig:
    """Loads configuration from environment variables."""
    return AppConfig(
        minio=MinioConfig(
            endpoint=os.getenv("MINIO_ENDPOINT", "minio:9000"),
            user=os.getenv("MINIO_USER", ""),
            password=os.getenv("MINIO_PASSWORD", ""),
            secure=_getenv_bool("MINIO_SECURE", False),
            presigned_url_expiry_seconds=int(
                os.getenv("PRESIGNED_URL_EXPIRY_SECONDS", "3600")
            ),
        ),
        rabbitmq=RabbitMQConfig(
            host=os.getenv("RABBITMQ_HOST", "rabbitmq"),
            user=os.getenv("RABBITMQ_USER", ""),
            password=os.getenv("RABBITMQ_PASSWORD", ""),
        ),
        assemblyai=AssemblyAIConfig(
            api_key=os.getenv("ASSEMBLYAI_API_KEY", ""),
            language_code=os.getenv("ASSEMBLYAI_LANGUAGE_CODE") or None,
        ),
        pipeline=PipelineConfig(
            output_prefix=os.getenv("TRANSCODE_OUTPUT_PREFIX") or None,
            events_enabled=_getenv_bool("EVENTS_ENABLED", True),
            event_namespace=os.getenv(
                "EVENT_NAMESPACE", "storage-transcribe-audio"
            ),
            write_transcript=_getenv_bool("WRITE_TRANSCRIPT", True),
        ),
    )
