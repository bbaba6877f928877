"""Dependency wiring and lifecycle of the process-wide clients."""

import logging
from datetime import timedelta

import assemblyai as aai
import pika
from minio import Minio

from transcribe_audio.config import AppConfig
from transcribe_audio.domain import TranscriptMerger
from transcribe_audio.handlers import AudioObjectHandler
from transcribe_audio.infrastructure import (
    AssemblyAITranscriber,
    FfmpegTranscoder,
    MinioStorageClient,
    OutcomePublisher,
    RabbitMQBroker,
)
from transcribe_audio.worker import Worker

logger = logging.getLogger(__name__)


class Dependencies:
    """
    Owns the storage, broker and speech clients for the life of the process.

    Clients are created in ``open()`` and handed by reference to the handler
    and worker; ``close()`` releases the broker connection.
    """

    def __init__(self, config: AppConfig):
        self._config = config
        self._rabbit_connection: pika.BlockingConnection | None = None
        self._broker: RabbitMQBroker | None = None
        self._storage: MinioStorageClient | None = None
        self._transcription_service: AssemblyAITranscriber | None = None

    def open(self) -> None:
        """Connects to MinIO, RabbitMQ and AssemblyAI."""
        minio_config = self._config.minio
        minio_client = Minio(
            endpoint=minio_config.endpoint,
            access_key=minio_config.user,
            secret_key=minio_config.password,
            secure=minio_config.secure,
        )
        self._storage = MinioStorageClient(
            minio_client,
            timedelta(seconds=minio_config.presigned_url_expiry_seconds),
        )

        rabbit_config = self._config.rabbitmq
        credentials = pika.PlainCredentials(rabbit_config.user, rabbit_config.password)
        parameters = pika.ConnectionParameters(
            host=rabbit_config.host,
            credentials=credentials,
            heartbeat=0,
        )
        self._rabbit_connection = pika.BlockingConnection(parameters)
        self._broker = RabbitMQBroker(self._rabbit_connection.channel(), rabbit_config)
        self._broker.setup()

        aai.settings.api_key = self._config.assemblyai.api_key
        self._transcription_service = AssemblyAITranscriber(
            aai.Transcriber(), language_code=self._config.assemblyai.language_code
        )

        logger.info(
            "Clients initialized",
            extra={
                "minio_endpoint": minio_config.endpoint,
                "rabbitmq_host": rabbit_config.host,
            },
        )

    def close(self) -> None:
        """Closes the broker connection if it is open."""
        if self._rabbit_connection is not None and self._rabbit_connection.is_open:
            self._rabbit_connection.close()
            logger.info("RabbitMQ connection closed")
        self._rabbit_connection = None
        self._broker = None

    def get_handler(self) -> AudioObjectHandler:
        """Returns an audio object handler bound to the open clients."""
        if self._storage is None or self._transcription_service is None:
            raise RuntimeError("Dependencies are not open")

        pipeline_config = self._config.pipeline
        publisher = None
        if pipeline_config.events_enabled:
            publisher = OutcomePublisher(self._broker, pipeline_config.event_namespace)

        return AudioObjectHandler(
            storage=self._storage,
            transcoder=FfmpegTranscoder(),
            transcription_service=self._transcription_service,
            transcript_merger=TranscriptMerger(),
            config=pipeline_config,
            publisher=publisher,
        )

    def get_worker(self) -> Worker:
        """Returns the worker consuming the trigger queue."""
        if self._broker is None:
            raise RuntimeError("Dependencies are not open")
        return Worker(
            self._broker, self.get_handler(), self._config.rabbitmq.queue_config
        )
