"""Worker that turns trigger queue messages into pipeline runs."""

import json
import logging
from typing import Any

from pydantic import ValidationError

from transcribe_audio.config import QueueConfig
from transcribe_audio.domain import TriggerObject
from transcribe_audio.handlers import AudioObjectHandler
from transcribe_audio.infrastructure.interfaces import MessageBroker

logger = logging.getLogger(__name__)


def parse_triggers(body: bytes) -> list[TriggerObject]:
    """
    Parses a trigger message into the objects it announces.

    Accepts either a single trigger object document or an S3-style bucket
    notification carrying a ``Records`` list.

    Raises:
        ValueError: If the body is not JSON or does not describe any object.
        ValidationError: If an object document is missing required fields.
    """
    document = json.loads(body)
    if not isinstance(document, dict):
        raise ValueError("Trigger message must be a JSON object")

    if "Records" in document:
        try:
            return [
                TriggerObject.from_notification_record(record)
                for record in document["Records"]
            ]
        except (KeyError, TypeError) as e:
            raise ValueError(f"Malformed notification record: {e}") from e

    return [TriggerObject.model_validate(document)]


class Worker:
    """Consumes trigger messages from the queue and runs the pipeline per object."""

    def __init__(
        self,
        broker: MessageBroker,
        handler: AudioObjectHandler,
        config: QueueConfig,
    ):
        self._broker = broker
        self._handler = handler
        self._config = config

    def start(self) -> None:
        """Starts consuming messages from the queue."""
        logger.info("Worker initialized, starting message consumption")
        self._broker.consume(self._on_message)

    def _on_message(
        self, body: bytes, delivery_tag: int, headers: dict[str, Any] | None
    ) -> None:
        """Callback for each received message."""
        delivery_count = headers.get("x-delivery-count", 1) if headers else 1

        logger.info(
            "Message received",
            extra={
                "attempt": delivery_count,
                "max_attempts": self._config.max_delivery_count,
            },
        )

        try:
            triggers = parse_triggers(body)
        except (ValueError, ValidationError) as e:
            # json.JSONDecodeError is a ValueError
            logger.exception("Invalid message format", extra={"error": str(e)})
            self._broker.reject(delivery_tag)
            return

        for trigger in triggers:
            event = self._handler.process(trigger)
            logger.info(
                "Object handled",
                extra={
                    "object_name": trigger.object_path,
                    "outcome": event.type if event else "skipped",
                },
            )

        # Acknowledged whatever the outcome; failures travel as fail events.
        self._broker.acknowledge(delivery_tag)
