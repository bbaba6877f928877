"""RabbitMQ implementation of the MessageBroker interface."""

import json
import logging
from collections.abc import Callable
from typing import Any

from pika.adapters.blocking_connection import BlockingChannel

from transcribe_audio.config import RabbitMQConfig
from transcribe_audio.exceptions import EventPublishError

from .interfaces import MessageBroker

logger = logging.getLogger(__name__)


class RabbitMQBroker(MessageBroker):
    """Consumes trigger messages and publishes outcome events over RabbitMQ."""

    def __init__(self, channel: BlockingChannel, config: RabbitMQConfig):
        self._channel = channel
        self._config = config

    def publish(self, routing_key: str, payload: dict) -> None:
        """
        Publishes an outcome event as JSON on the topic exchange.

        Args:
            routing_key: Event routing key, e.g. `<namespace>.v1.complete`.
            payload: JSON-serializable event body.

        Raises:
            EventPublishError: If the channel refuses the message.
        """
        try:
            self._channel.basic_publish(
                exchange=self._config.exchange_name,
                routing_key=routing_key,
                body=json.dumps(payload),
            )
        except Exception as e:
            logger.exception(
                "RabbitMQ publish failed", extra={"routing_key": routing_key}
            )
            raise EventPublishError(routing_key, cause=e) from e

        logger.info(
            "Event published",
            extra={
                "exchange": self._config.exchange_name,
                "routing_key": routing_key,
            },
        )

    def acknowledge(self, delivery_tag: int) -> None:
        """Acknowledges a trigger message once its run has finished."""
        self._channel.basic_ack(delivery_tag=delivery_tag)

    def reject(self, delivery_tag: int) -> None:
        """Nacks an unparseable trigger without requeue so it lands in the DLQ."""
        self._channel.basic_nack(delivery_tag=delivery_tag, requeue=False)

    def consume(
        self, callback: Callable[[bytes, int, dict[str, Any] | None], None]
    ) -> None:
        """
        Consumes trigger messages one at a time from the configured queue.

        Args:
            callback: Called with (body, delivery_tag, headers) for each message.
        """

        def on_message(ch, method, properties, body):
            headers = properties.headers if properties else None
            callback(body, method.delivery_tag, headers)

        queue_name = self._config.queue_config.name
        self._channel.basic_qos(prefetch_count=1)
        self._channel.basic_consume(queue=queue_name, on_message_callback=on_message)
        logger.info("Message consumption started", extra={"queue": queue_name})
        self._channel.start_consuming()

    def setup(self) -> None:
        """Declares the DLQ, the topic exchange and the bound trigger queue."""
        queue_config = self._config.queue_config

        # Dead letter exchange and queue
        self._channel.exchange_declare(
            exchange=queue_config.dlq_exchange_name,
            exchange_type="direct",
            durable=True,
        )
        self._channel.queue_declare(queue=queue_config.dlq_name, durable=True)
        self._channel.queue_bind(
            queue=queue_config.dlq_name,
            exchange=queue_config.dlq_exchange_name,
            routing_key=queue_config.dlq_routing_key,
        )

        # Topic exchange shared by trigger notifications and outcome events
        self._channel.exchange_declare(
            exchange=self._config.exchange_name,
            exchange_type="topic",
            durable=True,
        )

        arguments = {
            "x-queue-type": queue_config.queue_type,
            "x-delivery-limit": queue_config.max_delivery_count,
            "x-dead-letter-exchange": queue_config.dlq_exchange_name,
            "x-dead-letter-routing-key": queue_config.dlq_routing_key,
        }
        self._channel.queue_declare(
            queue=queue_config.name, durable=True, arguments=arguments
        )
        self._channel.queue_bind(
            queue=queue_config.name,
            exchange=self._config.exchange_name,
            routing_key=queue_config.expected_routing_key,
        )

        logger.info(
            "Queue infrastructure ready",
            extra={"queue": queue_config.name, "exchange": self._config.exchange_name},
        )
