"""Best-effort publication of pipeline outcome events."""

import logging

from transcribe_audio.domain import OutcomeEvent

from .interfaces import MessagePublisher

logger = logging.getLogger(__name__)


class OutcomePublisher:
    """
    Publishes ``<namespace>.v1.complete`` and ``<namespace>.v1.fail`` events.

    Publication is fire-and-forget: a broker failure is logged and dropped so
    it never masks the outcome of the run being reported.
    """

    def __init__(self, publisher: MessagePublisher, namespace: str):
        self._publisher = publisher
        self._namespace = namespace

    def routing_key(self, event_type: str) -> str:
        return f"{self._namespace}.v1.{event_type}"

    def publish(self, event: OutcomeEvent) -> None:
        routing_key = self.routing_key(event.type)
        try:
            self._publisher.publish(routing_key=routing_key, payload=event.payload)
        except Exception:
            logger.exception(
                "Outcome event dropped", extra={"routing_key": routing_key}
            )

