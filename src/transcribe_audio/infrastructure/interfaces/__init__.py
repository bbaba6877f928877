"""Infrastructure interface exports."""

from .message_broker import MessageBroker, MessagePublisher
from .storage import StorageClient
from .transcoder import Transcoder
from .transcription_service import TranscriptionService

__all__ = [
    "MessageBroker",
    "MessagePublisher",
    "StorageClient",
    "Transcoder",
    "TranscriptionService",
]
