"""Helpers shared by the pipeline stages."""

import os
import uuid
from datetime import datetime

from transcribe_audio.domain import ErrorDescriptor

TRANSCODED_EXTENSION = ".wav"


def generate_temp_transcoded_filename(now: datetime, base_name: str) -> str:
    """
    Builds a collision-resistant object name for a transcoded artifact.

    The millisecond timestamp orders artifacts by run; the random suffix keeps
    concurrent runs on the same source name apart.

    Args:
        now: The time the run produced its artifact.
        base_name: Base file name of the source object.

    Returns:
        A file name such as ``1700000000000-1a2b3c4d-interview.wav``.
    """
    stem = os.path.splitext(base_name)[0] or base_name
    millis = int(now.timestamp() * 1000)
    return f"{millis}-{uuid.uuid4().hex[:8]}-{stem}{TRANSCODED_EXTENSION}"


def error_from_any(err: object) -> ErrorDescriptor:
    """Normalizes anything raised or returned as an error into a descriptor."""
    if isinstance(err, BaseException):
        return ErrorDescriptor(name=type(err).__name__, message=str(err))
    return ErrorDescriptor(name="Thrown non-error object", message=str(err))
