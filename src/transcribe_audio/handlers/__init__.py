"""Handler layer exports."""

from .audio_object_handler import AudioObjectHandler

__all__ = ["AudioObjectHandler"]
