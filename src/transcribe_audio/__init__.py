"""Transcodes uploaded audio and publishes per-channel transcripts."""

__version__ = "0.1.0"
