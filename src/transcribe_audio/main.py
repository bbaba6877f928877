"""
Audio Transcription Service.

Entry point: transcodes uploaded audio to linear PCM, transcribes it per
channel and publishes the outcome.
"""

from ddtrace import patch_all

from transcribe_audio.config import load_config
from transcribe_audio.dependencies import Dependencies
from transcribe_audio.logging import setup_logging

logger = setup_logging()


def main():
    """Starts the worker and releases the clients when it stops."""
    patch_all()
    logger.info("Starting audio transcription service")

    dependencies = Dependencies(load_config())
    dependencies.open()
    try:
        dependencies.get_worker().start()
    finally:
        dependencies.close()


if __name__ == "__main__":
    main()
