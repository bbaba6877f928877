"""Infrastructure exceptions for the audio transcription service."""


class StorageError(Exception):
    """Base class for object store failures."""

    def __init__(
        self, action: str, bucket_name: str, object_name: str, cause: Exception | None
    ):
        self.bucket_name = bucket_name
        self.object_name = object_name
        self.cause = cause
        super().__init__(f"Failed to {action} '{bucket_name}/{object_name}'")


class StorageDownloadError(StorageError):
    """Raised when fetching an object from storage fails."""

    def __init__(
        self, bucket_name: str, object_name: str, cause: Exception | None = None
    ):
        super().__init__("download", bucket_name, object_name, cause)


class StorageUploadError(StorageError):
    """Raised when writing an object to storage fails."""

    def __init__(
        self, bucket_name: str, object_name: str, cause: Exception | None = None
    ):
        super().__init__("upload", bucket_name, object_name, cause)


class EventPublishError(Exception):
    """Raised when an outcome event cannot be handed to the broker."""

    def __init__(self, routing_key: str, cause: Exception | None = None):
        self.routing_key = routing_key
        self.cause = cause
        super().__init__(f"Failed to publish event with routing key '{routing_key}'")
