"""Abstract interface for object store operations."""

from abc import ABC, abstractmethod
from typing import BinaryIO

from transcribe_audio.domain import RemoteFile


class StorageClient(ABC):
    """Abstract base class for object store backends."""

    @abstractmethod
    def download(self, bucket_name: str, object_name: str) -> bytes:
        """
        Downloads an object from storage.

        Args:
            bucket_name: The storage bucket name.
            object_name: The object path/name in storage.

        Returns:
            The object contents as bytes.

        Raises:
            StorageDownloadError: If the download fails.
        """

    @abstractmethod
    def upload(
        self,
        bucket_name: str,
        object_name: str,
        data: BinaryIO,
        size: int,
        content_type: str,
        metadata: dict[str, str] | None = None,
    ) -> RemoteFile:
        """
        Uploads an object to storage.

        Args:
            bucket_name: The storage bucket name.
            object_name: The destination path/name in storage.
            data: File-like object containing the data.
            size: Size of the data in bytes.
            content_type: MIME type of the object.
            metadata: Custom metadata attached to the object.

        Returns:
            A handle to the stored object that the speech backend can fetch.

        Raises:
            StorageUploadError: If the upload fails.
        """
