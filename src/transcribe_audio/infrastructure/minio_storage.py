"""MinIO implementation of the StorageClient interface."""

import logging
from datetime import timedelta
from typing import BinaryIO

from minio import Minio

from transcribe_audio.domain import RemoteFile
from transcribe_audio.exceptions import StorageDownloadError, StorageUploadError

from .interfaces import StorageClient

logger = logging.getLogger(__name__)


class MinioStorageClient(StorageClient):
    """Handles object storage operations using MinIO."""

    def __init__(self, client: Minio, presigned_url_expiry: timedelta):
        self._client = client
        self._presigned_url_expiry = presigned_url_expiry

    def download(self, bucket_name: str, object_name: str) -> bytes:
        try:
            response = self._client.get_object(bucket_name, object_name)
            try:
                data = response.data
            finally:
                response.close()
                response.release_conn()
        except Exception as e:
            logger.exception(
                "MinIO download failed",
                extra={"bucket_name": bucket_name, "object_name": object_name},
            )
            raise StorageDownloadError(bucket_name, object_name, e) from e

        logger.info(
            "File downloaded from MinIO",
            extra={
                "bucket_name": bucket_name,
                "object_name": object_name,
                "size": len(data),
            },
        )
        return data

    def upload(
        self,
        bucket_name: str,
        object_name: str,
        data: BinaryIO,
        size: int,
        content_type: str,
        metadata: dict[str, str] | None = None,
    ) -> RemoteFile:
        try:
            self._client.put_object(
                bucket_name=bucket_name,
                object_name=object_name,
                data=data,
                length=size,
                content_type=content_type,
                metadata=metadata,
            )
            url = self._client.presigned_get_object(
                bucket_name, object_name, expires=self._presigned_url_expiry
            )
        except Exception as e:
            logger.exception(
                "MinIO upload failed",
                extra={"bucket_name": bucket_name, "object_name": object_name},
            )
            raise StorageUploadError(bucket_name, object_name, e) from e

        logger.info(
            "File uploaded to MinIO",
            extra={
                "bucket_name": bucket_name,
                "object_name": object_name,
                "size": size,
            },
        )
        return RemoteFile(bucket_id=bucket_name, object_path=object_name, url=url)
