"""Google Cloud Storage backend."""

import logging
from typing import Optional

from google.api_core.exceptions import GoogleAPIError, NotFound
from google.cloud import storage

from depot.core.config import settings
from depot.core.exceptions import NotFoundError, StorageError
from depot.storage.base import StorageBackend

logger = logging.getLogger(__name__)


class GCSStorageBackend(StorageBackend):
    """Google Cloud Storage backend.

    Client-side retries are disabled on every call; a failed operation is
    reported once and never repeated.
    """

    def __init__(self):
        self._client: Optional[storage.Client] = None
        self._bucket: Optional[storage.Bucket] = None

    def _get_bucket(self) -> storage.Bucket:
        """Lazy-load and cache GCS bucket, creating it when allowed."""
        if self._bucket is None:
            if not settings.GCS_BUCKET_NAME:
                raise StorageError("GCS_BUCKET_NAME not configured")

            try:
                self._client = storage.Client(project=settings.GCP_PROJECT_ID or None)
                bucket = self._client.lookup_bucket(settings.GCS_BUCKET_NAME)
                if bucket is None:
                    if not settings.GCS_CREATE_BUCKET:
                        raise StorageError(f"Bucket does not exist: {settings.GCS_BUCKET_NAME}")
                    bucket = self._client.create_bucket(settings.GCS_BUCKET_NAME)
                    logger.info(
                        f"Created bucket: {settings.GCS_BUCKET_NAME}",
                        extra={"bucket": settings.GCS_BUCKET_NAME},
                    )
            except GoogleAPIError as e:
                raise StorageError(f"error preparing bucket: {e}") from e

            self._bucket = bucket

        return self._bucket

    def save(self, name: str, data: bytes, content_type: str) -> None:
        bucket = self._get_bucket()
        try:
            blob = bucket.blob(name)
            blob.upload_from_string(data, content_type=content_type, retry=None)
        except GoogleAPIError as e:
            logger.error(
                "Failed to upload object to GCS",
                extra={"bucket": bucket.name, "object_name": name, "error": str(e)},
            )
            raise StorageError(f"failed to upload object {name}: {e}") from e

    def get(self, name: str) -> bytes:
        bucket = self._get_bucket()
        try:
            return bucket.blob(name).download_as_bytes(retry=None)
        except NotFound as e:
            raise NotFoundError(f"object not found: {name}") from e
        except GoogleAPIError as e:
            logger.error(
                "Failed to download object from GCS",
                extra={"bucket": bucket.name, "object_name": name, "error": str(e)},
            )
            raise StorageError(f"failed to get object {name}: {e}") from e

    def list(self) -> list[str]:
        bucket = self._get_bucket()
        try:
            return [blob.name for blob in self._client.list_blobs(bucket, retry=None)]
        except GoogleAPIError as e:
            raise StorageError(f"error listing objects: {e}") from e

    def get_backend_name(self) -> str:
        return "gcs"
