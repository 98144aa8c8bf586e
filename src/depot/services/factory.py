"""Wiring of the payload service."""

from functools import lru_cache

from depot.services.bundler import ArchiveBundler
from depot.services.decomposer import PayloadDecomposer
from depot.services.identifiers import TimestampEventIdGenerator
from depot.services.payload_service import PayloadService
from depot.storage.factory import get_storage_backend


@lru_cache(maxsize=1)
def get_payload_service() -> PayloadService:
    """Build the process-wide payload service from settings.

    Raises:
        ValueError: If the storage backend is misconfigured
    """
    return PayloadService(
        storage=get_storage_backend(),
        id_generator=TimestampEventIdGenerator(),
        decomposer=PayloadDecomposer(),
        bundler=ArchiveBundler(),
    )
