"""Storage backend selection."""

from functools import lru_cache

from depot.core.config import settings
from depot.storage.base import StorageBackend
from depot.storage.gcs import GCSStorageBackend
from depot.storage.local import LocalStorageBackend
from depot.storage.memory import MemoryStorageBackend


@lru_cache(maxsize=None)
def _build_backend(name: str) -> StorageBackend:
    if name == "gcs":
        return GCSStorageBackend()
    if name == "local":
        return LocalStorageBackend(settings.LOCAL_STORAGE_PATH)
    if name == "memory":
        return MemoryStorageBackend()
    raise ValueError(f"Unknown STORAGE_BACKEND: {name}")


def get_storage_backend() -> StorageBackend:
    """Return the configured storage backend.

    Raises:
        ValueError: If STORAGE_BACKEND names no known backend
    """
    return _build_backend(settings.STORAGE_BACKEND.lower())
