"""In-memory storage backend."""

import threading
from typing import Dict, Tuple

from depot.core.exceptions import NotFoundError
from depot.storage.base import StorageBackend


class MemoryStorageBackend(StorageBackend):
    """Process-local dict store, for tests and throwaway deployments."""

    def __init__(self):
        self._objects: Dict[str, Tuple[bytes, str]] = {}
        self._lock = threading.Lock()

    def save(self, name: str, data: bytes, content_type: str) -> None:
        with self._lock:
            self._objects[name] = (bytes(data), content_type)

    def get(self, name: str) -> bytes:
        with self._lock:
            try:
                return self._objects[name][0]
            except KeyError:
                raise NotFoundError(f"object not found: {name}") from None

    def list(self) -> list[str]:
        with self._lock:
            return list(self._objects)

    def content_type_of(self, name: str) -> str:
        """Return the content type an object was saved with."""
        with self._lock:
            try:
                return self._objects[name][1]
            except KeyError:
                raise NotFoundError(f"object not found: {name}") from None

    def get_backend_name(self) -> str:
        return "memory"
