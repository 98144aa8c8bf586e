"""Abstract storage backend interface."""

from abc import ABC, abstractmethod


class StorageBackend(ABC):
    """Abstract base class for storage backends.

    Backends are flat key/blob stores. Calls are blocking and single-attempt;
    async callers move them to a worker thread.
    """

    @abstractmethod
    def save(self, name: str, data: bytes, content_type: str) -> None:
        """Store a blob under a key, replacing any previous blob.

        Args:
            name: Object key
            data: Object content
            content_type: MIME type recorded with the object

        Raises:
            StorageError: If the write fails
        """
        pass

    @abstractmethod
    def get(self, name: str) -> bytes:
        """Read a blob back.

        Raises:
            NotFoundError: If no object has this key
            StorageError: If the read fails
        """
        pass

    @abstractmethod
    def list(self) -> list[str]:
        """List every stored key, in no guaranteed order.

        Raises:
            StorageError: If the listing fails
        """
        pass

    @abstractmethod
    def get_backend_name(self) -> str:
        """Return backend identifier."""
        pass
