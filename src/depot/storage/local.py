"""Local filesystem storage backend."""

import logging
from pathlib import Path

from depot.core.exceptions import NotFoundError, StorageError
from depot.storage.base import StorageBackend

logger = logging.getLogger(__name__)


class LocalStorageBackend(StorageBackend):
    """Local filesystem storage backend, one file per object."""

    def __init__(self, base_path: str = "data/payloads"):
        self.base_path = Path(base_path)

    def _object_path(self, name: str) -> Path:
        """Resolve an object key to a file directly inside base_path."""
        if not name or name in (".", "..") or any(c in name for c in ("/", "\\", "\x00")):
            raise StorageError(f"Invalid object name: {name!r}")
        return self.base_path / name

    def save(self, name: str, data: bytes, content_type: str) -> None:
        target_path = self._object_path(name)
        try:
            target_path.parent.mkdir(parents=True, exist_ok=True)
            target_path.write_bytes(data)
        except OSError as e:
            raise StorageError(f"failed to write object {name}: {e}") from e

        logger.debug(
            f"Wrote {len(data)} bytes to {target_path}",
            extra={"object_name": name, "content_type": content_type},
        )

    def get(self, name: str) -> bytes:
        target_path = self._object_path(name)
        try:
            return target_path.read_bytes()
        except FileNotFoundError as e:
            raise NotFoundError(f"object not found: {name}") from e
        except OSError as e:
            raise StorageError(f"failed to read object {name}: {e}") from e

    def list(self) -> list[str]:
        if not self.base_path.exists():
            return []
        try:
            return sorted(p.name for p in self.base_path.iterdir() if p.is_file())
        except OSError as e:
            raise StorageError(f"error listing objects: {e}") from e

    def get_backend_name(self) -> str:
        return "local"
