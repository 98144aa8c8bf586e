"""ZIP bundling of retrieved files."""

import io
import logging
import zipfile
from typing import Sequence

from depot.core.exceptions import BundleError
from depot.models.units import RetrievedFile

logger = logging.getLogger(__name__)


class ArchiveBundler:
    """Writes retrieved files into a single in-memory ZIP archive.

    Entries follow the order of the input, which in turn follows the storage
    listing order; two bundles of the same event may therefore differ in
    entry order.
    """

    def __init__(self, compression: int = zipfile.ZIP_DEFLATED):
        self.compression = compression

    def bundle(self, files: Sequence[RetrievedFile]) -> bytes:
        """Create a ZIP archive holding one entry per file.

        Entries are named by the original filename, falling back to the
        object name for anonymous payloads.

        Raises:
            BundleError: If the archive stream cannot be written
        """
        buffer = io.BytesIO()
        try:
            with zipfile.ZipFile(buffer, "w", compression=self.compression) as archive:
                for file in files:
                    archive.writestr(file.original_filename or file.object_name, file.data)
        except (OSError, zipfile.LargeZipFile) as e:
            raise BundleError(f"failed to create zip: {e}") from e

        logger.debug(f"Bundled {len(files)} file(s) into archive")
        return buffer.getvalue()
