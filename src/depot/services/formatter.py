"""Mapping of internal records to response shapes."""

import base64
import binascii
from typing import List, Optional, Sequence

from depot.core.exceptions import EncodingError
from depot.models.responses import (
    FileEntry,
    IngestionResponse,
    ListResponse,
    RetrievalResponse,
)
from depot.models.units import RawPayload, RetrievedFile
from depot.services.bundler import ArchiveBundler

ARCHIVE_CONTENT_TYPE = "application/zip"


def format_ingestion(
    event_id: str, size: int, timestamp: str, original_filename: Optional[str] = None
) -> IngestionResponse:
    return IngestionResponse(
        request_id=event_id,
        size=size,
        timestamp=timestamp,
        original_filename=original_filename or None,
    )


def format_file_entry(file: RetrievedFile) -> FileEntry:
    return FileEntry(
        object_name=file.object_name,
        original_filename=file.original_filename or "",
        size=file.size,
        content_type=file.content_type,
        payload_base64=base64.b64encode(file.data).decode("ascii"),
    )


def format_retrieval(event_id: str, files: Sequence[RetrievedFile]) -> RetrievalResponse:
    entries = [format_file_entry(f) for f in files]
    return RetrievalResponse(request_id=event_id, count=len(entries), files=entries)


def format_listing(names: List[str]) -> ListResponse:
    return ListResponse(count=len(names), objects=names)


def decode_payload(entry: FileEntry) -> bytes:
    """Recover the raw bytes of a file entry.

    Raises:
        EncodingError: If payload_base64 is not valid base64
    """
    try:
        return base64.b64decode(entry.payload_base64, validate=True)
    except (binascii.Error, ValueError) as e:
        raise EncodingError(f"failed to decode {entry.object_name}: {e}") from e


def download_filename(file: RetrievedFile) -> str:
    return file.original_filename or file.object_name


def file_from_entry(entry: FileEntry) -> RetrievedFile:
    """Rebuild a retrieved file from its formatted entry.

    Raises:
        EncodingError: If payload_base64 is not valid base64
    """
    data = decode_payload(entry)
    return RetrievedFile(
        object_name=entry.object_name,
        original_filename=entry.original_filename or None,
        size=len(data),
        content_type=entry.content_type,
        data=data,
    )


def format_raw(
    event_id: str, entries: Sequence[FileEntry], bundler: ArchiveBundler
) -> RawPayload:
    """Build the raw download for an event from its formatted entries.

    A single entry is served as its decoded bytes; several entries are
    bundled into ``payloads_{event_id}.zip``.

    Raises:
        EncodingError: If an entry's payload cannot be decoded
        BundleError: If the archive cannot be written
    """
    files = [file_from_entry(entry) for entry in entries]

    if len(files) == 1:
        file = files[0]
        return RawPayload(
            filename=download_filename(file),
            content_type=file.content_type,
            data=file.data,
        )

    return RawPayload(
        filename=f"payloads_{event_id}.zip",
        content_type=ARCHIVE_CONTENT_TYPE,
        data=bundler.bundle(files),
    )
