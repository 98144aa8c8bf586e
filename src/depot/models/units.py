"""Internal payload unit records."""

from dataclasses import dataclass
from typing import Optional


@dataclass(frozen=True)
class StorableUnit:
    """One named, typed blob produced from an ingestion event."""

    name: str
    data: bytes
    content_type: str
    source_filename: Optional[str] = None


@dataclass(frozen=True)
class RetrievedFile:
    """One stored object read back for a retrieval request."""

    object_name: str
    original_filename: Optional[str]
    size: int
    content_type: str
    data: bytes


@dataclass(frozen=True)
class RawPayload:
    """Bytes ready to be streamed verbatim by the HTTP layer."""

    filename: str
    content_type: str
    data: bytes
