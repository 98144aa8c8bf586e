"""Storage key scheme.

Every stored object is named ``{event_id}_{rest}``. The event id prefix is the
only index: retrieval lists the store and keeps names with that prefix.
"""

from typing import Dict, List, Optional, Tuple

from depot.services.classifier import OCTET_STREAM, split_extension
from depot.services.headers import basename

SEPARATOR = "_"
ANONYMOUS_BASE = "payload"

# Checked in order against the content type; first substring match wins
ANONYMOUS_EXTENSIONS: List[Tuple[str, str]] = [
    ("json", ".json"),
    ("text", ".txt"),
    ("image", ".img"),
    ("multipart", ".multipart"),
]
DEFAULT_EXTENSION = ".bin"

SUFFIX_TYPE_MAP: Dict[str, str] = {
    ".json": "application/json",
    ".txt": "text/plain",
    ".img": OCTET_STREAM,
    ".multipart": "multipart/form-data",
}


def object_prefix(event_id: str) -> str:
    return f"{event_id}{SEPARATOR}"


def anonymous_extension(content_type: str) -> str:
    for needle, ext in ANONYMOUS_EXTENSIONS:
        if needle in content_type:
            return ext
    return DEFAULT_EXTENSION


def object_name(event_id: str, filename: Optional[str], content_type: str) -> str:
    """Build the storage key for one unit.

    Args:
        event_id: Event id shared by every unit of one ingestion
        filename: Client supplied filename, may be empty
        content_type: Normalized content type, used only without a filename

    Returns:
        ``{event_id}_{base}{ext}`` for named units, otherwise
        ``{event_id}_payload{ext}`` with ext chosen from the content type
    """
    name = basename(filename) if filename else ""
    if name:
        base, ext = split_extension(name)
        return f"{object_prefix(event_id)}{base}{ext}"
    return f"{object_prefix(event_id)}{ANONYMOUS_BASE}{anonymous_extension(content_type)}"


def content_type_for_object(name: str) -> str:
    """Recover a content type from a stored object's suffix."""
    for suffix, content_type in SUFFIX_TYPE_MAP.items():
        if name.endswith(suffix):
            return content_type
    return OCTET_STREAM


def original_filename_for_object(event_id: str, name: str) -> Optional[str]:
    """Recover the client filename from a stored object's name.

    Anonymous payloads, whose remainder starts with ``payload``, have none.
    """
    prefix = object_prefix(event_id)
    remainder = name[len(prefix):] if name.startswith(prefix) else name
    if not remainder or remainder.startswith(ANONYMOUS_BASE):
        return None
    return remainder
