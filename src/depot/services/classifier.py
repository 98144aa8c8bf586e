"""
Content type classification for ingested payloads.

Three independent strategies:
- declared header: normalize a Content-Type value to its bare media type
- filename: look the extension up in a fixed table
- raw bytes: best-effort sniff of JSON, JPEG and PNG
"""

import re
from typing import Dict, Optional

from depot.services.headers import parse_header_params

OCTET_STREAM = "application/octet-stream"

# Extension mappings to MIME types
EXTENSION_TYPE_MAP: Dict[str, str] = {
    ".json": "application/json",
    ".txt": "text/plain",
    ".pdf": "application/pdf",
    ".jpg": "image/jpeg",
    ".jpeg": "image/jpeg",
    ".png": "image/png",
    ".gif": "image/gif",
    ".html": "text/html",
    ".htm": "text/html",
    ".css": "text/css",
    ".js": "application/javascript",
}

# RFC 7230 token characters
_TOKEN = r"[!#$%&'*+.^_`|~0-9A-Za-z-]+"
MEDIA_TYPE_PATTERN = re.compile(rf"^{_TOKEN}(/{_TOKEN})?$")

JPEG_MAGIC = b"\xff\xd8\xff"
PNG_MAGIC = b"\x89PNG"


def split_extension(filename: str) -> tuple[str, str]:
    """Split a filename at its last dot.

    The extension keeps the dot and its original case. A name without a dot
    has an empty extension; a leading-dot name is all extension.
    """
    index = filename.rfind(".")
    if index == -1:
        return filename, ""
    return filename[:index], filename[index:]


def classify_header(content_type: Optional[str]) -> str:
    """
    Normalize a declared Content-Type header to its bare media type.

    Args:
        content_type: Header value, possibly with parameters

    Returns:
        Lowercased media type without parameters, or the generic binary
        type when the value is empty or cannot be parsed

    Examples:
        >>> classify_header("application/json; charset=utf-8")
        'application/json'
        >>> classify_header("")
        'application/octet-stream'
    """
    media_type, _ = parse_header_params(content_type)
    if not media_type or not MEDIA_TYPE_PATTERN.match(media_type):
        return OCTET_STREAM
    return media_type


def classify_filename(filename: Optional[str]) -> str:
    """Look up the MIME type for a filename's extension."""
    if not filename:
        return OCTET_STREAM
    _, ext = split_extension(filename)
    return EXTENSION_TYPE_MAP.get(ext.lower(), OCTET_STREAM)


def sniff_bytes(data: bytes) -> str:
    """Guess a MIME type from the leading bytes of a payload."""
    if not data:
        return OCTET_STREAM
    if data[:1] in (b"{", b"["):
        return "application/json"
    if len(data) >= 4:
        if data.startswith(JPEG_MAGIC):
            return "image/jpeg"
        if data.startswith(PNG_MAGIC):
            return "image/png"
    return OCTET_STREAM


def resolve_content_type(header_type: str, filename: Optional[str]) -> str:
    """Pick the final type of a single upload.

    The filename signal only wins when the header says nothing more specific
    than the generic binary type.
    """
    if header_type == OCTET_STREAM:
        return classify_filename(filename)
    return header_type
