"""Parameter parsing for Content-Type and Content-Disposition headers."""

from email.message import Message
from email.utils import collapse_rfc2231_value
from typing import Dict, Optional, Tuple, Union

from python_multipart.multipart import parse_options_header


def parse_header_params(value: Optional[Union[str, bytes]]) -> Tuple[str, Dict[str, str]]:
    """Split a header value into its main token and its parameters.

    Quoted values and multiple parameters are handled by the multipart
    parser, so a parameter name that only appears inside another parameter's
    value is never matched. RFC 2231 extended parameters (``filename*``) are
    decoded separately and win over their plain counterparts.

    Args:
        value: Raw header value, e.g. ``form-data; name="f"; filename="a.txt"``

    Returns:
        Tuple of (lowercased main token, parameters keyed by lowercased name).
        An empty or unparseable header yields ``("", {})``.
    """
    if not value:
        return "", {}

    try:
        token, raw_params = parse_options_header(value)
    except (UnicodeError, ValueError):
        return "", {}

    params = {
        key.decode("latin-1").lower(): _decode(val) for key, val in raw_params.items()
    }
    text = value.decode("latin-1") if isinstance(value, bytes) else value
    params.update(_extended_params(text))
    return token.decode("latin-1").strip().lower(), params


def _extended_params(value: str) -> Dict[str, str]:
    """Decode ``name*=charset'language'percent-encoded`` parameters."""
    if "*" not in value:
        return {}

    message = Message()
    message["content-disposition"] = value
    try:
        params = message.get_params(failobj=[], header="content-disposition")
    except (UnicodeError, ValueError):
        return {}

    extended = {}
    for key, val in params[1:]:
        # Only RFC 2231 values come back as (charset, language, text)
        if isinstance(val, tuple):
            extended[key.lower()] = collapse_rfc2231_value(val, fallback_charset="utf-8")
    return extended


def _decode(raw: bytes) -> str:
    # Clients send UTF-8 filenames unescaped while headers travel as latin-1
    try:
        return raw.decode("utf-8")
    except UnicodeDecodeError:
        return raw.decode("latin-1")


def basename(filename: str) -> str:
    """Drop any directory components a client put into a filename."""
    stripped = filename.replace("\\", "/").rstrip("/")
    return stripped.rsplit("/", 1)[-1]


def filename_from_disposition(content_disposition: Optional[Union[str, bytes]]) -> str:
    """Extract the filename parameter of a Content-Disposition header.

    Returns:
        Base filename, or an empty string when none is declared
    """
    _, params = parse_header_params(content_disposition)
    filename = params.get("filename", "")
    return basename(filename) if filename else ""
