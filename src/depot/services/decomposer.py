"""Decomposition of one HTTP body into storable units."""

import logging
from typing import Dict, List, Optional

from python_multipart.exceptions import MultipartParseError
from python_multipart.multipart import MultipartParser

from depot.core.exceptions import MalformedInputError
from depot.models.units import StorableUnit
from depot.services.classifier import (
    classify_filename,
    classify_header,
    resolve_content_type,
    sniff_bytes,
)
from depot.services.headers import filename_from_disposition, parse_header_params
from depot.services.naming import object_name

logger = logging.getLogger(__name__)

MULTIPART_FORM_DATA = "multipart/form-data"


def _skip_preamble(raw_body: bytes, boundary: bytes) -> bytes:
    """Drop any bytes before the first delimiter line.

    The delimiter counts only at the very start of the body or right after a
    CRLF. A body without any delimiter is returned unchanged.
    """
    delimiter = b"--" + boundary
    if raw_body.startswith(delimiter):
        return raw_body
    index = raw_body.find(b"\r\n" + delimiter)
    if index == -1:
        return raw_body
    return raw_body[index + 2:]


class _FramedPart:
    """Headers and body of one multipart part."""

    def __init__(self) -> None:
        self.headers: Dict[str, bytes] = {}
        self.data = bytearray()

    @property
    def filename(self) -> str:
        return filename_from_disposition(self.headers.get("content-disposition"))


class _PartCollector:
    """Callback sink for MultipartParser that buffers every part."""

    def __init__(self) -> None:
        self.parts: List[_FramedPart] = []
        self.finished = False
        self._current: Optional[_FramedPart] = None
        self._field = bytearray()
        self._value = bytearray()

    def callbacks(self) -> dict:
        return {
            "on_part_begin": self._on_part_begin,
            "on_part_data": self._on_part_data,
            "on_part_end": self._on_part_end,
            "on_header_field": self._on_header_field,
            "on_header_value": self._on_header_value,
            "on_header_end": self._on_header_end,
            "on_end": self._on_end,
        }

    def _on_part_begin(self) -> None:
        self._current = _FramedPart()

    def _on_part_data(self, data: bytes, start: int, end: int) -> None:
        self._current.data += data[start:end]

    def _on_part_end(self) -> None:
        self.parts.append(self._current)
        self._current = None

    def _on_header_field(self, data: bytes, start: int, end: int) -> None:
        self._field += data[start:end]

    def _on_header_value(self, data: bytes, start: int, end: int) -> None:
        self._value += data[start:end]

    def _on_header_end(self) -> None:
        name = bytes(self._field).decode("latin-1").strip().lower()
        self._current.headers[name] = bytes(self._value).strip()
        self._field.clear()
        self._value.clear()

    def _on_end(self) -> None:
        self.finished = True


class PayloadDecomposer:
    """Turns a request body into one or more named, typed units."""

    def decompose(
        self,
        event_id: str,
        raw_body: bytes,
        declared_content_type: Optional[str],
        top_level_filename: Optional[str] = None,
    ) -> List[StorableUnit]:
        """Split a body into storable units.

        Multipart form bodies yield one unit per part that carries a filename;
        plain form fields are dropped. Any other body yields exactly one unit.

        Args:
            event_id: Event id every unit name is prefixed with
            raw_body: Complete request body
            declared_content_type: Content-Type header, None when absent
            top_level_filename: Filename from the request's Content-Disposition

        Returns:
            Units in body order

        Raises:
            MalformedInputError: If a multipart body cannot be framed
        """
        if declared_content_type:
            header_type = classify_header(declared_content_type)
        else:
            header_type = sniff_bytes(raw_body)

        if header_type == MULTIPART_FORM_DATA:
            return self._decompose_multipart(event_id, raw_body, declared_content_type)

        filename = top_level_filename or None
        unit = StorableUnit(
            name=object_name(event_id, filename, header_type),
            data=raw_body,
            content_type=resolve_content_type(header_type, filename),
            source_filename=filename,
        )
        return [unit]

    def _decompose_multipart(
        self, event_id: str, raw_body: bytes, declared_content_type: str
    ) -> List[StorableUnit]:
        _, params = parse_header_params(declared_content_type)
        boundary = params.get("boundary", "")
        if not boundary:
            raise MalformedInputError("multipart body declared without a boundary")

        collector = _PartCollector()
        try:
            parser = MultipartParser(boundary, collector.callbacks())
            parser.write(_skip_preamble(raw_body, boundary.encode("latin-1")))
            parser.finalize()
        except (MultipartParseError, UnicodeEncodeError) as e:
            raise MalformedInputError(f"error reading part: {e}") from e

        if not collector.finished:
            raise MalformedInputError("multipart body ended before its closing boundary")

        units = []
        for index, part in enumerate(collector.parts):
            filename = part.filename
            if not filename:
                logger.debug(
                    "Skipping multipart field without filename",
                    extra={"request_id": event_id, "part_index": index},
                )
                continue

            units.append(
                StorableUnit(
                    name=object_name(event_id, filename, ""),
                    data=bytes(part.data),
                    content_type=classify_filename(filename),
                    source_filename=filename,
                )
            )

        logger.info(
            f"Decomposed multipart body into {len(units)} unit(s)",
            extra={"request_id": event_id, "parts": len(collector.parts)},
        )
        return units
