"""Pytest configuration and shared fixtures."""

import itertools
from typing import Iterable, Optional, Tuple

import pytest

from depot.services.identifiers import EventIdGenerator
from depot.services.payload_service import PayloadService
from depot.storage.memory import MemoryStorageBackend

BOUNDARY = "depot-test-boundary"


class SequentialEventIdGenerator(EventIdGenerator):
    """Deterministic ids for assertions on object names."""

    def __init__(self, prefix: str = "1700000000"):
        self.prefix = prefix
        self._counter = itertools.count(1)

    def generate(self) -> str:
        return f"{self.prefix}-{next(self._counter):016x}"


def build_multipart(
    parts: Iterable[Tuple[str, Optional[str], bytes]], boundary: str = BOUNDARY
) -> bytes:
    """Encode (field name, filename or None, content) tuples as form data."""
    body = b""
    for name, filename, content in parts:
        disposition = f'form-data; name="{name}"'
        if filename is not None:
            disposition += f'; filename="{filename}"'
        body += f"--{boundary}\r\n".encode()
        body += f"Content-Disposition: {disposition}\r\n".encode("utf-8")
        if filename is not None:
            body += b"Content-Type: application/octet-stream\r\n"
        body += b"\r\n" + content + b"\r\n"
    body += f"--{boundary}--\r\n".encode()
    return body


def multipart_content_type(boundary: str = BOUNDARY) -> str:
    return f"multipart/form-data; boundary={boundary}"


@pytest.fixture
def memory_storage():
    """Fresh in-memory storage backend."""
    return MemoryStorageBackend()


@pytest.fixture
def id_generator():
    return SequentialEventIdGenerator()


@pytest.fixture
def payload_service(memory_storage, id_generator):
    """Payload service over in-memory storage."""
    return PayloadService(storage=memory_storage, id_generator=id_generator)
