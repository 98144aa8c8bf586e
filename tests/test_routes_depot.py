"""Tests for the depot API endpoints."""

import base64
import io
import zipfile
from unittest.mock import AsyncMock, MagicMock

import httpx
import pytest
import pytest_asyncio
from fastapi.testclient import TestClient

from conftest import build_multipart, multipart_content_type
from depot.api.v1 import routes_depot
from depot.api.v1.routes_depot import attachment_disposition
from depot.api.v1.routes_depot import payload_service as service_dependency
from depot.core.config import settings
from depot.core.exceptions import EncodingError, StorageError
from depot.main import app

FIRST_ID = "1700000000-0000000000000001"


@pytest.fixture
def override_service(payload_service):
    """Route requests to the in-memory payload service."""
    app.dependency_overrides[service_dependency] = lambda: payload_service
    yield payload_service
    app.dependency_overrides.clear()


@pytest_asyncio.fixture
async def async_client(override_service):
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as client:
        yield client


@pytest.fixture
def client(override_service):
    return TestClient(app)


class TestDepotEndpoint:
    """Tests for POST/PUT /depot."""

    @pytest.mark.asyncio
    async def test_post_json(self, async_client, override_service, memory_storage):
        response = await async_client.post(
            "/depot", content=b'{"a":1}', headers={"Content-Type": "application/json"}
        )
        await override_service.drain()

        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "accepted"
        assert data["request_id"] == FIRST_ID
        assert data["size"] == 7
        assert "timestamp" in data
        assert "original_filename" not in data
        assert memory_storage.list() == [f"{FIRST_ID}_payload.json"]

    @pytest.mark.asyncio
    async def test_put_with_disposition(self, async_client, override_service, memory_storage):
        response = await async_client.put(
            "/depot",
            content=b"\x00\x01\x02",
            headers={
                "Content-Type": "application/octet-stream",
                "Content-Disposition": 'attachment; filename="blob.bin"',
            },
        )
        await override_service.drain()

        assert response.status_code == 200
        assert response.json()["original_filename"] == "blob.bin"
        assert memory_storage.list() == [f"{FIRST_ID}_blob.bin"]

    @pytest.mark.asyncio
    async def test_post_without_content_type_sniffs(self, async_client, override_service, memory_storage):
        response = await async_client.post("/depot", content=b"\xff\xd8\xff\xe0jpeg")
        await override_service.drain()

        assert response.status_code == 200
        assert memory_storage.list() == [f"{FIRST_ID}_payload.img"]

    @pytest.mark.asyncio
    async def test_post_multipart(self, async_client, override_service, memory_storage):
        body = build_multipart([("first", "a.txt", b"hi"), ("note", None, b"x")])

        response = await async_client.post(
            "/depot", content=body, headers={"Content-Type": multipart_content_type()}
        )
        await override_service.drain()

        assert response.status_code == 200
        assert response.json()["size"] == len(body)
        assert memory_storage.list() == [f"{FIRST_ID}_a.txt"]

    @pytest.mark.asyncio
    async def test_post_malformed_multipart(self, async_client, override_service, memory_storage):
        response = await async_client.post(
            "/depot",
            content=b"garbage",
            headers={"Content-Type": "multipart/form-data"},
        )
        await override_service.drain()

        assert response.status_code == 400
        assert memory_storage.list() == []

    @pytest.mark.asyncio
    async def test_post_oversized(self, async_client, memory_storage, monkeypatch):
        monkeypatch.setattr(settings, "MAX_UPLOAD_MB", 0)

        response = await async_client.post("/depot", content=b"too big")

        assert response.status_code == 400
        assert "exceeds maximum" in response.json()["detail"]
        assert memory_storage.list() == []

    @pytest.mark.asyncio
    async def test_declared_length_rejected_before_reading(
        self, async_client, override_service, memory_storage, monkeypatch
    ):
        """A body whose Content-Length is too large is refused without being read."""
        monkeypatch.setattr(settings, "MAX_UPLOAD_MB", 1)

        response = await async_client.post(
            "/depot",
            content=b"x",
            headers={"Content-Length": str(2 * 1024 * 1024), "Content-Type": "text/plain"},
        )
        await override_service.drain()

        assert response.status_code == 400
        assert "exceeds maximum" in response.json()["detail"]
        assert memory_storage.list() == []

    def test_get_method_not_allowed(self, client):
        response = client.get("/depot")

        assert response.status_code == 405

    def test_unexpected_ingest_failure(self):
        service = MagicMock()
        service.ingest = AsyncMock(side_effect=RuntimeError("boom"))
        app.dependency_overrides[service_dependency] = lambda: service
        try:
            response = TestClient(app).post("/depot", content=b"x")
        finally:
            app.dependency_overrides.clear()

        assert response.status_code == 500
        assert response.json()["detail"] == "Error storing payload"


class TestGetEndpoint:
    """Tests for GET /get."""

    def test_structured_retrieval(self, client, memory_storage):
        memory_storage.save(f"{FIRST_ID}_payload.json", b'{"a":1}', "application/json")
        memory_storage.save(f"{FIRST_ID}_notes.txt", b"hello", "text/plain")

        response = client.get("/get", params={"request_id": FIRST_ID})

        assert response.status_code == 200
        data = response.json()
        assert data["request_id"] == FIRST_ID
        assert data["count"] == 2
        files = {f["object_name"]: f for f in data["files"]}
        assert files[f"{FIRST_ID}_payload.json"]["original_filename"] == ""
        assert files[f"{FIRST_ID}_notes.txt"]["original_filename"] == "notes.txt"
        assert files[f"{FIRST_ID}_notes.txt"]["content_type"] == "text/plain"
        assert base64.b64decode(files[f"{FIRST_ID}_notes.txt"]["payload_base64"]) == b"hello"

    def test_raw_single_file(self, client, memory_storage):
        memory_storage.save(f"{FIRST_ID}_notes.txt", b"hello", "text/plain")

        response = client.get("/get", params={"request_id": FIRST_ID, "raw": "true"})

        assert response.status_code == 200
        assert response.content == b"hello"
        assert response.headers["content-type"].startswith("text/plain")
        assert response.headers["content-disposition"] == 'attachment; filename="notes.txt"'

    def test_raw_anonymous_file_uses_object_name(self, client, memory_storage):
        memory_storage.save(f"{FIRST_ID}_payload.bin", b"\x00\x01", "application/octet-stream")

        response = client.get("/get", params={"request_id": FIRST_ID, "raw": "TRUE"})

        assert response.status_code == 200
        assert response.content == b"\x00\x01"
        assert (
            response.headers["content-disposition"]
            == f'attachment; filename="{FIRST_ID}_payload.bin"'
        )

    def test_raw_multiple_files_zip(self, client, memory_storage):
        memory_storage.save(f"{FIRST_ID}_a.txt", b"alpha", "text/plain")
        memory_storage.save(f"{FIRST_ID}_b.txt", b"beta", "text/plain")

        response = client.get("/get", params={"request_id": FIRST_ID, "raw": "true"})

        assert response.status_code == 200
        assert response.headers["content-type"] == "application/zip"
        assert (
            response.headers["content-disposition"]
            == f'attachment; filename="payloads_{FIRST_ID}.zip"'
        )
        archive = zipfile.ZipFile(io.BytesIO(response.content))
        assert sorted(archive.namelist()) == ["a.txt", "b.txt"]
        assert archive.read("b.txt") == b"beta"

    def test_raw_false_is_structured(self, client, memory_storage):
        memory_storage.save(f"{FIRST_ID}_a.txt", b"alpha", "text/plain")

        response = client.get("/get", params={"request_id": FIRST_ID, "raw": "false"})

        assert response.status_code == 200
        assert response.json()["count"] == 1

    def test_missing_request_id(self, client):
        response = client.get("/get")

        assert response.status_code == 400

    def test_invalid_request_id(self, client):
        response = client.get("/get", params={"request_id": "abc_def"})

        assert response.status_code == 400

    def test_unknown_request_id(self, client):
        response = client.get("/get", params={"request_id": "1700000000-ffffffffffffffff"})

        assert response.status_code == 404

    def test_storage_listing_failure(self, client, memory_storage, monkeypatch):
        def broken_list():
            raise StorageError("listing down")

        monkeypatch.setattr(memory_storage, "list", broken_list)

        response = client.get("/get", params={"request_id": FIRST_ID})

        assert response.status_code == 500
        assert response.json()["detail"] == "Error listing payloads"


    def test_raw_decoding_failure(self):
        service = MagicMock()
        service.retrieve_raw = AsyncMock(side_effect=EncodingError("corrupt base64"))
        app.dependency_overrides[service_dependency] = lambda: service
        try:
            response = TestClient(app).get(
                "/get", params={"request_id": FIRST_ID, "raw": "true"}
            )
        finally:
            app.dependency_overrides.clear()

        assert response.status_code == 500
        assert response.json()["detail"] == "Failed to build file response"


class TestListEndpoint:
    """Tests for GET /list."""

    def test_list_objects(self, client, memory_storage):
        memory_storage.save(f"{FIRST_ID}_a.txt", b"alpha", "text/plain")
        memory_storage.save("1700000000-0000000000000002_payload.json", b"{}", "application/json")

        response = client.get("/list")

        assert response.status_code == 200
        data = response.json()
        assert data["count"] == 2
        assert sorted(data["objects"]) == [
            f"{FIRST_ID}_a.txt",
            "1700000000-0000000000000002_payload.json",
        ]

    def test_list_empty(self, client):
        response = client.get("/list")

        assert response.status_code == 200
        assert response.json() == {"count": 0, "objects": []}

    def test_list_storage_failure(self, client, memory_storage, monkeypatch):
        def broken_list():
            raise StorageError("listing down")

        monkeypatch.setattr(memory_storage, "list", broken_list)

        response = client.get("/list")

        assert response.status_code == 500


def test_storage_misconfiguration(monkeypatch):
    def broken_factory():
        raise ValueError("Unknown STORAGE_BACKEND: tape")

    monkeypatch.setattr(routes_depot, "get_payload_service", broken_factory)

    response = TestClient(app).get("/list")

    assert response.status_code == 500
    assert response.json()["detail"] == "Storage configuration error"


def test_attachment_disposition_non_ascii():
    value = attachment_disposition("résumé.pdf")

    assert value.startswith('attachment; filename="r?sum?.pdf"')
    assert "filename*=UTF-8''r%C3%A9sum%C3%A9.pdf" in value
    value.encode("latin-1")


def test_attachment_disposition_escapes_quotes():
    assert attachment_disposition('a"b.txt') == 'attachment; filename="a\\"b.txt"'
