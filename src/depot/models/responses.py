"""Response data models."""

from typing import Optional

from pydantic import BaseModel


class IngestionResponse(BaseModel):
    """Response model for an accepted ingestion."""

    status: str = "accepted"
    request_id: str
    size: int
    timestamp: str
    original_filename: Optional[str] = None


class FileEntry(BaseModel):
    """One stored file in a retrieval response."""

    object_name: str
    original_filename: str
    size: int
    content_type: str
    payload_base64: str


class RetrievalResponse(BaseModel):
    """Response model for structured retrieval."""

    request_id: str
    count: int
    files: list[FileEntry]


class ListResponse(BaseModel):
    """Response model for listing stored objects."""

    count: int
    objects: list[str]
