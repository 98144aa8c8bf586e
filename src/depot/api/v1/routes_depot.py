"""Depot API routes: ingestion, retrieval and listing."""

import logging
from typing import Optional
from urllib.parse import quote

from fastapi import APIRouter, Depends, HTTPException, Query, Request
from fastapi.responses import Response
from starlette.requests import ClientDisconnect

from depot.core.config import settings
from depot.core.exceptions import (
    BundleError,
    EncodingError,
    InputError,
    NotFoundError,
    StorageError,
)
from depot.models.responses import IngestionResponse, ListResponse, RetrievalResponse
from depot.services.factory import get_payload_service
from depot.services.payload_service import PayloadService

router = APIRouter(tags=["depot"])
logger = logging.getLogger(__name__)


def payload_service() -> PayloadService:
    """Resolve the payload service, mapping misconfiguration to a 500."""
    try:
        return get_payload_service()
    except ValueError as e:
        logger.error(f"Storage backend configuration error: {e}")
        raise HTTPException(status_code=500, detail="Storage configuration error")


def attachment_disposition(filename: str) -> str:
    """Build a Content-Disposition value that survives latin-1 header encoding."""
    escaped = filename.replace("\\", "\\\\").replace('"', '\\"')
    try:
        escaped.encode("ascii")
    except UnicodeEncodeError:
        fallback = escaped.encode("ascii", "replace").decode("ascii")
        return f"attachment; filename=\"{fallback}\"; filename*=UTF-8''{quote(filename)}"
    return f'attachment; filename="{escaped}"'


def _oversized() -> HTTPException:
    return HTTPException(
        status_code=400,
        detail=f"Payload size exceeds maximum allowed size of {settings.MAX_UPLOAD_MB}MB",
    )


@router.api_route(
    "/depot",
    methods=["POST", "PUT"],
    response_model=IngestionResponse,
    response_model_exclude_none=True,
)
async def depot(
    request: Request, service: PayloadService = Depends(payload_service)
) -> IngestionResponse:
    """Accept any body and store it under a new request id."""
    # Declared length is checked before buffering; chunked bodies after
    declared_length = request.headers.get("content-length", "")
    if declared_length.isdigit() and int(declared_length) > settings.max_upload_bytes:
        raise _oversized()

    try:
        body = await request.body()
    except ClientDisconnect:
        logger.warning("Client disconnected while sending body")
        raise HTTPException(status_code=400, detail="Error reading request body")

    if len(body) > settings.max_upload_bytes:
        raise _oversized()

    try:
        return await service.ingest(
            body,
            request.headers.get("content-type"),
            request.headers.get("content-disposition"),
        )
    except InputError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except Exception as e:
        logger.error(f"Unexpected error during ingestion: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail="Error storing payload")


@router.get("/get", response_model=RetrievalResponse)
async def get_payloads(
    request_id: Optional[str] = Query(None),
    raw: str = Query("false"),
    service: PayloadService = Depends(payload_service),
):
    """Retrieve everything stored for a request id.

    With ``raw=true`` a single file is returned verbatim and several files
    are returned as one ZIP archive.
    """
    try:
        if raw.lower() == "true":
            payload = await service.retrieve_raw(request_id)
            return Response(
                content=payload.data,
                media_type=payload.content_type,
                headers={"Content-Disposition": attachment_disposition(payload.filename)},
            )
        return await service.retrieve(request_id)

    except InputError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except StorageError as e:
        logger.error(f"Error listing payloads: {e}")
        raise HTTPException(status_code=500, detail="Error listing payloads")
    except (EncodingError, BundleError) as e:
        logger.error(f"Error building raw response: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail="Failed to build file response")


@router.get("/list", response_model=ListResponse)
async def list_payloads(service: PayloadService = Depends(payload_service)) -> ListResponse:
    """List every stored object name."""
    try:
        return await service.list_objects()
    except StorageError as e:
        logger.error(f"Error listing payloads: {e}")
        raise HTTPException(status_code=500, detail="Error listing payloads")
