"""Health check endpoint for Payload Depot."""

from fastapi import APIRouter

from depot.core.config import settings

router = APIRouter()


@router.get("/health")
async def health_check() -> dict:
    """Health check endpoint.

    Returns service status, name, version and the configured storage
    backend. No storage call is made so the check stays fast.

    Returns:
        dict: Health status response
    """
    return {
        "status": "ok",
        "service": settings.SERVICE_NAME,
        "version": settings.SERVICE_VERSION,
        "storage_backend": settings.STORAGE_BACKEND,
    }
