"""Main application entrypoint for Payload Depot."""

import logging

from fastapi import FastAPI

from depot.api.v1 import routes_health
from depot.api.v1.routes_depot import router as depot_router
from depot.core.config import settings
from depot.core.logging import setup_logging
from depot.core.middleware import HTTPErrorLoggingMiddleware
from depot.services.factory import get_payload_service

logger = logging.getLogger(__name__)


def create_app() -> FastAPI:
    """Create and configure the FastAPI application.

    Returns:
        FastAPI: Configured FastAPI application instance
    """
    # Initialize logging first
    setup_logging()

    app = FastAPI(
        title=settings.SERVICE_NAME,
        version=settings.SERVICE_VERSION,
    )

    app.add_middleware(HTTPErrorLoggingMiddleware)

    app.include_router(routes_health.router, tags=["health"])
    app.include_router(depot_router)

    @app.on_event("startup")
    async def startup_event():
        logger.info(
            "Payload Depot started",
            extra={
                "environment": settings.ENV,
                "storage_backend": settings.STORAGE_BACKEND,
            },
        )

    @app.on_event("shutdown")
    async def shutdown_event():
        """Let detached persistence tasks finish before exit."""
        if get_payload_service.cache_info().currsize:
            await get_payload_service().drain()
        logger.info("Payload Depot shutting down")

    return app


# Export app instance for ASGI servers
app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(app, host="0.0.0.0", port=settings.PORT)
