"""Main entry point for the Lumina Press application."""

from __future__ import annotations

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware
from fastapi.responses import JSONResponse

from lumina.api.v1 import (
    assistant_router,
    comments_router,
    moderation_router,
    posts_router,
    users_router,
)
from lumina.api.v1.dependencies import close_remote_store
from lumina.core.settings import settings
from lumina.services.assistant import AssistantDisabledError, AssistantError, get_assistant
from lumina.services.errors import (
    ConflictError,
    GateFailure,
    NotFoundError,
    PermissionDeniedError,
    StoreUnavailableError,
    ValidationError,
    WorkflowError,
)

logger = logging.getLogger(__name__)

DESCRIPTION = "Editorial publishing service with a moderated post workflow"

# Most specific first; GateFailure is a ValidationError.
ERROR_STATUS: tuple[tuple[type[Exception], int], ...] = (
    (GateFailure, status.HTTP_422_UNPROCESSABLE_ENTITY),
    (ValidationError, status.HTTP_422_UNPROCESSABLE_ENTITY),
    (ConflictError, status.HTTP_409_CONFLICT),
    (NotFoundError, status.HTTP_404_NOT_FOUND),
    (PermissionDeniedError, status.HTTP_403_FORBIDDEN),
    (StoreUnavailableError, status.HTTP_503_SERVICE_UNAVAILABLE),
    (AssistantDisabledError, status.HTTP_503_SERVICE_UNAVAILABLE),
    (AssistantError, status.HTTP_502_BAD_GATEWAY),
)


def error_status(exc: Exception) -> int:
    for error_type, code in ERROR_STATUS:
        if isinstance(exc, error_type):
            return code
    return status.HTTP_500_INTERNAL_SERVER_ERROR


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    yield
    if settings.assistant_enabled:
        await get_assistant().close()
    close_remote_store()


# Initialize FastAPI app
app = FastAPI(
    title=settings.app_name,
    description=DESCRIPTION,
    version=settings.app_version,
    lifespan=lifespan,
)

# Add CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=settings.cors_allow_credentials,
    allow_methods=settings.cors_allow_methods,
    allow_headers=settings.cors_allow_headers,
)

# Add GZip middleware for compression
app.add_middleware(GZipMiddleware)

# Include API routers
app.include_router(users_router, prefix="/api/v1")
app.include_router(posts_router, prefix="/api/v1")
app.include_router(comments_router, prefix="/api/v1")
app.include_router(moderation_router, prefix="/api/v1")
app.include_router(assistant_router, prefix="/api/v1")


@app.exception_handler(WorkflowError)
@app.exception_handler(AssistantError)
async def service_error_handler(request: Request, exc: Exception) -> JSONResponse:
    """Translate service exceptions into JSON error bodies."""
    code = error_status(exc)
    body: dict[str, object] = {"detail": str(exc)}
    if isinstance(exc, GateFailure):
        body["failed_checks"] = list(exc.failed_checks)
    if code >= status.HTTP_500_INTERNAL_SERVER_ERROR:
        logger.warning("%s %s failed: %s", request.method, request.url.path, exc)
    return JSONResponse(status_code=code, content=body)


@app.get("/health")
async def health_check() -> dict[str, str]:
    """Health check endpoint to verify the service is running."""
    return {"status": "ok"}


@app.get("/")
async def root() -> dict[str, str]:
    """Root endpoint with basic information about the API."""
    return {
        "name": settings.app_name,
        "version": settings.app_version,
        "description": DESCRIPTION,
        "docs": "/docs",
        "redoc": "/redoc",
    }


if __name__ == "__main__":
    import uvicorn
    uvicorn.run("lumina.main:app", host="0.0.0.0", port=8000, reload=settings.debug)
