# src/safeyak/main.py
"""Main entry point for the SafeYak application."""

from __future__ import annotations

import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware
from fastapi.responses import JSONResponse

from safeyak.api.v1 import (
    comments_router,
    identity_router,
    moderation_router,
    posts_router,
    realtime_router,
    reputation_router,
    system_router,
)
from safeyak.core.errors import RateLimitError, SafeYakError
from safeyak.core.settings import settings
from safeyak.db.session import create_tables

logging.basicConfig(
    level=settings.log_level.upper(),
    format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
)
logger = logging.getLogger(__name__)

# Initialize FastAPI app
app = FastAPI(
    title="SafeYak API",
    description="Anonymous, zone-based discussion board with automated moderation",
    version=settings.app_version,
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
app.include_router(identity_router, prefix="/api/v1")
app.include_router(moderation_router, prefix="/api/v1")
app.include_router(posts_router, prefix="/api/v1")
app.include_router(comments_router, prefix="/api/v1")
app.include_router(reputation_router, prefix="/api/v1")
app.include_router(realtime_router, prefix="/api/v1")
app.include_router(system_router, prefix="/api/v1")


@app.exception_handler(SafeYakError)
async def handle_domain_error(request: Request, exc: SafeYakError) -> JSONResponse:
    """Translate domain failures into ``{"error": ...}`` responses."""
    headers = None
    if isinstance(exc, RateLimitError):
        headers = {"Retry-After": str(exc.retry_after)}
    if exc.status_code >= 500:
        logger.warning("%s %s failed: %s", request.method, request.url.path, exc.message)
    return JSONResponse(status_code=exc.status_code, content={"error": exc.message}, headers=headers)


@app.exception_handler(RequestValidationError)
async def handle_request_validation(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Report malformed payloads with the same shape as domain validation errors."""
    errors = exc.errors()
    message = errors[0].get("msg", "Invalid request") if errors else "Invalid request"
    location = ".".join(str(part) for part in errors[0].get("loc", ())) if errors else ""
    if location:
        message = f"{location}: {message}"
    return JSONResponse(status_code=400, content={"error": message})


@app.on_event("startup")
async def on_startup() -> None:
    create_tables()
    logger.info("%s %s started", settings.app_name, settings.app_version)


@app.get("/health")
async def health_check() -> dict[str, str]:
    """Health check endpoint to verify the service is running."""
    return {"status": "ok"}


@app.get("/")
async def root() -> dict[str, str]:
    """Root endpoint with basic information about the API."""
    return {
        "name": "SafeYak API",
        "version": settings.app_version,
        "description": "Anonymous, zone-based discussion board with automated moderation",
        "docs": "/docs",
        "redoc": "/redoc",
    }


if __name__ == "__main__":
    import uvicorn
    uvicorn.run("safeyak.main:app", host="0.0.0.0", port=8000, reload=settings.debug)
