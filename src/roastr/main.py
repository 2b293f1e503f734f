# src/roastr/main.py
"""Main entry point for the Roastr application."""

from __future__ import annotations

import logging

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware
from fastapi.responses import JSONResponse

from roastr.api.v1 import (
    leaderboard_router,
    moderation_router,
    posts_router,
    tags_router,
    users_router,
    votes_router,
)
from roastr.core.errors import RateLimitError, RoastrError
from roastr.core.settings import settings
from roastr.db.session import create_tables

logging.basicConfig(
    level=settings.log_level.upper(),
    format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
)
logger = logging.getLogger(__name__)

# Initialize FastAPI app
app = FastAPI(
    title=f"{settings.app_name} API",
    description="Roast feed: posts, tags, votes, reports and moderation",
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
app.include_router(posts_router, prefix="/api/v1")
app.include_router(votes_router, prefix="/api/v1")
app.include_router(moderation_router, prefix="/api/v1")
app.include_router(users_router, prefix="/api/v1")
app.include_router(tags_router, prefix="/api/v1")
app.include_router(leaderboard_router, prefix="/api/v1")


@app.exception_handler(RoastrError)
async def roastr_error_handler(request: Request, exc: RoastrError) -> JSONResponse:
    """Translate domain failures into HTTP responses."""
    body: dict[str, object] = {"detail": exc.detail, "error": exc.code}
    headers: dict[str, str] = {}
    if isinstance(exc, RateLimitError):
        body.update(limit=exc.limit, remaining=exc.remaining, retry_after=exc.retry_after)
        headers["Retry-After"] = str(exc.retry_after)
    if exc.status_code == 401:
        headers["WWW-Authenticate"] = "Bearer"
    return JSONResponse(status_code=exc.status_code, content=body, headers=headers or None)


@app.on_event("startup")
async def on_startup() -> None:
    if settings.auto_create_tables:
        create_tables()
        logger.info("Database tables created")


@app.get("/health")
async def health_check() -> dict[str, str]:
    """Health check endpoint to verify the service is running."""
    return {"status": "ok"}


@app.get("/")
async def root() -> dict[str, str]:
    """Root endpoint with basic information about the API."""
    return {
        "name": f"{settings.app_name} API",
        "version": settings.app_version,
        "description": "Roast feed: posts, tags, votes, reports and moderation",
        "docs": "/docs",
        "redoc": "/redoc",
    }


if __name__ == "__main__":
    import uvicorn
    uvicorn.run("roastr.main:app", host="0.0.0.0", port=8000, reload=settings.debug)
