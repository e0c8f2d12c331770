# src/groupboard/main.py
"""Main entry point for the Group Board application."""

from __future__ import annotations

import logging

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError

from groupboard.api.v1 import (
    admin_router,
    announcements_router,
    groups_router,
    tags_router,
    votes_router,
)
from groupboard.core.errors import GroupBoardError, StoreFailure
from groupboard.core.settings import settings

logging.basicConfig(
    level=settings.log_level.upper(),
    format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
)
logger = logging.getLogger(__name__)

DESCRIPTION = "Group bulletin boards with role-gated announcements and voting"

# Initialize FastAPI app
app = FastAPI(
    title=settings.app_name,
    description=DESCRIPTION,
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
app.include_router(groups_router, prefix="/api/v1")
app.include_router(announcements_router, prefix="/api/v1")
app.include_router(tags_router, prefix="/api/v1")
app.include_router(votes_router, prefix="/api/v1")
app.include_router(admin_router, prefix="/api/v1")


def _error_response(error: GroupBoardError) -> JSONResponse:
    return JSONResponse(
        status_code=error.status_code,
        content={"ok": False, "error": error.message, "code": error.code},
    )


@app.exception_handler(GroupBoardError)
async def handle_domain_error(_request: Request, exc: GroupBoardError) -> JSONResponse:
    """Render a domain error as the failure envelope."""
    if isinstance(exc, StoreFailure):
        logger.error("Store failure: %s", exc.message, exc_info=exc)
    return _error_response(exc)


@app.exception_handler(SQLAlchemyError)
async def handle_store_error(request: Request, exc: SQLAlchemyError) -> JSONResponse:
    """Any database error that escaped a service is a generic store failure."""
    logger.exception("Unhandled database error on %s %s", request.method, request.url.path, exc_info=exc)
    return _error_response(StoreFailure())


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
    uvicorn.run("groupboard.main:app", host="0.0.0.0", port=8000, reload=settings.debug)
