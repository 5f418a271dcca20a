#!/usr/bin/env python3
"""
Tubely FastAPI Application Entry Point

This module builds the Tubely video service API:
- FastAPI application with CORS middleware
- v1 router under the /api/v1 prefix
- Startup/shutdown lifespan for logging, the assets directory and MongoDB
- TubelyError handler rendering ``{"error": message}`` with the error's status
- /assets static mount serving uploaded thumbnails
- Root and health endpoints

API Structure:
    /api/v1/videos                       - Video records (create, list, get, delete)
    /api/v1/video_upload/{video_id}      - Video file upload
    /api/v1/thumbnail_upload/{video_id}  - Thumbnail upload
    /assets/<name>                       - Uploaded thumbnails

Usage:
    # Run with uvicorn directly (from backend/)
    uvicorn tubely.main:app --host 0.0.0.0 --port 8091 --reload

    # Run as Python script
    python -m tubely.main
"""

import logging
import time

from contextlib import asynccontextmanager
from datetime import UTC, datetime
from typing import Any

import uvicorn

from fastapi import FastAPI, Request, Response
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles
from pymongo.errors import PyMongoError

from tubely import __app_name__, __version__
from tubely.api.v1 import api_router
from tubely.config import get_settings
from tubely.core.database import close_db, get_db_client, init_db
from tubely.core.errors import ProcessingError, TubelyError
from tubely.utils.assets import ensure_assets_dir
from tubely.utils.logger import setup_logging


# Configure module logger
logger = logging.getLogger(__name__)

# HTTP status code constants
HTTP_ERROR_THRESHOLD = 400
HTTP_SERVER_ERROR_THRESHOLD = 500


# =============================================================================
# Application Lifespan Management
# =============================================================================


@asynccontextmanager
async def lifespan(_app: FastAPI):
    """
    Startup: configure logging, create the assets root, connect MongoDB.
    Shutdown: close MongoDB.

    A MongoDB failure is logged and the app still starts; record endpoints
    then fail until the database is reachable.
    """
    settings = get_settings()

    setup_logging(log_level=settings.log_level, json_logs=settings.json_logs)

    logger.info("%s API starting (env=%s, debug=%s)", __app_name__, settings.app_env, settings.debug)

    assets_root = ensure_assets_dir(settings)
    logger.info("Serving assets from %s", assets_root.resolve())

    try:
        await init_db(settings)
    except (RuntimeError, PyMongoError):
        logger.exception("Failed to initialize MongoDB")
        logger.warning("Application will continue without a database connection")

    logger.info("%s API ready on %s:%d", __app_name__, settings.host, settings.port)

    yield

    logger.info("%s API shutting down", __app_name__)
    await close_db()


# =============================================================================
# FastAPI Application Instance
# =============================================================================

_settings = get_settings()

app = FastAPI(
    title=f"{__app_name__} API",
    description=(
        "Video upload service: fast-start remuxing, aspect-ratio classification, "
        "S3 storage and short-lived signed playback URLs."
    ),
    version=__version__,
    docs_url=None if _settings.is_production else "/docs",
    redoc_url=None if _settings.is_production else "/redoc",
    openapi_url=None if _settings.is_production else "/openapi.json",
    lifespan=lifespan,
    debug=_settings.debug,
)


# =============================================================================
# Middleware Configuration
# =============================================================================

app.add_middleware(
    CORSMiddleware,
    allow_origins=_settings.cors_origins,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
    allow_headers=["*"],
    expose_headers=["X-Process-Time"],
)


@app.middleware("http")
async def request_logging_middleware(request: Request, call_next) -> Response:
    """Log each request's outcome and add an X-Process-Time header."""
    start_time = time.perf_counter()

    response = await call_next(request)

    process_time_ms = round((time.perf_counter() - start_time) * 1000, 2)
    response.headers["X-Process-Time"] = f"{process_time_ms}ms"

    log_level = logging.DEBUG if response.status_code < HTTP_ERROR_THRESHOLD else logging.WARNING
    logger.log(
        log_level,
        "Request completed: %s %s [Status: %d] [Time: %sms]",
        request.method,
        request.url.path,
        response.status_code,
        process_time_ms,
    )
    return response


# =============================================================================
# Exception Handlers
# =============================================================================


@app.exception_handler(TubelyError)
async def tubely_error_handler(request: Request, exc: TubelyError) -> JSONResponse:
    """Render a TubelyError as ``{"error": message}`` with its status code."""
    if exc.status_code >= HTTP_SERVER_ERROR_THRESHOLD:
        diagnostics = exc.diagnostics if isinstance(exc, ProcessingError) else ""
        logger.error(
            "Request failed: %s %s: %s",
            request.method,
            request.url.path,
            exc.message,
            exc_info=exc,
            extra={"diagnostics": diagnostics} if diagnostics else None,
        )

    return JSONResponse(status_code=exc.status_code, content={"error": exc.message})


# =============================================================================
# Routes
# =============================================================================

app.include_router(api_router, prefix="/api/v1")

# Thumbnails are written under assets_root by the upload endpoint; the
# directory is created in the lifespan, so it may not exist at import time.
app.mount(
    "/assets",
    StaticFiles(directory=_settings.assets_root, check_dir=False),
    name="assets",
)


@app.get("/", response_class=JSONResponse, tags=["root"], summary="API Root")
async def root() -> dict[str, Any]:
    return {
        "name": f"{__app_name__} API",
        "version": __version__,
        "documentation": {
            "swagger": "/docs",
            "redoc": "/redoc",
            "openapi": "/openapi.json",
        },
        "api_prefix": "/api/v1",
    }


@app.get("/health", response_class=JSONResponse, tags=["health"], summary="Health Check")
async def health_check() -> dict[str, Any]:
    """
    Liveness probe. ``status`` is healthy whenever the process serves requests;
    ``database`` reports whether MongoDB currently answers a ping.
    """
    try:
        database_ok = await get_db_client().ping()
    except RuntimeError:
        database_ok = False

    return {
        "status": "healthy",
        "database": database_ok,
        "timestamp": datetime.now(UTC).isoformat(),
        "version": __version__,
        "service": f"{__app_name__} API",
    }


if __name__ == "__main__":
    uvicorn.run(
        "tubely.main:app",
        host=_settings.host,
        port=_settings.port,
        reload=_settings.is_development,
        log_level=_settings.log_level.lower(),
    )
