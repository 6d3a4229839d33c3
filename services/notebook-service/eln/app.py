"""
Notebook Service - Main Application.

Wires configuration, logging, persistence, metrics and the HTTP routers:
- Entities: experiments and database items
- Templates: experiment templates
- Admin: team groups, statuses, item types, common template
"""

from contextlib import asynccontextmanager
from uuid import uuid4

import structlog
from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from . import __version__
from .config import settings
from .database import init_db
from .domain.exceptions import (
    DatabaseErrorException,
    ElnException,
    IllegalActionException,
    ImproperActionException,
    ResourceNotFoundException,
)
from .logging_config import get_logger, setup_logging
from .metrics import metrics_endpoint, track_request_metrics
from .metrics_middleware import PrometheusMiddleware
from .routers import admin_router, entities_router, health_router, templates_router

setup_logging(settings.LOG_LEVEL, settings.SERVICE_NAME)
logger = get_logger(__name__)

# exception class -> (HTTP status, error code); first match wins
EXCEPTION_STATUS = (
    (ResourceNotFoundException, status.HTTP_404_NOT_FOUND, "not_found"),
    (IllegalActionException, status.HTTP_403_FORBIDDEN, "illegal_action"),
    (ImproperActionException, status.HTTP_400_BAD_REQUEST, "improper_action"),
    (DatabaseErrorException, status.HTTP_500_INTERNAL_SERVER_ERROR, "database_error"),
)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan manager."""
    logger.info("Starting Notebook Service", version=__version__)
    try:
        init_db()
    except Exception as e:
        logger.error("Failed to initialize database", error=str(e))
        raise
    logger.info("Notebook Service started")

    yield

    logger.info("Notebook Service stopped")


app = FastAPI(
    title="eLN Notebook Service",
    description="Experiments, database items and team administration",
    version=__version__,
    lifespan=lifespan,
    docs_url="/api/docs",
    redoc_url="/api/redoc",
    openapi_url="/api/openapi.json",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins_list,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS", "PATCH"],
    allow_headers=[
        "Content-Type",
        "Authorization",
        "Accept",
        "Origin",
        "X-Requested-With",
        "X-Request-ID",
    ],
    expose_headers=["Content-Length", "X-Request-ID"],
    max_age=600,
)

app.add_middleware(PrometheusMiddleware, track_func=track_request_metrics)


@app.middleware("http")
async def add_request_id(request: Request, call_next):
    """Bind a request id to every log line of the request."""
    request_id = request.headers.get("X-Request-ID") or f"req-{uuid4().hex[:16]}"
    structlog.contextvars.bind_contextvars(request_id=request_id)
    try:
        response = await call_next(request)
    finally:
        structlog.contextvars.clear_contextvars()
    response.headers["X-Request-ID"] = request_id
    return response


# health, admin and templates before the /{entity_type} catch-all routes
app.include_router(health_router.router)
app.include_router(admin_router.router)
app.include_router(templates_router.router)
app.include_router(entities_router.router)


@app.get("/metrics", include_in_schema=False)
async def metrics():
    """Prometheus metrics endpoint."""
    return await metrics_endpoint()


@app.get("/health", tags=["health"])
async def health_check():
    return {"status": "healthy", "service": settings.SERVICE_NAME, "version": __version__}


@app.get("/")
async def root():
    """Root endpoint with service information."""
    return {
        "service": settings.APP_NAME,
        "version": __version__,
        "status": "operational",
        "docs": "/api/docs",
        "health": "/api/v1/health",
        "ready": "/api/v1/ready",
    }


@app.exception_handler(ElnException)
async def eln_exception_handler(request: Request, exc: ElnException):
    """Translate domain exceptions to JSON error responses."""
    status_code, error = status.HTTP_400_BAD_REQUEST, "improper_action"
    for exc_class, exc_status, exc_error in EXCEPTION_STATUS:
        if isinstance(exc, exc_class):
            status_code, error = exc_status, exc_error
            break

    log = logger.error if status_code >= 500 else logger.info
    log(
        "Request failed",
        path=request.url.path,
        method=request.method,
        error=error,
        message=exc.message,
    )
    return JSONResponse(
        status_code=status_code,
        content={
            "success": False,
            "error": error,
            "message": exc.message,
            "details": exc.details,
        },
    )


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    """Handle all unhandled exceptions."""
    logger.error(
        "Unhandled exception",
        path=request.url.path,
        method=request.method,
        error=str(exc),
        exc_info=True,
    )
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={
            "success": False,
            "error": "internal_server_error",
            "message": "An unexpected error occurred",
            "request_id": request.headers.get("X-Request-ID"),
        },
    )


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "eln.app:app",
        host=settings.SERVICE_HOST,
        port=settings.SERVICE_PORT,
        reload=settings.DEBUG,
        log_level=settings.LOG_LEVEL.lower(),
    )
