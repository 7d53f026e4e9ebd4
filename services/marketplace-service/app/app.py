"""
Marketplace Service - Main Application.

Diaspora investment marketplace: business owners list funding
opportunities, investors commit capital, administrators oversee the
platform.

This file wires together:
- Routers: HTTP endpoints
- Services: business operations, one transaction each
- Domain: lifecycle rules, analytics and projections
"""

import uuid
from contextlib import asynccontextmanager

import structlog
from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from .config import settings
from .database import init_db
from .domain.exceptions import (AuthenticationRequired, BusinessRuleViolation,
                                ConcurrentModificationError,
                                InvalidTransitionError, MarketplaceException,
                                NotFoundException, PermissionDeniedException,
                                ValidationException)
from .logging_config import get_logger, setup_logging
from .metrics import metrics_endpoint, track_request_metrics
from .middleware import PrometheusMiddleware
from .routers import (admin, analytics, calculator, health, investments,
                      messages, notifications, opportunities, users)

setup_logging(settings.LOG_LEVEL, json_logs=not settings.DEBUG)
logger = get_logger(__name__)

EXCEPTION_STATUS_CODES = {
    ValidationException: status.HTTP_400_BAD_REQUEST,
    BusinessRuleViolation: status.HTTP_400_BAD_REQUEST,
    InvalidTransitionError: status.HTTP_400_BAD_REQUEST,
    AuthenticationRequired: status.HTTP_401_UNAUTHORIZED,
    PermissionDeniedException: status.HTTP_403_FORBIDDEN,
    NotFoundException: status.HTTP_404_NOT_FOUND,
    ConcurrentModificationError: status.HTTP_409_CONFLICT,
}


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan manager."""
    logger.info("Starting Marketplace Service", version=settings.SERVICE_VERSION)

    try:
        init_db()
    except Exception as e:
        logger.error("Failed to initialize database", error=str(e))
        raise

    logger.info("Marketplace Service started")

    yield

    logger.info("Marketplace Service stopped")


app = FastAPI(
    title="Marketplace Service",
    description="Diaspora investment marketplace API",
    version=settings.SERVICE_VERSION,
    lifespan=lifespan,
    docs_url="/docs" if settings.DEBUG else None,
    redoc_url="/redoc" if settings.DEBUG else None,
)

# CORS configuration
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins_list,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Metrics middleware
app.add_middleware(PrometheusMiddleware, track_func=track_request_metrics)


# Request ID middleware
@app.middleware("http")
async def add_request_id(request: Request, call_next):
    """Add request ID to the logging context and the response headers."""
    request_id = request.headers.get("X-Request-ID") or f"req-{uuid.uuid4().hex[:12]}"
    structlog.contextvars.bind_contextvars(request_id=request_id)

    try:
        response = await call_next(request)
    finally:
        structlog.contextvars.clear_contextvars()

    response.headers["X-Request-ID"] = request_id
    return response


# ==================== EXCEPTION HANDLERS ====================


@app.exception_handler(MarketplaceException)
async def marketplace_exception_handler(request: Request, exc: MarketplaceException):
    """Map domain exceptions to HTTP status codes."""
    status_code = next(
        (code for cls, code in EXCEPTION_STATUS_CODES.items() if isinstance(exc, cls)),
        status.HTTP_400_BAD_REQUEST,
    )
    logger.info(
        "Request rejected",
        path=request.url.path,
        method=request.method,
        status_code=status_code,
        error=exc.message,
        error_type=type(exc).__name__,
    )
    return JSONResponse(status_code=status_code, content={"error": exc.message})


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    """Request body or query failed schema validation."""
    details = [
        {"loc": list(err.get("loc", ())), "msg": err.get("msg"), "type": err.get("type")}
        for err in exc.errors()
    ]
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={"error": "Validation failed", "details": details},
    )


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    return JSONResponse(
        status_code=exc.status_code,
        content={"error": exc.detail},
        headers=getattr(exc, "headers", None),
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
        content={"error": "Internal server error"},
    )


# ==================== ROUTES ====================

app.include_router(health.router)
app.include_router(investments.router)
app.include_router(opportunities.router)
app.include_router(messages.router)
app.include_router(users.router)
app.include_router(notifications.router)
app.include_router(analytics.router)
app.include_router(calculator.router)
app.include_router(admin.router)

app.add_api_route("/metrics", metrics_endpoint, methods=["GET"], include_in_schema=False)


@app.get("/")
async def root():
    """Root endpoint with service information."""
    return {
        "service": settings.SERVICE_NAME,
        "version": settings.SERVICE_VERSION,
        "status": "operational",
        "health": "/health",
        "ready": "/ready",
    }


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "app.app:app",
        host=settings.SERVICE_HOST,
        port=settings.SERVICE_PORT,
        reload=settings.DEBUG,
        log_level=settings.LOG_LEVEL.lower(),
    )
