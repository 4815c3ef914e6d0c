"""
TelcoRewards Backend Application

Loyalty progression API: tokens, xp, levels, daily streaks, badges and perks.
"""

from contextlib import asynccontextmanager
from typing import AsyncGenerator

import structlog
from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware
from fastapi.responses import JSONResponse

from api.v1 import router as api_v1_router
from core.config import settings
from core.events import create_start_app_handler, create_stop_app_handler
from core.exceptions import (
    ConcurrentUpdateError,
    ConstraintViolationError,
    DuplicateActivityError,
    DuplicateBadgeError,
    DuplicateEmailError,
    InsufficientTokensError,
    InvalidAmountError,
    LedgerError,
    StorageUnavailableError,
    UnknownCatalogItemError,
    UserNotFoundError,
)
from core.middleware import RequestIDMiddleware, SecurityHeadersMiddleware

logger = structlog.get_logger(__name__)

# Most specific class wins; anything else derived from LedgerError is a 400.
LEDGER_ERROR_STATUS: dict[type[LedgerError], int] = {
    DuplicateActivityError: status.HTTP_409_CONFLICT,
    DuplicateBadgeError: status.HTTP_409_CONFLICT,
    DuplicateEmailError: status.HTTP_409_CONFLICT,
    ConstraintViolationError: status.HTTP_409_CONFLICT,
    InsufficientTokensError: status.HTTP_400_BAD_REQUEST,
    InvalidAmountError: status.HTTP_422_UNPROCESSABLE_ENTITY,
    UnknownCatalogItemError: status.HTTP_404_NOT_FOUND,
    UserNotFoundError: status.HTTP_404_NOT_FOUND,
    StorageUnavailableError: status.HTTP_503_SERVICE_UNAVAILABLE,
    ConcurrentUpdateError: status.HTTP_503_SERVICE_UNAVAILABLE,
}


def status_for(exc: LedgerError) -> int:
    for cls in type(exc).__mro__:
        if cls in LEDGER_ERROR_STATUS:
            return LEDGER_ERROR_STATUS[cls]
    return status.HTTP_400_BAD_REQUEST


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan manager for startup and shutdown events."""
    # Startup
    await create_start_app_handler(app)()
    yield
    # Shutdown
    await create_stop_app_handler(app)()


def create_application() -> FastAPI:
    """Create and configure the FastAPI application."""
    application = FastAPI(
        title=settings.APP_NAME,
        description="Gamified loyalty rewards: activities, tokens, streaks, badges and perks",
        version="1.0.0",
        docs_url="/docs" if settings.DEBUG else None,
        redoc_url="/redoc" if settings.DEBUG else None,
        openapi_url="/openapi.json" if settings.DEBUG else None,
        lifespan=lifespan,
    )

    # Add middleware (order matters - processed in reverse)
    # 1. Security headers - added to all responses
    application.add_middleware(SecurityHeadersMiddleware)

    # 2. Request ID - bound to every log line of the request
    application.add_middleware(RequestIDMiddleware)

    # 3. CORS - restricted to specific methods and headers
    application.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins_list,
        allow_credentials=True,
        allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
        allow_headers=["Authorization", "Content-Type", "X-Request-ID"],
        expose_headers=["X-Request-ID"],
    )

    # 4. GZip compression for responses
    application.add_middleware(GZipMiddleware, minimum_size=1000)

    # Include routers
    application.include_router(api_v1_router, prefix="/api/v1")

    @application.exception_handler(LedgerError)
    async def ledger_exception_handler(request: Request, exc: LedgerError) -> JSONResponse:
        """Map ledger rejections and storage failures to HTTP responses."""
        status_code = status_for(exc)
        if status_code >= 500:
            logger.error(
                "ledger_request_failed",
                error=exc.code,
                path=request.url.path,
                method=request.method,
            )
        return JSONResponse(status_code=status_code, content=exc.to_dict())

    # Add global exception handler to ensure CORS headers are present on error responses
    @application.exception_handler(Exception)
    async def global_exception_handler(request: Request, exc: Exception) -> JSONResponse:
        """
        Global exception handler to catch unhandled exceptions.

        Returns a structured JSON body so the CORS middleware can still add its headers.
        """
        logger.exception(
            "unhandled_exception",
            error=str(exc),
            error_type=type(exc).__name__,
            path=request.url.path,
            method=request.method,
        )

        return JSONResponse(
            status_code=500,
            content={
                "detail": "An internal server error occurred. Please try again later.",
                "error": type(exc).__name__ if settings.DEBUG else "INTERNAL_ERROR",
            },
        )

    return application


app = create_application()


@app.get("/health", tags=["Health"])
async def health_check() -> dict[str, str]:
    """Health check endpoint for load balancers and monitoring."""
    return {"status": "healthy", "service": "telco-rewards-api"}


@app.get("/", tags=["Root"])
async def root() -> dict[str, str]:
    """Root endpoint with API information."""
    return {
        "name": settings.APP_NAME,
        "version": "1.0.0",
        "docs": "/docs" if settings.DEBUG else "Documentation disabled in production",
    }
