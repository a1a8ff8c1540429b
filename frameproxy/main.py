"""
FastAPI Frame Proxy Application Factory
=======================================

Entry point for the frame proxy service: a single-hop relay that fetches a
resource on the caller's behalf and strips the headers that would stop it
from rendering inside an iframe, plus HEAD-based frameability checks.

Architecture:
    Browser page → Frame Proxy (this service) → Target site

Routers:
    - /proxy/*      : Relay a target with frame-blocking headers removed
    - /check        : Frameability verdict with custom header reporting
    - /broken       : Permissive frameability verdict
    - /health       : Health check endpoint

Environment Variables (all optional, see frameproxy/config.py):
    - LOG_LEVEL: Logging level (default: INFO)
    - ALLOWED_ORIGINS: Comma-separated CORS origins for the API (default: *)
    - UPSTREAM_USER_AGENT: Browser User-Agent sent upstream
    - UPSTREAM_MAX_REDIRECTS: Redirect hops followed (default: 5)
    - PROXY_* / CHECK_* / BROKEN_*: Per-endpoint switches and timeouts

Running the Service:
    Development:
        uvicorn frameproxy.main:app --reload --host 0.0.0.0 --port 3000

    Production:
        uvicorn frameproxy.main:app --host 0.0.0.0 --port 3000 --workers 4

    With custom log level:
        LOG_LEVEL=DEBUG uvicorn frameproxy.main:app --reload
"""

import logging
import sys
from contextlib import asynccontextmanager
from typing import Any, Dict

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
import uvicorn

from frameproxy import __version__
from frameproxy.config import get_settings, validate_configuration
from frameproxy.inspection import inspection_router
from frameproxy.models import ErrorResponse, HealthResponse
from frameproxy.proxy import PROXY_PREFIX, proxy_router


SERVICE_NAME = "frameproxy"


class APICORSMiddleware(CORSMiddleware):
    """
    CORS for the service's own endpoints.

    Relayed /proxy responses carry the upstream's Access-Control-* headers,
    or the proxy profile's permissive set, and pass through untouched.
    """

    async def __call__(self, scope, receive, send) -> None:
        if scope["type"] == "http" and scope["path"].startswith(PROXY_PREFIX):
            await self.app(scope, receive, send)
            return
        await super().__call__(scope, receive, send)


# Configure structured JSON logging
def setup_logging(log_level: str = "INFO") -> None:
    """
    Configure structured logging for the application.

    Args:
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
    """
    logging.basicConfig(
        level=getattr(logging, log_level.upper()),
        format='{"timestamp": "%(asctime)s", "level": "%(levelname)s", "logger": "%(name)s", "message": "%(message)s", "module": "%(module)s", "function": "%(funcName)s"}',
        handlers=[logging.StreamHandler(sys.stdout)]
    )


# Lifespan context manager for startup/shutdown
@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan manager.

    Startup tasks:
        - Load configuration from environment
        - Configure logging
        - Log configuration warnings

    The relay keeps no shared resources, so shutdown only logs.
    """
    settings = get_settings()

    setup_logging(settings.LOG_LEVEL)
    logger = logging.getLogger("frameproxy.main")

    report = validate_configuration(settings)
    for error in report["errors"]:
        logger.error(f"Configuration error: {error}")
    for warning in report["warnings"]:
        logger.warning(f"Configuration warning: {warning}")

    logger.info(
        "Frame proxy service started",
        extra={
            "service": SERVICE_NAME,
            "version": __version__,
            "max_redirects": settings.UPSTREAM_MAX_REDIRECTS,
            "log_level": settings.LOG_LEVEL,
        }
    )

    yield

    logger.info("Frame proxy service shutdown complete")


# Create FastAPI application
def create_app() -> FastAPI:
    """
    Application factory function.

    Creates and configures the FastAPI application instance with:
        - Lifespan management
        - CORS middleware
        - Route handlers
        - Exception handlers

    Returns:
        FastAPI: Configured application instance
    """
    settings = get_settings()

    app = FastAPI(
        title="Frame Proxy",
        description="Relay that makes third-party pages embeddable in iframes, plus frameability checks",
        version=__version__,
        lifespan=lifespan,
        docs_url="/docs",
        redoc_url="/redoc"
    )

    # Configure CORS for the API itself; relayed responses are left alone
    app.add_middleware(
        APICORSMiddleware,
        allow_origins=settings.allowed_origins_list,
        allow_methods=["GET", "POST", "OPTIONS"],
        allow_headers=["*"],
    )

    app.include_router(proxy_router, tags=["Proxy"])
    app.include_router(inspection_router, tags=["Inspection"])

    # Health check endpoint
    @app.get("/health", tags=["System"], response_model=HealthResponse)
    async def health_check() -> Dict[str, str]:
        """
        Health check endpoint.

        Returns:
            dict: Service health information
        """
        return {
            "status": "ok",
            "service": SERVICE_NAME,
            "version": __version__
        }

    # Root endpoint
    @app.get("/", tags=["System"])
    async def root() -> Dict[str, Any]:
        """
        Root endpoint with service information.

        Returns:
            dict: Service metadata and available endpoints
        """
        return {
            "status": "ok",
            "service": SERVICE_NAME,
            "version": __version__,
            "endpoints": {
                "health": "/health",
                "docs": "/docs",
                "proxy": "/proxy/{url-or-token}",
                "check": "/check",
                "broken": "/broken"
            }
        }

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
        """
        Answer unparseable or non-object JSON bodies with 400 and an
        ``error`` message, matching the other input errors.
        """
        logger = logging.getLogger("frameproxy.main")
        logger.info(
            "Rejected malformed request body",
            extra={"path": request.url.path, "errors": len(exc.errors())}
        )
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content=ErrorResponse(error="Request body must be a JSON object").to_payload()
        )

    # Global exception handler
    @app.exception_handler(Exception)
    async def global_exception_handler(request: Request, exc: Exception) -> JSONResponse:
        """
        Global exception handler for unhandled errors.

        Logs the error and returns a standardized error response without
        exposing a stack trace.
        """
        logger = logging.getLogger("frameproxy.main")
        logger.error(
            f"Unhandled exception: {str(exc)}",
            extra={
                "path": request.url.path,
                "method": request.method,
                "exception_type": type(exc).__name__
            },
            exc_info=True
        )

        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content=ErrorResponse(error="An unexpected error occurred").to_payload()
        )

    return app


# Create app instance for uvicorn
app = create_app()


if __name__ == "__main__":
    """
    Direct execution entry point: python -m frameproxy.main
    Using the uvicorn command is recommended for production.
    """
    settings = get_settings()

    uvicorn.run(
        "frameproxy.main:app",
        host=settings.PROXY_HOST,
        port=settings.PROXY_PORT,
        log_level=settings.LOG_LEVEL.lower()
    )
