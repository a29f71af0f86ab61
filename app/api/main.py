"""FastAPI application for the page relay REST API.

This module configures the FastAPI application with middleware, error
handling, health reporting and browser shutdown.
"""

import logging
import time
import uuid
from contextlib import asynccontextmanager
from datetime import datetime

from fastapi import Depends, FastAPI, HTTPException, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from app.api.routes import relay_router
from app.api.schemas import ErrorResponse, HealthResponse, RelayErrorResponse
from app.api.services import RelayService, get_relay_service, shutdown_relay_service
from app.relay import __version__
from app.relay.config import get_config
from app.relay.errors import RelayError


# Configure logging
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

# Application metadata
APP_VERSION = __version__
APP_TITLE = "Page Relay API"
APP_DESCRIPTION = """
Page Relay renders web pages in a shared headless browser.

## Features

* **Render**: Fetch a page and return its HTML without scripts or inline event handlers
* **Screenshot**: Capture a PNG of the page viewport
* **Health**: Report the state of the browser engine
"""

# Endpoints whose errors use RelayErrorResponse
RELAY_PATHS = ("/render", "/screenshot")

# Global application state
app_start_time = datetime.utcnow()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Close the shared browser when the application stops."""
    yield
    await shutdown_relay_service()


def create_app() -> FastAPI:
    """Create and configure the FastAPI application.

    Returns:
        Configured FastAPI application instance
    """
    app = FastAPI(
        title=APP_TITLE,
        description=APP_DESCRIPTION,
        version=APP_VERSION,
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=get_config().config.get_api_settings()['cors_origins'],
        allow_credentials=True,
        allow_methods=["GET", "POST", "OPTIONS"],
        allow_headers=["*"],
        expose_headers=["X-Request-ID"],
    )

    @app.middleware("http")
    async def add_request_id_and_logging(request: Request, call_next):
        """Add request ID and logging middleware."""
        request_id = str(uuid.uuid4())
        request.state.request_id = request_id

        start_time = time.time()
        logger.info(
            f"Request started: {request.method} {request.url.path}",
            extra={
                "request_id": request_id,
                "method": request.method,
                "path": request.url.path,
                "client_host": request.client.host if request.client else None,
            }
        )

        try:
            response = await call_next(request)
            response.headers["X-Request-ID"] = request_id

            duration = time.time() - start_time
            logger.info(
                f"Request completed: {request.method} {request.url.path} - {response.status_code}",
                extra={
                    "request_id": request_id,
                    "status_code": response.status_code,
                    "duration_ms": round(duration * 1000, 2),
                }
            )
            return response

        except Exception as e:
            duration = time.time() - start_time
            logger.error(
                f"Request failed: {request.method} {request.url.path} - {str(e)}",
                extra={
                    "request_id": request_id,
                    "error": str(e),
                    "duration_ms": round(duration * 1000, 2),
                },
                exc_info=True
            )
            raise

    # Global exception handlers
    @app.exception_handler(HTTPException)
    async def http_exception_handler(request: Request, exc: HTTPException):
        """Handle HTTP exceptions with consistent error format."""
        request_id = getattr(request.state, "request_id", None)

        return JSONResponse(
            status_code=exc.status_code,
            content=ErrorResponse(
                error=f"http_{exc.status_code}",
                message=str(exc.detail),
                request_id=request_id,
                timestamp=datetime.utcnow()
            ).model_dump(mode='json')
        )

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(request: Request, exc: RequestValidationError):
        """Handle request validation errors with detailed information.

        Relay endpoints answer a body that cannot be parsed with the same
        400 ``{success: false, error}`` shape as an invalid URL.
        """
        request_id = getattr(request.state, "request_id", None)

        if request.url.path in RELAY_PATHS:
            logger.info(f"Rejected unparseable body for request {request_id}")
            return JSONResponse(
                status_code=400,
                content=RelayErrorResponse(error="Invalid request body").model_dump(exclude_none=True)
            )

        errors = []
        for error in exc.errors():
            field_path = " -> ".join(str(loc) for loc in error["loc"][1:])
            errors.append({
                "field": field_path,
                "message": error["msg"],
                "type": error["type"],
            })

        return JSONResponse(
            status_code=422,
            content=ErrorResponse(
                error="validation_error",
                message="Request validation failed",
                details={"validation_errors": errors},
                request_id=request_id,
                timestamp=datetime.utcnow()
            ).model_dump(mode='json')
        )

    @app.exception_handler(StarletteHTTPException)
    async def starlette_exception_handler(request: Request, exc: StarletteHTTPException):
        """Handle Starlette HTTP exceptions."""
        request_id = getattr(request.state, "request_id", None)

        return JSONResponse(
            status_code=exc.status_code,
            content=ErrorResponse(
                error=f"http_{exc.status_code}",
                message=str(exc.detail),
                request_id=request_id,
                timestamp=datetime.utcnow()
            ).model_dump(mode='json')
        )

    @app.exception_handler(RelayError)
    async def relay_exception_handler(request: Request, exc: RelayError):
        """Handle relay errors not mapped by a route (browser launch failure)."""
        request_id = getattr(request.state, "request_id", None)

        logger.error(f"Relay error in request {request_id}: {exc}")

        return JSONResponse(
            status_code=500,
            content=RelayErrorResponse(error="Browser engine unavailable").model_dump(exclude_none=True)
        )

    @app.exception_handler(Exception)
    async def general_exception_handler(request: Request, exc: Exception):
        """Handle unexpected exceptions."""
        request_id = getattr(request.state, "request_id", None)

        logger.error(
            f"Unhandled exception in request {request_id}: {str(exc)}",
            exc_info=True
        )

        return JSONResponse(
            status_code=500,
            content=ErrorResponse(
                error="internal_server_error",
                message="An unexpected error occurred",
                request_id=request_id,
                timestamp=datetime.utcnow()
            ).model_dump(mode='json')
        )

    @app.get(
        "/health",
        response_model=HealthResponse,
        tags=["System"],
        summary="Health check",
        description="Returns the current health status of the API and the browser engine"
    )
    async def health_check(relay_service: RelayService = Depends(get_relay_service)):
        """Health check endpoint for monitoring and operational purposes."""
        uptime = (datetime.utcnow() - app_start_time).total_seconds()

        services = {
            "browser_engine": await relay_service.browser_status(),
        }

        service_statuses = list(services.values())
        if all(status == "healthy" for status in service_statuses):
            overall_status = "healthy"
        elif any(status == "unhealthy" for status in service_statuses):
            overall_status = "unhealthy"
        else:
            overall_status = "degraded"

        return HealthResponse(
            status=overall_status,
            version=APP_VERSION,
            timestamp=datetime.utcnow(),
            services=services,
            uptime_seconds=uptime
        )

    @app.get("/", include_in_schema=False)
    async def root():
        """Service banner."""
        return JSONResponse(
            content={
                "message": "Page Relay API",
                "version": APP_VERSION,
                "endpoints": ["/render", "/screenshot", "/health"],
                "documentation": "/docs",
            }
        )

    app.include_router(relay_router)

    return app


# Create the application instance
app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "app.api.main:app",
        host="0.0.0.0",
        port=8000,
        log_level="info",
        access_log=True,
    )
