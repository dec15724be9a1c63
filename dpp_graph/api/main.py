"""
FastAPI application factory and main entry point.
"""

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

import structlog
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from dpp_graph.api.middleware import WideEventMiddleware
from dpp_graph.api.routes import documents, health, resolve, targets
from dpp_graph.core.config import settings
from dpp_graph.core.exceptions import (
    DatabaseError,
    DPPGraphError,
    ExternalServiceError,
    InvalidInputError,
    ResourceNotFoundError,
)
from dpp_graph.core.logging import configure_logging
from dpp_graph.db import close_db, init_db

# Configure structured logging with wide events support
configure_logging(
    json_logs=not settings.debug,  # JSON in production, console in dev
    log_level="DEBUG" if settings.debug else "INFO",
)

logger = structlog.get_logger()


def _error_response(status_code: int, message: str, error_type: str, details: object = None) -> JSONResponse:
    content = {"error": {"message": message, "type": error_type}}
    if details is not None:
        content["error"]["details"] = details
    return JSONResponse(status_code=status_code, content=content)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan handler."""
    logger.info("Starting DPP Graph API", version=settings.app_version)
    await init_db()
    logger.info("Database initialized")

    if not settings.has_contact_email:
        logger.warning(
            "CONTACT_EMAIL not configured. "
            "Outbound requests identify only as the bare User-Agent."
        )

    yield

    logger.info("Shutting down DPP Graph API")
    await close_db()
    logger.info("Database connections closed")


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""
    app = FastAPI(
        title=settings.app_name,
        version=settings.app_version,
        description="Resolution and expansion of linked Digital Product Passport documents",
        docs_url="/docs" if settings.debug else None,
        redoc_url="/redoc" if settings.debug else None,
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Wide Events middleware - canonical log line per request
    app.add_middleware(WideEventMiddleware)

    app.include_router(health.router, tags=["Health"])
    app.include_router(resolve.router, prefix="/api/v1", tags=["Resolution"])
    app.include_router(documents.router, prefix="/api/v1/documents", tags=["Documents"])
    app.include_router(targets.router, prefix="/api/v1/targets", tags=["Targets"])

    # Exception Handlers
    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(request: Request, exc: RequestValidationError):
        """Handle FastAPI validation errors"""
        logger.warning("Validation error", url=str(request.url), errors=exc.errors())
        return _error_response(422, "Validation failed", "validation_error", jsonable_errors(exc))

    @app.exception_handler(InvalidInputError)
    async def invalid_input_exception_handler(request: Request, exc: InvalidInputError):
        """Handle malformed identifiers, URLs and options"""
        logger.info("Invalid input", url=str(request.url), message=exc.message)
        return _error_response(400, exc.message, "invalid_input_error", exc.details)

    @app.exception_handler(ResourceNotFoundError)
    async def not_found_exception_handler(request: Request, exc: ResourceNotFoundError):
        """Handle not found errors"""
        logger.info("Resource not found", url=str(request.url), message=exc.message)
        return _error_response(404, exc.message, "not_found_error", exc.details)

    @app.exception_handler(ExternalServiceError)
    async def external_service_exception_handler(request: Request, exc: ExternalServiceError):
        """Handle upstream endpoints that could not be used"""
        logger.warning("External service error", url=str(request.url), message=exc.message)
        return _error_response(502, exc.message, "external_service_error", exc.details)

    @app.exception_handler(DatabaseError)
    async def database_exception_handler(request: Request, exc: DatabaseError):
        """Handle database errors"""
        logger.error("Database error", url=str(request.url), error=exc.message, exc_info=True)
        return _error_response(503, "Database operation failed", "database_error")

    @app.exception_handler(DPPGraphError)
    async def app_exception_handler(request: Request, exc: DPPGraphError):
        """Handle custom app exceptions"""
        logger.error("App error", url=str(request.url), message=exc.message)
        return _error_response(500, exc.message, "application_error", exc.details)

    @app.exception_handler(Exception)
    async def global_exception_handler(request: Request, exc: Exception):
        """Handle unexpected exceptions"""
        logger.error("Unexpected error", url=str(request.url), error=str(exc), exc_info=True)

        # Don't expose internal details in production
        message = str(exc) if settings.debug else "An unexpected error occurred"
        return _error_response(500, message, "internal_server_error")

    return app


def jsonable_errors(exc: RequestValidationError) -> list[dict]:
    """Validation errors without non-serialisable context objects."""
    return [
        {"loc": list(error.get("loc", ())), "msg": error.get("msg"), "type": error.get("type")}
        for error in exc.errors()
    ]


app = create_app()


def run() -> None:
    import uvicorn

    uvicorn.run(
        "dpp_graph.api.main:app",
        host=settings.host,
        port=settings.port,
        reload=settings.debug,
    )


if __name__ == "__main__":
    run()
