"""FastAPI application entry point.

Wires the routers, maps engine errors to HTTP responses and manages the
database lifecycle.
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, status
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from docmerge.api import merge_router, templates_router
from docmerge.api.schemas import ErrorResponse
from docmerge.core.config import Settings, get_settings
from docmerge.core.logging_config import setup_logging
from docmerge.db.session import close_db, init_db
from docmerge.interfaces.errors import DuplicateVariableError, FormatError, ValidationError

# Initialize logging before importing other modules
setup_logging()
logger = logging.getLogger(__name__)

SERVICE_NAME = "docmerge"
SERVICE_VERSION = "0.1.0"


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Create tables on startup and release the engine on shutdown."""
    settings: Settings = app.state.settings

    logger.info(f"Starting {SERVICE_NAME} {SERVICE_VERSION}")
    await init_db(settings)

    yield

    logger.info(f"Stopping {SERVICE_NAME}")
    await close_db(settings)


def _error(status_code: int, detail: str, error_code: str, extra: dict | None = None) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content=ErrorResponse(detail=detail, error_code=error_code, extra=extra).model_dump(),
    )


def register_exception_handlers(app: FastAPI) -> None:
    """Map engine errors onto HTTP status codes and error codes.

    | Error                  | Status | error_code          |
    |------------------------|--------|---------------------|
    | FormatError            | 400    | FORMAT_ERROR        |
    | DuplicateVariableError | 409    | DUPLICATE_VARIABLE  |
    | ValidationError        | 422    | INVALID_PLACEHOLDER |
    | request validation     | 422    |                     |
    | anything else          | 500    | INTERNAL_ERROR      |
    """

    @app.exception_handler(FormatError)
    async def format_error_handler(request: Request, exc: FormatError):
        logger.warning(f"Rejected document on {request.url.path}: {exc}")
        return _error(status.HTTP_400_BAD_REQUEST, str(exc), "FORMAT_ERROR")

    @app.exception_handler(ValidationError)
    async def placeholder_error_handler(request: Request, exc: ValidationError):
        logger.warning(f"Invalid placeholders on {request.url.path}: {exc.invalid_tokens}")
        return _error(
            status.HTTP_422_UNPROCESSABLE_ENTITY,
            str(exc),
            "INVALID_PLACEHOLDER",
            extra={"invalid_tokens": exc.invalid_tokens},
        )

    @app.exception_handler(DuplicateVariableError)
    async def duplicate_variable_handler(request: Request, exc: DuplicateVariableError):
        logger.warning(f"Duplicate variable on {request.url.path}: {exc.name}")
        return _error(
            status.HTTP_409_CONFLICT,
            str(exc),
            "DUPLICATE_VARIABLE",
            extra={"name": exc.name},
        )

    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(request: Request, exc: RequestValidationError):
        logger.warning(f"Request validation failed on {request.url.path}: {exc.errors()}")
        return JSONResponse(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            content={
                "detail": "Validation error",
                "errors": jsonable_encoder(exc.errors(), custom_encoder={Exception: str}),
            },
        )

    @app.exception_handler(Exception)
    async def general_exception_handler(request: Request, exc: Exception):
        logger.error(f"Unhandled exception on {request.url.path}: {exc}", exc_info=True)
        return _error(
            status.HTTP_500_INTERNAL_SERVER_ERROR,
            "Internal server error",
            "INTERNAL_ERROR",
        )


def create_app(settings: Settings | None = None) -> FastAPI:
    """Create and configure the FastAPI application.

    Args:
        settings: Optional settings. If None, loads from environment.

    Returns:
        Configured FastAPI application instance.
    """
    settings = settings or get_settings()

    app = FastAPI(
        title="Template Merge Engine",
        description="Word template import, variable detection and verified mail merge",
        version=SERVICE_VERSION,
        lifespan=lifespan,
    )
    app.state.settings = settings

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],  # Configure appropriately for production
        allow_methods=["*"],
        allow_headers=["*"],
        expose_headers=["Content-Disposition", "X-Merge-Degraded", "X-Unresolved-Variables"],
    )

    app.include_router(templates_router)
    app.include_router(merge_router)
    register_exception_handlers(app)

    @app.get("/health", tags=["health"])
    async def health_check():
        """Liveness probe."""
        return {
            "status": "healthy",
            "service": SERVICE_NAME,
            "version": SERVICE_VERSION,
        }

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "docmerge.main:app",
        host="0.0.0.0",
        port=8000,
        log_level=get_settings().log_level.lower(),
    )
