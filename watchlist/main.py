import logging
import uuid
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from pydantic import ValidationError
from sqlalchemy.exc import DatabaseError, DBAPIError, OperationalError
from sqlalchemy.exc import TimeoutError as SQLAlchemyTimeoutError

from watchlist.api import my_list
from watchlist.cache import connect_cache
from watchlist.db.connection import create_engine, create_session_factory, init_models
from watchlist.schemas.error import ErrorType
from watchlist.services.errors import MyListError, MyListErrorKind
from watchlist.settings import AppSettings, get_settings
from watchlist.utils.error_responses import (
    build_error_response,
    build_validation_error_response,
    validation_details_from_errors,
)
from watchlist.utils.request_context import clear_request_id, get_request_id, set_request_id

logger = logging.getLogger(__name__)

API_PREFIX = "/api/v1/my-list"

_ERROR_KIND_STATUS: dict[MyListErrorKind, int] = {
    MyListErrorKind.USER_NOT_FOUND: status.HTTP_404_NOT_FOUND,
    MyListErrorKind.CONTENT_NOT_FOUND: status.HTTP_404_NOT_FOUND,
    MyListErrorKind.ITEM_NOT_FOUND: status.HTTP_404_NOT_FOUND,
    MyListErrorKind.DUPLICATE_ITEM: status.HTTP_409_CONFLICT,
}


def configure_logging(settings: AppSettings) -> None:
    logging.basicConfig(
        level=settings.log_level_numeric,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )


def _log_config_warnings(settings: AppSettings) -> None:
    warnings = settings.optional_config_warnings()
    if not warnings:
        return
    logger.warning("=" * 60)
    logger.warning("Environment Configuration Warnings:")
    for warning in warnings:
        logger.warning(f"  - {warning}")
    logger.warning("=" * 60)


def _sanitize_database_url(url: str) -> str:
    """Hide the password component of a database URL for logging."""
    if "://" not in url:
        return url

    scheme, rest = url.split("://", 1)
    if "@" not in rest:
        return url

    auth, host_db = rest.split("@", 1)
    if ":" in auth:
        user, _ = auth.split(":", 1)
        return f"{scheme}://{user}:***@{host_db}"
    return f"{scheme}://{auth}@{host_db}"


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Build the engine, session factory and cache backend for the app's lifetime."""
    settings: AppSettings = app.state.settings
    _log_config_warnings(settings)

    logger.info("=" * 60)
    logger.info("Watchlist API - Database Preflight Check")
    logger.info(f"Database Type: {settings.database_type.upper()}")
    logger.info(f"Database URL: {_sanitize_database_url(settings.resolved_database_url)}")
    logger.info("=" * 60)

    engine = create_engine(settings)
    if settings.database_type == "sqlite":
        await init_models(engine)

    app.state.engine = engine
    app.state.session_factory = create_session_factory(engine)
    app.state.cache = await connect_cache(settings)
    logger.info(f"Cache backend: {type(app.state.cache).__name__}")

    try:
        yield
    finally:
        logger.info("Shutting down Watchlist API")
        await app.state.cache.close()
        await engine.dispose()


def _error_json(status_code: int, payload) -> JSONResponse:
    return JSONResponse(status_code=status_code, content=payload.model_dump(mode="json"))


async def my_list_error_handler(request: Request, exc: MyListError):
    """Translate business errors into 404/409 responses."""
    status_code = _ERROR_KIND_STATUS[exc.kind]
    logger.info(
        "MyList request %s to %s rejected: %s",
        get_request_id(),
        request.url.path,
        exc.kind.value,
    )
    error_type = (
        ErrorType.CONFLICT if status_code == status.HTTP_409_CONFLICT else ErrorType.NOT_FOUND
    )
    return _error_json(
        status_code,
        build_error_response(
            error_type=error_type,
            message=exc.message,
            detail=exc.kind.value,
            status_code=status_code,
            path=str(request.url.path),
        ),
    )


async def validation_exception_handler(request: Request, exc: RequestValidationError):
    """Handle FastAPI request validation errors."""
    errors = validation_details_from_errors(exc.errors())
    logger.warning(
        "Validation error for request %s to %s: %s errors",
        get_request_id(),
        request.url.path,
        len(errors),
    )
    return _error_json(
        status.HTTP_422_UNPROCESSABLE_ENTITY,
        build_validation_error_response(
            message="Request validation failed",
            detail=f"{len(errors)} validation error(s)",
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            path=str(request.url.path),
            errors=errors,
        ),
    )


async def pydantic_validation_exception_handler(request: Request, exc: ValidationError):
    """Handle Pydantic validation errors raised outside request parsing."""
    errors = validation_details_from_errors(exc.errors())
    logger.warning(
        "Pydantic validation error for request %s to %s: %s errors",
        get_request_id(),
        request.url.path,
        len(errors),
    )
    return _error_json(
        status.HTTP_422_UNPROCESSABLE_ENTITY,
        build_validation_error_response(
            message="Data validation failed",
            detail=f"{len(errors)} validation error(s)",
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            path=str(request.url.path),
            errors=errors,
        ),
    )


async def database_connection_exception_handler(request: Request, exc: Exception):
    """Handle database connection errors."""
    logger.error(
        "Database connection error for request %s to %s: %s",
        get_request_id(),
        request.url.path,
        str(exc),
    )
    return _error_json(
        status.HTTP_503_SERVICE_UNAVAILABLE,
        build_error_response(
            error_type=ErrorType.DATABASE_ERROR,
            message="Database connection failed",
            detail="Unable to connect to the database. Please try again later.",
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            path=str(request.url.path),
            retry_after=5,
        ),
    )


async def database_timeout_exception_handler(request: Request, exc: SQLAlchemyTimeoutError):
    """Handle connection pool timeouts."""
    logger.error(
        "Database timeout error for request %s to %s: %s",
        get_request_id(),
        request.url.path,
        str(exc),
    )
    return _error_json(
        status.HTTP_504_GATEWAY_TIMEOUT,
        build_error_response(
            error_type=ErrorType.TIMEOUT_ERROR,
            message="Database query timeout",
            detail="The database took too long to respond. Please try again.",
            status_code=status.HTTP_504_GATEWAY_TIMEOUT,
            path=str(request.url.path),
            retry_after=3,
        ),
    )


async def database_generic_exception_handler(request: Request, exc: DatabaseError):
    """Handle generic database errors."""
    logger.error(
        "Database error for request %s to %s: %s",
        get_request_id(),
        request.url.path,
        str(exc),
    )
    return _error_json(
        status.HTTP_500_INTERNAL_SERVER_ERROR,
        build_error_response(
            error_type=ErrorType.DATABASE_ERROR,
            message="Database operation failed",
            detail="An error occurred while accessing the database.",
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            path=str(request.url.path),
        ),
    )


async def generic_exception_handler(request: Request, exc: Exception):
    """Handle all other unhandled exceptions."""
    logger.exception(
        "Unhandled exception for request %s to %s: %s",
        get_request_id(),
        request.url.path,
        type(exc).__name__,
    )
    return _error_json(
        status.HTTP_500_INTERNAL_SERVER_ERROR,
        build_error_response(
            error_type=ErrorType.INTERNAL_ERROR,
            message="Internal server error",
            detail=None,
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            path=str(request.url.path),
        ),
    )


async def add_request_id(request: Request, call_next):
    """Add unique request ID to each request for tracking."""
    request_id = str(uuid.uuid4())
    token = set_request_id(request_id)
    try:
        response = await call_next(request)
    finally:
        clear_request_id(token)
    response.headers["X-Request-ID"] = request_id
    return response


def create_app(settings: AppSettings | None = None) -> FastAPI:
    """Assemble the API; resources are created in :func:`lifespan`."""
    settings = settings or get_settings()
    configure_logging(settings)

    app = FastAPI(
        title="Watchlist API",
        version="0.1.0",
        description="Per-user My List of movies and TV shows.",
        lifespan=lifespan,
        redirect_slashes=False,
    )
    app.state.settings = settings

    app.middleware("http")(add_request_id)

    app.add_exception_handler(MyListError, my_list_error_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(ValidationError, pydantic_validation_exception_handler)
    app.add_exception_handler(OperationalError, database_connection_exception_handler)
    app.add_exception_handler(DBAPIError, database_connection_exception_handler)
    app.add_exception_handler(SQLAlchemyTimeoutError, database_timeout_exception_handler)
    app.add_exception_handler(DatabaseError, database_generic_exception_handler)
    app.add_exception_handler(Exception, generic_exception_handler)

    @app.get("/health", tags=["system"])
    async def healthcheck() -> dict[str, str]:
        """Simple health endpoint for readiness checks."""
        return {"status": "ok"}

    app.include_router(my_list.router, prefix=API_PREFIX, tags=["my-list"])
    return app


def run() -> None:
    """Console entry point: serve the API with uvicorn."""
    import uvicorn

    uvicorn.run("watchlist.main:create_app", factory=True, host="0.0.0.0", port=8000)
