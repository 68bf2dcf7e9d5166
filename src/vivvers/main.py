"""FastAPI application entry point."""

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from vivvers import __version__
from vivvers.api import api_router, callback_router, page_router
from vivvers.config import get_settings
from vivvers.errors import GENERIC_ERROR_MESSAGE, ErrorKind, VivversError
from vivvers.middleware import SessionGateMiddleware
from vivvers.schemas.common import ErrorResponse, FieldError
from vivvers.services.base import APIError, NotFoundError, RateLimitError

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)

settings = get_settings()


@asynccontextmanager
async def lifespan(_app: FastAPI) -> AsyncIterator[None]:
    """Application lifespan - runs on startup and shutdown."""
    # Startup
    logger.info("Starting %s v%s", settings.app_name, __version__)
    logger.info("Debug mode: %s", settings.debug)
    logger.info("Database: %s", settings.database_url.split("///")[-1])  # Hide path details
    logger.info("Auth provider: %s", "configured" if settings.auth_configured else "NOT CONFIGURED")

    # Validate and log warnings
    warnings = settings.validate_runtime_config()
    if warnings:
        logger.warning("Configuration warnings:")
        for warning in warnings:
            logger.warning("  - %s", warning)
    else:
        logger.info("Configuration validation passed - no warnings")

    logger.info("Application startup complete")

    yield

    # Shutdown
    logger.info("Application shutting down")


app = FastAPI(
    title=settings.app_name,
    version=__version__,
    debug=settings.debug,
    lifespan=lifespan,
)

app.add_middleware(SessionGateMiddleware)


def error_response(
    status_code: int,
    message: str,
    code: str,
    errors: list[FieldError] | None = None,
    headers: dict[str, str] | None = None,
) -> JSONResponse:
    body = ErrorResponse(error=message, code=code, errors=errors)
    return JSONResponse(
        status_code=status_code,
        content=body.model_dump(exclude_none=True),
        headers=headers,
    )


@app.exception_handler(VivversError)
async def domain_error_handler(_request: Request, exc: VivversError) -> JSONResponse:
    """Handle domain errors globally."""
    return error_response(exc.status_code, exc.message, exc.kind.value)


@app.exception_handler(RequestValidationError)
async def validation_error_handler(_request: Request, exc: RequestValidationError) -> JSONResponse:
    """Report every rejected field; the first message doubles as the summary."""
    errors = []
    for error in exc.errors():
        location = [str(part) for part in error["loc"] if part not in ("body", "query", "path")]
        message = error["msg"].removeprefix("Value error, ")
        errors.append(FieldError(field=".".join(location), message=message))

    summary = errors[0].message if errors else "입력 데이터가 올바르지 않습니다"
    return error_response(422, summary, ErrorKind.VALIDATION.value, errors=errors)


@app.exception_handler(NotFoundError)
async def not_found_error_handler(_request: Request, exc: NotFoundError) -> JSONResponse:
    """Handle NotFoundError exceptions from provider clients."""
    return error_response(404, str(exc) or "Resource not found", ErrorKind.NOT_FOUND.value)


@app.exception_handler(RateLimitError)
async def rate_limit_error_handler(_request: Request, exc: RateLimitError) -> JSONResponse:
    """Handle RateLimitError exceptions globally."""
    headers = {}
    if exc.retry_after:
        headers["Retry-After"] = str(exc.retry_after)
    return error_response(
        429, str(exc) or "Rate limit exceeded", "rate_limited", headers=headers
    )


@app.exception_handler(APIError)
async def api_error_handler(_request: Request, exc: APIError) -> JSONResponse:
    """Provider failures surface as a bad gateway; details stay in the log."""
    logger.error("Provider request failed: %s", exc)
    return error_response(502, GENERIC_ERROR_MESSAGE, "provider_error")


@app.exception_handler(Exception)
async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    """Catch-all for unhandled exceptions - always return the error body."""
    logger.exception("Unhandled error on %s %s", request.method, request.url.path, exc_info=exc)
    return error_response(500, GENERIC_ERROR_MESSAGE, "internal_error")


# Include routers
app.include_router(api_router)
app.include_router(callback_router)
app.include_router(page_router)


@app.get("/health")
async def health_check() -> dict[str, str]:
    """Health check endpoint to verify the API is running."""
    return {"status": "healthy", "version": __version__}
