"""
Error mapping for the HTTP API.

Translates domain exceptions into JSON error bodies with a stable shape.
"""

from datetime import datetime, timezone
from http import HTTPStatus

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from internal.domain.errors import (
    BusinessRuleViolationError,
    CustomerAlreadyExistsError,
    DomainError,
    DomainValidationError,
    ProductServiceUnavailableError,
    ResourceNotFoundError,
)
from pkg.logger.logger import get_logger

logger = get_logger(__name__)


GENERIC_ERROR_MESSAGE = "An unexpected error occurred"


def error_body(status_code: int, code: str, message: str) -> dict:
    """Build the error payload returned by every failing endpoint."""
    return {
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "status": status_code,
        "error": HTTPStatus(status_code).phrase,
        "code": code,
        "message": message,
    }


def _error_response(status_code: int, code: str, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content=error_body(status_code, code, message))


def classify(exc: DomainError) -> tuple[int, str]:
    """
    HTTP status and error code for a domain error.

    Args:
        exc: Domain error raised by a use case.

    Returns:
        Tuple of (status code, error code).
    """
    if isinstance(exc, CustomerAlreadyExistsError):
        return status.HTTP_409_CONFLICT, "CUSTOMER_ALREADY_EXISTS"
    if isinstance(exc, BusinessRuleViolationError):
        return status.HTTP_400_BAD_REQUEST, "BUSINESS_RULE_VIOLATION"
    if isinstance(exc, DomainValidationError):
        return status.HTTP_400_BAD_REQUEST, "VALIDATION_ERROR"
    if isinstance(exc, ResourceNotFoundError):
        return status.HTTP_404_NOT_FOUND, "RESOURCE_NOT_FOUND"
    if isinstance(exc, ProductServiceUnavailableError):
        return status.HTTP_424_FAILED_DEPENDENCY, "PRODUCT_SERVICE_UNAVAILABLE"
    return status.HTTP_500_INTERNAL_SERVER_ERROR, "INTERNAL_ERROR"


async def domain_error_handler(request: Request, exc: DomainError) -> JSONResponse:
    """Map domain errors to their HTTP status."""
    status_code, code = classify(exc)
    if status_code >= 500:
        logger.exception(
            "Unhandled domain error",
            path=request.url.path,
            code=code,
            exc_info=(type(exc), exc, exc.__traceback__),
        )
        return _error_response(status_code, code, GENERIC_ERROR_MESSAGE)

    logger.warning(
        "Request rejected",
        path=request.url.path,
        status_code=status_code,
        code=code,
        error=exc.message,
    )
    return _error_response(status_code, code, exc.message)


async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Map schema validation failures to 400."""
    messages = []
    for err in exc.errors():
        msg = str(err.get("msg", "Invalid value"))
        if msg.startswith("Value error, "):
            msg = msg[len("Value error, "):]
        location = ".".join(str(part) for part in err.get("loc", ()) if part != "body")
        messages.append(f"{location}: {msg}" if location else msg)

    message = "; ".join(messages) or "Invalid request"
    logger.warning("Request validation failed", path=request.url.path, error=message)
    return _error_response(status.HTTP_400_BAD_REQUEST, "VALIDATION_ERROR", message)


async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    """Give framework HTTP errors the same body shape."""
    code = HTTPStatus(exc.status_code).name
    return _error_response(exc.status_code, code, str(exc.detail))


async def unexpected_error_handler(request: Request, exc: Exception) -> JSONResponse:
    """Last resort: log everything, tell the caller nothing."""
    logger.exception(
        "Unexpected error",
        path=request.url.path,
        method=request.method,
        error=repr(exc),
        exc_info=(type(exc), exc, exc.__traceback__),
    )
    return _error_response(status.HTTP_500_INTERNAL_SERVER_ERROR, "INTERNAL_ERROR", GENERIC_ERROR_MESSAGE)


def register_exception_handlers(app: FastAPI) -> None:
    """Install the handlers on an application."""
    app.add_exception_handler(DomainError, domain_error_handler)
    app.add_exception_handler(RequestValidationError, request_validation_handler)
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(Exception, unexpected_error_handler)
