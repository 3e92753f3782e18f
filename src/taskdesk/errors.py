"""Error taxonomy and the application-level exception handlers.

Inner layers (policy checks, strategies, services) raise the most
specific AppError subclass. The handlers registered here are the only
place an error is turned into an HTTP response: kind → status code,
wrapped in the standard ApiResponse envelope.
"""

import structlog
from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from taskdesk.schemas.common import ApiResponse

logger = structlog.get_logger()


class AppError(Exception):
    """Base class for errors that map onto a client-facing status code."""

    status_code = 500
    log_event = "error.app"

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class BadRequest(AppError):
    """Validation failure or business-rule violation."""

    status_code = 400
    log_event = "error.bad_request"


class Unauthorized(AppError):
    """Missing, invalid or expired credentials."""

    status_code = 401
    log_event = "error.unauthorized"


class Forbidden(AppError):
    """Authenticated, but the policy denies the operation."""

    status_code = 403
    log_event = "error.forbidden"


class NotFound(AppError):
    status_code = 404
    log_event = "error.not_found"

    @classmethod
    def for_resource(cls, resource: str, field: str, value) -> "NotFound":
        return cls(f"{resource} not found with {field}: {value}")


def _envelope(status_code: int, message: str, errors=None, headers=None) -> JSONResponse:
    body = ApiResponse.failure(message, errors=errors)
    return JSONResponse(
        status_code=status_code,
        content=jsonable_encoder(body),
        headers=headers,
    )


async def app_error_handler(request: Request, exc: AppError) -> JSONResponse:
    logger.warning(
        exc.log_event,
        path=request.url.path,
        method=request.method,
        message=exc.message,
    )
    headers = {"WWW-Authenticate": "Bearer"} if isinstance(exc, Unauthorized) else None
    return _envelope(exc.status_code, exc.message, headers=headers)


async def validation_error_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    errors = {}
    for err in exc.errors():
        # ("body", "title") → "title"; ("query", "assignmentType") → "assignmentType"
        loc = [str(part) for part in err.get("loc", ()) if part not in ("body", "query", "path")]
        errors[".".join(loc) or "request"] = err.get("msg", "Invalid value")
    logger.warning("error.validation", path=request.url.path, errors=errors)
    return _envelope(400, "Validation failed", errors=errors)


async def http_error_handler(
    request: Request, exc: StarletteHTTPException
) -> JSONResponse:
    logger.warning("error.http", path=request.url.path, status=exc.status_code)
    return _envelope(exc.status_code, str(exc.detail), headers=getattr(exc, "headers", None))


async def unexpected_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.error(
        "error.unexpected",
        path=request.url.path,
        method=request.method,
        error=str(exc),
        exc_info=exc,
    )
    return _envelope(500, "An unexpected error occurred")


def register_exception_handlers(app: FastAPI) -> None:
    """Install the single error-reporting path on the app."""
    app.add_exception_handler(AppError, app_error_handler)
    app.add_exception_handler(RequestValidationError, validation_error_handler)
    app.add_exception_handler(StarletteHTTPException, http_error_handler)
    app.add_exception_handler(Exception, unexpected_error_handler)
