"""Application errors and the uniform JSON error envelope.

Services raise AppError subclasses; the handlers registered in
register_error_handlers() turn them (and framework errors) into:

    {"success": false, "status_code": 403, "error": "FORBIDDEN",
     "message": "...", "data": null}
"""

from typing import Any, Optional

import structlog
from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

logger = structlog.get_logger()


class AppError(Exception):
    """Base class for errors that map onto an HTTP response."""

    status_code: int = 500
    code: str = "INTERNAL_ERROR"
    default_message: str = "An unexpected error occurred"

    def __init__(self, message: Optional[str] = None, details: Any = None):
        self.message = message or self.default_message
        self.details = details
        super().__init__(self.message)


class ValidationError(AppError):
    status_code = 422
    code = "VALIDATION_ERROR"
    default_message = "Invalid input"


class NotFound(AppError):
    status_code = 404
    code = "NOT_FOUND"
    default_message = "Resource not found"


class Forbidden(AppError):
    status_code = 403
    code = "FORBIDDEN"
    default_message = "You do not own this resource"


class Conflict(AppError):
    status_code = 409
    code = "CONFLICT"
    default_message = "Conflict"


class InvalidCredentials(AppError):
    status_code = 401
    code = "INVALID_CREDENTIALS"
    default_message = "Invalid credentials"


class MissingToken(AppError):
    status_code = 401
    code = "MISSING_TOKEN"
    default_message = "Authentication required"


class InvalidToken(AppError):
    status_code = 401
    code = "INVALID_TOKEN"
    default_message = "Invalid or expired token"


class TokenMismatch(AppError):
    status_code = 401
    code = "TOKEN_MISMATCH"
    default_message = "Refresh token has been revoked or already used"


class UnknownUser(AppError):
    status_code = 401
    code = "UNKNOWN_USER"
    default_message = "User for this token no longer exists"


class UpstreamFailure(AppError):
    status_code = 502
    code = "UPSTREAM_FAILURE"
    default_message = "Media storage request failed"


class InternalError(AppError):
    pass


_HTTP_CODES = {
    400: "BAD_REQUEST",
    401: "UNAUTHORIZED",
    403: "FORBIDDEN",
    404: "NOT_FOUND",
    405: "METHOD_NOT_ALLOWED",
    409: "CONFLICT",
    413: "PAYLOAD_TOO_LARGE",
    422: "VALIDATION_ERROR",
    429: "RATE_LIMITED",
}


def error_response(
    status_code: int,
    code: str,
    message: str,
    details: Any = None,
    headers: Optional[dict] = None,
) -> JSONResponse:
    payload = {
        "success": False,
        "status_code": status_code,
        "error": code,
        "message": message,
        "data": None,
    }
    if details is not None:
        payload["details"] = jsonable_encoder(details)
    return JSONResponse(status_code=status_code, content=payload, headers=headers)


def register_error_handlers(app: FastAPI) -> None:
    @app.exception_handler(AppError)
    async def handle_app_error(request: Request, exc: AppError):
        if exc.status_code >= 500:
            logger.error(
                "request.failed",
                path=request.url.path,
                error=exc.code,
                message=exc.message,
            )
        headers = {"WWW-Authenticate": "Bearer"} if exc.status_code == 401 else None
        return error_response(
            exc.status_code, exc.code, exc.message, exc.details, headers=headers
        )

    @app.exception_handler(RequestValidationError)
    async def handle_validation_error(request: Request, exc: RequestValidationError):
        return error_response(422, "VALIDATION_ERROR", "Invalid input", exc.errors())

    @app.exception_handler(StarletteHTTPException)
    async def handle_http_exception(request: Request, exc: StarletteHTTPException):
        return error_response(
            exc.status_code,
            _HTTP_CODES.get(exc.status_code, "HTTP_ERROR"),
            str(exc.detail),
            headers=getattr(exc, "headers", None),
        )

    @app.exception_handler(Exception)
    async def handle_unexpected(request: Request, exc: Exception):
        logger.exception("request.unhandled_exception", path=request.url.path)
        return error_response(500, "INTERNAL_ERROR", "An unexpected error occurred")
