"""Application error taxonomy and the handlers that turn it into JSON responses.

Services raise the exceptions below; the handlers registered on the app map
each one to its status code and a ``{"code", "message"}`` body.
"""

from __future__ import annotations

from typing import Any

import structlog
from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

log = structlog.get_logger(__name__)

ERROR_CODES = {
    400: "BAD_REQUEST",
    401: "UNAUTHORIZED",
    403: "FORBIDDEN",
    404: "NOT_FOUND",
    405: "METHOD_NOT_ALLOWED",
    409: "CONFLICT",
    422: "VALIDATION_ERROR",
    500: "INTERNAL_ERROR",
    503: "SERVICE_UNAVAILABLE",
}


class AppError(Exception):
    status_code = 500
    code = "INTERNAL_ERROR"

    def __init__(self, message: str, details: dict[str, Any] | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.details = details


class BadRequestError(AppError):
    status_code = 400
    code = "BAD_REQUEST"


class AuthenticationError(AppError):
    status_code = 401
    code = "UNAUTHORIZED"


class NotFoundError(AppError):
    status_code = 404
    code = "NOT_FOUND"


class ConflictError(AppError):
    status_code = 409
    code = "CONFLICT"


class UpstreamUnavailableError(AppError):
    """A remote dependency (the NASA API or the APOD site) could not be used."""

    status_code = 503
    code = "SERVICE_UNAVAILABLE"


def error_response(
    status_code: int, code: str, message: str, details: Any = None
) -> JSONResponse:
    content: dict[str, Any] = {"code": code, "message": message}
    if details:
        content["details"] = jsonable_encoder(details)
    return JSONResponse(status_code=status_code, content=content)


def handle_app_error(request: Request, exc: AppError) -> JSONResponse:
    log_method = log.error if exc.status_code >= 500 else log.warning
    log_method(
        "app_error",
        path=request.url.path,
        code=exc.code,
        status_code=exc.status_code,
        error_message=exc.message,
    )
    return error_response(exc.status_code, exc.code, exc.message, exc.details)


def handle_http_exception(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    code = ERROR_CODES.get(exc.status_code, "HTTP_ERROR")
    log.warning(
        "http_exception",
        path=request.url.path,
        code=code,
        status_code=exc.status_code,
        error_message=str(exc.detail),
    )
    response = error_response(exc.status_code, code, str(exc.detail))
    if exc.headers:
        response.headers.update(exc.headers)
    return response


def handle_validation_error(request: Request, exc: RequestValidationError) -> JSONResponse:
    log.warning("request_validation_failed", path=request.url.path, errors=len(exc.errors()))
    return error_response(400, "VALIDATION_ERROR", "Invalid request data", exc.errors())


def handle_unexpected_error(request: Request, exc: Exception) -> JSONResponse:
    log.error(
        "unexpected_error",
        path=request.url.path,
        exception_type=type(exc).__name__,
        exc_info=exc,
    )
    return error_response(500, "INTERNAL_ERROR", "Internal server error")


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(AppError, handle_app_error)
    app.add_exception_handler(StarletteHTTPException, handle_http_exception)
    app.add_exception_handler(RequestValidationError, handle_validation_error)
    app.add_exception_handler(Exception, handle_unexpected_error)
