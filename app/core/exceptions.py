"""
Error taxonomy and the FastAPI handlers that turn it into JSON.

Every error response body carries an "error" field. Unexpected exceptions
are logged with their traceback and answered with a generic message.
"""

import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

logger = logging.getLogger(__name__)


class AppError(Exception):
    """Base class for errors that map onto an HTTP status."""

    status_code = 500
    message = "Internal server error"

    def __init__(self, message: str = None):
        super().__init__(message or self.message)
        self.message = message or self.message

    def headers(self) -> dict:
        return {}


class ValidationError(AppError):
    status_code = 400
    message = "Invalid input"


class NotFoundError(AppError):
    status_code = 404
    message = "Not found"


class AuthenticationError(AppError):
    status_code = 401
    message = "Authentication required"

    def __init__(self, message: str = None, realm: str = "Careers Admin"):
        super().__init__(message)
        self.realm = realm

    def headers(self) -> dict:
        return {"WWW-Authenticate": f'Basic realm="{self.realm}"'}


class TooManyAttemptsError(AppError):
    status_code = 429
    message = "Too many failed login attempts"

    def __init__(self, retry_after: int, message: str = None, realm: str = "Careers Admin"):
        super().__init__(message)
        self.retry_after = retry_after
        self.realm = realm

    def headers(self) -> dict:
        # Challenge again so browsers prompt once the lockout ends
        return {
            "Retry-After": str(self.retry_after),
            "WWW-Authenticate": f'Basic realm="{self.realm}"',
        }


class StorageError(AppError):
    status_code = 500
    message = "Storage unavailable"


class PayloadTooLargeError(StorageError):
    status_code = 413
    message = "File too large"


class SchemaError(AppError):
    status_code = 500
    message = "Database schema is out of date"
    suggestion = "POST /api/fix-db (admin) to repair the database schema"


def error_response(exc: AppError) -> JSONResponse:
    content = {"error": exc.message}
    if isinstance(exc, SchemaError):
        content["suggestion"] = exc.suggestion
    return JSONResponse(status_code=exc.status_code, content=content, headers=exc.headers())


async def app_error_handler(request: Request, exc: AppError) -> JSONResponse:
    if exc.status_code >= 500:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc.message)
    return error_response(exc)


async def http_error_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    # Framework errors (unknown route, bad Basic header) keep the same body shape
    return JSONResponse(status_code=exc.status_code, content={"error": str(exc.detail)}, headers=exc.headers)


async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    errors = exc.errors()
    first = errors[0] if errors else {}
    location = ".".join(str(part) for part in first.get("loc", ()))
    message = f"{location}: {first.get('msg', 'invalid value')}" if location else "Invalid request"
    return JSONResponse(status_code=400, content={"error": message})


async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    return JSONResponse(status_code=500, content={"error": "Internal server error"})


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(AppError, app_error_handler)
    app.add_exception_handler(StarletteHTTPException, http_error_handler)
    app.add_exception_handler(RequestValidationError, request_validation_handler)
    app.add_exception_handler(Exception, unhandled_error_handler)
