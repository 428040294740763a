"""
Error taxonomy for the course marketplace API.

Handlers raise these exceptions; ``register_exception_handlers`` turns them
into ``{"message": ...}`` JSON responses with the matching status code.
"""
from typing import Optional

import structlog
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from pymongo.errors import DuplicateKeyError, PyMongoError

log = structlog.get_logger(__name__)


class CourseAppError(Exception):
    """Base class for errors that map onto an HTTP response."""

    status_code: int = 500
    message: str = "Internal server error"

    def __init__(self, message: Optional[str] = None) -> None:
        if message is not None:
            self.message = message
        super().__init__(self.message)


class Unauthenticated(CourseAppError):
    """Raised when a protected route is called without a bearer token."""

    status_code = 401
    message = "No token"


class InvalidToken(CourseAppError):
    """Raised when a token fails signature or expiry verification."""

    status_code = 401
    message = "Invalid token"


class Forbidden(CourseAppError):
    status_code = 403
    message = "Admin privileges required"


class NotFound(CourseAppError):
    status_code = 400
    message = "Not found"


class AlreadyExists(CourseAppError):
    status_code = 400
    message = "Already exists"


class InvalidCredentials(CourseAppError):
    status_code = 400
    message = "Invalid credentials"


class StoreFailure(CourseAppError):
    status_code = 500
    message = "Internal server error"


class ServiceUnavailable(CourseAppError):
    status_code = 503
    message = "Database unavailable"


def _error_response(error: CourseAppError) -> JSONResponse:
    return JSONResponse(status_code=error.status_code, content={"message": error.message})


async def course_app_error_handler(request: Request, exc: CourseAppError) -> JSONResponse:
    return _error_response(exc)


async def duplicate_key_handler(request: Request, exc: DuplicateKeyError) -> JSONResponse:
    log.info("duplicate_key", path=request.url.path)
    return _error_response(AlreadyExists())


async def store_failure_handler(request: Request, exc: PyMongoError) -> JSONResponse:
    log.error("store_failure", path=request.url.path, method=request.method, exc_info=exc)
    return _error_response(StoreFailure())


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(CourseAppError, course_app_error_handler)
    app.add_exception_handler(DuplicateKeyError, duplicate_key_handler)
    app.add_exception_handler(PyMongoError, store_failure_handler)
