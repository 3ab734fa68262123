"""
Error types and exception handlers for DYHE Delivery backend.
Services raise these; the handlers render one consistent JSON error shape.
"""
import logging

from fastapi import FastAPI, HTTPException, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from pymongo.errors import DuplicateKeyError

logger = logging.getLogger(__name__)


class DomainError(Exception):
    """Base error carrying an HTTP status and a stable error code."""

    status_code = 500
    error_code = "INTERNAL_SERVER_ERROR"

    def __init__(self, message: str):
        self.message = message
        super().__init__(message)


class NotFoundError(DomainError):
    status_code = 404
    error_code = "NOT_FOUND"


class ConflictError(DomainError):
    status_code = 409
    error_code = "CONFLICT"


class UnauthorizedError(DomainError):
    status_code = 401
    error_code = "UNAUTHORIZED"


class ForbiddenError(DomainError):
    status_code = 403
    error_code = "FORBIDDEN"


class ValidationError(DomainError):
    """Business-rule violation on otherwise well-formed input."""
    status_code = 400
    error_code = "BAD_REQUEST"


def _error_body(error_code: str, message, errors=None) -> dict:
    body = {"detail": message, "error_code": error_code}
    if errors is not None:
        body["errors"] = errors
    return body


def register_error_handlers(app: FastAPI) -> None:
    """Register global exception handlers."""

    @app.exception_handler(DomainError)
    async def domain_error_handler(request: Request, exc: DomainError) -> JSONResponse:
        return JSONResponse(
            status_code=exc.status_code,
            content=_error_body(exc.error_code, exc.message),
        )

    @app.exception_handler(DuplicateKeyError)
    async def duplicate_key_handler(request: Request, exc: DuplicateKeyError) -> JSONResponse:
        # Raced past the pre-check; the unique index caught it
        logger.warning(f"Duplicate key on {request.url.path}: {exc.details}")
        return JSONResponse(
            status_code=409,
            content=_error_body("CONFLICT", "A record with the same unique value already exists"),
        )

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
        return JSONResponse(
            status_code=422,
            content=_error_body(
                "VALIDATION_ERROR",
                "Invalid request parameters",
                errors=jsonable_errors(exc.errors()),
            ),
        )

    @app.exception_handler(HTTPException)
    async def http_exception_handler(request: Request, exc: HTTPException) -> JSONResponse:
        return JSONResponse(
            status_code=exc.status_code,
            content=_error_body("HTTP_ERROR", exc.detail),
            headers=getattr(exc, "headers", None),
        )

    @app.exception_handler(Exception)
    async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
        logger.exception(f"Unhandled error on {request.method} {request.url.path}")
        return JSONResponse(
            status_code=500,
            content=_error_body("INTERNAL_SERVER_ERROR", "The server encountered an unexpected error"),
        )


def jsonable_errors(errors) -> list:
    """Strip non-serialisable context (e.g. exception objects) from pydantic errors."""
    cleaned = []
    for error in errors:
        item = {k: v for k, v in error.items() if k != "ctx"}
        if "ctx" in error:
            item["ctx"] = {k: str(v) for k, v in error["ctx"].items()}
        cleaned.append(item)
    return cleaned
