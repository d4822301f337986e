"""
Exception handlers mapping catalog errors to HTTP responses.

Every error body follows ErrorResponse: status, message, timestamp.
"""

import logging

from fastapi import FastAPI, Request, status
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from catalog.exceptions import (
    DuplicateNameError,
    ProductNotFoundError,
    ProductValidationError,
    StorageUnavailableError,
)
from catalog.schemas.error import ErrorResponse

logger = logging.getLogger(__name__)


def error_response(status_code: int, message: str, headers: dict = None) -> JSONResponse:
    body = ErrorResponse(status=status_code, message=message)
    return JSONResponse(
        status_code=status_code,
        content=jsonable_encoder(body),
        headers=headers,
    )


def _describe_validation_errors(exc: RequestValidationError) -> str:
    parts = []
    for error in exc.errors():
        location = ".".join(str(item) for item in error.get("loc", ()) if item != "body")
        parts.append(f"{location}: {error.get('msg')}" if location else str(error.get("msg")))
    return "; ".join(parts) or "Invalid request"


async def validation_error_handler(request: Request, exc: ProductValidationError):
    logger.info(f"Validation failed on {request.url.path}: {exc}")
    return error_response(status.HTTP_400_BAD_REQUEST, str(exc))


async def request_validation_error_handler(request: Request, exc: RequestValidationError):
    message = _describe_validation_errors(exc)
    logger.info(f"Invalid request on {request.url.path}: {message}")
    return error_response(status.HTTP_400_BAD_REQUEST, message)


async def duplicate_name_handler(request: Request, exc: DuplicateNameError):
    logger.info(f"Duplicate product name on {request.url.path}: {exc}")
    return error_response(status.HTTP_409_CONFLICT, str(exc))


async def not_found_handler(request: Request, exc: ProductNotFoundError):
    return error_response(status.HTTP_404_NOT_FOUND, str(exc))


async def storage_unavailable_handler(request: Request, exc: StorageUnavailableError):
    logger.error(f"Storage unavailable while handling {request.method} {request.url.path}: {exc}")
    return error_response(status.HTTP_503_SERVICE_UNAVAILABLE, str(exc))


async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    return error_response(exc.status_code, str(exc.detail), headers=getattr(exc, "headers", None))


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(ProductValidationError, validation_error_handler)
    app.add_exception_handler(RequestValidationError, request_validation_error_handler)
    app.add_exception_handler(DuplicateNameError, duplicate_name_handler)
    app.add_exception_handler(ProductNotFoundError, not_found_handler)
    app.add_exception_handler(StorageUnavailableError, storage_unavailable_handler)
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
