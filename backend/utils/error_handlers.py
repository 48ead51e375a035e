"""
Error handling utilities for API endpoints.

Maps application exceptions that escape an endpoint before its response has
started to fallback JSON responses. Errors raised after the response started
cannot be converted; Starlette re-raises them and the server aborts the
connection.

AlreadyWrittenError and OperationCancelledError have no mapping of their own
and fall through to the generic 500 handler.
"""

import logging
from typing import Dict, Type

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from constants import ErrorMessages, HTTPStatus
from domain.value_objects import group_by_field
from exceptions import (
    ApplicationError,
    ConfigurationError,
    NotFoundError,
    RouteResolutionError,
    SerializationError,
    ValidationError,
)

logger = logging.getLogger(__name__)


# Most specific first
ERROR_STATUS: Dict[Type[ApplicationError], int] = {
    ValidationError: HTTPStatus.BAD_REQUEST,
    NotFoundError: HTTPStatus.NOT_FOUND,
    RouteResolutionError: HTTPStatus.INTERNAL_SERVER_ERROR,
    SerializationError: HTTPStatus.INTERNAL_SERVER_ERROR,
    ConfigurationError: HTTPStatus.INTERNAL_SERVER_ERROR,
}


def status_for(exc: ApplicationError) -> int:
    for error_type, status_code in ERROR_STATUS.items():
        if isinstance(exc, error_type):
            return status_code
    return HTTPStatus.INTERNAL_SERVER_ERROR


def error_body(exc: ApplicationError, status_code: int) -> dict:
    """Body of the fallback response for an application error."""
    if isinstance(exc, ValidationError):
        return {
            "statusCode": status_code,
            "message": ErrorMessages.VALIDATION_FAILED,
            "errors": group_by_field(exc.failures),
        }
    if status_code >= HTTPStatus.INTERNAL_SERVER_ERROR:
        # Do not leak internals of server-side failures
        return {"detail": ErrorMessages.INTERNAL}
    return {"detail": exc.message}


async def application_error_handler(request: Request, exc: ApplicationError):
    status_code = status_for(exc)
    if status_code >= HTTPStatus.INTERNAL_SERVER_ERROR:
        logger.error(
            f"{request.method} {request.url.path} - {type(exc).__name__}: {exc.message}",
            exc_info=exc,
        )
    else:
        logger.warning(f"{request.method} {request.url.path} - {type(exc).__name__}: {exc.message}")
    return JSONResponse(status_code=status_code, content=error_body(exc, status_code))


async def unhandled_exception_handler(request: Request, exc: Exception):
    logger.error(
        f"Unhandled exception in {request.method} {request.url.path}: {exc}",
        exc_info=exc,
    )
    return JSONResponse(
        status_code=HTTPStatus.INTERNAL_SERVER_ERROR,
        content={"detail": ErrorMessages.INTERNAL},
    )


def register_exception_handlers(app: FastAPI) -> None:
    """Install the fallback handlers on the application."""
    for error_type in ERROR_STATUS:
        app.add_exception_handler(error_type, application_error_handler)
    app.add_exception_handler(Exception, unhandled_exception_handler)
