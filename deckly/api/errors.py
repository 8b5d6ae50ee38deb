"""Translation of domain errors into HTTP responses."""

import logging

from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from ..db import DatabaseError
from ..errors import (
    AuthenticationError,
    ConflictError,
    DecklyError,
    ExternalAPIError,
    NotFoundError,
    PermissionDeniedError,
    UnmappableEventError,
    ValidationError,
)

logger = logging.getLogger(__name__)

# Checked in order; subclasses before their bases
STATUS_CODES = (
    (ValidationError, 422),
    (UnmappableEventError, 422),
    (NotFoundError, 404),
    (ConflictError, 409),
    (AuthenticationError, 401),
    (PermissionDeniedError, 403),
    (ExternalAPIError, 502),
)


def status_code_for(error: DecklyError) -> int:
    for error_class, status_code in STATUS_CODES:
        if isinstance(error, error_class):
            return status_code
    return 400


def error_response(status_code: int, code: str, message: str, details=None) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content={'error': {'code': code, 'message': message, 'details': jsonable_encoder(details or {})}},
    )


async def handle_domain_error(request: Request, exc: DecklyError) -> JSONResponse:
    status_code = status_code_for(exc)
    if status_code >= 500:
        logger.error(f"{request.method} {request.url.path} failed: {exc}")
    return error_response(status_code, exc.code, exc.message, exc.details)


async def handle_request_validation_error(request: Request, exc: RequestValidationError) -> JSONResponse:
    return error_response(422, ValidationError.code, "Invalid request", {'errors': exc.errors()})


async def handle_database_error(request: Request, exc: DatabaseError) -> JSONResponse:
    logger.error(f"Database error on {request.method} {request.url.path}: {exc}")
    return error_response(500, 'DATABASE_ERROR', "Database error")


def register_exception_handlers(app: FastAPI) -> None:
    """Install the domain error handlers on an application."""
    app.add_exception_handler(DecklyError, handle_domain_error)
    app.add_exception_handler(RequestValidationError, handle_request_validation_error)
    app.add_exception_handler(DatabaseError, handle_database_error)
