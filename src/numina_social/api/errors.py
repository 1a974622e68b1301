"""Translate messaging errors into HTTP responses."""

from __future__ import annotations

import logging

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse

from numina_social.core.settings import settings
from numina_social.errors import ForbiddenError, MessagingError, NotFoundError, ValidationError
from numina_social.schemas.common import ErrorResponse

logger = logging.getLogger(__name__)

_STATUS_BY_ERROR: tuple[tuple[type[MessagingError], int], ...] = (
    (ValidationError, status.HTTP_400_BAD_REQUEST),
    (NotFoundError, status.HTTP_404_NOT_FOUND),
    (ForbiddenError, status.HTTP_403_FORBIDDEN),
)


def status_for(exc: MessagingError) -> int:
    """Return the HTTP status code for a messaging error."""
    for error_type, status_code in _STATUS_BY_ERROR:
        if isinstance(exc, error_type):
            return status_code
    return status.HTTP_400_BAD_REQUEST


def _error_response(status_code: int, body: ErrorResponse) -> JSONResponse:
    return JSONResponse(body.model_dump(mode="json"), status_code=status_code)


def register_error_handlers(app: FastAPI) -> None:
    @app.exception_handler(MessagingError)
    async def messaging_error_handler(request: Request, exc: MessagingError) -> JSONResponse:
        status_code = status_for(exc)
        logger.info(
            "%s %s rejected with %s (%s)", request.method, request.url.path, exc.code, status_code
        )
        return _error_response(status_code, ErrorResponse.build(exc.message, exc.code))

    @app.exception_handler(Exception)
    async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
        logger.exception("Unhandled error on %s %s", request.method, request.url.path)
        details = {"exception": repr(exc)} if settings.debug else None
        return _error_response(
            status.HTTP_500_INTERNAL_SERVER_ERROR,
            ErrorResponse.build("An unexpected error occurred", "INTERNAL_ERROR", details),
        )
