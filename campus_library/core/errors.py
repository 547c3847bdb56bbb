from __future__ import annotations

import logging
from collections import defaultdict

from fastapi import FastAPI, HTTPException, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

logger = logging.getLogger(__name__)


def field_errors(**errors: str | list[str]) -> dict:
    """Build the ``{"message", "errors"}`` body used for every 422 response."""
    return {
        "message": "Validation Error",
        "errors": {field: [msg] if isinstance(msg, str) else list(msg) for field, msg in errors.items()},
    }


def validation_error(**errors: str | list[str]) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        detail=field_errors(**errors),
    )


def _field_name(loc: tuple) -> str:
    # Drop the "body"/"query"/"form" prefix FastAPI puts in front of the field path.
    parts = [str(part) for part in loc[1:]] if len(loc) > 1 else [str(part) for part in loc]
    return ".".join(parts) or "__root__"


async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    errors: dict[str, list[str]] = defaultdict(list)
    for error in exc.errors():
        errors[_field_name(tuple(error.get("loc", ())))].append(error.get("msg", "Invalid value."))
    return JSONResponse(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        content={"detail": {"message": "Validation Error", "errors": dict(errors)}},
    )


async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"detail": "Internal server error."},
    )


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(RequestValidationError, request_validation_handler)
    app.add_exception_handler(Exception, unhandled_exception_handler)
