"""
Exception handlers: every failure leaves the API in the
``{success: false, message, ...}`` envelope.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, List

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from auth.errors import AuthAPIError, InternalFailure, ValidationFailure
from auth.schemas import FIELD_LABELS, REQUIRED_MESSAGES

logger = logging.getLogger(__name__)


def _envelope(status_code: int, message: str, **extra: Any) -> JSONResponse:
    content: Dict[str, Any] = {"success": False, "message": message}
    content.update(extra)
    return JSONResponse(status_code=status_code, content=content)


def validation_messages(exc: RequestValidationError) -> List[str]:
    """Flatten pydantic errors into one readable message per problem."""
    messages: List[str] = []
    for err in exc.errors():
        loc = [part for part in err.get("loc", ()) if part != "body"]
        field = str(loc[-1]) if loc else None
        label = FIELD_LABELS.get(field, field) if field else None
        kind = err.get("type", "")

        if kind == "missing":
            if label:
                msg = REQUIRED_MESSAGES.get(field, f"{label} is required")
            else:
                msg = "Request body is required"
        elif kind == "json_invalid":
            msg = "Request body must be valid JSON"
        elif kind in ("model_type", "model_attributes_type", "dict_type"):
            msg = "Request body must be a JSON object"
        elif kind == "string_type":
            msg = f"{label} must be a string"
        else:
            msg = err.get("msg", "Invalid value")

        for item in (err.get("ctx") or {}).get("messages") or [msg]:
            if item not in messages:
                messages.append(item)
    return messages


def register_exception_handlers(app: FastAPI, debug: bool = False) -> None:
    """Attach the envelope-producing handlers to ``app``."""

    @app.exception_handler(AuthAPIError)
    async def auth_api_error(request: Request, exc: AuthAPIError):
        if isinstance(exc, ValidationFailure):
            return _envelope(exc.status_code, exc.message, errors=exc.errors)
        if isinstance(exc, InternalFailure) and debug and exc.__cause__ is not None:
            return _envelope(exc.status_code, exc.message, detail=str(exc.__cause__))
        return _envelope(exc.status_code, exc.message)

    @app.exception_handler(RequestValidationError)
    async def request_validation_error(request: Request, exc: RequestValidationError):
        failure = ValidationFailure(validation_messages(exc))
        logger.info("Validation failed on %s: %s", request.url.path, failure.errors)
        return _envelope(failure.status_code, failure.message, errors=failure.errors)

    @app.exception_handler(StarletteHTTPException)
    async def http_error(request: Request, exc: StarletteHTTPException):
        if exc.status_code == status.HTTP_404_NOT_FOUND:
            return _envelope(exc.status_code, "Route not found")
        return _envelope(exc.status_code, str(exc.detail))

    @app.exception_handler(Exception)
    async def unhandled_error(request: Request, exc: Exception):
        logger.exception("Unhandled error on %s %s", request.method, request.url.path)
        if debug:
            return _envelope(status.HTTP_500_INTERNAL_SERVER_ERROR, InternalFailure.default_message, detail=str(exc))
        return _envelope(status.HTTP_500_INTERNAL_SERVER_ERROR, InternalFailure.default_message)
