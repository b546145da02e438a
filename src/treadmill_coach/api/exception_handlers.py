"""
Exception handlers for the FastAPI application.

Application errors become ``{"error": {code, message, details}}`` responses
with the status code carried by the exception.
"""

from typing import Any, Dict
import logging

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from pydantic import ValidationError as PydanticValidationError

from ..exceptions import ErrorCode, TreadmillCoachError


logger = logging.getLogger(__name__)


def create_error_response(
    status_code: int,
    code: str,
    message: str,
    details: Dict[str, Any] | None = None,
) -> JSONResponse:
    """Create a standardized error response."""
    content: Dict[str, Any] = {
        "error": {
            "code": code,
            "message": message,
        }
    }
    if details:
        content["error"]["details"] = details
    return JSONResponse(status_code=status_code, content=content)


async def treadmill_coach_error_handler(
    request: Request,
    exc: TreadmillCoachError,
) -> JSONResponse:
    return create_error_response(
        status_code=exc.status_code,
        code=exc.code.value,
        message=exc.message,
        details=exc.details or None,
    )


async def pydantic_validation_error_handler(
    request: Request,
    exc: PydanticValidationError,
) -> JSONResponse:
    """Handle Pydantic validation errors raised inside handlers."""
    errors = [
        {
            "field": ".".join(str(x) for x in error["loc"]),
            "message": error["msg"],
            "type": error["type"],
        }
        for error in exc.errors()
    ]
    return create_error_response(
        status_code=422,
        code=ErrorCode.VALIDATION_ERROR.value,
        message="Request validation failed",
        details={"errors": errors},
    )


async def generic_exception_handler(
    request: Request,
    exc: Exception,
) -> JSONResponse:
    logger.exception(f"Unhandled exception on {request.method} {request.url.path}: {exc}")
    return create_error_response(
        status_code=500,
        code=ErrorCode.INTERNAL_ERROR.value,
        message="An unexpected error occurred",
    )


def register_exception_handlers(app: FastAPI) -> None:
    """Register all exception handlers with the FastAPI application."""
    app.add_exception_handler(TreadmillCoachError, treadmill_coach_error_handler)
    app.add_exception_handler(PydanticValidationError, pydantic_validation_error_handler)
    # Catches everything else, keep it last
    app.add_exception_handler(Exception, generic_exception_handler)
