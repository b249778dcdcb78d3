"""
Exception Handlers
Custom exception handlers for FastAPI.
"""
import logging

from fastapi import Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from fingerprint_service.api.middleware.request_limits import payload_too_large_response
from fingerprint_service.core.exceptions import (
    ComponentsParseError,
    DuplicateError,
    InvalidInputError,
    NotFoundError,
    PayloadTooLargeError,
    StorageError,
)

logger = logging.getLogger(__name__)


async def invalid_input_error_handler(
    request: Request, exc: InvalidInputError
) -> JSONResponse:
    """Handle invalid input errors."""
    return JSONResponse(
        status_code=exc.status_code,
        content={"detail": exc.detail},
    )


async def duplicate_error_handler(
    request: Request, exc: DuplicateError
) -> JSONResponse:
    """Handle duplicate identities; a normal outcome, not a failure."""
    return JSONResponse(
        status_code=exc.status_code,
        content={"detail": exc.detail, "duplicate": True},
    )


async def not_found_error_handler(
    request: Request, exc: NotFoundError
) -> JSONResponse:
    """Handle not found errors."""
    return JSONResponse(
        status_code=exc.status_code,
        content={"detail": exc.detail},
    )


async def payload_too_large_error_handler(
    request: Request, exc: PayloadTooLargeError
) -> JSONResponse:
    """Handle oversized bodies detected while streaming."""
    return payload_too_large_response(exc.max_bytes)


async def storage_error_handler(
    request: Request, exc: StorageError
) -> JSONResponse:
    """Handle storage failures (already logged where they happened)."""
    return JSONResponse(
        status_code=exc.status_code,
        content={"detail": exc.detail},
    )


async def components_parse_error_handler(
    request: Request, exc: ComponentsParseError
) -> JSONResponse:
    """Handle stored bundles that cannot be normalized."""
    return JSONResponse(
        status_code=exc.status_code,
        content={"detail": exc.detail},
    )


async def request_validation_error_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    """Handle Pydantic validation errors as bad requests with per-field detail."""
    errors = [
        {
            "field": ".".join(str(part) for part in err.get("loc", ())),
            "message": err.get("msg", ""),
        }
        for err in exc.errors()
    ]
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={
            "detail": "Invalid request payload",
            "errors": errors,
        },
    )


async def generic_exception_handler(
    request: Request, exc: Exception
) -> JSONResponse:
    """Handle unexpected exceptions."""
    logger.error(f"Unhandled exception: {exc}", exc_info=True)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"detail": "Internal server error"},
    )
