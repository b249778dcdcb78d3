"""
Custom Exceptions
Domain and application-level exceptions.
"""
from fastapi import HTTPException, status


class InvalidInputError(HTTPException):
    """Malformed payload, unparseable numeric field or missing parameter."""

    def __init__(self, detail: str = "Invalid request payload"):
        super().__init__(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=detail,
        )


class DuplicateError(HTTPException):
    """Identity already stored."""

    def __init__(self, detail: str = "Fingerprint with this key already exists"):
        super().__init__(
            status_code=status.HTTP_409_CONFLICT,
            detail=detail,
        )


class NotFoundError(HTTPException):
    """Resource not found."""

    def __init__(self, detail: str = "Resource not found"):
        super().__init__(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=detail,
        )


class PayloadTooLargeError(HTTPException):
    """Request body exceeds the configured maximum."""

    def __init__(self, max_bytes: int):
        self.max_bytes = max_bytes
        super().__init__(
            status_code=status.HTTP_413_REQUEST_ENTITY_TOO_LARGE,
            detail=(
                "Request body too large. Maximum allowed size is "
                f"{max_bytes // (1024 * 1024)}MB"
            ),
        )


class StorageError(HTTPException):
    """Storage backend failed; safe for the caller to retry."""

    def __init__(self, detail: str = "Storage failure"):
        super().__init__(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=detail,
        )


class ComponentsParseError(HTTPException):
    """Stored component bundle could not be decoded."""

    def __init__(self, reason: str):
        self.reason = reason
        super().__init__(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Failed to parse components: {reason}",
        )
