"""
Domain exceptions.

Each one maps to an HTTP status so service code can raise them directly and
FastAPI renders ``{"detail": ...}`` without per-route translation.
"""
from fastapi import HTTPException, status


class ValidationFailed(HTTPException):
    """A required field is missing or malformed. Nothing was written."""
    def __init__(self, detail: str):
        super().__init__(status_code=status.HTTP_400_BAD_REQUEST, detail=detail)


class NotAuthenticated(HTTPException):
    def __init__(self, detail: str = "Could not validate credentials"):
        super().__init__(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=detail,
            headers={"WWW-Authenticate": "Bearer"},
        )


class Forbidden(HTTPException):
    """The resource exists in the caller's org but the caller may not reach it."""
    def __init__(self, detail: str = "Forbidden"):
        super().__init__(status_code=status.HTTP_403_FORBIDDEN, detail=detail)


class NotFound(HTTPException):
    """The resource does not exist in the caller's org."""
    def __init__(self, resource: str):
        super().__init__(status_code=status.HTTP_404_NOT_FOUND, detail=f"{resource} not found")


class Conflict(HTTPException):
    """State-machine violation or unique constraint clash."""
    def __init__(self, detail: str):
        super().__init__(status_code=status.HTTP_409_CONFLICT, detail=detail)


class PayloadTooLarge(HTTPException):
    def __init__(self, limit: int):
        super().__init__(
            status_code=status.HTTP_413_REQUEST_ENTITY_TOO_LARGE,
            detail=f"File exceeds the {limit} byte upload limit",
        )


class UnsupportedMedia(HTTPException):
    def __init__(self, content_type: str | None):
        super().__init__(
            status_code=status.HTTP_415_UNSUPPORTED_MEDIA_TYPE,
            detail=f"Unsupported file type: {content_type or 'unknown'}",
        )


class InternalFailure(HTTPException):
    """Storage or backing-service failure. Details go to the log, not the caller."""
    def __init__(self, detail: str = "Internal server error"):
        super().__init__(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=detail)
