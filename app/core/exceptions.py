"""Domain error kinds and their HTTP mapping."""

from fastapi import status


class AppError(Exception):
    """Base class for errors surfaced to API callers."""

    code = "INTERNAL_ERROR"
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(self, message: str = "Internal server error"):
        super().__init__(message)
        self.message = message

    def to_dict(self) -> dict:
        return {"error": {"code": self.code, "message": self.message}}


class NotFoundError(AppError):
    """Conversation, user, car or notification is absent."""

    code = "NOT_FOUND"
    status_code = status.HTTP_404_NOT_FOUND


class ForbiddenError(AppError):
    """Caller is not a participant or owner of the resource."""

    code = "FORBIDDEN"
    status_code = status.HTTP_403_FORBIDDEN


class ValidationError(AppError, ValueError):
    """Request is missing required fields or violates a business rule."""

    code = "VALIDATION_ERROR"
    status_code = status.HTTP_400_BAD_REQUEST


class ConflictError(AppError):
    code = "CONFLICT"
    status_code = status.HTTP_409_CONFLICT


class RateLimitedError(AppError):
    code = "RATE_LIMITED"
    status_code = status.HTTP_429_TOO_MANY_REQUESTS


class StorageUnavailableError(AppError):
    """Storage is unreachable or rejected the connection."""

    code = "STORAGE_UNAVAILABLE"
    status_code = status.HTTP_503_SERVICE_UNAVAILABLE


class StorageTimeoutError(AppError):
    """A storage round-trip exceeded STORAGE_TIMEOUT_SECONDS."""

    code = "STORAGE_TIMEOUT"
    status_code = status.HTTP_504_GATEWAY_TIMEOUT
