"""Tests for error kinds and their HTTP mapping."""

import pytest

from app.core.exceptions import (
    AppError,
    ConflictError,
    ForbiddenError,
    NotFoundError,
    RateLimitedError,
    StorageTimeoutError,
    StorageUnavailableError,
    ValidationError,
)


@pytest.mark.parametrize(
    "error_class, status_code, code",
    [
        (NotFoundError, 404, "NOT_FOUND"),
        (ForbiddenError, 403, "FORBIDDEN"),
        (ValidationError, 400, "VALIDATION_ERROR"),
        (ConflictError, 409, "CONFLICT"),
        (RateLimitedError, 429, "RATE_LIMITED"),
        (StorageUnavailableError, 503, "STORAGE_UNAVAILABLE"),
        (StorageTimeoutError, 504, "STORAGE_TIMEOUT"),
        (AppError, 500, "INTERNAL_ERROR"),
    ],
)
def test_error_mapping(error_class, status_code, code):
    error = error_class("something happened")

    assert error.status_code == status_code
    assert error.to_dict() == {
        "error": {"code": code, "message": "something happened"}
    }


def test_validation_error_is_value_error():
    assert issubclass(ValidationError, ValueError)
