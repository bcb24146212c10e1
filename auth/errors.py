"""Failure taxonomy shared by the gate and the auth routes."""

from __future__ import annotations

from typing import List, Optional

from fastapi import status


class AuthAPIError(Exception):
    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_message: str = "Internal server error"

    def __init__(self, message: Optional[str] = None):
        self.message = message or self.default_message
        super().__init__(self.message)


class ValidationFailure(AuthAPIError):
    status_code = status.HTTP_400_BAD_REQUEST
    default_message = "Validation errors"

    def __init__(self, errors: List[str], message: Optional[str] = None):
        super().__init__(message)
        self.errors = errors


class ConflictFailure(AuthAPIError):
    status_code = status.HTTP_409_CONFLICT
    default_message = "Email already registered"


class AuthenticationFailure(AuthAPIError):
    """
    401. ``reason`` is for logs and tests only; it is never rendered into the
    response body.
    """

    status_code = status.HTTP_401_UNAUTHORIZED
    default_message = "Invalid credentials"

    def __init__(self, message: Optional[str] = None, reason: str = "invalid_credentials"):
        super().__init__(message)
        self.reason = reason


class NotFoundFailure(AuthAPIError):
    status_code = status.HTTP_404_NOT_FOUND
    default_message = "User not found"


class InternalFailure(AuthAPIError):
    pass
