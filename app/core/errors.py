"""Application error hierarchy.

Services and the auth guard raise these; the handlers registered in
``app.main`` render every one of them as ``{"success": false, "error": ...}``
with the class's status code.

    MedliError
    ├── InvalidInputError        400
    ├── ConflictError            400
    ├── InvalidCredentialsError  401
    ├── UnauthenticatedError     401
    ├── NotFoundError            404
    └── InternalError            500
"""
from typing import Optional

from fastapi import status


class MedliError(Exception):
    """Base class for errors that map directly onto an HTTP response."""

    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_message: str = "Server error"

    def __init__(self, message: Optional[str] = None):
        self.message = message or self.default_message
        super().__init__(self.message)


class InvalidInputError(MedliError):
    status_code = status.HTTP_400_BAD_REQUEST
    default_message = "Invalid input"


class ConflictError(MedliError):
    """A uniqueness rule was violated (e.g. an email already in use)."""

    status_code = status.HTTP_400_BAD_REQUEST
    default_message = "Duplicate field value entered"


class InvalidCredentialsError(MedliError):
    status_code = status.HTTP_401_UNAUTHORIZED
    default_message = "Invalid credentials"


class UnauthenticatedError(MedliError):
    """Missing, invalid or expired token, or the token's user is gone."""

    status_code = status.HTTP_401_UNAUTHORIZED
    default_message = "Not authorized to access this route. Please login."


class NotFoundError(MedliError):
    status_code = status.HTTP_404_NOT_FOUND
    default_message = "Resource not found"


class InternalError(MedliError):
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_message = "Server error"
