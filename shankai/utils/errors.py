# shankai/utils/errors.py
"""
Domain errors raised by services and dependencies.

Each error carries the HTTP status it maps to and a message that is safe to
return to the client. The handlers in ``shankai.main`` turn them into
``{"error": ...}`` JSON bodies.
"""
from typing import Any, Optional

from fastapi import status


class AppError(Exception):
    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR
    message: str = "Internal server error"

    def __init__(self, message: Optional[str] = None, details: Any = None):
        self.message = message or self.message
        self.details = details
        super().__init__(self.message)


class ValidationFailure(AppError):
    status_code = status.HTTP_400_BAD_REQUEST
    message = "Validation failed"


class Unauthenticated(AppError):
    status_code = status.HTTP_401_UNAUTHORIZED
    message = "Access denied. No token provided."


class InvalidCredential(AppError):
    status_code = status.HTTP_401_UNAUTHORIZED
    message = "Invalid token."


class ExpiredCredential(AppError):
    status_code = status.HTTP_401_UNAUTHORIZED
    message = "Token expired."


class UnknownSubject(AppError):
    status_code = status.HTTP_401_UNAUTHORIZED
    message = "Invalid token. User not found."


class BadCredentials(AppError):
    status_code = status.HTTP_401_UNAUTHORIZED
    message = "Invalid email or password"


class NotFound(AppError):
    status_code = status.HTTP_404_NOT_FOUND
    message = "Not found"


class Conflict(AppError):
    status_code = status.HTTP_409_CONFLICT
    message = "Conflict"


class UpstreamNotConfigured(AppError):
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    message = "AI service is not configured"


class UpstreamUnavailable(AppError):
    status_code = status.HTTP_503_SERVICE_UNAVAILABLE
    message = "AI service temporarily unavailable"
