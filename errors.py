"""Error types shared by the API layer and the HTTP client.

Each error carries the HTTP status it is reported with and a human readable
message. Only the message ever reaches a client.
"""
from typing import Optional


class AppError(Exception):
    status_code = 500
    default_message = "Internal server error"

    def __init__(self, message: Optional[str] = None):
        self.message = message or self.default_message
        super().__init__(self.message)


class ValidationError(AppError):
    status_code = 400
    default_message = "Invalid request"


class ConflictError(AppError):
    status_code = 400
    default_message = "Resource already exists"


class AuthenticationError(AppError):
    status_code = 401
    default_message = "Authentication required"


class InvalidCredentials(AuthenticationError):
    default_message = "Invalid email or password"


class TokenExpired(AuthenticationError):
    default_message = "Token expired. Please login again."


class TokenInvalid(AuthenticationError):
    status_code = 403
    default_message = "Invalid token."


class NotFoundError(AppError):
    status_code = 404
    default_message = "Not found"


class ServerError(AppError):
    status_code = 500


class NetworkError(AppError):
    """Raised by the client when the server could not be reached at all."""

    status_code = 0
    default_message = "Network error"


def error_for_status(status_code: int, message: Optional[str] = None) -> AppError:
    if status_code == 401:
        return AuthenticationError(message)
    if status_code == 403:
        return TokenInvalid(message)
    if status_code == 404:
        return NotFoundError(message)
    if status_code == 400:
        # duplicate budgets are reported as 400 as well
        if message and "already exists" in message:
            return ConflictError(message)
        return ValidationError(message)
    return ServerError(message)
