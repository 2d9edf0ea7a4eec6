from fastapi import status


class AuthError(Exception):
    """Base class for token lifecycle failures.

    Each subclass carries the HTTP status it maps to and a default message;
    the exception handler in ``main`` renders ``{"message", "error"}``.
    """

    status_code: int = status.HTTP_401_UNAUTHORIZED
    message: str = "Authentication failed"

    def __init__(self, message: str | None = None):
        self.message = message or self.message
        super().__init__(self.message)

    @property
    def code(self) -> str:
        return type(self).__name__


class Unauthenticated(AuthError):
    message = "Authentication required"


class InvalidToken(AuthError):
    message = "Invalid token"


class TokenExpired(AuthError):
    message = "Token expired"


class UserNotFound(AuthError):
    message = "User not found"


class InvalidCredentials(AuthError):
    message = "Invalid credentials"


class InvalidDuration(AuthError):
    status_code = status.HTTP_400_BAD_REQUEST
    message = "accessTokenMaxAge must be a positive integer number of minutes"
