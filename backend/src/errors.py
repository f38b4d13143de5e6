"""
Domain exception taxonomy.

Services raise these exceptions; the handlers registered in ``main.py``
translate them into HTTP responses. Each error carries the status code and
the client-facing message. Errors with a ``param`` are rendered in the
field-error shape ``{"errors": [{"param": ..., "msg": ...}]}``, the rest as
``{"message": ...}``.
"""

from typing import Any, Dict, List, Optional


class AppError(Exception):
    """Base class for errors that map onto a client response."""

    status_code: int = 500
    default_message: str = "Something went wrong!"

    def __init__(self, message: Optional[str] = None, param: Optional[str] = None):
        self.message = message or self.default_message
        self.param = param
        super().__init__(self.message)

    def to_response(self) -> Dict[str, Any]:
        """Build the JSON body returned to the client."""
        if self.param:
            return {"errors": [{"param": self.param, "msg": self.message}]}
        return {"message": self.message}


class ValidationError(AppError):
    """Missing or malformed input."""

    status_code = 400
    default_message = "Invalid request"


class FieldValidationError(ValidationError):
    """One or more field-level validation failures."""

    def __init__(self, errors: List[Dict[str, str]]):
        self.errors = errors
        first = errors[0]["msg"] if errors else self.default_message
        super().__init__(first)

    def to_response(self) -> Dict[str, Any]:
        return {"errors": self.errors}


class AlreadyAuthenticatedError(ValidationError):
    default_message = "You are already authenticated"


class AuthenticationError(AppError):
    """Missing, invalid or expired session."""

    status_code = 401
    default_message = "Authentication required"


class DuplicateEmailError(ValidationError):
    default_message = "User with this email already exists."

    def __init__(self, message: Optional[str] = None):
        super().__init__(message, param="email")


class InvalidCredentialsError(ValidationError):
    """
    Login failure.

    The message and param are the same for an unknown email and a wrong
    password so responses do not reveal which accounts exist.
    """

    default_message = "Password or email is incorrect"

    def __init__(self):
        super().__init__(param="email")


class DuplicateFavoriteError(ValidationError):
    default_message = "Artist already in favorites"


class NotFoundError(AppError):
    status_code = 404
    default_message = "Not found"


class UpstreamError(AppError):
    """Base for Artsy API failures; clients only ever see a generic 500."""

    status_code = 500
    default_message = "Server error"


class UpstreamAuthError(UpstreamError):
    """The client-credential exchange with the upstream API failed."""

    def __init__(self, detail: str = "Failed to authenticate with Artsy API"):
        self.detail = detail
        super().__init__()

    def __str__(self) -> str:
        return self.detail


class UpstreamRequestError(UpstreamError):
    """An upstream call failed; carries the gateway operation name."""

    def __init__(self, operation: str, detail: str = ""):
        self.operation = operation
        self.detail = detail
        super().__init__()

    def __str__(self) -> str:
        if self.detail:
            return f"{self.operation} failed: {self.detail}"
        return f"{self.operation} failed"


class InternalError(AppError):
    status_code = 500
