"""Application error taxonomy.

Services raise these; the CLI maps them to messages and exit codes. Storage
errors (sqlite3.Error) are not wrapped and propagate unchanged.
"""

from typing import Any, Optional, Union


class AppError(Exception):
    """Base class for all application errors.

    Attributes:
        message: Human readable message.
        code: Stable machine-readable code.
        status_code: Transport status hint (HTTP-style).
        details: Optional structured details (e.g. field errors).
    """

    def __init__(
        self,
        message: str,
        code: str = "APP_ERROR",
        status_code: int = 500,
        details: Optional[Any] = None,
    ):
        super().__init__(message)
        self.message = message
        self.code = code
        self.status_code = status_code
        self.details = details


class DomainError(AppError):
    """A business rule was violated."""

    def __init__(self, message: str, details: Optional[Any] = None):
        super().__init__(message, "DOMAIN_ERROR", 400, details)


class ValidationError(AppError):
    """Input data is malformed."""

    def __init__(self, message: str, details: Optional[Any] = None):
        super().__init__(message, "VALIDATION_ERROR", 400, details)


class AuthenticationError(AppError):
    """The caller identity is missing or unknown."""

    def __init__(self, message: str = "Not authenticated"):
        super().__init__(message, "AUTHENTICATION_ERROR", 401)


class AuthorizationError(AppError):
    """The caller may not act on the resource."""

    def __init__(self, message: str = "Not authorized"):
        super().__init__(message, "AUTHORIZATION_ERROR", 403)


class NotFoundError(AppError):
    """A requested resource does not exist (or is not owned by the caller)."""

    def __init__(self, resource: str, resource_id: Optional[Union[int, str]] = None):
        if resource_id is not None:
            message = f"{resource} with ID {resource_id} not found"
        else:
            message = f"{resource} not found"
        super().__init__(message, "NOT_FOUND", 404)


class ConflictError(AppError):
    """The operation conflicts with existing state."""

    def __init__(self, message: str, details: Optional[Any] = None):
        super().__init__(message, "CONFLICT", 409, details)


def normalize_error(error: BaseException) -> dict:
    """Convert any exception into a {code, message[, details]} dictionary."""
    if isinstance(error, AppError):
        result = {"code": error.code, "message": error.message}
        if error.details is not None:
            result["details"] = error.details
        return result

    return {"code": "INTERNAL_ERROR", "message": str(error) or type(error).__name__}
