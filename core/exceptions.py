"""Custom exception classes for the application.

Defines domain-specific exceptions that can be raised throughout the
application and rendered as `{"success": false, "error": ...}` bodies by
the handlers in `core.error_handlers`.
"""

from typing import Optional, Any, Dict


class AppException(Exception):
    """Base exception class for all application exceptions.

    Attributes:
        message: Human-readable error message.
        status_code: HTTP status code to return.
        details: Optional additional error details.
    """

    def __init__(
        self,
        message: str,
        status_code: int = 500,
        details: Optional[Dict[str, Any]] = None
    ):
        self.message = message
        self.status_code = status_code
        self.details = details or {}
        super().__init__(self.message)


class NotFoundError(AppException):
    """Exception raised when a requested resource is not found.

    When `message` is given it is used verbatim, otherwise a generic
    "<resource> with id '<identifier>' not found" message is built.
    """

    def __init__(self, resource: str, identifier: Any = None, message: Optional[str] = None):
        if message is None:
            message = f"{resource} with id '{identifier}' not found"
        details = {"resource": resource}
        if identifier is not None:
            details["id"] = identifier
        super().__init__(message, status_code=404, details=details)


class ValidationError(AppException):
    """Exception raised when input validation fails."""

    def __init__(self, message: str, field: Optional[str] = None):
        """Initialize validation error.

        Args:
            message: Validation error message.
            field: Optional field name that failed validation.
        """
        details = {"field": field} if field else {}
        super().__init__(message, status_code=400, details=details)


class AuthenticationError(AppException):
    """Raised when a request carries no valid session token or bad credentials."""

    def __init__(self, message: str = "Authentication required"):
        super().__init__(message, status_code=401)


class ConflictError(AppException):
    """Raised when a unique resource already exists (e.g. duplicate e-mail)."""

    def __init__(self, message: str, field: Optional[str] = None):
        details = {"field": field} if field else {}
        super().__init__(message, status_code=409, details=details)


class QuotaExceededError(AppException):
    """Raised when a user has used up the AI requests of the current window.

    Attributes:
        limit: The daily limit of the user's subscription tier.
    """

    def __init__(self, limit: int, subscription_type: Optional[str] = None):
        self.limit = limit
        message = (
            f"Daily AI request limit reached ({limit}). "
            "Upgrade your subscription for more meal plans."
        )
        details = {"limit": limit}
        if subscription_type:
            details["subscription_type"] = subscription_type
        super().__init__(message, status_code=429, details=details)


class DatabaseError(AppException):
    """Exception raised when database operations fail."""

    def __init__(self, message: str, operation: Optional[str] = None):
        """Initialize database error.

        Args:
            message: Database error message.
            operation: Optional operation that failed (e.g., 'create', 'update').
        """
        details = {"operation": operation} if operation else {}
        super().__init__(message, status_code=500, details=details)


class ConfigurationError(AppException):
    """Exception raised when application configuration is invalid."""

    def __init__(self, message: str, config_key: Optional[str] = None):
        details = {"config_key": config_key} if config_key else {}
        super().__init__(message, status_code=500, details=details)


class AIResponseFormatError(Exception):
    """Model output could not be turned into the expected structure.

    Internal to the AI boundary: callers of `OpenAIService` never see it,
    the service switches to its fallback content instead.
    """
