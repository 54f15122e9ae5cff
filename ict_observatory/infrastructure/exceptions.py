"""
Custom exception classes for the ICT observatory application.

Provides structured error handling with user-friendly messages and proper
error categorization for different failure scenarios.
"""

from __future__ import annotations

from typing import Any


class ObservatoryError(Exception):
    """Base exception for all application errors."""

    def __init__(
        self,
        message: str,
        details: dict[str, Any] | None = None,
        user_message: str | None = None,
    ):
        super().__init__(message)
        self.message = message
        self.details = details or {}
        self.user_message = user_message or self._get_default_user_message()

    def _get_default_user_message(self) -> str:
        """Provide a user-friendly version of the error message."""
        return "An unexpected error occurred. Please try again."

    def __str__(self) -> str:
        return f"{self.__class__.__name__}: {self.message}"


class ValidationError(ObservatoryError):
    """Raised when input validation fails."""

    def __init__(
        self, field: str, message: str, value: Any = None, details: dict[str, Any] | None = None
    ):
        self.field = field
        self.value = value
        super().__init__(
            message=f"Validation failed for field '{field}': {message}",
            details=details or {"field": field, "value": value},
            user_message=f"Invalid {field.replace('_', ' ')}: {message}",
        )


class MultipleValidationError(ObservatoryError):
    """Raised when multiple validation errors occur."""

    def __init__(self, errors: list[ValidationError]):
        self.validation_errors = errors
        messages = [f"{e.field}: {e.message}" for e in errors]
        super().__init__(
            message=f"Multiple validation errors: {'; '.join(messages)}",
            details={
                "errors": [
                    {"field": e.field, "message": e.message, "value": e.value} for e in errors
                ]
            },
            user_message="Please correct the following errors and try again.",
        )


class DatabaseError(ObservatoryError):
    """Raised when database operations fail."""

    def __init__(self, message: str, operation: str, details: dict[str, Any] | None = None):
        self.operation = operation
        super().__init__(
            message=f"Database error during {operation}: {message}",
            details=details or {"operation": operation},
            user_message=self._get_default_user_message(),
        )

    def _get_default_user_message(self) -> str:
        return "Unable to save your changes. Please try again."


class ConnectionError(DatabaseError):
    """Raised when database connection fails."""

    def __init__(self, message: str, details: dict[str, Any] | None = None):
        super().__init__(message=message, operation="connection", details=details)

    def _get_default_user_message(self) -> str:
        return "Unable to connect to the database. Please check your connection and try again."


class IntegrityError(DatabaseError):
    """Raised when database integrity constraints are violated."""

    def __init__(
        self,
        message: str,
        constraint: str | None = None,
        details: dict[str, Any] | None = None,
    ):
        self.constraint = constraint
        super().__init__(
            message=message,
            operation="integrity_check",
            details=details or {"constraint": constraint},
        )

    def _get_default_user_message(self) -> str:
        if self.constraint:
            if "unique" in self.constraint.lower():
                return "This item already exists (unique constraint). Please use a different value."
            elif "foreign" in self.constraint.lower():
                return "Referenced item no longer exists. Please refresh and try again."
        return "Data integrity error. Please check your input and try again."


class AssessmentError(ObservatoryError):
    """Raised when policy assessment operations fail."""

    def __init__(
        self,
        message: str,
        assessment_id: int | None = None,
        details: dict[str, Any] | None = None,
        user_message: str | None = None,
    ):
        self.assessment_id = assessment_id
        super().__init__(
            message=message,
            details=details or {"assessment_id": assessment_id},
            user_message=user_message or "Assessment error occurred. Please try again.",
        )


class AssessmentNotFoundError(AssessmentError):
    """Raised when an assessment is not found."""

    def __init__(self, assessment_id: int):
        super().__init__(
            message=f"Policy assessment with ID {assessment_id} not found",
            assessment_id=assessment_id,
            user_message="The selected assessment could not be found. Please refresh and try again.",
        )


class UnknownThemeError(AssessmentError):
    """Raised when a theme, sub-theme or cross-cutting code is not in the catalog."""

    def __init__(self, code: str, assessment_id: int | None = None):
        self.code = code
        super().__init__(
            message=f"Unknown framework code: {code}",
            assessment_id=assessment_id,
            details={"code": code, "assessment_id": assessment_id},
            user_message=f"'{code}' is not part of the policy framework.",
        )


class UserError(ObservatoryError):
    """Raised when user directory operations fail."""

    def __init__(
        self,
        message: str,
        user_id: int | None = None,
        details: dict[str, Any] | None = None,
        user_message: str | None = None,
    ):
        self.user_id = user_id
        super().__init__(
            message=message,
            details=details or {"user_id": user_id},
            user_message=user_message or "User operation failed. Please try again.",
        )


class UserNotFoundError(UserError):
    """Raised when a user is not found."""

    def __init__(self, user_id: int):
        super().__init__(
            message=f"User with ID {user_id} not found",
            user_id=user_id,
            user_message="User not found.",
        )


class DuplicateEmailError(UserError):
    """Raised when a user email is already registered."""

    def __init__(self, email: str):
        self.email = email
        super().__init__(
            message=f"Email already exists: {email}",
            details={"email": email},
            user_message="Email already exists",
        )


class AuthenticationError(ObservatoryError):
    """Raised when login credentials are rejected."""

    def __init__(self, message: str = "Invalid email or password"):
        super().__init__(message=message, user_message="Invalid email or password")


class PermissionDeniedError(ObservatoryError):
    """Raised when user lacks required permissions."""

    def __init__(
        self,
        message: str,
        operation: str | None = None,
        details: dict[str, Any] | None = None,
    ):
        self.operation = operation
        super().__init__(
            message=message,
            details=details or {"operation": operation},
            user_message="You don't have permission to perform this operation.",
        )


class ConfigurationError(ObservatoryError):
    """Raised when configuration is invalid."""

    def __init__(
        self,
        message: str,
        config_key: str | None = None,
        details: dict[str, Any] | None = None,
    ):
        self.config_key = config_key
        super().__init__(
            message=message,
            details=details or {"config_key": config_key},
            user_message="Configuration error. Please check your settings.",
        )


class ExportError(ObservatoryError):
    """Raised when data export fails."""

    def __init__(
        self,
        message: str,
        export_format: str | None = None,
        details: dict[str, Any] | None = None,
    ):
        self.export_format = export_format
        super().__init__(
            message=message,
            details=details or {"export_format": export_format},
            user_message="Export failed. Please try again or choose a different format.",
        )


class BusinessLogicError(ObservatoryError):
    """Raised when business rules are violated."""

    def __init__(
        self,
        message: str,
        rule: str | None = None,
        details: dict[str, Any] | None = None,
        user_message: str | None = None,
    ):
        self.rule = rule
        super().__init__(
            message=message,
            details=details or {"rule": rule},
            user_message=user_message
            or "This operation cannot be completed due to business rules.",
        )


def handle_database_error(e: Exception, operation: str = "database operation") -> DatabaseError:
    """
    Convert generic database exceptions to appropriate custom exceptions.

    Example:
        >>> try:
        ...     session.commit()
        >>> except Exception as e:
        ...     raise handle_database_error(e, "commit transaction")
    """
    error_msg = str(e).lower()

    if "unique constraint" in error_msg or "duplicate" in error_msg:
        return IntegrityError(str(e), constraint="unique")
    elif "foreign key" in error_msg or "foreign_key" in error_msg:
        return IntegrityError(str(e), constraint="foreign_key")
    elif "check constraint" in error_msg:
        return IntegrityError(str(e), constraint="check")
    elif "connection" in error_msg or "timeout" in error_msg:
        return ConnectionError(str(e))
    else:
        return DatabaseError(str(e), operation)


def create_user_friendly_error_message(error: Exception) -> str:
    """
    Create a user-friendly error message from any exception.

    Example:
        >>> error = ValidationError("email", "Please enter a valid email address")
        >>> create_user_friendly_error_message(error)
        'Invalid email: Please enter a valid email address'
    """
    if isinstance(error, ObservatoryError):
        return error.user_message

    error_type = type(error).__name__
    messages = {
        "ValueError": "Invalid input provided. Please check your data and try again.",
        "KeyError": "Required information is missing. Please check your input.",
        "TypeError": "Incorrect data type provided. Please check your input format.",
    }
    return messages.get(
        error_type, "An unexpected error occurred. Please try again or contact support."
    )


def log_error_details(error: Exception, context: dict[str, Any] | None = None) -> dict[str, Any]:
    """
    Create structured error details for logging.

    Example:
        >>> details = log_error_details(DatabaseError("Connection failed", "connect"), {"user_id": 3})
        >>> details["error_type"]
        'DatabaseError'
    """
    details = {
        "error_type": type(error).__name__,
        "error_message": str(error),
        "context": context or {},
    }

    if isinstance(error, ObservatoryError):
        details.update({"user_message": error.user_message, "error_details": error.details})

    return details
