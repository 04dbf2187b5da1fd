"""
Storefront Backend — Custom Exception Hierarchy
=================================================

What:  Application-specific exceptions for the data-access layer and the API.
How:   Each exception carries a message and an optional context dict.
       Global exception handlers (registered in main.py) turn them into
       structured JSON error responses with the matching HTTP status code.
Who:   Raised by services; caught by the handlers in main.py or by callers
       using the service layer directly.

Exception Hierarchy:
    StorefrontError (base)
    ├── ValidationError      → 400 Bad Request
    ├── AuthenticationError  → 401 Unauthorized
    ├── NotFoundError        → 404 Not Found
    ├── ConflictError        → 409 Conflict
    └── DatabaseError        → 500 Internal Server Error
"""

from typing import Any, Dict, Optional


class StorefrontError(Exception):
    """
    Base exception for all storefront errors.

    Attributes:
        message:  User-facing error description (safe to return in API response)
        context:  Additional debug info (logged, only partially returned)
    """

    def __init__(
        self,
        message: str = "An unexpected error occurred",
        context: Optional[Dict[str, Any]] = None,
    ):
        self.message = message
        self.context = context or {}
        super().__init__(self.message)


class ValidationError(StorefrontError):
    """
    Raised when input breaks a business rule.

    When:  Blank names, short usernames or passwords, negative prices,
           unknown order status, empty cart at checkout, unknown category.
    HTTP:  400 Bad Request
    """

    def __init__(
        self,
        message: str = "Validation failed",
        field: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        ctx = context or {}
        if field:
            ctx["field"] = field
        super().__init__(message=message, context=ctx)
        self.field = field


class AuthenticationError(StorefrontError):
    """Raised on a failed login. HTTP 401."""

    def __init__(
        self,
        message: str = "Invalid username or password",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class NotFoundError(StorefrontError):
    """
    Raised when a requested row does not exist.

    SQLAlchemy returns None for missing records; services convert that
    None into NotFoundError so callers get a typed failure.
    HTTP: 404 Not Found
    """

    def __init__(
        self,
        resource: str = "resource",
        resource_id: Optional[Any] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        message = f"The requested {resource} was not found"
        if resource_id is not None:
            message = f"{resource} with ID '{resource_id}' was not found"
        ctx = context or {}
        ctx["resource"] = resource
        if resource_id is not None:
            ctx["resource_id"] = str(resource_id)
        super().__init__(message=message, context=ctx)


class ConflictError(StorefrontError):
    """
    Raised when a write would violate a uniqueness rule.

    When:  Registering or renaming a user to a username that is taken.
    HTTP:  409 Conflict
    """

    def __init__(
        self,
        message: str = "The resource already exists",
        field: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        ctx = context or {}
        if field:
            ctx["field"] = field
        super().__init__(message=message, context=ctx)
        self.field = field


class DatabaseError(StorefrontError):
    """
    Raised when a database operation fails unexpectedly.

    The message returned to API clients is always generic; the original
    error type is kept in `context` for server-side logs.
    HTTP: 500 Internal Server Error
    """

    def __init__(
        self,
        message: str = "A database error occurred. Please try again later.",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)
