"""
User Registry — Custom Exception Hierarchy
===========================================

What:  Defines application-specific exceptions for the user use cases.
Why:   Custom exceptions enable targeted error handling with appropriate HTTP
       status codes and user-friendly messages. They replace driver and
       framework exceptions that would leak internal details to the client.
How:   Each exception class carries a message and optional context dict.
       Global exception handlers (registered in main.py) catch these and
       return structured JSON error responses with correct HTTP status codes.
Who:   Raised by the service and the record store; caught by global handlers.

Exception Hierarchy:
    UserRegistryError (base)
    ├── InvalidInputError      → 400 Bad Request (client can fix)
    ├── NotFoundError          → 404 Not Found
    ├── DuplicateEmailError    → 409 Conflict
    └── StoreUnavailableError  → 503 Service Unavailable (retry later)

Retry guidance:
    Only StoreUnavailableError is worth retrying, and only for idempotent
    operations. A retried create can come back as DuplicateEmailError if the
    first attempt did reach the database.
"""

from typing import Any, Dict, Optional


class UserRegistryError(Exception):
    """
    Base exception for all User Registry application errors.

    Attributes:
        message:  User-facing error description (safe to return in API response)
        context:  Additional debug info (logged; only returned for 4xx errors)
    """

    def __init__(
        self,
        message: str = "An unexpected error occurred",
        context: Optional[Dict[str, Any]] = None,
    ):
        self.message = message
        self.context = context or {}
        super().__init__(self.message)


class InvalidInputError(UserRegistryError):
    """
    Raised when client input fails validation.

    When:    Non-positive page/limit, limit above the maximum page size,
             a required field explicitly nulled in a patch, or a write that
             breaks a NOT NULL / CHECK constraint.
    HTTP:    400 Bad Request
    """

    def __init__(
        self,
        message: str = "Invalid input",
        field: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        ctx = context or {}
        if field:
            ctx["field"] = field
        super().__init__(message=message, context=ctx)
        self.field = field


class NotFoundError(UserRegistryError):
    """
    Raised when a requested resource does not exist.

    The store returns None for missing records (not an exception); the
    service converts that None into this error so routes stay free of
    existence checks.
    HTTP:    404 Not Found
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
        self.resource_id = resource_id


class DuplicateEmailError(UserRegistryError):
    """
    Raised when an email address is already used by another user.

    When:    The create/update pre-check finds a holder of the address, or
             the unique index on users.email rejects the write.
    HTTP:    409 Conflict
    """

    def __init__(
        self,
        email: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        message = "A user with this email already exists"
        if email:
            message = f"A user with email '{email}' already exists"
        ctx = context or {}
        if email:
            ctx["email"] = email
        super().__init__(message=message, context=ctx)
        self.email = email


class StoreUnavailableError(UserRegistryError):
    """
    Raised when the record store fails or times out.

    When:    Connection refused or lost, statement timeout, driver errors.
    HTTP:    503 Service Unavailable

    Security Note:
        The message returned to the client is always generic. The original
        exception type is kept in context for the server-side log only.
    """

    def __init__(
        self,
        message: str = "The user store is temporarily unavailable. Please try again later.",
        retry_after: Optional[int] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        ctx = context or {}
        if retry_after:
            ctx["retry_after"] = retry_after
        super().__init__(message=message, context=ctx)
        self.retry_after = retry_after
