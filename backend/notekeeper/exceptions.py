"""
Notekeeper Backend — Custom Exception Hierarchy
================================================

What:  Application-specific exceptions for the note API and the admission gate.
Why:   Targeted handling with the right HTTP status codes; generic Python
       exceptions would leak internal details to the client.
How:   Each exception carries a message and an optional context dict.
       Global exception handlers (registered in main.py) turn them into
       JSON responses.

Exception Hierarchy:
    NotekeeperError (base)
    ├── ValidationError          → VALIDATION_ERROR_STATUS (default 500)
    ├── NotFoundError            → 404 Not Found
    ├── DatabaseError            → 500 Internal Server Error
    ├── AdmissionDeniedError     → 429 Too Many Requests
    └── AdmissionGateError       → 500 Internal Server Error (fails closed)
"""

from typing import Any, Dict, Optional


class NotekeeperError(Exception):
    """
    Base exception for all Notekeeper application errors.

    Attributes:
        message:  User-facing error description
        context:  Additional debug info (logged but NOT returned to client)
    """

    def __init__(
        self,
        message: str = "An unexpected error occurred",
        context: Optional[Dict[str, Any]] = None,
    ):
        self.message = message
        self.context = context or {}
        super().__init__(self.message)


class ValidationError(NotekeeperError):
    """
    Raised when a note body is missing a field or a field is blank.

    HTTP:    500 by default; 400/422 when VALIDATION_ERROR_STATUS says so.
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


class NotFoundError(NotekeeperError):
    """
    Raised when a requested resource does not exist.

    When:    Any single-id note operation with an unknown or malformed id.
    HTTP:    404 Not Found

    SQLAlchemy returns None for missing rows; the service layer converts
    None into this exception so routes never branch on it.
    """

    def __init__(
        self,
        resource: str = "Note",
        resource_id: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        ctx = context or {}
        ctx["resource"] = resource
        if resource_id:
            ctx["resource_id"] = resource_id
        super().__init__(message=f"{resource} not found", context=ctx)
        self.resource_id = resource_id


class DatabaseError(NotekeeperError):
    """
    Raised when a database operation fails for infrastructure reasons.

    HTTP:    500 Internal Server Error

    The client only ever sees the generic message; the original error type
    goes into the context for the server log.
    """

    def __init__(
        self,
        message: str = "A database error occurred",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class AdmissionDeniedError(NotekeeperError):
    """
    Raised when the admission gate has no budget left for a key.

    HTTP:    429 Too Many Requests, with Retry-After.
    """

    def __init__(
        self,
        retry_after: int = 1,
        limit: Optional[int] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        ctx = context or {}
        ctx["retry_after"] = retry_after
        super().__init__(message="Too Many Requests", context=ctx)
        self.retry_after = retry_after
        self.limit = limit


class AdmissionGateError(NotekeeperError):
    """
    Raised when the admission gate cannot reach its backing counter.

    HTTP:    500 Internal Server Error

    The request is neither admitted nor denied; the error propagates so the
    caller sees a server failure.
    """

    def __init__(
        self,
        message: str = "Rate limiter backend is unavailable",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)
