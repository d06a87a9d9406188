"""
Records Service: Custom Exception Hierarchy
=============================================

What:  Application-specific exceptions for the failure modes of the record
       store and its connection provider.
How:   Each exception carries a message and an optional context dict.
       Global exception handlers (registered in main.py) catch these and
       return structured JSON error responses with the right status code.
Who:   Raised by the connection provider and record store; caught by the
       global handlers.

Exception Hierarchy:
    RecordsServiceError (base)
    ├── StoreConnectionError   → client construction / connect / ping failed
    ├── StoreError             → query, insert or update failed
    │   └── StoreTimeoutError  → operation exceeded the connection timeout
    ├── DecodeError            → malformed document, identifier or payload
    └── NotFoundError          → no matching document

HTTP mapping (see main.py):
    GET requests     → 404 for every store-side failure
    Write requests   → 400 for DecodeError, 500 for store failures
"""

from typing import Any, Dict, Optional


class RecordsServiceError(Exception):
    """
    Base exception for all application errors.

    Attributes:
        message:  Error description returned verbatim in the API response
        context:  Additional debug info (logged, and returned as `details`)
    """

    def __init__(
        self,
        message: str = "An unexpected error occurred",
        context: Optional[Dict[str, Any]] = None,
    ):
        self.message = message
        self.context = context or {}
        super().__init__(self.message)


class StoreConnectionError(RecordsServiceError):
    """
    Raised when a verified connection to the document store cannot be made.

    The `stage` tells which step failed:
        construct  the driver rejected the address or options
        connect    no server could be reached within the timeout
        ping       the server answered the liveness check with an error
    """

    def __init__(
        self,
        stage: str,
        message: str = "Could not connect to the document store",
        context: Optional[Dict[str, Any]] = None,
    ):
        ctx = context or {}
        ctx["stage"] = stage
        super().__init__(message=message, context=ctx)
        self.stage = stage


class StoreError(RecordsServiceError):
    """
    Raised when a query, insert or update fails at the store layer.

    No rollback and no retry: the failure is terminal for the request.
    """

    def __init__(
        self,
        message: str = "A document store operation failed",
        operation: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        ctx = context or {}
        if operation:
            ctx["operation"] = operation
        super().__init__(message=message, context=ctx)
        self.operation = operation


class StoreTimeoutError(StoreError):
    """Raised when work on a connection outlives its timeout."""

    def __init__(
        self,
        timeout: float,
        operation: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        ctx = context or {}
        ctx["timeout_seconds"] = timeout
        super().__init__(
            message=f"Document store operation timed out after {timeout:g} seconds",
            operation=operation,
            context=ctx,
        )
        self.timeout = timeout


class DecodeError(RecordsServiceError):
    """
    Raised when data cannot be decoded into a Record.

    Covers stored documents of the wrong shape, identifiers that are not
    valid ObjectIds and inbound payloads that are not a Record.
    """

    def __init__(
        self,
        message: str = "Could not decode record",
        field: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        ctx = context or {}
        if field:
            ctx["field"] = field
        super().__init__(message=message, context=ctx)
        self.field = field


class NotFoundError(RecordsServiceError):
    """Raised when no document matches the requested identifier."""

    def __init__(
        self,
        resource: str = "resource",
        resource_id: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        message = f"The requested {resource} was not found"
        if resource_id:
            message = f"{resource} with ID '{resource_id}' was not found"
        ctx = context or {}
        ctx["resource"] = resource
        if resource_id:
            ctx["resource_id"] = resource_id
        super().__init__(message=message, context=ctx)
