"""Error Hierarchy — typed, categorized exceptions for all Expense Tracker failure modes.

Invariants:
    - Every error has a code (str), category (ErrorCategory), severity (ErrorSeverity)
    - Domain errors (400-level) are recoverable; store errors (500-level) are critical
    - to_response() produces the REST error envelope
    - No internal details leaked in user-facing messages

Design Decisions:
    - Single hierarchy with ExpenseTrackerError base: FastAPI global handler catches all
    - Patch errors share PatchError so callers can treat "patch rejected" uniformly
    - ErrorContext as dataclass: rich observability without coupling to logging framework
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any


class ErrorSeverity(str, Enum):
    """Error severity for observability and client handling."""
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
    CRITICAL = "critical"


class ErrorCategory(str, Enum):
    """High-level error categories for routing and handling."""
    VALIDATION = "validation"
    RESOURCE_NOT_FOUND = "resource_not_found"
    PATCH = "patch"
    DATABASE = "database"
    EXTERNAL_API = "external_api"
    INTERNAL = "internal"


@dataclass
class ErrorContext:
    """Rich context for error observability and debugging."""
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    resource_id: str | None = None
    path: str | None = None
    operation_index: int | None = None
    debug_info: dict[str, Any] | None = None


class ExpenseTrackerError(Exception):
    """Base exception for all Expense Tracker errors."""

    def __init__(
        self,
        message: str,
        code: str,
        category: ErrorCategory,
        severity: ErrorSeverity = ErrorSeverity.ERROR,
        context: ErrorContext | None = None,
        http_status: int = 500,
    ):
        super().__init__(message)
        self.message = message
        self.code = code
        self.category = category
        self.severity = severity
        self.context = context or ErrorContext()
        self.http_status = http_status

    def to_response(self) -> dict:
        """Convert to standardized REST error response."""
        return {
            "error": {
                "code": self.code,
                "message": self.message,
                "category": self.category.value,
                "severity": self.severity.value,
                "timestamp": self.context.timestamp.isoformat(),
                "context": {
                    "resource_id": self.context.resource_id,
                    "path": self.context.path,
                    "operation_index": self.context.operation_index,
                },
            }
        }


# ─── Request Errors (400-level) ─────────────────────────────────

class ResourceNotFoundError(ExpenseTrackerError):
    """Requested resource does not exist."""
    def __init__(
        self, resource_type: str, resource_id: object, context: ErrorContext | None = None,
    ):
        ctx = context or ErrorContext()
        ctx.resource_id = str(resource_id)
        super().__init__(
            f"{resource_type} '{resource_id}' not found",
            "RESOURCE_NOT_FOUND", ErrorCategory.RESOURCE_NOT_FOUND,
            ErrorSeverity.ERROR, ctx, 404,
        )


class ValidationFailureError(ExpenseTrackerError):
    """Malformed request body or query parameter."""
    def __init__(self, message: str, field: str | None = None, context: ErrorContext | None = None):
        super().__init__(
            message, "VALIDATION_ERROR", ErrorCategory.VALIDATION,
            ErrorSeverity.ERROR, context, 400,
        )
        self.field = field


class InvalidSortFieldError(ExpenseTrackerError):
    """Sort expression names a field that is unknown or not sortable."""
    def __init__(self, field_name: str, context: ErrorContext | None = None):
        super().__init__(
            f"Cannot sort by unknown field '{field_name}'",
            "INVALID_SORT_FIELD", ErrorCategory.VALIDATION,
            ErrorSeverity.ERROR, context, 400,
        )
        self.field_name = field_name


class InvalidPageError(ExpenseTrackerError):
    """Page number or page size outside the accepted range."""
    def __init__(self, message: str, context: ErrorContext | None = None):
        super().__init__(
            message, "INVALID_PAGE", ErrorCategory.VALIDATION,
            ErrorSeverity.ERROR, context, 400,
        )


# ─── Patch Errors (400-level) ───────────────────────────────────

class PatchError(ExpenseTrackerError):
    """Base for every reason a patch document is rejected."""
    def __init__(
        self, message: str, code: str, path: str | None = None,
        operation_index: int | None = None, context: ErrorContext | None = None,
    ):
        ctx = context or ErrorContext()
        ctx.path = path
        ctx.operation_index = operation_index
        super().__init__(
            message, code, ErrorCategory.PATCH,
            ErrorSeverity.ERROR, ctx, 400,
        )
        self.path = path
        self.operation_index = operation_index


class PathNotFoundError(PatchError):
    """Patch path does not resolve to an addressable location."""
    def __init__(self, path: str, operation_index: int | None = None, reason: str = ""):
        message = f"Path '{path}' does not exist on the target"
        if reason:
            message = f"{message}: {reason}"
        super().__init__(message, "PATCH_PATH_NOT_FOUND", path, operation_index)


class TypeMismatchError(PatchError):
    """Patch value is incompatible with the type of the target location."""
    def __init__(self, path: str, expected: str, operation_index: int | None = None):
        super().__init__(
            f"Value for '{path}' is not a valid {expected}",
            "PATCH_TYPE_MISMATCH", path, operation_index,
        )
        self.expected = expected


class TestFailedError(PatchError):
    """A 'test' operation found a value different from the expected one."""
    __test__ = False  # not a pytest test class

    def __init__(self, path: str, operation_index: int | None = None):
        super().__init__(
            f"Test operation failed: value at '{path}' does not match",
            "PATCH_TEST_FAILED", path, operation_index,
        )


class UnsupportedOperationError(PatchError):
    """Operation kind unknown, or not allowed on the addressed path."""
    def __init__(self, message: str, path: str | None = None, operation_index: int | None = None):
        super().__init__(message, "PATCH_UNSUPPORTED_OPERATION", path, operation_index)


# ─── Infrastructure Errors (500-level) ──────────────────────────

class StoreFailureError(ExpenseTrackerError):
    """Persistence operation failed. Message stays generic for callers."""
    def __init__(self, operation: str, context: ErrorContext | None = None):
        super().__init__(
            "The data store could not complete the request",
            "STORE_FAILURE", ErrorCategory.DATABASE,
            ErrorSeverity.CRITICAL, context, 500,
        )
        self.operation = operation


class UpstreamAPIError(ExpenseTrackerError):
    """Expense Tracker API answered a client call with a non-success status."""
    def __init__(
        self, status_code: int, message: str, error_code: str | None = None,
        context: ErrorContext | None = None,
    ):
        super().__init__(
            f"Expense Tracker API error ({status_code}): {message}",
            "UPSTREAM_API_ERROR", ErrorCategory.EXTERNAL_API,
            ErrorSeverity.ERROR, context, status_code,
        )
        self.status_code = status_code
        self.error_code = error_code
