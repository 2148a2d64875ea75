"""
Custom exception classes for PerfectWorks client operations.

This module defines domain-specific exceptions that provide clear error context
for API interactions, making error handling and debugging easier in the
orchestration layer.

Exception Hierarchy:
- PerfectWorksClientError (base for all client errors)
  ├── RemoteError (non-2xx or application-level failure from the API)
  │   └── NotFoundError (404, unknown file id or endpoint)
  └── TransferError (network/timeout, upload or download failure)
"""

from enum import Enum


class ErrorCategory(Enum):
    """Fixed categories for well-known HTTP failure statuses.

    The category lets callers branch on the kind of failure without parsing
    error text. Statuses outside the well-known set map to OTHER and keep the
    raw server message.
    """

    AUTH = "auth"
    PERMISSION = "permission"
    NOT_FOUND = "not_found"
    RATE_LIMITED = "rate_limited"
    SERVER = "server"
    OTHER = "other"

    @classmethod
    def from_status(cls, status: int | None) -> "ErrorCategory":
        return _STATUS_CATEGORIES.get(status, cls.OTHER)

    @property
    def description(self) -> str | None:
        """Human-readable message for this category, None for OTHER."""
        return _CATEGORY_MESSAGES.get(self)


_STATUS_CATEGORIES = {
    401: ErrorCategory.AUTH,
    403: ErrorCategory.PERMISSION,
    404: ErrorCategory.NOT_FOUND,
    429: ErrorCategory.RATE_LIMITED,
    500: ErrorCategory.SERVER,
}

_CATEGORY_MESSAGES = {
    ErrorCategory.AUTH: "Invalid API key or authentication failed",
    ErrorCategory.PERMISSION: "Access forbidden - check your API key permissions",
    ErrorCategory.NOT_FOUND: "API endpoint not found - check your base URL",
    ErrorCategory.RATE_LIMITED: "Rate limit exceeded - please try again later",
    ErrorCategory.SERVER: "Server error - please try again later",
}


class PerfectWorksClientError(Exception):
    """Base exception for all PerfectWorks client errors.

    All client exceptions inherit from this class, allowing for broad
    exception catching when needed while maintaining specific error types
    for precise error handling.
    """

    def __init__(self, message: str, original_exception: Exception | None = None):
        """Initialize the exception.

        Args:
            message: Human-readable error message describing what went wrong.
            original_exception: Optional original exception that caused this error.
        """
        super().__init__(message)
        self.message = message
        self.original_exception = original_exception

    def __str__(self) -> str:
        """Return string representation with context."""
        if self.original_exception:
            orig_type = type(self.original_exception).__name__
            orig_msg = str(self.original_exception)
            return f"{self.message} (Original: {orig_type}: {orig_msg})"
        return self.message


class RemoteError(PerfectWorksClientError):
    """Exception raised when the PerfectWorks API rejects a request.

    Raised for non-2xx responses and for 2xx responses whose envelope reports
    ``success: false``. Carries the HTTP status, the raw server message, the
    operation context (e.g. "Failed to create file record") and the
    ``ErrorCategory`` derived from the status.
    """

    def __init__(
        self,
        context: str,
        http_status: int | None = None,
        server_message: str | None = None,
        original_exception: Exception | None = None,
        detail: str | None = None,
    ):
        """Initialize the exception.

        Args:
            context: Operation that failed, used as the message prefix.
            http_status: HTTP status code of the response, if any.
            server_message: Message extracted from the structured error body.
            original_exception: Optional original exception that caused this error.
            detail: Optional message replacing the category description, for
                callers that know more than the status code tells (e.g. an
                unknown file id rather than a wrong base URL).
        """
        self.context = context
        self.http_status = http_status
        self.server_message = server_message
        self.category = ErrorCategory.from_status(http_status)
        super().__init__(self._compose_message(detail), original_exception)

    def _compose_message(self, detail: str | None = None) -> str:
        detail = detail or self.category.description
        if detail is None:
            detail = self.server_message or (
                f"HTTP {self.http_status}" if self.http_status else "Request failed"
            )
        elif self.server_message and self.server_message != detail:
            detail = f"{detail} ({self.server_message})"
        return f"{self.context}: {detail}"


class NotFoundError(RemoteError):
    """Exception raised when a file id or endpoint does not exist (404)."""

    pass


class TransferError(PerfectWorksClientError):
    """Exception raised for network-level failures.

    Covers connection errors and timeouts on any call, and any failure while
    moving file bytes to or from a signed storage URL. The original
    exception is preserved for debugging.
    """

    def __init__(
        self,
        message: str,
        original_exception: Exception | None = None,
        http_status: int | None = None,
    ):
        super().__init__(message, original_exception)
        self.http_status = http_status
