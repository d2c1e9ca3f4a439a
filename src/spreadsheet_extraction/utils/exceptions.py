"""Centralized exception classes for spreadsheet record extraction.

This module provides a hierarchy of custom exceptions with error codes,
HTTP status code mapping, and structured error details for consistent
error handling throughout the application.

Exception Hierarchy:
    SpreadsheetError (base)
    ├── SourceError
    │   ├── SourceNotFoundError
    │   ├── SourceUnreadableError
    │   └── FileTooLargeError
    ├── WorkbookLayoutError
    │   ├── SheetNotFoundError
    │   └── HeaderRowMissingError
    ├── ValidationError
    └── ChatServiceError

Error Codes:
    All errors have a unique error code (e.g., "E1001") that can be used
    for programmatic error handling and documentation.
"""

from enum import Enum
from typing import Any


class ErrorCode(str, Enum):
    """Enumeration of all error codes used in the application.

    Error codes are grouped by category:
    - E1xxx: Source (file, URL, byte stream) errors
    - E2xxx: Workbook layout errors
    - E3xxx: Request validation errors
    - E4xxx: Extraction errors
    - E5xxx: External service errors
    - E9xxx: Internal/unexpected errors
    """

    # Source errors (E1xxx)
    FILE_NOT_FOUND = "E1001"
    FILE_TOO_LARGE = "E1002"
    SOURCE_UNREADABLE = "E1003"
    DOWNLOAD_FAILED = "E1004"

    # Workbook layout errors (E2xxx)
    SHEET_NOT_FOUND = "E2001"
    HEADER_ROW_MISSING = "E2002"

    # Validation errors (E3xxx)
    INVALID_REQUEST = "E3001"

    # Extraction errors (E4xxx)
    EXTRACTION_FAILED = "E4001"

    # External service errors (E5xxx)
    CHAT_API_ERROR = "E5001"
    CHAT_RESPONSE_INVALID = "E5002"

    # Internal errors (E9xxx)
    INTERNAL_ERROR = "E9001"
    CONFIGURATION_ERROR = "E9002"
    UNEXPECTED_ERROR = "E9999"


class HTTPStatusMixin:
    """Mixin that provides HTTP status code for exceptions.

    Subclasses should set the `http_status` class attribute.
    """

    http_status: int = 500

    def get_http_status(self) -> int:
        """Get the HTTP status code for this exception.

        Returns:
            HTTP status code appropriate for this error.
        """
        return self.http_status


class SpreadsheetError(Exception, HTTPStatusMixin):
    """Base exception for all spreadsheet extraction errors.

    Attributes:
        message: Human-readable error message.
        error_code: Unique error code from ErrorCode enum.
        details: Optional dictionary with additional error details.
        http_status: HTTP status code for API responses (default 500).
    """

    http_status: int = 500

    def __init__(
        self,
        message: str,
        error_code: ErrorCode = ErrorCode.INTERNAL_ERROR,
        details: dict[str, Any] | None = None,
    ) -> None:
        """Initialize the exception.

        Args:
            message: Human-readable error description.
            error_code: Error code from ErrorCode enum.
            details: Optional additional details about the error.
        """
        super().__init__(message)
        self.message = message
        self.error_code = error_code
        self.details = details or {}

    def to_dict(self) -> dict[str, Any]:
        """Convert the exception to a dictionary for API responses.

        Returns:
            Dictionary with error information.
        """
        result: dict[str, Any] = {
            "error_code": self.error_code.value,
            "message": self.message,
        }
        if self.details:
            result["details"] = self.details
        return result

    def __str__(self) -> str:
        """Return string representation with error code."""
        return f"[{self.error_code.value}] {self.message}"


# =============================================================================
# Source Errors (E1xxx)
# =============================================================================


class SourceError(SpreadsheetError):
    """Base class for errors raised while obtaining or opening a workbook."""

    http_status: int = 400

    def __init__(
        self,
        message: str,
        error_code: ErrorCode = ErrorCode.SOURCE_UNREADABLE,
        source: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        """Initialize with source information.

        Args:
            message: Error message.
            error_code: Error code.
            source: Path or URL of the problematic source.
            details: Additional details.
        """
        details = details or {}
        if source:
            details["source"] = source
        super().__init__(message, error_code, details)
        self.source = source


class SourceNotFoundError(SourceError):
    """Raised when a workbook path does not exist."""

    http_status: int = 404

    def __init__(
        self,
        source: str,
        message: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        message = message or f"File not found: {source}"
        super().__init__(
            message=message,
            error_code=ErrorCode.FILE_NOT_FOUND,
            source=source,
            details=details,
        )


class SourceUnreadableError(SourceError):
    """Raised when a source cannot be downloaded or parsed as a workbook."""

    def __init__(
        self,
        message: str,
        source: str | None = None,
        error_code: ErrorCode = ErrorCode.SOURCE_UNREADABLE,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(
            message=message,
            error_code=error_code,
            source=source,
            details=details,
        )


class FileTooLargeError(SourceError):
    """Raised when a workbook exceeds the maximum allowed size."""

    http_status: int = 413

    def __init__(
        self,
        file_size: int,
        max_size: int,
        source: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        """Initialize with size information.

        Args:
            file_size: Actual size in bytes.
            max_size: Maximum allowed size in bytes.
            source: Optional path or URL.
            details: Additional details.
        """
        details = details or {}
        details["file_size_bytes"] = file_size
        details["max_size_bytes"] = max_size
        message = (
            f"File size ({file_size} bytes) exceeds maximum "
            f"allowed size ({max_size} bytes)"
        )
        super().__init__(
            message=message,
            error_code=ErrorCode.FILE_TOO_LARGE,
            source=source,
            details=details,
        )
        self.file_size = file_size
        self.max_size = max_size


# =============================================================================
# Workbook Layout Errors (E2xxx)
# =============================================================================


class WorkbookLayoutError(SpreadsheetError):
    """Base class for errors about the requested sheet or header row."""

    http_status: int = 422

    def __init__(
        self,
        message: str,
        error_code: ErrorCode,
        sheet_name: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        details = details or {}
        if sheet_name:
            details["sheet_name"] = sheet_name
        super().__init__(message, error_code, details)
        self.sheet_name = sheet_name


class SheetNotFoundError(WorkbookLayoutError):
    """Raised when the requested sheet name is not in the workbook."""

    def __init__(
        self,
        sheet_name: str,
        available: list[str] | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        """Initialize with the missing sheet name.

        Args:
            sheet_name: The sheet name that was requested.
            available: Sheet names the workbook does contain.
            details: Additional details.
        """
        details = details or {}
        if available is not None:
            details["available_sheets"] = available
        super().__init__(
            message=f"找不到名为 '{sheet_name}' 的工作表",
            error_code=ErrorCode.SHEET_NOT_FOUND,
            sheet_name=sheet_name,
            details=details,
        )


class HeaderRowMissingError(WorkbookLayoutError):
    """Raised when no row exists at the configured header row number."""

    def __init__(
        self,
        header_row_number: int,
        sheet_name: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        details = details or {}
        details["header_row_number"] = header_row_number
        super().__init__(
            message="表头行不存在，请检查表头行号是否正确",
            error_code=ErrorCode.HEADER_ROW_MISSING,
            sheet_name=sheet_name,
            details=details,
        )
        self.header_row_number = header_row_number


# =============================================================================
# Validation Errors (E3xxx)
# =============================================================================


class ValidationError(SpreadsheetError):
    """General validation error for request input."""

    http_status: int = 400

    def __init__(
        self,
        message: str,
        field: str | None = None,
        errors: list[str] | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        """Initialize with validation details.

        Args:
            message: Main error message.
            field: Field that failed validation.
            errors: List of validation errors.
            details: Additional details.
        """
        details = details or {}
        if field:
            details["field"] = field
        if errors:
            details["validation_errors"] = errors
        super().__init__(
            message=message,
            error_code=ErrorCode.INVALID_REQUEST,
            details=details,
        )


# =============================================================================
# External Service Errors (E5xxx)
# =============================================================================


class ChatServiceError(SpreadsheetError):
    """Raised when the chat completion endpoint fails or answers oddly."""

    http_status: int = 502

    def __init__(
        self,
        message: str,
        error_code: ErrorCode = ErrorCode.CHAT_API_ERROR,
        model: str | None = None,
        status_code: int | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        """Initialize with model information.

        Args:
            message: Error message.
            error_code: Error code.
            model: The chat model that was requested.
            status_code: HTTP status returned by the endpoint, if any.
            details: Additional details.
        """
        details = details or {}
        if model:
            details["model"] = model
        if status_code is not None:
            details["status_code"] = status_code
        super().__init__(message, error_code, details)
        self.model = model
        self.status_code = status_code
