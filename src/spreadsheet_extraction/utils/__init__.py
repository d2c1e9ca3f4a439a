"""Utilities package for spreadsheet record extraction.

This package provides:
- Centralized exception classes (exceptions.py)
- Structured logging utilities (logging.py)
"""

from spreadsheet_extraction.utils.exceptions import (
    ChatServiceError,
    ErrorCode,
    FileTooLargeError,
    HeaderRowMissingError,
    HTTPStatusMixin,
    SheetNotFoundError,
    SourceError,
    SourceNotFoundError,
    SourceUnreadableError,
    SpreadsheetError,
    ValidationError,
    WorkbookLayoutError,
)
from spreadsheet_extraction.utils.logging import (
    LogContext,
    StructuredLogger,
    get_logger,
    get_request_id,
    set_request_id,
)

__all__ = [
    # Exceptions
    "ChatServiceError",
    "ErrorCode",
    "FileTooLargeError",
    "HeaderRowMissingError",
    "HTTPStatusMixin",
    "SheetNotFoundError",
    "SourceError",
    "SourceNotFoundError",
    "SourceUnreadableError",
    "SpreadsheetError",
    "ValidationError",
    "WorkbookLayoutError",
    # Logging
    "LogContext",
    "StructuredLogger",
    "get_logger",
    "get_request_id",
    "set_request_id",
]
