"""Structured logging utilities for spreadsheet record extraction.

This module provides:
- Request ID tracking using contextvars so one parse call can be followed
  through the reader, the resolvers and the projector
- A structured logger that appends ``key=value`` pairs to messages
- Timing helpers for extraction and outbound API calls

Usage:
    from spreadsheet_extraction.utils.logging import get_logger, LogContext

    logger = get_logger(__name__)

    with LogContext(request_id="abc-123", sheet="Sheet1"):
        logger.info("Extracting rows", header_row=2)
"""

import logging
import time
from collections.abc import Generator
from contextlib import contextmanager
from contextvars import ContextVar, Token
from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import Any

_request_id_var: ContextVar[str | None] = ContextVar("request_id", default=None)
_extra_context_var: ContextVar[dict[str, Any] | None] = ContextVar(
    "extra_context", default=None
)


def get_request_id() -> str | None:
    """Get the current request ID from context."""
    return _request_id_var.get()


def set_request_id(request_id: str | None) -> None:
    """Set the request ID in context, or clear it with ``None``."""
    _request_id_var.set(request_id)


def get_extra_context() -> dict[str, Any]:
    """Get additional context values set through :class:`LogContext`."""
    ctx = _extra_context_var.get()
    return ctx if ctx is not None else {}


def set_extra_context(context: dict[str, Any]) -> None:
    _extra_context_var.set(context)


def clear_context() -> None:
    """Clear all context variables."""
    _request_id_var.set(None)
    _extra_context_var.set(None)


@dataclass
class PerformanceMetrics:
    """Counters collected while a workbook is being parsed.

    Attributes:
        operation: Name of the operation being measured.
        started_at: Wall-clock start, for correlating with request logs.
        duration_seconds: Elapsed monotonic time, set by :meth:`finish`.
        rows_scanned: Physical rows visited below the header row.
        rows_extracted: Generic rows kept after blank-row filtering.
        records_projected: Records built from the generic rows.
        custom_metrics: Additional custom metrics.
    """

    operation: str
    started_at: datetime = field(default_factory=lambda: datetime.now(UTC))
    duration_seconds: float = 0.0
    rows_scanned: int = 0
    rows_extracted: int = 0
    records_projected: int = 0
    custom_metrics: dict[str, Any] = field(default_factory=dict)
    finished: bool = field(default=False, repr=False)
    _clock: float = field(default_factory=time.perf_counter, repr=False)

    def finish(self) -> None:
        self.duration_seconds = time.perf_counter() - self._clock
        self.finished = True

    def to_dict(self) -> dict[str, Any]:
        """Operation and duration plus every non-zero counter."""
        result: dict[str, Any] = {
            "operation": self.operation,
            "duration_seconds": round(self.duration_seconds, 3),
        }
        counters = {
            "rows_scanned": self.rows_scanned,
            "rows_extracted": self.rows_extracted,
            "records_projected": self.records_projected,
        }
        result.update({name: value for name, value in counters.items() if value})
        if self.custom_metrics:
            result["custom_metrics"] = self.custom_metrics
        return result


class StructuredLogFormatter(logging.Formatter):
    """Log formatter that prefixes messages with the current log context."""

    def format(self, record: logging.LogRecord) -> str:
        context = get_extra_context()
        request_id = get_request_id()
        if request_id:
            context = {"request_id": request_id, **context}
        if not context:
            return super().format(record)

        prefix = " ".join(f"{key}={value}" for key, value in context.items())
        original_msg = record.msg
        record.msg = f"[{prefix}] {original_msg}"
        try:
            return super().format(record)
        finally:
            record.msg = original_msg


class StructuredLogger:
    """Wrapper around a standard logger that accepts structured fields.

    Keyword arguments passed to the logging methods are rendered as
    ``message | key=value, key=value``.
    """

    def __init__(self, name: str) -> None:
        self._logger = logging.getLogger(name)

    @property
    def logger(self) -> logging.Logger:
        """Access the underlying Python logger."""
        return self._logger

    @staticmethod
    def _build_message(message: str, **fields: Any) -> str:
        if not fields:
            return message
        rendered = ", ".join(f"{key}={value}" for key, value in fields.items())
        return f"{message} | {rendered}"

    def _emit(
        self, level: int, message: str, exc_info: bool = False, **fields: Any
    ) -> None:
        self._logger.log(
            level, self._build_message(message, **fields), exc_info=exc_info
        )

    def debug(self, message: str, **kwargs: Any) -> None:
        self._emit(logging.DEBUG, message, **kwargs)

    def info(self, message: str, **kwargs: Any) -> None:
        self._emit(logging.INFO, message, **kwargs)

    def warning(self, message: str, **kwargs: Any) -> None:
        self._emit(logging.WARNING, message, **kwargs)

    def error(self, message: str, exc_info: bool = False, **kwargs: Any) -> None:
        self._emit(logging.ERROR, message, exc_info=exc_info, **kwargs)

    def exception(self, message: str, **kwargs: Any) -> None:
        """Log an error together with the active exception's traceback."""
        self._emit(logging.ERROR, message, exc_info=True, **kwargs)

    def log_performance(self, metrics: PerformanceMetrics) -> None:
        self.info(f"Performance: {metrics.operation}", **metrics.to_dict())

    def log_api_call(
        self,
        service: str,
        operation: str,
        duration_seconds: float,
        success: bool = True,
        status_code: int | None = None,
        error_message: str | None = None,
    ) -> None:
        """Log an outbound API call, at ERROR level when it failed.

        Args:
            service: Service name (e.g., "chat").
            operation: Operation performed.
            duration_seconds: Time taken for the call.
            success: Whether the call succeeded.
            status_code: HTTP status code, when a response was received.
            error_message: Error message if the call failed.
        """
        fields: dict[str, Any] = {
            "service": service,
            "operation": operation,
            "duration_seconds": f"{duration_seconds:.3f}",
            "success": success,
        }
        if status_code is not None:
            fields["status_code"] = status_code
        if error_message:
            fields["error"] = error_message
        self._emit(logging.INFO if success else logging.ERROR, "API call", **fields)

    def log_extraction_result(
        self,
        success: bool,
        message: str,
        sheet_name: str | None = None,
        header_count: int = 0,
        row_count: int = 0,
        record_count: int = 0,
    ) -> None:
        """Log the outcome of one parse call.

        Counts are only attached to successful results.
        """
        fields: dict[str, Any] = {"success": success}
        if sheet_name is not None:
            fields["sheet"] = sheet_name
        if success:
            fields.update(
                headers=header_count, rows=row_count, records=record_count
            )
        self._emit(logging.INFO if success else logging.ERROR, message, **fields)


class LogContext:
    """Context manager for adding temporary context to logs.

    A ``request_id`` keyword replaces the request ID; other keywords are
    merged over the enclosing context. Both are restored on exit.

    Usage:
        with LogContext(request_id="123", sheet="Sheet1"):
            logger.info("Reading rows")
    """

    def __init__(self, **kwargs: Any) -> None:
        self._request_id: str | None = kwargs.pop("request_id", None)
        self._fields = kwargs
        self._request_token: Token[str | None] | None = None
        self._extra_token: Token[dict[str, Any] | None] | None = None

    def __enter__(self) -> "LogContext":
        if self._request_id is not None:
            self._request_token = _request_id_var.set(self._request_id)
        self._extra_token = _extra_context_var.set(
            {**get_extra_context(), **self._fields}
        )
        return self

    def __exit__(self, *args: Any) -> None:
        if self._extra_token is not None:
            _extra_context_var.reset(self._extra_token)
        if self._request_token is not None:
            _request_id_var.reset(self._request_token)


@contextmanager
def timed_operation(
    logger: StructuredLogger,
    operation: str,
) -> Generator[PerformanceMetrics, None, None]:
    """Time a block and log its metrics on exit, even when it raises.

    Usage:
        with timed_operation(logger, "excel_parse") as metrics:
            metrics.rows_extracted = len(rows)
    """
    metrics = PerformanceMetrics(operation=operation)
    try:
        yield metrics
    finally:
        metrics.finish()
        logger.log_performance(metrics)


DEFAULT_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

# Libraries that log every request at INFO.
_CHATTY_LOGGERS = ("httpx", "httpcore")


def configure_logging(
    level: int | str = logging.INFO,
    format_string: str | None = None,
    use_structured_formatter: bool = True,
) -> None:
    """Configure the root logger with a single console handler.

    Args:
        level: Log level (int or string like "INFO").
        format_string: Custom format string (uses default if None).
        use_structured_formatter: Whether to use the structured formatter.
    """
    if isinstance(level, str):
        level = getattr(logging, level.upper())
    formatter_class = (
        StructuredLogFormatter if use_structured_formatter else logging.Formatter
    )

    handler = logging.StreamHandler()
    handler.setLevel(level)
    handler.setFormatter(formatter_class(format_string or DEFAULT_FORMAT))

    root_logger = logging.getLogger()
    for existing in list(root_logger.handlers):
        root_logger.removeHandler(existing)
    root_logger.addHandler(handler)
    root_logger.setLevel(level)

    for name in _CHATTY_LOGGERS:
        logging.getLogger(name).setLevel(max(level, logging.WARNING))


def get_logger(name: str) -> StructuredLogger:
    """Get a structured logger for a module.

    Example:
        logger = get_logger(__name__)
        logger.info("Parsed workbook", sheet="Sheet1", rows=10)
    """
    return StructuredLogger(name)
