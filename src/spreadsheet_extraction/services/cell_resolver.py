"""Conversion of classified sheet cells into display text and typed values."""

from __future__ import annotations

import math
from datetime import date, datetime, time
from typing import Any

from openpyxl.utils.datetime import from_excel, to_excel

from spreadsheet_extraction.excel_document import CellKind, CellScalar, SheetCell
from spreadsheet_extraction.utils.logging import get_logger

logger = get_logger(__name__)

# Date cells before the Excel epoch's first day carry only a time of day.
_TIME_ONLY_DATE = date(1899, 12, 31)


def format_date(value: date) -> str:
    """Render a calendar date as ``yyyy/MM/dd`` independent of locale."""
    return f"{value.year:04d}/{value.month:02d}/{value.day:02d}"


def collapse_integral(value: float) -> int | float:
    """Return ``value`` as an int when it has no fractional part."""
    if math.isfinite(value) and value.is_integer():
        return int(value)
    return value


def is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def stringify_value(value: CellScalar) -> str:
    """Text form of a normalized value, as used for blank checks and records."""
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, date) and not isinstance(value, datetime):
        return value.isoformat()
    return str(value)


class CellValueResolver:
    """Resolve a cell to its display string or its typed value.

    Neither method raises: every cell kind has a terminal fallback, and an
    absent cell (``None``) is treated like an empty one.
    """

    def resolve_display(self, cell: SheetCell | None) -> str:
        value = self.resolve_typed(cell)
        if isinstance(value, date) and not isinstance(value, datetime):
            return format_date(value)
        return stringify_value(value)

    def resolve_typed(self, cell: SheetCell | None) -> CellScalar:
        if cell is None:
            return None

        if cell.kind is CellKind.TEXT:
            return str(cell.value)
        if cell.kind is CellKind.NUMERIC:
            return self._resolve_numeric(cell)
        if cell.kind is CellKind.BOOLEAN:
            return bool(cell.value)
        if cell.kind is CellKind.FORMULA:
            return self._resolve_formula(cell)
        # EMPTY and UNSUPPORTED
        return None

    def _resolve_numeric(self, cell: SheetCell) -> CellScalar:
        value = cell.value
        if isinstance(value, (datetime, date, time)):
            return _as_date(value)
        if cell.is_date and is_number(value):
            try:
                return _as_date(from_excel(value))
            except (TypeError, ValueError, OverflowError):
                logger.debug("Date serial out of range", value=value)
        return _as_number(value)

    @staticmethod
    def _resolve_formula(cell: SheetCell) -> CellScalar:
        """Cached numeric result, else cached text, else the formula source."""
        cached = cell.value
        if is_number(cached):
            return collapse_integral(float(cached))
        if isinstance(cached, (datetime, date, time)):
            try:
                return collapse_integral(float(to_excel(cached)))
            except (TypeError, ValueError, OverflowError):
                logger.debug("Cached date result not convertible", value=cached)
        elif isinstance(cached, str):
            return cached

        return cell.formula if cell.formula is not None else ""


def _as_date(value: datetime | date | time) -> date:
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    return _TIME_ONLY_DATE


def _as_number(value: Any) -> CellScalar:
    if isinstance(value, int) and not isinstance(value, bool):
        return value
    try:
        return collapse_integral(float(value))
    except (TypeError, ValueError):
        return None if value is None else str(value)
