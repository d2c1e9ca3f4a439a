"""Projection of generic rows onto the fixed purchase-line record."""

from __future__ import annotations

import math
import re
from collections.abc import Iterable
from typing import Any

from spreadsheet_extraction.excel_document import SEQUENCE_KEY, GenericRow
from spreadsheet_extraction.models import ExcelItem
from spreadsheet_extraction.services.cell_resolver import is_number, stringify_value
from spreadsheet_extraction.utils.logging import get_logger

logger = get_logger(__name__)

_INTEGER_TEXT = re.compile(r"[+-]?\d+")

# Record field -> (source header, coercion kind)
FIELD_HEADERS: dict[str, tuple[str, str]] = {
    "serial_number": (SEQUENCE_KEY, "int"),
    "purchase_date": ("采购日期", "str"),
    "item_name": ("物品名称", "str"),
    "expense_type": ("费用类型", "str"),
    "department": ("使用部门", "str"),
    "purpose": ("用途摘要", "str"),
    "quantity": ("数量", "int"),
    "unit": ("单位", "str"),
    "unit_price": ("单价", "float"),
    "amount": ("金额", "float"),
    "photo_url": ("照片", "str"),
    "remark": ("备注", "str"),
}


def coerce_str(value: Any) -> str | None:
    """Stringify a present value; an empty string stays empty."""
    if value is None:
        return None
    return stringify_value(value)


def coerce_int(value: Any) -> int | None:
    """Truncate numbers toward zero or parse integer text; ``None`` on failure."""
    if value is None:
        return None
    if is_number(value):
        if isinstance(value, float) and not math.isfinite(value):
            return None
        return int(value)
    text = stringify_value(value)
    if _INTEGER_TEXT.fullmatch(text):
        return int(text)
    return None


def coerce_float(value: Any) -> float | None:
    """Widen numbers or parse decimal text; ``None`` on failure."""
    if value is None:
        return None
    if is_number(value):
        return float(value)
    if isinstance(value, bool):
        return None
    text = stringify_value(value)
    # float() accepts underscore digit separators.
    if "_" in text:
        return None
    try:
        return float(text)
    except ValueError:
        return None


_COERCIONS = {"str": coerce_str, "int": coerce_int, "float": coerce_float}


class RecordProjector:
    """Map generic rows onto :class:`ExcelItem` records.

    Each field is coerced independently. A missing header or a value that
    cannot be coerced leaves that one field empty and never fails the row.
    """

    def project(self, rows: Iterable[GenericRow]) -> list[ExcelItem]:
        return [self.project_row(row) for row in rows]

    def project_row(self, row: GenericRow) -> ExcelItem:
        fields: dict[str, Any] = {}
        for field_name, (header, kind) in FIELD_HEADERS.items():
            raw = row.get(header)
            value = _COERCIONS[kind](raw)
            if value is None and raw is not None:
                logger.debug(
                    "Coercion skipped", field=field_name, header=header, value=raw
                )
            fields[field_name] = value
        return ExcelItem(**fields)
