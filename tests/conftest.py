from __future__ import annotations

import io
from collections.abc import Callable, Iterable
from datetime import date
from pathlib import Path
from typing import Any

import pytest
from openpyxl import Workbook

from spreadsheet_extraction.excel_document import CellKind, ExcelSheet, SheetCell

PURCHASE_SHEET = "测试工作表"

PURCHASE_HEADERS = [
    "采购日期",
    "物品名称",
    "费用类型",
    "使用部门",
    "用途摘要",
    "数量",
    "单位",
    "单价",
    "金额",
    "照片",
    "备注",
]

PURCHASE_ROWS: list[list[Any]] = [
    [
        date(2023, 1, 15),
        "笔记本电脑",
        "办公设备",
        "技术部",
        "开发使用",
        2,
        "台",
        8000.0,
        16000.0,
        "photo1.jpg",
        "紧急采购",
    ],
    [
        date(2023, 2, 20),
        "打印机",
        "办公设备",
        "行政部",
        "日常办公",
        1,
        "台",
        3000.0,
        3000.0,
        "photo2.jpg",
        "常规采购",
    ],
    [
        date(2023, 3, 10),
        "办公椅",
        "办公家具",
        "人事部",
        "员工使用",
        5,
        "把",
        500.0,
        2500.0,
        "photo3.jpg",
        "批量采购",
    ],
]


def build_workbook(sheets: dict[str, Iterable[Iterable[Any]]]) -> Workbook:
    """Build a workbook whose sheets hold ``rows`` starting at A1.

    ``None`` leaves a cell unset and dates get a ``yyyy/mm/dd`` format.
    """
    wb = Workbook()
    wb.remove(wb.active)
    for name, rows in sheets.items():
        ws = wb.create_sheet(name)
        for r, row in enumerate(rows, start=1):
            for c, value in enumerate(row, start=1):
                if value is None:
                    continue
                cell = ws.cell(row=r, column=c, value=value)
                if isinstance(value, date):
                    cell.number_format = "yyyy/mm/dd"
    return wb


def purchase_sheet_rows() -> list[list[Any]]:
    """Title on row 1, headers on row 2, three purchase lines below."""
    return [["2023年采购清单"], PURCHASE_HEADERS, *PURCHASE_ROWS]


@pytest.fixture
def workbook_bytes() -> Callable[[dict[str, Iterable[Iterable[Any]]]], bytes]:
    """Factory serializing a sheet mapping to xlsx bytes."""

    def _make(sheets: dict[str, Iterable[Iterable[Any]]]) -> bytes:
        buffer = io.BytesIO()
        build_workbook(sheets).save(buffer)
        return buffer.getvalue()

    return _make


@pytest.fixture
def purchase_xlsx(tmp_path: Path) -> Path:
    """Purchase list workbook with a second, unrelated sheet."""
    path = tmp_path / "purchase.xlsx"
    wb = build_workbook(
        {
            PURCHASE_SHEET: purchase_sheet_rows(),
            "汇总": [["合计"], [21500.0]],
        }
    )
    wb.save(path)
    return path


def _text(value: str) -> SheetCell:
    return SheetCell(kind=CellKind.TEXT, value=value)


def _number(value: float, is_date: bool = False) -> SheetCell:
    return SheetCell(kind=CellKind.NUMERIC, value=value, is_date=is_date)


def _sheet_of(*rows: list[SheetCell], name: str = "Sheet1") -> ExcelSheet:
    return ExcelSheet(name=name, rows=list(rows))


@pytest.fixture
def make_sheet() -> Callable[..., ExcelSheet]:
    """Factory building an in-memory sheet from rows of plain values."""

    def _make(*rows: Iterable[Any], name: str = "Sheet1") -> ExcelSheet:
        converted = []
        for row in rows:
            cells = []
            for value in row:
                if value is None:
                    cells.append(SheetCell(kind=CellKind.EMPTY))
                elif isinstance(value, SheetCell):
                    cells.append(value)
                elif isinstance(value, bool):
                    cells.append(SheetCell(kind=CellKind.BOOLEAN, value=value))
                elif isinstance(value, date):
                    cells.append(_number(value, is_date=True))  # type: ignore[arg-type]
                elif isinstance(value, (int, float)):
                    cells.append(_number(value))
                else:
                    cells.append(_text(str(value)))
            while cells and cells[-1].is_empty:
                cells.pop()
            converted.append(cells)
        return _sheet_of(*converted, name=name)

    return _make


@pytest.fixture
def purchase_headers() -> list[str]:
    return list(PURCHASE_HEADERS)


@pytest.fixture
def purchase_bytes(
    workbook_bytes: Callable[[dict[str, Iterable[Iterable[Any]]]], bytes],
) -> bytes:
    return workbook_bytes({PURCHASE_SHEET: purchase_sheet_rows()})
