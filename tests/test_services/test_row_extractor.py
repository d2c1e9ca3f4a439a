"""Tests for the RowExtractor."""

from collections.abc import Callable
from datetime import date

import pytest

from spreadsheet_extraction.excel_document import (
    SEQUENCE_KEY,
    CellKind,
    ExcelSheet,
    SheetCell,
)
from spreadsheet_extraction.services.row_extractor import (
    RowExtractor,
    is_date_header,
    normalize_value,
)


@pytest.fixture
def extractor() -> RowExtractor:
    return RowExtractor()


class TestDateHeaders:
    """Tests for date column detection and value normalization."""

    @pytest.mark.parametrize(
        "header", ["采购日期", "日期", "Date", "Invoice date", "DATE_PAID"]
    )
    def test_date_headers(self, header: str) -> None:
        assert is_date_header(header)

    @pytest.mark.parametrize("header", ["物品名称", "单价", "Day", ""])
    def test_other_headers(self, header: str) -> None:
        assert not is_date_header(header)

    def test_date_in_date_column_becomes_text(self) -> None:
        assert normalize_value("采购日期", date(2023, 1, 15)) == "2023/01/15"

    def test_date_in_other_column_stays_date(self) -> None:
        assert normalize_value("备注", date(2023, 1, 15)) == date(2023, 1, 15)

    def test_integral_float_collapses(self) -> None:
        value = normalize_value("数量", 2.0)
        assert value == 2
        assert isinstance(value, int)

    def test_text_untouched(self) -> None:
        assert normalize_value("采购日期", "2023-01-15") == "2023-01-15"


class TestExtract:
    """Tests for building generic rows from a sheet."""

    def test_rows_keyed_by_header_with_sequence_first(
        self, extractor: RowExtractor, make_sheet: Callable[..., ExcelSheet]
    ) -> None:
        sheet = make_sheet(
            ["标题"],
            ["采购日期", "物品名称", "数量", "单价"],
            [date(2023, 1, 15), "笔记本电脑", 2, 8000.0],
            [date(2023, 2, 20), "打印机", 1, 3000.5],
        )

        rows = extractor.extract(sheet, ["采购日期", "物品名称", "数量", "单价"], 1)

        assert rows == [
            {
                SEQUENCE_KEY: 1,
                "采购日期": "2023/01/15",
                "物品名称": "笔记本电脑",
                "数量": 2,
                "单价": 8000,
            },
            {
                SEQUENCE_KEY: 2,
                "采购日期": "2023/02/20",
                "物品名称": "打印机",
                "数量": 1,
                "单价": 3000.5,
            },
        ]
        assert list(rows[0]) == [SEQUENCE_KEY, "采购日期", "物品名称", "数量", "单价"]

    def test_blank_rows_leave_gaps_in_sequence(
        self, extractor: RowExtractor, make_sheet: Callable[..., ExcelSheet]
    ) -> None:
        sheet = make_sheet(
            ["名称", "数量"],
            ["椅子", 5],
            [],
            ["  ", None],
            ["桌子", 2],
        )

        rows = extractor.extract(sheet, ["名称", "数量"], 0)

        assert [row[SEQUENCE_KEY] for row in rows] == [1, 4]
        assert [row["名称"] for row in rows] == ["椅子", "桌子"]

    def test_values_beyond_header_width_are_ignored(
        self, extractor: RowExtractor, make_sheet: Callable[..., ExcelSheet]
    ) -> None:
        sheet = make_sheet(["名称"], ["椅子", "多余"], [None, "只有多余列"])

        rows = extractor.extract(sheet, ["名称"], 0)

        assert rows == [{SEQUENCE_KEY: 1, "名称": "椅子"}]

    def test_short_rows_fill_missing_columns_with_none(
        self, extractor: RowExtractor, make_sheet: Callable[..., ExcelSheet]
    ) -> None:
        sheet = make_sheet(["名称", "数量", "备注"], ["椅子"])

        rows = extractor.extract(sheet, ["名称", "数量", "备注"], 0)

        assert rows == [{SEQUENCE_KEY: 1, "名称": "椅子", "数量": None, "备注": None}]

    def test_zero_and_false_count_as_data(
        self, extractor: RowExtractor, make_sheet: Callable[..., ExcelSheet]
    ) -> None:
        sheet = make_sheet(["数量", "已报销"], [0], [None, False])

        rows = extractor.extract(sheet, ["数量", "已报销"], 0)

        assert [row[SEQUENCE_KEY] for row in rows] == [1, 2]

    def test_duplicate_headers_last_column_wins(
        self, extractor: RowExtractor, make_sheet: Callable[..., ExcelSheet]
    ) -> None:
        sheet = make_sheet(["金额", "金额"], [100, 200])

        rows = extractor.extract(sheet, ["金额", "金额"], 0)

        assert rows == [{SEQUENCE_KEY: 1, "金额": 200}]

    def test_source_sequence_column_does_not_make_row_non_blank(
        self, extractor: RowExtractor, make_sheet: Callable[..., ExcelSheet]
    ) -> None:
        sheet = make_sheet([SEQUENCE_KEY, "名称"], [7, None], [8, "椅子"])

        rows = extractor.extract(sheet, [SEQUENCE_KEY, "名称"], 0)

        assert rows == [{SEQUENCE_KEY: 8, "名称": "椅子"}]

    def test_formula_without_cached_value_keeps_source(
        self, extractor: RowExtractor, make_sheet: Callable[..., ExcelSheet]
    ) -> None:
        total = SheetCell(kind=CellKind.FORMULA, value=None, formula="B2*C2")
        sheet = make_sheet(["金额"], [total])

        rows = extractor.extract(sheet, ["金额"], 0)

        assert rows[0]["金额"] == "B2*C2"

    def test_header_on_last_row_yields_no_rows(
        self, extractor: RowExtractor, make_sheet: Callable[..., ExcelSheet]
    ) -> None:
        sheet = make_sheet(["标题"], ["名称", "数量"])

        assert extractor.extract(sheet, ["名称", "数量"], 1) == []

    def test_trailing_empty_rows_are_not_scanned(
        self, extractor: RowExtractor, make_sheet: Callable[..., ExcelSheet]
    ) -> None:
        sheet = make_sheet(["名称"], ["椅子"], [], [])

        assert len(extractor.extract(sheet, ["名称"], 0)) == 1
