"""Turn the rows below a header row into header-keyed generic rows."""

from __future__ import annotations

from datetime import date, datetime

from spreadsheet_extraction.excel_document import (
    SEQUENCE_KEY,
    CellScalar,
    ExcelSheet,
    GenericRow,
)
from spreadsheet_extraction.services.cell_resolver import (
    CellValueResolver,
    collapse_integral,
    format_date,
    stringify_value,
)
from spreadsheet_extraction.utils.logging import get_logger

logger = get_logger(__name__)

DATE_HEADER_MARKERS = ("日期", "date")


def is_date_header(header: str) -> bool:
    lowered = header.lower()
    return any(marker in lowered for marker in DATE_HEADER_MARKERS)


def normalize_value(header: str, value: CellScalar) -> CellScalar:
    """Apply the per-column rules: date columns as text, integral floats as ints."""
    if (
        is_date_header(header)
        and isinstance(value, date)
        and not isinstance(value, datetime)
    ):
        return format_date(value)
    if isinstance(value, float):
        return collapse_integral(value)
    return value


class RowExtractor:
    """Build one generic row per non-blank data row of a sheet."""

    def __init__(self, cell_resolver: CellValueResolver | None = None) -> None:
        self._cells = cell_resolver or CellValueResolver()

    def extract(
        self,
        sheet: ExcelSheet,
        headers: list[str],
        header_row_index: int,
    ) -> list[GenericRow]:
        """Extract every data row below ``header_row_index`` (0-based).

        Rows are keyed by header name after a leading ``序号`` entry whose value
        is the row's distance from the header row, so skipped rows leave gaps
        in the numbering. A row is kept only when one of its header columns
        other than ``序号`` has non-blank text.
        """
        rows: list[GenericRow] = []
        last_row_index = sheet.last_row_index

        for index in range(header_row_index + 1, last_row_index + 1):
            cells = sheet.row_at(index)
            if cells is None:
                continue

            row: GenericRow = {SEQUENCE_KEY: index - header_row_index}
            has_data = False
            for column, header in enumerate(headers):
                value = normalize_value(
                    header, self._cells.resolve_typed(sheet.cell_at(cells, column))
                )
                # Duplicate header names: the rightmost column wins.
                row[header] = value
                if header != SEQUENCE_KEY and stringify_value(value).strip():
                    has_data = True

            if has_data:
                rows.append(row)
            else:
                logger.debug("Skipping blank row", row=index + 1)

        logger.debug(
            "Rows extracted",
            sheet=sheet.name,
            kept=len(rows),
            scanned=max(last_row_index - header_row_index, 0),
        )
        return rows
