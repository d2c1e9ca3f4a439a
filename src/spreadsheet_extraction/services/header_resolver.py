"""Sheet selection and header row resolution."""

from __future__ import annotations

from dataclasses import dataclass

from spreadsheet_extraction.excel_document import ExcelSheet, WorkbookView
from spreadsheet_extraction.services.cell_resolver import CellValueResolver
from spreadsheet_extraction.utils.exceptions import (
    HeaderRowMissingError,
    SheetNotFoundError,
    SourceUnreadableError,
)
from spreadsheet_extraction.utils.logging import get_logger

logger = get_logger(__name__)


@dataclass
class HeaderResolution:
    """The selected sheet, its header names and the 0-based header index."""

    sheet: ExcelSheet
    headers: list[str]
    header_row_index: int


def placeholder_header(column: int) -> str:
    """Name used for a blank header cell at 0-based ``column``."""
    return f"Column{column + 1}"


class HeaderResolver:
    """Pick the sheet to read and build its ordered header list."""

    def __init__(self, cell_resolver: CellValueResolver | None = None) -> None:
        self._cells = cell_resolver or CellValueResolver()

    def resolve(
        self,
        workbook: WorkbookView,
        sheet_name: str | None,
        header_row_number: int,
    ) -> HeaderResolution:
        """Select the sheet and header row.

        Args:
            workbook: Open workbook to read from.
            sheet_name: Exact, case-sensitive sheet name; blank selects the
                first sheet.
            header_row_number: 1-based row number holding the headers.

        Raises:
            SheetNotFoundError: If ``sheet_name`` is not in the workbook.
            HeaderRowMissingError: If no row exists at ``header_row_number``.
        """
        sheet = self.select_sheet(workbook, sheet_name)

        header_row_index = header_row_number - 1
        if not sheet.has_row(header_row_index):
            logger.warning(
                "Header row not found",
                sheet=sheet.name,
                header_row=header_row_number,
                last_row=sheet.last_row_index + 1,
            )
            raise HeaderRowMissingError(header_row_number, sheet_name=sheet.name)

        header_row = sheet.row_at(header_row_index) or []
        headers = []
        for column in range(sheet.row_width(header_row_index)):
            name = self._cells.resolve_display(sheet.cell_at(header_row, column))
            if not name.strip():
                name = placeholder_header(column)
            headers.append(name)

        logger.debug("Headers resolved", sheet=sheet.name, count=len(headers))
        return HeaderResolution(
            sheet=sheet, headers=headers, header_row_index=header_row_index
        )

    @staticmethod
    def select_sheet(workbook: WorkbookView, sheet_name: str | None) -> ExcelSheet:
        names = workbook.sheet_names
        if sheet_name is not None and sheet_name.strip():
            sheet = workbook.get_sheet(sheet_name)
            if sheet is None:
                logger.warning(
                    "Sheet not found", sheet=sheet_name, available=names
                )
                raise SheetNotFoundError(sheet_name, available=names)
            return sheet

        if not names:
            raise SourceUnreadableError("Workbook contains no sheets")
        first = workbook.get_sheet(names[0])
        if first is None:
            raise SourceUnreadableError(f"Sheet '{names[0]}' could not be read")
        return first
