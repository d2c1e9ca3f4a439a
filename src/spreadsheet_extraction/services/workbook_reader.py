"""Opening workbook sources and reading their sheets with openpyxl."""

from __future__ import annotations

import io
import zipfile
from collections.abc import Iterator
from contextlib import contextmanager
from datetime import date, datetime, time, timedelta
from pathlib import Path
from typing import Any
from urllib.parse import urlparse
from urllib.request import url2pathname

import httpx
from openpyxl import Workbook, load_workbook
from openpyxl.utils.exceptions import InvalidFileException
from openpyxl.worksheet.worksheet import Worksheet

from spreadsheet_extraction.config import Settings, settings
from spreadsheet_extraction.excel_document import (
    EMPTY_CELL,
    CellKind,
    ExcelSheet,
    SheetCell,
)
from spreadsheet_extraction.utils.exceptions import (
    ErrorCode,
    FileTooLargeError,
    SourceNotFoundError,
    SourceUnreadableError,
)
from spreadsheet_extraction.utils.logging import get_logger

logger = get_logger(__name__)

ExcelSource = str | Path | bytes
"""A filesystem path, a ``file://`` or ``http(s)://`` URL, or raw xlsx bytes."""


class OpenpyxlWorkbook:
    """Workbook view backed by two openpyxl loads of the same file.

    One load keeps formulas, the other keeps the cached results written by
    the application that last saved the file. Sheets are converted on first
    access.
    """

    def __init__(self, formulas: Workbook, values: Workbook) -> None:
        self._formulas = formulas
        self._values = values
        self._sheets: dict[str, ExcelSheet] = {}

    @property
    def sheet_names(self) -> list[str]:
        return list(self._formulas.sheetnames)

    def get_sheet(self, name: str) -> ExcelSheet | None:
        if name not in self._formulas.sheetnames:
            return None
        if name not in self._sheets:
            self._sheets[name] = read_sheet(self._formulas[name], self._values[name])
        return self._sheets[name]

    def close(self) -> None:
        self._formulas.close()
        self._values.close()


def read_sheet(sheet: Worksheet, computed_sheet: Worksheet) -> ExcelSheet:
    """Classify every cell of ``sheet`` into an :class:`ExcelSheet`."""
    rows: list[list[SheetCell]] = []
    row_widths: dict[int, int] = {}
    # Both loads must walk the same grid.
    bounds = {"max_row": sheet.max_row, "max_col": sheet.max_column}
    for index, (row_cells, computed_cells) in enumerate(
        zip(
            sheet.iter_rows(**bounds),
            computed_sheet.iter_rows(**bounds),
            strict=True,
        )
    ):
        width = _recorded_width(row_cells)
        if width or (index + 1) in sheet.row_dimensions:
            row_widths[index] = width
        row = [
            classify_cell(cell, computed)
            for cell, computed in zip(row_cells, computed_cells, strict=True)
        ]
        while row and row[-1].is_empty:
            row.pop()
        rows.append(row)
    return ExcelSheet(name=sheet.title, rows=rows, row_widths=row_widths)


def _recorded_width(row_cells: tuple[Any, ...]) -> int:
    # Formatted blank cells are stored in the file, unset ones are not.
    for column in range(len(row_cells) - 1, -1, -1):
        cell = row_cells[column]
        if cell.value is not None or cell.has_style:
            return column + 1
    return 0


def classify_cell(cell: Any, computed: Any | None = None) -> SheetCell:
    """Map an openpyxl cell onto a :class:`SheetCell` variant.

    ``computed`` is the same cell from the ``data_only`` load and is only
    consulted for formulas.
    """
    value = cell.value
    if value is None:
        return EMPTY_CELL

    data_type = getattr(cell, "data_type", None)
    if data_type == "f":
        cached = None
        if computed is not None and getattr(computed, "data_type", None) != "e":
            cached = computed.value
        return SheetCell(
            kind=CellKind.FORMULA, value=cached, formula=_formula_text(value)
        )
    if data_type == "e":
        return SheetCell(kind=CellKind.UNSUPPORTED, value=value)
    if isinstance(value, bool):
        return SheetCell(kind=CellKind.BOOLEAN, value=value)
    if isinstance(value, (datetime, date, time)):
        return SheetCell(kind=CellKind.NUMERIC, value=value, is_date=True)
    if isinstance(value, timedelta):
        return SheetCell(kind=CellKind.NUMERIC, value=value.total_seconds() / 86400)
    if isinstance(value, (int, float)):
        return SheetCell(
            kind=CellKind.NUMERIC,
            value=value,
            is_date=bool(getattr(cell, "is_date", False)),
        )
    if isinstance(value, str):
        return SheetCell(kind=CellKind.TEXT, value=value)
    return SheetCell(kind=CellKind.UNSUPPORTED, value=value)


def _formula_text(value: Any) -> str:
    # Array formulas keep their source in ``text``.
    text = getattr(value, "text", None) or str(value)
    return text[1:] if text.startswith("=") else text


class WorkbookReader:
    """Load workbook bytes from a source and open them for reading."""

    def __init__(
        self,
        config: Settings | None = None,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        self._settings = config or settings
        self._transport = transport

    @contextmanager
    def open(self, source: ExcelSource) -> Iterator[OpenpyxlWorkbook]:
        """Open ``source`` and close the workbook on every exit path.

        Raises:
            SourceNotFoundError: If a path source does not exist.
            FileTooLargeError: If the source exceeds the configured limit.
            SourceUnreadableError: If the source cannot be fetched or parsed.
        """
        data = self.load_bytes(source)
        workbook = self.open_bytes(data, label=describe_source(source))
        try:
            yield workbook
        finally:
            workbook.close()
            logger.debug("Workbook closed", source=describe_source(source))

    def open_bytes(self, data: bytes, label: str = "<bytes>") -> OpenpyxlWorkbook:
        try:
            formulas = load_workbook(io.BytesIO(data), data_only=False)
            values = load_workbook(io.BytesIO(data), data_only=True)
        except (InvalidFileException, zipfile.BadZipFile, KeyError, ValueError) as e:
            raise SourceUnreadableError(
                f"Not a readable xlsx workbook: {e}", source=label
            ) from e
        logger.debug("Workbook opened", source=label, sheets=len(formulas.sheetnames))
        return OpenpyxlWorkbook(formulas, values)

    def load_bytes(self, source: ExcelSource) -> bytes:
        if isinstance(source, bytes):
            self._check_size(len(source), "<bytes>")
            return source

        text = str(source)
        scheme = urlparse(text).scheme.lower() if isinstance(source, str) else ""
        if scheme in ("http", "https"):
            return self._download(text)
        if scheme == "file":
            return self._read_path(Path(url2pathname(urlparse(text).path)))
        return self._read_path(Path(source))

    def _read_path(self, path: Path) -> bytes:
        if not path.is_file():
            raise SourceNotFoundError(str(path))
        self._check_size(path.stat().st_size, str(path))
        try:
            return path.read_bytes()
        except OSError as e:
            raise SourceUnreadableError(
                f"Cannot read {path}: {e}", source=str(path)
            ) from e

    def _download(self, url: str) -> bytes:
        logger.info("Downloading workbook", url=url)
        try:
            with httpx.Client(
                timeout=self._settings.download_timeout_seconds,
                follow_redirects=True,
                transport=self._transport,
            ) as client:
                response = client.get(url)
                response.raise_for_status()
        except httpx.HTTPError as e:
            raise SourceUnreadableError(
                f"Download failed: {e}",
                source=url,
                error_code=ErrorCode.DOWNLOAD_FAILED,
            ) from e
        self._check_size(len(response.content), url)
        return response.content

    def _check_size(self, size: int, label: str) -> None:
        if size > self._settings.max_file_size_bytes:
            raise FileTooLargeError(
                file_size=size,
                max_size=self._settings.max_file_size_bytes,
                source=label,
            )


def describe_source(source: ExcelSource) -> str:
    if isinstance(source, bytes):
        return f"<{len(source)} bytes>"
    return str(source)
