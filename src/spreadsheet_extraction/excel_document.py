"""Dataclasses representing a workbook sheet read for record extraction."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from enum import Enum
from typing import Any, Protocol

CellScalar = str | int | float | bool | date | None
"""Normalized value stored in a generic row."""

GenericRow = dict[str, CellScalar]
"""Header-keyed row; insertion order follows the sheet's column order."""

SEQUENCE_KEY = "序号"
"""Synthesized leading key holding the row's position below the header."""


class CellKind(str, Enum):
    """Closed set of cell variants a sheet can hold."""

    EMPTY = "empty"
    TEXT = "text"
    NUMERIC = "numeric"
    BOOLEAN = "boolean"
    FORMULA = "formula"
    UNSUPPORTED = "unsupported"


@dataclass(frozen=True)
class SheetCell:
    """A single cell classified once when the sheet is read.

    For ``FORMULA`` cells ``value`` holds the cached result written by the
    last application that calculated the workbook (``None`` when the file was
    never calculated) and ``formula`` holds the source without the leading
    ``=``.
    """

    kind: CellKind
    value: Any = None
    is_date: bool = False
    formula: str | None = None

    @property
    def is_empty(self) -> bool:
        return self.kind is CellKind.EMPTY


EMPTY_CELL = SheetCell(kind=CellKind.EMPTY)


@dataclass
class ExcelSheet:
    """A worksheet as ordered rows of classified cells.

    Each row is trimmed after its last populated cell. ``row_widths`` maps the
    0-based index of every row the file physically records to its cell count,
    which includes formatted blank cells. Rows missing from it count as
    present only when they hold a populated cell.
    """

    name: str
    rows: list[list[SheetCell]] = field(default_factory=list)
    row_widths: dict[int, int] = field(default_factory=dict)

    @property
    def last_row_index(self) -> int:
        """0-based index of the last row that holds at least one cell."""
        for index in range(len(self.rows) - 1, -1, -1):
            if self.rows[index]:
                return index
        return -1

    def row_at(self, index: int) -> list[SheetCell] | None:
        """Return the cells of row ``index`` or ``None`` if the row is absent."""
        if index < 0 or index >= len(self.rows):
            return None
        row = self.rows[index]
        return row if row else None

    def has_row(self, index: int) -> bool:
        """Whether row ``index`` exists, even with no values in it."""
        return index in self.row_widths or self.row_at(index) is not None

    def row_width(self, index: int) -> int:
        populated = len(self.rows[index]) if 0 <= index < len(self.rows) else 0
        return max(populated, self.row_widths.get(index, 0))

    @staticmethod
    def cell_at(row: list[SheetCell], column: int) -> SheetCell | None:
        if 0 <= column < len(row):
            return row[column]
        return None


class WorkbookView(Protocol):
    """Read access to the sheets of an open workbook, in declared order."""

    @property
    def sheet_names(self) -> list[str]: ...

    def get_sheet(self, name: str) -> ExcelSheet | None: ...
