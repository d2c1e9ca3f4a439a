"""Entry point tying the reader, resolvers and projector together."""

from __future__ import annotations

from spreadsheet_extraction.models import ExcelParseResult
from spreadsheet_extraction.services.cell_resolver import CellValueResolver
from spreadsheet_extraction.services.header_resolver import HeaderResolver
from spreadsheet_extraction.services.record_projector import RecordProjector
from spreadsheet_extraction.services.row_extractor import RowExtractor
from spreadsheet_extraction.services.workbook_reader import (
    ExcelSource,
    WorkbookReader,
    describe_source,
)
from spreadsheet_extraction.utils.exceptions import (
    SpreadsheetError,
    WorkbookLayoutError,
)
from spreadsheet_extraction.utils.logging import LogContext, get_logger, timed_operation

logger = get_logger(__name__)

PARSE_FAILURE_PREFIX = "解析Excel文件失败: "


class ExcelParseService:
    """Parse a workbook into headers, generic rows and purchase-line records.

    ``parse`` never raises. Every failure, from an unreachable URL to a
    missing sheet, comes back as an :class:`ExcelParseResult` whose message
    describes the cause and whose collections are empty.
    """

    def __init__(
        self,
        reader: WorkbookReader | None = None,
        cell_resolver: CellValueResolver | None = None,
        projector: RecordProjector | None = None,
    ) -> None:
        cells = cell_resolver or CellValueResolver()
        self._reader = reader or WorkbookReader()
        self._headers = HeaderResolver(cells)
        self._rows = RowExtractor(cells)
        self._projector = projector or RecordProjector()

    def parse(
        self,
        source: ExcelSource,
        header_row_number: int,
        sheet_name: str | None = None,
    ) -> ExcelParseResult:
        """Extract the table whose headers sit on ``header_row_number`` (1-based).

        Args:
            source: Path, ``file://`` or ``http(s)://`` URL, or xlsx bytes.
            header_row_number: 1-based number of the header row.
            sheet_name: Sheet to read; the first sheet when blank.
        """
        with (
            LogContext(source=describe_source(source)),
            timed_operation(logger, "excel_parse") as metrics,
        ):
            try:
                with self._reader.open(source) as workbook:
                    resolution = self._headers.resolve(
                        workbook, sheet_name, header_row_number
                    )
                    rows = self._rows.extract(
                        resolution.sheet,
                        resolution.headers,
                        resolution.header_row_index,
                    )
                    metrics.rows_scanned = max(
                        resolution.sheet.last_row_index
                        - resolution.header_row_index,
                        0,
                    )
            except WorkbookLayoutError as e:
                return self._failed(e.message, sheet_name)
            except SpreadsheetError as e:
                return self._failed(PARSE_FAILURE_PREFIX + e.message, sheet_name)
            except Exception as e:
                logger.exception("Unexpected error while parsing workbook")
                return self._failed(PARSE_FAILURE_PREFIX + str(e), sheet_name)

            records = self._projector.project(rows)
            metrics.rows_extracted = len(rows)
            metrics.records_projected = len(records)

        logger.log_extraction_result(
            success=True,
            message=f"成功解析Excel文件，共解析{len(rows)}行数据",
            sheet_name=resolution.sheet.name,
            header_count=len(resolution.headers),
            row_count=len(rows),
            record_count=len(records),
        )
        return ExcelParseResult.success(resolution.headers, rows, records)

    @staticmethod
    def _failed(message: str, sheet_name: str | None) -> ExcelParseResult:
        logger.log_extraction_result(
            success=False, message=message, sheet_name=sheet_name
        )
        return ExcelParseResult.failure(message)


def parse_excel(
    source: ExcelSource,
    header_row_number: int,
    sheet_name: str | None = None,
) -> ExcelParseResult:
    """Parse ``source`` with a default :class:`ExcelParseService`."""
    return ExcelParseService().parse(source, header_row_number, sheet_name)
