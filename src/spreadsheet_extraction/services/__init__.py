"""Services for spreadsheet record extraction."""

from spreadsheet_extraction.services.cell_resolver import CellValueResolver
from spreadsheet_extraction.services.chat_client import ChatClient
from spreadsheet_extraction.services.excel_parser import ExcelParseService, parse_excel
from spreadsheet_extraction.services.header_resolver import (
    HeaderResolution,
    HeaderResolver,
)
from spreadsheet_extraction.services.record_projector import RecordProjector
from spreadsheet_extraction.services.row_extractor import RowExtractor
from spreadsheet_extraction.services.workbook_reader import WorkbookReader

__all__ = [
    "CellValueResolver",
    "ChatClient",
    "ExcelParseService",
    "HeaderResolution",
    "HeaderResolver",
    "RecordProjector",
    "RowExtractor",
    "WorkbookReader",
    "parse_excel",
]
