"""Spreadsheet Extraction - purchase-list workbooks to structured records."""

from spreadsheet_extraction.api import app, create_app
from spreadsheet_extraction.models import ExcelItem, ExcelParseResult
from spreadsheet_extraction.services.excel_parser import ExcelParseService, parse_excel

__all__ = [
    "ExcelItem",
    "ExcelParseResult",
    "ExcelParseService",
    "app",
    "create_app",
    "parse_excel",
]
__version__ = "0.1.0"


def main() -> None:
    """Run the FastAPI server using uvicorn."""
    import uvicorn

    from spreadsheet_extraction.config import settings

    uvicorn.run(
        "spreadsheet_extraction.api:app",
        host=settings.server_host,
        port=settings.server_port,
    )
