"""FastAPI application exposing the Excel parse and chat tasks."""

import uuid
from datetime import UTC, datetime
from typing import Annotated, Any

from fastapi import (
    FastAPI,
    File,
    Form,
    HTTPException,
    Request,
    UploadFile,
    status,
)
from fastapi.concurrency import run_in_threadpool
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from spreadsheet_extraction.config import settings, validate_settings_on_startup
from spreadsheet_extraction.models import (
    ChatRequest,
    ChatResult,
    ErrorDetail,
    ExcelParseResult,
    HealthResponse,
)
from spreadsheet_extraction.services.chat_client import ChatClient
from spreadsheet_extraction.services.excel_parser import ExcelParseService
from spreadsheet_extraction.services.workbook_reader import ExcelSource
from spreadsheet_extraction.utils.exceptions import (
    ErrorCode,
    FileTooLargeError,
    SpreadsheetError,
    ValidationError,
)
from spreadsheet_extraction.utils.logging import (
    clear_context,
    configure_logging,
    get_logger,
    get_request_id,
    set_request_id,
)

configure_logging(
    level=settings.log_level_int,
    use_structured_formatter=True,
)
logger = get_logger(__name__)

VERSION = "0.1.0"


def create_app(
    parse_service: ExcelParseService | None = None,
    chat_client: ChatClient | None = None,
) -> FastAPI:
    """Create and configure the FastAPI application."""

    app = FastAPI(
        title="Spreadsheet Extraction API",
        description=(
            "Parses purchase-list workbooks into header-keyed rows and "
            "fixed-schema records, and relays chat requests to an AI endpoint."
        ),
        version=VERSION,
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
    )
    app.state.parse_service = parse_service or ExcelParseService()
    app.state.chat_client = chat_client or ChatClient()

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins_list,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    validate_settings_on_startup(settings)

    @app.middleware("http")
    async def request_id_middleware(request: Request, call_next: Any) -> Any:
        """Assign a request ID, expose it in logs and echo it in the response."""
        request_id = request.headers.get("X-Request-ID", str(uuid.uuid4()))
        set_request_id(request_id)
        request.state.request_id = request_id

        try:
            response = await call_next(request)
            response.headers["X-Request-ID"] = request_id
            return response
        finally:
            clear_context()

    @app.exception_handler(SpreadsheetError)
    async def spreadsheet_exception_handler(
        request: Request, exc: SpreadsheetError
    ) -> JSONResponse:
        request_id = getattr(request.state, "request_id", get_request_id())
        logger.error(
            f"Request error: {exc.message}",
            error_code=exc.error_code.value,
            http_status=exc.http_status,
        )
        return JSONResponse(
            status_code=exc.http_status,
            content=ErrorDetail(
                detail=exc.message,
                error_code=exc.error_code.value,
                details=exc.details if exc.details else None,
                request_id=request_id,
            ).model_dump(exclude_none=True),
        )

    @app.exception_handler(HTTPException)
    async def http_exception_handler(
        request: Request, exc: HTTPException
    ) -> JSONResponse:
        request_id = getattr(request.state, "request_id", get_request_id())
        logger.warning(f"HTTP Error: {exc.detail}", status_code=exc.status_code)
        return JSONResponse(
            status_code=exc.status_code,
            content=ErrorDetail(
                detail=str(exc.detail),
                request_id=request_id,
            ).model_dump(exclude_none=True),
        )

    @app.exception_handler(Exception)
    async def general_exception_handler(
        request: Request, exc: Exception
    ) -> JSONResponse:
        """Log unexpected errors and answer without leaking internals."""
        request_id = getattr(request.state, "request_id", get_request_id())
        logger.exception(
            f"Unexpected error: {type(exc).__name__}",
            error_type=type(exc).__name__,
        )
        if settings.debug:
            detail = f"Internal server error: {type(exc).__name__}: {exc}"
        else:
            detail = "Internal server error. Please try again later."

        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content=ErrorDetail.from_error_code(
                ErrorCode.INTERNAL_ERROR, detail, request_id=request_id
            ).model_dump(exclude_none=True),
        )

    @app.get("/health", response_model=HealthResponse, tags=["Health"])
    async def health_check() -> dict[str, Any]:
        return {
            "status": "healthy",
            "timestamp": datetime.now(UTC).isoformat(),
            "version": VERSION,
        }

    @app.post(
        "/excel/parse",
        response_model=ExcelParseResult,
        tags=["Excel"],
        responses={
            400: {"model": ErrorDetail, "description": "No workbook supplied"},
            413: {"model": ErrorDetail, "description": "File too large"},
        },
    )
    async def parse_excel_endpoint(
        request: Request,
        header_row_index: Annotated[
            int, Form(description="1-based row number holding the headers")
        ],
        file: Annotated[
            UploadFile | None, File(description="xlsx workbook to parse")
        ] = None,
        excel_url: Annotated[
            str | None, Form(description="URL of the workbook, if not uploaded")
        ] = None,
        sheet_name: Annotated[
            str | None, Form(description="Sheet to parse; first sheet if empty")
        ] = None,
    ) -> ExcelParseResult:
        """Parse an uploaded or linked workbook.

        Parse failures (missing sheet, missing header row, unreadable file)
        are reported in the result message with a 200 status, the same way
        the service reports them.
        """
        source: ExcelSource
        if file is not None and file.filename:
            content = await file.read()
            if len(content) > settings.max_file_size_bytes:
                raise FileTooLargeError(
                    file_size=len(content),
                    max_size=settings.max_file_size_bytes,
                    source=file.filename,
                )
            source = content
        elif excel_url is not None and excel_url.strip():
            source = excel_url.strip()
        else:
            raise ValidationError(
                message="Either 'file' or 'excel_url' must be provided",
                field="file",
            )

        service: ExcelParseService = request.app.state.parse_service
        return await run_in_threadpool(
            service.parse, source, header_row_index, sheet_name
        )

    @app.post("/chat", response_model=ChatResult, tags=["Chat"])
    async def chat_endpoint(request: Request, body: ChatRequest) -> ChatResult:
        client: ChatClient = request.app.state.chat_client
        return await run_in_threadpool(
            client.chat, body.api_key, body.content, body.image_url
        )

    return app


app = create_app()
