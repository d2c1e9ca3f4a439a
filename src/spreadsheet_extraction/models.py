"""Pydantic models for extraction results and API requests and responses."""

from typing import Any

import pandas as pd
from pydantic import BaseModel, ConfigDict, Field

from spreadsheet_extraction.excel_document import SEQUENCE_KEY, GenericRow
from spreadsheet_extraction.utils.exceptions import ErrorCode

PARSE_SUCCESS_MESSAGE = "解析成功"


class HealthResponse(BaseModel):
    """Response model for health check endpoint."""

    status: str
    timestamp: str
    version: str


class ExcelItem(BaseModel):
    """One purchase line projected from a generic row.

    Every field is optional: a missing column or a value that cannot be
    coerced leaves the field as ``None``.
    """

    model_config = ConfigDict(populate_by_name=True)

    serial_number: int | None = Field(default=None, alias="serialNumber")
    purchase_date: str | None = Field(default=None, alias="purchaseDate")
    item_name: str | None = Field(default=None, alias="itemName")
    expense_type: str | None = Field(default=None, alias="expenseType")
    department: str | None = Field(default=None, alias="department")
    purpose: str | None = Field(default=None, alias="purpose")
    quantity: int | None = Field(default=None, alias="quantity")
    unit: str | None = Field(default=None, alias="unit")
    unit_price: float | None = Field(default=None, alias="unitPrice")
    amount: float | None = Field(default=None, alias="amount")
    photo_url: str | None = Field(default=None, alias="photoUrl")
    remark: str | None = Field(default=None, alias="remark")


class ExcelParseResult(BaseModel):
    """Outcome of one parse call.

    On failure ``message`` describes the cause and the three collections are
    left empty, so callers can branch on ``bool(result.headers)``.
    """

    model_config = ConfigDict(populate_by_name=True)

    message: str = Field(..., description="Parse status message")
    headers: list[str] = Field(
        default_factory=list, description="Header names in column order"
    )
    rows: list[dict[str, Any]] = Field(
        default_factory=list,
        alias="dataList",
        description="Header-keyed rows, each starting with the 序号 key",
    )
    records: list[ExcelItem] = Field(
        default_factory=list,
        alias="items",
        description="Rows projected onto the fixed purchase-line schema",
    )

    @classmethod
    def failure(cls, message: str) -> "ExcelParseResult":
        return cls(message=message)

    @classmethod
    def success(
        cls,
        headers: list[str],
        rows: list[GenericRow],
        records: list[ExcelItem],
    ) -> "ExcelParseResult":
        return cls(
            message=PARSE_SUCCESS_MESSAGE,
            headers=headers,
            rows=rows,
            records=records,
        )

    @property
    def succeeded(self) -> bool:
        return self.message == PARSE_SUCCESS_MESSAGE

    def to_dataframe(self) -> pd.DataFrame:
        """Return the generic rows as a DataFrame.

        Columns are ``序号`` followed by the headers in sheet order; duplicate
        header names collapse into one column.
        """
        columns = list(dict.fromkeys([SEQUENCE_KEY, *self.headers]))
        return pd.DataFrame(self.rows, columns=columns)


class ChatRequest(BaseModel):
    """Request body for the chat endpoint."""

    model_config = ConfigDict(populate_by_name=True)

    api_key: str | None = Field(
        default=None,
        alias="apiKey",
        description="API key for the chat endpoint; falls back to settings",
    )
    content: str = Field(..., min_length=1, description="Text sent to the model")
    image_url: str | None = Field(
        default=None, alias="imageUrl", description="Optional image URL"
    )


class ChatResult(BaseModel):
    """Reply of the chat collaborator."""

    message: str = Field(..., description="Call status message")
    content: str | None = Field(default=None, description="Model reply text")


class ErrorDetail(BaseModel):
    """Error detail model for API error responses."""

    detail: str = Field(..., description="Human-readable error message")
    error_code: str | None = Field(
        default=None,
        description="Machine-readable error code (e.g., 'E1001')",
    )
    details: dict[str, Any] | None = Field(
        default=None,
        description="Additional error details for debugging",
    )
    request_id: str | None = Field(
        default=None,
        description="Request ID for error correlation",
    )

    @classmethod
    def from_error_code(
        cls,
        error_code: ErrorCode,
        detail: str,
        details: dict[str, Any] | None = None,
        request_id: str | None = None,
    ) -> "ErrorDetail":
        return cls(
            detail=detail,
            error_code=error_code.value,
            details=details,
            request_id=request_id,
        )
