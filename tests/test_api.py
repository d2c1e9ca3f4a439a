"""Tests for the FastAPI application."""

from collections.abc import AsyncIterator
from datetime import datetime
from pathlib import Path
from typing import Any
from unittest.mock import MagicMock, patch

import httpx
import pytest
from fastapi import FastAPI, status

from spreadsheet_extraction.api import create_app
from spreadsheet_extraction.config import Settings
from spreadsheet_extraction.services.chat_client import ChatClient
from spreadsheet_extraction.services.excel_parser import ExcelParseService
from spreadsheet_extraction.services.workbook_reader import WorkbookReader

XLSX_MIME = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"


def _chat_handler(request: httpx.Request) -> httpx.Response:
    if request.headers.get("Authorization") != "Bearer good-key":
        return httpx.Response(401, json={"error": "unauthorized"})
    return httpx.Response(
        200,
        json={"choices": [{"message": {"role": "assistant", "content": "收到"}}]},
    )


@pytest.fixture
def app() -> FastAPI:
    settings = Settings(_env_file=None)
    return create_app(
        parse_service=ExcelParseService(reader=WorkbookReader(settings)),
        chat_client=ChatClient(settings, transport=httpx.MockTransport(_chat_handler)),
    )


@pytest.fixture
async def client(app: FastAPI) -> AsyncIterator[httpx.AsyncClient]:
    """Create an async test client for the FastAPI application."""
    async with httpx.AsyncClient(
        transport=httpx.ASGITransport(app=app),
        base_url="http://test",
    ) as ac:
        yield ac


class TestHealthEndpoint:
    """Tests for the health check endpoint."""

    async def test_health_check(self, client: httpx.AsyncClient) -> None:
        response = await client.get("/health")

        assert response.status_code == status.HTTP_200_OK
        data = response.json()
        assert data["status"] == "healthy"
        assert data["version"] == "0.1.0"
        assert isinstance(datetime.fromisoformat(data["timestamp"]), datetime)

    async def test_request_id_is_echoed(self, client: httpx.AsyncClient) -> None:
        response = await client.get("/health", headers={"X-Request-ID": "req-42"})

        assert response.headers["X-Request-ID"] == "req-42"

    async def test_request_id_is_generated(self, client: httpx.AsyncClient) -> None:
        response = await client.get("/health")

        assert response.headers["X-Request-ID"]


class TestOpenAPIDocumentation:
    """Tests for OpenAPI documentation availability."""

    async def test_openapi_json_available(self, client: httpx.AsyncClient) -> None:
        response = await client.get("/openapi.json")

        assert response.status_code == status.HTTP_200_OK
        data = response.json()
        assert data["info"]["title"] == "Spreadsheet Extraction API"
        assert "/excel/parse" in data["paths"]
        assert "/chat" in data["paths"]


class TestParseEndpoint:
    """Tests for the Excel parse endpoint."""

    async def test_upload(
        self,
        client: httpx.AsyncClient,
        purchase_bytes: bytes,
        purchase_headers: list[str],
    ) -> None:
        response = await client.post(
            "/excel/parse",
            files={"file": ("purchase.xlsx", purchase_bytes, XLSX_MIME)},
            data={"header_row_index": "2", "sheet_name": "测试工作表"},
        )

        assert response.status_code == status.HTTP_200_OK
        data = response.json()
        assert data["message"] == "解析成功"
        assert data["headers"] == purchase_headers
        assert len(data["dataList"]) == 3
        assert data["dataList"][0]["序号"] == 1
        assert data["dataList"][0]["采购日期"] == "2023/01/15"

        item = data["items"][0]
        assert item["serialNumber"] == 1
        assert item["purchaseDate"] == "2023/01/15"
        assert item["itemName"] == "笔记本电脑"
        assert item["unitPrice"] == 8000.0
        assert item["photoUrl"] == "photo1.jpg"

    async def test_url_source(
        self, client: httpx.AsyncClient, purchase_xlsx: Path
    ) -> None:
        response = await client.post(
            "/excel/parse",
            data={"header_row_index": "2", "excel_url": purchase_xlsx.as_uri()},
        )

        assert response.status_code == status.HTTP_200_OK
        assert response.json()["message"] == "解析成功"

    async def test_layout_failure_is_reported_in_body(
        self, client: httpx.AsyncClient, purchase_bytes: bytes
    ) -> None:
        response = await client.post(
            "/excel/parse",
            files={"file": ("purchase.xlsx", purchase_bytes, XLSX_MIME)},
            data={"header_row_index": "2", "sheet_name": "不存在的工作表"},
        )

        assert response.status_code == status.HTTP_200_OK
        data = response.json()
        assert data["message"] == "找不到名为 '不存在的工作表' 的工作表"
        assert data["headers"] == []
        assert data["dataList"] == []
        assert data["items"] == []

    async def test_unreachable_url(self, client: httpx.AsyncClient) -> None:
        response = await client.post(
            "/excel/parse",
            data={
                "header_row_index": "2",
                "excel_url": "file:///invalid-path/file.xlsx",
            },
        )

        assert response.status_code == status.HTTP_200_OK
        assert response.json()["message"].startswith("解析Excel文件失败")

    async def test_missing_source(self, client: httpx.AsyncClient) -> None:
        response = await client.post("/excel/parse", data={"header_row_index": "2"})

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        data = response.json()
        assert data["error_code"] == "E3001"
        assert data["details"]["field"] == "file"
        assert data["request_id"]

    async def test_missing_header_row_index(
        self, client: httpx.AsyncClient, purchase_bytes: bytes
    ) -> None:
        response = await client.post(
            "/excel/parse",
            files={"file": ("purchase.xlsx", purchase_bytes, XLSX_MIME)},
        )

        assert response.status_code == 422

    async def test_upload_too_large(self, client: httpx.AsyncClient) -> None:
        with patch("spreadsheet_extraction.api.settings.max_file_size_mb", 1):
            response = await client.post(
                "/excel/parse",
                files={"file": ("big.xlsx", b"x" * (1024 * 1024 + 1), XLSX_MIME)},
                data={"header_row_index": "1"},
            )

        assert response.status_code == 413
        data = response.json()
        assert data["error_code"] == "E1002"
        assert data["details"]["source"] == "big.xlsx"

    async def test_unexpected_error_returns_500(self) -> None:
        service = MagicMock(spec=ExcelParseService)
        service.parse.side_effect = RuntimeError("boom")
        app = create_app(parse_service=service)

        async with httpx.AsyncClient(
            transport=httpx.ASGITransport(app=app, raise_app_exceptions=False),
            base_url="http://test",
        ) as ac:
            response = await ac.post(
                "/excel/parse",
                data={"header_row_index": "1", "excel_url": "https://x/y.xlsx"},
            )

        assert response.status_code == status.HTTP_500_INTERNAL_SERVER_ERROR
        data = response.json()
        assert data["error_code"] == "E9001"
        assert "boom" not in data["detail"]


class TestChatEndpoint:
    """Tests for the chat relay endpoint."""

    async def test_chat(self, client: httpx.AsyncClient) -> None:
        payload: dict[str, Any] = {
            "apiKey": "good-key",
            "content": "这张发票的金额是多少?",
            "imageUrl": "https://img.example.com/invoice.png",
        }

        response = await client.post("/chat", json=payload)

        assert response.status_code == status.HTTP_200_OK
        assert response.json() == {"message": "调用成功", "content": "收到"}

    async def test_chat_failure_reported_in_body(
        self, client: httpx.AsyncClient
    ) -> None:
        response = await client.post(
            "/chat", json={"apiKey": "bad-key", "content": "你好"}
        )

        assert response.status_code == status.HTTP_200_OK
        data = response.json()
        assert data["message"].startswith("调用AI服务失败")
        assert data["content"] is None

    async def test_empty_content_rejected(self, client: httpx.AsyncClient) -> None:
        response = await client.post("/chat", json={"apiKey": "k", "content": ""})

        assert response.status_code == 422
