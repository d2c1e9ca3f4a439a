"""Thin client for an OpenAI-compatible chat completions endpoint."""

from __future__ import annotations

import time
from typing import Any

import httpx

from spreadsheet_extraction.config import Settings, settings
from spreadsheet_extraction.models import ChatResult
from spreadsheet_extraction.utils.exceptions import ChatServiceError, ErrorCode
from spreadsheet_extraction.utils.logging import get_logger

logger = get_logger(__name__)

CHAT_SUCCESS_MESSAGE = "调用成功"
CHAT_FAILURE_PREFIX = "调用AI服务失败: "


def build_chat_payload(
    model: str, content: str, image_url: str | None
) -> dict[str, Any]:
    """Request body with one user message; the image part precedes the text."""
    parts: list[dict[str, Any]] = []
    if image_url is not None and image_url.strip():
        parts.append({"type": "image_url", "image_url": {"url": image_url}})
    parts.append({"type": "text", "text": content})
    return {"model": model, "messages": [{"role": "user", "content": parts}]}


def extract_reply(body: Any) -> str:
    """Return ``choices[0].message.content`` or raise ChatServiceError."""
    try:
        reply = body["choices"][0]["message"]["content"]
    except (KeyError, IndexError, TypeError) as e:
        raise ChatServiceError(
            f"Unexpected response shape: {e!r}",
            error_code=ErrorCode.CHAT_RESPONSE_INVALID,
        ) from e
    if not isinstance(reply, str):
        raise ChatServiceError(
            "Response content is not text",
            error_code=ErrorCode.CHAT_RESPONSE_INVALID,
        )
    return reply


class ChatClient:
    """Send text, optionally with an image URL, and return the reply text."""

    def __init__(
        self,
        config: Settings | None = None,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        self._settings = config or settings
        self._transport = transport

    def chat(
        self,
        api_key: str | None,
        content: str,
        image_url: str | None = None,
    ) -> ChatResult:
        """Call the endpoint; failures are reported in ``ChatResult.message``."""
        try:
            reply = self._complete(api_key, content, image_url)
        except ChatServiceError as e:
            return ChatResult(message=CHAT_FAILURE_PREFIX + e.message)
        logger.info("Chat reply received", length=len(reply))
        return ChatResult(message=CHAT_SUCCESS_MESSAGE, content=reply)

    def _complete(
        self, api_key: str | None, content: str, image_url: str | None
    ) -> str:
        key = api_key or self._settings.get_chat_api_key()
        if not key:
            raise ChatServiceError("No API key configured")

        model = self._settings.chat_model
        payload = build_chat_payload(model, content, image_url)
        started = time.monotonic()
        try:
            with httpx.Client(
                timeout=self._settings.chat_timeout_seconds,
                transport=self._transport,
            ) as client:
                response = client.post(
                    self._settings.chat_api_url,
                    json=payload,
                    headers={"Authorization": f"Bearer {key}"},
                )
                response.raise_for_status()
                body = response.json()
        except httpx.HTTPStatusError as e:
            logger.log_api_call(
                "chat",
                "completions",
                time.monotonic() - started,
                success=False,
                status_code=e.response.status_code,
                error_message=str(e),
            )
            raise ChatServiceError(
                str(e), model=model, status_code=e.response.status_code
            ) from e
        except (httpx.HTTPError, ValueError) as e:
            logger.log_api_call(
                "chat",
                "completions",
                time.monotonic() - started,
                success=False,
                error_message=str(e),
            )
            raise ChatServiceError(str(e), model=model) from e

        logger.log_api_call(
            "chat",
            "completions",
            time.monotonic() - started,
            status_code=response.status_code,
        )
        return extract_reply(body)
