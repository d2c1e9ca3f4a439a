"""Configuration management for spreadsheet record extraction.

This module provides centralized configuration using pydantic-settings.
All configuration options can be set via environment variables with the
EXCEL_ prefix, or via a .env file in the project root.

Environment Variables:
    EXCEL_MAX_FILE_SIZE_MB: Maximum workbook size in MB (default: 20)
    EXCEL_DOWNLOAD_TIMEOUT_SECONDS: Timeout for URL sources (default: 30)
    EXCEL_CHAT_API_URL: Chat completions endpoint for the chat client
    EXCEL_CHAT_MODEL: Model name sent to the chat endpoint
    EXCEL_CHAT_TIMEOUT_SECONDS: Timeout for chat requests (default: 60)
    EXCEL_CHAT_API_KEY: Fallback API key when a request carries none
    EXCEL_LOG_LEVEL: Logging level (default: INFO)
    EXCEL_DEBUG: Enable debug mode (default: false)
    EXCEL_CORS_ORIGINS: Comma-separated CORS origins (default: *)
    EXCEL_SERVER_HOST: Server bind host (default: 0.0.0.0)
    EXCEL_SERVER_PORT: Server bind port (default: 8000)
"""

import logging
from typing import Any

from pydantic import SecretStr, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables.

    Example .env file:
        EXCEL_MAX_FILE_SIZE_MB=50
        EXCEL_LOG_LEVEL=DEBUG
        EXCEL_CHAT_API_KEY=...
    """

    model_config = SettingsConfigDict(
        env_prefix="EXCEL_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # =========================================================================
    # Source Settings
    # =========================================================================

    max_file_size_mb: int = 20
    """Maximum workbook size in megabytes, for uploads, files and downloads."""

    download_timeout_seconds: float = 30.0
    """Timeout applied when a workbook is fetched from an http(s) URL."""

    # =========================================================================
    # Chat Collaborator Settings
    # =========================================================================

    chat_api_url: str = "https://ark.cn-beijing.volces.com/api/v3/chat/completions"
    """OpenAI-compatible chat completions endpoint."""

    chat_model: str = "doubao-1-5-vision-pro-32k-250115"
    """Model requested from the chat endpoint."""

    chat_timeout_seconds: float = 60.0
    """Timeout for a single chat request."""

    chat_api_key: SecretStr = SecretStr("")
    """Fallback API key used when a chat request does not carry one."""

    # =========================================================================
    # Logging Settings
    # =========================================================================

    log_level: str = "INFO"
    """Logging level: DEBUG, INFO, WARNING, ERROR, or CRITICAL."""

    debug: bool = False
    """Enable debug mode with additional error details."""

    # =========================================================================
    # Server Settings
    # =========================================================================

    cors_origins: str = "*"
    """Comma-separated list of allowed CORS origins, or * for all."""

    server_host: str = "0.0.0.0"
    server_port: int = 8000

    # =========================================================================
    # Validators
    # =========================================================================

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Validate log level is a valid Python logging level."""
        valid_levels = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        upper_v = v.upper()
        if upper_v not in valid_levels:
            raise ValueError(
                f"Invalid log level: {v}. Must be one of: {', '.join(valid_levels)}"
            )
        return upper_v

    @field_validator("max_file_size_mb")
    @classmethod
    def validate_file_size(cls, v: int) -> int:
        if not 1 <= v <= 500:
            raise ValueError(f"max_file_size_mb must be between 1 and 500, got {v}")
        return v

    @field_validator("download_timeout_seconds", "chat_timeout_seconds")
    @classmethod
    def validate_timeout(cls, v: float) -> float:
        if v <= 0:
            raise ValueError(f"Timeouts must be positive, got {v}")
        return v

    @field_validator("chat_api_url")
    @classmethod
    def validate_chat_api_url(cls, v: str) -> str:
        v = v.strip()
        if not v.startswith(("http://", "https://")):
            raise ValueError(f"chat_api_url must be an http(s) URL, got {v!r}")
        return v

    @field_validator("server_port")
    @classmethod
    def validate_port(cls, v: int) -> int:
        if not 1 <= v <= 65535:
            raise ValueError(f"server_port must be between 1 and 65535, got {v}")
        return v

    # =========================================================================
    # Computed Properties
    # =========================================================================

    @property
    def max_file_size_bytes(self) -> int:
        return self.max_file_size_mb * 1024 * 1024

    @property
    def cors_origins_list(self) -> list[str]:
        if self.cors_origins == "*":
            return ["*"]
        return [origin.strip() for origin in self.cors_origins.split(",")]

    @property
    def log_level_int(self) -> int:
        """Get log level as integer for logging module."""
        level: int = getattr(logging, self.log_level)
        return level

    def get_chat_api_key(self) -> str:
        """Get the fallback chat API key value.

        Note:
            Direct access to chat_api_key returns a SecretStr which prevents
            accidental logging.
        """
        return self.chat_api_key.get_secret_value()

    def to_safe_dict(self) -> dict[str, Any]:
        """Convert settings to dictionary with sensitive values masked."""
        return {
            "max_file_size_mb": self.max_file_size_mb,
            "download_timeout_seconds": self.download_timeout_seconds,
            "chat_api_url": self.chat_api_url,
            "chat_model": self.chat_model,
            "chat_timeout_seconds": self.chat_timeout_seconds,
            "chat_api_key": "***" if self.get_chat_api_key() else "(not set)",
            "log_level": self.log_level,
            "debug": self.debug,
            "cors_origins": self.cors_origins,
            "server_host": self.server_host,
            "server_port": self.server_port,
        }


def validate_settings_on_startup(s: Settings) -> None:
    """Log warnings for settings that are valid but risky in production."""
    logger = logging.getLogger(__name__)

    if not s.get_chat_api_key():
        logger.warning(
            "EXCEL_CHAT_API_KEY is not configured. Chat requests must carry "
            "their own apiKey."
        )

    if s.cors_origins == "*" and not s.debug:
        logger.warning(
            "CORS is configured to allow all origins (*). "
            "Consider restricting this in production."
        )

    logger.info(
        f"Configuration loaded: log_level={s.log_level}, debug={s.debug}, "
        f"max_file_size_mb={s.max_file_size_mb}"
    )


settings = Settings()
