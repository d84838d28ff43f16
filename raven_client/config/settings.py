"""Application settings loaded from environment variables."""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class RetryConfig(BaseModel):
    """Retry behavior for calls to the token endpoint."""

    attempts: int = Field(default=3, ge=1, le=10)
    min_seconds: float = Field(default=0.5, ge=0.0, le=10.0)
    max_seconds: float = Field(default=4.0, ge=0.0, le=20.0)


class Settings(BaseSettings):
    """Runtime application settings."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        populate_by_name=True,
    )

    app_name: str = "raven-document-mcp"
    app_version: str = "1.0.0"
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"

    transport_mode: Literal["auto", "stdio", "http"] = "auto"
    http_transport: Literal["sse", "streamable"] = "sse"
    host: str = "0.0.0.0"
    port: int = 8000
    mcp_path: str = "/mcp"
    health_path: str = "/health"

    server_url: str = Field(default="http://localhost:8080", alias="RAVEN_SERVER_URL")
    database: str | None = Field(default=None, alias="RAVEN_DATABASE")
    api_key: str | None = Field(default=None, alias="RAVEN_API_KEY")
    username: str | None = Field(default=None, alias="RAVEN_USERNAME")
    password: str | None = Field(default=None, alias="RAVEN_PASSWORD")

    request_timeout_seconds: float = Field(default=30.0, ge=1, le=300)
    retry: RetryConfig = RetryConfig()


def get_settings() -> Settings:
    """Return application settings."""

    return Settings()
