"""Configuration schemas.

Defines the models loaded from defaults.toml (and an optional user
override file) for the explain proxy server, the streaming client, and
history persistence.
"""

from __future__ import annotations

from pydantic import BaseModel, Field


class ServerConfig(BaseModel):
    """Settings for the explain proxy server."""

    host: str = Field(default="127.0.0.1", description="Bind address")
    port: int = Field(default=8787, gt=0, lt=65536, description="Bind port")
    model: str = Field(
        default="openrouter/google/gemini-2.5-flash-lite",
        description="LiteLLM model identifier used for explanations",
    )
    api_key_env: str = Field(
        default="OPENROUTER_API_KEY",
        description="Environment variable name holding the upstream API key",
    )
    api_base: str = Field(default="", description="Custom API base URL (empty = provider default)")
    timeout: int = Field(default=120, gt=0, description="Upstream call timeout in seconds")
    max_retries: int = Field(default=3, ge=1, description="Attempts for transient upstream errors")
    json_mode: bool = Field(
        default=True, description="Request a JSON object response format upstream"
    )
    allowed_origins: list[str] = Field(
        default_factory=lambda: ["*"], description="CORS allowed origins"
    )
    referer: str = Field(default="", description="HTTP-Referer header sent upstream")
    app_title: str = Field(default="XC (Xplain Code)", description="X-Title header sent upstream")


class ClientConfig(BaseModel):
    """Settings for the streaming explain client."""

    base_url: str = Field(default="http://127.0.0.1:8787", description="Explain server URL")
    timeout: float = Field(default=120.0, gt=0, description="HTTP timeout in seconds")
    max_accumulated_chars: int = Field(
        default=0,
        ge=0,
        description="Cap on the accumulated stream text (0 = unbounded)",
    )


class HistoryConfig(BaseModel):
    """Settings for persisted explanation history."""

    persist: bool = Field(default=True, description="Save completed explanations")
    db_path: str = Field(default="~/.xc/history.db", description="SQLite history path")


class XCConfig(BaseModel):
    """Top-level XC configuration."""

    server: ServerConfig = Field(default_factory=ServerConfig)
    client: ClientConfig = Field(default_factory=ClientConfig)
    history: HistoryConfig = Field(default_factory=HistoryConfig)
