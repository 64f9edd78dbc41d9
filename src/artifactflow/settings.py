"""Shared settings loaded from environment / .env file."""

from __future__ import annotations

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Configuration for the artifactflow engine and REST API server.

    Values are read from environment variables and from a ``.env`` file
    in the working directory.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Shared
    log_level: str = "INFO"

    # REST API
    api_server_host: str = "localhost"
    api_server_port: int = 8000
    port: int | None = None  # platform-injected PORT takes precedence over api_server_port
    max_request_body_bytes: int = 2 * 1024 * 1024

    @property
    def effective_port(self) -> int:
        """Return the port to listen on (injected PORT takes precedence)."""
        return self.port if self.port is not None else self.api_server_port

    # Parsing
    max_response_chars: int = 500_000
    min_streaming_preview_length: int = 50

    # Workspaces
    workspace_ttl_seconds: int = 1800  # 30 min inactivity
    workspace_cleanup_interval: int = 60  # seconds between cleanup sweeps
