"""Application configuration loaded from environment variables."""

from __future__ import annotations

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """VaultReader application settings."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Core
    debug: bool = False

    # Database
    database_url: str = "sqlite+aiosqlite:///data/db/vaultreader.db"

    # Remote drive
    graph_base_url: str = "https://graph.microsoft.com/v1.0"
    access_token: str = ""
    page_size: int = Field(default=200, ge=1, le=999)
    request_timeout: float = Field(default=30.0, gt=0)

    # Cache
    retain_attachments_across_vaults: bool = False

    def validate_remote(self) -> None:
        """Validate settings needed to talk to the remote drive."""
        violations: list[str] = []
        if not self.graph_base_url.startswith(("https://", "http://localhost", "http://127.0.0.1")):
            violations.append("GRAPH_BASE_URL must use HTTPS for non-localhost hosts")
        if not self.access_token:
            violations.append("ACCESS_TOKEN must be set")

        if violations:
            joined = "; ".join(violations)
            raise ValueError(f"Invalid remote configuration: {joined}")
