"""Application settings using Pydantic BaseSettings."""

import os
from functools import lru_cache
from typing import List, Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


def _get_default_db_path() -> str:
    """Get absolute path to default SQLite database."""
    config_dir = os.path.dirname(os.path.abspath(__file__))
    package_dir = os.path.dirname(config_dir)
    db_path = os.path.join(package_dir, "data", "mission_control.db")
    return f"sqlite:///{db_path}"


def _default_openclaw_config_paths() -> str:
    home = os.environ.get("HOME") or "/home/node"
    return ",".join(
        [
            os.path.join(home, ".openclaw", "openclaw.json"),
            "/home/node/.openclaw/openclaw.json",
        ]
    )


class Settings(BaseSettings):
    """Application configuration loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Server
    environment: str = Field(default="development")
    host: str = Field(default="127.0.0.1")
    port: int = Field(default=4000)
    debug: bool = Field(default=False)
    log_level: str = Field(default="INFO")
    log_file: Optional[str] = Field(default=None)
    cors_origins: str = Field(default="http://localhost:3000")

    # Database
    database_url: str = Field(default_factory=_get_default_db_path)

    # Credential backends
    # Binary names are resolved through PATH; override for non-standard installs.
    secret_manager_cli: str = Field(default="op")
    google_cli: str = Field(default="gog")
    openclaw_config_paths: str = Field(
        default_factory=_default_openclaw_config_paths,
        description="Comma-separated openclaw.json candidates, tried in order.",
    )
    cli_timeout_seconds: float = Field(default=10.0)
    secret_read_timeout_seconds: float = Field(default=15.0)

    # Events
    eventbus_backlog: int = Field(default=1000)

    @field_validator("environment")
    @classmethod
    def validate_environment(cls, v: str) -> str:
        vv = (v or "").strip().lower()
        if vv not in {"development", "staging", "production", "test"}:
            raise ValueError("ENVIRONMENT must be one of: development, staging, production, test")
        return vv

    @field_validator("cli_timeout_seconds", "secret_read_timeout_seconds")
    @classmethod
    def validate_timeouts(cls, v: float) -> float:
        if v <= 0:
            raise ValueError("CLI timeouts must be positive")
        return v

    @property
    def cors_origins_list(self) -> List[str]:
        """Parse CORS origins from comma-separated string."""
        return [o.strip() for o in (self.cors_origins or "").split(",") if o.strip()]

    @property
    def openclaw_config_paths_list(self) -> List[str]:
        """Parse openclaw.json candidate paths, preserving order."""
        return [p.strip() for p in (self.openclaw_config_paths or "").split(",") if p.strip()]

    @property
    def is_production(self) -> bool:
        """Check if running in production mode."""
        return self.environment == "production"

    @property
    def is_test(self) -> bool:
        """Check if running in test mode."""
        return self.environment == "test"

    @property
    def docs_url(self) -> str | None:
        """Return docs URL unless running in production."""
        return None if self.is_production else "/docs"

    @property
    def openapi_url(self) -> str | None:
        """Return openapi URL unless running in production."""
        return None if self.is_production else "/openapi.json"


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
