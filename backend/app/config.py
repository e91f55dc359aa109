from typing import Literal

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    app_name: str = "Leave Workflow"
    app_version: str = "0.1.0"
    debug: bool = False
    environment: Literal["development", "staging", "production"] = "development"
    log_level: str = "INFO"
    database_url: str = "postgresql+asyncpg://leave:leave@db:5432/leave"
    auto_create_schema: bool = True
    cors_origins: list[str] = ["http://localhost:5173", "http://localhost:8000"]

    # Read cache expiry, in seconds.
    employee_cache_absolute_seconds: int = 300
    employee_cache_sliding_seconds: int = 60
    global_cache_absolute_seconds: int = 120

    # Days granted per leave type; keys are matched case-insensitively.
    leave_allowances: dict[str, int] = {"Annual": 20, "Sick": 10, "Casual": 7}


_settings: Settings | None = None


def get_settings() -> Settings:
    """Return cached settings instance."""
    global _settings
    if _settings is None:
        _settings = Settings()
    return _settings
