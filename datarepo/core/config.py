"""
Centralized configuration management using Pydantic Settings.

Loads store and logging settings from environment variables (prefixed
with ``DATAREPO_``) and an optional .env file. The repository core itself
reads no configuration; these settings feed the SQLAlchemy wiring in
``datarepo.core.database`` and the logging setup.
"""

from functools import lru_cache

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Settings loaded from environment variables.

    Example:
        DATAREPO_DATABASE_URL=postgresql+asyncpg://user:pass@db/app
        DATAREPO_LOG_LEVEL=DEBUG
    """

    # Store configuration
    database_url: str = Field(
        default="sqlite+aiosqlite:///./data/datarepo.db",
        description="SQLAlchemy async database URL"
    )
    sql_echo: bool = Field(
        default=False,
        description="Echo emitted SQL through the sqlalchemy.engine logger"
    )
    expire_on_commit: bool = Field(
        default=False,
        description="Expire loaded attributes after commit (keep False for asyncio)"
    )
    sqlite_foreign_keys: bool = Field(
        default=True,
        description="Enable PRAGMA foreign_keys on SQLite connections"
    )

    # Logging configuration
    log_level: str = Field(
        default="INFO",
        description="Root log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)"
    )
    log_json: bool = Field(
        default=True,
        description="Emit single-line JSON logs instead of plain text"
    )

    model_config = SettingsConfigDict(
        env_prefix="DATAREPO_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    @field_validator("database_url")
    @classmethod
    def validate_database_url(cls, v: str) -> str:
        """
        Validate database URL format.

        Only async drivers are accepted since every repository
        operation runs on an AsyncSession.
        """
        if not v or v.strip() == "":
            raise ValueError("DATABASE_URL is required and cannot be empty")

        valid_schemes = ["sqlite+aiosqlite", "postgresql+asyncpg", "mysql+aiomysql"]
        if not any(v.startswith(scheme + "://") for scheme in valid_schemes):
            raise ValueError(
                f"DATABASE_URL must start with one of: {', '.join(valid_schemes)}. "
                f"Got: {v[:20]}..."
            )
        return v

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Normalize and validate the log level name."""
        level = v.strip().upper()
        if level not in ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]:
            raise ValueError(f"LOG_LEVEL must be a standard logging level, got: {v}")
        return level


@lru_cache
def get_settings() -> Settings:
    """Return the process-wide settings instance."""
    return Settings()


settings = get_settings()
