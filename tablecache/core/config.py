"""Environment-driven configuration with Pydantic v2."""

from typing import Literal, Optional
from pathlib import Path
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings


class CacheSettings(BaseSettings):
    """Cache settings driven by TABLECACHE_* environment variables."""

    # Database Configuration
    database_url: str = Field(default="sqlite+aiosqlite:///./tablecache.db")
    database_echo: bool = Field(default=False)
    database_pool_size: int = Field(default=10, ge=1, le=100)
    database_max_overflow: int = Field(default=20, ge=0, le=100)

    # Schema
    auto_create_table: bool = Field(default=True)
    unlogged_table: bool = Field(default=True)  # PostgreSQL only

    # Entry behaviour
    allow_null_values: bool = Field(default=False)
    default_ttl: Optional[int] = Field(default=None, ge=1)  # None = permanent
    size_cache_seconds: float = Field(default=5.0, ge=0.0, le=300.0)

    # Background cleanup
    background_cleanup_enabled: bool = Field(default=False)
    cleanup_interval: float = Field(default=300.0, gt=0.0)  # seconds
    shutdown_timeout: float = Field(default=5.0, ge=0.0, le=60.0)

    # Store retries
    retry_max_attempts: int = Field(default=3, ge=1, le=10)
    retry_initial_delay: float = Field(default=0.1, ge=0.0, le=10.0)
    retry_backoff_multiplier: float = Field(default=2.0, ge=1.0, le=10.0)
    retry_max_delay: float = Field(default=2.0, ge=0.0, le=60.0)

    # Logging
    log_level: str = Field(default="INFO")
    log_format: Literal["json", "console"] = Field(default="json")
    log_file: Optional[str] = Field(default=None)

    @field_validator("database_url")
    @classmethod
    def validate_database_url(cls, v):
        """Ensure database directory exists for SQLite."""
        if v and v.startswith("sqlite") and ":///" in v:
            db_path = v.split("///", 1)[1]
            if db_path and db_path != ":memory:":
                Path(db_path).parent.mkdir(parents=True, exist_ok=True)
        return v

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v):
        level = v.upper()
        if level not in {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}:
            raise ValueError(f"Unknown log level: {v}")
        return level

    @property
    def is_sqlite(self) -> bool:
        """Check if the backing store is SQLite."""
        return self.database_url.startswith("sqlite")

    model_config = {
        "env_prefix": "TABLECACHE_",
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "case_sensitive": False,
        "extra": "ignore",
        "env_parse_none_str": "none",
    }
