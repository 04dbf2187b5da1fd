"""
Storefront Backend — Application Configuration
================================================

What:  Centralized configuration management using Pydantic Settings.
How:   Pydantic Settings reads from environment variables (or .env file),
       validates types/ranges, and provides a singleton `settings` object.
Who:   Imported by every module that needs configuration values.
When:  Loaded once at module import time; validated before the app starts.
"""

from typing import List

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.

    All settings have defaults suitable for a local install: the store is a
    single SQLite file next to the working directory.
    """

    # ── Database ──────────────────────────────────────────────────────────
    # Format: sqlite+aiosqlite:///<path> for the embedded store.
    # Any async SQLAlchemy URL works; pool options only apply to server databases.
    database_url: str = Field(
        default="sqlite+aiosqlite:///./storefront.db",
        description="Async SQLAlchemy connection URL",
    )
    db_pool_size: int = Field(default=5, ge=1, le=100)
    db_max_overflow: int = Field(default=10, ge=0, le=50)
    db_pool_pre_ping: bool = Field(default=True)

    # ── Seeding ───────────────────────────────────────────────────────────
    # Initial categories, products and the admin account are inserted when
    # missing; existing rows are never touched.
    seed_on_startup: bool = Field(default=True)
    admin_username: str = Field(default="admin", min_length=3)
    admin_password: str = Field(default="123456", min_length=6)

    # ── Security ──────────────────────────────────────────────────────────
    # PBKDF2-SHA256 rounds for stored password hashes.
    password_hash_iterations: int = Field(default=260_000, ge=1_000, le=2_000_000)

    # ── Analytics ─────────────────────────────────────────────────────────
    top_products_limit: int = Field(default=3, ge=1, le=100)
    product_stats_limit: int = Field(default=10, ge=1, le=100)

    # ── CORS ──────────────────────────────────────────────────────────────
    cors_origins: str = Field(default="http://localhost:3000")

    @property
    def cors_origins_list(self) -> List[str]:
        """Splits comma-separated CORS origins into a list."""
        return [origin.strip() for origin in self.cors_origins.split(",") if origin.strip()]

    # ── Server ────────────────────────────────────────────────────────────
    backend_host: str = Field(default="127.0.0.1")
    backend_port: int = Field(default=8000, ge=1024, le=65535)

    # Valid: DEBUG, INFO, WARNING, ERROR, CRITICAL
    log_level: str = Field(default="INFO")

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Ensures log level is a valid Python logging level name."""
        valid_levels = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        upper = v.upper()
        if upper not in valid_levels:
            raise ValueError(f"Invalid log_level '{v}'. Must be one of: {valid_levels}")
        return upper

    # ── Retry Configuration ───────────────────────────────────────────────
    # Tenacity settings for database initialization. SQLite reports a busy
    # file as OperationalError ("database is locked"), which is transient.
    retry_max_attempts: int = Field(default=3, ge=1, le=10)
    retry_min_wait: float = Field(default=0.5, ge=0, le=30)
    retry_max_wait: float = Field(default=5, ge=0, le=120)

    model_config = {
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "case_sensitive": False,
        "extra": "ignore",
    }

    @property
    def is_sqlite(self) -> bool:
        return self.database_url.startswith("sqlite")


settings = Settings()
