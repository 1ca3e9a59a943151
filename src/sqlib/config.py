import os
from typing import ClassVar, Literal

from pydantic import Field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_prefix="SQLIB_",
        extra="ignore",
    )

    # ==========================================================================
    # HARDCODED DEFAULTS - Edit this file to change
    # ==========================================================================

    # Database connection pools (ignored for SQLite)
    db_pool_size: ClassVar[int] = 5
    db_pool_max_overflow: ClassVar[int] = 10

    # ==========================================================================
    # ENV-VAR CONFIGURABLE
    # ==========================================================================

    # Database (supports DATABASE_URL or SQLIB_DATABASE_URL)
    database_url: str = "sqlite+aiosqlite:///./sqlib.db"

    # Number of execution slots, which is also the maximum nesting depth.
    slot_count: int = Field(default=5)

    # "memory" keeps slots in this process, so they vanish with it. "database"
    # keeps them in the execution_slots table, shared by every process using
    # the same database; a process killed mid-statement leaves its slot busy
    # until `sqlib slots --reset`.
    slot_backend: Literal["database", "memory"] = "memory"

    # Unset means statements may run forever and hold their slot meanwhile.
    statement_timeout_seconds: float | None = None

    @model_validator(mode="before")
    @classmethod
    def check_database_url(cls, data: dict | None) -> dict:
        """Use DATABASE_URL when neither kwargs nor SQLIB_DATABASE_URL set one."""
        data = data or {}
        if "database_url" in data:
            return data
        if db_url := os.getenv("DATABASE_URL") or os.getenv("SQLIB_DATABASE_URL"):
            data["database_url"] = db_url
        return data

    @field_validator("slot_count")
    @classmethod
    def check_slot_count(cls, value: int) -> int:
        if value < 1:
            raise ValueError("slot_count must be at least 1")
        return value

    @field_validator("statement_timeout_seconds")
    @classmethod
    def check_statement_timeout(cls, value: float | None) -> float | None:
        if value is not None and value <= 0:
            raise ValueError("statement_timeout_seconds must be positive")
        return value

    @property
    def is_sqlite(self) -> bool:
        return self.database_url.startswith("sqlite")

    @property
    def async_database_url(self) -> str:
        """Database URL with an async driver.

        Plain postgresql:// and sqlite:// URLs are rewritten to asyncpg and
        aiosqlite so the engine never falls back to a sync DBAPI.
        """
        url = self.database_url
        if url.startswith("postgresql://"):
            return url.replace("postgresql://", "postgresql+asyncpg://", 1)
        if url.startswith("sqlite://"):
            return url.replace("sqlite://", "sqlite+aiosqlite://", 1)
        return url


settings = Settings()
