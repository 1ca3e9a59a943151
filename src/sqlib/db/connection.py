import asyncio
import sys
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, create_async_engine
from sqlalchemy.ext.asyncio import async_sessionmaker  # type: ignore[attr-defined]

from sqlib.config import Settings, settings
from sqlib.db.models import Base

# Global engine, created on first use so importing sqlib never connects.
_engine: AsyncEngine | None = None


def create_engine_from_settings(config: Settings | None = None) -> AsyncEngine:
    """Create an async engine for the configured database.

    SQLite gets no pool sizing (SQLAlchemy picks a suitable pool for it);
    every other backend uses the hardcoded pool limits from Settings.
    """
    config = config or settings
    if config.is_sqlite:
        return create_async_engine(config.async_database_url, echo=False)
    return create_async_engine(
        config.async_database_url,
        echo=False,
        pool_size=config.db_pool_size,
        max_overflow=config.db_pool_max_overflow,
    )


def get_engine() -> AsyncEngine:
    """Get or create the process-wide async engine."""
    global _engine
    if _engine is None:
        _engine = create_engine_from_settings()
    return _engine


async def dispose_engine() -> None:
    """Dispose the process-wide engine."""
    global _engine
    if _engine is not None:
        await _engine.dispose()
        _engine = None


@asynccontextmanager
async def get_session(engine: AsyncEngine | None = None) -> AsyncIterator[AsyncSession]:
    """Get a database session with automatic commit/rollback.

    This context manager commits on success and rolls back on error.
    """
    session_maker = async_sessionmaker(engine or get_engine(), expire_on_commit=False)
    async with session_maker() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise


# =============================================================================
# Database Initialization
# =============================================================================


async def init_db(engine: AsyncEngine | None = None) -> None:
    """Create missing tables. Existing tables and their rows are left alone."""
    async with (engine or get_engine()).begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


async def drop_db(engine: AsyncEngine | None = None) -> None:
    """Drop all tables."""
    async with (engine or get_engine()).begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)


# =============================================================================
# CLI entry point for `python -m sqlib.db.connection`
# =============================================================================


async def _init_and_dispose() -> None:
    try:
        await init_db()
    finally:
        await dispose_engine()


def _run_cli():
    command = sys.argv[1] if len(sys.argv) > 1 else "init"

    if command == "init":
        print(f"Creating tables in {settings.database_url}...")
        asyncio.run(_init_and_dispose())
        print("✓ Database initialized!")
    else:
        print(f"Unknown command: {command}")
        print("\nAvailable commands:")
        print("  init             - Create missing tables")
        sys.exit(1)


if __name__ == "__main__":
    _run_cli()
