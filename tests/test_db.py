"""Tests for engine creation and schema helpers."""

import pytest
from sqlalchemy import inspect, select

from sqlib.config import Settings
from sqlib.db import (
    ExecutionSlotModel,
    create_engine_from_settings,
    drop_db,
    get_session,
    init_db,
)


async def _table_names(engine) -> list[str]:
    async with engine.connect() as conn:
        return await conn.run_sync(lambda sync_conn: inspect(sync_conn).get_table_names())


class TestSchema:
    @pytest.mark.asyncio
    async def test_init_and_drop(self, sqlite_engine):
        await init_db(sqlite_engine)
        assert "execution_slots" in await _table_names(sqlite_engine)

        await drop_db(sqlite_engine)
        assert "execution_slots" not in await _table_names(sqlite_engine)

    @pytest.mark.asyncio
    async def test_init_keeps_existing_rows(self, sqlite_engine):
        await init_db(sqlite_engine)
        async with get_session(sqlite_engine) as session:
            session.add(ExecutionSlotModel(id=0, busy=True))

        await init_db(sqlite_engine)

        async with get_session(sqlite_engine) as session:
            slots = (await session.execute(select(ExecutionSlotModel))).scalars().all()
        assert [(s.id, s.busy) for s in slots] == [(0, True)]

    @pytest.mark.asyncio
    async def test_session_rolls_back_on_error(self, sqlite_engine):
        await init_db(sqlite_engine)

        with pytest.raises(RuntimeError):
            async with get_session(sqlite_engine) as session:
                session.add(ExecutionSlotModel(id=0))
                await session.flush()
                raise RuntimeError("abort")

        async with get_session(sqlite_engine) as session:
            assert (await session.execute(select(ExecutionSlotModel))).first() is None


class TestEngineFactory:
    @pytest.mark.asyncio
    async def test_sqlite_url_gets_async_driver(self, tmp_path):
        config = Settings(_env_file=None, database_url=f"sqlite:///{tmp_path / 'x.db'}")

        engine = create_engine_from_settings(config)
        try:
            assert engine.dialect.driver == "aiosqlite"
        finally:
            await engine.dispose()
