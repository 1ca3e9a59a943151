"""Pytest configuration and fixtures for sqlib tests.

The process-wide settings are read when ``sqlib.config`` is first imported,
so the test database location is put in the environment from
``pytest_configure``, before any test module imports sqlib.
"""

import asyncio
import os
import tempfile

import pytest
import pytest_asyncio


def pytest_configure(config):
    """Point the process-wide settings at a throwaway SQLite database."""
    test_dir = tempfile.mkdtemp(prefix="sqlib-tests-")
    os.environ["SQLIB_DATABASE_URL"] = (
        f"sqlite+aiosqlite:///{os.path.join(test_dir, 'sqlib.db')}"
    )
    os.environ.setdefault("SQLIB_SLOT_COUNT", "5")
    os.environ["SQLIB_SLOT_BACKEND"] = "database"


# =============================================================================
# Scripted statement runners
# =============================================================================


class GatedRunner:
    """Runner whose statements block until ``gate`` is set."""

    def __init__(self):
        self.gate = asyncio.Event()
        self.started = 0
        self.finished = 0

    async def __call__(self, statement_text: str):
        self.started += 1
        await self.gate.wait()
        self.finished += 1
        return f"done: {statement_text}"

    async def wait_started(self, count: int, timeout: float = 5.0) -> None:
        async def _poll():
            while self.started < count:
                await asyncio.sleep(0.01)

        await asyncio.wait_for(_poll(), timeout=timeout)


class NestingRunner:
    """Runner for statements of the form ``NEST <depth>``.

    ``NEST 0`` records which slots are busy and returns "bottom"; ``NEST k``
    calls the facility again with ``NEST k-1``. With ``handle_exhaustion`` the
    nested call's ResourceExhausted is caught and returned, the way a
    statement with an error handler would.
    """

    def __init__(self, handle_exhaustion: bool = False):
        self.facility = None
        self.handle_exhaustion = handle_exhaustion
        self.busy_at_bottom: list[int] | None = None
        self.completed: list[int] = []
        self.exhausted: list[Exception] = []

    async def __call__(self, statement_text: str):
        from sqlib.errors import ResourceExhausted

        depth = int(statement_text.split()[1])
        if depth == 0:
            slots = await self.facility.slot_table.list_slots()
            self.busy_at_bottom = [slot.id for slot in slots if slot.busy]
            result = "bottom"
        else:
            try:
                result = await self.facility.execute_dynamic(f"NEST {depth - 1}")
            except ResourceExhausted as exc:
                if not self.handle_exhaustion:
                    raise
                self.exhausted.append(exc)
                result = "exhausted"
        self.completed.append(depth)
        return result


class UnwindingRunner:
    """Runner whose statements need ``unwind`` seconds to stop once cancelled."""

    def __init__(self, unwind: float = 0.2):
        self.unwind = unwind
        self.in_flight = 0
        self.cancelled = 0

    async def __call__(self, statement_text: str):
        self.in_flight += 1
        try:
            await asyncio.sleep(60)
        except asyncio.CancelledError:
            self.cancelled += 1
            await asyncio.sleep(self.unwind)
            raise
        finally:
            self.in_flight -= 1

    async def wait_in_flight(self, count: int = 1, timeout: float = 5.0) -> None:
        async def _poll():
            while self.in_flight < count:
                await asyncio.sleep(0.01)

        await asyncio.wait_for(_poll(), timeout=timeout)


class FailingRunner:
    """Runner that raises ``error`` for every statement."""

    def __init__(self, error: Exception):
        self.error = error
        self.calls = 0

    async def __call__(self, statement_text: str):
        self.calls += 1
        raise self.error


# =============================================================================
# Fixtures
# =============================================================================


@pytest.fixture
def memory_table():
    from sqlib.slots import InMemorySlotTable

    return InMemorySlotTable()


@pytest_asyncio.fixture
async def sqlite_engine(tmp_path):
    """Async engine on a fresh SQLite file."""
    from sqlalchemy.ext.asyncio import create_async_engine

    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'slots.db'}")
    try:
        yield engine
    finally:
        await engine.dispose()


@pytest.fixture
def sql_table(sqlite_engine):
    from sqlib.slots import SqlSlotTable

    return SqlSlotTable(sqlite_engine)


@pytest.fixture
def make_facility(memory_table):
    """Build a facility over the in-memory table with a given runner."""
    from sqlib.facility import DynamicStatementFacility

    def _make(runner, slot_count: int = 3, table=None, default_timeout=None):
        facility = DynamicStatementFacility(
            table if table is not None else memory_table,
            runner,
            slot_count=slot_count,
            default_timeout=default_timeout,
        )
        if hasattr(runner, "facility"):
            runner.facility = facility
        return facility

    return _make


@pytest.fixture
def gated_runner():
    return GatedRunner()


async def busy_ids(table) -> list[int]:
    return [slot.id for slot in await table.list_slots() if slot.busy]
