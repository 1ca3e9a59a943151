"""Bounded dynamic statement execution.

A caller hands over statement text built at runtime; the facility claims the
lowest free slot, runs the statement on that slot's executor and frees the
slot again however the statement ends. A statement may itself call the
facility, so nesting is bounded by the number of slots: with N slots the
(N+1)th nested or concurrent call fails with ResourceExhausted instead of
waiting.

Usage:
    from sqlib import execute_dynamic

    result = await execute_dynamic("SELECT 1")
    result.rows  # [(1,)]
"""

from __future__ import annotations

import logging
from typing import Any

from sqlalchemy.ext.asyncio import AsyncEngine

from sqlib.config import Settings, settings
from sqlib.db.connection import create_engine_from_settings, get_engine
from sqlib.errors import UsageError
from sqlib.execution.dispatcher import ContextDispatcher
from sqlib.execution.executor import EngineStatementRunner, StatementRunner
from sqlib.slots.allocator import SlotAllocator
from sqlib.slots.release import ReleaseManager
from sqlib.slots.table import InMemorySlotTable, Slot, SlotTable, SqlSlotTable

__all__ = [
    "DynamicStatementFacility",
    "execute_dynamic",
    "get_facility",
    "reset_facility",
]

logger = logging.getLogger(__name__)

# Sentinel meaning "use the facility's default timeout"
_DEFAULT = object()


class DynamicStatementFacility:
    """Runs runtime-built statements on a fixed pool of execution slots."""

    def __init__(
        self,
        slot_table: SlotTable,
        runner: StatementRunner,
        *,
        slot_count: int = 5,
        default_timeout: float | None = None,
    ):
        self.slot_table = slot_table
        self.allocator = SlotAllocator(slot_table, slot_count)
        self.dispatcher = ContextDispatcher.for_runner(runner, slot_count)
        self.release_manager = ReleaseManager(slot_table)
        self.default_timeout = default_timeout

    @classmethod
    def from_settings(
        cls,
        config: Settings | None = None,
        *,
        engine: AsyncEngine | None = None,
    ) -> "DynamicStatementFacility":
        """Build a facility for the configured database and slot backend."""
        config = config or settings
        engine = engine or create_engine_from_settings(config)
        slot_table: SlotTable
        if config.slot_backend == "memory":
            slot_table = InMemorySlotTable()
        else:
            slot_table = SqlSlotTable(engine)
        return cls(
            slot_table,
            EngineStatementRunner(engine),
            slot_count=config.slot_count,
            default_timeout=config.statement_timeout_seconds,
        )

    @property
    def slot_count(self) -> int:
        return self.allocator.slot_count

    async def execute_dynamic(
        self, statement_text: str, *, timeout: Any = _DEFAULT
    ) -> Any:
        """Run ``statement_text`` on a free slot and return its result.

        Raises UsageError for missing or blank text or a non-positive timeout
        (before touching any slot), ResourceExhausted when every slot is busy,
        StatementTimeout when a timeout is set and exceeded. Any error raised by the statement itself
        propagates unchanged. The slot is freed on every path.
        """
        if not isinstance(statement_text, str) or not statement_text.strip():
            raise UsageError(
                f"Statement text must be a non-empty string, got {statement_text!r}"
            )
        if timeout is _DEFAULT:
            timeout = self.default_timeout
        if timeout is not None and not (
            isinstance(timeout, (int, float))
            and not isinstance(timeout, bool)
            and timeout > 0
        ):
            raise UsageError(
                f"Timeout must be a positive number of seconds, got {timeout!r}"
            )

        lease = await self.allocator.acquire(statement_text)
        try:
            return await self.dispatcher.route(
                lease.slot_id, statement_text, timeout=timeout
            )
        finally:
            await self.release_manager.release(lease)

    async def slot_status(self) -> list[Slot]:
        """Return the current slot records."""
        await self.allocator.ensure_ready()
        return await self.slot_table.list_slots()

    async def reset_slots(self) -> int:
        """Free every slot, including ones left busy by a process that died.

        Unsafe while statements are running: their slots would be handed out
        again. Returns the number of slots that were busy.
        """
        await self.allocator.ensure_ready()
        freed = await self.slot_table.reset()
        logger.warning("Reset execution slots, %d were busy", freed)
        return freed


# =============================================================================
# Process-wide facility
# =============================================================================

_facility: DynamicStatementFacility | None = None


def get_facility() -> DynamicStatementFacility:
    """Get or create the process-wide facility from settings."""
    global _facility
    if _facility is None:
        _facility = DynamicStatementFacility.from_settings(engine=get_engine())
        logger.info(
            "Created dynamic statement facility with %d %s slots",
            _facility.slot_count,
            settings.slot_backend,
        )
    return _facility


def reset_facility() -> None:
    """Forget the process-wide facility so the next call rebuilds it."""
    global _facility
    _facility = None


async def execute_dynamic(statement_text: str, *, timeout: Any = _DEFAULT) -> Any:
    """Run a statement through the process-wide facility."""
    return await get_facility().execute_dynamic(statement_text, timeout=timeout)
