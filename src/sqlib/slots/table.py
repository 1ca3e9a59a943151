"""Slot table backends.

The slot table is the single piece of shared mutable state behind the
dynamic statement facility: one ``(id, busy)`` record per execution slot.
Two backends implement the same protocol:

    SqlSlotTable       rows in the ``execution_slots`` table, shared by every
                       process connected to the same database
    InMemorySlotTable  a dict guarded by an asyncio lock, local to one process

Only the allocator and the release manager call ``mark_busy`` and
``mark_free``; nothing else flips the busy flag.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import Protocol

from sqlalchemy import Insert, func, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncConnection, AsyncEngine

from sqlib.db.connection import get_session
from sqlib.db.models import ExecutionSlotModel

__all__ = [
    "Slot",
    "SlotTable",
    "SqlSlotTable",
    "InMemorySlotTable",
]

logger = logging.getLogger(__name__)

slots_table = ExecutionSlotModel.__table__


@dataclass(frozen=True)
class Slot:
    """Snapshot of one slot record."""

    id: int
    busy: bool


class SlotTable(Protocol):
    """Protocol for slot table backends.

    ``mark_busy`` must be a conditional update: it succeeds only if the slot
    was still free when the write happened, so two callers that both saw the
    same free id cannot both claim it.
    """

    async def ensure_slots(self, count: int) -> None:
        """Create slots ``0..count-1`` if missing, leaving existing rows untouched."""
        ...

    async def find_free(self, limit: int) -> int | None:
        """Return the lowest free slot id below ``limit``, or None."""
        ...

    async def mark_busy(self, slot_id: int) -> bool:
        """Flip ``slot_id`` from free to busy. False if it was not free."""
        ...

    async def mark_free(self, slot_id: int) -> bool:
        """Flip ``slot_id`` from busy to free. False if it was already free."""
        ...

    async def list_slots(self) -> list[Slot]:
        """Return every slot record ordered by id."""
        ...

    async def reset(self) -> int:
        """Mark every slot free and return how many were busy.

        Only safe when no statement is running through any facility that
        shares this table.
        """
        ...


# =============================================================================
# Database backend
# =============================================================================


def _insert_ignoring_existing(dialect_name: str, rows: list[dict]) -> Insert | None:
    """Build an INSERT that skips ids already present, or None if unsupported."""
    if dialect_name == "postgresql":
        from sqlalchemy.dialects.postgresql import insert as pg_insert

        return pg_insert(slots_table).values(rows).on_conflict_do_nothing(
            index_elements=["id"]
        )
    if dialect_name == "sqlite":
        from sqlalchemy.dialects.sqlite import insert as sqlite_insert

        return sqlite_insert(slots_table).values(rows).on_conflict_do_nothing(
            index_elements=["id"]
        )
    if dialect_name in ("mysql", "mariadb"):
        from sqlalchemy.dialects.mysql import insert as mysql_insert

        return mysql_insert(slots_table).values(rows).prefix_with("IGNORE")
    return None


class SqlSlotTable:
    """Slot table stored in the ``execution_slots`` database table.

    Each operation runs in its own short transaction, so a slot claimed by one
    connection is immediately visible to every other connection, including the
    ones serving nested statements.
    """

    def __init__(self, engine: AsyncEngine):
        self.engine = engine

    async def ensure_slots(self, count: int) -> None:
        async with self.engine.begin() as conn:
            await conn.run_sync(
                lambda sync_conn: slots_table.create(sync_conn, checkfirst=True)
            )
            rows = [{"id": slot_id, "busy": False} for slot_id in range(count)]
            stmt = _insert_ignoring_existing(conn.dialect.name, rows)
            if stmt is not None:
                await conn.execute(stmt)
            else:
                await self._insert_missing(conn, count)
        logger.debug("Ensured %d execution slots in %s", count, slots_table.name)

    @staticmethod
    async def _insert_missing(conn: AsyncConnection, count: int) -> None:
        existing = set((await conn.execute(select(slots_table.c.id))).scalars().all())
        for slot_id in range(count):
            if slot_id in existing:
                continue
            try:
                async with conn.begin_nested():
                    await conn.execute(
                        slots_table.insert().values(id=slot_id, busy=False)
                    )
            except IntegrityError:
                # Another process created the row between our read and insert.
                continue

    async def find_free(self, limit: int) -> int | None:
        async with self.engine.connect() as conn:
            return await conn.scalar(
                select(func.min(slots_table.c.id)).where(
                    slots_table.c.busy.is_(False),
                    slots_table.c.id < limit,
                )
            )

    async def mark_busy(self, slot_id: int) -> bool:
        async with self.engine.begin() as conn:
            result = await conn.execute(
                update(slots_table)
                .where(slots_table.c.id == slot_id, slots_table.c.busy.is_(False))
                .values(busy=True)
            )
            claimed = result.rowcount == 1
        return claimed

    async def mark_free(self, slot_id: int) -> bool:
        async with self.engine.begin() as conn:
            result = await conn.execute(
                update(slots_table)
                .where(slots_table.c.id == slot_id, slots_table.c.busy.is_(True))
                .values(busy=False)
            )
            freed = result.rowcount == 1
        if not freed:
            logger.warning("Slot %d was already free", slot_id)
            return False
        return True

    async def list_slots(self) -> list[Slot]:
        async with get_session(self.engine) as session:
            rows = (
                await session.execute(
                    select(ExecutionSlotModel).order_by(ExecutionSlotModel.id)
                )
            ).scalars()
            return [Slot(id=row.id, busy=row.busy) for row in rows]

    async def reset(self) -> int:
        async with self.engine.begin() as conn:
            result = await conn.execute(
                update(slots_table)
                .where(slots_table.c.busy.is_(True))
                .values(busy=False)
            )
            freed = result.rowcount
        return freed


# =============================================================================
# In-memory backend
# =============================================================================


class InMemorySlotTable:
    """Slot table kept in process memory.

    Note: This implementation is NOT shared across processes.
    Use SqlSlotTable when several processes must respect one pool.
    """

    def __init__(self) -> None:
        self._busy: dict[int, bool] = {}
        self._lock = asyncio.Lock()

    async def ensure_slots(self, count: int) -> None:
        async with self._lock:
            for slot_id in range(count):
                self._busy.setdefault(slot_id, False)

    async def find_free(self, limit: int) -> int | None:
        async with self._lock:
            free = [
                slot_id
                for slot_id, busy in self._busy.items()
                if not busy and slot_id < limit
            ]
            return min(free) if free else None

    async def mark_busy(self, slot_id: int) -> bool:
        async with self._lock:
            if self._busy.get(slot_id, True):
                return False
            self._busy[slot_id] = True
            return True

    async def mark_free(self, slot_id: int) -> bool:
        async with self._lock:
            if not self._busy.get(slot_id, False):
                logger.warning("Slot %d was already free", slot_id)
                return False
            self._busy[slot_id] = False
            return True

    async def list_slots(self) -> list[Slot]:
        async with self._lock:
            return [Slot(id=slot_id, busy=busy) for slot_id, busy in sorted(self._busy.items())]

    async def reset(self) -> int:
        async with self._lock:
            held = [slot_id for slot_id, busy in self._busy.items() if busy]
            for slot_id in held:
                self._busy[slot_id] = False
            return len(held)
