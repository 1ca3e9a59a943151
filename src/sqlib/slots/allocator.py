from __future__ import annotations

import asyncio
import logging

from sqlib.errors import ResourceExhausted
from sqlib.slots.release import SlotLease
from sqlib.slots.table import SlotTable

logger = logging.getLogger(__name__)


class SlotAllocator:
    """Hands out the lowest-numbered free slot.

    Slot rows are created on the first acquisition. Selection and marking
    are two steps, but marking is conditional on the slot still being free,
    so a lost race just means selecting again. Exhaustion never waits.
    """

    def __init__(self, table: SlotTable, slot_count: int):
        if slot_count < 1:
            raise ValueError(f"slot_count must be at least 1, got {slot_count}")
        self.table = table
        self.slot_count = slot_count
        self._ready = False
        self._ready_lock = asyncio.Lock()

    async def ensure_ready(self) -> None:
        """Create the slot rows once per allocator."""
        if self._ready:
            return
        async with self._ready_lock:
            if not self._ready:
                await self.table.ensure_slots(self.slot_count)
                self._ready = True

    async def acquire(self, statement_text: str) -> SlotLease:
        await self.ensure_ready()
        while True:
            slot_id = await self.table.find_free(self.slot_count)
            if slot_id is None:
                logger.warning(
                    "No free slot (%d in use) for statement: %s",
                    self.slot_count,
                    statement_text,
                )
                raise ResourceExhausted(statement_text)
            if await self.table.mark_busy(slot_id):
                logger.debug("Acquired slot %d", slot_id)
                return SlotLease(slot_id=slot_id, statement_text=statement_text)
            logger.debug("Slot %d was claimed concurrently, selecting again", slot_id)
