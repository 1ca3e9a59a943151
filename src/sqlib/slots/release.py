from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone

from sqlib.errors import SlotReleaseError
from sqlib.slots.table import SlotTable

logger = logging.getLogger(__name__)


def utcnow() -> datetime:
    """Return timezone-aware UTC datetime."""
    return datetime.now(timezone.utc)


@dataclass
class SlotLease:
    """One successful acquisition of a slot. Released exactly once."""

    slot_id: int
    statement_text: str
    acquired_at: datetime = field(default_factory=utcnow)
    released: bool = False


class ReleaseManager:
    """Returns leased slots to the free state."""

    def __init__(self, table: SlotTable):
        self.table = table

    async def release(self, lease: SlotLease) -> bool:
        """Free the lease's slot.

        The table update is shielded so a caller cancelled while releasing
        still frees its slot. Raises SlotReleaseError if the lease was already
        released; returns False if the table reported the slot already free.
        """
        if lease.released:
            raise SlotReleaseError(lease.slot_id)
        lease.released = True
        freed = await asyncio.shield(self.table.mark_free(lease.slot_id))
        held_for = (utcnow() - lease.acquired_at).total_seconds()
        logger.debug("Released slot %d after %.3fs", lease.slot_id, held_for)
        return freed
