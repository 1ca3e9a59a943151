from sqlib.slots.allocator import SlotAllocator
from sqlib.slots.release import ReleaseManager, SlotLease
from sqlib.slots.table import InMemorySlotTable, Slot, SlotTable, SqlSlotTable

__all__ = [
    # Table
    "Slot",
    "SlotTable",
    "SqlSlotTable",
    "InMemorySlotTable",
    # Acquire / release
    "SlotAllocator",
    "SlotLease",
    "ReleaseManager",
]
