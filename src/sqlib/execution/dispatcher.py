from __future__ import annotations

from typing import Any, Sequence

from sqlib.errors import UsageError
from sqlib.execution.executor import SlotExecutor, StatementRunner


class ContextDispatcher:
    """Fixed mapping from slot id to that slot's executor."""

    def __init__(self, executors: Sequence[SlotExecutor]):
        for expected_id, executor in enumerate(executors):
            if executor.slot_id != expected_id:
                raise ValueError(
                    f"Executor at position {expected_id} serves slot {executor.slot_id}"
                )
        self._executors: tuple[SlotExecutor, ...] = tuple(executors)

    @classmethod
    def for_runner(cls, runner: StatementRunner, slot_count: int) -> "ContextDispatcher":
        """Build one executor per slot, all sharing ``runner``."""
        return cls([SlotExecutor(slot_id, runner) for slot_id in range(slot_count)])

    def __len__(self) -> int:
        return len(self._executors)

    @property
    def executors(self) -> tuple[SlotExecutor, ...]:
        return self._executors

    def executor_for(self, slot_id: int) -> SlotExecutor:
        if not 0 <= slot_id < len(self._executors):
            raise UsageError(f"No executor for slot {slot_id}")
        return self._executors[slot_id]

    async def route(
        self, slot_id: int, statement_text: str, timeout: float | None = None
    ) -> Any:
        return await self.executor_for(slot_id).run(statement_text, timeout=timeout)
