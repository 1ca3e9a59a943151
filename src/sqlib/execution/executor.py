from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from typing import Any, Protocol

from sqlalchemy.engine import CursorResult, Row
from sqlalchemy.ext.asyncio import AsyncEngine

from sqlib.errors import StatementTimeout

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class StatementResult:
    """Buffered result of one statement.

    ``rows`` holds the driver's Row objects as returned; ``columns`` is empty
    for statements that return no rows.
    """

    columns: tuple[str, ...] = ()
    rows: list[Row] = field(default_factory=list)
    rowcount: int = -1

    @classmethod
    def from_cursor(cls, result: CursorResult) -> "StatementResult":
        if result.returns_rows:
            return cls(
                columns=tuple(result.keys()),
                rows=list(result.all()),
                rowcount=result.rowcount,
            )
        return cls(rowcount=result.rowcount)

    @property
    def returns_rows(self) -> bool:
        return bool(self.columns)


class StatementRunner(Protocol):
    """Runs one statement and returns its result or raises its error."""

    async def __call__(self, statement_text: str) -> Any: ...


class EngineStatementRunner:
    """Runs statement text verbatim on a SQLAlchemy async engine.

    The text goes through ``exec_driver_sql`` so nothing in it is parsed or
    treated as a bind parameter. Each statement gets its own connection and
    is committed when it succeeds; driver errors propagate unchanged.
    """

    def __init__(self, engine: AsyncEngine):
        self.engine = engine

    async def __call__(self, statement_text: str) -> StatementResult:
        async with self.engine.connect() as conn:
            result = await conn.exec_driver_sql(statement_text)
            outcome = StatementResult.from_cursor(result)
            await conn.commit()
        return outcome


class SlotExecutor:
    """Executes statements on behalf of one slot.

    There is exactly one executor per slot id and it only ever runs while
    its slot is held, so an executor never has two statements in flight.
    """

    def __init__(self, slot_id: int, runner: StatementRunner):
        self.slot_id = slot_id
        self.runner = runner
        self.executions = 0

    def __repr__(self) -> str:
        return f"SlotExecutor(slot_id={self.slot_id}, executions={self.executions})"

    async def run(self, statement_text: str, timeout: float | None = None) -> Any:
        """Run one statement, optionally bounded by ``timeout`` seconds.

        Without a timeout a statement that never finishes keeps its slot
        forever. On timeout the statement is cancelled and StatementTimeout
        raised; errors from the statement itself are re-raised as they are.
        """
        self.executions += 1
        logger.debug("Slot %d running: %s", self.slot_id, statement_text)
        if timeout is None:
            return await self.runner(statement_text)

        task = asyncio.ensure_future(self.runner(statement_text))
        try:
            done, _ = await asyncio.wait({task}, timeout=timeout)
        except asyncio.CancelledError:
            await _cancel_and_wait(task)
            raise
        if task not in done:
            await _cancel_and_wait(task)
            logger.warning(
                "Slot %d statement timed out after %ss: %s",
                self.slot_id,
                timeout,
                statement_text,
            )
            raise StatementTimeout(statement_text, timeout)
        return task.result()


async def _cancel_and_wait(task: asyncio.Future) -> None:
    """Cancel ``task`` and return only once it has finished unwinding.

    The slot stays busy until then, so a cancellation arriving while we wait
    is re-delivered to the statement and raised after it has stopped.
    """
    task.cancel()
    interrupted = False
    while not task.done():
        try:
            await asyncio.wait({task})
        except asyncio.CancelledError:
            interrupted = True
            task.cancel()
    if not task.cancelled():
        # Mark an error raised while unwinding as retrieved.
        task.exception()
    if interrupted:
        raise asyncio.CancelledError
