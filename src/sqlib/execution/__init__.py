from sqlib.execution.dispatcher import ContextDispatcher
from sqlib.execution.executor import (
    EngineStatementRunner,
    SlotExecutor,
    StatementResult,
    StatementRunner,
)

__all__ = [
    "ContextDispatcher",
    "EngineStatementRunner",
    "SlotExecutor",
    "StatementResult",
    "StatementRunner",
]
