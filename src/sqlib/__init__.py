from __future__ import annotations

__version__ = "0.1.0"

_EXPORTS: dict[str, tuple[str, str]] = {
    # Config
    "settings": ("sqlib.config", "settings"),
    "Settings": ("sqlib.config", "Settings"),
    # Errors
    "SqlibError": ("sqlib.errors", "SqlibError"),
    "ResourceExhausted": ("sqlib.errors", "ResourceExhausted"),
    "UsageError": ("sqlib.errors", "UsageError"),
    "StatementTimeout": ("sqlib.errors", "StatementTimeout"),
    "SlotReleaseError": ("sqlib.errors", "SlotReleaseError"),
    "EXCEPTION_DICTIONARY": ("sqlib.errors", "EXCEPTION_DICTIONARY"),
    # DB
    "ExecutionSlotModel": ("sqlib.db", "ExecutionSlotModel"),
    "init_db": ("sqlib.db", "init_db"),
    "get_engine": ("sqlib.db", "get_engine"),
    "dispose_engine": ("sqlib.db", "dispose_engine"),
    # Slots
    "Slot": ("sqlib.slots", "Slot"),
    "SqlSlotTable": ("sqlib.slots", "SqlSlotTable"),
    "InMemorySlotTable": ("sqlib.slots", "InMemorySlotTable"),
    # Execution
    "StatementResult": ("sqlib.execution", "StatementResult"),
    "EngineStatementRunner": ("sqlib.execution", "EngineStatementRunner"),
    # Facility
    "DynamicStatementFacility": ("sqlib.facility", "DynamicStatementFacility"),
    "execute_dynamic": ("sqlib.facility", "execute_dynamic"),
    "get_facility": ("sqlib.facility", "get_facility"),
    "reset_facility": ("sqlib.facility", "reset_facility"),
}

__all__ = ["__version__", *_EXPORTS.keys()]


def __getattr__(name: str):
    if name not in _EXPORTS:
        raise AttributeError(f"module 'sqlib' has no attribute {name!r}")
    module_name, attr_name = _EXPORTS[name]
    module = __import__(module_name, fromlist=[attr_name])
    return getattr(module, attr_name)


def __dir__() -> list[str]:
    return sorted(__all__)
