"""Exceptions raised by the dynamic statement facility.

Every error carries a numeric code in the 32000 range and the custom SQLSTATE
45000, so callers can match on ``code`` regardless of the Python type.
Errors raised by the statements themselves are never wrapped in these types.
"""

from __future__ import annotations

SQLSTATE_CUSTOM_EXCEPTION = "45000"

# code -> (sqlstate, message)
EXCEPTION_DICTIONARY: dict[int, tuple[str, str]] = {
    32001: (SQLSTATE_CUSTOM_EXCEPTION, "No namespace available for prepared statement"),
    32003: (SQLSTATE_CUSTOM_EXCEPTION, "Invalid argument"),
    32004: (SQLSTATE_CUSTOM_EXCEPTION, "Statement exceeded its timeout"),
    32005: (SQLSTATE_CUSTOM_EXCEPTION, "Slot lease already released"),
}


class SqlibError(Exception):
    """Base class for facility errors."""

    code: int = 0
    sqlstate: str = SQLSTATE_CUSTOM_EXCEPTION

    def __init__(self, message: str | None = None):
        if message is None:
            message = EXCEPTION_DICTIONARY.get(self.code, ("", self.__class__.__name__))[1]
        super().__init__(message)
        self.message = message

    def __str__(self) -> str:
        return f"[{self.code}] {self.message}"


class ResourceExhausted(SqlibError):
    """No free slot was available when the statement was submitted."""

    code = 32001

    def __init__(self, statement_text: str):
        base = EXCEPTION_DICTIONARY[self.code][1]
        super().__init__(f"{base}: {statement_text}")
        self.statement_text = statement_text


class UsageError(SqlibError):
    code = 32003


class StatementTimeout(SqlibError):
    """The statement ran longer than the timeout it was given."""

    code = 32004

    def __init__(self, statement_text: str, timeout: float):
        base = EXCEPTION_DICTIONARY[self.code][1]
        super().__init__(f"{base} ({timeout:g}s): {statement_text}")
        self.statement_text = statement_text
        self.timeout = timeout


class SlotReleaseError(SqlibError):
    code = 32005

    def __init__(self, slot_id: int):
        base = EXCEPTION_DICTIONARY[self.code][1]
        super().__init__(f"{base}: slot {slot_id}")
        self.slot_id = slot_id


def describe_error(code: int) -> str:
    """Return the dictionary message for ``code``."""
    if code not in EXCEPTION_DICTIONARY:
        raise KeyError(
            f"Unknown error code {code} - known codes: {sorted(EXCEPTION_DICTIONARY)}"
        )
    return EXCEPTION_DICTIONARY[code][1]
