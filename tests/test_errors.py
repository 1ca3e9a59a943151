"""Tests for the sqlib error types and the exception dictionary."""

import pytest

from sqlib.errors import (
    EXCEPTION_DICTIONARY,
    ResourceExhausted,
    SlotReleaseError,
    SqlibError,
    StatementTimeout,
    UsageError,
    describe_error,
)


class TestErrorCodes:
    def test_resource_exhausted_embeds_statement(self):
        err = ResourceExhausted("SELECT 42")

        assert err.code == 32001
        assert err.sqlstate == "45000"
        assert err.statement_text == "SELECT 42"
        assert "No namespace available for prepared statement" in str(err)
        assert str(err).endswith("SELECT 42")

    def test_usage_error_uses_dictionary_message_by_default(self):
        err = UsageError()

        assert err.code == 32003
        assert err.message == "Invalid argument"
        assert str(err) == "[32003] Invalid argument"

    def test_statement_timeout_reports_timeout(self):
        err = StatementTimeout("SELECT SLEEP(10)", 1.5)

        assert err.code == 32004
        assert err.timeout == 1.5
        assert "1.5s" in str(err)

    def test_slot_release_error_names_slot(self):
        err = SlotReleaseError(3)

        assert err.code == 32005
        assert err.slot_id == 3
        assert "slot 3" in str(err)

    def test_all_facility_errors_share_a_base(self):
        for err in (
            ResourceExhausted("x"),
            UsageError(),
            StatementTimeout("x", 1),
            SlotReleaseError(0),
        ):
            assert isinstance(err, SqlibError)

    def test_exhaustion_is_not_a_usage_error(self):
        assert not isinstance(ResourceExhausted("x"), UsageError)


class TestExceptionDictionary:
    def test_every_error_type_has_an_entry(self):
        for error_type in (ResourceExhausted, UsageError, StatementTimeout, SlotReleaseError):
            assert error_type.code in EXCEPTION_DICTIONARY

    def test_describe_error(self):
        assert describe_error(32001) == "No namespace available for prepared statement"

    def test_describe_unknown_error(self):
        with pytest.raises(KeyError):
            describe_error(1)
