"""Tests for execution status classification."""

from unittest.mock import Mock

import pytest
from sqlalchemy.exc import DBAPIError

from dataaccess.db.status import (
    ExecutionStatus,
    classify_status,
    is_sqlstate,
    native_status_code,
    render_debug_query,
)


class TestClassifyStatus:
    """Classification order: unknown, success, warning, error."""

    @pytest.mark.parametrize("code, expected", [
        (None, ExecutionStatus.UNKNOWN),
        ("00000", ExecutionStatus.SUCCESS),
        ("00001", ExecutionStatus.WARNING),
        ("01000", ExecutionStatus.WARNING),
        ("01004", ExecutionStatus.WARNING),
        ("23000", ExecutionStatus.ERROR),
        ("42S02", ExecutionStatus.ERROR),
        ("HY000", ExecutionStatus.ERROR),
        ("1146", ExecutionStatus.ERROR),
        ("SQLITE_ERROR", ExecutionStatus.ERROR),
    ])
    def test_classification(self, code, expected):
        assert classify_status(code) is expected

    def test_success_is_not_reported_as_warning(self):
        # 00000 also matches the warning class prefix
        assert classify_status("00000") is not ExecutionStatus.WARNING

    def test_sqlstate_shape(self):
        assert is_sqlstate("01000")
        assert is_sqlstate("42S02")
        assert not is_sqlstate("1146")
        assert not is_sqlstate(None)


class DriverError(Exception):
    pass


class TestNativeStatusCode:
    """Extracting codes from driver exceptions."""

    def test_sqlstate_attribute_through_wrapper(self):
        orig = DriverError("duplicate key")
        orig.sqlstate = "23505"
        wrapped = DBAPIError("INSERT INTO t VALUES (1)", {}, orig)

        assert native_status_code(wrapped) == "23505"

    def test_pyodbc_style_arguments(self):
        error = DriverError("42S02", "[42S02] Invalid object name 'missing'.")
        assert native_status_code(error) == "42S02"

    def test_sqlite_error_name(self):
        error = DriverError("no such table: missing")
        error.sqlite_errorname = "SQLITE_ERROR"
        assert native_status_code(error) == "SQLITE_ERROR"

    def test_vendor_error_number(self):
        error = DriverError(1146, "Table 'app.missing' doesn't exist")
        assert native_status_code(error) == "1146"

    def test_oracle_error_object(self):
        details = Mock(full_code="ORA-00942", code=942)
        error = DriverError(details)
        assert native_status_code(DBAPIError("SELECT * FROM missing", {}, error)) == "ORA-00942"
        assert classify_status(native_status_code(error)) is ExecutionStatus.ERROR

    def test_nothing_available(self):
        assert native_status_code(DriverError("boom")) is None
        assert native_status_code(DriverError()) is None
        assert native_status_code(DriverError(True)) is None


class TestRenderDebugQuery:
    """Literal rendering of queries for logs."""

    def test_values_are_quoted(self):
        rendered = render_debug_query(
            "SELECT * FROM people WHERE name = :name AND age > :age",
            {':name': "O'Hara", 'age': 30},
        )
        assert rendered == "SELECT * FROM people WHERE name = 'O''Hara' AND age > '30'"

    def test_unknown_placeholders_are_kept(self):
        assert render_debug_query("SELECT :a, :b", {'a': 1}) == "SELECT '1', :b"

    def test_no_params(self):
        assert render_debug_query("SELECT :a") == "SELECT :a"
