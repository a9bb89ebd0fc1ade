"""Classification of native execution status codes.

Drivers report the outcome of a statement as a five character SQLSTATE.
``00000`` is a clean success, the ``00``/``01`` classes are informational
or warnings (e.g. string truncation) and anything else is an error.
"""

import re
from enum import Enum
from typing import Any, Mapping, Optional

SUCCESS_CODE = "00000"
GENERIC_WARNING_CODE = "01000"
INVALID_PARAMETER_CODE = "HY093"

# The exact success pattern must be tested before the warning class, which
# would otherwise also match 00000.
_SUCCESS_PATTERN = re.compile(r'^00000$')
_WARNING_PATTERN = re.compile(r'^(00|01)')
_SQLSTATE_PATTERN = re.compile(r'^[0-9A-Z]{5}$')
_PLACEHOLDER_PATTERN = re.compile(r':(\w+)')


class ExecutionStatus(str, Enum):
    """Outcome of executing a statement."""
    SUCCESS = "success"
    WARNING = "warning"
    ERROR = "error"
    UNKNOWN = "unknown"


def classify_status(code: Optional[str]) -> ExecutionStatus:
    """Classify a native status code.

    Args:
        code: SQLSTATE or vendor code, None when the driver reported nothing.

    Returns:
        The execution status for the code.
    """
    if code is None:
        return ExecutionStatus.UNKNOWN
    code = str(code)
    if _SUCCESS_PATTERN.match(code):
        return ExecutionStatus.SUCCESS
    if _WARNING_PATTERN.match(code):
        return ExecutionStatus.WARNING
    return ExecutionStatus.ERROR


def is_sqlstate(code: Optional[str]) -> bool:
    """Return True if the code has the five character SQLSTATE shape."""
    return code is not None and bool(_SQLSTATE_PATTERN.match(str(code)))


def native_status_code(error: BaseException) -> Optional[str]:
    """Extract the native status code from a driver error or warning.

    SQLAlchemy wraps DB-API exceptions, so the driver object is looked up
    on ``orig`` first.
    """
    native = getattr(error, 'orig', None) or error

    for attribute in ('sqlstate', 'pgcode'):
        value = getattr(native, attribute, None)
        if value:
            return str(value)

    args = getattr(native, 'args', ()) or ()
    first = args[0] if args else None

    # pyodbc puts the SQLSTATE first
    if isinstance(first, str) and _SQLSTATE_PATTERN.match(first):
        return first

    # python-oracledb wraps the details in an error object, e.g. ORA-00942
    full_code = getattr(first, 'full_code', None)
    if full_code:
        return str(full_code)

    error_name = getattr(native, 'sqlite_errorname', None)
    if error_name:
        return str(error_name)

    # PyMySQL and friends report a vendor error number
    if isinstance(first, int) and not isinstance(first, bool):
        return str(first)

    return None


def render_debug_query(query: str, params: Optional[Mapping[str, Any]] = None) -> str:
    """Render a query with literal values in place of its placeholders.

    For log output only. The result is never sent to the database.
    """
    if not params:
        return query

    values = {str(name).lstrip(':'): value for name, value in params.items()}

    def replace(match):
        name = match.group(1)
        if name not in values:
            return match.group(0)
        return "'" + str(values[name]).replace("'", "''") + "'"

    return _PLACEHOLDER_PATTERN.sub(replace, query)
