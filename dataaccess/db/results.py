"""Result sets: uniform row access over every backend's native result."""

import logging
import warnings
from abc import ABC, abstractmethod
from collections import deque
from typing import TYPE_CHECKING, Any, Deque, Dict, Iterator, List, Optional

import pandas as pd
from sqlalchemy.engine import CursorResult, MappingResult
from sqlalchemy.exc import DBAPIError, SAWarning, SQLAlchemyError
from sqlalchemy.sql.elements import TextClause

from dataaccess.db.status import (
    GENERIC_WARNING_CODE,
    INVALID_PARAMETER_CODE,
    SUCCESS_CODE,
    ExecutionStatus,
    classify_status,
    is_sqlstate,
    native_status_code,
    render_debug_query,
)
from dataaccess.exceptions import DatabaseQueryError

if TYPE_CHECKING:
    from dataaccess.db.base import DAO

logger = logging.getLogger(__name__)

Row = Dict[str, Any]

# Warning categories raised by Python or SQLAlchemy rather than the driver
_NON_DRIVER_WARNINGS = (SAWarning, DeprecationWarning, PendingDeprecationWarning, ResourceWarning)


class ResultSet(ABC):
    """Base class for result sets.

    A result set is created by :meth:`DAO.get_statement`, run with
    :meth:`execute` and then read with :meth:`fetch`, :meth:`current`,
    :meth:`valid` or :meth:`to_array`. Do not mix :meth:`fetch` based
    iteration with :meth:`current` within one pass over the rows.

    Driver backed result sets borrow the owning DAO's connection and must
    not be used after that DAO is disconnected.
    """

    def __init__(self, result: Any, dao: "DAO", logger: Optional[logging.Logger] = None) -> None:
        """Initialize the result set.

        Args:
            result: The native result handle or row list.
            dao: The connection that produced this result set.
            logger: Logger to use, defaults to the module logger.
        """
        self.result = result
        self.dao = dao
        self.logger = logger if logger is not None else logging.getLogger(__name__)
        self.pointer = 0
        self._query_succeeded = False

    @abstractmethod
    def execute(self, params: Optional[Dict[str, Any]] = None) -> "ResultSet":
        """Bind the parameters and run the statement.

        Returns:
            This result set.

        Raises:
            DatabaseQueryError: If the statement fails.
        """
        pass

    @abstractmethod
    def current(self) -> Optional[Row]:
        """Return the row at the cursor without advancing, None if there is none."""
        pass

    @abstractmethod
    def fetch(self) -> Optional[Row]:
        """Return the row at the cursor and advance, None once exhausted."""
        pass

    @abstractmethod
    def valid(self) -> bool:
        """Return True if a row exists at the cursor."""
        pass

    @abstractmethod
    def to_array(self) -> List[Row]:
        """Return every remaining row.

        This holds the whole result in memory. Prefer :meth:`fetch` for
        large results.
        """
        pass

    @abstractmethod
    def num_rows(self) -> Optional[int]:
        """Return the number of affected rows, or None if the backend can't tell."""
        pass

    @property
    def columns(self) -> List[str]:
        """Column names of the result, in driver order."""
        row = self.current()
        return list(row.keys()) if row else []

    def query_succeeded(self) -> bool:
        """Return True if the last execute ran without an error."""
        return self._query_succeeded

    def to_dataframe(self) -> pd.DataFrame:
        """Return the remaining rows as a DataFrame."""
        columns = self.columns
        rows = self.to_array()
        if not rows:
            return pd.DataFrame(columns=columns)
        return pd.DataFrame(rows, columns=columns or None)

    def __iter__(self) -> Iterator[Row]:
        while True:
            row = self.fetch()
            if row is None:
                return
            yield row


class CursorResultSet(ResultSet):
    """Result set over a SQLAlchemy cursor.

    Rows are pulled from the driver one at a time into a look-ahead buffer
    so :meth:`current` and :meth:`valid` can peek without consuming.
    """

    def __init__(self, statement: TextClause, dao: "DAO", logger: Optional[logging.Logger] = None) -> None:
        super().__init__(statement, dao, logger)
        self.statement = statement
        self.cursor: Optional[CursorResult] = None
        self._rows: Optional[MappingResult] = None
        self._buffer: Deque[Row] = deque()

    @property
    def query_string(self) -> str:
        return self.statement.text

    def execute(self, params: Optional[Dict[str, Any]] = None) -> "CursorResultSet":
        params = dict(params or {})
        self._reset()

        query = self.query_string
        test_query = render_debug_query(query, params)
        param_list = '|'.join(str(value) for value in params.values())
        bind = {str(name).lstrip(':'): value for name, value in params.items()}

        self.logger.info('DB PREPARE: Preparing query.')
        self.logger.info('DB QUERY: %s', query)

        # text() silently ignores values that match no placeholder
        unknown = [name for name in bind if name not in self.statement._bindparams]
        if unknown:
            message = f"Invalid parameter number: {', '.join(unknown)} not defined in the query"
            self.logger.info('PARAMS: %s', param_list)
            self.logger.error('DB ERROR: %s -- %s', INVALID_PARAMETER_CODE, message)
            self.logger.debug('Test Query: %s', test_query)
            raise DatabaseQueryError(message, query=query, params=params, status_code=INVALID_PARAMETER_CODE)

        with warnings.catch_warnings(record=True) as caught:
            warnings.simplefilter('always')
            try:
                cursor = self.dao._execute(self.statement, bind)
            except DBAPIError as exc:
                code = native_status_code(exc)
                message = str(exc.orig) if exc.orig is not None else str(exc)
                self.logger.info('PARAMS: %s', param_list)
                if classify_status(code) is ExecutionStatus.UNKNOWN:
                    self.logger.error('DB ERROR: The query could not be executed - unknown error.')
                else:
                    self.logger.error('DB ERROR: %s -- %s', code, message)
                self.logger.debug('Test Query: %s', test_query)
                raise DatabaseQueryError(message, query=query, params=params, status_code=code) from exc
            except SQLAlchemyError as exc:
                self.logger.info('PARAMS: %s', param_list)
                self.logger.error('DB ERROR: %s', exc)
                self.logger.debug('Test Query: %s', test_query)
                raise DatabaseQueryError(str(exc), query=query, params=params) from exc

        code, message = self._collect_warnings(caught)
        status = classify_status(code)

        if status is ExecutionStatus.SUCCESS:
            self.logger.debug('DB Success: %s', param_list)
        elif status is ExecutionStatus.WARNING:
            self.logger.info('PARAMS: %s', param_list)
            self.logger.warning('DB WARN: %s -- %s', code, message)
            self.logger.debug('Test Query: %s', test_query)
        else:
            self.logger.info('PARAMS: %s', param_list)
            self.logger.error('DB ERROR: %s -- %s', code, message)
            self.logger.debug('Test Query: %s', test_query)
            cursor.close()
            raise DatabaseQueryError(message, query=query, params=params, status_code=code)

        self.cursor = cursor
        self.result = cursor
        if cursor.returns_rows:
            self._rows = cursor.mappings()
        self._query_succeeded = True
        return self

    def _reset(self) -> None:
        if self.cursor is not None:
            self.cursor.close()
        self.cursor = None
        self._rows = None
        self._buffer.clear()
        self.pointer = 0
        self._query_succeeded = False

    @staticmethod
    def _collect_warnings(caught: List[warnings.WarningMessage]):
        """Return the status code and message from warnings emitted while executing.

        Warnings that did not come from the driver are re-emitted.
        """
        code, message = SUCCESS_CODE, ''
        for item in caught:
            if issubclass(item.category, _NON_DRIVER_WARNINGS):
                warnings.warn_explicit(item.message, item.category, item.filename, item.lineno)
                continue
            if code == SUCCESS_CODE:
                native = native_status_code(item.message)
                code = native if is_sqlstate(native) else GENERIC_WARNING_CODE
                message = str(item.message)
        return code, message

    def _peek(self) -> Optional[Row]:
        if not self._buffer and self._rows is not None:
            row = self._rows.fetchone()
            if row is None:
                self._rows = None
            else:
                self._buffer.append(dict(row))
        return self._buffer[0] if self._buffer else None

    def current(self) -> Optional[Row]:
        return self._peek()

    def fetch(self) -> Optional[Row]:
        row = self._peek()
        if row is not None:
            self._buffer.popleft()
            self.pointer += 1
        return row

    def valid(self) -> bool:
        return self._peek() is not None

    def to_array(self) -> List[Row]:
        rows = list(self._buffer)
        self._buffer.clear()
        if self._rows is not None:
            rows.extend(dict(row) for row in self._rows.fetchall())
            self._rows = None
        self.pointer += len(rows)
        return rows

    @property
    def columns(self) -> List[str]:
        if self.cursor is None or not self.cursor.returns_rows:
            return []
        return list(self.cursor.keys())

    def num_rows(self) -> Optional[int]:
        """Return the affected row count of a non-row-returning statement.

        Row counts for SELECT statements are driver dependent and not
        reported; None is returned for them.
        """
        if self.cursor is None or self.cursor.returns_rows:
            return None
        count = self.cursor.rowcount
        return count if count >= 0 else None

    @property
    def lastrowid(self) -> Optional[int]:
        """The driver's last row id for this statement, if it reports one."""
        if self.cursor is None:
            return None
        try:
            return self.cursor.lastrowid or None
        except SQLAlchemyError:
            return None


class ArrayResultSet(ResultSet):
    """Result set over rows that are already materialized in a list.

    Used by the test double and the directory backend.
    """

    def __init__(
        self,
        rows: Optional[List[Row]],
        dao: "DAO",
        logger: Optional[logging.Logger] = None,
    ) -> None:
        super().__init__(rows if rows is not None else [], dao, logger)

    def execute(self, params: Optional[Dict[str, Any]] = None) -> "ArrayResultSet":
        # Nothing to re-run
        self.pointer = 0
        self._query_succeeded = True
        return self

    def current(self) -> Optional[Row]:
        if self.pointer < len(self.result):
            return self.result[self.pointer]
        return None

    def fetch(self) -> Optional[Row]:
        row = self.current()
        if row is not None:
            self.pointer += 1
        return row

    def valid(self) -> bool:
        return self.pointer < len(self.result)

    def to_array(self) -> List[Row]:
        """Return the rows from the cursor onward without consuming them."""
        return list(self.result[self.pointer:])

    def num_rows(self) -> int:
        return len(self.result)


class DirectoryResultSet(ArrayResultSet):
    """Result set for a directory search.

    The query string is a search filter; executing it runs the search and
    materializes the entries.
    """

    def __init__(
        self,
        search_filter: str,
        dao: "DAO",
        attributes: Optional[Any] = None,
        logger: Optional[logging.Logger] = None,
    ) -> None:
        super().__init__([], dao, logger)
        self.search_filter = search_filter
        self.attributes = attributes

    def execute(self, params: Optional[Dict[str, Any]] = None) -> "DirectoryResultSet":
        self._query_succeeded = False
        self.result = self.dao._search(self.search_filter, params or {}, self.attributes)
        self.pointer = 0
        self._query_succeeded = True
        return self
