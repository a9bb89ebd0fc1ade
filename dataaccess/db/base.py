"""Base DAO: the connection contract shared by every backend."""

import logging
import re
from abc import ABC, abstractmethod
from typing import Any, Dict, Iterable, List, Mapping, Optional, Tuple

from dataaccess.db.results import ResultSet
from dataaccess.exceptions import (
    DatabaseConnectionError,
    DatabaseQueryError,
    TransactionError,
    TransactionsNotSupportedError,
)

logger = logging.getLogger(__name__)

_NON_WORD = re.compile(r'\W+')


class DAO(ABC):
    """Base class for data access objects.

    A DAO owns one native connection handle. Construction validates the
    configuration but never connects: the handle is opened by
    :meth:`connect`, which :meth:`query` and :meth:`get_statement` call
    lazily. A DAO is not safe for concurrent use; use one instance per
    thread of control.

    Subclasses implement the native parts (:meth:`connect`,
    :meth:`disconnect`, :meth:`get_statement`, :meth:`last_insert_id` and
    the ``_begin``/``_commit``/``_rollback`` hooks) and may override the
    identifier quoting, pagination and configuration rules.
    """

    #: Backend name used in log and error messages.
    name = "database"

    #: Opening and closing identifier quote characters.
    identifier_quotes: Tuple[str, str] = ('`', '`')

    #: Required configuration keys and the label reported when one is missing.
    required_keys: Tuple[Tuple[str, str], ...] = (
        ('server', 'host'),
        ('username', 'username'),
        ('password', 'password'),
    )

    def __init__(self, configuration: Mapping[str, Any], logger: Optional[logging.Logger] = None) -> None:
        """Initialize the DAO.

        Args:
            configuration: Connection settings, keys vary by backend.
            logger: Logger shared with the result sets of this DAO.

        Raises:
            DatabaseConnectionError: If the configuration is incomplete.
        """
        self.logger = logger if logger is not None else logging.getLogger(type(self).__module__)
        self._is_connected = False
        self._in_transaction = False
        self._query_succeeded = False
        self._last_result: Optional[ResultSet] = None
        try:
            self.validate_configuration(configuration)
        except DatabaseConnectionError as e:
            self.logger.error('A problem was found in the configuration. %s', e)
            raise
        self.configuration: Dict[str, Any] = dict(configuration)

    @classmethod
    def escape_column_name(cls, column_name: str) -> str:
        """Wrap a column name in this backend's identifier quotes."""
        opening, closing = cls.identifier_quotes
        return f"{opening}{column_name}{closing}"

    def escape_col_name(self, column_name: str) -> str:
        """Instance form of :meth:`escape_column_name`, easier to mock."""
        return self.escape_column_name(column_name)

    @property
    def is_connected(self) -> bool:
        """True once the native handle is open."""
        return self._is_connected

    @property
    def in_transaction(self) -> bool:
        """True while an explicit transaction is active."""
        return self._in_transaction

    def get_driver_name(self) -> Optional[str]:
        """Get the native driver name, None when there is no driver."""
        return None

    @property
    def native_handle(self) -> Any:
        """The underlying driver connection, None until connected."""
        return None

    @abstractmethod
    def connect(self) -> None:
        """Open the native connection.

        Raises:
            DatabaseConnectionError: If the connection can not be established.
        """
        pass

    @abstractmethod
    def disconnect(self) -> None:
        """Roll back any open transaction and close the native connection.

        Safe to call when never connected.
        """
        pass

    def close(self) -> None:
        """Release the connection, logging instead of raising on failure."""
        try:
            self.disconnect()
        except Exception as e:
            self.logger.warning('Failed to release %s connection: %s', self.name, e)

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()

    def __del__(self):
        # Construction may have failed before the state was set
        if getattr(self, '_is_connected', False):
            self.close()

    def query(
        self,
        query_string: str,
        params: Optional[Mapping[str, Any]] = None,
        options: Optional[Mapping[str, Any]] = None,
    ) -> ResultSet:
        """Prepare and run a query.

        Args:
            query_string: The query, using ``:name`` placeholders.
            params: Bind parameters keyed ``name`` or ``:name``.
            options: Additional arguments. ``options['params']`` is accepted
                as an alternate source of bind parameters.

        Returns:
            The executed result set.

        Raises:
            DatabaseConnectionError: If the lazy connect fails.
            DatabaseQueryError: If the query can not be prepared or executed.
        """
        self._query_succeeded = False
        if not self._is_connected:
            self.connect()

        options = dict(options or {})
        query_params = dict(options.get('params') or {})
        query_params.update(params or {})

        try:
            result = self.get_statement(query_string, options)
            result.execute(query_params)
        except Exception as e:
            raise DatabaseQueryError(
                f"{e} || QUERY: {query_string} || PARAMS: "
                + ';'.join(str(value) for value in query_params.values()),
                query=query_string,
                params=query_params,
                status_code=getattr(e, 'status_code', None),
                database_type=self.name,
            ) from e

        self._last_result = result
        self._query_succeeded = result.query_succeeded()
        return result

    @abstractmethod
    def get_statement(self, query_string: str, options: Optional[Mapping[str, Any]] = None) -> ResultSet:
        """Prepare a statement without running it.

        Raises:
            DatabaseQueryError: If the statement can not be prepared.
        """
        pass

    def query_succeeded(self) -> bool:
        """Return True if the most recent query worked."""
        return self._query_succeeded

    def to_array(self) -> Optional[List[Dict[str, Any]]]:
        """Return the rows of the most recent query, None if there is none."""
        if self._last_result is None:
            return None
        return self._last_result.to_array()

    def get_result(self) -> Optional[ResultSet]:
        """Return the result set of the most recent query."""
        return self._last_result

    @abstractmethod
    def last_insert_id(self, name: Optional[str] = None) -> Optional[int]:
        """Return the id generated by the most recent insert.

        The value is backend specific; None means the backend can't say.
        """
        pass

    def begin_transaction(self) -> bool:
        """Begin a transaction.

        Raises:
            TransactionError: If a transaction is already active.
            TransactionsNotSupportedError: If the backend has no transactions.
        """
        if self._in_transaction:
            raise TransactionError("A transaction has already been started.", self.name)
        if not self._is_connected:
            self.connect()
        self._begin()
        self._in_transaction = True
        return True

    def commit_transaction(self) -> bool:
        """Commit the active transaction.

        Raises:
            TransactionError: If there is no active transaction.
        """
        if not self._in_transaction:
            raise TransactionError("There is no active transaction to commit.", self.name)
        try:
            self._commit()
        finally:
            self._in_transaction = False
        return True

    def rollback_transaction(self) -> bool:
        """Roll back the active transaction.

        Raises:
            TransactionError: If there is no active transaction.
        """
        if not self._in_transaction:
            raise TransactionError("There is no active transaction to roll back.", self.name)
        try:
            self._rollback()
        finally:
            self._in_transaction = False
        return True

    def _begin(self) -> None:
        raise TransactionsNotSupportedError(f"Transactions are not supported in {self.name} connections", self.name)

    def _commit(self) -> None:
        raise TransactionsNotSupportedError(f"Transactions are not supported in {self.name} connections", self.name)

    def _rollback(self) -> None:
        raise TransactionsNotSupportedError(f"Transactions are not supported in {self.name} connections", self.name)

    def make_parameter_label(self, parameter_name: str) -> str:
        """Turn a parameter name into a ``:name`` placeholder label."""
        return ':' + parameter_name.lstrip(':')

    def generate_where(self, clauses: Optional[Iterable[str]], prepend: str = '') -> str:
        """Combine where clause snippets with AND.

        Args:
            clauses: Clause snippets; empty strings are dropped.
            prepend: Text such as 'WHERE' or 'AND' placed before the clauses.

        Returns:
            The combined clause, or an empty string if there is nothing to combine.
        """
        if not clauses:
            return ''
        combined = ' AND '.join(clause for clause in clauses if clause != '')
        if combined == '':
            return ''
        return f"{prepend} {combined}"

    def generate_parameterized_components(self, data: Mapping[str, Any]) -> Dict[str, Any]:
        """Split a column to value mapping into parameterized query parts.

        Placeholders are the column names with every run of non-word
        characters replaced by ``_``.

        Returns:
            'fields' (escaped column list), 'values' (placeholder list),
            'update' (``col = :placeholder`` list), 'params' (placeholder to
            value mapping) and 'debug' (a readable dump of the input).
        """
        fields = []
        values = []
        update = []
        params: Dict[str, Any] = {}
        debug = []
        for key, item in data.items():
            column = self.escape_col_name(key)
            placeholder = ':' + _NON_WORD.sub('_', key)
            fields.append(column)
            values.append(placeholder)
            params[placeholder] = item
            update.append(f"{column} = {placeholder}")
            debug.append(f"{key}=|{item}|({type(item).__name__})")
        return {
            'fields': ','.join(fields),
            'values': ','.join(values),
            'update': ', '.join(update),
            'params': params,
            'debug': '::'.join(debug),
        }

    def generate_pagination(self, page_size: Optional[int] = None, page: Optional[int] = None) -> str:
        """Return a LIMIT snippet for one page of results.

        No snippet is returned for a page size of None, 0 or 1. The offset is
        left out for page None, 0 or 1.
        """
        if not page_size or page_size == 1:
            return ''
        paging = 'LIMIT '
        if page and page != 1:
            paging += f"{self._page_offset(page_size, page)}, "
        return f"{paging}{page_size}"

    @staticmethod
    def _page_offset(page_size: int, page: Optional[int]) -> int:
        if not page or page == 1:
            return 0
        return (page * page_size) - page_size

    def generate_sort(self, columns: Mapping[str, str], prepend: Optional[str] = None) -> str:
        """Return an ORDER BY snippet from a column to direction mapping."""
        if not columns:
            return ''
        if prepend is None:
            prepend = 'ORDER BY'
        snippets = [f"{name} {direction}" for name, direction in columns.items()]
        return f"{prepend} {','.join(snippets)}"

    def validate_configuration(self, config: Mapping[str, Any]) -> bool:
        """Check the configuration for the keys this backend requires.

        Raises:
            DatabaseConnectionError: Naming the first missing key.
        """
        if not isinstance(config, Mapping):
            raise DatabaseConnectionError('The configuration is not a mapping.', self.name)
        for key, label in self.required_keys:
            if config.get(key) is None:
                raise DatabaseConnectionError(f"The configuration does not contain a {label}.", self.name)
        return True
