"""In-memory DAO for unit tests."""

from typing import Any, Dict, List, Mapping, Optional

from dataaccess.db.base import DAO
from dataaccess.db.results import ArrayResultSet
from dataaccess.exceptions import DatabaseConnectionError, DatabaseQueryError

DEFAULT_LAST_INSERT_ID = 30


class DummyDAO(DAO):
    """Stand-in for a real connection. Intended for unit testing ONLY.

    Canned rows come from the ``testdata`` setting, :meth:`set_test_data`
    or ``options['testdata']`` on a query. Every query returns them.

    To simulate a connection failure call ``set_fail_connection()`` before
    the operation; to simulate a query failure call ``set_fail_query()``.
    """

    name = "Dummy"
    identifier_quotes = ('[', ']')
    required_keys = ()

    def __init__(self, configuration: Optional[Mapping[str, Any]] = None, logger=None) -> None:
        super().__init__(configuration or {}, logger)
        self.test_data: Optional[List[Dict[str, Any]]] = self.configuration.get('testdata')
        self.query_text: Optional[str] = None
        self.params: Optional[Dict[str, Any]] = None
        self._fail_connection = False
        self._fail_query = False
        self._last_insert_id = self.configuration.get('last_insert_id', DEFAULT_LAST_INSERT_ID)

    def set_fail_connection(self, fail: bool = True) -> None:
        """Make the next connect attempt fail."""
        self._is_connected = False
        self._fail_connection = fail

    def set_fail_query(self, fail: bool = True) -> None:
        """Make the next query fail."""
        self._query_succeeded = False
        self._fail_query = fail

    def set_test_data(self, test_data: Optional[List[Dict[str, Any]]]) -> None:
        """Replace the canned rows."""
        self.test_data = test_data

    def connect(self) -> None:
        if self._fail_connection:
            raise DatabaseConnectionError('Unable to connect to the database!', self.name)
        self._is_connected = True

    def disconnect(self) -> None:
        self._in_transaction = False
        self._is_connected = False

    def query(self, query_string, params=None, options=None):
        options = dict(options or {})
        self.query_text = query_string
        self.params = {**(options.get('params') or {}), **(params or {})}
        if 'testdata' in options:
            self.test_data = options['testdata']
        result = super().query(query_string, params, options)
        self._query_succeeded = self.test_data is not None
        return result

    def get_statement(self, query_string: str, options: Optional[Mapping[str, Any]] = None) -> ArrayResultSet:
        if self._fail_query:
            raise DatabaseQueryError('Unable to complete the query', query=query_string, database_type=self.name)
        return ArrayResultSet(self.test_data, self, self.logger)

    def to_array(self) -> Optional[List[Dict[str, Any]]]:
        if not self._query_succeeded:
            return None
        return super().to_array()

    def last_insert_id(self, name: Optional[str] = None) -> Optional[int]:
        return self._last_insert_id

    def _begin(self) -> None:
        pass

    def _commit(self) -> None:
        pass

    def _rollback(self) -> None:
        pass
