"""Relational backends driven through SQLAlchemy."""

from abc import abstractmethod
from typing import Any, Dict, Mapping, Optional
from urllib.parse import quote_plus

from sqlalchemy import create_engine, text
from sqlalchemy.engine import Connection, CursorResult, Engine
from sqlalchemy.engine.base import RootTransaction
from sqlalchemy.exc import NotSupportedError, SQLAlchemyError
from sqlalchemy.pool import NullPool
from sqlalchemy.sql.elements import TextClause

from dataaccess.db.base import DAO
from dataaccess.db.results import CursorResultSet
from dataaccess.exceptions import (
    DatabaseConnectionError,
    DatabaseQueryError,
    TransactionError,
    TransactionsNotSupportedError,
)


class SQLAlchemyDAO(DAO):
    """Base class for relational backends.

    SQLAlchemy stands in as the generic driver. Each DAO opens exactly one
    DB-API connection through an engine with ``NullPool``; nothing is
    pooled or shared between DAOs.

    Outside an explicit transaction each statement runs on its own: a
    statement that returns no rows is committed right away, and the
    implicit transaction left behind by a row-returning statement is
    committed before the next statement is prepared.
    """

    def __init__(self, configuration: Mapping[str, Any], logger=None) -> None:
        super().__init__(configuration, logger)
        self._engine: Optional[Engine] = None
        self._connection: Optional[Connection] = None
        self._transaction: Optional[RootTransaction] = None

    @abstractmethod
    def build_connection_string(self) -> str:
        """Build the SQLAlchemy URL for this backend."""
        pass

    @abstractmethod
    def get_driver_name(self) -> str:
        """Get the DB-API driver name for this backend."""
        pass

    def _get_engine_options(self) -> Dict[str, Any]:
        """Get backend-specific engine options."""
        return {}

    def _describe_target(self) -> str:
        """Return the connection target for messages, without credentials."""
        target = self.configuration['server']
        if self.configuration.get('dbname'):
            target = f"{target}/{self.configuration['dbname']}"
        return target

    def _credentials(self) -> str:
        """Return the URL-encoded ``user:password@`` part of the URL."""
        username = self.configuration.get('username')
        if not username:
            return ''
        password = self.configuration.get('password') or ''
        return f"{quote_plus(str(username))}:{quote_plus(str(password))}@"

    @property
    def native_handle(self) -> Optional[Connection]:
        return self._connection

    def connect(self) -> None:
        target = self._describe_target()
        self.logger.debug('Connecting to %s database engine.', self.name)
        try:
            engine_args = {
                'poolclass': NullPool,
                'echo': False,
            }
            engine_args.update(self._get_engine_options())
            self._engine = create_engine(self.build_connection_string(), **engine_args)
            self._connection = self._engine.connect()
        except Exception as e:
            if self._engine is not None:
                self._engine.dispose()
            self._engine = None
            self._connection = None
            error_message = f"{self.name} Connection to {target} failed!"
            self.logger.warning('%s %s', error_message, e)
            raise DatabaseConnectionError(f"{error_message} {e}", self.name) from e
        self.logger.debug('Connected to %s database engine.', self.name)
        self._is_connected = True

    def disconnect(self) -> None:
        if self._transaction is not None:
            try:
                self._transaction.rollback()
            except SQLAlchemyError as e:
                self.logger.warning('Rollback during disconnect failed: %s', e)
        elif self._connection is not None and self._connection.in_transaction():
            # Implicit transaction left open by a row-returning statement
            try:
                self._connection.commit()
            except SQLAlchemyError as e:
                self.logger.warning('Commit during disconnect failed: %s', e)
        self._transaction = None
        self._in_transaction = False
        try:
            if self._connection is not None:
                self._connection.close()
        finally:
            if self._engine is not None:
                self._engine.dispose()
            self._connection = None
            self._engine = None
            self._is_connected = False

    def _finish_implicit_transaction(self) -> None:
        if self._transaction is None and self._connection.in_transaction():
            self._connection.commit()

    def get_statement(self, query_string: str, options: Optional[Mapping[str, Any]] = None) -> CursorResultSet:
        if not self._is_connected:
            self.connect()
        try:
            self._finish_implicit_transaction()
            statement = text(query_string)
        except SQLAlchemyError as e:
            raise DatabaseQueryError(
                f"The query could not be prepared. {e}",
                query=query_string,
                database_type=self.name,
            ) from e
        return CursorResultSet(statement, self, self.logger)

    def _execute(self, statement: TextClause, params: Dict[str, Any]) -> CursorResult:
        """Run a statement on the native connection.

        Called by :class:`CursorResultSet`. Applies the implicit
        transaction rules described on the class.
        """
        try:
            cursor = self._connection.execute(statement, params)
        except SQLAlchemyError:
            if self._transaction is None and self._connection.in_transaction():
                self._connection.rollback()
            raise
        if self._transaction is None and not cursor.returns_rows:
            self._connection.commit()
        return cursor

    def _begin(self) -> None:
        try:
            self._finish_implicit_transaction()
            self._transaction = self._connection.begin()
        except (NotSupportedError, NotImplementedError) as e:
            raise TransactionsNotSupportedError(
                f"Transactions are not supported in this database. {e}", self.name
            ) from e
        except SQLAlchemyError as e:
            raise TransactionError(f"The transaction could not be started. {e}", self.name) from e

    def _commit(self) -> None:
        transaction, self._transaction = self._transaction, None
        try:
            transaction.commit()
        except SQLAlchemyError as e:
            raise TransactionError(f"The transaction could not be committed. {e}", self.name) from e

    def _rollback(self) -> None:
        transaction, self._transaction = self._transaction, None
        try:
            transaction.rollback()
        except SQLAlchemyError as e:
            raise TransactionError(f"The transaction could not be rolled back. {e}", self.name) from e

    def _last_insert_id_query(self, name: Optional[str] = None) -> Optional[str]:
        """Return the backend query for the last generated id, None to use the cursor."""
        return None

    def last_insert_id(self, name: Optional[str] = None) -> Optional[int]:
        if not self._is_connected:
            return None
        query = self._last_insert_id_query(name)
        if query is None:
            last = self._last_result
            return last.lastrowid if isinstance(last, CursorResultSet) else None
        try:
            value = self._connection.execute(text(query)).scalar()
        except SQLAlchemyError as e:
            raise DatabaseQueryError(
                f"Unable to read the last insert id. {e}", query=query, database_type=self.name
            ) from e
        return int(value) if value is not None else None


def offset_fetch_pagination(dao: DAO, page_size: Optional[int], page: Optional[int]) -> str:
    """Pagination for engines using ``OFFSET ... FETCH NEXT``.

    Follows the same rules as :meth:`DAO.generate_pagination` for when a
    snippet is produced. The query must already have an ORDER BY clause.
    """
    if not page_size or page_size == 1:
        return ''
    offset = dao._page_offset(page_size, page)
    return f"OFFSET {offset} ROWS FETCH NEXT {page_size} ROWS ONLY"
