"""LDAP directory backend."""

import re
from typing import Any, Dict, List, Mapping, Optional

from ldap3 import ALL_ATTRIBUTES, NONE, SUBTREE, Connection, Server
from ldap3.core.exceptions import LDAPException
from ldap3.utils.conv import escape_filter_chars

from dataaccess.db.base import DAO
from dataaccess.db.results import DirectoryResultSet
from dataaccess.exceptions import (
    DatabaseConnectionError,
    DatabaseQueryError,
    TransactionsNotSupportedError,
)

INVALID_CREDENTIALS = 49

_PLACEHOLDER = re.compile(r':(\w+)')


class LDAPDAO(DAO):
    """Directory lookups over LDAP, plus user authentication.

    Queries are search filters run under ``base_dn``. Bind parameters
    replace ``:name`` placeholders in the filter after filter escaping.

    :meth:`authenticate_user` rebinds the shared handle as the user being
    checked. Call :meth:`bind_to_server` afterwards before running queries
    that need the service account.
    """

    name = "LDAP"
    identifier_quotes = ('', '')
    required_keys = (
        ('server', 'server'),
        ('port', 'port'),
    )

    def __init__(self, configuration: Mapping[str, Any], logger=None) -> None:
        super().__init__(configuration, logger)
        self._server: Optional[Server] = None
        self._handle: Optional[Connection] = None

    @property
    def native_handle(self) -> Optional[Connection]:
        return self._handle

    def get_driver_name(self) -> str:
        """Get the client library name for LDAP."""
        return "ldap3"

    def get_handle(self) -> Optional[Connection]:
        """Return the ldap3 connection."""
        return self._handle

    def validate_configuration(self, config: Mapping[str, Any]) -> bool:
        """Check that the server and port are configured.

        Raises:
            DatabaseConnectionError: Listing every missing key.
        """
        if not isinstance(config, Mapping):
            raise DatabaseConnectionError('Could not load LDAP configuration settings.', self.name)
        missing = [key for key, _ in self.required_keys if config.get(key) is None]
        if missing:
            raise DatabaseConnectionError('LDAP configuration missing ' + ', '.join(missing), self.name)
        return True

    def connect(self) -> None:
        self.logger.info('Connecting to LDAP')
        try:
            self._server = Server(
                self.configuration['server'],
                port=int(self.configuration['port']),
                use_ssl=bool(self.configuration.get('use_ssl', False)),
                get_info=NONE,
            )
            handle = Connection(self._server, version=3, auto_referrals=False)
            handle.open()
        except LDAPException as e:
            self.logger.warning('LDAP connection to %s failed: %s', self.configuration['server'], e)
            raise DatabaseConnectionError('Unable to connect to LDAP', self.name) from e
        self._handle = handle
        self._is_connected = True
        self.logger.info('Connected to LDAP')

    def disconnect(self) -> None:
        handle, self._handle = self._handle, None
        self._is_connected = False
        if handle is not None:
            try:
                handle.unbind()
            except LDAPException as e:
                self.logger.warning('LDAP unbind failed: %s', e)

    def begin_transaction(self) -> bool:
        raise TransactionsNotSupportedError("Transactions are not supported in LDAP connections", self.name)

    def rollback_transaction(self) -> bool:
        raise TransactionsNotSupportedError("Transactions are not supported in LDAP connections", self.name)

    def commit_transaction(self) -> bool:
        raise TransactionsNotSupportedError("Transactions are not supported in LDAP connections", self.name)

    def get_statement(self, query_string: str, options: Optional[Mapping[str, Any]] = None) -> DirectoryResultSet:
        if not self._is_connected:
            self.connect()
        attributes = (options or {}).get('attributes')
        return DirectoryResultSet(query_string, self, attributes, self.logger)

    def _search(self, search_filter: str, params: Mapping[str, Any], attributes=None) -> List[Dict[str, Any]]:
        """Run a subtree search and return the entries as rows.

        Called by :class:`DirectoryResultSet`.
        """
        search_filter = self._bind_filter(search_filter, params)
        self.logger.info('LDAP Query: %s', search_filter)
        try:
            self._handle.search(
                self.configuration.get('base_dn', ''),
                search_filter,
                search_scope=SUBTREE,
                attributes=attributes or ALL_ATTRIBUTES,
            )
        except LDAPException as e:
            self.logger.info('LDAP search failed: %s', e)
            raise DatabaseQueryError('LDAP Search failed.', query=search_filter, database_type=self.name) from e

        result = self._handle.result or {}
        if result.get('result', 0) != 0:
            self.logger.info('LDAP search failed: %s', result.get('description'))
            raise DatabaseQueryError(
                'LDAP Search failed.',
                query=search_filter,
                status_code=str(result.get('result')),
                database_type=self.name,
            )

        return [
            self._entry_to_row(entry)
            for entry in (self._handle.response or [])
            if entry.get('type') == 'searchResEntry'
        ]

    @staticmethod
    def _bind_filter(search_filter: str, params: Mapping[str, Any]) -> str:
        if not params:
            return search_filter
        values = {str(name).lstrip(':'): value for name, value in params.items()}

        def replace(match):
            name = match.group(1)
            if name not in values:
                return match.group(0)
            return escape_filter_chars(str(values[name]))

        return _PLACEHOLDER.sub(replace, search_filter)

    @staticmethod
    def _entry_to_row(entry: Mapping[str, Any]) -> Dict[str, Any]:
        row = {'dn': entry.get('dn')}
        row.update(dict(entry.get('attributes') or {}))
        return row

    def bind_to_server(self) -> None:
        """Bind the handle as the configured service account.

        Raises:
            DatabaseConnectionError: If the bind fails.
        """
        if not self._is_connected:
            self.connect()
        identity = f"{self.configuration.get('username')}@{self.configuration.get('domain')}"
        try:
            success = self._handle.rebind(user=identity, password=self.configuration.get('password'))
        except LDAPException as e:
            self.logger.debug('LDAP bind raised: %s', e)
            success = False
        if not success:
            result = self._handle.result or {}
            self.logger.error('LDAP failed: %s', result.get('description'))
            if result.get('result') == INVALID_CREDENTIALS:
                raise DatabaseConnectionError('Unable to connect to LDAP server.', self.name)
            raise DatabaseConnectionError('A problem occurred when binding to the LDAP server.', self.name)

    def authenticate_user(self, domain: str, username: str, password: str) -> bool:
        """Check a user's credentials by binding as that user.

        The inputs are escaped here and must not be escaped by the caller.
        The handle stays bound as the user afterwards.

        Returns:
            True if the bind succeeded.

        Raises:
            DatabaseConnectionError: If the server can not be reached.
        """
        if not self._is_connected:
            self.connect()
        self.logger.debug('Attempting to authenticate %s@%s', username, domain)
        username = escape_filter_chars(username)
        password = escape_filter_chars(password)
        domain = escape_filter_chars(domain)
        identity = f"{username}@{domain}"
        try:
            success = bool(self._handle.rebind(user=identity, password=password))
        except LDAPException as e:
            self.logger.debug('LDAP bind raised: %s', e)
            success = False
        if not success:
            self.logger.warning('Failed authenticating %s', identity)
        return success

    def last_insert_id(self, name: Optional[str] = None) -> Optional[int]:
        """Not supported by LDAP."""
        return None

    def generate_pagination(self, page_size: Optional[int] = None, page: Optional[int] = None) -> str:
        """LDAP doesn't support pagination."""
        return ''

    def generate_sort(self, columns: Mapping[str, str], prepend: Optional[str] = None) -> str:
        """LDAP doesn't support sorting."""
        return ''
