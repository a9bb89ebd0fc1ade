"""Oracle backend."""

import re
from typing import Optional
from urllib.parse import quote_plus

from dataaccess.db.relational import SQLAlchemyDAO, offset_fetch_pagination
from dataaccess.exceptions import DatabaseQueryError

_SEQUENCE_NAME = re.compile(r'^[A-Za-z][\w$#]*(\.[A-Za-z][\w$#]*)?$')


class OracleDAO(SQLAlchemyDAO):
    """Oracle 12c or later through python-oracledb.

    ``server`` is an Easy Connect string (``host:port/service``) or a TNS
    alias. ``dbname``, when given, is used as the service name.
    """

    name = "Oracle"
    identifier_quotes = ('"', '"')

    def get_driver_name(self) -> str:
        """Get the driver name for Oracle."""
        return "oracledb"

    def build_connection_string(self) -> str:
        """Build Oracle connection string."""
        connection_string = f"oracle+oracledb://{self._credentials()}{self.configuration['server']}"
        if self.configuration.get('dbname'):
            connection_string += f"/?service_name={quote_plus(str(self.configuration['dbname']))}"
        return connection_string

    def generate_pagination(self, page_size: Optional[int] = None, page: Optional[int] = None) -> str:
        """Return an OFFSET/FETCH snippet."""
        return offset_fetch_pagination(self, page_size, page)

    def _last_insert_id_query(self, name: Optional[str] = None) -> Optional[str]:
        """Oracle has no session-wide last id; the sequence must be named."""
        if name is None:
            return None
        if not _SEQUENCE_NAME.match(name):
            raise DatabaseQueryError(f"Invalid sequence name: {name}", database_type=self.name)
        return f"SELECT {name}.CURRVAL FROM dual"

    def last_insert_id(self, name: Optional[str] = None) -> Optional[int]:
        """Return the current value of the named sequence, None without one."""
        if name is None:
            return None
        return super().last_insert_id(name)
