"""Microsoft SQL Server backend."""

from typing import Optional
from urllib.parse import quote_plus

from dataaccess.db.relational import SQLAlchemyDAO, offset_fetch_pagination

DEFAULT_ODBC_DRIVER = "ODBC Driver 18 for SQL Server"


class MsSQLDAO(SQLAlchemyDAO):
    """SQL Server 2012 or later through pyodbc."""

    name = "MSSQL"
    identifier_quotes = ('[', ']')

    def get_driver_name(self) -> str:
        """Get the driver name for SQL Server."""
        return "pyodbc"

    def build_connection_string(self) -> str:
        """Build SQL Server connection string.

        The ODBC driver defaults to ``ODBC Driver 18 for SQL Server`` and can
        be changed with the ``driver`` option.
        """
        server = self.configuration['server']
        if self.configuration.get('port'):
            server = f"{server}:{self.configuration['port']}"

        options = dict(self.configuration.get('options') or {})
        options.setdefault('driver', DEFAULT_ODBC_DRIVER)
        option_string = "&".join([f"{k}={quote_plus(str(v))}" for k, v in options.items()])

        return (
            f"mssql+pyodbc://{self._credentials()}{server}/"
            f"{self.configuration.get('dbname', '')}?{option_string}"
        )

    def generate_pagination(self, page_size: Optional[int] = None, page: Optional[int] = None) -> str:
        """Return an OFFSET/FETCH snippet. The query must have an ORDER BY."""
        return offset_fetch_pagination(self, page_size, page)

    def _last_insert_id_query(self, name: Optional[str] = None) -> Optional[str]:
        # SCOPE_IDENTITY() is empty outside the batch that did the insert
        return "SELECT @@IDENTITY"
