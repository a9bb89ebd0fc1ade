"""IBM DB2 backend."""

from typing import Optional

from dataaccess.db.relational import SQLAlchemyDAO

DEFAULT_PORT = 50000


class DB2DAO(SQLAlchemyDAO):
    """DB2 connection through ibm_db_sa.

    DB2 identifiers are not quoted and pagination snippets are not
    supported.
    """

    name = "DB2"
    identifier_quotes = ('', '')

    def get_driver_name(self) -> str:
        """Get the driver name for DB2."""
        return "ibm_db"

    def build_connection_string(self) -> str:
        """Build DB2 connection string over TCP/IP."""
        port = self.configuration.get('port') or DEFAULT_PORT
        return (
            f"db2+ibm_db://{self._credentials()}{self.configuration['server']}:{port}/"
            f"{self.configuration.get('dbname', '')}"
        )

    def generate_pagination(self, page_size: Optional[int] = None, page: Optional[int] = None) -> str:
        """Pagination is not supported for DB2."""
        return ''

    def _last_insert_id_query(self, name: Optional[str] = None) -> Optional[str]:
        return "SELECT IDENTITY_VAL_LOCAL() FROM SYSIBM.SYSDUMMY1"
