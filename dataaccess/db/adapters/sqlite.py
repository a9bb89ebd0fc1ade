"""SQLite backend."""

from pathlib import Path
from typing import Any, Dict, Optional

from dataaccess.db.relational import SQLAlchemyDAO

MEMORY_DATABASE = ':memory:'


class SQLiteDAO(SQLAlchemyDAO):
    """SQLite connection through the standard library driver.

    The ``server`` setting is the database file path, or ``:memory:``.
    """

    name = "SQLite"
    required_keys = (
        ('server', 'host'),
    )

    def get_driver_name(self) -> str:
        """Get the driver name for SQLite."""
        return "sqlite"

    def build_connection_string(self) -> str:
        """Build SQLite connection string.

        Relative paths are resolved against the working directory.
        """
        server = str(self.configuration['server'])
        if server == MEMORY_DATABASE:
            return "sqlite://"

        db_path = Path(server)
        if not db_path.is_absolute():
            db_path = Path.cwd() / db_path

        return f"sqlite:///{db_path}"

    def _get_engine_options(self) -> Dict[str, Any]:
        """Get SQLite-specific engine options."""
        options = self.configuration.get('options') or {}
        return {
            'connect_args': {
                'timeout': options.get('timeout', 30),
            }
        }

    def _last_insert_id_query(self, name: Optional[str] = None) -> Optional[str]:
        return "SELECT last_insert_rowid()"
