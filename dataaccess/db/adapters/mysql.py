"""MySQL backend."""

from typing import Any, Dict, Optional

from dataaccess.db.relational import SQLAlchemyDAO


class MySQLDAO(SQLAlchemyDAO):
    """MySQL connection through PyMySQL."""

    name = "MySQL"

    def get_driver_name(self) -> str:
        """Get the driver name for MySQL."""
        return "pymysql"

    def build_connection_string(self) -> str:
        """Build MySQL connection string.

        Returns:
            MySQL connection string.
        """
        server = self.configuration['server']
        if self.configuration.get('port'):
            server = f"{server}:{self.configuration['port']}"

        connection_string = (
            f"mysql+pymysql://{self._credentials()}{server}/{self.configuration.get('dbname', '')}"
        )

        options = dict(self.configuration.get('options') or {})

        # Set default charset if not specified
        if 'charset' not in options:
            options['charset'] = 'utf8mb4'

        option_string = "&".join([f"{k}={v}" for k, v in options.items()])
        return f"{connection_string}?{option_string}"

    def _get_engine_options(self) -> Dict[str, Any]:
        """Get MySQL-specific engine options."""
        options = self.configuration.get('options') or {}
        return {
            'connect_args': {
                'connect_timeout': options.get('connect_timeout', 10),
            }
        }

    def _last_insert_id_query(self, name: Optional[str] = None) -> Optional[str]:
        return "SELECT LAST_INSERT_ID()"
