"""DAO factory and named connection management."""

import logging
import time
from typing import Any, Dict, Mapping, Optional, Type, Union

from pydantic import ValidationError

from dataaccess.config.models import DatabaseConfig, DatabaseType, DataAccessConfig
from dataaccess.db.adapters import DB2DAO, MsSQLDAO, MySQLDAO, OracleDAO, SQLiteDAO
from dataaccess.db.base import DAO
from dataaccess.db.dummy import DummyDAO
from dataaccess.db.ldap import LDAPDAO
from dataaccess.db.results import ResultSet
from dataaccess.exceptions import DatabaseError, DataAccessError

logger = logging.getLogger(__name__)


class DAOFactory:
    """Factory for creating DAOs from configuration."""

    _daos: Dict[DatabaseType, Type[DAO]] = {
        DatabaseType.MYSQL: MySQLDAO,
        DatabaseType.MSSQL: MsSQLDAO,
        DatabaseType.SQLITE: SQLiteDAO,
        DatabaseType.DB2: DB2DAO,
        DatabaseType.ORACLE: OracleDAO,
        DatabaseType.LDAP: LDAPDAO,
        DatabaseType.DUMMY: DummyDAO,
    }

    @classmethod
    def create_dao(
        cls,
        config: Union[DatabaseConfig, Mapping[str, Any]],
        logger: Optional[logging.Logger] = None,
    ) -> DAO:
        """Create a DAO based on configuration.

        Args:
            config: A DatabaseConfig, or a mapping with a 'type' (or 'driver') key.
            logger: Logger handed to the DAO.

        Returns:
            DAO instance. It is not connected yet.

        Raises:
            DatabaseError: If the backend type is not supported.
            DatabaseConnectionError: If the configuration is incomplete.
        """
        if not isinstance(config, DatabaseConfig):
            try:
                config = DatabaseConfig.model_validate(dict(config))
            except ValidationError as e:
                raise DatabaseError(
                    f"Unsupported or invalid database configuration: {e}. "
                    f"Supported types: {[t.value for t in cls._daos]}"
                ) from e

        dao_class = cls._daos.get(config.type)
        if not dao_class:
            supported_types = [t.value for t in cls._daos]
            raise DatabaseError(
                f"Unsupported database type: {config.type.value}. "
                f"Supported types: {supported_types}"
            )

        return dao_class(config.to_mapping(), logger)

    @classmethod
    def register_dao(cls, db_type: DatabaseType, dao_class: Type[DAO]) -> None:
        """Register a custom DAO class for a backend type."""
        cls._daos[db_type] = dao_class

    @classmethod
    def get_supported_types(cls) -> list[DatabaseType]:
        """Get list of supported backend types."""
        return list(cls._daos.keys())


class ConnectionManager:
    """Owns one DAO per configured connection name.

    DAOs are created on first use and cached. Nothing is pooled: each name
    maps to exactly one DAO and one native connection.
    """

    def __init__(self, config: DataAccessConfig) -> None:
        """Initialize connection manager.

        Args:
            config: dataaccess configuration.
        """
        self.config = config
        self._daos: Dict[str, DAO] = {}
        self._factory = DAOFactory()

    def get_dao(self, db_name: Optional[str] = None) -> DAO:
        """Get DAO by connection name.

        Args:
            db_name: Connection name. If None, uses the default connection.

        Raises:
            DatabaseError: If the connection is not configured or can't be created.
        """
        if db_name is None:
            db_name = self.config.default_database

        if not db_name:
            raise DatabaseError("No database specified and no default database configured")

        if db_name not in self.config.databases:
            available_dbs = list(self.config.databases.keys())
            raise DatabaseError(
                f"Database '{db_name}' not found in configuration. "
                f"Available databases: {available_dbs}"
            )

        if db_name in self._daos:
            return self._daos[db_name]

        try:
            dao = self._factory.create_dao(self.config.databases[db_name])
        except DataAccessError as e:
            raise DatabaseError(f"Failed to create DAO for database '{db_name}': {e}") from e

        self._daos[db_name] = dao
        return dao

    def query(
        self,
        query: str,
        params: Optional[Dict[str, Any]] = None,
        db_name: Optional[str] = None,
        options: Optional[Dict[str, Any]] = None,
    ) -> ResultSet:
        """Run a query on the named connection."""
        return self.get_dao(db_name).query(query, params, options)

    def test_connection(self, db_name: Optional[str] = None) -> Dict[str, Any]:
        """Test a connection by opening it.

        Returns:
            Connection test result with timing and status information.
        """
        start_time = time.time()
        name = db_name or self.config.default_database

        try:
            dao = self.get_dao(db_name)
            if not dao.is_connected:
                dao.connect()

            end_time = time.time()

            return {
                'database': name,
                'status': 'success',
                'message': 'Connection successful',
                'response_time': round((end_time - start_time) * 1000, 2),  # milliseconds
                'backend': dao.name,
                'driver': dao.get_driver_name(),
                'database_type': self.config.databases[name].type.value,
            }

        except DatabaseError as e:
            end_time = time.time()
            return {
                'database': name,
                'status': 'failed',
                'message': str(e),
                'response_time': round((end_time - start_time) * 1000, 2),
                'error': type(e).__name__,
            }

    def test_all_connections(self) -> Dict[str, Dict[str, Any]]:
        """Test every configured connection."""
        return {db_name: self.test_connection(db_name) for db_name in self.config.databases}

    def close_connection(self, db_name: str) -> None:
        """Close a specific connection."""
        dao = self._daos.pop(db_name, None)
        if dao is not None:
            dao.close()

    def close_all_connections(self) -> None:
        """Close all connections."""
        for dao in self._daos.values():
            dao.close()
        self._daos.clear()

    def get_connection_status(self) -> Dict[str, Any]:
        """Get status of all configured connections."""
        status = {
            'total_configured': len(self.config.databases),
            'total_active': len(self._daos),
            'default_database': self.config.default_database,
            'connections': {},
        }

        for db_name, db_config in self.config.databases.items():
            dao = self._daos.get(db_name)
            status['connections'][db_name] = {
                'active': dao is not None,
                'connected': dao.is_connected if dao is not None else False,
                'in_transaction': dao.in_transaction if dao is not None else False,
                'driver': dao.get_driver_name() if dao is not None else None,
                'type': db_config.type.value,
            }

        return status


# Global connection manager instance
_connection_manager: Optional[ConnectionManager] = None


def get_connection_manager(config: Optional[DataAccessConfig] = None) -> ConnectionManager:
    """Get the global connection manager instance.

    Args:
        config: Configuration. If None, loads the global configuration.

    Raises:
        DatabaseError: If no configuration is available.
    """
    global _connection_manager

    if _connection_manager is None:
        if config is None:
            try:
                from dataaccess.config import get_config
                config = get_config()
            except DataAccessError as e:
                raise DatabaseError("No configuration available for connection manager") from e

        _connection_manager = ConnectionManager(config)

    return _connection_manager


def set_connection_manager(manager: Optional[ConnectionManager]) -> None:
    """Set (or clear, with None) the global connection manager instance."""
    global _connection_manager
    _connection_manager = manager
