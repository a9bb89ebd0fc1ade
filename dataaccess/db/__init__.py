"""Connections, result sets and SQL helpers."""

from dataaccess.db.base import DAO
from dataaccess.db.results import ArrayResultSet, CursorResultSet, DirectoryResultSet, ResultSet
from dataaccess.db.status import ExecutionStatus, classify_status
from dataaccess.db.relational import SQLAlchemyDAO
from dataaccess.db.adapters import (
    MySQLDAO,
    MsSQLDAO,
    SQLiteDAO,
    DB2DAO,
    OracleDAO,
)
from dataaccess.db.ldap import LDAPDAO
from dataaccess.db.dummy import DummyDAO
from dataaccess.db.connection import (
    ConnectionManager,
    DAOFactory,
    get_connection_manager,
    set_connection_manager,
)

__all__ = [
    # Base classes
    "DAO",
    "SQLAlchemyDAO",
    "ResultSet",
    "CursorResultSet",
    "ArrayResultSet",
    "DirectoryResultSet",
    "ExecutionStatus",
    "classify_status",
    # Backends
    "MySQLDAO",
    "MsSQLDAO",
    "SQLiteDAO",
    "DB2DAO",
    "OracleDAO",
    "LDAPDAO",
    "DummyDAO",
    # Connection management
    "ConnectionManager",
    "DAOFactory",
    "get_connection_manager",
    "set_connection_manager",
]
