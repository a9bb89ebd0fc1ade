"""Relational backends for the supported database engines."""

from dataaccess.db.adapters.mysql import MySQLDAO
from dataaccess.db.adapters.mssql import MsSQLDAO
from dataaccess.db.adapters.sqlite import SQLiteDAO
from dataaccess.db.adapters.db2 import DB2DAO
from dataaccess.db.adapters.oracle import OracleDAO

__all__ = [
    "MySQLDAO",
    "MsSQLDAO",
    "SQLiteDAO",
    "DB2DAO",
    "OracleDAO",
]
