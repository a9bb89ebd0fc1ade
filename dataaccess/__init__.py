"""dataaccess: one data-access interface over several backends.

dataaccess provides:
- A common DAO contract for MySQL, MS SQL Server, SQLite, DB2, Oracle and LDAP
- Uniform result sets for iterating, fetching and counting rows
- SQL fragment helpers for WHERE, ORDER BY, pagination and parameter binding
- An in-memory test double
- YAML-based connection configuration
"""

__version__ = "0.1.0"
__license__ = "MIT"

# Core exports
from dataaccess.exceptions import (
    DataAccessError,
    ConfigurationError,
    DatabaseError,
    DatabaseConnectionError,
    DatabaseQueryError,
    TransactionError,
    TransactionsNotSupportedError,
)

__all__ = [
    "__version__",
    "DataAccessError",
    "ConfigurationError",
    "DatabaseError",
    "DatabaseConnectionError",
    "DatabaseQueryError",
    "TransactionError",
    "TransactionsNotSupportedError",
]
