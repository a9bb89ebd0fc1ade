"""Core exceptions for dataaccess."""

from typing import Any, Dict, Optional


class DataAccessError(Exception):
    """Base exception for all dataaccess errors."""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}


class ConfigurationError(DataAccessError):
    """Raised when there's an error in configuration parsing or validation."""
    pass


class DatabaseError(DataAccessError):
    """Raised when there's an error connecting to or querying a data source."""

    def __init__(
        self,
        message: str,
        database_type: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None
    ):
        super().__init__(message, details)
        self.database_type = database_type


class DatabaseConnectionError(DatabaseError):
    """Raised when a connection can not be established or is misconfigured."""
    pass


class DatabaseQueryError(DatabaseError):
    """Raised when a statement can not be prepared or executed."""

    def __init__(
        self,
        message: str,
        query: Optional[str] = None,
        params: Optional[Dict[str, Any]] = None,
        status_code: Optional[str] = None,
        database_type: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None
    ):
        super().__init__(message, database_type, details)
        self.query = query
        self.params = params or {}
        self.status_code = status_code


class TransactionError(DatabaseError):
    """Raised when transactions are misused, e.g. committing without beginning."""
    pass


class TransactionsNotSupportedError(DatabaseError):
    """Raised when the backend can not provide transactions."""
    pass
