"""Pydantic models for dataaccess configuration."""

from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import (
    BaseModel,
    Field,
    field_validator,
    model_validator,
    AliasChoices,
    ConfigDict,
)
from pydantic_settings import BaseSettings


class DatabaseType(str, Enum):
    """Supported backend types."""
    MYSQL = "mysql"
    MSSQL = "mssql"
    SQLITE = "sqlite"
    DB2 = "db2"
    ORACLE = "oracle"
    LDAP = "ldap"
    DUMMY = "dummy"


class DatabaseConfig(BaseModel):
    """Connection configuration for a single backend.

    Required keys are not enforced here: each DAO validates the mapping
    returned by :meth:`to_mapping` itself, because the rules differ per
    backend and must surface as connection errors.
    """

    model_config = ConfigDict(populate_by_name=True)

    type: DatabaseType = Field(validation_alias=AliasChoices("type", "driver"))
    server: Optional[str] = Field(default=None, validation_alias=AliasChoices("server", "host"))
    port: Optional[int] = None
    dbname: Optional[str] = Field(default=None, validation_alias=AliasChoices("dbname", "database"))
    username: Optional[str] = None
    password: Optional[str] = None
    options: Dict[str, Any] = Field(default_factory=dict)

    # LDAP-specific fields
    base_dn: Optional[str] = None
    domain: Optional[str] = None
    use_ssl: Optional[bool] = None

    # Test double fields
    testdata: Optional[List[Dict[str, Any]]] = None
    last_insert_id: Optional[int] = None

    @field_validator('port')
    def validate_port(cls, v):
        """Validate port number range."""
        if v is not None and (v < 1 or v > 65535):
            raise ValueError("Port must be between 1 and 65535")
        return v

    def to_mapping(self) -> Dict[str, Any]:
        """Return the plain configuration mapping a DAO is built from."""
        return self.model_dump(exclude={'type'}, exclude_none=True)


class DataAccessConfig(BaseModel):
    """Main configuration model: a set of named connections."""
    databases: Dict[str, DatabaseConfig]
    default_database: Optional[str] = None

    @model_validator(mode='after')
    def validate_default_database(self):
        """Ensure default_database exists in databases."""
        if self.default_database and self.default_database not in self.databases:
            raise ValueError(f"default_database '{self.default_database}' not found in databases")
        return self

    @model_validator(mode='after')
    def set_default_database(self):
        """Set default database if not specified."""
        if not self.default_database and self.databases:
            self.default_database = next(iter(self.databases))
        return self


class EnvironmentSettings(BaseSettings):
    """Environment-specific settings."""
    log_level: str = Field(default="INFO")
    debug: bool = Field(default=False)
    config_file: Optional[str] = Field(default=None)

    class Config:
        env_prefix = "DATAACCESS_"
        case_sensitive = False
