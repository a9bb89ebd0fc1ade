"""Configuration management for dataaccess."""

from dataaccess.config.models import (
    DatabaseType,
    DatabaseConfig,
    DataAccessConfig,
    EnvironmentSettings,
)
from dataaccess.config.parser import (
    ConfigParser,
    get_config,
    validate_config_file,
    create_sample_config,
)

__all__ = [
    # Models
    "DatabaseType",
    "DatabaseConfig",
    "DataAccessConfig",
    "EnvironmentSettings",
    # Parser
    "ConfigParser",
    "get_config",
    "validate_config_file",
    "create_sample_config",
]
