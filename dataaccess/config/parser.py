"""Loading dataaccess configuration from YAML files."""

import os
import re
from pathlib import Path
from typing import Any, Dict, Optional, Tuple, Union

import yaml
from pydantic import ValidationError

from dataaccess.config.models import DataAccessConfig, EnvironmentSettings
from dataaccess.exceptions import ConfigurationError, DatabaseError

DEFAULT_CONFIG_FILES = (
    Path("dataaccess.yaml"),
    Path("dataaccess.yml"),
    Path("config") / "dataaccess.yaml",
)

SAMPLE_CONFIG = {
    'databases': {
        'app': {
            'type': 'mysql',
            'server': 'localhost',
            'port': 3306,
            'dbname': 'myapp',
            'username': 'app_user',
            'password': '${APP_DB_PASSWORD:-app_password}',
            'options': {'charset': 'utf8mb4'},
        },
        'local': {
            'type': 'sqlite',
            'server': './local.db',
        },
        'directory': {
            'type': 'ldap',
            'server': 'ldap.example.com',
            'port': 389,
            'base_dn': 'dc=example,dc=com',
            'domain': 'example.com',
            'username': 'svc_lookup',
            'password': '${LDAP_PASSWORD:-changeme}',
        },
    },
    'default_database': 'app',
}


def _deep_merge(base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
    """Merge two mappings; values from ``override`` win, nested mappings merge."""
    merged = dict(base)
    for key, value in override.items():
        if isinstance(merged.get(key), dict) and isinstance(value, dict):
            merged[key] = _deep_merge(merged[key], value)
        else:
            merged[key] = value
    return merged


class ConfigParser:
    """Loads connection settings from YAML.

    String values may reference the environment as ``${VAR}`` or
    ``${VAR:-default}``. A top-level ``include`` names further files, read
    relative to the including file; the including file overrides them.

    Every connection is checked against the required keys of its backend,
    so an incomplete entry fails when the file is loaded rather than on
    first use.
    """

    ENV_VAR_PATTERN = re.compile(r'\$\{([^}:]+)(?::-([^}]*))?\}')

    def __init__(self, env_settings: Optional[EnvironmentSettings] = None) -> None:
        self.env_settings = env_settings or EnvironmentSettings()

    def load_config(self, config_path: Optional[Union[str, Path]] = None) -> DataAccessConfig:
        """Load, validate and check a configuration file.

        Args:
            config_path: Path to the file. If None, DATAACCESS_CONFIG_FILE and
                then the default locations are tried.

        Raises:
            ConfigurationError: If the file is missing, malformed or incomplete.
        """
        config_file = self._find_config_file(config_path)
        raw_config = self._read(config_file, ())
        if not raw_config:
            raise ConfigurationError(f"Configuration file '{config_file}' is empty")

        try:
            config = DataAccessConfig.model_validate(raw_config)
        except ValidationError as e:
            raise ConfigurationError(f"Configuration validation failed: {e}") from e

        self._check_connections(config)
        return config

    def _find_config_file(self, config_path: Optional[Union[str, Path]]) -> Path:
        if config_path:
            path = Path(config_path)
            if not path.exists():
                raise ConfigurationError(f"Configuration file '{config_path}' not found")
            return path

        if self.env_settings.config_file:
            path = Path(self.env_settings.config_file)
            if not path.exists():
                raise ConfigurationError(f"DATAACCESS_CONFIG_FILE points to a missing file: '{path}'")
            return path

        candidates = [Path.cwd() / location for location in DEFAULT_CONFIG_FILES]
        for candidate in candidates:
            if candidate.exists():
                return candidate

        raise ConfigurationError(f"No configuration file found in default locations: {candidates}")

    def _read(self, path: Path, include_stack: Tuple[Path, ...]) -> Dict[str, Any]:
        """Read one file, resolving environment references and includes."""
        resolved = path.resolve()
        if resolved in include_stack:
            chain = ' -> '.join(str(p) for p in include_stack + (resolved,))
            raise ConfigurationError(f"Circular include: {chain}")

        try:
            with open(path, 'r', encoding='utf-8') as file:
                data = yaml.safe_load(file)
        except FileNotFoundError as e:
            kind = "Included file" if include_stack else "Configuration file"
            raise ConfigurationError(f"{kind} '{path}' not found") from e
        except yaml.YAMLError as e:
            raise ConfigurationError(f"Invalid YAML in '{path}': {e}") from e

        if data is None:
            return {}
        if not isinstance(data, dict):
            raise ConfigurationError(f"Configuration file '{path}' must contain a mapping")

        data = self._substitute(data)

        includes = data.pop('include', None) or []
        if not isinstance(includes, list):
            includes = [includes]

        merged: Dict[str, Any] = {}
        for include in includes:
            included = self._read(path.parent / include, include_stack + (resolved,))
            merged = _deep_merge(merged, included)
        return _deep_merge(merged, data)

    def _substitute(self, value: Any) -> Any:
        """Replace environment references in every string of a YAML tree."""
        if isinstance(value, dict):
            return {key: self._substitute(item) for key, item in value.items()}
        if isinstance(value, list):
            return [self._substitute(item) for item in value]
        if not isinstance(value, str):
            return value

        def replace(match):
            name, default = match.group(1).strip(), match.group(2)
            env_value = os.getenv(name)
            if env_value is not None:
                return env_value
            if default is not None:
                return default.strip()
            raise ConfigurationError(f"Required environment variable '{name}' is not set")

        return self.ENV_VAR_PATTERN.sub(replace, value)

    def _check_connections(self, config: DataAccessConfig) -> None:
        """Check each connection against its backend's required keys.

        The DAOs built here are never connected.

        Raises:
            ConfigurationError: Naming every incomplete connection.
        """
        # dataaccess.db imports the config models
        from dataaccess.db.connection import DAOFactory

        problems = []
        for name, db_config in config.databases.items():
            try:
                DAOFactory.create_dao(db_config)
            except DatabaseError as e:
                problems.append(f"{name}: {e}")

        if problems:
            raise ConfigurationError("Incomplete connection settings: " + '; '.join(problems))


# Global configuration instance
_config_parser = ConfigParser()
_loaded_config: Optional[DataAccessConfig] = None


def get_config(config_path: Optional[Union[str, Path]] = None, reload: bool = False) -> DataAccessConfig:
    """Get the global configuration, loading it on first use."""
    global _loaded_config

    if _loaded_config is None or reload:
        _loaded_config = _config_parser.load_config(config_path)

    return _loaded_config


def validate_config_file(config_path: Union[str, Path]) -> bool:
    """Validate a configuration file.

    Raises:
        ConfigurationError: If the configuration is invalid.
    """
    _config_parser.load_config(config_path)
    return True


def create_sample_config(output_path: Union[str, Path]) -> None:
    """Write a sample configuration file with one connection per common backend."""
    with open(output_path, 'w', encoding='utf-8') as file:
        yaml.safe_dump(SAMPLE_CONFIG, file, default_flow_style=False, sort_keys=False)
