"""
Configuration loader for database connections.

Handles YAML parsing, environment variable substitution, and validation,
and produces ConnectionSettings values consumed by the connectors.
"""

import dataclasses
import logging
import os
import re
from dataclasses import dataclass
from pathlib import Path
from typing import Any

import yaml

logger = logging.getLogger(__name__)


class ConfigurationError(Exception):
    """Raised when configuration is invalid or missing."""
    pass


@dataclass
class ConnectionSettings:
    """
    Discrete credential fields a connector builds its connection string from.

    Attributes:
        server: Server hostname, optionally with instance (``host\\SQLEXPRESS``)
        database: Database name; for SQLite, the database file path
        username: Login name (ignored with trusted_connection)
        password: Login password
        timeout: Connect timeout in seconds; 0 or less keeps the driver default
        type: Connector type key (see connectors.CONNECTOR_REGISTRY)
        port: Optional TCP port
        driver: ODBC driver name (default: auto-detect)
        trusted_connection: Use Windows Authentication
        encrypt: Encrypt setting for ODBC Driver 18
        trust_server_certificate: TrustServerCertificate for ODBC Driver 18
        application_name: Reported application name (default: entry script name)
    """
    server: str = ''
    database: str = ''
    username: str = ''
    password: str = ''
    timeout: int = 0
    type: str = 'sqlserver'
    port: int | None = None
    driver: str | None = None
    trusted_connection: bool = False
    encrypt: str = 'yes'
    trust_server_certificate: str = 'yes'
    application_name: str | None = None

    @classmethod
    def from_dict(cls, config: dict) -> 'ConnectionSettings':
        """
        Build settings from a configuration mapping.

        ``host`` is accepted as an alias of ``server`` and ``path`` as an
        alias of ``database``. Unknown keys are rejected.
        """
        values = dict(config)
        if 'host' in values:
            values.setdefault('server', values.pop('host'))
        if 'path' in values:
            values.setdefault('database', values.pop('path'))

        known = {f.name for f in dataclasses.fields(cls)}
        unknown = sorted(set(values) - known)
        if unknown:
            raise ConfigurationError(f"Unknown connection settings: {unknown}")

        if values.get('timeout') is None:
            values.pop('timeout', None)
        else:
            try:
                values['timeout'] = int(values['timeout'])
            except (TypeError, ValueError):
                raise ConfigurationError(f"Invalid timeout: {values['timeout']!r}")

        return cls(**values)

    def replace(self, **changes: Any) -> 'ConnectionSettings':
        return dataclasses.replace(self, **changes)


class ConfigLoader:
    """Load and validate connection configuration from a YAML file."""

    ENV_PATTERN = re.compile(r'\$\{([^}]+)\}')
    VALID_TYPES = ['sqlserver', 'sqlite']

    def __init__(self, config_path: str | Path):
        """
        Initialize configuration loader.

        Args:
            config_path: Path to connections YAML
        """
        self.config_path = Path(config_path)
        self._connections: dict[str, dict] = {}

    def load(self) -> dict[str, dict]:
        """Load, substitute and validate the configuration file."""
        config = self._load_yaml(self.config_path)

        connections = config.get('connections') or {}
        if not isinstance(connections, dict) or not connections:
            raise ConfigurationError(f"No database connections defined in {self.config_path}")

        for name, conn in connections.items():
            self._validate_connection(name, conn)

        self._connections = connections
        logger.debug("Loaded %d connection(s) from %s", len(connections), self.config_path)
        return connections

    def _load_yaml(self, path: Path) -> dict:
        """Load YAML file with environment variable substitution."""
        if not path.exists():
            raise ConfigurationError(f"Configuration file not found: {path}")

        with open(path, 'r') as f:
            content = f.read()

        content = self._substitute_env_vars(content)

        try:
            data = yaml.safe_load(content) or {}
        except yaml.YAMLError as e:
            raise ConfigurationError(f"Invalid YAML in {path}: {e}")

        if not isinstance(data, dict):
            raise ConfigurationError(f"Expected a mapping at the top of {path}")
        return data

    def _substitute_env_vars(self, content: str) -> str:
        """Replace ${VAR_NAME} patterns with environment variable values."""
        def replace_match(match):
            value = os.environ.get(match.group(1))
            if value is None:
                # Left in place; rejected by validation
                return match.group(0)
            return value

        return self.ENV_PATTERN.sub(replace_match, content)

    def _validate_connection(self, name: str, conn: Any) -> None:
        """Validate a database connection definition."""
        if not isinstance(conn, dict):
            raise ConfigurationError(f"Connection '{name}' must be a mapping")

        if 'type' not in conn:
            raise ConfigurationError(f"Connection '{name}' missing 'type' field")

        if conn['type'] not in self.VALID_TYPES:
            raise ConfigurationError(
                f"Connection '{name}' has invalid type: {conn['type']}. "
                f"Must be one of: {self.VALID_TYPES}"
            )

        if not (conn.get('database') or conn.get('path')):
            raise ConfigurationError(f"Connection '{name}' missing 'database' field")

        for key, value in conn.items():
            if isinstance(value, str) and self.ENV_PATTERN.search(value):
                raise ConfigurationError(
                    f"Connection '{name}' has unresolved environment variable in '{key}': {value}"
                )

    def get_connection(self, name: str) -> ConnectionSettings:
        """Get settings for a named connection."""
        if name not in self._connections:
            raise ConfigurationError(f"Connection not found: {name}")
        return ConnectionSettings.from_dict(self._connections[name])

    def get_connection_names(self) -> list[str]:
        """Return list of available connection names."""
        return list(self._connections.keys())


def load_config(config_path: str | Path) -> ConfigLoader:
    """
    Convenience function to load configuration.

    Args:
        config_path: Path to connections YAML

    Returns:
        Loaded ConfigLoader instance
    """
    loader = ConfigLoader(config_path)
    loader.load()
    return loader
