"""
Connectors package - database connection implementations.

Provides connectors for different database types:
- SQL Server: Enterprise production databases
- SQLite: Local development and testing
"""

from sqlconnector.config_loader import ConnectionSettings
from sqlconnector.connectors.base import (
    BaseConnector,
    ConnectionError,
    DataConstraintError,
    QueryError,
)
from sqlconnector.connectors.sqlserver import SQLServerConnector
from sqlconnector.connectors.sqlite import SQLiteConnector


# Registry mapping connection types to connector classes
CONNECTOR_REGISTRY: dict[str, type[BaseConnector]] = {
    'sqlserver': SQLServerConnector,
    'sqlite': SQLiteConnector,
}


def get_connector(connection_type: str) -> type[BaseConnector] | None:
    """
    Get connector class for a connection type.

    Args:
        connection_type: The type of database connection

    Returns:
        Connector class or None if not found
    """
    return CONNECTOR_REGISTRY.get(connection_type)


def create_connector(settings: ConnectionSettings | dict) -> BaseConnector:
    """
    Create a connector instance from settings.

    Args:
        settings: ConnectionSettings, or a configuration mapping with 'type'

    Returns:
        Configured connector instance (not yet verified)

    Raises:
        ValueError: If connection type is not supported
    """
    if isinstance(settings, dict):
        settings = ConnectionSettings.from_dict(settings)

    connector_class = get_connector(settings.type)
    if connector_class is None:
        supported = ', '.join(CONNECTOR_REGISTRY.keys())
        raise ValueError(
            f"Unsupported connection type: {settings.type}. "
            f"Supported types: {supported}"
        )

    return connector_class(settings)


__all__ = [
    'BaseConnector',
    'ConnectionError',
    'DataConstraintError',
    'QueryError',
    'SQLServerConnector',
    'SQLiteConnector',
    'CONNECTOR_REGISTRY',
    'get_connector',
    'create_connector',
]
