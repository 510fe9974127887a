"""
sqlconnector - Minimal data-access helper.

Opens a short-lived connection per call, executes parameterized SQL text
or stored procedures, and maps result rows into caller types.

Basic usage:
    from dataclasses import dataclass
    from sqlconnector import QueryParameter, SQLServerConnector

    @dataclass
    class Customer:
        Id: int = 0
        Name: str = ''

    connector = SQLServerConnector()
    connector.connect('localhost', 'Sales', 'app_user', 'secret')

    customers = connector.select_entities(
        'SELECT Id, Name FROM Customers WHERE Region = @Region',
        {'Region': 'EU'},
        Customer,
    )

    new_id = QueryParameter('Id', is_output=True, sql_type='int')
    connector.execute(
        'INSERT INTO Customers (Name) VALUES (@Name); SET @Id = SCOPE_IDENTITY();',
        [QueryParameter('Name', 'Alice'), new_id],
    )
"""

from sqlconnector.config_loader import ConfigurationError, ConnectionSettings, load_config
from sqlconnector.connectors import (
    BaseConnector,
    ConnectionError,
    DataConstraintError,
    QueryError,
    SQLiteConnector,
    SQLServerConnector,
    create_connector,
)
from sqlconnector.mapping import EntityMapper, Row, RowMapper
from sqlconnector.parameters import QueryParameter

__version__ = '1.0.0'

__all__ = [
    'BaseConnector',
    'ConfigurationError',
    'ConnectionError',
    'ConnectionSettings',
    'DataConstraintError',
    'EntityMapper',
    'QueryError',
    'QueryParameter',
    'Row',
    'RowMapper',
    'SQLServerConnector',
    'SQLiteConnector',
    'create_connector',
    'load_config',
]
