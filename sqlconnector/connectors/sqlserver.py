"""
SQL Server database connector using pyodbc.

Supports both Windows Authentication (trusted connection) and
SQL Server Authentication (username/password).

Parameters are referenced by name in the SQL text (``@Id``). Each one is
declared as a T-SQL variable ahead of the caller's statement, so the text
itself is sent unchanged.
"""

import datetime
import decimal
import logging
import re
import sys
import uuid
from pathlib import Path
from typing import Any

import pyodbc

from sqlconnector.connectors.base import BaseConnector, ConnectionError, QueryError
from sqlconnector.parameters import QueryParameter

logger = logging.getLogger(__name__)


class SQLServerConnector(BaseConnector):
    """
    Connector for Microsoft SQL Server databases.

    Settings used:
        server: Server hostname or instance
        database: Database name
        port: Port number (default: driver default)
        trusted_connection: Use Windows Authentication (default: False)
        username: SQL Server login username
        password: SQL Server login password
        driver: ODBC driver name (default: auto-detect)
        timeout: Connection timeout in seconds (default: driver default)
        application_name: APP keyword (default: entry script name)

    Example:

        connector = SQLServerConnector()
        connector.connect('localhost', 'Sales', 'app_user', secret)
        total = connector.select_value(
            'SELECT COUNT(*) FROM Orders WHERE CustomerId = @CustomerId',
            {'CustomerId': 42},
            result_type=int,
        )
    """

    connector_type = "sqlserver"
    driver_errors = (pyodbc.Error,)

    # Common ODBC drivers in preference order
    DRIVERS = [
        'ODBC Driver 18 for SQL Server',
        'ODBC Driver 17 for SQL Server',
        'SQL Server Native Client 11.0',
        'SQL Server',
    ]

    # 547: foreign key / check conflict, 2601: unique index, 2627: unique constraint
    CONSTRAINT_ERRORS = frozenset({547, 2601, 2627})

    # Native error number precedes the ODBC function name in pyodbc messages
    NATIVE_ERROR_PATTERN = re.compile(r'\((\d+)\)\s*\(SQL[A-Za-z]+\)')

    # Declared type of untyped NULL parameters; converts implicitly to any column type
    UNTYPED_NULL = 'nvarchar(4000)'

    def _open(self):
        """Open an autocommit connection."""
        kwargs = {'autocommit': True}
        if self.settings.timeout > 0:
            kwargs['timeout'] = self.settings.timeout
        return pyodbc.connect(self.connection_string, **kwargs)

    def build_connection_string(self) -> str:
        """Build ODBC connection string from settings."""
        settings = self.settings
        driver = settings.driver or self._detect_driver()
        logger.debug("Using ODBC driver %s", driver)

        server = settings.server or 'localhost'
        if settings.port:
            server = f"{server},{settings.port}"

        parts = [
            f"DRIVER={{{driver}}}",
            f"SERVER={_quote(server)}",
            f"DATABASE={_quote(settings.database)}",
        ]

        if settings.timeout > 0:
            parts.append(f"Connection Timeout={settings.timeout}")

        if settings.trusted_connection:
            parts.append("Trusted_Connection=yes")
        else:
            parts.append(f"UID={_quote(settings.username)}")
            parts.append(f"PWD={_quote(settings.password)}")

        parts.append("MARS_Connection=yes")

        app_name = settings.application_name or resolve_application_name()
        if app_name:
            parts.append(f"APP={_quote(app_name)}")

        # Driver 18 requires explicit encryption settings
        if 'ODBC Driver 18' in driver:
            parts.append(f"Encrypt={settings.encrypt}")
            parts.append(f"TrustServerCertificate={settings.trust_server_certificate}")

        return ';'.join(parts)

    def _detect_driver(self) -> str:
        """Detect available ODBC driver."""
        available_drivers = pyodbc.drivers()

        for driver in self.DRIVERS:
            if driver in available_drivers:
                return driver

        # If no known driver found, try first available SQL Server driver
        for driver in available_drivers:
            if 'sql server' in driver.lower():
                return driver

        raise ConnectionError(
            f"No SQL Server ODBC driver found. Available drivers: {available_drivers}"
        )

    def _execute_reader(self, cursor, query: str, params: list[QueryParameter]) -> None:
        if params:
            batch, values = self._build_batch(query, params)
            cursor.execute(batch, values)
        else:
            cursor.execute(query)

        while cursor.description is None and cursor.nextset():
            pass

    def _execute_nonquery(
        self,
        cursor,
        query: str,
        params: list[QueryParameter],
        is_stored_procedure: bool
    ) -> tuple[int, dict[str, Any]]:
        outputs = [p for p in params if p.is_output]

        if params:
            batch, values = self._build_batch(query, params, is_stored_procedure, report=True)
            cursor.execute(batch, values)
        else:
            # Unwrapped, so statements that must start a batch still run
            cursor.execute(f"EXEC {query}" if is_stored_procedure else query)

        # Row counts arrive as result sets without a description; the
        # output values, when requested, are the last described result set
        affected = -1
        report = None
        while True:
            if cursor.description is not None:
                report = cursor.fetchone()
            elif cursor.rowcount >= 0:
                affected = max(affected, 0) + cursor.rowcount
            if not cursor.nextset():
                break

        if not outputs:
            return affected, {}

        if report is None:
            raise QueryError("Statement did not report its output parameters")

        return affected, {param.key: report[i] for i, param in enumerate(outputs)}

    def _build_batch(
        self,
        query: str,
        params: list[QueryParameter],
        is_stored_procedure: bool = False,
        report: bool = False
    ) -> tuple[str, list]:
        """
        Wrap a statement in a batch declaring its parameters.

        The declarations run under NOCOUNT. With report=True the caller's
        statement runs with row counts enabled, and the batch ends with a
        result set holding each output parameter.
        """
        lines = ['SET NOCOUNT ON;']
        for param in params:
            sql_type = param.sql_type or sql_type_for(param.value)
            lines.append(f"DECLARE {param.variable} {sql_type} = ?;")

        if report:
            lines.append('SET NOCOUNT OFF;')

        if is_stored_procedure:
            arguments = ', '.join(
                f"{p.variable} = {p.variable}{' OUTPUT' if p.is_output else ''}"
                for p in params
            )
            lines.append(f"EXEC {query} {arguments}")
        else:
            lines.append(query)

        outputs = [f"{p.variable} AS [{p.key}]" for p in params if p.is_output]
        if report and outputs:
            lines.append('SET NOCOUNT ON;')
            lines.append(f"SELECT {', '.join(outputs)};")

        return '\n'.join(lines), [param.value for param in params]

    def _constraint_code(self, error: Exception) -> int | None:
        if not isinstance(error, pyodbc.Error):
            return None

        for arg in error.args:
            if not isinstance(arg, str):
                continue
            for match in self.NATIVE_ERROR_PATTERN.finditer(arg):
                code = int(match.group(1))
                if code in self.CONSTRAINT_ERRORS:
                    return code
        return None


def sql_type_for(value: Any) -> str:
    """
    Infer the T-SQL type used to declare a parameter.

    Raises:
        TypeError: No SQL Server type for the value; set sql_type explicitly
    """
    if value is None:
        return SQLServerConnector.UNTYPED_NULL
    # bool before int, datetime before date
    if isinstance(value, bool):
        return 'bit'
    if isinstance(value, int):
        return 'bigint'
    if isinstance(value, float):
        return 'float'
    if isinstance(value, decimal.Decimal):
        exponent = value.as_tuple().exponent
        scale = min(-exponent, 38) if isinstance(exponent, int) and exponent < 0 else 0
        return f'decimal(38, {scale})'
    if isinstance(value, str):
        return 'nvarchar(max)'
    if isinstance(value, (bytes, bytearray, memoryview)):
        return 'varbinary(max)'
    if isinstance(value, datetime.datetime):
        return 'datetime2'
    if isinstance(value, datetime.date):
        return 'date'
    if isinstance(value, datetime.time):
        return 'time'
    if isinstance(value, uuid.UUID):
        return 'uniqueidentifier'
    raise TypeError(f"No SQL Server type for {type(value).__name__}; set sql_type explicitly")


def resolve_application_name() -> str | None:
    """Name of the entry script, when there is one."""
    entry = sys.argv[0] if sys.argv else ''
    if not entry or entry in ('-', '-c'):
        return None
    return Path(entry).stem or None


def _quote(value: Any) -> str:
    """Brace-quote an ODBC attribute value when it needs it."""
    text = '' if value is None else str(value)
    if any(ch in text for ch in ';{}') or text != text.strip():
        return '{' + text.replace('}', '}}') + '}'
    return text
