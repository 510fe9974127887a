"""
SQLite database connector for testing and lightweight deployments.

SQLite is useful for local development, testing, and demos without
requiring a full database server setup.
"""

import sqlite3
from pathlib import Path
from typing import Any

from sqlconnector.connectors.base import BaseConnector, QueryError
from sqlconnector.mapping import Row
from sqlconnector.parameters import QueryParameter


class SQLiteConnector(BaseConnector):
    """
    Connector for SQLite databases.

    Settings used:
        database: Path to SQLite database file
        timeout: Busy timeout in seconds (default: sqlite3 default)

    Parameters are bound by name (``@Name``, ``:Name`` or ``$Name``).
    Output parameters are read from the first row of a RETURNING clause,
    matching column names to parameter names:

        new_id = QueryParameter('Id', is_output=True)
        connector.execute(
            'INSERT INTO customers (name) VALUES (@Name) RETURNING id AS Id',
            [QueryParameter('Name', 'Alice'), new_id],
        )

    Every call opens its own connection, so ``:memory:`` databases do not
    survive between calls.
    """

    connector_type = "sqlite"
    driver_errors = (sqlite3.Error, OSError)

    CONSTRAINT_ERRORS = frozenset({
        sqlite3.SQLITE_CONSTRAINT_UNIQUE,
        sqlite3.SQLITE_CONSTRAINT_PRIMARYKEY,
        sqlite3.SQLITE_CONSTRAINT_FOREIGNKEY,
    })

    CONSTRAINT_MESSAGES = [
        ('UNIQUE constraint failed', sqlite3.SQLITE_CONSTRAINT_UNIQUE),
        ('FOREIGN KEY constraint failed', sqlite3.SQLITE_CONSTRAINT_FOREIGNKEY),
    ]

    def build_connection_string(self) -> str:
        return self.settings.database or ':memory:'

    def _open(self):
        """Open an autocommit connection with foreign keys enforced."""
        db_path = self.connection_string

        # Create parent directories if needed (unless in-memory)
        if db_path != ':memory:':
            Path(db_path).parent.mkdir(parents=True, exist_ok=True)

        kwargs: dict[str, Any] = {'isolation_level': None}
        if self.settings.timeout > 0:
            kwargs['timeout'] = self.settings.timeout

        connection = sqlite3.connect(db_path, **kwargs)
        connection.execute("PRAGMA foreign_keys = ON")
        return connection

    def _bind(self, params: list[QueryParameter]) -> dict[str, Any]:
        return {param.key: param.value for param in params}

    def _execute_reader(self, cursor, query: str, params: list[QueryParameter]) -> None:
        cursor.execute(query, self._bind(params))

    def _execute_nonquery(
        self,
        cursor,
        query: str,
        params: list[QueryParameter],
        is_stored_procedure: bool
    ) -> tuple[int, dict[str, Any]]:
        if is_stored_procedure:
            raise QueryError("SQLite does not support stored procedures")

        cursor.execute(query, self._bind(params))

        outputs = [p for p in params if p.is_output]
        if not outputs:
            return cursor.rowcount, {}

        rows = cursor.fetchall() if cursor.description is not None else []
        if not rows:
            return 0, {}

        first = Row.factory(cursor)(rows[0])
        values = {p.key: first[p.key] for p in outputs if p.key in first}
        return len(rows), values

    def _constraint_code(self, error: Exception) -> int | None:
        if not isinstance(error, sqlite3.IntegrityError):
            return None

        code = getattr(error, 'sqlite_errorcode', None)
        if code in self.CONSTRAINT_ERRORS:
            return code

        # Base SQLITE_CONSTRAINT only; fall back to the message
        message = str(error)
        for prefix, extended in self.CONSTRAINT_MESSAGES:
            if message.startswith(prefix):
                return extended
        return None
