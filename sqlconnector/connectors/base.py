"""
Base connector class implementing the data-access operations.

Every call opens its own connection, runs one statement, maps the rows
and closes the connection. Subclasses supply the driver specifics:
connection string, connection factory, statement binding and
constraint-violation detection.
"""

import logging
from abc import ABC, abstractmethod
from contextlib import contextmanager
from typing import Any, Iterator

from sqlconnector.config_loader import ConnectionSettings
from sqlconnector.mapping import (
    EntityMapper,
    Row,
    as_row_mapper,
    coerce_value,
    default_value,
)
from sqlconnector.parameters import QueryParameter, as_parameters

logger = logging.getLogger(__name__)


class ConnectionError(Exception):
    """Raised when database connection fails."""
    pass


class QueryError(Exception):
    """Raised when a statement cannot be issued the way it was requested."""
    pass


class DataConstraintError(Exception):
    """
    Raised when a statement violates a unique, primary key or foreign key
    constraint.

    Attributes:
        code: Engine-specific error number
        error: The driver exception
    """

    def __init__(self, error: Exception, code: int | None = None):
        super().__init__(f"Data constraint violated ({code}): {error}")
        self.error = error
        self.code = code


class BaseConnector(ABC):
    """
    Abstract base class for database connectors.

    Subclasses must implement:
        - build_connection_string(): Connection string from settings
        - _open(): New DB-API connection in autocommit mode
        - _execute_reader(): Run a read statement on a cursor
        - _execute_nonquery(): Run a write statement, report rows and outputs
        - _constraint_code(): Recognize constraint violations
    """

    connector_type: str = "base"  # Override in subclasses

    # Driver exceptions caught by connect-check and execute()
    driver_errors: tuple[type[Exception], ...] = ()

    def __init__(self, settings: ConnectionSettings | None = None):
        """
        Initialize connector with settings.

        Args:
            settings: Connection settings (default: empty, set by connect())
        """
        self.settings = settings or ConnectionSettings(type=self.connector_type)
        self._connection_string: str | None = None

    @property
    def connection_string(self) -> str:
        """Connection string, built on first use."""
        if not self._connection_string:
            self._connection_string = self.build_connection_string()
        return self._connection_string

    @abstractmethod
    def build_connection_string(self) -> str:
        """Build the connection string from the current settings."""
        pass

    @abstractmethod
    def _open(self):
        """Open a new DB-API connection."""
        pass

    @abstractmethod
    def _execute_reader(self, cursor, query: str, params: list[QueryParameter]) -> None:
        """
        Execute a read statement, leaving the cursor on its result set.

        When the statement produces no result set, cursor.description is None.
        """
        pass

    @abstractmethod
    def _execute_nonquery(
        self,
        cursor,
        query: str,
        params: list[QueryParameter],
        is_stored_procedure: bool
    ) -> tuple[int, dict[str, Any]]:
        """
        Execute a write statement or stored procedure.

        Returns:
            Affected row count and output values keyed by QueryParameter.key
        """
        pass

    @abstractmethod
    def _constraint_code(self, error: Exception) -> int | None:
        """Engine error number if error is a constraint violation, else None."""
        pass

    def connect(
        self,
        server: str,
        database: str,
        username: str = '',
        password: str = '',
        timeout: int = 0
    ) -> None:
        """
        Store credentials and verify the server accepts them.

        Args:
            server: Database server
            database: Database name
            username: Login name
            password: Login password
            timeout: Connect timeout in seconds; 0 keeps the driver default

        Raises:
            ConnectionError: If the server is unreachable or rejects the login
        """
        self.settings = self.settings.replace(
            server=server,
            database=database,
            username=username,
            password=password,
            timeout=timeout,
        )
        # Rebuilt from the new settings on next use
        self._connection_string = None

        self.check_connection()

    def check_connection(self) -> None:
        """
        Open and immediately close a connection.

        Raises:
            ConnectionError: If connection fails
        """
        logger.debug("Checking %s connection to %s/%s",
                     self.connector_type, self.settings.server, self.settings.database)
        try:
            connection = self._open()
        except self.driver_errors as e:
            raise ConnectionError(f"Failed to connect to {self.connector_type}: {e}") from e
        connection.close()

    @contextmanager
    def _cursor(self) -> Iterator[Any]:
        """Connection and cursor scoped to one call."""
        connection = self._open()
        try:
            cursor = connection.cursor()
            try:
                yield cursor
            finally:
                cursor.close()
        finally:
            connection.close()

    def select(self, query: str, params=None, mapper=None, result_type: Any = None) -> Iterator[Any]:
        """
        Execute a read statement and yield one value per row.

        The statement runs when iteration starts; the sequence can be
        consumed once. The connection is closed when the rows are exhausted
        or the generator is closed.

        Args:
            query: SQL text
            params: QueryParameter list, or a {name: value} mapping
            mapper: RowMapper or callable taking a Row
            result_type: Without a mapper, type the first column is coerced
                to; NULL is only allowed for Optional types or no type

        Yields:
            Mapped row, or first column value

        Raises:
            TypeError: NULL first column with a non-nullable result_type
        """
        row_mapper = as_row_mapper(mapper)
        params = as_parameters(params)
        self._log_statement(query, params)

        with self._cursor() as cursor:
            self._execute_reader(cursor, query, params)
            if cursor.description is None:
                return

            make_row = Row.factory(cursor)
            for values in cursor:
                if row_mapper is not None:
                    yield row_mapper.map(make_row(values))
                else:
                    yield coerce_value(values[0], result_type)

    def select_value(self, query: str, params=None, mapper=None, result_type: Any = None) -> Any:
        """
        Execute a read statement and return a single value.

        Returns:
            Mapped first row, or first column of the first row; the type
            default when no row is returned
        """
        row_mapper = as_row_mapper(mapper)
        params = as_parameters(params)
        self._log_statement(query, params)

        with self._cursor() as cursor:
            self._execute_reader(cursor, query, params)
            values = cursor.fetchone() if cursor.description is not None else None

            if values is None:
                return default_value(result_type)

            if row_mapper is not None:
                result = row_mapper.map(Row.factory(cursor)(values))
                return default_value(result_type) if result is None else result

            return coerce_value(values[0], result_type)

    def select_entity(self, query: str, params, entity_type: type, field_map: dict[str, str] | None = None):
        """
        Populate one entity from the first row.

        Returns:
            New entity_type instance, or None when no row is returned
        """
        return self.select_value(query, params, EntityMapper(entity_type, field_map))

    def select_entities(self, query: str, params, entity_type: type, field_map: dict[str, str] | None = None) -> list:
        """
        Populate one entity per row, in result order.

        See EntityMapper for the binding rules.
        """
        return list(self.select(query, params, EntityMapper(entity_type, field_map)))

    def execute(self, query: str, params=None, is_stored_procedure: bool = False) -> int:
        """
        Execute a write statement, DDL or stored procedure.

        Output parameters receive the values reported by the database.

        Args:
            query: SQL text, or procedure name when is_stored_procedure
            params: QueryParameter list, or a {name: value} mapping
            is_stored_procedure: Call query as a stored procedure

        Returns:
            Number of affected rows

        Raises:
            DataConstraintError: On unique or foreign key violations
        """
        params = as_parameters(params)
        self._log_statement(query, params)

        try:
            with self._cursor() as cursor:
                affected, outputs = self._execute_nonquery(cursor, query, params, is_stored_procedure)
        except self.driver_errors as e:
            code = self._constraint_code(e)
            if code is not None:
                raise DataConstraintError(e, code) from e
            raise

        for param in params:
            if param.is_output:
                param.value = outputs.get(param.key)

        logger.debug("%d row(s) affected", affected)
        return affected

    def _log_statement(self, query: str, params: list[QueryParameter]) -> None:
        if logger.isEnabledFor(logging.DEBUG):
            logger.debug(
                "Executing on %s: %s [%s]",
                self.connector_type,
                query[:500],
                ', '.join(p.variable + (' OUTPUT' if p.is_output else '') for p in params),
            )
