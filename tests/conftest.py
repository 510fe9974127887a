"""
Shared fixtures: a temporary SQLite database and connectors bound to it.
"""

import sqlite3

import pytest

from sqlconnector.config_loader import ConnectionSettings
from sqlconnector.connectors.sqlite import SQLiteConnector


@pytest.fixture
def test_db(tmp_path):
    """Create temporary test database."""
    db_path = tmp_path / 'test.db'

    conn = sqlite3.connect(db_path)
    conn.executescript("""
        CREATE TABLE customers (
            id INTEGER PRIMARY KEY,
            name TEXT NOT NULL UNIQUE,
            email TEXT,
            age INTEGER
        );

        CREATE TABLE orders (
            id INTEGER PRIMARY KEY,
            customer_id INTEGER NOT NULL REFERENCES customers(id),
            amount REAL
        );

        INSERT INTO customers VALUES (1, 'Alice', 'alice@test.com', 30);
        INSERT INTO customers VALUES (2, 'Bob', NULL, 25);
        INSERT INTO customers VALUES (3, 'Charlie', 'charlie@test.com', NULL);

        INSERT INTO orders VALUES (1, 1, 100.0);
        INSERT INTO orders VALUES (2, 2, 200.5);
    """)
    conn.commit()
    conn.close()

    return str(db_path)


@pytest.fixture
def connector(test_db):
    """SQLite connector for the test database."""
    return SQLiteConnector(ConnectionSettings(type='sqlite', database=test_db))


@pytest.fixture
def count_rows(test_db):
    """Count rows in a table outside the connector under test."""
    def count(table: str) -> int:
        conn = sqlite3.connect(test_db)
        try:
            return conn.execute(f'SELECT COUNT(*) FROM {table}').fetchone()[0]
        finally:
            conn.close()
    return count
