"""
Tests for the command line entry point against a SQLite connection.

Run with: pytest tests/test_main.py -v
"""

import argparse
import json

import pytest

from sqlconnector.main import (
    EXIT_CONFIG,
    EXIT_CONSTRAINT,
    EXIT_ERROR,
    EXIT_OK,
    main,
    parse_output,
    parse_parameter,
)


@pytest.fixture
def config_path(test_db, tmp_path):
    path = tmp_path / 'connections.yaml'
    path.write_text(f"connections:\n  local:\n    type: sqlite\n    database: {test_db}\n")
    return str(path)


class TestArguments:
    """Tests for parameter parsing."""

    def test_values_parsed_as_yaml_scalars(self):
        assert parse_parameter('Id=42').value == 42
        assert parse_parameter('Name=Alice').value == 'Alice'
        assert parse_parameter("Code='42'").value == '42'
        assert parse_parameter('Email=null').value is None
        assert parse_parameter('Email=').value is None

    def test_malformed_parameter(self):
        with pytest.raises(argparse.ArgumentTypeError):
            parse_parameter('no-equals-sign')

    def test_output_with_type(self):
        param = parse_output('OrderId:int')

        assert param.is_output
        assert param.key == 'OrderId'
        assert param.sql_type == 'int'
        assert parse_output('Id').sql_type is None


class TestMain:
    """Tests for CLI commands."""

    def test_check(self, config_path, capsys):
        assert main(['--config', config_path, 'check']) == EXIT_OK
        assert 'Connected to local' in capsys.readouterr().out

    def test_query_json(self, config_path, capsys):
        code = main([
            '-c', config_path, 'query',
            'SELECT id, name, email FROM customers WHERE id <= @max ORDER BY id',
            '-p', 'max=2', '--json',
        ])

        assert code == EXIT_OK
        rows = json.loads(capsys.readouterr().out)
        assert rows == [
            {'id': 1, 'name': 'Alice', 'email': 'alice@test.com'},
            {'id': 2, 'name': 'Bob', 'email': None},
        ]

    def test_query_table(self, config_path, capsys):
        assert main(['-c', config_path, 'query', 'SELECT name FROM customers']) == EXIT_OK

        out = capsys.readouterr().out
        assert 'Charlie' in out
        assert '3 row(s)' in out

    def test_scalar(self, config_path, capsys):
        assert main(['-c', config_path, 'scalar', 'SELECT COUNT(*) FROM orders', '--json']) == EXIT_OK
        assert capsys.readouterr().out.strip() == '2'

    def test_execute_with_output(self, config_path, capsys):
        code = main([
            '-c', config_path, 'execute',
            'INSERT INTO customers (name) VALUES (@name) RETURNING id AS new_id',
            '-p', 'name=Dana', '--out', 'new_id',
        ])

        assert code == EXIT_OK
        out = capsys.readouterr().out
        assert '1 row(s) affected' in out
        assert 'new_id' in out

    def test_constraint_violation_exit_code(self, config_path, capsys):
        code = main([
            '-c', config_path, 'execute',
            'INSERT INTO customers (name) VALUES (@name)', '-p', 'name=Alice',
        ])

        assert code == EXIT_CONSTRAINT
        assert 'Constraint violation' in capsys.readouterr().err

    def test_execution_error_exit_code(self, config_path, capsys):
        assert main(['-c', config_path, 'query', 'SELECT * FROM missing']) == EXIT_ERROR
        assert 'missing' in capsys.readouterr().err

    def test_configuration_error_exit_code(self, tmp_path, capsys):
        assert main(['-c', str(tmp_path / 'absent.yaml'), 'check']) == EXIT_CONFIG
        assert 'Configuration error' in capsys.readouterr().err

    def test_unknown_connection_name(self, config_path):
        assert main(['-c', config_path, '-n', 'remote', 'check']) == EXIT_CONFIG
